"""
Base class for the per-domain API façades.

Every façade call runs the same pipeline: validate the request, refuse
authenticated requests when no session is held, send it through the
shared transport, wrap transport failures in ApiRuntimeError, and
classify the raw response into a typed Response.
"""

import re
import threading
from typing import Any, Mapping, Optional, TypeVar

from .audit_logger import AuditLogger
from .enums import HttpMethod, LogLevel
from .exceptions import ApiRuntimeError, AuthenticationError, NetworkError
from .request import BaseRequest
from .response import BaseResponse
from .session import Session
from .transport import Transport, TransportResponse, decode_response


R = TypeVar("R", bound=BaseResponse)

API_ROOT = "/api/v2"

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def operation_name(request: BaseRequest) -> str:
    """``GetVersionRequest`` -> ``GET_VERSION``."""
    name = type(request).__name__
    if name.endswith("Request"):
        name = name[: -len("Request")]
    return _CAMEL_BOUNDARY.sub("_", name).upper()


def raw_operation_name(method: HttpMethod, endpoint: str) -> str:
    """``(GET, "buildInfo")`` -> ``GET_BUILD_INFO``."""
    name = endpoint.strip("/").replace("/", "_")
    return f"{method.value}_{_CAMEL_BOUNDARY.sub('_', name).upper()}"


class BaseAPI:
    """
    Shared request pipeline for a fixed base path.

    Façades share one transport and one session with the client that
    created them.
    """

    base_path: str = API_ROOT

    def __init__(
        self,
        transport: Transport,
        session: Optional[Session] = None,
        logger: Optional[AuditLogger] = None,
        clear_session_on_auth_error: bool = False,
    ) -> None:
        """
        Initialize the façade.

        Args:
            transport: Transport used for every call
            session: Session consulted by the authentication gate
            logger: Optional audit logger
            clear_session_on_auth_error: Clear the session when an
                authenticated call is answered with 401 or 403
        """
        self._transport = transport
        self._session = session if session is not None else Session()
        self._logger = logger
        self._clear_session_on_auth_error = clear_session_on_auth_error

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def session(self) -> Session:
        return self._session

    def set_transport(self, transport: Transport) -> None:
        self._transport = transport

    def has_session(self) -> bool:
        return self._session.is_active() or bool(self._transport.get_authentication())

    def execute(
        self,
        request: BaseRequest,
        response_cls: type[R],
        cancel_event: Optional[threading.Event] = None,
    ) -> R:
        """
        Run one request through the pipeline.

        Args:
            request: Request to send
            response_cls: Response type used to classify the result
            cancel_event: Optional cancellation flag checked before dispatch

        Returns:
            Typed Response; HTTP errors are reported as failed Responses

        Raises:
            ValidationError: If the request is invalid (no I/O performed)
            AuthenticationError: If the request needs a session and none is held
            ApiRuntimeError: If the transport could not complete the exchange
        """
        path = request.path(self.base_path)
        request.ensure_valid()

        if request.requires_authentication and not self.has_session():
            raise AuthenticationError.not_logged_in(path)

        raw = self.dispatch(request, path, cancel_event)
        response = response_cls.from_transport_response(raw)

        if (
            raw.status_code in (401, 403)
            and request.requires_authentication
            and self._clear_session_on_auth_error
        ):
            self._session.clear()
            self._transport.set_authentication(None)

        if not response.is_success():
            self._log(
                LogLevel.WARN,
                "Request failed",
                {"endpoint": path, "status_code": raw.status_code, "errors": response.errors},
            )
        return response

    def dispatch(
        self,
        request: BaseRequest,
        path: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> TransportResponse:
        """Send a validated request, wrapping transport failures."""
        method = request.method.value
        params = request.to_dict()
        options: dict[str, Any] = {"headers": request.headers(), "cancel_event": cancel_event}
        if request.method is HttpMethod.GET:
            options["query_params"] = params
        else:
            options["form_body"] = params
            files = request.files()
            if files:
                options["multipart_body"] = list(files)

        self._log(LogLevel.DEBUG, "Dispatching request", request.summary())
        try:
            return self._transport.send(method, path, **options)
        except NetworkError as e:
            if self._logger is not None:
                self._logger.log_error(
                    type(self).__name__,
                    "Network error",
                    error=e,
                    request_url=path,
                    additional_data={"request_summary": request.summary()},
                )
            raise ApiRuntimeError.from_network_error(
                operation_name(request),
                e,
                api_endpoint=path,
                http_method=method,
                request_summary=request.summary(),
            ) from e

    # Generic access with the raising status policy

    def get(
        self,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """
        GET an endpoint below this façade's base path and decode the body.

        Raises:
            AuthenticationError: If no session is held (no I/O performed),
                or the server answers 401/403
            ClientError: For other 4xx/5xx statuses or an undecodable body
            ApiRuntimeError: If the transport could not complete the exchange
        """
        return self._send_raw(HttpMethod.GET, endpoint, query_params=params, headers=headers)

    def post(
        self,
        endpoint: str,
        data: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """POST form fields to an endpoint; same policy as ``get``."""
        return self._send_raw(HttpMethod.POST, endpoint, form_body=data, headers=headers)

    def _send_raw(self, method: HttpMethod, endpoint: str, **options: Any) -> Any:
        path = f"{self.base_path}/{endpoint.lstrip('/')}"
        if not self.has_session():
            raise AuthenticationError.not_logged_in(path)

        try:
            raw = self._transport.send(method.value, path, **options)
        except NetworkError as e:
            if self._logger is not None:
                self._logger.log_error(
                    type(self).__name__, "Network error", error=e, request_url=path
                )
            raise ApiRuntimeError.from_network_error(
                raw_operation_name(method, endpoint),
                e,
                api_endpoint=path,
                http_method=method.value,
            ) from e
        return decode_response(raw, path)

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger is not None:
            self._logger.log(level, type(self).__name__, message, data)
