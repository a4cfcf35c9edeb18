"""
HTTP transport for the qBittorrent Web API.

The transport owns the session cookie: it attaches ``Cookie: SID=<token>``
to outgoing requests and captures ``SID`` from every ``Set-Cookie``
response header (last write wins). ``send()`` never raises on HTTP
status; it only raises NetworkError when no response was obtained.
``request()`` layers the raising status policy on top of ``send()``.
"""

import json
import re
import ssl
import threading
import time
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Mapping, Optional, Protocol, Sequence, runtime_checkable

import httpx

from .audit_logger import AuditLogger
from .enums import HttpMethod, LogLevel
from .exceptions import AuthenticationError, ClientError, NetworkError


DEFAULT_TIMEOUT = 30.0
DEFAULT_CONNECT_TIMEOUT = 10.0
DEFAULT_USER_AGENT = "qbittorrent-webapi-python/0.1"
MAX_REDIRECTS = 5

SESSION_COOKIE_NAME = "SID"
SESSION_COOKIE_PATTERN = re.compile(r"(?:^|[;,]\s*)SID=([^;,]+)")

# Endpoints whose successful body is plain text rather than JSON
PLAIN_TEXT_ENDPOINTS = frozenset({
    "/api/v2/app/version",
    "/api/v2/app/webapiVersion",
    "/api/v2/torrents/add",
})

DNS_FAILURE_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo",
    "temporary failure in name resolution",
    "no address associated with hostname",
)

COMPONENT = "transport"


def extract_session_id(set_cookie: Optional[str]) -> Optional[str]:
    """
    Extract the SID value from a Set-Cookie header value.

    Args:
        set_cookie: Raw header value, possibly several cookies joined by commas

    Returns:
        The trimmed session id, or None when no SID cookie is present
    """
    if not set_cookie:
        return None
    matches = SESSION_COOKIE_PATTERN.findall(set_cookie)
    if not matches:
        return None
    value = matches[-1].strip()
    return value or None


@dataclass(frozen=True)
class MultipartField:
    """A file part of a multipart/form-data body."""

    name: str
    filename: str
    content: bytes
    content_type: str = "application/x-bittorrent"


@dataclass(frozen=True)
class TransportResponse:
    """Raw HTTP response as returned by a Transport."""

    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: str = ""

    @cached_property
    def json(self) -> Any:
        """Decoded JSON body, or None when the body is not valid JSON."""
        if not self.body:
            return None
        try:
            return json.loads(self.body)
        except ValueError:
            return None

    def is_success(self, *acceptable_codes: int) -> bool:
        if acceptable_codes:
            return self.status_code in acceptable_codes
        return 200 <= self.status_code < 300

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    def is_json(self) -> bool:
        content_type = (self.header("Content-Type") or "").lower()
        if "json" in content_type:
            return True
        stripped = self.body.lstrip()
        return stripped[:1] in ("{", "[") and self.json is not None

    def set_cookie_session_id(self) -> Optional[str]:
        return extract_session_id(self.header("Set-Cookie"))


@runtime_checkable
class Transport(Protocol):
    """
    Contract every HTTP transport implements.

    Implementations must be safe to share between the façades of one client.
    """

    def send(
        self,
        method: str,
        uri: str,
        *,
        json_body: Any = None,
        form_body: Optional[Mapping[str, Any]] = None,
        multipart_body: Optional[Sequence[MultipartField]] = None,
        raw_body: Optional[bytes] = None,
        query_params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> TransportResponse:
        ...

    def set_base_url(self, base_url: str) -> None:
        ...

    def set_authentication(self, token: Optional[str]) -> None:
        ...

    def get_authentication(self) -> Optional[str]:
        ...

    def close(self) -> None:
        ...


class HttpxTransport:
    """
    Transport implementation on top of ``httpx.Client``.

    The underlying client is created lazily and rebuilt after any
    configuration change. Configuration mutators perform no I/O.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        verify_ssl: bool = True,
        ssl_cert_path: Optional[str] = None,
        proxy: Optional[str] = None,
        proxy_auth: Optional[str] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        logger: Optional[AuditLogger] = None,
        http_transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """
        Initialize the transport.

        Args:
            base_url: Server root, e.g. ``http://localhost:8080``
            timeout: Total request timeout in seconds
            connect_timeout: Connection timeout in seconds
            verify_ssl: Whether TLS certificates are verified
            ssl_cert_path: Optional CA bundle used for verification
            proxy: Optional proxy URL
            proxy_auth: Optional ``user:password`` for the proxy
            user_agent: Value of the User-Agent header
            logger: Optional audit logger for request/response events
            http_transport: Optional httpx transport (``httpx.MockTransport`` in tests)
        """
        self._lock = threading.RLock()
        self._base_url = base_url.rstrip("/") if base_url else None
        self._timeout = timeout
        self._connect_timeout = connect_timeout
        self._verify_ssl = verify_ssl
        self._ssl_cert_path = ssl_cert_path
        self._proxy = proxy
        self._proxy_auth = proxy_auth
        self._user_agent = user_agent
        self._logger = logger
        self._http_transport = http_transport
        self._session_token: Optional[str] = None
        self._client: Optional[httpx.Client] = None
        self._retired: list[httpx.Client] = []

    # Configuration

    @property
    def base_url(self) -> Optional[str]:
        return self._base_url

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def connect_timeout(self) -> float:
        return self._connect_timeout

    def set_base_url(self, base_url: str) -> None:
        with self._lock:
            self._base_url = base_url.rstrip("/") if base_url else None
            self._invalidate_client()

    def set_authentication(self, token: Optional[str]) -> None:
        with self._lock:
            self._session_token = token or None

    def get_authentication(self) -> Optional[str]:
        with self._lock:
            return self._session_token

    def set_timeout(self, timeout: float) -> None:
        with self._lock:
            self._timeout = timeout
            self._invalidate_client()

    def set_connect_timeout(self, connect_timeout: float) -> None:
        with self._lock:
            self._connect_timeout = connect_timeout
            self._invalidate_client()

    def set_verify_ssl(self, verify_ssl: bool) -> None:
        with self._lock:
            self._verify_ssl = verify_ssl
            self._invalidate_client()

    def set_ssl_cert_path(self, ssl_cert_path: Optional[str]) -> None:
        with self._lock:
            self._ssl_cert_path = ssl_cert_path
            self._invalidate_client()

    def set_proxy(self, proxy: Optional[str], proxy_auth: Optional[str] = None) -> None:
        with self._lock:
            self._proxy = proxy
            self._proxy_auth = proxy_auth
            self._invalidate_client()

    def set_user_agent(self, user_agent: str) -> None:
        with self._lock:
            self._user_agent = user_agent

    def _invalidate_client(self) -> None:
        # In-flight requests may still hold the old client; close it in close()
        if self._client is not None:
            self._retired.append(self._client)
            self._client = None

    def _build_client(self) -> httpx.Client:
        verify: Any = self._verify_ssl
        if self._verify_ssl and self._ssl_cert_path:
            verify = ssl.create_default_context(cafile=self._ssl_cert_path)

        proxy: Optional[httpx.Proxy] = None
        if self._proxy:
            auth = None
            if self._proxy_auth:
                user, _, password = self._proxy_auth.partition(":")
                auth = (user, password)
            proxy = httpx.Proxy(self._proxy, auth=auth)

        kwargs: dict[str, Any] = {
            "timeout": httpx.Timeout(self._timeout, connect=self._connect_timeout),
            "verify": verify,
            "follow_redirects": True,
            "max_redirects": MAX_REDIRECTS,
        }
        if proxy is not None:
            kwargs["proxy"] = proxy
        if self._http_transport is not None:
            kwargs["transport"] = self._http_transport
        return httpx.Client(**kwargs)

    def _get_client(self) -> httpx.Client:
        with self._lock:
            if self._client is None:
                self._client = self._build_client()
            return self._client

    def close(self) -> None:
        """Close the underlying HTTP client(s)."""
        with self._lock:
            clients = self._retired + ([self._client] if self._client else [])
            self._client = None
            self._retired = []
        for client in clients:
            client.close()

    def __enter__(self) -> "HttpxTransport":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # Sending

    def _resolve_url(self, uri: str) -> str:
        if uri.startswith(("http://", "https://")):
            return uri
        with self._lock:
            base_url = self._base_url
        if not base_url:
            raise NetworkError.no_base_url()
        return f"{base_url}/{uri.lstrip('/')}"

    def _default_headers(self) -> dict[str, str]:
        with self._lock:
            headers = {
                "User-Agent": self._user_agent,
                "Accept": "application/json",
            }
            if self._session_token:
                headers["Cookie"] = f"{SESSION_COOKIE_NAME}={self._session_token}"
        return headers

    def send(
        self,
        method: str,
        uri: str,
        *,
        json_body: Any = None,
        form_body: Optional[Mapping[str, Any]] = None,
        multipart_body: Optional[Sequence[MultipartField]] = None,
        raw_body: Optional[bytes] = None,
        query_params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> TransportResponse:
        """
        Perform one HTTP exchange.

        Args:
            method: HTTP method
            uri: Path relative to the base URL, or an absolute URL
            json_body: Body serialized as JSON
            form_body: Form fields (urlencoded, or multipart alongside files)
            multipart_body: File parts for multipart/form-data
            raw_body: Raw request body
            query_params: Query string parameters
            headers: Extra headers; they override the defaults
            cancel_event: When set before dispatch the call is abandoned

        Returns:
            TransportResponse for any HTTP status

        Raises:
            NetworkError: If no HTTP response was obtained
        """
        method = method.upper()
        url = self._resolve_url(uri)

        if cancel_event is not None and cancel_event.is_set():
            raise NetworkError.cancelled(url, method)

        request_headers = self._default_headers()
        request_headers.update(headers or {})

        kwargs: dict[str, Any] = {"headers": request_headers}
        if query_params:
            kwargs["params"] = {k: _stringify(v) for k, v in query_params.items()}
        if json_body is not None:
            kwargs["json"] = json_body
        if form_body is not None:
            kwargs["data"] = {k: _stringify(v) for k, v in form_body.items()}
        if multipart_body:
            kwargs["files"] = [
                (part.name, (part.filename, part.content, part.content_type))
                for part in multipart_body
            ]
        if raw_body is not None:
            kwargs["content"] = raw_body

        self._log(LogLevel.DEBUG, "Sending request", {"method": method, "uri": url})

        client = self._get_client()
        started = time.monotonic()
        try:
            response = client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            with self._lock:
                timeout = self._timeout
            raise self._report(NetworkError.timed_out(url, method, timeout), e, url) from e
        except httpx.ConnectError as e:
            raise self._report(self._classify_connect_error(e, url, method), e, url) from e
        except httpx.HTTPError as e:
            raise self._report(
                NetworkError.connection_failed(url, method, str(e)), e, url
            ) from e
        finally:
            # Session cookie is tracked explicitly, not through the client jar
            client.cookies.clear()

        transport_response = TransportResponse(
            status_code=response.status_code,
            headers=_collect_headers(response),
            body=response.text,
        )

        session_id = transport_response.set_cookie_session_id()
        if session_id is not None:
            self.set_authentication(session_id)

        if self._logger is not None:
            self._logger.log_exchange(
                COMPONENT,
                method,
                url,
                response.status_code,
                (time.monotonic() - started) * 1000,
            )
        return transport_response

    def _classify_connect_error(
        self, error: httpx.ConnectError, url: str, method: str
    ) -> NetworkError:
        message = str(error)
        lowered = message.lower()
        if (
            "ssl" in lowered
            or "certificate" in lowered
            or isinstance(error.__cause__ or error.__context__, ssl.SSLError)
        ):
            return NetworkError.ssl_error(url, method, message)
        if any(marker in lowered for marker in DNS_FAILURE_MARKERS):
            return NetworkError.dns_failed(url, method, httpx.URL(url).host)
        return NetworkError.connection_failed(url, method, message)

    def _report(self, error: NetworkError, cause: Exception, url: str) -> NetworkError:
        if self._logger is not None:
            self._logger.log_error(
                COMPONENT,
                error.message,
                error=cause,
                request_url=url,
                additional_data={"code": error.code},
            )
        return error

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger is not None:
            self._logger.log(level, COMPONENT, message, data)

    # Raw request policy

    def request(self, method: str, uri: str, **options: Any) -> Any:
        """
        Send a request and apply the raising status policy.

        Args:
            method: HTTP method
            uri: Path relative to the base URL
            **options: Keyword arguments accepted by ``send()``

        Returns:
            Decoded JSON, plain text for text endpoints, or None for empty bodies

        Raises:
            AuthenticationError: On HTTP 401 or 403
            ClientError: On other HTTP errors or an undecodable body
            NetworkError: If no HTTP response was obtained
        """
        return decode_response(self.send(method, uri, **options), uri)

    def get(
        self,
        uri: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        return self.request(
            HttpMethod.GET.value, uri, query_params=params, headers=headers
        )

    def post(
        self,
        uri: str,
        data: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        return self.request(
            HttpMethod.POST.value, uri, form_body=data, headers=headers
        )


def _stringify(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def _collect_headers(response: httpx.Response) -> dict[str, str]:
    """Headers with original casing; repeated headers are joined with ', '."""
    collected: dict[str, str] = {}
    lower_to_key: dict[str, str] = {}
    for raw_key, raw_value in response.headers.raw:
        key = raw_key.decode("latin-1")
        value = raw_value.decode("latin-1")
        existing = lower_to_key.get(key.lower())
        if existing is None:
            lower_to_key[key.lower()] = key
            collected[key] = value
        else:
            collected[existing] = f"{collected[existing]}, {value}"
    return collected


def decode_response(response: TransportResponse, uri: str) -> Any:
    """
    Apply the raising status policy to a raw response.

    Args:
        response: Response returned by a transport
        uri: Request path, used to recognise plain-text endpoints

    Returns:
        Decoded JSON, plain text for text endpoints, or None for empty bodies

    Raises:
        AuthenticationError: On HTTP 401 or 403, before the body is read
        ClientError: On other HTTP errors or an undecodable body
    """
    status = response.status_code
    if status in (401, 403):
        raise AuthenticationError.access_denied(status_code=status, resource=uri)
    if status >= 400:
        raise ClientError.http_error(status, response.body, uri)

    if not response.body.strip():
        return None
    if response.is_json():
        if response.json is None:
            raise ClientError.json_parse_error(response.body, "malformed JSON")
        return response.json

    content_type = (response.header("Content-Type") or "").lower()
    path = "/" + uri.split("?", 1)[0].lstrip("/")
    if path in PLAIN_TEXT_ENDPOINTS or content_type.startswith("text/plain"):
        return response.body
    raise ClientError.json_parse_error(response.body, "body is not JSON")
