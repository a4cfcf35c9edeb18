"""
Base response contract and classification.

A response is constructed only through its factories. ``from_api_response``
classifies a raw exchange: 2xx becomes a success whose typed fields are
populated from the payload, anything else becomes a failure whose typed
fields keep their zero values. Errors raised while populating typed fields
are turned into a failure instead of propagating.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, ClassVar, Mapping, Optional, TypeVar

from .transport import TransportResponse


R = TypeVar("R", bound="BaseResponse")

PAYLOAD_JSON = "json"
PAYLOAD_TEXT = "text"

DEFAULT_STATUS_MESSAGES = {
    400: "Bad request: the server rejected the parameters",
    401: "Unauthorized: invalid credentials or expired session",
    403: "Forbidden: access denied or client IP banned",
    404: "Not found: the requested item does not exist",
    409: "Conflict: the request conflicts with the current server state",
    415: "Unsupported media type: the uploaded file is not valid",
}


@dataclass
class BaseResponse:
    """Typed outcome of one Web API call."""

    successful: bool = False
    errors: list[str] = field(default_factory=list)
    status_code: int = 0
    headers: dict[str, str] = field(default_factory=dict)
    raw_response: str = ""
    data: Any = None

    payload_kind: ClassVar[str] = PAYLOAD_JSON

    # Factories

    @classmethod
    def success(
        cls: type[R],
        data: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        status_code: int = 200,
        raw_body: str = "",
    ) -> R:
        response = cls(
            successful=True,
            status_code=status_code,
            headers=dict(headers or {}),
            raw_response=raw_body,
            data=data,
        )
        response._populate(data)
        return response

    @classmethod
    def failure(
        cls: type[R],
        errors: Optional[list[str]] = None,
        headers: Optional[Mapping[str, str]] = None,
        status_code: int = 0,
        raw_body: str = "",
    ) -> R:
        return cls(
            successful=False,
            errors=list(errors) if errors else [cls.default_error(status_code)],
            status_code=status_code,
            headers=dict(headers or {}),
            raw_response=raw_body,
        )

    @classmethod
    def from_api_response(
        cls: type[R],
        payload: Any,
        headers: Optional[Mapping[str, str]] = None,
        status_code: int = 200,
        raw_body: str = "",
    ) -> R:
        """
        Classify a raw exchange.

        Args:
            payload: Decoded JSON or body text, depending on ``payload_kind``
            headers: Response headers
            status_code: HTTP status code
            raw_body: Undecoded body text

        Returns:
            A success for 2xx statuses whose payload parses, otherwise a failure
        """
        if not 200 <= status_code < 300:
            return cls.failure(None, headers, status_code, raw_body)

        rejection = cls._rejection(payload)
        if rejection is not None:
            return cls.failure([rejection], headers, status_code, raw_body)

        try:
            return cls.success(payload, headers, status_code, raw_body)
        except (ValueError, TypeError, KeyError, AttributeError, IndexError) as e:
            return cls.failure(
                [f"Failed to parse response: {e}"], headers, status_code, raw_body
            )

    @classmethod
    def from_transport_response(cls: type[R], response: TransportResponse) -> R:
        if cls.payload_kind == PAYLOAD_TEXT:
            payload: Any = response.body
        else:
            payload = response.json
            if (
                payload is None
                and response.body.strip()
                and response.is_success()
            ):
                return cls.failure(
                    ["Failed to parse response: body is not valid JSON"],
                    response.headers,
                    response.status_code,
                    response.body,
                )
        return cls.from_api_response(
            payload, response.headers, response.status_code, response.body
        )

    @classmethod
    def default_error(cls, status_code: int) -> str:
        if status_code in DEFAULT_STATUS_MESSAGES:
            return DEFAULT_STATUS_MESSAGES[status_code]
        if status_code >= 500:
            return f"Server error (HTTP {status_code})"
        return f"Request failed with HTTP status {status_code}"

    # Hooks

    @classmethod
    def _rejection(cls, payload: Any) -> Optional[str]:
        """Error message when a 2xx payload still signals failure, else None."""
        return None

    def _populate(self, payload: Any) -> None:
        """Fill typed fields from a successful payload."""

    # Accessors

    def is_success(self) -> bool:
        return self.successful and not self.errors

    def first_error(self) -> Optional[str]:
        return self.errors[0] if self.errors else None

    def header(self, name: str) -> Optional[str]:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    def to_dict(self) -> dict[str, Any]:
        result = asdict(self)
        result["success"] = result.pop("successful")
        result.pop("raw_response", None)
        return result


@dataclass
class ActionResponse(BaseResponse):
    """Outcome of endpoints answering ``Ok.``, an empty body, or ``Fails.``."""

    message: str = ""

    payload_kind = PAYLOAD_TEXT

    @classmethod
    def _rejection(cls, payload: Any) -> Optional[str]:
        if isinstance(payload, str) and payload.strip() == "Fails.":
            return "The server rejected the operation"
        return None

    def _populate(self, payload: Any) -> None:
        self.message = (payload or "").strip()


@dataclass
class TextValueResponse(BaseResponse):
    """A single plain-text value, e.g. the default save path."""

    value: str = ""

    payload_kind = PAYLOAD_TEXT

    def _populate(self, payload: Any) -> None:
        self.value = (payload or "").strip()
