"""
Exception classes for the qBittorrent Web API client.

All exceptions inherit from QBittorrentError and provide structured
error information with codes, messages, optional details and, where
one exists, the HTTP status that triggered them.

Response-level failures (a login rejected with 401, a 404 from a domain
endpoint) are not exceptions; they are reported through failed Response
objects. Only the failures below escape to callers.
"""

from typing import TYPE_CHECKING, Any, Optional

from .enums import (
    AuthErrorCode,
    ClientErrorCode,
    NetworkErrorCode,
    ValidationErrorCode,
)

if TYPE_CHECKING:
    from .validation import ValidationResult


class QBittorrentError(Exception):
    """Base exception for all qBittorrent client errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
        http_status: Optional[int] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        self.http_status = http_status
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "http_status": self.http_status,
            "details": self.details,
        }

    def is_network_error(self) -> bool:
        return isinstance(self, NetworkError)

    def is_authentication_error(self) -> bool:
        return isinstance(self, AuthenticationError)

    def is_client_error(self) -> bool:
        """True when the HTTP status is in the 4xx range."""
        return self.http_status is not None and 400 <= self.http_status < 500

    def is_server_error(self) -> bool:
        """True when the HTTP status is 500 or above."""
        return self.http_status is not None and self.http_status >= 500


class ValidationError(QBittorrentError):
    """Raised when a request or configuration fails validation before any I/O."""

    def __init__(
        self,
        message: str,
        code: str = ValidationErrorCode.VALIDATION_ERROR.value,
        validation_errors: Optional[dict[str, str]] = None,
        field: Optional[str] = None,
        details: Optional[dict] = None,
    ) -> None:
        self.validation_errors = dict(validation_errors or {})
        self.field = field
        merged = dict(details or {})
        if self.validation_errors:
            merged.setdefault("validation_errors", self.validation_errors)
        if field is not None:
            merged.setdefault("field", field)
        super().__init__(code=code, message=message, details=merged)

    @classmethod
    def from_validation_result(
        cls,
        result: "ValidationResult",
        message: str = "Request validation failed",
        code: str = ValidationErrorCode.VALIDATION_ERROR.value,
    ) -> "ValidationError":
        """Build an error carrying every violation recorded in ``result``."""
        first = result.first_error()
        text = f"{message}: {first}" if first else message
        return cls(
            message=text,
            code=code,
            validation_errors=result.errors,
            details={"warnings": list(result.warnings)} if result.warnings else None,
        )

    @classmethod
    def missing_parameter(cls, name: str) -> "ValidationError":
        return cls(
            message=f"Missing required parameter: {name}",
            code=ValidationErrorCode.MISSING_PARAMETER.value,
            validation_errors={name: f"{name} is required"},
            field=name,
        )

    @classmethod
    def invalid_parameter(cls, name: str, value: Any, reason: str) -> "ValidationError":
        return cls(
            message=f"Invalid parameter '{name}': {reason}",
            code=ValidationErrorCode.INVALID_PARAMETER.value,
            validation_errors={name: reason},
            field=name,
            details={"value": repr(value)},
        )

    @classmethod
    def out_of_range(
        cls, name: str, value: Any, minimum: Any = None, maximum: Any = None
    ) -> "ValidationError":
        return cls(
            message=f"Parameter '{name}' out of range: {value!r}",
            code=ValidationErrorCode.OUT_OF_RANGE.value,
            validation_errors={name: f"{name} must be between {minimum} and {maximum}"},
            field=name,
            details={"value": value, "min": minimum, "max": maximum},
        )

    @classmethod
    def invalid_config(cls, errors: dict[str, str]) -> "ValidationError":
        first = next(iter(errors.values()), "invalid configuration")
        return cls(
            message=f"Invalid configuration: {first}",
            code=ValidationErrorCode.INVALID_CONFIG.value,
            validation_errors=errors,
        )


class NetworkError(QBittorrentError):
    """Raised when the transport cannot complete an HTTP exchange."""

    def __init__(
        self,
        code: str,
        message: str,
        request_method: Optional[str] = None,
        request_uri: Optional[str] = None,
        timeout: Optional[float] = None,
        details: Optional[dict] = None,
    ) -> None:
        self.request_method = request_method
        self.request_uri = request_uri
        self.timeout = timeout
        merged = dict(details or {})
        merged.update(
            {
                k: v
                for k, v in (
                    ("method", request_method),
                    ("uri", request_uri),
                    ("timeout", timeout),
                )
                if v is not None
            }
        )
        super().__init__(code=code, message=message, details=merged)

    @classmethod
    def connection_failed(
        cls, uri: str, method: str, reason: str = ""
    ) -> "NetworkError":
        suffix = f": {reason}" if reason else ""
        return cls(
            code=NetworkErrorCode.CONNECTION_FAILED.value,
            message=f"Connection to {uri} failed{suffix}",
            request_method=method,
            request_uri=uri,
        )

    @classmethod
    def dns_failed(cls, uri: str, method: str, host: str = "") -> "NetworkError":
        return cls(
            code=NetworkErrorCode.DNS_FAILED.value,
            message=f"Could not resolve host {host or uri}",
            request_method=method,
            request_uri=uri,
            details={"host": host} if host else None,
        )

    @classmethod
    def ssl_error(cls, uri: str, method: str, reason: str = "") -> "NetworkError":
        suffix = f": {reason}" if reason else ""
        return cls(
            code=NetworkErrorCode.SSL_ERROR.value,
            message=f"TLS error while connecting to {uri}{suffix}",
            request_method=method,
            request_uri=uri,
        )

    @classmethod
    def timed_out(cls, uri: str, method: str, timeout: float) -> "NetworkError":
        return cls(
            code=NetworkErrorCode.TIMEOUT.value,
            message=f"Request timed out after {timeout}s",
            request_method=method,
            request_uri=uri,
            timeout=timeout,
        )

    @classmethod
    def cancelled(cls, uri: str, method: str) -> "NetworkError":
        return cls(
            code=NetworkErrorCode.CANCELLED.value,
            message="Request was cancelled before dispatch",
            request_method=method,
            request_uri=uri,
        )

    @classmethod
    def no_base_url(cls) -> "NetworkError":
        return cls(
            code=NetworkErrorCode.NO_BASE_URL.value,
            message="No base URL configured for the transport",
        )


class ClientError(QBittorrentError):
    """Raised by the raw request policy for HTTP errors and undecodable bodies."""

    @classmethod
    def http_error(cls, status_code: int, body: str, uri: str = "") -> "ClientError":
        return cls(
            code=ClientErrorCode.HTTP_ERROR.value,
            message=f"HTTP request failed with status {status_code}",
            details={"status_code": status_code, "body": body, "uri": uri},
            http_status=status_code,
        )

    @classmethod
    def json_parse_error(cls, body: str, reason: str) -> "ClientError":
        return cls(
            code=ClientErrorCode.JSON_PARSE_ERROR.value,
            message=f"Failed to decode JSON response: {reason}",
            details={"body": body[:500]},
        )


class AuthenticationError(QBittorrentError):
    """Raised when a call requires a session that is absent or was rejected."""

    def __init__(
        self,
        code: str,
        message: str,
        username: Optional[str] = None,
        reason: Optional[str] = None,
        details: Optional[dict] = None,
        http_status: Optional[int] = None,
    ) -> None:
        self.username = username
        self.reason = reason
        merged = dict(details or {})
        if username is not None:
            merged.setdefault("username", username)
        if reason is not None:
            merged.setdefault("reason", reason)
        super().__init__(code=code, message=message, details=merged, http_status=http_status)

    @classmethod
    def access_denied(
        cls, status_code: int = 403, resource: str = ""
    ) -> "AuthenticationError":
        target = f" to {resource}" if resource else ""
        return cls(
            code=AuthErrorCode.ACCESS_DENIED.value,
            message=f"Access denied{target}",
            reason="access_denied",
            details={"resource": resource} if resource else None,
            http_status=status_code,
        )

    @classmethod
    def invalid_credentials(cls, username: Optional[str] = None) -> "AuthenticationError":
        return cls(
            code=AuthErrorCode.INVALID_CREDENTIALS.value,
            message="Invalid username or password",
            username=username,
            reason="invalid_credentials",
            http_status=401,
        )

    @classmethod
    def session_expired(cls, username: Optional[str] = None) -> "AuthenticationError":
        return cls(
            code=AuthErrorCode.SESSION_EXPIRED.value,
            message="Session has expired, please log in again",
            username=username,
            reason="session_expired",
        )

    @classmethod
    def token_missing(cls) -> "AuthenticationError":
        return cls(
            code=AuthErrorCode.TOKEN_MISSING.value,
            message="No session cookie was returned by the server",
            reason="token_missing",
        )

    @classmethod
    def not_logged_in(cls, endpoint: str = "") -> "AuthenticationError":
        return cls(
            code=AuthErrorCode.NOT_LOGGED_IN.value,
            message="Not logged in: call login() before using this endpoint",
            reason="not_logged_in",
            details={"endpoint": endpoint} if endpoint else None,
        )


class ApiRuntimeError(QBittorrentError):
    """
    Raised when a façade operation fails for reasons outside the HTTP exchange.

    The originating exception is chained as ``__cause__`` by the caller
    (``raise ApiRuntimeError(...) from error``).
    """

    def __init__(
        self,
        code: str,
        message: str,
        api_endpoint: Optional[str] = None,
        http_method: Optional[str] = None,
        http_status: Optional[int] = None,
        request_context: Optional[dict] = None,
        details: Optional[dict] = None,
    ) -> None:
        self.api_endpoint = api_endpoint
        self.http_method = http_method
        self.request_context = dict(request_context or {})
        merged = dict(details or {})
        if api_endpoint is not None:
            merged.setdefault("api_endpoint", api_endpoint)
        if http_method is not None:
            merged.setdefault("http_method", http_method)
        if self.request_context:
            merged.setdefault("request_context", self.request_context)
        super().__init__(code=code, message=message, details=merged, http_status=http_status)

    @classmethod
    def from_network_error(
        cls,
        operation: str,
        error: NetworkError,
        api_endpoint: str,
        http_method: str,
        request_summary: Optional[dict] = None,
    ) -> "ApiRuntimeError":
        """Wrap a transport failure for the named operation, e.g. ``LOGIN``."""
        return cls(
            code=f"{operation.upper()}_NETWORK_ERROR",
            message=f"Network error during {operation.lower()}: {error.message}",
            api_endpoint=api_endpoint,
            http_method=http_method,
            request_context={"request_summary": request_summary or {}},
            details={"network_error_code": error.code},
        )

    @classmethod
    def response_parse_error(
        cls, api_endpoint: str, http_method: str, reason: str
    ) -> "ApiRuntimeError":
        return cls(
            code="RESPONSE_PARSE_ERROR",
            message=f"Failed to parse response: {reason}",
            api_endpoint=api_endpoint,
            http_method=http_method,
        )

    def formatted_message(self) -> str:
        """Message with endpoint, method and status appended when known."""
        parts = []
        if self.http_method or self.api_endpoint:
            parts.append(" ".join(p for p in (self.http_method, self.api_endpoint) if p))
        if self.http_status is not None:
            parts.append(f"HTTP {self.http_status}")
        if not parts:
            return self.message
        return f"{self.message} [{', '.join(parts)}]"
