"""
Authentication API: login, logout and session bookkeeping.

Login and logout report HTTP-level rejections (401, 403, a 200 without a
session cookie) as failed LoginResponse/LogoutResponse objects. Logout
always clears the local session, whatever the server answers.
"""

import re
import threading
import time
from dataclasses import dataclass
from datetime import timezone
from email.utils import parsedate_to_datetime
from typing import Any, Mapping, Optional

from .api import API_ROOT, BaseAPI
from .enums import HttpMethod, LogLevel
from .exceptions import ValidationError
from .request import BaseRequest, ParameterlessRequest
from .response import PAYLOAD_TEXT, BaseResponse, R
from .session import DEFAULT_SESSION_LIFETIME
from .transport import extract_session_id
from .validation import (
    MAX_CREDENTIAL_LENGTH,
    ValidationResult,
    required_text_error,
    url_error,
)


SESSION_EXPIRES_HEADER = "X-Session-Expires"
SESSION_ID_PATTERN = re.compile(r"^[A-Za-z0-9\-_]+$")
SUSPICIOUS_USERNAME_CHARS = '<>"\''
LOGIN_REJECTED_BODY = "Fails."


class LoginRequest(BaseRequest):
    """POST /auth/login with form fields username and password."""

    endpoint = "login"
    method = HttpMethod.POST
    requires_authentication = False

    def __init__(self, username: str, password: str, origin: Optional[str] = None) -> None:
        super().__init__()
        self.username = username
        self.password = password
        self.origin = origin

    @classmethod
    def create(
        cls, username: str, password: str, origin: Optional[str] = None
    ) -> "LoginRequest":
        """Build and validate; raises ValidationError on any violation."""
        request = cls(username, password, origin)
        request.ensure_valid()
        return request

    def to_dict(self) -> dict[str, str]:
        return {"username": self.username, "password": self.password}

    def headers(self) -> dict[str, str]:
        headers = super().headers()
        if self.origin:
            # The server's CSRF check compares these against its own host
            headers.setdefault("Origin", self.origin)
            headers.setdefault("Referer", self.origin)
        return headers

    def validate(self) -> ValidationResult:
        result = ValidationResult()
        result.check(
            "username",
            required_text_error("username", self.username, MAX_CREDENTIAL_LENGTH),
        )
        result.check(
            "password",
            required_text_error("password", self.password, MAX_CREDENTIAL_LENGTH),
        )
        if self.origin is not None:
            result.check("origin", url_error("origin", self.origin))
        if self.username and any(ch in self.username for ch in SUSPICIOUS_USERNAME_CHARS):
            result.add_warning("username contains characters that may need escaping")
        return result

    def summary(self) -> dict[str, Any]:
        return {
            "endpoint": self.endpoint,
            "method": self.method.value,
            "requires_auth": self.requires_authentication,
            "username": self.username,
            "password_length": len(self.password or ""),
            "origin": self.origin,
        }


class LoginRequestBuilder:
    """Fluent construction of LoginRequest."""

    def __init__(self) -> None:
        self._username: Optional[str] = None
        self._password: Optional[str] = None
        self._origin: Optional[str] = None

    def username(self, username: str) -> "LoginRequestBuilder":
        self._username = username
        return self

    def password(self, password: str) -> "LoginRequestBuilder":
        self._password = password
        return self

    def origin(self, origin: str) -> "LoginRequestBuilder":
        self._origin = origin
        return self

    def build(self) -> LoginRequest:
        """
        Raises:
            ValidationError: MISSING_PARAMETER when a credential was never set,
                otherwise the same violations as ``LoginRequest.create``
        """
        if self._username is None:
            raise ValidationError.missing_parameter("username")
        if self._password is None:
            raise ValidationError.missing_parameter("password")
        return LoginRequest.create(self._username, self._password, self._origin)


class LogoutRequest(ParameterlessRequest):
    endpoint = "logout"
    method = HttpMethod.POST


class SessionCheckRequest(ParameterlessRequest):
    """Cheap authenticated GET used to check that the server still accepts the SID."""

    endpoint = f"{API_ROOT}/app/version"

    def path(self, base_path: str) -> str:
        return self.endpoint


def parse_session_expiry(value: Optional[str]) -> float:
    """
    Unix timestamp from an expiry header, 0.0 when absent or unreadable.

    Accepts a Unix timestamp or an HTTP-date such as
    ``Wed, 21 Oct 2099 07:28:00 GMT``.
    """
    if not value or not value.strip():
        return 0.0
    value = value.strip()
    if value.isdigit():
        return float(value)
    try:
        expires = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return 0.0
    if expires.tzinfo is None:
        # HTTP-dates without a zone are GMT
        expires = expires.replace(tzinfo=timezone.utc)
    return expires.timestamp()


@dataclass
class LoginResponse(BaseResponse):
    """Outcome of /auth/login."""

    session_id: str = ""
    session_expires_at: float = 0.0

    payload_kind = PAYLOAD_TEXT

    @classmethod
    def default_error(cls, status_code: int) -> str:
        if status_code == 401:
            return "Login failed: invalid username or password"
        if status_code == 403:
            return "Login failed: client IP is banned after too many failed login attempts"
        if status_code == 200:
            return "Login failed: unable to extract session ID from response"
        return f"Login failed, status code: {status_code}"

    @classmethod
    def _rejection(cls, payload: Any) -> Optional[str]:
        if isinstance(payload, str) and payload.strip() == LOGIN_REJECTED_BODY:
            return "Login failed: invalid username or password"
        return None

    @classmethod
    def from_api_response(
        cls: type[R],
        payload: Any,
        headers: Optional[Mapping[str, str]] = None,
        status_code: int = 200,
        raw_body: str = "",
    ) -> R:
        response = super().from_api_response(payload, headers, status_code, raw_body)
        if response.successful and not response.session_id:
            return cls.failure(None, headers, status_code, raw_body)
        return response

    def _populate(self, payload: Any) -> None:
        self.session_id = extract_session_id(self.header("Set-Cookie")) or ""
        self.session_expires_at = parse_session_expiry(self.header(SESSION_EXPIRES_HEADER))

    def is_logged_in(self) -> bool:
        return self.is_success() and bool(self.session_id)

    @property
    def auth_cookie(self) -> str:
        return f"SID={self.session_id}" if self.session_id else ""

    def validation_warnings(self) -> list[str]:
        if self.session_id and not SESSION_ID_PATTERN.match(self.session_id):
            return ["session ID contains unexpected characters"]
        return []

    def summary(self) -> dict[str, Any]:
        return {
            "success": self.is_success(),
            "status_code": self.status_code,
            "session_id": f"{self.session_id[:8]}***" if self.session_id else None,
            "session_expires_at": self.session_expires_at or None,
            "errors": list(self.errors),
        }


@dataclass
class LogoutResponse(BaseResponse):
    """Outcome of /auth/logout."""

    payload_kind = PAYLOAD_TEXT

    @classmethod
    def default_error(cls, status_code: int) -> str:
        return f"Logout failed, status code: {status_code}"


class AuthAPI(BaseAPI):
    """Login/logout state machine over a shared transport and session."""

    base_path = f"{API_ROOT}/auth"

    def login(
        self,
        username: str,
        password: str,
        origin: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> LoginResponse:
        """
        Log in and store the session on success.

        Args:
            username: Web UI username
            password: Web UI password
            origin: Optional Origin/Referer value for servers with CSRF checks
            cancel_event: Optional cancellation flag checked before dispatch

        Returns:
            LoginResponse; 401, 403 and a 200 without SID are failed responses

        Raises:
            ValidationError: If the credentials are empty or too long
            ApiRuntimeError: If the transport could not reach the server
        """
        return self.login_with(LoginRequest.create(username, password, origin), cancel_event)

    def login_with(
        self,
        request: LoginRequest,
        cancel_event: Optional[threading.Event] = None,
    ) -> LoginResponse:
        path = request.path(self.base_path)
        request.ensure_valid()

        raw = self.dispatch(request, path, cancel_event)
        response = LoginResponse.from_transport_response(raw)

        if response.is_success():
            self._session.populate(
                response.session_id,
                request.username,
                response.session_expires_at or time.time() + DEFAULT_SESSION_LIFETIME,
            )
            self._transport.set_authentication(response.session_id)
            for warning in response.validation_warnings():
                self._log(LogLevel.WARN, warning, {"username": request.username})
            self._log(LogLevel.INFO, "Login succeeded", {"username": request.username})
        else:
            # send() may have captured a SID from the rejected answer
            self._transport.set_authentication(self._session.session_token)
            self._log(
                LogLevel.WARN,
                "Login failed",
                {"username": request.username, "status_code": raw.status_code, "errors": response.errors},
            )
        return response

    def logout(self, cancel_event: Optional[threading.Event] = None) -> LogoutResponse:
        """
        Log out and clear the local session.

        The local session and the transport cookie are cleared even when
        the server answers with an error or cannot be reached. Without a
        session no request is sent.

        Raises:
            ApiRuntimeError: If the transport could not reach the server
        """
        if not self.has_session():
            self.clear_local_session()
            return LogoutResponse.success(None, {}, 200, "")

        request = LogoutRequest()
        try:
            raw = self.dispatch(request, request.path(self.base_path), cancel_event)
            response = LogoutResponse.from_transport_response(raw)
        finally:
            self.clear_local_session()

        self._log(
            LogLevel.INFO if response.is_success() else LogLevel.WARN,
            "Logged out",
            {"status_code": response.status_code},
        )
        return response

    def is_logged_in(self) -> bool:
        return self._session.is_active()

    def get_session_id(self) -> Optional[str]:
        return self._session.session_token

    def get_username(self) -> Optional[str]:
        return self._session.username

    def is_session_expired(self) -> bool:
        return self._session.is_expired()

    def get_remaining_session_time(self) -> int:
        """Seconds until the client-side expiry, 0 when logged out or expired."""
        return self._session.remaining_seconds()

    def clear_local_session(self) -> None:
        self._session.clear()
        self._transport.set_authentication(None)

    def check_remote_session(self) -> bool:
        """
        Ask the server whether the current SID is still accepted.

        Returns:
            True on HTTP 200, False when logged out or rejected

        Raises:
            ApiRuntimeError: If the transport could not reach the server
        """
        if not self.has_session():
            return False
        request = SessionCheckRequest()
        raw = self.dispatch(request, request.path(self.base_path))
        return raw.status_code == 200

    def current_session_info(self) -> dict[str, Any]:
        info = self._session.to_dict()
        info["expired"] = self._session.is_expired()
        info["remaining_seconds"] = self._session.remaining_seconds()
        return info
