"""
Process-local session state.

A Session is logged in exactly when it holds a token. Clearing drops the
token, username and expiry together under one lock.
"""

import threading
import time
from typing import Optional


DEFAULT_SESSION_LIFETIME = 24 * 60 * 60


class Session:
    """Session token, username and client-side expiry bookkeeping."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._session_token: Optional[str] = None
        self._username: Optional[str] = None
        self._expires_at: Optional[float] = None

    @property
    def session_token(self) -> Optional[str]:
        return self._session_token

    @property
    def username(self) -> Optional[str]:
        return self._username

    @property
    def expires_at(self) -> Optional[float]:
        """Expiry as a Unix timestamp, or None when logged out."""
        return self._expires_at

    def populate(
        self,
        session_token: str,
        username: Optional[str],
        expires_at: Optional[float] = None,
    ) -> None:
        """
        Mark the session logged in.

        Args:
            session_token: SID value returned by the server
            username: Name the session was opened for
            expires_at: Unix timestamp; defaults to 24 hours from now
        """
        if expires_at is None:
            expires_at = time.time() + DEFAULT_SESSION_LIFETIME
        with self._lock:
            self._session_token = session_token
            self._username = username
            self._expires_at = expires_at

    def clear(self) -> None:
        with self._lock:
            self._session_token = None
            self._username = None
            self._expires_at = None

    def is_active(self) -> bool:
        return self._session_token is not None

    def is_expired(self, now: Optional[float] = None) -> bool:
        """True when logged out or past the expiry timestamp."""
        with self._lock:
            if self._session_token is None or self._expires_at is None:
                return True
            return (now if now is not None else time.time()) >= self._expires_at

    def remaining_seconds(self, now: Optional[float] = None) -> int:
        with self._lock:
            if self._session_token is None or self._expires_at is None:
                return 0
            remaining = self._expires_at - (now if now is not None else time.time())
        return max(0, int(remaining))

    def to_dict(self) -> dict:
        """Snapshot for diagnostics; the token is reduced to a short prefix."""
        with self._lock:
            token = self._session_token
            return {
                "logged_in": token is not None,
                "username": self._username,
                "session_id": f"{token[:8]}***" if token else None,
                "expires_at": self._expires_at,
            }
