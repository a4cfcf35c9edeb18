"""
Audit Logger module for the qBittorrent Web API client.

Entries are structured (component, message, data) and written as JSON,
human-readable text, or both. Before anything is stored or written, values
under credential-like keys are replaced and ``SID=`` cookie values embedded
in free-form strings are scrubbed.
"""

import json
import re
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, TextIO

from .enums import LogLevel


SID_VALUE_PATTERN = re.compile(r"(?i)\b(SID=)[^;,\s]+")

OUTPUT_FORMATS = ("json", "text", "both")


@dataclass
class LogEntry:
    """One structured log record."""

    timestamp: str
    level: LogLevel
    component: str
    message: str
    data: dict = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "level": self.level.value,
            "component": self.component,
            "message": self.message,
            "data": self.data,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str)

    def to_text(self) -> str:
        # [TIMESTAMP] LEVEL [COMPONENT] MESSAGE {data}
        line = f"[{self.timestamp}] {self.level.value.upper()} [{self.component}] {self.message}"
        if self.data:
            line += " " + json.dumps(self.data, ensure_ascii=False, default=str)
        return line


class AuditLogger:
    """
    Structured logger shared by the transport, the API façades and the client.

    Nothing is logged by the library unless an AuditLogger is handed to it.
    Entries below ``min_level`` are dropped before masking or output.
    """

    # Substring match against the lower-cased key
    SENSITIVE_KEYS = frozenset({
        'password', 'passwd', 'sid', 'session_id', 'session_token', 'cookie',
        'token', 'secret', 'authorization', 'auth', 'credential', 'proxy_auth',
    })

    MASK_VALUE = "***MASKED***"

    def __init__(
        self,
        output_format: str = "both",
        output_stream: Optional[TextIO] = None,
        min_level: LogLevel = LogLevel.DEBUG,
    ):
        """
        Args:
            output_format: 'json', 'text', or 'both' (JSON line first)
            output_stream: Destination stream, sys.stderr when omitted
            min_level: Lowest level that is recorded
        """
        if output_format not in OUTPUT_FORMATS:
            raise ValueError(f"Invalid output_format: {output_format}")

        self._output_format = output_format
        self._output_stream = output_stream or sys.stderr
        self._min_level = min_level
        self._entries: list[LogEntry] = []

    @property
    def output_format(self) -> str:
        return self._output_format

    @property
    def min_level(self) -> LogLevel:
        return self._min_level

    def set_min_level(self, level: LogLevel) -> None:
        self._min_level = level

    @property
    def entries(self) -> list[LogEntry]:
        """Recorded entries, oldest first."""
        return list(self._entries)

    def is_enabled_for(self, level: LogLevel) -> bool:
        return level.rank >= self._min_level.rank

    def log(
        self,
        level: LogLevel,
        component: str,
        message: str,
        data: Optional[dict] = None,
    ) -> Optional[LogEntry]:
        """
        Record and write one entry.

        Returns:
            The stored LogEntry, or None when the level is filtered out
        """
        if not self.is_enabled_for(level):
            return None

        entry = LogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            level=level,
            component=component,
            message=message,
            data=self.mask_sensitive_data(data or {}),
        )
        self._entries.append(entry)
        self._write(entry)
        return entry

    def log_exchange(
        self,
        component: str,
        method: str,
        url: str,
        status_code: int,
        elapsed_ms: Optional[float] = None,
    ) -> Optional[LogEntry]:
        """Log one completed HTTP exchange; 4xx and 5xx are logged as warnings."""
        data: dict[str, Any] = {"method": method, "uri": url, "status_code": status_code}
        if elapsed_ms is not None:
            data["elapsed_ms"] = round(elapsed_ms, 1)
        level = LogLevel.WARN if status_code >= 400 else LogLevel.DEBUG
        return self.log(level, component, f"{method} {url} -> {status_code}", data)

    def log_error(
        self,
        component: str,
        message: str,
        error: Optional[Exception] = None,
        request_url: Optional[str] = None,
        response_status_code: Optional[int] = None,
        additional_data: Optional[dict] = None,
    ) -> Optional[LogEntry]:
        """
        Log an error with request context.

        Library errors contribute their ``code`` as ``error_code`` unless
        ``additional_data`` already names one.
        """
        data = dict(additional_data or {})

        if error is not None:
            data["error_message"] = str(error)
            data["error_type"] = type(error).__name__
            code = getattr(error, "code", None)
            if code is not None:
                data.setdefault("error_code", code)
        if request_url is not None:
            data["request_url"] = request_url
        if response_status_code is not None:
            data["response_status_code"] = response_status_code

        return self.log(LogLevel.ERROR, component, message, data)

    def mask_sensitive_data(self, data: dict) -> dict:
        """Return a masked copy of ``data``; the input is never modified."""
        if not isinstance(data, dict):
            return data
        return self._mask(data)

    def is_sensitive_key(self, key: Any) -> bool:
        lowered = str(key).lower()
        return any(pattern in lowered for pattern in self.SENSITIVE_KEYS)

    def _mask(self, value: Any) -> Any:
        if isinstance(value, dict):
            return {
                key: self.MASK_VALUE if self.is_sensitive_key(key) else self._mask(item)
                for key, item in value.items()
            }
        if isinstance(value, (list, tuple)):
            return [self._mask(item) for item in value]
        if isinstance(value, str) and "=" in value:
            return SID_VALUE_PATTERN.sub(rf"\g<1>{self.MASK_VALUE}", value)
        return value

    def _write(self, entry: LogEntry) -> None:
        if self._output_format != "text":
            self._output_stream.write(entry.to_json() + "\n")
        if self._output_format != "json":
            self._output_stream.write(entry.to_text() + "\n")
        self._output_stream.flush()

    def get_json_output(self, entry: LogEntry) -> str:
        return entry.to_json()

    def get_text_output(self, entry: LogEntry) -> str:
        return entry.to_text()

    def clear_entries(self) -> None:
        self._entries.clear()
