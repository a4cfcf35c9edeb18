"""
Enumeration types for the qBittorrent Web API client.

These enums provide type-safe constants for HTTP methods, error codes,
log levels and the value sets the Web API accepts or reports.
"""

from enum import Enum


class HttpMethod(Enum):
    """HTTP methods used by the Web API."""

    GET = "GET"
    POST = "POST"


class LogLevel(Enum):
    """Logging severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return _LOG_LEVEL_RANK[self]


_LOG_LEVEL_RANK = {
    LogLevel.DEBUG: 10,
    LogLevel.INFO: 20,
    LogLevel.WARN: 30,
    LogLevel.ERROR: 40,
}


class NetworkErrorCode(Enum):
    """Error codes for transport-level failures."""

    CONNECTION_FAILED = "CONNECTION_FAILED"
    DNS_FAILED = "DNS_FAILED"
    SSL_ERROR = "SSL_ERROR"
    TIMEOUT = "TIMEOUT"
    NO_BASE_URL = "NO_BASE_URL"
    CANCELLED = "CANCELLED"


class AuthErrorCode(Enum):
    """Error codes for authentication failures."""

    ACCESS_DENIED = "ACCESS_DENIED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    TOKEN_MISSING = "TOKEN_MISSING"
    NOT_LOGGED_IN = "NOT_LOGGED_IN"


class ValidationErrorCode(Enum):
    """Error codes for request and configuration validation failures."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_CONFIG = "INVALID_CONFIG"
    INVALID_PARAMETER = "INVALID_PARAMETER"
    MISSING_PARAMETER = "MISSING_PARAMETER"
    INVALID_FORMAT = "INVALID_FORMAT"
    OUT_OF_RANGE = "OUT_OF_RANGE"


class ClientErrorCode(Enum):
    """Error codes raised by the raw request policy of the transport."""

    HTTP_ERROR = "HTTP_ERROR"
    JSON_PARSE_ERROR = "JSON_PARSE_ERROR"


class ConnectionStatus(Enum):
    """Connection status reported by /transfer/info."""

    CONNECTED = "connected"
    FIREWALLED = "firewalled"
    DISCONNECTED = "disconnected"


class TorrentFilter(Enum):
    """Filter values accepted by /torrents/info."""

    ALL = "all"
    DOWNLOADING = "downloading"
    SEEDING = "seeding"
    COMPLETED = "completed"
    STOPPED = "stopped"
    ACTIVE = "active"
    INACTIVE = "inactive"
    RUNNING = "running"
    STALLED = "stalled"
    STALLED_UPLOADING = "stalled_uploading"
    STALLED_DOWNLOADING = "stalled_downloading"
    ERRORED = "errored"


class TorrentState(Enum):
    """Torrent states reported by /torrents/info."""

    ERROR = "error"
    MISSING_FILES = "missingFiles"
    UPLOADING = "uploading"
    STOPPED_UP = "stoppedUP"
    QUEUED_UP = "queuedUP"
    STALLED_UP = "stalledUP"
    CHECKING_UP = "checkingUP"
    FORCED_UP = "forcedUP"
    ALLOCATING = "allocating"
    DOWNLOADING = "downloading"
    META_DL = "metaDL"
    STOPPED_DL = "stoppedDL"
    QUEUED_DL = "queuedDL"
    STALLED_DL = "stalledDL"
    CHECKING_DL = "checkingDL"
    FORCED_DL = "forcedDL"
    CHECKING_RESUME_DATA = "checkingResumeData"
    MOVING = "moving"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str) -> "TorrentState":
        """Map a raw state string to a member, falling back to UNKNOWN."""
        for member in cls:
            if member.value == value:
                return member
        return cls.UNKNOWN


class TrackerStatus(Enum):
    """Tracker status codes reported by /torrents/trackers."""

    DISABLED = 0
    NOT_CONTACTED = 1
    WORKING = 2
    UPDATING = 3
    NOT_WORKING = 4


class SearchStatus(Enum):
    """Search job status reported by /search/status."""

    RUNNING = "Running"
    STOPPED = "Stopped"


class SearchCategory(Enum):
    """Search categories understood by the built-in search engine."""

    ALL = "all"
    ANIME = "anime"
    BOOKS = "books"
    GAMES = "games"
    MOVIES = "movies"
    MUSIC = "music"
    SOFTWARE = "software"
    TV = "tv"
    OTHER = "other"
