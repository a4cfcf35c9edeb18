"""
qbittorrent-webapi - Typed client library for the qBittorrent Web API v2.

This package binds each remote operation to a Request/Response pair routed
through a swappable HTTP transport, with session-cookie authentication,
request validation before any network I/O, and structured errors.
"""

__version__ = "0.1.0"
__author__ = "qbittorrent-webapi contributors"

from qbittorrent_webapi.exceptions import (
    QBittorrentError,
    ValidationError,
    NetworkError,
    ClientError,
    AuthenticationError,
    ApiRuntimeError,
)
from qbittorrent_webapi.enums import (
    HttpMethod,
    LogLevel,
    NetworkErrorCode,
    AuthErrorCode,
    ValidationErrorCode,
    ClientErrorCode,
    ConnectionStatus,
    TorrentFilter,
    TorrentState,
    TrackerStatus,
    SearchStatus,
    SearchCategory,
)
from qbittorrent_webapi.validation import ValidationResult
from qbittorrent_webapi.audit_logger import AuditLogger, LogEntry
from qbittorrent_webapi.transport import (
    Transport,
    TransportResponse,
    HttpxTransport,
    MultipartField,
    extract_session_id,
    decode_response,
)
from qbittorrent_webapi.request import BaseRequest
from qbittorrent_webapi.response import BaseResponse, ActionResponse, TextValueResponse
from qbittorrent_webapi.session import Session
from qbittorrent_webapi.api import BaseAPI
from qbittorrent_webapi.auth import (
    AuthAPI,
    LoginRequest,
    LoginRequestBuilder,
    LogoutRequest,
    LoginResponse,
    LogoutResponse,
)
from qbittorrent_webapi.application import (
    ApplicationAPI,
    VersionResponse,
    BuildInfoResponse,
    PreferencesResponse,
)
from qbittorrent_webapi.transfer import (
    TransferAPI,
    GlobalTransferInfoResponse,
    SpeedLimitsModeResponse,
    SpeedLimitResponse,
)
from qbittorrent_webapi.torrents import (
    TorrentAPI,
    GetTorrentsRequest,
    AddTorrentRequest,
    AddTorrentRequestBuilder,
    AddTrackersRequest,
    AddTrackersRequestBuilder,
    TorrentOptions,
    TorrentListResponse,
    TorrentTrackersResponse,
)
from qbittorrent_webapi.rss import RSSAPI, RSSItemsResponse
from qbittorrent_webapi.search import (
    SearchAPI,
    SearchStartResponse,
    SearchStatusResponse,
    SearchResultsResponse,
    SearchPluginsResponse,
)
from qbittorrent_webapi.sync import (
    SyncAPI,
    MainDataResponse,
    MainDataState,
    TorrentPeersResponse,
)
from qbittorrent_webapi.collection import TorrentCollection
from qbittorrent_webapi.models import (
    TorrentInfo,
    TorrentTracker,
    TorrentPeer,
    SearchJob,
    SearchResult,
    SearchPlugin,
    RSSFeed,
    RSSArticle,
)
from qbittorrent_webapi.request_factory import RequestKind, build_request
from qbittorrent_webapi.config import ClientConfig
from qbittorrent_webapi.client import Client

__all__ = [
    # Version info
    "__version__",
    "__author__",
    # Exceptions
    "QBittorrentError",
    "ValidationError",
    "NetworkError",
    "ClientError",
    "AuthenticationError",
    "ApiRuntimeError",
    # Enums
    "HttpMethod",
    "LogLevel",
    "NetworkErrorCode",
    "AuthErrorCode",
    "ValidationErrorCode",
    "ClientErrorCode",
    "ConnectionStatus",
    "TorrentFilter",
    "TorrentState",
    "TrackerStatus",
    "SearchStatus",
    "SearchCategory",
    # Pipeline
    "ValidationResult",
    "AuditLogger",
    "LogEntry",
    "Transport",
    "TransportResponse",
    "HttpxTransport",
    "MultipartField",
    "extract_session_id",
    "decode_response",
    "BaseRequest",
    "BaseResponse",
    "ActionResponse",
    "TextValueResponse",
    "Session",
    "BaseAPI",
    # Auth
    "AuthAPI",
    "LoginRequest",
    "LoginRequestBuilder",
    "LogoutRequest",
    "LoginResponse",
    "LogoutResponse",
    # Application
    "ApplicationAPI",
    "VersionResponse",
    "BuildInfoResponse",
    "PreferencesResponse",
    # Transfer
    "TransferAPI",
    "GlobalTransferInfoResponse",
    "SpeedLimitsModeResponse",
    "SpeedLimitResponse",
    # Torrents
    "TorrentAPI",
    "GetTorrentsRequest",
    "AddTorrentRequest",
    "AddTorrentRequestBuilder",
    "AddTrackersRequest",
    "AddTrackersRequestBuilder",
    "TorrentOptions",
    "TorrentListResponse",
    "TorrentTrackersResponse",
    # RSS
    "RSSAPI",
    "RSSItemsResponse",
    # Search
    "SearchAPI",
    "SearchStartResponse",
    "SearchStatusResponse",
    "SearchResultsResponse",
    "SearchPluginsResponse",
    # Sync
    "SyncAPI",
    "MainDataResponse",
    "MainDataState",
    "TorrentPeersResponse",
    "TorrentCollection",
    # Models
    "TorrentInfo",
    "TorrentTracker",
    "TorrentPeer",
    "SearchJob",
    "SearchResult",
    "SearchPlugin",
    "RSSFeed",
    "RSSArticle",
    # Factory
    "RequestKind",
    "build_request",
    # Config and client
    "ClientConfig",
    "Client",
]
