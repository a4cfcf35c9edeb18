"""
Single dispatch table for building requests by kind.
"""

from enum import Enum
from typing import Any, Callable

from .application import (
    GetBuildInfoRequest,
    GetDefaultSavePathRequest,
    GetPreferencesRequest,
    GetVersionRequest,
    GetWebApiVersionRequest,
    SetPreferencesRequest,
)
from .auth import LoginRequest, LogoutRequest
from .exceptions import ValidationError
from .request import BaseRequest
from .rss import GetRSSItemsRequest, MarkAsReadRequest, RefreshItemRequest
from .search import (
    DeleteSearchRequest,
    GetSearchPluginsRequest,
    GetSearchResultsRequest,
    GetSearchStatusRequest,
    StartSearchRequest,
    StopSearchRequest,
)
from .sync import GetMainDataRequest, GetTorrentPeersRequest
from .torrents import (
    AddTorrentRequest,
    AddTrackersRequest,
    DeleteTorrentsRequest,
    GetTorrentTrackersRequest,
    GetTorrentsRequest,
    PauseTorrentsRequest,
    RecheckTorrentsRequest,
    StartTorrentsRequest,
)
from .transfer import (
    GetDownloadLimitRequest,
    GetSpeedLimitsModeRequest,
    GetTransferInfoRequest,
    GetUploadLimitRequest,
    SetDownloadLimitRequest,
    SetUploadLimitRequest,
    ToggleSpeedLimitsModeRequest,
)


class RequestKind(Enum):
    """Every remote operation the client can build a request for."""

    LOGIN = "auth.login"
    LOGOUT = "auth.logout"
    GET_VERSION = "app.version"
    GET_WEBAPI_VERSION = "app.webapiVersion"
    GET_BUILD_INFO = "app.buildInfo"
    GET_PREFERENCES = "app.preferences"
    SET_PREFERENCES = "app.setPreferences"
    GET_DEFAULT_SAVE_PATH = "app.defaultSavePath"
    GET_TRANSFER_INFO = "transfer.info"
    GET_SPEED_LIMITS_MODE = "transfer.speedLimitsMode"
    TOGGLE_SPEED_LIMITS_MODE = "transfer.toggleSpeedLimitsMode"
    GET_DOWNLOAD_LIMIT = "transfer.downloadLimit"
    SET_DOWNLOAD_LIMIT = "transfer.setDownloadLimit"
    GET_UPLOAD_LIMIT = "transfer.uploadLimit"
    SET_UPLOAD_LIMIT = "transfer.setUploadLimit"
    GET_TORRENTS = "torrents.info"
    ADD_TORRENTS = "torrents.add"
    DELETE_TORRENTS = "torrents.delete"
    PAUSE_TORRENTS = "torrents.pause"
    START_TORRENTS = "torrents.start"
    RECHECK_TORRENTS = "torrents.recheck"
    ADD_TRACKERS = "torrents.addTrackers"
    GET_TRACKERS = "torrents.trackers"
    GET_RSS_ITEMS = "rss.items"
    MARK_RSS_AS_READ = "rss.markAsRead"
    REFRESH_RSS_ITEM = "rss.refreshItem"
    START_SEARCH = "search.start"
    STOP_SEARCH = "search.stop"
    GET_SEARCH_STATUS = "search.status"
    GET_SEARCH_RESULTS = "search.results"
    DELETE_SEARCH = "search.delete"
    GET_SEARCH_PLUGINS = "search.plugins"
    GET_MAIN_DATA = "sync.maindata"
    GET_TORRENT_PEERS = "sync.torrentPeers"


REQUEST_CONSTRUCTORS: dict[RequestKind, Callable[..., BaseRequest]] = {
    RequestKind.LOGIN: LoginRequest,
    RequestKind.LOGOUT: LogoutRequest,
    RequestKind.GET_VERSION: GetVersionRequest,
    RequestKind.GET_WEBAPI_VERSION: GetWebApiVersionRequest,
    RequestKind.GET_BUILD_INFO: GetBuildInfoRequest,
    RequestKind.GET_PREFERENCES: GetPreferencesRequest,
    RequestKind.SET_PREFERENCES: SetPreferencesRequest,
    RequestKind.GET_DEFAULT_SAVE_PATH: GetDefaultSavePathRequest,
    RequestKind.GET_TRANSFER_INFO: GetTransferInfoRequest,
    RequestKind.GET_SPEED_LIMITS_MODE: GetSpeedLimitsModeRequest,
    RequestKind.TOGGLE_SPEED_LIMITS_MODE: ToggleSpeedLimitsModeRequest,
    RequestKind.GET_DOWNLOAD_LIMIT: GetDownloadLimitRequest,
    RequestKind.SET_DOWNLOAD_LIMIT: SetDownloadLimitRequest,
    RequestKind.GET_UPLOAD_LIMIT: GetUploadLimitRequest,
    RequestKind.SET_UPLOAD_LIMIT: SetUploadLimitRequest,
    RequestKind.GET_TORRENTS: GetTorrentsRequest,
    RequestKind.ADD_TORRENTS: AddTorrentRequest,
    RequestKind.DELETE_TORRENTS: DeleteTorrentsRequest,
    RequestKind.PAUSE_TORRENTS: PauseTorrentsRequest,
    RequestKind.START_TORRENTS: StartTorrentsRequest,
    RequestKind.RECHECK_TORRENTS: RecheckTorrentsRequest,
    RequestKind.ADD_TRACKERS: AddTrackersRequest,
    RequestKind.GET_TRACKERS: GetTorrentTrackersRequest,
    RequestKind.GET_RSS_ITEMS: GetRSSItemsRequest,
    RequestKind.MARK_RSS_AS_READ: MarkAsReadRequest,
    RequestKind.REFRESH_RSS_ITEM: RefreshItemRequest,
    RequestKind.START_SEARCH: StartSearchRequest,
    RequestKind.STOP_SEARCH: StopSearchRequest,
    RequestKind.GET_SEARCH_STATUS: GetSearchStatusRequest,
    RequestKind.GET_SEARCH_RESULTS: GetSearchResultsRequest,
    RequestKind.DELETE_SEARCH: DeleteSearchRequest,
    RequestKind.GET_SEARCH_PLUGINS: GetSearchPluginsRequest,
    RequestKind.GET_MAIN_DATA: GetMainDataRequest,
    RequestKind.GET_TORRENT_PEERS: GetTorrentPeersRequest,
}


def build_request(kind: RequestKind, validate: bool = True, **params: Any) -> BaseRequest:
    """
    Build a request of the given kind from keyword parameters.

    Args:
        kind: Operation to build a request for
        validate: Raise on the first invalid request instead of returning it
        **params: Constructor arguments of the request class

    Returns:
        The constructed request

    Raises:
        ValidationError: If ``params`` do not fit the constructor, or if
            ``validate`` is set and the request is invalid
    """
    constructor = REQUEST_CONSTRUCTORS[kind]
    try:
        request = constructor(**params)
    except TypeError as e:
        raise ValidationError.invalid_parameter(kind.value, sorted(params), str(e)) from e
    if validate:
        request.ensure_valid()
    return request
