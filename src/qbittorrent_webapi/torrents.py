"""
Torrents API: listing, adding, deleting, pausing, starting and rechecking
torrents, and managing their trackers.

Hash lists travel ``|``-joined (or as ``all``); URL lists travel
newline-joined.
"""

import threading
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, Union

from .api import API_ROOT, BaseAPI
from .collection import TorrentCollection
from .enums import HttpMethod, TorrentFilter
from .exceptions import ValidationError
from .models import TorrentInfo, TorrentTracker
from .request import BaseRequest, bool_param, join_values
from .response import ActionResponse, BaseResponse
from .transport import MultipartField
from .validation import (
    MAX_CREDENTIAL_LENGTH,
    MAX_TRACKERS,
    ValidationResult,
    forbidden_chars_error,
    hash_error,
    hashes_errors,
    non_negative_error,
    range_error,
    required_text_error,
    torrent_url_error,
    tracker_url_error,
)


MAX_TORRENT_FILES = 100
MAX_TORRENT_FILE_SIZE = 50 * 1024 * 1024
MAX_SAVE_PATH_LENGTH = 4096

SORT_FIELDS = frozenset({
    "hash", "name", "size", "progress", "dlspeed", "upspeed", "priority",
    "num_seeds", "num_leechs", "ratio", "eta", "state", "category", "tags",
    "save_path", "added_on", "completion_on", "tracker", "dl_limit", "up_limit",
    "downloaded", "uploaded", "downloaded_session", "uploaded_session",
    "amount_left", "time_active", "seeding_time", "last_activity",
})

HashList = Union[str, Sequence[str]]


def normalize_hashes(hashes: HashList) -> list[str]:
    """Accept ``"all"``, a ``|``-joined string or a sequence of hashes."""
    if isinstance(hashes, str):
        return [h.strip() for h in hashes.split("|") if h.strip()]
    return [h.strip() for h in hashes]


class GetTorrentsRequest(BaseRequest):
    """GET /torrents/info with optional filters."""

    endpoint = "info"

    def __init__(
        self,
        filter: Optional[Union[TorrentFilter, str]] = None,
        category: Optional[str] = None,
        tag: Optional[str] = None,
        sort: Optional[str] = None,
        reverse: bool = False,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        hashes: Optional[HashList] = None,
    ) -> None:
        super().__init__()
        self.filter = filter
        self.category = category
        self.tag = tag
        self.sort = sort
        self.reverse = reverse
        self.limit = limit
        self.offset = offset
        self.hashes = normalize_hashes(hashes) if hashes is not None else None

    def _filter_value(self) -> Optional[str]:
        if isinstance(self.filter, TorrentFilter):
            return self.filter.value
        return self.filter

    def to_dict(self) -> dict[str, str]:
        params: dict[str, str] = {}
        if self.filter is not None:
            params["filter"] = self._filter_value()
        if self.category is not None:
            params["category"] = self.category
        if self.tag is not None:
            params["tag"] = self.tag
        if self.sort is not None:
            params["sort"] = self.sort
        if self.reverse:
            params["reverse"] = "true"
        if self.limit is not None:
            params["limit"] = str(self.limit)
        if self.offset is not None:
            params["offset"] = str(self.offset)
        if self.hashes is not None:
            params["hashes"] = join_values(self.hashes, "|")
        return params

    def validate(self) -> ValidationResult:
        result = ValidationResult()
        if self.filter is not None and self._filter_value() not in {
            f.value for f in TorrentFilter
        }:
            result.add_error("filter", f"unknown filter {self._filter_value()!r}")
        if self.sort is not None and self.sort not in SORT_FIELDS:
            result.add_error("sort", f"unknown sort field {self.sort!r}")
        if self.limit is not None and self.limit <= 0:
            result.add_error("limit", "limit must be greater than 0")
        result.check("offset", non_negative_error("offset", self.offset))
        if self.category is not None and len(self.category) > MAX_CREDENTIAL_LENGTH:
            result.add_error("category", "category must not exceed 255 characters")
        if self.tag is not None and len(self.tag) > MAX_CREDENTIAL_LENGTH:
            result.add_error("tag", "tag must not exceed 255 characters")
        if self.hashes is not None:
            for name, message in hashes_errors(self.hashes, allow_all=False).items():
                result.add_error(name, message)
            if self.filter is not None or self.category is not None or self.tag is not None:
                result.add_warning("other filters are ignored when hashes are given")
        return result


class HashesRequest(BaseRequest):
    """Base for POST endpoints taking a ``hashes`` list or ``all``."""

    method = HttpMethod.POST

    def __init__(self, hashes: HashList) -> None:
        super().__init__()
        self.hashes = normalize_hashes(hashes)

    def to_dict(self) -> dict[str, str]:
        return {"hashes": join_values(self.hashes, "|")}

    def validate(self) -> ValidationResult:
        result = ValidationResult()
        for name, message in hashes_errors(self.hashes).items():
            result.add_error(name, message)
        return result

    def summary(self) -> dict[str, Any]:
        summary = super().summary()
        summary["hash_count"] = len(self.hashes)
        return summary


class DeleteTorrentsRequest(HashesRequest):
    endpoint = "delete"

    def __init__(self, hashes: HashList, delete_files: bool = False) -> None:
        super().__init__(hashes)
        self.delete_files = delete_files

    def to_dict(self) -> dict[str, str]:
        params = super().to_dict()
        params["deleteFiles"] = bool_param(self.delete_files)
        return params


class PauseTorrentsRequest(HashesRequest):
    endpoint = "pause"


class StartTorrentsRequest(HashesRequest):
    endpoint = "start"


class RecheckTorrentsRequest(HashesRequest):
    endpoint = "recheck"


class GetTorrentTrackersRequest(BaseRequest):
    endpoint = "trackers"

    def __init__(self, hash: str) -> None:
        super().__init__()
        self.hash = hash

    def to_dict(self) -> dict[str, str]:
        return {"hash": self.hash}

    def validate(self) -> ValidationResult:
        result = ValidationResult()
        result.check("hash", hash_error(self.hash))
        return result


class AddTrackersRequest(BaseRequest):
    """POST /torrents/addTrackers; ``urls`` travel newline-joined."""

    endpoint = "addTrackers"
    method = HttpMethod.POST

    def __init__(self, hash: str, urls: Sequence[str]) -> None:
        super().__init__()
        self.hash = hash
        self.urls = [u.strip() for u in urls]

    @classmethod
    def create(cls, hash: str, urls: Sequence[str]) -> "AddTrackersRequest":
        request = cls(hash, urls)
        request.ensure_valid()
        return request

    def to_dict(self) -> dict[str, str]:
        return {"hash": self.hash, "urls": join_values(self.urls, "\n")}

    def validate(self) -> ValidationResult:
        result = ValidationResult()
        result.check("hash", hash_error(self.hash))
        if not self.urls:
            result.add_error("urls", "at least one tracker URL is required")
        elif len(self.urls) > MAX_TRACKERS:
            result.add_error("urls", f"at most {MAX_TRACKERS} tracker URLs are allowed")
        for index, url in enumerate(self.urls):
            result.check(f"urls[{index}]", tracker_url_error(f"urls[{index}]", url))
        return result


class AddTrackersRequestBuilder:
    def __init__(self) -> None:
        self._hash: Optional[str] = None
        self._urls: list[str] = []

    def hash(self, hash: str) -> "AddTrackersRequestBuilder":
        self._hash = hash
        return self

    def url(self, url: str) -> "AddTrackersRequestBuilder":
        self._urls.append(url)
        return self

    def urls(self, urls: Sequence[str]) -> "AddTrackersRequestBuilder":
        self._urls.extend(urls)
        return self

    def build(self) -> AddTrackersRequest:
        if not self._hash:
            raise ValidationError.missing_parameter("hash")
        if not self._urls:
            raise ValidationError.missing_parameter("urls")
        return AddTrackersRequest.create(self._hash, self._urls)


@dataclass
class TorrentOptions:
    """Optional settings applied to torrents added through /torrents/add."""

    save_path: Optional[str] = None
    category: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    skip_checking: bool = False
    paused: bool = False
    root_folder: Optional[bool] = None
    rename: Optional[str] = None
    upload_limit: Optional[int] = None
    download_limit: Optional[int] = None
    ratio_limit: Optional[float] = None
    seeding_time_limit: Optional[int] = None
    auto_tmm: Optional[bool] = None
    sequential_download: Optional[bool] = None
    first_last_piece_prio: Optional[bool] = None

    def to_dict(self) -> dict[str, str]:
        params = {
            "skip_checking": bool_param(self.skip_checking),
            "paused": bool_param(self.paused),
            # Servers from 5.0 on read "stopped" instead of "paused"
            "stopped": bool_param(self.paused),
        }
        optional = {
            "savepath": self.save_path,
            "category": self.category,
            "tags": ",".join(self.tags) if self.tags else None,
            "root_folder": bool_param(self.root_folder),
            "rename": self.rename,
            "upLimit": self.upload_limit,
            "dlLimit": self.download_limit,
            "ratioLimit": self.ratio_limit,
            "seedingTimeLimit": self.seeding_time_limit,
            "autoTMM": bool_param(self.auto_tmm),
            "sequentialDownload": bool_param(self.sequential_download),
            "firstLastPiecePrio": bool_param(self.first_last_piece_prio),
        }
        params.update({k: str(v) for k, v in optional.items() if v is not None})
        return params

    def validate(self, result: ValidationResult) -> None:
        if self.save_path is not None:
            result.check(
                "savepath",
                required_text_error("savepath", self.save_path, MAX_SAVE_PATH_LENGTH),
            )
        if self.category is not None:
            result.check(
                "category",
                required_text_error("category", self.category, MAX_CREDENTIAL_LENGTH)
                or forbidden_chars_error("category", self.category),
            )
        for index, tag in enumerate(self.tags):
            result.check(
                f"tags[{index}]",
                required_text_error(f"tags[{index}]", tag, MAX_CREDENTIAL_LENGTH)
                or (f"tags[{index}] must not contain ','" if "," in tag else None),
            )
        if self.rename is not None:
            result.check(
                "rename",
                required_text_error("rename", self.rename, MAX_CREDENTIAL_LENGTH)
                or forbidden_chars_error("rename", self.rename),
            )
        result.check("upLimit", range_error("upLimit", self.upload_limit, minimum=-1))
        result.check("dlLimit", range_error("dlLimit", self.download_limit, minimum=-1))
        result.check("ratioLimit", range_error("ratioLimit", self.ratio_limit, minimum=-2))
        result.check(
            "seedingTimeLimit",
            range_error("seedingTimeLimit", self.seeding_time_limit, minimum=-2),
        )


class AddTorrentRequest(BaseRequest):
    """
    POST /torrents/add from URLs, .torrent files, or both.

    Files are sent as multipart parts named ``torrents``; the server
    answers ``Ok.`` or ``Fails.`` in plain text.
    """

    endpoint = "add"
    method = HttpMethod.POST

    def __init__(
        self,
        urls: Optional[Sequence[str]] = None,
        torrent_files: Optional[Sequence[tuple[str, bytes]]] = None,
        options: Optional[TorrentOptions] = None,
    ) -> None:
        super().__init__()
        self.urls = [u.strip() for u in urls or []]
        self.torrent_files = list(torrent_files or [])
        self.options = options or TorrentOptions()

    @classmethod
    def create(
        cls,
        urls: Optional[Sequence[str]] = None,
        torrent_files: Optional[Sequence[tuple[str, bytes]]] = None,
        options: Optional[TorrentOptions] = None,
    ) -> "AddTorrentRequest":
        request = cls(urls, torrent_files, options)
        request.ensure_valid()
        return request

    def to_dict(self) -> dict[str, str]:
        params = {}
        if self.urls:
            params["urls"] = join_values(self.urls, "\n")
        params.update(self.options.to_dict())
        return params

    def files(self) -> Sequence[MultipartField]:
        return [
            MultipartField(name="torrents", filename=name, content=content)
            for name, content in self.torrent_files
        ]

    def validate(self) -> ValidationResult:
        result = ValidationResult()
        if not self.urls and not self.torrent_files:
            result.add_error("urls", "at least one URL or torrent file is required")
        for index, url in enumerate(self.urls):
            result.check(f"urls[{index}]", torrent_url_error(f"urls[{index}]", url))
        if len(self.torrent_files) > MAX_TORRENT_FILES:
            result.add_error(
                "torrents", f"at most {MAX_TORRENT_FILES} torrent files are allowed"
            )
        for index, (name, content) in enumerate(self.torrent_files):
            key = f"torrents[{index}]"
            if not name or not name.strip():
                result.add_error(key, f"{key} must have a file name")
            elif any(ch in name for ch in '\\/?%*:|"<>'):
                result.add_error(key, f"{key} has an invalid file name")
            elif content is None:
                result.add_error(key, f"{key} must have content")
            elif len(content) > MAX_TORRENT_FILE_SIZE:
                result.add_error(key, f"{key} exceeds {MAX_TORRENT_FILE_SIZE // (1024 * 1024)}MB")
        self.options.validate(result)
        return result

    def summary(self) -> dict[str, Any]:
        return {
            "endpoint": self.endpoint,
            "method": self.method.value,
            "requires_auth": self.requires_authentication,
            "url_count": len(self.urls),
            "file_count": len(self.torrent_files),
            "savepath": self.options.save_path,
            "category": self.options.category,
            "tag_count": len(self.options.tags),
            "paused": self.options.paused,
        }


class AddTorrentRequestBuilder:
    """Fluent construction of AddTorrentRequest."""

    def __init__(self) -> None:
        self._urls: list[str] = []
        self._files: list[tuple[str, bytes]] = []
        self._options = TorrentOptions()

    def url(self, url: str) -> "AddTorrentRequestBuilder":
        self._urls.append(url)
        return self

    def urls(self, urls: Sequence[str]) -> "AddTorrentRequestBuilder":
        self._urls.extend(urls)
        return self

    def torrent_file(self, name: str, content: bytes) -> "AddTorrentRequestBuilder":
        self._files.append((name, content))
        return self

    def save_path(self, path: str) -> "AddTorrentRequestBuilder":
        self._options.save_path = path
        return self

    def category(self, category: str) -> "AddTorrentRequestBuilder":
        self._options.category = category
        return self

    def tags(self, tags: Sequence[str]) -> "AddTorrentRequestBuilder":
        self._options.tags = list(tags)
        return self

    def skip_checking(self, skip: bool = True) -> "AddTorrentRequestBuilder":
        self._options.skip_checking = skip
        return self

    def paused(self, paused: bool = True) -> "AddTorrentRequestBuilder":
        self._options.paused = paused
        return self

    def rename(self, name: str) -> "AddTorrentRequestBuilder":
        self._options.rename = name
        return self

    def limits(
        self,
        download: Optional[int] = None,
        upload: Optional[int] = None,
        ratio: Optional[float] = None,
        seeding_time: Optional[int] = None,
    ) -> "AddTorrentRequestBuilder":
        self._options.download_limit = download
        self._options.upload_limit = upload
        self._options.ratio_limit = ratio
        self._options.seeding_time_limit = seeding_time
        return self

    def build(self) -> AddTorrentRequest:
        if not self._urls and not self._files:
            raise ValidationError.missing_parameter("urls")
        return AddTorrentRequest.create(self._urls, self._files, self._options)


@dataclass
class TorrentListResponse(BaseResponse):
    torrents: list[TorrentInfo] = field(default_factory=list)

    def _populate(self, payload: Any) -> None:
        if payload is None:
            payload = []
        if not isinstance(payload, list):
            raise TypeError("torrent list payload is not a JSON array")
        self.torrents = [TorrentInfo.from_dict(item) for item in payload]

    def count(self) -> int:
        return len(self.torrents)

    def find(self, hash: str) -> Optional[TorrentInfo]:
        lowered = hash.lower()
        return next((t for t in self.torrents if t.hash.lower() == lowered), None)

    def total_size(self) -> int:
        return sum(t.size for t in self.torrents)

    def collection(self) -> TorrentCollection:
        return TorrentCollection(self.torrents)


@dataclass
class TorrentTrackersResponse(BaseResponse):
    trackers: list[TorrentTracker] = field(default_factory=list)

    def _populate(self, payload: Any) -> None:
        if payload is None:
            payload = []
        if not isinstance(payload, list):
            raise TypeError("tracker list payload is not a JSON array")
        self.trackers = [TorrentTracker.from_dict(item) for item in payload]

    def working_trackers(self) -> list[TorrentTracker]:
        return [t for t in self.trackers if t.is_working()]


class TorrentAPI(BaseAPI):
    """Façade for ``/api/v2/torrents``."""

    base_path = f"{API_ROOT}/torrents"

    def get_torrents(
        self,
        request: Optional[GetTorrentsRequest] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> TorrentListResponse:
        return self.execute(request or GetTorrentsRequest(), TorrentListResponse, cancel_event)

    def add_torrents(
        self,
        request: AddTorrentRequest,
        cancel_event: Optional[threading.Event] = None,
    ) -> ActionResponse:
        """
        Add torrents from URLs and/or files.

        Raises:
            ValidationError: If neither URLs nor files are given, or any option is out of range
        """
        return self.execute(request, ActionResponse, cancel_event)

    def delete_torrents(
        self,
        hashes: HashList,
        delete_files: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> ActionResponse:
        return self.execute(DeleteTorrentsRequest(hashes, delete_files), ActionResponse, cancel_event)

    def pause_torrents(
        self, hashes: HashList, cancel_event: Optional[threading.Event] = None
    ) -> ActionResponse:
        return self.execute(PauseTorrentsRequest(hashes), ActionResponse, cancel_event)

    def start_torrents(
        self, hashes: HashList, cancel_event: Optional[threading.Event] = None
    ) -> ActionResponse:
        return self.execute(StartTorrentsRequest(hashes), ActionResponse, cancel_event)

    def recheck_torrents(
        self, hashes: HashList, cancel_event: Optional[threading.Event] = None
    ) -> ActionResponse:
        return self.execute(RecheckTorrentsRequest(hashes), ActionResponse, cancel_event)

    def add_trackers(
        self,
        hash: str,
        urls: Sequence[str],
        cancel_event: Optional[threading.Event] = None,
    ) -> ActionResponse:
        return self.execute(AddTrackersRequest(hash, urls), ActionResponse, cancel_event)

    def get_trackers(
        self, hash: str, cancel_event: Optional[threading.Event] = None
    ) -> TorrentTrackersResponse:
        return self.execute(GetTorrentTrackersRequest(hash), TorrentTrackersResponse, cancel_event)
