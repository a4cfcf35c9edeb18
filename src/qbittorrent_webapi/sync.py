"""
Sync API: incremental snapshots of the server's torrent list and peers.

Every answer carries a response ID (``rid``). Passing the last ``rid`` back
makes the server send only what changed since then, with ``full_update``
set whenever it decided to resend everything instead. MainDataState folds
such answers into a complete picture.
"""

import threading
from dataclasses import dataclass, field
from typing import Any, Optional

from .api import API_ROOT, BaseAPI
from .collection import TorrentCollection
from .models import TorrentInfo, TorrentPeer
from .request import BaseRequest
from .response import BaseResponse
from .validation import ValidationResult, hash_error, non_negative_error


def _rid_params(rid: int) -> dict[str, str]:
    # rid=0 asks for a full update, same as leaving it out
    return {"rid": str(rid)} if rid > 0 else {}


class GetMainDataRequest(BaseRequest):
    endpoint = "maindata"

    def __init__(self, rid: int = 0) -> None:
        super().__init__()
        self.rid = rid

    def to_dict(self) -> dict[str, str]:
        return _rid_params(self.rid)

    def validate(self) -> ValidationResult:
        result = ValidationResult()
        result.check("rid", non_negative_error("rid", self.rid))
        return result


class GetTorrentPeersRequest(BaseRequest):
    endpoint = "torrentPeers"

    def __init__(self, hash: str, rid: int = 0) -> None:
        super().__init__()
        self.hash = hash
        self.rid = rid

    def to_dict(self) -> dict[str, str]:
        params = {"hash": self.hash}
        params.update(_rid_params(self.rid))
        return params

    def validate(self) -> ValidationResult:
        result = ValidationResult()
        result.check("hash", hash_error(self.hash))
        result.check("rid", non_negative_error("rid", self.rid))
        return result


def _require_object(payload: Any, what: str) -> dict:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise TypeError(f"{what} payload is not a JSON object")
    return payload


@dataclass
class MainDataResponse(BaseResponse):
    """
    One /sync/maindata answer.

    ``torrents`` and ``categories`` map keys to the fields that changed;
    on a full update they hold every field.
    """

    rid: int = 0
    full_update: bool = False
    torrents: dict[str, dict] = field(default_factory=dict)
    torrents_removed: list[str] = field(default_factory=list)
    categories: dict[str, dict] = field(default_factory=dict)
    categories_removed: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    tags_removed: list[str] = field(default_factory=list)
    server_state: dict[str, Any] = field(default_factory=dict)

    def _populate(self, payload: Any) -> None:
        data = _require_object(payload, "main data")
        self.rid = int(data.get("rid", 0))
        self.full_update = bool(data.get("full_update", False))
        self.torrents = dict(_require_object(data.get("torrents"), "torrents"))
        self.torrents_removed = list(data.get("torrents_removed") or [])
        self.categories = dict(_require_object(data.get("categories"), "categories"))
        self.categories_removed = list(data.get("categories_removed") or [])
        self.tags = list(data.get("tags") or [])
        self.tags_removed = list(data.get("tags_removed") or [])
        self.server_state = dict(_require_object(data.get("server_state"), "server_state"))

    def torrent_infos(self) -> TorrentCollection:
        """Torrents in this answer; complete only when ``full_update`` is set."""
        return TorrentCollection(
            TorrentInfo.from_dict({**fields, "hash": h}) for h, fields in self.torrents.items()
        )


@dataclass
class TorrentPeersResponse(BaseResponse):
    """One /sync/torrentPeers answer, peers keyed by ``ip:port``."""

    rid: int = 0
    full_update: bool = False
    show_flags: bool = False
    peers: dict[str, TorrentPeer] = field(default_factory=dict)
    peers_removed: list[str] = field(default_factory=list)

    def _populate(self, payload: Any) -> None:
        data = _require_object(payload, "torrent peers")
        self.rid = int(data.get("rid", 0))
        self.full_update = bool(data.get("full_update", False))
        self.show_flags = bool(data.get("show_flags", False))
        self.peers = {
            key: TorrentPeer.from_dict(value)
            for key, value in _require_object(data.get("peers"), "peers").items()
        }
        self.peers_removed = list(data.get("peers_removed") or [])

    def count(self) -> int:
        return len(self.peers)

    def total_download_speed(self) -> int:
        return sum(p.dl_speed for p in self.peers.values())

    def total_upload_speed(self) -> int:
        return sum(p.up_speed for p in self.peers.values())

    def group_by_country(self) -> dict[str, list[TorrentPeer]]:
        groups: dict[str, list[TorrentPeer]] = {}
        for peer in self.peers.values():
            groups.setdefault(peer.country or "Unknown", []).append(peer)
        return groups

    def group_by_client(self) -> dict[str, list[TorrentPeer]]:
        groups: dict[str, list[TorrentPeer]] = {}
        for peer in self.peers.values():
            groups.setdefault(peer.client or "Unknown", []).append(peer)
        return groups

    def most_complete(self, limit: int = 5) -> list[TorrentPeer]:
        return sorted(self.peers.values(), key=lambda p: p.progress, reverse=True)[:limit]

    def fastest(self, limit: int = 5) -> list[TorrentPeer]:
        return sorted(
            self.peers.values(), key=lambda p: p.dl_speed + p.up_speed, reverse=True
        )[:limit]


class MainDataState:
    """
    Local mirror of /sync/maindata built by applying successive answers.

    Partial torrent and category entries are merged field by field into
    what is already known. A full update replaces everything.
    """

    def __init__(self) -> None:
        self.rid = 0
        self.torrents: dict[str, dict] = {}
        self.categories: dict[str, dict] = {}
        self.tags: list[str] = []
        self.server_state: dict[str, Any] = {}

    def reset(self) -> None:
        """Forget everything; the next refresh asks for a full update."""
        self.rid = 0
        self.torrents = {}
        self.categories = {}
        self.tags = []
        self.server_state = {}

    def apply(self, response: MainDataResponse) -> None:
        if response.full_update:
            self.reset()

        for torrent_hash, fields in response.torrents.items():
            self.torrents.setdefault(torrent_hash, {}).update(fields)
        for torrent_hash in response.torrents_removed:
            self.torrents.pop(torrent_hash, None)

        for name, fields in response.categories.items():
            self.categories.setdefault(name, {}).update(fields)
        for name in response.categories_removed:
            self.categories.pop(name, None)

        for tag in response.tags:
            if tag not in self.tags:
                self.tags.append(tag)
        self.tags = [tag for tag in self.tags if tag not in response.tags_removed]

        self.server_state.update(response.server_state)
        self.rid = response.rid

    def torrent_collection(self) -> TorrentCollection:
        return TorrentCollection(
            TorrentInfo.from_dict({**fields, "hash": h}) for h, fields in self.torrents.items()
        )


class SyncAPI(BaseAPI):
    """Façade for ``/api/v2/sync``."""

    base_path = f"{API_ROOT}/sync"

    def get_main_data(
        self, rid: int = 0, cancel_event: Optional[threading.Event] = None
    ) -> MainDataResponse:
        return self.execute(GetMainDataRequest(rid), MainDataResponse, cancel_event)

    def get_torrent_peers(
        self,
        hash: str,
        rid: int = 0,
        cancel_event: Optional[threading.Event] = None,
    ) -> TorrentPeersResponse:
        return self.execute(GetTorrentPeersRequest(hash, rid), TorrentPeersResponse, cancel_event)

    def refresh(
        self, state: MainDataState, cancel_event: Optional[threading.Event] = None
    ) -> MainDataResponse:
        """
        Fetch changes since ``state.rid`` and fold them into ``state``.

        A failed response leaves ``state`` untouched.
        """
        response = self.get_main_data(state.rid, cancel_event)
        if response.is_success():
            state.apply(response)
        return response
