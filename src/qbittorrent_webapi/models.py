"""
Data models for entities returned by the Web API.

Each model is built from the JSON object the server returns through
``from_dict``, which tolerates missing keys by falling back to
zero values.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from .enums import SearchStatus, TorrentState, TrackerStatus


PAUSED_STATES = frozenset({
    TorrentState.STOPPED_UP.value,
    TorrentState.STOPPED_DL.value,
    "pausedUP",
    "pausedDL",
})


def _int(value: Any, default: int = 0) -> int:
    if value is None or value == "":
        return default
    return int(value)


def _float(value: Any, default: float = 0.0) -> float:
    if value is None or value == "":
        return default
    return float(value)


@dataclass
class TorrentInfo:
    """A torrent as listed by /torrents/info."""

    hash: str
    name: str = ""
    size: int = 0
    progress: float = 0.0
    dlspeed: int = 0
    upspeed: int = 0
    priority: int = 0
    num_seeds: int = 0
    num_complete: int = 0
    num_leechs: int = 0
    num_incomplete: int = 0
    ratio: float = 0.0
    eta: int = 0
    added_on: int = 0
    completion_on: int = 0
    state: str = TorrentState.UNKNOWN.value
    category: str = ""
    tags: list[str] = field(default_factory=list)
    save_path: str = ""
    tracker: str = ""
    seq_dl: bool = False
    f_l_piece_prio: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "TorrentInfo":
        raw_tags = data.get("tags") or ""
        if isinstance(raw_tags, str):
            tags = [t.strip() for t in raw_tags.split(",") if t.strip()]
        else:
            tags = list(raw_tags)
        return cls(
            hash=data.get("hash", ""),
            name=data.get("name", ""),
            size=_int(data.get("size")),
            progress=_float(data.get("progress")),
            dlspeed=_int(data.get("dlspeed")),
            upspeed=_int(data.get("upspeed")),
            priority=_int(data.get("priority")),
            num_seeds=_int(data.get("num_seeds")),
            num_complete=_int(data.get("num_complete")),
            num_leechs=_int(data.get("num_leechs")),
            num_incomplete=_int(data.get("num_incomplete")),
            ratio=_float(data.get("ratio")),
            eta=_int(data.get("eta")),
            added_on=_int(data.get("added_on")),
            completion_on=_int(data.get("completion_on")),
            state=data.get("state", TorrentState.UNKNOWN.value),
            category=data.get("category", ""),
            tags=tags,
            save_path=data.get("save_path", ""),
            tracker=data.get("tracker", ""),
            seq_dl=bool(data.get("seq_dl", False)),
            f_l_piece_prio=bool(data.get("f_l_piece_prio", False)),
        )

    @property
    def torrent_state(self) -> TorrentState:
        return TorrentState.parse(self.state)

    def is_completed(self) -> bool:
        return self.progress >= 1.0

    def is_downloading(self) -> bool:
        return self.torrent_state in (
            TorrentState.DOWNLOADING,
            TorrentState.META_DL,
            TorrentState.STALLED_DL,
            TorrentState.FORCED_DL,
            TorrentState.QUEUED_DL,
        )

    def is_seeding(self) -> bool:
        return self.torrent_state in (
            TorrentState.UPLOADING,
            TorrentState.STALLED_UP,
            TorrentState.FORCED_UP,
            TorrentState.QUEUED_UP,
        )

    def is_active(self) -> bool:
        return self.dlspeed > 0 or self.upspeed > 0

    def is_paused(self) -> bool:
        # Servers before 5.0 report pausedUP/pausedDL
        return self.state in PAUSED_STATES

    def is_stalled(self) -> bool:
        return self.torrent_state in (TorrentState.STALLED_UP, TorrentState.STALLED_DL)

    def has_error(self) -> bool:
        return self.torrent_state in (TorrentState.ERROR, TorrentState.MISSING_FILES)

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags


@dataclass
class TorrentTracker:
    """A tracker entry from /torrents/trackers."""

    url: str
    status: int = TrackerStatus.NOT_CONTACTED.value
    tier: int = 0
    num_peers: int = 0
    num_seeds: int = 0
    num_leeches: int = 0
    num_downloaded: int = 0
    msg: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "TorrentTracker":
        return cls(
            url=data.get("url", ""),
            status=_int(data.get("status"), TrackerStatus.NOT_CONTACTED.value),
            # DHT/PeX/LSD pseudo-trackers report an empty tier
            tier=_int(data.get("tier"), -1),
            num_peers=_int(data.get("num_peers")),
            num_seeds=_int(data.get("num_seeds")),
            num_leeches=_int(data.get("num_leeches")),
            num_downloaded=_int(data.get("num_downloaded")),
            msg=data.get("msg", ""),
        )

    def is_working(self) -> bool:
        return self.status == TrackerStatus.WORKING.value


@dataclass
class TorrentPeer:
    """A connected peer from /sync/torrentPeers, keyed there by ``ip:port``."""

    ip: str
    port: int = 0
    country: str = ""
    country_code: str = ""
    client: str = ""
    progress: float = 0.0
    dl_speed: int = 0
    up_speed: int = 0
    downloaded: int = 0
    uploaded: int = 0
    connection: str = ""
    flags: str = ""
    relevance: float = 0.0

    @classmethod
    def from_dict(cls, data: dict) -> "TorrentPeer":
        return cls(
            ip=data.get("ip", ""),
            port=_int(data.get("port")),
            country=data.get("country", ""),
            country_code=data.get("country_code", ""),
            client=data.get("client", ""),
            progress=_float(data.get("progress")),
            dl_speed=_int(data.get("dl_speed")),
            up_speed=_int(data.get("up_speed")),
            downloaded=_int(data.get("downloaded")),
            uploaded=_int(data.get("uploaded")),
            connection=data.get("connection", ""),
            flags=data.get("flags", ""),
            relevance=_float(data.get("relevance")),
        )

    @property
    def address(self) -> str:
        if ":" in self.ip:
            return f"[{self.ip}]:{self.port}"
        return f"{self.ip}:{self.port}"


@dataclass
class SearchJob:
    """Status of a search job from /search/status."""

    id: int
    status: str = SearchStatus.STOPPED.value
    total: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "SearchJob":
        return cls(
            id=_int(data.get("id")),
            status=data.get("status", SearchStatus.STOPPED.value),
            total=_int(data.get("total")),
        )

    def is_running(self) -> bool:
        return self.status == SearchStatus.RUNNING.value


@dataclass
class SearchResult:
    """A single hit from /search/results."""

    file_name: str
    file_url: str = ""
    file_size: int = 0
    nb_seeders: int = 0
    nb_leechers: int = 0
    site_url: str = ""
    descr_link: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "SearchResult":
        return cls(
            file_name=data.get("fileName", ""),
            file_url=data.get("fileUrl", ""),
            file_size=_int(data.get("fileSize")),
            nb_seeders=_int(data.get("nbSeeders")),
            nb_leechers=_int(data.get("nbLeechers")),
            site_url=data.get("siteUrl", ""),
            descr_link=data.get("descrLink", ""),
        )

    def is_magnet(self) -> bool:
        return self.file_url.startswith("magnet:")


@dataclass
class SearchPlugin:
    """An installed search plugin from /search/plugins."""

    name: str
    full_name: str = ""
    version: str = ""
    url: str = ""
    enabled: bool = False
    supported_categories: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "SearchPlugin":
        categories = []
        for item in data.get("supportedCategories") or []:
            # Newer servers report {"id": ..., "name": ...} objects
            categories.append(item.get("id", "") if isinstance(item, dict) else str(item))
        return cls(
            name=data.get("name", ""),
            full_name=data.get("fullName", ""),
            version=data.get("version", ""),
            url=data.get("url", ""),
            enabled=bool(data.get("enabled", False)),
            supported_categories=categories,
        )


@dataclass
class RSSArticle:
    """An article inside an RSS feed."""

    id: str
    title: str = ""
    date: str = ""
    link: str = ""
    torrent_url: str = ""
    description: str = ""
    is_read: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "RSSArticle":
        return cls(
            id=str(data.get("id", "")),
            title=data.get("title", ""),
            date=data.get("date", ""),
            link=data.get("link", ""),
            torrent_url=data.get("torrentURL", ""),
            description=data.get("description", ""),
            is_read=bool(data.get("isRead", False)),
        )


@dataclass
class RSSFeed:
    """An RSS feed; ``path`` is its backslash-separated location in the folder tree."""

    path: str
    url: str = ""
    uid: str = ""
    title: str = ""
    last_build_date: str = ""
    is_loading: bool = False
    has_error: bool = False
    articles: list[RSSArticle] = field(default_factory=list)

    @classmethod
    def from_dict(cls, path: str, data: dict) -> "RSSFeed":
        return cls(
            path=path,
            url=data.get("url", ""),
            uid=data.get("uid", ""),
            title=data.get("title", ""),
            last_build_date=data.get("lastBuildDate", ""),
            is_loading=bool(data.get("isLoading", False)),
            has_error=bool(data.get("hasError", False)),
            articles=[RSSArticle.from_dict(a) for a in data.get("articles") or []],
        )

    @property
    def unread_count(self) -> int:
        return sum(1 for article in self.articles if not article.is_read)


def flatten_rss_items(items: dict, parent: Optional[str] = None) -> list[RSSFeed]:
    """
    Flatten the nested folder/feed tree returned by /rss/items.

    Args:
        items: Mapping of name to feed object or folder mapping
        parent: Path of the enclosing folder

    Returns:
        Feeds in server order, each with its full path
    """
    feeds: list[RSSFeed] = []
    for name, value in items.items():
        path = f"{parent}\\{name}" if parent else name
        if not isinstance(value, dict):
            continue
        if "url" in value:
            feeds.append(RSSFeed.from_dict(path, value))
        else:
            feeds.extend(flatten_rss_items(value, path))
    return feeds
