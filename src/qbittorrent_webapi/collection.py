"""
In-memory filtering, sorting, grouping and aggregation over torrent lists.

Every filter and sort returns a new TorrentCollection and leaves the
original untouched, so calls chain::

    big_movies = (
        response.collection()
        .filter_by_category("movies")
        .filter_by_size(min_size=4 * 1024 ** 3)
        .sort_by("added_on", descending=True)
    )
"""

from typing import Any, Callable, Iterable, Iterator, Optional, Sequence, Union

from .enums import TorrentState
from .models import TorrentInfo


UNCATEGORIZED = ""

SORTABLE_FIELDS = frozenset({
    "name", "size", "progress", "dlspeed", "upspeed", "ratio", "added_on",
    "completion_on", "priority", "eta", "num_seeds", "num_leechs", "state",
    "category",
})

StateLike = Union[TorrentState, str]


def _state_value(state: StateLike) -> str:
    return state.value if isinstance(state, TorrentState) else state


class TorrentCollection:
    """Immutable-by-convention sequence of TorrentInfo with query helpers."""

    def __init__(self, torrents: Optional[Iterable[TorrentInfo]] = None) -> None:
        self._torrents: list[TorrentInfo] = list(torrents or [])

    def __len__(self) -> int:
        return len(self._torrents)

    def __iter__(self) -> Iterator[TorrentInfo]:
        return iter(self._torrents)

    def __getitem__(self, index: int) -> TorrentInfo:
        return self._torrents[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TorrentCollection):
            return NotImplemented
        return self._torrents == other._torrents

    def __repr__(self) -> str:
        return f"TorrentCollection({len(self._torrents)} torrents)"

    def to_list(self) -> list[TorrentInfo]:
        return list(self._torrents)

    def hashes(self) -> list[str]:
        return [t.hash for t in self._torrents]

    # Lookup

    def find_by_hash(self, hash: str) -> Optional[TorrentInfo]:
        lowered = hash.lower()
        return next((t for t in self._torrents if t.hash.lower() == lowered), None)

    def find_by_name(self, name: str, exact: bool = True) -> "TorrentCollection":
        """Exact match, or case-insensitive substring match when ``exact`` is False."""
        if exact:
            return self.filter(lambda t: t.name == name)
        needle = name.lower()
        return self.filter(lambda t: needle in t.name.lower())

    # Filters

    def filter(self, predicate: Callable[[TorrentInfo], bool]) -> "TorrentCollection":
        return TorrentCollection(t for t in self._torrents if predicate(t))

    def filter_by_category(self, category: str) -> "TorrentCollection":
        """Torrents in ``category``; an empty string selects uncategorized torrents."""
        return self.filter(lambda t: t.category == category)

    def filter_by_tag(self, tag: str) -> "TorrentCollection":
        return self.filter(lambda t: t.has_tag(tag))

    def filter_by_tags(self, tags: Sequence[str], match_all: bool = False) -> "TorrentCollection":
        """Torrents carrying any of ``tags``, or all of them when ``match_all`` is set."""
        wanted = list(tags)
        if match_all:
            return self.filter(lambda t: all(t.has_tag(tag) for tag in wanted))
        return self.filter(lambda t: any(t.has_tag(tag) for tag in wanted))

    def filter_by_state(self, *states: StateLike) -> "TorrentCollection":
        values = {_state_value(s) for s in states}
        return self.filter(lambda t: t.state in values)

    def filter_by_progress(
        self, min_progress: float = 0.0, max_progress: float = 1.0
    ) -> "TorrentCollection":
        return self.filter(lambda t: min_progress <= t.progress <= max_progress)

    def filter_by_size(
        self, min_size: int = 0, max_size: Optional[int] = None
    ) -> "TorrentCollection":
        return self.filter(
            lambda t: t.size >= min_size and (max_size is None or t.size <= max_size)
        )

    def filter_by_added_time(
        self, since: int = 0, until: Optional[int] = None
    ) -> "TorrentCollection":
        """Torrents whose ``added_on`` Unix timestamp lies in ``[since, until]``."""
        return self.filter(
            lambda t: t.added_on >= since and (until is None or t.added_on <= until)
        )

    def active(self) -> "TorrentCollection":
        return self.filter(TorrentInfo.is_active)

    def completed(self) -> "TorrentCollection":
        return self.filter(TorrentInfo.is_completed)

    def downloading(self) -> "TorrentCollection":
        return self.filter(TorrentInfo.is_downloading)

    def seeding(self) -> "TorrentCollection":
        return self.filter(TorrentInfo.is_seeding)

    def paused(self) -> "TorrentCollection":
        return self.filter(TorrentInfo.is_paused)

    def stalled(self) -> "TorrentCollection":
        return self.filter(TorrentInfo.is_stalled)

    def errored(self) -> "TorrentCollection":
        return self.filter(TorrentInfo.has_error)

    # Ordering

    def sort_by(self, field: str, descending: bool = False) -> "TorrentCollection":
        """
        Stable sort on one TorrentInfo field.

        Names compare case-insensitively.

        Raises:
            ValueError: If ``field`` is not sortable
        """
        if field not in SORTABLE_FIELDS:
            raise ValueError(f"cannot sort torrents by {field!r}")

        def key(torrent: TorrentInfo) -> Any:
            value = getattr(torrent, field)
            return value.lower() if field == "name" else value

        return TorrentCollection(sorted(self._torrents, key=key, reverse=descending))

    # Grouping

    def group_by(self, key: Callable[[TorrentInfo], str]) -> dict[str, "TorrentCollection"]:
        groups: dict[str, list[TorrentInfo]] = {}
        for torrent in self._torrents:
            groups.setdefault(key(torrent), []).append(torrent)
        return {name: TorrentCollection(items) for name, items in groups.items()}

    def group_by_category(self) -> dict[str, "TorrentCollection"]:
        """Groups keyed by category; uncategorized torrents sit under ``""``."""
        return self.group_by(lambda t: t.category or UNCATEGORIZED)

    def group_by_state(self) -> dict[str, "TorrentCollection"]:
        return self.group_by(lambda t: t.state)

    # Aggregates

    def total_size(self) -> int:
        return sum(t.size for t in self._torrents)

    def total_download_speed(self) -> int:
        return sum(t.dlspeed for t in self._torrents)

    def total_upload_speed(self) -> int:
        return sum(t.upspeed for t in self._torrents)

    def average_progress(self) -> float:
        if not self._torrents:
            return 0.0
        return sum(t.progress for t in self._torrents) / len(self._torrents)

    def average_ratio(self) -> float:
        if not self._torrents:
            return 0.0
        return sum(t.ratio for t in self._torrents) / len(self._torrents)

    def all_categories(self) -> list[str]:
        return sorted({t.category for t in self._torrents if t.category})

    def all_tags(self) -> list[str]:
        return sorted({tag for t in self._torrents for tag in t.tags})

    def statistics(self) -> dict[str, Any]:
        return {
            "total_count": len(self),
            "active_count": len(self.active()),
            "completed_count": len(self.completed()),
            "downloading_count": len(self.downloading()),
            "seeding_count": len(self.seeding()),
            "paused_count": len(self.paused()),
            "stalled_count": len(self.stalled()),
            "errored_count": len(self.errored()),
            "total_size": self.total_size(),
            "total_download_speed": self.total_download_speed(),
            "total_upload_speed": self.total_upload_speed(),
            "average_progress": self.average_progress(),
            "average_ratio": self.average_ratio(),
            "categories": self.all_categories(),
            "tags": self.all_tags(),
        }
