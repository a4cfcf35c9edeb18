"""
Search API: running searches through the server's search plugins.
"""

import threading
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, Union

from .api import API_ROOT, BaseAPI
from .enums import HttpMethod, SearchCategory, SearchStatus
from .models import SearchJob, SearchPlugin, SearchResult
from .request import BaseRequest, ParameterlessRequest, join_values
from .response import ActionResponse, BaseResponse
from .validation import ValidationResult, non_negative_error, required_text_error


class StartSearchRequest(BaseRequest):
    """POST /search/start; ``plugins`` travel ``|``-joined."""

    endpoint = "start"
    method = HttpMethod.POST

    def __init__(
        self,
        pattern: str,
        plugins: Optional[Sequence[str]] = None,
        category: Union[SearchCategory, str] = SearchCategory.ALL,
    ) -> None:
        super().__init__()
        self.pattern = pattern
        self.plugins = list(plugins) if plugins is not None else ["all"]
        self.category = category.value if isinstance(category, SearchCategory) else category

    def to_dict(self) -> dict[str, str]:
        return {
            "pattern": (self.pattern or "").strip(),
            "plugins": join_values(self.plugins, "|"),
            "category": (self.category or "").strip(),
        }

    def validate(self) -> ValidationResult:
        result = ValidationResult()
        result.check("pattern", required_text_error("pattern", self.pattern))
        result.check("category", required_text_error("category", self.category))
        if not self.plugins or not any(p.strip() for p in self.plugins):
            result.add_error("plugins", "at least one plugin is required")
        return result


class SearchIdRequest(BaseRequest):
    """Base for endpoints addressing one search job by ``id``."""

    method = HttpMethod.POST

    def __init__(self, search_id: int) -> None:
        super().__init__()
        self.search_id = search_id

    def to_dict(self) -> dict[str, str]:
        return {"id": str(self.search_id)}

    def validate(self) -> ValidationResult:
        result = ValidationResult()
        if not isinstance(self.search_id, int) or self.search_id <= 0:
            result.add_error("id", "id must be a positive integer")
        return result


class StopSearchRequest(SearchIdRequest):
    endpoint = "stop"


class DeleteSearchRequest(SearchIdRequest):
    endpoint = "delete"


class GetSearchStatusRequest(BaseRequest):
    """GET /search/status for one job, or for every job when ``search_id`` is None."""

    endpoint = "status"

    def __init__(self, search_id: Optional[int] = None) -> None:
        super().__init__()
        self.search_id = search_id

    def to_dict(self) -> dict[str, str]:
        return {"id": str(self.search_id)} if self.search_id is not None else {}

    def validate(self) -> ValidationResult:
        result = ValidationResult()
        if self.search_id is not None and self.search_id <= 0:
            result.add_error("id", "id must be a positive integer")
        return result


class GetSearchResultsRequest(BaseRequest):
    """GET /search/results; ``limit`` 0 means no limit."""

    endpoint = "results"

    def __init__(self, search_id: int, limit: int = 0, offset: int = 0) -> None:
        super().__init__()
        self.search_id = search_id
        self.limit = limit
        self.offset = offset

    def to_dict(self) -> dict[str, str]:
        params = {"id": str(self.search_id)}
        if self.limit:
            params["limit"] = str(self.limit)
        if self.offset:
            params["offset"] = str(self.offset)
        return params

    def validate(self) -> ValidationResult:
        result = ValidationResult()
        if not isinstance(self.search_id, int) or self.search_id <= 0:
            result.add_error("id", "id must be a positive integer")
        result.check("limit", non_negative_error("limit", self.limit))
        result.check("offset", non_negative_error("offset", self.offset))
        return result


class GetSearchPluginsRequest(ParameterlessRequest):
    endpoint = "plugins"


@dataclass
class SearchStartResponse(BaseResponse):
    search_id: int = 0

    def _populate(self, payload: Any) -> None:
        self.search_id = int(payload["id"])


@dataclass
class SearchStatusResponse(BaseResponse):
    jobs: list[SearchJob] = field(default_factory=list)

    def _populate(self, payload: Any) -> None:
        if payload is None:
            payload = []
        if not isinstance(payload, list):
            raise TypeError("search status payload is not a JSON array")
        self.jobs = [SearchJob.from_dict(item) for item in payload]

    def running_jobs(self) -> list[SearchJob]:
        return [job for job in self.jobs if job.is_running()]


@dataclass
class SearchResultsResponse(BaseResponse):
    results: list[SearchResult] = field(default_factory=list)
    status: str = ""
    total: int = 0

    def _populate(self, payload: Any) -> None:
        data = payload or {}
        self.results = [SearchResult.from_dict(item) for item in data.get("results") or []]
        self.status = data.get("status", SearchStatus.STOPPED.value)
        self.total = int(data.get("total", len(self.results)))

    def is_running(self) -> bool:
        return self.status == SearchStatus.RUNNING.value


@dataclass
class SearchPluginsResponse(BaseResponse):
    plugins: list[SearchPlugin] = field(default_factory=list)

    def _populate(self, payload: Any) -> None:
        if payload is None:
            payload = []
        if not isinstance(payload, list):
            raise TypeError("search plugins payload is not a JSON array")
        self.plugins = [SearchPlugin.from_dict(item) for item in payload]

    def enabled_plugins(self) -> list[SearchPlugin]:
        return [p for p in self.plugins if p.enabled]


class SearchAPI(BaseAPI):
    """Façade for ``/api/v2/search``."""

    base_path = f"{API_ROOT}/search"

    def start_search(
        self,
        pattern: str,
        plugins: Optional[Sequence[str]] = None,
        category: Union[SearchCategory, str] = SearchCategory.ALL,
        cancel_event: Optional[threading.Event] = None,
    ) -> SearchStartResponse:
        """
        Start a search job.

        Args:
            pattern: Search text; must not be blank
            plugins: Plugin names, defaults to every enabled plugin
            category: Category name, defaults to ``all``

        Returns:
            SearchStartResponse carrying the new job id
        """
        return self.execute(
            StartSearchRequest(pattern, plugins, category), SearchStartResponse, cancel_event
        )

    def stop_search(
        self, search_id: int, cancel_event: Optional[threading.Event] = None
    ) -> ActionResponse:
        return self.execute(StopSearchRequest(search_id), ActionResponse, cancel_event)

    def get_status(
        self,
        search_id: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> SearchStatusResponse:
        return self.execute(GetSearchStatusRequest(search_id), SearchStatusResponse, cancel_event)

    def get_results(
        self,
        search_id: int,
        limit: int = 0,
        offset: int = 0,
        cancel_event: Optional[threading.Event] = None,
    ) -> SearchResultsResponse:
        return self.execute(
            GetSearchResultsRequest(search_id, limit, offset), SearchResultsResponse, cancel_event
        )

    def delete_search(
        self, search_id: int, cancel_event: Optional[threading.Event] = None
    ) -> ActionResponse:
        return self.execute(DeleteSearchRequest(search_id), ActionResponse, cancel_event)

    def get_plugins(
        self, cancel_event: Optional[threading.Event] = None
    ) -> SearchPluginsResponse:
        return self.execute(GetSearchPluginsRequest(), SearchPluginsResponse, cancel_event)
