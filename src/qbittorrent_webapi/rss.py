"""
RSS API: feed listing, marking articles read and refreshing feeds.

Item paths use backslashes as folder separators, e.g. ``Linux\\Debian``.
"""

import threading
from dataclasses import dataclass, field
from typing import Any, Optional

from .api import API_ROOT, BaseAPI
from .enums import HttpMethod
from .models import RSSFeed, flatten_rss_items
from .request import BaseRequest, bool_param
from .response import ActionResponse, BaseResponse
from .validation import ValidationResult, required_text_error


class GetRSSItemsRequest(BaseRequest):
    endpoint = "items"

    def __init__(self, with_data: bool = False) -> None:
        super().__init__()
        self.with_data = with_data

    def to_dict(self) -> dict[str, str]:
        return {"withData": bool_param(self.with_data)}

    def validate(self) -> ValidationResult:
        return ValidationResult()


class MarkAsReadRequest(BaseRequest):
    endpoint = "markAsRead"
    method = HttpMethod.POST

    def __init__(self, item_path: str, article_id: Optional[str] = None) -> None:
        super().__init__()
        self.item_path = item_path
        self.article_id = article_id

    def to_dict(self) -> dict[str, str]:
        params = {"itemPath": self.item_path}
        if self.article_id is not None:
            params["articleId"] = self.article_id
        return params

    def validate(self) -> ValidationResult:
        result = ValidationResult()
        result.check("itemPath", required_text_error("itemPath", self.item_path))
        if self.article_id is not None:
            result.check("articleId", required_text_error("articleId", self.article_id))
        return result


class RefreshItemRequest(BaseRequest):
    endpoint = "refreshItem"
    method = HttpMethod.POST

    def __init__(self, item_path: str) -> None:
        super().__init__()
        self.item_path = item_path

    def to_dict(self) -> dict[str, str]:
        return {"itemPath": self.item_path}

    def validate(self) -> ValidationResult:
        result = ValidationResult()
        result.check("itemPath", required_text_error("itemPath", self.item_path))
        return result


@dataclass
class RSSItemsResponse(BaseResponse):
    """Feeds from /rss/items flattened out of their folder tree."""

    feeds: list[RSSFeed] = field(default_factory=list)

    def _populate(self, payload: Any) -> None:
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            raise TypeError("RSS items payload is not a JSON object")
        self.feeds = flatten_rss_items(payload)

    def find_feed(self, path: str) -> Optional[RSSFeed]:
        return next((f for f in self.feeds if f.path == path), None)

    def unread_count(self) -> int:
        return sum(feed.unread_count for feed in self.feeds)


class RSSAPI(BaseAPI):
    """Façade for ``/api/v2/rss``."""

    base_path = f"{API_ROOT}/rss"

    def get_items(
        self, with_data: bool = False, cancel_event: Optional[threading.Event] = None
    ) -> RSSItemsResponse:
        return self.execute(GetRSSItemsRequest(with_data), RSSItemsResponse, cancel_event)

    def mark_as_read(
        self,
        item_path: str,
        article_id: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> ActionResponse:
        return self.execute(MarkAsReadRequest(item_path, article_id), ActionResponse, cancel_event)

    def refresh_item(
        self, item_path: str, cancel_event: Optional[threading.Event] = None
    ) -> ActionResponse:
        return self.execute(RefreshItemRequest(item_path), ActionResponse, cancel_event)
