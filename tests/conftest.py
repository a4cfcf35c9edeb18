"""
Shared fixtures and helpers for the test suite.
"""

from typing import Any, Optional

import httpx
import pytest

from qbittorrent_webapi.transport import HttpxTransport, TransportResponse, extract_session_id


VALID_HASH = "0123456789abcdef0123456789abcdef01234567"
BASE_URL = "http://qbittorrent.test:8080"


class StubTransport:
    """
    In-memory transport that records every call and replays scripted responses.

    Responses are consumed in order; once exhausted, ``default`` is returned.
    Setting ``error`` makes every send raise it instead.
    """

    def __init__(self, *responses: TransportResponse) -> None:
        self.responses = list(responses)
        self.default = TransportResponse(status_code=200, headers={}, body="")
        self.calls: list[tuple[str, str, dict]] = []
        self.error: Optional[Exception] = None
        self.token: Optional[str] = None
        self.base_url: Optional[str] = None
        self.closed = False

    def queue(self, status_code: int, body: str = "", headers: Optional[dict] = None) -> None:
        self.responses.append(
            TransportResponse(status_code=status_code, headers=headers or {}, body=body)
        )

    def send(self, method: str, uri: str, **options: Any) -> TransportResponse:
        self.calls.append((method, uri, options))
        if self.error is not None:
            raise self.error
        response = self.responses.pop(0) if self.responses else self.default
        session_id = extract_session_id(response.header("Set-Cookie"))
        if session_id is not None:
            self.token = session_id
        return response

    def set_base_url(self, base_url: str) -> None:
        self.base_url = base_url

    def set_authentication(self, token: Optional[str]) -> None:
        self.token = token

    def get_authentication(self) -> Optional[str]:
        return self.token

    def close(self) -> None:
        self.closed = True


class RecordingHandler:
    """httpx.MockTransport handler that records requests and answers from a route table."""

    def __init__(self, routes: Optional[dict] = None) -> None:
        self.routes = routes or {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, text="Not Found")
        if callable(route):
            return route(request)
        # Fresh copy per request; httpx binds a response to the request it answers
        return httpx.Response(
            route.status_code,
            headers=route.headers.raw,
            content=route.content,
        )


@pytest.fixture
def stub_transport() -> StubTransport:
    return StubTransport()


def make_httpx_transport(handler: RecordingHandler, **kwargs: Any) -> HttpxTransport:
    return HttpxTransport(
        base_url=BASE_URL,
        http_transport=httpx.MockTransport(handler),
        **kwargs,
    )
