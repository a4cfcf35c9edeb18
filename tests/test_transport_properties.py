"""
Property-based tests for the transport module.

Uses Hypothesis for property-based testing to verify session cookie
capture, error mapping and the raising status policy. HTTP exchanges are
served by httpx.MockTransport, so no network access is needed.
"""

import io
import json
import threading
from typing import Optional

import httpx
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from qbittorrent_webapi.audit_logger import AuditLogger
from qbittorrent_webapi.enums import AuthErrorCode, ClientErrorCode, LogLevel, NetworkErrorCode
from qbittorrent_webapi.exceptions import AuthenticationError, ClientError, NetworkError
from qbittorrent_webapi.transport import (
    HttpxTransport,
    MultipartField,
    Transport,
    TransportResponse,
    decode_response,
    extract_session_id,
)

from conftest import BASE_URL, RecordingHandler, StubTransport, make_httpx_transport


# Strategies for generating test data

@st.composite
def session_id_strategy(draw) -> str:
    """Generate SID values as the server issues them."""
    return draw(st.text(
        alphabet="abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789+/-_",
        min_size=1,
        max_size=64,
    ))


@st.composite
def cookie_attributes_strategy(draw) -> str:
    return draw(st.sampled_from([
        "",
        "; Path=/",
        "; HttpOnly",
        "; Path=/; HttpOnly; SameSite=Strict",
    ]))


class TestSessionCookieExtractionProperty:
    """
    Property-based tests for session cookie capture.

    **Feature: qbittorrent-webapi, Property 5: SID is captured from Set-Cookie**
    """

    @given(sid=session_id_strategy(), attributes=cookie_attributes_strategy())
    @settings(max_examples=100)
    def test_sid_extracted_with_any_attributes(self, sid: str, attributes: str) -> None:
        """
        *For any* SID value and cookie attributes, extract_session_id()
        SHALL return exactly the SID value.
        """
        assert extract_session_id(f"SID={sid}{attributes}") == sid

    @given(first=session_id_strategy(), second=session_id_strategy())
    @settings(max_examples=100)
    def test_last_sid_wins(self, first: str, second: str) -> None:
        header = f"SID={first}; Path=/, SID={second}; HttpOnly"

        assert extract_session_id(header) == second

    @pytest.mark.parametrize("header", [None, "", "other=value; Path=/", "SID=; Path=/"])
    def test_no_sid_returns_none(self, header) -> None:
        assert extract_session_id(header) is None

    def test_sid_not_confused_with_suffix_names(self) -> None:
        assert extract_session_id("XSID=wrong; Path=/") is None
        assert extract_session_id("XSID=wrong, SID=right") == "right"

    def test_send_captures_sid_and_attaches_cookie(self) -> None:
        handler = RecordingHandler({
            ("POST", "/api/v2/auth/login"): httpx.Response(
                200, text="Ok.", headers={"Set-Cookie": "SID=abc123; Path=/"}
            ),
            ("GET", "/api/v2/app/version"): httpx.Response(200, text="v5.0.1"),
        })
        transport = make_httpx_transport(handler)

        transport.send("POST", "/api/v2/auth/login", form_body={"username": "a", "password": "b"})
        assert transport.get_authentication() == "abc123"

        transport.send("GET", "/api/v2/app/version")
        assert handler.requests[1].headers["Cookie"] == "SID=abc123"

    def test_response_without_cookie_keeps_token(self) -> None:
        handler = RecordingHandler({
            ("GET", "/api/v2/app/version"): httpx.Response(200, text="v5.0.1"),
        })
        transport = make_httpx_transport(handler)
        transport.set_authentication("kept")

        transport.send("GET", "/api/v2/app/version")

        assert transport.get_authentication() == "kept"

    def test_no_cookie_header_without_token(self) -> None:
        handler = RecordingHandler({
            ("GET", "/api/v2/app/version"): httpx.Response(200, text="v5.0.1"),
        })
        transport = make_httpx_transport(handler)

        transport.send("GET", "/api/v2/app/version")

        assert "Cookie" not in handler.requests[0].headers

    def test_clearing_authentication_drops_cookie(self) -> None:
        handler = RecordingHandler({
            ("GET", "/api/v2/app/version"): httpx.Response(200, text="v5.0.1"),
        })
        transport = make_httpx_transport(handler)
        transport.set_authentication("abc")
        transport.set_authentication(None)

        transport.send("GET", "/api/v2/app/version")

        assert transport.get_authentication() is None
        assert "Cookie" not in handler.requests[0].headers


class TestRequestEncodingProperty:
    """
    Tests for request encoding.

    **Feature: qbittorrent-webapi, Property 6: Parameters reach the wire unchanged**
    """

    def test_query_params_and_default_headers(self) -> None:
        handler = RecordingHandler({
            ("GET", "/api/v2/torrents/info"): httpx.Response(200, json=[]),
        })
        transport = make_httpx_transport(handler, user_agent="test-agent/1.0")

        transport.send(
            "get", "/api/v2/torrents/info", query_params={"filter": "all", "reverse": True}
        )

        sent = handler.requests[0]
        assert sent.method == "GET"
        assert sent.url.params["filter"] == "all"
        assert sent.url.params["reverse"] == "true"
        assert sent.headers["User-Agent"] == "test-agent/1.0"
        assert sent.headers["Accept"] == "application/json"

    def test_form_body_is_urlencoded(self) -> None:
        handler = RecordingHandler({
            ("POST", "/api/v2/torrents/pause"): httpx.Response(200),
        })
        transport = make_httpx_transport(handler)

        transport.send("POST", "/api/v2/torrents/pause", form_body={"hashes": "a|b"})

        sent = handler.requests[0]
        assert sent.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert sent.content == b"hashes=a%7Cb"

    def test_multipart_body_carries_files_and_fields(self) -> None:
        handler = RecordingHandler({
            ("POST", "/api/v2/torrents/add"): httpx.Response(200, text="Ok."),
        })
        transport = make_httpx_transport(handler)

        transport.send(
            "POST",
            "/api/v2/torrents/add",
            form_body={"category": "iso"},
            multipart_body=[MultipartField("torrents", "linux.torrent", b"d8:announce0:e")],
        )

        sent = handler.requests[0]
        assert sent.headers["Content-Type"].startswith("multipart/form-data")
        assert b'name="category"' in sent.content
        assert b'filename="linux.torrent"' in sent.content
        assert b"d8:announce0:e" in sent.content

    def test_extra_headers_override_defaults(self) -> None:
        handler = RecordingHandler({
            ("GET", "/api/v2/app/version"): httpx.Response(200, text="v5.0.1"),
        })
        transport = make_httpx_transport(handler)

        transport.send("GET", "/api/v2/app/version", headers={"Accept": "text/plain"})

        assert handler.requests[0].headers["Accept"] == "text/plain"

    def test_repeated_headers_are_joined(self) -> None:
        handler = RecordingHandler({
            ("POST", "/api/v2/auth/login"): httpx.Response(
                200,
                text="Ok.",
                headers=[("Set-Cookie", "lang=en; Path=/"), ("Set-Cookie", "SID=xyz; Path=/")],
            ),
        })
        transport = make_httpx_transport(handler)

        response = transport.send("POST", "/api/v2/auth/login")

        assert response.header("set-cookie") == "lang=en; Path=/, SID=xyz; Path=/"
        assert transport.get_authentication() == "xyz"

    def test_non_success_status_is_returned(self) -> None:
        handler = RecordingHandler()
        transport = make_httpx_transport(handler)

        response = transport.send("GET", "/api/v2/missing")

        assert response.status_code == 404
        assert not response.is_success()


class TestNetworkErrorMappingProperty:
    """
    Tests for transport failure mapping.

    **Feature: qbittorrent-webapi, Property 7: Transport failures become NetworkError**
    """

    @staticmethod
    def _failing(error: Exception, logger: Optional[AuditLogger] = None) -> HttpxTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            raise error

        return HttpxTransport(
            base_url=BASE_URL, http_transport=httpx.MockTransport(handler), logger=logger
        )

    def test_timeout_maps_to_timeout_code(self) -> None:
        transport = self._failing(httpx.ReadTimeout("read timed out"))

        with pytest.raises(NetworkError) as exc_info:
            transport.send("GET", "/api/v2/app/version")

        assert exc_info.value.code == NetworkErrorCode.TIMEOUT.value
        assert exc_info.value.timeout == transport.timeout
        assert isinstance(exc_info.value.__cause__, httpx.ReadTimeout)

    def test_refused_connection_maps_to_connection_failed(self) -> None:
        transport = self._failing(httpx.ConnectError("[Errno 111] Connection refused"))

        with pytest.raises(NetworkError) as exc_info:
            transport.send("GET", "/api/v2/app/version")

        assert exc_info.value.code == NetworkErrorCode.CONNECTION_FAILED.value
        assert exc_info.value.request_method == "GET"
        assert exc_info.value.request_uri == f"{BASE_URL}/api/v2/app/version"

    def test_resolution_failure_maps_to_dns_failed(self) -> None:
        transport = self._failing(
            httpx.ConnectError("[Errno -2] Name or service not known")
        )

        with pytest.raises(NetworkError) as exc_info:
            transport.send("GET", "/api/v2/app/version")

        assert exc_info.value.code == NetworkErrorCode.DNS_FAILED.value

    def test_certificate_failure_maps_to_ssl_error(self) -> None:
        transport = self._failing(
            httpx.ConnectError("[SSL: CERTIFICATE_VERIFY_FAILED] certificate verify failed")
        )

        with pytest.raises(NetworkError) as exc_info:
            transport.send("GET", "/api/v2/app/version")

        assert exc_info.value.code == NetworkErrorCode.SSL_ERROR.value

    def test_other_transport_errors_map_to_connection_failed(self) -> None:
        transport = self._failing(httpx.RemoteProtocolError("peer closed connection"))

        with pytest.raises(NetworkError) as exc_info:
            transport.send("GET", "/api/v2/app/version")

        assert exc_info.value.code == NetworkErrorCode.CONNECTION_FAILED.value

    def test_failures_are_logged(self) -> None:
        logger = AuditLogger(output_format="json", output_stream=io.StringIO())
        transport = self._failing(
            httpx.ConnectError("[Errno 111] Connection refused"), logger=logger
        )

        with pytest.raises(NetworkError):
            transport.send("GET", "/api/v2/app/version")

        errors = [e for e in logger.entries if e.level is LogLevel.ERROR]
        assert len(errors) == 1
        assert errors[0].data["code"] == NetworkErrorCode.CONNECTION_FAILED.value

    def test_missing_base_url(self) -> None:
        transport = HttpxTransport()

        with pytest.raises(NetworkError) as exc_info:
            transport.send("GET", "/api/v2/app/version")

        assert exc_info.value.code == NetworkErrorCode.NO_BASE_URL.value

    def test_cancelled_before_dispatch_sends_nothing(self) -> None:
        handler = RecordingHandler({
            ("GET", "/api/v2/app/version"): httpx.Response(200, text="v5.0.1"),
        })
        transport = make_httpx_transport(handler)
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(NetworkError) as exc_info:
            transport.send("GET", "/api/v2/app/version", cancel_event=cancel)

        assert exc_info.value.code == NetworkErrorCode.CANCELLED.value
        assert handler.requests == []


class TestStatusPolicyProperty:
    """
    Property-based tests for the raising status policy.

    **Feature: qbittorrent-webapi, Property 8: Raw requests raise on HTTP errors**
    """

    @given(status=st.sampled_from([401, 403]))
    @settings(max_examples=10)
    def test_auth_statuses_raise_access_denied(self, status: int) -> None:
        response = TransportResponse(status_code=status, body="Forbidden")

        with pytest.raises(AuthenticationError) as exc_info:
            decode_response(response, "/api/v2/torrents/info")

        assert exc_info.value.code == AuthErrorCode.ACCESS_DENIED.value
        assert exc_info.value.http_status == status

    @given(status=st.integers(min_value=400, max_value=599).filter(lambda s: s not in (401, 403)))
    @settings(max_examples=100)
    def test_other_error_statuses_raise_http_error(self, status: int) -> None:
        response = TransportResponse(status_code=status, body="error")

        with pytest.raises(ClientError) as exc_info:
            decode_response(response, "/api/v2/torrents/info")

        assert exc_info.value.code == ClientErrorCode.HTTP_ERROR.value
        assert exc_info.value.http_status == status
        assert exc_info.value.is_client_error() == (status < 500)
        assert exc_info.value.is_server_error() == (status >= 500)

    @given(payload=st.lists(st.integers(), max_size=10))
    @settings(max_examples=50)
    def test_json_bodies_are_decoded(self, payload: list) -> None:
        response = TransportResponse(
            status_code=200,
            headers={"Content-Type": "application/json"},
            body=json.dumps(payload),
        )

        assert decode_response(response, "/api/v2/torrents/info") == payload

    @pytest.mark.parametrize("path", [
        "/api/v2/app/version",
        "/api/v2/app/webapiVersion",
        "/api/v2/torrents/add",
    ])
    def test_plain_text_endpoints_return_text(self, path: str) -> None:
        response = TransportResponse(status_code=200, body="v5.0.1")

        assert decode_response(response, path) == "v5.0.1"

    def test_text_plain_content_type_returns_text(self) -> None:
        response = TransportResponse(
            status_code=200,
            headers={"Content-Type": "text/plain; charset=UTF-8"},
            body="/downloads",
        )

        assert decode_response(response, "/api/v2/app/defaultSavePath") == "/downloads"

    def test_unexpected_text_raises_parse_error(self) -> None:
        response = TransportResponse(status_code=200, body="<html>oops</html>")

        with pytest.raises(ClientError) as exc_info:
            decode_response(response, "/api/v2/torrents/info")

        assert exc_info.value.code == ClientErrorCode.JSON_PARSE_ERROR.value

    def test_malformed_json_raises_parse_error(self) -> None:
        response = TransportResponse(
            status_code=200,
            headers={"Content-Type": "application/json"},
            body="{not json",
        )

        with pytest.raises(ClientError) as exc_info:
            decode_response(response, "/api/v2/torrents/info")

        assert exc_info.value.code == ClientErrorCode.JSON_PARSE_ERROR.value

    def test_empty_body_returns_none(self) -> None:
        assert decode_response(TransportResponse(status_code=200), "/api/v2/torrents/pause") is None

    def test_request_applies_policy_over_http(self) -> None:
        handler = RecordingHandler({
            ("GET", "/api/v2/app/version"): httpx.Response(200, text="v5.0.1"),
            ("GET", "/api/v2/torrents/info"): httpx.Response(403, text="Forbidden"),
        })
        transport = make_httpx_transport(handler)

        assert transport.get("/api/v2/app/version") == "v5.0.1"
        with pytest.raises(AuthenticationError):
            transport.get("/api/v2/torrents/info")


class TestTransportLifecycleProperty:
    """
    Tests for transport configuration and lifecycle.

    **Feature: qbittorrent-webapi, Property 9: Reconfiguration performs no I/O**
    """

    def test_implementations_satisfy_protocol(self) -> None:
        assert isinstance(HttpxTransport(base_url=BASE_URL), Transport)
        assert isinstance(StubTransport(), Transport)

    def test_base_url_trailing_slash_is_stripped(self) -> None:
        handler = RecordingHandler({
            ("GET", "/api/v2/app/version"): httpx.Response(200, text="v5.0.1"),
        })
        transport = make_httpx_transport(handler)
        transport.set_base_url("http://other.test:9090/")

        transport.send("GET", "api/v2/app/version")

        assert transport.base_url == "http://other.test:9090"
        assert str(handler.requests[0].url) == "http://other.test:9090/api/v2/app/version"

    def test_reconfiguration_keeps_token(self) -> None:
        handler = RecordingHandler()
        transport = make_httpx_transport(handler)
        transport.set_authentication("abc")

        transport.set_timeout(5.0)
        transport.set_connect_timeout(2.0)
        transport.set_verify_ssl(False)
        transport.set_proxy(None)

        assert transport.get_authentication() == "abc"
        assert transport.timeout == 5.0
        assert transport.connect_timeout == 2.0
        assert handler.requests == []

    def test_close_is_idempotent(self) -> None:
        handler = RecordingHandler({
            ("GET", "/api/v2/app/version"): httpx.Response(200, text="v5.0.1"),
        })
        with make_httpx_transport(handler) as transport:
            transport.send("GET", "/api/v2/app/version")
            transport.set_timeout(3.0)
            transport.send("GET", "/api/v2/app/version")
        transport.close()

        assert len(handler.requests) == 2

    def test_concurrent_sends_share_one_token(self) -> None:
        handler = RecordingHandler({
            ("GET", "/api/v2/app/version"): httpx.Response(200, text="v5.0.1"),
        })
        transport = make_httpx_transport(handler)
        transport.set_authentication("shared")

        threads = [
            threading.Thread(target=transport.send, args=("GET", "/api/v2/app/version"))
            for _ in range(8)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(handler.requests) == 8
        assert all(r.headers["Cookie"] == "SID=shared" for r in handler.requests)


class TestTransportResponseProperty:
    """
    Property-based tests for TransportResponse.

    **Feature: qbittorrent-webapi, Property 10: Raw responses are inspectable**
    """

    @given(status=st.integers(min_value=100, max_value=599))
    @settings(max_examples=100)
    def test_is_success_matches_2xx(self, status: int) -> None:
        response = TransportResponse(status_code=status)

        assert response.is_success() == (200 <= status < 300)
        assert response.is_success(status)

    def test_header_lookup_is_case_insensitive(self) -> None:
        response = TransportResponse(status_code=200, headers={"Content-Type": "application/json"})

        assert response.header("content-type") == "application/json"
        assert response.header("X-Missing") is None

    def test_json_property_tolerates_bad_bodies(self) -> None:
        assert TransportResponse(status_code=200, body="").json is None
        assert TransportResponse(status_code=200, body="nope").json is None
        assert TransportResponse(status_code=200, body='{"a": 1}').json == {"a": 1}
