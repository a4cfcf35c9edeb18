"""
Property-based tests for request validation.

Uses Hypothesis for property-based testing to verify that validation is
fail-complete and enforces the documented bounds before any network I/O.
"""

import string

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from qbittorrent_webapi.auth import LoginRequest, LoginRequestBuilder
from qbittorrent_webapi.enums import ValidationErrorCode
from qbittorrent_webapi.exceptions import ValidationError
from qbittorrent_webapi.request_factory import RequestKind, build_request
from qbittorrent_webapi.search import GetSearchResultsRequest, StartSearchRequest
from qbittorrent_webapi.torrents import (
    AddTorrentRequest,
    AddTorrentRequestBuilder,
    AddTrackersRequest,
    AddTrackersRequestBuilder,
    DeleteTorrentsRequest,
    TorrentOptions,
)
from qbittorrent_webapi.validation import (
    ValidationResult,
    hash_error,
    tracker_url_error,
)

from conftest import VALID_HASH


# Strategies for generating test data

@st.composite
def torrent_hash_strategy(draw) -> str:
    """Generate valid 40 character hex hashes in mixed case."""
    return draw(st.text(alphabet="0123456789abcdefABCDEF", min_size=40, max_size=40))


@st.composite
def invalid_hash_strategy(draw) -> str:
    """Generate strings that are not 40 hex characters."""
    return draw(st.one_of(
        st.text(alphabet="0123456789abcdef", min_size=0, max_size=39),
        st.text(alphabet="0123456789abcdef", min_size=41, max_size=60),
        st.text(alphabet="ghijklmnopxyz", min_size=40, max_size=40),
    ))


@st.composite
def credential_strategy(draw) -> str:
    """Generate non-blank credentials within the length bound."""
    return draw(st.text(
        alphabet=string.ascii_letters + string.digits + "_-.",
        min_size=1,
        max_size=255,
    ))


@st.composite
def blank_strategy(draw) -> str:
    return draw(st.sampled_from(["", " ", "   ", "\t", "\n"]))


class TestValidationCompletenessProperty:
    """
    Property-based tests for fail-complete validation.

    **Feature: qbittorrent-webapi, Property 1: Every violated rule is reported**
    """

    def test_add_trackers_reports_hash_and_urls_together(self) -> None:
        """An AddTrackers request with an empty hash and no URLs reports both violations."""
        result = AddTrackersRequest("", []).validate()

        assert not result.is_valid
        assert "hash" in result.errors
        assert "urls" in result.errors
        assert len(result.errors) >= 2

    @given(
        bad_hash=invalid_hash_strategy(),
        bad_urls=st.lists(st.sampled_from(["", "ftp://tracker", "not a url"]), min_size=1, max_size=5),
    )
    @settings(max_examples=100)
    def test_each_bad_tracker_url_is_reported(self, bad_hash: str, bad_urls: list) -> None:
        """
        *For any* invalid hash and list of invalid tracker URLs, validate()
        SHALL report the hash plus one entry per URL.
        """
        result = AddTrackersRequest(bad_hash, bad_urls).validate()

        assert "hash" in result.errors
        for index in range(len(bad_urls)):
            assert f"urls[{index}]" in result.errors
        assert len(result.errors) >= len(bad_urls) + 1

    @given(username=blank_strategy(), password=blank_strategy())
    @settings(max_examples=50)
    def test_login_reports_both_blank_credentials(self, username: str, password: str) -> None:
        result = LoginRequest(username, password).validate()

        assert set(result.errors) >= {"username", "password"}

    def test_add_torrent_collects_option_errors(self) -> None:
        options = TorrentOptions(
            category="bad/category",
            download_limit=-5,
            ratio_limit=-3,
            seeding_time_limit=-10,
        )
        result = AddTorrentRequest(urls=["ftp://nope"], options=options).validate()

        assert set(result.errors) >= {
            "urls[0]",
            "category",
            "dlLimit",
            "ratioLimit",
            "seedingTimeLimit",
        }

    def test_result_merge_keeps_first_message_per_field(self) -> None:
        first = ValidationResult()
        first.add_error("hash", "first")
        second = ValidationResult()
        second.add_error("hash", "second")
        second.add_error("urls", "missing")
        second.add_warning("careful")

        first.merge(second)

        assert first.errors == {"hash": "first", "urls": "missing"}
        assert first.warnings == ["careful"]
        assert first.first_error() == "first"


class TestBoundsProperty:
    """
    Property-based tests for parameter bounds.

    **Feature: qbittorrent-webapi, Property 2: Numeric and string bounds**
    """

    @given(torrent_hash=torrent_hash_strategy())
    @settings(max_examples=100)
    def test_valid_hashes_accepted_in_any_case(self, torrent_hash: str) -> None:
        assert hash_error(torrent_hash) is None

    @given(bad_hash=invalid_hash_strategy())
    @settings(max_examples=100)
    def test_invalid_hashes_rejected(self, bad_hash: str) -> None:
        assert hash_error(bad_hash) is not None

    @given(username=credential_strategy(), password=credential_strategy())
    @settings(max_examples=100)
    def test_credentials_within_bounds_are_valid(self, username: str, password: str) -> None:
        assert LoginRequest(username, password).validate().is_valid

    @given(extra=st.integers(min_value=1, max_value=50))
    @settings(max_examples=30)
    def test_overlong_credentials_rejected(self, extra: int) -> None:
        result = LoginRequest("a" * (255 + extra), "b" * (255 + extra)).validate()

        assert set(result.errors) == {"username", "password"}

    @given(
        limit=st.integers(min_value=0, max_value=10_000),
        offset=st.integers(min_value=0, max_value=10_000),
    )
    @settings(max_examples=100)
    def test_non_negative_pagination_is_valid(self, limit: int, offset: int) -> None:
        request = GetSearchResultsRequest(1, limit=limit, offset=offset)

        assert request.validate().is_valid
        if limit == 0:
            assert "limit" not in request.to_dict()

    @given(
        limit=st.integers(max_value=-1),
        offset=st.integers(max_value=-1),
    )
    @settings(max_examples=100)
    def test_negative_pagination_rejected(self, limit: int, offset: int) -> None:
        result = GetSearchResultsRequest(1, limit=limit, offset=offset).validate()

        assert set(result.errors) >= {"limit", "offset"}

    @given(pattern=blank_strategy(), category=blank_strategy())
    @settings(max_examples=50)
    def test_search_pattern_and_category_must_not_be_blank(
        self, pattern: str, category: str
    ) -> None:
        result = StartSearchRequest(pattern, category=category).validate()

        assert set(result.errors) >= {"pattern", "category"}

    @pytest.mark.parametrize("url", [
        "http://tracker.example.com/announce",
        "https://tracker.example.com:443/announce",
        "udp://tracker.example.com:1337",
    ])
    def test_tracker_schemes_accepted(self, url: str) -> None:
        assert tracker_url_error("url", url) is None

    def test_too_many_trackers_rejected(self) -> None:
        urls = [f"udp://tracker{i}.example.com:80" for i in range(101)]

        result = AddTrackersRequest(VALID_HASH, urls).validate()

        assert "urls" in result.errors

    def test_all_wildcard_accepted_for_hash_lists(self) -> None:
        assert DeleteTorrentsRequest("all").validate().is_valid
        assert DeleteTorrentsRequest([VALID_HASH, VALID_HASH.upper()]).validate().is_valid


class TestBuilderProperty:
    """
    Tests for request builders.

    **Feature: qbittorrent-webapi, Property 3: Builders refuse incomplete requests**
    """

    def test_login_builder_requires_username(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            LoginRequestBuilder().password("secret").build()

        assert exc_info.value.code == ValidationErrorCode.MISSING_PARAMETER.value
        assert exc_info.value.field == "username"

    def test_login_builder_applies_full_validation(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            LoginRequestBuilder().username("admin").password(" ").build()

        assert "password" in exc_info.value.validation_errors

    def test_login_builder_builds_with_origin_headers(self) -> None:
        request = (
            LoginRequestBuilder()
            .username("admin")
            .password("secret")
            .origin("http://localhost:8080")
            .build()
        )

        assert request.headers()["Referer"] == "http://localhost:8080"
        assert request.headers()["Origin"] == "http://localhost:8080"
        assert "password" not in request.summary()
        assert request.summary()["password_length"] == 6

    def test_add_trackers_builder_requires_hash(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            AddTrackersRequestBuilder().url("udp://tracker.example.com:80").build()

        assert exc_info.value.code == ValidationErrorCode.MISSING_PARAMETER.value

    def test_add_trackers_builder_joins_urls_with_newlines(self) -> None:
        request = (
            AddTrackersRequestBuilder()
            .hash(VALID_HASH)
            .url("udp://a.example.com:80")
            .url("http://b.example.com/announce")
            .build()
        )

        assert request.to_dict() == {
            "hash": VALID_HASH,
            "urls": "udp://a.example.com:80\nhttp://b.example.com/announce",
        }

    def test_add_torrent_builder_requires_url_or_file(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            AddTorrentRequestBuilder().category("movies").build()

        assert exc_info.value.code == ValidationErrorCode.MISSING_PARAMETER.value

    def test_add_torrent_builder_serializes_options(self) -> None:
        request = (
            AddTorrentRequestBuilder()
            .url("magnet:?xt=urn:btih:" + VALID_HASH)
            .torrent_file("linux.torrent", b"d8:announce0:e")
            .category("iso")
            .tags(["linux", "debian"])
            .paused()
            .build()
        )

        params = request.to_dict()
        assert params["urls"].startswith("magnet:")
        assert params["category"] == "iso"
        assert params["tags"] == "linux,debian"
        assert params["paused"] == "true"
        assert params["skip_checking"] == "false"
        assert [part.filename for part in request.files()] == ["linux.torrent"]
        assert request.summary()["file_count"] == 1


class TestRequestFactoryProperty:
    """
    Tests for the request dispatch table.

    **Feature: qbittorrent-webapi, Property 4: Requests are built by kind**
    """

    def test_every_kind_has_a_constructor(self) -> None:
        from qbittorrent_webapi.request_factory import REQUEST_CONSTRUCTORS

        assert set(REQUEST_CONSTRUCTORS) == set(RequestKind)

    def test_builds_validated_request(self) -> None:
        request = build_request(RequestKind.START_SEARCH, pattern="ubuntu", plugins=["a", "b"])

        assert request.to_dict() == {"pattern": "ubuntu", "plugins": "a|b", "category": "all"}

    def test_invalid_parameters_raise(self) -> None:
        with pytest.raises(ValidationError):
            build_request(RequestKind.START_SEARCH, pattern="  ")

    def test_unknown_keyword_raises_validation_error(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            build_request(RequestKind.GET_VERSION, bogus=1)

        assert exc_info.value.code == ValidationErrorCode.INVALID_PARAMETER.value

    def test_request_id_is_stable(self) -> None:
        first = build_request(RequestKind.PAUSE_TORRENTS, hashes=[VALID_HASH])
        second = build_request(RequestKind.PAUSE_TORRENTS, hashes=[VALID_HASH])

        assert first.request_id() == second.request_id()
        assert first.request_id() != build_request(
            RequestKind.START_TORRENTS, hashes=[VALID_HASH]
        ).request_id()
