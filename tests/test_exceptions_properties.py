"""
Property-based tests for the exception hierarchy.

Uses Hypothesis for property-based testing to verify that every error
carries a stable code, a message and serializable details.
"""

import json

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from qbittorrent_webapi.enums import (
    AuthErrorCode,
    ClientErrorCode,
    NetworkErrorCode,
    ValidationErrorCode,
)
from qbittorrent_webapi.exceptions import (
    ApiRuntimeError,
    AuthenticationError,
    ClientError,
    NetworkError,
    QBittorrentError,
    ValidationError,
)
from qbittorrent_webapi.validation import ValidationResult


@st.composite
def operation_strategy(draw) -> str:
    return draw(st.sampled_from([
        "LOGIN", "LOGOUT", "GET_VERSION", "GET_TORRENTS", "ADD_TRACKERS", "START_SEARCH",
    ]))


def all_errors() -> list[QBittorrentError]:
    network = NetworkError.timed_out("http://localhost:8080/api/v2/app/version", "GET", 30.0)
    return [
        ValidationError.missing_parameter("hash"),
        ValidationError.out_of_range("limit", -1, 0, 100),
        network,
        NetworkError.dns_failed("http://nas.local/api", "GET", "nas.local"),
        NetworkError.ssl_error("https://localhost", "GET", "certificate verify failed"),
        NetworkError.no_base_url(),
        ClientError.http_error(500, "boom", "/api/v2/torrents/info"),
        ClientError.json_parse_error("<html>", "body is not JSON"),
        AuthenticationError.access_denied(401, "/api/v2/app/version"),
        AuthenticationError.invalid_credentials("admin"),
        AuthenticationError.session_expired("admin"),
        AuthenticationError.token_missing(),
        AuthenticationError.not_logged_in("/api/v2/torrents/info"),
        ApiRuntimeError.from_network_error("GET_VERSION", network, "/api/v2/app/version", "GET"),
        ApiRuntimeError.response_parse_error("/api/v2/app/buildInfo", "GET", "bad payload"),
    ]


class TestErrorStructureProperty:
    """
    Tests for structured error information.

    **Feature: qbittorrent-webapi, Property 32: Every error serializes with code and message**
    """

    @pytest.mark.parametrize("error", all_errors(), ids=lambda e: e.code)
    def test_to_dict_is_json_serializable(self, error: QBittorrentError) -> None:
        data = error.to_dict()

        assert data["error_type"] == type(error).__name__
        assert data["code"] == error.code
        assert data["message"] == str(error)
        json.dumps(data)

    @pytest.mark.parametrize("error", all_errors(), ids=lambda e: e.code)
    def test_repr_names_code(self, error: QBittorrentError) -> None:
        assert error.code in repr(error)
        assert repr(error).startswith(type(error).__name__)

    def test_category_predicates(self) -> None:
        network = NetworkError.connection_failed("http://x", "GET")
        auth = AuthenticationError.access_denied(403)

        assert network.is_network_error()
        assert not network.is_authentication_error()
        assert auth.is_authentication_error()
        assert auth.is_client_error()
        assert not auth.is_server_error()

    def test_codes_come_from_enums(self) -> None:
        assert NetworkError.no_base_url().code == NetworkErrorCode.NO_BASE_URL.value
        assert ClientError.http_error(404, "").code == ClientErrorCode.HTTP_ERROR.value
        assert AuthenticationError.token_missing().code == AuthErrorCode.TOKEN_MISSING.value
        assert ValidationError("x").code == ValidationErrorCode.VALIDATION_ERROR.value


class TestValidationErrorProperty:
    """
    Property-based tests for validation errors.

    **Feature: qbittorrent-webapi, Property 33: Validation errors carry every violation**
    """

    @given(fields=st.dictionaries(
        st.text(alphabet="abcdefghijklmnopqrstuvwxyz", min_size=1, max_size=10),
        st.text(min_size=1, max_size=30),
        min_size=1,
        max_size=8,
    ))
    @settings(max_examples=100)
    def test_from_validation_result_keeps_all_fields(self, fields: dict) -> None:
        result = ValidationResult()
        for name, message in fields.items():
            result.add_error(name, message)
        result.add_warning("heads up")

        error = ValidationError.from_validation_result(result)

        assert error.validation_errors == fields
        assert error.details["validation_errors"] == fields
        assert error.details["warnings"] == ["heads up"]
        assert result.first_error() in error.message

    def test_missing_parameter_names_field(self) -> None:
        error = ValidationError.missing_parameter("username")

        assert error.field == "username"
        assert error.details["field"] == "username"
        assert error.code == ValidationErrorCode.MISSING_PARAMETER.value


class TestApiRuntimeErrorProperty:
    """
    Property-based tests for façade runtime errors.

    **Feature: qbittorrent-webapi, Property 34: Network failures are named after the operation**
    """

    @given(operation=operation_strategy())
    @settings(max_examples=20)
    def test_code_derived_from_operation(self, operation: str) -> None:
        network = NetworkError.connection_failed("http://x/api", "POST", "refused")

        error = ApiRuntimeError.from_network_error(
            operation, network, "/api/v2/x", "POST", {"endpoint": "x"}
        )

        assert error.code == f"{operation}_NETWORK_ERROR"
        assert error.details["network_error_code"] == NetworkErrorCode.CONNECTION_FAILED.value
        assert error.request_context == {"request_summary": {"endpoint": "x"}}
        assert network.message in error.message

    def test_formatted_message(self) -> None:
        error = ApiRuntimeError(
            code="X",
            message="Something broke",
            api_endpoint="/api/v2/app/version",
            http_method="GET",
            http_status=502,
        )

        assert error.formatted_message() == "Something broke [GET /api/v2/app/version, HTTP 502]"
        assert ApiRuntimeError(code="X", message="plain").formatted_message() == "plain"

    def test_timeout_error_details(self) -> None:
        error = NetworkError.timed_out("http://x/api", "GET", 12.0)

        assert error.details == {"method": "GET", "uri": "http://x/api", "timeout": 12.0}
