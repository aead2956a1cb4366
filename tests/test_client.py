"""Tests for the ConsoleAPI endpoint operations and login handling."""

import json
from pathlib import Path

import pytest
import requests

from hipay_console import ApiResponse, ConsoleAPI, Settings, TransportErrorCode
from hipay_console.client import decode_json_body, try_decode_json
from hipay_console.transport.executor import TransportResult

LOGIN_PAYLOAD = {"token_type": "Bearer", "access_token": "abc", "expires_in": 3600}


# ------------------------- Login -------------------------


def test_login_stores_token_for_next_requests(transport, api: ConsoleAPI) -> None:
    """Test that a successful login adds the auth header to later calls."""
    transport.reply(200, LOGIN_PAYLOAD).reply(200, {"items": []})

    response = api.login("user@example.com", "secret")
    api.list_export_trending_balance()

    login_call, next_call = transport.calls
    assert login_call.method == "POST"
    assert login_call.url == "https://console.test/api/login"
    assert json.loads(login_call.data) == {"username": "user@example.com", "password": "secret"}
    assert "x-Authorization" not in login_call.headers
    assert next_call.headers["x-Authorization"] == "Bearer abc"
    assert response.data == LOGIN_PAYLOAD
    assert api.is_authenticated
    assert api.auth_token.expires_in == 3600


def test_failed_login_clears_previous_token(transport, api: ConsoleAPI) -> None:
    """Test that an unparsable login response drops the stored token."""
    transport.reply(200, LOGIN_PAYLOAD)
    api.login("user", "secret")
    assert api.is_authenticated

    transport.reply(502, "<html>Bad Gateway</html>").reply(200, "{}")
    response = api.login("user", "secret")
    api.list_export_trending_balance()

    assert response.data == {}
    assert response.status_code == 502
    assert api.auth_token is None
    assert not api.is_authenticated
    assert "x-Authorization" not in transport.last.headers


def test_login_transport_failure_clears_token(transport, api: ConsoleAPI) -> None:
    """Test that an unreachable login endpoint also clears the token."""
    transport.reply(200, LOGIN_PAYLOAD).fail(requests.exceptions.ConnectionError("refused"))
    api.login("user", "secret")

    response = api.login("user", "secret")

    assert response.errno_transport == TransportErrorCode.COULDNT_CONNECT
    assert response.data == {}
    assert not api.is_authenticated


def test_login_json_without_token_fields(transport, api: ConsoleAPI) -> None:
    """Test that any JSON object replaces the token, but only usable ones are sent."""
    transport.reply(200, LOGIN_PAYLOAD)
    api.login("user", "secret")

    transport.reply(401, {"code": 401, "message": "Invalid credentials."}).reply(200, "{}")
    response = api.login("user", "wrong")
    api.get_export(1)

    assert response.data == {"code": 401, "message": "Invalid credentials."}
    assert api.auth_token is not None
    assert not api.is_authenticated
    assert "x-Authorization" not in transport.last.headers


def test_login_does_not_log_credentials(transport, api: ConsoleAPI, caplog: pytest.LogCaptureFixture) -> None:
    """Test that neither the password nor the token reach the logs."""
    caplog.set_level("DEBUG")
    transport.reply(200, LOGIN_PAYLOAD)
    api.login("user", "s3cr3t-pw")
    assert "s3cr3t-pw" not in caplog.text
    assert "Bearer abc" not in caplog.text


def test_login_token_outside_latin1(transport, api: ConsoleAPI) -> None:
    """Test that an unusual token does not break later calls."""
    transport.reply(200, {"token_type": "Bearer", "access_token": "jeton-é€"})
    api.login("user", "secret")

    response = api.list_export_trending_balance()

    assert response.errno_transport == 0
    assert transport.last.headers["x-Authorization"] == "Bearer jeton-é€".encode("utf-8")


# ------------------------- Endpoint mapping -------------------------


def test_send_export_file(transport, api: ConsoleAPI) -> None:
    """Test GET export-files/{id}/email."""
    api.send_export_file(12, "a b&c")
    assert transport.last.method == "GET"
    assert transport.last.url == "https://console.test/api/export-files/12/email?hash=a%20b%26c"


@pytest.mark.parametrize("send_by_email,flag", [(False, "false"), (True, "true")])
def test_regenerate_export_file(transport, api: ConsoleAPI, send_by_email: bool, flag: str) -> None:
    """Test GET export-files/{id}/regenerate."""
    api.regenerate_export_file(12, "h1", send_by_email=send_by_email)
    assert transport.last.url == (
        f"https://console.test/api/export-files/12/regenerate?hash=h1&send_by_email={flag}"
    )


def test_regenerate_export_file_default_does_not_email(transport, api: ConsoleAPI) -> None:
    """Test the default of send_by_email."""
    api.regenerate_export_file(12, "h1")
    assert transport.last.url.endswith("send_by_email=false")


def test_list_export_file_sends_all_filters(transport, api: ConsoleAPI) -> None:
    """Test that empty filters are still part of the query."""
    api.list_export_file(3)
    assert transport.last.url == (
        "https://console.test/api/exports/3/files?dateCreated=&status=&filename=&dateRegenerated="
    )

    api.list_export_file(3, date_created="2024-04-25", status="stocked", filename="ALL ACCOUNTS.csv")
    assert transport.last.url == (
        "https://console.test/api/exports/3/files?dateCreated=2024-04-25&status=stocked"
        "&filename=ALL%20ACCOUNTS.csv&dateRegenerated="
    )


def test_create_export_file(transport, api: ConsoleAPI) -> None:
    """Test POST exports/{exportId}/files."""
    data = {"export": "/api/exports/3", "status": "created", "nbItems": "10"}
    api.create_export_file(3, data)
    assert transport.last.method == "POST"
    assert transport.last.url == "https://console.test/api/exports/3/files"
    assert json.loads(transport.last.data) == data


def test_list_export_uses_filters_as_query(transport, api: ConsoleAPI) -> None:
    """Test GET exports with a filter mapping."""
    transport.reply(200, [{"id": 1}, {"id": 2}])
    response = api.list_export({"module": "transaction", "status": "active"})
    assert transport.last.method == "GET"
    assert transport.last.url == "https://console.test/api/exports?module=transaction&status=active"
    assert response.data == [{"id": 1}, {"id": 2}]


def test_create_export(transport, api: ConsoleAPI) -> None:
    """Test POST exports."""
    data = {"module": "transaction", "filePrefix": "ALL_ACCOUNTS", "receiveByEmail": True}
    api.create_export(data)
    assert transport.last.method == "POST"
    assert transport.last.url == "https://console.test/api/exports"
    assert json.loads(transport.last.data) == data


def test_list_export_trending_balance(transport, api: ConsoleAPI) -> None:
    """Test GET exports/trending-balance."""
    api.list_export_trending_balance()
    assert transport.last.method == "GET"
    assert transport.last.url == "https://console.test/api/exports/trending-balance"


@pytest.mark.parametrize("with_files,flag", [(True, "true"), (False, "false")])
def test_get_export(transport, api: ConsoleAPI, with_files: bool, flag: str) -> None:
    """Test GET exports/{id}."""
    api.get_export(9, with_export_files=with_files)
    assert transport.last.url == f"https://console.test/api/exports/9?withExportFiles={flag}"


def test_delete_export(transport, api: ConsoleAPI) -> None:
    """Test DELETE exports/{id}."""
    transport.reply(204, "")
    response = api.delete_export(9)
    assert transport.last.method == "DELETE"
    assert transport.last.url == "https://console.test/api/exports/9"
    assert transport.last.data is None
    assert response.status_code == 204
    assert response.reason == "No Content"
    assert response.data == {}
    assert response.ok


def test_replace_export(transport, api: ConsoleAPI) -> None:
    """Test PUT exports/{id}."""
    api.replace_export("9", {"status": "inactive"})
    assert transport.last.method == "PUT"
    assert transport.last.url == "https://console.test/api/exports/9"
    assert json.loads(transport.last.data) == {"status": "inactive"}


def test_download_export_file(transport, api: ConsoleAPI, tmp_path: Path) -> None:
    """Test GET export-files/{id} streamed to a file."""
    destination = tmp_path / "export.csv"
    transport.reply(200, "a;b\n1;2\n")

    response = api.download_export_file(5, "hash1", destination)

    assert transport.last.method == "GET"
    assert transport.last.url == "https://console.test/api/export-files/5?hash=hash1"
    assert destination.read_text() == "a;b\n1;2\n"
    assert response.data == {}
    assert response.transport.body == "a;b\n1;2\n"


# ------------------------- Response decoding -------------------------


def test_http_error_body_is_decoded(transport, api: ConsoleAPI) -> None:
    """Test that error payloads are decoded like successful ones."""
    transport.reply(404, {"message": "Export not found"})
    response = api.get_export(404)
    assert response.status_code == 404
    assert response.reason == "Not Found"
    assert response.data == {"message": "Export not found"}
    assert not response.ok


def test_invalid_json_becomes_empty_dict() -> None:
    """Test the empty-structure fallback."""
    assert try_decode_json("") == (False, {})
    assert try_decode_json("<html>") == (False, {})
    assert try_decode_json('{"a": 1}') == (True, {"a": 1})

    result = TransportResult.success(200, "not json")
    assert decode_json_body(result).data == {}


def test_transport_failure_response(transport, api: ConsoleAPI) -> None:
    """Test the ApiResponse of an unreachable API."""
    transport.fail(requests.exceptions.ConnectTimeout("timed out"))

    response = api.get_export(1)

    assert response.errno_transport == TransportErrorCode.OPERATION_TIMEDOUT
    assert response.errmsg_transport.startswith("Timeout was reached")
    assert response.status_code == 0
    assert response.reason == ""
    assert response.data == {}
    assert response.as_dict() == {
        "errno_transport": 28,
        "errmsg_transport": response.errmsg_transport,
        "errno_http": 0,
        "errmsg_http": "",
        "response": {},
    }


def test_api_response_is_frozen() -> None:
    """Test that results are immutable."""
    response = ApiResponse(transport=TransportResult.success(200, "{}"), data={})
    with pytest.raises(AttributeError):
        response.data = []  # type: ignore[misc]


# ------------------------- Construction -------------------------


def test_base_url_normalized() -> None:
    """Test the trailing slash normalization."""
    assert ConsoleAPI("https://console.test/api").base_url == "https://console.test/api/"
    assert ConsoleAPI("https://console.test/api//").base_url == "https://console.test/api/"


def test_default_base_url_is_production() -> None:
    """Test the production default."""
    assert ConsoleAPI().base_url == "https://console.hipay.com/api/"


def test_settings_are_used(transport) -> None:
    """Test that settings flow to the executor."""
    api = ConsoleAPI(settings=Settings(base_url="https://stage.test/api", verify_tls=True, connect_timeout=1.5))
    api.list_export_trending_balance()
    assert transport.last.url == "https://stage.test/api/exports/trending-balance"
    assert transport.last.kwargs["verify"] is True
    assert transport.last.kwargs["timeout"] == (1.5, 30.0)
