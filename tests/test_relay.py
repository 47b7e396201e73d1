"""Tests for the credential-hiding relay."""

from __future__ import annotations

import httpx
import pytest

from conftest import GROUPED_VALUES, SHEET_ID, metadata_body
from schedule_viewer.relay.app import create_app


class FakeSheets:
    """Records upstream calls and answers like the Sheets API."""

    def __init__(self, titles=("EmceePRT", "TeamListbyNumber"), status=200, body=None):
        self.titles = titles
        self.status = status
        self.body = body
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status != 200:
            return httpx.Response(self.status, json=self.body)
        if "/values/" in request.url.path:
            return httpx.Response(200, json={"range": "x", "values": GROUPED_VALUES})
        return httpx.Response(200, json=metadata_body(*self.titles))

    @property
    def last_range(self) -> str:
        return self.requests[-1].url.path.split("/values/")[1]


@pytest.fixture
def upstream() -> FakeSheets:
    return FakeSheets()


@pytest.fixture
def relay_settings(test_settings):
    return test_settings.model_copy(update={"google_sheets_api_key": "server-key"})


@pytest.fixture
def client(relay_settings, upstream):
    http = httpx.Client(transport=httpx.MockTransport(upstream))
    app = create_app(relay_settings, client=http)
    app.config["TESTING"] = True
    return app.test_client()


def test_values_with_full_range(client, upstream) -> None:
    response = client.get("/api-proxy", query_string={"sheetId": SHEET_ID, "range": "EmceePRT!A:ZZ"})
    assert response.status_code == 200
    assert response.get_json()["values"] == GROUPED_VALUES
    assert len(upstream.requests) == 1
    assert upstream.last_range == "EmceePRT!A:ZZ"
    assert upstream.requests[0].url.params["key"] == "server-key"


def test_sheet_name_with_bare_range(client, upstream) -> None:
    response = client.get("/", query_string={"sheetId": SHEET_ID, "sheetName": "Schedule", "range": "A:C"})
    assert response.status_code == 200
    assert upstream.last_range == "Schedule!A:C"


def test_first_tab_when_no_sheet_name(client, upstream) -> None:
    response = client.get("/api-proxy", query_string={"sheetId": SHEET_ID})
    assert response.status_code == 200
    assert [r.url.path for r in upstream.requests][0] == f"/v4/spreadsheets/{SHEET_ID}"
    assert upstream.last_range == "EmceePRT!A:ZZ"


def test_metadata_action(client, upstream) -> None:
    response = client.get("/api-proxy", query_string={"sheetId": SHEET_ID, "action": "metadata"})
    assert response.status_code == 200
    assert response.get_json() == metadata_body("EmceePRT", "TeamListbyNumber")


def test_cors_headers_on_every_response(client) -> None:
    ok = client.get("/api-proxy", query_string={"sheetId": SHEET_ID, "range": "A!A:B"})
    bad = client.get("/api-proxy")
    for response in (ok, bad):
        assert response.headers["Access-Control-Allow-Origin"] == "*"
        assert response.headers["Access-Control-Allow-Headers"] == "Content-Type"


@pytest.mark.parametrize("method", ["post", "put", "delete", "options"])
def test_non_get_rejected(client, upstream, method) -> None:
    response = getattr(client, method)("/api-proxy", query_string={"sheetId": SHEET_ID})
    assert response.status_code == 405
    assert response.get_json() == {"error": "Method not allowed"}
    assert upstream.requests == []


def test_missing_sheet_id(client) -> None:
    response = client.get("/api-proxy")
    assert response.status_code == 400
    assert response.get_json() == {"error": "sheetId parameter required"}


def test_missing_server_key(test_settings, upstream) -> None:
    app = create_app(test_settings, client=httpx.Client(transport=httpx.MockTransport(upstream)))
    response = app.test_client().get("/api-proxy", query_string={"sheetId": SHEET_ID})
    assert response.status_code == 500
    assert response.get_json() == {"error": "API key not configured"}
    assert upstream.requests == []


def test_upstream_error_passed_through(relay_settings) -> None:
    upstream = FakeSheets(status=404, body={"error": {"code": 404, "message": "Requested entity was not found."}})
    app = create_app(relay_settings, client=httpx.Client(transport=httpx.MockTransport(upstream)))
    response = app.test_client().get(
        "/api-proxy", query_string={"sheetId": SHEET_ID, "range": "EmceePRT!A:ZZ"}
    )
    assert response.status_code == 404
    assert response.get_json() == {"error": "Requested entity was not found."}


def test_metadata_failure_while_resolving_tab(relay_settings) -> None:
    upstream = FakeSheets(status=403, body={"error": {"message": "The caller does not have permission"}})
    app = create_app(relay_settings, client=httpx.Client(transport=httpx.MockTransport(upstream)))
    response = app.test_client().get("/api-proxy", query_string={"sheetId": SHEET_ID})
    assert response.status_code == 500
    assert response.get_json() == {"error": "The caller does not have permission"}


def test_spreadsheet_without_tabs(relay_settings) -> None:
    upstream = FakeSheets(titles=())
    app = create_app(relay_settings, client=httpx.Client(transport=httpx.MockTransport(upstream)))
    response = app.test_client().get("/api-proxy", query_string={"sheetId": SHEET_ID})
    assert response.status_code == 500
    assert response.get_json() == {"error": "No sheets found in spreadsheet"}


def test_network_failure(relay_settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    app = create_app(relay_settings, client=httpx.Client(transport=httpx.MockTransport(handler)))
    response = app.test_client().get(
        "/api-proxy", query_string={"sheetId": SHEET_ID, "range": "EmceePRT!A:ZZ"}
    )
    assert response.status_code == 502
    assert response.get_json()["error"].startswith("Upstream request failed")


@pytest.mark.parametrize("query", [{"action": "metadata"}, {"range": "EmceePRT!A:ZZ"}, {}])
def test_non_json_upstream_success_is_bad_gateway(relay_settings, query) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>not json</html>")

    app = create_app(relay_settings, client=httpx.Client(transport=httpx.MockTransport(handler)))
    response = app.test_client().get("/api-proxy", query_string={"sheetId": SHEET_ID, **query})
    assert response.status_code == 502
    assert response.get_json() == {"error": "Invalid JSON in upstream response"}
