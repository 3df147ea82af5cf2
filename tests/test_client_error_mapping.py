import httpx
import pytest

from sheets_mcp.config import SheetsConfig
from sheets_mcp.sheets_api import (
    InvalidRangeError,
    PermissionDeniedError,
    QuotaExceededError,
    ServiceUnreachableError,
    SheetsApiClient,
    SheetsApiError,
    SpreadsheetNotFoundError,
    UnauthorizedError,
)

CONFIG = SheetsConfig(
    sheets_base_url="https://sheets.test/v4",
    drive_base_url="https://drive.test/v3",
)


class MockResponse:
    def __init__(self, status_code: int, json_body):
        self.status_code = status_code
        self._json = json_body

    def json(self):
        if isinstance(self._json, Exception):
            raise self._json
        return self._json


class MockAsyncClient:
    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    async def request(self, method, url, params=None, json=None, headers=None):
        self.calls.append({"method": method, "url": url, "params": params, "json": json, "headers": headers})
        if not self.responses:
            raise RuntimeError("No mock responses")
        return self.responses.pop(0)

    async def aclose(self):
        return None


class StaticToken:
    async def token(self):
        return "test-token"


def _client(*responses):
    mock = MockAsyncClient(list(responses))
    return SheetsApiClient(CONFIG, async_client=mock, token_source=StaticToken()), mock


def _google_error(code, status, message):
    return {"error": {"code": code, "status": status, "message": message}}


@pytest.mark.asyncio
async def test_not_found_mapping():
    client, _ = _client(MockResponse(404, _google_error(404, "NOT_FOUND", "Requested entity was not found.")))
    with pytest.raises(SpreadsheetNotFoundError) as excinfo:
        await client.get_spreadsheet("missing")
    assert "Requested entity was not found." in str(excinfo.value)
    assert excinfo.value.status_code == 404


@pytest.mark.asyncio
async def test_unauthorized_mapping():
    client, _ = _client(MockResponse(401, _google_error(401, "UNAUTHENTICATED", "Invalid credentials")))
    with pytest.raises(UnauthorizedError):
        await client.get_values("abc", "A1")


@pytest.mark.asyncio
async def test_permission_denied_mapping():
    client, _ = _client(MockResponse(403, _google_error(403, "PERMISSION_DENIED", "The caller does not have permission")))
    with pytest.raises(PermissionDeniedError):
        await client.get_values("abc", "A1")


@pytest.mark.asyncio
async def test_quota_mapping():
    client, _ = _client(MockResponse(429, _google_error(429, "RESOURCE_EXHAUSTED", "Quota exceeded for quota metric")))
    with pytest.raises(QuotaExceededError):
        await client.get_values("abc", "A1")


@pytest.mark.asyncio
async def test_invalid_range_mapping():
    client, _ = _client(MockResponse(400, _google_error(400, "INVALID_ARGUMENT", "Unable to parse range: Nope!A1")))
    with pytest.raises(InvalidRangeError):
        await client.get_values("abc", "Nope!A1")


@pytest.mark.asyncio
async def test_server_error_maps_to_generic():
    client, _ = _client(MockResponse(500, {"error": {"code": 500, "status": "INTERNAL", "message": "boom"}}))
    with pytest.raises(SheetsApiError) as excinfo:
        await client.get_values("abc", "A1")
    assert type(excinfo.value) is SheetsApiError
    assert excinfo.value.status_code == 500
    assert excinfo.value.code == "INTERNAL"


@pytest.mark.asyncio
async def test_unexpected_body_is_error():
    client, _ = _client(MockResponse(200, ["unexpected"]))
    with pytest.raises(SheetsApiError):
        await client.get_values("abc", "A1")


@pytest.mark.asyncio
async def test_empty_success_body_is_empty_dict():
    client, _ = _client(MockResponse(200, ValueError("no body")))
    assert await client.clear_values("abc", "A1") == {}


@pytest.mark.asyncio
async def test_unreachable_maps_to_service_unreachable():
    class FailingClient:
        async def request(self, *args, **kwargs):
            raise httpx.ConnectError("down")

        async def aclose(self):
            return None

    client = SheetsApiClient(CONFIG, async_client=FailingClient(), token_source=StaticToken())
    with pytest.raises(ServiceUnreachableError):
        await client.get_values("abc", "A1")


@pytest.mark.asyncio
async def test_bearer_token_and_encoded_paths():
    client, mock = _client(MockResponse(200, {"values": []}))
    await client.get_values("abc/def", "Sheet 1!A1:B2")
    call = mock.calls[0]
    assert call["method"] == "GET"
    assert call["headers"]["Authorization"] == "Bearer test-token"
    assert call["url"] == "https://sheets.test/v4/spreadsheets/abc%2Fdef/values/Sheet%201%21A1%3AB2"


@pytest.mark.asyncio
async def test_write_and_append_use_user_entered():
    client, mock = _client(MockResponse(200, {}), MockResponse(200, {}))
    await client.update_values("abc", "A1", [[1, "=A1*2"]])
    await client.append_values("abc", "Sheet1", [["x"]])
    update, append = mock.calls
    assert update["method"] == "PUT"
    assert update["params"] == {"valueInputOption": "USER_ENTERED"}
    assert update["json"] == {"values": [[1, "=A1*2"]]}
    assert append["method"] == "POST"
    assert append["url"].endswith("/values/Sheet1:append")
    assert append["params"] == {"valueInputOption": "USER_ENTERED", "insertDataOption": "INSERT_ROWS"}


@pytest.mark.asyncio
async def test_list_files_queries_drive_for_spreadsheets():
    client, mock = _client(MockResponse(200, {"files": []}))
    await client.list_files(page_size=50)
    call = mock.calls[0]
    assert call["url"] == "https://drive.test/v3/files"
    assert call["params"]["q"] == "mimeType='application/vnd.google-apps.spreadsheet'"
    assert call["params"]["orderBy"] == "modifiedTime desc"
    assert call["params"]["pageSize"] == 50


@pytest.mark.asyncio
async def test_batch_update_and_create_bodies():
    client, mock = _client(MockResponse(200, {"replies": []}), MockResponse(200, {"spreadsheetId": "new"}))
    await client.batch_update("abc", [{"addSheet": {}}])
    await client.create_spreadsheet({"properties": {"title": "T"}})
    batch, create = mock.calls
    assert batch["url"] == "https://sheets.test/v4/spreadsheets/abc:batchUpdate"
    assert batch["json"] == {"requests": [{"addSheet": {}}]}
    assert create["url"] == "https://sheets.test/v4/spreadsheets"
    assert create["json"] == {"properties": {"title": "T"}}
