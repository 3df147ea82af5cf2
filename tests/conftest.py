import os
import sys

import pytest

# Ensure repository root is on sys.path before importing project modules.
repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)

from sheets_mcp.metrics import default_metrics  # noqa: E402
from sheets_mcp.server import app, get_sheets_client  # noqa: E402


class StubSheetsClient:
    """Records calls and answers with canned Google API payloads."""

    def __init__(self, responses=None, error=None):
        self.responses = responses or {}
        self.error = error
        self.calls = []

    async def _answer(self, name, **kwargs):
        self.calls.append((name, kwargs))
        if self.error is not None:
            raise self.error
        response = self.responses.get(name, {})
        return response(**kwargs) if callable(response) else response

    async def list_files(self, **kwargs):
        return await self._answer("list_files", **kwargs)

    async def get_spreadsheet(self, spreadsheet_id, **kwargs):
        return await self._answer("get_spreadsheet", spreadsheet_id=spreadsheet_id, **kwargs)

    async def get_values(self, spreadsheet_id, range_):
        return await self._answer("get_values", spreadsheet_id=spreadsheet_id, range_=range_)

    async def update_values(self, spreadsheet_id, range_, values):
        return await self._answer("update_values", spreadsheet_id=spreadsheet_id, range_=range_, values=values)

    async def append_values(self, spreadsheet_id, range_, values):
        return await self._answer("append_values", spreadsheet_id=spreadsheet_id, range_=range_, values=values)

    async def clear_values(self, spreadsheet_id, range_):
        return await self._answer("clear_values", spreadsheet_id=spreadsheet_id, range_=range_)

    async def create_spreadsheet(self, body):
        return await self._answer("create_spreadsheet", body=body)

    async def batch_update(self, spreadsheet_id, requests):
        return await self._answer("batch_update", spreadsheet_id=spreadsheet_id, requests=requests)

    async def aclose(self):
        return None


class StubConfig:
    max_spreadsheets = 50


@pytest.fixture
def stub_client():
    client = StubSheetsClient()
    client.config = StubConfig()
    return client


@pytest.fixture
def override_client(stub_client):
    app.dependency_overrides[get_sheets_client] = lambda: stub_client
    yield stub_client
    app.dependency_overrides.pop(get_sheets_client, None)


@pytest.fixture(autouse=True)
def reset_metrics():
    default_metrics.reset()
    yield
    default_metrics.reset()
