"""
Thin HTTP client for the Google Sheets v4 and Drive v3 REST APIs.

Only the calls the tool layer needs are exposed. Google errors are mapped to
internal exceptions that the invoker turns into tool-level failure messages.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol
from urllib.parse import quote

import httpx

from sheets_mcp.config import SheetsConfig, default_config

from .auth import ServiceAccountTokenSource
from .errors import (
    InvalidRangeError,
    PermissionDeniedError,
    QuotaExceededError,
    ServiceUnreachableError,
    SheetsApiError,
    SpreadsheetNotFoundError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

SPREADSHEET_MIME_TYPE = "application/vnd.google-apps.spreadsheet"
USER_ENTERED = "USER_ENTERED"
INSERT_ROWS = "INSERT_ROWS"


class TokenSource(Protocol):
    async def token(self) -> str: ...


def _encode(segment: str) -> str:
    return quote(segment, safe="")


def _google_message(data: Any) -> tuple[Optional[str], Optional[str]]:
    """Pull (status, message) out of a Google error body."""
    if not isinstance(data, dict):
        return None, None
    error = data.get("error")
    if isinstance(error, dict):
        status = error.get("status")
        message = error.get("message")
        return (
            status if isinstance(status, str) else None,
            message if isinstance(message, str) else None,
        )
    if isinstance(error, str):
        description = data.get("error_description")
        return error.upper(), description if isinstance(description, str) else None
    return None, None


class SheetsApiClient:
    """Async client for the spreadsheet operations the tools rely on."""

    def __init__(
        self,
        config: SheetsConfig | None = None,
        *,
        async_client: Optional[httpx.AsyncClient] = None,
        token_source: Optional[TokenSource] = None,
    ) -> None:
        self.config = config or default_config
        self._client: Optional[httpx.AsyncClient] = async_client
        self._owns_client = async_client is None
        self._token_source = token_source or ServiceAccountTokenSource(
            self.config.service_account_info, self.config.scopes
        )

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.timeout)
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _map_error(self, status_code: int, status: Optional[str], message: Optional[str]) -> SheetsApiError:
        detail = message or "Google API error."
        lowered = detail.lower()
        code = status or None
        if status_code == 401 or status == "UNAUTHENTICATED":
            return UnauthorizedError(f"Unauthorized: {detail}", code=code, status_code=status_code)
        if status_code == 403 or status == "PERMISSION_DENIED":
            if "quota" in lowered or "rate limit" in lowered:
                return QuotaExceededError(f"Quota exceeded: {detail}", code=code, status_code=status_code)
            return PermissionDeniedError(f"Permission denied: {detail}", code=code, status_code=status_code)
        if status_code == 404 or status == "NOT_FOUND":
            return SpreadsheetNotFoundError(f"Not found: {detail}", code=code, status_code=status_code)
        if status_code == 429 or status == "RESOURCE_EXHAUSTED":
            return QuotaExceededError(f"Quota exceeded: {detail}", code=code, status_code=status_code)
        if status_code == 400 and "range" in lowered:
            return InvalidRangeError(f"Invalid range: {detail}", code=code, status_code=status_code)
        return SheetsApiError(detail, code=code, status_code=status_code)

    def _process_response(self, response: httpx.Response) -> Dict[str, Any]:
        data: Any = None
        try:
            data = response.json()
        except ValueError:
            data = None

        if response.status_code >= 400:
            status, message = _google_message(data)
            raise self._map_error(response.status_code, status, message)

        if data is None:
            # Empty 2xx bodies (e.g. values.clear on some ranges) carry no payload.
            return {}
        if not isinstance(data, dict):
            raise SheetsApiError("Unexpected response from Google API.", status_code=response.status_code)
        return data

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        token = await self._token_source.token()
        client = await self._get_client()
        headers = {"Authorization": f"Bearer {token}"}
        try:
            response = await client.request(method, url, params=params, json=json_body, headers=headers)
        except httpx.RequestError as exc:
            logger.warning("Google API unreachable for %s %s", method, url)
            raise ServiceUnreachableError("Google API unreachable.") from exc
        return self._process_response(response)

    def _sheets_url(self, spreadsheet_id: str, suffix: str = "") -> str:
        return f"{self.config.sheets_base_url}/spreadsheets/{_encode(spreadsheet_id)}{suffix}"

    def _values_url(self, spreadsheet_id: str, range_: str, action: str = "") -> str:
        return self._sheets_url(spreadsheet_id, f"/values/{_encode(range_)}{action}")

    async def list_files(
        self,
        *,
        mime_type: str = SPREADSHEET_MIME_TYPE,
        page_size: int,
        order_by: str = "modifiedTime desc",
        fields: str = "files(id, name, modifiedTime, webViewLink)",
    ) -> Dict[str, Any]:
        """List Drive files of one MIME type."""
        params = {
            "q": f"mimeType='{mime_type}'",
            "fields": fields,
            "pageSize": page_size,
            "orderBy": order_by,
        }
        return await self._request("GET", f"{self.config.drive_base_url}/files", params=params)

    async def get_spreadsheet(self, spreadsheet_id: str, *, fields: Optional[str] = None) -> Dict[str, Any]:
        """Retrieve spreadsheet metadata."""
        params = {"fields": fields} if fields else None
        return await self._request("GET", self._sheets_url(spreadsheet_id), params=params)

    async def get_values(self, spreadsheet_id: str, range_: str) -> Dict[str, Any]:
        """Read a value range."""
        return await self._request("GET", self._values_url(spreadsheet_id, range_))

    async def update_values(
        self, spreadsheet_id: str, range_: str, values: List[List[Any]]
    ) -> Dict[str, Any]:
        """Overwrite a value range, parsing input as if typed by a user."""
        return await self._request(
            "PUT",
            self._values_url(spreadsheet_id, range_),
            params={"valueInputOption": USER_ENTERED},
            json_body={"values": values},
        )

    async def append_values(
        self, spreadsheet_id: str, range_: str, values: List[List[Any]]
    ) -> Dict[str, Any]:
        """Insert rows after the table found in a range."""
        return await self._request(
            "POST",
            self._values_url(spreadsheet_id, range_, ":append"),
            params={"valueInputOption": USER_ENTERED, "insertDataOption": INSERT_ROWS},
            json_body={"values": values},
        )

    async def clear_values(self, spreadsheet_id: str, range_: str) -> Dict[str, Any]:
        """Clear values (not formatting) from a range."""
        return await self._request("POST", self._values_url(spreadsheet_id, range_, ":clear"), json_body={})

    async def create_spreadsheet(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """Create a spreadsheet from a Spreadsheet resource body."""
        return await self._request("POST", f"{self.config.sheets_base_url}/spreadsheets", json_body=body)

    async def batch_update(self, spreadsheet_id: str, requests: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Apply structural update requests in order."""
        return await self._request(
            "POST",
            self._sheets_url(spreadsheet_id, ":batchUpdate"),
            json_body={"requests": requests},
        )
