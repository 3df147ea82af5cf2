"""Spreadsheet-level tools: discovery, metadata, creation and structural edits."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sheets_mcp.sheets_api import SheetsApiClient, SheetsApiError, SpreadsheetNotFoundError
from sheets_mcp.tools.identifiers import extract_spreadsheet_id

logger = logging.getLogger(__name__)

SPREADSHEET_INFO_FIELDS = "properties,sheets.properties"


def _sheet_summary(raw_sheet: Any) -> Dict[str, Any]:
    props = raw_sheet.get("properties", {}) if isinstance(raw_sheet, dict) else {}
    return {
        "title": props.get("title"),
        "sheetId": props.get("sheetId"),
        "index": props.get("index"),
    }


def _first_reply(payload: Dict[str, Any], kind: str) -> Dict[str, Any]:
    replies = payload.get("replies")
    if not isinstance(replies, list) or not replies or not isinstance(replies[0], dict):
        raise SheetsApiError("Unexpected response from Google API.")
    return replies[0].get(kind, {}).get("properties", {})


async def list_spreadsheets(client: SheetsApiClient) -> List[Dict[str, Any]]:
    """
    List spreadsheets visible to the service account, newest first.

    Returns:
        Up to ``max_spreadsheets`` entries of ``{id, name, modifiedTime, webViewLink}``.
    """
    limit = client.config.max_spreadsheets
    payload = await client.list_files(page_size=limit)
    files = payload.get("files")
    if not isinstance(files, list):
        return []
    return [
        {
            "id": item.get("id"),
            "name": item.get("name"),
            "modifiedTime": item.get("modifiedTime"),
            "webViewLink": item.get("webViewLink"),
        }
        for item in files[:limit]
        if isinstance(item, dict)
    ]


async def get_spreadsheet_info(client: SheetsApiClient, *, spreadsheet_id: str) -> Dict[str, Any]:
    """Return title, locale, time zone and the ordered sheet list."""
    payload = await client.get_spreadsheet(
        extract_spreadsheet_id(spreadsheet_id), fields=SPREADSHEET_INFO_FIELDS
    )
    props = payload.get("properties") or {}
    sheets = payload.get("sheets") or []
    return {
        "properties": {
            "title": props.get("title"),
            "locale": props.get("locale"),
            "timeZone": props.get("timeZone"),
        },
        "sheets": [_sheet_summary(sheet) for sheet in sheets],
    }


async def create_spreadsheet(
    client: SheetsApiClient, *, title: str, sheet_titles: Optional[List[str]] = None
) -> Dict[str, Any]:
    """
    Create a spreadsheet.

    When ``sheet_titles`` is given, one sheet is created per title in that order
    instead of the default single sheet.
    """
    body: Dict[str, Any] = {"properties": {"title": title}}
    if sheet_titles:
        body["sheets"] = [{"properties": {"title": sheet_title}} for sheet_title in sheet_titles]
    payload = await client.create_spreadsheet(body)
    logger.info("Created spreadsheet %s", payload.get("spreadsheetId"))
    return {
        "spreadsheetId": payload.get("spreadsheetId"),
        "spreadsheetUrl": payload.get("spreadsheetUrl"),
        "sheets": [_sheet_summary(sheet)["title"] for sheet in payload.get("sheets") or []],
    }


async def add_sheet(
    client: SheetsApiClient, *, spreadsheet_id: str, title: str, index: Optional[int] = None
) -> Dict[str, Any]:
    """Insert a new sheet; without ``index`` it goes at the end."""
    properties: Dict[str, Any] = {"title": title}
    if index is not None:
        properties["index"] = index
    payload = await client.batch_update(
        extract_spreadsheet_id(spreadsheet_id), [{"addSheet": {"properties": properties}}]
    )
    return _sheet_summary({"properties": _first_reply(payload, "addSheet")})


async def duplicate_sheet(
    client: SheetsApiClient,
    *,
    spreadsheet_id: str,
    sheet_id: int,
    new_title: Optional[str] = None,
    insert_index: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Copy a sheet (content and formatting) within the same spreadsheet.

    The copy lands right after the source unless ``insert_index`` is given, and
    Google names it "Copy of ..." unless ``new_title`` is given.
    """
    resolved_id = extract_spreadsheet_id(spreadsheet_id)
    if insert_index is None:
        info = await client.get_spreadsheet(resolved_id, fields="sheets.properties")
        source = next(
            (
                _sheet_summary(sheet)
                for sheet in info.get("sheets") or []
                if _sheet_summary(sheet)["sheetId"] == sheet_id
            ),
            None,
        )
        if source is None:
            raise SpreadsheetNotFoundError(f"Sheet {sheet_id} not found in spreadsheet.")
        insert_index = (source["index"] or 0) + 1

    request: Dict[str, Any] = {"sourceSheetId": sheet_id, "insertSheetIndex": insert_index}
    if new_title:
        request["newSheetName"] = new_title
    payload = await client.batch_update(resolved_id, [{"duplicateSheet": request}])
    return _sheet_summary({"properties": _first_reply(payload, "duplicateSheet")})


async def batch_update(
    client: SheetsApiClient, *, spreadsheet_id: str, requests: List[Dict[str, Any]]
) -> Dict[str, Any]:
    """Forward raw batchUpdate requests (formatting, merges, sheet operations)."""
    resolved_id = extract_spreadsheet_id(spreadsheet_id)
    payload = await client.batch_update(resolved_id, requests)
    replies = payload.get("replies")
    return {
        "spreadsheetId": payload.get("spreadsheetId", resolved_id),
        "executed": len(replies) if isinstance(replies, list) else len(requests),
    }
