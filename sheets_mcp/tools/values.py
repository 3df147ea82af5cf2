"""Value-range tools: read, write, append and clear cells."""

from __future__ import annotations

from typing import Any, Dict, List

from sheets_mcp.sheets_api import SheetsApiClient
from sheets_mcp.tools.identifiers import extract_spreadsheet_id


async def read_range(client: SheetsApiClient, *, spreadsheet_id: str, range: str) -> List[List[Any]]:  # noqa: A002
    """
    Read a rectangular block of cell values.

    Returns:
        Rows of values, or an empty list when the range holds no data.
    """
    payload = await client.get_values(extract_spreadsheet_id(spreadsheet_id), range)
    values = payload.get("values")
    return values if isinstance(values, list) else []


async def write_range(
    client: SheetsApiClient, *, spreadsheet_id: str, range: str, values: List[List[Any]]  # noqa: A002
) -> Dict[str, Any]:
    """Overwrite a range; formulas and numbers are parsed as if typed."""
    payload = await client.update_values(extract_spreadsheet_id(spreadsheet_id), range, values)
    return {
        "updatedCells": payload.get("updatedCells"),
        "updatedRange": payload.get("updatedRange"),
    }


async def append_data(
    client: SheetsApiClient, *, spreadsheet_id: str, range: str, values: List[List[Any]]  # noqa: A002
) -> Dict[str, Any]:
    """Insert rows after the last row of the table found in the range."""
    payload = await client.append_values(extract_spreadsheet_id(spreadsheet_id), range, values)
    updates = payload.get("updates")
    updated_rows = updates.get("updatedRows") if isinstance(updates, dict) else None
    return {"updatedRows": updated_rows, "tableRange": payload.get("tableRange")}


async def clear_range(client: SheetsApiClient, *, spreadsheet_id: str, range: str) -> Dict[str, Any]:  # noqa: A002
    await client.clear_values(extract_spreadsheet_id(spreadsheet_id), range)
    return {"cleared": range}
