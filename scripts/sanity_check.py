"""Minimal live sanity checks for the spreadsheet tools."""

from __future__ import annotations

import asyncio
import os
import sys

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from sheets_mcp.config import default_config  # noqa: E402
from sheets_mcp.sheets_api import SheetsApiClient  # noqa: E402
from sheets_mcp.tools import get_spreadsheet_info, list_spreadsheets, read_range  # noqa: E402

# Optional spreadsheet id or URL to inspect; falls back to the most recent one listed.
SAMPLE_SPREADSHEET = os.getenv("SHEETS_SAMPLE_SPREADSHEET")
# Range to read from the sample spreadsheet.
SAMPLE_RANGE = os.getenv("SHEETS_SAMPLE_RANGE", "A1:D5")


async def main() -> None:
    client = SheetsApiClient(default_config)
    try:
        spreadsheets = await list_spreadsheets(client)
        print("Spreadsheets:", spreadsheets)

        sample = SAMPLE_SPREADSHEET
        if not sample and spreadsheets:
            sample = spreadsheets[0]["id"]
        if not sample:
            print("No spreadsheet available; share one with the service account.")
            return

        info = await get_spreadsheet_info(client, spreadsheet_id=sample)
        print("Spreadsheet info:", info)
        print(f"Values ({SAMPLE_RANGE}):", await read_range(client, spreadsheet_id=sample, range=SAMPLE_RANGE))
    finally:
        await client.aclose()


if __name__ == "__main__":
    asyncio.run(main())
