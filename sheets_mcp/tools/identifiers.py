"""Spreadsheet identifier helpers."""

from __future__ import annotations

import re

# Document URLs carry the id as the path segment after /spreadsheets/d/.
SPREADSHEET_URL_REGEX = re.compile(r"/spreadsheets/d/([a-zA-Z0-9-_]+)")


def extract_spreadsheet_id(value: str) -> str:
    """Return the bare spreadsheet id from an id or a document URL."""
    if not isinstance(value, str):
        return value
    match = SPREADSHEET_URL_REGEX.search(value)
    return match.group(1) if match else value
