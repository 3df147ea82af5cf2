"""LLM-facing spreadsheet tool implementations."""

from .identifiers import extract_spreadsheet_id
from .spreadsheets import (
    add_sheet,
    batch_update,
    create_spreadsheet,
    duplicate_sheet,
    get_spreadsheet_info,
    list_spreadsheets,
)
from .values import append_data, clear_range, read_range, write_range

__all__ = [
    "extract_spreadsheet_id",
    "list_spreadsheets",
    "get_spreadsheet_info",
    "read_range",
    "write_range",
    "append_data",
    "clear_range",
    "create_spreadsheet",
    "add_sheet",
    "duplicate_sheet",
    "batch_update",
]
