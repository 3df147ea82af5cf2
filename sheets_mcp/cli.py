"""
Command-line client for a running Sheets MCP server.

Usage:
    sheets-mcp list
    sheets-mcp info <spreadsheet_id|url>
    sheets-mcp read <spreadsheet_id|url> <range>
    sheets-mcp duplicate <spreadsheet_id|url> [sheet_id] [new_title]

The server URL comes from MCP_URL (default http://localhost:8000/mcp).
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any, Dict, List, Optional

import httpx

from sheets_mcp.tools.identifiers import extract_spreadsheet_id

DEFAULT_MCP_URL = "http://localhost:8000/mcp"


class McpCallError(Exception):
    """Raised when the server returns an envelope error or a tool error."""


def call_mcp(tool_name: str, arguments: Optional[Dict[str, Any]] = None, *, url: str, client: httpx.Client) -> Any:
    response = client.post(
        url,
        json={
            "jsonrpc": "2.0",
            "id": 1,
            "method": "tools/call",
            "params": {"name": tool_name, "arguments": arguments or {}},
        },
    )
    try:
        body = response.json()
    except ValueError as exc:
        raise McpCallError(f"Unexpected response from server (HTTP {response.status_code}).") from exc

    if body.get("error"):
        error = body["error"]
        raise McpCallError(error.get("message") or json.dumps(error))
    result = body.get("result") or {}
    text = result.get("content", [{}])[0].get("text", "")
    if result.get("isError"):
        raise McpCallError(text)
    return json.loads(text)


def _cmd_list(args: argparse.Namespace, call) -> None:
    print("Fetching spreadsheets...")
    spreadsheets: List[Dict[str, Any]] = call("list_spreadsheets")
    print("\nAccessible spreadsheets:")
    if not spreadsheets:
        print("  (none - share a spreadsheet with the service account)")
    for sheet in spreadsheets:
        print(f"  - {sheet.get('name')}")
        print(f"    ID: {sheet.get('id')}")


def _cmd_info(args: argparse.Namespace, call) -> None:
    print("Fetching spreadsheet info...")
    info = call("get_spreadsheet_info", {"spreadsheet_id": extract_spreadsheet_id(args.spreadsheet)})
    props = info.get("properties", {})
    print(f"\nTitle: {props.get('title')}")
    print(f"Locale: {props.get('locale')}")
    print(f"Time zone: {props.get('timeZone')}")
    print("\nSheets:")
    for sheet in info.get("sheets", []):
        print(f"  [{sheet.get('index')}] {sheet.get('title')} (ID: {sheet.get('sheetId')})")


def _cmd_read(args: argparse.Namespace, call) -> None:
    print(f"Reading {args.range}...")
    values = call("read_range", {"spreadsheet_id": extract_spreadsheet_id(args.spreadsheet), "range": args.range})
    print("\nData:")
    print(json.dumps(values, indent=2, ensure_ascii=False))


def _cmd_duplicate(args: argparse.Namespace, call) -> None:
    spreadsheet_id = extract_spreadsheet_id(args.spreadsheet)
    sheet_id = args.sheet_id
    if sheet_id is None:
        print("Fetching spreadsheet info...")
        info = call("get_spreadsheet_info", {"spreadsheet_id": spreadsheet_id})
        sheets = info.get("sheets") or []
        if not sheets:
            raise McpCallError("Spreadsheet has no sheets to duplicate.")
        first = sheets[0]
        sheet_id = first.get("sheetId")
        print(f"First sheet: {first.get('title')} (ID: {sheet_id})")

    print("Duplicating sheet...")
    arguments: Dict[str, Any] = {"spreadsheet_id": spreadsheet_id, "sheet_id": sheet_id}
    if args.new_title:
        arguments["new_title"] = args.new_title
    result = call("duplicate_sheet", arguments)
    print("\nDone!")
    print(f"  New sheet: {result.get('title')}")
    print(f"  Sheet ID: {result.get('sheetId')}")
    print(f"  Index: {result.get('index')}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sheets-mcp", description="Google Sheets MCP client")
    subparsers = parser.add_subparsers(dest="command")

    list_parser = subparsers.add_parser("list", help="list accessible spreadsheets")
    list_parser.set_defaults(func=_cmd_list)

    info_parser = subparsers.add_parser("info", help="show spreadsheet metadata")
    info_parser.add_argument("spreadsheet", help="spreadsheet id or URL")
    info_parser.set_defaults(func=_cmd_info)

    read_parser = subparsers.add_parser("read", help="read a range")
    read_parser.add_argument("spreadsheet", help="spreadsheet id or URL")
    read_parser.add_argument("range", help="A1 range, e.g. 'Sheet1!A1:D10'")
    read_parser.set_defaults(func=_cmd_read)

    duplicate_parser = subparsers.add_parser("duplicate", help="duplicate a sheet (default: the first one)")
    duplicate_parser.add_argument("spreadsheet", help="spreadsheet id or URL")
    duplicate_parser.add_argument("sheet_id", nargs="?", type=int, default=None)
    duplicate_parser.add_argument("new_title", nargs="?", default=None)
    duplicate_parser.set_defaults(func=_cmd_duplicate)
    return parser


def main(argv: Optional[List[str]] = None, *, client: Optional[httpx.Client] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    url = os.getenv("MCP_URL", DEFAULT_MCP_URL)
    http = client or httpx.Client(timeout=60.0)
    try:
        args.func(args, lambda name, arguments=None: call_mcp(name, arguments, url=url, client=http))
    except (McpCallError, httpx.HTTPError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        if client is None:
            http.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
