"""
Google Sheets MCP server package.

This package exposes LLM-friendly spreadsheet tools backed by the Google Sheets
and Drive REST APIs behind a JSON-RPC endpoint. See DESIGN.md for full details.
"""

__all__ = ["config"]
