"""JSON-RPC envelope shaping for the MCP gateway."""

from __future__ import annotations

import json
from typing import Any, Dict

from sheets_mcp.mcp import ToolOutcome

JSONRPC_VERSION = "2.0"

INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class RpcError(Exception):
    """Envelope-level failure carrying a JSON-RPC error code."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message}


def success_payload(rpc_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": rpc_id, "result": result}


def error_payload(rpc_id: Any, error: RpcError) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": rpc_id, "error": error.to_dict()}


def wrap_tool_outcome(outcome: ToolOutcome) -> Dict[str, Any]:
    """
    Shape a tool outcome into an MCP content array.

    Tool-level errors are returned in-band with the isError flag; successful
    values are always rendered as JSON text.
    """
    if outcome.is_error:
        return {"content": [{"type": "text", "text": outcome.error}], "isError": True}

    try:
        text_repr = json.dumps(outcome.value, ensure_ascii=False)
    except (TypeError, ValueError):
        text_repr = str(outcome.value)
    return {"content": [{"type": "text", "text": text_repr}]}
