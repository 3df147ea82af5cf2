"""FastAPI application exposing the spreadsheet tools over a JSON-RPC endpoint."""

from __future__ import annotations

import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from sheets_mcp import mcp
from sheets_mcp.config import SheetsConfig, default_config
from sheets_mcp.metrics import default_metrics
from sheets_mcp.rpc import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    JSONRPC_VERSION,
    METHOD_NOT_FOUND,
    RpcError,
    error_payload,
    success_payload,
    wrap_tool_outcome,
)
from sheets_mcp.sheets_api import SheetsApiClient

logger = logging.getLogger(__name__)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "message": record.getMessage(),
            "name": record.name,
        }
        for key in ("tool", "request_id", "error"):
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        return json.dumps(payload)


def configure_logging(config: SheetsConfig) -> None:
    level = getattr(logging, config.log_level.upper(), logging.INFO)
    if config.log_format.lower() == "json":
        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        logging.basicConfig(level=level, handlers=[handler])
    else:
        logging.basicConfig(level=level)


configure_logging(default_config)

HEALTH_STATUS = {"status": "ok"}
APP_VERSION = "0.1.0"
MCP_SERVER_NAME = "sheets-mcp-server"
MCP_SERVER_VERSION = APP_VERSION
MCP_PROTOCOL_VERSION = "2024-11-05"
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    yield
    # Shutdown
    client = getattr(app.state, "sheets_client", None)
    if client is not None:
        await client.aclose()


app = FastAPI(
    title="Sheets MCP Server",
    description="Google Sheets tool surface for LLM agents.",
    version=APP_VERSION,
    lifespan=lifespan,
)


def get_sheets_client(request: Request) -> SheetsApiClient:
    """Return the process-wide client, building it from config on first use."""
    client = getattr(request.app.state, "sheets_client", None)
    if client is None:
        client = SheetsApiClient(default_config)
        request.app.state.sheets_client = client
    return client


@app.middleware("http")
async def add_request_context(request: Request, call_next):
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    start = time.time()
    default_metrics.incr_request()
    response = await call_next(request)
    duration_ms = (time.time() - start) * 1000
    default_metrics.record_duration(request_id, duration_ms)
    response.headers["X-Request-ID"] = request_id
    response.headers.update(CORS_HEADERS)
    return response


def _log_tool_outcome(tool_name: str, outcome: mcp.ToolOutcome, request_id: Optional[str] = None) -> None:
    if outcome.is_error:
        logger.warning(
            "tool=%s outcome=error error=%s request_id=%s",
            tool_name,
            outcome.error,
            request_id,
            extra={"tool": tool_name, "request_id": request_id, "error": outcome.error},
        )
        default_metrics.record_tool(tool_name, success=False)
    else:
        logger.info(
            "tool=%s outcome=success request_id=%s",
            tool_name,
            request_id,
            extra={"tool": tool_name, "request_id": request_id},
        )
        default_metrics.record_tool(tool_name, success=True)


@dataclass(frozen=True, slots=True)
class RpcContext:
    """Per-request collaborators handed to each method handler."""

    client: SheetsApiClient
    request_id: Optional[str] = None


MethodHandler = Callable[[Dict[str, Any], RpcContext], Awaitable[Any]]


async def _initialize(_params: Dict[str, Any], _context: RpcContext) -> Dict[str, Any]:
    return {
        "protocolVersion": MCP_PROTOCOL_VERSION,
        "serverInfo": {"name": MCP_SERVER_NAME, "version": MCP_SERVER_VERSION},
        "capabilities": {"tools": {"listChanged": False}},
    }


async def _initialized(_params: Dict[str, Any], _context: RpcContext) -> Dict[str, Any]:
    return {}


async def _list_tools(_params: Dict[str, Any], _context: RpcContext) -> Dict[str, Any]:
    return {"tools": mcp.list_tools()}


async def _call_tool(params: Dict[str, Any], context: RpcContext) -> Dict[str, Any]:
    tool_name = params.get("name")
    if not isinstance(tool_name, str) or not tool_name.strip():
        raise RpcError(INVALID_PARAMS, "Invalid params: missing tool name")
    arguments = params.get("arguments")
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        raise RpcError(INVALID_PARAMS, "Invalid params: arguments must be an object")

    try:
        outcome = await mcp.call_tool(tool_name, arguments, client=context.client)
    except mcp.UnknownToolError as exc:
        raise RpcError(INVALID_PARAMS, str(exc)) from exc
    except mcp.InvalidToolArgumentsError as exc:
        raise RpcError(INVALID_PARAMS, f"Invalid params: {exc}") from exc

    _log_tool_outcome(tool_name, outcome, context.request_id)
    return wrap_tool_outcome(outcome)


METHOD_HANDLERS: Mapping[str, MethodHandler] = MappingProxyType(
    {
        "initialize": _initialize,
        "notifications/initialized": _initialized,
        "tools/list": _list_tools,
        "tools/call": _call_tool,
    }
)


def _valid_id(rpc_id: Any) -> bool:
    if rpc_id is None or isinstance(rpc_id, str):
        return True
    return isinstance(rpc_id, (int, float)) and not isinstance(rpc_id, bool)


async def dispatch_rpc(body: Any, *, context: RpcContext) -> Dict[str, Any]:
    """
    Route one decoded JSON-RPC envelope and build the matching response.

    The envelope is checked before routing; its id is only echoed once the
    envelope itself is valid. Unknown methods are reported before params are
    inspected.
    """
    rpc_id: Any = None
    try:
        if not isinstance(body, dict) or body.get("jsonrpc") != JSONRPC_VERSION:
            raise RpcError(INVALID_REQUEST, f"Invalid request: jsonrpc must be '{JSONRPC_VERSION}'")
        if not _valid_id(body.get("id")):
            raise RpcError(INVALID_REQUEST, "Invalid request: id must be a string, number or null")
        rpc_id = body.get("id")

        method = body.get("method")
        if not isinstance(method, str) or not method:
            raise RpcError(INVALID_REQUEST, "Invalid request: missing method")

        handler = METHOD_HANDLERS.get(method)
        if handler is None:
            raise RpcError(METHOD_NOT_FOUND, f"Method not found: {method}")

        raw_params = body.get("params")
        if raw_params is None:
            params: Dict[str, Any] = {}
        elif isinstance(raw_params, dict):
            params = raw_params
        else:
            raise RpcError(INVALID_PARAMS, "Invalid params: params must be an object")
        return success_payload(rpc_id, await handler(params, context))
    except RpcError as exc:
        return error_payload(rpc_id, exc)
    except Exception:
        logger.exception(
            "Unhandled error while dispatching request_id=%s",
            context.request_id,
            extra={"request_id": context.request_id},
        )
        return error_payload(rpc_id, RpcError(INTERNAL_ERROR, "Internal error"))


@app.get("/health")
async def health() -> JSONResponse:
    """Lightweight health endpoint for monitoring."""
    return JSONResponse(content=HEALTH_STATUS)


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Return in-process metrics snapshot."""
    return JSONResponse(content=default_metrics.snapshot())


@app.options("/mcp")
async def mcp_preflight() -> JSONResponse:
    """Answer cross-origin preflight requests."""
    return JSONResponse(content={})


@app.api_route("/mcp", methods=["GET", "PUT", "PATCH", "DELETE"])
async def mcp_method_not_allowed() -> JSONResponse:
    payload = error_payload(None, RpcError(INVALID_REQUEST, "Method not allowed"))
    return JSONResponse(status_code=405, content=payload, headers={"Allow": "POST, OPTIONS"})


@app.post("/mcp")
async def mcp_gateway(request: Request, client: SheetsApiClient = Depends(get_sheets_client)) -> JSONResponse:
    """
    JSON-RPC 2.0 gateway for MCP clients.

    Supported methods:
      - initialize
      - notifications/initialized
      - tools/list
      - tools/call
    """
    request_id = getattr(request.state, "request_id", None)
    start_time = time.time()

    status_code = 200
    method_label: Optional[str] = None
    try:
        body = await request.json()
    except ValueError:
        status_code = 400
        payload = error_payload(None, RpcError(INVALID_REQUEST, "Parse error"))
    else:
        if isinstance(body, dict) and isinstance(body.get("method"), str):
            method_label = body["method"]
        payload = await dispatch_rpc(body, context=RpcContext(client=client, request_id=request_id))

    error_code = payload["error"]["code"] if "error" in payload else None
    if error_code is not None:
        default_metrics.record_rpc_error(error_code)
    logger.debug(
        "mcp outcome=%s method=%s id=%s status=%s duration_ms=%.2f error_code=%s",
        "error" if error_code is not None else "success",
        method_label,
        payload.get("id"),
        status_code,
        (time.time() - start_time) * 1000,
        error_code,
        extra={"request_id": request_id, "error": error_code},
    )
    return JSONResponse(status_code=status_code, content=payload)


# Run with: uvicorn sheets_mcp.server:app --reload
