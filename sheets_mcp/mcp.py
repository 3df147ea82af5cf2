"""
Tool registry and invoker for the MCP JSON-RPC surface.

The registry is a closed, read-only mapping from ``ToolName`` to its
definition. ``call_tool`` resolves a name, checks arguments against the
declared parameters, runs the handler, and folds any handler failure into a
``ToolOutcome`` so that downstream errors never escape as transport errors.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from sheets_mcp.sheets_api import SheetsApiClient, SheetsApiError
from sheets_mcp.tools import (
    add_sheet,
    append_data,
    batch_update,
    clear_range,
    create_spreadsheet,
    duplicate_sheet,
    get_spreadsheet_info,
    list_spreadsheets,
    read_range,
    write_range,
)

logger = logging.getLogger(__name__)

ToolHandler = Callable[..., Awaitable[Any]]

_JSON_TYPES: Dict[str, Callable[[Any], bool]] = {
    "string": lambda value: isinstance(value, str),
    "integer": lambda value: isinstance(value, int) and not isinstance(value, bool),
    "number": lambda value: isinstance(value, (int, float)) and not isinstance(value, bool),
    "boolean": lambda value: isinstance(value, bool),
    "array": lambda value: isinstance(value, list),
    "object": lambda value: isinstance(value, dict),
}


class ToolName(str, Enum):
    LIST_SPREADSHEETS = "list_spreadsheets"
    GET_SPREADSHEET_INFO = "get_spreadsheet_info"
    READ_RANGE = "read_range"
    WRITE_RANGE = "write_range"
    APPEND_DATA = "append_data"
    CLEAR_RANGE = "clear_range"
    CREATE_SPREADSHEET = "create_spreadsheet"
    ADD_SHEET = "add_sheet"
    DUPLICATE_SHEET = "duplicate_sheet"
    BATCH_UPDATE = "batch_update"


class UnknownToolError(LookupError):
    """Raised when a tool name is not in the registry."""

    def __init__(self, name: Any) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class InvalidToolArgumentsError(ValueError):
    """Raised when tool arguments do not satisfy the declared parameters."""


@dataclass(frozen=True, slots=True)
class ToolParam:
    type: str
    description: str
    required: bool = False
    items: Optional[str] = None

    def describe(self) -> Dict[str, Any]:
        return {"type": self.type, "required": self.required, "description": self.description}

    def json_schema(self) -> Dict[str, Any]:
        schema: Dict[str, Any] = {"type": self.type, "description": self.description}
        if self.items:
            schema["items"] = {"type": self.items}
        return schema


@dataclass(frozen=True, slots=True)
class ToolDefinition:
    name: ToolName
    description: str
    params: Mapping[str, ToolParam]
    handler: ToolHandler

    @property
    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {key: param.json_schema() for key, param in self.params.items()},
            "required": [key for key, param in self.params.items() if param.required],
            "additionalProperties": False,
        }

    def descriptor(self) -> Dict[str, Any]:
        return {
            "name": self.name.value,
            "description": self.description,
            "params": {key: param.describe() for key, param in self.params.items()},
            "inputSchema": self.input_schema,
        }


@dataclass(frozen=True, slots=True)
class ToolOutcome:
    """Either a tool's return value or a failure message, never both."""

    value: Any = None
    error: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @classmethod
    def success(cls, value: Any) -> "ToolOutcome":
        return cls(value=value)

    @classmethod
    def failure(cls, message: str) -> "ToolOutcome":
        return cls(error=message or "Error")


SPREADSHEET_ID = ToolParam("string", "Spreadsheet ID or URL", required=True)
A1_RANGE = ToolParam("string", "A1 notation range (e.g., 'Sheet1!A1:D10')", required=True)


def _definition(name: ToolName, description: str, handler: ToolHandler, **params: ToolParam) -> ToolDefinition:
    return ToolDefinition(name=name, description=description, params=MappingProxyType(params), handler=handler)


TOOL_REGISTRY: Mapping[ToolName, ToolDefinition] = MappingProxyType(
    {
        definition.name: definition
        for definition in (
            _definition(
                ToolName.LIST_SPREADSHEETS,
                "List Google Spreadsheets accessible by the service account, most recently modified first.",
                list_spreadsheets,
            ),
            _definition(
                ToolName.GET_SPREADSHEET_INFO,
                "Get metadata and sheet names for a spreadsheet.",
                get_spreadsheet_info,
                spreadsheet_id=SPREADSHEET_ID,
            ),
            _definition(
                ToolName.READ_RANGE,
                "Read data from a specific range in a spreadsheet.",
                read_range,
                spreadsheet_id=SPREADSHEET_ID,
                range=A1_RANGE,
            ),
            _definition(
                ToolName.WRITE_RANGE,
                "Write data to a specific range; values are parsed as if typed by a user.",
                write_range,
                spreadsheet_id=SPREADSHEET_ID,
                range=ToolParam("string", "A1 notation range (e.g., 'Sheet1!A1')", required=True),
                values=ToolParam("array", "2D array of values to write", required=True, items="array"),
            ),
            _definition(
                ToolName.APPEND_DATA,
                "Append rows after the last row of the table in a range.",
                append_data,
                spreadsheet_id=SPREADSHEET_ID,
                range=ToolParam("string", "Sheet name or A1 range to append to", required=True),
                values=ToolParam("array", "2D array of rows to append", required=True, items="array"),
            ),
            _definition(
                ToolName.CLEAR_RANGE,
                "Clear values (not formatting) from a specific range.",
                clear_range,
                spreadsheet_id=SPREADSHEET_ID,
                range=ToolParam("string", "A1 notation range to clear", required=True),
            ),
            _definition(
                ToolName.CREATE_SPREADSHEET,
                "Create a new Google Spreadsheet.",
                create_spreadsheet,
                title=ToolParam("string", "Title for the new spreadsheet", required=True),
                sheet_titles=ToolParam("array", "Optional list of sheet names to create, in order", items="string"),
            ),
            _definition(
                ToolName.ADD_SHEET,
                "Add a new sheet to an existing spreadsheet.",
                add_sheet,
                spreadsheet_id=SPREADSHEET_ID,
                title=ToolParam("string", "Title for the new sheet", required=True),
                index=ToolParam("integer", "Optional zero-based position (default: end)"),
            ),
            _definition(
                ToolName.DUPLICATE_SHEET,
                "Duplicate a sheet, including formatting, within the same spreadsheet.",
                duplicate_sheet,
                spreadsheet_id=SPREADSHEET_ID,
                sheet_id=ToolParam("integer", "ID of the sheet to copy", required=True),
                new_title=ToolParam("string", "Optional title for the copy (default: 'Copy of ...')"),
                insert_index=ToolParam("integer", "Optional zero-based position (default: after the source)"),
            ),
            _definition(
                ToolName.BATCH_UPDATE,
                "Apply raw batchUpdate requests (formatting, merges, sheet operations) in order.",
                batch_update,
                spreadsheet_id=SPREADSHEET_ID,
                requests=ToolParam("array", "List of batchUpdate request objects", required=True, items="object"),
            ),
        )
    }
)


def resolve_tool(name: Any) -> ToolDefinition:
    try:
        return TOOL_REGISTRY[ToolName(name)]
    except (ValueError, KeyError):
        raise UnknownToolError(name) from None


def _check_type(key: str, param: ToolParam, value: Any) -> None:
    if not _JSON_TYPES[param.type](value):
        raise InvalidToolArgumentsError(f"Parameter '{key}' must be of type {param.type}.")
    if param.items:
        if any(not _JSON_TYPES[param.items](item) for item in value):
            raise InvalidToolArgumentsError(f"Parameter '{key}' must contain only {param.items} items.")


def validate_arguments(tool: ToolDefinition, arguments: Mapping[str, Any]) -> Dict[str, Any]:
    """Return handler kwargs, dropping nulls for optional parameters."""
    unexpected = sorted(set(arguments) - set(tool.params))
    if unexpected:
        raise InvalidToolArgumentsError(f"Unexpected parameter(s): {', '.join(unexpected)}.")

    kwargs: Dict[str, Any] = {}
    for key, param in tool.params.items():
        value = arguments.get(key)
        if value is None:
            if param.required:
                raise InvalidToolArgumentsError(f"Missing required parameter '{key}'.")
            continue
        _check_type(key, param, value)
        kwargs[key] = value
    return kwargs


def list_tools() -> List[Dict[str, Any]]:
    """Return descriptors for every registered tool."""
    return [tool.descriptor() for tool in TOOL_REGISTRY.values()]


async def call_tool(
    tool_name: str, arguments: Optional[Mapping[str, Any]] = None, *, client: SheetsApiClient
) -> ToolOutcome:
    """
    Dispatch to a tool by name.

    Raises:
        UnknownToolError: the name is not registered.
        InvalidToolArgumentsError: arguments do not match the parameters.
    """
    tool = resolve_tool(tool_name)
    kwargs = validate_arguments(tool, arguments or {})

    try:
        value = await tool.handler(client, **kwargs)
    except SheetsApiError as exc:
        return ToolOutcome.failure(str(exc))
    except Exception:
        logger.exception("Unexpected error calling tool %s", tool.name.value)
        return ToolOutcome.failure("Unexpected error while calling tool.")
    return ToolOutcome.success(value)
