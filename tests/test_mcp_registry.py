import pytest

from sheets_mcp import mcp
from sheets_mcp.sheets_api import SpreadsheetNotFoundError


def test_registry_covers_every_tool_name():
    assert set(mcp.TOOL_REGISTRY) == set(mcp.ToolName)
    assert len(mcp.TOOL_REGISTRY) == 10


def test_registry_is_read_only():
    with pytest.raises(TypeError):
        mcp.TOOL_REGISTRY["extra"] = None  # type: ignore[index]


def test_list_tools_descriptors():
    tools = {tool["name"]: tool for tool in mcp.list_tools()}
    assert set(tools) == {name.value for name in mcp.ToolName}

    read = tools["read_range"]
    assert read["params"]["spreadsheet_id"] == {
        "type": "string",
        "required": True,
        "description": "Spreadsheet ID or URL",
    }
    assert read["inputSchema"]["required"] == ["spreadsheet_id", "range"]
    assert read["inputSchema"]["additionalProperties"] is False

    create = tools["create_spreadsheet"]
    assert create["inputSchema"]["properties"]["sheet_titles"]["items"] == {"type": "string"}
    assert create["inputSchema"]["required"] == ["title"]
    assert tools["list_spreadsheets"]["inputSchema"]["properties"] == {}


def test_resolve_tool_rejects_unknown_names():
    assert mcp.resolve_tool("read_range").name is mcp.ToolName.READ_RANGE
    with pytest.raises(mcp.UnknownToolError) as excinfo:
        mcp.resolve_tool("drop_table")
    assert str(excinfo.value) == "Unknown tool: drop_table"


@pytest.mark.parametrize(
    "arguments, message",
    [
        ({"spreadsheet_id": "abc"}, "Missing required parameter 'range'"),
        ({"spreadsheet_id": "abc", "range": 5}, "'range' must be of type string"),
        ({"spreadsheet_id": "abc", "range": "A1", "extra": 1}, "Unexpected parameter(s): extra"),
    ],
)
def test_validate_arguments_errors(arguments, message):
    tool = mcp.resolve_tool("read_range")
    with pytest.raises(mcp.InvalidToolArgumentsError) as excinfo:
        mcp.validate_arguments(tool, arguments)
    assert message in str(excinfo.value)


def test_validate_arguments_checks_array_items_and_integers():
    write = mcp.resolve_tool("write_range")
    with pytest.raises(mcp.InvalidToolArgumentsError):
        mcp.validate_arguments(write, {"spreadsheet_id": "a", "range": "A1", "values": [1, 2]})

    duplicate = mcp.resolve_tool("duplicate_sheet")
    with pytest.raises(mcp.InvalidToolArgumentsError):
        mcp.validate_arguments(duplicate, {"spreadsheet_id": "a", "sheet_id": True})


def test_validate_arguments_drops_null_optionals():
    tool = mcp.resolve_tool("add_sheet")
    kwargs = mcp.validate_arguments(tool, {"spreadsheet_id": "a", "title": "T", "index": None})
    assert kwargs == {"spreadsheet_id": "a", "title": "T"}


@pytest.mark.asyncio
async def test_call_tool_success(stub_client):
    stub_client.responses["get_values"] = {"values": [["x"]]}
    outcome = await mcp.call_tool("read_range", {"spreadsheet_id": "abc", "range": "A1"}, client=stub_client)
    assert not outcome.is_error
    assert outcome.value == [["x"]]


@pytest.mark.asyncio
async def test_call_tool_folds_api_errors(stub_client):
    stub_client.error = SpreadsheetNotFoundError("Not found: Requested entity was not found.")
    outcome = await mcp.call_tool("read_range", {"spreadsheet_id": "abc", "range": "A1"}, client=stub_client)
    assert outcome.is_error
    assert outcome.error == "Not found: Requested entity was not found."
    assert outcome.value is None


@pytest.mark.asyncio
async def test_call_tool_folds_unexpected_errors(stub_client):
    stub_client.error = RuntimeError("kaboom")
    outcome = await mcp.call_tool("list_spreadsheets", {}, client=stub_client)
    assert outcome.is_error
    assert outcome.error == "Unexpected error while calling tool."


@pytest.mark.asyncio
async def test_call_tool_unknown_raises(stub_client):
    with pytest.raises(mcp.UnknownToolError):
        await mcp.call_tool("nope", {}, client=stub_client)
    assert stub_client.calls == []
