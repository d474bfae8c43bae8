import pytest

from mcpkit.tool import Tool, ToolCall


def test_tool_to_dict_uses_camel_case_schema_key():
    tool = Tool("echo", "Echo text", {"type": "object"})
    assert tool.to_dict() == {
        "name": "echo",
        "description": "Echo text",
        "inputSchema": {"type": "object"},
    }


def test_tool_round_trip():
    tool = Tool("add", "Add numbers", {"type": "object", "properties": {"a": {}}})
    assert Tool.from_dict(tool.to_dict()) == tool


def test_tool_from_dict_missing_schema():
    with pytest.raises(ValueError):
        Tool.from_dict({"name": "echo", "description": "Echo text"})


def test_tool_from_dict_invalid_name():
    with pytest.raises(ValueError):
        Tool.from_dict({"name": 5, "description": "d", "inputSchema": {}})


def test_tool_call_round_trip():
    call = ToolCall("echo", {"text": "hi"})
    data = call.to_dict()
    assert data == {"name": "echo", "arguments": {"text": "hi"}}
    assert ToolCall.from_dict(data) == call


def test_tool_call_missing_arguments():
    with pytest.raises(ValueError):
        ToolCall.from_dict({"name": "echo"})