"""Tests for the ToolRegistry class."""

import pytest

from chatrelay.core import ToolRegistry, ConfigurationError
from chatrelay.core.registry import to_wire_format
from chatrelay.types import ToolDefinition


def test_register_tool(base_tool) -> None:
    """Test registering a tool."""
    registry = ToolRegistry()
    tool = base_tool("test_tool")

    registered = registry.register_tool(tool)

    assert registered is tool
    assert "test_tool" in registry
    assert registry.get_tool("test_tool") is tool
    assert len(registry) == 1


def test_register_duplicate_tool(base_tool) -> None:
    """Test that registering a duplicate tool raises an error."""
    registry = ToolRegistry([base_tool("test_tool")])

    with pytest.raises(ConfigurationError, match="Tool 'test_tool' is already registered"):
        registry.register_tool(base_tool("test_tool"))


def test_duplicate_names_rejected_at_construction(base_tool) -> None:
    """Test that a tool list with repeated names is rejected."""
    with pytest.raises(ConfigurationError):
        ToolRegistry([base_tool("dup"), base_tool("dup")])


def test_register_tool_from_dict() -> None:
    """Test registering tools given as plain and nested dicts."""
    registry = ToolRegistry()
    registry.register_tool({
        "name": "flat",
        "description": "Flat tool",
        "execute": lambda args: "flat"
    })
    registry.register_tool({
        "type": "function",
        "function": {"name": "nested", "description": "Nested tool"},
        "execute": lambda args: "nested"
    })

    assert [tool.name for tool in registry.list_tools()] == ["flat", "nested"]
    assert registry.get_tool("nested").description == "Nested tool"


def test_register_malformed_tool() -> None:
    """Test that a dict without an executor is rejected."""
    registry = ToolRegistry()
    with pytest.raises(ConfigurationError, match="Invalid tool definition"):
        registry.register_tool({"name": "broken"})


def test_register_tool_with_empty_name(base_tool) -> None:
    """Test that an empty tool name is rejected."""
    registry = ToolRegistry()
    with pytest.raises(ConfigurationError, match="must not be empty"):
        registry.register_tool(base_tool(""))


def test_get_missing_tool() -> None:
    """Test that looking up an unknown tool returns None."""
    registry = ToolRegistry()
    assert registry.get_tool("nonexistent") is None
    assert "nonexistent" not in registry


def test_lookup_is_exact(base_tool) -> None:
    """Test that lookup does not match on case or prefix."""
    registry = ToolRegistry([base_tool("getWeather")])
    assert registry.get_tool("getweather") is None
    assert registry.get_tool("getWeath") is None


def test_wire_format_defaults(base_tool) -> None:
    """Test that missing description and schema are filled with defaults."""
    tool = base_tool("bare", description=None, parameters=None)

    wire = to_wire_format(tool)

    assert wire == {
        "type": "function",
        "function": {
            "name": "bare",
            "description": "",
            "parameters": {"type": "object", "properties": {}, "required": []}
        }
    }


def test_wire_format_keeps_schema(base_tool) -> None:
    """Test that a supplied parameter schema is passed through."""
    schema = {
        "type": "object",
        "properties": {"city": {"type": "string"}},
        "required": ["city"]
    }
    registry = ToolRegistry([base_tool("getWeather", parameters=schema)])

    wire = registry.to_wire_format()

    assert wire[0]["function"]["parameters"] == schema
    assert wire[0]["function"]["description"] == "A test tool"


def test_default_schema_is_not_shared(base_tool) -> None:
    """Test that mutating one default schema does not affect others."""
    first = to_wire_format(base_tool("a", parameters=None))
    first["function"]["parameters"]["properties"]["x"] = {}

    second = to_wire_format(base_tool("b", parameters=None))
    assert second["function"]["parameters"]["properties"] == {}


def test_tool_choice(base_tool) -> None:
    """Test the tool-choice signal for empty and populated registries."""
    empty = ToolRegistry()
    assert empty.tool_choice == "none"
    assert not empty

    populated = ToolRegistry([base_tool("t")])
    assert populated.tool_choice == "auto"
    assert populated


def test_tool_definition_from_dict_keeps_executor() -> None:
    """Test that nested tool dicts keep their executor."""
    def handler(args):
        return args

    tool = ToolDefinition.from_dict({
        "type": "function",
        "function": {"name": "echo", "parameters": {"type": "object", "properties": {}}},
        "execute": handler
    })
    assert tool.execute is handler
    assert tool.parameters == {"type": "object", "properties": {}}
