"""Tests for the ToolExecutor class."""

import json
import pytest
from typing import Any, Dict

from chatrelay.core import ToolRegistry, ToolExecutor
from chatrelay.core.errors import ToolExecutionError, ToolResolutionError
from chatrelay.core.executor import encode_result
from chatrelay.types import ToolCallRequest


@pytest.fixture
def executor(base_tool) -> ToolExecutor:
    """Create a test executor with sync, async and failing tools."""
    def sync_handler(params: Dict[str, Any]) -> str:
        return f"Test result 1: {params['param1']}"

    async def async_handler(params: Dict[str, Any]) -> Dict[str, Any]:
        return {"doubled": params.get("value", 0) * 2}

    def failing_handler(params: Dict[str, Any]) -> None:
        raise RuntimeError("boom")

    registry = ToolRegistry([
        base_tool("tool1", handler=sync_handler),
        base_tool("tool2", handler=async_handler),
        base_tool("failing", handler=failing_handler),
    ])
    return ToolExecutor(registry)


@pytest.mark.asyncio
async def test_execute_tool(executor: ToolExecutor) -> None:
    """Test executing sync and async tools."""
    assert await executor.execute_tool("tool1", {"param1": "test"}) == "Test result 1: test"
    assert await executor.execute_tool("tool2", {"value": 21}) == {"doubled": 42}


@pytest.mark.asyncio
async def test_execute_nonexistent_tool(executor: ToolExecutor) -> None:
    """Test that executing a nonexistent tool raises an error."""
    with pytest.raises(ToolResolutionError, match="Tool 'nonexistent_tool' not found"):
        await executor.execute_tool("nonexistent_tool", {})


@pytest.mark.asyncio
async def test_execute_failing_tool(executor: ToolExecutor) -> None:
    """Test that executor exceptions are wrapped."""
    with pytest.raises(ToolExecutionError, match="boom"):
        await executor.execute_tool("failing", {})


@pytest.mark.asyncio
async def test_resolve_success(executor: ToolExecutor) -> None:
    """Test resolving a call into a tool message."""
    call = ToolCallRequest(id="call_1", name="tool2", raw_arguments='{"value": 5}')

    message, record = await executor.resolve(call)

    assert message.role == "tool"
    assert message.tool_call_id == "call_1"
    assert message.name == "tool2"
    assert json.loads(message.content) == {"doubled": 10}
    assert record.succeeded
    assert record.arguments == {"value": 5}
    assert record.result == {"doubled": 10}


@pytest.mark.asyncio
async def test_resolve_string_result_verbatim(executor: ToolExecutor) -> None:
    """Test that string results are not JSON-encoded again."""
    call = ToolCallRequest(id="c", name="tool1", raw_arguments='{"param1": "x"}')

    message, _ = await executor.resolve(call)

    assert message.content == "Test result 1: x"


@pytest.mark.asyncio
async def test_resolve_unknown_tool(executor: ToolExecutor) -> None:
    """Test that an unknown tool becomes an error payload."""
    call = ToolCallRequest(id="call_9", name="missing", raw_arguments="{not json")

    message, record = await executor.resolve(call)

    assert message.tool_call_id == "call_9"
    assert json.loads(message.content) == {"error": "Tool 'missing' not found"}
    assert not record.succeeded
    assert record.arguments == {}


@pytest.mark.asyncio
async def test_resolve_invalid_arguments(base_tool) -> None:
    """Test that unparseable arguments are reported without executing the tool."""
    calls = []
    executor = ToolExecutor(ToolRegistry([base_tool("t", handler=calls.append)]))
    call = ToolCallRequest(id="c1", name="t", raw_arguments="{oops")

    message, record = await executor.resolve(call)

    assert calls == []
    error = json.loads(message.content)["error"]
    assert error.startswith("Invalid arguments for tool 't'")
    assert record.error == error


@pytest.mark.asyncio
async def test_resolve_failing_tool(executor: ToolExecutor) -> None:
    """Test that a raising executor becomes an error payload."""
    call = ToolCallRequest(id="c2", name="failing", raw_arguments="{}")

    message, record = await executor.resolve(call)

    assert json.loads(message.content) == {"error": "boom"}
    assert record.error == "boom"


@pytest.mark.asyncio
async def test_blank_arguments_parse_as_empty_object(base_tool) -> None:
    """Test that empty argument text is treated as an empty object."""
    seen = []
    executor = ToolExecutor(ToolRegistry([base_tool("t", handler=seen.append)]))

    await executor.resolve(ToolCallRequest(id="c", name="t", raw_arguments="  "))

    assert seen == [{}]


@pytest.mark.asyncio
async def test_resolve_all_preserves_order(executor: ToolExecutor) -> None:
    """Test that a round of calls is answered in request order."""
    calls = [
        ToolCallRequest(id="a", name="tool2", raw_arguments='{"value": 1}'),
        ToolCallRequest(id="b", name="missing"),
        ToolCallRequest(id="c", name="tool1", raw_arguments='{"param1": "z"}'),
    ]

    messages, records = await executor.resolve_all(calls)

    assert [m.tool_call_id for m in messages] == ["a", "b", "c"]
    assert [r.succeeded for r in records] == [True, False, True]


def test_encode_result() -> None:
    """Test rendering of tool results."""
    assert encode_result("plain") == "plain"
    assert encode_result({"a": 1}) == '{"a": 1}'
    assert encode_result(None) == "null"
    assert encode_result({1, 2}) in ("{1, 2}", "{2, 1}")
