"""Tool Executor for the chatrelay framework.

This module resolves tool calls requested by the model against a tool
registry. Resolution never raises: unknown tools, unparseable arguments
and failing executors all become tool-result messages carrying an
``{"error": ...}`` payload, so the model can recover.
"""

import inspect
import json
import logging
import time
from typing import Any, List, Tuple

from chatrelay.core.errors import ToolExecutionError, ToolResolutionError
from chatrelay.core.registry import ToolRegistry
from chatrelay.types import ToolCallRequest, ToolInvocationRecord, ToolMessage
from chatrelay.utils.log_utils import redact_sensitive_data, sanitize_log_message

logger = logging.getLogger(__name__)


def encode_result(result: Any) -> str:
    """Render a tool result as message content."""
    if isinstance(result, str):
        return result
    try:
        return json.dumps(result)
    except (TypeError, ValueError):
        return str(result)


def error_payload(message: str) -> str:
    return json.dumps({"error": message})


class ToolExecutor:
    """Executor for resolving model tool calls against a registry."""

    def __init__(self, registry: ToolRegistry) -> None:
        """Initialize a tool executor.

        Args:
            registry: The tool registry containing the tools offered to the model
        """
        self._registry = registry

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    def parse_arguments(self, call: ToolCallRequest) -> Any:
        """Parse the raw arguments of a tool call.

        Raises:
            ToolResolutionError: If the arguments are not valid JSON
        """
        raw = call.raw_arguments
        if raw is None or not raw.strip():
            return {}
        try:
            return json.loads(raw)
        except ValueError as e:
            raise ToolResolutionError(
                f"Invalid arguments for tool '{call.name}': {e}"
            ) from e

    async def execute_tool(self, name: str, arguments: Any) -> Any:
        """Execute a registered tool with already parsed arguments.

        Args:
            name: The name of the tool to execute
            arguments: Arguments passed to the tool executor

        Returns:
            The result from the tool executor

        Raises:
            ToolResolutionError: If no tool with the given name exists
            ToolExecutionError: If the executor raises
        """
        tool = self._registry.get_tool(name)
        if tool is None:
            raise ToolResolutionError(f"Tool '{name}' not found")

        try:
            result = tool.execute(arguments)
            if inspect.isawaitable(result):
                result = await result
            return result
        except ToolExecutionError:
            raise
        except Exception as e:
            raise ToolExecutionError(str(e) or type(e).__name__) from e

    async def resolve(self, call: ToolCallRequest) -> Tuple[ToolMessage, ToolInvocationRecord]:
        """Resolve one tool call into a tool-result message.

        Args:
            call: The tool call emitted by the model

        Returns:
            The tool-result message and a record of the invocation
        """
        start_time = time.time()
        arguments: Any = {}

        try:
            if call.name not in self._registry:
                raise ToolResolutionError(f"Tool '{call.name}' not found")
            arguments = self.parse_arguments(call)
            result = await self.execute_tool(call.name, arguments)
        except (ToolResolutionError, ToolExecutionError) as e:
            duration = time.time() - start_time
            # str() of the bare message, without any component prefix
            reason = e.args[0] if e.args else str(e)
            logger.warning("Tool call failed", extra={
                "tool_name": call.name,
                "tool_call_id": call.id,
                "error_type": type(e).__name__,
                "error": sanitize_log_message(reason),
                "duration_ms": int(duration * 1000)
            })
            message = ToolMessage(
                tool_call_id=call.id,
                name=call.name,
                content=error_payload(reason)
            )
            return message, ToolInvocationRecord(
                name=call.name, arguments=arguments, error=reason
            )

        duration = time.time() - start_time
        logger.info("Tool call completed", extra={
            "tool_name": call.name,
            "tool_call_id": call.id,
            "arguments": redact_sensitive_data(arguments) if isinstance(arguments, dict) else arguments,
            "duration_ms": int(duration * 1000)
        })
        message = ToolMessage(
            tool_call_id=call.id,
            name=call.name,
            content=encode_result(result)
        )
        return message, ToolInvocationRecord(
            name=call.name, arguments=arguments, result=result
        )

    async def resolve_all(
        self,
        calls: List[ToolCallRequest]
    ) -> Tuple[List[ToolMessage], List[ToolInvocationRecord]]:
        """Resolve a round of tool calls sequentially, in request order."""
        messages: List[ToolMessage] = []
        records: List[ToolInvocationRecord] = []
        for call in calls:
            message, record = await self.resolve(call)
            messages.append(message)
            records.append(record)
        return messages, records
