"""Tool Registry for the chatrelay framework.

This module provides a registry for managing tool definitions and
converting them to the wire format of the completion endpoint.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from chatrelay.core.errors import ConfigurationError
from chatrelay.types import ToolDefinition

logger = logging.getLogger(__name__)


def to_wire_format(tool: ToolDefinition) -> Dict[str, Any]:
    """Convert a tool definition to the function-calling wire format.

    Missing descriptions and parameter schemas are replaced with safe defaults.

    Args:
        tool: The tool definition to convert

    Returns:
        Dict of the form ``{"type": "function", "function": {...}}``
    """
    return {
        "type": "function",
        "function": {
            "name": tool.name,
            "description": tool.description or "",
            "parameters": tool.parameters_schema()
        }
    }


class ToolRegistry:
    """Registry for managing tool definitions.

    The registry holds the tools offered in one request. It ensures that
    tool names are unique and provides lookup by exact name.
    """

    def __init__(self, tools: Optional[Iterable[Union[ToolDefinition, Dict[str, Any]]]] = None) -> None:
        """Initialize the registry.

        Args:
            tools: Optional tools to register immediately

        Raises:
            ConfigurationError: If a tool is malformed or a name is repeated
        """
        self._tools: Dict[str, ToolDefinition] = {}
        for tool in tools or []:
            self.register_tool(tool)

    def register_tool(self, tool: Union[ToolDefinition, Dict[str, Any]]) -> ToolDefinition:
        """Register a new tool in the registry.

        Args:
            tool: The tool definition to register (either a ToolDefinition or dict)

        Returns:
            The registered definition

        Raises:
            ConfigurationError: If the tool is malformed or its name is already registered
        """
        if isinstance(tool, dict):
            try:
                tool = ToolDefinition.from_dict(tool)
            except (ValidationError, TypeError) as e:
                raise ConfigurationError(f"Invalid tool definition: {e}") from e

        if not tool.name:
            raise ConfigurationError("Tool name must not be empty")

        if tool.name in self._tools:
            raise ConfigurationError(f"Tool '{tool.name}' is already registered")

        self._tools[tool.name] = tool
        logger.debug("Tool registered", extra={"tool_name": tool.name})
        return tool

    def get_tool(self, name: str) -> Optional[ToolDefinition]:
        """Get a tool definition by exact name, or None if absent."""
        return self._tools.get(name)

    def list_tools(self) -> List[ToolDefinition]:
        """Get a list of all registered tools, in registration order."""
        return list(self._tools.values())

    def to_wire_format(self) -> List[Dict[str, Any]]:
        return [to_wire_format(tool) for tool in self._tools.values()]

    @property
    def tool_choice(self) -> str:
        """The tool-choice signal matching the registered tools."""
        return "auto" if self._tools else "none"

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __bool__(self) -> bool:
        return bool(self._tools)
