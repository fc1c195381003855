"""Type definitions for the chatrelay framework.

This module contains the core message and result types used throughout
the framework. Messages are a tagged union over ``role``: only assistant
messages carry tool calls and only tool messages carry a tool call id.
"""

import copy
import json
from datetime import datetime, timezone
from typing import (
    Annotated,
    Any,
    Callable,
    Dict,
    List,
    Literal,
    Optional,
    Union,
)

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ToolCallRequest(BaseModel):
    """A tool call emitted by the model.

    Attributes:
        id: Identifier assigned by the model, echoed back in the tool result
        name: Name of the requested tool
        raw_arguments: Arguments exactly as the model produced them (JSON text)
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    raw_arguments: str = "{}"

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "ToolCallRequest":
        """Build a request from the ``{id, function: {name, arguments}}`` wire shape."""
        function = data.get("function") or {}
        arguments = function.get("arguments")
        if arguments is None:
            arguments = "{}"
        elif not isinstance(arguments, str):
            arguments = json.dumps(arguments)
        return cls(
            id=str(data.get("id", "")),
            name=str(function.get("name", "")),
            raw_arguments=arguments,
        )

    def to_wire(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.raw_arguments},
        }


class _BaseMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utcnow)

    def to_wire(self) -> Dict[str, Any]:
        """Render the message in the shape the completion endpoint expects."""
        return {"role": self.role, "content": self.content}


class SystemMessage(_BaseMessage):
    role: Literal["system"] = "system"


class UserMessage(_BaseMessage):
    role: Literal["user"] = "user"


class AssistantMessage(_BaseMessage):
    """An assistant reply, possibly requesting tool calls."""

    role: Literal["assistant"] = "assistant"
    tool_calls: List[ToolCallRequest] = Field(default_factory=list)

    def to_wire(self) -> Dict[str, Any]:
        wire = super().to_wire()
        if self.tool_calls:
            wire["tool_calls"] = [call.to_wire() for call in self.tool_calls]
        return wire


class ToolMessage(_BaseMessage):
    """The result of one tool call, fed back to the model."""

    role: Literal["tool"] = "tool"
    tool_call_id: str
    name: str

    def to_wire(self) -> Dict[str, Any]:
        wire = super().to_wire()
        wire["tool_call_id"] = self.tool_call_id
        wire["name"] = self.name
        return wire


Message = Annotated[
    Union[SystemMessage, UserMessage, AssistantMessage, ToolMessage],
    Field(discriminator="role"),
]

MessageAdapter: TypeAdapter = TypeAdapter(Message)


def message_to_dict(message: Message) -> Dict[str, Any]:
    return message.model_dump(mode="json")


EMPTY_PARAMETERS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {},
    "required": [],
}


class ToolDefinition(BaseModel):
    """Definition of a tool the model may ask to invoke.

    Attributes:
        name: The name of the tool, unique within a request
        description: A human-readable description of what the tool does
        parameters: JSON-schema object describing the tool arguments
        execute: Sync or async callable receiving the parsed arguments
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    description: Optional[str] = None
    parameters: Optional[Dict[str, Any]] = None
    execute: Callable[..., Any]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ToolDefinition":
        """Build a definition from a flat dict or the ``{type, function, execute}`` shape."""
        if "function" in data and isinstance(data["function"], dict):
            function = data["function"]
            return cls(
                name=function.get("name") or "",
                description=function.get("description"),
                parameters=function.get("parameters"),
                execute=data.get("execute"),
            )
        return cls(**data)

    def parameters_schema(self) -> Dict[str, Any]:
        if not isinstance(self.parameters, dict) or not self.parameters:
            return copy.deepcopy(EMPTY_PARAMETERS_SCHEMA)
        return self.parameters


class ToolInvocationRecord(BaseModel):
    """Outcome of a single tool call within a turn."""

    name: str
    arguments: Any = None
    result: Any = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class OrchestrationResult(BaseModel):
    """Result of one turn through the orchestration loop.

    Attributes:
        final_text: The trimmed text of the terminal model response
        turns_used: Number of remote model calls made during the turn
        tool_invocations: Every tool call resolved during the turn, in order
        messages: The working message list at the end of the turn
    """

    final_text: str
    turns_used: int
    tool_invocations: List[ToolInvocationRecord] = Field(default_factory=list)
    messages: List[Message] = Field(default_factory=list)
