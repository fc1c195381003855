from chatrelay.types.models import (
    Message,
    SystemMessage,
    UserMessage,
    AssistantMessage,
    ToolMessage,
    ToolCallRequest,
    ToolDefinition,
    ToolInvocationRecord,
    OrchestrationResult,
)

__all__ = [
    "Message",
    "SystemMessage",
    "UserMessage",
    "AssistantMessage",
    "ToolMessage",
    "ToolCallRequest",
    "ToolDefinition",
    "ToolInvocationRecord",
    "OrchestrationResult",
]
