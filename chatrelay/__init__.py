"""chatrelay: Tool-Enabled Conversations with Remote Language Models.

This package runs conversation turns against an OpenAI-compatible chat
completions endpoint. The model may call caller-supplied tools; their
results are fed back until the model answers in text. Conversation
history is kept in a bounded memory that can be persisted through a
pluggable store.

Key Components:
    - ChatAgent: Runs one turn from caller input to formatted output
    - ToolDefinition / ToolRegistry: Describe the tools offered to the model
    - OrchestrationLoop: Calls the model and resolves tool calls
    - ConversationMemory: Bounded history of user and assistant turns
    - TemplateEngine: ``${path}`` substitution used by HTTP tools

Example:
    ```python
    from chatrelay import AIRequestConfig, ChatAgent, ConversationMemory
    from chatrelay.tools import create_function_tool

    double = create_function_tool(
        name="double",
        description="Double a number",
        code="input['value'] * 2",
        parameters={
            "type": "object",
            "properties": {"value": {"type": "number"}},
            "required": ["value"]
        }
    )
    config = AIRequestConfig(model="openai/gpt-4o-mini", api_key="sk-...", tools=[double])

    async with ChatAgent(config) as agent:
        memory = ConversationMemory(capacity=100)
        reply = await agent.process("What is 21 doubled?", memory=memory)
    ```
"""

from chatrelay.core import (
    AIRequestConfig,
    EndpointConfig,
    RelaySettings,
    ToolRegistry,
    ToolExecutor,
    TemplateEngine,
    Transport,
    TransportResponse,
    AiohttpTransport,
    PromptAssembler,
    ConversationMemory,
    MemoryStore,
    InMemoryStore,
    FileMemoryStore,
    ModelClient,
    OrchestrationLoop,
    ResponseFormatter,
    ResponseType,
    ChatRelayError,
    ConfigurationError,
    TransportError,
    ToolResolutionError,
    ToolExecutionError,
    FormatError
)
from chatrelay.types import (
    Message,
    SystemMessage,
    UserMessage,
    AssistantMessage,
    ToolMessage,
    ToolCallRequest,
    ToolDefinition,
    ToolInvocationRecord,
    OrchestrationResult
)
from chatrelay.agent import ChatAgent

__all__ = [
    "ChatAgent",
    "AIRequestConfig",
    "EndpointConfig",
    "RelaySettings",
    "ToolRegistry",
    "ToolExecutor",
    "TemplateEngine",
    "Transport",
    "TransportResponse",
    "AiohttpTransport",
    "PromptAssembler",
    "ConversationMemory",
    "MemoryStore",
    "InMemoryStore",
    "FileMemoryStore",
    "ModelClient",
    "OrchestrationLoop",
    "ResponseFormatter",
    "ResponseType",
    "ChatRelayError",
    "ConfigurationError",
    "TransportError",
    "ToolResolutionError",
    "ToolExecutionError",
    "FormatError",
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

__version__ = "0.1.0"
