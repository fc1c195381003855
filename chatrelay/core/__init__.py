"""Core module for the chatrelay framework."""

from .errors import (
    ChatRelayError,
    ConfigurationError,
    TransportError,
    ToolResolutionError,
    ToolExecutionError,
    FormatError
)
from .config import AIRequestConfig, EndpointConfig, RelaySettings
from .registry import ToolRegistry
from .executor import ToolExecutor
from .template import TemplateEngine
from .transport import Transport, TransportResponse, AiohttpTransport
from .prompt import PromptAssembler, normalize_input
from .memory import ConversationMemory, MemoryStore, InMemoryStore, FileMemoryStore
from .model_client import ModelClient
from .loop import OrchestrationLoop
from .formatter import ResponseFormatter, ResponseType

__all__ = [
    "ChatRelayError",
    "ConfigurationError",
    "TransportError",
    "ToolResolutionError",
    "ToolExecutionError",
    "FormatError",
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
    "normalize_input",
    "ConversationMemory",
    "MemoryStore",
    "InMemoryStore",
    "FileMemoryStore",
    "ModelClient",
    "OrchestrationLoop",
    "ResponseFormatter",
    "ResponseType"
]
