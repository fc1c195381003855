"""Error classes for the chatrelay framework."""

from typing import Optional


class ChatRelayError(Exception):
    """Base exception for all chatrelay errors."""

    def __init__(self, message: str, *, component: Optional[str] = None):
        self.component = component
        super().__init__(message)

    def __str__(self) -> str:
        if self.component:
            return f"[{self.component}] {super().__str__()}"
        return super().__str__()


class ConfigurationError(ChatRelayError):
    """Raised when the model, key, tools or memory are misconfigured."""
    pass


class TransportError(ChatRelayError):
    """Raised when the remote model cannot be reached or answers unusably."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        component: Optional[str] = None
    ):
        self.status = status
        super().__init__(message, component=component)


class ToolResolutionError(ChatRelayError):
    """Raised when a tool call cannot be matched or its arguments parsed."""
    pass


class ToolExecutionError(ChatRelayError):
    """Raised when a tool executor fails."""
    pass


class FormatError(ChatRelayError):
    """Raised when the final text is not the structured data requested."""
    pass
