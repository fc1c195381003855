"""Common test fixtures for the entire test suite."""

import json
import pytest
from typing import Any, Callable, Dict, List, Optional, Union

from chatrelay.core import AIRequestConfig, Transport, TransportResponse, TransportError
from chatrelay.types import ToolDefinition, UserMessage, AssistantMessage


class FakeTransport(Transport):
    """Transport returning queued responses and recording every request."""

    def __init__(self, responses: Optional[List[Union[TransportResponse, Exception]]] = None):
        self.responses = list(responses or [])
        self.requests: List[Dict[str, Any]] = []
        self.closed = False

    def queue(self, response: Union[TransportResponse, Exception]) -> None:
        self.responses.append(response)

    async def request(self, method, url, *, headers=None, json=None, data=None, timeout=None):
        self.requests.append({
            "method": method,
            "url": url,
            "headers": headers,
            "json": json,
            "data": data,
            "timeout": timeout,
        })
        if not self.responses:
            raise TransportError("No response queued")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self) -> None:
        self.closed = True

    @property
    def bodies(self) -> List[Dict[str, Any]]:
        return [request["json"] for request in self.requests]


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    """Fixture to ensure no environment variables affect tests.
    
    This fixture runs automatically for all tests to ensure a clean environment.
    """
    env_vars = [
        "CHATRELAY_API_KEY", "CHATRELAY_MODEL", "CHATRELAY_TEMPERATURE",
        "CHATRELAY_MAX_TOKENS", "CHATRELAY_MAX_TOOL_ROUNDS", "CHATRELAY_BASE_URL",
        "CHATRELAY_APP_URL", "CHATRELAY_APP_TITLE", "CHATRELAY_REQUEST_TIMEOUT",
        "CHATRELAY_TRANSPORT_MAX_TRIES", "CHATRELAY_SYSTEM_PROMPT",
        "CHATRELAY_AGENT_NAME", "CHATRELAY_MEMORY_CAPACITY",
        "CHATRELAY_LOG_LEVEL", "CHATRELAY_LOG_DIR"
    ]
    for var in env_vars:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def chat_completion():
    """Base fixture for completion endpoint responses.
    
    Returns:
        Callable: A factory building a successful TransportResponse.
        
    Example:
        def test_something(chat_completion):
            response = chat_completion(
                content=None,
                tool_calls=[("call_1", "testTool", {"param1": "value1"})]
            )
    """
    def _make_response(
        content: Optional[str] = None,
        tool_calls: Optional[List[tuple]] = None,
        status: int = 200
    ) -> TransportResponse:
        message: Dict[str, Any] = {"role": "assistant", "content": content}
        if tool_calls:
            message["tool_calls"] = [
                {
                    "id": call_id,
                    "type": "function",
                    "function": {
                        "name": name,
                        "arguments": arguments if isinstance(arguments, str) else json.dumps(arguments)
                    }
                }
                for call_id, name, arguments in tool_calls
            ]
        return TransportResponse(
            status=status,
            headers={"Content-Type": "application/json"},
            data={"choices": [{"message": message}]}
        )
    return _make_response


@pytest.fixture
def fake_transport():
    """Base fixture for fake transports.
    
    Returns:
        Callable: A factory creating a FakeTransport with queued responses.
    """
    def _make_transport(*responses: Union[TransportResponse, Exception]) -> FakeTransport:
        return FakeTransport(list(responses))
    return _make_transport


@pytest.fixture
def base_tool():
    """Base fixture for creating tools.
    
    Returns:
        Callable: A factory function that creates ToolDefinition instances.
        
    Example:
        def test_something(base_tool):
            tool = base_tool("test_tool", handler=lambda args: "ok")
    """
    def _make_tool(
        name: str,
        handler: Optional[Callable[[Any], Any]] = None,
        description: Optional[str] = "A test tool",
        parameters: Optional[Dict[str, Any]] = None
    ) -> ToolDefinition:
        return ToolDefinition(
            name=name,
            description=description,
            parameters=parameters,
            execute=handler or (lambda args: "Tool result")
        )
    return _make_tool


@pytest.fixture
def base_config():
    """Base fixture for request configuration.
    
    Returns:
        Callable: A factory creating AIRequestConfig instances.
    """
    def _make_config(
        model: str = "m",
        api_key: str = "k",
        tools: Optional[List[ToolDefinition]] = None,
        **kwargs: Any
    ) -> AIRequestConfig:
        return AIRequestConfig(model=model, api_key=api_key, tools=tools or [], **kwargs)
    return _make_config


@pytest.fixture
def sample_history():
    """Fixture for a short stored conversation."""
    return [
        UserMessage(content="Hello, can you help me?"),
        AssistantMessage(content="Of course! What can I help you with?"),
    ]
