"""Client for an OpenAI-compatible chat completions endpoint."""

import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from chatrelay.core.config import AIRequestConfig, EndpointConfig
from chatrelay.core.errors import TransportError
from chatrelay.core.registry import ToolRegistry
from chatrelay.core.transport import Transport
from chatrelay.types import AssistantMessage, Message, ToolCallRequest
from chatrelay.utils.log_utils import sanitize_log_message

logger = logging.getLogger(__name__)


def extract_error_message(data: Any) -> Optional[str]:
    """Return ``error.message`` from an error body, if present."""
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
    return None


class ModelClient:
    """Sends completion requests and decodes the assistant reply."""

    def __init__(self, transport: Transport, endpoint: Optional[EndpointConfig] = None) -> None:
        """Initialize the client.

        Args:
            transport: Transport used for the HTTP POST
            endpoint: Endpoint URL, identification headers and timeout
        """
        self.transport = transport
        self.endpoint = endpoint or EndpointConfig()

    def build_headers(self, config: AIRequestConfig) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {config.api_key.get_secret_value()}",
            "Content-Type": "application/json",
            "HTTP-Referer": self.endpoint.app_url,
            "X-Title": self.endpoint.app_title,
        }
        headers.update(self.endpoint.extra_headers)
        return headers

    def build_payload(
        self,
        config: AIRequestConfig,
        messages: Sequence[Message],
        registry: Optional[ToolRegistry] = None
    ) -> Dict[str, Any]:
        """Serialize one completion request.

        Args:
            config: Model configuration
            messages: Working message list
            registry: Tools offered in this request, if any

        Returns:
            The JSON request body
        """
        payload: Dict[str, Any] = {
            "model": config.model,
            "temperature": config.temperature,
            "max_tokens": config.max_tokens,
            "messages": [message.to_wire() for message in messages],
        }
        if registry:
            payload["tools"] = registry.to_wire_format()
            payload["tool_choice"] = registry.tool_choice
        return payload

    def parse_reply(self, data: Any) -> AssistantMessage:
        """Decode ``choices[0].message`` from a response body.

        Raises:
            TransportError: If the body does not have the expected shape
        """
        try:
            message = data["choices"][0]["message"]
        except (KeyError, IndexError, TypeError) as e:
            error_message = extract_error_message(data)
            if error_message:
                raise TransportError(f"AI API Error: {error_message}") from e
            raise TransportError("AI API Error: malformed response: missing choices[0].message") from e
        if not isinstance(message, dict):
            raise TransportError("AI API Error: malformed response: message is not an object")

        content = message.get("content")
        if content is not None and not isinstance(content, str):
            content = str(content)

        tool_calls: List[ToolCallRequest] = []
        for raw_call in message.get("tool_calls") or []:
            if not isinstance(raw_call, dict):
                raise TransportError("AI API Error: malformed response: tool call is not an object")
            tool_calls.append(ToolCallRequest.from_wire(raw_call))

        return AssistantMessage(content=content, tool_calls=tool_calls)

    async def complete(
        self,
        config: AIRequestConfig,
        messages: Sequence[Message],
        registry: Optional[ToolRegistry] = None
    ) -> AssistantMessage:
        """Invoke the model once.

        Args:
            config: Model configuration
            messages: Working message list
            registry: Tools offered in this request, if any

        Returns:
            The assistant reply

        Raises:
            TransportError: On network failure, a non-2xx status, or a malformed body
        """
        start_time = time.time()
        payload = self.build_payload(config, messages, registry)
        logger.info("Calling model", extra={
            "model": config.model,
            "num_messages": len(payload["messages"]),
            "num_tools": len(payload.get("tools", [])),
            "tool_choice": payload.get("tool_choice", "none")
        })

        try:
            response = await self.transport.post(
                self.endpoint.url,
                headers=self.build_headers(config),
                json=payload,
                timeout=self.endpoint.timeout
            )
        except TransportError as e:
            raise TransportError(f"AI API Error: {e.args[0]}", status=e.status) from e
        duration = time.time() - start_time

        if not response.ok:
            message = extract_error_message(response.data) or f"HTTP {response.status}"
            logger.error("Model call failed", extra={
                "model": config.model,
                "status": response.status,
                "error": sanitize_log_message(message),
                "duration_ms": int(duration * 1000)
            })
            raise TransportError(f"AI API Error: {message}", status=response.status)

        reply = self.parse_reply(response.data)
        logger.info("Model replied", extra={
            "model": config.model,
            "num_tool_calls": len(reply.tool_calls),
            "duration_ms": int(duration * 1000)
        })
        return reply
