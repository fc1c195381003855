"""Turn entry point for the chatrelay framework.

A :class:`ChatAgent` takes one caller input through a complete turn:
validate configuration, assemble the prompt, orchestrate model and tool
calls, record the turn in conversation memory, and format the output.
"""

import logging
import time
from typing import Any, Dict, Optional, Union

from chatrelay.core.config import (
    DEFAULT_AGENT_NAME,
    DEFAULT_SYSTEM_PROMPT,
    AIRequestConfig,
    EndpointConfig,
    RelaySettings,
)
from chatrelay.core.errors import ChatRelayError
from chatrelay.core.formatter import ResponseFormatter, ResponseType
from chatrelay.core.loop import OrchestrationLoop
from chatrelay.core.memory import ConversationMemory
from chatrelay.core.model_client import ModelClient
from chatrelay.core.prompt import PromptAssembler
from chatrelay.core.registry import ToolRegistry
from chatrelay.core.transport import AiohttpTransport, Transport
from chatrelay.types import AssistantMessage, OrchestrationResult
from chatrelay.utils.log_utils import sanitize_log_message

logger = logging.getLogger(__name__)


class ChatAgent:
    """Runs conversation turns against a remote completion endpoint.

    Example:
        ```python
        config = AIRequestConfig(model="openai/gpt-4o-mini", api_key="sk-...")
        async with ChatAgent(config, system_prompt="You are terse.") as agent:
            memory = ConversationMemory(capacity=50)
            print(await agent.process("Hello", memory=memory))
        ```
    """

    def __init__(
        self,
        config: Union[AIRequestConfig, Dict[str, Any]],
        transport: Optional[Transport] = None,
        *,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        name: str = DEFAULT_AGENT_NAME,
        response_type: Union[ResponseType, str] = ResponseType.TEXT,
        endpoint: Optional[EndpointConfig] = None
    ) -> None:
        """Initialize the agent.

        Args:
            config: Model configuration, as a config object or a dict
            transport: Optional transport; an aiohttp transport is created and owned otherwise
            system_prompt: System instructions placed first in every prompt
            name: Agent name reported in object responses
            response_type: Output shape returned by :meth:`process`
            endpoint: Endpoint URL, identification headers and timeout

        Raises:
            ConfigurationError: If ``config`` cannot be validated
        """
        self.config = AIRequestConfig.coerce(config)
        self._owns_transport = transport is None
        self.transport = transport or AiohttpTransport()
        self.assembler = PromptAssembler(system_prompt or DEFAULT_SYSTEM_PROMPT)
        self.formatter = ResponseFormatter(response_type, agent_name=name or DEFAULT_AGENT_NAME)
        self.loop = OrchestrationLoop(ModelClient(self.transport, endpoint))

    @classmethod
    def from_settings(
        cls,
        settings: Optional[RelaySettings] = None,
        transport: Optional[Transport] = None,
        **kwargs: Any
    ) -> "ChatAgent":
        """Create an agent from settings.

        Args:
            settings: Optional settings instance, will load from env if not provided
            transport: Optional transport
            **kwargs: Overrides for the remaining constructor arguments, plus ``tools``

        Returns:
            A configured ChatAgent
        """
        if settings is None:
            settings = RelaySettings()
        tools = kwargs.pop("tools", None)
        owns_transport = transport is None
        if owns_transport:
            transport = AiohttpTransport(max_tries=settings.transport_max_tries)
        kwargs.setdefault("system_prompt", settings.system_prompt)
        kwargs.setdefault("name", settings.agent_name)
        kwargs.setdefault("endpoint", EndpointConfig.from_settings(settings))
        agent = cls(AIRequestConfig.from_settings(settings, tools=tools), transport, **kwargs)
        agent._owns_transport = owns_transport
        return agent

    @property
    def name(self) -> str:
        return self.formatter.agent_name

    async def run_turn(
        self,
        payload: Any,
        memory: Optional[ConversationMemory] = None
    ) -> OrchestrationResult:
        """Take one input through the orchestration loop.

        Memory is updated only when the turn completes.

        Args:
            payload: Caller input; non-string input is sent as JSON text
            memory: Optional conversation memory to read from and append to

        Returns:
            The orchestration result

        Raises:
            ConfigurationError: If the model, key or tools are misconfigured
            TransportError: If a model call fails
            ToolResolutionError: If the tool-call budget is exhausted
        """
        start_time = time.time()
        self.config.ensure_ready()
        registry = ToolRegistry(self.config.tools)

        history = memory.messages if memory is not None else ()
        messages = self.assembler.assemble(history, payload)
        user_message = messages[-1]

        logger.info("Starting turn", extra={
            "agent": self.name,
            "model": self.config.model,
            "history_length": len(history),
            "num_tools": len(registry)
        })

        try:
            result = await self.loop.run(self.config, messages, registry)
        except ChatRelayError as e:
            duration = time.time() - start_time
            logger.error("Turn failed", extra={
                "agent": self.name,
                "error_type": type(e).__name__,
                "error": sanitize_log_message(str(e)),
                "duration_ms": int(duration * 1000)
            })
            raise

        if memory is not None:
            memory.append_turn(
                user_message,
                AssistantMessage(content=result.final_text)
            )

        duration = time.time() - start_time
        logger.info("Turn completed", extra={
            "agent": self.name,
            "remote_calls": result.turns_used,
            "tool_invocations": len(result.tool_invocations),
            "memory_length": len(memory) if memory is not None else None,
            "duration_ms": int(duration * 1000)
        })
        return result

    async def process(
        self,
        payload: Any,
        memory: Optional[ConversationMemory] = None
    ) -> Any:
        """Run a turn and format its output.

        Args:
            payload: Caller input
            memory: Optional conversation memory

        Returns:
            Text, an envelope dict, or parsed JSON, depending on the response type
        """
        result = await self.run_turn(payload, memory)
        return self.formatter.format(result.final_text, payload=payload, memory=memory)

    async def close(self) -> None:
        if self._owns_transport:
            await self.transport.close()

    async def __aenter__(self) -> "ChatAgent":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
