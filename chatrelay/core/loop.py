"""Orchestration loop: call the model, resolve tool calls, call again.

One turn moves through ``BUILD_REQUEST -> AWAIT_MODEL`` and then either
finishes with the reply text or resolves a round of tool calls and
re-enters ``BUILD_REQUEST``. Tools stay offered for at most
``max_tool_rounds`` rounds; the call that follows the last allowed round
is made without tools so the model has to answer in text.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

from chatrelay.core.config import AIRequestConfig
from chatrelay.core.errors import ToolResolutionError
from chatrelay.core.executor import ToolExecutor
from chatrelay.core.model_client import ModelClient
from chatrelay.core.registry import ToolRegistry
from chatrelay.types import Message, OrchestrationResult, ToolInvocationRecord

logger = logging.getLogger(__name__)


@dataclass
class _LoopState:
    """Mutable bookkeeping threaded through the recursive calls of one turn."""

    registry: ToolRegistry
    max_rounds: int
    calls: int = 0
    rounds: int = 0
    invocations: List[ToolInvocationRecord] = field(default_factory=list)

    @property
    def tools_offered(self) -> bool:
        return bool(self.registry) and self.rounds < self.max_rounds


class OrchestrationLoop:
    """The recursive call/resolve engine for a single turn."""

    def __init__(self, client: ModelClient) -> None:
        self.client = client

    async def run(
        self,
        config: AIRequestConfig,
        messages: List[Message],
        registry: Optional[ToolRegistry] = None
    ) -> OrchestrationResult:
        """Run one turn to completion.

        Args:
            config: Model configuration; its tools are used when no registry is given
            messages: The assembled prompt; not modified
            registry: Tools offered for this turn

        Returns:
            The final text together with call and tool bookkeeping

        Raises:
            TransportError: If any model call fails
            ToolResolutionError: If the model keeps requesting tools after they were withdrawn
        """
        start_time = time.time()
        if registry is None:
            registry = ToolRegistry(config.tools)
        state = _LoopState(registry=registry, max_rounds=config.max_tool_rounds)

        result = await self._call(config, list(messages), state)

        duration = time.time() - start_time
        logger.info("Turn orchestrated", extra={
            "model": config.model,
            "remote_calls": result.turns_used,
            "tool_rounds": state.rounds,
            "tool_invocations": len(result.tool_invocations),
            "duration_ms": int(duration * 1000)
        })
        return result

    async def _call(
        self,
        config: AIRequestConfig,
        messages: List[Message],
        state: _LoopState
    ) -> OrchestrationResult:
        offered = state.tools_offered
        reply = await self.client.complete(
            config,
            messages,
            state.registry if offered else None
        )
        state.calls += 1

        if reply.tool_calls and offered:
            logger.debug("Resolving tool calls", extra={
                "round": state.rounds + 1,
                "tool_names": [call.name for call in reply.tool_calls]
            })
            executor = ToolExecutor(state.registry)
            tool_messages, records = await executor.resolve_all(reply.tool_calls)
            state.invocations.extend(records)
            state.rounds += 1
            return await self._call(
                config,
                messages + [reply, *tool_messages],
                state
            )

        text = (reply.content or "").strip()
        if reply.tool_calls and state.rounds > 0 and not text:
            logger.error("Model requested tools after they were withdrawn", extra={
                "tool_rounds": state.rounds,
                "tool_names": [call.name for call in reply.tool_calls]
            })
            raise ToolResolutionError("tool-call budget exhausted")

        return OrchestrationResult(
            final_text=text,
            turns_used=state.calls,
            tool_invocations=list(state.invocations),
            messages=messages + [reply]
        )
