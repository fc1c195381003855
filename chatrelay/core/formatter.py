"""Shapes the final turn output for the caller."""

import json
import logging
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from chatrelay.core.errors import FormatError
from chatrelay.core.memory import ConversationMemory

logger = logging.getLogger(__name__)

_FENCE_PATTERN = re.compile(r"^```[\w-]*\s*\n(.*?)\n?```$", re.DOTALL)


class ResponseType(str, Enum):
    """Output shapes supported by :class:`ResponseFormatter`."""
    TEXT = "text"
    OBJECT = "object"
    JSON = "json"


def parse_structured(text: str) -> Any:
    """Parse model text as JSON, tolerating a surrounding code fence.

    Raises:
        FormatError: If the text is not valid JSON
    """
    candidate = text.strip()
    match = _FENCE_PATTERN.match(candidate)
    if match:
        candidate = match.group(1).strip()
    try:
        return json.loads(candidate)
    except ValueError as e:
        raise FormatError(f"Response is not valid JSON: {e}") from e


class ResponseFormatter:
    """Formats final text as plain text, an envelope object, or parsed JSON."""

    def __init__(self, response_type: ResponseType = ResponseType.TEXT, agent_name: str = "AI Agent") -> None:
        self.response_type = ResponseType(response_type)
        self.agent_name = agent_name

    def format(
        self,
        response: str,
        payload: Any = None,
        memory: Optional[ConversationMemory] = None
    ) -> Any:
        if self.response_type is ResponseType.OBJECT:
            return self._envelope(response, payload, memory)
        if self.response_type is ResponseType.JSON:
            try:
                return parse_structured(response)
            except FormatError as e:
                logger.warning("Falling back to raw text", extra={"error": str(e)})
                return response
        return response

    def _envelope(
        self,
        response: str,
        payload: Any,
        memory: Optional[ConversationMemory]
    ) -> Dict[str, Any]:
        now = datetime.now(timezone.utc).isoformat()
        context: Dict[str, Any] = {
            "conversation_length": len(memory) if memory is not None else 0,
            "last_interaction": now,
        }
        if memory is not None:
            context["memory"] = memory.to_dict()
        return {
            "agent": self.agent_name,
            "type": "ai",
            "input": payload,
            "response": response,
            "timestamp": now,
            "context": context,
        }
