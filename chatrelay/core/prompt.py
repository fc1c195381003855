"""Prompt assembly for a single turn."""

import json
from typing import Any, List, Sequence

from chatrelay.types import Message, SystemMessage, UserMessage


def normalize_input(payload: Any) -> str:
    """Turn a caller payload into message text.

    Strings pass through unchanged; anything else is serialized to JSON.
    A missing payload is treated as an empty object.
    """
    if isinstance(payload, str):
        return payload
    if payload is None:
        payload = {}
    return json.dumps(payload, default=str)


class PromptAssembler:
    """Builds the ordered message list sent to the model."""

    def __init__(self, system_prompt: str) -> None:
        self.system_prompt = system_prompt

    def assemble(self, history: Sequence[Message], user_input: Any) -> List[Message]:
        """Assemble ``[system] + history + [user]``.

        Args:
            history: Prior conversation turns, possibly empty
            user_input: The new caller input, normalized to text

        Returns:
            A new list; ``history`` is not modified
        """
        return [
            SystemMessage(content=self.system_prompt),
            *history,
            UserMessage(content=normalize_input(user_input)),
        ]
