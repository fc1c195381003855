"""Conversation memory and its backing stores.

A :class:`ConversationMemory` keeps the most recent user and assistant
turns of one conversation, bounded by a capacity. Tool-call traffic from
inside a turn is never stored. Durable representation is delegated to a
:class:`MemoryStore`.

Example:
    ```python
    store = FileMemoryStore("memories.json")
    memory = ConversationMemory.load(store, capacity=100)
    await agent.process("Hello", memory=memory)
    memory.save(store)
    ```
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from pydantic import ValidationError

from chatrelay.core.config import DEFAULT_MEMORY_CAPACITY
from chatrelay.core.errors import ConfigurationError
from chatrelay.types import AssistantMessage, Message, UserMessage
from chatrelay.types.models import MessageAdapter, message_to_dict

logger = logging.getLogger(__name__)


def message_from_dict(data: Any) -> Message:
    """Parse a stored message.

    Raises:
        ConfigurationError: If the entry is not a valid message
    """
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Malformed message in memory: expected an object, got {type(data).__name__}"
        )
    try:
        return MessageAdapter.validate_python(data)
    except ValidationError as e:
        raise ConfigurationError(f"Malformed message in memory: {e}") from e


class ConversationMemory:
    """Bounded, ordered history of one conversation.

    The oldest entries are evicted first once the capacity is exceeded.
    A memory object must not be shared by two turns running at the same
    time; callers serialize turns on the same conversation.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_MEMORY_CAPACITY,
        messages: Iterable[Message] = ()
    ) -> None:
        """Initialize the memory.

        Args:
            capacity: Maximum number of messages retained
            messages: Initial history, truncated to the capacity

        Raises:
            ConfigurationError: If the capacity is not a positive integer
        """
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
            raise ConfigurationError(
                f"Memory capacity must be a positive integer, got {capacity!r}"
            )
        self._capacity = capacity
        self._messages: List[Message] = list(messages)[-capacity:]

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def messages(self) -> Tuple[Message, ...]:
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def append_turn(self, user_message: UserMessage, assistant_message: AssistantMessage) -> None:
        """Record one completed turn and evict the oldest entries past capacity."""
        updated = self._messages + [user_message, assistant_message]
        self._messages = updated[-self._capacity:]

    def clear(self) -> None:
        self._messages = []

    def to_dict(self) -> Dict[str, Any]:
        return {
            "capacity": self._capacity,
            "context": [message_to_dict(message) for message in self._messages],
        }

    @classmethod
    def from_dict(cls, data: Any, capacity: Optional[int] = None) -> "ConversationMemory":
        """Rebuild a memory from :meth:`to_dict` output.

        Args:
            data: Mapping with a ``context`` list and optional ``capacity``
            capacity: Overrides the stored capacity when given

        Raises:
            ConfigurationError: If the structure is malformed
        """
        if not isinstance(data, dict) or not isinstance(data.get("context"), list):
            raise ConfigurationError(
                "Memory not properly initialized: expected an object with a 'context' list"
            )
        if capacity is None:
            capacity = data.get("capacity", DEFAULT_MEMORY_CAPACITY)
        return cls(
            capacity=capacity,
            messages=[message_from_dict(item) for item in data["context"]],
        )

    @classmethod
    def load(cls, store: "MemoryStore", capacity: int = DEFAULT_MEMORY_CAPACITY) -> "ConversationMemory":
        return cls(capacity=capacity, messages=store.load())

    def save(self, store: "MemoryStore") -> None:
        store.save(list(self._messages))


class MemoryStore(ABC):
    """Durable home for a conversation history."""

    @abstractmethod
    def load(self) -> List[Message]:
        """Return the stored history, oldest first."""
        pass

    @abstractmethod
    def save(self, history: List[Message]) -> None:
        """Replace the stored history."""
        pass


class InMemoryStore(MemoryStore):
    """Process-memory store. Histories do not survive a restart."""

    def __init__(self) -> None:
        self._history: List[Message] = []

    def load(self) -> List[Message]:
        return list(self._history)

    def save(self, history: List[Message]) -> None:
        self._history = list(history)


class FileMemoryStore(MemoryStore):
    """JSON file store.

    The file holds a list of message objects. Writes go to a temporary
    file in the same directory which then replaces the target.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def load(self) -> List[Message]:
        """Load the stored history.

        Returns:
            The stored messages, or an empty list if the file does not exist

        Raises:
            ConfigurationError: If the file cannot be read or is not a message list
        """
        if not self.path.exists():
            logger.info("Memory file not found, starting empty", extra={
                "path": str(self.path)
            })
            return []
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Error loading memory file '{self.path}': {e}") from e

        if not isinstance(data, list):
            raise ConfigurationError(
                f"Memory file '{self.path}' must contain a list of messages"
            )
        history = [message_from_dict(item) for item in data]
        logger.debug("Memory loaded", extra={
            "path": str(self.path),
            "num_messages": len(history)
        })
        return history

    def save(self, history: List[Message]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        text = json.dumps(
            [message_to_dict(message) for message in history],
            ensure_ascii=False,
            indent=2
        )
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", delete=False, dir=str(self.path.parent)
        ) as tmp:
            tmp.write(text)
            tmp.flush()
            os.fsync(tmp.fileno())
            tmp_name = tmp.name
        os.replace(tmp_name, self.path)
        logger.debug("Memory saved", extra={
            "path": str(self.path),
            "num_messages": len(history)
        })
