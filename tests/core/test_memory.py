"""Tests for conversation memory and memory stores."""

import json
import pytest

from chatrelay.core import ConversationMemory, InMemoryStore, FileMemoryStore, ConfigurationError
from chatrelay.core.memory import message_from_dict
from chatrelay.types import AssistantMessage, UserMessage


def _turn(i: int):
    return UserMessage(content=f"q{i}"), AssistantMessage(content=f"a{i}")


def test_append_turn() -> None:
    """Test that a turn adds a user and an assistant message."""
    memory = ConversationMemory(capacity=10)
    memory.append_turn(*_turn(1))

    assert len(memory) == 2
    assert [m.role for m in memory.messages] == ["user", "assistant"]


def test_capacity_evicts_oldest() -> None:
    """Test that only the most recent entries are kept."""
    memory = ConversationMemory(capacity=3)
    for i in range(3):
        memory.append_turn(*_turn(i))

    assert len(memory) == 3
    assert [m.content for m in memory.messages] == ["a1", "q2", "a2"]


def test_initial_messages_truncated(sample_history) -> None:
    """Test that initial history is truncated to the capacity."""
    memory = ConversationMemory(capacity=1, messages=sample_history)
    assert memory.messages == (sample_history[-1],)


@pytest.mark.parametrize("capacity", [0, -1, 1.5, "10", True])
def test_invalid_capacity(capacity) -> None:
    """Test that non-positive or non-integer capacities are rejected."""
    with pytest.raises(ConfigurationError):
        ConversationMemory(capacity=capacity)


def test_messages_is_read_only_view() -> None:
    """Test that the exposed history cannot be used to mutate memory."""
    memory = ConversationMemory(capacity=5)
    memory.append_turn(*_turn(1))
    assert isinstance(memory.messages, tuple)


def test_clear() -> None:
    memory = ConversationMemory(capacity=5)
    memory.append_turn(*_turn(1))
    memory.clear()
    assert len(memory) == 0


def test_dict_round_trip() -> None:
    """Test rebuilding a memory from its dict form."""
    memory = ConversationMemory(capacity=4)
    memory.append_turn(*_turn(1))

    data = memory.to_dict()
    assert data["capacity"] == 4
    assert [m["role"] for m in data["context"]] == ["user", "assistant"]

    rebuilt = ConversationMemory.from_dict(json.loads(json.dumps(data)))
    assert rebuilt.capacity == 4
    assert [m.content for m in rebuilt.messages] == ["q1", "a1"]


@pytest.mark.parametrize("data", [None, [], {"capacity": 3}, {"context": "nope"}])
def test_from_dict_malformed(data) -> None:
    """Test that malformed memory structures are rejected."""
    with pytest.raises(ConfigurationError, match="Memory not properly initialized"):
        ConversationMemory.from_dict(data)


def test_message_from_dict_malformed() -> None:
    """Test that invalid stored messages are rejected."""
    with pytest.raises(ConfigurationError):
        message_from_dict("hello")
    with pytest.raises(ConfigurationError):
        message_from_dict({"role": "narrator", "content": "x"})


def test_in_memory_store() -> None:
    """Test saving and loading through the in-memory store."""
    store = InMemoryStore()
    memory = ConversationMemory.load(store, capacity=10)
    assert len(memory) == 0

    memory.append_turn(*_turn(1))
    memory.save(store)

    reloaded = ConversationMemory.load(store, capacity=10)
    assert [m.content for m in reloaded.messages] == ["q1", "a1"]


def test_in_memory_store_returns_copies() -> None:
    store = InMemoryStore()
    store.save([UserMessage(content="x")])
    store.load().clear()
    assert len(store.load()) == 1


def test_file_store_missing_file(tmp_path) -> None:
    """Test that a missing file loads as an empty history."""
    store = FileMemoryStore(tmp_path / "memory.json")
    assert store.load() == []


def test_file_store_round_trip(tmp_path) -> None:
    """Test persisting a conversation to disk."""
    path = tmp_path / "nested" / "memory.json"
    store = FileMemoryStore(path)
    memory = ConversationMemory(capacity=10)
    memory.append_turn(*_turn(1))
    memory.save(store)

    on_disk = json.loads(path.read_text(encoding="utf-8"))
    assert [m["content"] for m in on_disk] == ["q1", "a1"]

    reloaded = ConversationMemory.load(FileMemoryStore(path), capacity=1)
    assert [m.content for m in reloaded.messages] == ["a1"]


def test_file_store_invalid_json(tmp_path) -> None:
    """Test that a corrupt file is reported."""
    path = tmp_path / "memory.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="Error loading memory file"):
        FileMemoryStore(path).load()


def test_file_store_not_a_list(tmp_path) -> None:
    """Test that a file not holding a list is reported."""
    path = tmp_path / "memory.json"
    path.write_text('{"context": []}', encoding="utf-8")

    with pytest.raises(ConfigurationError, match="must contain a list"):
        FileMemoryStore(path).load()
