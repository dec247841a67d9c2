"""In-memory chat threads for the docs assistant.

Threads live for the life of the process. Only user and assistant turns are
ever replayed to the model; the window size comes from
`chat.max_history_messages`.
"""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime

from server.models.chat import Message

_REPLAYED_ROLES = frozenset({"user", "assistant"})


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class Conversation:
    id: str
    messages: list[Message] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def append(self, message: Message) -> None:
        self.messages.append(message)
        self.updated_at = _utcnow()

    def recent_messages(self, limit: int) -> list[Message]:
        """Last `limit` user/assistant turns, oldest first."""
        if limit <= 0:
            return []
        return [m for m in self.messages if m.role in _REPLAYED_ROLES][-limit:]


class ConversationStore:
    """Threads keyed by conversation id (clients may also send `threadId`)."""

    def __init__(self) -> None:
        self._threads: dict[str, Conversation] = {}

    def get_or_create(self, conversation_id: str | None) -> Conversation:
        """Return the thread for `conversation_id`, creating it (with a fresh uuid when None)."""
        thread_id = conversation_id or str(uuid.uuid4())
        thread = self._threads.get(thread_id)
        if thread is None:
            thread = self._threads[thread_id] = Conversation(id=thread_id)
        return thread

    def get(self, conversation_id: str) -> Conversation | None:
        return self._threads.get(conversation_id)

    def add_message(self, conversation_id: str, message: Message) -> None:
        """Append to an existing thread.

        Raises:
            KeyError: the conversation does not exist.
        """
        thread = self._threads.get(conversation_id)
        if thread is None:
            raise KeyError(f"Conversation not found: {conversation_id}")
        thread.append(message)

    def get_messages(self, conversation_id: str) -> list[Message]:
        thread = self._threads.get(conversation_id)
        return list(thread.messages) if thread else []

    def clear(self, conversation_id: str) -> bool:
        """Drop a thread. Returns False when it did not exist."""
        return self._threads.pop(conversation_id, None) is not None

    def list_conversations(self) -> list[str]:
        return list(self._threads)


_store: ConversationStore | None = None


def get_conversation_store() -> ConversationStore:
    global _store
    if _store is None:
        _store = ConversationStore()
    return _store
