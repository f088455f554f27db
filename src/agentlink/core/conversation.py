"""Per-agent conversation state, keyed by correlation id.

Each agent owns its own :class:`ConversationStore`; conversation state is
never shared between agents.  Conversations are created lazily on first
reference and live for the lifetime of the process.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Conversation(BaseModel):
    """Mutable record of one negotiation or decision thread.

    Besides the declared fields, agents attach free-form fields
    (``item``, ``my_last_offer``, ``chat_id``...) via
    :meth:`ConversationStore.update`.
    """

    model_config = ConfigDict(extra="allow")

    correlation_id: str
    state: str = "initiated"
    messages: list[str] = []
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def get(self, key: str, default: Any = None) -> Any:
        """Return a declared or free-form field, or *default* if absent."""
        return getattr(self, key, default)

    @property
    def message_count(self) -> int:
        """Number of distinct messages sent or received in this conversation."""
        return len(self.messages)


class ConversationStore:
    """Dict-backed conversation map owned by a single agent."""

    def __init__(self) -> None:
        self._conversations: dict[str, Conversation] = {}

    def get(self, correlation_id: str) -> Conversation:
        """Return the conversation, creating it in state ``initiated`` if absent."""
        conversation = self._conversations.get(correlation_id)
        if conversation is None:
            conversation = Conversation(correlation_id=correlation_id)
            self._conversations[correlation_id] = conversation
        return conversation

    def find(self, correlation_id: str) -> Conversation | None:
        """Return the conversation if it exists; never creates one."""
        return self._conversations.get(correlation_id)

    def update(self, correlation_id: str, **fields: Any) -> Conversation:
        """Merge *fields* into the conversation (last writer wins per field)."""
        conversation = self.get(correlation_id)
        for key, value in fields.items():
            setattr(conversation, key, value)
        conversation.updated_at = datetime.now(UTC)
        return conversation

    def record_message(self, correlation_id: str, message_id: str) -> None:
        """Append *message_id* to the conversation's message log (once)."""
        conversation = self.get(correlation_id)
        if message_id not in conversation.messages:
            conversation.messages.append(message_id)

    def __contains__(self, correlation_id: object) -> bool:
        return correlation_id in self._conversations

    def __len__(self) -> int:
        return len(self._conversations)

    def __iter__(self) -> Iterator[Conversation]:
        return iter(list(self._conversations.values()))
