"""Tests for per-agent conversation state."""

from __future__ import annotations

from agentlink.core.conversation import ConversationStore


class TestConversationStore:
    def setup_method(self) -> None:
        self.store = ConversationStore()

    def test_get_creates_initiated(self) -> None:
        conversation = self.store.get("c1")
        assert conversation.correlation_id == "c1"
        assert conversation.state == "initiated"
        assert conversation.message_count == 0
        assert "c1" in self.store

    def test_get_returns_same_object(self) -> None:
        assert self.store.get("c1") is self.store.get("c1")

    def test_find_never_creates(self) -> None:
        assert self.store.find("missing") is None
        assert "missing" not in self.store
        assert len(self.store) == 0

    def test_update_merges_fields(self) -> None:
        self.store.update("c1", state="offer_sent", item="widgets", my_last_offer=75)
        conversation = self.store.update("c1", my_last_offer=76.25)
        assert conversation.state == "offer_sent"
        assert conversation.get("item") == "widgets"
        assert conversation.get("my_last_offer") == 76.25
        assert conversation.get("absent", "default") == "default"

    def test_update_touches_timestamp(self) -> None:
        conversation = self.store.get("c1")
        before = conversation.updated_at
        self.store.update("c1", state="x")
        assert conversation.updated_at >= before

    def test_record_message_once(self) -> None:
        self.store.record_message("c1", "m1")
        self.store.record_message("c1", "m1")
        self.store.record_message("c1", "m2")
        assert self.store.get("c1").messages == ["m1", "m2"]
        assert self.store.get("c1").message_count == 2

    def test_iteration(self) -> None:
        self.store.get("a")
        self.store.get("b")
        assert [c.correlation_id for c in self.store] == ["a", "b"]

    def test_stores_are_independent(self) -> None:
        other = ConversationStore()
        self.store.update("c1", state="accepted")
        assert other.find("c1") is None
