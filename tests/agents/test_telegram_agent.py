"""Tests for the Telegram agent's forwarding and notification queue."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import pytest

from agentlink.agents.models import AgentConfig
from agentlink.agents.telegram import TelegramAgent
from agentlink.protocol.codec import ai_decision_response, encode_message, notify_message
from agentlink.protocol.models import AgentId, Message, MessageType
from agentlink.transport.memory import InMemoryTransport

BRIDGE_PARAMS = {"sourceChain": "ethereum", "targetChain": "polygon", "token": "USDC", "amount": 1}


@pytest.fixture
async def telegram(
    transport: InMemoryTransport,
    agent_config: Callable[..., AgentConfig],
    running: Callable[..., Awaitable[None]],
) -> TelegramAgent:
    agent = TelegramAgent(agent_config("0.0.2001"), transport)
    await running(agent)
    return agent


def _decision(cid: str) -> bytes:
    return encode_message(
        ai_decision_response(
            AgentId.AI_DECISION,
            AgentId.TELEGRAM,
            "APPROVE",
            True,
            "Approved bridge of 1 USDC from ethereum to polygon",
            BRIDGE_PARAMS,
            cid,
        )
    )


class TestForwarding:
    async def test_forwards_to_ai_decision(
        self, telegram: TelegramAgent, published: Callable[..., list[Message]]
    ) -> None:
        cid = await telegram.receive_from_telegram("bridge 1 USDC", 42, 7)

        assert cid.startswith("telegram-")
        requests = published(MessageType.AI_DECISION_REQ)
        assert len(requests) == 1
        assert requests[0].to == AgentId.AI_DECISION
        assert requests[0].correlation_id == cid
        assert requests[0].payload == {
            "userRequest": "bridge 1 USDC",
            "context": {"chatId": 42, "userId": 7, "source": "telegram"},
        }

        conversation = telegram.get_conversation(cid)
        assert conversation.state == "forwarding_to_ai"
        assert conversation.get("chat_id") == 42

    async def test_tracks_last_message_per_chat(self, telegram: TelegramAgent) -> None:
        await telegram.receive_from_telegram("first", 42, 7)
        cid = await telegram.receive_from_telegram("second", 42, 7)

        chats = telegram.get_active_chats()
        assert list(chats) == [42]
        assert chats[42].last_message == "second"
        assert chats[42].correlation_id == cid


class TestNotifications:
    async def test_decision_becomes_notification(self, telegram: TelegramAgent) -> None:
        cid = await telegram.receive_from_telegram("bridge 1 USDC", 42, 7)
        await telegram.deliver(_decision(cid))

        notifications = telegram.get_pending_notifications(42)
        assert len(notifications) == 1
        note = notifications[0]
        assert note.type == "ai_decision"
        assert note.should_execute_bridge is True
        assert note.bridge_params == BRIDGE_PARAMS
        assert note.message.startswith("AI Decision: APPROVE\n")
        assert telegram.get_conversation(cid).state == "ai_response_received"

    async def test_decision_without_chat_is_ignored(self, telegram: TelegramAgent) -> None:
        await telegram.deliver(_decision("unknown"))
        assert telegram.get_pending_notifications() == []

    async def test_notify_is_queued_with_level(self, telegram: TelegramAgent) -> None:
        cid = await telegram.receive_from_telegram("bridge 1 USDC", 42, 7)
        await telegram.deliver(
            encode_message(
                notify_message(AgentId.AI_DECISION, AgentId.TELEGRAM, "done", "success", cid)
            )
        )

        note = telegram.get_pending_notifications(42)[0]
        assert note.type == "notification"
        assert note.level == "success"
        assert note.message == "done"

    async def test_filter_and_clear(self, telegram: TelegramAgent) -> None:
        first = await telegram.receive_from_telegram("a", 1, 7)
        second = await telegram.receive_from_telegram("b", 2, 7)
        await telegram.deliver(_decision(first))
        await telegram.deliver(_decision(second))

        assert len(telegram.get_pending_notifications()) == 2
        assert [n.correlation_id for n in telegram.get_pending_notifications(2)] == [second]

        telegram.clear_notifications(first)
        assert [n.chat_id for n in telegram.get_pending_notifications()] == [2]
        telegram.clear_notifications()
        assert telegram.get_pending_notifications() == []
