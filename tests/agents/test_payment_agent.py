"""Tests for PaymentAgent settlement and idempotency."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import pytest

from agentlink.agents.models import AgentConfig, PaymentConfig
from agentlink.agents.payment import PaymentAgent
from agentlink.core.events import AgentEvent
from agentlink.ledger.tool import SimulatedLedger
from agentlink.protocol.codec import encode_message, payment_request_message
from agentlink.protocol.models import AgentId, Message, MessageType
from agentlink.transport.memory import InMemoryTransport


def _request(cid: str = "deal-1", amount: float = 775, to_account: str = "0.0.1002") -> Message:
    return payment_request_message(
        AgentId.BUYER,
        AgentId.PAYMENT,
        amount,
        "HBAR",
        to_account,
        "Payment for 10 widgets",
        "widgets",
        10,
        cid,
    )


@pytest.fixture
async def payment(
    transport: InMemoryTransport,
    agent_config: Callable[..., AgentConfig],
    ledger: SimulatedLedger,
    running: Callable[..., Awaitable[None]],
) -> PaymentAgent:
    agent = PaymentAgent(agent_config("0.0.1003"), transport, transfer_tool=ledger)
    await running(agent)
    return agent


class TestPaymentAgent:
    async def test_settles_and_acks(
        self,
        payment: PaymentAgent,
        ledger: SimulatedLedger,
        published: Callable[..., list[Message]],
    ) -> None:
        events: list[AgentEvent] = []
        payment.events.subscribe(events.append, names={"payment_executed"})

        await payment.deliver(encode_message(_request()))

        acks = published(MessageType.PAYMENT_ACK)
        assert len(acks) == 1
        ack = acks[0]
        assert ack.to == AgentId.BUYER
        assert ack.correlation_id == "deal-1"
        assert ack.payload["status"] == "success"
        assert ack.payload["transactionId"] == ledger.records[0].transaction_id
        assert ack.payload["amount"] == 775
        assert payment.get_conversation("deal-1").state == "payment_complete"
        assert payment.is_settled("deal-1", 775, "0.0.1002") is True
        assert len(events) == 1

    async def test_duplicate_request_is_ignored(
        self,
        payment: PaymentAgent,
        ledger: SimulatedLedger,
        published: Callable[..., list[Message]],
    ) -> None:
        # Two distinct envelopes carrying the same request.
        await payment.deliver(encode_message(_request()))
        await payment.deliver(encode_message(_request()))

        assert len(ledger.records) == 1
        assert len(published(MessageType.PAYMENT_ACK)) == 1

    async def test_different_amount_is_a_new_payment(
        self,
        payment: PaymentAgent,
        ledger: SimulatedLedger,
    ) -> None:
        await payment.deliver(encode_message(_request(amount=775)))
        await payment.deliver(encode_message(_request(amount=780)))
        assert [r.amount for r in ledger.records] == [775, 780]

    async def test_failure_acks_and_can_be_retried(
        self,
        payment: PaymentAgent,
        ledger: SimulatedLedger,
        published: Callable[..., list[Message]],
    ) -> None:
        ledger.fail_next = "INSUFFICIENT_PAYER_BALANCE"
        await payment.deliver(encode_message(_request()))

        failed = published(MessageType.PAYMENT_ACK)[0]
        assert failed.payload["status"] == "failed"
        assert failed.payload["transactionId"] == ""
        assert failed.payload["error"] == "INSUFFICIENT_PAYER_BALANCE"
        assert payment.get_conversation("deal-1").state == "payment_failed"
        assert payment.is_settled("deal-1", 775, "0.0.1002") is False

        await payment.deliver(encode_message(_request()))
        statuses = [a.payload["status"] for a in published(MessageType.PAYMENT_ACK)]
        assert statuses == ["failed", "success"]
        assert len(ledger.records) == 1

    async def test_no_transfer_tool(
        self,
        transport: InMemoryTransport,
        agent_config: Callable[..., AgentConfig],
        running: Callable[..., Awaitable[None]],
        published: Callable[..., list[Message]],
    ) -> None:
        agent = PaymentAgent(agent_config(), transport)
        await running(agent)
        await agent.deliver(encode_message(_request()))

        ack = published(MessageType.PAYMENT_ACK)[0]
        assert ack.payload["error"] == "No transfer tool configured"

    async def test_idempotency_window_is_bounded(
        self,
        transport: InMemoryTransport,
        agent_config: Callable[..., AgentConfig],
        ledger: SimulatedLedger,
        running: Callable[..., Awaitable[None]],
    ) -> None:
        agent = PaymentAgent(
            agent_config(),
            transport,
            PaymentConfig(idempotency_capacity=1),
            transfer_tool=ledger,
        )
        await running(agent)
        await agent.deliver(encode_message(_request("a")))
        await agent.deliver(encode_message(_request("b")))
        await agent.deliver(encode_message(_request("a")))

        assert len(ledger.records) == 3
