"""Shared fixtures: an in-memory topic, a simulated ledger and agent configs."""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable

import pytest

from agentlink.agents.base import BaseAgent
from agentlink.agents.models import AgentConfig
from agentlink.ledger.tool import SimulatedLedger
from agentlink.protocol.codec import decode_message
from agentlink.protocol.models import Message, MessageType
from agentlink.transport.memory import InMemoryTransport

TOPIC = "0.0.test"


@pytest.fixture
def transport() -> InMemoryTransport:
    return InMemoryTransport()


@pytest.fixture
def ledger() -> SimulatedLedger:
    return SimulatedLedger(payer_account="0.0.1003")


@pytest.fixture
def agent_config() -> Callable[..., AgentConfig]:
    """Factory for an :class:`AgentConfig` on the shared test topic."""

    def _make(account_id: str = "0.0.1", **overrides: object) -> AgentConfig:
        return AgentConfig.model_validate(
            {"account_id": account_id, "topic_id": TOPIC, **overrides}
        )

    return _make


@pytest.fixture
async def running() -> AsyncIterator[Callable[..., Awaitable[None]]]:
    """Start agents for a test and stop them afterwards.

    Usage: ``await running(buyer, seller)``.
    """
    started: list[BaseAgent] = []

    async def _start(*agents: BaseAgent) -> None:
        for agent in agents:
            await agent.start()
            started.append(agent)

    yield _start

    for agent in started:
        await agent.stop()


@pytest.fixture
def published(transport: InMemoryTransport) -> Callable[..., list[Message]]:
    """Return the messages published on the test topic, optionally of one type."""

    def _published(type: MessageType | None = None) -> list[Message]:
        messages = [
            Message.from_wire(decode_message(data)) for data in transport.history(TOPIC)
        ]
        return [m for m in messages if type is None or m.type == type]

    return _published
