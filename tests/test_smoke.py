"""Smoke test to verify the project scaffolding works."""

from __future__ import annotations


def test_import() -> None:
    import agentlink

    assert agentlink.__version__ == "0.1.0"


def test_cli_entrypoint() -> None:
    from agentlink.cli import main

    assert callable(main)


def test_package_imports() -> None:
    from agentlink.agents import (
        AIDecisionAgent,
        BaseAgent,
        BridgeExecutorAgent,
        BuyerAgent,
        PaymentAgent,
        SellerAgent,
        TelegramAgent,
    )
    from agentlink.protocol import Message, MessageType, canonicalize
    from agentlink.transport import InMemoryTransport, Transport

    agents = (BuyerAgent, SellerAgent, PaymentAgent, TelegramAgent, AIDecisionAgent)
    assert all(issubclass(cls, BaseAgent) for cls in (*agents, BridgeExecutorAgent))
    assert Message is not None
    assert len(MessageType) == 13
    assert canonicalize({"b": 1, "a": 2}) == '{"a":2,"b":1}'
    assert isinstance(InMemoryTransport(), Transport)


def test_lazy_import_from_agentlink() -> None:
    import agentlink

    assert agentlink.AgentSystem is not None
    assert agentlink.ConfigLoader is not None
    assert agentlink.SystemConfig is not None
