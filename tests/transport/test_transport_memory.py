"""Tests for the in-memory broadcast transport."""

from __future__ import annotations

import pytest

from agentlink.errors import TransportError
from agentlink.transport.base import DeliveryMeta, Subscription, Transport
from agentlink.transport.memory import InMemoryTransport


class _Collector:
    def __init__(self) -> None:
        self.messages: list[tuple[bytes, DeliveryMeta]] = []
        self.errors: list[Exception] = []

    def on_message(self, data: bytes, meta: DeliveryMeta) -> None:
        self.messages.append((data, meta))

    def on_error(self, exc: Exception) -> None:
        self.errors.append(exc)


class TestInMemoryTransport:
    async def test_protocol_conformance(self) -> None:
        transport = InMemoryTransport()
        assert isinstance(transport, Transport)
        sub = await transport.subscribe("t", _Collector().on_message, _Collector().on_error)
        assert isinstance(sub, Subscription)

    async def test_broadcast_to_all_subscribers(self) -> None:
        transport = InMemoryTransport()
        a, b = _Collector(), _Collector()
        await transport.subscribe("t", a.on_message, a.on_error)
        await transport.subscribe("t", b.on_message, b.on_error)

        ack = await transport.publish("t", b"hello")

        assert ack.sequence_number == 1
        assert [d for d, _ in a.messages] == [b"hello"]
        assert [d for d, _ in b.messages] == [b"hello"]
        assert a.messages[0][1].topic == "t"

    async def test_sequence_numbers_per_topic(self) -> None:
        transport = InMemoryTransport()
        assert (await transport.publish("t", b"1")).sequence_number == 1
        assert (await transport.publish("t", b"2")).sequence_number == 2
        assert (await transport.publish("other", b"x")).sequence_number == 1
        assert transport.history("t") == [b"1", b"2"]

    async def test_topics_are_isolated(self) -> None:
        transport = InMemoryTransport()
        collector = _Collector()
        await transport.subscribe("t", collector.on_message, collector.on_error)
        await transport.publish("other", b"x")
        assert collector.messages == []

    async def test_duplicate_deliveries(self) -> None:
        transport = InMemoryTransport(duplicate_deliveries=True)
        collector = _Collector()
        await transport.subscribe("t", collector.on_message, collector.on_error)
        await transport.publish("t", b"x")
        assert len(collector.messages) == 2

    async def test_cancel_stops_delivery(self) -> None:
        transport = InMemoryTransport()
        collector = _Collector()
        sub = await transport.subscribe("t", collector.on_message, collector.on_error)
        sub.cancel()
        sub.cancel()
        await transport.publish("t", b"x")
        assert collector.messages == []
        assert transport.subscriber_count("t") == 0

    async def test_callback_error_goes_to_on_error(self) -> None:
        transport = InMemoryTransport()
        collector = _Collector()

        def _boom(data: bytes, meta: DeliveryMeta) -> None:
            raise RuntimeError("subscriber broke")

        await transport.subscribe("t", _boom, collector.on_error)
        await transport.publish("t", b"x")
        assert len(collector.errors) == 1
        assert "subscriber broke" in str(collector.errors[0])

    async def test_fail_publish(self) -> None:
        transport = InMemoryTransport()
        transport.fail_publish = "INVALID_TOPIC_ID"
        with pytest.raises(TransportError, match="INVALID_TOPIC_ID"):
            await transport.publish("t", b"x")

    async def test_closed_transport_rejects(self) -> None:
        transport = InMemoryTransport()
        collector = _Collector()
        await transport.subscribe("t", collector.on_message, collector.on_error)
        await transport.close()
        await transport.close()
        assert transport.closed is True
        with pytest.raises(TransportError, match="closed"):
            await transport.publish("t", b"x")
        with pytest.raises(TransportError):
            await transport.subscribe("t", collector.on_message, collector.on_error)
