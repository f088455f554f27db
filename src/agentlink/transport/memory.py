"""In-process implementation of the :class:`~agentlink.transport.base.Transport` protocol.

Each topic is an append-only list of raw message bytes.  Publishing
appends, assigns the next sequence number and fans the bytes out to every
current subscriber in subscription order.  Subscribers are expected to
hand the bytes off to their own queue; the transport never awaits them.
"""

from __future__ import annotations

import logging

from agentlink.errors import TransportError
from agentlink.protocol.models import utc_timestamp
from agentlink.transport.base import DeliveryMeta, OnError, OnMessage, PublishAck

logger = logging.getLogger(__name__)


class InMemorySubscription:
    """A subscriber registered on an :class:`InMemoryTransport` topic."""

    def __init__(
        self,
        transport: InMemoryTransport,
        topic: str,
        on_message: OnMessage,
        on_error: OnError,
    ) -> None:
        self.topic = topic
        self._transport = transport
        self._on_message = on_message
        self._on_error = on_error
        self.active = True

    def deliver(self, data: bytes, meta: DeliveryMeta) -> None:
        if not self.active:
            return
        try:
            self._on_message(data, meta)
        except Exception as exc:  # noqa: BLE001
            self._on_error(exc)

    def cancel(self) -> None:
        if self.active:
            self.active = False
            self._transport._remove(self)


class InMemoryTransport:
    """Dict-backed broadcast topics.

    Satisfies the :class:`~agentlink.transport.base.Transport` protocol.

    Args:
        duplicate_deliveries: Deliver every message twice, simulating the
            at-least-once behaviour of a real consensus topic.
    """

    def __init__(self, *, duplicate_deliveries: bool = False) -> None:
        self.duplicate_deliveries = duplicate_deliveries
        # When set, the next publishes raise TransportError with this text.
        self.fail_publish: str | None = None
        self._logs: dict[str, list[bytes]] = {}
        self._subscribers: dict[str, list[InMemorySubscription]] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def publish(self, topic: str, data: bytes) -> PublishAck:
        if self._closed:
            raise TransportError("Transport is closed")
        if self.fail_publish is not None:
            raise TransportError(self.fail_publish)

        log = self._logs.setdefault(topic, [])
        log.append(data)
        meta = DeliveryMeta(
            topic=topic,
            sequence_number=len(log),
            consensus_timestamp=utc_timestamp(),
        )

        copies = 2 if self.duplicate_deliveries else 1
        for subscriber in list(self._subscribers.get(topic, [])):
            for _ in range(copies):
                subscriber.deliver(data, meta)

        return PublishAck(topic=topic, sequence_number=meta.sequence_number)

    async def subscribe(
        self, topic: str, on_message: OnMessage, on_error: OnError
    ) -> InMemorySubscription:
        if self._closed:
            raise TransportError("Transport is closed")
        subscription = InMemorySubscription(self, topic, on_message, on_error)
        self._subscribers.setdefault(topic, []).append(subscription)
        logger.debug("Subscriber added on topic %s", topic)
        return subscription

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for subscribers in self._subscribers.values():
            for subscription in subscribers:
                subscription.active = False
        self._subscribers.clear()

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def history(self, topic: str) -> list[bytes]:
        """Return every message published on *topic*, in order."""
        return list(self._logs.get(topic, []))

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, []))

    def _remove(self, subscription: InMemorySubscription) -> None:
        subscribers = self._subscribers.get(subscription.topic, [])
        if subscription in subscribers:
            subscribers.remove(subscription)
