"""Transport protocol: an append-only, broadcast, at-least-once topic.

Agents depend on the transport only through :class:`Transport`.  Every
message published on a topic is delivered to every subscriber of that
topic.  Delivery may repeat; consumers deduplicate by message id.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class DeliveryMeta:
    """Transport metadata attached to each delivery."""

    topic: str
    sequence_number: int
    consensus_timestamp: str


@dataclass(frozen=True)
class PublishAck:
    """Acknowledgement returned by a successful publish."""

    topic: str
    sequence_number: int


OnMessage = Callable[[bytes, DeliveryMeta], None]
OnError = Callable[[Exception], None]


@runtime_checkable
class Subscription(Protocol):
    """Handle for a live topic subscription."""

    def cancel(self) -> None:
        """Stop delivering messages to this subscriber (idempotent)."""
        ...


@runtime_checkable
class Transport(Protocol):
    """Append-only broadcast log shared by all agents."""

    async def publish(self, topic: str, data: bytes) -> PublishAck:
        """Append *data* to *topic*.

        Raises:
            TransportError: If the message could not be published.
        """
        ...

    async def subscribe(self, topic: str, on_message: OnMessage, on_error: OnError) -> Subscription:
        """Register a long-lived subscriber.

        *on_message* is called once per delivery and must not block;
        *on_error* receives delivery failures.
        """
        ...

    async def close(self) -> None:
        """Release the connection; further publishes fail."""
        ...
