"""Transport boundary: the shared consensus topic agents publish to."""

from agentlink.transport.base import (
    DeliveryMeta,
    OnError,
    OnMessage,
    PublishAck,
    Subscription,
    Transport,
)
from agentlink.transport.memory import InMemorySubscription, InMemoryTransport

__all__ = [
    "DeliveryMeta",
    "InMemorySubscription",
    "InMemoryTransport",
    "OnError",
    "OnMessage",
    "PublishAck",
    "Subscription",
    "Transport",
]
