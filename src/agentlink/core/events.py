"""Observer registration for agent events.

Agents publish lifecycle and domain events (``started``, ``message_sent``,
``deal_accepted``...) to an :class:`EventHub`.  Observers such as the
:class:`~agentlink.system.AgentSystem` subscribe without touching the
agent's send/receive path.  A failing observer is logged and skipped.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class AgentEvent(BaseModel):
    """A single event emitted by an agent."""

    agent_id: str
    name: str
    data: dict[str, Any] = {}
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


EventCallback = Callable[[AgentEvent], None]


class EventHub:
    """Synchronous fan-out of :class:`AgentEvent` objects to observers."""

    def __init__(self) -> None:
        self._observers: list[tuple[EventCallback, frozenset[str] | None]] = []

    def subscribe(
        self, callback: EventCallback, *, names: set[str] | None = None
    ) -> Callable[[], None]:
        """Register *callback*, optionally for a subset of event *names*.

        Returns a callable that removes the registration.
        """
        entry = (callback, frozenset(names) if names is not None else None)
        self._observers.append(entry)

        def _unsubscribe() -> None:
            if entry in self._observers:
                self._observers.remove(entry)

        return _unsubscribe

    def emit(self, event: AgentEvent) -> None:
        for callback, names in list(self._observers):
            if names is not None and event.name not in names:
                continue
            try:
                callback(event)
            except Exception:
                logger.exception("Event observer failed on %s/%s", event.agent_id, event.name)

    def __len__(self) -> int:
        return len(self._observers)
