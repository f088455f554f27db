"""Bridge execution records and their persistence backends.

:class:`ExecutionLogBackend` defines the async storage protocol for
completed executions.  :class:`InMemoryExecutionLog` provides a
lightweight dict-based implementation suitable for testing and
single-process deployments.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Protocol

from pydantic import BaseModel, Field


class ExecutionStatus(str, Enum):
    """Lifecycle of a bridge execution."""

    PENDING = "pending"
    EXECUTING = "executing"
    SUCCESS = "success"
    FAILED = "failed"


class BridgeExecution(BaseModel):
    """A bridge request awaiting (or having received) human confirmation."""

    correlation_id: str
    source_chain: str
    target_chain: str
    token: str
    amount: float
    recipient: str | None = None
    requested_by: str
    status: ExecutionStatus = ExecutionStatus.PENDING
    transaction_hash: str | None = None
    error: str | None = None
    requested_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def is_complete(self) -> bool:
        return self.status in (ExecutionStatus.SUCCESS, ExecutionStatus.FAILED)


class ExecutionLogBackend(Protocol):
    """Async persistence protocol for completed :class:`BridgeExecution` records."""

    async def save(self, execution: BridgeExecution) -> None:
        """Persist the record under its correlation id (upsert semantics)."""
        ...

    async def load(self, correlation_id: str) -> BridgeExecution | None:
        """Load a record, or return ``None`` if it does not exist."""
        ...

    async def recent(self, limit: int = 50) -> list[BridgeExecution]:
        """Return up to *limit* most recently saved records, oldest first."""
        ...


class InMemoryExecutionLog:
    """Dict-backed :class:`ExecutionLogBackend` implementation.

    Stores records as serialised JSON bytes so that each :meth:`load`
    returns a fresh, independent copy (mimicking a real persistence layer).
    """

    def __init__(self) -> None:
        self._store: dict[str, bytes] = {}

    async def save(self, execution: BridgeExecution) -> None:
        # Re-insert so that iteration order tracks the latest save.
        self._store.pop(execution.correlation_id, None)
        self._store[execution.correlation_id] = execution.model_dump_json().encode()

    async def load(self, correlation_id: str) -> BridgeExecution | None:
        data = self._store.get(correlation_id)
        if data is None:
            return None
        return BridgeExecution.model_validate_json(data)

    async def recent(self, limit: int = 50) -> list[BridgeExecution]:
        recent = list(self._store.values())[-limit:] if limit > 0 else []
        return [BridgeExecution.model_validate_json(data) for data in recent]
