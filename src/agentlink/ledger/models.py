"""Data models for value transfers."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field

NATIVE_TOKEN = "HBAR"
"""Token identifier sentinel for the network's native currency."""


def is_native_token(token_id: str | None) -> bool:
    """Return ``True`` when *token_id* denotes the native currency."""
    return not token_id or token_id == NATIVE_TOKEN


class TransferRequest(BaseModel):
    """A value transfer an agent wants executed."""

    to_account: str
    amount: float
    token_id: str = NATIVE_TOKEN
    memo: str = ""


class TransferResult(BaseModel):
    """Outcome of a transfer; failures are data, never exceptions."""

    success: bool
    transaction_id: str | None = None
    error: str | None = None


class TransferRecord(BaseModel):
    """A transfer settled on the simulated ledger."""

    transaction_id: str
    from_account: str
    to_account: str
    amount: float
    token_kind: str
    memo: str = ""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
