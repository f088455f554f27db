"""Transfer tool protocol and a simulated ledger implementation.

Agents never talk to a ledger directly; they hand a
:class:`~agentlink.ledger.models.TransferRequest` to
:meth:`BaseAgent.execute_transfer`, which delegates to whichever
:class:`TransferTool` was injected.
"""

from __future__ import annotations

import logging
import time
from typing import Protocol, runtime_checkable

from agentlink.ledger.models import NATIVE_TOKEN, TransferRecord, TransferResult, is_native_token

logger = logging.getLogger(__name__)


@runtime_checkable
class TransferTool(Protocol):
    """Executes value transfers on behalf of an agent."""

    async def transfer(
        self, to_account: str, amount: float, token_kind: str, memo: str
    ) -> TransferResult:
        """Transfer *amount* of *token_kind* to *to_account*.

        *token_kind* is either :data:`NATIVE_TOKEN` or an external token id.
        """
        ...


def make_transaction_id(account_id: str) -> str:
    """Return a transaction id in ``account@seconds.nanos`` form."""
    now = time.time_ns()
    return f"{account_id}@{now // 1_000_000_000}.{now % 1_000_000_000:09d}"


class SimulatedLedger:
    """In-memory ledger that settles transfers from a single payer account.

    Satisfies the :class:`TransferTool` protocol.

    *balances* maps token kind to the payer's balance.  Tokens absent from
    the mapping are unlimited; pass ``None`` to disable balance checks.
    """

    def __init__(
        self,
        payer_account: str = "0.0.1001",
        balances: dict[str, float] | None = None,
    ) -> None:
        self.payer_account = payer_account
        self.balances = dict(balances) if balances is not None else None
        self.records: list[TransferRecord] = []
        # When set, the next transfer fails with this error text.
        self.fail_next: str | None = None

    async def transfer(
        self, to_account: str, amount: float, token_kind: str, memo: str
    ) -> TransferResult:
        kind = NATIVE_TOKEN if is_native_token(token_kind) else token_kind

        if self.fail_next is not None:
            error, self.fail_next = self.fail_next, None
            return TransferResult(success=False, error=error)

        if amount <= 0:
            return TransferResult(success=False, error="INVALID_AMOUNT")

        if self.balances is not None and kind in self.balances:
            if self.balances[kind] < amount:
                code = (
                    "INSUFFICIENT_PAYER_BALANCE" if kind == NATIVE_TOKEN
                    else "INSUFFICIENT_TOKEN_BALANCE"
                )
                return TransferResult(success=False, error=code)
            self.balances[kind] -= amount

        record = TransferRecord(
            transaction_id=make_transaction_id(self.payer_account),
            from_account=self.payer_account,
            to_account=to_account,
            amount=amount,
            token_kind=kind,
            memo=memo,
        )
        self.records.append(record)
        logger.debug("Settled %s %s to %s (%s)", amount, kind, to_account, record.transaction_id)
        return TransferResult(success=True, transaction_id=record.transaction_id)

    def total_transferred(self, to_account: str | None = None) -> float:
        """Sum settled amounts, optionally for a single recipient."""
        return sum(
            r.amount for r in self.records if to_account is None or r.to_account == to_account
        )
