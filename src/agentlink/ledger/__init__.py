"""Value-transfer boundary: the transfer tool protocol and a simulated ledger."""

from agentlink.ledger.models import (
    NATIVE_TOKEN,
    TransferRecord,
    TransferRequest,
    TransferResult,
    is_native_token,
)
from agentlink.ledger.tool import SimulatedLedger, TransferTool, make_transaction_id

__all__ = [
    "NATIVE_TOKEN",
    "SimulatedLedger",
    "TransferRecord",
    "TransferRequest",
    "TransferResult",
    "TransferTool",
    "is_native_token",
    "make_transaction_id",
]
