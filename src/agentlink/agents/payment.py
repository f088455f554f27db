"""Payment agent: settles PAYMENT_REQ messages through the transfer tool.

Each request is keyed by ``(correlation_id, amount, to_account)``.  A key
is remembered only once its transfer has succeeded, so a duplicate of a
settled request is ignored (no second transfer, no second ACK) while a
failed request can be retried.  Every request that is not a duplicate
gets exactly one PAYMENT_ACK.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from agentlink.agents.base import BaseAgent, Handler
from agentlink.agents.models import AgentConfig, PaymentConfig
from agentlink.core.cache import BoundedFifoSet
from agentlink.ledger.models import TransferRequest
from agentlink.protocol.codec import payment_ack_message
from agentlink.protocol.models import AgentId, Message, MessageType, PaymentRequestPayload

if TYPE_CHECKING:
    from agentlink.transport.base import Transport

logger = logging.getLogger(__name__)

PaymentKey = tuple[str, float, str]


class PaymentAgent(BaseAgent):
    """Executes value transfers on behalf of negotiating agents."""

    default_agent_id = AgentId.PAYMENT

    def __init__(
        self,
        config: AgentConfig,
        transport: Transport,
        payment: PaymentConfig | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(config, transport, **kwargs)
        self.payment = payment or PaymentConfig()
        self._settled: BoundedFifoSet[PaymentKey] = BoundedFifoSet(
            self.payment.idempotency_capacity
        )

    def handlers(self) -> dict[MessageType, Handler]:
        return {MessageType.PAYMENT_REQ: self._handle_payment_request}

    def is_settled(self, correlation_id: str, amount: float, to_account: str) -> bool:
        return (correlation_id, amount, to_account) in self._settled

    async def _handle_payment_request(
        self, message: Message, payload: PaymentRequestPayload
    ) -> None:
        cid = message.correlation_id
        key: PaymentKey = (cid, payload.amount, payload.to_account)
        if key in self._settled:
            logger.info("[%s] Duplicate payment request for %s, skipping", self.agent_id, cid)
            return

        logger.info(
            "[%s] Paying %s %s to %s (%s)",
            self.agent_id, payload.amount, payload.token_id, payload.to_account, payload.memo,
        )
        result = await self.execute_transfer(
            TransferRequest(
                to_account=payload.to_account,
                amount=payload.amount,
                token_id=payload.token_id,
                memo=payload.memo,
            )
        )

        if result.success:
            assert result.transaction_id is not None
            self._settled.add(key)
            self.update_conversation(
                cid,
                state="payment_complete",
                transaction_id=result.transaction_id,
                amount=payload.amount,
            )
            await self.send_message(
                payment_ack_message(
                    self.agent_id,
                    message.from_,
                    result.transaction_id,
                    "success",
                    payload.amount,
                    payload.token_id,
                    correlation_id=cid,
                )
            )
            self._emit(
                "payment_executed",
                correlation_id=cid,
                transaction_id=result.transaction_id,
                amount=payload.amount,
            )
            return

        error = result.error or "Transfer failed"
        logger.error("[%s] Payment for %s failed: %s", self.agent_id, cid, error)
        self.update_conversation(cid, state="payment_failed", error=error)
        await self.send_message(
            payment_ack_message(
                self.agent_id,
                message.from_,
                "",
                "failed",
                payload.amount,
                payload.token_id,
                error=error,
                correlation_id=cid,
            )
        )
        self._emit("payment_failed", correlation_id=cid, error=error)
