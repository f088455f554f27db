"""Buyer agent: opens negotiations, evaluates counters and requests payment.

Per-conversation state on the buyer side::

    offer_sent -> counter_sent <-> (seller COUNTER) -> accepted
        -> payment_requested -> paid | payment_failed

A seller DECLINE ends the conversation in state ``declined``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from agentlink.agents.base import BaseAgent, Handler
from agentlink.agents.models import AgentConfig, BuyerConfig
from agentlink.core.conversation import Conversation
from agentlink.protocol.codec import (
    accept_message,
    counter_message,
    decline_message,
    offer_message,
    payment_request_message,
)
from agentlink.protocol.models import (
    AcceptPayload,
    AgentId,
    CounterPayload,
    DeclinePayload,
    Message,
    MessageType,
    PaymentAckPayload,
)

if TYPE_CHECKING:
    from agentlink.transport.base import Transport

logger = logging.getLogger(__name__)

# Conversations in these states have already turned an ACCEPT into a payment.
_PAYMENT_STATES = frozenset({"payment_requested", "paid", "payment_failed"})

# Total messages after which a within-budget counter is accepted outright.
_FATIGUE_MESSAGES = 3


class BuyerAgent(BaseAgent):
    """Negotiates purchases within a budget and pays via the payment agent."""

    default_agent_id = AgentId.BUYER

    def __init__(
        self,
        config: AgentConfig,
        transport: Transport,
        buyer: BuyerConfig | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(config, transport, **kwargs)
        self.buyer = buyer or BuyerConfig()

    def handlers(self) -> dict[MessageType, Handler]:
        return {
            MessageType.COUNTER: self._handle_counter,
            MessageType.ACCEPT: self._handle_accept,
            MessageType.DECLINE: self._handle_decline,
            MessageType.PAYMENT_ACK: self._handle_payment_ack,
        }

    async def make_offer(
        self, item: str, qty: float, unit_price: float, currency: str = "HBAR"
    ) -> str:
        """Send an opening OFFER to the seller and return its correlation id."""
        message = offer_message(
            self.agent_id, self.buyer.seller_agent_id, item, qty, unit_price, currency
        )
        cid = message.correlation_id
        self.update_conversation(
            cid,
            state="offer_sent",
            item=item,
            qty=qty,
            currency=currency,
            initial_offer=unit_price,
            my_last_offer=unit_price,
        )
        logger.info(
            "[%s] Offering %s %s at %s %s (correlation %s)",
            self.agent_id, qty, item, unit_price, currency, cid,
        )
        await self.send_message(message)
        self._emit("offer_sent", correlation_id=cid, item=item, qty=qty, unit_price=unit_price)
        return cid

    def should_accept(self, counter_price: float, conversation: Conversation) -> bool:
        """Decide whether a seller counter at *counter_price* is acceptable."""
        if counter_price <= self.buyer.max_price * self.buyer.auto_accept_threshold:
            return True
        return (
            counter_price <= self.buyer.max_price
            and conversation.message_count >= _FATIGUE_MESSAGES
        )

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _handle_counter(self, message: Message, payload: CounterPayload) -> None:
        cid = message.correlation_id
        conversation = self.get_conversation(cid)
        logger.info(
            "[%s] Seller counters at %s %s (%s)",
            self.agent_id, payload.unit_price, payload.currency, payload.reason,
        )

        if self.should_accept(payload.unit_price, conversation):
            await self._accept(message.from_, cid, payload)
            return

        last_offer = conversation.get("my_last_offer") or conversation.get("initial_offer")
        new_offer = (last_offer + payload.unit_price) / 2 if last_offer else payload.unit_price

        if new_offer <= self.buyer.max_price:
            self.update_conversation(cid, state="counter_sent", my_last_offer=new_offer)
            await self.send_message(
                counter_message(
                    self.agent_id,
                    message.from_,
                    payload.item,
                    payload.qty,
                    new_offer,
                    payload.currency,
                    f"Counter offer at {new_offer}",
                    cid,
                )
            )
            return

        reason = f"Price {payload.unit_price} exceeds budget {self.buyer.max_price}"
        logger.info("[%s] %s, declining", self.agent_id, reason)
        self.update_conversation(cid, state="declined", decline_reason=reason)
        await self.send_message(decline_message(self.agent_id, message.from_, reason, cid))

    async def _accept(self, seller_id: str, cid: str, payload: CounterPayload) -> None:
        accept = accept_message(
            self.agent_id,
            seller_id,
            payload.item,
            payload.qty,
            payload.unit_price,
            payload.currency,
            cid,
        )
        self.update_conversation(cid, state="accepting")
        await self.send_message(accept)
        await self._deal_accepted(cid, AcceptPayload.model_validate(accept.payload))

    async def _handle_accept(self, message: Message, payload: AcceptPayload) -> None:
        conversation = self.get_conversation(message.correlation_id)
        if conversation.state in _PAYMENT_STATES:
            logger.info(
                "[%s] Ignoring ACCEPT for %s, payment already %s",
                self.agent_id, message.correlation_id, conversation.state,
            )
            return
        await self._deal_accepted(message.correlation_id, payload)

    async def _deal_accepted(self, cid: str, payload: AcceptPayload) -> None:
        self.update_conversation(
            cid,
            state="accepted",
            final_price=payload.unit_price,
            total_amount=payload.total_amount,
        )
        logger.info(
            "[%s] Deal accepted: %s %s for %s %s",
            self.agent_id, payload.qty, payload.item, payload.total_amount, payload.currency,
        )
        self._emit(
            "deal_accepted",
            correlation_id=cid,
            item=payload.item,
            qty=payload.qty,
            unit_price=payload.unit_price,
            total_amount=payload.total_amount,
        )
        await self._request_payment(cid, payload)

    async def _request_payment(self, cid: str, deal: AcceptPayload) -> None:
        seller_account = self.buyer.seller_account_id
        if not seller_account:
            error = "No seller account configured"
            logger.error("[%s] Cannot pay for %s: %s", self.agent_id, cid, error)
            self.update_conversation(cid, state="payment_failed", payment_error=error)
            self._emit("payment_failed", correlation_id=cid, error=error)
            return

        self.update_conversation(cid, state="payment_requested")
        result = await self.send_message(
            payment_request_message(
                self.agent_id,
                self.buyer.payment_agent_id,
                deal.total_amount,
                self.buyer.payment_token_id,
                seller_account,
                f"Payment for {deal.qty} {deal.item}",
                deal.item,
                deal.qty,
                cid,
            )
        )
        if result.success:
            self._emit("payment_requested", correlation_id=cid, amount=deal.total_amount)

    async def _handle_decline(self, message: Message, payload: DeclinePayload) -> None:
        logger.info("[%s] Seller declined: %s", self.agent_id, payload.reason)
        self.update_conversation(
            message.correlation_id, state="declined", decline_reason=payload.reason
        )
        self._emit("offer_declined", correlation_id=message.correlation_id, reason=payload.reason)

    async def _handle_payment_ack(self, message: Message, payload: PaymentAckPayload) -> None:
        cid = message.correlation_id
        if payload.status == "success":
            self.update_conversation(cid, state="paid", transaction_id=payload.transaction_id)
            logger.info(
                "[%s] Payment of %s settled (%s)",
                self.agent_id, payload.amount, payload.transaction_id,
            )
            self._emit(
                "payment_success",
                correlation_id=cid,
                transaction_id=payload.transaction_id,
                amount=payload.amount,
            )
        else:
            self.update_conversation(cid, state="payment_failed", payment_error=payload.error)
            logger.error("[%s] Payment failed: %s", self.agent_id, payload.error)
            self._emit("payment_failed", correlation_id=cid, error=payload.error)
