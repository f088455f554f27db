"""Seller agent: prices incoming offers against a floor and a target.

The same policy answers both the opening OFFER and every buyer COUNTER:

* not enough stock -> DECLINE (inventory untouched)
* below ``min_price`` -> DECLINE
* at or above ``ideal_price`` -> ACCEPT
* otherwise -> COUNTER at the midpoint between the offer and ``ideal_price``

Inventory is reserved once per conversation, when the deal is accepted by
either side.  A buyer ACCEPT only closes a deal the seller countered, and
only while the stock is still there; anything else is answered with DECLINE.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from agentlink.agents.base import BaseAgent, Handler
from agentlink.agents.models import AgentConfig, SellerConfig
from agentlink.protocol.codec import accept_message, counter_message, decline_message
from agentlink.protocol.models import (
    AcceptPayload,
    AgentId,
    Message,
    MessageType,
    OfferPayload,
)

if TYPE_CHECKING:
    from agentlink.transport.base import Transport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceDecision:
    action: Literal["accept", "counter", "decline"]
    counter_price: float | None = None
    reason: str | None = None


class SellerAgent(BaseAgent):
    """Sells from a fixed inventory at or above a minimum price."""

    default_agent_id = AgentId.SELLER

    def __init__(
        self,
        config: AgentConfig,
        transport: Transport,
        seller: SellerConfig | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(config, transport, **kwargs)
        self.seller = seller or SellerConfig()
        self._inventory = dict(self.seller.inventory)

    @property
    def inventory(self) -> dict[str, float]:
        """Remaining stock per item (a copy)."""
        return dict(self._inventory)

    def handlers(self) -> dict[MessageType, Handler]:
        return {
            MessageType.OFFER: self._handle_offer,
            MessageType.COUNTER: self._handle_offer,
            MessageType.ACCEPT: self._handle_accept,
        }

    def has_inventory(self, item: str, qty: float) -> bool:
        return self._inventory.get(item, 0) >= qty

    def evaluate(self, unit_price: float) -> PriceDecision:
        """Apply the pricing policy to a single offer price."""
        if unit_price < self.seller.min_price:
            return PriceDecision(
                "decline", reason=f"Price {unit_price} is below minimum {self.seller.min_price}"
            )
        if unit_price >= self.seller.ideal_price:
            return PriceDecision("accept")

        counter_price = (unit_price + self.seller.ideal_price) / 2
        return PriceDecision(
            "counter",
            counter_price=counter_price,
            reason=f"Looking for {self.seller.ideal_price}, can offer {counter_price}",
        )

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _handle_offer(self, message: Message, payload: OfferPayload) -> None:
        cid = message.correlation_id
        buyer_id = message.from_
        logger.info(
            "[%s] %s from %s: %s %s at %s %s",
            self.agent_id, message.type.value, buyer_id,
            payload.qty, payload.item, payload.unit_price, payload.currency,
        )
        if message.type == MessageType.OFFER:
            self.update_conversation(
                cid,
                state="offer_received",
                item=payload.item,
                qty=payload.qty,
                buyer_offer=payload.unit_price,
                buyer_id=buyer_id,
            )
        else:
            self.update_conversation(cid, buyer_offer=payload.unit_price)

        if not self.has_inventory(payload.item, payload.qty):
            reason = f"Insufficient inventory for {payload.qty} {payload.item}"
            await self._decline(cid, buyer_id, reason)
            return

        decision = self.evaluate(payload.unit_price)
        if decision.action == "accept":
            await self.send_message(
                accept_message(
                    self.agent_id,
                    buyer_id,
                    payload.item,
                    payload.qty,
                    payload.unit_price,
                    payload.currency,
                    cid,
                )
            )
            self._deal_accepted(cid, payload.item, payload.qty, payload.unit_price)
        elif decision.action == "counter":
            assert decision.counter_price is not None
            self.update_conversation(
                cid, state="counter_sent", my_last_offer=decision.counter_price
            )
            await self.send_message(
                counter_message(
                    self.agent_id,
                    buyer_id,
                    payload.item,
                    payload.qty,
                    decision.counter_price,
                    payload.currency,
                    decision.reason,
                    cid,
                )
            )
        else:
            await self._decline(cid, buyer_id, decision.reason or "Offer declined")

    async def _handle_accept(self, message: Message, payload: AcceptPayload) -> None:
        """Close a deal on the buyer's acceptance of our latest counter."""
        cid = message.correlation_id
        conversation = self.find_conversation(cid)
        if conversation is not None and conversation.get("inventory_reserved"):
            logger.debug("[%s] Deal %s already reserved, ignoring ACCEPT", self.agent_id, cid)
            return

        if conversation is None or conversation.state != "counter_sent":
            await self._decline(cid, message.from_, "No open counter offer to accept")
            return
        if not self.has_inventory(payload.item, payload.qty):
            reason = f"Insufficient inventory for {payload.qty} {payload.item}"
            await self._decline(cid, message.from_, reason)
            return

        self._deal_accepted(cid, payload.item, payload.qty, payload.unit_price)

    async def _decline(self, cid: str, buyer_id: str, reason: str) -> None:
        logger.info("[%s] Declining %s: %s", self.agent_id, cid, reason)
        self.update_conversation(cid, state="declined", decline_reason=reason)
        await self.send_message(decline_message(self.agent_id, buyer_id, reason, cid))

    def _deal_accepted(self, cid: str, item: str, qty: float, unit_price: float) -> None:
        conversation = self.get_conversation(cid)
        if conversation.get("inventory_reserved"):
            return

        total = qty * unit_price
        self.update_conversation(
            cid,
            state="accepted",
            final_price=unit_price,
            total_amount=total,
            inventory_reserved=True,
        )
        if item in self._inventory:
            self._inventory[item] -= qty
            logger.info(
                "[%s] Reserved %s %s (remaining %s)",
                self.agent_id, qty, item, self._inventory[item],
            )
        self._emit(
            "deal_accepted",
            correlation_id=cid,
            item=item,
            qty=qty,
            unit_price=unit_price,
            total_amount=total,
        )
