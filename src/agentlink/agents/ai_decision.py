"""AI-Decision agent and the rule-based bridge intent classifier.

:class:`BridgeIntentClassifier` is a pure function object: it turns free
text into a :class:`~agentlink.agents.models.Decision` and knows nothing
about messages.  Checks run in order and the first failing one decides the
rejection reason:

1. a bridge keyword appears (substring, case-insensitive)
2. ``from <chain>`` and ``to <chain>`` name supported chains
3. a supported token appears (substring, case-insensitive, longest first,
   with chain names and addresses blanked out so ``eth`` inside
   ``ethereum`` is not a hit)
4. a positive amount is present

A ``0x`` address of 40 hex digits, if present, becomes the recipient.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

from agentlink.agents.base import BaseAgent, Handler
from agentlink.agents.models import AgentConfig, AIDecisionConfig, Decision
from agentlink.protocol.codec import ai_decision_response, bridge_execute_request, notify_message
from agentlink.protocol.models import (
    AgentId,
    AIDecisionRequestPayload,
    BridgeExecuteResponsePayload,
    BridgeParams,
    Message,
    MessageType,
)

if TYPE_CHECKING:
    from agentlink.transport.base import Transport

logger = logging.getLogger(__name__)

_FROM_RE = re.compile(r"\bfrom\s+([a-z][\w-]*)")
_TO_RE = re.compile(r"\bto\s+([a-z][\w-]*)")
_ADDRESS_RE = re.compile(r"\b0x[0-9a-fA-F]{40}\b")
_NUMBER_RE = re.compile(r"(?<![\w.])(\d+(?:\.\d+)?)(?!\w)")
_TICKER_RE = re.compile(r"(?<![\w.])\d+(?:\.\d+)?\s*([A-Z][A-Z0-9]{1,9})\b")
_NOT_TOKENS = frozenset({"from", "to", "of", "on", "into", "onto", "tokens", "coins"})

NO_INTENT = "Request does not indicate a bridge/transfer operation."
NO_CHAINS = (
    "Unable to determine source and target chains. "
    "Please specify clearly (e.g., 'bridge from Ethereum to Polygon')."
)
NO_TOKEN = "Unable to determine token to bridge. Please specify (e.g., 'bridge 100 USDC')."
NO_AMOUNT = "Invalid or missing amount. Please specify amount to bridge."


class BridgeIntentClassifier:
    """Decides whether a chat message is an executable bridge request."""

    def __init__(self, config: AIDecisionConfig | None = None) -> None:
        self.config = config or AIDecisionConfig()
        self._keywords = [k.lower() for k in self.config.keywords]
        self._chains = [c.lower() for c in self.config.supported_chains]
        self._tokens = sorted(self.config.supported_tokens, key=len, reverse=True)
        chain_alternatives = "|".join(
            re.escape(chain) for chain in sorted(self._chains, key=len, reverse=True)
        )
        self._chain_words = (
            re.compile(rf"\b(?:{chain_alternatives})\b") if chain_alternatives else None
        )

    def classify(self, text: str) -> Decision:
        lowered = text.lower()

        if not any(keyword in lowered for keyword in self._keywords):
            return _reject(NO_INTENT)

        source_candidates = _FROM_RE.findall(lowered)
        target_candidates = _TO_RE.findall(lowered)
        if not source_candidates or not target_candidates:
            return _reject(NO_CHAINS)
        source = self._first_supported(source_candidates)
        target = self._first_supported(target_candidates)
        if source is None or target is None:
            return _reject(
                f"Unsupported chain. Supported chains: {', '.join(self.config.supported_chains)}"
            )

        token = self._find_token(lowered)
        if token is None:
            unknown = self._unknown_ticker(text)
            if unknown is not None:
                return _reject(
                    f"Unsupported token: {unknown}. Supported tokens: "
                    + ", ".join(self.config.supported_tokens)
                )
            return _reject(NO_TOKEN)

        amount = self._find_amount(text, token)
        if amount is None or amount <= 0:
            return _reject(NO_AMOUNT)

        recipient_match = _ADDRESS_RE.search(text)
        params = BridgeParams(
            source_chain=source,
            target_chain=target,
            token=token,
            amount=amount,
            recipient=recipient_match.group(0) if recipient_match else None,
        )
        return Decision(
            decision="APPROVE",
            should_execute_bridge=True,
            reasoning=f"Approved bridge of {amount} {token} from {source} to {target}",
            bridge_params=params.to_payload(),
        )

    def _first_supported(self, candidates: list[str]) -> str | None:
        for candidate in candidates:
            if candidate in self._chains:
                return candidate
        return None

    def _find_token(self, lowered: str) -> str | None:
        # Longest first, so WETH wins over the ETH inside it.
        text = _ADDRESS_RE.sub(" ", lowered)
        if self._chain_words is not None:
            text = self._chain_words.sub(" ", text)
        for token in self._tokens:
            if token.lower() in text:
                return token
        return None

    def _unknown_ticker(self, text: str) -> str | None:
        """Return an upper-case ticker written after a number, e.g. ``DOGE``."""
        for ticker in _TICKER_RE.findall(text):
            if ticker.lower() not in _NOT_TOKENS and ticker.lower() not in self._chains:
                return ticker
        return None

    def _find_amount(self, text: str, token: str) -> int | float | None:
        stripped = _ADDRESS_RE.sub(" ", text)
        adjacent = re.search(
            rf"(?<![\w.])(\d+(?:\.\d+)?)\s*{re.escape(token)}\b", stripped, re.IGNORECASE
        )
        match = adjacent or _NUMBER_RE.search(stripped)
        if match is None:
            return None
        value = float(match.group(1))
        return int(value) if value.is_integer() else value


def _reject(reason: str) -> Decision:
    return Decision(decision="REJECT", should_execute_bridge=False, reasoning=reason)


class AIDecisionAgent(BaseAgent):
    """Classifies chat requests and routes approved ones to the bridge executor."""

    default_agent_id = AgentId.AI_DECISION

    def __init__(
        self,
        config: AgentConfig,
        transport: Transport,
        ai_decision: AIDecisionConfig | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(config, transport, **kwargs)
        self.ai_decision = ai_decision or AIDecisionConfig()
        self.classifier = BridgeIntentClassifier(self.ai_decision)

    def handlers(self) -> dict[MessageType, Handler]:
        return {
            MessageType.AI_DECISION_REQ: self._handle_request,
            MessageType.BRIDGE_EXEC_RESP: self._handle_bridge_response,
        }

    async def _handle_request(self, message: Message, payload: AIDecisionRequestPayload) -> None:
        cid = message.correlation_id
        self.update_conversation(
            cid, state="analyzing", user_request=payload.user_request, context=payload.context
        )

        decision = self.classifier.classify(payload.user_request)
        logger.info("[%s] %s: %s", self.agent_id, decision.decision, decision.reasoning)
        self.update_conversation(cid, state="decision_made", **decision.model_dump())

        await self.send_message(
            ai_decision_response(
                self.agent_id,
                message.from_,
                decision.decision,
                decision.should_execute_bridge,
                decision.reasoning,
                decision.bridge_params,
                cid,
            )
        )

        if decision.should_execute_bridge and decision.bridge_params:
            params = BridgeParams.model_validate(decision.bridge_params)
            self.update_conversation(cid, state="requesting_bridge")
            await self.send_message(
                bridge_execute_request(
                    self.agent_id,
                    self.ai_decision.bridge_agent_id,
                    params.source_chain,
                    params.target_chain,
                    params.token,
                    params.amount,
                    params.recipient,
                    cid,
                )
            )
        else:
            await self.send_message(
                notify_message(
                    self.agent_id,
                    self.ai_decision.telegram_agent_id,
                    f"Request rejected: {decision.reasoning}",
                    "warning",
                    cid,
                )
            )

        self._emit(
            "decision_made",
            correlation_id=cid,
            decision=decision.decision,
            should_execute_bridge=decision.should_execute_bridge,
        )

    async def _handle_bridge_response(
        self, message: Message, payload: BridgeExecuteResponsePayload
    ) -> None:
        cid = message.correlation_id
        self.update_conversation(
            cid,
            state="bridge_response_received",
            bridge_status=payload.status,
            transaction_hash=payload.transaction_hash,
            error=payload.error,
        )

        if payload.status == "success":
            text = f"✅ Bridge executed successfully!\nTransaction: {payload.transaction_hash}"
            level = "success"
        else:
            text = f"❌ Bridge execution failed: {payload.error}"
            level = "error"

        await self.send_message(
            notify_message(self.agent_id, self.ai_decision.telegram_agent_id, text, level, cid)
        )
        self._emit("bridge_result", correlation_id=cid, status=payload.status)
