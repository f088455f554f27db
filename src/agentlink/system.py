"""AgentSystem: builds, starts and observes a set of agents on one topic.

The system wires the workflow agents (Telegram, AI-Decision,
Bridge-Executor) and, when accounts for them are configured, the
negotiation agents (buyer, seller, payment).  It observes every agent
through its :class:`~agentlink.core.events.EventHub`, logs each event to
the ``agentlink.system`` logger and re-publishes it on :attr:`events`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel

from agentlink.agents.ai_decision import AIDecisionAgent
from agentlink.agents.bridge_executor import BridgeExecutorAgent
from agentlink.agents.buyer import BuyerAgent
from agentlink.agents.models import AgentStatus, Notification
from agentlink.agents.payment import PaymentAgent
from agentlink.agents.seller import SellerAgent
from agentlink.agents.telegram import TelegramAgent
from agentlink.core.events import AgentEvent, EventHub
from agentlink.core.executions import BridgeExecution
from agentlink.errors import AgentError
from agentlink.protocol.signing import Ed25519Signer, NoopSigner, Signer, public_key_for

if TYPE_CHECKING:
    from agentlink.agents.base import BaseAgent
    from agentlink.config import SystemConfig
    from agentlink.core.executions import ExecutionLogBackend
    from agentlink.ledger.tool import TransferTool
    from agentlink.transport.base import Transport

logger = logging.getLogger("agentlink.system")

_AGENT_CLASSES: dict[str, type[BaseAgent]] = {
    "telegram": TelegramAgent,
    "ai_decision": AIDecisionAgent,
    "bridge_executor": BridgeExecutorAgent,
    "buyer": BuyerAgent,
    "seller": SellerAgent,
    "payment": PaymentAgent,
}


class SystemStatus(BaseModel):
    """Snapshot returned by :meth:`AgentSystem.status`."""

    running: bool
    topic_id: str
    agents: dict[str, AgentStatus]
    active_chats: int
    pending_notifications: int
    pending_executions: int
    recent_executions: list[BridgeExecution]


class AgentSystem:
    """Owns the agents of one deployment and their shared transport.

    Args:
        config: Accounts, topic and per-role settings.
        transport: Shared topic transport.  Closed by :meth:`stop` when
            *owns_transport* is ``True``.
        transfer_tool: Given to the payment agent.
        execution_log: Optional persistence for completed bridge executions.
    """

    def __init__(
        self,
        config: SystemConfig,
        transport: Transport,
        transfer_tool: TransferTool | None = None,
        *,
        execution_log: ExecutionLogBackend | None = None,
        owns_transport: bool = True,
    ) -> None:
        self.config = config
        self.transport = transport
        self.transfer_tool = transfer_tool
        self.execution_log = execution_log
        self.owns_transport = owns_transport
        self.events = EventHub()
        self.agents: dict[str, BaseAgent] = {}
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Construct the agents (idempotent)."""
        if self.agents:
            return

        roles = ["telegram", "ai_decision", "bridge_executor"]
        if self.config.negotiation_enabled:
            roles += ["buyer", "seller", "payment"]
        signers = self._build_signers(roles)

        for role in roles:
            agent = self._build_agent(role, signers[role])
            agent.events.subscribe(self._forward)
            self.agents[role] = agent
            logger.info("[SYSTEM] Initialized %s as %s", agent.agent_id, agent.account_id)

    def _build_agent(self, role: str, signer: Signer) -> BaseAgent:
        cfg = self.config
        common = cfg.agent_config(role)
        if role == "telegram":
            return TelegramAgent(common, self.transport, cfg.telegram, signer=signer)
        if role == "ai_decision":
            return AIDecisionAgent(common, self.transport, cfg.ai_decision, signer=signer)
        if role == "bridge_executor":
            return BridgeExecutorAgent(
                common, self.transport, cfg.bridge, execution_log=self.execution_log, signer=signer
            )
        if role == "buyer":
            buyer = cfg.buyer
            if buyer.seller_account_id is None and cfg.accounts.seller is not None:
                buyer = buyer.model_copy(
                    update={"seller_account_id": cfg.accounts.seller.account_id}
                )
            return BuyerAgent(common, self.transport, buyer, signer=signer)
        if role == "seller":
            return SellerAgent(common, self.transport, cfg.seller, signer=signer)
        if role == "payment":
            return PaymentAgent(
                common, self.transport, cfg.payment, transfer_tool=self.transfer_tool, signer=signer
            )
        raise AgentError(f"Unknown agent role {role!r}")

    def _build_signers(self, roles: list[str]) -> dict[str, Signer]:
        if not self.config.signing.enabled:
            return {role: NoopSigner() for role in roles}

        keys: dict[str, str] = {}
        for role in roles:
            private_key = self.config.account(role).private_key
            if not private_key:
                raise AgentError(f"Signing is enabled but {role} has no private key")
            keys[role] = private_key

        trusted = {
            _AGENT_CLASSES[role].default_agent_id: public_key_for(keys[role]) for role in roles
        }
        return {role: Ed25519Signer(keys[role], trusted) for role in roles}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start every agent; on failure stop the ones that started and re-raise."""
        if self._running:
            logger.warning("[SYSTEM] Already running")
            return

        self.initialize()
        logger.info(
            "[SYSTEM] Starting %d agents on topic %s", len(self.agents), self.config.topic_id
        )
        results = await asyncio.gather(
            *(agent.start() for agent in self.agents.values()), return_exceptions=True
        )
        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            logger.error("[SYSTEM] Start failed: %s", failures[0])
            await asyncio.gather(
                *(agent.stop() for agent in self.agents.values() if agent.is_running)
            )
            raise failures[0]

        self._running = True
        logger.info("[SYSTEM] All agents running")

    async def stop(self) -> None:
        """Stop every agent and release the transport (idempotent)."""
        if not self._running:
            logger.warning("[SYSTEM] Not running")
            return

        await asyncio.gather(*(agent.stop() for agent in self.agents.values()))
        if self.owns_transport:
            await self.transport.close()
        self._running = False
        logger.info("[SYSTEM] Stopped")

    def _forward(self, event: AgentEvent) -> None:
        logger.info("[SYSTEM] %s %s %s", event.agent_id, event.name, event.data)
        self.events.emit(event)

    # ------------------------------------------------------------------
    # Agent accessors
    # ------------------------------------------------------------------

    def _agent(self, role: str) -> BaseAgent:
        self.initialize()
        agent = self.agents.get(role)
        if agent is None:
            raise AgentError(f"No {role} agent in this system")
        return agent

    @property
    def telegram(self) -> TelegramAgent:
        agent = self._agent("telegram")
        assert isinstance(agent, TelegramAgent)
        return agent

    @property
    def ai_decision(self) -> AIDecisionAgent:
        agent = self._agent("ai_decision")
        assert isinstance(agent, AIDecisionAgent)
        return agent

    @property
    def bridge_executor(self) -> BridgeExecutorAgent:
        agent = self._agent("bridge_executor")
        assert isinstance(agent, BridgeExecutorAgent)
        return agent

    @property
    def buyer(self) -> BuyerAgent:
        agent = self._agent("buyer")
        assert isinstance(agent, BuyerAgent)
        return agent

    @property
    def seller(self) -> SellerAgent:
        agent = self._agent("seller")
        assert isinstance(agent, SellerAgent)
        return agent

    @property
    def payment(self) -> PaymentAgent:
        agent = self._agent("payment")
        assert isinstance(agent, PaymentAgent)
        return agent

    # ------------------------------------------------------------------
    # Query surface
    # ------------------------------------------------------------------

    async def send_telegram_message(
        self, text: str, chat_id: str | int, user_id: str | int
    ) -> str:
        """Feed a chat message into the workflow; returns its correlation id."""
        return await self.telegram.receive_from_telegram(text, chat_id, user_id)

    def notifications(self, chat_id: str | int | None = None) -> list[Notification]:
        return self.telegram.get_pending_notifications(chat_id)

    def pending_executions(self) -> list[BridgeExecution]:
        return self.bridge_executor.get_pending_executions()

    def execution_history(self, limit: int = 50) -> list[BridgeExecution]:
        return self.bridge_executor.get_execution_history(limit)

    def status(self) -> SystemStatus:
        self.initialize()
        return SystemStatus(
            running=self._running,
            topic_id=self.config.topic_id,
            agents={role: agent.status() for role, agent in self.agents.items()},
            active_chats=len(self.telegram.get_active_chats()),
            pending_notifications=len(self.telegram.get_pending_notifications()),
            pending_executions=len(self.bridge_executor.get_pending_executions()),
            recent_executions=self.bridge_executor.get_execution_history(10),
        )
