"""Configuration and result models shared by the bundled agents."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field

from agentlink.ledger.models import NATIVE_TOKEN
from agentlink.protocol.models import AgentId, NotifyLevel

DEFAULT_KEYWORDS = ["bridge", "transfer", "send", "cross-chain", "move", "swap"]
DEFAULT_CHAINS = ["ethereum", "polygon", "arbitrum", "optimism", "base"]
DEFAULT_TOKENS = ["ETH", "USDC", "USDT", "DAI", "WETH"]


class AgentState(str, Enum):
    """Lifecycle state of an agent."""

    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class AgentConfig(BaseModel):
    """Settings common to every agent."""

    account_id: str
    topic_id: str
    dedup_capacity: int = Field(default=100, ge=1)
    strict_payloads: bool = True


class BuyerConfig(BaseModel):
    max_price: float = 100
    auto_accept_threshold: float = 1.1
    payment_token_id: str = NATIVE_TOKEN
    seller_account_id: str | None = None
    seller_agent_id: str = AgentId.SELLER
    payment_agent_id: str = AgentId.PAYMENT


class SellerConfig(BaseModel):
    min_price: float = 50
    ideal_price: float = 80
    inventory: dict[str, float] = {}


class PaymentConfig(BaseModel):
    idempotency_capacity: int = Field(default=100, ge=1)


class TelegramConfig(BaseModel):
    ai_decision_agent_id: str = AgentId.AI_DECISION


class AIDecisionConfig(BaseModel):
    """Rule set for the bridge intent classifier."""

    keywords: list[str] = Field(default_factory=lambda: list(DEFAULT_KEYWORDS))
    supported_chains: list[str] = Field(default_factory=lambda: list(DEFAULT_CHAINS))
    supported_tokens: list[str] = Field(default_factory=lambda: list(DEFAULT_TOKENS))
    bridge_agent_id: str = AgentId.BRIDGE_EXECUTOR
    telegram_agent_id: str = AgentId.TELEGRAM


class BridgeConfig(BaseModel):
    simulation_delay: float = Field(default=2.0, ge=0)


# ---------------------------------------------------------------------------
# Results and query views
# ---------------------------------------------------------------------------


class SendResult(BaseModel):
    """Outcome of :meth:`BaseAgent.send_message`; never raised."""

    success: bool
    error: str | None = None
    sequence_number: int | None = None


class AgentStatus(BaseModel):
    agent_id: str
    account_id: str
    topic_id: str
    state: AgentState
    running: bool
    conversations: int
    processed_messages: int


class ChatContext(BaseModel):
    """Last message seen on a chat; history is not kept."""

    user_id: str | int
    last_message: str
    correlation_id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Notification(BaseModel):
    """A message waiting to be delivered back to a chat."""

    correlation_id: str
    type: Literal["ai_decision", "notification"]
    chat_id: str | int | None = None
    message: str
    level: NotifyLevel = "info"
    should_execute_bridge: bool | None = None
    bridge_params: dict[str, Any] | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Decision(BaseModel):
    """Verdict of the bridge intent classifier."""

    decision: Literal["APPROVE", "REJECT"]
    should_execute_bridge: bool
    reasoning: str
    bridge_params: dict[str, Any] | None = None

    @property
    def approved(self) -> bool:
        return self.decision == "APPROVE"
