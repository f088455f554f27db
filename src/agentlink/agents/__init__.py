"""Agent runtime and the bundled negotiation, payment and workflow agents."""

from agentlink.agents.ai_decision import AIDecisionAgent, BridgeIntentClassifier
from agentlink.agents.base import BaseAgent, Handler
from agentlink.agents.bridge_executor import BridgeExecutorAgent
from agentlink.agents.buyer import BuyerAgent
from agentlink.agents.models import (
    AgentConfig,
    AgentState,
    AgentStatus,
    AIDecisionConfig,
    BridgeConfig,
    BuyerConfig,
    ChatContext,
    Decision,
    Notification,
    PaymentConfig,
    SellerConfig,
    SendResult,
    TelegramConfig,
)
from agentlink.agents.payment import PaymentAgent
from agentlink.agents.seller import SellerAgent
from agentlink.agents.telegram import TelegramAgent

__all__ = [
    "AIDecisionAgent",
    "AIDecisionConfig",
    "AgentConfig",
    "AgentState",
    "AgentStatus",
    "BaseAgent",
    "BridgeConfig",
    "BridgeExecutorAgent",
    "BridgeIntentClassifier",
    "BuyerAgent",
    "BuyerConfig",
    "ChatContext",
    "Decision",
    "Handler",
    "Notification",
    "PaymentAgent",
    "PaymentConfig",
    "SellerAgent",
    "SellerConfig",
    "SendResult",
    "TelegramAgent",
    "TelegramConfig",
]
