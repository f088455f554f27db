"""Agent-local state primitives (dedup sets, conversations, events and the execution log)."""

from agentlink.core.cache import BoundedFifoSet
from agentlink.core.conversation import Conversation, ConversationStore
from agentlink.core.events import AgentEvent, EventCallback, EventHub
from agentlink.core.executions import (
    BridgeExecution,
    ExecutionLogBackend,
    ExecutionStatus,
    InMemoryExecutionLog,
)

__all__ = [
    "AgentEvent",
    "BoundedFifoSet",
    "BridgeExecution",
    "Conversation",
    "ConversationStore",
    "EventCallback",
    "EventHub",
    "ExecutionLogBackend",
    "ExecutionStatus",
    "InMemoryExecutionLog",
]
