"""Telegram agent: the chat-facing entry point of the bridge workflow.

User text arrives through :meth:`TelegramAgent.receive_from_telegram` (an
API call, not the transport) and is forwarded to the AI-Decision agent.
Decisions and notifications coming back are queued as
:class:`~agentlink.agents.models.Notification` objects until a caller
reads and clears them.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from agentlink.agents.base import BaseAgent, Handler
from agentlink.agents.models import AgentConfig, ChatContext, Notification, TelegramConfig
from agentlink.protocol.codec import ai_decision_request
from agentlink.protocol.models import (
    AgentId,
    AIDecisionResponsePayload,
    Message,
    MessageType,
    NotifyPayload,
)

if TYPE_CHECKING:
    from agentlink.transport.base import Transport

logger = logging.getLogger(__name__)


class TelegramAgent(BaseAgent):
    """Relays chat messages to the AI-Decision agent and collects replies."""

    default_agent_id = AgentId.TELEGRAM

    def __init__(
        self,
        config: AgentConfig,
        transport: Transport,
        telegram: TelegramConfig | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(config, transport, **kwargs)
        self.telegram = telegram or TelegramConfig()
        self._notifications: list[Notification] = []
        self._chats: dict[str | int, ChatContext] = {}

    def handlers(self) -> dict[MessageType, Handler]:
        return {
            MessageType.AI_DECISION_RESP: self._handle_decision,
            MessageType.NOTIFY: self._handle_notify,
        }

    async def receive_from_telegram(
        self, text: str, chat_id: str | int, user_id: str | int
    ) -> str:
        """Start a decision thread for *text* and return its correlation id."""
        cid = f"telegram-{uuid4()}"
        logger.info("[%s] Chat %s: %s", self.agent_id, chat_id, text)

        self._chats[chat_id] = ChatContext(user_id=user_id, last_message=text, correlation_id=cid)
        self.update_conversation(
            cid,
            state="forwarding_to_ai",
            chat_id=chat_id,
            user_id=user_id,
            original_message=text,
        )

        await self.send_message(
            ai_decision_request(
                self.agent_id,
                self.telegram.ai_decision_agent_id,
                text,
                {"chatId": chat_id, "userId": user_id, "source": "telegram"},
                cid,
            )
        )
        self._emit(
            "message_forwarded",
            correlation_id=cid,
            chat_id=chat_id,
            ai_agent_id=self.telegram.ai_decision_agent_id,
        )
        return cid

    # ------------------------------------------------------------------
    # Query surface
    # ------------------------------------------------------------------

    def get_pending_notifications(self, chat_id: str | int | None = None) -> list[Notification]:
        if chat_id is None:
            return list(self._notifications)
        return [n for n in self._notifications if n.chat_id == chat_id]

    def clear_notifications(self, correlation_id: str | None = None) -> None:
        """Drop notifications for *correlation_id*, or all of them."""
        if correlation_id is None:
            self._notifications.clear()
        else:
            self._notifications = [
                n for n in self._notifications if n.correlation_id != correlation_id
            ]

    def get_active_chats(self) -> dict[str | int, ChatContext]:
        return dict(self._chats)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _handle_decision(self, message: Message, payload: AIDecisionResponsePayload) -> None:
        cid = message.correlation_id
        conversation = self.find_conversation(cid)
        chat_id = conversation.get("chat_id") if conversation else None
        if chat_id is None:
            logger.warning("[%s] No chat waiting on decision %s", self.agent_id, cid)
            return

        logger.info("[%s] Decision for %s: %s", self.agent_id, cid, payload.decision)
        self.update_conversation(
            cid,
            state="ai_response_received",
            decision=payload.decision,
            should_execute_bridge=payload.should_execute_bridge,
            reasoning=payload.reasoning,
        )
        self._notifications.append(
            Notification(
                correlation_id=cid,
                type="ai_decision",
                chat_id=chat_id,
                message=f"AI Decision: {payload.decision}\n{payload.reasoning}",
                should_execute_bridge=payload.should_execute_bridge,
                bridge_params=payload.bridge_params,
            )
        )
        self._emit(
            "ai_decision_received",
            correlation_id=cid,
            decision=payload.decision,
            should_execute_bridge=payload.should_execute_bridge,
            chat_id=chat_id,
        )

    async def _handle_notify(self, message: Message, payload: NotifyPayload) -> None:
        cid = message.correlation_id
        conversation = self.find_conversation(cid)
        chat_id = conversation.get("chat_id") if conversation else None
        logger.info("[%s] Notification (%s): %s", self.agent_id, payload.level, payload.message)

        self._notifications.append(
            Notification(
                correlation_id=cid,
                type="notification",
                chat_id=chat_id,
                message=payload.message,
                level=payload.level,
            )
        )
        self._emit(
            "notification",
            correlation_id=cid,
            chat_id=chat_id,
            message=payload.message,
            level=payload.level,
        )
