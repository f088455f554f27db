"""BaseAgent: lifecycle, inbound dispatch pipeline and outbound sending.

Every bundled agent subclasses :class:`BaseAgent` and supplies a handler
table mapping :class:`~agentlink.protocol.models.MessageType` to an async
handler.  The base class owns everything else:

1. **Inbox** - the transport callback only enqueues raw bytes; a single
   consumer task processes deliveries one at a time, so handlers never
   race on conversation state.
2. **Pipeline** - decode, validate the envelope, filter by address,
   verify the signature, deduplicate by message id, then dispatch.
3. **Sending** - :meth:`send_message` validates, signs, encodes and
   publishes; failures come back as a :class:`SendResult`.

Agents never block waiting for a reply.  Multi-step protocols are chains
of independent handlers correlated by ``correlation_id``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from agentlink.agents.models import AgentConfig, AgentState, AgentStatus, SendResult
from agentlink.core.cache import BoundedFifoSet
from agentlink.core.conversation import Conversation, ConversationStore
from agentlink.core.events import AgentEvent, EventHub
from agentlink.errors import AgentStartError, MessageDecodeError, PayloadValidationError
from agentlink.ledger.models import NATIVE_TOKEN, TransferRequest, TransferResult, is_native_token
from agentlink.ledger.tool import make_transaction_id
from agentlink.protocol.codec import (
    decode_message,
    encode_message,
    parse_payload,
    validate_message,
    validate_payload,
)
from agentlink.protocol.models import AgentId, ErrorPayload, Message, MessageType
from agentlink.protocol.signing import NoopSigner, Signer
from agentlink.utils.telemetry import (
    ATTR_AGENT_ID,
    ATTR_CORRELATION_ID,
    ATTR_MESSAGE_ID,
    ATTR_MESSAGE_TYPE,
    ATTR_OUTCOME,
    ATTR_SEQUENCE_NUMBER,
    ATTR_TOKEN_ID,
    get_tracer,
)

if TYPE_CHECKING:
    from agentlink.ledger.tool import TransferTool
    from agentlink.transport.base import DeliveryMeta, Subscription, Transport

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

Handler = Callable[[Message, Any], Awaitable[None]]
_Delivery = tuple[bytes, "DeliveryMeta"]


class BaseAgent:
    """Base class for agents sharing one transport topic.

    Args:
        config: Account, topic and pipeline settings.
        transport: The shared topic transport.
        transfer_tool: Executes value transfers; agents without one fail
            every :meth:`execute_transfer` call with an error result.
        signer: Signing strategy; defaults to :class:`NoopSigner`.
        events: Event hub to publish to; a private one is created if omitted.
        agent_id: Overrides the class default :attr:`default_agent_id`.
    """

    default_agent_id: str = "agent://base"

    def __init__(
        self,
        config: AgentConfig,
        transport: Transport,
        *,
        transfer_tool: TransferTool | None = None,
        signer: Signer | None = None,
        events: EventHub | None = None,
        agent_id: str | None = None,
    ) -> None:
        self.agent_id = agent_id or self.default_agent_id
        self.config = config
        self.transport = transport
        self.transfer_tool = transfer_tool
        self.signer: Signer = signer or NoopSigner()
        self.events = events or EventHub()
        self.conversations = ConversationStore()

        self._state = AgentState.STOPPED
        self._processed: BoundedFifoSet[str] = BoundedFifoSet(config.dedup_capacity)
        self._subscription: Subscription | None = None
        self._inbox: asyncio.Queue[_Delivery | None] = asyncio.Queue()
        self._worker: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> AgentState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == AgentState.RUNNING

    @property
    def account_id(self) -> str:
        return self.config.account_id

    @property
    def topic_id(self) -> str:
        return self.config.topic_id

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Subscribe to the topic and start the inbox consumer.

        Raises:
            AgentStartError: If the subscription cannot be set up.  The
                agent is left ``stopped``.
        """
        if self._state != AgentState.STOPPED:
            logger.warning("[%s] start() ignored, agent is %s", self.agent_id, self._state.value)
            return

        self._state = AgentState.STARTING
        logger.info("[%s] Starting on topic %s", self.agent_id, self.topic_id)
        try:
            self._subscription = await self.transport.subscribe(
                self.topic_id, self._enqueue, self._on_transport_error
            )
        except Exception as exc:
            self._state = AgentState.STOPPED
            raise AgentStartError(self.agent_id, str(exc)) from exc

        self._inbox = asyncio.Queue()
        self._worker = asyncio.create_task(self._run_inbox(), name=f"inbox:{self.agent_id}")
        self._state = AgentState.RUNNING
        logger.info("[%s] Running", self.agent_id)
        self._emit("started", account_id=self.account_id, topic_id=self.topic_id)

    async def stop(self) -> None:
        """Cancel the subscription and drain the inbox consumer (idempotent)."""
        if self._state != AgentState.RUNNING:
            logger.debug("[%s] stop() ignored, agent is %s", self.agent_id, self._state.value)
            return

        self._state = AgentState.STOPPING
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

        if self._worker is not None:
            self._inbox.put_nowait(None)
            await self._worker
            self._worker = None

        self._state = AgentState.STOPPED
        logger.info("[%s] Stopped", self.agent_id)
        self._emit("stopped")

    def _enqueue(self, data: bytes, meta: DeliveryMeta) -> None:
        self._inbox.put_nowait((data, meta))

    def _on_transport_error(self, exc: Exception) -> None:
        logger.error("[%s] Transport error: %s", self.agent_id, exc)
        self._emit("transport_error", error=str(exc))

    async def _run_inbox(self) -> None:
        while True:
            item = await self._inbox.get()
            if item is None:
                return
            data, meta = item
            await self.deliver(data, meta)

    # ------------------------------------------------------------------
    # Inbound pipeline
    # ------------------------------------------------------------------

    async def deliver(self, data: bytes, meta: DeliveryMeta | None = None) -> bool:
        """Run one transport delivery through the inbound pipeline.

        Returns ``True`` when the message was accepted for dispatch (even if
        its handler then failed).  Never raises.
        """
        try:
            raw = decode_message(data)
        except MessageDecodeError as exc:
            logger.warning("[%s] Dropping undecodable message: %s", self.agent_id, exc)
            return False

        report = validate_message(raw)
        if not report.valid:
            logger.warning(
                "[%s] Dropping invalid message: %s", self.agent_id, "; ".join(report.errors)
            )
            return False
        try:
            message = Message.from_wire(raw)
        except ValidationError as exc:
            logger.warning("[%s] Dropping malformed envelope: %s", self.agent_id, exc)
            return False

        if message.to not in (self.agent_id, AgentId.BROADCAST):
            logger.debug("[%s] Ignoring message %s for %s", self.agent_id, message.id, message.to)
            return False

        if not self.signer.verify(message):
            logger.warning(
                "[%s] Dropping message %s from %s: signature rejected",
                self.agent_id,
                message.id,
                message.from_,
            )
            return False

        if not self._processed.add(message.id):
            logger.debug("[%s] Duplicate message %s", self.agent_id, message.id)
            return False

        self.conversations.record_message(message.correlation_id, message.id)
        self._emit(
            "message",
            message_id=message.id,
            type=message.type.value,
            from_agent=message.from_,
            correlation_id=message.correlation_id,
            sequence_number=meta.sequence_number if meta else None,
        )
        await self._dispatch(message)
        return True

    async def _dispatch(self, message: Message) -> None:
        handler = {MessageType.ERROR: self._handle_error, **self.handlers()}.get(message.type)
        if handler is None:
            logger.debug("[%s] No handler for %s", self.agent_id, message.type.value)
            return

        with _tracer.start_as_current_span("agent.dispatch") as span:
            span.set_attribute(ATTR_AGENT_ID, self.agent_id)
            span.set_attribute(ATTR_MESSAGE_ID, message.id)
            span.set_attribute(ATTR_MESSAGE_TYPE, message.type.value)
            span.set_attribute(ATTR_CORRELATION_ID, message.correlation_id)
            try:
                payload = parse_payload(message)
            except PayloadValidationError as exc:
                logger.warning("[%s] Dropping message %s: %s", self.agent_id, message.id, exc)
                span.set_attribute(ATTR_OUTCOME, "invalid_payload")
                return
            try:
                await handler(message, payload)
            except Exception:
                # The message stays marked as processed; it is not retried.
                logger.exception(
                    "[%s] Handler for %s failed (message %s)",
                    self.agent_id,
                    message.type.value,
                    message.id,
                )
                span.set_attribute(ATTR_OUTCOME, "handler_error")
                self._emit(
                    "handler_error",
                    message_id=message.id,
                    type=message.type.value,
                    correlation_id=message.correlation_id,
                )
                return
            span.set_attribute(ATTR_OUTCOME, "handled")

    def handlers(self) -> dict[MessageType, Handler]:
        """Return the message types this agent handles.

        Subclasses override this.  ERROR messages fall back to
        :meth:`_handle_error` unless a subclass maps them itself.
        """
        return {}

    async def _handle_error(self, message: Message, payload: ErrorPayload) -> None:
        logger.warning(
            "[%s] %s reported %s: %s",
            self.agent_id, message.from_, payload.code, payload.message,
        )
        self.update_conversation(
            message.correlation_id, peer_error=f"{payload.code}: {payload.message}"
        )
        self._emit(
            "peer_error",
            correlation_id=message.correlation_id,
            from_agent=message.from_,
            code=payload.code,
            message=payload.message,
            original_message_id=payload.original_message_id,
        )

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    async def send_message(self, message: Message) -> SendResult:
        """Validate, sign and publish *message*.

        Never raises: every failure is reported in the returned
        :class:`SendResult` and as a ``message_error`` event.
        """
        with _tracer.start_as_current_span("agent.send") as span:
            span.set_attribute(ATTR_AGENT_ID, self.agent_id)
            span.set_attribute(ATTR_MESSAGE_ID, message.id)
            span.set_attribute(ATTR_MESSAGE_TYPE, message.type.value)
            span.set_attribute(ATTR_CORRELATION_ID, message.correlation_id)

            result = await self._send(message)
            span.set_attribute(ATTR_OUTCOME, "sent" if result.success else "error")
            if result.sequence_number is not None:
                span.set_attribute(ATTR_SEQUENCE_NUMBER, result.sequence_number)

        if result.success:
            self.conversations.record_message(message.correlation_id, message.id)
            logger.debug(
                "[%s] Sent %s to %s (seq %s)",
                self.agent_id,
                message.type.value,
                message.to,
                result.sequence_number,
            )
            self._emit(
                "message_sent",
                message_id=message.id,
                type=message.type.value,
                to=message.to,
                correlation_id=message.correlation_id,
                sequence_number=result.sequence_number,
            )
        else:
            logger.error(
                "[%s] Failed to send %s to %s: %s",
                self.agent_id,
                message.type.value,
                message.to,
                result.error,
            )
            self._emit(
                "message_error",
                message_id=message.id,
                type=message.type.value,
                to=message.to,
                correlation_id=message.correlation_id,
                error=result.error,
            )
        return result

    async def _send(self, message: Message) -> SendResult:
        if not self.is_running:
            return SendResult(success=False, error=f"Agent {self.agent_id} is not running")

        if self.config.strict_payloads:
            report = validate_payload(message.type, message.payload)
            if not report.valid:
                return SendResult(
                    success=False,
                    error=f"Invalid {message.type.value} payload: {'; '.join(report.errors)}",
                )

        try:
            signed = self.signer.sign(message)
            data = encode_message(signed)
            ack = await self.transport.publish(self.topic_id, data)
        except Exception as exc:
            return SendResult(success=False, error=str(exc))
        return SendResult(success=True, sequence_number=ack.sequence_number)

    async def execute_transfer(self, request: TransferRequest) -> TransferResult:
        """Transfer value through the injected :class:`TransferTool`.

        An empty or ``HBAR`` token id selects the native currency.  Never
        raises: tool errors come back as ``success=False``.
        """
        token_kind = NATIVE_TOKEN if is_native_token(request.token_id) else request.token_id
        if self.transfer_tool is None:
            return TransferResult(success=False, error="No transfer tool configured")

        with _tracer.start_as_current_span("agent.transfer") as span:
            span.set_attribute(ATTR_AGENT_ID, self.agent_id)
            span.set_attribute(ATTR_TOKEN_ID, token_kind)
            try:
                result = await self.transfer_tool.transfer(
                    request.to_account, request.amount, token_kind, request.memo
                )
            except Exception as exc:
                logger.exception("[%s] Transfer tool raised", self.agent_id)
                span.set_attribute(ATTR_OUTCOME, "error")
                return TransferResult(success=False, error=str(exc))

            span.set_attribute(ATTR_OUTCOME, "success" if result.success else "failed")

        if result.success and not result.transaction_id:
            return result.model_copy(
                update={"transaction_id": make_transaction_id(self.account_id)}
            )
        return result

    # ------------------------------------------------------------------
    # Conversations and status
    # ------------------------------------------------------------------

    def get_conversation(self, correlation_id: str) -> Conversation:
        """Return the conversation, creating it in state ``initiated``."""
        return self.conversations.get(correlation_id)

    def find_conversation(self, correlation_id: str) -> Conversation | None:
        return self.conversations.find(correlation_id)

    def update_conversation(self, correlation_id: str, **fields: Any) -> Conversation:
        return self.conversations.update(correlation_id, **fields)

    def status(self) -> AgentStatus:
        return AgentStatus(
            agent_id=self.agent_id,
            account_id=self.account_id,
            topic_id=self.topic_id,
            state=self._state,
            running=self.is_running,
            conversations=len(self.conversations),
            processed_messages=len(self._processed),
        )

    def _emit(self, name: str, **data: Any) -> None:
        self.events.emit(AgentEvent(agent_id=self.agent_id, name=name, data=data))
