"""A2A protocol models: the message envelope and its typed payloads.

Every message published to the topic is a :class:`Message` envelope whose
``payload`` is a plain JSON object.  The schema of that object depends on
the envelope ``type``; :data:`PAYLOAD_MODELS` maps each
:class:`MessageType` to the pydantic model that describes it, which makes
the payload a tagged union keyed by the envelope type.

Wire names are camelCase (``correlationId``, ``unitPrice``) so that
messages interoperate with agents written in other languages.  The Python
attribute names are snake_case.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------


class AgentId:
    """Well-known agent identifiers.

    Agent ids are opaque strings; these are the defaults used by the
    bundled agents.  ``BROADCAST`` addresses every subscriber.
    """

    BUYER = "agent://buyer"
    SELLER = "agent://seller"
    PAYMENT = "agent://payment"
    TELEGRAM = "agent://telegram"
    AI_DECISION = "agent://ai-decision"
    BRIDGE_EXECUTOR = "agent://bridge-executor"
    BROADCAST = "broadcast"


class MessageType(str, Enum):
    """Closed set of A2A message types."""

    # Negotiation
    OFFER = "OFFER"
    COUNTER = "COUNTER"
    ACCEPT = "ACCEPT"
    DECLINE = "DECLINE"

    # Payment
    PAYMENT_REQ = "PAYMENT_REQ"
    PAYMENT_ACK = "PAYMENT_ACK"

    # Telegram -> AI -> Bridge workflow
    TELEGRAM_MSG = "TELEGRAM_MSG"
    AI_DECISION_REQ = "AI_DECISION_REQ"
    AI_DECISION_RESP = "AI_DECISION_RESP"
    BRIDGE_EXEC_REQ = "BRIDGE_EXEC_REQ"
    BRIDGE_EXEC_RESP = "BRIDGE_EXEC_RESP"
    NOTIFY = "NOTIFY"

    ERROR = "ERROR"


def utc_timestamp() -> str:
    """Return the current UTC time as ISO-8601 with millisecond precision."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------


class Message(BaseModel):
    """An immutable A2A message envelope.

    ``timestamp`` is set by the sender and is informational only; ordering
    comes from the transport.  ``signature`` is present only when the
    sender signs (see :mod:`agentlink.protocol.signing`).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    from_: str = Field(alias="from")
    to: str
    type: MessageType
    correlation_id: str = Field(alias="correlationId")
    payload: dict[str, Any]
    timestamp: str
    signature: str | None = None

    def to_wire(self, *, include_signature: bool = True) -> dict[str, Any]:
        """Return the camelCase JSON object published on the topic."""
        exclude: set[str] = set()
        if self.signature is None or not include_signature:
            exclude.add("signature")
        return self.model_dump(by_alias=True, mode="json", exclude=exclude)

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> Message:
        """Build a message from its wire object."""
        return cls.model_validate(data)

    def with_signature(self, signature: str) -> Message:
        """Return a copy of this message carrying *signature*."""
        return self.model_copy(update={"signature": signature})


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------

Number = int | float
NonEmptyStr = Annotated[str, Field(min_length=1)]
NotifyLevel = Literal["info", "warning", "success", "error"]


class Payload(BaseModel):
    """Base class for typed payloads.

    Strict mode: strings must be strings and numbers must be numbers
    (``bool`` is not accepted as a number).  Unknown fields are kept.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        strict=True,
        extra="allow",
    )

    def to_payload(self) -> dict[str, Any]:
        """Serialise to the camelCase wire object, dropping unset optionals."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class OfferPayload(Payload):
    item: NonEmptyStr
    qty: Number
    unit_price: Number
    currency: NonEmptyStr


class CounterPayload(OfferPayload):
    reason: str | None = None


class AcceptPayload(OfferPayload):
    total_amount: Number


class DeclinePayload(Payload):
    reason: NonEmptyStr


class PaymentRequestPayload(Payload):
    amount: Number
    token_id: NonEmptyStr
    to_account: NonEmptyStr
    memo: NonEmptyStr
    item: str | None = None
    qty: Number | None = None


class PaymentAckPayload(Payload):
    transaction_id: str
    status: Literal["success", "failed"]
    amount: Number
    token_id: NonEmptyStr
    timestamp: NonEmptyStr
    error: str | None = None

    @model_validator(mode="after")
    def _require_transaction_id_on_success(self) -> PaymentAckPayload:
        if self.status == "success" and not self.transaction_id:
            raise ValueError("transactionId is required when status is success")
        return self


class TelegramPayload(Payload):
    text: NonEmptyStr
    chat_id: str | int
    user_id: str | int
    timestamp: NonEmptyStr


class AIDecisionRequestPayload(Payload):
    user_request: NonEmptyStr
    context: dict[str, Any]


class BridgeParams(Payload):
    """Bridge parameters extracted from a user request."""

    source_chain: NonEmptyStr
    target_chain: NonEmptyStr
    token: NonEmptyStr
    amount: Number
    recipient: str | None = None


class AIDecisionResponsePayload(Payload):
    decision: Literal["APPROVE", "REJECT"]
    should_execute_bridge: bool
    reasoning: NonEmptyStr
    bridge_params: dict[str, Any] | None = None


class BridgeExecuteRequestPayload(BridgeParams):
    pass


class BridgeExecuteResponsePayload(Payload):
    status: Literal["success", "failed"]
    timestamp: NonEmptyStr
    transaction_hash: str | None = None
    error: str | None = None


class NotifyPayload(Payload):
    message: NonEmptyStr
    level: NotifyLevel = "info"
    timestamp: NonEmptyStr


class ErrorPayload(Payload):
    code: NonEmptyStr
    message: NonEmptyStr
    original_message_id: str | None = None


PAYLOAD_MODELS: dict[MessageType, type[Payload]] = {
    MessageType.OFFER: OfferPayload,
    MessageType.COUNTER: CounterPayload,
    MessageType.ACCEPT: AcceptPayload,
    MessageType.DECLINE: DeclinePayload,
    MessageType.PAYMENT_REQ: PaymentRequestPayload,
    MessageType.PAYMENT_ACK: PaymentAckPayload,
    MessageType.TELEGRAM_MSG: TelegramPayload,
    MessageType.AI_DECISION_REQ: AIDecisionRequestPayload,
    MessageType.AI_DECISION_RESP: AIDecisionResponsePayload,
    MessageType.BRIDGE_EXEC_REQ: BridgeExecuteRequestPayload,
    MessageType.BRIDGE_EXEC_RESP: BridgeExecuteResponsePayload,
    MessageType.NOTIFY: NotifyPayload,
    MessageType.ERROR: ErrorPayload,
}


class ValidationReport(BaseModel):
    """Outcome of :func:`validate_message` / :func:`validate_payload`."""

    valid: bool
    errors: list[str] = []
