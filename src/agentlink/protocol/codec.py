"""Message construction, validation and canonical serialisation.

``create_message`` and the typed constructors below are the only way the
bundled agents build envelopes.  ``canonicalize`` produces the exact byte
sequence that :mod:`agentlink.protocol.signing` signs and verifies.
"""

from __future__ import annotations

import json
import math
from typing import Any, cast
from uuid import uuid4

from pydantic import ValidationError

from agentlink.errors import MessageDecodeError, PayloadValidationError
from agentlink.protocol.models import (
    PAYLOAD_MODELS,
    Message,
    MessageType,
    NotifyLevel,
    Payload,
    ValidationReport,
    utc_timestamp,
)

_REQUIRED_FIELDS = ("id", "from", "to", "type", "correlationId", "payload", "timestamp")
_KNOWN_TYPES = frozenset(t.value for t in MessageType)

# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def create_message(
    from_: str,
    to: str,
    type: MessageType,
    payload: dict[str, Any],
    correlation_id: str | None = None,
) -> Message:
    """Create a new envelope with a fresh id.

    When *correlation_id* is omitted the message starts a new conversation
    and its correlation id is its own id.
    """
    message_id = str(uuid4())
    return Message(
        id=message_id,
        from_=from_,
        to=to,
        type=type,
        correlation_id=correlation_id or message_id,
        payload=payload,
        timestamp=utc_timestamp(),
    )


def _compact(**fields: Any) -> dict[str, Any]:
    """Build a wire payload, dropping optional fields that are ``None``."""
    return {key: value for key, value in fields.items() if value is not None}


def offer_message(
    from_: str,
    to: str,
    item: str,
    qty: float,
    unit_price: float,
    currency: str,
    correlation_id: str | None = None,
) -> Message:
    payload = _compact(item=item, qty=qty, unitPrice=unit_price, currency=currency)
    return create_message(from_, to, MessageType.OFFER, payload, correlation_id)


def counter_message(
    from_: str,
    to: str,
    item: str,
    qty: float,
    unit_price: float,
    currency: str,
    reason: str | None,
    correlation_id: str | None = None,
) -> Message:
    payload = _compact(item=item, qty=qty, unitPrice=unit_price, currency=currency, reason=reason)
    return create_message(from_, to, MessageType.COUNTER, payload, correlation_id)


def accept_message(
    from_: str,
    to: str,
    item: str,
    qty: float,
    unit_price: float,
    currency: str,
    correlation_id: str | None = None,
) -> Message:
    """Build an ACCEPT; ``totalAmount`` is computed here and nowhere else."""
    payload = _compact(
        item=item,
        qty=qty,
        unitPrice=unit_price,
        currency=currency,
        totalAmount=qty * unit_price,
    )
    return create_message(from_, to, MessageType.ACCEPT, payload, correlation_id)


def decline_message(
    from_: str, to: str, reason: str, correlation_id: str | None = None
) -> Message:
    return create_message(from_, to, MessageType.DECLINE, {"reason": reason}, correlation_id)


def payment_request_message(
    from_: str,
    to: str,
    amount: float,
    token_id: str,
    to_account: str | None,
    memo: str,
    item: str | None = None,
    qty: float | None = None,
    correlation_id: str | None = None,
) -> Message:
    payload = _compact(
        amount=amount, tokenId=token_id, toAccount=to_account, memo=memo, item=item, qty=qty
    )
    return create_message(from_, to, MessageType.PAYMENT_REQ, payload, correlation_id)


def payment_ack_message(
    from_: str,
    to: str,
    transaction_id: str,
    status: str,
    amount: float,
    token_id: str,
    error: str | None = None,
    correlation_id: str | None = None,
) -> Message:
    payload = _compact(
        transactionId=transaction_id,
        status=status,
        amount=amount,
        tokenId=token_id,
        timestamp=utc_timestamp(),
        error=error,
    )
    return create_message(from_, to, MessageType.PAYMENT_ACK, payload, correlation_id)


def telegram_message(
    from_: str,
    to: str,
    text: str,
    chat_id: str | int,
    user_id: str | int,
    correlation_id: str | None = None,
) -> Message:
    payload = _compact(text=text, chatId=chat_id, userId=user_id, timestamp=utc_timestamp())
    return create_message(from_, to, MessageType.TELEGRAM_MSG, payload, correlation_id)


def ai_decision_request(
    from_: str,
    to: str,
    user_request: str,
    context: dict[str, Any],
    correlation_id: str | None = None,
) -> Message:
    payload = {"userRequest": user_request, "context": context}
    return create_message(from_, to, MessageType.AI_DECISION_REQ, payload, correlation_id)


def ai_decision_response(
    from_: str,
    to: str,
    decision: str,
    should_execute_bridge: bool,
    reasoning: str,
    bridge_params: dict[str, Any] | None,
    correlation_id: str | None = None,
) -> Message:
    payload = _compact(
        decision=decision,
        shouldExecuteBridge=should_execute_bridge,
        reasoning=reasoning,
        bridgeParams=bridge_params,
    )
    return create_message(from_, to, MessageType.AI_DECISION_RESP, payload, correlation_id)


def bridge_execute_request(
    from_: str,
    to: str,
    source_chain: str,
    target_chain: str,
    token: str,
    amount: float,
    recipient: str | None = None,
    correlation_id: str | None = None,
) -> Message:
    payload = _compact(
        sourceChain=source_chain,
        targetChain=target_chain,
        token=token,
        amount=amount,
        recipient=recipient,
    )
    return create_message(from_, to, MessageType.BRIDGE_EXEC_REQ, payload, correlation_id)


def bridge_execute_response(
    from_: str,
    to: str,
    status: str,
    transaction_hash: str | None = None,
    error: str | None = None,
    correlation_id: str | None = None,
) -> Message:
    payload = _compact(
        status=status,
        timestamp=utc_timestamp(),
        transactionHash=transaction_hash or None,
        error=error or None,
    )
    return create_message(from_, to, MessageType.BRIDGE_EXEC_RESP, payload, correlation_id)


def notify_message(
    from_: str,
    to: str,
    message: str,
    level: NotifyLevel = "info",
    correlation_id: str | None = None,
) -> Message:
    payload = {"message": message, "level": level, "timestamp": utc_timestamp()}
    return create_message(from_, to, MessageType.NOTIFY, payload, correlation_id)


def error_message(
    from_: str,
    to: str,
    code: str,
    message: str,
    original_message_id: str | None = None,
    correlation_id: str | None = None,
) -> Message:
    payload = _compact(code=code, message=message, originalMessageId=original_message_id)
    return create_message(from_, to, MessageType.ERROR, payload, correlation_id)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_message(message: Message | dict[str, Any]) -> ValidationReport:
    """Check envelope fields and the message type.

    The signature is optional: its absence is valid.
    """
    data = message.to_wire() if isinstance(message, Message) else message
    errors: list[str] = []

    for name in _REQUIRED_FIELDS:
        value = data.get(name)
        if value is None or value == "":
            errors.append(f"Missing field: {name}")

    msg_type = data.get("type")
    if msg_type and msg_type not in _KNOWN_TYPES:
        errors.append(f"Invalid message type: {msg_type}")

    payload = data.get("payload")
    if payload is not None and not isinstance(payload, dict):
        errors.append("Invalid field: payload must be an object")

    return ValidationReport(valid=not errors, errors=errors)


def validate_payload(type: MessageType | str, payload: dict[str, Any]) -> ValidationReport:
    """Validate *payload* against the schema registered for *type*."""
    model = _payload_model(type)
    if model is None:
        return ValidationReport(valid=False, errors=[f"Unknown message type: {type}"])

    try:
        model.model_validate(payload)
    except ValidationError as exc:
        return ValidationReport(valid=False, errors=_format_errors(exc))
    return ValidationReport(valid=True)


def parse_payload(message: Message) -> Payload:
    """Return the typed payload model for *message*.

    Raises:
        PayloadValidationError: If the payload does not match its schema.
    """
    model = PAYLOAD_MODELS[message.type]
    try:
        return model.model_validate(message.payload)
    except ValidationError as exc:
        raise PayloadValidationError(message.type.value, _format_errors(exc)) from exc


def _payload_model(type: MessageType | str) -> type[Payload] | None:
    try:
        return PAYLOAD_MODELS[MessageType(type)]
    except ValueError:
        return None


def _format_errors(exc: ValidationError) -> list[str]:
    errors: list[str] = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"])
        errors.append(f"payload.{loc}: {err['msg']}" if loc else f"payload: {err['msg']}")
    return errors


# ---------------------------------------------------------------------------
# Canonical form and wire encoding
# ---------------------------------------------------------------------------


def _normalize(value: Any) -> Any:
    """Recursively sort object keys and normalise numbers.

    * Dict keys are sorted; arrays keep their order.
    * Integral floats become ints so ``100.0`` and ``100`` serialise alike.
    * NaN and infinities are rejected.
    """
    if isinstance(value, dict):
        mapping = cast("dict[str, Any]", value)
        return {key: _normalize(mapping[key]) for key in sorted(mapping)}
    if isinstance(value, (list, tuple)):
        return [_normalize(item) for item in cast("list[Any]", value)]
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"Non-finite number cannot be canonicalized: {value}")
        if value.is_integer():
            return int(value)
    return value


def canonicalize(obj: Any) -> str:
    """Return the canonical compact JSON text of *obj*.

    Output depends only on content: key insertion order, locale and
    platform have no effect.
    """
    return json.dumps(
        _normalize(obj),
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def signing_bytes(message: Message | dict[str, Any]) -> bytes:
    """Return the bytes covered by a signature: every field but ``signature``."""
    data = message.to_wire() if isinstance(message, Message) else dict(message)
    data.pop("signature", None)
    return canonicalize(data).encode("utf-8")


def encode_message(message: Message) -> bytes:
    """Serialise *message* to UTF-8 JSON for the transport."""
    return json.dumps(message.to_wire(), separators=(",", ":"), ensure_ascii=False).encode(
        "utf-8"
    )


def decode_message(data: bytes | str) -> dict[str, Any]:
    """Decode transport bytes into a raw envelope object.

    Raises:
        MessageDecodeError: If the bytes are not UTF-8 JSON describing an object.
    """
    try:
        text = data.decode("utf-8") if isinstance(data, bytes) else data
        decoded: Any = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MessageDecodeError(str(exc)) from exc

    if not isinstance(decoded, dict):
        raise MessageDecodeError("envelope must be a JSON object")
    return cast("dict[str, Any]", decoded)
