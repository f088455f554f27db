"""A2A protocol: message envelope, typed payloads, codec and signing."""

from agentlink.protocol.codec import (
    accept_message,
    ai_decision_request,
    ai_decision_response,
    bridge_execute_request,
    bridge_execute_response,
    canonicalize,
    counter_message,
    create_message,
    decline_message,
    decode_message,
    encode_message,
    error_message,
    notify_message,
    offer_message,
    parse_payload,
    payment_ack_message,
    payment_request_message,
    signing_bytes,
    telegram_message,
    validate_message,
    validate_payload,
)
from agentlink.protocol.models import (
    PAYLOAD_MODELS,
    AgentId,
    Message,
    MessageType,
    Payload,
    ValidationReport,
)
from agentlink.protocol.signing import (
    Ed25519Signer,
    NoopSigner,
    Signer,
    generate_keypair,
    sign,
    verify,
)

__all__ = [
    "PAYLOAD_MODELS",
    "AgentId",
    "Ed25519Signer",
    "Message",
    "MessageType",
    "NoopSigner",
    "Payload",
    "Signer",
    "ValidationReport",
    "accept_message",
    "ai_decision_request",
    "ai_decision_response",
    "bridge_execute_request",
    "bridge_execute_response",
    "canonicalize",
    "counter_message",
    "create_message",
    "decline_message",
    "decode_message",
    "encode_message",
    "error_message",
    "generate_keypair",
    "notify_message",
    "offer_message",
    "parse_payload",
    "payment_ack_message",
    "payment_request_message",
    "sign",
    "signing_bytes",
    "telegram_message",
    "validate_message",
    "validate_payload",
    "verify",
]
