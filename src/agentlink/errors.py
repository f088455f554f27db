"""Shared error types for agentlink.

Failures that cross an agent boundary travel as data (``SendResult``,
``TransferResult``, negative ACK messages).  The exceptions below are raised
only inside a single process: construction, decoding, configuration and
lifecycle problems.
"""

from __future__ import annotations


class AgentlinkError(Exception):
    """Base error for all agentlink failures."""


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


class ProtocolError(AgentlinkError):
    """Base error for envelope and payload failures."""


class MessageDecodeError(ProtocolError):
    """Raw transport bytes could not be decoded into a message envelope."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__("Cannot decode message" + (f": {detail}" if detail else ""))


class PayloadValidationError(ProtocolError):
    """A payload does not match the schema for its message type."""

    def __init__(self, message_type: str, errors: list[str]) -> None:
        self.message_type = message_type
        self.errors = errors
        super().__init__(f"Invalid {message_type} payload: {'; '.join(errors)}")


class SignatureError(ProtocolError):
    """Signing failed (bad key material)."""


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------


class TransportError(AgentlinkError):
    """Publishing to or subscribing on a topic failed."""


# ---------------------------------------------------------------------------
# Agents
# ---------------------------------------------------------------------------


class AgentError(AgentlinkError):
    """Base error for agent lifecycle and query failures."""


class AgentStartError(AgentError):
    """An agent could not set up its topic subscription."""

    def __init__(self, agent_id: str, detail: str = "") -> None:
        self.agent_id = agent_id
        self.detail = detail
        super().__init__(f"Agent {agent_id} failed to start" + (f": {detail}" if detail else ""))


class UnknownExecutionError(AgentError):
    """No pending bridge execution exists for a correlation id."""

    def __init__(self, correlation_id: str) -> None:
        self.correlation_id = correlation_id
        super().__init__(f"No pending execution found for {correlation_id}")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigError(AgentlinkError):
    """Raised when configuration fails loading or validation."""
