"""Ed25519 message signing and the pluggable signer strategy.

Signatures are hex-encoded Ed25519 signatures over
:func:`~agentlink.protocol.codec.signing_bytes`, i.e. the canonical JSON
of every envelope field except ``signature``.  Keys are 32-byte seeds /
public keys, hex-encoded.

Whether an agent signs outbound messages and checks inbound ones is a
configuration choice, expressed by handing the agent a :class:`Signer`:

- :class:`NoopSigner` leaves messages unsigned and accepts everything
  (the transport authenticates submitters).
- :class:`Ed25519Signer` signs with the agent's key and accepts only
  messages whose sender has a trusted public key and a valid signature.
"""

from __future__ import annotations

import binascii
import logging
from typing import Protocol, runtime_checkable

from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

from agentlink.errors import SignatureError
from agentlink.protocol.codec import signing_bytes
from agentlink.protocol.models import Message

logger = logging.getLogger(__name__)


def generate_keypair() -> tuple[str, str]:
    """Generate an Ed25519 keypair.

    Returns ``(private_key_hex, public_key_hex)``; the private key is the
    32-byte seed.
    """
    sk = SigningKey.generate()
    return bytes(sk).hex(), bytes(sk.verify_key).hex()


def public_key_for(private_key: str) -> str:
    """Derive the hex public key from a hex private key seed."""
    return bytes(_signing_key(private_key).verify_key).hex()


def sign(message: Message, private_key: str) -> str:
    """Sign *message* and return the hex signature.

    Raises:
        SignatureError: If *private_key* is not a valid 32-byte hex seed.
    """
    sk = _signing_key(private_key)
    return sk.sign(signing_bytes(message)).signature.hex()


def verify(message: Message, public_key: str) -> bool:
    """Return ``True`` when *message* carries a valid signature for *public_key*."""
    if not message.signature:
        return False
    try:
        vk = VerifyKey(bytes.fromhex(public_key))
        vk.verify(signing_bytes(message), bytes.fromhex(message.signature))
    except (BadSignatureError, ValueError, TypeError, binascii.Error):
        return False
    return True


def _signing_key(private_key: str) -> SigningKey:
    try:
        return SigningKey(bytes.fromhex(private_key))
    except (ValueError, TypeError) as exc:
        raise SignatureError(f"Invalid Ed25519 private key: {exc}") from exc


# ---------------------------------------------------------------------------
# Strategy
# ---------------------------------------------------------------------------


@runtime_checkable
class Signer(Protocol):
    """Signs outbound messages and vets inbound ones."""

    def sign(self, message: Message) -> Message:
        """Return *message* ready for publishing (possibly with a signature)."""
        ...

    def verify(self, message: Message) -> bool:
        """Return ``True`` if *message* should be accepted."""
        ...


class NoopSigner:
    """Never signs, accepts every message.

    Satisfies the :class:`Signer` protocol.
    """

    def sign(self, message: Message) -> Message:
        return message

    def verify(self, message: Message) -> bool:
        return True


class Ed25519Signer:
    """Signs with a private key and verifies against trusted sender keys.

    Satisfies the :class:`Signer` protocol.

    Args:
        private_key: Hex seed used to sign outbound messages.
        trusted_keys: Mapping of agent id to hex public key.  Messages from
            senders absent from this mapping are rejected.
    """

    def __init__(self, private_key: str, trusted_keys: dict[str, str] | None = None) -> None:
        self._private_key = private_key
        self._trusted_keys = dict(trusted_keys or {})
        # Fail fast on bad key material.
        self.public_key = public_key_for(private_key)

    def trust(self, agent_id: str, public_key: str) -> None:
        """Add or replace the trusted public key for *agent_id*."""
        self._trusted_keys[agent_id] = public_key

    def sign(self, message: Message) -> Message:
        return message.with_signature(sign(message, self._private_key))

    def verify(self, message: Message) -> bool:
        public_key = self._trusted_keys.get(message.from_)
        if public_key is None:
            logger.debug("No trusted key for sender %s", message.from_)
            return False
        return verify(message, public_key)
