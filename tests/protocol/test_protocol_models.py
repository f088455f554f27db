"""Tests for the message envelope and payload models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from agentlink.protocol.models import (
    PAYLOAD_MODELS,
    AgentId,
    BridgeParams,
    Message,
    MessageType,
    OfferPayload,
)


def _wire() -> dict[str, object]:
    return {
        "id": "m-1",
        "from": AgentId.BUYER,
        "to": AgentId.SELLER,
        "type": "OFFER",
        "correlationId": "c-1",
        "payload": {"item": "widgets", "qty": 1, "unitPrice": 2, "currency": "HBAR"},
        "timestamp": "2024-01-01T00:00:00.000Z",
    }


class TestMessage:
    def test_from_wire_aliases(self) -> None:
        msg = Message.from_wire(_wire())
        assert msg.from_ == AgentId.BUYER
        assert msg.correlation_id == "c-1"
        assert msg.type is MessageType.OFFER

    def test_to_wire_uses_aliases(self) -> None:
        wire = Message.from_wire(_wire()).to_wire()
        assert wire == _wire()

    def test_signature_included_when_present(self) -> None:
        msg = Message.from_wire(_wire()).with_signature("abcd")
        assert msg.to_wire()["signature"] == "abcd"
        assert "signature" not in msg.to_wire(include_signature=False)

    def test_frozen(self) -> None:
        msg = Message.from_wire(_wire())
        with pytest.raises(ValidationError):
            msg.to = "elsewhere"  # type: ignore[misc]


class TestPayloads:
    def test_every_type_has_a_model(self) -> None:
        assert set(PAYLOAD_MODELS) == set(MessageType)

    def test_bool_is_not_a_number(self) -> None:
        with pytest.raises(ValidationError):
            OfferPayload.model_validate(
                {"item": "widgets", "qty": True, "unitPrice": 1, "currency": "HBAR"}
            )

    def test_empty_string_rejected(self) -> None:
        with pytest.raises(ValidationError):
            OfferPayload.model_validate(
                {"item": "", "qty": 1, "unitPrice": 1, "currency": "HBAR"}
            )

    def test_to_payload_drops_none(self) -> None:
        params = BridgeParams(
            source_chain="ethereum", target_chain="polygon", token="USDC", amount=100
        )
        assert params.to_payload() == {
            "sourceChain": "ethereum",
            "targetChain": "polygon",
            "token": "USDC",
            "amount": 100,
        }
