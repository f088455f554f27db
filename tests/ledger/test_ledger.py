"""Tests for transfer models and the simulated ledger."""

from __future__ import annotations

import re

from agentlink.ledger.models import NATIVE_TOKEN, is_native_token
from agentlink.ledger.tool import SimulatedLedger, TransferTool, make_transaction_id


class TestNativeToken:
    def test_native_sentinels(self) -> None:
        assert is_native_token(None) is True
        assert is_native_token("") is True
        assert is_native_token(NATIVE_TOKEN) is True
        assert is_native_token("0.0.5005") is False


class TestTransactionId:
    def test_format(self) -> None:
        assert re.fullmatch(r"0\.0\.7@\d+\.\d{9}", make_transaction_id("0.0.7"))


class TestSimulatedLedger:
    def test_protocol_conformance(self) -> None:
        assert isinstance(SimulatedLedger(), TransferTool)

    async def test_native_transfer(self) -> None:
        ledger = SimulatedLedger(payer_account="0.0.9")
        result = await ledger.transfer("0.0.2", 775, "", "Payment for 10 widgets")

        assert result.success is True
        assert result.transaction_id is not None
        assert result.transaction_id.startswith("0.0.9@")
        assert ledger.records[0].token_kind == NATIVE_TOKEN
        assert ledger.total_transferred("0.0.2") == 775

    async def test_token_transfer(self) -> None:
        ledger = SimulatedLedger()
        await ledger.transfer("0.0.2", 5, "0.0.5005", "memo")
        assert ledger.records[0].token_kind == "0.0.5005"

    async def test_invalid_amount(self) -> None:
        result = await SimulatedLedger().transfer("0.0.2", 0, NATIVE_TOKEN, "")
        assert result.success is False
        assert result.error == "INVALID_AMOUNT"

    async def test_insufficient_balance(self) -> None:
        ledger = SimulatedLedger(balances={NATIVE_TOKEN: 10, "0.0.5005": 1})
        native = await ledger.transfer("0.0.2", 11, NATIVE_TOKEN, "")
        token = await ledger.transfer("0.0.2", 2, "0.0.5005", "")
        assert native.error == "INSUFFICIENT_PAYER_BALANCE"
        assert token.error == "INSUFFICIENT_TOKEN_BALANCE"
        assert ledger.records == []

    async def test_balance_is_debited(self) -> None:
        ledger = SimulatedLedger(balances={NATIVE_TOKEN: 10})
        await ledger.transfer("0.0.2", 4, NATIVE_TOKEN, "")
        assert ledger.balances == {NATIVE_TOKEN: 6}

    async def test_fail_next_once(self) -> None:
        ledger = SimulatedLedger()
        ledger.fail_next = "INSUFFICIENT_PAYER_BALANCE"
        first = await ledger.transfer("0.0.2", 1, NATIVE_TOKEN, "")
        second = await ledger.transfer("0.0.2", 1, NATIVE_TOKEN, "")
        assert first.success is False
        assert second.success is True
