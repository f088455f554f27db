"""Tests for SystemConfig, environment lookup and the YAML loader."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from agentlink.config import ConfigLoader, SystemConfig
from agentlink.errors import ConfigError

if TYPE_CHECKING:
    from pathlib import Path

VALID_YAML = """\
topic_id: "0.0.5000"
accounts:
  telegram:
    account_id: "0.0.2001"
  ai_decision:
    account_id: "0.0.2002"
  bridge_executor:
    account_id: "0.0.2003"
ai_decision:
  supported_chains: [ethereum, hedera]
"""

ACCOUNTS = {
    "telegram": {"account_id": "a"},
    "ai_decision": {"account_id": "b"},
    "bridge_executor": {"account_id": "c"},
}

WORKFLOW_ENV = {
    "HCS_TOPIC_ID": "0.0.5000",
    "HEDERA_TELEGRAM_ACCOUNT_ID": "0.0.2001",
    "HEDERA_TELEGRAM_PRIVATE_KEY": "k1",
    "HEDERA_AI_ACCOUNT_ID": "0.0.2002",
    "HEDERA_AI_PRIVATE_KEY": "k2",
    "HEDERA_BRIDGE_ACCOUNT_ID": "0.0.2003",
    "HEDERA_BRIDGE_PRIVATE_KEY": "k3",
}


class TestSystemConfig:
    def test_defaults(self) -> None:
        cfg = SystemConfig.model_validate({"topic_id": "t", "accounts": ACCOUNTS})
        assert cfg.dedup_capacity == 100
        assert cfg.strict_payloads is True
        assert cfg.signing.enabled is False
        assert cfg.negotiation_enabled is False
        assert cfg.seller.min_price == 50
        assert cfg.bridge.simulation_delay == 2.0

    def test_agent_config(self) -> None:
        cfg = SystemConfig.model_validate(
            {"topic_id": "t", "dedup_capacity": 10, "accounts": ACCOUNTS}
        )
        agent = cfg.agent_config("ai_decision")
        assert agent.account_id == "b"
        assert agent.topic_id == "t"
        assert agent.dedup_capacity == 10

    def test_missing_role_account(self) -> None:
        cfg = SystemConfig.model_validate({"topic_id": "t", "accounts": ACCOUNTS})
        with pytest.raises(ConfigError, match="'buyer'"):
            cfg.account("buyer")


class TestFromEnv:
    def test_workflow_env(self) -> None:
        cfg = SystemConfig.from_env(WORKFLOW_ENV)
        assert cfg.topic_id == "0.0.5000"
        assert cfg.accounts.ai_decision.account_id == "0.0.2002"
        assert cfg.accounts.ai_decision.private_key == "k2"
        assert cfg.negotiation_enabled is False

    def test_missing_variables_are_all_named(self) -> None:
        env = dict(WORKFLOW_ENV)
        del env["HCS_TOPIC_ID"]
        del env["HEDERA_AI_PRIVATE_KEY"]
        with pytest.raises(ConfigError) as exc_info:
            SystemConfig.from_env(env)
        assert "HCS_TOPIC_ID" in str(exc_info.value)
        assert "HEDERA_AI_PRIVATE_KEY" in str(exc_info.value)

    def test_negotiation_accounts(self) -> None:
        env = {
            **WORKFLOW_ENV,
            "HEDERA_BUYER_ACCOUNT_ID": "0.0.1001",
            "HEDERA_SELLER_ACCOUNT_ID": "0.0.1002",
            "HEDERA_PAYMENT_ACCOUNT_ID": "0.0.1003",
        }
        cfg = SystemConfig.from_env(env)
        assert cfg.negotiation_enabled is True
        assert cfg.buyer.seller_account_id == "0.0.1002"

    def test_reads_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name, value in WORKFLOW_ENV.items():
            monkeypatch.setenv(name, value)
        assert SystemConfig.from_env().topic_id == "0.0.5000"


class TestConfigLoader:
    def test_load_valid(self, tmp_path: Path) -> None:
        f = tmp_path / "agents.yaml"
        f.write_text(VALID_YAML)
        cfg = ConfigLoader(f).load()
        assert cfg.topic_id == "0.0.5000"
        assert cfg.ai_decision.supported_chains == ["ethereum", "hedera"]
        assert cfg.ai_decision.supported_tokens[0] == "ETH"

    def test_env_var_interpolation(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("AGENTLINK_TEST_TOPIC", "0.0.7777")
        f = tmp_path / "agents.yaml"
        f.write_text(VALID_YAML.replace('"0.0.5000"', '"${AGENTLINK_TEST_TOPIC}"'))
        assert ConfigLoader(f).load().topic_id == "0.0.7777"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Cannot read"):
            ConfigLoader(tmp_path / "missing.yaml").load()

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        f = tmp_path / "bad.yaml"
        f.write_text("topic_id: [unclosed")
        with pytest.raises(ConfigError, match="YAML parse error"):
            ConfigLoader(f).load()

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        f = tmp_path / "list.yaml"
        f.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="must be a mapping"):
            ConfigLoader(f).load()

    def test_schema_error(self, tmp_path: Path) -> None:
        f = tmp_path / "partial.yaml"
        f.write_text('topic_id: "0.0.1"\n')
        with pytest.raises(ConfigError, match="accounts"):
            ConfigLoader(f).load()
