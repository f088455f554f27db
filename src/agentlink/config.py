"""System configuration: models, YAML loading and environment lookup.

A system config names the shared topic, one account per agent role and
the per-role policy settings.  It can be loaded from YAML (with ``${VAR}``
interpolation) or assembled from ``HEDERA_*`` environment variables.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from agentlink.agents.models import (
    AgentConfig,
    AIDecisionConfig,
    BridgeConfig,
    BuyerConfig,
    PaymentConfig,
    SellerConfig,
    TelegramConfig,
)
from agentlink.errors import ConfigError

WORKFLOW_ROLES = ("telegram", "ai_decision", "bridge_executor")
NEGOTIATION_ROLES = ("buyer", "seller", "payment")

# Role -> infix of the HEDERA_<INFIX>_ACCOUNT_ID / _PRIVATE_KEY variables.
_ENV_INFIX = {
    "telegram": "TELEGRAM",
    "ai_decision": "AI",
    "bridge_executor": "BRIDGE",
    "buyer": "BUYER",
    "seller": "SELLER",
    "payment": "PAYMENT",
}


class AgentAccount(BaseModel):
    """Ledger account an agent acts as."""

    account_id: str = Field(min_length=1)
    private_key: str | None = None


class AccountsConfig(BaseModel):
    telegram: AgentAccount
    ai_decision: AgentAccount
    bridge_executor: AgentAccount
    buyer: AgentAccount | None = None
    seller: AgentAccount | None = None
    payment: AgentAccount | None = None


class SigningConfig(BaseModel):
    """Ed25519 message signing.

    When enabled, each account's ``private_key`` must be a hex Ed25519 seed;
    every agent trusts the public keys of the other agents in the system.
    """

    enabled: bool = False


class SystemConfig(BaseModel):
    """Top-level configuration for :class:`~agentlink.system.AgentSystem`."""

    topic_id: str = Field(min_length=1)
    dedup_capacity: int = Field(default=100, ge=1)
    strict_payloads: bool = True
    accounts: AccountsConfig
    buyer: BuyerConfig = Field(default_factory=BuyerConfig)
    seller: SellerConfig = Field(default_factory=SellerConfig)
    payment: PaymentConfig = Field(default_factory=PaymentConfig)
    telegram: TelegramConfig = Field(default_factory=TelegramConfig)
    ai_decision: AIDecisionConfig = Field(default_factory=AIDecisionConfig)
    bridge: BridgeConfig = Field(default_factory=BridgeConfig)
    signing: SigningConfig = Field(default_factory=SigningConfig)

    @property
    def negotiation_enabled(self) -> bool:
        """``True`` when accounts exist for buyer, seller and payment agents."""
        return all(getattr(self.accounts, role) is not None for role in NEGOTIATION_ROLES)

    def account(self, role: str) -> AgentAccount:
        account = getattr(self.accounts, role, None)
        if account is None:
            raise ConfigError(f"No account configured for role {role!r}")
        return account

    def agent_config(self, role: str) -> AgentConfig:
        """Build the common :class:`AgentConfig` for *role*."""
        return AgentConfig(
            account_id=self.account(role).account_id,
            topic_id=self.topic_id,
            dedup_capacity=self.dedup_capacity,
            strict_payloads=self.strict_payloads,
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> SystemConfig:
        """Assemble a config from ``HCS_TOPIC_ID`` and ``HEDERA_*`` variables.

        The workflow roles are required; negotiation roles are picked up when
        all three of their account ids are set.

        Raises:
            ConfigError: Naming every missing required variable.
        """
        env = os.environ if environ is None else environ

        required = ["HCS_TOPIC_ID"]
        for role in WORKFLOW_ROLES:
            infix = _ENV_INFIX[role]
            required += [f"HEDERA_{infix}_ACCOUNT_ID", f"HEDERA_{infix}_PRIVATE_KEY"]
        missing = [name for name in required if not env.get(name)]
        if missing:
            raise ConfigError(f"Missing environment variables: {', '.join(missing)}")

        accounts: dict[str, Any] = {}
        for role in (*WORKFLOW_ROLES, *NEGOTIATION_ROLES):
            infix = _ENV_INFIX[role]
            account_id = env.get(f"HEDERA_{infix}_ACCOUNT_ID")
            if account_id:
                accounts[role] = {
                    "account_id": account_id,
                    "private_key": env.get(f"HEDERA_{infix}_PRIVATE_KEY"),
                }

        data: dict[str, Any] = {"topic_id": env["HCS_TOPIC_ID"], "accounts": accounts}
        if "seller" in accounts:
            data["buyer"] = {"seller_account_id": accounts["seller"]["account_id"]}

        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc


class ConfigLoader:
    """Load and validate a YAML file into a :class:`SystemConfig`."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def load(self) -> SystemConfig:
        """Read YAML, interpolate env vars, and validate.

        Environment variables in the form ``${VAR}`` or ``$VAR`` are expanded
        using :func:`os.path.expandvars` before YAML parsing.

        Raises:
            ConfigError: On read errors, YAML parse errors or schema failures.
        """
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Cannot read {self._path}: {exc}") from exc

        expanded = os.path.expandvars(raw)

        try:
            data: Any = yaml.safe_load(expanded)
        except yaml.YAMLError as exc:
            raise ConfigError(f"YAML parse error: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigError("Config YAML must be a mapping")

        try:
            return SystemConfig.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc
