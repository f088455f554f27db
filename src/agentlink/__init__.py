"""agentlink: agent-to-agent negotiation, payment and bridge-decision agents."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from agentlink.config import ConfigLoader as ConfigLoader
    from agentlink.config import SystemConfig as SystemConfig
    from agentlink.system import AgentSystem as AgentSystem

_EXPORTS = {
    "AgentSystem": "agentlink.system",
    "ConfigLoader": "agentlink.config",
    "SystemConfig": "agentlink.config",
}


def __getattr__(name: str) -> object:
    module_path = _EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'agentlink' has no attribute {name!r}")
