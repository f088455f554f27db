"""Shared CLI output formatters."""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.table import Table

from agentlink.agents.models import Decision, Notification  # noqa: TC001
from agentlink.core.conversation import Conversation  # noqa: TC001
from agentlink.core.executions import BridgeExecution  # noqa: TC001

console = Console()


def print_decision(decision: Decision, *, as_json: bool = False) -> None:
    """Pretty-print a classifier decision."""
    if as_json:
        console.print_json(decision.model_dump_json())
        return

    colour = "green" if decision.approved else "yellow"
    console.print(f"[bold {colour}]{decision.decision}[/bold {colour}]  {decision.reasoning}")
    if decision.bridge_params:
        table = Table(title="Bridge Parameters")
        table.add_column("Field", style="cyan")
        table.add_column("Value")
        for key, value in decision.bridge_params.items():
            table.add_row(key, str(value))
        console.print(table)


def print_conversation(conversation: Conversation, *, title: str) -> None:
    """Print the fields of a conversation as a two-column table."""
    table = Table(title=title)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    data: dict[str, Any] = conversation.model_dump(exclude={"messages", "created_at"})
    for key, value in data.items():
        table.add_row(key, _truncate(str(value)))
    table.add_row("messages", str(conversation.message_count))
    console.print(table)


def print_notifications(notifications: list[Notification], *, as_json: bool = False) -> None:
    if as_json:
        console.print_json(json.dumps([n.model_dump(mode="json") for n in notifications]))
        return

    table = Table(title="Notifications")
    table.add_column("Type", style="cyan")
    table.add_column("Level")
    table.add_column("Message")
    for notification in notifications:
        table.add_row(notification.type, notification.level, _truncate(notification.message))
    console.print(table)


def print_executions(executions: list[BridgeExecution]) -> None:
    table = Table(title="Bridge Executions")
    table.add_column("Correlation", style="cyan")
    table.add_column("Route")
    table.add_column("Amount")
    table.add_column("Status")
    table.add_column("Transaction")
    for execution in executions:
        table.add_row(
            _truncate(execution.correlation_id, 24),
            f"{execution.source_chain} -> {execution.target_chain}",
            f"{execution.amount} {execution.token}",
            execution.status.value,
            _truncate(execution.transaction_hash or "-", 24),
        )
    console.print(table)


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
