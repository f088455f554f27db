"""``agentlink demo``: run the agents end-to-end on an in-memory topic."""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING, Any

import click

from agentlink.cli_commands._output import (
    console,
    print_conversation,
    print_executions,
    print_notifications,
)

if TYPE_CHECKING:
    from agentlink.agents.models import Notification
    from agentlink.config import SystemConfig
    from agentlink.system import AgentSystem

_DEMO_ACCOUNTS = {
    "telegram": "0.0.2001",
    "ai_decision": "0.0.2002",
    "bridge_executor": "0.0.2003",
    "buyer": "0.0.1001",
    "seller": "0.0.1002",
    "payment": "0.0.1003",
}

_BUYER_DONE = frozenset({"paid", "payment_failed", "declined"})


def demo_config(**overrides: Any) -> SystemConfig:
    """Return a config with every role on the local demo topic."""
    from agentlink.config import SystemConfig

    data: dict[str, Any] = {
        "topic_id": "0.0.demo",
        "accounts": {role: {"account_id": acct} for role, acct in _DEMO_ACCOUNTS.items()},
    }
    data.update(overrides)
    return SystemConfig.model_validate(data)


def build_demo_system(config: SystemConfig) -> AgentSystem:
    from agentlink.ledger.tool import SimulatedLedger
    from agentlink.system import AgentSystem
    from agentlink.transport.memory import InMemoryTransport

    ledger = SimulatedLedger(payer_account=_DEMO_ACCOUNTS["payment"])
    return AgentSystem(config, InMemoryTransport(), ledger)


@click.group()
def demo() -> None:
    """Run demo scenarios on an in-memory topic and simulated ledger."""


@demo.command()
@click.option("--item", default="widgets", show_default=True)
@click.option("--qty", default=10, show_default=True, type=float)
@click.option("--offer", default=75.0, show_default=True, help="Opening unit price.")
@click.option("--max-price", default=90.0, show_default=True)
@click.option("--min-price", default=50.0, show_default=True)
@click.option("--ideal-price", default=80.0, show_default=True)
@click.option("--inventory", default=100.0, show_default=True, help="Seller stock of ITEM.")
@click.option("--timeout", default=5.0, show_default=True, help="Seconds to wait for an outcome.")
def negotiate(
    item: str,
    qty: float,
    offer: float,
    max_price: float,
    min_price: float,
    ideal_price: float,
    inventory: float,
    timeout: float,
) -> None:
    """Negotiate a purchase between the buyer and seller agents, then pay."""
    config = demo_config(
        buyer={"max_price": max_price},
        seller={
            "min_price": min_price,
            "ideal_price": ideal_price,
            "inventory": {item: inventory},
        },
    )
    try:
        state = asyncio.run(_negotiate(config, item, qty, offer, timeout))
    except Exception as exc:
        console.print(f"[red]Demo error:[/red] {exc}")
        sys.exit(1)

    if state != "paid":
        sys.exit(1)


async def _negotiate(
    config: SystemConfig, item: str, qty: float, offer: float, timeout: float
) -> str:
    from agentlink.utils.waiting import wait_until

    system = build_demo_system(config)
    await system.start()
    try:
        cid = await system.buyer.make_offer(item, qty, offer)
        conversation = system.buyer.get_conversation(cid)
        finished = await wait_until(lambda: conversation.state in _BUYER_DONE, timeout=timeout)
        if not finished:
            console.print(f"[yellow]No outcome after {timeout}s[/yellow]")
        print_conversation(conversation, title="Buyer")
        print_conversation(system.seller.get_conversation(cid), title="Seller")
        console.print(f"Seller inventory: {system.seller.inventory}")
        return conversation.state
    finally:
        await system.stop()


@demo.command()
@click.argument("text")
@click.option("--chat-id", default="demo-chat", show_default=True)
@click.option("--user-id", default="demo-user", show_default=True)
@click.option(
    "--simulate/--no-simulate",
    default=True,
    show_default=True,
    help="Confirm an approved bridge with a simulated transaction.",
)
@click.option("--delay", default=0.0, show_default=True, help="Simulated confirmation delay.")
@click.option("--timeout", default=5.0, show_default=True, help="Seconds to wait per step.")
@click.option("--json", "as_json", is_flag=True, help="Output notifications as JSON.")
def workflow(
    text: str,
    chat_id: str,
    user_id: str,
    simulate: bool,
    delay: float,
    timeout: float,
    as_json: bool,
) -> None:
    """Send TEXT through the Telegram -> AI-Decision -> Bridge pipeline."""
    try:
        asyncio.run(
            _workflow(demo_config(), text, chat_id, user_id, simulate, delay, timeout, as_json)
        )
    except Exception as exc:
        console.print(f"[red]Demo error:[/red] {exc}")
        sys.exit(1)


async def _workflow(
    config: SystemConfig,
    text: str,
    chat_id: str,
    user_id: str,
    simulate: bool,
    delay: float,
    timeout: float,
    as_json: bool,
) -> None:
    from agentlink.utils.waiting import wait_until

    system = build_demo_system(config)
    await system.start()
    try:
        cid = await system.send_telegram_message(text, chat_id, user_id)

        def _notes(kind: str) -> list[Notification]:
            return [
                n
                for n in system.notifications(chat_id)
                if n.correlation_id == cid and n.type == kind
            ]

        def _decided() -> bool:
            if not _notes("ai_decision"):
                return False
            # Rejections end in a warning, approvals in a pending execution.
            executions = system.bridge_executor
            return bool(_notes("notification")) or executions.get_execution(cid) is not None

        await wait_until(_decided, timeout=timeout)

        if simulate and system.bridge_executor.get_execution(cid) is not None:
            await system.bridge_executor.simulate_bridge_execution(cid, delay=delay)
            await wait_until(lambda: bool(_notes("notification")), timeout=timeout)

        print_notifications(system.notifications(chat_id), as_json=as_json)
        if not as_json:
            print_executions(system.execution_history() + system.pending_executions())
    finally:
        await system.stop()
