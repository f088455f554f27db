"""``agentlink keys``: Ed25519 key management."""

from __future__ import annotations

import json

import click

from agentlink.cli_commands._output import console


@click.group()
def keys() -> None:
    """Manage message-signing keys."""


@keys.command("generate")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def generate(as_json: bool) -> None:
    """Generate an Ed25519 keypair for signing agent messages."""
    from agentlink.protocol.signing import generate_keypair

    private_key, public_key = generate_keypair()
    if as_json:
        click.echo(json.dumps({"private_key": private_key, "public_key": public_key}))
        return

    console.print(f"[bold]Private key:[/bold] {private_key}")
    console.print(f"[bold]Public key:[/bold]  {public_key}")
