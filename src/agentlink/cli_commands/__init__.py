"""CLI subcommand registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all subcommands on the CLI group."""
    from agentlink.cli_commands.canonicalize import canonicalize_cmd
    from agentlink.cli_commands.decide import decide
    from agentlink.cli_commands.demo import demo
    from agentlink.cli_commands.keys import keys

    cli.add_command(decide)
    cli.add_command(canonicalize_cmd)
    cli.add_command(keys)
    cli.add_command(demo)
