"""agentlink CLI entrypoint."""

from __future__ import annotations

import logging

import click

from agentlink import __version__


@click.group()
@click.version_option(version=__version__, prog_name="agentlink")
@click.option("--log-level", default="WARNING", show_default=True, help="Python logging level.")
def main(log_level: str) -> None:
    """agentlink: run and inspect A2A agents."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Register subcommands
from agentlink.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
