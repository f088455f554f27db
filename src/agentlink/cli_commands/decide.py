"""``agentlink decide``: run the bridge intent classifier on a message."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from agentlink.cli_commands._output import console, print_decision


@click.command()
@click.argument("text")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    show_default=True,
    help="Output format.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True),
    default=None,
    help="System config YAML whose ai_decision rules to use.",
)
def decide(text: str, output_format: str, config_path: str | None) -> None:
    """Classify TEXT as an executable bridge request or not."""
    from agentlink.agents.ai_decision import BridgeIntentClassifier
    from agentlink.agents.models import AIDecisionConfig

    rules = AIDecisionConfig()
    if config_path is not None:
        from agentlink.config import ConfigLoader

        try:
            rules = ConfigLoader(Path(config_path)).load().ai_decision
        except Exception as exc:
            console.print(f"[red]Config error:[/red] {exc}")
            sys.exit(1)

    decision = BridgeIntentClassifier(rules).classify(text)
    print_decision(decision, as_json=output_format == "json")
