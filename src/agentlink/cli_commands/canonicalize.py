"""``agentlink canonicalize``: print the canonical JSON form of a file."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from agentlink.cli_commands._output import console
from agentlink.protocol.codec import canonicalize


@click.command("canonicalize")
@click.argument("json_file", type=click.Path(exists=True))
def canonicalize_cmd(json_file: str) -> None:
    """Print the canonical (signing) form of JSON_FILE.

    Keys are sorted at every level and whitespace is removed, so two files
    with the same content print identical output.
    """
    try:
        data = json.loads(Path(json_file).read_text(encoding="utf-8"))
        text = canonicalize(data)
    except (OSError, ValueError) as exc:
        console.print(f"[red]Cannot canonicalize:[/red] {exc}")
        sys.exit(1)

    click.echo(text)
