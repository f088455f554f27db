"""Tests for ``agentlink keys`` and ``agentlink canonicalize``."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from click.testing import CliRunner

from agentlink.cli import main
from agentlink.protocol.signing import public_key_for

if TYPE_CHECKING:
    from pathlib import Path


class TestKeysCommand:
    def test_generate_json(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["keys", "generate", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert public_key_for(data["private_key"]) == data["public_key"]

    def test_generate_text(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["keys", "generate"])

        assert result.exit_code == 0
        assert "Private key:" in result.output
        assert "Public key:" in result.output


class TestCanonicalizeCommand:
    def test_sorted_compact_output(self, tmp_path: Path) -> None:
        f = tmp_path / "msg.json"
        f.write_text('{\n  "b": 1.0,\n  "a": {"z": [2, 1], "y": null}\n}')

        runner = CliRunner()
        result = runner.invoke(main, ["canonicalize", str(f)])

        assert result.exit_code == 0
        assert result.output == '{"a":{"y":null,"z":[2,1]},"b":1}\n'

    def test_invalid_json(self, tmp_path: Path) -> None:
        f = tmp_path / "bad.json"
        f.write_text("{not json")

        runner = CliRunner()
        result = runner.invoke(main, ["canonicalize", str(f)])

        assert result.exit_code == 1
        assert "Cannot canonicalize" in result.output


class TestMainGroup:
    def test_version(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_help_lists_commands(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["--help"])

        assert result.exit_code == 0
        for command in ("decide", "canonicalize", "keys", "demo"):
            assert command in result.output
