"""Tests for the move command."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from fzctl.cli import cli


def names(root: Path) -> list[str]:
    return sorted(p.stem for p in root.glob("*.md"))


@pytest.mark.usefixtures("_isolated_vault")
class TestMoveCommand:
    def test_move_renames_subtree(self, cli_runner: CliRunner, vault_root: Path) -> None:
        result = cli_runner.invoke(cli, ["move", "22", "21"])
        assert result.exit_code == 0, result.output
        assert "22 -> 21.1" in result.stdout
        assert "21.1 - Idea" in names(vault_root)
        assert "21.1.1 - Support" in names(vault_root)
        assert "22 - Idea" not in names(vault_root)

    def test_move_sync(self, cli_runner: CliRunner, vault_root: Path) -> None:
        result = cli_runner.invoke(cli, ["--sync", "move", "22.1", "21"])
        assert result.exit_code == 0, result.output
        assert "21.1 - Support" in names(vault_root)

    def test_move_warns_about_identifier_in_use(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["move", "22", "21"])
        assert "WARNING: Identifier already in use: 21.1" in result.stderr

    def test_dry_run(self, cli_runner: CliRunner, vault_root: Path) -> None:
        before = names(vault_root)
        result = cli_runner.invoke(cli, ["--json", "move", "22", "21", "--dry-run"])
        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["data"]["dry_run"] is True
        assert payload["data"]["conflicts"] == ["21.1"]
        assert names(vault_root) == before

    def test_self_move(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["move", "22", "22"])
        assert result.exit_code == 1
        assert "Cannot move a node under itself" in result.stderr

    def test_cyclic_move_json(self, cli_runner: CliRunner, vault_root: Path) -> None:
        before = names(vault_root)
        result = cli_runner.invoke(cli, ["--json", "move", "22", "22.1"])
        assert result.exit_code == 1
        assert json.loads(result.stderr)["error"]["code"] == "CYCLIC_MOVE"
        assert names(vault_root) == before

    def test_quiet_prints_new_identifier(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-q", "move", "22", "21"])
        assert result.stdout.strip() == "21.1"
