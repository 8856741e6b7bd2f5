"""Behavior tests for the `automaker` command line."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest
from click.testing import CliRunner

import automaker.cli.commands.root as root_module
from automaker import __version__
from automaker.cli.commands.root import cli

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture(autouse=True)
def _no_logging_setup(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(root_module, "setup_logging", lambda *, verbose=False: None)


def test_version_flag() -> None:
    result = CliRunner().invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert f"automaker {__version__}" in result.output


def test_models_json_lists_catalog() -> None:
    result = CliRunner().invoke(cli, ["models", "--json"])

    assert result.exit_code == 0
    ids = [model["id"] for model in json.loads(result.output)]
    assert "claude-opus-4-5-20251101" in ids


def test_providers_reports_claude(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

    result = CliRunner().invoke(cli, ["providers"])

    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["claude"]["installed"] is True
    assert payload["claude"]["has_api_key"] is False


def test_mcp_test_requires_exactly_one_source() -> None:
    result = CliRunner().invoke(cli, ["mcp-test"])

    assert result.exit_code == 2
    assert "exactly one of --id or --config" in result.output


def test_mcp_test_unknown_id_exits_nonzero(tmp_path: Path) -> None:
    settings = tmp_path / "settings.json"
    settings.write_text(json.dumps({"mcpServers": []}))

    result = CliRunner().invoke(cli, ["mcp-test", "--id", "nope", "--settings", str(settings)])

    assert result.exit_code == 1
    assert 'Server with ID \\"nope\\" not found' in result.output


def test_mcp_test_config_without_usable_servers(tmp_path: Path) -> None:
    config = tmp_path / "mcp.json"
    config.write_text(json.dumps({"mcpServers": {"broken": {"type": "sse"}}}))

    result = CliRunner().invoke(cli, ["mcp-test", "--config", str(config)])

    assert result.exit_code == 1
    assert "No usable MCP servers" in result.output


def test_auto_on_project_without_features_completes(tmp_path: Path) -> None:
    result = CliRunner().invoke(cli, ["auto", str(tmp_path)])

    assert result.exit_code == 0, result.output
    assert "started: Auto mode started" in result.output
    assert "complete: No pending features remaining" in result.output
    assert "stopped: Auto mode stopped" in result.output
