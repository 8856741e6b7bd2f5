"""MCP connection test command."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import click

from automaker.core.config import AutomakerConfig
from automaker.core.errors import McpConfigError
from automaker.core.mcp.config_io import import_mcp_servers
from automaker.core.mcp.models import MCPServerConfig
from automaker.core.mcp.tester import MCPTestService
from automaker.core.services.settings import FileSettingsService


def _load_configs(config_file: Path) -> list[MCPServerConfig]:
    try:
        result = import_mcp_servers(config_file.read_text(encoding="utf-8"))
    except McpConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    if not result.servers:
        raise click.ClickException(f"No usable MCP servers in {config_file}")
    return result.servers


@click.command(name="mcp-test")
@click.option("--id", "server_id", default=None, help="Test a server registered in settings")
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Test every server in an MCP JSON file",
)
@click.option(
    "--settings",
    "settings_file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Settings file to resolve --id against",
)
def mcp_test(server_id: str | None, config_file: Path | None, settings_file: Path | None) -> None:
    """Connect to MCP servers and list their tools.

    Exits with status 1 if any tested server fails.
    """
    if (server_id is None) == (config_file is None):
        raise click.UsageError("Pass exactly one of --id or --config")

    config = AutomakerConfig.load()
    tester = MCPTestService(
        FileSettingsService(settings_file),
        timeout_ms=config.mcp.test_timeout_ms,
    )

    async def _run() -> dict[str, dict]:
        if server_id is not None:
            result = await tester.test_server_by_id(server_id)
            return {server_id: result.model_dump(by_alias=True, exclude_none=True)}
        results = {}
        for server in _load_configs(config_file):
            result = await tester.test_server(server)
            results[server.name] = result.model_dump(by_alias=True, exclude_none=True)
        return results

    results = asyncio.run(_run())
    click.echo(json.dumps(results, indent=2))
    if not all(result["success"] for result in results.values()):
        raise SystemExit(1)
