"""Root CLI command registration."""

from __future__ import annotations

from pathlib import Path

import click

from automaker import __version__
from automaker.core.debug_log import setup_logging

from .auto import auto
from .mcp import mcp_test
from .providers import models, providers


@click.group()
@click.version_option(__version__, "--version", prog_name="automaker", message="%(prog)s %(version)s")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Export captured logs to this file when the command exits",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, log_file: Path | None) -> None:
    """Autonomous coding-agent orchestrator."""
    setup_logging(verbose=verbose)
    if log_file is not None:
        from automaker.core.debug_log import export_logs_to_file

        ctx.call_on_close(lambda: export_logs_to_file(log_file))


cli.add_command(providers)
cli.add_command(models)
cli.add_command(mcp_test)
cli.add_command(auto)
