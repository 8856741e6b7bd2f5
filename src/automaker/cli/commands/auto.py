"""Foreground auto-mode command."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click

from automaker.core.config import AutomakerConfig
from automaker.core.errors import AutomakerError
from automaker.core.events import AUTO_MODE_EVENT, InMemoryEventBus
from automaker.core.services.automation import AutoModeServiceImpl, LoopStatus
from automaker.core.services.features import FileFeatureStore
from automaker.core.services.settings import FileSettingsService


def _print_event(event_type: str, payload: dict) -> None:
    if event_type != AUTO_MODE_EVENT:
        return
    kind = str(payload.get("type", "")).removeprefix("auto_mode_")
    click.echo(f"[{payload.get('iteration', 0)}] {kind}: {payload.get('message', '')}")


async def _run_auto(project: Path, count: int | None) -> LoopStatus:
    config = AutomakerConfig.load()
    bus = InMemoryEventBus()
    bus.subscribe(_print_event)
    service = AutoModeServiceImpl(
        events=bus,
        feature_store=FileFeatureStore(),
        settings_service=FileSettingsService(),
        config=config,
    )
    await service.start_auto_loop(project, count)
    try:
        await service.wait_for_completion()
    except asyncio.CancelledError:
        await service.shutdown()
        raise
    return service.get_status().status


@click.command()
@click.argument(
    "project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option("--count", type=click.IntRange(min=1), default=None, help="Stop after N features")
def auto(project: Path, count: int | None) -> None:
    """Run auto mode against PROJECT until its features are done.

    Press Ctrl-C to stop; the in-flight feature is returned to pending.
    """
    try:
        status = asyncio.run(_run_auto(project, count))
    except KeyboardInterrupt:
        click.echo("Auto mode interrupted", err=True)
        raise SystemExit(130) from None
    except AutomakerError as exc:
        raise click.ClickException(str(exc)) from exc
    if status is LoopStatus.FAILED:
        raise SystemExit(1)
