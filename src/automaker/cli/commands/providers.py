"""Provider status and model catalog commands."""

from __future__ import annotations

import asyncio
import json

import click

from automaker.core.providers.router import ProviderRouter


@click.command()
def providers() -> None:
    """Show installation status for every registered provider."""
    statuses = asyncio.run(ProviderRouter().check_all_installations())
    payload = {name: status.model_dump() for name, status in statuses.items()}
    click.echo(json.dumps(payload, indent=2))


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Print the catalog as JSON")
def models(as_json: bool) -> None:
    """List models offered by all providers."""
    catalog = ProviderRouter().list_all_models()
    if as_json:
        click.echo(json.dumps([model.model_dump() for model in catalog], indent=2))
        return
    for model in catalog:
        marker = "*" if model.default else " "
        tier = model.tier or "-"
        click.echo(f"{marker} {model.id:<32} {tier:<9} {model.name}")
