"""CLI entry point for Automaker."""

from __future__ import annotations

from automaker.cli.commands.root import cli


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
