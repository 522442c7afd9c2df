#!/usr/bin/env python3
"""
Main CLI entry point using Typer.
"""

import logging
import sys

import typer

from pyzfs.cli.commands import dataset, pool

app = typer.Typer(
    name="pyzfs",
    help="ZFS dataset and pool inspection tool",
    add_completion=False,
)

# Add command groups
app.add_typer(dataset.app, name="dataset", help="Dataset management commands")
app.add_typer(pool.app, name="pool", help="Pool management commands")


@app.callback()
def options(
    ctx: typer.Context,
    sudo: bool = typer.Option(False, "--sudo", help="Run zfs/zpool through sudo"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every executed command"),
):
    """
    Global options.
    """
    ctx.obj = {"sudo": sudo}
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s %(message)s")


def main() -> int:
    """Main entry point."""
    try:
        app()
        return 0
    except KeyboardInterrupt:
        typer.echo("\nOperation cancelled by user", err=True)
        return 130
    except Exception as e:
        typer.echo(f"Error: {e}", err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
