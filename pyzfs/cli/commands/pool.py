"""
Pool management commands.
"""

import typer

from pyzfs.cli.lib.config import client_from_config, load_config
from pyzfs.cli.lib.properties import Zpool
from pyzfs.cli.lib.validators import validate_dataset_name

app = typer.Typer(help="Pool management commands")


def _summary(pool: Zpool) -> str:
    return (
        f"{pool.name} health={pool.health} size={pool.size} allocated={pool.allocated} "
        f"free={pool.free} frag={pool.fragmentation}% dedup={pool.dedupratio:.2f}x"
    )


@app.command("list")
def list_pools(ctx: typer.Context):
    """
    List pools.
    """
    try:
        sudo = (ctx.obj or {}).get("sudo", False)
        pools = client_from_config(load_config(), sudo=True if sudo else None).list_zpools()
        if not pools:
            typer.echo("No pools found")
            return
        for pool in pools:
            typer.echo(_summary(pool))
    except Exception as e:
        typer.echo(f"Error listing pools: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def show(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Pool name"),
):
    """
    Show a single pool.
    """
    try:
        validate_dataset_name(name)
        sudo = (ctx.obj or {}).get("sudo", False)
        pool = client_from_config(load_config(), sudo=True if sudo else None).get_zpool(name)
        typer.echo(_summary(pool))
        typer.echo(f"readonly={'on' if pool.readonly else 'off'} freeing={pool.freeing} leaked={pool.leaked}")
    except Exception as e:
        typer.echo(f"Error showing pool: {e}", err=True)
        raise typer.Exit(1)
