"""
Dataset management commands.
"""

from enum import Enum
from typing import List, Optional

import typer

from pyzfs.cli.lib.config import client_from_config, load_config
from pyzfs.cli.lib.properties import Dataset
from pyzfs.cli.lib.validators import parse_property_assignment, validate_dataset_name, validate_snapshot_name
from pyzfs.cli.lib.zfs import Client, DestroyFlag

app = typer.Typer(help="Dataset management commands")


class DatasetType(str, Enum):
    ALL = "all"
    FILESYSTEM = "filesystem"
    SNAPSHOT = "snapshot"
    VOLUME = "volume"


def _client(ctx: typer.Context) -> Client:
    sudo = (ctx.obj or {}).get("sudo", False)
    return client_from_config(load_config(), sudo=True if sudo else None)


def _summary(ds: Dataset) -> str:
    return f"{ds.name} type={ds.type} used={ds.used} avail={ds.avail} refer={ds.referenced} mount={ds.mountpoint or '-'}"


def _parse_properties(assignments: Optional[List[str]]) -> dict:
    return dict(parse_property_assignment(a) for a in assignments or [])


@app.command("list")
def list_datasets(
    ctx: typer.Context,
    filter: Optional[str] = typer.Argument(None, help="Only list this dataset and its descendants"),
    type: DatasetType = typer.Option(DatasetType.ALL, "--type", "-t", help="Dataset type"),
):
    """
    List datasets.
    """
    try:
        if filter:
            validate_dataset_name(filter)
        client = _client(ctx)
        listing = {
            DatasetType.ALL: client.datasets,
            DatasetType.FILESYSTEM: client.filesystems,
            DatasetType.SNAPSHOT: client.snapshots,
            DatasetType.VOLUME: client.volumes,
        }[type]
        datasets = listing(filter or "")
        if not datasets:
            typer.echo("No datasets found")
            return
        for ds in datasets:
            typer.echo(_summary(ds))
    except Exception as e:
        typer.echo(f"Error listing datasets: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def show(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Dataset name"),
):
    """
    Show a single dataset.
    """
    try:
        validate_dataset_name(name)
        ds = _client(ctx).get_dataset(name)
        for field in (
            "name",
            "type",
            "origin",
            "used",
            "avail",
            "referenced",
            "mountpoint",
            "compression",
            "volsize",
            "quota",
            "written",
            "logicalused",
            "usedbydataset",
        ):
            typer.echo(f"{field}: {getattr(ds, field)}")
    except Exception as e:
        typer.echo(f"Error showing dataset: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def children(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Parent dataset name"),
    depth: int = typer.Option(0, "--depth", "-d", help="Recursion depth (0: unlimited)"),
):
    """
    List the descendants of a dataset.
    """
    try:
        validate_dataset_name(name)
        client = _client(ctx)
        for ds in client.children(client.get_dataset(name), depth=depth):
            typer.echo(_summary(ds))
    except Exception as e:
        typer.echo(f"Error listing children: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def create(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Dataset name"),
    volume_size: Optional[int] = typer.Option(None, "--volume-size", "-V", help="Create a volume of this size in bytes"),
    properties: Optional[List[str]] = typer.Option(None, "--property", "-o", help="Property KEY=VALUE"),
):
    """
    Create a filesystem, or a volume when --volume-size is given.
    """
    try:
        validate_dataset_name(name)
        props = _parse_properties(properties)

        typer.echo(f"Creating dataset: {name}")

        client = _client(ctx)
        if volume_size is not None:
            ds = client.create_volume(name, volume_size, props)
        else:
            ds = client.create_filesystem(name, props)

        typer.echo(f"Dataset {ds.name} ({ds.type}) created successfully")

    except Exception as e:
        typer.echo(f"Error creating dataset: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def destroy(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Dataset name"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Destroy descendants"),
    recursive_clones: bool = typer.Option(False, "--recursive-clones", "-R", help="Destroy dependents and clones"),
    defer: bool = typer.Option(False, "--defer", "-d", help="Defer snapshot deletion"),
    force: bool = typer.Option(False, "--force", "-f", help="Force unmount"),
):
    """
    Destroy a dataset.
    """
    try:
        validate_dataset_name(name)

        flags = DestroyFlag.DEFAULT
        if recursive:
            flags |= DestroyFlag.RECURSIVE
        if recursive_clones:
            flags |= DestroyFlag.RECURSIVE_CLONES
        if defer:
            flags |= DestroyFlag.DEFER_DELETION
        if force:
            flags |= DestroyFlag.FORCE_UMOUNT

        typer.echo(f"Destroying dataset: {name}")

        client = _client(ctx)
        client.destroy(client.get_dataset(name), flags)

        typer.echo(f"Dataset {name} destroyed successfully")

    except Exception as e:
        typer.echo(f"Error destroying dataset: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def snapshot(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Dataset name"),
    snapshot_name: str = typer.Argument(..., help="Snapshot name (part after @)"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Snapshot descendants atomically"),
):
    """
    Snapshot a dataset.
    """
    try:
        validate_dataset_name(name)
        validate_snapshot_name(snapshot_name)

        client = _client(ctx)
        snap = client.snapshot(client.get_dataset(name), snapshot_name, recursive=recursive)

        typer.echo(f"Snapshot {snap.name} created successfully")

    except Exception as e:
        typer.echo(f"Error creating snapshot: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def rename(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Dataset name"),
    new_name: str = typer.Argument(..., help="New dataset name"),
    parents: bool = typer.Option(False, "--parents", "-p", help="Create missing parent datasets"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Rename snapshots recursively"),
):
    """
    Rename a dataset.
    """
    try:
        validate_dataset_name(name)
        validate_dataset_name(new_name)

        client = _client(ctx)
        ds = client.rename(client.get_dataset(name), new_name, create_parent=parents, recursive=recursive)

        typer.echo(f"Dataset {name} renamed to {ds.name}")

    except Exception as e:
        typer.echo(f"Error renaming dataset: {e}", err=True)
        raise typer.Exit(1)


@app.command("get")
def get_properties(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Dataset name"),
    keys: Optional[List[str]] = typer.Argument(None, help="Property names (default: all)"),
):
    """
    Show dataset properties.
    """
    try:
        validate_dataset_name(name)
        client = _client(ctx)
        ds = client.get_dataset(name)
        if keys:
            values = client.get_properties(ds, *keys)
            for key, value in zip(keys, values):
                typer.echo(f"{key}={value}")
        else:
            for key, value in sorted(client.get_all_properties(ds).items()):
                typer.echo(f"{key}={value}")
    except Exception as e:
        typer.echo(f"Error getting properties: {e}", err=True)
        raise typer.Exit(1)


@app.command("set")
def set_properties(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Dataset name"),
    assignments: List[str] = typer.Argument(..., help="Properties as KEY=VALUE"),
):
    """
    Set dataset properties.
    """
    try:
        validate_dataset_name(name)
        props = _parse_properties(assignments)

        client = _client(ctx)
        client.set_properties(client.get_dataset(name), props)

        typer.echo(f"Updated {len(props)} properties on {name}")

    except Exception as e:
        typer.echo(f"Error setting properties: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def diff(
    ctx: typer.Context,
    snapshot: str = typer.Argument(..., help="Snapshot to compare from (pool/fs@snap)"),
    name: Optional[str] = typer.Argument(None, help="Dataset to compare to (default: snapshot's filesystem)"),
):
    """
    Show changes between a snapshot and a dataset.
    """
    try:
        validate_dataset_name(snapshot)
        if "@" not in snapshot:
            raise ValueError("Snapshot must be given as DATASET@SNAPSHOT")
        target = name or snapshot.split("@", 1)[0]
        validate_dataset_name(target)

        client = _client(ctx)
        for change in client.diff(client.get_dataset(target), snapshot):
            line = f"{change.change.value}\t{change.type.value}\t{change.path}"
            if change.new_path:
                line += f"\t{change.new_path}"
            if change.reference_count_change:
                line += f"\t({change.reference_count_change:+d})"
            typer.echo(line)
    except Exception as e:
        typer.echo(f"Error computing diff: {e}", err=True)
        raise typer.Exit(1)
