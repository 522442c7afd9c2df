"""
Dataset service layer.
"""

from dataclasses import asdict
from typing import Any, Dict, List

from pyzfs.cli.lib.config import client_from_config, load_config
from pyzfs.cli.lib.diff import InodeChange
from pyzfs.cli.lib.properties import Dataset
from pyzfs.cli.lib.validators import validate_dataset_name


def _to_dict(ds: Dataset) -> Dict[str, Any]:
    record = asdict(ds)
    record.pop("props", None)
    return record


def _change_to_dict(change: InodeChange) -> Dict[str, Any]:
    return {
        "change": change.change.name.lower(),
        "type": change.type.name.lower(),
        "path": change.path,
        "new_path": change.new_path or None,
        "reference_count_change": change.reference_count_change,
    }


def list_datasets(dataset_type: str = "all", filter: str = "") -> List[Dict[str, Any]]:
    """
    List datasets of a given type.

    Args:
        dataset_type: all, filesystem, snapshot or volume
        filter: Only list this dataset and its descendants

    Returns:
        List of dataset dictionaries
    """
    if filter:
        validate_dataset_name(filter)

    client = client_from_config(load_config())
    listing = {
        "all": client.datasets,
        "filesystem": client.filesystems,
        "snapshot": client.snapshots,
        "volume": client.volumes,
    }
    if dataset_type not in listing:
        raise ValueError(f"Unknown dataset type: {dataset_type}")
    return [_to_dict(ds) for ds in listing[dataset_type](filter)]


def get_dataset(name: str) -> Dict[str, Any]:
    validate_dataset_name(name)
    return _to_dict(client_from_config(load_config()).get_dataset(name))


def list_children(name: str, depth: int = 0) -> List[Dict[str, Any]]:
    validate_dataset_name(name)
    client = client_from_config(load_config())
    return [_to_dict(ds) for ds in client.children(client.get_dataset(name), depth=depth)]


def diff(name: str, snapshot: str) -> List[Dict[str, Any]]:
    """
    Compute the changes between `snapshot` and dataset `name`.

    Returns:
        List of change dictionaries in output order
    """
    validate_dataset_name(name)
    validate_dataset_name(snapshot)
    if "@" not in snapshot:
        raise ValueError("Snapshot must be given as DATASET@SNAPSHOT")

    client = client_from_config(load_config())
    return [_change_to_dict(c) for c in client.diff(client.get_dataset(name), snapshot)]
