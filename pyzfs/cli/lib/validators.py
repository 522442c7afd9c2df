"""
Input validation functions.
"""

import re
from typing import Tuple

# Component characters allowed by zfs(8)
_DATASET_RE = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_.:-]*(/[a-zA-Z0-9_.:-]+)*$")
_SNAPSHOT_RE = re.compile(r"^[a-zA-Z0-9_.:-]+$")
_PROPERTY_RE = re.compile(r"^[a-z][a-z0-9_:.-]*$")

MAX_NAME_LENGTH = 255


def validate_dataset_name(name: str) -> None:
    """
    Validate a dataset name, optionally with a snapshot part.

    Args:
        name: Dataset name (e.g., "tank/home" or "tank/home@monday")

    Raises:
        ValueError: If name is invalid
    """
    if not name:
        raise ValueError("Name cannot be empty")

    if len(name) > MAX_NAME_LENGTH:
        raise ValueError(f"Name must be at most {MAX_NAME_LENGTH} characters")

    dataset, sep, snapshot = name.partition("@")
    if not _DATASET_RE.match(dataset):
        raise ValueError(
            "Dataset name must start with alphanumeric and contain only alphanumeric, "
            "underscores, hyphens, colons, or periods, separated by slashes"
        )
    if sep:
        validate_snapshot_name(snapshot)


def validate_snapshot_name(name: str) -> None:
    """
    Validate the part of a snapshot name after "@".

    Raises:
        ValueError: If name is invalid
    """
    if not _SNAPSHOT_RE.match(name):
        raise ValueError(
            "Snapshot name must contain only alphanumeric, underscores, hyphens, colons, or periods"
        )


def parse_property_assignment(assignment: str) -> Tuple[str, str]:
    """
    Split a "key=value" property assignment.

    Args:
        assignment: Assignment string (e.g., "compression=lz4")

    Returns:
        Tuple of (key, value)

    Raises:
        ValueError: If the assignment is malformed
    """
    key, sep, value = assignment.partition("=")
    if not sep:
        raise ValueError(f"Property must be in format KEY=VALUE (e.g., compression=lz4): {assignment}")
    if not _PROPERTY_RE.match(key):
        raise ValueError(f"Invalid property name: {key}")
    if not value:
        raise ValueError(f"Property {key} has an empty value")
    return key, value
