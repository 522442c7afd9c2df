"""
Typed records built from `zfs list` / `zpool get` output.

The tools print a header row naming each column followed by value rows. A
value of "-" means the property does not apply and maps to the zero value of
the field's type.
"""

import sys
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from pyzfs.cli.lib.exceptions import FormatError

SENTINEL = "-"

UNEXPECTED_OUTPUT = "output does not match what is expected on this platform"

MAX_UINT64 = 2**64 - 1

# Columns requested by `zfs list -Hp -o ...`, in output order. The last three
# are not available on Solaris.
DATASET_PROPERTIES = (
    "name",
    "origin",
    "used",
    "available",
    "mountpoint",
    "compression",
    "type",
    "volsize",
    "quota",
    "referenced",
    "written",
    "logicalused",
    "usedbydataset",
)

SOLARIS_EXCLUDED = ("written", "logicalused", "usedbydataset")

ZPOOL_PROPERTIES = (
    "name",
    "health",
    "allocated",
    "size",
    "free",
    "readonly",
    "dedupratio",
    "fragmentation",
    "freeing",
    "leaked",
)


def is_solaris(platform: Optional[str] = None) -> bool:
    return (platform or sys.platform).startswith(("sunos", "solaris"))


def dataset_property_list(platform: Optional[str] = None) -> List[str]:
    """Return the dataset columns supported by the ZFS tools on `platform`."""
    if is_solaris(platform):
        return [p for p in DATASET_PROPERTIES if p not in SOLARIS_EXCLUDED]
    return list(DATASET_PROPERTIES)


@dataclass(frozen=True)
class Dataset:
    """
    A ZFS dataset: a filesystem, snapshot, volume or clone.

    Field definitions are in zfsprops(7).
    """

    name: str = ""
    origin: str = ""
    used: int = 0
    avail: int = 0
    mountpoint: str = ""
    compression: str = ""
    type: str = ""
    written: int = 0
    volsize: int = 0
    logicalused: int = 0
    usedbydataset: int = 0
    quota: int = 0
    referenced: int = 0
    props: Mapping[str, str] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class Zpool:
    """A ZFS pool, the top-level container of datasets."""

    name: str = ""
    health: str = ""
    allocated: int = 0
    size: int = 0
    free: int = 0
    fragmentation: int = 0
    readonly: bool = False
    freeing: int = 0
    leaked: int = 0
    dedupratio: float = 0.0


def to_text(value: str) -> str:
    return "" if value == SENTINEL else value


def to_uint(value: str) -> int:
    """
    Parse an unsigned 64-bit decimal value.

    Raises:
        FormatError: If the value is not a plain decimal number in range
    """
    if value == SENTINEL:
        return 0
    if not value.isascii() or not value.isdigit():
        raise FormatError(f"invalid unsigned integer: {value!r}")
    number = int(value)
    if number > MAX_UINT64:
        raise FormatError(f"unsigned integer out of range: {value!r}")
    return number


def to_percent(value: str) -> int:
    """Parse a percentage such as "12%" into 12."""
    return to_uint(value.split("%", 1)[0])


def to_ratio(value: str) -> float:
    """Parse a ratio such as "1.50x" into 1.5."""
    if value == SENTINEL:
        return 0.0
    try:
        return float(value[:-1] if value.endswith("x") else value)
    except ValueError as e:
        raise FormatError(f"invalid ratio: {value!r}") from e


def to_bool(value: str) -> bool:
    return value == "on"


def build_property_table(header: Sequence[str], values: Sequence[str]) -> Dict[str, str]:
    """
    Map lowercased column names to their raw values.

    Columns without a value get the sentinel "-".

    Raises:
        FormatError: If there are more values than columns
    """
    if len(values) > len(header):
        raise FormatError(UNEXPECTED_OUTPUT)
    table = {}
    for i, column in enumerate(header):
        table[column.lower()] = values[i] if i < len(values) else SENTINEL
    return table


def _dataset_from_table(table: Mapping[str, str], platform: Optional[str], aliases: Mapping[str, str]) -> Dataset:
    def raw(prop: str) -> str:
        return table.get(aliases.get(prop, prop), SENTINEL)

    fields = {
        "name": to_text(raw("name")),
        "origin": to_text(raw("origin")),
        "used": to_uint(raw("used")),
        "avail": to_uint(raw("available")),
        "mountpoint": to_text(raw("mountpoint")),
        "compression": to_text(raw("compression")),
        "type": to_text(raw("type")),
        "volsize": to_uint(raw("volsize")),
        "quota": to_uint(raw("quota")),
        "referenced": to_uint(raw("referenced")),
    }
    if not is_solaris(platform):
        fields["written"] = to_uint(raw("written"))
        fields["logicalused"] = to_uint(raw("logicalused"))
        fields["usedbydataset"] = to_uint(raw("usedbydataset"))
    return Dataset(props=dict(table), **fields)


# Header names printed by `zfs list -o all` for the known properties
HEADER_ALIASES = {
    "available": "avail",
    "compression": "compress",
    "referenced": "refer",
    "logicalused": "lused",
    "usedbydataset": "usedds",
}


def _split_records(rows: Sequence[Sequence[str]], parse_row: Callable[[Sequence[str]], Dataset]) -> List[Dataset]:
    """Parse one record per run of rows sharing the same leading name."""
    datasets = []
    name = None
    for row in rows:
        if row and row[0] == name:
            continue
        name = row[0] if row else None
        datasets.append(parse_row(row))
    return datasets


def parse_properties(rows: Sequence[Sequence[str]], *, platform: Optional[str] = None, min_fields: int = 0) -> Dataset:
    """
    Build a Dataset from a header row and a single value row.

    Args:
        rows: Exactly two rows, the header and the values
        platform: Target platform, defaults to `sys.platform`
        min_fields: The property table must have more entries than this

    Returns:
        Parsed dataset

    Raises:
        FormatError: If the rows do not have the expected shape or a value
            cannot be converted
    """
    if len(rows) != 2:
        raise FormatError(UNEXPECTED_OUTPUT)
    table = build_property_table(rows[0], rows[1])
    if len(table) <= min_fields:
        raise FormatError(UNEXPECTED_OUTPUT)
    return _dataset_from_table(table, platform, HEADER_ALIASES)


def parse_batch(rows: Sequence[Sequence[str]], *, platform: Optional[str] = None) -> List[Dataset]:
    """
    Parse `zfs list -o all` output: a header followed by one row per dataset.

    A new dataset starts whenever the leading name column changes; rows
    repeating the previous name are skipped.
    """
    if not rows:
        return []

    header = rows[0]
    min_fields = len(dataset_property_list(platform))
    return _split_records(
        rows[1:], lambda row: parse_properties([header, row], platform=platform, min_fields=min_fields)
    )


def parse_dataset_line(row: Sequence[str], *, platform: Optional[str] = None) -> Dataset:
    """
    Parse one `zfs list -Hp -o <dataset_property_list()>` row.

    Raises:
        FormatError: If the row does not have one field per known property
    """
    columns = dataset_property_list(platform)
    if len(row) != len(columns):
        raise FormatError(UNEXPECTED_OUTPUT)
    return _dataset_from_table(dict(zip(columns, row)), platform, {})


def group_dataset_lines(rows: Sequence[Sequence[str]], *, platform: Optional[str] = None) -> List[Dataset]:
    """Parse header-less `-H` rows, one dataset per distinct leading name."""
    return _split_records(rows, lambda row: parse_dataset_line(row, platform=platform))


def parse_zpool(rows: Sequence[Sequence[str]], name: str = "") -> Zpool:
    """
    Parse `zpool get -Hp` output.

    Each row is `pool property value source`; unknown properties are ignored.

    Raises:
        FormatError: If a row is too short or a value cannot be converted
    """
    fields = {"name": name}
    for row in rows:
        if len(row) < 3:
            raise FormatError(UNEXPECTED_OUTPUT)
        prop, value = row[1], row[2]
        if prop in ("name", "health"):
            fields[prop] = to_text(value)
        elif prop in ("allocated", "size", "free", "freeing", "leaked"):
            fields[prop] = to_uint(value)
        elif prop == "fragmentation":
            fields[prop] = to_percent(value)
        elif prop == "readonly":
            fields[prop] = to_bool(value)
        elif prop == "dedupratio":
            fields[prop] = to_ratio(value)
    return Zpool(**fields)
