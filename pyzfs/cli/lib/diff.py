"""
Parsing of `zfs diff -FH` output.

Example input:

    M       /       /testpool/bar/
    +       F       /testpool/bar/hello.txt
    M       /       /testpool/bar/hello.txt (+1)
    M       /       /testpool/bar/hello-hardlink
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence

from pyzfs.cli.lib.escape import unescape
from pyzfs.cli.lib.exceptions import FormatError


class ChangeType(Enum):
    """Kind of change reported for an inode."""

    REMOVED = "-"
    CREATED = "+"
    MODIFIED = "M"
    RENAMED = "R"

    @classmethod
    def from_code(cls, code: str) -> "ChangeType":
        try:
            return cls(code)
        except ValueError:
            raise FormatError(f"unknown change type '{code}'") from None


class InodeType(Enum):
    """Type of the changed inode."""

    BLOCK_DEVICE = "B"
    CHARACTER_DEVICE = "C"
    DIRECTORY = "/"
    DOOR = ">"
    NAMED_PIPE = "|"
    SYMBOLIC_LINK = "@"
    EVENT_PORT = "P"
    SOCKET = "="
    FILE = "F"

    @classmethod
    def from_code(cls, code: str) -> "InodeType":
        try:
            return cls(code)
        except ValueError:
            raise FormatError(f"unknown inode type '{code}'") from None


@dataclass(frozen=True)
class InodeChange:
    change: ChangeType
    type: InodeType
    path: str
    new_path: str = ""
    reference_count_change: int = 0


REFERENCE_COUNT_RE = re.compile(r"\(([+-][0-9]+)\)")


def parse_reference_count(field: str) -> int:
    """Parse a link count suffix such as "(+1)" or "(-2)"."""
    match = REFERENCE_COUNT_RE.fullmatch(field)
    if match is None:
        raise FormatError("regexp does not match")
    return int(match.group(1))


def _expected_fields(change: ChangeType) -> Sequence[int]:
    if change is ChangeType.RENAMED:
        return (4,)
    if change is ChangeType.MODIFIED:
        return (3, 4)
    return (3,)


def _unescape_field(field: str) -> str:
    try:
        return unescape(field)
    except FormatError as e:
        raise FormatError(f"failed to parse filename: {e}") from e


def parse_inode_change(line: Sequence[str]) -> InodeChange:
    """
    Parse the fields of one `zfs diff -FH` line.

    Raises:
        FormatError: If the line has an unknown code, the wrong number of
            fields, a bad escape or a malformed reference count
    """
    if not line:
        raise FormatError("empty line passed")

    change = ChangeType.from_code(line[0])

    expected = _expected_fields(change)
    if len(line) not in expected:
        expect = "..".join(str(n) for n in expected)
        raise FormatError(f"mismatching number of fields: expect {expect}, got: {len(line)}")

    inode_type = InodeType.from_code(line[1])
    path = _unescape_field(line[2])

    new_path = ""
    reference_count = 0
    if change is ChangeType.RENAMED:
        new_path = _unescape_field(line[3])
    elif change is ChangeType.MODIFIED and len(line) == 4:
        try:
            reference_count = parse_reference_count(line[3])
        except FormatError as e:
            raise FormatError(f"failed to parse reference count: {e}") from e

    return InodeChange(
        change=change,
        type=inode_type,
        path=path,
        new_path=new_path,
        reference_count_change=reference_count,
    )


def parse_inode_changes(lines: Sequence[Sequence[str]]) -> List[InodeChange]:
    """
    Parse all lines of `zfs diff -FH` output.

    The first bad line aborts the whole parse.

    Raises:
        FormatError: With `line_number` and `raw_line` of the failing line
    """
    changes = []
    for i, line in enumerate(lines):
        try:
            changes.append(parse_inode_change(line))
        except FormatError as e:
            raw = " ".join(line)
            raise FormatError(
                f"failed to parse line {i} of zfs diff: {e}, got: '{raw}'",
                line_number=i,
                raw_line=list(line),
            ) from e
    return changes
