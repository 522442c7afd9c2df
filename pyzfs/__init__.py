"""
pyzfs - wrappers around the ZFS command line tools.

This package runs `zfs` and `zpool` locally or over SSH and parses their
output into typed records, with a CLI tool and a read-only REST API on top.
"""

from pyzfs.cli.lib.diff import ChangeType, InodeChange, InodeType
from pyzfs.cli.lib.exceptions import ExecutionError, FormatError, ZfsError
from pyzfs.cli.lib.properties import Dataset, Zpool
from pyzfs.cli.lib.runner import CommandLogger, Executor, LocalExecutor, SSHExecutor
from pyzfs.cli.lib.zfs import Client, DestroyFlag

__version__ = "0.1.0"
__all__ = [
    "ChangeType",
    "Client",
    "CommandLogger",
    "Dataset",
    "DestroyFlag",
    "ExecutionError",
    "Executor",
    "FormatError",
    "InodeChange",
    "InodeType",
    "LocalExecutor",
    "SSHExecutor",
    "ZfsError",
    "Zpool",
    "api",
    "cli",
]
