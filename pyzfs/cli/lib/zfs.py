"""
Client for the ZFS command line tools.

A full list of ZFS properties is in zfsprops(7).
"""

import enum
import logging
from typing import BinaryIO, Dict, List, Mapping, Optional

from pyzfs.cli.lib.diff import InodeChange, parse_inode_changes
from pyzfs.cli.lib.exceptions import FormatError
from pyzfs.cli.lib.properties import (
    UNEXPECTED_OUTPUT,
    Dataset,
    dataset_property_list,
    group_dataset_lines,
    parse_batch,
    parse_dataset_line,
)
from pyzfs.cli.lib.runner import CommandLogger, CommandResult, Executor, Runner
from pyzfs.cli.lib.zpool import ZpoolMixin, properties_args

logger = logging.getLogger(__name__)

DATASET_FILESYSTEM = "filesystem"
DATASET_SNAPSHOT = "snapshot"
DATASET_VOLUME = "volume"
DATASET_ALL = "all"


class DestroyFlag(enum.IntFlag):
    """Options for `Client.destroy`."""

    DEFAULT = 1
    RECURSIVE = 2
    RECURSIVE_CLONES = 4
    DEFER_DELETION = 8
    FORCE_UMOUNT = 16


def _check_property_rows(rows: CommandResult) -> None:
    # Rows are `name property value source`
    if any(len(row) < 3 for row in rows):
        raise FormatError(UNEXPECTED_OUTPUT)


class Client(ZpoolMixin):
    """
    Runs `zfs` and `zpool` and parses their output.

    Args:
        executor: How commands are executed (default: local processes)
        sudo: Prefix every command with `sudo_command`
        sudo_command: Privilege escalation command (default: "sudo")
        logger: Hook called with every command before and after execution
        platform: Platform of the host running the tools (default:
            `sys.platform`); decides which properties are parsed
        zfs_command: Name or path of the zfs binary
        zpool_command: Name or path of the zpool binary
    """

    def __init__(
        self,
        executor: Optional[Executor] = None,
        *,
        sudo: bool = False,
        sudo_command: str = "sudo",
        logger: Optional[CommandLogger] = None,
        platform: Optional[str] = None,
        zfs_command: str = "zfs",
        zpool_command: str = "zpool",
    ):
        self.runner = Runner(executor, sudo=sudo, sudo_command=sudo_command, command_logger=logger)
        self.platform = platform
        self.zfs_command = zfs_command
        self.zpool_command = zpool_command

    def _zfs(self, *args: str) -> CommandResult:
        return self.runner.run(self.zfs_command, *args)

    def _property_options(self) -> str:
        return ",".join(dataset_property_list(self.platform))

    # Listing

    def _list_by_type(self, dataset_type: str, filter: str) -> List[Dataset]:
        args = ["list", "-rp", "-t", dataset_type, "-o", "all"]
        if filter:
            args.append(filter)
        return parse_batch(self._zfs(*args), platform=self.platform)

    def datasets(self, filter: str = "") -> List[Dataset]:
        """
        List datasets of every type.

        Args:
            filter: Only list this dataset and its descendants ("" for all)
        """
        return self._list_by_type(DATASET_ALL, filter)

    def snapshots(self, filter: str = "") -> List[Dataset]:
        return self._list_by_type(DATASET_SNAPSHOT, filter)

    def filesystems(self, filter: str = "") -> List[Dataset]:
        return self._list_by_type(DATASET_FILESYSTEM, filter)

    def volumes(self, filter: str = "") -> List[Dataset]:
        return self._list_by_type(DATASET_VOLUME, filter)

    def get_dataset(self, name: str) -> Dataset:
        """
        Retrieve a single dataset of any type by name.

        Raises:
            ExecutionError: If the dataset does not exist or zfs fails
            FormatError: If the output cannot be parsed
        """
        out = self._zfs("list", "-Hp", "-o", self._property_options(), name)
        if len(out) != 1:
            raise FormatError(f"expected one dataset, got {len(out)} rows")
        return parse_dataset_line(out[0], platform=self.platform)

    def children(self, dataset: Dataset, depth: int = 0) -> List[Dataset]:
        """
        List the descendants of a dataset.

        Args:
            dataset: Parent dataset
            depth: Recursion depth, 0 for unlimited
        """
        args = ["list"]
        if depth > 0:
            args.extend(["-d", str(depth)])
        else:
            args.append("-r")
        args.extend(["-t", DATASET_ALL, "-Hp", "-o", self._property_options(), dataset.name])
        datasets = group_dataset_lines(self._zfs(*args), platform=self.platform)
        return datasets[1:]

    def diff(self, dataset: Dataset, snapshot: str) -> List[InodeChange]:
        """
        Return the changes between `snapshot` and `dataset`.

        The snapshot name must include the filesystem part, since a clone
        can be compared with its origin snapshot.
        """
        out = self._zfs("diff", "-FH", snapshot, dataset.name)
        return parse_inode_changes(out)

    # Creation and removal

    def create_filesystem(self, name: str, properties: Optional[Mapping[str, str]] = None) -> Dataset:
        self._zfs("create", *properties_args(properties), name)
        return self.get_dataset(name)

    def create_volume(self, name: str, size: int, properties: Optional[Mapping[str, str]] = None) -> Dataset:
        """
        Create a volume of `size` bytes, creating missing parents.
        """
        self._zfs("create", "-p", "-V", str(size), *properties_args(properties), name)
        return self.get_dataset(name)

    def snapshot(self, dataset: Dataset, name: str, recursive: bool = False) -> Dataset:
        """
        Snapshot `dataset` as `<dataset>@<name>`.

        With `recursive`, snapshots of all descendant filesystems are taken
        in one atomic operation.
        """
        args = ["snapshot"]
        if recursive:
            args.append("-r")
        snap_name = f"{dataset.name}@{name}"
        args.append(snap_name)
        self._zfs(*args)
        return self.get_dataset(snap_name)

    def clone(self, snapshot: Dataset, dest: str, properties: Optional[Mapping[str, str]] = None) -> Dataset:
        if snapshot.type != DATASET_SNAPSHOT:
            raise ValueError("can only clone snapshots")
        self._zfs("clone", "-p", *properties_args(properties), snapshot.name, dest)
        return self.get_dataset(dest)

    def rollback(self, snapshot: Dataset, destroy_more_recent: bool = False) -> None:
        """
        Roll back a dataset to `snapshot`.

        Rolling back past more recent snapshots requires `destroy_more_recent`.
        """
        if snapshot.type != DATASET_SNAPSHOT:
            raise ValueError("can only rollback snapshots")
        args = ["rollback"]
        if destroy_more_recent:
            args.append("-r")
        args.append(snapshot.name)
        self._zfs(*args)

    def destroy(self, dataset: Dataset, flags: DestroyFlag = DestroyFlag.DEFAULT) -> None:
        args = ["destroy"]
        if flags & DestroyFlag.RECURSIVE:
            args.append("-r")
        if flags & DestroyFlag.RECURSIVE_CLONES:
            args.append("-R")
        if flags & DestroyFlag.DEFER_DELETION:
            args.append("-d")
        if flags & DestroyFlag.FORCE_UMOUNT:
            args.append("-f")
        args.append(dataset.name)
        self._zfs(*args)

    def rename(self, dataset: Dataset, name: str, create_parent: bool = False, recursive: bool = False) -> Dataset:
        args = ["rename", dataset.name, name]
        if create_parent:
            args.append("-p")
        if recursive:
            args.append("-r")
        self._zfs(*args)
        return self.get_dataset(name)

    # Mounting

    def mount(self, dataset: Dataset, overlay: bool = False, options: Optional[List[str]] = None) -> Dataset:
        if dataset.type == DATASET_SNAPSHOT:
            raise ValueError("cannot mount snapshots")
        args = ["mount"]
        if overlay:
            args.append("-O")
        if options:
            args.extend(["-o", ",".join(options)])
        args.append(dataset.name)
        self._zfs(*args)
        return self.get_dataset(dataset.name)

    def unmount(self, dataset: Dataset, force: bool = False) -> Dataset:
        if dataset.type == DATASET_SNAPSHOT:
            raise ValueError("cannot unmount snapshots")
        args = ["umount"]
        if force:
            args.append("-f")
        args.append(dataset.name)
        self._zfs(*args)
        return self.get_dataset(dataset.name)

    # Properties

    def set_property(self, dataset: Dataset, key: str, value: str) -> None:
        self._zfs("set", f"{key}={value}", dataset.name)

    def set_properties(self, dataset: Dataset, properties: Mapping[str, str]) -> None:
        if not properties:
            return
        self._zfs("set", *(f"{k}={v}" for k, v in properties.items()), dataset.name)

    def get_property(self, dataset: Dataset, key: str) -> str:
        """
        Return the current value of one property.

        Values containing whitespace are truncated to their first word, as
        the output is split on whitespace.
        """
        out = self._zfs("get", "-H", "-p", key, dataset.name)
        if not out or len(out[0]) < 3:
            raise FormatError(f"no value returned for property {key!r}")
        return out[0][2]

    def get_properties(self, dataset: Dataset, *keys: str) -> List[str]:
        if not keys:
            return []
        out = self._zfs("get", "-H", "-p", ",".join(keys), dataset.name)
        _check_property_rows(out)
        return [row[2] for row in out]

    def get_all_properties(self, dataset: Dataset) -> Dict[str, str]:
        out = self._zfs("get", "-H", "-p", "all", dataset.name)
        _check_property_rows(out)
        return {row[1]: row[2] for row in out}

    # Send and receive

    def receive_snapshot(self, stdin: BinaryIO, name: str) -> Dataset:
        """
        Receive a send stream from `stdin` into a new snapshot `name`.
        """
        self.runner.run(self.zfs_command, "receive", name, stdin=stdin)
        return self.get_dataset(name)

    def send_snapshot(self, snapshot: Dataset, stdout: BinaryIO) -> None:
        """
        Write a send stream of `snapshot` to `stdout`.
        """
        if snapshot.type != DATASET_SNAPSHOT:
            raise ValueError("can only send snapshots")
        self.runner.stream(self.zfs_command, "send", snapshot.name, stdout=stdout)

    def incremental_send(self, base_snapshot: Dataset, snapshot: Dataset, stdout: BinaryIO) -> None:
        """
        Write an incremental send stream from `base_snapshot` to `snapshot`.
        """
        if snapshot.type != DATASET_SNAPSHOT or base_snapshot.type != DATASET_SNAPSHOT:
            raise ValueError("can only send snapshots")
        self.runner.stream(self.zfs_command, "send", "-i", base_snapshot.name, snapshot.name, stdout=stdout)
