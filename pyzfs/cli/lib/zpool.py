"""
ZFS pool operations.

Pool states are described in zpoolconcepts(7).
"""

from typing import List, Mapping, Optional

from pyzfs.cli.lib.properties import ZPOOL_PROPERTIES, Dataset, Zpool, parse_zpool
from pyzfs.cli.lib.runner import CommandResult

ZPOOL_ONLINE = "ONLINE"
ZPOOL_DEGRADED = "DEGRADED"
ZPOOL_FAULTED = "FAULTED"
ZPOOL_OFFLINE = "OFFLINE"
ZPOOL_UNAVAIL = "UNAVAIL"
ZPOOL_REMOVED = "REMOVED"


def properties_args(properties: Optional[Mapping[str, str]]) -> List[str]:
    args = []
    for key, value in (properties or {}).items():
        args.extend(["-o", f"{key}={value}"])
    return args


class ZpoolMixin:
    """Pool operations of `Client`."""

    def _zpool(self, *args: str) -> CommandResult:
        return self.runner.run(self.zpool_command, *args)

    def get_zpool(self, name: str) -> Zpool:
        """
        Retrieve a single pool by name.

        Raises:
            ExecutionError: If the pool does not exist or zpool fails
            FormatError: If the output cannot be parsed
        """
        out = self._zpool("get", "-Hp", ",".join(ZPOOL_PROPERTIES), name)
        return parse_zpool(out, name)

    def list_zpools(self) -> List[Zpool]:
        """List all pools visible on the system."""
        out = self._zpool("list", "-Ho", "name")
        return [self.get_zpool(line[0]) for line in out if line]

    def create_zpool(self, name: str, properties: Optional[Mapping[str, str]] = None, *args: str) -> Zpool:
        """
        Create a pool.

        Args:
            name: Pool name
            properties: Pool properties passed as `-o key=value`
            args: Vdev specification (e.g., "mirror", "/dev/sda", "/dev/sdb")

        Returns:
            The created pool
        """
        self._zpool("create", *properties_args(properties), name, *args)
        return self.get_zpool(name)

    def destroy_zpool(self, name: str) -> None:
        self._zpool("destroy", name)

    def zpool_datasets(self, name: str) -> List[Dataset]:
        return self.datasets(name)

    def zpool_snapshots(self, name: str) -> List[Dataset]:
        return self.snapshots(name)
