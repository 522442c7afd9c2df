"""
Unit tests for the zfs client.
"""

import io

import pytest

from pyzfs.cli.lib.diff import ChangeType
from pyzfs.cli.lib.exceptions import ExecutionError, FormatError
from pyzfs.cli.lib.properties import Dataset
from pyzfs.cli.lib.zfs import DestroyFlag

PROPS = "name,origin,used,available,mountpoint,compression,type,volsize,quota,referenced,written,logicalused,usedbydataset"
SOLARIS_PROPS = "name,origin,used,available,mountpoint,compression,type,volsize,quota,referenced"

LIST_ALL = (
    "NAME TYPE USED AVAIL REFER MOUNTPOINT ORIGIN COMPRESS VOLSIZE QUOTA WRITTEN LUSED USEDDS RATIO\n"
    "tank filesystem 4096 8192 2048 /tank - lz4 - 0 512 3072 2048 1.00x\n"
    "tank/home filesystem 1024 8192 1024 /tank/home - lz4 - 0 0 1024 1024 1.00x\n"
)


def _line(name, dataset_type="filesystem", mountpoint=None):
    mountpoint = mountpoint or "/" + name
    return f"{name}\t-\t100\t200\t{mountpoint}\tlz4\t{dataset_type}\t-\t0\t300\t10\t20\t30\n"


FS = Dataset(name="tank/home", type="filesystem")
SNAP = Dataset(name="tank/home@monday", type="snapshot")


class TestListing:
    """Tests for dataset listing."""

    @pytest.mark.unit
    def test_datasets(self, client, fake_executor):
        fake_executor.add(stdout=LIST_ALL)

        datasets = client.datasets()

        assert fake_executor.calls == [["zfs", "list", "-rp", "-t", "all", "-o", "all"]]
        assert [ds.name for ds in datasets] == ["tank", "tank/home"]
        assert datasets[0].used == 4096
        assert datasets[0].logicalused == 3072

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "method,dataset_type", [("snapshots", "snapshot"), ("filesystems", "filesystem"), ("volumes", "volume")]
    )
    def test_typed_listing_with_filter(self, client, fake_executor, method, dataset_type):
        fake_executor.add(stdout="")

        assert getattr(client, method)("tank") == []
        assert fake_executor.calls == [["zfs", "list", "-rp", "-t", dataset_type, "-o", "all", "tank"]]

    @pytest.mark.unit
    def test_get_dataset(self, client, fake_executor):
        fake_executor.add(stdout=_line("tank/home"))

        ds = client.get_dataset("tank/home")

        assert fake_executor.calls == [["zfs", "list", "-Hp", "-o", PROPS, "tank/home"]]
        assert ds.name == "tank/home"
        assert ds.avail == 200
        assert ds.usedbydataset == 30

    @pytest.mark.unit
    def test_get_dataset_solaris(self, solaris_client, fake_executor):
        fake_executor.add(stdout="tank\t-\t100\t200\t/tank\tlz4\tfilesystem\t-\t0\t300\n")

        ds = solaris_client.get_dataset("tank")

        assert fake_executor.calls[0][4] == SOLARIS_PROPS
        assert ds.referenced == 300
        assert ds.written == 0

    @pytest.mark.unit
    def test_get_dataset_missing(self, client, fake_executor):
        fake_executor.add(stderr="cannot open 'tank/nope': dataset does not exist\n", returncode=1)

        with pytest.raises(ExecutionError, match="dataset does not exist"):
            client.get_dataset("tank/nope")

    @pytest.mark.unit
    def test_get_dataset_with_spaces_in_mountpoint(self, client, fake_executor):
        """Test a mountpoint containing a space breaks the field count."""
        fake_executor.add(stdout=_line("tank/home", mountpoint="/mnt/my home"))

        with pytest.raises(FormatError):
            client.get_dataset("tank/home")

    @pytest.mark.unit
    def test_children(self, client, fake_executor):
        fake_executor.add(stdout=_line("tank/home") + _line("tank/home/a") + _line("tank/home@snap", "snapshot"))

        children = client.children(FS)

        assert fake_executor.calls == [["zfs", "list", "-r", "-t", "all", "-Hp", "-o", PROPS, "tank/home"]]
        assert [ds.name for ds in children] == ["tank/home/a", "tank/home@snap"]

    @pytest.mark.unit
    def test_children_depth(self, client, fake_executor):
        fake_executor.add(stdout=_line("tank/home"))

        assert client.children(FS, depth=1) == []
        assert fake_executor.calls[0][:4] == ["zfs", "list", "-d", "1"]

    @pytest.mark.unit
    def test_diff(self, client, fake_executor):
        fake_executor.add(
            stdout="M\t/\t/tank/home/\n+\tF\t/tank/home/new\\040file\nM\tF\t/tank/home/x\t(+1)\n"
        )

        changes = client.diff(FS, "tank/home@monday")

        assert fake_executor.calls == [["zfs", "diff", "-FH", "tank/home@monday", "tank/home"]]
        assert [c.change for c in changes] == [ChangeType.MODIFIED, ChangeType.CREATED, ChangeType.MODIFIED]
        assert changes[1].path == "/tank/home/new file"
        assert changes[2].reference_count_change == 1

    @pytest.mark.unit
    def test_diff_bad_line(self, client, fake_executor):
        fake_executor.add(stdout="M\t/\t/tank/home/\n?\tF\t/tank/home/x\n")

        with pytest.raises(FormatError) as exc_info:
            client.diff(FS, "tank/home@monday")
        assert exc_info.value.line_number == 1


class TestMutation:
    """Tests for create/destroy/rename operations."""

    @pytest.mark.unit
    def test_create_filesystem(self, client, fake_executor):
        fake_executor.add().add(stdout=_line("tank/new"))

        ds = client.create_filesystem("tank/new", {"compression": "lz4"})

        assert fake_executor.calls[0] == ["zfs", "create", "-o", "compression=lz4", "tank/new"]
        assert ds.name == "tank/new"

    @pytest.mark.unit
    def test_create_volume(self, client, fake_executor):
        fake_executor.add().add(stdout=_line("tank/vol", "volume"))

        ds = client.create_volume("tank/vol", 1048576, None)

        assert fake_executor.calls[0] == ["zfs", "create", "-p", "-V", "1048576", "tank/vol"]
        assert ds.type == "volume"

    @pytest.mark.unit
    def test_create_fails(self, client, fake_executor):
        fake_executor.add(stderr="cannot create 'tank/new': dataset already exists\n", returncode=1)

        with pytest.raises(ExecutionError):
            client.create_filesystem("tank/new")
        assert len(fake_executor.calls) == 1

    @pytest.mark.unit
    def test_snapshot(self, client, fake_executor):
        fake_executor.add().add(stdout=_line("tank/home@monday", "snapshot"))

        snap = client.snapshot(FS, "monday", recursive=True)

        assert fake_executor.calls[0] == ["zfs", "snapshot", "-r", "tank/home@monday"]
        assert fake_executor.calls[1][-1] == "tank/home@monday"
        assert snap.type == "snapshot"

    @pytest.mark.unit
    def test_clone(self, client, fake_executor):
        fake_executor.add().add(stdout=_line("tank/clone"))

        client.clone(SNAP, "tank/clone", {"mountpoint": "/mnt/clone"})

        assert fake_executor.calls[0] == [
            "zfs", "clone", "-p", "-o", "mountpoint=/mnt/clone", "tank/home@monday", "tank/clone",
        ]

    @pytest.mark.unit
    def test_snapshot_only_operations(self, client, fake_executor):
        with pytest.raises(ValueError, match="can only clone snapshots"):
            client.clone(FS, "tank/clone")
        with pytest.raises(ValueError, match="can only rollback snapshots"):
            client.rollback(FS)
        with pytest.raises(ValueError, match="can only send snapshots"):
            client.send_snapshot(FS, io.BytesIO())
        with pytest.raises(ValueError, match="can only send snapshots"):
            client.incremental_send(FS, SNAP, io.BytesIO())
        assert fake_executor.calls == []

    @pytest.mark.unit
    def test_rollback(self, client, fake_executor):
        client.rollback(SNAP, destroy_more_recent=True)
        assert fake_executor.calls == [["zfs", "rollback", "-r", "tank/home@monday"]]

    @pytest.mark.unit
    def test_destroy_default(self, client, fake_executor):
        client.destroy(FS)
        assert fake_executor.calls == [["zfs", "destroy", "tank/home"]]

    @pytest.mark.unit
    def test_destroy_flags(self, client, fake_executor):
        flags = (
            DestroyFlag.RECURSIVE
            | DestroyFlag.RECURSIVE_CLONES
            | DestroyFlag.DEFER_DELETION
            | DestroyFlag.FORCE_UMOUNT
        )
        client.destroy(FS, flags)
        assert fake_executor.calls == [["zfs", "destroy", "-r", "-R", "-d", "-f", "tank/home"]]

    @pytest.mark.unit
    def test_rename(self, client, fake_executor):
        fake_executor.add().add(stdout=_line("tank/moved/home"))

        ds = client.rename(FS, "tank/moved/home", create_parent=True, recursive=True)

        assert fake_executor.calls[0] == ["zfs", "rename", "tank/home", "tank/moved/home", "-p", "-r"]
        assert ds.name == "tank/moved/home"


class TestMount:
    """Tests for mount and unmount."""

    @pytest.mark.unit
    def test_mount(self, client, fake_executor):
        fake_executor.add().add(stdout=_line("tank/home"))

        client.mount(FS, overlay=True, options=["ro", "noatime"])

        assert fake_executor.calls[0] == ["zfs", "mount", "-O", "-o", "ro,noatime", "tank/home"]

    @pytest.mark.unit
    def test_unmount(self, client, fake_executor):
        fake_executor.add().add(stdout=_line("tank/home"))

        client.unmount(FS, force=True)

        assert fake_executor.calls[0] == ["zfs", "umount", "-f", "tank/home"]

    @pytest.mark.unit
    def test_snapshots_cannot_be_mounted(self, client):
        with pytest.raises(ValueError, match="cannot mount snapshots"):
            client.mount(SNAP)
        with pytest.raises(ValueError, match="cannot unmount snapshots"):
            client.unmount(SNAP)


class TestProperties:
    """Tests for property get/set."""

    @pytest.mark.unit
    def test_set_property(self, client, fake_executor):
        client.set_property(FS, "compression", "zstd")
        assert fake_executor.calls == [["zfs", "set", "compression=zstd", "tank/home"]]

    @pytest.mark.unit
    def test_set_properties(self, client, fake_executor):
        client.set_properties(FS, {"compression": "zstd", "atime": "off"})
        assert fake_executor.calls == [["zfs", "set", "compression=zstd", "atime=off", "tank/home"]]

    @pytest.mark.unit
    def test_set_no_properties(self, client, fake_executor):
        client.set_properties(FS, {})
        assert fake_executor.calls == []

    @pytest.mark.unit
    def test_get_property(self, client, fake_executor):
        fake_executor.add(stdout="tank/home\tcompression\tlz4\tlocal\n")

        assert client.get_property(FS, "compression") == "lz4"
        assert fake_executor.calls == [["zfs", "get", "-H", "-p", "compression", "tank/home"]]

    @pytest.mark.unit
    def test_get_property_with_space_is_truncated(self, client, fake_executor):
        fake_executor.add(stdout="tank/home\tuser:note\thello world\tlocal\n")

        assert client.get_property(FS, "user:note") == "hello"

    @pytest.mark.unit
    def test_get_property_no_output(self, client, fake_executor):
        fake_executor.add(stdout="")

        with pytest.raises(FormatError):
            client.get_property(FS, "compression")

    @pytest.mark.unit
    def test_get_properties(self, client, fake_executor):
        fake_executor.add(stdout="tank/home\tused\t1024\t-\ntank/home\tatime\toff\tlocal\n")

        assert client.get_properties(FS, "used", "atime") == ["1024", "off"]
        assert fake_executor.calls == [["zfs", "get", "-H", "-p", "used,atime", "tank/home"]]

    @pytest.mark.unit
    def test_get_properties_none(self, client, fake_executor):
        assert client.get_properties(FS) == []
        assert fake_executor.calls == []

    @pytest.mark.unit
    def test_get_all_properties(self, client, fake_executor):
        fake_executor.add(stdout="tank/home\tused\t1024\t-\ntank/home\tatime\toff\tlocal\n")

        assert client.get_all_properties(FS) == {"used": "1024", "atime": "off"}

    @pytest.mark.unit
    def test_get_all_properties_short_row(self, client, fake_executor):
        """Test a row without a value is rejected."""
        fake_executor.add(stdout="tank/home\tused\t1024\t-\ntank/home\tcompression\n")

        with pytest.raises(FormatError, match="output does not match what is expected"):
            client.get_all_properties(FS)

    @pytest.mark.unit
    def test_get_properties_short_row(self, client, fake_executor):
        fake_executor.add(stdout="tank/home\n")

        with pytest.raises(FormatError, match="output does not match what is expected"):
            client.get_properties(FS, "used")

    @pytest.mark.unit
    def test_get_properties_blank_row(self, client, fake_executor):
        fake_executor.add(stdout="tank/home\tused\t1024\t-\n\n")

        with pytest.raises(FormatError):
            client.get_properties(FS, "used")


class TestSendReceive:
    """Tests for send/receive streams."""

    @pytest.mark.unit
    def test_send_snapshot(self, client, fake_executor):
        fake_executor.responses.append((b"\x00stream", b"", 0))
        sink = io.BytesIO()

        client.send_snapshot(SNAP, sink)

        assert fake_executor.calls == [["zfs", "send", "tank/home@monday"]]
        assert sink.getvalue() == b"\x00stream"

    @pytest.mark.unit
    def test_incremental_send(self, client, fake_executor):
        base = Dataset(name="tank/home@sunday", type="snapshot")

        client.incremental_send(base, SNAP, io.BytesIO())

        assert fake_executor.calls == [["zfs", "send", "-i", "tank/home@sunday", "tank/home@monday"]]

    @pytest.mark.unit
    def test_receive_snapshot(self, client, fake_executor):
        fake_executor.add().add(stdout=_line("tank/copy@monday", "snapshot"))

        ds = client.receive_snapshot(io.BytesIO(b"\x00stream"), "tank/copy@monday")

        assert fake_executor.calls[0] == ["zfs", "receive", "tank/copy@monday"]
        assert fake_executor.stdin_data == [b"\x00stream"]
        assert ds.name == "tank/copy@monday"

    @pytest.mark.unit
    def test_sudo_applies_to_stream(self, fake_executor):
        from pyzfs.cli.lib.zfs import Client

        client = Client(fake_executor, sudo=True, platform="linux")
        client.send_snapshot(SNAP, io.BytesIO())

        assert fake_executor.calls == [["sudo", "zfs", "send", "tank/home@monday"]]
