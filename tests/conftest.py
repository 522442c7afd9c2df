"""
Pytest configuration and fixtures.
"""

import shutil
import tempfile
from pathlib import Path
import pytest

from pyzfs.cli.lib.runner import Executor
from pyzfs.cli.lib.zfs import Client


class FakeExecutor(Executor):
    """Executor returning queued outputs and recording every command."""

    def __init__(self):
        self.calls = []
        self.stdin_data = []
        self.responses = []

    def add(self, stdout: str = "", stderr: str = "", returncode: int = 0) -> "FakeExecutor":
        self.responses.append((stdout.encode(), stderr.encode(), returncode))
        return self

    def run(self, stdin, stdout, stderr, command, *args):
        self.calls.append([command, *args])
        if stdin is not None:
            self.stdin_data.append(stdin.read())
        out, err, returncode = self.responses.pop(0) if self.responses else (b"", b"", 0)
        stdout.write(out)
        stderr.write(err)
        return returncode


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path)


@pytest.fixture
def fake_executor():
    """Executor double with canned command output."""
    return FakeExecutor()


@pytest.fixture
def client(fake_executor):
    """Client running commands through the fake executor on Linux."""
    return Client(fake_executor, platform="linux")


@pytest.fixture
def solaris_client(fake_executor):
    """Client running commands through the fake executor on Solaris."""
    return Client(fake_executor, platform="sunos5")


@pytest.fixture
def isolated_config(monkeypatch, temp_dir):
    """Point the config loader at a missing file so defaults are used."""
    monkeypatch.setenv("PYZFS_CONFIG_PATH", str(temp_dir / "missing.conf"))
    return temp_dir
