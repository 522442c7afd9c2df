"""
Configuration loader for pyzfs.

Settings describe how the ZFS tools are reached (local or over SSH, with or
without sudo) and where the API listens.
"""

from __future__ import annotations

import configparser
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from pyzfs.cli.lib.runner import Executor, LoggingCommandLogger, SSHExecutor
from pyzfs.cli.lib.zfs import Client


DEFAULT_CONFIG_PATH = Path("/etc/pyzfs/pyzfs.conf")

_TRUE = {"1", "yes", "true", "on"}
_FALSE = {"0", "no", "false", "off"}


@dataclass(frozen=True)
class ZfsConfig:
    sudo: bool = False
    sudo_command: str = "sudo"
    zfs_command: str = "zfs"
    zpool_command: str = "zpool"
    ssh_host: Optional[str] = None
    ssh_user: Optional[str] = None
    ssh_port: Optional[int] = None
    ssh_options: Tuple[str, ...] = field(default_factory=tuple)
    platform: Optional[str] = None
    log_commands: bool = False
    api_host: str = "127.0.0.1"
    api_port: int = 8080


def _config_path() -> Path:
    env = os.environ.get("PYZFS_CONFIG_PATH")
    if env:
        return Path(env)
    return DEFAULT_CONFIG_PATH


def _read_ini(path: Path) -> configparser.ConfigParser:
    parser = configparser.ConfigParser()
    if path.exists():
        parser.read(path, encoding="utf-8")
    return parser


def load_config() -> ZfsConfig:
    """
    Load config from `PYZFS_CONFIG_PATH` or `/etc/pyzfs/pyzfs.conf`.

    Missing files are not an error; defaults are returned.
    """
    parser = _read_ini(_config_path())
    section = parser["zfs"] if parser.has_section("zfs") else {}

    def _get(key: str, default: str) -> str:
        return str(section.get(key, default)).strip()

    def _get_int(key: str, default: Optional[int]) -> Optional[int]:
        raw = _get(key, "")
        if not raw:
            return default
        try:
            return int(raw)
        except ValueError:
            return default

    def _get_bool(key: str, default: bool) -> bool:
        raw = _get(key, "").lower()
        if raw in _TRUE:
            return True
        if raw in _FALSE:
            return False
        return default

    ssh_options = tuple(o.strip() for o in _get("ssh_options", "").split(",") if o.strip())

    return ZfsConfig(
        sudo=_get_bool("sudo", False),
        sudo_command=_get("sudo_command", "sudo"),
        zfs_command=_get("zfs_command", "zfs"),
        zpool_command=_get("zpool_command", "zpool"),
        ssh_host=_get("ssh_host", "") or None,
        ssh_user=_get("ssh_user", "") or None,
        ssh_port=_get_int("ssh_port", None),
        ssh_options=ssh_options,
        platform=_get("platform", "") or None,
        log_commands=_get_bool("log_commands", False),
        api_host=_get("api_host", "127.0.0.1"),
        api_port=_get_int("api_port", 8080),
    )


def client_from_config(cfg: ZfsConfig, *, sudo: Optional[bool] = None) -> Client:
    """
    Build a Client for the settings in `cfg`.

    Args:
        cfg: Loaded configuration
        sudo: Override `cfg.sudo`
    """
    executor: Optional[Executor] = None
    if cfg.ssh_host:
        executor = SSHExecutor(cfg.ssh_host, user=cfg.ssh_user, port=cfg.ssh_port, options=cfg.ssh_options)

    return Client(
        executor,
        sudo=cfg.sudo if sudo is None else sudo,
        sudo_command=cfg.sudo_command,
        logger=LoggingCommandLogger() if cfg.log_commands else None,
        platform=cfg.platform,
        zfs_command=cfg.zfs_command,
        zpool_command=cfg.zpool_command,
    )
