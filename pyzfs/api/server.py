"""
Uvicorn server entrypoint for the pyzfs API.
"""

from __future__ import annotations

import argparse
import os

import uvicorn

from pyzfs.cli.lib.config import load_config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pyzfs-api", description="pyzfs read-only REST API server")
    parser.add_argument("--host", default=None, help="Bind host (default: from config or 127.0.0.1)")
    parser.add_argument("--port", type=int, default=None, help="Bind port (default: from config or 8080)")
    parser.add_argument("--log-level", default="info", help="Uvicorn log level (default: info)")
    parser.add_argument("--config", default=None, help="Config file (default: $PYZFS_CONFIG_PATH or /etc/pyzfs/pyzfs.conf)")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.config:
        os.environ["PYZFS_CONFIG_PATH"] = args.config
    cfg = load_config()
    host = args.host or cfg.api_host
    port = args.port or cfg.api_port
    uvicorn.run("pyzfs.api.main:app", host=host, port=port, log_level=args.log_level)
    return 0
