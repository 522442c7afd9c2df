#!/usr/bin/env python3
"""
Entry point for pyzfs CLI tool.
"""

import sys

from pyzfs.cli.cli import main

if __name__ == "__main__":
    sys.exit(main())
