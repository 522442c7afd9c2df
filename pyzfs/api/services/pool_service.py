"""
Pool service layer.
"""

from dataclasses import asdict
from typing import Any, Dict, List

from pyzfs.cli.lib.config import client_from_config, load_config
from pyzfs.cli.lib.validators import validate_dataset_name


def list_pools() -> List[Dict[str, Any]]:
    return [asdict(pool) for pool in client_from_config(load_config()).list_zpools()]


def get_pool(name: str) -> Dict[str, Any]:
    validate_dataset_name(name)
    return asdict(client_from_config(load_config()).get_zpool(name))
