"""
Pydantic models for API responses.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class DatasetType(str, Enum):
    """Dataset type filter values."""

    ALL = "all"
    FILESYSTEM = "filesystem"
    SNAPSHOT = "snapshot"
    VOLUME = "volume"


# Dataset Models


class Dataset(BaseModel):
    """A ZFS dataset."""

    name: str = Field(..., description="Dataset name")
    type: str = Field(..., description="filesystem, snapshot or volume")
    origin: str = Field("", description="Origin snapshot of a clone")
    used: int = Field(0, description="Space used in bytes", ge=0)
    avail: int = Field(0, description="Space available in bytes", ge=0)
    mountpoint: str = Field("", description="Mount point")
    compression: str = Field("", description="Compression algorithm")
    volsize: int = Field(0, description="Volume size in bytes", ge=0)
    quota: int = Field(0, description="Quota in bytes", ge=0)
    referenced: int = Field(0, description="Referenced bytes", ge=0)
    written: int = Field(0, description="Bytes written since the previous snapshot", ge=0)
    logicalused: int = Field(0, description="Logical space used in bytes", ge=0)
    usedbydataset: int = Field(0, description="Space used by the dataset itself", ge=0)


class DatasetData(BaseModel):
    dataset: Dataset


class DatasetResponse(BaseModel):
    request_id: str
    status: str
    data: DatasetData


class DatasetListData(BaseModel):
    items: List[Dataset]


class DatasetListResponse(BaseModel):
    request_id: str
    status: str
    data: DatasetListData


# Diff Models


class InodeChange(BaseModel):
    """One change reported by zfs diff."""

    change: str = Field(..., description="removed, created, modified or renamed")
    type: str = Field(..., description="Inode type (e.g., file, directory)")
    path: str
    new_path: Optional[str] = Field(None, description="New path of a renamed inode")
    reference_count_change: int = Field(0, description="Link count change of a modified inode")


class DiffData(BaseModel):
    snapshot: str
    dataset: str
    changes: List[InodeChange]


class DiffResponse(BaseModel):
    request_id: str
    status: str
    data: DiffData


# Pool Models


class Zpool(BaseModel):
    """A ZFS pool."""

    name: str
    health: str
    allocated: int = Field(0, ge=0)
    size: int = Field(0, ge=0)
    free: int = Field(0, ge=0)
    fragmentation: int = Field(0, description="Fragmentation in percent", ge=0)
    readonly: bool = False
    freeing: int = Field(0, ge=0)
    leaked: int = Field(0, ge=0)
    dedupratio: float = Field(0.0, description="Deduplication ratio", ge=0)


class ZpoolData(BaseModel):
    pool: Zpool


class ZpoolResponse(BaseModel):
    request_id: str
    status: str
    data: ZpoolData


class ZpoolListData(BaseModel):
    items: List[Zpool]


class ZpoolListResponse(BaseModel):
    request_id: str
    status: str
    data: ZpoolListData
