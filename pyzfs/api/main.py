"""
FastAPI main application.
"""

import logging
import uuid
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from pyzfs.api.models import (
    DatasetListResponse,
    DatasetResponse,
    DatasetType,
    DiffResponse,
    ZpoolListResponse,
    ZpoolResponse,
)
from pyzfs.api.services import dataset_service, pool_service
from pyzfs.cli.lib.exceptions import ExecutionError, FormatError

app = FastAPI(title="pyzfs API", description="Read-only REST API for ZFS datasets and pools", version="0.1.0")
logger = logging.getLogger(__name__)


def _error(status_code: int, code: str, message: str, details: Dict[str, Any]) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "request_id": str(uuid.uuid4()),
            "status": "error",
            "error": {"code": code, "message": message, "details": details},
        },
    )


@app.exception_handler(ExecutionError)
async def execution_error_handler(request: Request, exc: ExecutionError) -> JSONResponse:
    """Command failures are reported with the tool's stderr."""
    logger.warning("Command failed (path=%s): %s", request.url.path, exc)
    return _error(502, "COMMAND_FAILED", exc.message, {"command": exc.debug, "stderr": exc.stderr})


@app.exception_handler(FormatError)
async def format_error_handler(request: Request, exc: FormatError) -> JSONResponse:
    logger.error("Unexpected command output (path=%s): %s", request.url.path, exc)
    details: Dict[str, Any] = {}
    if exc.line_number is not None:
        details = {"line_number": exc.line_number, "raw_line": exc.raw_line}
    return _error(500, "UNEXPECTED_OUTPUT", exc.message, details)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler."""
    request_id = str(uuid.uuid4())
    logger.exception("Unhandled error (request_id=%s, path=%s)", request_id, request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "request_id": request_id,
            "status": "error",
            "error": {"code": "INTERNAL_ERROR", "message": "Internal server error", "details": {}},
        },
    )


# Dataset endpoints


@app.get("/v1/datasets", response_model=DatasetListResponse)
def list_datasets(
    type: DatasetType = Query(DatasetType.ALL, description="Dataset type"),
    filter: Optional[str] = Query(None, description="Only list this dataset and its descendants"),
) -> Dict[str, Any]:
    """
    List datasets.
    """
    request_id = str(uuid.uuid4())
    try:
        items = dataset_service.list_datasets(type.value, filter or "")
        return {"request_id": request_id, "status": "ok", "data": {"items": items}}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/v1/datasets/{name:path}/children", response_model=DatasetListResponse)
def list_children(
    name: str,
    depth: int = Query(0, ge=0, description="Recursion depth (0: unlimited)"),
) -> Dict[str, Any]:
    """
    List the descendants of a dataset.
    """
    request_id = str(uuid.uuid4())
    try:
        items = dataset_service.list_children(name, depth)
        return {"request_id": request_id, "status": "ok", "data": {"items": items}}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/v1/datasets/{name:path}/diff", response_model=DiffResponse)
def diff_dataset(
    name: str,
    snapshot: str = Query(..., description="Snapshot to compare from (pool/fs@snap)"),
) -> Dict[str, Any]:
    """
    List changes between a snapshot and a dataset.
    """
    request_id = str(uuid.uuid4())
    try:
        changes = dataset_service.diff(name, snapshot)
        return {
            "request_id": request_id,
            "status": "ok",
            "data": {"snapshot": snapshot, "dataset": name, "changes": changes},
        }
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/v1/datasets/{name:path}", response_model=DatasetResponse)
def get_dataset(name: str) -> Dict[str, Any]:
    """
    Get a single dataset.
    """
    request_id = str(uuid.uuid4())
    try:
        result = dataset_service.get_dataset(name)
        return {"request_id": request_id, "status": "ok", "data": {"dataset": result}}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# Pool endpoints


@app.get("/v1/pools", response_model=ZpoolListResponse)
def list_pools() -> Dict[str, Any]:
    """
    List pools.
    """
    request_id = str(uuid.uuid4())
    items = pool_service.list_pools()
    return {"request_id": request_id, "status": "ok", "data": {"items": items}}


@app.get("/v1/pools/{name}", response_model=ZpoolResponse)
def get_pool(name: str) -> Dict[str, Any]:
    """
    Get a single pool.
    """
    request_id = str(uuid.uuid4())
    try:
        result = pool_service.get_pool(name)
        return {"request_id": request_id, "status": "ok", "data": {"pool": result}}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
