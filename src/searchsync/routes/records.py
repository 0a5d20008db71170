"""Write and delete hooks called by the data layer after a mutation."""

import asyncio

import structlog
from fastapi import APIRouter, Request

from searchsync.indexable import Record
from searchsync.lifecycle import SyncRuntime
from searchsync.sync.coordinator import SyncResult

logger = structlog.get_logger()

router = APIRouter(prefix="/records", tags=["records"])


@router.post(
    "/write",
    response_model=SyncResult,
    responses={502: {"description": "Search daemon rejected the update"}},
)
async def record_written(request: Request, record: Record) -> SyncResult:
    """Mark the record dirty in primary indexes and rebuild its delta indexes.

    A no-op while bulk mode is active.

    Args:
        request: FastAPI request (provides access to app state).
        record: The written record.

    Returns:
        Indexes touched, or the reason the write was skipped.
    """
    runtime: SyncRuntime = request.app.state.runtime
    return await asyncio.to_thread(runtime.coordinator.on_write, record)


@router.post(
    "/delete",
    response_model=SyncResult,
    responses={502: {"description": "Search daemon rejected the update"}},
)
async def record_deleted(request: Request, record: Record) -> SyncResult:
    """Same as ``/write`` for a deleted record."""
    runtime: SyncRuntime = request.app.state.runtime
    return await asyncio.to_thread(runtime.coordinator.on_delete, record)
