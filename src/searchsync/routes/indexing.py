"""Bulk-mode switches and manual reindex triggers."""

import asyncio

from fastapi import APIRouter, Request, status
from pydantic import BaseModel

from searchsync.lifecycle import SyncRuntime

router = APIRouter(tags=["indexing"])


class BulkModeResponse(BaseModel):
    """Bulk-mode state after a request.

    Attributes:
        bulk_mode: Whether write synchronization is suspended.
        reindexed: Indexes rebuilt by the request.
    """

    bulk_mode: bool
    reindexed: list[str] = []


class ReindexRequest(BaseModel):
    """Request body for a manual rebuild.

    Attributes:
        indexes: Index names to rebuild; every index when omitted.
    """

    indexes: list[str] | None = None


class ReindexResponse(BaseModel):
    reindexed: list[str]


@router.get("/bulk", response_model=BulkModeResponse)
async def bulk_status(request: Request) -> BulkModeResponse:
    """Report whether write synchronization is suspended."""
    runtime: SyncRuntime = request.app.state.runtime
    return BulkModeResponse(bulk_mode=runtime.indexing.bulk_mode)


@router.post("/bulk", response_model=BulkModeResponse)
async def enter_bulk_mode(request: Request) -> BulkModeResponse:
    """Suspend write synchronization before a bulk import. Idempotent."""
    runtime: SyncRuntime = request.app.state.runtime
    runtime.coordinator.enter_bulk_mode()
    return BulkModeResponse(bulk_mode=True)


@router.delete("/bulk", response_model=BulkModeResponse)
async def exit_bulk_mode(request: Request) -> BulkModeResponse:
    """Resume write synchronization and rebuild every index.

    Returns:
        The rebuilt index names.
    """
    runtime: SyncRuntime = request.app.state.runtime
    reindexed = await asyncio.to_thread(runtime.coordinator.exit_bulk_mode)
    return BulkModeResponse(bulk_mode=False, reindexed=reindexed)


@router.post(
    "/reindex",
    response_model=ReindexResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={409: {"description": "Unknown index name"}},
)
async def reindex(request: Request, body: ReindexRequest) -> ReindexResponse:
    """Trigger a rebuild of the named indexes, or of all of them.

    Args:
        request: FastAPI request (provides access to app state).
        body: Index names to rebuild.

    Returns:
        The index names handed to the search daemon.
    """
    runtime: SyncRuntime = request.app.state.runtime
    coordinator = runtime.coordinator
    if body.indexes is None:
        reindexed = await asyncio.to_thread(coordinator.reindex_all)
    else:
        indexes = [runtime.config.registry.get(name) for name in body.indexes]
        reindexed = await asyncio.to_thread(coordinator.reindex_indexes, indexes)
    return ReindexResponse(reindexed=reindexed)
