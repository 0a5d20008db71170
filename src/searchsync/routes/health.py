"""Health check endpoints for liveness and readiness probes."""
import asyncio
from typing import Literal

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from searchsync.errors import ExternalCallError
from searchsync.lifecycle import SyncRuntime

router = APIRouter(prefix="/health", tags=["health"])


class LivenessResponse(BaseModel):
    """Response model for liveness probe.

    Attributes:
        status: Always 'alive' when process is running.
    """

    status: Literal["alive"]


class ReadinessCheck(BaseModel):
    """Individual dependency check result.

    Attributes:
        name: Identifier for the dependency being checked.
        status: Result of the check ('ok' or 'failed').
        message: Error details when status is 'failed'.
    """

    name: str
    status: Literal["ok", "failed"]
    message: str | None = None


class ReadinessResponse(BaseModel):
    """Response model for readiness probe.

    Attributes:
        status: Overall readiness ('ready' or 'not_ready').
        bulk_mode: Whether write synchronization is suspended.
        checks: List of individual dependency check results.
    """

    status: Literal["ready", "not_ready"]
    bulk_mode: bool
    checks: list[ReadinessCheck]


def _check_indexes(runtime: SyncRuntime) -> ReadinessCheck:
    count = len(runtime.config.registry)
    if count:
        return ReadinessCheck(name="indexes", status="ok")
    return ReadinessCheck(name="indexes", status="failed", message="No indexes configured")


async def _check_backend(runtime: SyncRuntime) -> ReadinessCheck:
    try:
        await asyncio.to_thread(runtime.backend.check)
        return ReadinessCheck(name="backend", status="ok")
    except ExternalCallError as e:
        return ReadinessCheck(name="backend", status="failed", message=str(e))


@router.get("/live", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness probe endpoint.

    Returns:
        Liveness status response.
    """
    return LivenessResponse(status="alive")


@router.get("/ready", response_model=ReadinessResponse)
async def readiness(request: Request) -> JSONResponse:
    """Readiness probe endpoint.

    Validates that indexes are configured and the search daemon answers.
    Returns 200 if all checks pass, 503 if any fail.

    Returns:
        Readiness status with individual check results.
    """
    runtime: SyncRuntime = request.app.state.runtime
    checks = [
        _check_indexes(runtime),
        await _check_backend(runtime),
    ]
    all_ok = all(c.status == "ok" for c in checks)
    response = ReadinessResponse(
        status="ready" if all_ok else "not_ready",
        bulk_mode=runtime.indexing.bulk_mode,
        checks=checks,
    )
    code = status.HTTP_200_OK if all_ok else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(content=response.model_dump(), status_code=code)
