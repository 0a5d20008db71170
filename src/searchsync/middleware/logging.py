"""Request logging middleware."""
import time
import uuid
from collections.abc import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from searchsync.logging import bind_sync_context, clear_sync_context

logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"

_PROBE_PREFIX = "/api/v1/health/"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag every log line emitted during a request with its request ID.

    The ID is taken from ``X-Request-ID`` when the caller sends one and is
    echoed back on the response, so a write hook can be traced from the
    store through to the backend calls it triggered. Health probes are
    served without logging.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        if request.url.path.startswith(_PROBE_PREFIX):
            return await call_next(request)

        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        clear_sync_context()
        bind_sync_context(request_id=request_id)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            elapsed_ms = round((time.perf_counter() - start) * 1000, 2)

        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            "http_request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=elapsed_ms,
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
