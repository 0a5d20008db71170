"""API key authentication for the sync endpoints."""

import secrets
from collections.abc import Awaitable, Callable, Iterable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = structlog.get_logger()

API_KEY_HEADER = "X-API-Key"

DEFAULT_PUBLIC_PATHS = frozenset({"/api/v1/health/live", "/api/v1/health/ready"})


def presented_key(request: Request) -> str:
    """Key from ``X-API-Key``, or from an ``Authorization: Bearer`` header."""
    key = request.headers.get(API_KEY_HEADER, "")
    if key:
        return key
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    return token.strip() if scheme.lower() == "bearer" else ""


class APIKeyMiddleware(BaseHTTPMiddleware):
    """Reject requests without a valid API key.

    Write hooks and bulk-mode switches change index state, so everything
    except the health probes requires the key.
    """

    def __init__(
        self,
        app: Callable[..., Awaitable[Response]],
        api_key: str,
        public_paths: Iterable[str] = DEFAULT_PUBLIC_PATHS,
    ) -> None:
        super().__init__(app)  # type: ignore[arg-type]
        self._api_key = api_key
        self._public_paths = frozenset(public_paths)

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        if request.url.path in self._public_paths:
            return await call_next(request)

        key = presented_key(request)
        if not (key and secrets.compare_digest(key, self._api_key)):
            logger.warning("auth_rejected", path=request.url.path, key_present=bool(key))
            return JSONResponse(
                status_code=401,
                content={"error": f"Missing or invalid {API_KEY_HEADER} header"},
            )

        return await call_next(request)
