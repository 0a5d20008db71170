"""FastAPI application factory and lifespan management."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from searchsync.backend.memory import InMemoryBackend
from searchsync.backend.protocol import SearchBackend
from searchsync.config import Settings
from searchsync.errors import (
    ConfigurationError,
    ExternalCallError,
    InvalidArgumentError,
    SearchSyncError,
    UnknownTypeError,
)
from searchsync.lifecycle import SyncRuntime, warn_if_bulk_mode
from searchsync.loader import load_config
from searchsync.middleware.auth import APIKeyMiddleware
from searchsync.middleware.logging import RequestLoggingMiddleware
from searchsync.routes import health, indexing, records, schema, search
from searchsync.sync.state import IndexingState

logger = structlog.get_logger()

_ERROR_STATUS: dict[type[SearchSyncError], int] = {
    UnknownTypeError: status.HTTP_404_NOT_FOUND,
    InvalidArgumentError: 422,
    ConfigurationError: status.HTTP_409_CONFLICT,
    ExternalCallError: status.HTTP_502_BAD_GATEWAY,
}


def build_runtime(settings: Settings, backend: SearchBackend | None = None) -> SyncRuntime:
    """Load the configuration file and wire a runtime around ``backend``.

    Raises:
        ConfigFileError: If the file cannot be read or is invalid.
        ConfigurationError: If the schema or index topology is inconsistent.
    """
    config = load_config(settings.config_path)
    if backend is None:
        logger.warning("using_in_memory_backend")
        backend = InMemoryBackend()
    return SyncRuntime(
        config,
        backend,
        IndexingState(bulk_mode=settings.start_in_bulk_mode),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle events.

    Loads the configuration (unless a runtime was injected) and runs the
    initial full rebuild before serving requests.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = app.state.settings
    logger.info("api_startup", host=settings.host, port=settings.port)

    runtime: SyncRuntime | None = getattr(app.state, "runtime", None)
    if runtime is None:
        runtime = build_runtime(settings, app.state.backend)
        app.state.runtime = runtime

    if settings.reindex_on_startup and not runtime.indexing.bulk_mode:
        rebuilt = await asyncio.to_thread(runtime.coordinator.bootstrap)
        logger.info("search_indexes_ready", indexes=rebuilt)

    try:
        yield
    finally:
        warn_if_bulk_mode(runtime)
        logger.info("api_shutdown")


async def _handle_sync_error(request: Request, exc: Exception) -> JSONResponse:
    code = next(
        (code for error_type, code in _ERROR_STATUS.items() if isinstance(exc, error_type)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    logger.warning(
        "request_failed",
        path=request.url.path,
        error_type=type(exc).__name__,
        error=str(exc),
        status=code,
    )
    return JSONResponse(status_code=code, content={"error": str(exc)})


def create_app(
    settings: Settings | None = None,
    runtime: SyncRuntime | None = None,
    backend: SearchBackend | None = None,
) -> FastAPI:
    """Factory function to create configured FastAPI application.

    Args:
        settings: Configuration instance. Creates default if None.
        runtime: Prebuilt runtime; when None it is built at startup from
            ``settings.config_path``.
        backend: Search daemon control channel used when building the
            runtime. Defaults to an in-memory backend.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title="searchsync",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/api/v1/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/api/v1/openapi.json" if settings.debug else None,
    )
    app.state.settings = settings
    app.state.runtime = runtime
    app.state.backend = backend

    app.add_exception_handler(SearchSyncError, _handle_sync_error)
    app.add_middleware(RequestLoggingMiddleware)
    if settings.key:
        app.add_middleware(APIKeyMiddleware, api_key=settings.key)

    app.include_router(health.router, prefix="/api/v1")
    app.include_router(search.router, prefix="/api/v1")
    app.include_router(records.router, prefix="/api/v1")
    app.include_router(indexing.router, prefix="/api/v1")
    app.include_router(schema.router, prefix="/api/v1")

    return app
