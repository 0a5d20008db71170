"""Entry point for the sync service."""

import asyncio
import contextlib
import signal
import sys

import structlog
import uvicorn

from searchsync.app import build_runtime, create_app
from searchsync.config import Settings
from searchsync.errors import SearchSyncError
from searchsync.lifecycle import GracefulShutdown, SyncRuntime
from searchsync.logging import configure_logging

logger = structlog.get_logger()


async def serve(settings: Settings, runtime: SyncRuntime) -> None:
    """Serve the HTTP surface until SIGTERM/SIGINT.

    Args:
        settings: Server configuration.
        runtime: Loaded schema, indexes and coordinator.
    """
    app = create_app(settings, runtime=runtime)
    shutdown = GracefulShutdown()

    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=settings.host,
            port=settings.port,
            log_level="warning",
            access_log=False,
            timeout_graceful_shutdown=int(settings.shutdown_timeout),
        )
    )

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, shutdown.trigger)

    async def stop_on_signal() -> None:
        await shutdown.wait_for_trigger()
        server.should_exit = True

    await asyncio.gather(server.serve(), stop_on_signal(), return_exceptions=True)


def main() -> None:
    """Entry point for python -m searchsync.

    The configuration file is loaded before the port is bound so a broken
    schema or index topology exits with status 1 instead of serving 500s.
    """
    settings = Settings()
    configure_logging(debug=settings.debug, json_logs=settings.json_logs)

    try:
        runtime = build_runtime(settings)
    except SearchSyncError as e:
        logger.error(
            "startup_failed",
            config_path=str(settings.config_path),
            error_type=type(e).__name__,
            error=str(e),
        )
        sys.exit(1)

    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(serve(settings, runtime))

    sys.exit(0)


if __name__ == "__main__":
    main()
