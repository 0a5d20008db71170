"""Startup wiring and graceful shutdown for the sync service."""
import asyncio

import structlog

from searchsync.backend.protocol import SearchBackend
from searchsync.loader import SearchSyncConfig
from searchsync.search.facade import SearchFacade
from searchsync.sync.coordinator import SyncCoordinator
from searchsync.sync.state import IndexingState

logger = structlog.get_logger()


class SyncRuntime:
    """Everything a request needs, built once at startup.

    Attributes:
        config: Schema, index registry and indexable types.
        backend: Search daemon control channel.
        indexing: Shared bulk-mode state.
        coordinator: Write/delete synchronization.
        search: Query facade.
    """

    def __init__(
        self,
        config: SearchSyncConfig,
        backend: SearchBackend,
        indexing: IndexingState | None = None,
    ) -> None:
        """Wire the coordinator and facade to one backend.

        Args:
            config: Loaded configuration.
            backend: Search daemon control channel.
            indexing: Shared state; a fresh one is created if None.
        """
        self.config = config
        self.backend = backend
        self.indexing = indexing or IndexingState()
        self.coordinator = SyncCoordinator(
            schema=config.schema,
            registry=config.registry,
            backend=backend,
            indexing=self.indexing,
            indexables=config.indexables,
        )
        self.search = SearchFacade(config.registry, backend)


class GracefulShutdown:
    """Coordinates graceful shutdown of the server task.

    Attributes:
        is_triggered: Whether shutdown has been triggered.
    """

    def __init__(self) -> None:
        self._triggered = False
        self._event = asyncio.Event()

    @property
    def is_triggered(self) -> bool:
        return self._triggered

    def trigger(self) -> None:
        """Signal shutdown. Idempotent."""
        if self._triggered:
            return
        logger.info("shutdown_triggered")
        self._triggered = True
        self._event.set()

    async def wait_for_trigger(self) -> None:
        """Block until trigger() is called from a signal handler."""
        await self._event.wait()


def warn_if_bulk_mode(runtime: SyncRuntime) -> None:
    """Log when the service stops with synchronization still suspended.

    Indexes are stale until bulk mode is exited, which forces a full rebuild.
    """
    if runtime.indexing.bulk_mode:
        logger.warning("shutdown_in_bulk_mode", indexes=len(runtime.config.registry))
