"""Process-wide indexing state shared by coordinators."""

import threading
from enum import Enum

import structlog

logger = structlog.get_logger()


class SyncState(str, Enum):
    """Phases of handling a single record mutation."""

    IDLE = "idle"
    MARKING_DIRTY = "marking_dirty"
    REINDEXING = "reindexing"


class IndexingState:
    """Bulk-mode flag and bootstrap guard.

    Constructed once at startup and passed to every coordinator, so tests
    can run independent instances side by side. The flag is process-local;
    the dirty flags stored in the search index are the cross-process state.

    Attributes:
        bulk_mode: Whether write hooks are suspended.
        bootstrapped: Whether the initial full reindex has run.
    """

    def __init__(self, bulk_mode: bool = False) -> None:
        """Initialize state.

        Args:
            bulk_mode: Start with synchronization suspended.
        """
        self._bulk_mode = bulk_mode
        self._bootstrapped = False
        self._lock = threading.Lock()

    @property
    def bulk_mode(self) -> bool:
        return self._bulk_mode

    @property
    def bootstrapped(self) -> bool:
        return self._bootstrapped

    def set_bulk_mode(self, enabled: bool) -> bool:
        """Set the bulk-mode flag.

        Returns:
            The previous value.
        """
        with self._lock:
            previous = self._bulk_mode
            self._bulk_mode = enabled
        if previous != enabled:
            logger.info("bulk_mode_changed", bulk_mode=enabled)
        return previous

    def claim_bootstrap(self) -> bool:
        """Mark bootstrap as done; True only for the first caller."""
        with self._lock:
            if self._bootstrapped:
                return False
            self._bootstrapped = True
            return True

    def release_bootstrap(self) -> None:
        """Allow bootstrap to run again after a failed attempt."""
        with self._lock:
            self._bootstrapped = False
