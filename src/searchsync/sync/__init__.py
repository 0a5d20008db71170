"""Dirty-marking and reindex coordination for record mutations."""

from searchsync.sync.coordinator import SyncCoordinator, SyncResult
from searchsync.sync.state import IndexingState, SyncState

__all__ = [
    "IndexingState",
    "SyncCoordinator",
    "SyncResult",
    "SyncState",
]
