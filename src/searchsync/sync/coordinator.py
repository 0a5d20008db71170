"""Keep primary and delta indexes consistent with record writes and deletes.

Every write or delete marks the record's document dirty in the primary
indexes, so stale primary copies drop out of results, then rebuilds the
delta indexes that carry the fresh copy. Dirty flags are only ever set here;
they are cleared by a full primary rebuild. A failed delta rebuild therefore
leaves the document dirty, which is the safe direction.
"""

import itertools
import threading
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from contextvars import ContextVar

import structlog
from pydantic import BaseModel, Field

from searchsync.backend.protocol import SearchBackend
from searchsync.identity import record_document_id
from searchsync.indexable import Indexable, IndexableTypes
from searchsync.schema.mapper import DIRTY_ATTRIBUTE
from searchsync.schema.model import SchemaRegistry
from searchsync.sync.state import IndexingState, SyncState
from searchsync.topology import IndexDescriptor, IndexRegistry

logger = structlog.get_logger()

# Phase of the mutation handled in the current thread or task.
_event_state: ContextVar[SyncState] = ContextVar("sync_event_state", default=SyncState.IDLE)


class SyncResult(BaseModel):
    """Outcome of handling one record mutation.

    Attributes:
        type_name: Record type.
        record_id: Record ID.
        document_id: Global document ID, None when skipped.
        dirty_indexes: Primary indexes the document was marked dirty in.
        reindexed: Delta indexes a rebuild was triggered for.
        skipped: Reason the mutation was ignored, if it was.
    """

    type_name: str
    record_id: int
    document_id: int | None = None
    dirty_indexes: list[str] = Field(default_factory=list)
    reindexed: list[str] = Field(default_factory=list)
    skipped: str | None = None


class SyncCoordinator:
    """Drive dirty-marking and delta rebuilds for record mutations.

    Safe to share between threads: every write or delete moves through
    ``idle -> marking_dirty -> reindexing -> idle`` on its own, and
    ``in_flight()`` lists the phase of each event still being handled.

    Attributes:
        indexing: Shared bulk-mode state.
    """

    def __init__(
        self,
        schema: SchemaRegistry,
        registry: IndexRegistry,
        backend: SearchBackend,
        indexing: IndexingState,
        indexables: IndexableTypes,
    ) -> None:
        """Initialize coordinator.

        Args:
            schema: Schema snapshot for base type resolution.
            registry: Configured indexes.
            backend: Search daemon control channel.
            indexing: Shared bulk-mode state.
            indexables: Types whose mutations are synchronized.
        """
        self._schema = schema
        self._registry = registry
        self._backend = backend
        self._indexables = indexables
        self.indexing = indexing
        self._lock = threading.Lock()
        self._event_ids = itertools.count(1)
        self._events: dict[int, tuple[int, SyncState]] = {}

    @property
    def state(self) -> SyncState:
        """Phase of the mutation being handled by the calling thread or task."""
        return _event_state.get()

    def in_flight(self) -> list[tuple[int, SyncState]]:
        """``(document_id, phase)`` of every mutation currently being handled."""
        with self._lock:
            return list(self._events.values())

    def _advance(self, event: int, document_id: int, state: SyncState) -> None:
        _event_state.set(state)
        with self._lock:
            self._events[event] = (document_id, state)

    def on_write(self, record: Indexable) -> SyncResult:
        """Synchronize the index after a record was written."""
        return self._on_mutation(record, "write")

    def on_delete(self, record: Indexable) -> SyncResult:
        """Synchronize the index after a record was deleted."""
        return self._on_mutation(record, "delete")

    def _on_mutation(self, record: Indexable, action: str) -> SyncResult:
        result = SyncResult(type_name=record.type_name, record_id=record.id)

        if self.indexing.bulk_mode:
            result.skipped = "bulk_mode"
            return result
        if record.type_name not in self._indexables:
            self._log_unregistered(record, action)
            result.skipped = "not_indexable"
            return result

        document_id = record_document_id(self._schema, record.type_name, record.id)
        self._registry.require(record.type_name)
        result.document_id = document_id

        with self._lock:
            event = next(self._event_ids)
        token = _event_state.set(SyncState.IDLE)
        try:
            self._advance(event, document_id, SyncState.MARKING_DIRTY)
            result.dirty_indexes = self.mark_dirty(record)
            self._advance(event, document_id, SyncState.REINDEXING)
            result.reindexed = self.reindex(record)
        finally:
            with self._lock:
                self._events.pop(event, None)
            _event_state.reset(token)

        logger.info(
            "record_synced",
            action=action,
            type_name=record.type_name,
            document_id=document_id,
            dirty_indexes=result.dirty_indexes,
            reindexed=result.reindexed,
        )
        return result

    def _log_unregistered(self, record: Indexable, action: str) -> None:
        # An index inherited from an ancestor still holds this record's
        # document, which now stays stale without a dirty flag.
        covered = record.type_name in self._schema and self._registry.indexes_for(
            record.type_name
        )
        if covered:
            logger.warning(
                "sync_skipped_unregistered_type",
                action=action,
                type_name=record.type_name,
                record_id=record.id,
                indexes=sorted(index.name for index in covered),
            )
        else:
            logger.debug("sync_skipped_not_indexable", type_name=record.type_name)

    def mark_dirty(self, record: Indexable) -> list[str]:
        """Flag the record's document as superseded in every primary index.

        Returns:
            Names of the primary indexes covered by the update.
        """
        document_id = record_document_id(self._schema, record.type_name, record.id)
        names = [index.name for index in self._registry.primary_indexes(record.type_name)]
        if not names:
            logger.debug("mark_dirty_no_primary", type_name=record.type_name)
            return names

        self._backend.update_attributes(names, [DIRTY_ATTRIBUTE], {document_id: [1]})
        return names

    def reindex(self, record: Indexable) -> list[str]:
        """Rebuild the delta indexes covering the record's type.

        Returns:
            Names of the delta indexes a rebuild was triggered for.
        """
        deltas = self._registry.delta_indexes(record.type_name)
        if not deltas:
            logger.debug("reindex_no_delta", type_name=record.type_name)
            return []
        return self.reindex_indexes(deltas)

    def reindex_indexes(self, indexes: Sequence[IndexDescriptor]) -> list[str]:
        """Trigger a rebuild of exactly the given indexes."""
        names = [index.name for index in indexes]
        self._backend.reindex(list(indexes))
        logger.info("reindex_triggered", indexes=names)
        return names

    def reindex_all(self) -> list[str]:
        """Rebuild every configured index, primary and delta."""
        return self.reindex_indexes(self._registry.all_indexes())

    def enter_bulk_mode(self) -> None:
        """Suspend synchronization. Idempotent."""
        self.indexing.set_bulk_mode(True)

    def exit_bulk_mode(self) -> list[str]:
        """Resume synchronization and rebuild every index.

        Dirty tracking was suspended, so the full rebuild runs even when no
        write happened in between.
        """
        self.indexing.set_bulk_mode(False)
        return self.reindex_all()

    @contextmanager
    def bulk(self) -> Iterator["SyncCoordinator"]:
        """Suspend synchronization for the duration of the block.

        The full rebuild on exit also runs when the block raises.
        """
        self.enter_bulk_mode()
        try:
            yield self
        finally:
            self.exit_bulk_mode()

    def bootstrap(self) -> list[str]:
        """Check the backend and run the initial full rebuild, once per state.

        Returns:
            Rebuilt index names, or an empty list when already bootstrapped.
        """
        if not self.indexing.claim_bootstrap():
            return []
        try:
            self._backend.check()
            names = self.reindex_all()
        except Exception:
            self.indexing.release_bootstrap()
            raise
        logger.info("sync_bootstrapped", indexes=names)
        return names
