"""Keep a two-tier full-text search index in sync with a relational store."""

from searchsync.backend import InMemoryBackend, SearchBackend
from searchsync.errors import (
    ConfigFileError,
    ConfigurationError,
    ExternalCallError,
    InvalidArgumentError,
    SearchSyncError,
    UnknownTypeError,
)
from searchsync.identity import document_id, split_document_id
from searchsync.indexable import Indexable, IndexableTypes, Record, augment_write
from searchsync.loader import SearchSyncConfig, load_config, parse_config
from searchsync.search import SearchFacade, SearchOptions
from searchsync.sync import IndexingState, SyncCoordinator
from searchsync.topology import IndexDescriptor, IndexRegistry

__all__ = [
    "ConfigFileError",
    "ConfigurationError",
    "ExternalCallError",
    "InMemoryBackend",
    "IndexDescriptor",
    "IndexRegistry",
    "Indexable",
    "IndexableTypes",
    "IndexingState",
    "InvalidArgumentError",
    "Record",
    "SearchBackend",
    "SearchFacade",
    "SearchOptions",
    "SearchSyncConfig",
    "SearchSyncError",
    "SyncCoordinator",
    "UnknownTypeError",
    "augment_write",
    "document_id",
    "load_config",
    "parse_config",
    "split_document_id",
]
