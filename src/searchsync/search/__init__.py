"""Search facade scoped to record types."""

from searchsync.search.facade import SearchFacade
from searchsync.search.schemas import (
    ExcerptOptions,
    SearchMatch,
    SearchOptions,
    SearchResponse,
)

__all__ = [
    "ExcerptOptions",
    "SearchFacade",
    "SearchMatch",
    "SearchOptions",
    "SearchResponse",
]
