"""Control channel to the search daemon.

The daemon owns retries, timeouts and the rendering of its own query
language. Implementations raise ``ExternalCallError`` for any rejected or
failed call.
"""

from collections.abc import Mapping, Sequence
from typing import Protocol, runtime_checkable

from searchsync.search.schemas import ExcerptOptions, SearchOptions, SearchResponse
from searchsync.topology import IndexDescriptor


@runtime_checkable
class SearchBackend(Protocol):
    """Protocol for search daemon control channels.

    Implementations: InMemoryBackend (testing and local runs).
    """

    def check(self) -> None:
        """Verify the daemon is reachable."""
        ...

    def update_attributes(
        self,
        index_names: Sequence[str],
        attributes: Sequence[str],
        values: Mapping[int, Sequence[int]],
    ) -> int:
        """Update stored attributes of documents across several indexes at once.

        ``values`` maps document ID to one value per attribute name.
        Returns the number of documents updated.
        """
        ...

    def reindex(self, indexes: Sequence[IndexDescriptor]) -> None:
        """Trigger a rebuild of exactly the given indexes.

        Returns once the daemon accepted the request; completion is not awaited.
        """
        ...

    def search(
        self,
        index_names: Sequence[str],
        query: str,
        options: SearchOptions,
    ) -> SearchResponse:
        """Run a full-text query across the given indexes."""
        ...

    def build_excerpts(
        self,
        texts: Sequence[str],
        index_name: str,
        terms: str,
        options: ExcerptOptions,
    ) -> list[str]:
        """Highlight ``terms`` in each text, one snippet per input text."""
        ...
