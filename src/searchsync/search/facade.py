"""Search and excerpt pass-through scoped to one record type."""

import structlog

from searchsync.backend.protocol import SearchBackend
from searchsync.errors import ConfigurationError
from searchsync.indexable import Indexable
from searchsync.search.schemas import ExcerptOptions, SearchOptions, SearchResponse
from searchsync.topology import IndexRegistry

logger = structlog.get_logger()


class SearchFacade:
    """Forward queries to the indexes covering a record type."""

    def __init__(self, registry: IndexRegistry, backend: SearchBackend) -> None:
        self._registry = registry
        self._backend = backend

    def search(
        self,
        type_name: str,
        query: str,
        options: SearchOptions | None = None,
    ) -> SearchResponse:
        """Search every primary and delta index covering ``type_name``.

        Delta indexes are listed after primary ones, so their fresher copy
        of a document takes precedence.

        Raises:
            ConfigurationError: If no index covers the type.
        """
        indexes = sorted(self._registry.require(type_name), key=lambda i: (i.is_delta, i.name))
        names = [index.name for index in indexes]
        response = self._backend.search(names, query, options or SearchOptions())
        logger.debug("search_executed", type_name=type_name, indexes=names, total=response.total)
        return response

    def excerpt(
        self,
        record: Indexable,
        terms: str,
        field: str = "Content",
        options: ExcerptOptions | None = None,
    ) -> str:
        """Highlight ``terms`` in one field of a record.

        Raises:
            ConfigurationError: If no primary index covers the record's type.
        """
        primaries = self._registry.primary_indexes(record.type_name)
        if not primaries:
            raise ConfigurationError(f"No primary index covers type {record.type_name}")

        value = record.field_value(field)
        text = "" if value is None else str(value)
        snippets = self._backend.build_excerpts(
            [text], primaries[0].name, terms, options or ExcerptOptions()
        )
        return snippets[-1] if snippets else ""
