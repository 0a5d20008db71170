"""In-memory search backend for tests and local runs.

Dict-based implementation of the full SearchBackend protocol. Documents are
produced by an optional loader when an index is rebuilt; all data is lost
when the process exits.
"""

import re
import threading
from collections import deque
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

import structlog
from pydantic import BaseModel, Field

from searchsync.errors import ExternalCallError
from searchsync.schema.mapper import DIRTY_ATTRIBUTE
from searchsync.search.schemas import (
    ExcerptOptions,
    SearchMatch,
    SearchOptions,
    SearchResponse,
)
from searchsync.topology import IndexDescriptor

logger = structlog.get_logger()

DocumentLoader = Callable[[IndexDescriptor], Iterable[tuple[int, dict[str, Any]]]]

DEFAULT_CALL_HISTORY = 256


class BackendCall(BaseModel):
    """A recorded call to the backend.

    Attributes:
        operation: Protocol method name.
        index_names: Indexes the call was scoped to.
        payload: Remaining call arguments.
    """

    operation: str
    index_names: list[str]
    payload: dict[str, Any] = Field(default_factory=dict)


class InMemoryBackend:
    """Dict-based search backend.

    Storage layout: index name -> document ID -> field values, plus a
    separate index name -> document ID -> attribute overrides map written by
    ``update_attributes`` and cleared when the index is rebuilt.
    """

    def __init__(
        self,
        loader: DocumentLoader | None = None,
        history: int = DEFAULT_CALL_HISTORY,
    ) -> None:
        """Initialize backend.

        Args:
            loader: Called with each rebuilt index; yields
                ``(document_id, fields)`` pairs that replace its contents.
            history: Number of most recent calls kept for inspection.
        """
        self._loader = loader
        self._documents: dict[str, dict[int, dict[str, Any]]] = {}
        self._attributes: dict[str, dict[int, dict[str, int]]] = {}
        self._failure: ExternalCallError | None = None
        self._lock = threading.Lock()
        self._calls: deque[BackendCall] = deque(maxlen=history)

    @property
    def calls(self) -> list[BackendCall]:
        """Most recent calls, oldest first."""
        return list(self._calls)

    def fail_next(self, error: ExternalCallError | None = None) -> None:
        """Make the next call raise ``error`` (or a generic failure)."""
        self._failure = error or ExternalCallError("backend", "injected failure")

    def add_document(self, index_name: str, document_id: int, fields: dict[str, Any]) -> None:
        """Store a document without going through a rebuild."""
        with self._lock:
            self._documents.setdefault(index_name, {})[document_id] = dict(fields)

    def attributes(self, index_name: str, document_id: int) -> dict[str, int]:
        """Attribute overrides currently stored for a document."""
        return dict(self._attributes.get(index_name, {}).get(document_id, {}))

    def is_dirty(self, index_name: str, document_id: int) -> bool:
        return bool(self.attributes(index_name, document_id).get(DIRTY_ATTRIBUTE))

    def calls_for(self, operation: str) -> list[BackendCall]:
        return [call for call in self.calls if call.operation == operation]

    def _record(self, operation: str, index_names: Sequence[str], **payload: Any) -> None:
        self._calls.append(
            BackendCall(operation=operation, index_names=list(index_names), payload=payload)
        )
        if self._failure is not None:
            failure, self._failure = self._failure, None
            logger.warning("backend_call_failed", operation=operation, error=str(failure))
            raise failure

    def check(self) -> None:
        self._record("check", [])

    def update_attributes(
        self,
        index_names: Sequence[str],
        attributes: Sequence[str],
        values: Mapping[int, Sequence[int]],
    ) -> int:
        self._record(
            "update_attributes",
            index_names,
            attributes=list(attributes),
            values={doc_id: list(row) for doc_id, row in values.items()},
        )
        for doc_id, row in values.items():
            if len(row) != len(attributes):
                raise ExternalCallError(
                    "update_attributes",
                    f"expected {len(attributes)} values for document {doc_id}",
                )

        updated = 0
        with self._lock:
            for index_name in index_names:
                documents = self._documents.get(index_name, {})
                stored = self._attributes.setdefault(index_name, {})
                for doc_id, row in values.items():
                    if doc_id not in documents:
                        continue
                    stored.setdefault(doc_id, {}).update(zip(attributes, row))
                    updated += 1
        return updated

    def reindex(self, indexes: Sequence[IndexDescriptor]) -> None:
        names = [index.name for index in indexes]
        self._record("reindex", names)
        with self._lock:
            for index in indexes:
                self._attributes.pop(index.name, None)
                if self._loader is not None:
                    self._documents[index.name] = {
                        doc_id: dict(fields) for doc_id, fields in self._loader(index)
                    }
        logger.debug("backend_reindexed", indexes=names)

    def _matches_filters(self, fields: dict[str, Any], filters: dict[str, list[int]]) -> bool:
        return all(fields.get(name) in accepted for name, accepted in filters.items())

    def search(
        self,
        index_names: Sequence[str],
        query: str,
        options: SearchOptions,
    ) -> SearchResponse:
        self._record("search", index_names, query=query)
        terms = [term for term in query.lower().split() if term]

        # Later indexes supersede earlier ones for the same document.
        found: dict[int, SearchMatch] = {}
        with self._lock:
            for index_name in index_names:
                attributes = self._attributes.get(index_name, {})
                for doc_id, fields in self._documents.get(index_name, {}).items():
                    merged = {**fields, **attributes.get(doc_id, {})}
                    if merged.get(DIRTY_ATTRIBUTE):
                        continue
                    if not self._matches_filters(merged, options.filters):
                        continue
                    text = " ".join(
                        value.lower() for value in merged.values() if isinstance(value, str)
                    )
                    if not all(term in text for term in terms):
                        continue
                    found[doc_id] = SearchMatch(
                        document_id=doc_id,
                        index=index_name,
                        weight=float(sum(text.count(term) for term in terms)),
                        attributes={
                            key: value
                            for key, value in merged.items()
                            if not isinstance(value, str)
                        },
                    )

        ranked = sorted(found.values(), key=lambda match: (-match.weight, match.document_id))
        return SearchResponse(
            query=query,
            indexes=list(index_names),
            matches=ranked[options.offset : options.offset + options.limit],
            total=len(ranked),
            limit=options.limit,
            offset=options.offset,
        )

    def build_excerpts(
        self,
        texts: Sequence[str],
        index_name: str,
        terms: str,
        options: ExcerptOptions,
    ) -> list[str]:
        self._record("build_excerpts", [index_name], terms=terms, count=len(texts))
        words = [re.escape(term) for term in terms.split() if term]
        if not words:
            return [text[: options.limit] for text in texts]

        pattern = re.compile("|".join(words), re.IGNORECASE)
        return [_excerpt(text, pattern, options) for text in texts]


def _excerpt(text: str, pattern: re.Pattern[str], options: ExcerptOptions) -> str:
    """Highlight matches, trimming to ``around`` words on each side when too long."""
    highlighted = pattern.sub(
        lambda match: f"{options.before_match}{match.group(0)}{options.after_match}", text
    )
    if len(text) <= options.limit:
        return highlighted

    words = text.split()
    hits = [position for position, word in enumerate(words) if pattern.search(word)]
    if not hits:
        return text[: options.limit]

    start = max(hits[0] - options.around, 0)
    end = min(hits[0] + options.around + 1, len(words))
    window = pattern.sub(
        lambda match: f"{options.before_match}{match.group(0)}{options.after_match}",
        " ".join(words[start:end]),
    )
    prefix = options.chunk_separator.lstrip() if start > 0 else ""
    suffix = options.chunk_separator.rstrip() if end < len(words) else ""
    return f"{prefix}{window}{suffix}"
