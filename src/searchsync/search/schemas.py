"""Pydantic schemas for search requests and results."""

from typing import Any

from pydantic import BaseModel, Field, computed_field

from searchsync.identity import split_document_id


MAX_SEARCH_LIMIT = 1000


class SearchOptions(BaseModel):
    """Options forwarded to the search daemon with a query.

    Attributes:
        limit: Maximum matches to return.
        offset: Number of matches to skip.
        filters: Attribute name to accepted values.
    """

    limit: int = Field(default=20, ge=1, le=MAX_SEARCH_LIMIT)
    offset: int = Field(default=0, ge=0)
    filters: dict[str, list[int]] = Field(default_factory=dict)


class ExcerptOptions(BaseModel):
    """Highlighting options for excerpt generation."""

    before_match: str = "<b>"
    after_match: str = "</b>"
    chunk_separator: str = " ... "
    limit: int = Field(default=256, ge=1)
    around: int = Field(default=5, ge=0)


class SearchMatch(BaseModel):
    """A single matched document.

    Attributes:
        document_id: Global 64-bit document ID.
        index: Index the match was served from.
        weight: Relevance weight (higher is better).
        attributes: Stored attribute values of the document.
    """

    document_id: int
    index: str
    weight: float
    attributes: dict[str, Any] = Field(default_factory=dict)

    @computed_field
    @property
    def record_id(self) -> int:
        """Record ID encoded in the low word of the document ID."""
        return split_document_id(self.document_id)[1]


class SearchResponse(BaseModel):
    """Paginated search response envelope.

    Attributes:
        query: The original search query string.
        indexes: Index names the query was scoped to.
        matches: Ranked matches for the requested page.
        total: Total number of matching documents.
        limit: Maximum matches per page.
        offset: Number of matches skipped.
    """

    query: str
    indexes: list[str]
    matches: list[SearchMatch]
    total: int
    limit: int
    offset: int
