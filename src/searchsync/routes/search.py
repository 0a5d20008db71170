"""Full-text search and excerpt endpoints."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel, Field

from searchsync.indexable import Record
from searchsync.search.schemas import (
    MAX_SEARCH_LIMIT,
    ExcerptOptions,
    SearchOptions,
    SearchResponse,
)

if TYPE_CHECKING:
    from searchsync.lifecycle import SyncRuntime

router = APIRouter(tags=["search"])


class ExcerptRequest(BaseModel):
    """Request body for building a highlighted excerpt.

    Attributes:
        record: Record whose field is highlighted.
        terms: Space-separated terms to highlight.
        field: Field of the record to excerpt.
        options: Highlighting options.
    """

    record: Record
    terms: str = Field(min_length=1, max_length=200)
    field: str = "Content"
    options: ExcerptOptions = Field(default_factory=ExcerptOptions)


class ExcerptResponse(BaseModel):
    excerpt: str


@router.get(
    "/search",
    response_model=SearchResponse,
    summary="Full-text search scoped to one record type",
    description="Queries every primary and delta index covering the type.",
)
async def search(
    request: Request,
    type: str = Query(..., min_length=1, description="Record type to search"),
    q: str = Query(..., min_length=1, max_length=200, description="Search query string"),
    limit: int = Query(default=20, ge=1, le=MAX_SEARCH_LIMIT, description="Results per page"),
    offset: int = Query(default=0, ge=0, description="Results to skip"),
) -> SearchResponse:
    """Search records of one type.

    Args:
        request: FastAPI request (provides access to app state).
        type: Record type whose indexes are queried.
        q: Search query string (1-200 characters).
        limit: Maximum results per page (default 20).
        offset: Pagination offset (default 0).

    Returns:
        Ranked matches for the requested page.
    """
    runtime: SyncRuntime = request.app.state.runtime
    options = SearchOptions(limit=limit, offset=offset)
    return await asyncio.to_thread(runtime.search.search, type, q, options)


@router.post("/excerpts", response_model=ExcerptResponse)
async def excerpt(request: Request, body: ExcerptRequest) -> ExcerptResponse:
    """Highlight search terms in one field of a record.

    Args:
        request: FastAPI request (provides access to app state).
        body: Record, terms and highlighting options.

    Returns:
        The highlighted snippet.
    """
    runtime: SyncRuntime = request.app.state.runtime
    snippet = await asyncio.to_thread(
        runtime.search.excerpt, body.record, body.terms, body.field, body.options
    )
    return ExcerptResponse(excerpt=snippet)
