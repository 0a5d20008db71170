"""Query facade tests."""

import pytest

from searchsync.backend.memory import InMemoryBackend
from searchsync.errors import ConfigurationError
from searchsync.indexable import Record
from searchsync.lifecycle import SyncRuntime
from searchsync.search.schemas import ExcerptOptions, SearchOptions

from conftest import ARTICLE_DOC


def test_search_scoped_to_covering_indexes(
    runtime: SyncRuntime, backend: InMemoryBackend
) -> None:
    """Queries reach only indexes of the type and its ancestors, deltas last."""
    response = runtime.search.search("Article", "foo")

    assert response.indexes == ["Article", "SiteTree", "ArticleDelta", "SiteTreeDelta"]
    assert backend.calls_for("search")[0].payload["query"] == "foo"

    page = runtime.search.search("Page", "foo")
    assert page.indexes == ["SiteTree", "SiteTreeDelta"]


def test_search_uncovered_type_raises(runtime: SyncRuntime, backend: InMemoryBackend) -> None:
    with pytest.raises(ConfigurationError):
        runtime.search.search("Comment", "foo")
    assert backend.calls == []


def test_delta_copy_served_after_write(runtime: SyncRuntime) -> None:
    """After a write the dirty primary copy is skipped and the delta copy wins."""
    runtime.coordinator.bootstrap()
    runtime.coordinator.on_write(Record(type_name="Article", id=7))

    response = runtime.search.search("Article", "hello world")

    assert response.total == 1
    match = response.matches[0]
    assert match.document_id == ARTICLE_DOC
    assert match.record_id == 7
    assert match.index == "ArticleDelta"


def test_search_options_paginate(runtime: SyncRuntime) -> None:
    runtime.coordinator.bootstrap()
    response = runtime.search.search("Article", "hello", SearchOptions(limit=1, offset=1))
    assert response.total == 1
    assert response.matches == []
    assert response.offset == 1


def test_excerpt_unwraps_single_snippet(runtime: SyncRuntime, backend: InMemoryBackend) -> None:
    record = Record(type_name="Article", id=7, values={"Content": "Hello world"})

    snippet = runtime.search.excerpt(record, "world")

    assert snippet == "Hello <b>world</b>"
    call = backend.calls_for("build_excerpts")[0]
    assert call.index_names == ["Article"]
    assert call.payload["count"] == 1


def test_excerpt_custom_field_and_markers(runtime: SyncRuntime) -> None:
    record = Record(type_name="Page", id=1, values={"Title": "About us"})
    options = ExcerptOptions(before_match="[", after_match="]")
    assert runtime.search.excerpt(record, "about", field="Title", options=options) == "[About] us"


def test_excerpt_trims_long_text(runtime: SyncRuntime) -> None:
    words = [f"w{i}" for i in range(100)]
    words[50] = "needle"
    record = Record(type_name="Page", id=1, values={"Content": " ".join(words)})

    snippet = runtime.search.excerpt(record, "needle", options=ExcerptOptions(limit=40, around=2))

    assert snippet == "... w48 w49 <b>needle</b> w51 w52 ..."


def test_excerpt_missing_field_is_empty(runtime: SyncRuntime) -> None:
    assert runtime.search.excerpt(Record(type_name="Page", id=1), "anything") == ""
