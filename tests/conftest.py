"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from fastapi.testclient import TestClient

from searchsync.app import create_app
from searchsync.backend.memory import InMemoryBackend
from searchsync.config import Settings
from searchsync.identity import document_id
from searchsync.lifecycle import SyncRuntime
from searchsync.loader import SearchSyncConfig, parse_config
from searchsync.sync.coordinator import SyncCoordinator
from searchsync.sync.state import IndexingState
from searchsync.topology import IndexDescriptor

EXAMPLE_CONFIG = Path(__file__).parent.parent / "searchsync.example.yml"

SITE_CONFIG = """
types:
  SiteTree:
    fields:
      Title: Varchar(255)
      Content: HTMLText
      ShowInSearch: Boolean
      LastEdited: SSDatetime
    many_many:
      Tags: Tag
    search:
      filterable_many_many: "*"
    indexable: true
  Page:
    parent: SiteTree
    indexable: true
  Article:
    parent: Page
    fields:
      Summary: Text
      Category: Varchar(50)
      Attachment: Blob
    has_many:
      Comments: {target: Comment, join_field: ArticleID}
    search:
      fields:
        Category: CRCOrdinal
    indexable: true
  Comment:
    fields:
      Body: Text
  Tag:
    fields:
      Name: Varchar(50)
indexes:
  - {name: SiteTree, applies_to: SiteTree}
  - {name: SiteTreeDelta, applies_to: SiteTree, delta: true}
  - {name: Article, applies_to: Article}
  - {name: ArticleDelta, applies_to: Article, delta: true}
"""

ARTICLE_DOC = document_id("SiteTree", 7)

DOCUMENTS: dict[str, list[tuple[int, dict[str, object]]]] = {
    "Article": [(ARTICLE_DOC, {"Title": "Hello world", "Content": "Hello world from the archive"})],
    "ArticleDelta": [(ARTICLE_DOC, {"Title": "Hello world", "Content": "Hello world, edited"})],
}


def load_documents(index: IndexDescriptor) -> list[tuple[int, dict[str, object]]]:
    """Serve fixed documents for each rebuilt index."""
    return DOCUMENTS.get(index.name, [])


@pytest.fixture
def config() -> SearchSyncConfig:
    """Parsed site configuration."""
    return parse_config(SITE_CONFIG)


@pytest.fixture
def backend() -> InMemoryBackend:
    """In-memory backend seeded through the fixed document loader."""
    return InMemoryBackend(loader=load_documents)


@pytest.fixture
def runtime(config: SearchSyncConfig, backend: InMemoryBackend) -> SyncRuntime:
    """Runtime wired to the in-memory backend."""
    return SyncRuntime(config, backend, IndexingState())


@pytest.fixture
def coordinator(runtime: SyncRuntime) -> SyncCoordinator:
    """Coordinator of the test runtime."""
    return runtime.coordinator


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        host="127.0.0.1",
        port=8000,
        debug=True,
        config_path=EXAMPLE_CONFIG,
    )


@pytest.fixture
def client(settings: Settings, runtime: SyncRuntime) -> TestClient:
    """Create test client with an injected runtime."""
    app = create_app(settings, runtime=runtime)
    return TestClient(app)
