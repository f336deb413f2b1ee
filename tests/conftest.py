"""Shared test fixtures and configuration."""

from collections.abc import Callable, Mapping
import os
from pathlib import Path

import pytest

from ti_search.search.index import Index
from ti_search.search.indexer import Indexer, IndexingContext
from ti_search.search.processors import SimpleProcessor


# Complete test environment that overrides every config value
TEST_ENV = {
    "TI_CACHE_BUCKET_COUNT": "20",
    "TI_PROCESSOR": "simple",
    "TI_MIN_TERM_LENGTH": "5",
    "TI_DOCUMENT_SUFFIX": ".html",
    "TI_DOCUMENT_ENCODING": "utf-8",
    "TI_RETRIEVAL_MODEL": "cosine",
    "TI_BATCH_PAGE_SIZE": "500",
    "TI_INTERACTIVE_PAGE_SIZE": "10",
    "TI_SNIPPET_LENGTH": "300",
    "TI_LOG_LEVEL": "info",
    "TI_LOG_JSON": "false",
}

for key, value in TEST_ENV.items():
    os.environ[key] = value


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Reset TI_* variables before each test."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)


@pytest.fixture
def write_collection(tmp_path: Path) -> Callable[[Mapping[str, str | bytes]], Path]:
    """Create a collection directory from ``{relative_path: content}``."""

    def _write(files: Mapping[str, str | bytes]) -> Path:
        root = tmp_path / "collection"
        root.mkdir(exist_ok=True)
        for relative, content in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
        return root

    return _write


@pytest.fixture
def fruit_collection(write_collection) -> Path:
    """Two documents: A = "apple apple banana", B = "banana cherry"."""
    return write_collection(
        {
            "docs/a.html": "apple apple banana",
            "docs/b.html": "banana cherry",
        }
    )


@pytest.fixture
def fruit_index(tmp_path: Path, fruit_collection: Path) -> Index:
    """The fruit collection, built and saved with the simple processor."""
    context = IndexingContext(
        index_dir=tmp_path / "index",
        collection_dir=fruit_collection,
        processor=SimpleProcessor(),
    )
    indexer = Indexer(context)
    indexer.run()
    return indexer.index
