"""Unit tests for Index persistence and statistics."""

from __future__ import annotations

import pytest

from ti_search.search.cache import DocumentCache
from ti_search.search.index import Index
from ti_search.search.models import CachedDocument, DocumentEntry, Posting, VocabularyEntry
from ti_search.search.storage import ArtifactKind, StorageError, write_documents, write_postings_table


pytestmark = pytest.mark.unit


def _small_index(path) -> Index:
    index = Index(path)
    index.vocabulary = {"apple": VocabularyEntry(0, 1.1), "pear": VocabularyEntry(1, 0.7)}
    index.documents = [DocumentEntry("a", 1.5), DocumentEntry("b", 0.7)]
    index.inverted = [[Posting(0, 1.1)], [Posting(0, 0.7), Posting(1, 0.7)]]
    index.direct = [[Posting(0, 1.1), Posting(1, 0.7)], [Posting(1, 0.7)]]
    return index


def test_save_creates_directory_and_artifacts(tmp_path) -> None:
    index = _small_index(tmp_path / "nested" / "index")

    index.save()

    for kind in ArtifactKind:
        assert (tmp_path / "nested" / "index" / kind.filename).is_file()


def test_round_trip_restores_every_table(tmp_path) -> None:
    original = _small_index(tmp_path / "index")
    original.save()

    restored = Index(tmp_path / "index")
    restored.load()

    assert restored.vocabulary == original.vocabulary
    assert restored.documents == original.documents
    assert restored.inverted == original.inverted
    assert restored.direct == original.direct


def test_built_index_round_trip(fruit_index) -> None:
    restored = Index(fruit_index.path)
    restored.load()

    assert restored.vocabulary == fruit_index.vocabulary
    assert restored.documents == fruit_index.documents
    assert restored.inverted == fruit_index.inverted
    assert restored.direct == fruit_index.direct


@pytest.mark.parametrize("kind", list(ArtifactKind))
def test_missing_artifact_aborts_load(tmp_path, kind) -> None:
    _small_index(tmp_path / "index").save()
    (tmp_path / "index" / kind.filename).unlink()

    index = Index(tmp_path / "index")
    with pytest.raises(StorageError):
        index.load()

    assert index.vocabulary == {}
    assert index.documents == []


def test_mismatched_table_sizes_abort_load(tmp_path) -> None:
    _small_index(tmp_path / "index").save()
    write_documents(tmp_path / "index" / "documents", [DocumentEntry("a", 1.0)], 20)

    with pytest.raises(StorageError, match="Direct index"):
        Index(tmp_path / "index").load()


def test_posting_pointing_outside_table_aborts_load(tmp_path) -> None:
    _small_index(tmp_path / "index").save()
    write_postings_table(
        tmp_path / "index" / "inverted",
        ArtifactKind.INVERTED,
        [[Posting(7, 1.0)], []],
    )

    with pytest.raises(StorageError, match="unknown docID"):
        Index(tmp_path / "index").load()


def test_cached_documents_live_under_index_root(tmp_path) -> None:
    index = Index(tmp_path / "index", cache_bucket_count=5)

    index.set_cached_document(7, CachedDocument("Title", "Body"))

    assert (tmp_path / "index" / "cache2" / "7").is_file()
    assert index.get_cached_document(7) == CachedDocument("Title", "Body")


def test_load_uses_stored_cache_bucket_count(tmp_path, caplog) -> None:
    built = _small_index(tmp_path / "index")
    built.cache = DocumentCache(built.path, 3)
    built.save()
    built.set_cached_document(1, CachedDocument("Pear", "pear body"))

    reloaded = Index(tmp_path / "index", cache_bucket_count=20)
    with caplog.at_level("WARNING", logger="ti_search.search.index"):
        reloaded.load()

    assert reloaded.cache.bucket_count == 3
    assert reloaded.get_cached_document(1) == CachedDocument("Pear", "pear body")
    assert any("3 cache buckets" in message for message in caplog.messages)


def test_matching_bucket_count_loads_quietly(tmp_path, caplog) -> None:
    _small_index(tmp_path / "index").save()

    with caplog.at_level("WARNING", logger="ti_search.search.index"):
        Index(tmp_path / "index").load()

    assert caplog.messages == []


def test_statistics_report_counts_and_sizes(tmp_path) -> None:
    index = _small_index(tmp_path / "index")
    before = index.statistics()
    assert before.vocabulary_bytes is None
    assert before.cache_bytes == 0

    index.save()
    index.set_cached_document(0, CachedDocument("t", "b"))
    stats = index.statistics()

    assert stats.term_count == 2
    assert stats.document_count == 2
    assert stats.vocabulary_bytes == (tmp_path / "index" / "vocabulary").stat().st_size
    assert stats.cache_bytes > 0
    lines = stats.lines()
    assert lines[0].startswith("  - Vocabulary: 2 terms (")
    assert lines[1].startswith("  - Documents: 2 documents (")
    assert lines[-1].startswith("  - Cache: ")


def test_log_statistics_logs_each_line(tmp_path, caplog) -> None:
    index = _small_index(tmp_path / "index")
    index.save()

    with caplog.at_level("INFO", logger="ti_search.search.index"):
        stats = index.log_statistics()

    for line in stats.lines():
        assert line in caplog.messages
