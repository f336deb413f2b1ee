"""The search index: vocabulary, documents, inverted/direct postings and cache.

The structures are public attributes so the indexer and retrieval models can
address them by dense ID:

* ``vocabulary``: ``{term: VocabularyEntry(term_id, idf)}``
* ``documents``: ``[docID] -> DocumentEntry(name, norm)``
* ``inverted``: ``[termID] -> [Posting(docID, weight), ...]``
* ``direct``: ``[docID] -> [Posting(termID, weight), ...]``

``load`` and ``save`` move the four tables to and from the artifacts described
in ``ti_search.search.storage``; the cache is written document by document
during indexing.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path

from ti_search.search.cache import DocumentCache
from ti_search.search.models import CachedDocument, DocumentEntry, Posting, VocabularyEntry
from ti_search.search.storage import (
    ArtifactKind,
    StorageError,
    read_documents,
    read_postings_table,
    read_vocabulary,
    write_documents,
    write_postings_table,
    write_vocabulary,
)


logger = logging.getLogger(__name__)

DEFAULT_CACHE_BUCKETS = 20

_MB = 1024 * 1024


@dataclass(frozen=True)
class IndexStatistics:
    """Counts and on-disk sizes reported after a build or load."""

    term_count: int
    document_count: int
    vocabulary_bytes: int | None
    documents_bytes: int | None
    inverted_bytes: int | None
    direct_bytes: int | None
    cache_bytes: int

    def lines(self) -> list[str]:
        vocab = f"  - Vocabulary: {self.term_count} terms"
        if self.vocabulary_bytes is not None:
            vocab += f" ({self.vocabulary_bytes / _MB:.2f} MB)"
        docs = f"  - Documents: {self.document_count} documents"
        if self.documents_bytes is not None:
            docs += f" ({self.documents_bytes / 1024:.2f} KB)"
        lines = [vocab + ".", docs + "."]
        if self.inverted_bytes is not None:
            lines.append(f"  - Inverted: {self.inverted_bytes / _MB:.2f} MB.")
        if self.direct_bytes is not None:
            lines.append(f"  - Direct: {self.direct_bytes / _MB:.2f} MB.")
        lines.append(f"  - Cache: {self.cache_bytes / _MB:.2f} MB.")
        return lines


class Index:
    """In-memory index bound to a directory on disk."""

    def __init__(self, path: str | Path, *, cache_bucket_count: int = DEFAULT_CACHE_BUCKETS) -> None:
        self.path = Path(path)
        self.cache = DocumentCache(self.path, cache_bucket_count)
        self.vocabulary: dict[str, VocabularyEntry] = {}
        self.documents: list[DocumentEntry] = []
        self.inverted: list[list[Posting]] = []
        self.direct: list[list[Posting]] = []

    def artifact_path(self, kind: ArtifactKind) -> Path:
        return self.path / kind.filename

    @property
    def document_count(self) -> int:
        return len(self.documents)

    def get_cached_document(self, doc_id: int) -> CachedDocument:
        return self.cache.get(doc_id)

    def set_cached_document(self, doc_id: int, document: CachedDocument) -> None:
        self.cache.put(doc_id, document)

    def load(self) -> None:
        """Replace the in-memory tables with the persisted ones.

        Raises:
            StorageError: any artifact is missing, truncated or inconsistent.
                The in-memory tables are left untouched in that case.
        """

        vocabulary = read_vocabulary(self.artifact_path(ArtifactKind.VOCABULARY))
        documents, cache_bucket_count = read_documents(self.artifact_path(ArtifactKind.DOCUMENTS))
        inverted = read_postings_table(self.artifact_path(ArtifactKind.INVERTED), ArtifactKind.INVERTED)
        direct = read_postings_table(self.artifact_path(ArtifactKind.DIRECT), ArtifactKind.DIRECT)

        _check_consistency(vocabulary, documents, inverted, direct)

        if cache_bucket_count != self.cache.bucket_count:
            logger.warning(
                "Index %s was built with %d cache buckets, not the configured %d; using the stored count",
                self.path,
                cache_bucket_count,
                self.cache.bucket_count,
            )
            self.cache = DocumentCache(self.path, cache_bucket_count)
        self.vocabulary = vocabulary
        self.documents = documents
        self.inverted = inverted
        self.direct = direct
        logger.debug("Loaded index from %s: %d terms, %d documents", self.path, len(vocabulary), len(documents))

    def save(self) -> None:
        """Persist the four tables, creating the index directory if needed."""

        try:
            self.path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot create index directory {self.path}: {exc}") from exc

        write_vocabulary(self.artifact_path(ArtifactKind.VOCABULARY), self.vocabulary)
        write_documents(self.artifact_path(ArtifactKind.DOCUMENTS), self.documents, self.cache.bucket_count)
        write_postings_table(self.artifact_path(ArtifactKind.INVERTED), ArtifactKind.INVERTED, self.inverted)
        write_postings_table(self.artifact_path(ArtifactKind.DIRECT), ArtifactKind.DIRECT, self.direct)

    def statistics(self) -> IndexStatistics:
        def size_of(kind: ArtifactKind) -> int | None:
            path = self.artifact_path(kind)
            return path.stat().st_size if path.is_file() else None

        return IndexStatistics(
            term_count=len(self.vocabulary),
            document_count=len(self.documents),
            vocabulary_bytes=size_of(ArtifactKind.VOCABULARY),
            documents_bytes=size_of(ArtifactKind.DOCUMENTS),
            inverted_bytes=size_of(ArtifactKind.INVERTED),
            direct_bytes=size_of(ArtifactKind.DIRECT),
            cache_bytes=self.cache.size_bytes(),
        )

    def log_statistics(self) -> IndexStatistics:
        stats = self.statistics()
        logger.info("Index statistics for %s:", self.path)
        for line in stats.lines():
            logger.info(line)
        return stats


def _check_consistency(
    vocabulary: dict[str, VocabularyEntry],
    documents: list[DocumentEntry],
    inverted: list[list[Posting]],
    direct: list[list[Posting]],
) -> None:
    if len(inverted) != len(vocabulary):
        raise StorageError(f"Inverted index has {len(inverted)} lists but vocabulary has {len(vocabulary)} terms")
    if len(direct) != len(documents):
        raise StorageError(f"Direct index has {len(direct)} lists but there are {len(documents)} documents")

    doc_count = len(documents)
    for term_id, postings in enumerate(inverted):
        for posting in postings:
            if posting.id >= doc_count:
                raise StorageError(f"Inverted posting for termID {term_id} points at unknown docID {posting.id}")

    term_count = len(vocabulary)
    for doc_id, postings in enumerate(direct):
        for posting in postings:
            if posting.id >= term_count:
                raise StorageError(f"Direct posting for docID {doc_id} points at unknown termID {posting.id}")
