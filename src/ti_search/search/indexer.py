"""Two-pass batch indexer.

Pass 1 scans the collection once: every document gets a docID, a cache entry
and raw ``1 + ln(tf)`` postings. Pass 2 needs the global document
frequencies, so it only runs after pass 1 has seen every document: it fixes
IDF per term, rewrites the postings to ``tf * idf``, builds the direct index
and computes document norms.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
import logging
import math
from pathlib import Path
import time

from ti_search.search.index import DEFAULT_CACHE_BUCKETS, Index, IndexStatistics
from ti_search.search.models import CachedDocument, DocumentEntry, Posting, VocabularyEntry
from ti_search.search.processors import DocumentProcessingError, TextProcessor, collapse_whitespace
from ti_search.search.stats import inverse_document_frequency, term_frequency_weight
from ti_search.search.storage import StorageError


logger = logging.getLogger(__name__)

_MB = 1024 * 1024


class IndexBuildError(RuntimeError):
    """Raised when the build passes are driven out of order."""


class BuildPhase(Enum):
    EMPTY = "empty"
    COLLECTED = "collected"
    FINALIZED = "finalized"


@dataclass(frozen=True)
class IndexingContext:
    """Immutable description of one indexing run."""

    index_dir: Path
    collection_dir: Path
    processor: TextProcessor
    document_suffix: str = ".html"
    document_encoding: str = "utf-8"
    cache_bucket_count: int = DEFAULT_CACHE_BUCKETS


@dataclass(frozen=True)
class CollectionScan:
    """Outcome of pass 1."""

    documents_indexed: int
    documents_skipped: int
    errors: tuple[str, ...]
    bytes_read: int
    seconds: float


@dataclass(frozen=True)
class IndexBuildResult:
    """Outcome of a full indexing run."""

    documents_indexed: int
    documents_skipped: int
    errors: tuple[str, ...]
    bytes_read: int
    first_pass_seconds: float
    second_pass_seconds: float
    statistics: IndexStatistics | None = None


class Indexer:
    """Builds an ``Index`` from a directory of documents."""

    def __init__(self, context: IndexingContext) -> None:
        self.context = context
        self.index = Index(context.index_dir, cache_bucket_count=context.cache_bucket_count)
        self.phase = BuildPhase.EMPTY

    def run(self) -> IndexBuildResult:
        """Run both passes, save the index and report statistics."""

        scan = self.first_pass()
        second_pass_seconds = self.second_pass()

        logger.info("Saving index to %s", self.index.path)
        self.index.save()
        statistics = self.index.log_statistics()

        return IndexBuildResult(
            documents_indexed=scan.documents_indexed,
            documents_skipped=scan.documents_skipped,
            errors=scan.errors,
            bytes_read=scan.bytes_read,
            first_pass_seconds=scan.seconds,
            second_pass_seconds=second_pass_seconds,
            statistics=statistics,
        )

    def first_pass(self) -> CollectionScan:
        """Scan the collection and collect raw term-frequency postings."""

        if self.phase is not BuildPhase.EMPTY:
            raise IndexBuildError(f"First pass requires an empty index (phase={self.phase.value})")

        start = time.perf_counter()
        documents_indexed = 0
        documents_skipped = 0
        bytes_read = 0
        errors: list[str] = []

        logger.info("Running first pass over %s", self.context.collection_dir)
        for doc_path in self.discover_documents():
            try:
                size = doc_path.stat().st_size
                doc_id = self.process_document(doc_path)
            except (OSError, UnicodeDecodeError, DocumentProcessingError, StorageError) as exc:
                logger.warning("Failed to index %s: %s", doc_path, exc)
                errors.append(f"{doc_path}: {exc}")
                documents_skipped += 1
                continue
            logger.debug("Indexed %s as docID %d", doc_path.name, doc_id)
            documents_indexed += 1
            bytes_read += size

        self.phase = BuildPhase.COLLECTED
        seconds = time.perf_counter() - start
        megabytes = bytes_read / _MB
        throughput = megabytes / seconds if seconds > 0 else 0.0
        logger.info(
            "First pass done: %d documents (%.2f MB), %d skipped, %.2f seconds, %.2f MB/s",
            documents_indexed,
            megabytes,
            documents_skipped,
            seconds,
            throughput,
        )
        return CollectionScan(
            documents_indexed=documents_indexed,
            documents_skipped=documents_skipped,
            errors=tuple(errors),
            bytes_read=bytes_read,
            seconds=seconds,
        )

    def second_pass(self) -> float:
        """Finalize IDF, posting weights, direct index and norms.

        Returns the elapsed time in seconds.
        """

        if self.phase is not BuildPhase.COLLECTED:
            raise IndexBuildError(f"Second pass requires a collected index (phase={self.phase.value})")

        start = time.perf_counter()
        index = self.index
        total_docs = index.document_count

        logger.info("Running second pass: updating term weights and direct index")
        for entry in index.vocabulary.values():
            postings = index.inverted[entry.term_id]
            entry.idf = inverse_document_frequency(len(postings), total_docs)
            for posting in postings:
                weight = posting.weight * entry.idf
                posting.weight = weight
                index.documents[posting.id].norm += weight * weight
                index.direct[posting.id].append(Posting(entry.term_id, weight))

        for document in index.documents:
            document.norm = math.sqrt(document.norm)

        self.phase = BuildPhase.FINALIZED
        seconds = time.perf_counter() - start
        logger.info("Second pass done: %d terms, %.2f seconds", len(index.vocabulary), seconds)
        return seconds

    def process_document(self, doc_path: Path) -> int:
        """Add one document to the index and return its docID.

        Nothing is added to the index tables unless every step succeeds.
        """

        raw_text = doc_path.read_bytes().decode(self.context.document_encoding)
        processor = self.context.processor
        parsed = processor.parse(raw_text)
        terms = processor.process_text(parsed.title) + processor.process_text(parsed.body)
        counts = Counter(terms)

        index = self.index
        doc_id = index.document_count
        index.set_cached_document(
            doc_id,
            CachedDocument(title=collapse_whitespace(parsed.title), body=collapse_whitespace(parsed.body)),
        )

        index.documents.append(DocumentEntry(name=self._document_name(doc_path)))
        index.direct.append([])
        for term, count in counts.items():
            entry = index.vocabulary.get(term)
            if entry is None:
                entry = VocabularyEntry(term_id=len(index.vocabulary))
                index.vocabulary[term] = entry
                index.inverted.append([])
            index.inverted[entry.term_id].append(Posting(doc_id, term_frequency_weight(count)))
        return doc_id

    def discover_documents(self) -> Iterator[Path]:
        """Yield document files in sorted order, skipping hidden entries.

        Documents sit either directly in the collection root or one directory
        below it.
        """

        root = self.context.collection_dir
        for entry in sorted(root.iterdir()):
            if entry.name.startswith("."):
                continue
            if entry.is_dir():
                for child in sorted(entry.iterdir()):
                    if self._is_document(child):
                        yield child
            elif self._is_document(entry):
                yield entry

    def _is_document(self, path: Path) -> bool:
        return not path.name.startswith(".") and path.is_file() and path.name.endswith(self.context.document_suffix)

    def _document_name(self, doc_path: Path) -> str:
        return doc_path.name[: -len(self.context.document_suffix)]
