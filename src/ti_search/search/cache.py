"""Compressed per-document text cache.

Documents are spread over ``bucket_count`` directories named ``cache<b>``
with ``b = docID mod bucket_count``; each document is one gzip file holding
the JSON array ``[title, body]``.
"""

from __future__ import annotations

from collections.abc import Iterator
import gzip
import logging
from pathlib import Path

import orjson

from ti_search.search.models import CachedDocument
from ti_search.search.storage import StorageError


logger = logging.getLogger(__name__)

BUCKET_PREFIX = "cache"


class CachedDocumentNotFoundError(StorageError):
    """Raised when a docID has no cache entry."""


class DocumentCache:
    """Reads and writes cached document text under an index root."""

    def __init__(self, root: str | Path, bucket_count: int = 20) -> None:
        if bucket_count < 1:
            raise ValueError("bucket_count must be >= 1")
        self.root = Path(root)
        self.bucket_count = bucket_count

    def bucket_dir(self, doc_id: int) -> Path:
        return self.root / f"{BUCKET_PREFIX}{doc_id % self.bucket_count}"

    def entry_path(self, doc_id: int) -> Path:
        return self.bucket_dir(doc_id) / str(doc_id)

    def get(self, doc_id: int) -> CachedDocument:
        path = self.entry_path(doc_id)
        try:
            with gzip.open(path, "rb") as stream:
                payload = orjson.loads(stream.read())
        except FileNotFoundError as exc:
            raise CachedDocumentNotFoundError(f"No cached document for docID {doc_id} at {path}") from exc
        except (OSError, EOFError, orjson.JSONDecodeError) as exc:
            raise StorageError(f"Corrupt cache entry {path}: {exc}") from exc

        if not isinstance(payload, list) or len(payload) != 2 or not all(isinstance(item, str) for item in payload):
            raise StorageError(f"Corrupt cache entry {path}: expected [title, body]")
        return CachedDocument(title=payload[0], body=payload[1])

    def put(self, doc_id: int, document: CachedDocument) -> None:
        bucket = self.bucket_dir(doc_id)
        try:
            bucket.mkdir(parents=True, exist_ok=True)
            with gzip.open(bucket / str(doc_id), "wb") as stream:
                stream.write(orjson.dumps([document.title, document.body]))
        except OSError as exc:
            raise StorageError(f"Failed to cache docID {doc_id}: {exc}") from exc

    def iter_entry_files(self) -> Iterator[Path]:
        for bucket in range(self.bucket_count):
            bucket_path = self.root / f"{BUCKET_PREFIX}{bucket}"
            if not bucket_path.is_dir():
                continue
            yield from (entry for entry in bucket_path.iterdir() if entry.is_file())

    def size_bytes(self) -> int:
        return sum(entry.stat().st_size for entry in self.iter_entry_files())
