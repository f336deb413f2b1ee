"""Length-prefixed binary storage for the index tables.

Each table lives in its own artifact file::

    header   magic b"TIDX" | kind (u8) | format version (u16)
    count    u32
    records  count x record

Integers are big-endian unsigned 32-bit, weights big-endian IEEE-754 doubles
and strings a u32 byte length followed by UTF-8 bytes. Record shapes:

* vocabulary: ``term, termID, idf`` in termID order
* documents:  ``cacheBucketCount`` (u32) before the count, then ``name, norm``
  in docID order
* inverted / direct: ``n`` then ``n x (id, weight)`` per table position

Readers consume the stream front to back exactly once. Any short read, bad
header or trailing byte raises ``StorageError``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from enum import IntEnum
import logging
from pathlib import Path
import struct
from typing import BinaryIO

from ti_search.search.models import DocumentEntry, Posting, VocabularyEntry


logger = logging.getLogger(__name__)

MAGIC = b"TIDX"
FORMAT_VERSION = 2

_HEADER = struct.Struct(">4sBH")
_U32 = struct.Struct(">I")
_F64 = struct.Struct(">d")
_POSTING = struct.Struct(">Id")


class StorageError(RuntimeError):
    """Raised when an index artifact cannot be read or written."""


class ArtifactKind(IntEnum):
    VOCABULARY = 1
    DOCUMENTS = 2
    INVERTED = 3
    DIRECT = 4

    @property
    def filename(self) -> str:
        return self.name.lower()


class RecordWriter:
    """Writes primitive fields to a binary stream."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    def write_header(self, kind: ArtifactKind) -> None:
        self._stream.write(_HEADER.pack(MAGIC, int(kind), FORMAT_VERSION))

    def write_u32(self, value: int) -> None:
        try:
            self._stream.write(_U32.pack(value))
        except struct.error as exc:
            raise StorageError(f"Value out of range for u32: {value}") from exc

    def write_f64(self, value: float) -> None:
        self._stream.write(_F64.pack(value))

    def write_str(self, value: str) -> None:
        encoded = value.encode("utf-8")
        self.write_u32(len(encoded))
        self._stream.write(encoded)

    def write_posting(self, posting: Posting) -> None:
        try:
            self._stream.write(_POSTING.pack(posting.id, posting.weight))
        except struct.error as exc:
            raise StorageError(f"Invalid posting {posting}: {exc}") from exc


class RecordReader:
    """Reads primitive fields from a binary stream, failing on short reads."""

    def __init__(self, stream: BinaryIO, source: Path) -> None:
        self._stream = stream
        self._source = source

    def _read_exact(self, size: int) -> bytes:
        data = self._stream.read(size)
        if len(data) != size:
            raise StorageError(f"Truncated artifact {self._source}: expected {size} bytes, got {len(data)}")
        return data

    def read_header(self, kind: ArtifactKind) -> None:
        magic, raw_kind, version = _HEADER.unpack(self._read_exact(_HEADER.size))
        if magic != MAGIC:
            raise StorageError(f"Not an index artifact: {self._source}")
        if raw_kind != int(kind):
            raise StorageError(f"Artifact {self._source} has kind {raw_kind}, expected {int(kind)} ({kind.filename})")
        if version != FORMAT_VERSION:
            raise StorageError(f"Unsupported format version {version} in {self._source}")

    def read_u32(self) -> int:
        return _U32.unpack(self._read_exact(_U32.size))[0]

    def read_f64(self) -> float:
        return _F64.unpack(self._read_exact(_F64.size))[0]

    def read_str(self) -> str:
        size = self.read_u32()
        raw = self._read_exact(size)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise StorageError(f"Invalid UTF-8 string in {self._source}: {exc}") from exc

    def read_posting(self) -> Posting:
        item_id, weight = _POSTING.unpack(self._read_exact(_POSTING.size))
        return Posting(item_id, weight)

    def expect_end(self) -> None:
        if self._stream.read(1):
            raise StorageError(f"Trailing data after last record in {self._source}")


# --- writers ---------------------------------------------------------------


def _atomic_write(path: Path, kind: ArtifactKind, body: Callable[[RecordWriter], None]) -> None:
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        with tmp_path.open("wb") as stream:
            writer = RecordWriter(stream)
            writer.write_header(kind)
            body(writer)
        tmp_path.replace(path)
    except StorageError:
        tmp_path.unlink(missing_ok=True)
        raise
    except OSError as exc:
        tmp_path.unlink(missing_ok=True)
        raise StorageError(f"Failed to write {path}: {exc}") from exc


def write_vocabulary(path: Path, vocabulary: Mapping[str, VocabularyEntry]) -> None:
    ordered = sorted(vocabulary.items(), key=lambda item: item[1].term_id)

    def body(writer: RecordWriter) -> None:
        writer.write_u32(len(ordered))
        for term, entry in ordered:
            writer.write_str(term)
            writer.write_u32(entry.term_id)
            writer.write_f64(entry.idf)

    _atomic_write(path, ArtifactKind.VOCABULARY, body)


def write_documents(path: Path, documents: Sequence[DocumentEntry], cache_bucket_count: int) -> None:
    def body(writer: RecordWriter) -> None:
        writer.write_u32(cache_bucket_count)
        writer.write_u32(len(documents))
        for entry in documents:
            writer.write_str(entry.name)
            writer.write_f64(entry.norm)

    _atomic_write(path, ArtifactKind.DOCUMENTS, body)


def write_postings_table(path: Path, kind: ArtifactKind, table: Sequence[Sequence[Posting]]) -> None:
    def body(writer: RecordWriter) -> None:
        writer.write_u32(len(table))
        for postings in table:
            writer.write_u32(len(postings))
            for posting in postings:
                writer.write_posting(posting)

    _atomic_write(path, kind, body)


# --- readers ---------------------------------------------------------------


def _open_for_read(path: Path) -> BinaryIO:
    try:
        return path.open("rb")
    except FileNotFoundError as exc:
        raise StorageError(f"Missing index artifact: {path}") from exc
    except OSError as exc:
        raise StorageError(f"Cannot open index artifact {path}: {exc}") from exc


def read_vocabulary(path: Path) -> dict[str, VocabularyEntry]:
    """Return the vocabulary keyed by term, in termID order."""

    with _open_for_read(path) as stream:
        reader = RecordReader(stream, path)
        reader.read_header(ArtifactKind.VOCABULARY)
        count = reader.read_u32()
        vocabulary: dict[str, VocabularyEntry] = {}
        seen_ids: set[int] = set()
        for _ in range(count):
            term = reader.read_str()
            term_id = reader.read_u32()
            idf = reader.read_f64()
            if term in vocabulary:
                raise StorageError(f"Duplicate term {term!r} in {path}")
            if term_id >= count or term_id in seen_ids:
                raise StorageError(f"Invalid termID {term_id} for {term!r} in {path}")
            seen_ids.add(term_id)
            vocabulary[term] = VocabularyEntry(term_id=term_id, idf=idf)
        reader.expect_end()
    return dict(sorted(vocabulary.items(), key=lambda item: item[1].term_id))


def read_documents(path: Path) -> tuple[list[DocumentEntry], int]:
    """Return the document table and the cache bucket count it was built with."""

    with _open_for_read(path) as stream:
        reader = RecordReader(stream, path)
        reader.read_header(ArtifactKind.DOCUMENTS)
        cache_bucket_count = reader.read_u32()
        if cache_bucket_count < 1:
            raise StorageError(f"Invalid cache bucket count {cache_bucket_count} in {path}")
        count = reader.read_u32()
        documents = []
        for _ in range(count):
            name = reader.read_str()
            norm = reader.read_f64()
            documents.append(DocumentEntry(name=name, norm=norm))
        reader.expect_end()
    return documents, cache_bucket_count


def read_postings_table(path: Path, kind: ArtifactKind) -> list[list[Posting]]:
    with _open_for_read(path) as stream:
        reader = RecordReader(stream, path)
        reader.read_header(kind)
        count = reader.read_u32()
        table: list[list[Posting]] = []
        for _ in range(count):
            size = reader.read_u32()
            table.append([reader.read_posting() for _ in range(size)])
        reader.expect_end()
    return table
