"""Index data models.

All records are plain mutable dataclasses. Identifiers are dense and
zero-based, so documents and postings tables are lists addressed by ID.
"""

from dataclasses import dataclass


@dataclass(slots=True)
class VocabularyEntry:
    """Term metadata: its dense ID and inverse document frequency."""

    term_id: int
    idf: float = 0.0


@dataclass(slots=True)
class DocumentEntry:
    """Document metadata: its name and the Euclidean norm of its weight vector."""

    name: str
    norm: float = 0.0


@dataclass(slots=True)
class Posting:
    """A (id, weight) pair.

    In the inverted index ``id`` is a docID; in the direct index it is a termID.
    """

    id: int
    weight: float


@dataclass(frozen=True, slots=True)
class CachedDocument:
    """Display text stored in the document cache."""

    title: str
    body: str


@dataclass(frozen=True, slots=True)
class RankedDocument:
    """A scored document produced by a retrieval model."""

    doc_id: int
    score: float
