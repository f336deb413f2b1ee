"""Vector-space retrieval with cosine similarity over TF-IDF weights."""

from __future__ import annotations

from collections import Counter, defaultdict
from collections.abc import Callable, Sequence
from typing import Protocol

from ti_search.search.index import Index
from ti_search.search.models import RankedDocument
from ti_search.search.processors import TextProcessor
from ti_search.search.stats import euclidean_norm, term_frequency_weight


QueryVector = list[tuple[int, float]]


class RetrievalModel(Protocol):
    """Protocol implemented by retrieval models."""

    def run_query(
        self, query_text: str, index: Index, processor: TextProcessor
    ) -> list[RankedDocument]:  # pragma: no cover - interface definition
        ...


class CosineModel:
    """Ranks documents by the cosine of their TF-IDF vector with the query's."""

    def run_query(self, query_text: str, index: Index, processor: TextProcessor) -> list[RankedDocument]:
        """Return every document sharing a term with the query, best first.

        Terms missing from the vocabulary are ignored, so an empty or fully
        unknown query yields an empty list.
        """

        terms = processor.process_text(query_text)
        return self.compute_scores(self.compute_vector(terms, index), index)

    def compute_vector(self, terms: Sequence[str], index: Index) -> QueryVector:
        """Return ``(termID, weight)`` pairs for the in-vocabulary query terms."""

        vector: QueryVector = []
        for term, count in Counter(terms).items():
            entry = index.vocabulary.get(term)
            if entry is None:
                continue
            vector.append((entry.term_id, term_frequency_weight(count) * entry.idf))
        return vector

    def compute_scores(self, query_vector: QueryVector, index: Index) -> list[RankedDocument]:
        if not query_vector:
            return []

        dot_products: defaultdict[int, float] = defaultdict(float)
        for term_id, query_weight in query_vector:
            for posting in index.inverted[term_id]:
                dot_products[posting.id] += posting.weight * query_weight

        query_norm = euclidean_norm(weight for _, weight in query_vector)
        results = [
            RankedDocument(doc_id=doc_id, score=dot / (query_norm * index.documents[doc_id].norm))
            for doc_id, dot in dot_products.items()
            if dot != 0.0
        ]
        # ties resolve to the lower docID
        results.sort(key=lambda ranked: (-ranked.score, ranked.doc_id))
        return results


_MODEL_FACTORIES: dict[str, Callable[[], RetrievalModel]] = {
    "cosine": CosineModel,
}


def get_retrieval_model(name: str | None) -> RetrievalModel:
    """Return a retrieval model by name, defaulting to cosine."""

    normalized = (name or "cosine").lower()
    if normalized not in _MODEL_FACTORIES:
        msg = f"Unknown retrieval model '{name}'. Available: {sorted(_MODEL_FACTORIES)}"
        raise ValueError(msg)
    return _MODEL_FACTORIES[normalized]()
