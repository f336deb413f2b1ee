"""Weighting formulas for the TF-IDF vector space model.

The functions stay independent of the index structures so the indexer and the
retrieval models share one definition of each weight.
"""

from __future__ import annotations

from collections.abc import Iterable
import math


def term_frequency_weight(count: int) -> float:
    """Log-dampened term frequency ``1 + ln(count)``.

    Only defined for terms that occur at least once.
    """

    if count <= 0:
        raise ValueError(f"term count must be positive, got {count}")
    return 1.0 + math.log(count)


def inverse_document_frequency(doc_freq: int, total_docs: int) -> float:
    """Return ``ln(1 + N / df)``.

    Always positive for ``1 <= df <= N``, so every indexed term carries weight.
    """

    if doc_freq <= 0:
        raise ValueError(f"document frequency must be positive, got {doc_freq}")
    return math.log(1.0 + total_docs / doc_freq)


def euclidean_norm(weights: Iterable[float]) -> float:
    return math.sqrt(sum(weight * weight for weight in weights))
