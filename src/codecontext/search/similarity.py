"""Cosine-similarity ranking of stored entries against a query vector."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np

from codecontext.db.models import ContextEntry


@dataclass
class SearchResult:
    """A stored entry together with its cosine similarity to the query."""

    entry: ContextEntry
    score: float


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return ``dot(a, b) / (|a| * |b|)``.

    Zero-norm inputs and mismatched lengths score 0.0 instead of NaN.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        return 0.0
    denom = float(np.linalg.norm(va)) * float(np.linalg.norm(vb))
    if denom == 0.0:
        return 0.0
    return float(np.dot(va, vb) / denom)


def rank(
    query_vector: Sequence[float], entries: Iterable[ContextEntry], k: int
) -> list[SearchResult]:
    """Score *entries* against *query_vector* and return the top *k*, best-first.

    The sort is stable: equal scores keep the order of *entries*.
    """
    if k <= 0:
        return []
    scored = [
        SearchResult(entry=e, score=cosine_similarity(query_vector, e.embedding))
        for e in entries
        if e.embedding is not None
    ]
    scored.sort(key=lambda r: r.score, reverse=True)
    return scored[:k]
