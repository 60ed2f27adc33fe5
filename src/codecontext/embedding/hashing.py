"""Deterministic bag-of-hashed-tokens embedding.

Used whenever the embedding model is unavailable. The same text always maps
to the same vector, across runs and processes: tokens are hashed with a
32-bit polynomial rolling hash over UTF-16 code units, never with Python's
salted ``hash()``.
"""

from __future__ import annotations

import re

DEFAULT_DIMENSIONS = 512

_NON_WORD_RE = re.compile(r"\W+", re.ASCII)


def tokenize(text: str) -> list[str]:
    """Lower-case *text* and split it on runs of non-word characters."""
    return [tok for tok in _NON_WORD_RE.split(text.lower()) if tok]


def rolling_hash(token: str) -> int:
    """Return the signed 32-bit ``h = h * 31 + code_unit`` hash of *token*."""
    data = token.encode("utf-16-le", errors="surrogatepass")
    h = 0
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + code_unit) & 0xFFFFFFFF
    return h - 0x100000000 if h & 0x80000000 else h


def fallback_embedding(text: str, dimensions: int = DEFAULT_DIMENSIONS) -> list[float]:
    """Return the token-frequency vector of *text* over *dimensions* hash buckets."""
    if dimensions < 1:
        raise ValueError(f"dimensions must be >= 1, got {dimensions}")
    vector = [0.0] * dimensions
    for token in tokenize(text):
        vector[abs(rolling_hash(token)) % dimensions] += 1.0
    return vector


def hash_space(dimensions: int = DEFAULT_DIMENSIONS) -> str:
    """Name of the vector space produced by fallback_embedding()."""
    return f"hash-{dimensions}"
