"""Embedding generation — model path, pooling and hashing fallback."""

from codecontext.embedding.generator import (
    Embedding,
    EmbeddingGenerator,
    pool,
    split_into_chunks,
)
from codecontext.embedding.hashing import DEFAULT_DIMENSIONS, fallback_embedding
from codecontext.embedding.model import LiteLLMEmbeddingModel

__all__ = [
    "DEFAULT_DIMENSIONS",
    "Embedding",
    "EmbeddingGenerator",
    "LiteLLMEmbeddingModel",
    "fallback_embedding",
    "pool",
    "split_into_chunks",
]
