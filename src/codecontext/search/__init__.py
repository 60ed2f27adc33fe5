"""Similarity search over stored embeddings."""

from codecontext.search.similarity import SearchResult, cosine_similarity, rank

__all__ = ["SearchResult", "cosine_similarity", "rank"]
