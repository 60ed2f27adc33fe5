"""codecontext — workspace context indexing and semantic retrieval."""

from codecontext.engine import ContextEngine, Insights
from codecontext.search.similarity import SearchResult

__all__ = ["ContextEngine", "Insights", "SearchResult"]
