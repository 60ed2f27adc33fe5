"""Context engine — ingestion pipeline and query API.

Per file event:
  embed ─┐
  analyze ├─(concurrently)→ ContextEntry → ContextStore.insert()
  fetch ─┘

``ingest`` never raises: every sub-step degrades its own field, and a failed
write is logged and dropped by the store. ``search`` and ``recent`` propagate
store errors because the caller has no fallback dataset.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path, PurePath
from typing import AsyncIterator

from codecontext.analysis.metrics import MetricsExtractor
from codecontext.config import ContextConfig
from codecontext.db.connection import Database
from codecontext.db.models import ContextEntry
from codecontext.db.schema import initialize
from codecontext.db.store import ContextStore
from codecontext.embedding.generator import EmbeddingGenerator
from codecontext.embedding.model import LiteLLMEmbeddingModel
from codecontext.errors import SearchFailure, StoreFailure
from codecontext.search.similarity import SearchResult, rank
from codecontext.vcs.git import VcsMetadataFetcher

logger = logging.getLogger(__name__)


@dataclass
class Insights:
    """Aggregate views over the stored entries."""

    complexity_hotspots: list[tuple[str, float]] = field(default_factory=list)
    shared_dependencies: list[tuple[str, int]] = field(default_factory=list)
    recent_changes: list[tuple[str, str]] = field(default_factory=list)


class ContextEngine:
    """Owns the store and the per-file pipeline.

    Args:
        store: Open context store; closed by ``close()``.
        generator: Embedding generator (model warm-up starts in ``start()``).
        metrics: Static metrics extractor.
        vcs: Git metadata fetcher.
        ordered_per_path: Serialize pipelines for the same path so their rows
            are appended in event order. When False, two quick edits of one
            file may be stored in either order.
    """

    def __init__(
        self,
        store: ContextStore,
        generator: EmbeddingGenerator | None = None,
        metrics: MetricsExtractor | None = None,
        vcs: VcsMetadataFetcher | None = None,
        *,
        ordered_per_path: bool = True,
    ) -> None:
        self.store = store
        self.generator = generator or EmbeddingGenerator(mode="hash")
        self.metrics = metrics or MetricsExtractor()
        self.vcs = vcs or VcsMetadataFetcher()
        self.ordered_per_path = ordered_per_path
        # Lock per path with pending events; dropped when the last one finishes.
        self._path_locks: dict[str, asyncio.Lock] = {}
        self._path_pending: Counter[str] = Counter()

    @classmethod
    def from_config(cls, cfg: ContextConfig, db_path: Path | str | None = None) -> ContextEngine:
        """Build an engine (and open its database) from *cfg*."""
        conn = Database(db_path if db_path is not None else cfg.store.path).connect()
        initialize(conn)
        model = None
        if cfg.embedding.mode == "auto":
            model = LiteLLMEmbeddingModel(cfg.embedding.model, cfg.embedding.dimensions)
        generator = EmbeddingGenerator(
            model,
            mode=cfg.embedding.mode,
            dimensions=cfg.embedding.dimensions,
            chunk_words=cfg.embedding.chunk_words,
        )
        metrics = MetricsExtractor(
            script_extensions=cfg.analysis.script_extensions,
            typed_extensions=cfg.analysis.typed_extensions,
        )
        return cls(
            ContextStore(conn),
            generator,
            metrics,
            VcsMetadataFetcher(),
            ordered_per_path=cfg.ingest.ordered_per_path,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Begin model initialisation in the background."""
        self.generator.start()

    async def close(self) -> None:
        """Stop model initialisation and release the store."""
        await self.generator.close()
        self.store.close()

    async def __aenter__(self) -> ContextEngine:
        await self.start()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    async def ingest(self, path: str, content: str) -> ContextEntry | None:
        """Index one ``(path, content)`` file event as a new entry.

        Returns the stored entry, or None if it could not be stored.
        """
        try:
            if self.ordered_per_path:
                async with self._path_slot(path):
                    return await self._ingest(path, content)
            return await self._ingest(path, content)
        except Exception:
            logger.exception("Error processing file %s", path)
            return None

    @asynccontextmanager
    async def _path_slot(self, path: str) -> AsyncIterator[None]:
        lock = self._path_locks.setdefault(path, asyncio.Lock())
        self._path_pending[path] += 1
        try:
            async with lock:
                yield
        finally:
            self._path_pending[path] -= 1
            if not self._path_pending[path]:
                del self._path_pending[path]
                del self._path_locks[path]

    async def _ingest(self, path: str, content: str) -> ContextEntry | None:
        embedding, metrics, git_metadata = await asyncio.gather(
            self.generator.embed(content),
            asyncio.to_thread(self.metrics.analyze, content, path),
            self.vcs.fetch(path),
        )
        entry = ContextEntry(
            file_path=path,
            content=content,
            metadata={
                "fileType": PurePath(path).suffix,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
            embedding=embedding.vector,
            embedding_space=embedding.space,
            complexity_metrics=metrics,
            git_metadata=git_metadata,
            type_info=metrics.type_info,
        )
        if await asyncio.to_thread(self.store.insert, entry) is None:
            return None
        logger.debug("Stored entry %s for %s (%s)", entry.id, path, embedding.space)
        return entry

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def search(self, query: str, k: int = 5) -> list[SearchResult]:
        """Return up to *k* stored entries most similar to *query*, best-first.

        Only entries embedded in the same vector space as the query are
        compared; a warning reports how many were left out.

        Raises:
            SearchFailure: If the stored entries cannot be read.
        """
        embedding = await self.generator.embed(query)
        dimensions = len(embedding.vector)
        try:
            entries = await asyncio.to_thread(
                self.store.all_embedded, embedding.space, dimensions
            )
            skipped = await asyncio.to_thread(
                self.store.count_embedded_elsewhere, embedding.space, dimensions
            )
        except StoreFailure as exc:
            raise SearchFailure(f"Search for {query!r} failed: {exc}") from exc
        if skipped:
            logger.warning(
                "Search skipped %d entries embedded outside vector space %s; "
                "re-ingest them to make them searchable",
                skipped,
                embedding.space,
            )
        return rank(embedding.vector, entries, k)

    async def recent(self, n: int = 10) -> list[ContextEntry]:
        return await asyncio.to_thread(self.store.recent, n)

    async def get(self, entry_id: int) -> ContextEntry | None:
        return await asyncio.to_thread(self.store.get, entry_id)

    async def clear(self) -> int:
        """Delete every stored entry; returns how many were removed."""
        return await asyncio.to_thread(self.store.clear)

    async def insights(self, limit: int = 5) -> Insights:
        return Insights(
            complexity_hotspots=await asyncio.to_thread(self.store.complexity_hotspots, limit),
            shared_dependencies=await asyncio.to_thread(self.store.dependency_usage, limit),
            recent_changes=await asyncio.to_thread(self.store.recent_changes, limit),
        )
