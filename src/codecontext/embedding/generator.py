"""Embedding generator: chunking, model pooling, deterministic fallback.

``embed()`` never fails. Text is split into whitespace-token chunks, each
chunk is embedded by the model one call at a time, and the chunk vectors are
averaged. Any model error discards the partial results and the whole text is
embedded with the hashing fallback instead. Each result names the vector
space it belongs to so model and fallback vectors are never compared.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from codecontext.embedding.hashing import DEFAULT_DIMENSIONS, fallback_embedding, hash_space
from codecontext.embedding.model import EmbeddingModel
from codecontext.errors import ModelFailure

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_WORDS = 500


@dataclass(frozen=True)
class Embedding:
    vector: list[float]
    space: str


def split_into_chunks(text: str, max_words: int = DEFAULT_CHUNK_WORDS) -> list[str]:
    """Group the whitespace tokens of *text* into ordered chunks of <= *max_words*."""
    if max_words < 1:
        raise ValueError("max_words must be >= 1")
    words = text.split()
    return [" ".join(words[i : i + max_words]) for i in range(0, len(words), max_words)]


def pool(vectors: Sequence[Sequence[float]]) -> list[float]:
    """Elementwise arithmetic mean of equally sized *vectors*."""
    if not vectors:
        raise ValueError("cannot pool zero vectors")
    return np.mean(np.asarray(vectors, dtype=np.float64), axis=0).tolist()


class EmbeddingGenerator:
    """Turn text into fixed-length vectors.

    Args:
        model: Embedding model provider, or None for fallback-only operation.
        mode: ``auto`` (model once ready, fallback until then and on error)
            or ``hash`` (fallback only).
        dimensions: Vector length of every result.
        chunk_words: Maximum whitespace tokens per model call.
    """

    def __init__(
        self,
        model: EmbeddingModel | None = None,
        *,
        mode: str = "auto",
        dimensions: int = DEFAULT_DIMENSIONS,
        chunk_words: int = DEFAULT_CHUNK_WORDS,
    ) -> None:
        if mode not in ("auto", "hash"):
            raise ValueError(f"unknown embedding mode '{mode}'")
        self._model = model if mode == "auto" else None
        self.mode = mode
        self.dimensions = dimensions
        self.chunk_words = chunk_words
        self._model_ready = False
        self._model_lock = asyncio.Lock()
        self._warm_up_task: asyncio.Task | None = None

    @property
    def model_ready(self) -> bool:
        return self._model is not None and self._model_ready

    @property
    def space(self) -> str:
        """Vector space of results produced right now."""
        if self.model_ready:
            return f"{self._model.name}@{self.dimensions}"
        return hash_space(self.dimensions)

    # ------------------------------------------------------------------
    # Model lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Schedule model initialisation on the running loop (idempotent)."""
        if self._model is None or self._warm_up_task is not None:
            return
        self._warm_up_task = asyncio.get_running_loop().create_task(self._warm_up())

    async def _warm_up(self) -> None:
        try:
            await self._model.ready()
        except Exception as exc:
            logger.warning(
                "Embedding model '%s' unavailable, using hashing fallback: %s",
                self._model.name,
                exc,
            )
            return
        self._model_ready = True
        logger.info("Embedding model '%s' ready", self._model.name)

    async def wait_ready(self, timeout: float | None = None) -> bool:
        """Wait up to *timeout* seconds for model initialisation; return readiness."""
        task = self._warm_up_task
        if task is not None and not task.done():
            try:
                await asyncio.wait_for(asyncio.shield(task), timeout)
            except asyncio.TimeoutError:
                logger.debug("Embedding model not ready after %ss", timeout)
        return self.model_ready

    async def close(self) -> None:
        task, self._warm_up_task = self._warm_up_task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    # ------------------------------------------------------------------
    # Embedding
    # ------------------------------------------------------------------

    async def embed(self, text: str) -> Embedding:
        """Return the embedding of *text*; the empty text maps to the zero vector."""
        chunks = split_into_chunks(text, self.chunk_words)
        if not chunks:
            return Embedding([0.0] * self.dimensions, self.space)

        if self.model_ready:
            space = self.space
            try:
                return Embedding(await self._embed_with_model(chunks), space)
            except Exception as exc:
                logger.warning("Model embedding failed, using hashing fallback: %s", exc)

        return Embedding(fallback_embedding(text, self.dimensions), hash_space(self.dimensions))

    async def _embed_with_model(self, chunks: list[str]) -> list[float]:
        vectors: list[list[float]] = []
        for chunk in chunks:
            async with self._model_lock:
                vector = await self._model.predict(chunk)
            if len(vector) != self.dimensions:
                raise ModelFailure(
                    f"model returned {len(vector)} dimensions, expected {self.dimensions}"
                )
            vectors.append(vector)
        return pool(vectors)
