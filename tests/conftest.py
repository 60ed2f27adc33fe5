"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from codecontext.db.connection import Database
from codecontext.db.models import CodeMetrics, ContextEntry, GitMetadata
from codecontext.db.schema import initialize
from codecontext.db.store import ContextStore


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / ".codecontext.db")
    conn = db.connect()
    initialize(conn)
    yield conn
    conn.close()


@pytest.fixture
def store(tmp_db):
    return ContextStore(tmp_db)


@pytest.fixture
def make_entry():
    """Factory for unsaved ContextEntry objects."""

    def _make(
        path: str = "/ws/app.py",
        content: str = "print('hi')",
        embedding: list[float] | None = None,
        space: str | None = None,
        complexity: float = 1,
        dependencies: list[str] | None = None,
        author: str = "",
    ) -> ContextEntry:
        if embedding is None:
            embedding = [1.0, 0.0, 0.0]
        return ContextEntry(
            file_path=path,
            content=content,
            metadata={"fileType": ".py", "timestamp": "2024-01-01T00:00:00+00:00"},
            embedding=embedding,
            embedding_space=space or f"hash-{len(embedding)}",
            complexity_metrics=CodeMetrics(
                complexity=complexity,
                sloc=content.count("\n") + 1,
                dependencies=dependencies or [],
            ),
            git_metadata=GitMetadata(author=author, branch="main" if author else ""),
        )

    return _make
