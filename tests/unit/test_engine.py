"""End-to-end tests for ContextEngine ingestion and queries."""

from __future__ import annotations

import asyncio
from datetime import datetime

import pytest

from codecontext.config import ContextConfig
from codecontext.db.models import GitMetadata
from codecontext.embedding.generator import EmbeddingGenerator
from codecontext.engine import ContextEngine
from codecontext.errors import SearchFailure
from codecontext.vcs.git import CommitInfo, VcsMetadataFetcher


class StaticClient:
    def last_commit(self, path):
        return CommitInfo("c0ffee", "Ada", "Initial import")

    def current_branch(self, path):
        return "main"


class DelayedGenerator(EmbeddingGenerator):
    """Hash-mode generator that stalls on texts starting with 'slow'."""

    async def embed(self, text):
        if text.startswith("slow"):
            await asyncio.sleep(0.05)
        return await super().embed(text)


@pytest.fixture
def engine(store):
    return ContextEngine(
        store,
        EmbeddingGenerator(mode="hash"),
        vcs=VcsMetadataFetcher(StaticClient()),
    )


def _run(engine, body):
    async def scenario():
        async with engine:
            return await body(engine)

    return asyncio.run(scenario())


# ------------------------------------------------------------------
# Ingestion
# ------------------------------------------------------------------


def test_ingest_populates_entry(engine):
    async def body(e):
        return await e.ingest("/ws/app.py", "import os\n\nif True:\n    pass\n")

    entry = _run(engine, body)
    assert entry.id is not None
    assert entry.metadata["fileType"] == ".py"
    datetime.fromisoformat(entry.metadata["timestamp"])
    assert len(entry.embedding) == 512
    assert entry.embedding_space == "hash-512"
    assert entry.complexity_metrics.complexity == 2
    assert entry.complexity_metrics.dependencies == ["os"]
    assert entry.git_metadata == GitMetadata("c0ffee", "Ada", "Initial import", "main")
    assert entry.type_info == entry.complexity_metrics.type_info


def test_ingest_same_path_twice_appends(engine):
    async def body(e):
        await e.ingest("/ws/app.py", "v1")
        await e.ingest("/ws/app.py", "v2")
        return await e.recent()

    recent = _run(engine, body)
    assert [r.content for r in recent] == ["v2", "v1"]


def test_parser_failure_still_stores_entry(engine):
    async def body(e):
        return await e.ingest("/ws/bad.py", "def broken(:\n")

    entry = _run(engine, body)
    assert entry is not None
    assert entry.complexity_metrics.complexity == 0
    assert entry.complexity_metrics.dependencies == []
    assert len(entry.embedding) == 512


def test_vcs_failure_yields_empty_metadata(store):
    class Broken:
        def last_commit(self, path):
            raise RuntimeError("no repo")

        def current_branch(self, path):
            return "main"

    eng = ContextEngine(store, vcs=VcsMetadataFetcher(Broken()))

    async def body(e):
        return await e.ingest("/ws/a.txt", "hello")

    assert _run(eng, body).git_metadata == GitMetadata()


def test_store_failure_drops_entry(engine, store):
    store.close()

    async def body(e):
        return await e.ingest("/ws/a.py", "x = 1")

    assert asyncio.run(body(engine)) is None


# ------------------------------------------------------------------
# Queries
# ------------------------------------------------------------------


def test_search_ranks_matching_file_first(engine):
    async def body(e):
        await e.ingest("/ws/fileA.ts", "function foo() { return 1; }")
        await e.ingest("/ws/fileB.ts", "function bar() { return 2; }")
        return await e.search("foo", k=5)

    results = _run(engine, body)
    assert [r.entry.file_path for r in results] == ["/ws/fileA.ts", "/ws/fileB.ts"]
    assert results[0].score > results[1].score


def test_search_function_file_ranks_above_constant_file(engine):
    async def body(e):
        await e.ingest("/ws/fileA.ts", "function foo() { return 1 + 1; }")
        await e.ingest("/ws/fileB.ts", "const x = 1 + 1;")
        return await e.search("foo")

    results = _run(engine, body)
    assert results[0].entry.file_path == "/ws/fileA.ts"
    assert results[0].score > 0.0
    assert results[1].score == 0.0


def test_search_respects_k(engine):
    async def body(e):
        for i in range(7):
            await e.ingest(f"/ws/f{i}.py", f"value_{i} = {i}")
        return await e.search("value", k=5)

    assert len(_run(engine, body)) == 5


def test_search_empty_store(engine):
    async def body(e):
        return await e.search("anything")

    assert _run(engine, body) == []


def test_search_ignores_other_vector_spaces(engine, store, make_entry):
    store.insert(make_entry(path="/ws/model.py", embedding=[1.0] * 512, space="openai/x@512"))

    async def body(e):
        await e.ingest("/ws/hashed.py", "foo")
        return await e.search("foo")

    assert [r.entry.file_path for r in _run(engine, body)] == ["/ws/hashed.py"]


def test_search_warns_about_skipped_entries(engine, store, make_entry, caplog):
    store.insert(make_entry(path="/ws/model.py", embedding=[1.0] * 512, space="openai/x@512"))
    store.insert(make_entry(path="/ws/short.py", embedding=[1.0, 0.0], space="hash-512"))

    async def body(e):
        await e.ingest("/ws/hashed.py", "foo")
        return await e.search("foo")

    _run(engine, body)
    assert "Search skipped 2 entries" in caplog.text


def test_search_without_skipped_entries_is_quiet(engine, caplog):
    async def body(e):
        await e.ingest("/ws/hashed.py", "foo")
        return await e.search("foo")

    _run(engine, body)
    assert "Search skipped" not in caplog.text


def test_search_store_failure_raises(engine, store):
    store.close()
    with pytest.raises(SearchFailure):
        asyncio.run(engine.search("foo"))


def test_recent_returns_newest_ten(engine):
    async def body(e):
        for i in range(12):
            await e.ingest(f"/ws/f{i}.py", f"n = {i}")
        return await e.recent(10)

    recent = _run(engine, body)
    assert [r.file_path for r in recent] == [f"/ws/f{i}.py" for i in range(11, 1, -1)]


def test_clear_empties_recent_and_search(engine):
    async def body(e):
        await e.ingest("/ws/a.py", "foo")
        await e.ingest("/ws/b.py", "bar")
        removed = await e.clear()
        return removed, await e.recent(), await e.search("foo")

    assert _run(engine, body) == (2, [], [])


def test_get_entry(engine):
    async def body(e):
        entry = await e.ingest("/ws/a.py", "foo")
        return entry.id, await e.get(entry.id), await e.get(entry.id + 100)

    entry_id, found, missing = _run(engine, body)
    assert found.id == entry_id
    assert missing is None


def test_insights(engine):
    async def body(e):
        await e.ingest("/ws/a.py", "import os\nif a:\n    pass\n")
        await e.ingest("/ws/b.py", "import os\nimport re\n")
        return await e.insights()

    insights = _run(engine, body)
    assert insights.complexity_hotspots[0] == ("/ws/a.py", 2)
    assert insights.shared_dependencies == [("os", 2)]
    assert insights.recent_changes == [("/ws/b.py", "Ada"), ("/ws/a.py", "Ada")]


# ------------------------------------------------------------------
# Per-path ordering
# ------------------------------------------------------------------


def _racing_ingests(store, ordered):
    eng = ContextEngine(
        store,
        DelayedGenerator(mode="hash"),
        vcs=VcsMetadataFetcher(StaticClient()),
        ordered_per_path=ordered,
    )

    async def body(e):
        await asyncio.gather(e.ingest("/ws/a.py", "slow edit"), e.ingest("/ws/a.py", "fast edit"))
        return [r.content for r in await e.recent()]

    return _run(eng, body)


def test_same_path_events_stored_in_event_order(store):
    assert _racing_ingests(store, ordered=True) == ["fast edit", "slow edit"]


def test_unordered_events_may_complete_out_of_order(store):
    assert _racing_ingests(store, ordered=False) == ["slow edit", "fast edit"]


def test_path_locks_released_after_ingest(engine):
    async def body(e):
        await e.ingest("/ws/a.py", "one")
        await asyncio.gather(
            e.ingest("/ws/a.py", "slow two"),
            e.ingest("/ws/a.py", "three"),
            e.ingest("/ws/b.py", "four"),
        )
        return dict(e._path_locks), dict(e._path_pending)

    assert _run(engine, body) == ({}, {})


def test_path_lock_released_when_ingest_fails(store):
    eng = ContextEngine(store, vcs=VcsMetadataFetcher(StaticClient()))
    store.close()

    async def body(e):
        await e.ingest("/ws/a.py", "x = 1")
        return dict(e._path_locks)

    assert asyncio.run(body(eng)) == {}


# ------------------------------------------------------------------
# Construction
# ------------------------------------------------------------------


def test_from_config_hash_mode(tmp_path):
    cfg = ContextConfig()
    cfg.embedding.mode = "hash"
    cfg.embedding.dimensions = 64
    eng = ContextEngine.from_config(cfg, tmp_path / "ctx.db")
    eng.vcs = VcsMetadataFetcher(StaticClient())

    async def body(e):
        return await e.ingest("/ws/a.py", "foo")

    entry = _run(eng, body)
    assert entry.embedding_space == "hash-64"
    assert (tmp_path / "ctx.db").exists()
