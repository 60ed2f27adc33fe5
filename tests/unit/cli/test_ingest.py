"""Tests for codecontext ingest CLI command."""

from __future__ import annotations

from pathlib import Path

from codecontext.cli.main import app
from codecontext.db.connection import Database
from codecontext.db.store import ContextStore


def _stored_paths(db_path: Path) -> list[str]:
    conn = Database(db_path).connect()
    try:
        return sorted(e.file_path for e in ContextStore(conn).recent(100))
    finally:
        conn.close()


def _tree(root: Path) -> None:
    (root / "pkg").mkdir()
    (root / "pkg" / "deep.py").write_text("import os\n")
    (root / "top.py").write_text("x = 1\n")
    (root / ".hidden.py").write_text("secret = 1\n")
    (root / "node_modules").mkdir()
    (root / "node_modules" / "lib.js").write_text("module.exports = 1;\n")
    (root / "notes.log").write_text("log line\n")


# ------------------------------------------------------------------
# Files
# ------------------------------------------------------------------


def test_ingest_files_creates_db(runner, db_path, tmp_path):
    a = tmp_path / "a.py"
    b = tmp_path / "b.txt"
    a.write_text("import os\n")
    b.write_text("plain text\n")

    result = runner.invoke(app, ["ingest", str(a), str(b), "--db", str(db_path)])

    assert result.exit_code == 0, result.output
    assert "2 of 2 files stored" in result.output
    assert _stored_paths(db_path) == sorted([str(a.resolve()), str(b.resolve())])


def test_ingest_same_file_twice_appends(runner, db_path, tmp_path):
    a = tmp_path / "a.py"
    a.write_text("v = 1\n")
    runner.invoke(app, ["ingest", str(a), "--db", str(db_path)])
    a.write_text("v = 2\n")
    runner.invoke(app, ["ingest", str(a), "--db", str(db_path)])

    assert _stored_paths(db_path) == [str(a.resolve())] * 2


def test_ingest_skips_binary_file(runner, db_path, tmp_path):
    good = tmp_path / "good.py"
    good.write_text("x = 1\n")
    binary = tmp_path / "blob.bin"
    binary.write_bytes(b"\xff\xfe\x00\x81")

    result = runner.invoke(app, ["ingest", str(good), str(binary), "--db", str(db_path)])

    assert result.exit_code == 0, result.output
    assert "Skipping" in result.output
    assert "1 of 1 files stored" in result.output


def test_ingest_missing_path_only_exits_1(runner, db_path, tmp_path):
    result = runner.invoke(app, ["ingest", str(tmp_path / "missing.py"), "--db", str(db_path)])

    assert result.exit_code == 1
    assert "No files to ingest" in result.output
    assert not db_path.exists()


# ------------------------------------------------------------------
# Directories
# ------------------------------------------------------------------


def test_ingest_directory_non_recursive(runner, db_path, tmp_path):
    root = tmp_path / "ws"
    root.mkdir()
    _tree(root)

    result = runner.invoke(app, ["ingest", str(root), "--db", str(db_path)])

    assert result.exit_code == 0, result.output
    names = [Path(p).name for p in _stored_paths(db_path)]
    assert names == ["notes.log", "top.py"]


def test_ingest_directory_recursive_skips_vendor_and_hidden(runner, db_path, tmp_path):
    root = tmp_path / "ws"
    root.mkdir()
    _tree(root)

    result = runner.invoke(app, ["ingest", str(root), "-r", "--db", str(db_path)])

    assert result.exit_code == 0, result.output
    names = sorted(Path(p).name for p in _stored_paths(db_path))
    assert names == ["deep.py", "notes.log", "top.py"]


def test_ingest_exclude_pattern(runner, db_path, tmp_path):
    root = tmp_path / "ws"
    root.mkdir()
    _tree(root)

    result = runner.invoke(
        app, ["ingest", str(root), "-r", "--exclude", "*.log", "--db", str(db_path)]
    )

    assert result.exit_code == 0, result.output
    names = sorted(Path(p).name for p in _stored_paths(db_path))
    assert names == ["deep.py", "top.py"]


# ------------------------------------------------------------------
# Configuration
# ------------------------------------------------------------------


def test_ingest_invalid_config_exits_1(runner, db_path, tmp_path):
    (tmp_path / "codecontext.yaml").write_text("embedding:\n  dimensions: 0\n")
    a = tmp_path / "a.py"
    a.write_text("x = 1\n")

    result = runner.invoke(app, ["ingest", str(a), "--db", str(db_path)])

    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


def test_ingest_uses_configured_db(runner, tmp_path, monkeypatch):
    monkeypatch.setenv("CODECONTEXT_DB", str(tmp_path / "env.db"))
    a = tmp_path / "a.py"
    a.write_text("x = 1\n")

    result = runner.invoke(app, ["ingest", str(a)])

    assert result.exit_code == 0, result.output
    assert (tmp_path / "env.db").exists()
