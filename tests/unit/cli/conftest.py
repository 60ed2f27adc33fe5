"""Fixtures shared by the CLI tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from rich.console import Console
from typer.testing import CliRunner

from codecontext.cli import clear, ingest, insights, recent, search
from codecontext.cli.main import app


@pytest.fixture(autouse=True)
def cli_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Hash embeddings, no user config, wide consoles so table cells do not wrap."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CODECONTEXT_EMBEDDING_MODE", "hash")
    monkeypatch.delenv("CODECONTEXT_DB", raising=False)
    monkeypatch.setattr("codecontext.config._GLOBAL_CONFIG_PATH", tmp_path / "no-global.yaml")
    for module in (clear, ingest, insights, recent, search):
        monkeypatch.setattr(module, "console", Console(width=200))


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Path to a not-yet-created context database in tmp_path."""
    return tmp_path / "ctx.db"


@pytest.fixture
def ingest_files(runner, db_path, tmp_path):
    """Write *files* ({name: content}) under tmp_path/src and ingest them."""

    def _ingest(files: dict[str, str]) -> list[Path]:
        src = tmp_path / "src"
        src.mkdir(exist_ok=True)
        paths = []
        for name, content in files.items():
            path = src / name
            path.write_text(content, encoding="utf-8")
            paths.append(path)
        result = runner.invoke(app, ["ingest", *map(str, paths), "--db", str(db_path)])
        assert result.exit_code == 0, result.output
        return paths

    return _ingest
