"""codecontext ingest — index files into the context database.

Each readable text file becomes one new context entry; re-ingesting a path
appends another entry rather than replacing the old one. Directories are
expanded to their files (hidden entries, node_modules/, out/ and dist/ are
skipped).
"""

from __future__ import annotations

import asyncio
import fnmatch
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from codecontext.cli.errors import err_no_sources
from codecontext.cli.session import load_cli_config, resolve_db, run_with_engine
from codecontext.engine import ContextEngine

console = Console()

_SKIP_DIRS = {"node_modules", "out", "dist", "__pycache__"}
# Concurrent pipelines per ingest run.
_MAX_IN_FLIGHT = 8


def ingest_cmd(
    paths: Annotated[
        list[Path],
        typer.Argument(help="Files or directories to ingest."),
    ],
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the context database (created if missing)."),
    ] = None,
    recursive: Annotated[
        bool,
        typer.Option("--recursive", "-r", help="Recurse into subdirectories (max 10 levels)."),
    ] = False,
    exclude: Annotated[
        list[str] | None,
        typer.Option("--exclude", help="Glob pattern to exclude (repeatable)."),
    ] = None,
) -> None:
    """Ingest files into the context history."""
    cfg = load_cli_config(console)
    db_path = resolve_db(db, cfg)

    files = _expand_paths(paths, recursive=recursive, exclude=exclude or [])
    documents = [(str(f.resolve()), text) for f in files if (text := _read_text(f)) is not None]
    if not documents:
        console.print(err_no_sources([str(p) for p in paths]))
        raise typer.Exit(1)

    async def _ingest_all(engine: ContextEngine) -> int:
        limit = asyncio.Semaphore(_MAX_IN_FLIGHT)
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            transient=True,
            console=console,
        ) as prog:
            task = prog.add_task("Ingesting…", total=len(documents))

            async def _one(path: str, content: str) -> bool:
                async with limit:
                    entry = await engine.ingest(path, content)
                prog.advance(task)
                return entry is not None

            stored = await asyncio.gather(*(_one(p, c) for p, c in documents))
        return sum(stored)

    stored = run_with_engine(cfg, db_path, console, _ingest_all, needs_model=True)

    console.print(
        f"[green]✓[/] {stored} of {len(documents)} files stored in {escape(str(db_path))}"
    )
    if stored < len(documents):
        console.print("  [yellow]Some files could not be stored; rerun with --verbose.[/]")
        raise typer.Exit(1)


# ------------------------------------------------------------------
# Path expansion
# ------------------------------------------------------------------


def _expand_paths(paths: list[Path], recursive: bool, exclude: list[str]) -> list[Path]:
    """Expand directories to individual files; keep files as-is."""
    result: list[Path] = []
    for p in paths:
        if p.is_dir():
            result.extend(_scan_dir(p, recursive=recursive, exclude=exclude, depth=0))
        elif p.is_file() and not _excluded(p, exclude):
            result.append(p)
        else:
            console.print(f"[yellow]Skipping missing path:[/] {escape(str(p))}")
    return result


def _scan_dir(
    directory: Path,
    recursive: bool,
    exclude: list[str],
    depth: int,
    max_depth: int = 10,
) -> list[Path]:
    if depth > max_depth:
        return []
    files: list[Path] = []
    try:
        entries = sorted(directory.iterdir())
    except PermissionError:
        return []
    for entry in entries:
        if entry.name.startswith(".") or _excluded(entry, exclude):
            continue
        if entry.is_file():
            files.append(entry)
        elif entry.is_dir() and recursive and entry.name not in _SKIP_DIRS:
            files.extend(
                _scan_dir(entry, recursive=recursive, exclude=exclude, depth=depth + 1)
            )
    return files


def _excluded(path: Path, exclude: list[str]) -> bool:
    return any(fnmatch.fnmatch(path.name, pat) for pat in exclude)


def _read_text(path: Path) -> str | None:
    """Return the UTF-8 text of *path*, or None for unreadable / binary files."""
    try:
        return path.read_text(encoding="utf-8")
    except (UnicodeDecodeError, OSError) as exc:
        console.print(f"  [dim]↷ Skipping {escape(str(path))}: {exc.__class__.__name__}[/]")
        return None
