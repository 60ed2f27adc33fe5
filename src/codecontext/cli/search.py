"""codecontext search — rank stored entries by similarity to a query."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from codecontext.cli.errors import err_search_failed
from codecontext.cli.session import load_cli_config, require_db, resolve_db, run_with_engine
from codecontext.errors import SearchFailure

console = Console()

_PREVIEW_CHARS = 200


def search_cmd(
    query: Annotated[str, typer.Argument(help="Text to search for.")],
    top_k: Annotated[
        int | None,
        typer.Option("--top-k", "-k", min=1, help="Number of results (default: search.top_k)."),
    ] = None,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the context database."),
    ] = None,
) -> None:
    """Search the context history for entries related to QUERY."""
    cfg = load_cli_config(console)
    db_path = resolve_db(db, cfg)
    require_db(db_path, console)
    k = top_k if top_k is not None else cfg.search.top_k

    try:
        results = run_with_engine(
            cfg, db_path, console, lambda engine: engine.search(query, k), needs_model=True
        )
    except SearchFailure as exc:
        console.print(err_search_failed(query, str(exc)))
        raise typer.Exit(1)

    if not results:
        console.print("[yellow]No matching context entries.[/]")
        return

    table = Table(title=f"Search results for '{query}'", show_lines=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Similarity", justify="right")
    table.add_column("File")
    table.add_column("Preview")
    for i, result in enumerate(results, start=1):
        preview = result.entry.content[:_PREVIEW_CHARS]
        if len(result.entry.content) > _PREVIEW_CHARS:
            preview += "…"
        table.add_row(
            str(i),
            f"{result.score * 100:.2f}%",
            f"{escape(result.entry.file_path)}\n[dim]#{result.entry.id}[/]",
            escape(preview),
        )
    console.print(table)
