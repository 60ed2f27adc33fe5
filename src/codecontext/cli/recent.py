"""codecontext recent / show — browse the context history."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from codecontext.cli.errors import err_entry_not_found
from codecontext.cli.session import load_cli_config, require_db, resolve_db, run_with_engine

console = Console()

_CONTENT_PREVIEW_CHARS = 500


def recent_cmd(
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-n", min=1, help="Entries to show (default: recent.limit)."),
    ] = None,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the context database."),
    ] = None,
) -> None:
    """List the most recently ingested entries, newest first."""
    cfg = load_cli_config(console)
    db_path = resolve_db(db, cfg)
    require_db(db_path, console)
    n = limit if limit is not None else cfg.recent.limit

    entries = run_with_engine(cfg, db_path, console, lambda engine: engine.recent(n))
    if not entries:
        console.print("[yellow]Context history is empty.[/]")
        return

    table = Table(title="Context history")
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Ingested")
    table.add_column("File")
    table.add_column("Complexity", justify="right")
    table.add_column("Git")
    table.add_column("Relationships")
    table.add_column("Cluster")
    for e in entries:
        git = e.git_metadata
        table.add_row(
            str(e.id),
            e.timestamp or "",
            escape(e.file_path),
            str(e.complexity_metrics.complexity or "N/A"),
            f"{escape(git.author) or 'N/A'} on {escape(git.branch) or 'N/A'}",
            escape(", ".join(e.relationships)),
            escape(e.cluster_name or ""),
        )
    console.print(table)


def show_cmd(
    entry_id: Annotated[int, typer.Argument(help="Entry ID (see codecontext recent).")],
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the context database."),
    ] = None,
) -> None:
    """Show everything stored for one context entry."""
    cfg = load_cli_config(console)
    db_path = resolve_db(db, cfg)
    require_db(db_path, console)

    entry = run_with_engine(cfg, db_path, console, lambda engine: engine.get(entry_id))
    if entry is None:
        console.print(err_entry_not_found(entry_id))
        raise typer.Exit(1)

    metrics = entry.complexity_metrics
    git = entry.git_metadata
    lines = [
        f"[bold]Ingested:[/] {entry.timestamp}",
        f"[bold]File type:[/] {entry.file_type or 'N/A'}",
        f"[bold]Embedding:[/] {entry.embedding_space or 'none'}",
        "",
        f"[bold]Complexity:[/] {metrics.complexity}    [bold]Lines:[/] {metrics.sloc}",
        f"[bold]Dependencies:[/] {escape(', '.join(metrics.dependencies)) or 'None'}",
        "",
        f"[bold]Commit:[/] {git.last_commit or 'N/A'}",
        f"[bold]Author:[/] {escape(git.author) or 'N/A'}    [bold]Branch:[/] {escape(git.branch) or 'N/A'}",
        f"[bold]Message:[/] {escape(git.commit_message) or 'N/A'}",
    ]
    if entry.type_info:
        summary = json.loads(entry.type_info)
        counts = ", ".join(f"{len(v)} {k}" for k, v in summary.items())
        lines += ["", f"[bold]Types:[/] {counts}"]
    preview = entry.content[:_CONTENT_PREVIEW_CHARS]
    if len(entry.content) > _CONTENT_PREVIEW_CHARS:
        preview += "…"
    lines += ["", escape(preview)]

    console.print(Panel("\n".join(lines), title=f"[bold]#{entry.id} {escape(entry.file_path)}[/]"))
