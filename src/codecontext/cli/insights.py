"""codecontext insights — complexity hotspots, shared dependencies, recent changes."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from codecontext.cli.session import load_cli_config, require_db, resolve_db, run_with_engine

console = Console()


def insights_cmd(
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", min=1, help="Rows per insight."),
    ] = 5,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the context database."),
    ] = None,
) -> None:
    """Show code insights derived from the context history."""
    cfg = load_cli_config(console)
    db_path = resolve_db(db, cfg)
    require_db(db_path, console)

    insights = run_with_engine(cfg, db_path, console, lambda engine: engine.insights(limit))

    hotspots = Table(title="Complexity Hotspots")
    hotspots.add_column("File")
    hotspots.add_column("Complexity", justify="right")
    for path, complexity in insights.complexity_hotspots:
        hotspots.add_row(escape(Path(path).name), str(complexity))

    deps = Table(title="Dependency Analysis")
    deps.add_column("Dependency")
    deps.add_column("Used in", justify="right")
    for dep, count in insights.shared_dependencies:
        deps.add_row(escape(dep), f"{count} files")

    changes = Table(title="Recent Changes")
    changes.add_column("File")
    changes.add_column("Author")
    for path, author in insights.recent_changes:
        changes.add_row(escape(Path(path).name), escape(author))

    for table in (hotspots, deps, changes):
        if table.row_count:
            console.print(table)
        else:
            console.print(f"[dim]{table.title}: nothing yet[/]")
