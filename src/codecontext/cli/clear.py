"""codecontext clear — delete the context history.

Only context entries are removed; relationship and cluster rows are kept.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from codecontext.cli.session import load_cli_config, require_db, resolve_db, run_with_engine

console = Console()


def clear_cmd(
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the context database."),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
) -> None:
    """Clear the context history."""
    cfg = load_cli_config(console)
    db_path = resolve_db(db, cfg)
    require_db(db_path, console)

    if not yes and not typer.confirm(f"Delete all context entries in {db_path}?", default=False):
        console.print("[dim]Aborted.[/]")
        raise typer.Exit(0)

    deleted = run_with_engine(cfg, db_path, console, lambda engine: engine.clear())
    console.print(f"[green]✓[/] Context history cleared ({deleted} entries removed)")
