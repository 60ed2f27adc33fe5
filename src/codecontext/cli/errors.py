"""codecontext rich error messages — actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from codecontext.cli.errors import err_no_db
    console.print(err_no_db(".codecontext.db"))
    raise typer.Exit(1)
"""

from __future__ import annotations


def err_no_db(db_path: str = ".codecontext.db") -> str:
    """No context database at *db_path*."""
    return (
        f"[red]Error:[/] No context database found at '{db_path}'.\n"
        "  Run:  codecontext ingest <path>"
    )


def err_config(message: str) -> str:
    """Config file could not be loaded."""
    return (
        f"[red]Error:[/] Invalid configuration.\n"
        f"  {message}\n"
        "  Fix codecontext.yaml or ~/.codecontext/config.yaml and retry."
    )


def err_entry_not_found(entry_id: int) -> str:
    """No stored entry with *entry_id*."""
    return (
        f"[yellow]Entry not found:[/] #{entry_id} is not in the context history.\n"
        "  Run:  codecontext recent  to list stored entries."
    )


def err_search_failed(query: str, reason: str) -> str:
    """Search could not read the store."""
    return (
        f"[red]Error:[/] Search for '{query}' failed: {reason}\n"
        "  Check that the database is readable, or clear and re-ingest:\n"
        "    codecontext clear --yes && codecontext ingest <path>"
    )


def err_no_sources(paths: list[str]) -> str:
    """Nothing readable among the given paths."""
    listed = ", ".join(paths) if paths else "(none)"
    return (
        f"[yellow]No files to ingest:[/] {listed}\n"
        "  Pass existing text files or directories, e.g.  codecontext ingest src/"
    )


def warn_model_unavailable(model: str) -> str:
    """Model not ready; results come from the hashing fallback."""
    return (
        f"[yellow]Warning:[/] Embedding model '{model}' is not available; "
        "using the hashing fallback.\n"
        "  Set the provider API key (e.g.  export OPENAI_API_KEY=sk-...) or "
        "set embedding.mode: hash to silence this warning."
    )
