"""codecontext CLI entry point."""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from codecontext.cli.clear import clear_cmd
from codecontext.cli.ingest import ingest_cmd
from codecontext.cli.insights import insights_cmd
from codecontext.cli.recent import recent_cmd, show_cmd
from codecontext.cli.search import search_cmd


def _version() -> str:
    try:
        return importlib.metadata.version("codecontext")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"codecontext {_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="codecontext",
    help=(
        "codecontext — workspace context history with semantic search.\n\n"
        "  codecontext ingest   Index files as new context entries.\n"
        "  codecontext search   Find entries related to a piece of text."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log pipeline details to stderr."),
    ] = False,
) -> None:
    """codecontext — workspace context history with semantic search."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    # LiteLLM logs every provider call at INFO.
    logging.getLogger("LiteLLM").setLevel(logging.WARNING)


app.command("ingest")(ingest_cmd)
app.command("search")(search_cmd)
app.command("recent")(recent_cmd)
app.command("show")(show_cmd)
app.command("insights")(insights_cmd)
app.command("clear")(clear_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed codecontext version."""
    typer.echo(f"codecontext {_version()}")


if __name__ == "__main__":
    app()
