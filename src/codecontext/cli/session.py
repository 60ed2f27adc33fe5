"""Shared helpers for commands that open the context engine."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Awaitable, Callable, TypeVar

import typer
from rich.console import Console

from codecontext.cli.errors import err_config, err_no_db, warn_model_unavailable
from codecontext.config import ConfigError, ContextConfig, load_config
from codecontext.engine import ContextEngine

T = TypeVar("T")

# Seconds a command waits for the embedding model before using the fallback.
_MODEL_WAIT_SECONDS = 30.0


def load_cli_config(console: Console) -> ContextConfig:
    try:
        return load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)


def resolve_db(db: Path | None, cfg: ContextConfig) -> Path:
    return db if db is not None else Path(cfg.store.path)


def require_db(db_path: Path, console: Console) -> None:
    if not db_path.exists():
        console.print(err_no_db(str(db_path)))
        raise typer.Exit(1)


def run_with_engine(
    cfg: ContextConfig,
    db_path: Path,
    console: Console,
    body: Callable[[ContextEngine], Awaitable[T]],
    *,
    needs_model: bool = False,
) -> T:
    """Open the engine, run ``await body(engine)``, and close it again.

    Model warm-up only starts for commands that embed (*needs_model*).
    """

    async def _main() -> T:
        engine = ContextEngine.from_config(cfg, db_path)
        try:
            if needs_model:
                await engine.start()
                if cfg.embedding.mode == "auto":
                    if not await engine.generator.wait_ready(_MODEL_WAIT_SECONDS):
                        console.print(warn_model_unavailable(cfg.embedding.model))
            return await body(engine)
        finally:
            await engine.close()

    return asyncio.run(_main())
