"""Tests for codecontext rich error messages."""

from __future__ import annotations

import pytest

from codecontext.cli.errors import (
    err_config,
    err_entry_not_found,
    err_no_db,
    err_no_sources,
    err_search_failed,
    warn_model_unavailable,
)


def _has_action(msg: str) -> bool:
    """Every error must contain an actionable instruction."""
    lower = msg.lower()
    return any(kw in lower for kw in ["run:", "export ", "codecontext ", "fix ", "pass "])


@pytest.mark.parametrize(
    "msg",
    [
        err_no_db(".codecontext.db"),
        err_config("embedding.mode must be one of ['auto', 'hash']"),
        err_entry_not_found(7),
        err_search_failed("foo", "disk I/O error"),
        err_no_sources(["missing.py"]),
        warn_model_unavailable("openai/text-embedding-3-small"),
    ],
)
def test_messages_are_actionable(msg: str) -> None:
    assert _has_action(msg)


def test_err_no_db_names_path() -> None:
    assert "/tmp/x.db" in err_no_db("/tmp/x.db")


def test_err_entry_not_found_names_id() -> None:
    assert "#7" in err_entry_not_found(7)


def test_err_no_sources_empty_list() -> None:
    assert "(none)" in err_no_sources([])


def test_warn_model_unavailable_names_model() -> None:
    msg = warn_model_unavailable("cohere/embed-english-v3.0")
    assert "cohere/embed-english-v3.0" in msg
    assert "embedding.mode: hash" in msg
