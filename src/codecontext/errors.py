"""Failure taxonomy for the context engine.

Ingestion absorbs ``ParseFailure``, ``ModelFailure``, ``VCSFailure`` and write
side ``StoreFailure`` and degrades the affected field. Reads (``recent``,
``search``) propagate ``StoreFailure`` / ``SearchFailure`` to the caller.
"""

from __future__ import annotations


class ContextError(Exception):
    """Base class for all codecontext errors."""


class ParseFailure(ContextError):
    """Source could not be parsed or analysed."""


class ModelFailure(ContextError):
    """Embedding model unavailable or returned an unusable vector."""


class VCSFailure(ContextError):
    """Version-control provider failed (not a repository, git missing, ...)."""


class StoreFailure(ContextError):
    """Persistence backend failed."""


class SearchFailure(ContextError):
    """A similarity query could not be answered."""
