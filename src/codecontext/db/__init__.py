"""codecontext database layer."""

from codecontext.db.connection import Database
from codecontext.db.migrations import MIGRATIONS, run_migrations
from codecontext.db.schema import initialize
from codecontext.db.store import ContextStore
from codecontext.db.vectors import decode_vector, encode_vector

__all__ = [
    "Database",
    "ContextStore",
    "initialize",
    "run_migrations",
    "MIGRATIONS",
    "encode_vector",
    "decode_vector",
]
