"""Forward-only migration runner for the context store schema.

Relationship and cluster rows carry plain integer ids with no foreign key
constraint: ``ContextStore.clear()`` truncates ``context_entries`` only and
leaves them orphaned.
"""

from __future__ import annotations

import sqlite3

# schema_version is the bootstrap table, created before migrations run.
_CREATE_SCHEMA_VERSION = """
CREATE TABLE IF NOT EXISTS schema_version (
    version     INTEGER NOT NULL,
    applied_at  DATETIME NOT NULL DEFAULT (datetime('now'))
)
"""

_V1_SQL = """
CREATE TABLE IF NOT EXISTS context_entries (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp           TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    file_path           TEXT NOT NULL,
    content             TEXT NOT NULL,
    metadata            TEXT NOT NULL DEFAULT '{}',
    embedding           BLOB,
    embedding_dim       INTEGER,
    embedding_space     TEXT,
    complexity_metrics  TEXT,
    git_metadata        TEXT,
    type_info           TEXT NOT NULL DEFAULT ''
);

CREATE INDEX IF NOT EXISTS idx_context_entries_path ON context_entries(file_path);
CREATE INDEX IF NOT EXISTS idx_context_entries_space ON context_entries(embedding_space);

CREATE TABLE IF NOT EXISTS relationships (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    source_id           INTEGER NOT NULL,
    target_id           INTEGER NOT NULL,
    relationship_type   TEXT NOT NULL,
    weight              REAL NOT NULL DEFAULT 1.0
);

CREATE TABLE IF NOT EXISTS code_clusters (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    cluster_name        TEXT NOT NULL,
    files               TEXT NOT NULL DEFAULT '[]',
    complexity_score    REAL NOT NULL DEFAULT 0.0,
    description         TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS sprint_summaries (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    start_date          DATETIME,
    end_date            DATETIME,
    summary             TEXT NOT NULL DEFAULT '',
    decisions           TEXT NOT NULL DEFAULT '',
    next_actions        TEXT NOT NULL DEFAULT ''
);
"""

# Append-only. Each entry: (version: int, sql: str).
# executescript() issues an implicit COMMIT before running.
MIGRATIONS: list[tuple[int, str]] = [
    (1, _V1_SQL),
]


def run_migrations(conn: sqlite3.Connection) -> None:
    """Apply all pending migrations in ascending version order.

    Idempotent: safe to call on a database at any version.
    """
    conn.execute(_CREATE_SCHEMA_VERSION)
    conn.commit()

    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    current = row[0] if row[0] is not None else 0

    for version, sql in MIGRATIONS:
        if version > current:
            conn.executescript(sql)
            conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)", (version,)
            )
            conn.commit()
