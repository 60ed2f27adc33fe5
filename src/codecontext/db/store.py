"""Context store — append-only log of ContextEntry rows plus extension tables.

Single interface for: entries (insert / recent / all_embedded / clear),
insight queries, and the dormant relationship, cluster and sprint-summary
tables. One shared connection; every call holds the store lock so the
engine may call in from worker threads.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from collections import defaultdict

from codecontext.db.models import (
    CodeCluster,
    CodeMetrics,
    ContextEntry,
    GitMetadata,
    Relationship,
    SprintSummary,
)
from codecontext.db.vectors import decode_vector, encode_vector
from codecontext.errors import StoreFailure

logger = logging.getLogger(__name__)

_ENTRY_COLUMNS = """
    c.id, c.timestamp, c.file_path, c.content, c.metadata, c.embedding,
    c.embedding_dim, c.embedding_space, c.complexity_metrics, c.git_metadata,
    c.type_info
"""


class ContextStore:
    """Data access layer for all context store entities.

    Wraps an open sqlite3.Connection. The store owns the connection from
    construction on and closes it in ``close()``.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with sqlite-vec loaded and schema
                initialised (see codecontext.db.schema.initialize).
        """
        self._conn = conn
        self._lock = threading.RLock()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    def insert(self, entry: ContextEntry) -> int | None:
        """Append *entry* as a new row and return its id.

        Never updates an existing row. On a database error the entry is
        logged and dropped, and ``None`` is returned.
        """
        blob = dim = None
        if entry.embedding is not None:
            blob = encode_vector(entry.embedding)
            dim = len(entry.embedding)
        try:
            with self._lock:
                cur = self._conn.execute(
                    """
                    INSERT INTO context_entries (
                        file_path, content, metadata, embedding, embedding_dim,
                        embedding_space, complexity_metrics, git_metadata, type_info
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        entry.file_path,
                        entry.content,
                        json.dumps(entry.metadata),
                        blob,
                        dim,
                        entry.embedding_space,
                        entry.complexity_metrics.to_json(),
                        entry.git_metadata.to_json(),
                        entry.type_info,
                    ),
                )
                self._conn.commit()
                row = self._conn.execute(
                    "SELECT timestamp FROM context_entries WHERE id = ?", (cur.lastrowid,)
                ).fetchone()
        except sqlite3.Error as exc:
            logger.error("Dropping context entry for %s: %s", entry.file_path, exc)
            return None

        entry.id = cur.lastrowid
        entry.timestamp = row["timestamp"]
        return entry.id

    def get(self, entry_id: int) -> ContextEntry | None:
        """Return one entry by id, or None if not found."""
        rows = self._read(
            f"SELECT {_ENTRY_COLUMNS} FROM context_entries c WHERE c.id = ?",
            (entry_id,),
        )
        return _row_to_entry(rows[0]) if rows else None

    def recent(self, limit: int = 10) -> list[ContextEntry]:
        """Return the *limit* most recently inserted entries, newest first.

        Each entry carries the distinct relationship types where it is the
        source and the name of a cluster whose stored file list (JSON text)
        contains its path, compared in the same JSON string encoding.
        """
        if limit <= 0:
            return []
        rows = self._read(
            f"""
            SELECT {_ENTRY_COLUMNS},
                GROUP_CONCAT(DISTINCT r.relationship_type) AS relationships,
                MIN(cl.cluster_name) AS cluster_name
            FROM context_entries c
            LEFT JOIN relationships r ON c.id = r.source_id
            LEFT JOIN code_clusters cl ON instr(
                cl.files,
                substr(json_quote(c.file_path), 2, length(json_quote(c.file_path)) - 2)
            ) > 0
            GROUP BY c.id
            ORDER BY c.timestamp DESC, c.id DESC
            LIMIT ?
            """,
            (limit,),
        )
        entries = []
        for row in rows:
            entry = _row_to_entry(row)
            if row["relationships"]:
                entry.relationships = sorted(row["relationships"].split(","))
            entry.cluster_name = row["cluster_name"]
            entries.append(entry)
        return entries

    def all_embedded(
        self, space: str | None = None, dimensions: int | None = None
    ) -> list[ContextEntry]:
        """Return every entry with an embedding, in insertion order.

        Args:
            space: Only entries embedded in this vector space.
            dimensions: Only entries whose embedding has this length.
        """
        sql = f"SELECT {_ENTRY_COLUMNS} FROM context_entries c WHERE c.embedding IS NOT NULL"
        params: list[object] = []
        if space is not None:
            sql += " AND c.embedding_space = ?"
            params.append(space)
        if dimensions is not None:
            sql += " AND c.embedding_dim = ?"
            params.append(dimensions)
        sql += " ORDER BY c.id"
        return [_row_to_entry(r) for r in self._read(sql, tuple(params))]

    def count(self) -> int:
        return self._read("SELECT COUNT(*) FROM context_entries", ())[0][0]

    def count_embedded_elsewhere(self, space: str, dimensions: int) -> int:
        """Count embedded entries outside vector *space* or of another length."""
        return self._read(
            """
            SELECT COUNT(*) FROM context_entries
            WHERE embedding IS NOT NULL
              AND (embedding_space IS NOT ? OR embedding_dim IS NOT ?)
            """,
            (space, dimensions),
        )[0][0]

    def clear(self) -> int:
        """Delete all context entries. Returns the number of rows deleted.

        Relationship and cluster rows are left untouched.
        """
        try:
            with self._lock:
                cur = self._conn.execute("DELETE FROM context_entries")
                self._conn.commit()
        except sqlite3.Error as exc:
            raise StoreFailure(f"Could not clear context entries: {exc}") from exc
        return cur.rowcount

    # ------------------------------------------------------------------
    # Insights
    # ------------------------------------------------------------------

    def complexity_hotspots(self, limit: int = 5) -> list[tuple[str, float]]:
        """Return [(file_path, complexity), ...] for the most complex entries."""
        rows = self._read(
            """
            SELECT file_path, json_extract(complexity_metrics, '$.complexity') AS complexity
            FROM context_entries
            WHERE complexity_metrics IS NOT NULL
            ORDER BY complexity DESC, id DESC
            LIMIT ?
            """,
            (limit,),
        )
        return [(r["file_path"], r["complexity"]) for r in rows]

    def dependency_usage(self, limit: int = 5) -> list[tuple[str, int]]:
        """Return [(dependency, file_count), ...] for dependencies used by > 1 file."""
        rows = self._read(
            "SELECT file_path, complexity_metrics FROM context_entries "
            "WHERE complexity_metrics IS NOT NULL ORDER BY id",
            (),
        )
        users: dict[str, set[str]] = defaultdict(set)
        for row in rows:
            for dep in CodeMetrics.from_json(row["complexity_metrics"]).dependencies:
                users[dep].add(row["file_path"])
        shared = [(dep, len(files)) for dep, files in users.items() if len(files) > 1]
        shared.sort(key=lambda item: item[1], reverse=True)
        return shared[:limit]

    def recent_changes(self, limit: int = 5) -> list[tuple[str, str]]:
        """Return [(file_path, author), ...] for the newest entries with git history."""
        rows = self._read(
            """
            SELECT file_path, json_extract(git_metadata, '$.author') AS author
            FROM context_entries
            WHERE git_metadata IS NOT NULL
              AND json_extract(git_metadata, '$.author') != ''
            ORDER BY timestamp DESC, id DESC
            LIMIT ?
            """,
            (limit,),
        )
        return [(r["file_path"], r["author"]) for r in rows]

    # ------------------------------------------------------------------
    # Extension tables (no producer in the ingestion pipeline)
    # ------------------------------------------------------------------

    def add_relationship(self, rel: Relationship) -> int:
        rel.id = self._write(
            "INSERT INTO relationships (source_id, target_id, relationship_type, weight) "
            "VALUES (?, ?, ?, ?)",
            (rel.source_id, rel.target_id, rel.relationship_type, rel.weight),
        )
        return rel.id

    def add_cluster(self, cluster: CodeCluster) -> int:
        cluster.id = self._write(
            "INSERT INTO code_clusters (cluster_name, files, complexity_score, description) "
            "VALUES (?, ?, ?, ?)",
            (
                cluster.name,
                json.dumps(cluster.files, ensure_ascii=False),
                cluster.complexity_score,
                cluster.description,
            ),
        )
        return cluster.id

    def add_sprint_summary(self, summary: SprintSummary) -> int:
        summary.id = self._write(
            "INSERT INTO sprint_summaries (start_date, end_date, summary, decisions, next_actions) "
            "VALUES (?, ?, ?, ?, ?)",
            (
                summary.start_date,
                summary.end_date,
                summary.summary,
                summary.decisions,
                summary.next_actions,
            ),
        )
        return summary.id

    def list_sprint_summaries(self) -> list[SprintSummary]:
        """Return all sprint summaries, most recent end date first."""
        rows = self._read(
            "SELECT id, start_date, end_date, summary, decisions, next_actions "
            "FROM sprint_summaries ORDER BY end_date DESC, id DESC",
            (),
        )
        return [
            SprintSummary(
                id=r["id"],
                start_date=r["start_date"],
                end_date=r["end_date"],
                summary=r["summary"],
                decisions=r["decisions"],
                next_actions=r["next_actions"],
            )
            for r in rows
        ]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _read(self, sql: str, params: tuple) -> list[sqlite3.Row]:
        try:
            with self._lock:
                return self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise StoreFailure(f"Context store read failed: {exc}") from exc

    def _write(self, sql: str, params: tuple) -> int:
        try:
            with self._lock:
                cur = self._conn.execute(sql, params)
                self._conn.commit()
        except sqlite3.Error as exc:
            raise StoreFailure(f"Context store write failed: {exc}") from exc
        return cur.lastrowid


# ------------------------------------------------------------------
# Row → model helpers
# ------------------------------------------------------------------


def _row_to_entry(row: sqlite3.Row) -> ContextEntry:
    embedding = None
    if row["embedding"] is not None:
        embedding = decode_vector(row["embedding"], row["embedding_dim"])
    return ContextEntry(
        id=row["id"],
        timestamp=row["timestamp"],
        file_path=row["file_path"],
        content=row["content"],
        metadata=json.loads(row["metadata"] or "{}"),
        embedding=embedding,
        embedding_space=row["embedding_space"],
        complexity_metrics=CodeMetrics.from_json(row["complexity_metrics"]),
        git_metadata=GitMetadata.from_json(row["git_metadata"]),
        type_info=row["type_info"] or "",
    )
