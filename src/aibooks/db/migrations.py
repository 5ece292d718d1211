"""Forward-only migration runner for the library store schema."""

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
CREATE TABLE IF NOT EXISTS libraries (
    name            TEXT PRIMARY KEY,
    n_max           INTEGER NOT NULL,
    created_at      TEXT NOT NULL,
    updated_at      TEXT NOT NULL,
    saved_at        DATETIME NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS chunks (
    library_name    TEXT NOT NULL REFERENCES libraries(name) ON DELETE CASCADE,
    chunk_index     INTEGER NOT NULL,
    chunk_id        TEXT NOT NULL,
    content         BLOB NOT NULL,
    content_hash    TEXT NOT NULL,
    encoded_state   TEXT NOT NULL,
    metadata        TEXT NOT NULL DEFAULT '{}',
    original_size   INTEGER NOT NULL,
    encoded_size    INTEGER NOT NULL,
    PRIMARY KEY (library_name, chunk_index)
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
