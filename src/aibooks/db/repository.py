"""SQLite-backed library store (repository pattern).

One row per library in ``libraries``; one row per chunk in ``chunks`` with the
encoded state and metadata serialised as JSON text and the content stored as
UTF-8 bytes (lone surrogates included). Library aggregates are
not stored: they are recomputed from the chunks on every load.
"""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from aibooks.db.connection import Database
from aibooks.db.schema import initialize
from aibooks.db.store import LibraryStore
from aibooks.engine.codec import state_from_dict, state_to_dict, text_bytes
from aibooks.engine.library import refresh_aggregates
from aibooks.engine.models import Chunk, ChunkMetadata, Library
from aibooks.errors import CorruptStateError


class SqliteLibraryStore(LibraryStore):
    """Data access layer for persisted libraries.

    Wraps an open sqlite3.Connection. The connection is owned by the caller
    and must be closed after use (``close()`` does it for convenience).
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with the schema initialised
                (see aibooks.db.schema.initialize).
        """
        self._conn = conn

    # ------------------------------------------------------------------
    # Libraries
    # ------------------------------------------------------------------

    def exists(self, name: str) -> bool:
        row = self._conn.execute(
            "SELECT 1 FROM libraries WHERE name = ?", (name,)
        ).fetchone()
        return row is not None

    def get(self, name: str) -> Library | None:
        """Return a library with all its chunks, or None if not found.

        Raises:
            CorruptStateError: If a stored chunk row cannot be parsed.
        """
        row = self._conn.execute(
            "SELECT name, n_max, created_at, updated_at FROM libraries WHERE name = ?",
            (name,),
        ).fetchone()
        return self._load(row) if row else None

    def save(self, library: Library) -> None:
        """Insert or replace *library* and all of its chunks in one transaction."""
        with self._conn:
            self._conn.execute("DELETE FROM chunks WHERE library_name = ?", (library.name,))
            self._conn.execute("DELETE FROM libraries WHERE name = ?", (library.name,))
            self._conn.execute(
                """
                INSERT INTO libraries (name, n_max, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                """,
                (library.name, library.n_max, library.created_at, library.updated_at),
            )
            self._conn.executemany(
                """
                INSERT INTO chunks (
                    library_name, chunk_index, chunk_id, content, content_hash,
                    encoded_state, metadata, original_size, encoded_size
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [_chunk_to_row(library.name, c) for c in library.chunks],
            )

    def delete(self, name: str) -> bool:
        """Delete a library and its chunks. Returns False if it was not stored."""
        with self._conn:
            self._conn.execute("DELETE FROM chunks WHERE library_name = ?", (name,))
            cur = self._conn.execute("DELETE FROM libraries WHERE name = ?", (name,))
        return cur.rowcount > 0

    def list_libraries(self) -> list[Library]:
        rows = self._conn.execute(
            "SELECT name, n_max, created_at, updated_at FROM libraries ORDER BY created_at, name"
        ).fetchall()
        return [self._load(r) for r in rows]

    def close(self) -> None:
        self._conn.close()

    # ------------------------------------------------------------------
    # Row → model helpers
    # ------------------------------------------------------------------

    def _load(self, row: sqlite3.Row) -> Library:
        chunk_rows = self._conn.execute(
            """
            SELECT chunk_index, chunk_id, content, content_hash, encoded_state,
                   metadata, original_size, encoded_size
            FROM chunks WHERE library_name = ? ORDER BY chunk_index
            """,
            (row["name"],),
        ).fetchall()
        library = Library(
            name=row["name"],
            n_max=row["n_max"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            chunks=[_row_to_chunk(r) for r in chunk_rows],
        )
        return refresh_aggregates(library)


def _chunk_to_row(library_name: str, chunk: Chunk) -> tuple:
    return (
        library_name,
        chunk.index,
        chunk.id,
        text_bytes(chunk.content),
        chunk.content_hash,
        json.dumps(state_to_dict(chunk.encoded_state)),
        json.dumps(
            {
                "word_count": chunk.metadata.word_count,
                "character_count": chunk.metadata.character_count,
            }
        ),
        chunk.original_size,
        chunk.encoded_size,
    )


def _load_json(raw: str, what: str) -> object:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise CorruptStateError(f"Stored {what} is not valid JSON: {exc}") from exc


def _load_content(raw: bytes) -> str:
    try:
        return bytes(raw).decode("utf-8", "surrogatepass")
    except (TypeError, UnicodeDecodeError) as exc:
        raise CorruptStateError(f"Stored chunk content is not UTF-8: {exc}") from exc


def _load_metadata(raw: str) -> ChunkMetadata:
    meta = _load_json(raw, "chunk metadata")
    try:
        return ChunkMetadata(
            word_count=int(meta.get("word_count", 0)),
            character_count=int(meta.get("character_count", 0)),
        )
    except (AttributeError, TypeError, ValueError) as exc:
        raise CorruptStateError(f"Malformed chunk metadata: {exc}") from exc


def _row_to_chunk(row: sqlite3.Row) -> Chunk:
    return Chunk(
        id=row["chunk_id"],
        index=row["chunk_index"],
        content=_load_content(row["content"]),
        encoded_state=state_from_dict(_load_json(row["encoded_state"], "encoded state")),
        content_hash=row["content_hash"],
        metadata=_load_metadata(row["metadata"]),
        original_size=row["original_size"],
        encoded_size=row["encoded_size"],
    )


@contextmanager
def open_store(db_path: Path | str) -> Iterator[SqliteLibraryStore]:
    """Open (creating and migrating if needed) the store at *db_path*; close on exit."""
    conn = Database(db_path).connect()
    try:
        initialize(conn)
        yield SqliteLibraryStore(conn)
    finally:
        conn.close()
