"""Library construction and aggregate bookkeeping.

create_library() and append_text() are the only mutating operations; both end
with refresh_aggregates(), the single place where library totals are derived
from the chunks.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from aibooks.engine.chunker import Chunker
from aibooks.engine.codec import (
    DEFAULT_N_MAX,
    Codec,
    GravitationalCodec,
    text_bytes,
    validate_n_max,
)
from aibooks.engine.integrity import content_hash
from aibooks.engine.models import Chunk, ChunkMetadata, Library
from aibooks.errors import InputError


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def chunk_id(index: int) -> str:
    return f"chunk_{index:04d}"


def encode_chunk(index: int, text: str, n_max: int, codec: Codec) -> Chunk:
    """Encode one chunk text and record its hash, metadata and sizes."""
    state = codec.encode(text, n_max)
    return Chunk(
        id=chunk_id(index),
        index=index,
        content=text,
        encoded_state=state,
        content_hash=content_hash(text),
        metadata=ChunkMetadata(word_count=len(text.split()), character_count=len(text)),
        original_size=len(text_bytes(text)),
        encoded_size=codec.estimated_size(state),
    )


def refresh_aggregates(library: Library) -> Library:
    """Recompute every cached total of *library* from its chunks."""
    library.total_words = sum(c.metadata.word_count for c in library.chunks)
    library.total_characters = sum(c.metadata.character_count for c in library.chunks)
    library.original_size = sum(c.original_size for c in library.chunks)
    library.encoded_size = sum(c.encoded_size for c in library.chunks)
    library.total_compression_ratio = (
        library.original_size / library.encoded_size if library.encoded_size else 1.0
    )
    return library


def create_library(
    name: str,
    text: str,
    n_max: int = DEFAULT_N_MAX,
    *,
    chunker: Chunker | None = None,
    codec: Codec | None = None,
) -> Library:
    """Chunk and encode *text* into a new in-memory Library.

    Store membership (AlreadyExists) is checked by the caller that owns the
    store; this function never touches persistence.

    Raises:
        InputError: If *name* is blank or *n_max* is invalid.
    """
    if not isinstance(name, str) or not name.strip():
        raise InputError("Library name must be a non-empty string.")
    n_max = validate_n_max(n_max)
    chunker = chunker or Chunker()
    codec = codec or GravitationalCodec()

    chunks = [
        encode_chunk(i, piece, n_max, codec) for i, piece in enumerate(chunker.split(text))
    ]
    now = _utcnow()
    library = Library(name=name, n_max=n_max, created_at=now, updated_at=now, chunks=chunks)
    return refresh_aggregates(library)


def append_text(
    library: Library,
    text: str,
    *,
    chunker: Chunker | None = None,
    codec: Codec | None = None,
) -> list[Chunk]:
    """Append the chunks of *text* after the existing ones.

    New chunks continue the index sequence, so earlier ids are never reused.
    Returns the chunks that were added; ``updated_at`` is bumped only when
    at least one chunk was added.
    """
    chunker = chunker or Chunker()
    codec = codec or GravitationalCodec()

    start = library.chunks[-1].index + 1 if library.chunks else 0
    added = [
        encode_chunk(start + i, piece, library.n_max, codec)
        for i, piece in enumerate(chunker.split(text))
    ]
    if added:
        library.chunks.extend(added)
        library.updated_at = _utcnow()
        refresh_aggregates(library)
    return added


@dataclass
class LibraryStats:
    library_name: str
    total_chunks: int
    total_words: int
    total_characters: int
    compression_ratio: float
    average_chunk_size: float  # words per chunk
    created_at: str
    updated_at: str
    n_max: int

    def as_dict(self) -> dict:
        return {
            "library_name": self.library_name,
            "total_chunks": self.total_chunks,
            "total_words": self.total_words,
            "total_characters": self.total_characters,
            "compression_ratio": self.compression_ratio,
            "average_chunk_size": self.average_chunk_size,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "n_max": self.n_max,
        }


def library_stats(library: Library) -> LibraryStats:
    total = len(library.chunks)
    return LibraryStats(
        library_name=library.name,
        total_chunks=total,
        total_words=library.total_words,
        total_characters=library.total_characters,
        compression_ratio=library.total_compression_ratio,
        average_chunk_size=library.total_words / total if total else 0.0,
        created_at=library.created_at,
        updated_at=library.updated_at,
        n_max=library.n_max,
    )
