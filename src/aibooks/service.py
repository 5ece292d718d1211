"""Library service — the named operations, bound to an injected store.

The store is created by the caller (CLI command, test, embedding program),
handed in once, and closed by the caller; the service holds no global state.
Each operation either returns a complete result or raises one of the errors
in ``aibooks.errors``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from aibooks.db.store import LibraryStore
from aibooks.engine.chunker import Chunker
from aibooks.engine.codec import DEFAULT_N_MAX, Codec, GravitationalCodec
from aibooks.engine.integrity import IntegrityReport, verify_library
from aibooks.engine.library import LibraryStats, append_text, create_library, library_stats
from aibooks.engine.models import Chunk, Library
from aibooks.engine.retrieval import (
    DEFAULT_MAX_RESULTS,
    DEFAULT_PREVIEW_CHARS,
    DEFAULT_TOP_K,
    SearchHit,
    build_context,
    retrieve,
    retrieve_scored,
    search,
    validate_limit,
    validate_query,
)
from aibooks.errors import AlreadyExistsError, InputError, NotFoundError

# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass
class CreateResult:
    library_name: str
    chunks_created: int
    total_words: int
    compression_ratio: float
    created_at: str

    def as_dict(self) -> dict:
        return {
            "library_name": self.library_name,
            "chunks_created": self.chunks_created,
            "total_words": self.total_words,
            "compression_ratio": self.compression_ratio,
            "created_at": self.created_at,
        }


@dataclass
class AppendResult:
    library_name: str
    chunks_added: int
    total_chunks: int
    compression_ratio: float
    updated_at: str

    def as_dict(self) -> dict:
        return {
            "library_name": self.library_name,
            "chunks_added": self.chunks_added,
            "total_chunks": self.total_chunks,
            "compression_ratio": self.compression_ratio,
            "updated_at": self.updated_at,
        }


@dataclass
class QueryResult:
    library_name: str
    query: str
    chunks: list[Chunk] = field(default_factory=list)

    @property
    def chunks_retrieved(self) -> int:
        return len(self.chunks)

    @property
    def total_words(self) -> int:
        return sum(c.metadata.word_count for c in self.chunks)

    @property
    def context(self) -> str:
        return build_context(self.chunks)

    def as_dict(self) -> dict:
        return {
            "library_name": self.library_name,
            "query": self.query,
            "chunks_retrieved": self.chunks_retrieved,
            "total_words": self.total_words,
            "context": self.context,
        }


@dataclass
class SearchResult:
    library_name: str
    query: str
    hits: list[SearchHit] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "library_name": self.library_name,
            "query": self.query,
            "results": [h.as_dict() for h in self.hits],
            "total_results": len(self.hits),
        }


@dataclass
class CompressionStats:
    original_size: int
    compressed_size: int

    @property
    def compression_ratio(self) -> float:
        if self.compressed_size <= 0:
            return 1.0
        return self.original_size / self.compressed_size

    def as_dict(self) -> dict:
        return {
            "original_size": self.original_size,
            "compressed_size": self.compressed_size,
            "compression_ratio": self.compression_ratio,
        }


@dataclass
class ExtendResult:
    query: str
    files_processed: int
    chunks: list[Chunk]
    sources: list[str]  # file path of each chunk, parallel to chunks
    compression: CompressionStats

    @property
    def total_words(self) -> int:
        return sum(c.metadata.word_count for c in self.chunks)

    @property
    def extended_context(self) -> str:
        return build_context(self.chunks, labels=self.sources)

    def as_dict(self) -> dict:
        return {
            "query": self.query,
            "files_processed": self.files_processed,
            "total_chunks_retrieved": len(self.chunks),
            "extended_context": self.extended_context,
            "total_words": self.total_words,
            "compression_stats": self.compression.as_dict(),
        }


@dataclass
class LibrarySummary:
    name: str
    chunks_count: int
    compression_ratio: float
    created_at: str
    updated_at: str

    def as_dict(self) -> dict:
        return {
            "name": self.name,
            "chunks_count": self.chunks_count,
            "compression_ratio": self.compression_ratio,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class DeleteResult:
    deleted: bool
    library_name: str

    @property
    def message(self) -> str:
        if self.deleted:
            return f"Library '{self.library_name}' deleted successfully."
        return f"Library '{self.library_name}' not found."

    def as_dict(self) -> dict:
        return {
            "deleted": self.deleted,
            "library_name": self.library_name,
            "message": self.message,
        }


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class LibraryService:
    """Named library operations over an injected *store*.

    Args:
        store:   Any LibraryStore implementation.
        chunker: Chunker used for create / append / extend.
        codec:   Codec used for encoding and verification.
        n_max:   Orbital level used when create() is called without one.
    """

    def __init__(
        self,
        store: LibraryStore,
        *,
        chunker: Chunker | None = None,
        codec: Codec | None = None,
        n_max: int = DEFAULT_N_MAX,
    ) -> None:
        self._store = store
        self._chunker = chunker or Chunker()
        self._codec = codec or GravitationalCodec()
        self._n_max = n_max

    def _require(self, name: str) -> Library:
        library = self._store.get(name)
        if library is None:
            raise NotFoundError(name)
        return library

    # ------------------------------------------------------------------
    # Mutating operations
    # ------------------------------------------------------------------

    def create(self, name: str, text: str, n_max: int | None = None) -> CreateResult:
        """Build a library from *text* and save it under *name*.

        Raises:
            AlreadyExistsError: If *name* is already stored.
            InputError: If *name* or *n_max* is invalid.
        """
        if self._store.exists(name):
            raise AlreadyExistsError(name)
        library = create_library(
            name,
            text,
            self._n_max if n_max is None else n_max,
            chunker=self._chunker,
            codec=self._codec,
        )
        self._store.save(library)
        return CreateResult(
            library_name=library.name,
            chunks_created=len(library.chunks),
            total_words=library.total_words,
            compression_ratio=library.total_compression_ratio,
            created_at=library.created_at,
        )

    def append(self, name: str, text: str) -> AppendResult:
        """Append the chunks of *text* to an existing library."""
        library = self._require(name)
        added = append_text(library, text, chunker=self._chunker, codec=self._codec)
        if added:
            self._store.save(library)
        return AppendResult(
            library_name=library.name,
            chunks_added=len(added),
            total_chunks=len(library.chunks),
            compression_ratio=library.total_compression_ratio,
            updated_at=library.updated_at,
        )

    def delete(self, name: str) -> DeleteResult:
        """Delete *name*. An absent name is reported, not raised."""
        return DeleteResult(deleted=self._store.delete(name), library_name=name)

    # ------------------------------------------------------------------
    # Read-only operations
    # ------------------------------------------------------------------

    def query(self, name: str, query: str, top_k: int = DEFAULT_TOP_K) -> QueryResult:
        library = self._require(name)
        return QueryResult(
            library_name=name,
            query=query,
            chunks=retrieve(library, query, top_k),
        )

    def search(
        self,
        name: str,
        query: str,
        max_results: int = DEFAULT_MAX_RESULTS,
        preview_chars: int = DEFAULT_PREVIEW_CHARS,
    ) -> SearchResult:
        library = self._require(name)
        return SearchResult(
            library_name=name,
            query=query,
            hits=search(library, query, max_results, preview_chars),
        )

    def list_libraries(self) -> list[LibrarySummary]:
        return [
            LibrarySummary(
                name=lib.name,
                chunks_count=len(lib.chunks),
                compression_ratio=lib.total_compression_ratio,
                created_at=lib.created_at,
                updated_at=lib.updated_at,
            )
            for lib in self._store.list_libraries()
        ]

    def stats(self, name: str) -> LibraryStats:
        return library_stats(self._require(name))

    def verify(self, name: str) -> IntegrityReport:
        return verify_library(self._require(name), self._codec)

    def extend_from_files(
        self,
        file_paths: Sequence[Path | str],
        query: str,
        top_k: int = DEFAULT_TOP_K,
    ) -> ExtendResult:
        """Chunk and encode each file into a throwaway library, then rank them together.

        Files are processed one after another; a file that cannot be read
        aborts the whole operation. Nothing is written to the store.

        Raises:
            InputError: If no paths are given, a file cannot be read, or the
                query / top_k is malformed.
        """
        validate_query(query)
        top_k = validate_limit(top_k)
        if not file_paths:
            raise InputError("At least one file path is required.")

        libraries: list[Library] = []
        for path in file_paths:
            text = _read_source(Path(path))
            libraries.append(
                create_library(
                    str(path), text, self._n_max, chunker=self._chunker, codec=self._codec
                )
            )

        top = retrieve_scored(libraries, query, top_k)
        return ExtendResult(
            query=query,
            files_processed=len(libraries),
            chunks=[s.chunk for s in top],
            sources=[s.source for s in top],
            compression=CompressionStats(
                original_size=sum(lib.original_size for lib in libraries),
                compressed_size=sum(lib.encoded_size for lib in libraries),
            ),
        )


def _read_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise InputError(f"Cannot read '{path}': {exc}") from exc
