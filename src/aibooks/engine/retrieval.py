"""Lexical retrieval: score every candidate, stable-sort, keep the global top-k.

Candidates from several libraries are pooled before ranking, so ``top_k`` is
a single cut across all inputs. The pooled order (library order, then chunk
order) is the tie-breaker for equal scores.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from aibooks.engine.models import Chunk, Library
from aibooks.engine.scorer import calculate_similarity
from aibooks.errors import InputError

DEFAULT_TOP_K = 8
DEFAULT_MAX_RESULTS = 10
DEFAULT_PREVIEW_CHARS = 200

_CONTEXT_SEPARATOR = "\n\n---\n\n"


@dataclass
class ScoredChunk:
    """A candidate chunk with its relevance score.

    Attributes:
        chunk: The chunk as stored in its library.
        score: Lexical relevance in [0, 1].
        source: Name of the library the chunk belongs to.
    """

    chunk: Chunk
    score: float
    source: str


@dataclass
class SearchHit:
    chunk_id: str
    content_preview: str
    relevance_score: float
    word_count: int

    def as_dict(self) -> dict:
        return {
            "chunk_id": self.chunk_id,
            "content_preview": self.content_preview,
            "relevance_score": self.relevance_score,
            "word_count": self.word_count,
        }


# ------------------------------------------------------------------
# Validation
# ------------------------------------------------------------------


def validate_query(query: Any) -> str:
    if not isinstance(query, str) or not query.strip():
        raise InputError("Query must be a non-empty string.")
    return query


def validate_limit(value: Any, name: str = "top_k") -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InputError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise InputError(f"{name} must be >= 0, got {value}")
    return value


# ------------------------------------------------------------------
# Ranking
# ------------------------------------------------------------------


def _as_sources(sources: Library | Sequence[Library]) -> list[Library]:
    if isinstance(sources, Library):
        return [sources]
    return list(sources)


def rank(query: str, sources: Library | Sequence[Library]) -> list[ScoredChunk]:
    """Score every chunk of *sources* and return them best-first.

    Python's sort is stable (also with ``reverse=True``), so equal scores keep
    the pooled order.
    """
    validate_query(query)
    pooled = [
        ScoredChunk(chunk=chunk, score=calculate_similarity(query, chunk), source=lib.name)
        for lib in _as_sources(sources)
        for chunk in lib.chunks
    ]
    return sorted(pooled, key=lambda s: s.score, reverse=True)


def retrieve_scored(
    sources: Library | Sequence[Library],
    query: str,
    top_k: int = DEFAULT_TOP_K,
) -> list[ScoredChunk]:
    top_k = validate_limit(top_k)
    return rank(query, sources)[:top_k]


def retrieve(
    sources: Library | Sequence[Library],
    query: str,
    top_k: int = DEFAULT_TOP_K,
) -> list[Chunk]:
    """Return at most *top_k* chunks of *sources*, most relevant first.

    Raises:
        InputError: If *query* is blank or *top_k* is not a non-negative int.
    """
    return [s.chunk for s in retrieve_scored(sources, query, top_k)]


def query_library(library: Library, query: str, top_k: int = DEFAULT_TOP_K) -> list[Chunk]:
    return retrieve(library, query, top_k)


def search(
    library: Library,
    query: str,
    max_results: int = DEFAULT_MAX_RESULTS,
    preview_chars: int = DEFAULT_PREVIEW_CHARS,
) -> list[SearchHit]:
    """Ranked hits with content previews and scores, for browsing a library."""
    max_results = validate_limit(max_results, "max_results")
    return [
        SearchHit(
            chunk_id=s.chunk.id,
            content_preview=preview(s.chunk.content, preview_chars),
            relevance_score=s.score,
            word_count=s.chunk.metadata.word_count,
        )
        for s in rank(query, library)[:max_results]
    ]


# ------------------------------------------------------------------
# Rendering
# ------------------------------------------------------------------


def preview(content: str, limit: int = DEFAULT_PREVIEW_CHARS) -> str:
    if len(content) <= limit:
        return content
    return content[:limit] + "..."


def build_context(chunks: Sequence[Chunk], labels: Sequence[str] | None = None) -> str:
    """Render chunks as numbered ``[CHUNK i]`` blocks for a downstream prompt.

    When *labels* is given, block i is headed ``[CHUNK i from <label>]``.
    """
    blocks: list[str] = []
    for i, chunk in enumerate(chunks):
        header = f"[CHUNK {i + 1}]" if labels is None else f"[CHUNK {i + 1} from {labels[i]}]"
        blocks.append(f"{header}\n{chunk.content}")
    return _CONTEXT_SEPARATOR.join(blocks)
