"""AI Books engine — chunker, codec, integrity checks, scoring and retrieval."""

from aibooks.engine.chunker import Chunker
from aibooks.engine.codec import Codec, GravitationalCodec
from aibooks.engine.integrity import IntegrityReport, verify_integrity, verify_library
from aibooks.engine.library import append_text, create_library, library_stats
from aibooks.engine.models import Chunk, ChunkMetadata, EncodedState, Library
from aibooks.engine.retrieval import query_library, retrieve, search
from aibooks.engine.scorer import calculate_similarity

__all__ = [
    "Chunk",
    "ChunkMetadata",
    "Chunker",
    "Codec",
    "EncodedState",
    "GravitationalCodec",
    "IntegrityReport",
    "Library",
    "append_text",
    "calculate_similarity",
    "create_library",
    "library_stats",
    "query_library",
    "retrieve",
    "search",
    "verify_integrity",
    "verify_library",
]
