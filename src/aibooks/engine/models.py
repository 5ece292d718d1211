"""Domain models for the AI Books engine."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class EncodedState:
    """Self-contained, losslessly reversible form of a chunk ("gravitational bit").

    Attributes:
        n_max: Orbital level the state was encoded with; sets the deflate
            window. Raising it never changes what decode returns, so it is
            checked against the owning library's ``n_max`` on verify rather
            than by the content hash.
        states: Payload bytes packed into unsigned 32-bit words.
        length: Payload bytes carried by ``states``; the rest is zero padding.
        deflated: Whether the payload is a raw deflate stream or plain UTF-8.
    """

    n_max: int
    states: tuple[int, ...] = ()
    length: int = 0
    deflated: bool = False


@dataclass(frozen=True)
class ChunkMetadata:
    word_count: int
    character_count: int


@dataclass(frozen=True)
class Chunk:
    """One retrievable unit of a library.

    ``content`` is the cached decode of ``encoded_state``; ``content_hash`` and
    ``metadata`` are fixed at encode time and never recomputed implicitly.
    """

    id: str
    index: int
    content: str
    encoded_state: EncodedState
    content_hash: str
    metadata: ChunkMetadata
    original_size: int  # UTF-8 bytes of content
    encoded_size: int  # codec estimate, reporting only

    @property
    def compression_ratio(self) -> float:
        if self.encoded_size <= 0:
            return 1.0
        return self.original_size / self.encoded_size


@dataclass
class Library:
    """A named, ordered collection of chunks plus cached aggregates.

    The aggregate fields are owned by ``aibooks.engine.library.refresh_aggregates``
    and must not be edited by hand.
    """

    name: str
    n_max: int
    created_at: str
    updated_at: str
    chunks: list[Chunk] = field(default_factory=list)
    total_words: int = 0
    total_characters: int = 0
    original_size: int = 0
    encoded_size: int = 0
    total_compression_ratio: float = 1.0
