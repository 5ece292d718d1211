"""Integrity checks: decode, rehash, compare against the hash stored at encode time."""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass, field

from aibooks.engine.codec import Codec, GravitationalCodec, text_bytes
from aibooks.engine.models import Chunk, Library
from aibooks.errors import CorruptStateError

_DEFAULT_CODEC = GravitationalCodec()


def content_hash(text: str) -> str:
    """SHA-256 hex digest of the UTF-8 bytes of *text* (lone surrogates included)."""
    return hashlib.sha256(text_bytes(text)).hexdigest()


def verify_integrity(chunk: Chunk, codec: Codec | None = None) -> bool:
    """Return True iff decoding *chunk* reproduces the content it was hashed from.

    A state that cannot be decoded at all counts as a failed check.
    """
    codec = codec or _DEFAULT_CODEC
    try:
        decoded = codec.decode(chunk.encoded_state)
    except CorruptStateError:
        return False
    return hmac.compare_digest(content_hash(decoded), chunk.content_hash)


@dataclass
class IntegrityReport:
    """Library-level verification summary."""

    library_name: str
    total_chunks: int
    verified_chunks: int
    failed_chunks: int
    failed_ids: list[str] = field(default_factory=list)

    @property
    def integrity_percentage(self) -> float:
        # An empty library is vacuously intact.
        if self.total_chunks == 0:
            return 100.0
        return self.verified_chunks / self.total_chunks * 100.0

    @property
    def all_verified(self) -> bool:
        return self.failed_chunks == 0

    def as_dict(self) -> dict:
        return {
            "library_name": self.library_name,
            "total_chunks": self.total_chunks,
            "verified_chunks": self.verified_chunks,
            "failed_chunks": self.failed_chunks,
            "integrity_percentage": self.integrity_percentage,
            "all_verified": self.all_verified,
        }


def verify_library(library: Library, codec: Codec | None = None) -> IntegrityReport:
    """Verify every chunk of *library* and aggregate the outcome.

    A chunk also fails when its state claims an orbital level other than the
    library's, since decode output alone cannot reveal that.
    """
    failed_ids = [
        c.id
        for c in library.chunks
        if c.encoded_state.n_max != library.n_max or not verify_integrity(c, codec)
    ]
    total = len(library.chunks)
    return IntegrityReport(
        library_name=library.name,
        total_chunks=total,
        verified_chunks=total - len(failed_ids),
        failed_chunks=len(failed_ids),
        failed_ids=failed_ids,
    )
