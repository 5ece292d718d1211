"""Lossless chunk codec ("gravitational bits").

Layout of an encoded state:

  payload   the chunk's UTF-8 bytes, raw-deflated when that is shorter
  states    the payload packed big-endian into unsigned 32-bit words,
            zero-padded to a whole word
  length    payload bytes carried by ``states`` (the rest is padding)
  deflated  whether the payload is a raw deflate stream

Deflate is LZ77 over a sliding dictionary of previously seen bytes plus
Huffman coding, so the stream is self-contained. ``n_max`` sets that
dictionary to ``2 ** n_max`` bytes, clamped to the 512 B..32 KiB range zlib
supports; it changes how compact the stream is, never what decode returns.
A payload is only deflated when that saves at least one state, so a state
never costs more than the raw bytes plus one padded word.

Lone surrogates are carried with the ``surrogatepass`` error handler, so
every Python string round-trips.

Size estimate (reporting only):
  32 + 4 * len(states)
"""

from __future__ import annotations

import zlib
from abc import ABC, abstractmethod
from typing import Any

from aibooks.engine.models import EncodedState
from aibooks.errors import CorruptStateError, InputError

CHUNK_OVERHEAD_BYTES = 32
STATE_BYTES = 4
DEFAULT_N_MAX = 15

MIN_WINDOW_BITS = 9
MAX_WINDOW_BITS = 15
_LEVEL = 9


class Codec(ABC):
    """Interface every chunk codec implements."""

    @abstractmethod
    def encode(self, text: str, n_max: int = DEFAULT_N_MAX) -> EncodedState:
        """Encode *text* so that ``decode(encode(text)) == text``."""

    @abstractmethod
    def decode(self, state: EncodedState) -> str:
        """Exact inverse of ``encode``.

        Raises:
            CorruptStateError: If *state* is internally inconsistent.
        """

    @abstractmethod
    def estimated_size(self, state: EncodedState) -> int:
        """Estimated stored size of *state* in bytes."""


def text_bytes(text: str) -> bytes:
    """UTF-8 bytes of *text*; lone surrogates pass through instead of failing."""
    return text.encode("utf-8", "surrogatepass")


def window_bits(n_max: int) -> int:
    """Deflate window for orbital level *n_max* (``2 ** bits`` bytes)."""
    return min(max(n_max, MIN_WINDOW_BITS), MAX_WINDOW_BITS)


def validate_n_max(n_max: Any) -> int:
    if isinstance(n_max, bool) or not isinstance(n_max, int):
        raise InputError(f"n_max must be an integer, got {n_max!r}")
    if n_max < 1:
        raise InputError(f"n_max must be >= 1, got {n_max}")
    return n_max


def _word_count(size: int) -> int:
    return -(-size // STATE_BYTES)


def _pack(payload: bytes) -> tuple[int, ...]:
    padded = payload + b"\x00" * (-len(payload) % STATE_BYTES)
    return tuple(
        int.from_bytes(padded[i : i + STATE_BYTES], "big")
        for i in range(0, len(padded), STATE_BYTES)
    )


def _unpack(state: EncodedState) -> bytes:
    try:
        words = b"".join(value.to_bytes(STATE_BYTES, "big") for value in state.states)
    except OverflowError as exc:
        raise CorruptStateError(
            f"State value does not fit in {STATE_BYTES} bytes: {exc}"
        ) from exc

    if not (0 <= state.length <= len(words) and len(words) - state.length < STATE_BYTES):
        raise CorruptStateError(
            f"Payload length {state.length} does not match {len(state.states)} states."
        )
    if any(words[state.length :]):
        raise CorruptStateError("Padding after the payload is not zero.")
    return words[: state.length]


class GravitationalCodec(Codec):
    """Default codec: raw deflate with an orbital-level window, packed into states."""

    def encode(self, text: str, n_max: int = DEFAULT_N_MAX) -> EncodedState:
        n_max = validate_n_max(n_max)
        raw = text_bytes(text)

        compressor = zlib.compressobj(_LEVEL, zlib.DEFLATED, -window_bits(n_max))
        stream = compressor.compress(raw) + compressor.flush()

        if _word_count(len(stream)) < _word_count(len(raw)):
            return EncodedState(
                n_max=n_max, states=_pack(stream), length=len(stream), deflated=True
            )
        return EncodedState(n_max=n_max, states=_pack(raw), length=len(raw))

    def decode(self, state: EncodedState) -> str:
        if state.n_max < 1:
            raise CorruptStateError(f"n_max must be >= 1, got {state.n_max}.")

        payload = _unpack(state)
        if state.deflated:
            decompressor = zlib.decompressobj(-window_bits(state.n_max))
            try:
                payload = decompressor.decompress(payload) + decompressor.flush()
            except zlib.error as exc:
                raise CorruptStateError(f"Deflate stream is damaged: {exc}") from exc
            if not decompressor.eof or decompressor.unused_data:
                raise CorruptStateError("Deflate stream is truncated or has trailing bytes.")

        try:
            return payload.decode("utf-8", "surrogatepass")
        except UnicodeDecodeError as exc:
            raise CorruptStateError(f"Decoded payload is not UTF-8: {exc}") from exc

    def estimated_size(self, state: EncodedState) -> int:
        return CHUNK_OVERHEAD_BYTES + STATE_BYTES * len(state.states)


# ------------------------------------------------------------------
# JSON form (used by the SQLite store)
# ------------------------------------------------------------------


def state_to_dict(state: EncodedState) -> dict[str, Any]:
    return {
        "n_max": state.n_max,
        "states": list(state.states),
        "length": state.length,
        "deflated": state.deflated,
    }


def state_from_dict(data: Any) -> EncodedState:
    """Rebuild an EncodedState from ``state_to_dict`` output.

    Raises:
        CorruptStateError: If *data* does not have the expected shape.
    """
    try:
        n_max = data["n_max"]
        states = tuple(data["states"])
        length = data["length"]
        deflated = data["deflated"]
    except (KeyError, TypeError) as exc:
        raise CorruptStateError(f"Malformed encoded state: {exc}") from exc

    if (
        isinstance(n_max, bool)
        or not isinstance(n_max, int)
        or isinstance(length, bool)
        or not isinstance(length, int)
        or not isinstance(deflated, bool)
        or not all(isinstance(s, int) and not isinstance(s, bool) for s in states)
    ):
        raise CorruptStateError("Malformed encoded state: unexpected field types.")

    return EncodedState(n_max=n_max, states=states, length=length, deflated=deflated)
