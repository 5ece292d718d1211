"""Boundary-aware, lossless text chunker.

Strategy:
- Sizes are expressed in tokens using the 4-chars-per-token approximation;
  a chunk holds at most ``chunk_size * 4`` characters.
- Inside the window ``[min_chars, max_chars]`` past the current position the
  last paragraph break wins, then the last sentence end, then the last
  whitespace run. Trailing whitespace stays with the earlier chunk.
- With no boundary in the window the text is cut at ``max_chars``.
- Nothing is stripped and nothing overlaps: ``"".join(split(t)) == t``.
"""

from __future__ import annotations

import re

from aibooks.errors import InputError

_CHARS_PER_TOKEN = 4

_PARAGRAPH_RE = re.compile(r"\n[ \t\r\f\v]*\n\s*")
_SENTENCE_RE = re.compile(r"[.!?][\"')\]]*\s+")
_WHITESPACE_RE = re.compile(r"\s+")

_BOUNDARY_PATTERNS = (_PARAGRAPH_RE, _SENTENCE_RE, _WHITESPACE_RE)


class Chunker:
    """Split text into ordered chunks that concatenate back to the source.

    Default: 512 tokens (2048 characters) per chunk, at least half full
    whenever a boundary allows it.
    """

    def __init__(self, chunk_size: int = 512, min_fill: float = 0.5) -> None:
        if chunk_size < 1:
            raise InputError("chunk_size must be >= 1")
        if not 0.0 < min_fill <= 1.0:
            raise InputError("min_fill must be in (0.0, 1.0]")
        self.chunk_size = chunk_size
        self.min_fill = min_fill

    @property
    def max_chars(self) -> int:
        return self.chunk_size * _CHARS_PER_TOKEN

    @property
    def min_chars(self) -> int:
        return max(1, int(self.max_chars * self.min_fill))

    def split(self, text: str) -> list[str]:
        """Return the chunk texts of *text*, in order."""
        return [text[start:end] for start, end in self.spans(text)]

    def spans(self, text: str) -> list[tuple[int, int]]:
        """Return ``(start, end)`` offsets of every chunk; contiguous and covering *text*."""
        spans: list[tuple[int, int]] = []
        pos = 0
        length = len(text)
        max_chars = self.max_chars
        min_chars = self.min_chars

        while pos < length:
            if length - pos <= max_chars:
                spans.append((pos, length))
                break
            window_end = pos + max_chars
            cut = self._find_boundary(text, pos + min_chars, window_end)
            if cut is None:
                cut = window_end
            spans.append((pos, cut))
            pos = cut

        return spans

    @staticmethod
    def _find_boundary(text: str, lo: int, hi: int) -> int | None:
        """Offset just past the best boundary ending inside ``text[lo:hi]``."""
        window = text[lo:hi]
        for pattern in _BOUNDARY_PATTERNS:
            last = None
            for last in pattern.finditer(window):
                pass
            if last is not None:
                return lo + last.end()
        return None
