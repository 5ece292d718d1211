"""Lexical relevance scoring.

score(q, c) = mean over distinct query terms t of
                0                           if tf(t, c) == 0
                (1 + tf / (tf + K)) / 2     otherwise          K = 1.5

Coverage of the query vocabulary dominates (a present term is worth at least
0.7); repeated occurrences only separate chunks with equal coverage.
Both operands are case-folded, so the score is case-insensitive.
"""

from __future__ import annotations

import re
from collections import Counter

from aibooks.engine.models import Chunk

_TF_SATURATION = 1.5
_WORD_RE = re.compile(r"\w+")


def tokenize(text: str) -> list[str]:
    """Case-folded word tokens of *text*."""
    return _WORD_RE.findall(text.casefold())


def score_text(query: str, content: str) -> float:
    """Relevance of *content* to *query*, in [0, 1]."""
    query_terms = set(tokenize(query))
    if not query_terms:
        return 0.0
    frequencies = Counter(tokenize(content))
    if not frequencies:
        return 0.0

    total = 0.0
    # Sorted so the float sum does not depend on set iteration order.
    for term in sorted(query_terms):
        tf = frequencies.get(term, 0)
        if tf:
            total += (1.0 + tf / (tf + _TF_SATURATION)) / 2.0
    return min(1.0, max(0.0, total / len(query_terms)))


def calculate_similarity(query: str, chunk: Chunk) -> float:
    """Relevance of *chunk* to *query*, computed from its decoded content."""
    return score_text(query, chunk.content)
