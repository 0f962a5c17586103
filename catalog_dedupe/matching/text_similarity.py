# catalog_dedupe/matching/text_similarity.py
"""
Normalized Levenshtein similarity.

similarity = 1 - distance / max(len(a), len(b)), in [0, 1].
No phonetic matching: edit distance only.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from .normalize import normalize_text, split_artist_credits


def levenshtein_distance(a: str, b: str) -> int:
    """Unit-cost insert / delete / substitute, classic DP over two rows."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i] + [0] * len(b)
        for j, cb in enumerate(b, start=1):
            if ca == cb:
                current[j] = previous[j - 1]
            else:
                current[j] = min(
                    previous[j] + 1,      # deletion
                    current[j - 1] + 1,   # insertion
                    previous[j - 1] + 1,  # substitution
                )
        previous = current
    return previous[len(b)]


def text_similarity(a: Optional[str], b: Optional[str]) -> float:
    """Symmetric similarity in [0, 1]; 0.0 if either side is empty."""
    s1 = (a or "").lower().strip()
    s2 = (b or "").lower().strip()
    if not s1 or not s2:
        return 0.0
    if s1 == s2:
        return 1.0

    distance = levenshtein_distance(s1, s2)
    return 1.0 - distance / max(len(s1), len(s2))


@lru_cache(maxsize=4096)
def _cached_pair(a: str, b: str) -> float:
    return text_similarity(a, b)


def cached_text_similarity(a: Optional[str], b: Optional[str]) -> float:
    """
    Memoized text_similarity keyed on the normalized, order-independent pair.
    For callers comparing the same names many times in one sweep.
    """
    n1 = normalize_text(a)
    n2 = normalize_text(b)
    if n2 < n1:
        n1, n2 = n2, n1
    return _cached_pair(n1, n2)


def best_credit_similarity(a: Optional[str], b: Optional[str]) -> float:
    """Best pairwise similarity across the individual artists of two credit lines."""
    best = 0.0
    for left in split_artist_credits(a):
        for right in split_artist_credits(b):
            best = max(best, text_similarity(normalize_text(left), normalize_text(right)))
    return best
