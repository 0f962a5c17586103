# catalog_dedupe/matching/normalize.py
"""
Text canonicalization for comparisons.
Pure functions, total: any input (including None) yields a string.
"""
from __future__ import annotations

import re
import unicodedata
from typing import Optional

_WHITESPACE_RE = re.compile(r"\s+")
_NON_WORD_RE = re.compile(r"[^\w\s-]")
_CREDIT_SPLIT_RE = re.compile(r"[&,]|\band\b", re.IGNORECASE)


def strip_diacritics(value: str) -> str:
    """NFKD-decompose and drop combining marks ("Émile" -> "Emile")."""
    decomposed = unicodedata.normalize("NFKD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_text(value: Optional[str]) -> str:
    """
    trim -> collapse whitespace -> lowercase -> strip diacritics
    -> drop everything except word chars, whitespace and hyphens.
    """
    if not value:
        return ""
    s = _WHITESPACE_RE.sub(" ", value.strip())
    s = s.lower()
    s = strip_diacritics(s)
    s = _NON_WORD_RE.sub("", s)
    return s


def split_artist_credits(value: Optional[str]) -> list[str]:
    """
    Split a credit line into individual artists.

    "Jane Doe & John Roe"       -> ["Jane Doe", "John Roe"]
    "Ann, Bob and Cy"           -> ["Ann", "Bob", "Cy"]
    """
    if not value:
        return []
    parts = (p.strip() for p in _CREDIT_SPLIT_RE.split(value))
    return [p for p in parts if p]
