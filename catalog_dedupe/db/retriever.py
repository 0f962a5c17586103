# catalog_dedupe/db/retriever.py
"""
Candidate retriever boundary.

The engine never scans an unbounded corpus: a retriever hands back a
bounded candidate list, pre-filtered by a rough spatial window (artworks)
or a name pattern (artists). Rows are plain data, no behavior.
"""
from __future__ import annotations

import re
from typing import Iterable, Protocol, Sequence, runtime_checkable

from catalog_dedupe.matching.geo import degree_window, within_bounds
from catalog_dedupe.models import CandidateRecord, Coordinates, EntityKind


@runtime_checkable
class CandidateRetriever(Protocol):
    def find_nearby_artworks(
        self, lat: float, lon: float, radius_degrees: float
    ) -> Sequence[CandidateRecord]:
        ...

    def find_similar_artists(self, name_pattern: str) -> Sequence[CandidateRecord]:
        ...


def artist_name_pattern(name: str) -> str:
    """SQL LIKE pattern used to window artist candidates: '%<lowercased name>%'."""
    return f"%{(name or '').strip().lower()}%"


def _like_to_regex(pattern: str) -> re.Pattern[str]:
    parts = []
    for ch in pattern:
        if ch == "%":
            parts.append(".*")
        elif ch == "_":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("^" + "".join(parts) + "$", re.IGNORECASE | re.DOTALL)


class InMemoryCandidateRetriever:
    """
    Retriever over a fixed list of records (fixtures, JSON exports, tests).
    Applies the same windowing the database retriever does.
    """

    def __init__(self, records: Iterable[CandidateRecord]) -> None:
        self._records = list(records)

    def find_nearby_artworks(
        self, lat: float, lon: float, radius_degrees: float
    ) -> list[CandidateRecord]:
        box = degree_window(Coordinates(lat=lat, lon=lon), radius_degrees)
        return [
            r
            for r in self._records
            if r.entity_kind == EntityKind.ARTWORK
            and r.coordinates is not None
            and within_bounds(r.coordinates, box)
        ]

    def find_similar_artists(self, name_pattern: str) -> list[CandidateRecord]:
        rx = _like_to_regex(name_pattern)
        return [
            r
            for r in self._records
            if r.entity_kind == EntityKind.ARTIST and rx.match(r.title_or_name or "")
        ]
