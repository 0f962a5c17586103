# catalog_dedupe/matching/aggregate.py
"""
Weighted aggregation of per-signal scores into one ScoreBreakdown.

component_weighted = component_raw * weight
total              = sum(component_weighted)

Not a normalized average: missing signals contribute 0 and the remaining
weights are NOT renormalized.

Every signal is computed fail-open: if one signal raises (bad coordinates,
odd tag payload), it is logged and scored 0; the other signals still count.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from catalog_dedupe.models import CandidateRecord, IncomingRecord

from .geo import geo_proximity_score, haversine_distance_m
from .normalize import normalize_text
from .reference_ids import reference_id_score
from .tags import tag_similarity
from .text_similarity import best_credit_similarity, text_similarity
from .weights import SLOTS, ArtistWeights, ArtworkWeights

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoreBreakdown:
    """Weighted components; total is always their sum."""

    gps: float = 0.0
    title: float = 0.0
    entity_secondary: float = 0.0
    reference_ids: float = 0.0
    tag_similarity: float = 0.0

    @property
    def total(self) -> float:
        return (
            self.gps
            + self.title
            + self.entity_secondary
            + self.reference_ids
            + self.tag_similarity
        )

    def as_dict(self) -> dict[str, float]:
        payload = {slot: float(getattr(self, slot)) for slot in SLOTS}
        payload["total"] = self.total
        return payload


@dataclass(frozen=True)
class ScoredCandidate:
    candidate_id: str
    breakdown: ScoreBreakdown
    distance_m: Optional[float] = None
    raw_scores: dict[str, float] = field(default_factory=dict)  # unweighted, by slot

    @property
    def total(self) -> float:
        return self.breakdown.total


def _signal(name: str, candidate_id: str, fn: Callable[[], float]) -> float:
    try:
        return float(fn())
    except Exception as e:
        logger.warning(
            "signal %s failed for candidate %s, scoring it 0: %s: %s",
            name, candidate_id, type(e).__name__, e,
        )
        return 0.0


def score_artwork_candidate(
    record: IncomingRecord,
    candidate: CandidateRecord,
    weights: ArtworkWeights,
    *,
    max_distance_m: float,
) -> ScoredCandidate:
    cid = candidate.id

    distance_m: Optional[float] = None
    gps_raw = 0.0
    if record.coordinates is not None and candidate.coordinates is not None:
        try:
            distance_m = haversine_distance_m(record.coordinates, candidate.coordinates)
        except (TypeError, ValueError, OverflowError):
            distance_m = None
        gps_raw = _signal(
            "gps", cid,
            lambda: geo_proximity_score(record.coordinates, candidate.coordinates, max_distance_m),
        )

    title_raw = _signal(
        "title", cid,
        lambda: text_similarity(
            normalize_text(record.title_or_name), normalize_text(candidate.title_or_name)
        ),
    )
    artist_raw = _signal(
        "entity_secondary", cid,
        lambda: best_credit_similarity(record.secondary_name, candidate.secondary_name),
    )
    ref_raw = _signal(
        "reference_ids", cid,
        lambda: reference_id_score(record.external_id, candidate.reference_ids()),
    )
    tags_raw = _signal(
        "tag_similarity", cid,
        lambda: tag_similarity(record.tags, candidate.tag_payload()),
    )

    breakdown = ScoreBreakdown(
        gps=gps_raw * weights.gps,
        title=title_raw * weights.title,
        entity_secondary=artist_raw * weights.entity_secondary,
        reference_ids=ref_raw * weights.reference_ids,
        tag_similarity=tags_raw * weights.tag_similarity,
    )
    return ScoredCandidate(
        candidate_id=cid,
        breakdown=breakdown,
        distance_m=distance_m,
        raw_scores={
            "gps": gps_raw,
            "title": title_raw,
            "entity_secondary": artist_raw,
            "reference_ids": ref_raw,
            "tag_similarity": tags_raw,
        },
    )


def score_artist_candidate(
    record: IncomingRecord,
    candidate: CandidateRecord,
    weights: ArtistWeights,
) -> ScoredCandidate:
    """
    Artist comparison. The title slot carries name similarity and the
    tag_similarity slot carries biography similarity (only when both
    sides have a bio). gps and entity_secondary are always 0.
    """
    cid = candidate.id

    name_raw = _signal(
        "name", cid,
        lambda: text_similarity(
            normalize_text(record.title_or_name), normalize_text(candidate.title_or_name)
        ),
    )
    ref_raw = _signal(
        "reference_ids", cid,
        lambda: reference_id_score(record.external_id, candidate.reference_ids()),
    )
    bio_raw = 0.0
    if record.bio and candidate.bio:
        bio_raw = _signal(
            "bio", cid,
            lambda: text_similarity(normalize_text(record.bio), normalize_text(candidate.bio)),
        )

    breakdown = ScoreBreakdown(
        gps=0.0,
        title=name_raw * weights.name,
        entity_secondary=0.0,
        reference_ids=ref_raw * weights.reference_ids,
        tag_similarity=bio_raw * weights.bio,
    )
    return ScoredCandidate(
        candidate_id=cid,
        breakdown=breakdown,
        raw_scores={"title": name_raw, "reference_ids": ref_raw, "tag_similarity": bio_raw},
    )
