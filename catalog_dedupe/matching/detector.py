# catalog_dedupe/matching/detector.py
"""
Duplicate detection orchestrator.

Flow per call:
  validate config -> retrieve bounded candidates -> score each candidate
  -> pick best (first seen wins ties) -> threshold -> MatchDecision

Failure policy:
  - bad threshold / weights         -> SimilarityConfigurationError, before retrieval
  - retriever raises                -> CandidateRetrievalError (never "no duplicates")
  - one signal fails on a candidate -> that signal scores 0 (aggregate.py)
  - whole candidate scoring fails   -> candidate skipped, sweep continues

Stateless: a detector can be shared across threads. With max_workers > 1
candidates are scored on a thread pool; results are folded in retriever
order, so ties resolve exactly like the serial path.
"""
from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from catalog_dedupe.config import (
    ClassificationThresholds,
    SimilarityConfig,
    validate_thresholds,
)
from catalog_dedupe.db.retriever import CandidateRetriever, artist_name_pattern
from catalog_dedupe.errors import (
    CandidateRetrievalError,
    SimilarityCalculationError,
    SimilarityConfigurationError,
    SimilarityError,
    SimilarityInputError,
)
from catalog_dedupe.models import CandidateRecord, EntityKind, IncomingRecord

from .aggregate import ScoredCandidate, score_artist_candidate, score_artwork_candidate
from .classify import MatchDecision, SimilarityReport, build_similarity_report, decide_duplicate
from .geo import is_valid_coordinates
from .weights import ArtistWeights, WeightProfile, resolve_weights

logger = logging.getLogger(__name__)

WeightOverrides = Union[Mapping[str, Any], WeightProfile, None]


def validate_threshold(threshold: Any) -> float:
    if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
        raise SimilarityConfigurationError(
            f"Threshold must be a number, got {threshold!r}", {"threshold": repr(threshold)}
        )
    t = float(threshold)
    if math.isnan(t) or not 0.0 <= t <= 1.0:
        raise SimilarityConfigurationError(
            f"Threshold {t} must be between 0 and 1", {"threshold": t}
        )
    return t


class DuplicateDetector:
    def __init__(
        self,
        retriever: CandidateRetriever,
        *,
        config: Optional[SimilarityConfig] = None,
        max_workers: int = 1,
    ) -> None:
        if max_workers < 1:
            raise SimilarityConfigurationError(f"max_workers must be >= 1, got {max_workers}")
        self.retriever = retriever
        self.config = config or SimilarityConfig()
        self.max_workers = max_workers

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def check_duplicates(
        self,
        record: IncomingRecord,
        threshold: float,
        weights: WeightOverrides = None,
        *,
        candidates: Optional[Sequence[CandidateRecord]] = None,
    ) -> MatchDecision:
        if record.entity_kind == EntityKind.ARTIST:
            return self.check_artist_duplicates(record, threshold, weights, candidates=candidates)
        return self.check_artwork_duplicates(record, threshold, weights, candidates=candidates)

    def check_artwork_duplicates(
        self,
        record: IncomingRecord,
        threshold: float,
        weights: WeightOverrides = None,
        *,
        candidates: Optional[Sequence[CandidateRecord]] = None,
    ) -> MatchDecision:
        return self._check(record, EntityKind.ARTWORK, threshold, weights, candidates)

    def check_artist_duplicates(
        self,
        record: IncomingRecord,
        threshold: float,
        weights: WeightOverrides = None,
        *,
        candidates: Optional[Sequence[CandidateRecord]] = None,
    ) -> MatchDecision:
        return self._check(record, EntityKind.ARTIST, threshold, weights, candidates)

    def assess_similarity(
        self,
        record: IncomingRecord,
        weights: WeightOverrides = None,
        thresholds: Optional[ClassificationThresholds] = None,
        *,
        candidates: Optional[Sequence[CandidateRecord]] = None,
    ) -> SimilarityReport:
        """
        Tiered variant: every candidate is bucketed none / warn / high and
        the report flags ambiguity when more than one candidate is high.

        Pass `candidates` (from retrieve_candidates) to build the report over
        the same set a duplicate decision was made on.
        """
        tiers = thresholds or self.config.thresholds
        validate_thresholds(tiers)
        profile = resolve_weights(record.entity_kind, weights)

        if candidates is None:
            candidates = self.retrieve_candidates(record)
        candidates = list(candidates)
        scored = self._score_all(record, candidates, profile)
        report = build_similarity_report(scored, tiers, candidates_checked=len(candidates))
        if report.is_ambiguous:
            logger.info(
                "ambiguous match for %r: %d candidates at or above %.2f",
                record.title_or_name, len(report.high_similarity_matches), tiers.high,
            )
        return report

    def score_candidates(
        self,
        record: IncomingRecord,
        candidates: Sequence[CandidateRecord],
        weights: WeightOverrides = None,
    ) -> list[ScoredCandidate]:
        """Score an already-fetched candidate list (no retrieval)."""
        profile = resolve_weights(record.entity_kind, weights)
        return self._score_all(record, list(candidates), profile)

    def retrieve_candidates(self, record: IncomingRecord) -> list[CandidateRecord]:
        """
        Bounded candidate set for `record`: artists by name pattern, artworks
        by spatial window. Records that cannot be windowed (blank name,
        missing or out-of-range coordinates) get no candidates.
        """
        if record.entity_kind == EntityKind.ARTIST:
            if not (record.title_or_name or "").strip():
                logger.warning("artist record has a blank name; skipping candidate lookup")
                return []
            pattern = artist_name_pattern(record.title_or_name)
            query: dict[str, Any] = {"entity_kind": "artist", "name_pattern": pattern}
            fetch = lambda: self.retriever.find_similar_artists(pattern)  # noqa: E731
        else:
            if record.coordinates is None:
                logger.warning(
                    "artwork %r has no coordinates; no spatial window, skipping candidate lookup",
                    record.title_or_name,
                )
                return []
            if not is_valid_coordinates(record.coordinates):
                logger.warning(
                    "artwork %r has out-of-range coordinates %s; skipping candidate lookup",
                    record.title_or_name, record.coordinates,
                )
                return []
            lat, lon = record.coordinates.lat, record.coordinates.lon
            radius = self.config.gps_search_radius_degrees
            query = {"entity_kind": "artwork", "lat": lat, "lon": lon, "radius_degrees": radius}
            fetch = lambda: self.retriever.find_nearby_artworks(lat, lon, radius)  # noqa: E731

        try:
            rows = fetch()
        except SimilarityError:
            raise
        except Exception as e:
            raise CandidateRetrievalError(query, e) from e

        candidates: list[CandidateRecord] = []
        for row in rows or []:
            if isinstance(row, CandidateRecord):
                candidates.append(row)
                continue
            try:
                candidates.append(CandidateRecord.model_validate(row))
            except ValidationError as e:
                logger.warning("dropping malformed candidate row: %s", e)
        return candidates

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check(
        self,
        record: IncomingRecord,
        kind: EntityKind,
        threshold: float,
        weights: WeightOverrides,
        candidates: Optional[Sequence[CandidateRecord]] = None,
    ) -> MatchDecision:
        if record.entity_kind != kind:
            raise SimilarityInputError(
                "entity_kind", record.entity_kind.value, f"expected a {kind.value} record"
            )
        t = validate_threshold(threshold)
        profile = resolve_weights(kind, weights)

        if candidates is None:
            candidates = self.retrieve_candidates(record)
        candidates = list(candidates)
        if not candidates:
            return MatchDecision(is_duplicate=False, candidates_checked=0)

        logger.info(
            "checking %d %s candidates for %r", len(candidates), kind.value, record.title_or_name
        )
        scored = self._score_all(record, candidates, profile)
        decision = decide_duplicate(scored, t, candidates_checked=len(candidates))

        if decision.is_duplicate:
            logger.info(
                "duplicate detected: %s score=%.3f >= %.3f",
                decision.best_candidate_id, decision.confidence_score, t,
            )
        else:
            best = max((sc.total for sc in scored), default=0.0)
            logger.info("no duplicates found, best score=%.3f < %.3f", best, t)
        return decision

    def _score_one(
        self,
        record: IncomingRecord,
        candidate: CandidateRecord,
        weights: WeightProfile,
    ) -> Optional[ScoredCandidate]:
        try:
            if isinstance(weights, ArtistWeights):
                return score_artist_candidate(record, candidate, weights)
            return score_artwork_candidate(
                record, candidate, weights, max_distance_m=self.config.max_distance_meters
            )
        except Exception as e:
            err = SimilarityCalculationError(candidate.id, e)
            logger.warning("%s; skipping candidate", err.message)
            return None

    def _score_all(
        self,
        record: IncomingRecord,
        candidates: list[CandidateRecord],
        weights: WeightProfile,
    ) -> list[ScoredCandidate]:
        if self.max_workers > 1 and len(candidates) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                # map() yields in input order regardless of completion order
                results = list(pool.map(lambda c: self._score_one(record, c, weights), candidates))
        else:
            results = [self._score_one(record, c, weights) for c in candidates]
        return [r for r in results if r is not None]
