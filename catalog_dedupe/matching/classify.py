# catalog_dedupe/matching/classify.py
"""
Turn scored candidates into decisions.

Two independent classifiers:
  - decide_duplicate(): best candidate vs. a caller threshold (binary)
  - build_similarity_report(): every candidate bucketed none/warn/high,
    plus an ambiguity flag when more than one candidate is "high"
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Literal, Optional, Sequence

from catalog_dedupe.config import ClassificationThresholds

from .aggregate import ScoreBreakdown, ScoredCandidate

Tier = Literal["none", "warn", "high"]


# ---------------------------------------------------------------------------
# Duplicate decision
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MatchDecision:
    is_duplicate: bool
    candidates_checked: int = 0
    best_candidate_id: Optional[str] = None
    confidence_score: Optional[float] = None
    breakdown: Optional[ScoreBreakdown] = None

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "isDuplicate": self.is_duplicate,
            "candidatesChecked": self.candidates_checked,
        }
        if self.best_candidate_id is not None:
            payload["bestCandidateId"] = self.best_candidate_id
        if self.confidence_score is not None:
            payload["confidenceScore"] = self.confidence_score
        if self.breakdown is not None:
            payload["breakdown"] = self.breakdown.as_dict()
        return payload


def select_best(scored: Iterable[ScoredCandidate]) -> Optional[ScoredCandidate]:
    """Highest total wins; strict '>' so the first-seen candidate keeps a tie."""
    best: Optional[ScoredCandidate] = None
    for sc in scored:
        if best is None or sc.total > best.total:
            best = sc
    return best


def decide_duplicate(
    scored: Sequence[ScoredCandidate],
    threshold: float,
    candidates_checked: int,
) -> MatchDecision:
    best = select_best(scored)
    if best is not None and best.total >= threshold:
        return MatchDecision(
            is_duplicate=True,
            candidates_checked=candidates_checked,
            best_candidate_id=best.candidate_id,
            confidence_score=best.total,
            breakdown=best.breakdown,
        )
    return MatchDecision(is_duplicate=False, candidates_checked=candidates_checked)


# ---------------------------------------------------------------------------
# Tiered similarity report
# ---------------------------------------------------------------------------

def classify_score(score: float, thresholds: ClassificationThresholds) -> Tier:
    if score >= thresholds.high:
        return "high"
    if score >= thresholds.warn:
        return "warn"
    return "none"


@dataclass(frozen=True)
class TieredResult:
    scored: ScoredCandidate
    tier: Tier

    @property
    def candidate_id(self) -> str:
        return self.scored.candidate_id

    @property
    def score(self) -> float:
        return self.scored.total


@dataclass(frozen=True)
class SimilarityReport:
    results: list[TieredResult] = field(default_factory=list)
    high_similarity_matches: list[TieredResult] = field(default_factory=list)
    warning_similarity_matches: list[TieredResult] = field(default_factory=list)
    candidates_checked: int = 0

    @property
    def top_match(self) -> Optional[TieredResult]:
        return self.results[0] if self.results else None

    @property
    def has_high_similarity(self) -> bool:
        return bool(self.high_similarity_matches)

    @property
    def has_warning_similarity(self) -> bool:
        return bool(self.warning_similarity_matches)

    @property
    def is_ambiguous(self) -> bool:
        """More than one plausible target: do not auto-merge."""
        return len(self.high_similarity_matches) > 1

    def as_dict(self) -> dict[str, Any]:
        def _row(r: TieredResult) -> dict[str, Any]:
            return {
                "candidateId": r.candidate_id,
                "score": r.score,
                "threshold": r.tier,
                "breakdown": r.scored.breakdown.as_dict(),
                "explanation": explain_match(r.scored),
            }

        return {
            "candidatesChecked": self.candidates_checked,
            "hasHighSimilarity": self.has_high_similarity,
            "hasWarningSimilarity": self.has_warning_similarity,
            "isAmbiguous": self.is_ambiguous,
            "highSimilarityMatches": [_row(r) for r in self.high_similarity_matches],
            "warningSimilarityMatches": [_row(r) for r in self.warning_similarity_matches],
            "topMatch": _row(self.top_match) if self.top_match else None,
        }


def build_similarity_report(
    scored: Sequence[ScoredCandidate],
    thresholds: ClassificationThresholds,
    *,
    candidates_checked: Optional[int] = None,
) -> SimilarityReport:
    # sorted() is stable: equal scores keep retriever order
    ordered = sorted(scored, key=lambda sc: sc.total, reverse=True)
    results = [TieredResult(scored=sc, tier=classify_score(sc.total, thresholds)) for sc in ordered]
    return SimilarityReport(
        results=results,
        high_similarity_matches=[r for r in results if r.tier == "high"],
        warning_similarity_matches=[r for r in results if r.tier in ("warn", "high")],
        candidates_checked=len(scored) if candidates_checked is None else candidates_checked,
    )


def explain_match(scored: ScoredCandidate) -> str:
    """
    Short reviewer-facing explanation, e.g. "83% similar (15m away, similar title)".
    Cutoffs apply to the raw (unweighted) signal values.
    """
    raw = scored.raw_scores
    reasons: list[str] = []
    if scored.distance_m is not None:
        reasons.append(f"{round(scored.distance_m)}m away")
    if raw.get("title", 0.0) > 0.5:
        reasons.append("similar title")
    if raw.get("entity_secondary", 0.0) > 0.5:
        reasons.append("similar artist")
    if raw.get("reference_ids", 0.0) >= 1.0:
        reasons.append("matching reference id")
    if raw.get("tag_similarity", 0.0) > 0.3:
        reasons.append("matching tags")

    percent = round(scored.total * 100)
    if reasons:
        return f"{percent}% similar ({', '.join(reasons)})"
    return f"{percent}% similar"
