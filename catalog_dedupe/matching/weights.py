# catalog_dedupe/matching/weights.py
"""
Weight profiles per entity kind.

Both profiles have the same five slots so breakdowns line up, but the
slots do NOT mean the same thing:

  slot              artwork                    artist
  ----------------  -------------------------  ---------------------------
  gps               geographic proximity       always 0 (no coordinates)
  title             title similarity           name similarity
  entity_secondary  artist-credit similarity   always 0
  reference_ids     external id exact match    external id exact match
  tag_similarity    tag-key Jaccard            biography text similarity

Weights are multipliers for a plain weighted sum; they need not sum to 1.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, fields, replace
from typing import Any, Mapping, Union

from catalog_dedupe.errors import SimilarityConfigurationError
from catalog_dedupe.models import EntityKind

logger = logging.getLogger(__name__)

SLOTS: tuple[str, ...] = ("gps", "title", "entity_secondary", "reference_ids", "tag_similarity")

# Wire / legacy names accepted in override mappings
_COMMON_ALIASES: dict[str, str] = {
    "gps": "gps",
    "title": "title",
    "entity_secondary": "entity_secondary",
    "entitySecondary": "entity_secondary",
    "reference_ids": "reference_ids",
    "referenceIds": "reference_ids",
    "tag_similarity": "tag_similarity",
    "tagSimilarity": "tag_similarity",
}

SLOT_ALIASES: dict[EntityKind, dict[str, str]] = {
    EntityKind.ARTWORK: {**_COMMON_ALIASES, "artist": "entity_secondary"},
    # artist-profile spellings of the repurposed slots
    EntityKind.ARTIST: {**_COMMON_ALIASES, "name": "title", "bio": "tag_similarity"},
}


@dataclass(frozen=True)
class ArtworkWeights:
    gps: float = 0.6
    title: float = 0.25
    entity_secondary: float = 0.2
    reference_ids: float = 0.5
    tag_similarity: float = 0.05

    kind = EntityKind.ARTWORK

    def as_dict(self) -> dict[str, float]:
        return {slot: float(getattr(self, slot)) for slot in SLOTS}


@dataclass(frozen=True)
class ArtistWeights:
    title: float = 0.5
    reference_ids: float = 0.5
    tag_similarity: float = 0.15
    gps: float = field(default=0.0, init=False)
    entity_secondary: float = field(default=0.0, init=False)

    kind = EntityKind.ARTIST

    @property
    def name(self) -> float:
        return self.title

    @property
    def bio(self) -> float:
        return self.tag_similarity

    def as_dict(self) -> dict[str, float]:
        return {slot: float(getattr(self, slot)) for slot in SLOTS}


WeightProfile = Union[ArtworkWeights, ArtistWeights]

DEFAULT_ARTWORK_WEIGHTS = ArtworkWeights()
DEFAULT_ARTIST_WEIGHTS = ArtistWeights()

# Slots an artist profile never scores
_ARTIST_PINNED_SLOTS = frozenset({"gps", "entity_secondary"})


def _check_weight(slot: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SimilarityConfigurationError(
            f"Weight {slot!r} must be a number, got {value!r}", {"slot": slot}
        )
    v = float(value)
    if math.isnan(v) or math.isinf(v):
        raise SimilarityConfigurationError(f"Weight {slot!r} must be finite", {"slot": slot})
    if v < 0:
        raise SimilarityConfigurationError(
            f"Weight {slot!r} must be non-negative, got {v}", {"slot": slot, "value": v}
        )
    return v


def validate_weights(weights: WeightProfile) -> None:
    for f in fields(weights):
        _check_weight(f.name, getattr(weights, f.name))


def default_weights(kind: EntityKind) -> WeightProfile:
    if kind == EntityKind.ARTIST:
        return DEFAULT_ARTIST_WEIGHTS
    return DEFAULT_ARTWORK_WEIGHTS


def resolve_weights(
    kind: EntityKind,
    overrides: Union[Mapping[str, Any], WeightProfile, None] = None,
) -> WeightProfile:
    """
    Default profile for `kind`, updated with a partial override.

    `overrides` may be a full profile of the matching kind or a mapping of
    slot -> weight. Slot names are checked against the kind: "artist" only
    for artworks, "name" / "bio" only for artists. Artist gps /
    entity_secondary overrides are dropped.
    """
    base = default_weights(kind)

    if overrides is None:
        return base

    if isinstance(overrides, (ArtworkWeights, ArtistWeights)):
        if overrides.kind != kind:
            raise SimilarityConfigurationError(
                f"{type(overrides).__name__} cannot score {kind.value} records",
                {"entity_kind": kind.value},
            )
        validate_weights(overrides)
        return overrides

    if not isinstance(overrides, Mapping):
        raise SimilarityConfigurationError(
            f"Weight overrides must be a mapping of slot -> weight, got {type(overrides).__name__}",
            {"entity_kind": kind.value},
        )

    aliases = SLOT_ALIASES[EntityKind(kind)]
    updates: dict[str, float] = {}
    for key, value in overrides.items():
        slot = aliases.get(key)
        if slot is None:
            raise SimilarityConfigurationError(
                f"Unknown weight slot {key!r} for {kind.value} profile",
                {"slot": key, "known": list(aliases)},
            )
        weight = _check_weight(key, value)
        if kind == EntityKind.ARTIST and slot in _ARTIST_PINNED_SLOTS:
            if weight:
                logger.info("ignoring %s weight override for artist profile (pinned to 0)", key)
            continue
        updates[slot] = weight

    return replace(base, **updates)
