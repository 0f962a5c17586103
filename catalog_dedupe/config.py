# catalog_dedupe/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, replace

from dotenv import load_dotenv

from .errors import SimilarityConfigurationError

load_dotenv()

# Tier cutoffs for the tiered similarity report
DEFAULT_THRESHOLD_WARN = 0.65
DEFAULT_THRESHOLD_HIGH = 0.80

# Duplicate threshold used when the caller does not pass one (CLI only;
# the engine itself always takes the threshold as an argument)
DEFAULT_DUPLICATE_THRESHOLD = 0.7

# Distance beyond which the gps signal scores 0
DEFAULT_MAX_DISTANCE_METERS = 500.0

# Spatial window handed to the candidate retriever (~500m at mid-latitudes)
DEFAULT_GPS_SEARCH_RADIUS_DEGREES = 0.0045

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


@dataclass(frozen=True)
class ClassificationThresholds:
    warn: float = DEFAULT_THRESHOLD_WARN
    high: float = DEFAULT_THRESHOLD_HIGH


@dataclass(frozen=True)
class SimilarityConfig:
    thresholds: ClassificationThresholds = ClassificationThresholds()
    duplicate_threshold: float = DEFAULT_DUPLICATE_THRESHOLD
    max_distance_meters: float = DEFAULT_MAX_DISTANCE_METERS
    gps_search_radius_degrees: float = DEFAULT_GPS_SEARCH_RADIUS_DEGREES


# Named threshold presets, selected via SIMILARITY_ENVIRONMENT
THRESHOLD_PRESETS: dict[str, ClassificationThresholds] = {
    "default": ClassificationThresholds(),
    "dev": ClassificationThresholds(warn=0.5, high=0.7),
    "prod": ClassificationThresholds(warn=0.7, high=0.85),
}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise SimilarityConfigurationError(
            f"{name} must be a number, got {raw!r}", {"variable": name}
        ) from e


def validate_thresholds(thresholds: ClassificationThresholds) -> None:
    for label, value in (("warn", thresholds.warn), ("high", thresholds.high)):
        if not 0.0 <= value <= 1.0:
            raise SimilarityConfigurationError(
                f"Invalid {label} threshold: {value}. Must be between 0 and 1.",
                {label: value},
            )
    if thresholds.high <= thresholds.warn:
        raise SimilarityConfigurationError(
            f"High threshold ({thresholds.high}) must be greater than "
            f"warn threshold ({thresholds.warn}).",
            {"warn": thresholds.warn, "high": thresholds.high},
        )


def validate_similarity_config(config: SimilarityConfig) -> None:
    validate_thresholds(config.thresholds)
    if not 0.0 <= config.duplicate_threshold <= 1.0:
        raise SimilarityConfigurationError(
            f"Duplicate threshold {config.duplicate_threshold} must be between 0 and 1."
        )
    if config.max_distance_meters <= 0:
        raise SimilarityConfigurationError(
            f"Max distance must be positive, got {config.max_distance_meters}m"
        )
    if config.gps_search_radius_degrees <= 0:
        raise SimilarityConfigurationError(
            f"GPS search radius must be positive, got {config.gps_search_radius_degrees}"
        )


def load_similarity_config() -> SimilarityConfig:
    """
    Build the similarity config from environment variables.

    SIMILARITY_ENVIRONMENT picks a threshold preset (default | dev | prod);
    SIMILARITY_THRESHOLD_WARN / SIMILARITY_THRESHOLD_HIGH override it.
    """
    env = (os.getenv("SIMILARITY_ENVIRONMENT") or "default").strip().lower()
    preset = THRESHOLD_PRESETS.get(env)
    if preset is None:
        raise SimilarityConfigurationError(
            f"Unknown SIMILARITY_ENVIRONMENT {env!r}. "
            f"Expected one of: {', '.join(sorted(THRESHOLD_PRESETS))}."
        )

    thresholds = replace(
        preset,
        warn=_env_float("SIMILARITY_THRESHOLD_WARN", preset.warn),
        high=_env_float("SIMILARITY_THRESHOLD_HIGH", preset.high),
    )

    config = SimilarityConfig(
        thresholds=thresholds,
        duplicate_threshold=_env_float("DUPLICATE_THRESHOLD", DEFAULT_DUPLICATE_THRESHOLD),
        max_distance_meters=_env_float(
            "SIMILARITY_MAX_DISTANCE_METERS", DEFAULT_MAX_DISTANCE_METERS
        ),
        gps_search_radius_degrees=_env_float(
            "GPS_SEARCH_RADIUS_DEGREES", DEFAULT_GPS_SEARCH_RADIUS_DEGREES
        ),
    )
    validate_similarity_config(config)
    return config
