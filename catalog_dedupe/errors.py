# catalog_dedupe/errors.py
"""
Typed errors for duplicate detection.

Taxonomy:
  - configuration errors   -> rejected at call entry (never mid-sweep)
  - input-shape problems   -> recovered locally as a zero signal; the
                              typed errors below only surface them in logs
  - retriever failures     -> propagated; never treated as "no duplicates"
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


class SimilarityError(Exception):
    """Base class for everything raised by the matching engine."""

    code: str = "SIMILARITY_ERROR"

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "context": self.context,
        }
        cause = self.__cause__
        if cause is not None:
            payload["cause"] = {"name": type(cause).__name__, "message": str(cause)}
        return payload


class SimilarityConfigurationError(SimilarityError, ValueError):
    code = "SIMILARITY_CONFIG_INVALID"


class SimilarityInputError(SimilarityError, ValueError):
    code = "SIMILARITY_INPUT_INVALID"

    def __init__(self, field: str, value: Any, reason: str) -> None:
        super().__init__(
            f"Invalid input for {field}: {reason}",
            {"field": field, "value": repr(value), "reason": reason},
        )


class SimilarityCalculationError(SimilarityError):
    code = "SIMILARITY_CALCULATION_FAILED"

    def __init__(self, candidate_id: str, cause: Exception) -> None:
        super().__init__(
            f"Similarity calculation failed for candidate {candidate_id}: {cause}",
            {"candidate_id": candidate_id},
        )
        self.__cause__ = cause


class CandidateRetrievalError(SimilarityError):
    code = "DUPLICATE_DETECTION_FAILED"

    def __init__(self, query: dict[str, Any], cause: Exception) -> None:
        super().__init__(f"Candidate retrieval failed: {cause}", {"query": query})
        self.__cause__ = cause


class RecordNotFoundError(SimilarityError, LookupError):
    code = "RECORD_NOT_FOUND"

    def __init__(self, entity_kind: str, entity_id: str) -> None:
        super().__init__(
            f"{entity_kind} {entity_id} not found",
            {"entity_kind": entity_kind, "entity_id": entity_id},
        )


class TagPayloadError(SimilarityError):
    code = "TAG_PAYLOAD_INVALID"


def error_code(err: BaseException) -> str:
    """Error code for telemetry; non-engine errors map to UNKNOWN_ERROR."""
    if isinstance(err, SimilarityError):
        return err.code
    return "UNKNOWN_ERROR"
