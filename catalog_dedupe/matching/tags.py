# catalog_dedupe/matching/tags.py
"""
Tag payload parsing + tag-set similarity.

Parse-or-empty contract: a malformed payload is an empty tag map, never an
exception. One broken candidate row must not abort a sweep over many.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .normalize import normalize_text


@dataclass(frozen=True)
class TagParseResult:
    tags: dict[str, Any] = field(default_factory=dict)
    ok: bool = True
    error: Optional[str] = None
    # outer object of a structured payload, without "tags"; None for flat maps
    envelope: Optional[dict[str, Any]] = None


def _unwrap(obj: Mapping[str, Any]) -> TagParseResult:
    # Structured format: {"tags": {"material": "bronze"}, "version": "1.0.0", ...}
    inner = obj.get("tags")
    if isinstance(inner, Mapping):
        envelope = {k: v for k, v in obj.items() if k != "tags"}
        return TagParseResult(tags=dict(inner), envelope=envelope)
    return TagParseResult(tags=dict(obj))


def parse_tags(payload: Any) -> TagParseResult:
    """Accepts a mapping, a JSON string, or None."""
    if payload is None:
        return TagParseResult()
    if isinstance(payload, Mapping):
        return _unwrap(payload)
    if isinstance(payload, (bytes, bytearray)):
        payload = payload.decode("utf-8", errors="replace")
    if not isinstance(payload, str):
        return TagParseResult(ok=False, error=f"unsupported payload type {type(payload).__name__}")
    if not payload.strip():
        return TagParseResult()

    try:
        parsed = json.loads(payload)
    except ValueError as e:
        return TagParseResult(ok=False, error=f"invalid JSON: {e}")

    if not isinstance(parsed, dict):
        return TagParseResult(ok=False, error=f"expected JSON object, got {type(parsed).__name__}")
    return _unwrap(parsed)


def _value_key(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return normalize_text(str(value))


def jaccard(a: set[Any], b: set[Any]) -> float:
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def tag_similarity(
    incoming: Optional[Mapping[str, Any]],
    candidate_payload: Any,
    *,
    include_values: bool = False,
) -> float:
    """
    Jaccard similarity over tag keys (or over (key, value) pairs when
    include_values=True).

    Empty incoming tags or an empty/unparsable candidate payload -> 0.0.
    """
    if not incoming:
        return 0.0
    existing = parse_tags(candidate_payload).tags
    if not existing:
        return 0.0

    if include_values:
        a = {(k, _value_key(v)) for k, v in incoming.items()}
        b = {(k, _value_key(v)) for k, v in existing.items()}
    else:
        a = set(incoming.keys())
        b = set(existing.keys())
    return jaccard(a, b)
