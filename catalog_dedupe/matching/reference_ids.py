# catalog_dedupe/matching/reference_ids.py
from __future__ import annotations

from typing import Iterable, Optional


def reference_id_score(
    incoming_external_id: Optional[str],
    candidate_ids: Iterable[Optional[str]],
) -> float:
    """
    1.0 if the incoming external id equals any populated candidate
    identifier (own id, source id, external id), else 0.0.
    Exact match only; no partial credit.
    """
    if not incoming_external_id:
        return 0.0
    for ref in candidate_ids:
        if ref and str(ref) == incoming_external_id:
            return 1.0
    return 0.0
