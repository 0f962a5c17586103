# catalog_dedupe/db/candidates.py
"""
Supabase-backed candidate retriever.

Narrowing rules (v1):
  - artworks: status = 'approved' and lat/lon inside a +/- radius_degrees window
  - artists:  status = 'approved' and name ILIKE '%<name>%'

Read-only. Returns plain CandidateRecord rows; scoring happens elsewhere.
"""
from __future__ import annotations

import json
import logging
import random
import time
from typing import Any, Mapping

import httpx
from supabase import Client

from catalog_dedupe.models import CandidateRecord, EntityKind

logger = logging.getLogger(__name__)

ARTWORK_TABLE = "artwork"
ARTIST_TABLE = "artists"
STATUS_APPROVED = "approved"

# Hard cap per query; the window should already keep this small
MAX_CANDIDATES = 500


def execute_with_retry(rb, *, tries: int = 6, base_sleep: float = 0.5):
    """
    Supabase/PostgREST calls can occasionally drop HTTP/2 connections under load.
    Wrap .execute() with retry + exponential backoff.
    """
    last = None
    for attempt in range(tries):
        try:
            return rb.execute()
        except (
            httpx.RemoteProtocolError,
            httpx.ReadTimeout,
            httpx.ConnectError,
            httpx.WriteError,
        ) as e:
            last = e
            sleep = base_sleep * (2 ** attempt) + random.random() * 0.25
            logger.warning(
                "transient http error: %s attempt=%d/%d sleep=%.2fs",
                type(e).__name__, attempt + 1, tries, sleep,
            )
            time.sleep(sleep)
    raise last  # type: ignore[misc]


def _tags_raw(value: Any) -> str | None:
    # tags column is TEXT holding JSON; jsonb columns come back already decoded
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value)


def _coords(row: Mapping[str, Any]) -> dict[str, float] | None:
    lat = row.get("lat")
    lon = row.get("lon")
    if lat is None or lon is None:
        return None
    return {"lat": float(lat), "lon": float(lon)}


def artwork_row_to_candidate(row: Mapping[str, Any]) -> CandidateRecord:
    return CandidateRecord(
        id=str(row["id"]),
        entity_kind=EntityKind.ARTWORK,
        title_or_name=row.get("title") or "",
        coordinates=_coords(row),
        tags_raw=_tags_raw(row.get("tags")),
        external_id=row.get("external_id"),
        source_id=row.get("source_id"),
        secondary_name=row.get("created_by"),
    )


def artist_row_to_candidate(row: Mapping[str, Any]) -> CandidateRecord:
    return CandidateRecord(
        id=str(row["id"]),
        entity_kind=EntityKind.ARTIST,
        title_or_name=row.get("name") or "",
        tags_raw=_tags_raw(row.get("tags")),
        external_id=row.get("external_id"),
        source_id=row.get("source_id"),
        bio=row.get("bio"),
    )


class SupabaseCandidateRetriever:
    def __init__(self, supabase: Client, *, limit: int = MAX_CANDIDATES) -> None:
        self.supabase = supabase
        self.limit = limit

    def find_nearby_artworks(
        self, lat: float, lon: float, radius_degrees: float
    ) -> list[CandidateRecord]:
        rows = (
            execute_with_retry(
                self.supabase.table(ARTWORK_TABLE)
                .select("id,title,created_by,lat,lon,tags,source_id,external_id")
                .eq("status", STATUS_APPROVED)
                .gte("lat", lat - radius_degrees)
                .lte("lat", lat + radius_degrees)
                .gte("lon", lon - radius_degrees)
                .lte("lon", lon + radius_degrees)
                .limit(self.limit)
            ).data
            or []
        )
        return [artwork_row_to_candidate(r) for r in rows if r.get("id") is not None]

    def find_similar_artists(self, name_pattern: str) -> list[CandidateRecord]:
        rows = (
            execute_with_retry(
                self.supabase.table(ARTIST_TABLE)
                .select("id,name,bio,tags,source_id,external_id")
                .eq("status", STATUS_APPROVED)
                .ilike("name", name_pattern)
                .limit(self.limit)
            ).data
            or []
        )
        return [artist_row_to_candidate(r) for r in rows if r.get("id") is not None]
