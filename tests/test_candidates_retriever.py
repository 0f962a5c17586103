"""
Tests for candidate retrieval (mocked Supabase, no network) and the
in-memory retriever.
"""
from __future__ import annotations

from unittest.mock import MagicMock

import httpx
import pytest

from catalog_dedupe.db import candidates as candidates_mod
from catalog_dedupe.db.candidates import (
    SupabaseCandidateRetriever,
    artist_row_to_candidate,
    artwork_row_to_candidate,
    execute_with_retry,
)
from catalog_dedupe.db.retriever import (
    CandidateRetriever,
    InMemoryCandidateRetriever,
    artist_name_pattern,
)
from catalog_dedupe.models import CandidateRecord, Coordinates, EntityKind


def _mock_supabase(rows) -> tuple[MagicMock, MagicMock]:
    sb = MagicMock()
    builder = MagicMock()
    for method in ["select", "eq", "gte", "lte", "ilike", "limit"]:
        getattr(builder, method).return_value = builder
    result = MagicMock()
    result.data = rows
    builder.execute.return_value = result
    sb.table.return_value = builder
    return sb, builder


# ---------------------------------------------------------------------------
# Supabase retriever
# ---------------------------------------------------------------------------

class TestSupabaseRetriever:

    def test_artwork_window_query(self):
        sb, builder = _mock_supabase(
            [
                {
                    "id": 12,
                    "title": "Angel of Victory",
                    "created_by": "Coeur de Lion MacCarthy",
                    "lat": "49.2828",
                    "lon": -123.1206,
                    "tags": {"material": "bronze"},
                    "source_id": None,
                    "external_id": "osm-1",
                },
                {"id": None, "title": "ghost"},
            ]
        )
        out = SupabaseCandidateRetriever(sb).find_nearby_artworks(49.2827, -123.1207, 0.0045)

        sb.table.assert_called_once_with("artwork")
        builder.eq.assert_called_once_with("status", "approved")
        assert builder.gte.call_count == 2
        assert builder.lte.call_count == 2
        builder.limit.assert_called_once_with(500)

        assert len(out) == 1
        c = out[0]
        assert c.id == "12"
        assert c.coordinates == Coordinates(lat=49.2828, lon=-123.1206)
        assert c.secondary_name == "Coeur de Lion MacCarthy"
        assert c.tags_raw == '{"material": "bronze"}'

    def test_artist_name_query(self):
        sb, builder = _mock_supabase([{"id": "a1", "name": "Jane Doe", "bio": "Painter", "tags": None}])
        out = SupabaseCandidateRetriever(sb, limit=50).find_similar_artists("%jane doe%")

        sb.table.assert_called_once_with("artists")
        builder.ilike.assert_called_once_with("name", "%jane doe%")
        builder.limit.assert_called_once_with(50)
        assert out[0].entity_kind == EntityKind.ARTIST
        assert out[0].bio == "Painter"
        assert out[0].tags_raw is None

    def test_no_rows(self):
        sb, _ = _mock_supabase(None)
        assert SupabaseCandidateRetriever(sb).find_similar_artists("%x%") == []

    def test_satisfies_protocol(self):
        sb, _ = _mock_supabase([])
        assert isinstance(SupabaseCandidateRetriever(sb), CandidateRetriever)


def test_row_mappers_keep_malformed_tags_raw():
    c = artwork_row_to_candidate({"id": 1, "title": None, "tags": "{broken"})
    assert c.title_or_name == ""
    assert c.coordinates is None
    assert c.tags_raw == "{broken"

    a = artist_row_to_candidate({"id": 2, "name": "Jane", "source_id": "src-2"})
    assert a.reference_ids() == ["2", "src-2", None]


# ---------------------------------------------------------------------------
# Retry
# ---------------------------------------------------------------------------

class TestExecuteWithRetry:

    def test_retries_transient_errors(self, monkeypatch):
        sleeps = []
        monkeypatch.setattr(candidates_mod.time, "sleep", sleeps.append)
        rb = MagicMock()
        ok = MagicMock()
        rb.execute.side_effect = [httpx.ConnectError("reset"), httpx.ReadTimeout("slow"), ok]

        assert execute_with_retry(rb) is ok
        assert rb.execute.call_count == 3
        assert len(sleeps) == 2

    def test_gives_up_after_tries(self, monkeypatch):
        monkeypatch.setattr(candidates_mod.time, "sleep", lambda s: None)
        rb = MagicMock()
        rb.execute.side_effect = httpx.ConnectError("down")
        with pytest.raises(httpx.ConnectError):
            execute_with_retry(rb, tries=3)
        assert rb.execute.call_count == 3

    def test_non_transient_error_not_retried(self):
        rb = MagicMock()
        rb.execute.side_effect = ValueError("bad query")
        with pytest.raises(ValueError):
            execute_with_retry(rb)
        assert rb.execute.call_count == 1


# ---------------------------------------------------------------------------
# In-memory retriever
# ---------------------------------------------------------------------------

class TestInMemoryRetriever:

    RECORDS = [
        CandidateRecord(id="near", coordinates=(49.2828, -123.1206)),
        CandidateRecord(id="far", coordinates=(49.30, -123.1207)),
        CandidateRecord(id="nowhere"),
        CandidateRecord(id="artist", title_or_name="Jane Doe", entity_kind=EntityKind.ARTIST),
        CandidateRecord(id="artist2", title_or_name="JANE DOE STUDIO", entity_kind=EntityKind.ARTIST),
        CandidateRecord(id="artist3", title_or_name="John Roe", entity_kind=EntityKind.ARTIST),
    ]

    def test_spatial_window(self):
        out = InMemoryCandidateRetriever(self.RECORDS).find_nearby_artworks(49.2827, -123.1207, 0.0045)
        assert [c.id for c in out] == ["near"]

    def test_like_pattern_case_insensitive(self):
        out = InMemoryCandidateRetriever(self.RECORDS).find_similar_artists(artist_name_pattern("Jane Doe"))
        assert [c.id for c in out] == ["artist", "artist2"]

    def test_pattern_shape(self):
        assert artist_name_pattern("  Jane Doe ") == "%jane doe%"
