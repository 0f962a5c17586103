"""Tests for tag payload parsing (parse-or-empty) and tag-set Jaccard."""
from __future__ import annotations

import json

import pytest

from catalog_dedupe.matching.reference_ids import reference_id_score
from catalog_dedupe.matching.tags import jaccard, parse_tags, tag_similarity


# ---------------------------------------------------------------------------
# parse_tags
# ---------------------------------------------------------------------------

class TestParseTags:

    def test_none_is_empty_ok(self):
        r = parse_tags(None)
        assert r.ok and r.tags == {}

    def test_blank_string_is_empty_ok(self):
        assert parse_tags("   ").tags == {}

    def test_flat_json(self):
        r = parse_tags('{"material": "bronze", "artwork_type": "statue"}')
        assert r.ok
        assert r.envelope is None
        assert r.tags == {"material": "bronze", "artwork_type": "statue"}

    def test_structured_json_unwrapped(self):
        r = parse_tags('{"tags": {"material": "bronze"}, "version": "1.0"}')
        assert r.tags == {"material": "bronze"}
        assert r.envelope == {"version": "1.0"}

    def test_mapping_passthrough(self):
        assert parse_tags({"material": "bronze"}).tags == {"material": "bronze"}

    @pytest.mark.parametrize("payload", ["{not json", '["a", "b"]', "42", "null"])
    def test_malformed_is_empty_not_raised(self, payload):
        r = parse_tags(payload)
        assert r.tags == {}
        assert r.ok is False
        assert r.error

    def test_unsupported_type(self):
        r = parse_tags(12345)
        assert r.ok is False and r.tags == {}


# ---------------------------------------------------------------------------
# tag_similarity
# ---------------------------------------------------------------------------

class TestTagSimilarity:

    def test_disjoint_keys_score_zero(self):
        assert tag_similarity({"a": "1", "b": "2"}, json.dumps({"c": "1"})) == 0.0

    def test_identical_keys_score_one(self):
        assert tag_similarity({"a": "x", "b": "y"}, json.dumps({"a": "other", "b": ""})) == 1.0

    def test_partial_overlap(self):
        assert tag_similarity({"a": "1", "b": "2"}, json.dumps({"b": "2", "c": "3"})) == pytest.approx(1 / 3)

    def test_empty_incoming_scores_zero(self):
        assert tag_similarity({}, json.dumps({"a": "1"})) == 0.0
        assert tag_similarity(None, json.dumps({"a": "1"})) == 0.0

    def test_malformed_candidate_scores_zero(self):
        assert tag_similarity({"a": "1"}, "{broken") == 0.0

    def test_empty_candidate_scores_zero(self):
        assert tag_similarity({"a": "1"}, "{}") == 0.0
        assert tag_similarity({"a": "1"}, None) == 0.0

    def test_key_value_pairs_mode(self):
        incoming = {"material": "Bronze", "year": 1954}
        assert tag_similarity(incoming, {"material": "bronze", "year": "1954"}, include_values=True) == 1.0
        assert tag_similarity(incoming, {"material": "steel", "year": "1954"}, include_values=True) == pytest.approx(1 / 3)


def test_jaccard_empty_sets():
    assert jaccard(set(), set()) == 0.0


# ---------------------------------------------------------------------------
# Reference ids
# ---------------------------------------------------------------------------

class TestReferenceIds:

    def test_exact_match_on_any_field(self):
        assert reference_id_score("ext-9", ["art-1", None, "ext-9"]) == 1.0
        assert reference_id_score("art-1", ["art-1", None, None]) == 1.0

    def test_no_partial_credit(self):
        assert reference_id_score("ext-9", ["ext-90", "EXT-9"]) == 0.0

    def test_missing_incoming_id(self):
        assert reference_id_score(None, ["art-1"]) == 0.0
        assert reference_id_score("", [""]) == 0.0
