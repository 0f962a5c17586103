"""
Tag merge invariants: append + fill-empty, never clobber a curated value.
"""
from __future__ import annotations

from catalog_dedupe.matching.merge import TagMergeResult, merge_tags
from catalog_dedupe.models import EntityKind


def test_example_merge():
    r = merge_tags(
        EntityKind.ARTWORK,
        {"material": "bronze", "artist": ""},
        {"material": "steel", "artist": "Jane Doe", "year": "1954"},
    )
    assert r.merged_tags == {"material": "bronze", "artist": "Jane Doe", "year": "1954"}
    assert r.new_tags_added == 1
    assert r.tags_overwritten == 1
    assert r.total_tags == 3
    assert r.has_changes is True


def test_non_empty_existing_value_always_wins():
    existing = {"material": "bronze", "height": 3}
    r = merge_tags(EntityKind.ARTWORK, existing, {"material": "better bronze", "height": 4})
    assert r.merged_tags == existing
    assert r.has_changes is False


def test_none_counts_as_empty():
    r = merge_tags(EntityKind.ARTIST, {"website": None}, {"website": "https://example.org"})
    assert r.merged_tags == {"website": "https://example.org"}
    assert r.tags_overwritten == 1


def test_zero_and_false_are_data_not_empty():
    r = merge_tags(EntityKind.ARTWORK, {"levels": 0, "lit": False}, {"levels": 3, "lit": True})
    assert r.merged_tags == {"levels": 0, "lit": False}
    assert r.tags_overwritten == 0


def test_counts_match_key_growth():
    existing = {"a": "1", "b": ""}
    r = merge_tags(EntityKind.ARTWORK, existing, {"b": "2", "c": "3", "d": "4"})
    assert len(r.merged_tags) == len(existing) + r.new_tags_added
    assert r.new_tags_added == 2


def test_inputs_not_mutated():
    existing = {"a": ""}
    proposed = {"a": "x", "b": "y"}
    merge_tags(EntityKind.ARTWORK, existing, proposed)
    assert existing == {"a": ""}
    assert proposed == {"a": "x", "b": "y"}


def test_empty_sides():
    assert merge_tags(EntityKind.ARTWORK, None, None) == TagMergeResult()
    r = merge_tags(EntityKind.ARTWORK, None, {"a": 1})
    assert r.merged_tags == {"a": 1}
    assert r.new_tags_added == 1


def test_as_dict():
    r = merge_tags(EntityKind.ARTWORK, {"a": ""}, {"a": "x", "b": "y"})
    assert r.as_dict() == {
        "newTagsAdded": 1,
        "tagsOverwritten": 1,
        "totalTags": 2,
        "mergedTags": {"a": "x", "b": "y"},
    }
