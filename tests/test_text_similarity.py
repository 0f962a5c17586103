"""Tests for normalized Levenshtein similarity."""
from __future__ import annotations

import pytest

from catalog_dedupe.matching.text_similarity import (
    best_credit_similarity,
    cached_text_similarity,
    levenshtein_distance,
    text_similarity,
)

SAMPLES = [
    "Angel of Victory",
    "angel of victory",
    "Angels of Victory",
    "The Drop",
    "Digital Orca",
    "Gate to the Northwest Passage",
    "a",
]


# ---------------------------------------------------------------------------
# Levenshtein distance
# ---------------------------------------------------------------------------

class TestLevenshtein:

    def test_classic_pair(self):
        assert levenshtein_distance("kitten", "sitting") == 3

    def test_empty_sides(self):
        assert levenshtein_distance("", "abc") == 3
        assert levenshtein_distance("abc", "") == 3
        assert levenshtein_distance("", "") == 0

    def test_single_edits(self):
        assert levenshtein_distance("cat", "cut") == 1   # substitution
        assert levenshtein_distance("cat", "cats") == 1  # insertion
        assert levenshtein_distance("cats", "cat") == 1  # deletion


# ---------------------------------------------------------------------------
# Similarity properties
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("s", SAMPLES)
def test_identity(s):
    assert text_similarity(s, s) == 1.0


@pytest.mark.parametrize("a", SAMPLES)
@pytest.mark.parametrize("b", SAMPLES)
def test_symmetry(a, b):
    assert text_similarity(a, b) == text_similarity(b, a)


@pytest.mark.parametrize("s", SAMPLES)
def test_empty_against_non_empty_is_zero(s):
    assert text_similarity("", s) == 0.0
    assert text_similarity(s, None) == 0.0


def test_both_empty_is_zero():
    assert text_similarity("", "") == 0.0


def test_case_and_whitespace_safety_net():
    assert text_similarity("  Hello ", "hello") == 1.0


def test_normalized_distance_formula():
    assert text_similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)


def test_range():
    for a in SAMPLES:
        for b in SAMPLES:
            assert 0.0 <= text_similarity(a, b) <= 1.0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def test_cached_similarity_normalizes_and_is_order_independent():
    assert cached_text_similarity("Émile", "emile") == 1.0
    assert cached_text_similarity("The Drop", "Drop") == cached_text_similarity("Drop", "The Drop")


def test_best_credit_similarity_picks_best_pair():
    assert best_credit_similarity("Jane Doe & John Roe", "John Roe") == 1.0
    assert best_credit_similarity("Jane Doe", "Someone Else") < 0.5


def test_best_credit_similarity_missing_side():
    assert best_credit_similarity(None, "John Roe") == 0.0
    assert best_credit_similarity("John Roe", "") == 0.0
