"""Tests for text canonicalization (pure)."""
from __future__ import annotations

from catalog_dedupe.matching.normalize import (
    normalize_text,
    split_artist_credits,
    strip_diacritics,
)


class TestNormalizeText:

    def test_empty_and_none(self):
        assert normalize_text(None) == ""
        assert normalize_text("") == ""
        assert normalize_text("   ") == ""

    def test_trim_collapse_lowercase(self):
        assert normalize_text("  Angel   of\tVictory \n") == "angel of victory"

    def test_diacritics_stripped(self):
        assert normalize_text("Émile Ångström") == "emile angstrom"

    def test_punctuation_removed_hyphen_kept(self):
        assert normalize_text("Jean-Paul's Totem!") == "jean-pauls totem"

    def test_word_chars_kept(self):
        assert normalize_text("Piece_42") == "piece_42"

    def test_idempotent(self):
        once = normalize_text("  Crème Brûlée, No. 5 ")
        assert normalize_text(once) == once


def test_strip_diacritics_leaves_plain_ascii():
    assert strip_diacritics("Totem Pole") == "Totem Pole"
    assert strip_diacritics("façade") == "facade"


class TestSplitArtistCredits:

    def test_ampersand(self):
        assert split_artist_credits("Jane Doe & John Roe") == ["Jane Doe", "John Roe"]

    def test_comma_and_word_and(self):
        assert split_artist_credits("Ann, Bob and Cy") == ["Ann", "Bob", "Cy"]

    def test_and_inside_words_not_split(self):
        assert split_artist_credits("Alexandra Band") == ["Alexandra Band"]

    def test_empty(self):
        assert split_artist_credits(None) == []
        assert split_artist_credits(" , & ") == []
