"""
Unit tests for the shared text matching primitives.
"""

import pytest

from trend_relevance.matching.text import (
    best_token_similarity,
    fuzzy_token_overlap,
    levenshtein,
    normalize,
    phrase_in,
    similarity,
    text_contains,
    tokenize,
)


class TestNormalize:
    """Tests for text normalization."""

    def test_lowercase_and_punctuation(self):
        assert normalize("  Climate Change!! ") == "climate change"

    def test_separators_become_spaces(self):
        assert normalize("Ocasio-Cortez") == "ocasio cortez"
        assert normalize("gun_control/reform") == "gun control reform"

    def test_accents_removed(self):
        assert normalize("Café Société") == "cafe societe"

    def test_whitespace_collapsed(self):
        assert normalize("a   b\t\nc") == "a b c"

    def test_empty_and_none(self):
        assert normalize("") == ""
        assert normalize(None) == ""


class TestTokenize:
    def test_short_tokens_dropped(self):
        assert tokenize("AI is on the rise") == ["the", "rise"]

    def test_min_length_override(self):
        assert tokenize("AI is on", min_length=2) == ["ai", "is", "on"]


class TestLevenshtein:
    """Tests for edit distance."""

    def test_classic_example(self):
        assert levenshtein("kitten", "sitting") == 3

    def test_identical(self):
        assert levenshtein("climate", "climate") == 0

    def test_empty(self):
        assert levenshtein("", "abc") == 3
        assert levenshtein("abc", "") == 3

    def test_symmetric(self):
        assert levenshtein("flaw", "lawn") == levenshtein("lawn", "flaw") == 2


class TestSimilarity:
    """Tests for string similarity."""

    def test_identity(self):
        assert similarity("Joe Biden", "Joe Biden") == 1.0

    def test_normalized_equal(self):
        assert similarity("Joe Biden!", "joe   biden") == 1.0

    def test_substring_scores_point_nine(self):
        assert similarity("Biden", "Joe Biden") == 0.9
        assert similarity("Joe Biden", "Biden") == 0.9

    def test_edit_distance_ratio(self):
        assert similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)

    def test_empty_is_zero(self):
        assert similarity("", "climate") == 0.0
        assert similarity(None, "climate") == 0.0

    @pytest.mark.parametrize(
        "a,b",
        [
            ("climate", "climates"),
            ("healthcare", "health care"),
            ("immigration", "migration policy"),
            ("Acme Corp", "ACME Corporation"),
        ],
    )
    def test_symmetric(self, a, b):
        assert similarity(a, b) == similarity(b, a)


class TestFuzzyTokenOverlap:
    def test_partial_overlap(self):
        assert fuzzy_token_overlap("climate policy", "new climate rules") == pytest.approx(1 / 3)

    def test_full_overlap(self):
        assert fuzzy_token_overlap("climate policy", "Policy, Climate") == 1.0

    def test_short_tokens_ignored(self):
        assert fuzzy_token_overlap("an ox", "an ox") == 0.0

    def test_no_overlap(self):
        assert fuzzy_token_overlap("climate", "election") == 0.0


class TestPhraseMatching:
    """Tests for whole-word phrase containment."""

    def test_phrase_on_word_boundary(self):
        assert phrase_in("ice", "ICE raids reported in Texas")

    def test_no_partial_word_match(self):
        assert not phrase_in("ice", "Rice prices climb")

    def test_multi_word_phrase(self):
        assert phrase_in("Acme Corp", "Acme Corp. faces investigation")

    def test_empty_phrase_never_matches(self):
        assert not phrase_in("", "anything")
        assert not phrase_in("anything", "")

    def test_text_contains_either_way(self):
        assert text_contains("Acme", "Acme Corp faces inquiry")
        assert text_contains("Acme Corp faces inquiry", "Acme")
        assert not text_contains("Globex", "Acme Corp faces inquiry")


class TestBestTokenSimilarity:
    def test_inflection(self):
        assert best_token_similarity("immigrant", "immigrants rally downtown") == pytest.approx(0.9)

    def test_short_words_do_not_match_by_containment(self):
        # "act" is inside "impact" but edit ratio stays low
        assert best_token_similarity("act", "impact report") < 0.75
