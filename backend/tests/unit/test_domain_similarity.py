"""Unit tests for claim text similarity and hashing."""

import pytest

from hakikisha.domain.similarity import (
    normalize_text,
    similarity,
    similarity_hash,
    tokenize,
    trigram_similarity,
    word_set_similarity,
)


class TestNormalize:
    def test_lowercases_and_strips_punctuation(self):
        assert normalize_text("Vaccines CAUSE infertility!!!") == "vaccines cause infertility"

    def test_collapses_whitespace(self):
        assert normalize_text("  a \n\t b  ") == "a b"

    def test_none_is_empty(self):
        assert normalize_text(None) == ""

    def test_tokenize_returns_unique_words(self):
        assert tokenize("the cat, the hat") == {"the", "cat", "hat"}


class TestSimilarity:
    def test_identical_text_is_one(self):
        assert similarity("Vaccines cause infertility", "vaccines cause infertility.") == 1.0

    def test_word_order_does_not_matter(self):
        assert word_set_similarity("infertility vaccines cause", "vaccines cause infertility") == 1.0

    def test_trigrams_tolerate_typos(self):
        assert trigram_similarity("vaccines cause infertility", "vacines cause infertilty") > 0.6

    def test_unrelated_claims_are_far_apart(self):
        assert similarity("Vaccines cause infertility", "The election results were rigged") < 0.3

    def test_empty_against_text_is_zero(self):
        assert word_set_similarity("", "something") == 0.0

    def test_two_empty_texts_are_identical(self):
        assert word_set_similarity("", "") == 1.0

    def test_similarity_is_symmetric(self):
        a, b = "Fuel prices rose by 40 percent", "Fuel prices rose 40%"
        assert similarity(a, b) == pytest.approx(similarity(b, a))


class TestSimilarityHash:
    def test_same_words_same_hash(self):
        assert similarity_hash("Vaccines cause infertility", "") == similarity_hash("", "infertility, vaccines CAUSE")

    def test_short_keys_are_readable(self):
        assert similarity_hash("Cause vaccines", "infertility vaccines") == "cause_infertility_vaccines"

    def test_long_keys_are_digested_to_length(self):
        text = " ".join(f"word{i}" for i in range(40))
        h = similarity_hash(text, text, length=64)
        assert len(h) == 64
        assert "_" not in h

    def test_long_claims_sharing_a_prefix_do_not_collide(self):
        shared = " ".join(f"common{i}" for i in range(20))
        a = similarity_hash(shared, "zebra crossing unsafe")
        b = similarity_hash(shared, "zebra population declining")
        assert a != b
