"""Unit tests for AIResponseParser: JSON extraction, coercion and keyword fallback."""

import pytest

from hakikisha.engines.ai_response_parser import AIResponseParser
from hakikisha.schemas.verdict import VerdictLabel
from tests.fixtures import load_fixture


@pytest.fixture(scope="module")
def responses():
    return load_fixture("ai_responses.json")


@pytest.fixture()
def parser():
    return AIResponseParser()


class TestWellFormedOutput:
    def test_clean_json(self, parser, responses):
        parsed = parser.parse(responses["clean_json"])
        assert parsed.verdict == VerdictLabel.FALSE
        assert parsed.confidence_score == 0.92
        assert len(parsed.sources) == 2
        assert parsed.fallback_reason is None

    def test_fenced_json_with_aliases(self, parser, responses):
        parsed = parser.parse(responses["fenced_json"])
        assert parsed.verdict == VerdictLabel.MISLEADING
        assert parsed.confidence_score == 0.7  # "medium"
        assert parsed.sources == ["https://www.epra.go.ke/pump-prices"]

    def test_json_buried_in_prose(self, parser, responses):
        parsed = parser.parse(responses["prose_wrapped"])
        assert parsed.verdict == VerdictLabel.TRUE
        assert parsed.confidence_score == 0.85  # percentage
        assert parsed.sources == ["https://www.education.go.ke/circulars"]

    def test_missing_explanation_gets_placeholder(self, parser):
        parsed = parser.parse('{"verdict": "true", "confidence_score": 0.8}')
        assert parsed.explanation == "No explanation provided."


class TestFallback:
    def test_unknown_verdict_uses_keywords(self, parser, responses):
        parsed = parser.parse(responses["unknown_verdict"])
        assert parsed.verdict == VerdictLabel.FALSE
        assert parsed.fallback_reason == "unexpected_verdict"

    def test_fallback_caps_confidence(self, parser, responses):
        parsed = parser.parse(responses["unknown_verdict"])
        assert parsed.confidence_score == 0.5

    def test_no_json_is_malformed(self, parser, responses):
        parsed = parser.parse(responses["no_json"])
        assert parsed.fallback_reason == "malformed_json"
        assert parsed.verdict == VerdictLabel.SATIRE
        assert parsed.confidence_score <= 0.5

    def test_negation_counts_as_false(self, parser, responses):
        parsed = parser.parse(responses["negated"])
        assert parsed.verdict == VerdictLabel.FALSE

    def test_empty_output_needs_context(self, parser, responses):
        parsed = parser.parse(responses["empty"])
        assert parsed.verdict == VerdictLabel.NEEDS_CONTEXT
        assert parsed.explanation == "The AI response could not be interpreted."

    def test_json_array_is_malformed(self, parser):
        parsed = parser.parse('["true"]')
        assert parsed.fallback_reason == "malformed_json"

    def test_fallback_is_logged(self, parser, caplog):
        with caplog.at_level("WARNING"):
            parser.parse("nothing useful")
        assert "ai_response_fallback" in caplog.text


class TestNormalizeVerdict:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("TRUE", VerdictLabel.TRUE),
            ("Verified", VerdictLabel.TRUE),
            ("mostly_false", VerdictLabel.FALSE),
            ("Partly True", VerdictLabel.MISLEADING),
            ("needs-context", VerdictLabel.NEEDS_CONTEXT),
            ("satirical", VerdictLabel.SATIRE),
        ],
    )
    def test_aliases(self, raw, expected):
        assert AIResponseParser.normalize_verdict(raw) == expected


class TestCoerceConfidence:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            (0.42, 0.42),
            ("0.8", 0.8),
            ("75%", 0.75),
            (90, 1.0),
            (1.2, 1.0),
            (5, 1.0),
            (-0.3, 0.0),
            ("1.2", 1.0),
            ("120%", 1.0),
            ("high", 0.9),
            ("LOW", 0.5),
            (-1, 0.0),
            (150, 1.0),
            (None, 0.5),
            (True, 0.5),
            ("very sure", 0.5),
            (float("nan"), 0.5),
        ],
    )
    def test_coercion(self, raw, expected):
        assert AIResponseParser.coerce_confidence(raw) == pytest.approx(expected)


class TestKeywordVerdict:
    def test_tie_needs_context(self):
        assert AIResponseParser.keyword_verdict("partly false, partly satire") == VerdictLabel.NEEDS_CONTEXT

    def test_cannot_be_verified(self):
        assert AIResponseParser.keyword_verdict("This cannot be verified") == VerdictLabel.NEEDS_CONTEXT

    def test_not_true_is_not_counted_as_true(self):
        assert AIResponseParser.keyword_verdict("not true, not accurate") == VerdictLabel.FALSE


class TestConfidenceClamping:
    def test_over_confident_answer_is_clamped_not_scaled(self, parser):
        parsed = parser.parse('{"verdict": "false", "confidence_score": 1.2, "explanation": "Debunked.", "sources": []}')
        assert parsed.confidence_score == 1.0

    def test_negative_confidence_is_clamped_to_zero(self, parser):
        parsed = parser.parse('{"verdict": "false", "confidence_score": -0.3, "explanation": "Debunked.", "sources": []}')
        assert parsed.confidence_score == 0.0
