"""
Unit tests for relevance explanations.
"""

import json

from trend_relevance.scoring.explain import (
    NO_MATCH_REASON,
    RelevanceExplanation,
    TopicMatchEvidence,
    explanation_to_json,
    format_explanation_text,
)


def sample_explanation():
    explanation = RelevanceExplanation()
    explanation.topic_matches.append(TopicMatchEvidence("climate", "exact", 1.0, 0.8, "interest"))
    explanation.add("topic_match", 40, "Matches tracked topics: climate")
    explanation.add("velocity", 3, "High velocity (60)")
    explanation.add("breakthrough_multiplier", 1.2, "Breakthrough: corroborated across sources")
    return explanation


class TestRelevanceExplanation:
    """Tests for the explanation structure."""

    def test_reasons_follow_signal_order(self):
        explanation = sample_explanation()
        assert explanation.reasons[0] == "Matches tracked topics: climate"
        assert list(explanation.score_breakdown) == [
            "topic_match",
            "velocity",
            "breakthrough_multiplier",
        ]

    def test_subtotal_excludes_multiplier(self):
        assert sample_explanation().subtotal == 43

    def test_to_dict_is_json_serializable(self):
        data = sample_explanation().to_dict()
        assert set(data) == {
            "reasons",
            "score_breakdown",
            "topic_matches",
            "entity_matches",
            "geo_match",
            "semantic_similarity",
            "outcome_signal",
        }
        assert json.loads(json.dumps(data)) == data

    def test_blocked_by_only_when_blocked(self):
        explanation = RelevanceExplanation(blocked_by="Acme Corp")
        assert explanation.to_dict()["blocked_by"] == "Acme Corp"

    def test_json_is_stable(self):
        assert explanation_to_json(sample_explanation().to_dict()) == explanation_to_json(
            sample_explanation().to_dict()
        )


class TestFormatExplanationText:
    """Tests for text rendering."""

    def test_includes_header_reasons_and_breakdown(self):
        text = format_explanation_text(
            sample_explanation().to_dict(),
            title="climate change summit",
            relevance_score=52,
            priority_bucket="medium",
        )
        assert "Trend: climate change summit  [52/100, medium]" in text
        assert "1. Matches tracked topics: climate" in text
        assert "Topic match" in text
        assert "x1.2" in text

    def test_blocked(self):
        explanation = RelevanceExplanation(blocked_by="Acme Corp")
        explanation.reasons.append("Blocked by deny rule: Acme Corp")
        assert "BLOCKED by deny rule: Acme Corp" in format_explanation_text(explanation.to_dict())

    def test_no_match(self):
        explanation = RelevanceExplanation(reasons=[NO_MATCH_REASON])
        text = format_explanation_text(explanation.to_dict())
        assert NO_MATCH_REASON in text
        assert "Score breakdown" not in text
