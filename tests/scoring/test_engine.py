"""
Unit tests for the relevance scoring engine.

Covers the deny veto, each signal's cap, the breakthrough multiplier,
clamping, priority buckets, urgency and determinism.
"""

from datetime import timedelta

import numpy as np
import pytest

from tests.factories import make_candidate, make_context
from trend_relevance.matching.matcher import Matcher
from trend_relevance.models import (
    InterestEntity,
    OrganizationProfile,
    OutcomeCorrelation,
    PriorityBucket,
    RuleType,
)
from trend_relevance.scoring.engine import (
    compute_urgency,
    priority_bucket,
    score_relevance,
    semantic_points,
    velocity_points,
)
from trend_relevance.scoring.explain import NO_MATCH_REASON, explanation_to_json
from trend_relevance.scoring.outcome import OutcomeIndex
from trend_relevance.scoring.weights import ScoringWeights


@pytest.fixture
def matcher(alias_snapshot):
    return Matcher(alias_snapshot)


def outcome_index(now, org_id="org-1", trend_key="", signal="strong_positive"):
    record = OutcomeCorrelation(
        organization_id=org_id,
        trend_key=trend_key,
        learning_signal=signal,
        should_boost=True,
        performance_delta=0.4,
        response_rate=0.05,
        computed_at=now - timedelta(days=1),
    )
    return OutcomeIndex([record], now)


class TestScenarios:
    """End-to-end scoring scenarios."""

    def test_climate_topic_with_velocity(self, matcher):
        context = make_context(topics=[("climate", 0.8)])
        candidate = make_candidate("Climate Change Summit Draws Record Crowds", velocity=60)

        result = score_relevance(context, candidate, matcher)

        breakdown = result.explanation["score_breakdown"]
        assert breakdown["topic_match"] >= 40
        assert breakdown["velocity"] > 0
        assert result.relevance_score == 43
        assert result.priority_bucket in (PriorityBucket.MEDIUM, PriorityBucket.HIGH)
        assert result.matched_topics == ["climate"]
        assert not result.is_blocked

    def test_deny_rule_blocks_everything(self, matcher, now):
        context = make_context(
            topics=[("investigation", 1.0)],
            allow=["Acme Corp"],
            deny=["Acme Corp"],
        )
        candidate = make_candidate(
            "Acme Corp Faces Investigation",
            velocity=500,
            is_breaking=True,
            is_breakthrough=True,
            source_count=10,
        )

        result = score_relevance(
            context,
            candidate,
            matcher,
            outcomes=outcome_index(now, trend_key=candidate.trend_key),
        )

        assert result.is_blocked
        assert result.relevance_score == 0
        assert result.urgency_score == 0
        assert result.priority_bucket is PriorityBucket.LOW
        assert not result.is_allowlisted
        assert result.explanation["score_breakdown"] == {}
        assert result.explanation["blocked_by"] == "Acme Corp"
        assert result.explanation["reasons"][0].startswith("Blocked by deny rule: Acme Corp")

    def test_semantic_only(self, matcher):
        profile = OrganizationProfile(
            organization_id="org-1", embedding=np.array([1.0, 0.0], dtype=np.float32)
        )
        context = make_context(profile=profile)
        candidate = make_candidate(
            "Quarterly gadget sales",
            embedding=np.array([0.5, np.sqrt(0.75)], dtype=np.float32),
        )

        result = score_relevance(context, candidate, matcher)

        breakdown = result.explanation["score_breakdown"]
        assert "topic_match" not in breakdown
        assert list(breakdown) == ["semantic_match"]
        assert 10 <= breakdown["semantic_match"] <= 13
        assert result.relevance_score == breakdown["semantic_match"]
        assert result.explanation["semantic_similarity"] == pytest.approx(0.5, abs=1e-3)

    def test_everything_fires_still_clamped(self, matcher, now):
        profile = OrganizationProfile(
            organization_id="org-1",
            geographies=["Texas"],
            stakeholders=["Teachers Union"],
            allies=["Sierra Club"],
            opponents=["Acme Lobby"],
            embedding=np.array([1.0, 0.0], dtype=np.float32),
        )
        context = make_context(topics=[("climate", 1.0)], allow=["EPA"], profile=profile)
        candidate = make_candidate(
            "Climate rally in Texas",
            description="EPA, Teachers Union, Sierra Club and Acme Lobby clash over rules",
            velocity=1000,
            is_breaking=True,
            is_breakthrough=True,
            source_count=12,
            embedding=np.array([1.0, 0.0], dtype=np.float32),
        )

        result = score_relevance(
            context,
            candidate,
            matcher,
            outcomes=outcome_index(now, trend_key=candidate.trend_key),
        )

        breakdown = result.explanation["score_breakdown"]
        for key in (
            "topic_match",
            "allowlist",
            "stakeholder",
            "ally",
            "opponent",
            "geography",
            "semantic_match",
            "outcome_learning",
            "velocity",
            "breaking",
            "multi_source",
            "breakthrough_multiplier",
        ):
            assert key in breakdown
        assert result.relevance_score == 100
        assert result.priority_bucket is PriorityBucket.HIGH
        assert result.is_allowlisted

    def test_no_matches(self, matcher):
        context = make_context(topics=[("climate", 1.0)])
        candidate = make_candidate(
            "Celebrity wedding photos", velocity=900, is_breaking=True, source_count=20
        )

        result = score_relevance(context, candidate, matcher)

        assert result.relevance_score == 0
        assert result.explanation["reasons"] == [NO_MATCH_REASON]
        assert result.explanation["score_breakdown"] == {}
        assert result.urgency_score == 100


class TestSignals:
    """Tests for individual signals."""

    def test_topic_uses_strongest_weighted_match(self, matcher):
        context = make_context(topics=[("climate", 0.4), ("emissions", 0.9)])
        candidate = make_candidate("Climate talks stall over emissions targets")

        result = score_relevance(context, candidate, matcher)

        assert result.explanation["score_breakdown"]["topic_match"] == 45
        assert result.matched_topics == ["climate", "emissions"]

    def test_profile_fallback(self, matcher):
        profile = OrganizationProfile(
            organization_id="org-1", focus_areas=["healthcare"], key_issues=["education"]
        )
        context = make_context(profile=profile)
        candidate = make_candidate("Medicaid cuts hit schools")

        result = score_relevance(context, candidate, matcher)

        assert result.explanation["score_breakdown"] == {"profile_match": 24}
        assert result.matched_topics == ["healthcare", "education"]

    def test_profile_fallback_capped(self, matcher):
        profile = OrganizationProfile(
            organization_id="org-1",
            focus_areas=["healthcare", "education", "economy"],
            priority_lanes=["climate"],
        )
        context = make_context(profile=profile)
        candidate = make_candidate("Medicaid, schools, jobs and climate on the ballot")

        result = score_relevance(context, candidate, matcher)

        assert result.explanation["score_breakdown"]["profile_match"] == 35

    def test_profile_fallback_skipped_with_direct_topic(self, matcher):
        profile = OrganizationProfile(organization_id="org-1", focus_areas=["education"])
        context = make_context(topics=[("climate", 1.0)], profile=profile)
        candidate = make_candidate("Climate lessons come to schools")

        breakdown = score_relevance(context, candidate, matcher).explanation["score_breakdown"]

        assert "topic_match" in breakdown
        assert "profile_match" not in breakdown

    def test_zero_weight_topic_match_still_suppresses_profile_fallback(self, matcher):
        profile = OrganizationProfile(organization_id="org-1", focus_areas=["climate"])
        context = make_context(topics=[("climate", 0.0)], profile=profile)
        candidate = make_candidate("Climate summit")

        result = score_relevance(context, candidate, matcher)

        assert result.matched_topics == ["climate"]
        assert "profile_match" not in result.explanation["score_breakdown"]
        assert result.relevance_score == 0

    def test_allowlist_through_alias(self, matcher):
        context = make_context(allow=["Joe Biden"])
        candidate = make_candidate("POTUS signs executive order")

        result = score_relevance(context, candidate, matcher)

        assert result.is_allowlisted
        assert result.explanation["score_breakdown"]["allowlist"] == 15
        assert result.matched_entities == ["Joe Biden"]

    def test_gate_rejects_implausible_entity(self, matcher):
        context = make_context(
            entities=[InterestEntity("org-1", "Bill", RuleType.ALLOW, entity_type="bill")]
        )
        candidate = make_candidate("Dollar bill redesign unveiled")

        result = score_relevance(context, candidate, matcher)

        assert not result.is_allowlisted
        assert result.relevance_score == 0
        evidence = result.explanation["entity_matches"][0]
        assert evidence["accepted"] is False
        assert evidence["gate_confidence"] == pytest.approx(0.2)

    def test_relationship_roles_are_additive(self, matcher):
        profile = OrganizationProfile(
            organization_id="org-1", allies=["Sierra Club"], opponents=["Acme Lobby"]
        )
        context = make_context(profile=profile)
        candidate = make_candidate("Sierra Club sues Acme Lobby")

        breakdown = score_relevance(context, candidate, matcher).explanation["score_breakdown"]

        assert breakdown == {"ally": 10, "opponent": 12}

    def test_breakthrough_multiplies_full_sum(self, matcher, now):
        context = make_context(topics=[("climate", 0.8)])
        candidate = make_candidate("Climate Change Summit", is_breakthrough=True)

        result = score_relevance(
            context,
            candidate,
            matcher,
            outcomes=outcome_index(now, trend_key="climate change summit"),
        )

        # (40 topic + 10 outcome) × 1.2
        assert result.relevance_score == 60
        assert result.explanation["score_breakdown"]["breakthrough_multiplier"] == 1.2

    def test_custom_weights(self, matcher):
        weights = ScoringWeights(topic_max=25)
        context = make_context(topics=[("climate", 0.8)])
        candidate = make_candidate("Climate news")

        result = score_relevance(context, candidate, matcher, weights=weights)

        assert result.relevance_score == 20

    def test_semantic_stage_can_be_disabled(self, matcher):
        profile = OrganizationProfile(organization_id="org-1", embedding=np.array([1.0, 0.0]))
        context = make_context(profile=profile)
        candidate = make_candidate("Gadget sales", embedding=np.array([1.0, 0.0]))

        result = score_relevance(
            context, candidate, matcher, weights=ScoringWeights(enable_semantic=False)
        )

        assert result.relevance_score == 0
        assert result.explanation["semantic_similarity"] is None


class TestPriorityBucket:
    """Priority bucket is a pure function of the score."""

    @pytest.mark.parametrize(
        "score,expected",
        [
            (100, PriorityBucket.HIGH),
            (70, PriorityBucket.HIGH),
            (65, PriorityBucket.HIGH),
            (64, PriorityBucket.MEDIUM),
            (50, PriorityBucket.MEDIUM),
            (35, PriorityBucket.MEDIUM),
            (34, PriorityBucket.LOW),
            (20, PriorityBucket.LOW),
            (0, PriorityBucket.LOW),
        ],
    )
    def test_boundaries(self, score, expected):
        assert priority_bucket(score) is expected


class TestPointFunctions:
    def test_velocity_points(self):
        assert velocity_points(50) == 0
        assert velocity_points(60) == 3
        assert velocity_points(1000) == 15

    @pytest.mark.parametrize(
        "similarity,expected",
        [(0.1, 0), (0.3, 0), (0.31, 7), (0.5, 11), (0.9, 20), (0.99, 20)],
    )
    def test_semantic_points(self, similarity, expected):
        assert semantic_points(similarity) == expected

    def test_urgency(self):
        assert compute_urgency(make_candidate("x", velocity=120, is_breaking=True)) == 85
        assert compute_urgency(make_candidate("x", velocity=300, is_breaking=True)) == 100
        assert compute_urgency(make_candidate("x")) == 0


class TestDeterminism:
    def test_identical_inputs_give_identical_explanations(self, alias_snapshot):
        profile = OrganizationProfile(
            organization_id="org-1", geographies=["Texas"], allies=["Sierra Club"]
        )
        context = make_context(topics=[("climate", 0.7), ("energy", 0.5)], profile=profile)
        candidate = make_candidate(
            "Texas climate bill backed by Sierra Club", velocity=140, source_count=4
        )

        first = score_relevance(context, candidate, Matcher(alias_snapshot))
        second = score_relevance(context, candidate, Matcher(alias_snapshot))

        assert explanation_to_json(first.explanation) == explanation_to_json(second.explanation)
        assert first.relevance_score == second.relevance_score
