"""
Relevance scoring engine.

Combines gated matches into a bounded, explainable 0-100 relevance score,
an urgency score (0 when blocked) and a priority bucket for one
(organization, candidate) pair.

Signals are computed independently, each capped, then summed:

    relevance signals   topic | profile fallback | allowlist | stakeholder |
                        ally | opponent | geography | semantic | outcome
    context signals     velocity | breaking | multi-source

The breakthrough multiplier applies to the full pre-clamp sum (outcome
bonus included) and the result is clamped to [0, 100]. Context signals
only amplify a trend that fired at least one relevance signal.

A matching deny rule short-circuits everything: score 0, blocked.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from trend_relevance.entity_resolution.context_gate import (
    find_denied_entity,
    gate_entity_match,
    match_geographies,
)
from trend_relevance.matching.matcher import Matcher
from trend_relevance.matching.semantic import cosine_similarity
from trend_relevance.models import (
    Candidate,
    InterestEntity,
    InterestTopic,
    Organization,
    OrganizationProfile,
    PriorityBucket,
    RelevanceScoreRecord,
    RuleType,
)
from trend_relevance.scoring.explain import (
    NO_MATCH_REASON,
    EntityMatchEvidence,
    RelevanceExplanation,
    TopicMatchEvidence,
)
from trend_relevance.scoring.outcome import OutcomeIndex
from trend_relevance.scoring.weights import DEFAULT_WEIGHTS, ScoringWeights

logger = logging.getLogger(__name__)

RELEVANCE_SIGNALS = (
    "topic_match",
    "profile_match",
    "allowlist",
    "stakeholder",
    "ally",
    "opponent",
    "geography",
    "semantic_match",
    "outcome_learning",
)


@dataclass
class OrganizationContext:
    """Everything configured for one organization, loaded once per run."""

    organization: Organization
    profile: OrganizationProfile | None = None
    topics: list[InterestTopic] = field(default_factory=list)
    entities: list[InterestEntity] = field(default_factory=list)

    @property
    def organization_id(self) -> str:
        return self.organization.id

    @property
    def is_configured(self) -> bool:
        return bool(self.profile or self.topics or self.entities)


@dataclass
class RelevanceResult:
    """Scored, explained outcome for one (organization, candidate) pair."""

    organization_id: str
    candidate_id: str
    trend_key: str
    relevance_score: int
    urgency_score: int
    priority_bucket: PriorityBucket
    is_blocked: bool = False
    is_allowlisted: bool = False
    matched_topics: list[str] = field(default_factory=list)
    matched_entities: list[str] = field(default_factory=list)
    matched_geographies: list[str] = field(default_factory=list)
    explanation: dict[str, Any] = field(default_factory=dict)

    @property
    def is_high_priority(self) -> bool:
        return self.priority_bucket is PriorityBucket.HIGH

    def to_record(self, computed_at: datetime, ttl_hours: int) -> RelevanceScoreRecord:
        return RelevanceScoreRecord(
            organization_id=self.organization_id,
            trend_key=self.trend_key,
            candidate_id=self.candidate_id,
            relevance_score=self.relevance_score,
            urgency_score=self.urgency_score,
            priority_bucket=self.priority_bucket,
            is_blocked=self.is_blocked,
            is_allowlisted=self.is_allowlisted,
            matched_topics=list(self.matched_topics),
            matched_entities=list(self.matched_entities),
            matched_geographies=list(self.matched_geographies),
            explanation=self.explanation,
            computed_at=computed_at,
            expires_at=computed_at + timedelta(hours=ttl_hours),
        )


def priority_bucket(score: float, weights: ScoringWeights = DEFAULT_WEIGHTS) -> PriorityBucket:
    """Map a final relevance score to its bucket (≥65 high, ≥35 medium, else low)."""
    if score >= weights.high_priority_min:
        return PriorityBucket.HIGH
    if score >= weights.medium_priority_min:
        return PriorityBucket.MEDIUM
    return PriorityBucket.LOW


def compute_urgency(candidate: Candidate, weights: ScoringWeights = DEFAULT_WEIGHTS) -> int:
    """Time-sensitivity from velocity and the breaking flag, 0-100."""
    urgency = round(max(0.0, candidate.velocity) / weights.urgency_velocity_divisor)
    if candidate.is_breaking:
        urgency += weights.urgency_breaking_bonus
    return int(min(100, urgency))


def velocity_points(velocity: float, weights: ScoringWeights = DEFAULT_WEIGHTS) -> int:
    if velocity <= weights.velocity_floor:
        return 0
    return int(min(round(velocity / weights.velocity_divisor), weights.velocity_max))


def semantic_points(similarity: float, weights: ScoringWeights = DEFAULT_WEIGHTS) -> int:
    """Linear points up to the cap; nothing at or below the similarity floor."""
    if similarity <= weights.semantic_floor:
        return 0
    capped = min(similarity, weights.semantic_ceiling)
    return int(round(weights.semantic_max * capped / weights.semantic_ceiling))


def _append_unique(items: list[str], value: str) -> None:
    if value not in items:
        items.append(value)


def score_relevance(
    context: OrganizationContext,
    candidate: Candidate,
    matcher: Matcher | None = None,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    outcomes: OutcomeIndex | None = None,
) -> RelevanceResult:
    """
    Score one candidate trend for one organization.

    Args:
        context: Organization with its profile and interest rules
        candidate: Trending candidate
        matcher: Matcher bound to this run's alias snapshot
        weights: Scoring weights
        outcomes: Outcome index for this run (None disables outcome learning)

    Returns:
        RelevanceResult with score, urgency, bucket, matches and explanation
    """
    matcher = matcher or Matcher()
    text = candidate.text
    extracted = candidate.entities
    explanation = RelevanceExplanation()

    def result(score: int, urgency: int = 0, **kwargs: Any) -> RelevanceResult:
        return RelevanceResult(
            organization_id=context.organization_id,
            candidate_id=candidate.id,
            trend_key=candidate.trend_key,
            relevance_score=score,
            urgency_score=urgency,
            priority_bucket=priority_bucket(score, weights),
            explanation=explanation.to_dict(),
            **kwargs,
        )

    # 1. Deny veto, before any other signal
    denied = find_denied_entity(context.entities, text, extracted)
    if denied is not None:
        explanation.blocked_by = denied.entity_name
        reason = f"Blocked by deny rule: {denied.entity_name}"
        if denied.reason:
            reason += f" ({denied.reason})"
        explanation.reasons.append(reason)
        return result(0, is_blocked=True, matched_entities=[denied.entity_name])

    urgency = compute_urgency(candidate, weights)

    profile = context.profile
    matched_topics: list[str] = []
    matched_entities: list[str] = []
    geographies = profile.geographies if profile else []
    matched_geos = match_geographies(geographies, text)

    # 2. Topic match: strongest weighted interest-topic match
    best_topic = 0.0
    for topic in context.topics:
        match = matcher.match_topic(topic.topic, text)
        if not match.matched:
            continue
        _append_unique(matched_topics, topic.topic)
        explanation.topic_matches.append(
            TopicMatchEvidence(topic.topic, match.tier.value, match.score, topic.weight, "interest")
        )
        best_topic = max(best_topic, topic.weight * match.score)

    topic_points = round(min(weights.topic_max, weights.topic_max * best_topic))
    if topic_points > 0:
        explanation.add(
            "topic_match", topic_points, f"Matches tracked topics: {', '.join(matched_topics)}"
        )

    # 3. Profile-topic fallback, only without a direct topic match
    if not matched_topics and profile is not None:
        profile_hits = []
        for topic in profile.profile_topics:
            match = matcher.match_topic(topic, text)
            if match.matched:
                profile_hits.append(topic)
                explanation.topic_matches.append(
                    TopicMatchEvidence(topic, match.tier.value, match.score, 1.0, "profile")
                )
        if profile_hits:
            points = min(weights.profile_max, weights.profile_points_per_topic * len(profile_hits))
            for topic in profile_hits:
                _append_unique(matched_topics, topic)
            explanation.add(
                "profile_match", points, f"Related to organization focus: {', '.join(profile_hits)}"
            )

    # 4. Entities, each textual match passed through the context gate
    def gated_match(name: str, role: str, rule: InterestEntity | None = None) -> bool:
        match = matcher.match_entity(name, text, extracted)
        if not match.matched:
            return False
        entity_type = rule.entity_type if rule and rule.entity_type else None
        if entity_type is None:
            entity_type = matcher.snapshot.resolve(name).entity_type
        gate = gate_entity_match(
            entity_type,
            text,
            context_keywords=rule.context_keywords if rule else (),
            geographies=geographies,
            matched_geographies=matched_geos,
        )
        accepted = gate.accepts(weights.min_entity_confidence)
        explanation.entity_matches.append(
            EntityMatchEvidence(name, role, match.tier.value, gate.confidence, accepted)
        )
        if accepted:
            _append_unique(matched_entities, name)
        return accepted

    is_allowlisted = False
    allowed = [
        rule.entity_name
        for rule in context.entities
        if rule.rule_type is RuleType.ALLOW and gated_match(rule.entity_name, "allowlist", rule)
    ]
    if allowed:
        is_allowlisted = True
        explanation.add("allowlist", weights.allowlist, f"Allowlisted entity: {', '.join(allowed)}")

    if profile is not None:
        for role, names, points, label in (
            ("stakeholder", profile.stakeholders, weights.stakeholder, "Mentions stakeholder"),
            ("ally", profile.allies, weights.ally, "Mentions ally"),
            ("opponent", profile.opponents, weights.opponent, "Mentions opponent"),
        ):
            hits = [name for name in names if gated_match(name, role)]
            if hits:
                explanation.add(role, points, f"{label}: {', '.join(hits)}")

    # 5. Geography
    if matched_geos:
        explanation.geo_match = list(matched_geos)
        explanation.add(
            "geography", weights.geography, f"Geographic match: {', '.join(matched_geos)}"
        )

    # 6. Semantic similarity (optional stage)
    if (
        weights.enable_semantic
        and profile is not None
        and profile.embedding is not None
        and candidate.embedding is not None
    ):
        similarity = cosine_similarity(profile.embedding, candidate.embedding)
        explanation.semantic_similarity = similarity
        points = semantic_points(similarity, weights)
        if points > 0:
            explanation.add(
                "semantic_match",
                points,
                f"Semantically similar to organization profile ({similarity:.2f})",
            )

    # 7. Outcome learning (optional stage)
    if outcomes is not None:
        boost = outcomes.lookup(context.organization_id, candidate.trend_key)
        if boost is not None:
            explanation.outcome_signal = boost.to_dict()
            explanation.add(
                "outcome_learning",
                boost.points,
                f"Similar trends performed well before ({boost.learning_signal})",
            )

    if not any(key in explanation.score_breakdown for key in RELEVANCE_SIGNALS):
        explanation.reasons = [NO_MATCH_REASON]
        explanation.score_breakdown = {}
        return result(0, urgency, matched_geographies=matched_geos)

    # 8. Context signals
    points = velocity_points(candidate.velocity, weights)
    if points > 0:
        explanation.add("velocity", points, f"High velocity ({candidate.velocity:.0f})")
    if candidate.is_breaking:
        explanation.add("breaking", weights.breaking, "Breaking news")
    if candidate.source_count >= weights.multi_source_min_sources:
        explanation.add(
            "multi_source", weights.multi_source, f"Covered by {candidate.source_count} sources"
        )

    # 9. Breakthrough multiplier on the full sum, then clamp
    total = explanation.subtotal
    if candidate.is_breakthrough:
        total *= weights.breakthrough_multiplier
        explanation.add(
            "breakthrough_multiplier",
            weights.breakthrough_multiplier,
            f"Breakthrough: corroborated across sources (x{weights.breakthrough_multiplier})",
        )

    score = int(round(min(100.0, max(0.0, total))))
    return result(
        score,
        urgency,
        is_allowlisted=is_allowlisted,
        matched_topics=matched_topics,
        matched_entities=matched_entities,
        matched_geographies=matched_geos,
    )
