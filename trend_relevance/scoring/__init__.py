"""
Relevance scoring.

- weights: the single ScoringWeights structure every number comes from
- engine: score_relevance() for one (organization, candidate) pair
- explain: ordered reasons and score breakdown, text rendering
- outcome: outcome-learning boost selection
"""

from trend_relevance.scoring.engine import (
    OrganizationContext,
    RelevanceResult,
    compute_urgency,
    priority_bucket,
    score_relevance,
    semantic_points,
    velocity_points,
)
from trend_relevance.scoring.explain import (
    NO_MATCH_REASON,
    RelevanceExplanation,
    explanation_to_json,
    format_explanation_text,
)
from trend_relevance.scoring.outcome import OutcomeBoost, OutcomeIndex, select_outcome_boost
from trend_relevance.scoring.weights import DEFAULT_WEIGHTS, ScoringWeights

__all__ = [
    # Weights
    "DEFAULT_WEIGHTS",
    "ScoringWeights",
    # Engine
    "OrganizationContext",
    "RelevanceResult",
    "score_relevance",
    "priority_bucket",
    "compute_urgency",
    "velocity_points",
    "semantic_points",
    # Explanation
    "NO_MATCH_REASON",
    "RelevanceExplanation",
    "explanation_to_json",
    "format_explanation_text",
    # Outcome feedback
    "OutcomeBoost",
    "OutcomeIndex",
    "select_outcome_boost",
]
