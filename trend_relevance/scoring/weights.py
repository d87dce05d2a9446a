"""
Scoring weights.

Every number the scoring engine uses lives in one frozen ScoringWeights
instance, passed into ``score_relevance``. Tune or test by constructing a
different instance; the engine holds no literals of its own.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ScoringWeights:
    # Relevance signals
    topic_max: float = 50.0  # × max(weight × match score)
    profile_points_per_topic: int = 12
    profile_max: int = 35
    allowlist: int = 15
    stakeholder: int = 10
    ally: int = 10
    opponent: int = 12
    geography: int = 8
    semantic_max: int = 20
    semantic_floor: float = 0.3  # similarity at or below this earns nothing
    semantic_ceiling: float = 0.9  # similarity above this earns the full cap
    outcome_strong_positive: int = 10
    outcome_positive: int = 6

    # Context signals (only amplify a trend that matched on relevance)
    velocity_floor: float = 50.0
    velocity_divisor: float = 20.0
    velocity_max: int = 15
    breaking: int = 10
    multi_source: int = 5
    multi_source_min_sources: int = 3
    breakthrough_multiplier: float = 1.2

    # Urgency
    urgency_velocity_divisor: float = 2.0
    urgency_breaking_bonus: int = 25

    # Buckets
    high_priority_min: int = 65
    medium_priority_min: int = 35

    # Gating
    min_entity_confidence: float = 0.4

    # Optional stages
    enable_semantic: bool = True


DEFAULT_WEIGHTS = ScoringWeights()
