"""
Data model for relevance runs.

Plain dataclasses for everything read from the reference store
(organizations, profiles, interest rules, candidates, aliases, outcome
correlations) and everything written back (score records, alerts).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

import numpy as np

from trend_relevance.constants import DEFAULT_ALERT_THRESHOLD
from trend_relevance.matching.text import normalize


class RuleType(str, Enum):
    """Organization-configured entity rule."""

    ALLOW = "allow"
    DENY = "deny"


class PriorityBucket(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AlertType(str, Enum):
    BREAKING = "breaking"
    TRENDING_SPIKE = "trending_spike"
    SENTIMENT_SHIFT = "sentiment_shift"
    SPIKE = "spike"


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class LearningSignal(str, Enum):
    """Learning signal attached to an outcome correlation."""

    STRONG_POSITIVE = "strong_positive"
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


@dataclass
class Organization:
    id: str
    name: str
    is_active: bool = True
    alert_threshold: int = DEFAULT_ALERT_THRESHOLD


@dataclass
class OrganizationProfile:
    """Extracted profile of an organization (read-only here)."""

    organization_id: str
    mission_summary: str = ""
    focus_areas: list[str] = field(default_factory=list)
    key_issues: list[str] = field(default_factory=list)
    priority_lanes: list[str] = field(default_factory=list)
    geographies: list[str] = field(default_factory=list)
    stakeholders: list[str] = field(default_factory=list)
    allies: list[str] = field(default_factory=list)
    opponents: list[str] = field(default_factory=list)
    embedding: np.ndarray | None = None

    @property
    def profile_topics(self) -> list[str]:
        """Focus areas, key issues and priority lanes, deduplicated in order."""
        seen: set[str] = set()
        topics = []
        for topic in [*self.focus_areas, *self.key_issues, *self.priority_lanes]:
            key = normalize(topic)
            if key and key not in seen:
                seen.add(key)
                topics.append(topic)
        return topics


@dataclass
class InterestTopic:
    organization_id: str
    topic: str
    weight: float = 1.0
    source: str = "manual"

    def __post_init__(self) -> None:
        # Weights outside [0, 1] are clamped rather than rejected
        self.weight = min(1.0, max(0.0, float(self.weight)))


@dataclass
class InterestEntity:
    organization_id: str
    entity_name: str
    rule_type: RuleType
    reason: str = ""
    entity_type: str | None = None
    context_keywords: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.rule_type = RuleType(self.rule_type)


@dataclass
class Candidate:
    """A trending topic/entity supplied by the trend-detection feed."""

    id: str
    title: str
    description: str = ""
    velocity: float = 0.0
    is_breaking: bool = False
    is_breakthrough: bool = False
    source_count: int = 0
    current_1h: int = 0
    current_6h: int = 0
    current_24h: int = 0
    sentiment_change: float = 0.0
    entities: list[str] = field(default_factory=list)
    sample_sources: list[str] = field(default_factory=list)
    embedding: np.ndarray | None = None

    @property
    def trend_key(self) -> str:
        """Normalized title, the join key for scores and outcome correlations."""
        return normalize(self.title)

    @property
    def text(self) -> str:
        """Title and description as one matchable string."""
        if self.description:
            return f"{self.title} {self.description}"
        return self.title


@dataclass(frozen=True)
class AliasEntry:
    raw_name: str
    canonical_name: str
    entity_type: str = "unknown"
    confidence: float = 1.0
    usage_count: int = 0


@dataclass
class RelevanceScoreRecord:
    """One upserted row keyed by (organization_id, trend_key)."""

    organization_id: str
    trend_key: str
    candidate_id: str
    relevance_score: int
    urgency_score: int
    priority_bucket: PriorityBucket
    is_blocked: bool
    is_allowlisted: bool
    matched_topics: list[str]
    matched_entities: list[str]
    matched_geographies: list[str]
    explanation: dict[str, Any]
    computed_at: datetime
    expires_at: datetime


@dataclass
class AlertRecord:
    organization_id: str
    entity_name: str
    alert_type: AlertType
    severity: Severity
    actionable_score: int
    is_actionable: bool
    velocity: float
    current_mentions: int
    sample_sources: list[str]
    suggested_action: str
    triggered_at: datetime
    candidate_id: str | None = None


@dataclass
class OutcomeCorrelation:
    """Historical link between a past trend and a performance change."""

    organization_id: str
    trend_key: str
    learning_signal: str
    should_boost: bool
    performance_delta: float
    response_rate: float
    computed_at: datetime


@dataclass
class UsageEntry:
    """Per-organization usage audit line written once per run."""

    organization_id: str
    run_at: datetime
    candidates_scored: int
    scores_created: int
    alerts_generated: int


@dataclass
class RunSummary:
    """Aggregate counters returned by every run."""

    organizations_processed: int = 0
    candidates_scored: int = 0
    scores_created: int = 0
    high_priority_count: int = 0
    alerts_generated: int = 0
    blocked_count: int = 0
    failed_batches: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "organizations_processed": self.organizations_processed,
            "candidates_scored": self.candidates_scored,
            "scores_created": self.scores_created,
            "high_priority_count": self.high_priority_count,
            "alerts_generated": self.alerts_generated,
            "blocked_count": self.blocked_count,
            "failed_batches": self.failed_batches,
        }
