"""
Explainable relevance: why a trend scored what it scored for an organization.

The scoring engine fills a RelevanceExplanation incrementally, one signal at
a time, so the reason list and the score breakdown always come out in the
same order for the same inputs. The explanation is stored as JSON next to
the score and rendered as text by the CLI.

Key features:
- Ordered human-readable reasons, one per signal that fired
- Ordered score breakdown keyed by signal name
- Structured evidence: topic matches, gated entity matches, geography,
  semantic similarity and the outcome signal used
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

NO_MATCH_REASON = "No specific matches found"

# Display names for breakdown keys
SIGNAL_LABELS = {
    "topic_match": "Topic match",
    "profile_match": "Profile focus",
    "allowlist": "Allowlisted entity",
    "stakeholder": "Stakeholder",
    "ally": "Ally",
    "opponent": "Opponent",
    "geography": "Geography",
    "semantic_match": "Semantic similarity",
    "outcome_learning": "Outcome learning",
    "velocity": "Velocity",
    "breaking": "Breaking news",
    "multi_source": "Multi-source",
    "breakthrough_multiplier": "Breakthrough multiplier",
}


@dataclass
class TopicMatchEvidence:
    topic: str
    tier: str
    match_score: float
    weight: float
    source: str  # "interest" or "profile"

    def to_dict(self) -> dict[str, Any]:
        return {
            "topic": self.topic,
            "tier": self.tier,
            "match_score": round(self.match_score, 4),
            "weight": round(self.weight, 4),
            "source": self.source,
        }


@dataclass
class EntityMatchEvidence:
    entity: str
    role: str  # allowlist / stakeholder / ally / opponent
    tier: str
    gate_confidence: float
    accepted: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "entity": self.entity,
            "role": self.role,
            "tier": self.tier,
            "gate_confidence": round(self.gate_confidence, 4),
            "accepted": self.accepted,
        }


@dataclass
class RelevanceExplanation:
    """Reasons and evidence behind one relevance score."""

    reasons: list[str] = field(default_factory=list)
    score_breakdown: dict[str, float] = field(default_factory=dict)
    topic_matches: list[TopicMatchEvidence] = field(default_factory=list)
    entity_matches: list[EntityMatchEvidence] = field(default_factory=list)
    geo_match: list[str] = field(default_factory=list)
    semantic_similarity: float | None = None
    outcome_signal: dict[str, Any] | None = None
    blocked_by: str | None = None

    def add(self, key: str, points: float, reason: str) -> None:
        """Record a signal's contribution and its reason, in call order."""
        self.score_breakdown[key] = points
        self.reasons.append(reason)

    @property
    def subtotal(self) -> float:
        return float(
            sum(v for k, v in self.score_breakdown.items() if k != "breakthrough_multiplier")
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable form, keys and lists in deterministic order."""
        result: dict[str, Any] = {
            "reasons": list(self.reasons),
            "score_breakdown": dict(self.score_breakdown),
            "topic_matches": [m.to_dict() for m in self.topic_matches],
            "entity_matches": [m.to_dict() for m in self.entity_matches],
            "geo_match": list(self.geo_match),
            "semantic_similarity": (
                round(self.semantic_similarity, 4) if self.semantic_similarity is not None else None
            ),
            "outcome_signal": self.outcome_signal,
        }
        if self.blocked_by is not None:
            result["blocked_by"] = self.blocked_by
        return result


def explanation_to_json(explanation: dict[str, Any]) -> str:
    """Serialize an explanation dict; identical inputs give identical bytes."""
    return json.dumps(explanation, separators=(",", ":"), ensure_ascii=False)


def format_explanation_text(
    explanation: dict[str, Any],
    title: str = "",
    relevance_score: int | None = None,
    priority_bucket: str | None = None,
) -> str:
    """
    Format an explanation dict as human-readable text.

    Args:
        explanation: Output of RelevanceExplanation.to_dict()
        title: Candidate title for the header line
        relevance_score: Final score (shown in the header when given)
        priority_bucket: Bucket label (shown in the header when given)

    Returns:
        Multi-line string
    """
    lines = []
    if title:
        header = f"Trend: {title}"
        if relevance_score is not None:
            header += f"  [{relevance_score}/100"
            header += f", {priority_bucket}]" if priority_bucket else "]"
        lines.append(header)
        lines.append("=" * min(len(header), 70))

    if explanation.get("blocked_by"):
        lines.append(f"BLOCKED by deny rule: {explanation['blocked_by']}")

    lines.append("Reasons:")
    for i, reason in enumerate(explanation.get("reasons", []), 1):
        lines.append(f"  {i}. {reason}")

    breakdown = explanation.get("score_breakdown", {})
    if breakdown:
        lines.append("")
        lines.append("Score breakdown:")
        for key, value in breakdown.items():
            label = SIGNAL_LABELS.get(key, key)
            if key == "breakthrough_multiplier":
                lines.append(f"  {label:<24} x{value}")
            else:
                lines.append(f"  {label:<24} +{value}")

    similarity = explanation.get("semantic_similarity")
    if similarity is not None:
        lines.append("")
        lines.append(f"Semantic similarity: {similarity:.2f}")

    return "\n".join(lines)
