"""
Alert emission.

Turns scored (organization, candidate) pairs into alert records: picks the
alert type by priority, grades severity, fills templated guidance and
drops anything already alerted inside the deduplication window.
"""

from __future__ import annotations

import logging
from datetime import datetime

from trend_relevance.alerts.dedup import AlertDeduplicator, alert_key
from trend_relevance.entity_resolution.canonicalizer import AliasSnapshot, resolve
from trend_relevance.models import AlertRecord, AlertType, Candidate, Organization, Severity
from trend_relevance.scoring.engine import RelevanceResult

logger = logging.getLogger(__name__)

# Alert type thresholds
TRENDING_SPIKE_VELOCITY = 200
SENTIMENT_SHIFT_MAGNITUDE = 0.3

# Severity thresholds on the relevance score
SEVERITY_THRESHOLDS = (
    (80, Severity.CRITICAL),
    (60, Severity.HIGH),
    (40, Severity.MEDIUM),
)
ACTIONABLE_MIN_SCORE = 60
SAMPLE_SOURCE_LIMIT = 3

SUGGESTED_ACTIONS = {
    AlertType.BREAKING: (
        "{entity} is breaking news right now. Review the coverage and decide on a rapid response."
    ),
    AlertType.TRENDING_SPIKE: (
        "{entity} is trending with {velocity:.0f}% velocity. Consider capitalizing on this momentum."
    ),
    AlertType.SENTIMENT_SHIFT: (
        "Sentiment around {entity} has shifted {direction}. Review recent coverage."
    ),
    AlertType.SPIKE: "{entity} has {mentions} mentions in 24h. Monitor for developments.",
}
BREAKTHROUGH_ACTION = (
    "{entity} detected across {sources} sources. This cross-platform signal warrants attention."
)


def classify_alert_type(candidate: Candidate) -> AlertType:
    """
    Pick the alert type by priority: breaking, trending spike, sentiment shift, spike.

    Cross-source breakthroughs are reported as breaking.
    """
    if candidate.is_breaking or candidate.is_breakthrough:
        return AlertType.BREAKING
    if candidate.velocity > TRENDING_SPIKE_VELOCITY:
        return AlertType.TRENDING_SPIKE
    if abs(candidate.sentiment_change) > SENTIMENT_SHIFT_MAGNITUDE:
        return AlertType.SENTIMENT_SHIFT
    return AlertType.SPIKE


def classify_severity(score: int) -> Severity:
    for threshold, severity in SEVERITY_THRESHOLDS:
        if score >= threshold:
            return severity
    return Severity.LOW


def build_suggested_action(alert_type: AlertType, entity: str, candidate: Candidate) -> str:
    """Descriptive guidance text for an alert."""
    if alert_type is AlertType.BREAKING and candidate.is_breakthrough:
        return BREAKTHROUGH_ACTION.format(entity=entity, sources=candidate.source_count)
    return SUGGESTED_ACTIONS[alert_type].format(
        entity=entity,
        velocity=candidate.velocity,
        direction="positive" if candidate.sentiment_change > 0 else "negative",
        mentions=candidate.current_24h,
    )


def select_alert_entity(
    result: RelevanceResult,
    candidate: Candidate,
    snapshot: AliasSnapshot | None = None,
) -> str:
    """
    Canonical entity an alert is about.

    First matched entity, else first matched topic, else the candidate title.
    """
    if result.matched_entities:
        name = result.matched_entities[0]
    elif result.matched_topics:
        name = result.matched_topics[0]
    else:
        name = candidate.title
    resolved = resolve(name, snapshot)
    return resolved.canonical if resolved.canonical else name


class AlertEmitter:
    """
    Emits at most one alert per (organization, entity, alert type) key.

    Example:
        >>> emitter = AlertEmitter(AlertDeduplicator(recent_keys), snapshot)
        >>> alert = emitter.maybe_emit(org, result, candidate, now)
    """

    def __init__(
        self,
        deduplicator: AlertDeduplicator | None = None,
        snapshot: AliasSnapshot | None = None,
    ):
        self.deduplicator = deduplicator or AlertDeduplicator()
        self.snapshot = snapshot
        self.suppressed = 0

    def maybe_emit(
        self,
        organization: Organization,
        result: RelevanceResult,
        candidate: Candidate,
        now: datetime,
    ) -> AlertRecord | None:
        """
        Build an alert for a scored pair, or None.

        Requires an unblocked result scoring at least the organization's own
        alert threshold, and a key not already claimed inside the window.
        """
        if result.is_blocked or result.relevance_score < organization.alert_threshold:
            return None

        alert_type = classify_alert_type(candidate)
        entity = select_alert_entity(result, candidate, self.snapshot)
        key = alert_key(organization.id, entity, alert_type)
        if not self.deduplicator.claim(key):
            self.suppressed += 1
            logger.debug(f"Suppressed duplicate alert {key}")
            return None

        score = result.relevance_score
        return AlertRecord(
            organization_id=organization.id,
            entity_name=entity,
            alert_type=alert_type,
            severity=classify_severity(score),
            actionable_score=score,
            is_actionable=score >= ACTIONABLE_MIN_SCORE,
            velocity=candidate.velocity,
            current_mentions=candidate.current_24h,
            sample_sources=list(candidate.sample_sources[:SAMPLE_SOURCE_LIMIT]),
            suggested_action=build_suggested_action(alert_type, entity, candidate),
            triggered_at=now,
            candidate_id=candidate.id,
        )
