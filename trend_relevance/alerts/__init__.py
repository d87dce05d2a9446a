"""Alert deduplication and emission."""

from trend_relevance.alerts.dedup import AlertDeduplicator, AlertKey, alert_key
from trend_relevance.alerts.emitter import (
    AlertEmitter,
    build_suggested_action,
    classify_alert_type,
    classify_severity,
    select_alert_entity,
)

__all__ = [
    "AlertDeduplicator",
    "AlertKey",
    "alert_key",
    "AlertEmitter",
    "build_suggested_action",
    "classify_alert_type",
    "classify_severity",
    "select_alert_entity",
]
