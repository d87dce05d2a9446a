"""
Alert deduplication.

An alert key is (organization, normalized canonical entity, alert type).
The deduplicator starts from the keys emitted inside the rolling window
before the run and records every key emitted during the run, so several
candidates collapsing onto one key still produce a single alert.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable

from trend_relevance.entity_resolution.canonicalizer import normalize_entity_name
from trend_relevance.models import AlertType

logger = logging.getLogger(__name__)

AlertKey = tuple[str, str, str]


def alert_key(organization_id: str, entity_name: str, alert_type: AlertType | str) -> AlertKey:
    """Build the deduplication key for an alert."""
    return (organization_id, normalize_entity_name(entity_name), AlertType(alert_type).value)


class AlertDeduplicator:
    """Thread-safe set of alert keys already emitted inside the window."""

    def __init__(self, recent_keys: Iterable[AlertKey] = ()):
        self._seen: set[AlertKey] = set()
        for organization_id, entity_name, alert_type in recent_keys:
            try:
                self._seen.add(alert_key(organization_id, entity_name, alert_type))
            except ValueError:
                logger.debug(f"Ignoring recent alert with unknown type {alert_type!r}")
        self._lock = threading.Lock()
        logger.debug(f"Alert deduplicator seeded with {len(self._seen)} recent keys")

    def __contains__(self, key: AlertKey) -> bool:
        with self._lock:
            return key in self._seen

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)

    def claim(self, key: AlertKey) -> bool:
        """
        Reserve a key for emission.

        Returns:
            True if the key was free (caller should emit), False if suppressed
        """
        with self._lock:
            if key in self._seen:
                return False
            self._seen.add(key)
            return True
