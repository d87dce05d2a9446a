"""
Unit tests for alert deduplication keys.
"""

from concurrent.futures import ThreadPoolExecutor

from trend_relevance.alerts.dedup import AlertDeduplicator, alert_key
from trend_relevance.models import AlertType


class TestAlertKey:
    def test_entity_is_normalized(self):
        assert alert_key("org-1", "Joe Biden!", "spike") == alert_key(
            "org-1", "joe   biden", AlertType.SPIKE
        )

    def test_type_is_part_of_key(self):
        assert alert_key("org-1", "Climate", "spike") != alert_key("org-1", "Climate", "breaking")


class TestAlertDeduplicator:
    """Tests for AlertDeduplicator."""

    def test_claim_once(self):
        dedup = AlertDeduplicator()
        key = alert_key("org-1", "Climate", "spike")

        assert dedup.claim(key) is True
        assert dedup.claim(key) is False
        assert key in dedup
        assert len(dedup) == 1

    def test_seeded_keys_suppress(self):
        dedup = AlertDeduplicator([("org-1", "CLIMATE", "spike")])
        assert dedup.claim(alert_key("org-1", "climate", "spike")) is False
        assert dedup.claim(alert_key("org-2", "climate", "spike")) is True

    def test_unknown_seeded_type_is_ignored(self):
        dedup = AlertDeduplicator(
            [("org-1", "Climate", "mystery"), ("org-1", "Climate", "spike")]
        )
        assert len(dedup) == 1
        assert alert_key("org-1", "Climate", "spike") in dedup

    def test_concurrent_claims_grant_one(self):
        dedup = AlertDeduplicator()
        key = alert_key("org-1", "Climate", "spike")

        with ThreadPoolExecutor(max_workers=8) as executor:
            granted = list(executor.map(lambda _: dedup.claim(key), range(200)))

        assert granted.count(True) == 1
