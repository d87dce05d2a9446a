"""
Store interface consumed by the relevance pipeline.

Reads are core reference data: implementations raise UpstreamReadFailure
when a read cannot complete. Each write call handles one batch and raises
PartialWriteFailure when that batch cannot be written.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol

from trend_relevance.alerts.dedup import AlertKey
from trend_relevance.models import (
    AliasEntry,
    AlertRecord,
    Candidate,
    InterestEntity,
    InterestTopic,
    Organization,
    OrganizationProfile,
    OutcomeCorrelation,
    RelevanceScoreRecord,
    UsageEntry,
)


class RelevanceStore(Protocol):
    """Reference data in, scores and alerts out."""

    # Reads
    def load_organizations(self) -> list[Organization]: ...

    def load_profiles(self) -> dict[str, OrganizationProfile]: ...

    def load_interest_topics(self) -> list[InterestTopic]: ...

    def load_interest_entities(self) -> list[InterestEntity]: ...

    def load_alias_snapshot(self, limit: int) -> list[AliasEntry]: ...

    def load_candidates(self, since: datetime | None = None) -> list[Candidate]: ...

    def load_outcome_correlations(self, since: datetime) -> list[OutcomeCorrelation]: ...

    def load_recent_alert_keys(self, since: datetime) -> list[AlertKey]: ...

    # Writes
    def upsert_scores(self, records: Sequence[RelevanceScoreRecord], batch_index: int = 0) -> int: ...

    def insert_alerts(self, alerts: Sequence[AlertRecord], batch_index: int = 0) -> int: ...

    def prune_expired_scores(self, now: datetime) -> int: ...

    def log_usage(self, entries: Sequence[UsageEntry]) -> int: ...
