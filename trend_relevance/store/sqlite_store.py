"""
SQLite implementation of the relevance store.

List-valued columns are stored as JSON text, timestamps as UTC ISO-8601
strings (so lexical order is time order). Reads of reference data are
retried on transient errors and surface as UpstreamReadFailure; each write
call is one transaction and surfaces as PartialWriteFailure.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, TypeVar

from trend_relevance.alerts.dedup import AlertKey
from trend_relevance.errors import PartialWriteFailure, UpstreamReadFailure
from trend_relevance.matching.semantic import parse_embedding
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
from trend_relevance.retry import retry_store
from trend_relevance.store.schema import ensure_schema

logger = logging.getLogger(__name__)

T = TypeVar("T")


def to_iso(value: datetime) -> str:
    """Serialize a datetime as UTC ISO-8601 (naive values are taken as UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def from_iso(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _json_list(value: Any, column: str) -> list:
    if value is None or value == "":
        return []
    try:
        loaded = json.loads(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring malformed JSON in column {column}: {value!r:.60}")
        return []
    return loaded if isinstance(loaded, list) else []


class SQLiteRelevanceStore:
    """
    Relevance store backed by a single SQLite database file.

    Example:
        >>> with SQLiteRelevanceStore(get_relevance_db()) as store:
        ...     orgs = store.load_organizations()
    """

    def __init__(self, db_path: Path | str, create_schema: bool = True):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        if create_schema:
            ensure_schema(self._conn)

    def __enter__(self) -> SQLiteRelevanceStore:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        self._conn.close()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @retry_store
    def _fetch(self, sql: str, params: Sequence[Any] = ()) -> list[sqlite3.Row]:
        return self._conn.execute(sql, params).fetchall()

    def _read(self, source: str, sql: str, params: Sequence[Any] = ()) -> list[sqlite3.Row]:
        try:
            rows = self._fetch(sql, params)
        except sqlite3.Error as e:
            logger.error(f"Read of {source} failed after retries: {e}")
            raise UpstreamReadFailure(source, e) from e
        logger.debug(f"Loaded {len(rows)} rows from {source}")
        return rows

    def _decode(
        self,
        source: str,
        rows: Sequence[sqlite3.Row],
        build: Callable[[sqlite3.Row], T],
        skip_invalid: bool = False,
    ) -> list[T]:
        """
        Convert rows with ``build``.

        A row that fails to decode raises UpstreamReadFailure, or is logged
        and dropped when ``skip_invalid`` is set.
        """
        items = []
        for row in rows:
            try:
                items.append(build(row))
            except (TypeError, ValueError) as e:
                if not skip_invalid:
                    logger.error(f"Malformed row in {source}: {e}")
                    raise UpstreamReadFailure(source, e) from e
                logger.warning(f"Skipping malformed row in {source}: {e}")
        return items

    def load_organizations(self) -> list[Organization]:
        rows = self._read(
            "organizations",
            "SELECT id, name, is_active, alert_threshold FROM organizations "
            "WHERE is_active = 1 ORDER BY id",
        )
        return self._decode(
            "organizations",
            rows,
            lambda row: Organization(
                id=row["id"],
                name=row["name"],
                is_active=bool(row["is_active"]),
                alert_threshold=int(row["alert_threshold"]),
            ),
        )

    def load_profiles(self) -> dict[str, OrganizationProfile]:
        rows = self._read("organization_profiles", "SELECT * FROM organization_profiles")

        def build(row: sqlite3.Row) -> OrganizationProfile:
            return OrganizationProfile(
                organization_id=row["organization_id"],
                mission_summary=row["mission_summary"] or "",
                focus_areas=_json_list(row["focus_areas"], "focus_areas"),
                key_issues=_json_list(row["key_issues"], "key_issues"),
                priority_lanes=_json_list(row["priority_lanes"], "priority_lanes"),
                geographies=_json_list(row["geographies"], "geographies"),
                stakeholders=_json_list(row["stakeholders"], "stakeholders"),
                allies=_json_list(row["allies"], "allies"),
                opponents=_json_list(row["opponents"], "opponents"),
                embedding=parse_embedding(row["embedding"]),
            )

        profiles = self._decode("organization_profiles", rows, build)
        return {profile.organization_id: profile for profile in profiles}

    def load_interest_topics(self) -> list[InterestTopic]:
        rows = self._read(
            "interest_topics",
            "SELECT organization_id, topic, weight, source FROM interest_topics ORDER BY id",
        )
        return self._decode(
            "interest_topics",
            rows,
            lambda row: InterestTopic(
                organization_id=row["organization_id"],
                topic=row["topic"],
                weight=row["weight"],
                source=row["source"] or "manual",
            ),
        )

    def load_interest_entities(self) -> list[InterestEntity]:
        rows = self._read(
            "interest_entities",
            "SELECT organization_id, entity_name, rule_type, reason, entity_type, "
            "context_keywords FROM interest_entities ORDER BY id",
        )
        return self._decode(
            "interest_entities",
            rows,
            lambda row: InterestEntity(
                organization_id=row["organization_id"],
                entity_name=row["entity_name"],
                rule_type=row["rule_type"],
                reason=row["reason"] or "",
                entity_type=row["entity_type"],
                context_keywords=_json_list(row["context_keywords"], "context_keywords"),
            ),
        )

    def load_alias_snapshot(self, limit: int) -> list[AliasEntry]:
        """Top ``limit`` aliases by usage_count, then confidence."""
        rows = self._read(
            "entity_aliases",
            "SELECT raw_name, canonical_name, entity_type, confidence, usage_count "
            "FROM entity_aliases ORDER BY usage_count DESC, confidence DESC, raw_name "
            "LIMIT ?",
            (limit,),
        )
        return self._decode(
            "entity_aliases",
            rows,
            lambda row: AliasEntry(
                raw_name=row["raw_name"],
                canonical_name=row["canonical_name"],
                entity_type=row["entity_type"] or "unknown",
                confidence=float(row["confidence"]),
                usage_count=int(row["usage_count"]),
            ),
        )

    def load_candidates(self, since: datetime | None = None) -> list[Candidate]:
        sql = "SELECT * FROM trend_candidates"
        params: tuple = ()
        if since is not None:
            sql += " WHERE detected_at >= ?"
            params = (to_iso(since),)
        rows = self._read("trend_candidates", sql + " ORDER BY id", params)
        return self._decode(
            "trend_candidates",
            rows,
            lambda row: Candidate(
                id=row["id"],
                title=row["title"],
                description=row["description"] or "",
                velocity=float(row["velocity"] or 0.0),
                is_breaking=bool(row["is_breaking"]),
                is_breakthrough=bool(row["is_breakthrough"]),
                source_count=int(row["source_count"] or 0),
                current_1h=int(row["current_1h"] or 0),
                current_6h=int(row["current_6h"] or 0),
                current_24h=int(row["current_24h"] or 0),
                sentiment_change=float(row["sentiment_change"] or 0.0),
                entities=_json_list(row["entities"], "entities"),
                sample_sources=_json_list(row["sample_sources"], "sample_sources"),
                embedding=parse_embedding(row["embedding"]),
            ),
        )

    def load_outcome_correlations(self, since: datetime) -> list[OutcomeCorrelation]:
        """Correlations computed since ``since``; malformed rows are skipped."""
        rows = self._read(
            "outcome_correlations",
            "SELECT * FROM outcome_correlations WHERE computed_at >= ? ORDER BY id",
            (to_iso(since),),
        )
        return self._decode(
            "outcome_correlations",
            rows,
            lambda row: OutcomeCorrelation(
                organization_id=row["organization_id"],
                trend_key=row["trend_key"],
                learning_signal=row["learning_signal"],
                should_boost=bool(row["should_boost"]),
                performance_delta=float(row["performance_delta"] or 0.0),
                response_rate=float(row["response_rate"] or 0.0),
                computed_at=from_iso(row["computed_at"]),
            ),
            skip_invalid=True,
        )

    def load_recent_alert_keys(self, since: datetime) -> list[AlertKey]:
        rows = self._read(
            "entity_alerts",
            "SELECT DISTINCT organization_id, entity_name, alert_type FROM entity_alerts "
            "WHERE triggered_at >= ?",
            (to_iso(since),),
        )
        return [(row["organization_id"], row["entity_name"], row["alert_type"]) for row in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _write(self, target: str, sql: str, rows: list[tuple], batch_index: int) -> int:
        if not rows:
            return 0
        try:
            with self._conn:
                self._conn.executemany(sql, rows)
        except sqlite3.Error as e:
            raise PartialWriteFailure(target, batch_index, len(rows), e) from e
        return len(rows)

    def upsert_scores(self, records: Sequence[RelevanceScoreRecord], batch_index: int = 0) -> int:
        """Insert or replace score rows keyed by (organization_id, trend_key)."""
        rows = [
            (
                r.organization_id,
                r.trend_key,
                r.candidate_id,
                r.relevance_score,
                r.urgency_score,
                r.priority_bucket.value,
                int(r.is_blocked),
                int(r.is_allowlisted),
                json.dumps(r.matched_topics),
                json.dumps(r.matched_entities),
                json.dumps(r.matched_geographies),
                json.dumps(r.explanation, separators=(",", ":")),
                to_iso(r.computed_at),
                to_iso(r.expires_at),
            )
            for r in records
        ]
        return self._write(
            "relevance_scores",
            """
            INSERT INTO relevance_scores (
                organization_id, trend_key, candidate_id, relevance_score, urgency_score,
                priority_bucket, is_blocked, is_allowlisted, matched_topics, matched_entities,
                matched_geographies, explanation, computed_at, expires_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT (organization_id, trend_key) DO UPDATE SET
                candidate_id = excluded.candidate_id,
                relevance_score = excluded.relevance_score,
                urgency_score = excluded.urgency_score,
                priority_bucket = excluded.priority_bucket,
                is_blocked = excluded.is_blocked,
                is_allowlisted = excluded.is_allowlisted,
                matched_topics = excluded.matched_topics,
                matched_entities = excluded.matched_entities,
                matched_geographies = excluded.matched_geographies,
                explanation = excluded.explanation,
                computed_at = excluded.computed_at,
                expires_at = excluded.expires_at
            """,
            rows,
            batch_index,
        )

    def insert_alerts(self, alerts: Sequence[AlertRecord], batch_index: int = 0) -> int:
        rows = [
            (
                a.organization_id,
                a.entity_name,
                a.alert_type.value,
                a.severity.value,
                a.actionable_score,
                int(a.is_actionable),
                a.velocity,
                a.current_mentions,
                json.dumps(a.sample_sources),
                a.suggested_action,
                a.candidate_id,
                to_iso(a.triggered_at),
            )
            for a in alerts
        ]
        return self._write(
            "entity_alerts",
            """
            INSERT INTO entity_alerts (
                organization_id, entity_name, alert_type, severity, actionable_score,
                is_actionable, velocity, current_mentions, sample_sources, suggested_action,
                candidate_id, triggered_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            rows,
            batch_index,
        )

    def prune_expired_scores(self, now: datetime) -> int:
        """Delete score rows whose TTL has passed; returns rows deleted."""
        try:
            with self._conn:
                cursor = self._conn.execute(
                    "DELETE FROM relevance_scores WHERE expires_at < ?", (to_iso(now),)
                )
        except sqlite3.Error as e:
            raise PartialWriteFailure("relevance_scores (prune)", 0, 0, e) from e
        return cursor.rowcount

    def log_usage(self, entries: Sequence[UsageEntry]) -> int:
        rows = [
            (
                e.organization_id,
                to_iso(e.run_at),
                e.candidates_scored,
                e.scores_created,
                e.alerts_generated,
            )
            for e in entries
        ]
        return self._write(
            "usage_log",
            "INSERT INTO usage_log (organization_id, run_at, candidates_scored, "
            "scores_created, alerts_generated) VALUES (?, ?, ?, ?, ?)",
            rows,
            0,
        )

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def _inspect(self, source: str, sql: str, params: Sequence[Any] = ()) -> list[sqlite3.Row]:
        try:
            return self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise UpstreamReadFailure(source, e) from e

    def fetch_scores(self, organization_id: str | None = None) -> list[dict]:
        """Stored score rows as dicts, JSON columns decoded."""
        sql = "SELECT * FROM relevance_scores"
        params: tuple = ()
        if organization_id is not None:
            sql += " WHERE organization_id = ?"
            params = (organization_id,)
        sql += " ORDER BY organization_id, trend_key"
        rows = self._inspect("relevance_scores", sql, params)
        results = []
        for row in rows:
            record = dict(row)
            for column in ("matched_topics", "matched_entities", "matched_geographies"):
                record[column] = _json_list(record[column], column)
            record["explanation"] = json.loads(record["explanation"] or "{}")
            results.append(record)
        return results

    def fetch_alerts(self, organization_id: str | None = None) -> list[dict]:
        sql = "SELECT * FROM entity_alerts"
        params: tuple = ()
        if organization_id is not None:
            sql += " WHERE organization_id = ?"
            params = (organization_id,)
        rows = self._inspect("entity_alerts", sql + " ORDER BY id", params)
        return [dict(row) for row in rows]
