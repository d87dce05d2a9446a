"""
Batch relevance run.

One run loads every input once, scores the full
{organizations} × {candidates} cross product, emits deduplicated alerts
and flushes the output buffers in fixed-size batches:

1. Load organizations, profiles, interest rules, alias snapshot,
   candidates, outcome correlations and recent alert keys
2. Prune expired score rows
3. Score every (organization, candidate) pair (worker pool)
4. Emit alerts in deterministic (organization, candidate) order
5. Upsert scores, insert alerts, log usage (batched; failed batches skipped)

Only failures reading core reference data abort the run.
"""

from __future__ import annotations

import logging
import time
from collections import Counter
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import TypeVar

from tqdm import tqdm

from trend_relevance.alerts.dedup import AlertDeduplicator, AlertKey
from trend_relevance.alerts.emitter import AlertEmitter
from trend_relevance.config import RunConfig, load_run_config
from trend_relevance.constants import CANDIDATE_LOOKBACK_HOURS
from trend_relevance.entity_resolution.canonicalizer import AliasSnapshot
from trend_relevance.errors import PartialWriteFailure, UpstreamReadFailure
from trend_relevance.matching.matcher import Matcher
from trend_relevance.models import (
    AlertRecord,
    Candidate,
    RelevanceScoreRecord,
    RunSummary,
    UsageEntry,
)
from trend_relevance.scoring.engine import OrganizationContext, RelevanceResult, score_relevance
from trend_relevance.scoring.outcome import OutcomeIndex
from trend_relevance.scoring.weights import DEFAULT_WEIGHTS, ScoringWeights
from trend_relevance.store.base import RelevanceStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RunInputs:
    """Everything a run reads, loaded once up front."""

    organizations: list[OrganizationContext]
    candidates: list[Candidate]
    snapshot: AliasSnapshot
    outcomes: OutcomeIndex | None = None
    recent_alert_keys: list[AlertKey] = field(default_factory=list)


@dataclass
class ScoredPair:
    context: OrganizationContext
    candidate: Candidate
    result: RelevanceResult


class RelevancePipeline:
    """
    Runs one bounded relevance batch against a store.

    Example:
        >>> with SQLiteRelevanceStore(get_relevance_db()) as store:
        ...     summary = RelevancePipeline(store).run()
        >>> summary.alerts_generated
        3
    """

    def __init__(
        self,
        store: RelevanceStore,
        config: RunConfig | None = None,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
        enable_outcomes: bool = True,
        execute: bool = True,
        show_progress: bool = False,
    ):
        self.store = store
        self.config = config or load_run_config()
        self.weights = weights
        self.enable_outcomes = enable_outcomes
        self.execute = execute
        self.show_progress = show_progress

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_inputs(self, now: datetime) -> RunInputs:
        """
        Read all run inputs from the store.

        Raises:
            UpstreamReadFailure: Core reference data could not be read
        """
        organizations = self.store.load_organizations()
        profiles = self.store.load_profiles()
        topics = self.store.load_interest_topics()
        entities = self.store.load_interest_entities()
        aliases = self.store.load_alias_snapshot(self.config.alias_snapshot_limit)
        candidates = self.store.load_candidates(
            since=now - timedelta(hours=CANDIDATE_LOOKBACK_HOURS)
        )
        recent_keys = self.store.load_recent_alert_keys(
            since=now - timedelta(hours=self.config.dedup_window_hours)
        )

        contexts = []
        for org in organizations:
            context = OrganizationContext(
                organization=org,
                profile=profiles.get(org.id),
                topics=[t for t in topics if t.organization_id == org.id],
                entities=[e for e in entities if e.organization_id == org.id],
            )
            if not context.is_configured:
                logger.debug(f"Organization {org.id} has no profile or interest rules")
            contexts.append(context)

        outcomes = None
        if self.enable_outcomes:
            try:
                correlations = self.store.load_outcome_correlations(
                    since=now - timedelta(days=self.config.outcome_window_days)
                )
            except UpstreamReadFailure as e:
                # Outcome correlations are advisory
                logger.warning(f"Outcome learning disabled for this run: {e}")
            else:
                outcomes = OutcomeIndex(
                    correlations, now, self.config.outcome_window_days, self.weights
                )

        logger.info(
            f"Loaded {len(contexts)} organizations, {len(candidates)} candidates, "
            f"{len(aliases)} aliases, {len(recent_keys)} recent alert keys"
        )
        return RunInputs(
            organizations=contexts,
            candidates=candidates,
            snapshot=AliasSnapshot(aliases),
            outcomes=outcomes,
            recent_alert_keys=recent_keys,
        )

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    def score_all(self, inputs: RunInputs) -> list[ScoredPair]:
        """
        Score the cross product of configured organizations and candidates.

        Pairs are independent, so they run in a worker pool; results come back
        in (organization, candidate) order regardless of completion order.
        """
        matcher = Matcher(inputs.snapshot, fuzzy_threshold=self.config.fuzzy_threshold)
        pairs = [
            (context, candidate)
            for context in inputs.organizations
            if context.is_configured
            for candidate in inputs.candidates
        ]
        if not pairs:
            return []

        def score_pair(pair: tuple[OrganizationContext, Candidate]) -> ScoredPair | None:
            context, candidate = pair
            try:
                result = score_relevance(
                    context, candidate, matcher, self.weights, outcomes=inputs.outcomes
                )
            except Exception as e:
                logger.warning(
                    f"Scoring failed for org {context.organization_id} / "
                    f"candidate {candidate.id}: {e}",
                    extra={"org_id": context.organization_id, "candidate_id": candidate.id},
                )
                return None
            return ScoredPair(context, candidate, result)

        workers = max(1, self.config.max_workers)
        if workers == 1:
            results = [score_pair(pair) for pair in tqdm(pairs, disable=not self.show_progress)]
        else:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                results = list(
                    tqdm(
                        executor.map(score_pair, pairs),
                        total=len(pairs),
                        desc="Scoring",
                        disable=not self.show_progress,
                    )
                )

        return [scored for scored in results if scored is not None]

    def emit_alerts(
        self, scored: Sequence[ScoredPair], inputs: RunInputs, now: datetime
    ) -> list[AlertRecord]:
        """Emit alerts sequentially so dedup decisions are deterministic."""
        emitter = AlertEmitter(AlertDeduplicator(inputs.recent_alert_keys), inputs.snapshot)
        alerts = []
        for pair in scored:
            alert = emitter.maybe_emit(pair.context.organization, pair.result, pair.candidate, now)
            if alert is not None:
                alerts.append(alert)
        if emitter.suppressed:
            logger.info(f"Suppressed {emitter.suppressed} duplicate alerts")
        return alerts

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def _flush(
        self,
        target: str,
        items: Sequence[T],
        write: Callable[..., int],
    ) -> tuple[int, int]:
        """
        Write items in fixed-size batches.

        Returns:
            Tuple of (rows written, batches failed)
        """
        batch_size = max(1, self.config.write_batch_size)
        if not self.execute:
            logger.info(f"Dry run: would write {len(items)} {target}")
            return len(items), 0

        written = 0
        failed = 0
        for batch_index, start in enumerate(range(0, len(items), batch_size)):
            batch = list(items[start : start + batch_size])
            try:
                written += write(batch, batch_index=batch_index)
            except PartialWriteFailure as e:
                failed += 1
                logger.error(str(e), extra={"batch": batch_index, "count": len(batch)})
        return written, failed

    def _prune(self, now: datetime) -> int:
        if not self.execute:
            return 0
        try:
            removed = self.store.prune_expired_scores(now)
        except PartialWriteFailure as e:
            logger.error(str(e))
            return -1
        if removed:
            logger.info(f"Pruned {removed} expired score rows")
        return removed

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self, now: datetime | None = None) -> RunSummary:
        """
        Execute one relevance run.

        Args:
            now: Reference time (defaults to the current UTC time)

        Returns:
            RunSummary counters

        Raises:
            UpstreamReadFailure: Core reference data could not be read
        """
        now = now or datetime.now(timezone.utc)
        start = time.time()
        summary = RunSummary()

        inputs = self.load_inputs(now)
        summary.organizations_processed = len(inputs.organizations)

        if self._prune(now) < 0:
            summary.failed_batches += 1

        scored = self.score_all(inputs)
        summary.candidates_scored = len(scored)
        summary.blocked_count = sum(1 for pair in scored if pair.result.is_blocked)
        summary.high_priority_count = sum(1 for pair in scored if pair.result.is_high_priority)

        records: list[RelevanceScoreRecord] = [
            pair.result.to_record(now, self.config.score_ttl_hours)
            for pair in scored
            if pair.result.is_blocked
            or pair.result.relevance_score >= self.config.min_store_score
        ]
        alerts = self.emit_alerts(scored, inputs, now)

        written, failed = self._flush("score records", records, self.store.upsert_scores)
        summary.scores_created = written
        summary.failed_batches += failed

        written, failed = self._flush("alerts", alerts, self.store.insert_alerts)
        summary.alerts_generated = written
        summary.failed_batches += failed

        summary.failed_batches += self._log_usage(inputs, scored, records, alerts, now)

        duration_ms = int((time.time() - start) * 1000)
        logger.info(
            f"Run complete: {summary.organizations_processed} orgs, "
            f"{summary.candidates_scored} pairs scored, {summary.scores_created} scores, "
            f"{summary.high_priority_count} high priority, {summary.alerts_generated} alerts",
            extra={"count": summary.candidates_scored, "duration_ms": duration_ms},
        )
        return summary

    def _log_usage(
        self,
        inputs: RunInputs,
        scored: Sequence[ScoredPair],
        records: Sequence[RelevanceScoreRecord],
        alerts: Sequence[AlertRecord],
        now: datetime,
    ) -> int:
        """Write one usage audit entry per organization; returns failed batch count."""
        pairs_by_org = Counter(pair.context.organization_id for pair in scored)
        scores_by_org = Counter(record.organization_id for record in records)
        alerts_by_org = Counter(alert.organization_id for alert in alerts)
        entries = [
            UsageEntry(
                organization_id=context.organization_id,
                run_at=now,
                candidates_scored=pairs_by_org[context.organization_id],
                scores_created=scores_by_org[context.organization_id],
                alerts_generated=alerts_by_org[context.organization_id],
            )
            for context in inputs.organizations
        ]
        if not self.execute or not entries:
            return 0
        try:
            self.store.log_usage(entries)
        except PartialWriteFailure as e:
            logger.error(str(e))
            return 1
        return 0


def run_relevance(
    store: RelevanceStore,
    config: RunConfig | None = None,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    now: datetime | None = None,
) -> RunSummary:
    """Convenience wrapper: one executed run with default options."""
    return RelevancePipeline(store, config=config, weights=weights).run(now)
