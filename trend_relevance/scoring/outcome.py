"""
Outcome feedback: boost trends like the ones that paid off before.

Outcome correlations are computed externally (trend → subsequent
performance change). This module only selects, per (organization,
normalized trend key), the single boost-eligible record with the largest
performance_delta inside the trailing window and converts its learning
signal into bonus points. One record per key avoids double counting.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta

from trend_relevance.constants import OUTCOME_WINDOW_DAYS
from trend_relevance.matching.text import normalize
from trend_relevance.models import LearningSignal, OutcomeCorrelation
from trend_relevance.scoring.weights import DEFAULT_WEIGHTS, ScoringWeights

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OutcomeBoost:
    points: int
    learning_signal: str
    performance_delta: float
    response_rate: float

    def to_dict(self) -> dict:
        return {
            "learning_signal": self.learning_signal,
            "performance_delta": round(self.performance_delta, 4),
            "response_rate": round(self.response_rate, 4),
            "points": self.points,
        }


def learning_signal_points(signal: str, weights: ScoringWeights = DEFAULT_WEIGHTS) -> int:
    """Bonus points for a learning signal (0 for anything not positive)."""
    if signal == LearningSignal.STRONG_POSITIVE:
        return weights.outcome_strong_positive
    if signal == LearningSignal.POSITIVE:
        return weights.outcome_positive
    return 0


def _eligible(
    correlation: OutcomeCorrelation,
    now: datetime,
    window_days: int,
    weights: ScoringWeights,
) -> bool:
    if not correlation.should_boost:
        return False
    if learning_signal_points(correlation.learning_signal, weights) <= 0:
        return False
    return now - timedelta(days=window_days) <= correlation.computed_at <= now


def _best(records: Iterable[OutcomeCorrelation]) -> OutcomeCorrelation | None:
    best = None
    for record in records:
        # Ties go to the most recent record
        if best is None or (record.performance_delta, record.computed_at) > (
            best.performance_delta,
            best.computed_at,
        ):
            best = record
    return best


def _to_boost(record: OutcomeCorrelation, weights: ScoringWeights) -> OutcomeBoost:
    return OutcomeBoost(
        points=learning_signal_points(record.learning_signal, weights),
        learning_signal=str(LearningSignal(record.learning_signal).value),
        performance_delta=record.performance_delta,
        response_rate=record.response_rate,
    )


def select_outcome_boost(
    correlations: Iterable[OutcomeCorrelation],
    organization_id: str,
    trend_key: str,
    now: datetime,
    window_days: int = OUTCOME_WINDOW_DAYS,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> OutcomeBoost | None:
    """
    Select the outcome boost for one (organization, trend) pair.

    Args:
        correlations: Outcome correlation records (any organization)
        organization_id: Organization being scored
        trend_key: Trend key of the candidate (normalized here)
        now: Reference time for the trailing window
        window_days: Trailing window length in days
        weights: Scoring weights (bonus per learning signal)

    Returns:
        OutcomeBoost, or None when no eligible record exists
    """
    key = normalize(trend_key)
    best = _best(
        record
        for record in correlations
        if record.organization_id == organization_id
        and normalize(record.trend_key) == key
        and _eligible(record, now, window_days, weights)
    )
    return _to_boost(best, weights) if best else None


class OutcomeIndex:
    """
    Outcome boosts for one run, indexed by (organization, trend key).

    Built once per run from every correlation loaded; lookups are O(1).
    """

    def __init__(
        self,
        correlations: Iterable[OutcomeCorrelation],
        now: datetime,
        window_days: int = OUTCOME_WINDOW_DAYS,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
    ):
        grouped: dict[tuple[str, str], list[OutcomeCorrelation]] = {}
        for record in correlations:
            if _eligible(record, now, window_days, weights):
                key = (record.organization_id, normalize(record.trend_key))
                grouped.setdefault(key, []).append(record)

        self._boosts = {key: _to_boost(_best(records), weights) for key, records in grouped.items()}
        logger.debug(f"Outcome index built with {len(self._boosts)} boostable trends")

    def __len__(self) -> int:
        return len(self._boosts)

    def lookup(self, organization_id: str, trend_key: str) -> OutcomeBoost | None:
        return self._boosts.get((organization_id, normalize(trend_key)))
