"""
Configuration management for trend_relevance.

Loads environment variables and provides configuration defaults.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from trend_relevance.constants import (
    ALERT_DEDUP_WINDOW_HOURS,
    ALIAS_SNAPSHOT_LIMIT,
    DEFAULT_FUZZY_THRESHOLD,
    DEFAULT_MAX_WORKERS,
    MIN_STORE_SCORE,
    OUTCOME_WINDOW_DAYS,
    SCORE_TTL_HOURS,
    WRITE_BATCH_SIZE,
)

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Invalid float value for {name}: {value}")
        return default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Invalid integer value for {name}: {value}")
        return default


# Data paths
def get_data_dir() -> Path:
    """Get data directory path (project root / data)."""
    project_root = Path(__file__).parent.parent
    return project_root / "data"


def get_relevance_db() -> Path:
    """Get path to the relevance SQLite database."""
    override = os.getenv("RELEVANCE_DB_PATH")
    if override:
        return Path(override)
    cwd_db = Path("data/relevance.db")
    if cwd_db.exists():
        return cwd_db
    return get_data_dir() / "relevance.db"


# Matching
def get_fuzzy_threshold() -> float:
    """Get minimum similarity accepted by the fuzzy match tier."""
    value = _env_float("FUZZY_MATCH_THRESHOLD", DEFAULT_FUZZY_THRESHOLD)
    if not 0.0 < value <= 1.0:
        logger.warning(f"FUZZY_MATCH_THRESHOLD out of range: {value}")
        return DEFAULT_FUZZY_THRESHOLD
    return value


# Windows
def get_dedup_window_hours() -> float:
    """Get the rolling alert deduplication window in hours."""
    return _env_float("ALERT_DEDUP_WINDOW_HOURS", ALERT_DEDUP_WINDOW_HOURS)


def get_outcome_window_days() -> int:
    """Get the trailing window for outcome correlations in days."""
    return _env_int("OUTCOME_WINDOW_DAYS", OUTCOME_WINDOW_DAYS)


def get_score_ttl_hours() -> int:
    """Get how long an upserted relevance score stays valid."""
    return _env_int("SCORE_TTL_HOURS", SCORE_TTL_HOURS)


# Batching / concurrency
def get_write_batch_size() -> int:
    """Get the number of rows written per batch."""
    return max(1, _env_int("WRITE_BATCH_SIZE", WRITE_BATCH_SIZE))


def get_alias_snapshot_limit() -> int:
    """Get the number of aliases loaded into the per-run snapshot."""
    return _env_int("ALIAS_SNAPSHOT_LIMIT", ALIAS_SNAPSHOT_LIMIT)


def get_max_workers() -> int:
    """Get the worker count used to score (org, candidate) pairs."""
    return max(1, _env_int("RELEVANCE_WORKERS", DEFAULT_MAX_WORKERS))


def get_min_store_score() -> int:
    """Get the minimum relevance score persisted to the store."""
    return _env_int("MIN_STORE_SCORE", MIN_STORE_SCORE)


@dataclass(frozen=True)
class RunConfig:
    """Settings for one batch run, resolved from the environment."""

    fuzzy_threshold: float = DEFAULT_FUZZY_THRESHOLD
    dedup_window_hours: float = ALERT_DEDUP_WINDOW_HOURS
    outcome_window_days: int = OUTCOME_WINDOW_DAYS
    score_ttl_hours: int = SCORE_TTL_HOURS
    write_batch_size: int = WRITE_BATCH_SIZE
    alias_snapshot_limit: int = ALIAS_SNAPSHOT_LIMIT
    max_workers: int = DEFAULT_MAX_WORKERS
    min_store_score: int = MIN_STORE_SCORE


def load_run_config() -> RunConfig:
    """Build a RunConfig from environment overrides and defaults."""
    return RunConfig(
        fuzzy_threshold=get_fuzzy_threshold(),
        dedup_window_hours=get_dedup_window_hours(),
        outcome_window_days=get_outcome_window_days(),
        score_ttl_hours=get_score_ttl_hours(),
        write_batch_size=get_write_batch_size(),
        alias_snapshot_limit=get_alias_snapshot_limit(),
        max_workers=get_max_workers(),
        min_store_score=get_min_store_score(),
    )
