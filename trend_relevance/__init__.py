"""
Trend Relevance - match trending topics against organization interest profiles.

This package provides:
- Entity canonicalization against a per-run alias snapshot
- Fuzzy, synonym and embedding matching of topics and entities
- Context gating (deny veto, entity-type plausibility, geography)
- Explainable 0-100 relevance scoring with urgency and priority buckets
- Outcome-learning boosts and deduplicated alert emission
- A batch pipeline over a SQLite reference store
"""

__version__ = "0.1.0"

# Re-export commonly used items
from trend_relevance.config import RunConfig, get_relevance_db, load_run_config
from trend_relevance.constants import (
    ALERT_DEDUP_WINDOW_HOURS,
    DEFAULT_FUZZY_THRESHOLD,
    OUTCOME_WINDOW_DAYS,
    WRITE_BATCH_SIZE,
)
from trend_relevance.errors import (
    MalformedEmbedding,
    PartialWriteFailure,
    RelevanceError,
    UpstreamReadFailure,
)

__all__ = [
    "__version__",
    # Config
    "RunConfig",
    "get_relevance_db",
    "load_run_config",
    # Constants
    "ALERT_DEDUP_WINDOW_HOURS",
    "DEFAULT_FUZZY_THRESHOLD",
    "OUTCOME_WINDOW_DAYS",
    "WRITE_BATCH_SIZE",
    # Errors
    "RelevanceError",
    "UpstreamReadFailure",
    "PartialWriteFailure",
    "MalformedEmbedding",
]
