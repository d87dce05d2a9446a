"""
Constants for trend_relevance package.

Centralizes magic numbers and configuration defaults.
"""

# Batch sizes for store writes
WRITE_BATCH_SIZE = 100  # Score upserts / alert inserts per statement batch

# Matching defaults
DEFAULT_FUZZY_THRESHOLD = 0.75  # Minimum similarity for the FUZZY tier
MIN_TOKEN_LENGTH = 3  # Tokens shorter than this are ignored for overlap

# Alias knowledge base
ALIAS_SNAPSHOT_LIMIT = 5000  # Top-N aliases loaded per run

# Time windows
ALERT_DEDUP_WINDOW_HOURS = 4
OUTCOME_WINDOW_DAYS = 7
SCORE_TTL_HOURS = 24
CANDIDATE_LOOKBACK_HOURS = 6

# Storage
MIN_STORE_SCORE = 10  # Scores below this are not persisted (blocked rows always are)
DEFAULT_ALERT_THRESHOLD = 50

# Concurrency
DEFAULT_MAX_WORKERS = 4
