"""Reference store: reads organization/trend inputs, writes scores and alerts."""

from trend_relevance.store.base import RelevanceStore
from trend_relevance.store.schema import ensure_schema
from trend_relevance.store.sqlite_store import SQLiteRelevanceStore

__all__ = [
    "RelevanceStore",
    "SQLiteRelevanceStore",
    "ensure_schema",
]
