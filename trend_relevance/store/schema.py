"""
SQLite schema for the relevance reference store.

Creates the input tables (organizations, profiles, interest rules, aliases,
candidates, outcome correlations) and the output tables (relevance scores,
alerts, usage log). Statements are idempotent.
"""

import logging
import sqlite3
from typing import List, Optional

logger = logging.getLogger(__name__)

TABLES: List[str] = [
    """
    CREATE TABLE IF NOT EXISTS organizations (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        is_active INTEGER NOT NULL DEFAULT 1,
        alert_threshold INTEGER NOT NULL DEFAULT 50
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS organization_profiles (
        organization_id TEXT PRIMARY KEY REFERENCES organizations(id),
        mission_summary TEXT DEFAULT '',
        focus_areas TEXT DEFAULT '[]',
        key_issues TEXT DEFAULT '[]',
        priority_lanes TEXT DEFAULT '[]',
        geographies TEXT DEFAULT '[]',
        stakeholders TEXT DEFAULT '[]',
        allies TEXT DEFAULT '[]',
        opponents TEXT DEFAULT '[]',
        embedding TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS interest_topics (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        organization_id TEXT NOT NULL REFERENCES organizations(id),
        topic TEXT NOT NULL,
        weight REAL NOT NULL DEFAULT 1.0,
        source TEXT DEFAULT 'manual'
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS interest_entities (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        organization_id TEXT NOT NULL REFERENCES organizations(id),
        entity_name TEXT NOT NULL,
        rule_type TEXT NOT NULL CHECK (rule_type IN ('allow', 'deny')),
        reason TEXT DEFAULT '',
        entity_type TEXT,
        context_keywords TEXT DEFAULT '[]'
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS entity_aliases (
        raw_name TEXT PRIMARY KEY,
        canonical_name TEXT NOT NULL,
        entity_type TEXT DEFAULT 'unknown',
        confidence REAL DEFAULT 1.0,
        usage_count INTEGER DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS trend_candidates (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL,
        description TEXT DEFAULT '',
        velocity REAL DEFAULT 0,
        is_breaking INTEGER DEFAULT 0,
        is_breakthrough INTEGER DEFAULT 0,
        source_count INTEGER DEFAULT 0,
        current_1h INTEGER DEFAULT 0,
        current_6h INTEGER DEFAULT 0,
        current_24h INTEGER DEFAULT 0,
        sentiment_change REAL DEFAULT 0,
        entities TEXT DEFAULT '[]',
        sample_sources TEXT DEFAULT '[]',
        embedding TEXT,
        detected_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS outcome_correlations (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        organization_id TEXT NOT NULL,
        trend_key TEXT NOT NULL,
        learning_signal TEXT NOT NULL,
        should_boost INTEGER DEFAULT 0,
        performance_delta REAL DEFAULT 0,
        response_rate REAL DEFAULT 0,
        computed_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS relevance_scores (
        organization_id TEXT NOT NULL,
        trend_key TEXT NOT NULL,
        candidate_id TEXT NOT NULL,
        relevance_score INTEGER NOT NULL,
        urgency_score INTEGER NOT NULL,
        priority_bucket TEXT NOT NULL,
        is_blocked INTEGER NOT NULL DEFAULT 0,
        is_allowlisted INTEGER NOT NULL DEFAULT 0,
        matched_topics TEXT DEFAULT '[]',
        matched_entities TEXT DEFAULT '[]',
        matched_geographies TEXT DEFAULT '[]',
        explanation TEXT DEFAULT '{}',
        computed_at TEXT NOT NULL,
        expires_at TEXT NOT NULL,
        PRIMARY KEY (organization_id, trend_key)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS entity_alerts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        organization_id TEXT NOT NULL,
        entity_name TEXT NOT NULL,
        alert_type TEXT NOT NULL,
        severity TEXT NOT NULL,
        actionable_score INTEGER NOT NULL,
        is_actionable INTEGER NOT NULL DEFAULT 0,
        velocity REAL DEFAULT 0,
        current_mentions INTEGER DEFAULT 0,
        sample_sources TEXT DEFAULT '[]',
        suggested_action TEXT DEFAULT '',
        candidate_id TEXT,
        triggered_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS usage_log (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        organization_id TEXT NOT NULL,
        run_at TEXT NOT NULL,
        candidates_scored INTEGER DEFAULT 0,
        scores_created INTEGER DEFAULT 0,
        alerts_generated INTEGER DEFAULT 0
    )
    """,
]

INDEXES: List[str] = [
    "CREATE INDEX IF NOT EXISTS idx_scores_expires ON relevance_scores(expires_at)",
    "CREATE INDEX IF NOT EXISTS idx_alerts_triggered ON entity_alerts(triggered_at)",
    "CREATE INDEX IF NOT EXISTS idx_candidates_detected ON trend_candidates(detected_at)",
    "CREATE INDEX IF NOT EXISTS idx_outcomes_org ON outcome_correlations(organization_id)",
]


def ensure_schema(conn: sqlite3.Connection, log: Optional[logging.Logger] = None) -> None:
    """
    Create all tables and indexes if they do not exist.

    Args:
        conn: Open SQLite connection
        log: Logger instance (defaults to module logger)
    """
    if log is None:
        log = logger

    with conn:
        for statement in TABLES + INDEXES:
            conn.execute(statement)
    log.info(f"✓ Schema ready ({len(TABLES)} tables, {len(INDEXES)} indexes)")
