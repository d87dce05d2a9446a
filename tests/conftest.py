"""
Pytest configuration and shared fixtures for trend_relevance tests.
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from tests.factories import insert_candidate
from trend_relevance.config import RunConfig
from trend_relevance.entity_resolution.canonicalizer import AliasSnapshot
from trend_relevance.models import AliasEntry
from trend_relevance.store.sqlite_store import SQLiteRelevanceStore

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)

ALIASES = [
    AliasEntry("potus", "Joe Biden", "person", 0.95, 120),
    AliasEntry("biden", "Joe Biden", "person", 0.9, 100),
    AliasEntry("ice", "Immigration and Customs Enforcement", "agency", 0.9, 60),
    AliasEntry("aoc", "Alexandria Ocasio-Cortez", "person", 0.9, 40),
    AliasEntry("epa", "Environmental Protection Agency", "agency", 0.95, 30),
]


@pytest.fixture
def now():
    """Fixed reference time for a run."""
    return NOW


@pytest.fixture
def alias_snapshot():
    """Small alias snapshot in usage order."""
    return AliasSnapshot(ALIASES)


@pytest.fixture
def run_config():
    """Run settings independent of the environment."""
    return RunConfig(max_workers=1, write_batch_size=100)


@pytest.fixture
def store(tmp_path):
    """Empty SQLite store in a temporary directory."""
    db = SQLiteRelevanceStore(tmp_path / "relevance.db")
    yield db
    db.close()


@pytest.fixture
def seeded_store(store, now):
    """
    Store with one climate organization and four fresh candidates.

    - c-1, c-2: climate trends (same alert key)
    - c-3: mentions a denied entity
    - c-4: unrelated
    """
    conn = store.connection
    with conn:
        conn.execute(
            "INSERT INTO organizations (id, name, is_active, alert_threshold) VALUES (?, ?, 1, 40)",
            ("org-1", "Green Future Alliance"),
        )
        conn.execute(
            "INSERT INTO organizations (id, name, is_active, alert_threshold) VALUES (?, ?, 0, 40)",
            ("org-inactive", "Dormant Org"),
        )
        conn.execute(
            "INSERT INTO organization_profiles (organization_id, mission_summary, geographies) "
            "VALUES (?, ?, ?)",
            ("org-1", "Climate advocacy", json.dumps([])),
        )
        conn.execute(
            "INSERT INTO interest_topics (organization_id, topic, weight) VALUES (?, ?, ?)",
            ("org-1", "climate", 0.8),
        )
        conn.execute(
            "INSERT INTO interest_entities (organization_id, entity_name, rule_type, reason) "
            "VALUES (?, ?, ?, ?)",
            ("org-1", "Acme Corp", "deny", "Donor conflict"),
        )
        conn.executemany(
            "INSERT INTO entity_aliases (raw_name, canonical_name, entity_type, confidence, "
            "usage_count) VALUES (?, ?, ?, ?, ?)",
            [
                (a.raw_name, a.canonical_name, a.entity_type, a.confidence, a.usage_count)
                for a in ALIASES
            ],
        )

    fresh = now - timedelta(hours=1)
    insert_candidate(
        store, "c-1", "Climate Change Summit Draws Record Crowds", fresh, velocity=60
    )
    insert_candidate(store, "c-2", "Climate protests spread worldwide", fresh, velocity=80)
    insert_candidate(store, "c-3", "Acme Corp Faces Investigation", fresh, velocity=90)
    insert_candidate(store, "c-4", "Celebrity wedding photos", fresh, velocity=300)
    return store
