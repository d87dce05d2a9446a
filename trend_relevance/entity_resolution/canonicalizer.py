"""
Entity canonicalization against a per-run alias snapshot.

Resolves raw entity strings ("POTUS", "#BidenAdministration", "joe-biden")
to the canonical form used as a join key everywhere else. The alias table
is owned by an external extraction job; each run loads a bounded top-N
slice of it into an immutable AliasSnapshot and passes that snapshot by
reference into every matching call.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from types import MappingProxyType

from trend_relevance.matching.text import normalize
from trend_relevance.models import AliasEntry

logger = logging.getLogger(__name__)

PASSTHROUGH_CONFIDENCE = 0.5

# Single words that never name an entity on their own
GENERIC_WORDS = frozenset(
    {
        "news",
        "breaking",
        "update",
        "updates",
        "today",
        "yesterday",
        "tomorrow",
        "live",
        "video",
        "watch",
        "just in",
        "report",
        "thread",
        "new",
        "latest",
        "trending",
        "the",
        "this",
        "that",
        "people",
        "everyone",
    }
)


@dataclass(frozen=True)
class ResolvedEntity:
    """Result of resolving one raw name."""

    canonical: str
    entity_type: str
    confidence: float
    method: str  # "canonical", "alias", "passthrough", "invalid"

    @property
    def is_valid(self) -> bool:
        return self.entity_type != "invalid"


def normalize_entity_name(name: str | None) -> str:
    """Normalize a raw entity name; hashtags lose their ``#`` prefix."""
    if not name:
        return ""
    return normalize(name.strip().lstrip("#"))


def is_valid_entity_name(normalized: str) -> bool:
    """Reject names too short, purely numeric or generic to be an entity."""
    if len(normalized) < 2:
        return False
    if normalized.replace(" ", "").isdigit():
        return False
    return normalized not in GENERIC_WORDS


class AliasSnapshot:
    """
    Immutable alias lookup for one run.

    Entries are expected in priority order (usage_count desc, confidence
    desc); when two entries share a raw name the first one wins.
    """

    def __init__(self, entries: Iterable[AliasEntry] = ()):
        by_raw: dict[str, AliasEntry] = {}
        by_canonical: dict[str, AliasEntry] = {}
        aliases: dict[str, list[str]] = {}

        for entry in entries:
            raw_key = normalize_entity_name(entry.raw_name)
            canonical_key = normalize_entity_name(entry.canonical_name)
            if not raw_key or not is_valid_entity_name(canonical_key):
                continue
            if raw_key not in by_raw:
                by_raw[raw_key] = entry
            if canonical_key not in by_canonical:
                by_canonical[canonical_key] = entry
            forms = aliases.setdefault(canonical_key, [])
            if raw_key != canonical_key and raw_key not in forms:
                forms.append(raw_key)

        self._by_raw = MappingProxyType(by_raw)
        self._by_canonical = MappingProxyType(by_canonical)
        self._aliases = MappingProxyType({k: tuple(v) for k, v in aliases.items()})

    def __len__(self) -> int:
        return len(self._by_raw)

    def lookup(self, normalized: str) -> tuple[AliasEntry, str] | None:
        """Find the entry for a normalized name and how it was found."""
        # Canonical forms resolve to themselves before any raw alias is consulted
        entry = self._by_canonical.get(normalized)
        if entry is not None:
            return entry, "canonical"
        entry = self._by_raw.get(normalized)
        if entry is not None:
            # Spell the canonical name the way the canonical index does
            canonical = self._by_canonical[normalize_entity_name(entry.canonical_name)]
            return replace(entry, canonical_name=canonical.canonical_name), "alias"
        return None

    def aliases_for(self, canonical: str) -> tuple[str, ...]:
        """All normalized raw aliases recorded for a canonical entity."""
        return self._aliases.get(normalize_entity_name(canonical), ())

    def resolve(self, name: str) -> ResolvedEntity:
        return resolve(name, self)


EMPTY_SNAPSHOT = AliasSnapshot()


def resolve(name: str | None, snapshot: AliasSnapshot | None = None) -> ResolvedEntity:
    """
    Resolve a raw entity name to its canonical form.

    Steps:
    1. Normalize (lowercase, strip punctuation, hashtags and separators)
    2. Reject invalid names (too short, numeric, generic words)
    3. Look up the snapshot, canonical names first, then raw aliases
    4. On a miss, fall back to the title-cased normalized form

    Resolution is idempotent: resolving a canonical form returns it unchanged.

    Args:
        name: Raw entity text
        snapshot: Alias snapshot for this run (None = no aliases)

    Returns:
        ResolvedEntity with canonical form, type, confidence and method
    """
    normalized = normalize_entity_name(name)

    if not is_valid_entity_name(normalized):
        return ResolvedEntity(
            canonical=normalized, entity_type="invalid", confidence=0.0, method="invalid"
        )

    found = (snapshot or EMPTY_SNAPSHOT).lookup(normalized)
    if found is not None:
        entry, method = found
        return ResolvedEntity(
            canonical=entry.canonical_name,
            entity_type=entry.entity_type,
            confidence=entry.confidence,
            method=method,
        )

    return ResolvedEntity(
        canonical=normalized.title(),
        entity_type="unknown",
        confidence=PASSTHROUGH_CONFIDENCE,
        method="passthrough",
    )
