"""
Entity resolution and contextual disambiguation.

- Canonicalizer: raw names → canonical entities via a per-run alias snapshot
- Context Gate: deny veto, entity-type plausibility, geography corroboration
"""

from trend_relevance.entity_resolution.canonicalizer import (
    AliasSnapshot,
    ResolvedEntity,
    normalize_entity_name,
    resolve,
)
from trend_relevance.entity_resolution.context_gate import (
    GateResult,
    find_denied_entity,
    gate_entity_match,
    match_geographies,
    validate_entity_type,
)

__all__ = [
    # Canonicalizer
    "AliasSnapshot",
    "ResolvedEntity",
    "normalize_entity_name",
    "resolve",
    # Context gate
    "GateResult",
    "find_denied_entity",
    "gate_entity_match",
    "match_geographies",
    "validate_entity_type",
]
