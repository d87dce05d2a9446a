"""
Context Gate: is a textual entity match plausibly about the intended entity?

A raw string hit is not enough. "Bill" may be a piece of legislation or a
person, "ICE" an agency or frozen water. The gate runs in three layers:

1. Deny check (hard veto, evaluated before anything else)
2. Entity-type plausibility from expected / exclude vocabularies
3. Geography corroboration (lowers confidence, never rejects)

The gate produces a confidence in [0, 1]; only exclusions invalidate.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from trend_relevance.matching.text import phrase_in, text_contains
from trend_relevance.models import InterestEntity, RuleType

logger = logging.getLogger(__name__)

# Confidence levels
EXCLUDED_CONFIDENCE = 0.2
CORROBORATED_CONFIDENCE = 0.9
DEFAULT_CONFIDENCE = 0.6
GEOGRAPHY_MISS_MULTIPLIER = 0.8
MIN_ENTITY_CONFIDENCE = 0.4


@dataclass(frozen=True)
class TypeContext:
    """Terms that corroborate (expected) or contradict (exclude) an entity type."""

    expected: tuple[str, ...]
    exclude: tuple[str, ...]


ENTITY_TYPE_CONTEXT: dict[str, TypeContext] = {
    "person": TypeContext(
        expected=(
            "senator",
            "sen",
            "representative",
            "rep",
            "congressman",
            "congresswoman",
            "governor",
            "president",
            "secretary",
            "mayor",
            "candidate",
            "campaign",
            "said",
            "told",
            "speech",
        ),
        exclude=("album", "song", "movie", "film", "character", "brand", "restaurant"),
    ),
    "organization": TypeContext(
        expected=(
            "group",
            "organization",
            "coalition",
            "union",
            "association",
            "company",
            "nonprofit",
            "foundation",
            "spokesperson",
            "ceo",
        ),
        exclude=("album", "song", "movie", "character"),
    ),
    "bill": TypeContext(
        expected=(
            "bill",
            "act",
            "legislation",
            "vote",
            "house",
            "senate",
            "congress",
            "law",
            "passed",
            "introduced",
            "amendment",
            "sponsor",
        ),
        exclude=("dollar bill", "phone bill", "billing", "billboard", "electric bill"),
    ),
    "committee": TypeContext(
        expected=(
            "hearing",
            "chair",
            "chairman",
            "chairwoman",
            "subpoena",
            "testimony",
            "testify",
            "oversight",
            "investigation",
            "senate",
            "house",
        ),
        exclude=("olympic", "organizing committee", "prom"),
    ),
    "agency": TypeContext(
        expected=(
            "federal",
            "department",
            "administration",
            "regulation",
            "rule",
            "director",
            "agency",
            "enforcement",
            "agents",
        ),
        exclude=(
            "talent agency",
            "travel agency",
            "ad agency",
            "advertising agency",
            "real estate",
            "ice cream",
            "ice skating",
            "hockey",
        ),
    ),
}


@dataclass
class GateResult:
    """Validation result for one entity match."""

    is_valid: bool
    confidence: float
    reasons: list[str] = field(default_factory=list)

    def accepts(self, min_confidence: float = MIN_ENTITY_CONFIDENCE) -> bool:
        return self.is_valid and self.confidence >= min_confidence


def find_denied_entity(
    rules: Sequence[InterestEntity],
    text: str,
    extracted_entities: Sequence[str] = (),
) -> InterestEntity | None:
    """
    Return the first deny rule whose entity textually matches the candidate.

    A match is normalized containment in either direction against the
    candidate text or any upstream-extracted entity. Empty names never match.
    """
    for rule in rules:
        if rule.rule_type is not RuleType.DENY:
            continue
        if text_contains(rule.entity_name, text):
            return rule
        if any(text_contains(rule.entity_name, name) for name in extracted_entities):
            return rule
    return None


def validate_entity_type(
    entity_type: str | None,
    text: str,
    context_keywords: Sequence[str] = (),
) -> GateResult:
    """
    Check that the surrounding text fits the entity's declared type.

    Args:
        entity_type: person / organization / bill / committee / agency (others pass)
        text: Candidate text
        context_keywords: User-supplied keywords that corroborate the entity

    Returns:
        GateResult with confidence 0.2 (excluded), 0.9 (corroborated) or 0.6
    """
    context = ENTITY_TYPE_CONTEXT.get((entity_type or "").lower())

    if context is not None:
        for term in context.exclude:
            if phrase_in(term, text):
                return GateResult(False, EXCLUDED_CONFIDENCE, [f"excluded by '{term}'"])

    for keyword in context_keywords:
        if phrase_in(keyword, text):
            return GateResult(True, CORROBORATED_CONFIDENCE, [f"context keyword '{keyword}'"])

    if context is None:
        return GateResult(True, DEFAULT_CONFIDENCE)

    for term in context.expected:
        if phrase_in(term, text):
            return GateResult(True, CORROBORATED_CONFIDENCE, [f"expected term '{term}'"])

    return GateResult(True, DEFAULT_CONFIDENCE)


def match_geographies(geographies: Sequence[str], text: str) -> list[str]:
    """Declared geographies that occur in the text, in declaration order."""
    return [geo for geo in geographies if phrase_in(geo, text)]


def gate_entity_match(
    entity_type: str | None,
    text: str,
    context_keywords: Sequence[str] = (),
    geographies: Sequence[str] = (),
    matched_geographies: Sequence[str] | None = None,
) -> GateResult:
    """
    Run the type gate and the geography gate for one entity match.

    Args:
        entity_type: Declared or resolved entity type
        text: Candidate text
        context_keywords: User-supplied corroborating keywords
        geographies: Organization's declared geographies
        matched_geographies: Precomputed geography hits (computed when None)

    Returns:
        GateResult; a geography miss multiplies confidence by 0.8
    """
    result = validate_entity_type(entity_type, text, context_keywords)
    if not result.is_valid or not geographies:
        return result

    if matched_geographies is None:
        matched_geographies = match_geographies(geographies, text)
    if not matched_geographies:
        result.confidence *= GEOGRAPHY_MISS_MULTIPLIER
        result.reasons.append("declared geography not mentioned")
    return result
