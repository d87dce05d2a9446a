"""
Tiered matching of topics and entities against candidate text.

Three acceptance tiers, each carrying its own downstream confidence:

- EXACT (1.0): the normalized phrase occurs in the text
- ALIAS (0.95): an alias-snapshot or synonym form occurs in the text
- FUZZY (score): token overlap / per-token similarity above the threshold
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from trend_relevance.constants import DEFAULT_FUZZY_THRESHOLD
from trend_relevance.entity_resolution.canonicalizer import (
    EMPTY_SNAPSHOT,
    AliasSnapshot,
    normalize_entity_name,
)
from trend_relevance.matching.synonyms import expand_with_synonyms
from trend_relevance.matching.text import (
    best_token_similarity,
    fuzzy_token_overlap,
    normalize,
    phrase_in,
    similarity,
)

logger = logging.getLogger(__name__)


class MatchTier(str, Enum):
    EXACT = "exact"
    ALIAS = "alias"
    FUZZY = "fuzzy"
    NONE = "none"


TIER_SCORES = {
    MatchTier.EXACT: 1.0,
    MatchTier.ALIAS: 0.95,
}


@dataclass(frozen=True)
class MatchResult:
    """Outcome of matching one term against one text."""

    matched: bool
    tier: MatchTier
    score: float
    matched_term: str | None = None

    @classmethod
    def no_match(cls) -> MatchResult:
        return cls(matched=False, tier=MatchTier.NONE, score=0.0)

    @classmethod
    def exact(cls, term: str) -> MatchResult:
        return cls(True, MatchTier.EXACT, TIER_SCORES[MatchTier.EXACT], term)

    @classmethod
    def alias(cls, term: str) -> MatchResult:
        return cls(True, MatchTier.ALIAS, TIER_SCORES[MatchTier.ALIAS], term)


def fuzzy_score(term: str, text: str) -> float:
    """Best of token-set overlap and mean per-token similarity."""
    return max(fuzzy_token_overlap(term, text), best_token_similarity(term, text))


class Matcher:
    """
    Matches interest topics and entities against candidate text.

    Example:
        >>> matcher = Matcher(snapshot, fuzzy_threshold=0.75)
        >>> matcher.match_topic("climate", "Climate Change Summit Draws Record Crowds")
        MatchResult(matched=True, tier=<MatchTier.EXACT: 'exact'>, score=1.0, ...)
    """

    def __init__(
        self,
        snapshot: AliasSnapshot | None = None,
        fuzzy_threshold: float = DEFAULT_FUZZY_THRESHOLD,
        use_synonyms: bool = True,
    ):
        self.snapshot = snapshot or EMPTY_SNAPSHOT
        self.fuzzy_threshold = fuzzy_threshold
        self.use_synonyms = use_synonyms

    def match_topic(self, topic: str, text: str) -> MatchResult:
        """
        Match an interest topic against candidate text.

        Args:
            topic: Interest topic ("climate", "gun control")
            text: Candidate title and description

        Returns:
            MatchResult for the best tier reached
        """
        norm_topic = normalize(topic)
        if not norm_topic or not normalize(text):
            return MatchResult.no_match()

        if phrase_in(norm_topic, text):
            return MatchResult.exact(norm_topic)

        if self.use_synonyms:
            for related in expand_with_synonyms(norm_topic)[1:]:
                if phrase_in(related, text):
                    return MatchResult.alias(related)

        score = fuzzy_score(norm_topic, text)
        if score >= self.fuzzy_threshold:
            return MatchResult(True, MatchTier.FUZZY, score, norm_topic)

        return MatchResult.no_match()

    def match_entity(
        self,
        entity: str,
        text: str,
        extracted_entities: Sequence[str] = (),
    ) -> MatchResult:
        """
        Match a named entity against candidate text and its extracted entities.

        The alias tier covers every raw alias the snapshot records for the
        entity's canonical form, plus extracted entities that resolve to the
        same canonical form.

        Args:
            entity: Entity name from an interest rule or profile list
            text: Candidate title and description
            extracted_entities: Entity names extracted upstream from the candidate

        Returns:
            MatchResult for the best tier reached
        """
        norm_entity = normalize_entity_name(entity)
        if not norm_entity:
            return MatchResult.no_match()

        extracted = [normalize_entity_name(name) for name in extracted_entities]
        extracted = [name for name in extracted if name]

        if phrase_in(norm_entity, text) or norm_entity in extracted:
            return MatchResult.exact(norm_entity)

        canonical = self.snapshot.resolve(norm_entity).canonical
        canonical_key = normalize_entity_name(canonical)
        forms = [canonical_key, *self.snapshot.aliases_for(canonical)]
        for form in forms:
            if form and form != norm_entity and (phrase_in(form, text) or form in extracted):
                return MatchResult.alias(form)
        for name in extracted:
            if normalize_entity_name(self.snapshot.resolve(name).canonical) == canonical_key:
                return MatchResult.alias(name)

        best = fuzzy_score(norm_entity, text)
        for name in extracted:
            best = max(best, similarity(norm_entity, name))
        if best >= self.fuzzy_threshold:
            return MatchResult(True, MatchTier.FUZZY, best, norm_entity)

        return MatchResult.no_match()
