"""
Domain synonym vocabulary.

A fixed topic → related-terms map used to widen recall before matching.
Downstream gating and thresholds filter the extra false positives.
"""

from __future__ import annotations

from trend_relevance.matching.text import normalize

SYNONYM_MAP: dict[str, tuple[str, ...]] = {
    "immigration": ("migrants", "immigrants", "border", "asylum", "deportation", "ice", "dhs"),
    "healthcare": ("health care", "medical", "medicare", "medicaid", "aca", "obamacare"),
    "climate": (
        "climate change",
        "global warming",
        "environment",
        "green energy",
        "carbon",
        "emissions",
    ),
    "abortion": ("reproductive rights", "roe", "pro choice", "pro life", "planned parenthood"),
    "gun control": (
        "gun rights",
        "second amendment",
        "2nd amendment",
        "firearms",
        "nra",
    ),
    "voting": ("voter", "election", "ballot", "electoral", "suffrage", "voter id"),
    "lgbtq": ("lgbt", "gay rights", "transgender", "same sex", "marriage equality", "pride"),
    "racial justice": (
        "blm",
        "black lives matter",
        "civil rights",
        "police reform",
        "racism",
        "dei",
    ),
    "education": ("schools", "teachers", "students", "curriculum", "college", "university"),
    "economy": ("jobs", "unemployment", "inflation", "wages", "labor", "workers"),
}


def _build_reverse_index() -> dict[str, list[str]]:
    index: dict[str, list[str]] = {}
    for root, related in SYNONYM_MAP.items():
        for term in (root, *related):
            index.setdefault(normalize(term), []).append(root)
    return index


_REVERSE_INDEX = _build_reverse_index()


def expand_with_synonyms(term: str) -> list[str]:
    """
    Expand a term with its vocabulary relatives.

    The term itself always comes first. A vocabulary root expands to its
    related terms; a related term expands to its root and the root's other
    relatives. Order is stable and duplicates are dropped.

    Args:
        term: Topic or entity text

    Returns:
        List of normalized terms, starting with the normalized input
    """
    norm_term = normalize(term)
    if not norm_term:
        return []

    expanded = [norm_term]
    seen = {norm_term}
    for root in _REVERSE_INDEX.get(norm_term, []):
        for related in (root, *SYNONYM_MAP[root]):
            norm_related = normalize(related)
            if norm_related not in seen:
                seen.add(norm_related)
                expanded.append(norm_related)
    return expanded
