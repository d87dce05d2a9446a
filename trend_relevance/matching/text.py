"""
Shared text matching primitives.

One pure library used by the matcher, the context gate and the scoring
engine, so that every component agrees on what "normalized", "similar" and
"contains" mean.
"""

from __future__ import annotations

import re
import unicodedata

from trend_relevance.constants import MIN_TOKEN_LENGTH

_SEPARATOR_RE = re.compile(r"[_\-/]+")
_PUNCT_RE = re.compile(r"[^\w\s]")
_SPACE_RE = re.compile(r"\s+")


def normalize(text: str | None) -> str:
    """
    Normalize text for matching.

    Steps:
    1. Convert to lowercase
    2. Remove accents/diacritics
    3. Turn separators (``-``, ``_``, ``/``) into spaces
    4. Strip remaining punctuation
    5. Collapse whitespace

    Args:
        text: Raw text (None is treated as empty)

    Returns:
        Normalized string, possibly empty
    """
    if not text:
        return ""

    result = text.lower()
    result = unicodedata.normalize("NFKD", result)
    result = "".join(c for c in result if not unicodedata.combining(c))
    result = _SEPARATOR_RE.sub(" ", result)
    result = _PUNCT_RE.sub("", result)
    return _SPACE_RE.sub(" ", result).strip()


def tokenize(text: str | None, min_length: int = MIN_TOKEN_LENGTH) -> list[str]:
    """Split normalized text into tokens of at least ``min_length`` characters."""
    return [token for token in normalize(text).split() if len(token) >= min_length]


def levenshtein(a: str, b: str) -> int:
    """Edit distance between two strings (insert, delete, substitute)."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    # Keep the shorter string in the inner loop
    if len(a) < len(b):
        a, b = b, a

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(
                min(
                    previous[j] + 1,  # deletion
                    current[j - 1] + 1,  # insertion
                    previous[j - 1] + cost,  # substitution
                )
            )
        previous = current
    return previous[-1]


def similarity(a: str | None, b: str | None) -> float:
    """
    String similarity in [0, 1].

    - 1.0 when the normalized forms are equal
    - 0.9 when either normalized form contains the other
    - otherwise ``1 - levenshtein / max(len)``

    Empty input on either side scores 0.0. The function is symmetric.
    """
    norm_a = normalize(a)
    norm_b = normalize(b)
    if not norm_a or not norm_b:
        return 0.0
    if norm_a == norm_b:
        return 1.0
    if norm_a in norm_b or norm_b in norm_a:
        return 0.9

    longest = max(len(norm_a), len(norm_b))
    return 1.0 - levenshtein(norm_a, norm_b) / longest


def fuzzy_token_overlap(a: str | None, b: str | None) -> float:
    """
    Token-set overlap ratio: |A ∩ B| / max(|A|, |B|).

    Only tokens longer than two characters count, so multi-word topics
    partially overlapping a title still register ("climate policy" vs
    "climate rules" = 0.5).
    """
    tokens_a = set(tokenize(a))
    tokens_b = set(tokenize(b))
    if not tokens_a or not tokens_b:
        return 0.0
    return len(tokens_a & tokens_b) / max(len(tokens_a), len(tokens_b))


def phrase_in(phrase: str | None, text: str | None) -> bool:
    """True when the normalized phrase occurs in the normalized text on word boundaries."""
    norm_phrase = normalize(phrase)
    norm_text = normalize(text)
    if not norm_phrase or not norm_text:
        return False
    return f" {norm_phrase} " in f" {norm_text} "


def text_contains(a: str | None, b: str | None) -> bool:
    """Containment either way: ``a`` occurs in ``b`` or ``b`` occurs in ``a``."""
    return phrase_in(a, b) or phrase_in(b, a)


def best_token_similarity(term: str | None, text: str | None) -> float:
    """
    Mean over the term's tokens of their best similarity to any text token.

    Catches inflections and small misspellings ("immigrant" vs
    "immigrants", "medicare" vs "medicaire") that token overlap misses.
    Tokens are compared by edit ratio only; the substring rule of
    ``similarity`` would let short words like "act" match "impact".
    """
    term_tokens = tokenize(term) or normalize(term).split()
    text_tokens = set(tokenize(text))
    if not term_tokens or not text_tokens:
        return 0.0

    total = 0.0
    for token in term_tokens:
        total += max(_edit_ratio(token, candidate) for candidate in text_tokens)
    return total / len(term_tokens)


def _edit_ratio(a: str, b: str) -> float:
    if a == b:
        return 1.0
    return 1.0 - levenshtein(a, b) / max(len(a), len(b))
