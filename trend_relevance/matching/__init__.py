"""
Text matching library.

Provides the shared pure matching functions:
- Normalization, tokenization and Levenshtein similarity
- Token-set overlap for multi-word topics
- Domain synonym expansion
- Embedding cosine similarity

The tiered Matcher lives in ``trend_relevance.matching.matcher``.
"""

from trend_relevance.matching.semantic import (
    cosine_similarity,
    parse_embedding,
    semantic_similarity,
)
from trend_relevance.matching.synonyms import SYNONYM_MAP, expand_with_synonyms
from trend_relevance.matching.text import (
    fuzzy_token_overlap,
    levenshtein,
    normalize,
    phrase_in,
    similarity,
    text_contains,
    tokenize,
)

__all__ = [
    # Text
    "normalize",
    "tokenize",
    "levenshtein",
    "similarity",
    "fuzzy_token_overlap",
    "phrase_in",
    "text_contains",
    # Synonyms
    "SYNONYM_MAP",
    "expand_with_synonyms",
    # Semantic
    "cosine_similarity",
    "semantic_similarity",
    "parse_embedding",
]
