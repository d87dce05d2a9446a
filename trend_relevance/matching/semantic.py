"""
Embedding similarity for semantic matching.

Embeddings are computed upstream; this module only parses them and
compares them. Nothing here raises on bad vectors unless asked to.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

import numpy as np

from trend_relevance.errors import MalformedEmbedding

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = logging.getLogger(__name__)


def parse_embedding(raw: Any, strict: bool = False) -> NDArray[np.float32] | None:
    """
    Parse an embedding payload into a 1-D float vector.

    Accepts lists, tuples, numpy arrays and JSON-encoded strings of those.

    Args:
        raw: Embedding payload (None means absent)
        strict: Raise MalformedEmbedding instead of returning None

    Returns:
        float32 vector, or None when absent or malformed
    """
    if raw is None:
        return None

    try:
        value = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
        if value is None:
            return None
        vector = np.asarray(value, dtype=np.float32)
        if vector.ndim != 1 or vector.size == 0:
            raise ValueError(f"expected a non-empty 1-D vector, got shape {vector.shape}")
        if not np.all(np.isfinite(vector)):
            raise ValueError("vector contains non-finite values")
    except (TypeError, ValueError) as e:
        # json.JSONDecodeError is a ValueError
        if strict:
            raise MalformedEmbedding(f"Unparsable embedding: {e}") from e
        logger.warning(f"Ignoring malformed embedding: {e}")
        return None

    return vector


def cosine_similarity(vec1: NDArray[np.float32] | None, vec2: NDArray[np.float32] | None) -> float:
    """
    Compute cosine similarity between two vectors.

    Returns:
        Similarity score in range [-1, 1]; 0.0 for missing, mismatched,
        non-finite or zero vectors.
    """
    if vec1 is None or vec2 is None:
        return 0.0

    v1 = np.asarray(vec1, dtype=np.float32)
    v2 = np.asarray(vec2, dtype=np.float32)

    # Handle dimension mismatch
    if v1.shape != v2.shape:
        logger.debug(f"Vector dimension mismatch: {v1.shape} vs {v2.shape}")
        return 0.0

    if not (np.all(np.isfinite(v1)) and np.all(np.isfinite(v2))):
        return 0.0

    norm1 = np.linalg.norm(v1)
    norm2 = np.linalg.norm(v2)
    if norm1 == 0 or norm2 == 0:
        return 0.0

    return float(np.dot(v1, v2) / (norm1 * norm2))


def semantic_similarity(a: Any, b: Any) -> float:
    """Cosine similarity of two embedding payloads; 0.0 when either is unusable."""
    return cosine_similarity(parse_embedding(a), parse_embedding(b))
