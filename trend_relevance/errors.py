"""
Error taxonomy for relevance runs.

Only failures reading core reference data abort a run. Per-pair and
per-batch failures are isolated by the pipeline.
"""

from __future__ import annotations


class RelevanceError(Exception):
    """Base class for trend_relevance errors."""


class UpstreamReadFailure(RelevanceError):
    """Core reference data (orgs, rules, aliases, candidates) could not be read."""

    def __init__(self, source: str, cause: Exception | None = None):
        message = f"Failed to read {source}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.source = source
        self.cause = cause


class PartialWriteFailure(RelevanceError):
    """A single output batch could not be written."""

    def __init__(self, target: str, batch_index: int, size: int, cause: Exception | None = None):
        message = f"Failed to write batch {batch_index} ({size} rows) to {target}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.target = target
        self.batch_index = batch_index
        self.size = size
        self.cause = cause


class MalformedEmbedding(RelevanceError, ValueError):
    """An embedding payload could not be parsed into a numeric vector."""
