"""
Retry utilities for reads from the reference store.

Only reads of core reference data are retried; a read that still fails
after the last attempt is fatal for the run.
"""

import logging
import sqlite3
from typing import Callable, TypeVar

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Common transient exceptions
TRANSIENT_EXCEPTIONS = (
    ConnectionError,
    TimeoutError,
    sqlite3.OperationalError,  # "database is locked" and friends
)


def retry_store(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator for retrying store reads with exponential backoff.

    Retries on:
    - Connection errors
    - Timeouts
    - Locked / busy SQLite databases

    Example:
        @retry_store
        def load_candidates(self):
            return self._query("SELECT ...")
    """
    return retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=10),
        retry=retry_if_exception_type(TRANSIENT_EXCEPTIONS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )(func)
