"""
Unit tests for trend_relevance.retry module.
"""

import sqlite3

import pytest

from trend_relevance.retry import TRANSIENT_EXCEPTIONS, retry_store


class TestRetryStore:
    """Tests for the retry_store decorator."""

    def test_wraps_function(self):
        """Test that retry_store properly wraps a function."""

        @retry_store
        def success_func():
            return 42

        assert success_func() == 42

    def test_retries_on_locked_database(self):
        """Test that retry_store retries on sqlite3.OperationalError."""
        call_count = 0

        @retry_store
        def flaky_func():
            nonlocal call_count
            call_count += 1
            if call_count < 3:
                raise sqlite3.OperationalError("database is locked")
            return "success"

        assert flaky_func() == "success"
        assert call_count == 3

    def test_gives_up_after_max_attempts(self):
        """Test that retry_store re-raises after max attempts."""
        call_count = 0

        @retry_store
        def always_fails():
            nonlocal call_count
            call_count += 1
            raise ConnectionError("Always fails")

        with pytest.raises(ConnectionError):
            always_fails()

        # Default is 3 attempts
        assert call_count == 3

    def test_no_retry_on_programming_errors(self):
        call_count = 0

        @retry_store
        def bad_query():
            nonlocal call_count
            call_count += 1
            raise ValueError("bad parameter")

        with pytest.raises(ValueError):
            bad_query()
        assert call_count == 1

    def test_transient_exceptions(self):
        assert sqlite3.OperationalError in TRANSIENT_EXCEPTIONS
        assert ValueError not in TRANSIENT_EXCEPTIONS
