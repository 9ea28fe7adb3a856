"""Tests for ExecutionStats class."""

import time

from galsync.execution_stats import ExecutionStats


class TestExecutionStats:
    """Tests for ExecutionStats class."""

    def test_applied_and_remaining(self):
        stats = ExecutionStats(total_actions=10, uploaded=4, deleted=2)

        assert stats.applied == 6
        assert stats.remaining == 4

    def test_rate_per_second(self):
        """Test rate calculation."""
        stats = ExecutionStats(total_actions=200)
        stats.start_time = time.time() - 10
        stats.uploaded = 100

        assert 9 <= stats.rate_per_second <= 11

    def test_estimated_remaining(self):
        stats = ExecutionStats(total_actions=200)
        stats.start_time = time.time() - 10
        stats.uploaded = 100

        assert 9 <= stats.estimated_remaining_seconds <= 11

    def test_no_progress_has_no_estimate(self):
        stats = ExecutionStats(total_actions=5)

        assert stats.estimated_remaining_seconds == 0.0
