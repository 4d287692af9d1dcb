#!/usr/bin/env python3
"""
Tests for timestamp_progress.py - progress math and status text.
"""

import pytest

from strip_timestamps import ProcessingResult
from timestamp_progress import (
    STATUS_READY,
    ProgressReporter,
    completion_status,
    cycle_status,
    overall_progress,
)


class TestOverallProgress:
    """Tests for the overall progress fraction."""

    @pytest.mark.parametrize("args,expected", [
        ((5, 10, 1, 3, False), 0.5),
        ((5, 10, 1, 3, True), 0.25),
        ((5, 10, 2, 3, True), 0.5),
        ((10, 10, 3, 3, True), 1.0),
        ((10, 10, 2, 3, False), 1.0),
    ])
    def test_formula(self, args, expected):
        assert overall_progress(*args) == pytest.approx(expected)

    def test_empty_file_counts_as_done(self):
        """Zero total lines must not divide by zero."""
        assert overall_progress(0, 0, 1, 3, False) == 1.0

    def test_clamped_when_count_is_stale(self):
        """More lines than counted never pushes progress past 1."""
        assert overall_progress(20, 10, 3, 3, False) == 1.0


class TestProgressReporter:
    """Tests for the latest-value reporter."""

    def test_initial_state(self):
        r = ProgressReporter()
        assert r.progress == 0.0
        assert r.status == STATUS_READY

    def test_progress_never_decreases(self):
        """A change found mid-cycle shrinks the raw fraction; published value holds."""
        seen = []
        r = ProgressReporter(on_progress=seen.append)

        r.report_progress(5, 10, 1, 3, False)   # 0.5
        r.report_progress(6, 10, 1, 3, True)    # raw 0.3
        r.report_progress(10, 10, 1, 3, True)   # raw 0.5
        r.report_progress(4, 10, 2, 3, True)    # raw 0.4667

        assert r.progress == pytest.approx(0.5)
        assert seen == [pytest.approx(0.5)]

    def test_finish_publishes_one(self):
        seen = []
        r = ProgressReporter(on_progress=seen.append)
        r.report_progress(1, 10, 1, 3, False)
        r.finish()
        assert seen[-1] == 1.0
        assert r.progress == 1.0

    def test_status_listener(self):
        seen = []
        r = ProgressReporter(on_status=seen.append)
        r.update_status(cycle_status(2, 3))
        assert seen == ["Processing cycle 2/3..."]
        assert r.status == "Processing cycle 2/3..."


class TestCompletionStatus:
    """Tests for the terminal status strings."""

    def test_with_changes(self):
        result = ProcessingResult(True, 10, 1, cycles=2)
        assert completion_status("app.log", result) == \
            "Status: Completed - app.log (1/10 lines modified)"

    def test_without_changes(self):
        result = ProcessingResult(False, 5, 0, cycles=1)
        assert completion_status("app.log", result) == "Status: No changes needed - app.log"
