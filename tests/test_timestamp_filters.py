#!/usr/bin/env python3
"""
Tests for timestamp_filters.py - timestamp patterns and the per-line strip.
"""

from timestamp_filters import (
    TIMESTAMP_RE,
    TIMESTAMP_START_RE,
    LineResult,
    get_pattern,
    transform_line,
)


class TestGetPattern:
    """Tests for pattern selection by mode."""

    def test_anchored_mode(self):
        assert get_pattern(True) is TIMESTAMP_START_RE
        assert get_pattern(True).pattern.startswith('^')

    def test_anywhere_mode(self):
        assert get_pattern(False) is TIMESTAMP_RE
        assert not get_pattern(False).pattern.startswith('^')


class TestTransformLine:
    """Tests for transform_line in both modes."""

    def test_leading_date_anchored(self):
        """Leading date and its trailing space are removed."""
        result = transform_line("2024-01-15 ERROR something failed", get_pattern(True))
        assert result == LineResult("ERROR something failed", True)

    def test_bracketed_instant_anywhere(self):
        """Bracketed ISO instant in the middle of a line is removed with its trailing space."""
        result = transform_line("see [2024-01-15T10:30:00.000Z] in the middle", get_pattern(False))
        assert result.cleaned_line == "see in the middle"
        assert result.was_modified is True

    def test_no_timestamp_unchanged(self):
        """Lines without timestamp-shaped text come back untouched in both modes."""
        for line in ("plain message", "version 1.2.3 released", "port 8080:80", ""):
            for anchored in (True, False):
                result = transform_line(line, get_pattern(anchored))
                assert result == LineResult(line, False)

    def test_anchored_ignores_mid_line(self):
        """Anchored mode leaves timestamps that do not start at column 0."""
        line = "quoted: 2024-01-15 10:30:00 earlier entry"
        assert transform_line(line, get_pattern(True)) == LineResult(line, False)

    def test_anywhere_strips_mid_line(self):
        line = "quoted: 2024-01-15 10:30:00 earlier entry"
        assert transform_line(line, get_pattern(False)).cleaned_line == "quoted: earlier entry"

    def test_anchored_strips_only_leading(self):
        """Only the first timestamp goes in anchored mode, even if another follows."""
        result = transform_line("2024-01-15 10:30:00.123 INFO started", get_pattern(True))
        assert result.cleaned_line == "10:30:00.123 INFO started"

    def test_fractional_separators(self):
        """Both dot and comma fractions are recognised."""
        pattern = get_pattern(True)
        assert transform_line("10:30:00.123 a", pattern).cleaned_line == "a"
        assert transform_line("10:30:00,123 b", pattern).cleaned_line == "b"

    def test_anywhere_strips_all(self):
        result = transform_line("10:30:00,123 a 10:30:00 b", get_pattern(False))
        assert result.cleaned_line == "a b"

    def test_timestamp_only_line(self):
        """A line that is only a timestamp becomes empty."""
        result = transform_line("[2024-01-15T10:30:00.000Z]   ", get_pattern(True))
        assert result == LineResult("", True)

    def test_non_ascii_digits_ignored(self):
        """Only ASCII digits form timestamps."""
        line = "١٢:٣٤:٥٦ message"
        assert transform_line(line, get_pattern(False)) == LineResult(line, False)
