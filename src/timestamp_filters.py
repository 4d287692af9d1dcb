"""
timestamp_filters.py: timestamp patterns and the per-line strip.

Used by:
- strip_timestamps.py (cycle executor)
- unstamp.py (logs the pattern in use)

Two compiled patterns, one per matching mode:
- TIMESTAMP_RE strips every timestamp anywhere in the line
- TIMESTAMP_START_RE strips only a timestamp starting at column 0

Each alternative also eats the whitespace that follows it, so
"2024-01-15 ERROR boom" becomes "ERROR boom", not " ERROR boom".
"""
import logging
import re
from typing import NamedTuple

log = logging.getLogger("timestamp_filters")


# --- Timestamp alternatives (longest first so the bracketed form wins) ---
_ALTERNATIVES = (
    # [2024-01-15T10:30:00.000Z]
    r'\[\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z\]'
    # 2024-01-15
    r'|\d{4}-\d{2}-\d{2}'
    # 10:30:00.123 or 10:30:00,123 (log4j / python logging style)
    r'|\d{2}:\d{2}:\d{2}[.,]\d{3}'
    # 10:30:00
    r'|\d{2}:\d{2}:\d{2}'
)

TIMESTAMP_RE = re.compile(r'(?:' + _ALTERNATIVES + r')\s*', re.ASCII)
TIMESTAMP_START_RE = re.compile(r'^(?:' + _ALTERNATIVES + r')\s*', re.ASCII)


class LineResult(NamedTuple):
    cleaned_line: str
    was_modified: bool


def get_pattern(anchored_to_start: bool) -> re.Pattern:
    """Return the timestamp pattern for the given matching mode."""
    return TIMESTAMP_START_RE if anchored_to_start else TIMESTAMP_RE


def transform_line(line: str, pattern: re.Pattern) -> LineResult:
    """Strip timestamps from a single line.

    An anchored pattern can only match once (at column 0), so sub() removes
    the leading timestamp only; the anywhere pattern removes all of them.
    A substitution that leaves the text identical counts as unmodified.
    """
    if not pattern.search(line):
        return LineResult(line, False)

    cleaned = pattern.sub('', line)
    if cleaned == line:
        return LineResult(line, False)

    log.debug("Line modified:")
    log.debug("  Before: %r", line)
    log.debug("  After:  %r", cleaned)
    return LineResult(cleaned, True)
