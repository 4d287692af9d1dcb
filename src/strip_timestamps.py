"""
strip_timestamps.py: rewrite a log file in place without its timestamps.

Each cycle streams the file line by line into <file>.tmp. A cycle that
changed at least one line is promoted over the original with os.replace();
a cycle that changed nothing ends the run. At most MAX_CYCLES cycles run.

The original is only ever replaced by a complete temp file, so a failure or
cancellation mid-cycle leaves it exactly as the last promoted cycle left it.
"""
import logging
import os
from pathlib import Path
from typing import NamedTuple

from timestamp_filters import get_pattern, transform_line
from timestamp_progress import (
    STATUS_ANALYZING,
    STATUS_PROCESSING,
    ProgressReporter,
    cycle_status,
)

log = logging.getLogger("strip_timestamps")

MAX_CYCLES = 3
TEMP_SUFFIX = ".tmp"


class ProcessingError(OSError):
    """A file could be opened but not processed (e.g. it is not UTF-8 text)."""


class CycleResult(NamedTuple):
    processed_lines: int
    modified_lines: int


class ProcessingResult(NamedTuple):
    files_changed: bool
    processed_lines: int
    modified_lines: int
    cycles: int = 0
    cancelled: bool = False


def temp_path_for(path: Path) -> Path:
    return path.with_name(path.name + TEMP_SUFFIX)


def count_lines(path: Path, cancel_flag=None) -> int:
    """Count lines in a text file. Stops early (returning the partial count)
    if cancel_flag gets set."""
    count = 0
    try:
        with open(path, "r", encoding="utf-8") as f:
            for _ in f:
                if cancel_flag is not None and cancel_flag.is_set():
                    break
                count += 1
    except UnicodeDecodeError as e:
        raise ProcessingError(f"{path} is not valid UTF-8 text ({e.reason})") from e
    return count


def run_cycle(input_path: Path, output_path: Path, total_lines: int, cycle: int,
              max_cycles: int, pattern, cancel_flag,
              reporter: ProgressReporter = None) -> CycleResult:
    """Run one read-strip-write pass from input_path into output_path.

    Returns the counts so far as soon as cancel_flag is set; the partial
    output is then the caller's to discard.
    """
    processed = 0
    modified = 0

    try:
        with open(input_path, "r", encoding="utf-8") as reader, \
                open(output_path, "w", encoding="utf-8") as writer:
            for raw in reader:
                if cancel_flag.is_set():
                    return CycleResult(processed, modified)

                line = raw.rstrip("\n")
                result = transform_line(line, pattern)
                writer.write(result.cleaned_line)
                writer.write("\n")

                if result.was_modified:
                    modified += 1
                processed += 1

                if reporter is not None:
                    reporter.report_progress(processed, total_lines, cycle, max_cycles, modified > 0)
    except UnicodeDecodeError as e:
        raise ProcessingError(f"{input_path} is not valid UTF-8 text ({e.reason})") from e

    return CycleResult(processed, modified)


def cleanup_temp_file(temp_path: Path):
    """Remove the temp file if present. Failure is logged, never raised."""
    if not temp_path.exists():
        return
    try:
        temp_path.unlink()
        log.debug("Temporary file deleted: %s", temp_path.resolve())
    except OSError:
        log.warning("Failed to delete temporary file: %s", temp_path.resolve(), exc_info=True)


def process(file_path, anchored_to_start: bool, cancel_flag,
            reporter: ProgressReporter = None, max_cycles: int = MAX_CYCLES) -> ProcessingResult:
    """Strip timestamps from file_path until a cycle changes nothing.

    Cancellation returns the totals of the cycles already promoted, with
    cancelled=True. Any OSError aborts the run after a best-effort removal
    of the temp file; the original is left as the last promoted cycle made it.
    """
    path = Path(file_path)
    if reporter is None:
        reporter = ProgressReporter()
    pattern = get_pattern(anchored_to_start)
    log.info("Using pattern: %s", pattern.pattern)

    reporter.update_status(STATUS_ANALYZING)
    total_lines = count_lines(path, cancel_flag)
    if cancel_flag.is_set():
        log.info("Cancelled while counting lines in %s", path.name)
        return ProcessingResult(False, 0, 0, cancelled=True)
    log.info("Total lines to process in %s: %d", path.name, total_lines)

    reporter.update_status(STATUS_PROCESSING)
    temp_path = temp_path_for(path)
    total_processed = 0
    total_modified = 0
    cycle = 0

    try:
        while cycle < max_cycles:
            if cancel_flag.is_set():
                return _cancelled(reporter, cycle, total_processed, total_modified)

            cycle += 1
            reporter.update_status(cycle_status(cycle, max_cycles))
            result = run_cycle(path, temp_path, total_lines, cycle, max_cycles,
                               pattern, cancel_flag, reporter)

            if cancel_flag.is_set():
                cleanup_temp_file(temp_path)
                return _cancelled(reporter, cycle, total_processed, total_modified)

            total_processed += result.processed_lines
            total_modified += result.modified_lines

            if result.modified_lines == 0:
                cleanup_temp_file(temp_path)
                log.info("Cycle %d completed. No changes made.", cycle)
                break

            os.replace(temp_path, path)
            log.info("Cycle %d completed: processed %d lines, modified %d lines",
                     cycle, result.processed_lines, result.modified_lines)
    except OSError:
        cleanup_temp_file(temp_path)
        raise

    reporter.finish()
    log.info("Processing completed after %d cycles. Total modified lines: %d",
             cycle, total_modified)
    return ProcessingResult(total_modified > 0, total_processed, total_modified, cycle)


def _cancelled(reporter, cycle, total_processed, total_modified):
    reporter.finish()
    log.info("Processing cancelled in cycle %d. Committed modified lines: %d",
             cycle, total_modified)
    return ProcessingResult(total_modified > 0, total_processed, total_modified,
                            cycle, cancelled=True)
