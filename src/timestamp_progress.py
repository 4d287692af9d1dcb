"""
timestamp_progress.py: progress fraction and status text for a strip run.

The core only publishes values; whoever renders them (the terminal front end,
tests) subscribes with plain callbacks.
"""
import threading

# Status text shown to the user. Wording is kept stable across front ends.
STATUS_READY = "Status: Ready"
STATUS_ANALYZING = "Analyzing file..."
STATUS_PROCESSING = "Processing file..."
STATUS_CYCLE = "Processing cycle {cycle}/{max_cycles}..."
STATUS_COMPLETED = "Status: Completed - {filename} ({modified}/{processed} lines modified)"
STATUS_NO_CHANGES = "Status: No changes needed - {filename}"
STATUS_FAILED = "Status: Failed"
STATUS_CANCELLED = "Status: Cancelled"
STATUS_CANCELLED_BY_USER = "Status: Cancelled by user"


def cycle_status(cycle: int, max_cycles: int) -> str:
    return STATUS_CYCLE.format(cycle=cycle, max_cycles=max_cycles)


def completion_status(filename: str, result) -> str:
    """Terminal status for a run that finished without error or cancellation."""
    if result.files_changed:
        return STATUS_COMPLETED.format(
            filename=filename,
            modified=result.modified_lines,
            processed=result.processed_lines,
        )
    return STATUS_NO_CHANGES.format(filename=filename)


def overall_progress(processed_lines: int, total_lines: int, cycle: int,
                     max_cycles: int, changed: bool) -> float:
    """Map a line position inside a cycle onto the whole run.

    The denominator assumes one more cycle is coming while the current one is
    still finding timestamps, capped at max_cycles. An empty file counts as a
    fully processed cycle.
    """
    if total_lines <= 0:
        cycle_progress = 1.0
    else:
        cycle_progress = min(1.0, processed_lines / total_lines)
    expected_cycles = min(cycle + (1 if changed else 0), max_cycles)
    fraction = (cycle - 1 + cycle_progress) / max(expected_cycles, 1)
    return max(0.0, min(1.0, fraction))


class ProgressReporter:
    """Latest-value holder for progress and status, with optional listeners.

    Progress is ratcheted: a lower fraction than the last published one is
    ignored, because the anticipated-cycle denominator can shrink the raw
    fraction when a cycle first finds a change.
    """

    def __init__(self, on_progress=None, on_status=None):
        self.on_progress = on_progress
        self.on_status = on_status
        self.progress = 0.0
        self.status = STATUS_READY
        self._lock = threading.Lock()

    def report_progress(self, processed_lines: int, total_lines: int, cycle: int,
                        max_cycles: int, changed: bool) -> float:
        fraction = overall_progress(processed_lines, total_lines, cycle, max_cycles, changed)
        return self.set_progress(fraction)

    def set_progress(self, fraction: float) -> float:
        with self._lock:
            if fraction <= self.progress:
                return self.progress
            self.progress = fraction
        if self.on_progress:
            self.on_progress(fraction)
        return fraction

    def update_status(self, text: str):
        with self._lock:
            self.status = text
        if self.on_status:
            self.on_status(text)

    def finish(self):
        self.set_progress(1.0)
