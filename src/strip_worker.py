"""
strip_worker.py: run a strip on a background thread and observe it.

The front end gets a ProcessingHandle back from start_processing(). It can
poll progress/status (latest value wins), drain published updates from
events() when started with record_events=True, cancel, and wait() for a
tagged Outcome:

    completed  -> Outcome.result is the ProcessingResult
    cancelled  -> Outcome.result holds the committed totals
    failed     -> Outcome.error is the exception
"""
import logging
import queue
import threading
from pathlib import Path
from typing import NamedTuple, Optional

from strip_timestamps import ProcessingResult, process
from timestamp_progress import (
    STATUS_CANCELLED,
    STATUS_FAILED,
    STATUS_READY,
    ProgressReporter,
    completion_status,
)

log = logging.getLogger("strip_worker")

COMPLETED = "completed"
FAILED = "failed"
CANCELLED = "cancelled"


class CancelFlag:
    """Set by the caller, polled by the worker. Backed by threading.Event."""

    def __init__(self):
        self._event = threading.Event()

    def set(self):
        self._event.set()

    def clear(self):
        self._event.clear()

    def is_set(self) -> bool:
        return self._event.is_set()


class Outcome(NamedTuple):
    kind: str
    result: Optional[ProcessingResult] = None
    error: Optional[BaseException] = None


class ProcessingHandle:
    def __init__(self, file_path: Path, cancel_flag: CancelFlag, listener=None,
                 record_events: bool = False):
        self.file_path = file_path
        self.cancel_flag = cancel_flag
        self.listener = listener
        self.reporter = ProgressReporter(
            on_progress=lambda value: self._publish("progress", value),
            on_status=lambda text: self._publish("status", text),
        )
        # Only filled when asked for; progress publishes once per line.
        self.queue = queue.Queue() if record_events else None
        self.thread = None
        self._outcome = None
        self._finished = threading.Event()
        self._callbacks = []
        self._lock = threading.Lock()

    @property
    def progress(self) -> float:
        return self.reporter.progress

    @property
    def status(self) -> str:
        return self.reporter.status

    def _publish(self, kind, value):
        if self.queue is not None:
            self.queue.put((kind, value))
        if self.listener:
            self.listener(kind, value)

    def events(self) -> list:
        """Drain all updates published since the last call. Never blocks.

        Always empty unless the handle was started with record_events=True.
        """
        drained = []
        if self.queue is None:
            return drained
        while True:
            try:
                drained.append(self.queue.get_nowait())
            except queue.Empty:
                return drained

    def cancel(self):
        self.cancel_flag.set()

    def done(self) -> bool:
        return self._finished.is_set()

    def wait(self, timeout=None) -> Optional[Outcome]:
        """Block until the run ends; returns None if timeout expires first."""
        if not self._finished.wait(timeout):
            return None
        return self._outcome

    def add_done_callback(self, fn):
        """Call fn(outcome) when the run ends (immediately if it already has)."""
        with self._lock:
            if self._outcome is None:
                self._callbacks.append(fn)
                return
        fn(self._outcome)

    def _run(self, anchored_to_start: bool):
        try:
            result = process(self.file_path, anchored_to_start, self.cancel_flag, self.reporter)
        except OSError as e:
            log.error("Task failed: %s", e, exc_info=True)
            self.reporter.update_status(STATUS_FAILED)
            self._finish(Outcome(FAILED, error=e))
            return
        except Exception as e:
            # Unexpected bug; still end the run so the front end does not hang.
            log.exception("Task crashed")
            self.reporter.update_status(STATUS_FAILED)
            self._finish(Outcome(FAILED, error=e))
            return

        if result.cancelled:
            self.reporter.update_status(STATUS_CANCELLED)
            self._finish(Outcome(CANCELLED, result=result))
        else:
            self.reporter.update_status(completion_status(self.file_path.name, result))
            self._finish(Outcome(COMPLETED, result=result))

    def _finish(self, outcome: Outcome):
        with self._lock:
            self._outcome = outcome
            callbacks, self._callbacks = self._callbacks, []
        self._publish("done", outcome)
        self._finished.set()
        for fn in callbacks:
            fn(outcome)


def start_processing(file_path, anchored_to_start: bool, cancel_flag: CancelFlag,
                     listener=None, record_events: bool = False) -> ProcessingHandle:
    """Start stripping file_path on a daemon thread and return its handle.

    listener, if given, is called as listener(kind, value) from the worker
    thread for every "progress", "status" and "done" update. With
    record_events=True the same updates are also queued for events(); leave
    it off unless something drains them, the queue is unbounded.
    """
    handle = ProcessingHandle(Path(file_path), cancel_flag, listener, record_events)
    handle.reporter.update_status(STATUS_READY)
    handle.thread = threading.Thread(
        target=handle._run,
        args=(anchored_to_start,),
        daemon=True,
    )
    handle.thread.start()
    return handle
