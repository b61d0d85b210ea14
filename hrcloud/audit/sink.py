"""
Best-effort delivery of audit, security and billing events.

Components receive an ``EventSink`` and call ``emit(event)`` after their
primary state change has committed. Emission never raises: a failed or
dropped event is counted and logged, and ``emit`` reports it through its
return value so batch jobs can tally errors.
"""

import logging
import queue
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass

from flask import current_app

from hrcloud.audit.writer import DatabaseEventWriter
from hrcloud.observability.metrics import record_sink_event

logger = logging.getLogger(__name__)

_STOP = object()


@dataclass
class SinkStats:
    emitted: int = 0
    written: int = 0
    failed: int = 0
    dropped: int = 0

    def to_dict(self):
        return asdict(self)


class EventSink(ABC):

    def __init__(self, writer=None):
        self.writer = writer or DatabaseEventWriter()
        self.stats = SinkStats()
        self._stats_lock = threading.Lock()

    @abstractmethod
    def emit(self, event) -> bool:
        """Hand an event to the sink. Returns False if it was dropped or failed."""

    @property
    def unreported_failures(self):
        """Failed writes that emit could not report to its caller."""
        return 0

    @property
    def pending(self):
        return 0

    def flush(self, timeout=None) -> bool:
        return True

    def drain(self, timeout=5.0) -> bool:
        return self.flush(timeout)

    def _count(self, outcome):
        with self._stats_lock:
            setattr(self.stats, outcome, getattr(self.stats, outcome) + 1)
        record_sink_event(outcome)

    def _log_failure(self, event, exc):
        logger.warning(
            "Failed to write %s event",
            event.kind,
            extra={"company_id": getattr(event, "company_id", None), "error": str(exc)},
        )


class DirectEventSink(EventSink):
    """Writes each event inline in the caller's thread and session."""

    def emit(self, event) -> bool:
        self._count("emitted")
        try:
            self.writer.write(event)
        except Exception as exc:
            self._count("failed")
            self._log_failure(event, exc)
            return False
        self._count("written")
        return True


class QueuedEventSink(EventSink):
    """
    Bounded in-memory queue drained by a daemon thread.

    Writes happen inside ``app.app_context()`` so the worker gets its own
    scoped session. When the queue is full the event is dropped.
    """

    def __init__(self, app=None, writer=None, maxsize=1000):
        super().__init__(writer)
        self.app = app
        self._queue = queue.Queue(maxsize=maxsize)
        self._worker = None
        self._worker_lock = threading.Lock()
        self._closed = False

    @property
    def unreported_failures(self):
        # Background writes are the only source of failed; drops are reported by emit
        return self.stats.failed

    def emit(self, event) -> bool:
        if self._closed:
            self._count("dropped")
            logger.warning("Event sink closed, dropping %s event", event.kind)
            return False

        self._ensure_worker()
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            self._count("dropped")
            logger.warning(
                "Event queue full, dropping %s event",
                event.kind,
                extra={"company_id": getattr(event, "company_id", None)},
            )
            return False

        self._count("emitted")
        return True

    def flush(self, timeout=None) -> bool:
        """Block until every queued event has been handled, or the timeout passes."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._queue.all_tasks_done:
            while self._queue.unfinished_tasks:
                if deadline is None:
                    self._queue.all_tasks_done.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._queue.all_tasks_done.wait(remaining)
        return True

    def drain(self, timeout=5.0) -> bool:
        self._closed = True
        flushed = self.flush(timeout)
        worker = self._worker
        if worker is not None and worker.is_alive():
            try:
                self._queue.put(_STOP, timeout=timeout)
            except queue.Full:
                return False
            worker.join(timeout)
        return flushed

    @property
    def pending(self):
        return self._queue.unfinished_tasks

    def _ensure_worker(self):
        if self._worker is not None and self._worker.is_alive():
            return
        with self._worker_lock:
            if self._worker is None or not self._worker.is_alive():
                self._worker = threading.Thread(
                    target=self._run, name="event-sink-writer", daemon=True
                )
                self._worker.start()

    def _run(self):
        while True:
            event = self._queue.get()
            try:
                if event is _STOP:
                    return
                self._write(event)
            finally:
                self._queue.task_done()

    def _write(self, event):
        try:
            if self.app is not None:
                with self.app.app_context():
                    self.writer.write(event)
            else:
                self.writer.write(event)
        except Exception as exc:
            self._count("failed")
            self._log_failure(event, exc)
            return
        self._count("written")


def build_event_sink(app):
    mode = app.config.get("EVENT_SINK_MODE", "queued")
    if mode == "direct":
        return DirectEventSink()
    return QueuedEventSink(app=app, maxsize=app.config.get("EVENT_SINK_QUEUE_SIZE", 1000))


def get_event_sink():
    return current_app.extensions["event_sink"]
