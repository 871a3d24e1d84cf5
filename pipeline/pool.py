"""
Worker Pool
───────────
Consumers of the scan pipeline. Every candidate goes through a
``TaskProcessor`` (extract regions, digest them, record them), either
synchronously on the producer's thread (``InlineDispatcher``, one job) or on
a fixed set of worker threads fed through a bounded queue (``WorkerPool``).
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Callable

from core.aggregator import Aggregator, ProgressCounter
from core.cancellation import CancellationToken
from core.models import ExtractionError, ExtractionResult, NotABinaryError, ScanTask
from core.utils import compute_digest

log = logging.getLogger(__name__)

Extractor = Callable[[str], ExtractionResult]

# end-of-input marker, one per worker
_CLOSED = object()


class TaskProcessor:
    """Analyse one candidate and feed its region digests to the aggregator."""

    def __init__(self, extractor: Extractor, aggregator: Aggregator, progress: ProgressCounter) -> None:
        self.extractor = extractor
        self.aggregator = aggregator
        self.progress = progress

    def __call__(self, task: ScanTask) -> None:
        try:
            result = self.extractor(task.path)
        except NotABinaryError as exc:
            log.debug("not a supported binary, skipping %s: %s", task.path, exc)
            self.progress.advance(skipped=True)
            return
        except (ExtractionError, OSError) as exc:
            log.warning("[-] ERROR: %s @ %s", exc, task.path)
            self.progress.advance(skipped=True)
            return

        digests = {cat: compute_digest(buf) for cat, buf in result.present().items()}
        self.aggregator.record(digests)
        self.progress.advance()


class InlineDispatcher:
    """Single-job sink: processes each task on the caller's thread."""

    def __init__(self, processor: Callable[[ScanTask], None], progress: ProgressCounter | None = None) -> None:
        self._processor = processor
        self._progress = progress
        self._closed = False

    def start(self) -> None:
        pass

    def submit(self, task: ScanTask) -> None:
        if self._closed:
            raise RuntimeError("cannot submit to a closed dispatcher")
        try:
            self._processor(task)
        except Exception:
            log.exception("unexpected failure while analysing %s", task.path)
            if self._progress is not None:
                self._progress.advance(skipped=True)

    def close(self) -> None:
        if self._closed:
            raise RuntimeError("dispatcher already closed")
        self._closed = True

    def join(self) -> None:
        pass


class WorkerPool:
    """Fixed set of worker threads consuming tasks from a bounded queue.

    Once the token is cancelled, tasks still waiting in the queue are
    discarded; tasks already being processed run to completion.
    """

    def __init__(
        self,
        processor: Callable[[ScanTask], None],
        workers: int,
        token: CancellationToken,
        progress: ProgressCounter | None = None,
        queue_size: int = 1,
    ) -> None:
        if workers < 2:
            raise ValueError("a worker pool needs at least two workers; use InlineDispatcher")
        self._processor = processor
        self._workers = workers
        self._token = token
        self._progress = progress
        self._tasks: queue.Queue[object] = queue.Queue(maxsize=queue_size)
        self._threads: list[threading.Thread] = []
        self._close_lock = threading.Lock()
        self._closed = False

    @property
    def workers(self) -> int:
        return self._workers

    def start(self) -> None:
        if self._threads:
            raise RuntimeError("worker pool already started")
        for i in range(self._workers):
            thread = threading.Thread(target=self._work, name=f"scan-worker-{i}")
            self._threads.append(thread)
            thread.start()
        log.debug("started %d scan workers", self._workers)

    def submit(self, task: ScanTask) -> None:
        """Hand *task* to the pool, blocking until a worker makes room."""
        if self._closed:
            raise RuntimeError("cannot submit to a closed task queue")
        self._tasks.put(task)

    def close(self) -> None:
        """Signal end-of-input. Only the producer may call this, and only once."""
        if threading.current_thread() in self._threads:
            raise RuntimeError("task queue must be closed by the producer, not a worker")
        with self._close_lock:
            if self._closed:
                raise RuntimeError("task queue already closed")
            self._closed = True
        for _ in self._threads:
            self._tasks.put(_CLOSED)

    def join(self) -> None:
        """Wait barrier: returns once every started worker has exited."""
        for thread in self._threads:
            thread.join()

    def _work(self) -> None:
        while True:
            task = self._tasks.get()
            if task is _CLOSED:
                return
            if self._token.cancelled:
                if self._progress is not None:
                    self._progress.discard()
                continue
            try:
                self._processor(task)
            except Exception:
                log.exception("unexpected failure while analysing %s", getattr(task, "path", task))
                if self._progress is not None:
                    self._progress.advance(skipped=True)
