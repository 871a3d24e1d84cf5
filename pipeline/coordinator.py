"""
Shutdown Coordinator
────────────────────
Central coordinator of a scan run. It owns the cancellation token and drives
the run through its states:

    IDLE -> COUNTING -> SCANNING -> DRAINING -> REPORTING -> TERMINATED

A normal finish and an interrupt (signal or ``request_shutdown``) converge
on the same drain/report sequence, which runs exactly once per coordinator.
The signal handler only flips the token; it never reports or exits.
"""

from __future__ import annotations

import contextlib
import logging
import os
import signal
import threading
import time
from typing import Callable, Iterator

from tqdm import tqdm

from core.aggregator import Aggregator, ProgressCounter
from core.cancellation import CancellationToken
from core.models import RunState, ScanReport
from core.utils import FINGERPRINT_SIZE, format_report

from .pool import Extractor, InlineDispatcher, TaskProcessor, WorkerPool
from .walker import DirectoryWalker, count_candidates

log = logging.getLogger(__name__)

ReportSink = Callable[[ScanReport], None]

_TRANSITIONS: dict[RunState, set[RunState]] = {
    RunState.IDLE: {RunState.COUNTING},
    RunState.COUNTING: {RunState.SCANNING},
    RunState.SCANNING: {RunState.DRAINING},
    RunState.DRAINING: {RunState.REPORTING},
    RunState.REPORTING: {RunState.TERMINATED},
    RunState.TERMINATED: set(),
}

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def print_report(report: ScanReport) -> None:
    print(format_report(report), flush=True)


class ShutdownCoordinator:
    """Runs one scan of *root* and emits exactly one report."""

    def __init__(
        self,
        root: str | os.PathLike[str],
        extractor: Extractor,
        jobs: int = 1,
        report_sink: ReportSink = print_report,
        fingerprint_size: int = FINGERPRINT_SIZE,
        show_progress: bool = True,
    ) -> None:
        if jobs < 1:
            raise ValueError(f"jobs must be a positive integer, got {jobs}")
        self.root = root
        self.extractor = extractor
        self.jobs = jobs
        self.report_sink = report_sink
        self.fingerprint_size = fingerprint_size
        self.show_progress = show_progress
        self.token = CancellationToken()
        self.history: list[RunState] = [RunState.IDLE]
        self._state = RunState.IDLE
        self._state_lock = threading.Lock()

    # ── state machine ────────────────────────────────────────────────

    @property
    def state(self) -> RunState:
        with self._state_lock:
            return self._state

    def _transition(self, target: RunState) -> None:
        with self._state_lock:
            if target not in _TRANSITIONS[self._state]:
                raise RuntimeError(f"invalid run state transition {self._state.value} -> {target.value}")
            log.debug("run state %s -> %s", self._state.value, target.value)
            self._state = target
            self.history.append(target)

    # ── cancellation ─────────────────────────────────────────────────

    def request_shutdown(self, reason: str = "shutdown requested") -> None:
        """Stop dispatching new work; the run still drains and reports."""
        if self.token.cancel(reason):
            log.warning("%s, draining in-flight work before reporting", reason)
        else:
            log.info("shutdown already in progress (%s)", self.token.reason)

    @contextlib.contextmanager
    def handle_signals(self) -> Iterator[None]:
        """Route SIGINT/SIGTERM to ``request_shutdown`` for the duration of the block.

        Python only delivers signals to the main thread, so anywhere else
        this is a no-op and cancellation must come from ``request_shutdown``.
        """
        if threading.current_thread() is not threading.main_thread():
            yield
            return

        def _handler(signum, frame):
            self.request_shutdown(f"received {signal.Signals(signum).name}")

        previous = {sig: signal.signal(sig, _handler) for sig in SHUTDOWN_SIGNALS}
        try:
            yield
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)

    # ── run ──────────────────────────────────────────────────────────

    def run(self) -> ScanReport:
        """Count, scan, drain, report. Callable once per coordinator."""
        started = time.monotonic()
        self._transition(RunState.COUNTING)
        total = count_candidates(self.root, self.fingerprint_size, self.token)
        log.info("%d file(s) of %d bytes to analyse under %s", total, self.fingerprint_size, self.root)

        aggregator = Aggregator()
        bar = tqdm(total=total, unit="file", desc="Analysing", disable=not self.show_progress)
        progress = ProgressCounter(total, bar)
        processor = TaskProcessor(self.extractor, aggregator, progress)
        if self.jobs > 1:
            sink: InlineDispatcher | WorkerPool = WorkerPool(processor, self.jobs, self.token, progress)
        else:
            sink = InlineDispatcher(processor, progress)

        walker = DirectoryWalker(self.root, self.token, self.fingerprint_size)
        sink.start()
        self._transition(RunState.SCANNING)
        try:
            walker.run(sink)
        finally:
            self._transition(RunState.DRAINING)
            sink.join()
            bar.close()

            self._transition(RunState.REPORTING)
            counts = progress.snapshot()
            report = ScanReport(
                tables=aggregator.finalize(),
                candidates=total,
                processed=counts["processed"],
                skipped=counts["skipped"],
                discarded=counts["discarded"],
                interrupted=self.token.cancelled,
                reason=self.token.reason,
                elapsed_seconds=time.monotonic() - started,
            )
            self.report_sink(report)
            self._transition(RunState.TERMINATED)
        return report
