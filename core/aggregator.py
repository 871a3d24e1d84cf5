"""Thread-safe digest frequency tables and progress counter."""

from __future__ import annotations

import threading
from collections import Counter
from typing import Any, Iterable, Mapping

from .models import RegionCategory


class Aggregator:
    """Owns one frequency table per region category behind a single lock."""

    def __init__(self, categories: Iterable[RegionCategory] = tuple(RegionCategory)) -> None:
        self._lock = threading.Lock()
        self._tables: dict[RegionCategory, Counter[str]] = {cat: Counter() for cat in categories}
        self._finalized = False

    def increment(self, category: RegionCategory, digest: str) -> None:
        with self._lock:
            self._check_open()
            self._tables[category][digest] += 1

    def record(self, digests: Mapping[RegionCategory, str]) -> None:
        """Count every region digest of one file in a single step."""
        if not digests:
            return
        with self._lock:
            self._check_open()
            for category, digest in digests.items():
                self._tables[category][digest] += 1

    def finalize(self) -> dict[RegionCategory, dict[str, int]]:
        """Seal the aggregator and return plain copies of all tables.

        Must only be called once no worker can still be recording.
        """
        with self._lock:
            self._finalized = True
            return {cat: dict(table) for cat, table in self._tables.items()}

    def _check_open(self) -> None:
        if self._finalized:
            raise RuntimeError("aggregator already finalized")


class ProgressCounter:
    """Counts processed candidates and forwards each step to a progress bar."""

    def __init__(self, total: int, bar: Any = None) -> None:
        self._lock = threading.Lock()
        self.total = total
        self.processed = 0
        self.skipped = 0
        self.discarded = 0
        self._bar = bar

    def advance(self, skipped: bool = False) -> None:
        with self._lock:
            self.processed += 1
            if skipped:
                self.skipped += 1
            if self._bar is not None:
                self._bar.update(1)

    def discard(self) -> None:
        with self._lock:
            self.discarded += 1

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return {
                "total": self.total,
                "processed": self.processed,
                "skipped": self.skipped,
                "discarded": self.discarded,
            }
