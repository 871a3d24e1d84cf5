"""Concurrent scan pipeline: walker, worker pool and shutdown coordinator."""

from .coordinator import ShutdownCoordinator, print_report
from .pool import InlineDispatcher, TaskProcessor, WorkerPool
from .walker import DirectoryWalker, count_candidates, iter_candidates

__all__ = [
    "ShutdownCoordinator",
    "print_report",
    "InlineDispatcher",
    "TaskProcessor",
    "WorkerPool",
    "DirectoryWalker",
    "count_candidates",
    "iter_candidates",
]
