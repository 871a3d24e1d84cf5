"""
Directory Walker
────────────────
Single producer of the scan pipeline. Enumerates regular files under a root,
keeps those whose size equals the sample fingerprint, and hands each one to
a sink (the inline dispatcher or the worker pool's task queue).

Entries that cannot be read are skipped; the walk itself never fails.
"""

from __future__ import annotations

import logging
import os
import stat
from typing import Iterator, Protocol

from core.cancellation import CancellationToken
from core.models import ScanTask
from core.utils import FINGERPRINT_SIZE

log = logging.getLogger(__name__)


class TaskSink(Protocol):
    def submit(self, task: ScanTask) -> None: ...

    def close(self) -> None: ...


# ---------------------------------------------------------------------------
# Enumeration
# ---------------------------------------------------------------------------


def iter_candidates(
    root: str | os.PathLike[str],
    fingerprint_size: int = FINGERPRINT_SIZE,
    token: CancellationToken | None = None,
) -> Iterator[ScanTask]:
    """Yield a ``ScanTask`` for every regular file of exactly *fingerprint_size* bytes.

    Symlinks are not followed. Directories are visited depth-first with
    entries in name order, so two walks over an unchanged tree agree.
    """
    root_path = os.path.abspath(os.fspath(root))
    try:
        st = os.lstat(root_path)
    except OSError as exc:
        log.debug("cannot stat %s: %s", root_path, exc)
        return

    if stat.S_ISREG(st.st_mode):
        if st.st_size == fingerprint_size:
            yield ScanTask(root_path)
        return
    if not stat.S_ISDIR(st.st_mode):
        return

    stack = [root_path]
    while stack:
        if token is not None and token.cancelled:
            return
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as exc:
            log.debug("skipping directory %s: %s", current, exc)
            continue

        subdirs: list[str] = []
        for entry in entries:
            if token is not None and token.cancelled:
                return
            try:
                if entry.is_dir(follow_symlinks=False):
                    subdirs.append(entry.path)
                    continue
                if not entry.is_file(follow_symlinks=False):
                    continue
                size = entry.stat(follow_symlinks=False).st_size
            except OSError as exc:
                log.debug("skipping entry %s: %s", entry.path, exc)
                continue
            if size == fingerprint_size:
                yield ScanTask(entry.path)

        # reversed so the stack pops them in name order
        stack.extend(reversed(subdirs))


def count_candidates(
    root: str | os.PathLike[str],
    fingerprint_size: int = FINGERPRINT_SIZE,
    token: CancellationToken | None = None,
) -> int:
    """Total number of candidates, used only to size the progress bar."""
    return sum(1 for _ in iter_candidates(root, fingerprint_size, token))


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


class DirectoryWalker:
    """Feeds candidates to a sink until the tree is exhausted or the run is cancelled."""

    def __init__(
        self,
        root: str | os.PathLike[str],
        token: CancellationToken,
        fingerprint_size: int = FINGERPRINT_SIZE,
    ) -> None:
        self.root = root
        self.token = token
        self.fingerprint_size = fingerprint_size
        self.dispatched = 0

    def run(self, sink: TaskSink) -> bool:
        """Dispatch every candidate, then close *sink*.

        Returns False when the walk stopped early because of cancellation.
        The sink is closed exactly once whatever happens.
        """
        try:
            for task in iter_candidates(self.root, self.fingerprint_size, self.token):
                if self.token.cancelled:
                    break
                sink.submit(task)
                self.dispatched += 1
        finally:
            sink.close()

        if self.token.cancelled:
            log.info("walk stopped after %d candidate(s): %s", self.dispatched, self.token.reason)
            return False
        return True
