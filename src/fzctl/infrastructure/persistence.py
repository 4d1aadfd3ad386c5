"""PersistenceQueue - fire-and-forget file renames and deletes.

Requests run on a single-worker ThreadPoolExecutor so they execute in
submission order (a node renamed twice is renamed twice, in order).
``sync=True`` runs them inline, which is what tests and ``--sync`` use.

Hierarchy moves only ever issue renames. :meth:`PersistenceQueue.submit_delete`
is the delete half of the file collaborator, kept for callers that remove
notes outside the move engine; no fzctl command deletes files.

INVARIANT: Persistence failures are logged and collected, never raised
back into the engine. The in-memory graph is not rolled back; disk and
memory reconcile on the next full refresh.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from fzctl.infrastructure.filesystem import delete_note_file, rename_note_file, renamed_path

if TYPE_CHECKING:
    from fzctl.domain.moves import RenameRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PersistenceFailure:
    """One rename or delete that did not happen on disk."""

    operation: str
    source: str
    destination: str | None
    error: str

    def __str__(self) -> str:
        target = f" -> {self.destination}" if self.destination else ""
        return f"{self.operation} failed: {self.source}{target} ({self.error})"


class PersistenceQueue:
    """Queue of file operations issued by hierarchy moves.

    Parameters:
        sync: Execute each request immediately in the caller's thread.
        enabled: When False, requests are logged and dropped (dry run).
    """

    def __init__(self, *, sync: bool = False, enabled: bool = True) -> None:
        self._enabled = enabled
        self._executor: ThreadPoolExecutor | None = (
            None if sync else ThreadPoolExecutor(max_workers=1, thread_name_prefix="fzctl-io")
        )
        self._futures: list[Future[None]] = []
        self._failures: list[PersistenceFailure] = []
        self._lock = threading.Lock()
        self._completed = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def completed(self) -> int:
        """Number of operations that succeeded so far."""
        return self._completed

    def submit_rename(self, request: RenameRequest) -> None:
        """Queue a rename of ``request.file`` from its old stem to its new stem."""
        if not isinstance(request.file, Path):
            self._record_failure(
                PersistenceFailure("rename", request.old_name, request.new_name, "no file handle")
            )
            return
        source, destination = renamed_path(request.file, request.old_name, request.new_name)
        self._submit(self._rename, source, destination)

    def submit_delete(self, path: Path) -> None:
        """Queue deletion of *path*. No move, undo or redo ever calls this."""
        self._submit(self._delete, path)

    def drain(self) -> list[PersistenceFailure]:
        """Wait for queued operations and return (and forget) collected failures."""
        self._wait_futures()
        with self._lock:
            failures, self._failures = self._failures, []
        return failures

    def shutdown(self) -> None:
        """Shutdown the executor, waiting for pending operations."""
        self._wait_futures()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _submit(self, fn: Callable[..., None], *args: Path) -> None:
        if not self._enabled:
            logger.info("Persistence disabled, skipping %s%s", fn.__name__, args)
            return
        if self._executor is None:
            fn(*args)
        else:
            self._futures.append(self._executor.submit(fn, *args))

    def _rename(self, source: Path, destination: Path) -> None:
        try:
            rename_note_file(source, destination)
        except OSError as exc:
            failure = PersistenceFailure("rename", str(source), str(destination), str(exc))
            self._record_failure(failure)
        else:
            logger.debug("Renamed %s -> %s", source.name, destination.name)
            self._mark_completed()

    def _delete(self, path: Path) -> None:
        try:
            delete_note_file(path)
        except OSError as exc:
            self._record_failure(PersistenceFailure("delete", str(path), None, str(exc)))
        else:
            logger.debug("Deleted %s", path.name)
            self._mark_completed()

    def _mark_completed(self) -> None:
        with self._lock:
            self._completed += 1

    def _record_failure(self, failure: PersistenceFailure) -> None:
        logger.warning("%s", failure)
        with self._lock:
            self._failures.append(failure)

    def _wait_futures(self) -> None:
        """Wait for all in-flight futures to complete."""
        for future in self._futures:
            try:
                future.result(timeout=30)
            except Exception:
                logger.warning("Persistence task raised", exc_info=True)
        self._futures.clear()
