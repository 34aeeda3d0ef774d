from __future__ import annotations

import logging
import re
import threading
import time
from collections import deque
from collections.abc import Callable
from enum import Enum
from pathlib import Path

from .directory import FileMetadata, delete_file, is_locked, list_matching
from .errors import ScanTaskError
from .progress import NullScanProgressSink, ScanProgressSink
from .samples_file import SamplesFile

LOG = logging.getLogger(__name__)


class ScanState(Enum):
    CREATED = "created"
    RUNNING = "running"
    COMPLETED = "completed"  # loop observed cancellation and returned
    CANCELLED = "cancelled"  # cancellation arrived before the loop began
    FAULTED = "faulted"

    @property
    def terminal(self) -> bool:
        return self in {ScanState.COMPLETED, ScanState.CANCELLED, ScanState.FAULTED}


def _oldest_first(entries: list[FileMetadata]) -> list[FileMetadata]:
    return sorted(entries, key=lambda entry: (entry.last_write_time, entry.name))


class ScanWorker:
    """Single-use background worker that polls a directory and consumes files.

    Files are processed oldest first. Newly arrived files are recognised by a
    modification-time watermark only, so a file rewritten with a timestamp at
    or below the watermark is never picked up again.
    """

    def __init__(
        self,
        directory: Path,
        pattern: re.Pattern[str],
        consume: Callable[[Path], SamplesFile],
        *,
        glob: str = "*.txt",
        poll_interval: float = 0.05,
        delete_consumed: bool = True,
        progress_sink: ScanProgressSink | None = None,
    ) -> None:
        self.directory = directory
        self.pattern = pattern
        self.glob = glob
        self.poll_interval = poll_interval
        self.delete_consumed = delete_consumed
        self._consume = consume
        self._sink: ScanProgressSink = progress_sink or NullScanProgressSink()
        self._cancel = threading.Event()
        self._started = threading.Event()
        self._thread: threading.Thread | None = None
        self._state = ScanState.CREATED
        self._error: BaseException | None = None
        self.watermark: float | None = None
        self.consumed = 0

    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def error(self) -> BaseException | None:
        return self._error

    def start(self, timeout: float = 1.0) -> bool:
        """Launch the worker thread; return True once it has signalled that it began."""
        if self._state is not ScanState.CREATED:
            raise ScanTaskError(
                f"Scan worker is single-use and already {self._state.value}; create a new one."
            )
        self._state = ScanState.RUNNING
        self._thread = threading.Thread(
            target=self._run,
            name="FileHandler-scan",
            daemon=True,
        )
        self._thread.start()
        return self._started.wait(timeout)

    def cancel(self) -> None:
        self._cancel.set()

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the thread to exit; return True if it has stopped."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def _run(self) -> None:
        self._started.set()
        if self._cancel.is_set():
            LOG.debug("Scan cancellation requested before scanning started")
            self._state = ScanState.CANCELLED
            return
        try:
            self._sink.start(self.directory, self.pattern.pattern)
            self._scan()
        except BaseException as exc:
            self._error = exc
            self._state = ScanState.FAULTED
            LOG.exception("Scan of %s faulted: %s", self.directory, exc)
        else:
            self._state = ScanState.COMPLETED
        finally:
            self._sink.close()

    def _scan(self) -> None:
        queue = self._initial_queue()
        LOG.info(
            "Scanning %s for %s matching %r (%d queued)",
            self.directory,
            self.glob,
            self.pattern.pattern,
            len(queue),
        )
        while not self._cancel.is_set():
            if queue:
                self._process_head(queue)
            self._refresh(queue)
            if not queue:
                self._cancel.wait(self.poll_interval)
        LOG.info("Scan of %s cancelled; %d file(s) left queued", self.directory, len(queue))

    def _initial_queue(self) -> deque[FileMetadata]:
        entries = _oldest_first(list_matching(self.directory, self.glob))
        if entries:
            self.watermark = max(entry.last_write_time for entry in entries)
        else:
            self.watermark = time.time()
        LOG.debug("Found %d file(s) in %s", len(entries), self.directory)
        return deque(entries)

    def _process_head(self, queue: deque[FileMetadata]) -> None:
        """Consume or skip the oldest queued file, then dequeue it.

        With ``delete_consumed`` the head is deleted whether it was read or
        skipped for a non-matching name. A head skipped because another
        process holds its lock is the exception: it stays on disk, since the
        holder is most likely still writing it.
        """
        head = queue[0]
        locked = False
        try:
            if self.pattern.search(head.name):
                if is_locked(head.full_path):
                    locked = True
                    LOG.debug("Skipping %s: locked by another process", head.name)
                else:
                    record = self._consume(head.full_path)
                    self.consumed += 1
                    self._sink.file_consumed(record)
            else:
                LOG.debug("Skipping %s: name does not match %r", head.name, self.pattern.pattern)
        finally:
            queue.popleft()
            if self.delete_consumed and not locked:
                delete_file(head.full_path)

    def _refresh(self, queue: deque[FileMetadata]) -> None:
        watermark = self.watermark
        if watermark is None:
            raise ScanTaskError("Scan refresh requested before the initial directory listing.")
        fresh = _oldest_first(
            [
                entry
                for entry in list_matching(self.directory, self.glob)
                if entry.last_write_time > watermark
            ]
        )
        if not fresh:
            return
        LOG.debug("%d new file(s) found in %s", len(fresh), self.directory)
        queue.extend(fresh)
        # Newest timestamp ever queued; stays put once the queue drains.
        self.watermark = fresh[-1].last_write_time
        self._sink.status(f"{len(queue)} queued")


__all__ = ["ScanState", "ScanWorker"]
