from __future__ import annotations

import threading
import time
from collections.abc import Iterator

from .samples_file import SamplesFile


class ResultsLog:
    """Append-only, thread-safe collection of completed reads.

    The scan worker and on-demand readers append concurrently; readers see
    tuple snapshots so a partially appended entry is never observable.
    """

    def __init__(self) -> None:
        self._items: list[SamplesFile] = []
        self._changed = threading.Condition(threading.Lock())

    def append(self, record: SamplesFile) -> None:
        with self._changed:
            self._items.append(record)
            self._changed.notify_all()

    def snapshot(self) -> tuple[SamplesFile, ...]:
        with self._changed:
            return tuple(self._items)

    def wait_for(self, count: int, timeout: float | None = None) -> bool:
        """Block until at least ``count`` entries exist; False on timeout."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._changed:
            while len(self._items) < count:
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return False
                self._changed.wait(remaining)
            return True

    def __len__(self) -> int:
        with self._changed:
            return len(self._items)

    def __iter__(self) -> Iterator[SamplesFile]:
        return iter(self.snapshot())

    def __getitem__(self, index: int) -> SamplesFile:
        with self._changed:
            return self._items[index]


__all__ = ["ResultsLog"]
