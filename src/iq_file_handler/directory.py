from __future__ import annotations

import contextlib
import logging
import sys
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import IO

if sys.platform.startswith("win"):
    import msvcrt
    import os

    # msvcrt locks byte ranges from the current position; always use byte 0.
    def _lock(fd: int, *, blocking: bool) -> None:
        os.lseek(fd, 0, os.SEEK_SET)
        msvcrt.locking(fd, msvcrt.LK_LOCK if blocking else msvcrt.LK_NBLCK, 1)

    def _unlock(fd: int) -> None:
        os.lseek(fd, 0, os.SEEK_SET)
        msvcrt.locking(fd, msvcrt.LK_UNLCK, 1)

else:
    import fcntl

    def _lock(fd: int, *, blocking: bool) -> None:
        flags = fcntl.LOCK_EX if blocking else fcntl.LOCK_EX | fcntl.LOCK_NB
        fcntl.flock(fd, flags)

    def _unlock(fd: int) -> None:
        fcntl.flock(fd, fcntl.LOCK_UN)


LOG = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class FileMetadata:
    full_path: Path
    name: str
    last_write_time: float  # POSIX timestamp (seconds)


def list_matching(directory: Path, pattern: str) -> list[FileMetadata]:
    """List regular files in ``directory`` matching the glob ``pattern``.

    Entries that disappear between enumeration and ``stat`` are skipped; the
    scan worker deletes consumed files while other callers may be listing.
    """
    entries: list[FileMetadata] = []
    for path in sorted(directory.glob(pattern)):
        try:
            if not path.is_file():
                continue
            stat = path.stat()
        except FileNotFoundError:
            continue
        entries.append(FileMetadata(path, path.name, stat.st_mtime))
    return entries


def is_locked(path: Path) -> bool:
    """Return True when an exclusive lock on ``path`` cannot be taken right now.

    Any failure (missing file, permissions, a lock held elsewhere) reads as
    locked. The probe releases the lock immediately, so a False answer is only
    a hint for the next read.
    """
    try:
        with open(path, "r+b") as handle:
            _lock(handle.fileno(), blocking=False)
            _unlock(handle.fileno())
    except OSError as exc:
        LOG.debug("Lock probe failed for %s: %s", path, exc)
        return True
    return False


@contextlib.contextmanager
def exclusive_lock(handle: IO) -> Iterator[IO]:
    """Hold an exclusive advisory lock on an open file for the block's duration."""
    _lock(handle.fileno(), blocking=True)
    try:
        yield handle
    finally:
        handle.flush()
        _unlock(handle.fileno())


def ensure_directory(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def delete_file(path: Path) -> bool:
    """Best-effort removal; failures are logged, never raised."""
    try:
        path.unlink()
    except OSError as exc:
        LOG.warning("Unable to delete consumed file %s: %s", path, exc)
        return False
    return True


__all__ = [
    "FileMetadata",
    "delete_file",
    "ensure_directory",
    "exclusive_lock",
    "is_locked",
    "list_matching",
]
