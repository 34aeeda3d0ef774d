from __future__ import annotations

from pathlib import Path
from typing import IO, Optional

try:  # pragma: no cover - tqdm is optional for programmatic use
    from tqdm import tqdm
except ImportError:  # pragma: no cover - tests may run without tqdm installed
    tqdm = None  # type: ignore[assignment]

from .samples_file import SamplesFile

_MAX_STATUS_WIDTH = 48


def normalize_status(message: str, width: int = _MAX_STATUS_WIDTH) -> str:
    stripped = " ".join(str(message).split())
    if len(stripped) <= width:
        return stripped
    return stripped[: width - 1] + "…"


class ScanProgressSink:
    """Interface for receiving scan progress events from the worker thread."""

    def start(self, directory: Path, pattern: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def file_consumed(self, record: SamplesFile) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def status(self, message: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def close(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class NullScanProgressSink(ScanProgressSink):
    """Sink that ignores all progress events."""

    def start(self, directory: Path, pattern: str) -> None:
        return

    def file_consumed(self, record: SamplesFile) -> None:
        return

    def status(self, message: str) -> None:
        return

    def close(self) -> None:
        return


class TqdmScanProgressSink(ScanProgressSink):
    """Render an open-ended counter of consumed files using tqdm."""

    def __init__(self, *, file: Optional[IO[str]] = None, leave: bool = True):
        if tqdm is None:
            raise RuntimeError(
                "tqdm is required for progress reporting but is not installed."
            )
        self._file = file
        self._leave = leave
        self._bar: Optional[tqdm] = None
        self._samples = 0

    @property
    def samples(self) -> int:
        return self._samples

    def start(self, directory: Path, pattern: str) -> None:
        self._samples = 0
        self._bar = tqdm(
            total=None,
            desc=normalize_status(f"Scan {directory.name or directory}"),
            unit="file",
            file=self._file,
            leave=self._leave,
        )

    def file_consumed(self, record: SamplesFile) -> None:
        self._samples += record.sample_count
        if self._bar is not None:
            self._bar.update(1)
            self._bar.set_postfix_str(f"{self._samples} samples")

    def status(self, message: str) -> None:
        if self._bar is not None:
            self._bar.set_postfix_str(normalize_status(message))

    def close(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None


__all__ = [
    "NullScanProgressSink",
    "ScanProgressSink",
    "TqdmScanProgressSink",
    "normalize_status",
]
