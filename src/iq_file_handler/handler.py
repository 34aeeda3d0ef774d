from __future__ import annotations

import contextlib
import logging
import os
import re
import threading
import time
from collections.abc import Iterable, Iterator, Mapping
from enum import Enum
from pathlib import Path

from .complex_sample import ComplexSample
from .config import FileHandlerConfig, resolve_directory
from .directory import ensure_directory, exclusive_lock
from .errors import HandlerBusyError, ScanFaultedError, ScanTaskError, WrongModeError
from .progress import ScanProgressSink
from .results import ResultsLog
from .samples_file import SamplesFile
from .samples_format import format_lines, parse_lines, validate_for_write
from .scanner import ScanState, ScanWorker

LOG = logging.getLogger(__name__)


class StreamMode(Enum):
    WRITE = "write"
    READ = "read"


class ReadMode(Enum):
    SCAN = "scan"
    ON_DEMAND = "on_demand"


class Scanning(Enum):
    START = "start"
    STOP = "stop"


class FileHandler:
    """Read and write samples files in a data directory.

    The handler works either as a writer or as a reader. Readers fetch files by
    name (on demand) or run a background scan that consumes matching files as a
    producer drops them into the directory, oldest first, deleting each one
    after it has been handled. Every completed read is appended to ``results``.

    At most one write and one read or scan may be in flight per handler; the
    busy flags are checked and set under a lock at every entry point and cleared
    in ``finally`` blocks.
    """

    def __init__(
        self,
        directory: str | os.PathLike[str] = "",
        mode: StreamMode = StreamMode.WRITE,
        *,
        config: FileHandlerConfig | None = None,
        results: ResultsLog | None = None,
    ) -> None:
        self.config = config or FileHandlerConfig()
        self.directory = ensure_directory(resolve_directory(directory))
        self.results = results if results is not None else ResultsLog()
        self._mode = mode
        self._read_mode = ReadMode.ON_DEMAND
        self._writer_busy = False
        self._reader_busy = False
        self._file_pattern: str | None = None
        self._worker: ScanWorker | None = None
        self._lock = threading.RLock()
        LOG.debug("FileHandler created. Data dir: %s, mode: %s", self.directory, mode.value)

    def __enter__(self) -> FileHandler:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # -- State -------------------------------------------------------------
    @property
    def mode(self) -> StreamMode:
        return self._mode

    @property
    def read_mode(self) -> ReadMode:
        return self._read_mode

    @property
    def writer_busy(self) -> bool:
        return self._writer_busy

    @property
    def reader_busy(self) -> bool:
        return self._reader_busy

    @property
    def file_pattern(self) -> str | None:
        return self._file_pattern

    @property
    def scan_state(self) -> ScanState | None:
        worker = self._worker
        return worker.state if worker is not None else None

    @property
    def scan_error(self) -> BaseException | None:
        worker = self._worker
        return worker.error if worker is not None else None

    @property
    def last_modification(self) -> float | None:
        worker = self._worker
        return worker.watermark if worker is not None else None

    # -- Mode transitions --------------------------------------------------
    def change_mode(self, mode: StreamMode, read_mode: ReadMode | None = None) -> None:
        """Switch between writer and reader.

        Leaving read mode halts a running scan first. Entering read mode without
        a read mode selects on-demand reading.
        """
        with self._lock:
            if self._writer_busy:
                raise HandlerBusyError("Cannot change mode while a write is in progress.")
            LOG.debug("Changing mode to %s", mode.value)
            if self._mode is StreamMode.READ:
                try:
                    if mode is StreamMode.WRITE:
                        self.change_read_mode(ReadMode.ON_DEMAND)
                    elif read_mode is not None and read_mode is not self._read_mode:
                        self.change_read_mode(read_mode)
                except ScanFaultedError:
                    # The faulted scan is already cleared; finish the switch before reporting it.
                    self._mode = mode
                    raise
            elif mode is StreamMode.READ:
                self._read_mode = read_mode or ReadMode.ON_DEMAND
            self._mode = mode

    def change_read_mode(
        self,
        read_mode: ReadMode,
        scanning: Scanning | None = None,
        file_pattern: str | None = None,
    ) -> None:
        """Change the read strategy, optionally starting a scan right away.

        With ``scanning=Scanning.START`` and ``read_mode=ReadMode.SCAN`` the scan
        starts for ``file_pattern``; any other combination only switches the
        mode, stopping a running scan when moving to on-demand reading.
        """
        LOG.debug("Changing read mode to %s", read_mode.value)
        if scanning is None or read_mode is ReadMode.ON_DEMAND or scanning is Scanning.STOP:
            self._switch_read_mode(read_mode)
            return
        if file_pattern is None:
            raise ValueError("file_pattern is required to start scanning.")
        with self._lock:
            if self._writer_busy:
                raise HandlerBusyError("Cannot change read mode while a write is in progress.")
            if self._reader_busy:
                raise HandlerBusyError("Cannot start scanning while the reader is busy.")
            self._read_mode = ReadMode.SCAN
            self.start_scan(file_pattern)

    def _switch_read_mode(self, read_mode: ReadMode) -> None:
        with self._lock:
            if self._writer_busy:
                raise HandlerBusyError("Cannot change read mode while a write is in progress.")
            if (
                self._read_mode is ReadMode.SCAN
                and read_mode is ReadMode.ON_DEMAND
                and self._worker is not None
            ):
                try:
                    self.stop_scan()
                except ScanFaultedError:
                    self._read_mode = read_mode
                    raise
            elif self._reader_busy:
                raise HandlerBusyError("Cannot change read mode while a read is in progress.")
            self._read_mode = read_mode

    # -- Scanning ----------------------------------------------------------
    def start_scan(
        self,
        file_pattern: str,
        *,
        progress_sink: ScanProgressSink | None = None,
    ) -> None:
        """Start consuming files whose names match the regex ``file_pattern``."""
        with self._lock:
            worker = self._worker
            if worker is not None and not worker.state.terminal:
                raise ScanTaskError("Scan task is already running.")
            if self._mode is not StreamMode.READ or self._read_mode is not ReadMode.SCAN:
                LOG.debug(
                    "Cannot start scanning. Mode: %s, read mode: %s",
                    self._mode.value,
                    self._read_mode.value,
                )
                raise WrongModeError(
                    "Change to read mode 'scan' to start scanning "
                    f"(mode is '{self._mode.value}', read mode is '{self._read_mode.value}')."
                )
            if worker is not None and worker.state is ScanState.FAULTED:
                raise ScanTaskError(
                    "Scan task malfunction: the previous scan faulted; call stop_scan() to clear it."
                )
            if self._reader_busy:
                raise HandlerBusyError("Cannot start scanning while the reader is busy.")
            pattern = re.compile(file_pattern)

            LOG.debug("Starting scan for files matching %r", file_pattern)
            self._file_pattern = file_pattern
            self._reader_busy = True
            worker = ScanWorker(
                self.directory,
                pattern,
                self._read_path,
                glob=self.config.scan_glob,
                poll_interval=self.config.poll_interval,
                delete_consumed=self.config.delete_consumed,
                progress_sink=progress_sink,
            )
            self._worker = worker
            try:
                started = worker.start(self.config.startup_timeout)
            except BaseException:
                self._worker = None
                self._reader_busy = False
                raise
            if not started:
                LOG.warning(
                    "Scan task did not report startup within %.2f s", self.config.startup_timeout
                )
            LOG.debug("Scan task has started")

    def stop_scan(self) -> None:
        """Cancel the scan and wait for it to exit.

        Raises ScanFaultedError (after cleaning up) when the scan had already
        failed, chaining the original exception.
        """
        with self._lock:
            if self._mode is not StreamMode.READ or self._read_mode is not ReadMode.SCAN:
                raise WrongModeError(
                    "Cannot stop scanning: handler is not in read mode 'scan' "
                    f"(mode is '{self._mode.value}', read mode is '{self._read_mode.value}')."
                )
            worker = self._worker
            if worker is None or worker.state not in {ScanState.RUNNING, ScanState.FAULTED}:
                raise ScanTaskError("Cannot stop scanning: no scan task is running.")

            LOG.debug("Sending cancellation request to the scan task")
            worker.cancel()
            try:
                stopped = worker.join(self.config.stop_timeout)
            finally:
                self._worker = None
                self._reader_busy = False
            if not stopped:
                LOG.warning(
                    "Scan task still running after %.2f s; detaching it", self.config.stop_timeout
                )
            if worker.state is ScanState.FAULTED:
                raise ScanFaultedError(f"Scan task faulted: {worker.error}") from worker.error
            LOG.info("Scan task stopped after consuming %d file(s)", worker.consumed)

    def close(self) -> None:
        """Stop a running or faulted scan, if any."""
        with self._lock:
            if self._worker is None:
                return
            self.stop_scan()

    # -- On-demand I/O -----------------------------------------------------
    def read_file(self, file_name: str | os.PathLike[str]) -> SamplesFile:
        """Read one file by name and append it to ``results``.

        Relative names resolve against the data directory.
        """
        path = self._resolve(file_name)
        with self._reader_slot():
            return self._read_path(path)

    def write_file(self, record: SamplesFile) -> Path:
        """Write ``record`` into the data directory, replacing any file of that name."""
        with self._writer_slot():
            validate_for_write(record)
            path = self._resolve(record.file_name)
            started = time.perf_counter()
            with open(path, "w", encoding=self.config.encoding, newline="\n") as handle:
                with exclusive_lock(handle):
                    for line in format_lines(record):
                        handle.write(line + "\n")
            LOG.debug(
                "Wrote %s: %d header entries, %d samples in %.4f s",
                path.name,
                len(record.header),
                record.sample_count,
                time.perf_counter() - started,
            )
            return path

    def write_samples(
        self,
        header: Mapping[str, str],
        samples: Iterable[ComplexSample | complex],
        file_name: str,
    ) -> Path:
        record = SamplesFile(
            file_name=file_name,
            header=dict(header),
            samples=[
                sample if isinstance(sample, ComplexSample) else ComplexSample.from_complex(sample)
                for sample in samples
            ],
        )
        return self.write_file(record)

    # -- Internals ---------------------------------------------------------
    def _resolve(self, file_name: str | os.PathLike[str]) -> Path:
        path = Path(file_name)
        return path if path.is_absolute() else self.directory / path

    def _read_path(self, path: Path) -> SamplesFile:
        started = time.perf_counter()
        with open(path, encoding=self.config.encoding) as handle:
            record = parse_lines(handle, file_name=path.name)
        self.results.append(record)
        LOG.debug(
            "Read %s: %d header entries, %d samples in %.4f s",
            path.name,
            len(record.header),
            record.sample_count,
            time.perf_counter() - started,
        )
        return record

    @contextlib.contextmanager
    def _writer_slot(self) -> Iterator[None]:
        with self._lock:
            if self._mode is not StreamMode.WRITE:
                raise WrongModeError(
                    f"Cannot write while in '{self._mode.value}' mode; change mode to 'write'."
                )
            if self._writer_busy:
                raise HandlerBusyError("Writer is busy with another file.")
            self._writer_busy = True
        try:
            yield
        finally:
            with self._lock:
                self._writer_busy = False

    @contextlib.contextmanager
    def _reader_slot(self) -> Iterator[None]:
        with self._lock:
            if self._mode is not StreamMode.READ:
                raise WrongModeError(
                    f"Cannot read while in '{self._mode.value}' mode; change mode to 'read'."
                )
            if self._reader_busy:
                raise HandlerBusyError("Reader is busy with another read or a running scan.")
            self._reader_busy = True
        try:
            yield
        finally:
            with self._lock:
                self._reader_busy = False


__all__ = ["FileHandler", "ReadMode", "Scanning", "StreamMode"]
