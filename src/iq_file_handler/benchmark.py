from __future__ import annotations

import contextlib
import logging
import math
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import numpy as np

from .config import FileHandlerConfig
from .handler import FileHandler, ReadMode, StreamMode
from .progress import ScanProgressSink

LOG = logging.getLogger(__name__)

_FILE_PATTERN = r"^bench_\d+\.txt$"


@dataclass(slots=True)
class BenchmarkResult:
    files: int
    samples: int
    write_seconds: float
    scan_seconds: float

    @property
    def samples_per_second(self) -> float:
        return self.samples / self.scan_seconds if self.scan_seconds > 0 else float("inf")


def _generate_synthetic_iq(
    total_samples: int,
    sample_rate: float,
    freq_offset: float,
    *,
    amplitude: float = 0.7,
    noise_std: float = 0.02,
) -> np.ndarray:
    t = np.arange(total_samples, dtype=np.float64) / sample_rate
    tone = amplitude * np.exp(1j * 2.0 * math.pi * freq_offset * t)
    rng = np.random.default_rng(42)
    noise = rng.normal(scale=noise_std, size=(total_samples, 2))
    iq = tone + noise[:, 0] + 1j * noise[:, 1]
    return np.clip(iq.real, -0.999, 0.999) + 1j * np.clip(iq.imag, -0.999, 0.999)


def run_benchmark(
    *,
    files: int = 8,
    samples_per_file: int = 4096,
    sample_rate: float = 1_000_000.0,
    freq_offset: float = 25_000.0,
    base_dir: Optional[Path] = None,
    timeout: float = 30.0,
    progress_sink: Optional[ScanProgressSink] = None,
) -> BenchmarkResult:
    """Write synthetic tone files and measure how fast a scanning reader consumes them.

    Files land in a fresh temporary directory (created under ``base_dir`` when
    given) because the scan deletes everything it handles.
    """
    if files <= 0:
        raise ValueError("Benchmark needs at least one file.")
    if samples_per_file <= 0:
        raise ValueError("Benchmark samples per file must be positive.")
    if sample_rate <= 0:
        raise ValueError("Benchmark sample rate must be positive.")
    if abs(freq_offset) >= sample_rate / 2.0:
        raise ValueError("Benchmark offset must be within half the sample rate.")
    if timeout <= 0:
        raise ValueError("Benchmark timeout must be positive.")

    LOG.info(
        "Running benchmark: %d file(s) x %d samples at %.2f MS/s, offset %.1f kHz",
        files,
        samples_per_file,
        sample_rate / 1e6,
        freq_offset / 1e3,
    )

    iq = _generate_synthetic_iq(files * samples_per_file, sample_rate, freq_offset)
    config = FileHandlerConfig(poll_interval=0.01, delete_consumed=True)

    with contextlib.ExitStack() as stack:
        workdir = Path(stack.enter_context(tempfile.TemporaryDirectory(dir=base_dir)))
        writer = FileHandler(workdir, StreamMode.WRITE, config=config)

        start = time.perf_counter()
        for index in range(files):
            block = iq[index * samples_per_file : (index + 1) * samples_per_file]
            writer.write_samples(
                {
                    "fs": f"{sample_rate:.0f}",
                    "offset": f"{freq_offset:.0f}",
                    "index": str(index),
                },
                block,
                f"bench_{index:04d}.txt",
            )
        write_elapsed = time.perf_counter() - start

        reader = stack.enter_context(FileHandler(workdir, StreamMode.READ, config=config))
        start = time.perf_counter()
        reader.change_read_mode(ReadMode.SCAN)
        reader.start_scan(_FILE_PATTERN, progress_sink=progress_sink)
        delivered = reader.results.wait_for(files, timeout)
        scan_elapsed = time.perf_counter() - start
        reader.stop_scan()
        if not delivered:
            raise TimeoutError(
                f"Scan delivered {len(reader.results)} of {files} file(s) within {timeout:.1f} s."
            )
        total = sum(record.sample_count for record in reader.results)

    expected = files * samples_per_file
    if total != expected:
        LOG.warning("Benchmark read %d samples, expected %d.", total, expected)
    result = BenchmarkResult(
        files=files,
        samples=total,
        write_seconds=write_elapsed,
        scan_seconds=scan_elapsed,
    )
    LOG.info(
        "Benchmark processed %d samples in %.2f s (%.0f samples/s); writing took %.2f s.",
        result.samples,
        result.scan_seconds,
        result.samples_per_second,
        result.write_seconds,
    )
    return result


__all__ = ["BenchmarkResult", "run_benchmark"]
