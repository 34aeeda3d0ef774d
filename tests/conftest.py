"""
Shared pytest fixtures and configuration for iq-file-handler tests.

Provides data directories, fast scan configuration, samples-file builders and
hypothesis strategies for property-based tests.
"""

import os
import sys
import time
from collections.abc import Callable
from pathlib import Path

import pytest
from hypothesis import strategies as st

# Add src to path for tests
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from iq_file_handler.complex_sample import ComplexSample  # noqa: E402
from iq_file_handler.config import FileHandlerConfig  # noqa: E402
from iq_file_handler.samples_file import SamplesFile  # noqa: E402

# ============================================================================
# Data Directory Fixtures
# ============================================================================


@pytest.fixture
def data_dir(tmp_path):
    """Empty directory shared by producer and consumer handlers."""
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def fast_config():
    """Scan configuration with a short poll interval that deletes consumed files."""
    return FileHandlerConfig(poll_interval=0.01, startup_timeout=2.0, delete_consumed=True)


@pytest.fixture
def keep_config():
    """Scan configuration that leaves consumed files on disk."""
    return FileHandlerConfig(poll_interval=0.01, startup_timeout=2.0, delete_consumed=False)


# ============================================================================
# Samples File Builders
# ============================================================================


def make_record(
    file_name: str = "a.txt",
    header: dict[str, str] | None = None,
    samples: list[tuple[float, float]] | None = None,
) -> SamplesFile:
    return SamplesFile(
        file_name=file_name,
        header=dict(header if header is not None else {"fs": "1000000"}),
        samples=[
            ComplexSample(real, imag)
            for real, imag in (samples if samples is not None else [(1.0, 2.0), (-0.5, 0.25)])
        ],
    )


def write_raw(path: Path, text: str, *, mtime: float | None = None) -> Path:
    """Drop a file the way an external producer would, optionally pinning its mtime."""
    path.write_text(text, encoding="utf-8")
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


def drop_file(directory: Path, name: str, text: str, *, mtime: float) -> Path:
    """Publish a file into ``directory`` atomically with a pinned mtime.

    The file is staged next to ``directory`` and renamed in, so a running scan
    never observes it before its timestamp is set.
    """
    staging = directory.parent / "staging"
    staging.mkdir(exist_ok=True)
    staged = write_raw(staging / name, text, mtime=mtime)
    target = directory / name
    os.replace(staged, target)
    return target


SAMPLE_TEXT = "$\nfs=1000000\n$\n1.0 2.0;\n-0.5 0.25;\n"


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.01) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


# ============================================================================
# Hypothesis Strategies for Property-Based Testing
# ============================================================================


finite_floats = st.floats(allow_nan=False, allow_infinity=False)


@st.composite
def complex_samples(draw):
    """Strategy for finite complex samples."""
    return ComplexSample(draw(finite_floats), draw(finite_floats))


@st.composite
def header_mappings(draw):
    """Strategy for header mappings that survive the text format."""
    keys = st.text(alphabet="abcdefghijklmnopqrstuvwxyz_0123456789", min_size=1, max_size=12)
    values = st.text(
        alphabet=st.characters(blacklist_categories=("Cs",), blacklist_characters="\r\n"),
        max_size=24,
    )
    return draw(st.dictionaries(keys, values, min_size=1, max_size=6))


# ============================================================================
# Temporary Directory Management
# ============================================================================


@pytest.fixture(autouse=True)
def change_test_dir(tmp_path, monkeypatch):
    """
    Automatically change to temp directory for each test.
    Keeps the default ``Temp`` data directory out of the project tree.
    """
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("IQ_FILE_HANDLER_DIR", raising=False)
    monkeypatch.delenv("IQ_FILE_HANDLER_KEEP_FILES", raising=False)
    return tmp_path


# ============================================================================
# Pytest Configuration Hooks
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (may be slow)"
    )
    config.addinivalue_line(
        "markers", "requires_flock: mark test as requiring POSIX advisory locks"
    )
