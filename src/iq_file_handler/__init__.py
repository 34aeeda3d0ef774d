"""File-based handoff of complex IQ sample records between SDR processes."""

from __future__ import annotations

from .complex_sample import ZERO_SAMPLE, ComplexSample, format_complex, parse_complex
from .config import FileHandlerConfig
from .errors import (
    ErrorKind,
    FileHandlerError,
    HandlerBusyError,
    SamplesFormatError,
    ScanFaultedError,
    ScanTaskError,
    WrongModeError,
)
from .handler import FileHandler, ReadMode, Scanning, StreamMode
from .results import ResultsLog
from .samples_file import SamplesFile
from .scanner import ScanState

__version__ = "0.1.0"

__all__ = [
    "ZERO_SAMPLE",
    "ComplexSample",
    "ErrorKind",
    "FileHandler",
    "FileHandlerConfig",
    "FileHandlerError",
    "HandlerBusyError",
    "ReadMode",
    "ResultsLog",
    "SamplesFile",
    "SamplesFormatError",
    "ScanFaultedError",
    "ScanState",
    "ScanTaskError",
    "Scanning",
    "StreamMode",
    "WrongModeError",
    "__version__",
    "format_complex",
    "parse_complex",
]
