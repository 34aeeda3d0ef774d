from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    BUSY = "busy"
    WRONG_MODE = "wrong_mode"
    TASK_STATE = "task_state"


class FileHandlerError(RuntimeError):
    """Base class for state errors raised by guarded FileHandler entry points."""

    kind: ErrorKind = ErrorKind.TASK_STATE


class HandlerBusyError(FileHandlerError):
    """Raised when the reader or writer slot is already taken."""

    kind = ErrorKind.BUSY


class WrongModeError(FileHandlerError):
    """Raised when an operation does not fit the current stream or read mode."""

    kind = ErrorKind.WRONG_MODE


class ScanTaskError(FileHandlerError):
    """Raised when the scan worker is in the wrong lifecycle state."""

    kind = ErrorKind.TASK_STATE


class ScanFaultedError(ScanTaskError):
    """Raised by stop_scan when the scan worker ended with an exception."""


class SamplesFormatError(ValueError):
    """Raised when a record cannot be written in the samples text format."""


__all__ = [
    "ErrorKind",
    "FileHandlerError",
    "HandlerBusyError",
    "SamplesFormatError",
    "ScanFaultedError",
    "ScanTaskError",
    "WrongModeError",
]
