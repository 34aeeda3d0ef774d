from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

LOG = logging.getLogger(__name__)

DIRECTORY_ENV = "IQ_FILE_HANDLER_DIR"
KEEP_FILES_ENV = "IQ_FILE_HANDLER_KEEP_FILES"
DEFAULT_DIRECTORY = Path("Temp")

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str) -> bool:
    raw = os.environ.get(name)
    if not raw:
        return False
    return raw.strip().lower() in _TRUTHY


def _default_delete_consumed() -> bool:
    # Keeping consumed files is the debugging behaviour.
    return not _env_flag(KEEP_FILES_ENV)


def resolve_directory(value: str | os.PathLike[str] | None) -> Path:
    """Resolve the data directory: explicit value, then env override, then ``Temp``."""
    if value is not None and str(value) != "":
        return Path(value).expanduser()
    raw = os.environ.get(DIRECTORY_ENV)
    if raw:
        LOG.debug("Using data directory from %s: %s", DIRECTORY_ENV, raw)
        return Path(raw).expanduser()
    return DEFAULT_DIRECTORY


@dataclass(slots=True)
class FileHandlerConfig:
    scan_glob: str = "*.txt"
    poll_interval: float = 0.05  # seconds between directory polls when idle
    startup_timeout: float = 1.0  # bound on waiting for the scan thread to begin
    stop_timeout: float | None = None  # None joins the scan thread without limit
    delete_consumed: bool = field(default_factory=_default_delete_consumed)
    encoding: str = "utf-8"

    def __post_init__(self) -> None:
        if not self.scan_glob:
            raise ValueError("scan_glob must not be empty.")
        if self.poll_interval < 0:
            raise ValueError("poll_interval must be non-negative.")
        if self.startup_timeout <= 0:
            raise ValueError("startup_timeout must be positive.")
        if self.stop_timeout is not None and self.stop_timeout <= 0:
            raise ValueError("stop_timeout must be positive when provided.")


__all__ = [
    "DEFAULT_DIRECTORY",
    "DIRECTORY_ENV",
    "FileHandlerConfig",
    "KEEP_FILES_ENV",
    "resolve_directory",
]
