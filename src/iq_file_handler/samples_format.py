from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator

from .complex_sample import NUMBER_PATTERN, format_complex, parse_complex
from .errors import SamplesFormatError
from .samples_file import SamplesFile

LOG = logging.getLogger(__name__)

HEADER_DELIMITER = "$"
SAMPLE_TERMINATOR = ";"
KEY_VALUE_SEPARATOR = "="

_HEADER_KEY = re.compile(r"^\w+(?==)")  # word right before the first '='
_HEADER_VALUE = re.compile(r"(?<==).*$")  # everything after the first '='
_SAMPLE = re.compile(rf"{NUMBER_PATTERN}\s+{NUMBER_PATTERN}(?={SAMPLE_TERMINATOR})")
_VALID_KEY = re.compile(r"\w+")


def is_header_delimiter(line: str) -> bool:
    return line.strip() == HEADER_DELIMITER


def parse_lines(lines: Iterable[str], file_name: str = "") -> SamplesFile:
    """Build a SamplesFile from text lines.

    A lone ``$`` line toggles header capture. Header lines are ``key=value``;
    duplicate keys overwrite earlier ones and lines without a key are dropped.
    Outside the header every ``<real> <imag>;`` occurrence becomes a sample, so a
    line may carry any number of samples.
    """
    record = SamplesFile(file_name=file_name)
    in_header = False
    for line in lines:
        line = line.rstrip("\r\n")
        if is_header_delimiter(line):
            in_header = not in_header
            continue
        if in_header:
            key = _HEADER_KEY.search(line)
            if key is None:
                LOG.debug("Dropping header line without key in %s: %r", file_name, line)
                continue
            value = _HEADER_VALUE.search(line)
            record.header[key.group(0)] = value.group(0) if value else ""
            continue
        for match in _SAMPLE.finditer(line):
            record.samples.append(parse_complex(match.group(0)))
    return record


def validate_for_write(record: SamplesFile) -> None:
    """Reject records whose text form would not read back unchanged."""
    if not record.file_name or "\n" in record.file_name or "\r" in record.file_name:
        raise SamplesFormatError(f"Invalid samples file name: {record.file_name!r}")
    for key, value in record.header.items():
        if not _VALID_KEY.fullmatch(key):
            raise SamplesFormatError(
                f"Header key {key!r} must be a non-empty run of word characters."
            )
        if "\n" in value or "\r" in value:
            raise SamplesFormatError(f"Header value for {key!r} contains a line break.")


def format_lines(record: SamplesFile) -> Iterator[str]:
    """Yield the text lines (without line endings) for ``record``."""
    yield HEADER_DELIMITER
    for key, value in record.header.items():
        yield f"{key}{KEY_VALUE_SEPARATOR}{value}"
    yield HEADER_DELIMITER
    for sample in record.samples:
        yield format_complex(sample) + SAMPLE_TERMINATOR


__all__ = [
    "HEADER_DELIMITER",
    "KEY_VALUE_SEPARATOR",
    "SAMPLE_TERMINATOR",
    "format_lines",
    "is_header_delimiter",
    "parse_lines",
    "validate_for_write",
]
