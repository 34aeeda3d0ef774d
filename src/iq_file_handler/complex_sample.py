from __future__ import annotations

import re
from dataclasses import dataclass

# Invariant decimal grammar: optional sign, digits with optional fraction and
# exponent, or the non-finite spellings emitted by repr().
NUMBER_PATTERN = r"[-+]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?|inf|nan)"
_NUMBER = re.compile(NUMBER_PATTERN)


@dataclass(slots=True, frozen=True)
class ComplexSample:
    """Single complex-valued measurement (I/Q pair)."""

    real: float = 0.0
    imag: float = 0.0

    def __post_init__(self) -> None:
        # Store builtin floats so numpy scalars format as plain decimals.
        object.__setattr__(self, "real", float(self.real))
        object.__setattr__(self, "imag", float(self.imag))

    @classmethod
    def from_complex(cls, value: complex) -> ComplexSample:
        return cls(float(value.real), float(value.imag))

    def __complex__(self) -> complex:
        return complex(self.real, self.imag)

    def __str__(self) -> str:
        return format_complex(self)


ZERO_SAMPLE = ComplexSample(0.0, 0.0)


def parse_complex(text: str) -> ComplexSample:
    """Parse ``"<real> <imag>"`` into a sample.

    Malformed input (wrong token count or a token outside the invariant decimal
    grammar) falls back to ``ZERO_SAMPLE`` instead of raising, so a damaged
    record never aborts reading the rest of a file.
    """
    tokens = text.split()
    if len(tokens) != 2:
        return ZERO_SAMPLE
    if not all(_NUMBER.fullmatch(token) for token in tokens):
        return ZERO_SAMPLE
    return ComplexSample(float(tokens[0]), float(tokens[1]))


def format_complex(sample: ComplexSample) -> str:
    # repr() yields the shortest round-trip form and ignores the locale.
    return f"{float(sample.real)!r} {float(sample.imag)!r}"


__all__ = [
    "ComplexSample",
    "NUMBER_PATTERN",
    "ZERO_SAMPLE",
    "format_complex",
    "parse_complex",
]
