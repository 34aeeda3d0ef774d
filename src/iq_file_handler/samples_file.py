from __future__ import annotations

from dataclasses import dataclass, field

from .complex_sample import ComplexSample


@dataclass(slots=True)
class SamplesFile:
    """Header metadata plus ordered samples for one persisted file.

    ``header`` keeps insertion order so the header section is reproduced
    deterministically on write.
    """

    file_name: str = ""
    header: dict[str, str] = field(default_factory=dict)
    samples: list[ComplexSample] = field(default_factory=list)

    @property
    def sample_count(self) -> int:
        return len(self.samples)


__all__ = ["SamplesFile"]
