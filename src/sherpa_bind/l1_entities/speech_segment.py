"""Speech segment entity."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np


@dataclass(frozen=True, eq=False)
class SpeechSegment:
    """A contiguous run of speech cut out of the input stream.

    ``start`` is the offset of the first sample, counted in samples from the
    beginning of the stream the segmenter was fed.
    """

    start: int
    samples: np.ndarray = field(repr=False)

    def __len__(self) -> int:
        return len(self.samples)

    def start_seconds(self, sample_rate: int) -> float:
        return self.start / sample_rate

    def duration_seconds(self, sample_rate: int) -> float:
        return len(self.samples) / sample_rate

    def end_seconds(self, sample_rate: int) -> float:
        return (self.start + len(self.samples)) / sample_rate

    def split(self, max_samples: int) -> list[SpeechSegment]:
        """Cut into consecutive pieces of at most *max_samples*. Non-positive means no limit."""
        if max_samples <= 0 or len(self.samples) <= max_samples:
            return [self]
        return [
            SpeechSegment(start=self.start + offset, samples=self.samples[offset : offset + max_samples])
            for offset in range(0, len(self.samples), max_samples)
        ]
