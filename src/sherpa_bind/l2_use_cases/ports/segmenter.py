"""Port: voice activity segmenter."""

from __future__ import annotations

from typing import Protocol

import numpy as np

from sherpa_bind.l1_entities.speech_segment import SpeechSegment


class Segmenter(Protocol):
    """Cuts a continuous sample stream into a FIFO of speech segments."""

    @property
    def sample_rate(self) -> int: ...

    def accept_waveform(self, samples: np.ndarray) -> None:
        """Feed any number of samples; segment boundaries do not depend on chunking."""
        ...

    def flush(self) -> None:
        """Close any in-progress segment at end of input."""
        ...

    def is_empty(self) -> bool: ...

    def pop(self) -> SpeechSegment:
        """Remove and return the oldest completed segment."""
        ...
