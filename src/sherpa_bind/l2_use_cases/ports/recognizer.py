"""Port: speech recognizers."""

from __future__ import annotations

from typing import Protocol

import numpy as np

from sherpa_bind.l1_entities.recognition import OfflineRecognizerResult, OnlineRecognizerResult


class SpeechRecognizer(Protocol):
    """Transcribes one bounded buffer at a time. Calls are independent."""

    def transcribe(self, sample_rate: int, samples: np.ndarray) -> OfflineRecognizerResult:
        """Transcribe *samples* (float32 mono) in full."""
        ...


class StreamingRecognizer(Protocol):
    """Incremental recognizer with endpoint detection."""

    @property
    def endpoint_count(self) -> int:
        """Number of utterances closed by the endpoint detector so far."""
        ...

    def transcribe(self, sample_rate: int, samples: np.ndarray) -> OnlineRecognizerResult:
        """Feed *samples* and return the current result for the open utterance."""
        ...

    def input_finished(self) -> OnlineRecognizerResult:
        """Signal end of input and return the final result."""
        ...
