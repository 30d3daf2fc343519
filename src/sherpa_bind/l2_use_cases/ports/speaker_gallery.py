"""Port: speaker embedding extraction and matching."""

from __future__ import annotations

from typing import Protocol

import numpy as np


class EmbeddingExtractor(Protocol):
    @property
    def dim(self) -> int: ...

    def compute_speaker_embedding(self, sample_rate: int, samples: np.ndarray) -> np.ndarray:
        """Return a float32 vector of length ``dim``."""
        ...


class SpeakerGallery(Protocol):
    """Append-only labelled embedding store."""

    def add(self, label: str, embedding: np.ndarray) -> None:
        """Register a new label. *embedding* may be normalised in place."""
        ...

    def search(self, embedding: np.ndarray, threshold: float) -> str | None:
        """Best matching label scoring above *threshold*, or None."""
        ...

    def __len__(self) -> int: ...
