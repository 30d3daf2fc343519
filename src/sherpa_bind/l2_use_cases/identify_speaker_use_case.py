"""Use case: identify the speaker of a segment, registering unknown voices."""

from __future__ import annotations

import logging

import numpy as np

from sherpa_bind.l2_use_cases.ports.speaker_gallery import EmbeddingExtractor, SpeakerGallery

log = logging.getLogger('sbind.pipeline')


class IdentifySpeakerUseCase:
    """Search the gallery; on no match, register the embedding as ``<prefix> N``.

    Labels are numbered from 0 in order of first appearance.
    """

    def __init__(
        self,
        extractor: EmbeddingExtractor,
        gallery: SpeakerGallery,
        threshold: float,
        label_prefix: str = 'speaker',
    ) -> None:
        self._extractor = extractor
        self._gallery = gallery
        self._threshold = threshold
        self._label_prefix = label_prefix
        self._next_index = 0

    @property
    def registered(self) -> int:
        return self._next_index

    def execute(self, sample_rate: int, samples: np.ndarray) -> str:
        embedding = self._extractor.compute_speaker_embedding(sample_rate, samples)
        label = self._gallery.search(embedding, self._threshold)
        if label is not None:
            return label
        label = f'{self._label_prefix} {self._next_index}'
        self._gallery.add(label, embedding)
        self._next_index += 1
        log.info('Registered new speaker: %s', label)
        return label
