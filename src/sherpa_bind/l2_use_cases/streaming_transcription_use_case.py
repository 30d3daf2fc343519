"""Use case: incremental transcription — commits an utterance whenever the endpoint detector fires."""

from __future__ import annotations

import logging

import numpy as np

from sherpa_bind.l2_use_cases.ports.recognizer import StreamingRecognizer

log = logging.getLogger('sbind.pipeline')


class StreamingTranscriptionUseCase:
    def __init__(self, recognizer: StreamingRecognizer, sample_rate: int) -> None:
        self._recognizer = recognizer
        self._sample_rate = sample_rate
        self._partial = ''

    @property
    def partial(self) -> str:
        """Text of the utterance still open."""
        return self._partial

    def feed_audio(self, samples: np.ndarray) -> list[str]:
        """Feed one chunk; returns the utterance it closed, if any."""
        before = self._recognizer.endpoint_count
        result = self._recognizer.transcribe(self._sample_rate, samples)
        if self._recognizer.endpoint_count != before:
            return self._commit(result.text)
        self._partial = result.text
        return []

    def finish(self) -> list[str]:
        result = self._recognizer.input_finished()
        return self._commit(result.text)

    def _commit(self, text: str) -> list[str]:
        self._partial = ''
        text = text.strip()
        if not text:
            return []
        log.debug('Committed utterance: %s', text)
        return [text]
