"""Use case: segment, transcribe and label speakers — one TranscriptLine per speech segment."""

from __future__ import annotations

import logging

import numpy as np

from sherpa_bind.l1_entities.errors import SherpaBindError
from sherpa_bind.l1_entities.speech_segment import SpeechSegment
from sherpa_bind.l1_entities.transcript import TranscriptLine
from sherpa_bind.l2_use_cases.identify_speaker_use_case import IdentifySpeakerUseCase
from sherpa_bind.l2_use_cases.ports.recognizer import SpeechRecognizer
from sherpa_bind.l2_use_cases.ports.segmenter import Segmenter

log = logging.getLogger('sbind.pipeline')


class DiarizedTranscriptionUseCase:
    """Drives Segmenter -> recognizer -> speaker identification.

    Does NO I/O itself — audio is fed in via ``feed_audio()``, finished lines
    come out of ``feed_audio()`` and ``finish()``. A segment whose
    transcription fails is logged and skipped; one whose embedding fails keeps
    its text and gets no speaker label.
    """

    def __init__(
        self,
        segmenter: Segmenter,
        recognizer: SpeechRecognizer,
        identify: IdentifySpeakerUseCase | None = None,
    ) -> None:
        self._segmenter = segmenter
        self._recognizer = recognizer
        self._identify = identify
        self._sample_rate = segmenter.sample_rate
        self._skipped = 0

    @property
    def skipped(self) -> int:
        """Segments dropped because recognition failed."""
        return self._skipped

    def feed_audio(self, samples: np.ndarray) -> list[TranscriptLine]:
        self._segmenter.accept_waveform(samples)
        return self._drain()

    def finish(self) -> list[TranscriptLine]:
        """Flush the segmenter and process whatever it still held."""
        self._segmenter.flush()
        return self._drain()

    def _drain(self) -> list[TranscriptLine]:
        lines: list[TranscriptLine] = []
        while not self._segmenter.is_empty():
            line = self._process(self._segmenter.pop())
            if line is not None:
                lines.append(line)
        return lines

    def _process(self, segment: SpeechSegment) -> TranscriptLine | None:
        start = segment.start_seconds(self._sample_rate)
        try:
            result = self._recognizer.transcribe(self._sample_rate, segment.samples)
        except SherpaBindError as exc:
            self._skipped += 1
            log.warning('Skipping segment at %.2fs: %s', start, exc)
            return None

        text = result.text.strip()
        if not text:
            log.debug('Empty transcription for segment at %.2fs', start)
            return None

        speaker = None
        if self._identify is not None:
            try:
                speaker = self._identify.execute(self._sample_rate, segment.samples)
            except SherpaBindError as exc:
                log.warning('No speaker for segment at %.2fs: %s', start, exc)

        return TranscriptLine(
            text=text,
            start=start,
            end=segment.end_seconds(self._sample_rate),
            speaker=speaker,
            emotion=result.emotion,
        )
