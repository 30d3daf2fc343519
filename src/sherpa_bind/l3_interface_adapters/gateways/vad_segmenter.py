"""Gateway: voice activity segmenter — continuous samples in, utterance segments out.

The native detector only ever sees windows of exactly ``window_size``
samples; a short tail is carried over to the next ``accept_waveform`` call, so
where the caller cuts its chunks never moves a segment boundary. Completed
segments are copied into a managed FIFO right after each window.
"""

from __future__ import annotations

import ctypes
import logging
from collections import deque

import numpy as np

from sherpa_bind.l1_entities.errors import NativeCallError
from sherpa_bind.l1_entities.options import VadOptions
from sherpa_bind.l1_entities.speech_segment import SpeechSegment
from sherpa_bind.l3_interface_adapters.native.c_api import copy_floats, float_buffer
from sherpa_bind.l3_interface_adapters.native.config_builder import build_vad_config, require_files
from sherpa_bind.l3_interface_adapters.native.handle import NativeResource
from sherpa_bind.l3_interface_adapters.native.runtime import NativeRuntime
from sherpa_bind.l3_interface_adapters.native.string_bridge import CStringArena

log = logging.getLogger('sbind.native')


def _empty() -> np.ndarray:
    return np.zeros(0, dtype=np.float32)


class VadSegmenter(NativeResource):
    def __init__(self, options: VadOptions, runtime: NativeRuntime) -> None:
        require_files(options.model)
        super().__init__(runtime)
        self._options = options
        self._window_size = options.window_size
        self._max_segment_samples = int(options.max_speech_duration * options.sample_rate)
        self._carry = _empty()
        self._queue: deque[SpeechSegment] = deque()
        with self._constructing(), CStringArena() as arena:
            config = build_vad_config(options, arena, runtime.default_provider)
            self._vad = self._acquire(
                self._lib.SherpaOnnxCreateVoiceActivityDetector(ctypes.byref(config), options.buffer_size_seconds),
                'SherpaOnnxDestroyVoiceActivityDetector',
                'SherpaOnnxCreateVoiceActivityDetector',
            )
            self._settle_config_strings(arena)
        log.info('VAD ready (window=%d, max segment=%.1fs)', self._window_size, options.max_speech_duration)

    @property
    def window_size(self) -> int:
        return self._window_size

    @property
    def sample_rate(self) -> int:
        return self._options.sample_rate

    @property
    def pending_samples(self) -> int:
        """Samples carried over, waiting for a full window."""
        return len(self._carry)

    def accept_waveform(self, samples: np.ndarray | list[float]) -> None:
        data = np.asarray(samples, dtype=np.float32).reshape(-1)
        window = self._window_size
        with self._exclusive():
            if len(self._carry):
                data = np.concatenate([self._carry, data])
            consumed = 0
            try:
                while len(data) - consumed >= window:
                    chunk = data[consumed : consumed + window]
                    # counts as seen once handed over, even if draining it fails
                    consumed += window
                    self._feed(chunk)
            finally:
                self._carry = data[consumed:].copy()

    def flush(self) -> None:
        """Feed the carried remainder as a final short window and close any open segment."""
        with self._exclusive():
            tail, self._carry = self._carry, _empty()
            if len(tail):
                self._feed(tail)
            self._lib.SherpaOnnxVoiceActivityDetectorFlush(self._vad)
            self._drain()

    def is_speech(self) -> bool:
        with self._exclusive():
            return bool(self._lib.SherpaOnnxVoiceActivityDetectorDetected(self._vad))

    def is_empty(self) -> bool:
        self._require_live()
        return not self._queue

    def __len__(self) -> int:
        self._require_live()
        return len(self._queue)

    def front(self) -> SpeechSegment:
        """Oldest completed segment, left in the queue."""
        self._require_live()
        if not self._queue:
            raise IndexError('front() on an empty segment queue')
        return self._queue[0]

    def pop(self) -> SpeechSegment:
        self._require_live()
        if not self._queue:
            raise IndexError('pop() on an empty segment queue')
        return self._queue.popleft()

    def reset(self) -> None:
        """Forget detector state, queued segments and the carried tail."""
        with self._exclusive():
            self._lib.SherpaOnnxVoiceActivityDetectorClear(self._vad)
            self._lib.SherpaOnnxVoiceActivityDetectorReset(self._vad)
            self._queue.clear()
            self._carry = _empty()

    def _feed(self, window: np.ndarray) -> None:
        array, pointer = float_buffer(window)
        self._lib.SherpaOnnxVoiceActivityDetectorAcceptWaveform(self._vad, pointer, len(array))
        self._drain()

    def _drain(self) -> None:
        lib = self._lib
        while not lib.SherpaOnnxVoiceActivityDetectorEmpty(self._vad):
            native = lib.SherpaOnnxVoiceActivityDetectorFront(self._vad)
            if not native:
                raise NativeCallError('SherpaOnnxVoiceActivityDetectorFront', 'returned NULL')
            try:
                raw = native.contents
                segment = SpeechSegment(start=raw.start, samples=copy_floats(raw.samples, raw.n))
            finally:
                lib.SherpaOnnxDestroySpeechSegment(native)
            lib.SherpaOnnxVoiceActivityDetectorPop(self._vad)
            pieces = segment.split(self._max_segment_samples)
            if len(pieces) > 1:
                log.debug('Split %d-sample segment into %d pieces', len(segment), len(pieces))
            self._queue.extend(pieces)
