"""Shared test fixtures, protocol-conforming fakes and an in-process fake of the sherpa-onnx C API."""

from __future__ import annotations

import ctypes
import itertools
import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import numpy as np
import pytest

from sherpa_bind.l1_entities.config import AppConfig
from sherpa_bind.l1_entities.options import (
    ExtractorOptions,
    OfflineRecognizerOptions,
    OnlineRecognizerOptions,
    OnlineTransducerModel,
    SenseVoiceModel,
    VadOptions,
)
from sherpa_bind.l1_entities.recognition import OfflineRecognizerResult, OnlineRecognizerResult
from sherpa_bind.l1_entities.speech_segment import SpeechSegment
from sherpa_bind.l1_entities.transcript import TranscriptLine
from sherpa_bind.l3_interface_adapters.native.c_api import (
    FloatPointer,
    SherpaOnnxOfflineRecognizerResult,
    SherpaOnnxOnlineRecognizerResult,
    SherpaOnnxSpeechSegment,
)
from sherpa_bind.l3_interface_adapters.native.runtime import NativeRuntime
from sherpa_bind.l4_frameworks_and_drivers.config import build_app_config

SR = 16000


# --- Audio helpers ---


def tone(seconds: float, freq: float = 220.0, amplitude: float = 0.5) -> np.ndarray:
    t = np.arange(int(seconds * SR), dtype=np.float32) / SR
    return (amplitude * np.sin(2 * np.pi * freq * t)).astype(np.float32)


def silence(seconds: float) -> np.ndarray:
    return np.zeros(int(seconds * SR), dtype=np.float32)


def _rms(samples: np.ndarray) -> float:
    return float(np.sqrt(np.mean(samples**2))) if len(samples) else 0.0


# --- Fake native library ---


def snapshot(struct: ctypes.Structure) -> dict[str, Any]:
    """Copy every field of a (nested) config struct into plain Python values.

    Taken inside the factory call, while the caller's C strings are alive.
    """
    values: dict[str, Any] = {}
    for name, _ in struct._fields_:
        value = getattr(struct, name)
        values[name] = snapshot(value) if isinstance(value, ctypes.Structure) else value
    return values


def _address(pointer: Any) -> int:
    return ctypes.cast(pointer, ctypes.c_void_p).value or 0


def _read_floats(pointer: Any, count: int) -> np.ndarray:
    if count <= 0:
        return np.zeros(0, dtype=np.float32)
    return np.ctypeslib.as_array(pointer, shape=(count,)).astype(np.float32, copy=True)


def fake_embedding(samples: np.ndarray, dim: int) -> np.ndarray:
    """Deterministic 'voice print': spectral energy in *dim* bands."""
    spectrum = np.abs(np.fft.rfft(samples))
    bands = np.array_split(spectrum, dim)
    return np.array([band.sum() for band in bands], dtype=np.float32) + 1e-6


class _FakeStream:
    def __init__(self, kind: str, owner: int) -> None:
        self.kind = kind
        self.owner = owner
        self.samples: list[np.ndarray] = []
        self.pending = 0
        self.finished = False
        # online recognizer state
        self.heard_speech = False
        self.trailing_silence = 0
        self.segment = 0

    @property
    def audio(self) -> np.ndarray:
        return np.concatenate(self.samples) if self.samples else np.zeros(0, dtype=np.float32)


class _FakeVad:
    def __init__(self, config: dict[str, Any]) -> None:
        self.config = config
        self.sample_rate = config['sample_rate']
        silero = config['silero_vad']
        self.min_silence = int(silero['min_silence_duration'] * self.sample_rate)
        self.min_speech = int(silero['min_speech_duration'] * self.sample_rate)
        self.windows: list[int] = []
        self.offset = 0
        self.in_speech = False
        self.start = 0
        self.buffer: list[np.ndarray] = []
        self.silence_run = 0
        self.queue: list[tuple[int, np.ndarray]] = []

    def accept(self, window: np.ndarray, energy_threshold: float) -> None:
        self.windows.append(len(window))
        speech = _rms(window) > energy_threshold
        if speech:
            if not self.in_speech:
                self.in_speech = True
                self.start = self.offset
                self.buffer = []
            self.buffer.append(window)
            self.silence_run = 0
        elif self.in_speech:
            self.buffer.append(window)
            self.silence_run += len(window)
            if self.silence_run >= self.min_silence:
                self.close()
        self.offset += len(window)

    def close(self) -> None:
        if not self.in_speech:
            return
        samples = np.concatenate(self.buffer)
        if self.silence_run:
            samples = samples[: len(samples) - self.silence_run]
        if len(samples) >= self.min_speech:
            self.queue.append((self.start, samples))
        self.in_speech = False
        self.buffer = []
        self.silence_run = 0


class _Gallery:
    def __init__(self, dim: int) -> None:
        self.dim = dim
        self.rows: list[tuple[str, np.ndarray]] = []

    def names(self) -> list[str]:
        return [name for name, _ in self.rows]

    def best(self, embedding: np.ndarray) -> tuple[str | None, float]:
        probe = embedding / np.linalg.norm(embedding)
        best_name, best_score = None, -1.0
        for name, row in self.rows:
            score = float(np.dot(probe, row))
            if score > best_score:  # strictly greater: first inserted wins ties
                best_name, best_score = name, score
        return best_name, best_score


class FakeSherpaLib:
    """Python implementation of the sherpa-onnx C functions the wrappers call.

    Every handle and every buffer handed out is recorded in ``live``; the
    matching destroy/free removes it. Freeing something unknown is recorded in
    ``double_frees`` instead of crashing, so tests can assert on it.
    """

    energy_threshold = 0.01
    endpoint_silence = SR // 2  # samples of trailing silence that end an utterance

    def __init__(self) -> None:
        self._ids = itertools.count(0x1000, 0x10)
        self.live: dict[int, str] = {}
        self._keep: dict[int, Any] = {}
        self.double_frees: list[tuple[str, int]] = []
        self.calls: list[str] = []
        self.configs: dict[str, dict[str, Any]] = {}
        self.fail: set[str] = set()  # function names that return NULL
        self.hooks: dict[str, Callable[..., None]] = {}
        self.offline_text: str | bytes = 'hello world'
        self.offline_tags = (b'<|en|>', b'<|NEUTRAL|>', b'<|Speech|>')
        self.online_text = 'hello world'
        self.online_payload: str | None = None  # overrides the generated JSON
        self.embedding_dim = 16
        self.min_embedding_samples = 1600
        self._streams: dict[int, _FakeStream] = {}
        self._vads: dict[int, _FakeVad] = {}
        self._galleries: dict[int, _Gallery] = {}

    # -- bookkeeping --

    def _enter(self, name: str, *args: Any) -> None:
        self.calls.append(name)
        hook = self.hooks.get(name)
        if hook is not None:
            hook(*args)

    def _handle(self, kind: str) -> int:
        handle = next(self._ids)
        self.live[handle] = kind
        return handle

    def _buffer(self, kind: str, obj: Any, *extra: Any) -> int:
        address = ctypes.addressof(obj)
        self.live[address] = kind
        self._keep[address] = (obj, extra)
        return address

    def _free(self, kind: str, address: int) -> None:
        if self.live.get(address) != kind:
            self.double_frees.append((kind, address))
            return
        del self.live[address]
        self._keep.pop(address, None)

    def live_kinds(self) -> list[str]:
        return sorted(self.live.values())

    def vad(self, handle: int | None = None) -> _FakeVad:
        return self._vads[handle] if handle is not None else next(iter(self._vads.values()))

    # -- offline recognizer --

    def SherpaOnnxCreateOfflineRecognizer(self, config_ref):
        self._enter('SherpaOnnxCreateOfflineRecognizer', config_ref)
        self.configs['offline'] = snapshot(config_ref._obj)
        if 'SherpaOnnxCreateOfflineRecognizer' in self.fail:
            return None
        return self._handle('offline_recognizer')

    def SherpaOnnxDestroyOfflineRecognizer(self, handle):
        self._enter('SherpaOnnxDestroyOfflineRecognizer', handle)
        self._free('offline_recognizer', handle)

    def SherpaOnnxCreateOfflineStream(self, recognizer):
        self._enter('SherpaOnnxCreateOfflineStream', recognizer)
        if 'SherpaOnnxCreateOfflineStream' in self.fail:
            return None
        handle = self._handle('offline_stream')
        self._streams[handle] = _FakeStream('offline', recognizer)
        return handle

    def SherpaOnnxDestroyOfflineStream(self, stream):
        self._enter('SherpaOnnxDestroyOfflineStream', stream)
        self._free('offline_stream', stream)
        self._streams.pop(stream, None)

    def SherpaOnnxAcceptWaveformOffline(self, stream, sample_rate, samples, n):
        self._enter('SherpaOnnxAcceptWaveformOffline', stream, sample_rate, samples, n)
        self._streams[stream].samples.append(_read_floats(samples, n))

    def SherpaOnnxDecodeOfflineStream(self, recognizer, stream):
        self._enter('SherpaOnnxDecodeOfflineStream', recognizer, stream)

    def SherpaOnnxGetOfflineStreamResult(self, stream):
        self._enter('SherpaOnnxGetOfflineStreamResult', stream)
        if 'SherpaOnnxGetOfflineStreamResult' in self.fail:
            return None
        heard = _rms(self._streams[stream].audio) > self.energy_threshold
        text = self.offline_text if heard else ''
        raw_text = text if isinstance(text, bytes) else text.encode('utf-8')
        tokens = raw_text.split()
        result = SherpaOnnxOfflineRecognizerResult()
        result.text = raw_text
        result.count = len(tokens)
        token_array = stamps = None
        if tokens:
            token_array = (ctypes.c_char_p * len(tokens))(*tokens)
            stamps = (ctypes.c_float * len(tokens))(*[0.5 * i for i in range(len(tokens))])
            result.tokens_arr = ctypes.cast(token_array, ctypes.POINTER(ctypes.c_char_p))
            result.timestamps = ctypes.cast(stamps, FloatPointer)
        result.tokens = b' '.join(tokens)
        result.json = b'{}'
        result.lang, result.emotion, result.event = self.offline_tags if heard else (b'', b'', b'')
        self._buffer('offline_result', result, token_array, stamps)
        return ctypes.pointer(result)

    def SherpaOnnxDestroyOfflineRecognizerResult(self, result):
        self._enter('SherpaOnnxDestroyOfflineRecognizerResult', result)
        self._free('offline_result', _address(result))

    # -- online recognizer --

    def SherpaOnnxCreateOnlineRecognizer(self, config_ref):
        self._enter('SherpaOnnxCreateOnlineRecognizer', config_ref)
        self.configs['online'] = snapshot(config_ref._obj)
        if 'SherpaOnnxCreateOnlineRecognizer' in self.fail:
            return None
        return self._handle('online_recognizer')

    def SherpaOnnxDestroyOnlineRecognizer(self, handle):
        self._enter('SherpaOnnxDestroyOnlineRecognizer', handle)
        self._free('online_recognizer', handle)

    def SherpaOnnxCreateOnlineStream(self, recognizer):
        self._enter('SherpaOnnxCreateOnlineStream', recognizer)
        if 'SherpaOnnxCreateOnlineStream' in self.fail:
            return None
        handle = self._handle('online_stream')
        self._streams[handle] = _FakeStream('online', recognizer)
        return handle

    def SherpaOnnxDestroyOnlineStream(self, stream):
        self._enter('SherpaOnnxDestroyOnlineStream', stream)
        self._free('online_stream', stream)
        self._streams.pop(stream, None)

    def SherpaOnnxOnlineStreamAcceptWaveform(self, stream, sample_rate, samples, n):
        self._enter('SherpaOnnxOnlineStreamAcceptWaveform', stream, sample_rate, samples, n)
        state = self._streams[stream]
        chunk = _read_floats(samples, n)
        state.samples.append(chunk)
        state.pending += 1

    def SherpaOnnxIsOnlineStreamReady(self, recognizer, stream):
        self._enter('SherpaOnnxIsOnlineStreamReady', recognizer, stream)
        return int(self._streams[stream].pending > 0)

    def SherpaOnnxDecodeOnlineStream(self, recognizer, stream):
        self._enter('SherpaOnnxDecodeOnlineStream', recognizer, stream)
        state = self._streams[stream]
        for chunk in state.samples[len(state.samples) - state.pending :]:
            if _rms(chunk) > self.energy_threshold:
                state.heard_speech = True
                state.trailing_silence = 0
            else:
                state.trailing_silence += len(chunk)
        state.pending = 0

    def SherpaOnnxGetOnlineStreamResult(self, recognizer, stream):
        self._enter('SherpaOnnxGetOnlineStreamResult', recognizer, stream)
        if 'SherpaOnnxGetOnlineStreamResult' in self.fail:
            return None
        state = self._streams[stream]
        text = self.online_text if state.heard_speech else ''
        payload = self.online_payload
        if payload is None:
            tokens = text.split()
            payload = json.dumps(
                {
                    'text': text,
                    'tokens': tokens,
                    'timestamps': [0.25 * i for i in range(len(tokens))],
                    'ys_probs': [-0.1] * len(tokens),
                    'segment': state.segment,
                    'start_time': 0.0,
                    'is_final': False,
                }
            )
        result = SherpaOnnxOnlineRecognizerResult()
        result.text = text.encode('utf-8')
        result.json = payload.encode('utf-8')
        self._buffer('online_result', result)
        return ctypes.pointer(result)

    def SherpaOnnxDestroyOnlineRecognizerResult(self, result):
        self._enter('SherpaOnnxDestroyOnlineRecognizerResult', result)
        self._free('online_result', _address(result))

    def SherpaOnnxOnlineStreamIsEndpoint(self, recognizer, stream):
        self._enter('SherpaOnnxOnlineStreamIsEndpoint', recognizer, stream)
        state = self._streams[stream]
        silence_ended = state.trailing_silence >= self.endpoint_silence
        return int(state.heard_speech and (silence_ended or state.finished))

    def SherpaOnnxOnlineStreamReset(self, recognizer, stream):
        self._enter('SherpaOnnxOnlineStreamReset', recognizer, stream)
        state = self._streams[stream]
        state.samples = []
        state.pending = 0
        state.heard_speech = False
        state.trailing_silence = 0
        state.finished = False
        state.segment += 1

    def SherpaOnnxOnlineStreamInputFinished(self, stream):
        self._enter('SherpaOnnxOnlineStreamInputFinished', stream)
        self._streams[stream].finished = True

    # -- voice activity detector --

    def SherpaOnnxCreateVoiceActivityDetector(self, config_ref, buffer_size_seconds):
        self._enter('SherpaOnnxCreateVoiceActivityDetector', config_ref, buffer_size_seconds)
        config = snapshot(config_ref._obj)
        config['buffer_size_seconds'] = buffer_size_seconds
        self.configs['vad'] = config
        if 'SherpaOnnxCreateVoiceActivityDetector' in self.fail:
            return None
        handle = self._handle('vad')
        self._vads[handle] = _FakeVad(config)
        return handle

    def SherpaOnnxDestroyVoiceActivityDetector(self, handle):
        self._enter('SherpaOnnxDestroyVoiceActivityDetector', handle)
        self._free('vad', handle)

    def SherpaOnnxVoiceActivityDetectorAcceptWaveform(self, handle, samples, n):
        self._enter('SherpaOnnxVoiceActivityDetectorAcceptWaveform', handle, samples, n)
        self._vads[handle].accept(_read_floats(samples, n), self.energy_threshold)

    def SherpaOnnxVoiceActivityDetectorEmpty(self, handle):
        self._enter('SherpaOnnxVoiceActivityDetectorEmpty', handle)
        return int(not self._vads[handle].queue)

    def SherpaOnnxVoiceActivityDetectorDetected(self, handle):
        self._enter('SherpaOnnxVoiceActivityDetectorDetected', handle)
        return int(self._vads[handle].in_speech)

    def SherpaOnnxVoiceActivityDetectorPop(self, handle):
        self._enter('SherpaOnnxVoiceActivityDetectorPop', handle)
        self._vads[handle].queue.pop(0)

    def SherpaOnnxVoiceActivityDetectorClear(self, handle):
        self._enter('SherpaOnnxVoiceActivityDetectorClear', handle)
        self._vads[handle].queue.clear()

    def SherpaOnnxVoiceActivityDetectorFront(self, handle):
        self._enter('SherpaOnnxVoiceActivityDetectorFront', handle)
        if 'SherpaOnnxVoiceActivityDetectorFront' in self.fail:
            return None
        start, samples = self._vads[handle].queue[0]
        data = (ctypes.c_float * len(samples))(*samples.tolist())
        segment = SherpaOnnxSpeechSegment()
        segment.start = start
        segment.n = len(samples)
        segment.samples = ctypes.cast(data, FloatPointer)
        self._buffer('speech_segment', segment, data)
        return ctypes.pointer(segment)

    def SherpaOnnxDestroySpeechSegment(self, segment):
        self._enter('SherpaOnnxDestroySpeechSegment', segment)
        self._free('speech_segment', _address(segment))

    def SherpaOnnxVoiceActivityDetectorReset(self, handle):
        self._enter('SherpaOnnxVoiceActivityDetectorReset', handle)
        vad = self._vads[handle]
        vad.in_speech = False
        vad.buffer = []
        vad.silence_run = 0

    def SherpaOnnxVoiceActivityDetectorFlush(self, handle):
        self._enter('SherpaOnnxVoiceActivityDetectorFlush', handle)
        self._vads[handle].close()

    # -- speaker embedding extractor --

    def SherpaOnnxCreateSpeakerEmbeddingExtractor(self, config_ref):
        self._enter('SherpaOnnxCreateSpeakerEmbeddingExtractor', config_ref)
        self.configs['extractor'] = snapshot(config_ref._obj)
        if 'SherpaOnnxCreateSpeakerEmbeddingExtractor' in self.fail:
            return None
        return self._handle('extractor')

    def SherpaOnnxDestroySpeakerEmbeddingExtractor(self, handle):
        self._enter('SherpaOnnxDestroySpeakerEmbeddingExtractor', handle)
        self._free('extractor', handle)

    def SherpaOnnxSpeakerEmbeddingExtractorDim(self, handle):
        self._enter('SherpaOnnxSpeakerEmbeddingExtractorDim', handle)
        return self.embedding_dim

    def SherpaOnnxSpeakerEmbeddingExtractorCreateStream(self, handle):
        self._enter('SherpaOnnxSpeakerEmbeddingExtractorCreateStream', handle)
        if 'SherpaOnnxSpeakerEmbeddingExtractorCreateStream' in self.fail:
            return None
        stream = self._handle('online_stream')
        self._streams[stream] = _FakeStream('embedding', handle)
        return stream

    def SherpaOnnxSpeakerEmbeddingExtractorIsReady(self, handle, stream):
        self._enter('SherpaOnnxSpeakerEmbeddingExtractorIsReady', handle, stream)
        state = self._streams[stream]
        return int(state.finished and len(state.audio) >= self.min_embedding_samples)

    def SherpaOnnxSpeakerEmbeddingExtractorComputeEmbedding(self, handle, stream):
        self._enter('SherpaOnnxSpeakerEmbeddingExtractorComputeEmbedding', handle, stream)
        if 'SherpaOnnxSpeakerEmbeddingExtractorComputeEmbedding' in self.fail:
            return None
        vector = fake_embedding(self._streams[stream].audio, self.embedding_dim)
        data = (ctypes.c_float * self.embedding_dim)(*vector.tolist())
        self._buffer('embedding', data)
        return ctypes.cast(data, FloatPointer)

    def SherpaOnnxSpeakerEmbeddingExtractorDestroyEmbedding(self, embedding):
        self._enter('SherpaOnnxSpeakerEmbeddingExtractorDestroyEmbedding', embedding)
        self._free('embedding', _address(embedding))

    # -- speaker embedding manager --

    def SherpaOnnxCreateSpeakerEmbeddingManager(self, dim):
        self._enter('SherpaOnnxCreateSpeakerEmbeddingManager', dim)
        if 'SherpaOnnxCreateSpeakerEmbeddingManager' in self.fail:
            return None
        handle = self._handle('manager')
        self._galleries[handle] = _Gallery(dim)
        return handle

    def SherpaOnnxDestroySpeakerEmbeddingManager(self, handle):
        self._enter('SherpaOnnxDestroySpeakerEmbeddingManager', handle)
        self._free('manager', handle)

    def SherpaOnnxSpeakerEmbeddingManagerAdd(self, handle, name, embedding):
        self._enter('SherpaOnnxSpeakerEmbeddingManagerAdd', handle, name, embedding)
        gallery = self._galleries[handle]
        label = name.value.decode('utf-8')
        if label in gallery.names() or 'SherpaOnnxSpeakerEmbeddingManagerAdd' in self.fail:
            return 0
        view = np.ctypeslib.as_array(embedding, shape=(gallery.dim,))
        view /= np.linalg.norm(view)  # normalised in place, like the engine
        gallery.rows.append((label, view.copy()))
        return 1

    def SherpaOnnxSpeakerEmbeddingManagerSearch(self, handle, embedding, threshold):
        self._enter('SherpaOnnxSpeakerEmbeddingManagerSearch', handle, embedding, threshold)
        gallery = self._galleries[handle]
        name, score = gallery.best(_read_floats(embedding, gallery.dim))
        if name is None or score <= threshold:
            return None
        return self._buffer('search_result', ctypes.create_string_buffer(name.encode('utf-8')))

    def SherpaOnnxSpeakerEmbeddingManagerFreeSearch(self, address):
        self._enter('SherpaOnnxSpeakerEmbeddingManagerFreeSearch', address)
        self._free('search_result', address)

    def SherpaOnnxSpeakerEmbeddingManagerVerify(self, handle, name, embedding, threshold):
        self._enter('SherpaOnnxSpeakerEmbeddingManagerVerify', handle, name, embedding, threshold)
        gallery = self._galleries[handle]
        label = name.value.decode('utf-8')
        probe = _read_floats(embedding, gallery.dim)
        probe /= np.linalg.norm(probe)
        for row_name, row in gallery.rows:
            if row_name == label:
                return int(float(np.dot(probe, row)) > threshold)
        return 0

    def SherpaOnnxSpeakerEmbeddingManagerContains(self, handle, name):
        self._enter('SherpaOnnxSpeakerEmbeddingManagerContains', handle, name)
        return int(name.value.decode('utf-8') in self._galleries[handle].names())

    def SherpaOnnxSpeakerEmbeddingManagerNumSpeakers(self, handle):
        self._enter('SherpaOnnxSpeakerEmbeddingManagerNumSpeakers', handle)
        return len(self._galleries[handle].rows)

    def SherpaOnnxSpeakerEmbeddingManagerGetAllSpeakers(self, handle):
        self._enter('SherpaOnnxSpeakerEmbeddingManagerGetAllSpeakers', handle)
        names = [n.encode('utf-8') for n in self._galleries[handle].names()]
        array = (ctypes.c_char_p * (len(names) + 1))(*names, None)
        self._buffer('speaker_list', array)
        return ctypes.cast(array, ctypes.POINTER(ctypes.c_char_p))

    def SherpaOnnxSpeakerEmbeddingManagerFreeAllSpeakers(self, names):
        self._enter('SherpaOnnxSpeakerEmbeddingManagerFreeAllSpeakers', names)
        self._free('speaker_list', _address(names))


# --- Protocol-conforming Fakes ---


class FakeRecognizer:
    """Fake offline recognizer for L2 use case tests."""

    def __init__(self, text: str = 'hello', emotion: str | None = None, fail_on: set[int] | None = None):
        self._text = text
        self._emotion = emotion
        self._fail_on = fail_on or set()
        self.calls: list[np.ndarray] = []

    def transcribe(self, sample_rate: int, samples: np.ndarray) -> OfflineRecognizerResult:
        from sherpa_bind.l1_entities.errors import NativeCallError  # noqa: PLC0415 -- local to the fake

        index = len(self.calls)
        self.calls.append(samples)
        if index in self._fail_on:
            raise NativeCallError('transcribe', f'fake failure #{index}')
        return OfflineRecognizerResult(text=self._text, emotion=self._emotion)


class FakeSegmenter:
    """Fake segmenter: every accept_waveform call with non-silent audio becomes one segment."""

    def __init__(self, sample_rate: int = SR) -> None:
        self._sample_rate = sample_rate
        self._queue: list[SpeechSegment] = []
        self._offset = 0
        self.flushed = 0

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    def accept_waveform(self, samples: np.ndarray) -> None:
        if _rms(samples) > 0.01:
            self._queue.append(SpeechSegment(start=self._offset, samples=samples))
        self._offset += len(samples)

    def flush(self) -> None:
        self.flushed += 1

    def is_empty(self) -> bool:
        return not self._queue

    def pop(self) -> SpeechSegment:
        return self._queue.pop(0)


class FakeExtractor:
    def __init__(self, dim: int = 16, fail: bool = False) -> None:
        self._dim = dim
        self._fail = fail
        self.calls = 0

    @property
    def dim(self) -> int:
        return self._dim

    def compute_speaker_embedding(self, sample_rate: int, samples: np.ndarray) -> np.ndarray:
        from sherpa_bind.l1_entities.errors import EmbeddingExtractionError  # noqa: PLC0415 -- local to the fake

        self.calls += 1
        if self._fail:
            raise EmbeddingExtractionError('compute_speaker_embedding', 'fake failure')
        return fake_embedding(samples, self._dim)


class FakeGallery:
    """Cosine-similarity gallery; first inserted wins ties."""

    def __init__(self, dim: int = 16) -> None:
        self._gallery = _Gallery(dim)
        self.added: list[str] = []

    def add(self, label: str, embedding: np.ndarray) -> None:
        embedding /= np.linalg.norm(embedding)
        self._gallery.rows.append((label, embedding.copy()))
        self.added.append(label)

    def search(self, embedding: np.ndarray, threshold: float) -> str | None:
        name, score = self._gallery.best(embedding)
        return name if name is not None and score > threshold else None

    def __len__(self) -> int:
        return len(self._gallery.rows)


class FakeStreamingRecognizer:
    """Returns scripted texts; ``endpoints[i]`` says whether call *i* closed an utterance."""

    def __init__(self, texts: list[str], endpoints: list[bool], final_text: str = '') -> None:
        self._texts = list(texts)
        self._endpoints = list(endpoints)
        self._final_text = final_text
        self._endpoint_count = 0

    @property
    def endpoint_count(self) -> int:
        return self._endpoint_count

    def _result(self, text: str) -> OnlineRecognizerResult:
        return OnlineRecognizerResult(
            text=text, tokens=text.split(), timestamps=[], segment=0, start_time=0.0, is_final=False
        )

    def transcribe(self, sample_rate: int, samples: np.ndarray) -> OnlineRecognizerResult:
        text = self._texts.pop(0)
        if self._endpoints.pop(0):
            self._endpoint_count += 1
        return self._result(text)

    def input_finished(self) -> OnlineRecognizerResult:
        return self._result(self._final_text)


class FakePersistence:
    """Fake persistence gateway for L2/L4 tests."""

    def __init__(self) -> None:
        self.transcript_calls: list[tuple[list[TranscriptLine], Path]] = []
        self.group_calls: list[tuple[dict[str, list[str]], Path]] = []

    def save_transcript(self, lines: list[TranscriptLine], path: Path) -> Path:
        self.transcript_calls.append((list(lines), path))
        return path

    def save_speaker_groups(self, groups: dict[str, list[str]], path: Path) -> Path:
        self.group_calls.append((dict(groups), path))
        return path


# --- Standard Fixtures ---


@pytest.fixture
def fake_lib() -> FakeSherpaLib:
    return FakeSherpaLib()


@pytest.fixture
def runtime(fake_lib: FakeSherpaLib) -> NativeRuntime:
    return NativeRuntime(lib=fake_lib, default_provider='cpu', quiet=False)


@pytest.fixture
def model_dir(tmp_path: Path) -> Path:
    d = tmp_path / 'models'
    d.mkdir()
    for name in (
        'model.int8.onnx',
        'tokens.txt',
        'vad.onnx',
        'speaker.onnx',
        'encoder.onnx',
        'decoder.onnx',
        'joiner.onnx',
    ):
        (d / name).write_bytes(b'\x00')
    return d


@pytest.fixture
def offline_options(model_dir: Path) -> OfflineRecognizerOptions:
    return OfflineRecognizerOptions(
        model=SenseVoiceModel(model=str(model_dir / 'model.int8.onnx')),
        tokens=str(model_dir / 'tokens.txt'),
    )


@pytest.fixture
def online_options(model_dir: Path) -> OnlineRecognizerOptions:
    return OnlineRecognizerOptions(
        model=OnlineTransducerModel(
            encoder=str(model_dir / 'encoder.onnx'),
            decoder=str(model_dir / 'decoder.onnx'),
            joiner=str(model_dir / 'joiner.onnx'),
        ),
        tokens=str(model_dir / 'tokens.txt'),
    )


@pytest.fixture
def vad_options(model_dir: Path) -> VadOptions:
    return VadOptions(model=str(model_dir / 'vad.onnx'))


@pytest.fixture
def extractor_options(model_dir: Path) -> ExtractorOptions:
    return ExtractorOptions(model=str(model_dir / 'speaker.onnx'))


@pytest.fixture
def default_config(model_dir: Path) -> AppConfig:
    return build_app_config({'models': {'directory': str(model_dir)}})


@pytest.fixture
def sample_config_yaml(tmp_path: Path, model_dir: Path) -> Path:
    content = f"""\
models:
  directory: "{model_dir}"
offline:
  model:
    kind: whisper
    encoder: encoder.onnx
    decoder: decoder.onnx
    language: en
  tokens: tokens.txt
  num_threads: 4
vad:
  threshold: 0.3
speaker:
  threshold: 0.6
native:
  library: /opt/sherpa/libsherpa-onnx-c-api.so
  features: [cuda]
"""
    p = tmp_path / 'config.yaml'
    p.write_text(content, encoding='utf-8')
    return p


@pytest.fixture
def fake_persistence() -> FakePersistence:
    return FakePersistence()
