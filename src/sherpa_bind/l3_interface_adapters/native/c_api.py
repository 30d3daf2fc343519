"""ctypes declarations for the sherpa-onnx C API (1.10.x struct layout).

Struct field order mirrors ``sherpa-onnx/c-api/c-api.h`` exactly; the engine
reads every field of a config struct, so layouts must not drift.
"""

from __future__ import annotations

import ctypes
import ctypes.util
import logging
import os
from ctypes import POINTER, Structure, c_char_p, c_float, c_int32, c_void_p
from pathlib import Path
from typing import Any

import numpy as np

from sherpa_bind.l1_entities.errors import NativeLibraryError

log = logging.getLogger('sbind.native')

LIBRARY_ENV = 'SHERPA_ONNX_LIB'
LIBRARY_NAME = 'sherpa-onnx-c-api'

FloatPointer = POINTER(c_float)


# --- shared ---


class SherpaOnnxFeatureConfig(Structure):
    _fields_ = [
        ('sample_rate', c_int32),
        ('feature_dim', c_int32),
    ]


# --- offline recognizer ---


class SherpaOnnxOfflineTransducerModelConfig(Structure):
    _fields_ = [
        ('encoder', c_char_p),
        ('decoder', c_char_p),
        ('joiner', c_char_p),
    ]


class SherpaOnnxOfflineParaformerModelConfig(Structure):
    _fields_ = [('model', c_char_p)]


class SherpaOnnxOfflineNemoEncDecCtcModelConfig(Structure):
    _fields_ = [('model', c_char_p)]


class SherpaOnnxOfflineWhisperModelConfig(Structure):
    _fields_ = [
        ('encoder', c_char_p),
        ('decoder', c_char_p),
        ('language', c_char_p),
        ('task', c_char_p),
        ('tail_paddings', c_int32),
    ]


class SherpaOnnxOfflineTdnnModelConfig(Structure):
    _fields_ = [('model', c_char_p)]


class SherpaOnnxOfflineLMConfig(Structure):
    _fields_ = [
        ('model', c_char_p),
        ('scale', c_float),
    ]


class SherpaOnnxOfflineSenseVoiceModelConfig(Structure):
    _fields_ = [
        ('model', c_char_p),
        ('language', c_char_p),
        ('use_itn', c_int32),
    ]


class SherpaOnnxOfflineModelConfig(Structure):
    _fields_ = [
        ('transducer', SherpaOnnxOfflineTransducerModelConfig),
        ('paraformer', SherpaOnnxOfflineParaformerModelConfig),
        ('nemo_ctc', SherpaOnnxOfflineNemoEncDecCtcModelConfig),
        ('whisper', SherpaOnnxOfflineWhisperModelConfig),
        ('tdnn', SherpaOnnxOfflineTdnnModelConfig),
        ('tokens', c_char_p),
        ('num_threads', c_int32),
        ('debug', c_int32),
        ('provider', c_char_p),
        ('model_type', c_char_p),
        ('modeling_unit', c_char_p),
        ('bpe_vocab', c_char_p),
        ('telespeech_ctc', c_char_p),
        ('sense_voice', SherpaOnnxOfflineSenseVoiceModelConfig),
    ]


class SherpaOnnxOfflineRecognizerConfig(Structure):
    _fields_ = [
        ('feat_config', SherpaOnnxFeatureConfig),
        ('model_config', SherpaOnnxOfflineModelConfig),
        ('lm_config', SherpaOnnxOfflineLMConfig),
        ('decoding_method', c_char_p),
        ('max_active_paths', c_int32),
        ('hotwords_file', c_char_p),
        ('hotwords_score', c_float),
        ('rule_fsts', c_char_p),
        ('rule_fars', c_char_p),
        ('blank_penalty', c_float),
    ]


class SherpaOnnxOfflineRecognizerResult(Structure):
    _fields_ = [
        ('text', c_char_p),
        ('timestamps', FloatPointer),
        ('count', c_int32),
        ('tokens', c_char_p),
        ('tokens_arr', POINTER(c_char_p)),
        ('json', c_char_p),
        ('lang', c_char_p),
        ('emotion', c_char_p),
        ('event', c_char_p),
    ]


# --- online recognizer ---


class SherpaOnnxOnlineTransducerModelConfig(Structure):
    _fields_ = [
        ('encoder', c_char_p),
        ('decoder', c_char_p),
        ('joiner', c_char_p),
    ]


class SherpaOnnxOnlineParaformerModelConfig(Structure):
    _fields_ = [
        ('encoder', c_char_p),
        ('decoder', c_char_p),
    ]


class SherpaOnnxOnlineZipformer2CtcModelConfig(Structure):
    _fields_ = [('model', c_char_p)]


class SherpaOnnxOnlineModelConfig(Structure):
    _fields_ = [
        ('transducer', SherpaOnnxOnlineTransducerModelConfig),
        ('paraformer', SherpaOnnxOnlineParaformerModelConfig),
        ('zipformer2_ctc', SherpaOnnxOnlineZipformer2CtcModelConfig),
        ('tokens', c_char_p),
        ('num_threads', c_int32),
        ('provider', c_char_p),
        ('debug', c_int32),
        ('model_type', c_char_p),
        ('modeling_unit', c_char_p),
        ('bpe_vocab', c_char_p),
        ('tokens_buf', c_char_p),
        ('tokens_buf_size', c_int32),
    ]


class SherpaOnnxOnlineCtcFstDecoderConfig(Structure):
    _fields_ = [
        ('graph', c_char_p),
        ('max_active', c_int32),
    ]


class SherpaOnnxOnlineRecognizerConfig(Structure):
    _fields_ = [
        ('feat_config', SherpaOnnxFeatureConfig),
        ('model_config', SherpaOnnxOnlineModelConfig),
        ('decoding_method', c_char_p),
        ('max_active_paths', c_int32),
        ('enable_endpoint', c_int32),
        ('rule1_min_trailing_silence', c_float),
        ('rule2_min_trailing_silence', c_float),
        ('rule3_min_utterance_length', c_float),
        ('hotwords_file', c_char_p),
        ('hotwords_score', c_float),
        ('ctc_fst_decoder_config', SherpaOnnxOnlineCtcFstDecoderConfig),
        ('rule_fsts', c_char_p),
        ('rule_fars', c_char_p),
        ('blank_penalty', c_float),
        ('hotwords_buf', c_char_p),
        ('hotwords_buf_size', c_int32),
    ]


class SherpaOnnxOnlineRecognizerResult(Structure):
    _fields_ = [
        ('text', c_char_p),
        ('tokens', c_char_p),
        ('tokens_arr', POINTER(c_char_p)),
        ('timestamps', FloatPointer),
        ('count', c_int32),
        ('json', c_char_p),
    ]


# --- voice activity detection ---


class SherpaOnnxSileroVadModelConfig(Structure):
    _fields_ = [
        ('model', c_char_p),
        ('threshold', c_float),
        ('min_silence_duration', c_float),
        ('min_speech_duration', c_float),
        ('window_size', c_int32),
        ('max_speech_duration', c_float),
    ]


class SherpaOnnxVadModelConfig(Structure):
    _fields_ = [
        ('silero_vad', SherpaOnnxSileroVadModelConfig),
        ('sample_rate', c_int32),
        ('num_threads', c_int32),
        ('provider', c_char_p),
        ('debug', c_int32),
    ]


class SherpaOnnxSpeechSegment(Structure):
    _fields_ = [
        ('start', c_int32),
        ('samples', FloatPointer),
        ('n', c_int32),
    ]


# --- speaker embedding ---


class SherpaOnnxSpeakerEmbeddingExtractorConfig(Structure):
    _fields_ = [
        ('model', c_char_p),
        ('num_threads', c_int32),
        ('debug', c_int32),
        ('provider', c_char_p),
    ]


# name -> (restype, argtypes). Opaque handles travel as c_void_p. Strings the
# engine allocates for us are declared c_void_p so the address survives for
# the matching free call.
SIGNATURES: dict[str, tuple[Any, list[Any]]] = {
    # offline recognizer
    'SherpaOnnxCreateOfflineRecognizer': (c_void_p, [POINTER(SherpaOnnxOfflineRecognizerConfig)]),
    'SherpaOnnxDestroyOfflineRecognizer': (None, [c_void_p]),
    'SherpaOnnxCreateOfflineStream': (c_void_p, [c_void_p]),
    'SherpaOnnxDestroyOfflineStream': (None, [c_void_p]),
    'SherpaOnnxAcceptWaveformOffline': (None, [c_void_p, c_int32, FloatPointer, c_int32]),
    'SherpaOnnxDecodeOfflineStream': (None, [c_void_p, c_void_p]),
    'SherpaOnnxGetOfflineStreamResult': (POINTER(SherpaOnnxOfflineRecognizerResult), [c_void_p]),
    'SherpaOnnxDestroyOfflineRecognizerResult': (None, [POINTER(SherpaOnnxOfflineRecognizerResult)]),
    # online recognizer
    'SherpaOnnxCreateOnlineRecognizer': (c_void_p, [POINTER(SherpaOnnxOnlineRecognizerConfig)]),
    'SherpaOnnxDestroyOnlineRecognizer': (None, [c_void_p]),
    'SherpaOnnxCreateOnlineStream': (c_void_p, [c_void_p]),
    'SherpaOnnxDestroyOnlineStream': (None, [c_void_p]),
    'SherpaOnnxOnlineStreamAcceptWaveform': (None, [c_void_p, c_int32, FloatPointer, c_int32]),
    'SherpaOnnxIsOnlineStreamReady': (c_int32, [c_void_p, c_void_p]),
    'SherpaOnnxDecodeOnlineStream': (None, [c_void_p, c_void_p]),
    'SherpaOnnxGetOnlineStreamResult': (POINTER(SherpaOnnxOnlineRecognizerResult), [c_void_p, c_void_p]),
    'SherpaOnnxDestroyOnlineRecognizerResult': (None, [POINTER(SherpaOnnxOnlineRecognizerResult)]),
    'SherpaOnnxOnlineStreamReset': (None, [c_void_p, c_void_p]),
    'SherpaOnnxOnlineStreamInputFinished': (None, [c_void_p]),
    'SherpaOnnxOnlineStreamIsEndpoint': (c_int32, [c_void_p, c_void_p]),
    # voice activity detector
    'SherpaOnnxCreateVoiceActivityDetector': (c_void_p, [POINTER(SherpaOnnxVadModelConfig), c_float]),
    'SherpaOnnxDestroyVoiceActivityDetector': (None, [c_void_p]),
    'SherpaOnnxVoiceActivityDetectorAcceptWaveform': (None, [c_void_p, FloatPointer, c_int32]),
    'SherpaOnnxVoiceActivityDetectorEmpty': (c_int32, [c_void_p]),
    'SherpaOnnxVoiceActivityDetectorDetected': (c_int32, [c_void_p]),
    'SherpaOnnxVoiceActivityDetectorPop': (None, [c_void_p]),
    'SherpaOnnxVoiceActivityDetectorClear': (None, [c_void_p]),
    'SherpaOnnxVoiceActivityDetectorFront': (POINTER(SherpaOnnxSpeechSegment), [c_void_p]),
    'SherpaOnnxDestroySpeechSegment': (None, [POINTER(SherpaOnnxSpeechSegment)]),
    'SherpaOnnxVoiceActivityDetectorReset': (None, [c_void_p]),
    'SherpaOnnxVoiceActivityDetectorFlush': (None, [c_void_p]),
    # speaker embedding extractor
    'SherpaOnnxCreateSpeakerEmbeddingExtractor': (c_void_p, [POINTER(SherpaOnnxSpeakerEmbeddingExtractorConfig)]),
    'SherpaOnnxDestroySpeakerEmbeddingExtractor': (None, [c_void_p]),
    'SherpaOnnxSpeakerEmbeddingExtractorDim': (c_int32, [c_void_p]),
    'SherpaOnnxSpeakerEmbeddingExtractorCreateStream': (c_void_p, [c_void_p]),
    'SherpaOnnxSpeakerEmbeddingExtractorIsReady': (c_int32, [c_void_p, c_void_p]),
    'SherpaOnnxSpeakerEmbeddingExtractorComputeEmbedding': (FloatPointer, [c_void_p, c_void_p]),
    'SherpaOnnxSpeakerEmbeddingExtractorDestroyEmbedding': (None, [FloatPointer]),
    # speaker embedding manager
    'SherpaOnnxCreateSpeakerEmbeddingManager': (c_void_p, [c_int32]),
    'SherpaOnnxDestroySpeakerEmbeddingManager': (None, [c_void_p]),
    'SherpaOnnxSpeakerEmbeddingManagerAdd': (c_int32, [c_void_p, c_char_p, FloatPointer]),
    'SherpaOnnxSpeakerEmbeddingManagerSearch': (c_void_p, [c_void_p, FloatPointer, c_float]),
    'SherpaOnnxSpeakerEmbeddingManagerFreeSearch': (None, [c_void_p]),
    'SherpaOnnxSpeakerEmbeddingManagerVerify': (c_int32, [c_void_p, c_char_p, FloatPointer, c_float]),
    'SherpaOnnxSpeakerEmbeddingManagerContains': (c_int32, [c_void_p, c_char_p]),
    'SherpaOnnxSpeakerEmbeddingManagerNumSpeakers': (c_int32, [c_void_p]),
    'SherpaOnnxSpeakerEmbeddingManagerGetAllSpeakers': (POINTER(c_char_p), [c_void_p]),
    'SherpaOnnxSpeakerEmbeddingManagerFreeAllSpeakers': (None, [POINTER(c_char_p)]),
}


def resolve_library_path(explicit: str | None = None) -> str:
    """Locate the shared library: explicit path, then ``$SHERPA_ONNX_LIB``, then the system search path."""
    for candidate in (explicit, os.environ.get(LIBRARY_ENV)):
        if candidate:
            if not Path(candidate).exists():
                raise NativeLibraryError(f'sherpa-onnx library not found: {candidate}')
            return candidate
    found = ctypes.util.find_library(LIBRARY_NAME)
    if found is None:
        raise NativeLibraryError(
            f'Cannot locate lib{LIBRARY_NAME}. Install sherpa-onnx shared libraries or set {LIBRARY_ENV}.'
        )
    return found


def declare(lib: Any) -> Any:
    """Attach restype/argtypes to every function in SIGNATURES."""
    for name, (restype, argtypes) in SIGNATURES.items():
        try:
            fn = getattr(lib, name)
        except AttributeError as exc:
            raise NativeLibraryError(f'Native library lacks symbol {name}; is it a 1.10.x build?') from exc
        fn.restype = restype
        fn.argtypes = argtypes
    return lib


def load_library(path: str | None = None) -> Any:
    resolved = resolve_library_path(path)
    try:
        lib = ctypes.CDLL(resolved)
    except OSError as exc:
        raise NativeLibraryError(f'Failed to load {resolved}: {exc}') from exc
    log.info('Loaded sherpa-onnx library from %s', resolved)
    return declare(lib)


def float_buffer(samples: np.ndarray | list[float]) -> tuple[np.ndarray, Any]:
    """Return a contiguous float32 copy-or-view of *samples* and a pointer into it.

    The caller must keep the returned array referenced for as long as the
    pointer is in use.
    """
    array = np.ascontiguousarray(samples, dtype=np.float32).reshape(-1)
    return array, array.ctypes.data_as(FloatPointer)


def copy_floats(pointer: Any, count: int) -> np.ndarray:
    """Copy *count* floats out of native memory into a managed array."""
    if count <= 0 or not pointer:
        return np.zeros(0, dtype=np.float32)
    return np.ctypeslib.as_array(pointer, shape=(count,)).astype(np.float32, copy=True)
