"""Gateway: offline recognizer — one native stream per transcription call."""

from __future__ import annotations

import ctypes
import logging

import numpy as np

from sherpa_bind.l1_entities.errors import NativeCallError
from sherpa_bind.l1_entities.options import OfflineRecognizerOptions
from sherpa_bind.l1_entities.recognition import OfflineRecognizerResult
from sherpa_bind.l3_interface_adapters.native.c_api import (
    SherpaOnnxOfflineRecognizerResult,
    copy_floats,
    float_buffer,
)
from sherpa_bind.l3_interface_adapters.native.config_builder import (
    build_offline_config,
    offline_model_files,
    require_files,
)
from sherpa_bind.l3_interface_adapters.native.handle import NativeResource
from sherpa_bind.l3_interface_adapters.native.runtime import NativeRuntime
from sherpa_bind.l3_interface_adapters.native.string_bridge import (
    CStringArena,
    from_native,
    optional_from_native,
    string_array,
)

log = logging.getLogger('sbind.native')


def decode_offline_result(raw: SherpaOnnxOfflineRecognizerResult) -> OfflineRecognizerResult:
    return OfflineRecognizerResult(
        text=from_native(raw.text),
        lang=optional_from_native(raw.lang),
        emotion=optional_from_native(raw.emotion),
        event=optional_from_native(raw.event),
        tokens=string_array(raw.tokens_arr, raw.count),
        timestamps=copy_floats(raw.timestamps, raw.count).tolist(),
    )


class OfflineRecognizer(NativeResource):
    """Batch recognizer for bounded buffers (Whisper, SenseVoice, transducer, Paraformer).

    Holds no state between calls besides the recognizer handle; every
    ``transcribe`` opens and destroys its own stream.
    """

    def __init__(self, options: OfflineRecognizerOptions, runtime: NativeRuntime) -> None:
        require_files(*offline_model_files(options))
        super().__init__(runtime)
        self._options = options
        with self._constructing(), CStringArena() as arena:
            config = build_offline_config(options, arena, runtime.default_provider)
            self._recognizer = self._acquire(
                self._lib.SherpaOnnxCreateOfflineRecognizer(ctypes.byref(config)),
                'SherpaOnnxDestroyOfflineRecognizer',
                'SherpaOnnxCreateOfflineRecognizer',
            )
            self._settle_config_strings(arena)
        log.info('Offline recognizer ready (%s)', options.model.kind)

    @property
    def options(self) -> OfflineRecognizerOptions:
        return self._options

    def transcribe(self, sample_rate: int, samples: np.ndarray | list[float]) -> OfflineRecognizerResult:
        array, pointer = float_buffer(samples)
        lib = self._lib
        with self._exclusive():
            stream = lib.SherpaOnnxCreateOfflineStream(self._recognizer)
            if not stream:
                raise NativeCallError('SherpaOnnxCreateOfflineStream', 'returned NULL')
            try:
                lib.SherpaOnnxAcceptWaveformOffline(stream, sample_rate, pointer, len(array))
                lib.SherpaOnnxDecodeOfflineStream(self._recognizer, stream)
                result = lib.SherpaOnnxGetOfflineStreamResult(stream)
                if not result:
                    raise NativeCallError('SherpaOnnxGetOfflineStreamResult', 'returned NULL')
                try:
                    return decode_offline_result(result.contents)
                finally:
                    lib.SherpaOnnxDestroyOfflineRecognizerResult(result)
            finally:
                lib.SherpaOnnxDestroyOfflineStream(stream)
