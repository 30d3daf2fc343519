"""Gateway: online (streaming) recognizer with a persistent stream and endpoint resets."""

from __future__ import annotations

import ctypes
import logging

import numpy as np
from pydantic import ValidationError

from sherpa_bind.l1_entities.errors import MalformedResultError, NativeCallError
from sherpa_bind.l1_entities.options import OnlineRecognizerOptions
from sherpa_bind.l1_entities.recognition import OnlineRecognizerResult
from sherpa_bind.l3_interface_adapters.native.c_api import float_buffer
from sherpa_bind.l3_interface_adapters.native.config_builder import (
    build_online_config,
    online_model_files,
    require_files,
)
from sherpa_bind.l3_interface_adapters.native.handle import NativeResource
from sherpa_bind.l3_interface_adapters.native.runtime import NativeRuntime
from sherpa_bind.l3_interface_adapters.native.string_bridge import CStringArena, from_native

log = logging.getLogger('sbind.native')


def parse_online_result(payload: str) -> OnlineRecognizerResult:
    try:
        return OnlineRecognizerResult.model_validate_json(payload)
    except ValidationError as exc:
        raise MalformedResultError(f'Unexpected streaming result payload: {payload!r}') from exc


class OnlineRecognizer(NativeResource):
    """Streaming transducer recognizer.

    ``transcribe`` feeds samples into one stream that lives as long as the
    recognizer, decodes everything the engine has buffered, and returns the
    current partial result. When the engine's endpoint detector fires the
    stream is reset so the next call starts a fresh utterance; the returned
    result is the last one of the finished utterance.
    """

    def __init__(self, options: OnlineRecognizerOptions, runtime: NativeRuntime) -> None:
        require_files(*online_model_files(options))
        super().__init__(runtime)
        self._options = options
        self._endpoint_count = 0
        lib = self._lib
        with self._constructing():
            with CStringArena() as arena:
                config = build_online_config(options, arena, runtime.default_provider)
                self._recognizer = self._acquire(
                    lib.SherpaOnnxCreateOnlineRecognizer(ctypes.byref(config)),
                    'SherpaOnnxDestroyOnlineRecognizer',
                    'SherpaOnnxCreateOnlineRecognizer',
                )
                self._settle_config_strings(arena)
            self._stream = self._acquire(
                lib.SherpaOnnxCreateOnlineStream(self._recognizer),
                'SherpaOnnxDestroyOnlineStream',
                'SherpaOnnxCreateOnlineStream',
            )
        log.info('Online recognizer ready (endpointing %s)', 'on' if options.enable_endpoint else 'off')

    @property
    def endpoint_count(self) -> int:
        """Number of automatic stream resets so far."""
        return self._endpoint_count

    def transcribe(self, sample_rate: int, samples: np.ndarray | list[float]) -> OnlineRecognizerResult:
        array, pointer = float_buffer(samples)
        with self._exclusive():
            self._lib.SherpaOnnxOnlineStreamAcceptWaveform(self._stream, sample_rate, pointer, len(array))
            return self._decode_pending()

    def input_finished(self) -> OnlineRecognizerResult:
        """Signal end of input and decode the tail the engine was holding back."""
        with self._exclusive():
            self._lib.SherpaOnnxOnlineStreamInputFinished(self._stream)
            return self._decode_pending()

    def reset(self) -> None:
        """Drop the current utterance without destroying the stream."""
        with self._exclusive():
            self._lib.SherpaOnnxOnlineStreamReset(self._recognizer, self._stream)

    def _decode_pending(self) -> OnlineRecognizerResult:
        lib = self._lib
        while lib.SherpaOnnxIsOnlineStreamReady(self._recognizer, self._stream):
            lib.SherpaOnnxDecodeOnlineStream(self._recognizer, self._stream)
        payload = self._result_json()
        if lib.SherpaOnnxOnlineStreamIsEndpoint(self._recognizer, self._stream):
            lib.SherpaOnnxOnlineStreamReset(self._recognizer, self._stream)
            self._endpoint_count += 1
            log.debug('Endpoint detected, stream reset (#%d)', self._endpoint_count)
        return parse_online_result(payload)

    def _result_json(self) -> str:
        result = self._lib.SherpaOnnxGetOnlineStreamResult(self._recognizer, self._stream)
        if not result:
            raise NativeCallError('SherpaOnnxGetOnlineStreamResult', 'returned NULL')
        try:
            return from_native(result.contents.json)
        finally:
            self._lib.SherpaOnnxDestroyOnlineRecognizerResult(result)
