"""Gateway: speaker embedding extractor and the in-memory speaker gallery."""

from __future__ import annotations

import ctypes
import logging

import numpy as np

from sherpa_bind.l1_entities.errors import DuplicateSpeakerError, EmbeddingExtractionError, NativeCallError
from sherpa_bind.l1_entities.options import ExtractorOptions
from sherpa_bind.l3_interface_adapters.native.c_api import FloatPointer, copy_floats, float_buffer
from sherpa_bind.l3_interface_adapters.native.config_builder import build_extractor_config, require_files
from sherpa_bind.l3_interface_adapters.native.handle import NativeResource
from sherpa_bind.l3_interface_adapters.native.runtime import NativeRuntime
from sherpa_bind.l3_interface_adapters.native.string_bridge import (
    CStringArena,
    engine_allocated_string,
    string_array,
    to_native,
)

log = logging.getLogger('sbind.native')


class SpeakerEmbeddingExtractor(NativeResource):
    """Computes fixed-size speaker embeddings; ``dim`` is known once the model is loaded."""

    def __init__(self, options: ExtractorOptions, runtime: NativeRuntime) -> None:
        require_files(options.model)
        super().__init__(runtime)
        with self._constructing(), CStringArena() as arena:
            config = build_extractor_config(options, arena, runtime.default_provider)
            self._extractor = self._acquire(
                self._lib.SherpaOnnxCreateSpeakerEmbeddingExtractor(ctypes.byref(config)),
                'SherpaOnnxDestroySpeakerEmbeddingExtractor',
                'SherpaOnnxCreateSpeakerEmbeddingExtractor',
            )
            self._settle_config_strings(arena)
            self._dim = int(self._lib.SherpaOnnxSpeakerEmbeddingExtractorDim(self._extractor))
        log.info('Speaker embedding extractor ready (dim=%d)', self._dim)

    @property
    def dim(self) -> int:
        return self._dim

    def compute_speaker_embedding(self, sample_rate: int, samples: np.ndarray | list[float]) -> np.ndarray:
        array, pointer = float_buffer(samples)
        lib = self._lib
        with self._exclusive():
            stream = lib.SherpaOnnxSpeakerEmbeddingExtractorCreateStream(self._extractor)
            if not stream:
                raise EmbeddingExtractionError('SherpaOnnxSpeakerEmbeddingExtractorCreateStream', 'returned NULL')
            try:
                lib.SherpaOnnxOnlineStreamAcceptWaveform(stream, sample_rate, pointer, len(array))
                lib.SherpaOnnxOnlineStreamInputFinished(stream)
                if not lib.SherpaOnnxSpeakerEmbeddingExtractorIsReady(self._extractor, stream):
                    raise EmbeddingExtractionError(
                        'SherpaOnnxSpeakerEmbeddingExtractorIsReady',
                        f'not enough audio ({len(array)} samples)',
                    )
                embedding = lib.SherpaOnnxSpeakerEmbeddingExtractorComputeEmbedding(self._extractor, stream)
                if not embedding:
                    raise EmbeddingExtractionError(
                        'SherpaOnnxSpeakerEmbeddingExtractorComputeEmbedding', 'returned NULL'
                    )
                try:
                    return copy_floats(embedding, self._dim)
                finally:
                    lib.SherpaOnnxSpeakerEmbeddingExtractorDestroyEmbedding(embedding)
            finally:
                lib.SherpaOnnxDestroyOnlineStream(stream)


class SpeakerEmbeddingManager(NativeResource):
    """Append-only gallery of labelled embeddings.

    ``search`` returns the best match whose score exceeds the threshold. On
    equal scores the speaker registered first wins: the engine keeps rows in
    insertion order and only replaces its best candidate on a strictly greater
    score, and nothing here removes rows.
    """

    def __init__(self, dim: int, runtime: NativeRuntime) -> None:
        super().__init__(runtime)
        self._dim = dim
        with self._constructing():
            self._manager = self._acquire(
                self._lib.SherpaOnnxCreateSpeakerEmbeddingManager(dim),
                'SherpaOnnxDestroySpeakerEmbeddingManager',
                'SherpaOnnxCreateSpeakerEmbeddingManager',
            )

    @property
    def dim(self) -> int:
        return self._dim

    def add(self, label: str, embedding: np.ndarray) -> None:
        """Register *embedding* under a new *label*.

        The engine may normalise *embedding* in place, so it must be a
        writable, contiguous float32 vector of length ``dim``.
        """
        pointer = self._writable_pointer(embedding)
        name = to_native(label)
        try:
            with self._exclusive():
                if self._lib.SherpaOnnxSpeakerEmbeddingManagerContains(self._manager, name.pointer):
                    raise DuplicateSpeakerError(f'Speaker already registered: {label!r}')
                if not self._lib.SherpaOnnxSpeakerEmbeddingManagerAdd(self._manager, name.pointer, pointer):
                    raise NativeCallError('SherpaOnnxSpeakerEmbeddingManagerAdd', label)
        finally:
            name.release()
        log.debug('Registered speaker %r', label)

    def search(self, embedding: np.ndarray, threshold: float) -> str | None:
        array, pointer = self._read_pointer(embedding)
        with self._exclusive():
            address = self._lib.SherpaOnnxSpeakerEmbeddingManagerSearch(self._manager, pointer, threshold)
            with engine_allocated_string(address, self._lib.SherpaOnnxSpeakerEmbeddingManagerFreeSearch) as match:
                return match

    def verify(self, label: str, embedding: np.ndarray, threshold: float) -> bool:
        """True when *embedding* scores above *threshold* against the registered *label*."""
        array, pointer = self._read_pointer(embedding)
        name = to_native(label)
        try:
            with self._exclusive():
                verified = self._lib.SherpaOnnxSpeakerEmbeddingManagerVerify(
                    self._manager, name.pointer, pointer, threshold
                )
                return bool(verified)
        finally:
            name.release()

    def contains(self, label: str) -> bool:
        name = to_native(label)
        try:
            with self._exclusive():
                return bool(self._lib.SherpaOnnxSpeakerEmbeddingManagerContains(self._manager, name.pointer))
        finally:
            name.release()

    def __len__(self) -> int:
        with self._exclusive():
            return int(self._lib.SherpaOnnxSpeakerEmbeddingManagerNumSpeakers(self._manager))

    @property
    def speakers(self) -> list[str]:
        """Registered labels in insertion order."""
        with self._exclusive():
            count = int(self._lib.SherpaOnnxSpeakerEmbeddingManagerNumSpeakers(self._manager))
            if count == 0:
                return []
            names = self._lib.SherpaOnnxSpeakerEmbeddingManagerGetAllSpeakers(self._manager)
            try:
                return string_array(names, count)
            finally:
                if names:
                    self._lib.SherpaOnnxSpeakerEmbeddingManagerFreeAllSpeakers(names)

    def _check_dim(self, embedding: np.ndarray) -> None:
        if embedding.ndim != 1 or embedding.shape[0] != self._dim:
            raise ValueError(f'Expected an embedding of shape ({self._dim},), got {embedding.shape}')

    def _writable_pointer(self, embedding: np.ndarray):
        if not isinstance(embedding, np.ndarray) or embedding.dtype != np.float32:
            raise TypeError('Embedding must be a float32 numpy array')
        self._check_dim(embedding)
        if not (embedding.flags.c_contiguous and embedding.flags.writeable):
            raise ValueError('Embedding must be C-contiguous and writable; it may be normalised in place')
        return embedding.ctypes.data_as(FloatPointer)

    def _read_pointer(self, embedding: np.ndarray | list[float]):
        array, pointer = float_buffer(embedding)
        self._check_dim(array)
        return array, pointer
