"""Configuration builder — typed options to zeroed, selectively filled native structs.

Every string goes through the caller's ``CStringArena`` exactly once and its
address is stored directly in the struct, so the arena decides when the bytes
die. Numeric thresholds are passed through unchanged.
"""

from __future__ import annotations

import ctypes
from pathlib import Path
from typing import TypeVar

from sherpa_bind.l1_entities.errors import ModelFileNotFoundError
from sherpa_bind.l1_entities.options import (
    EngineOptions,
    ExtractorOptions,
    OfflineModel,
    OfflineRecognizerOptions,
    OfflineTransducerModel,
    OnlineRecognizerOptions,
    ParaformerModel,
    SenseVoiceModel,
    VadOptions,
    WhisperModel,
)
from sherpa_bind.l3_interface_adapters.native.c_api import (
    SherpaOnnxFeatureConfig,
    SherpaOnnxOfflineModelConfig,
    SherpaOnnxOfflineRecognizerConfig,
    SherpaOnnxOnlineRecognizerConfig,
    SherpaOnnxSpeakerEmbeddingExtractorConfig,
    SherpaOnnxVadModelConfig,
)
from sherpa_bind.l3_interface_adapters.native.string_bridge import CStringArena

StructT = TypeVar('StructT', bound=ctypes.Structure)


def zeroed(struct_type: type[StructT]) -> StructT:
    struct = struct_type()
    ctypes.memset(ctypes.addressof(struct), 0, ctypes.sizeof(struct))
    return struct


def require_files(*paths: str | None) -> None:
    """Raise ModelFileNotFoundError for the first path that does not exist. ``None`` is skipped."""
    for path in paths:
        if path is not None and not Path(path).exists():
            raise ModelFileNotFoundError(f'Model file not found: {path}')


def offline_model_files(options: OfflineRecognizerOptions) -> list[str | None]:
    model = options.model
    if isinstance(model, WhisperModel):
        files: list[str | None] = [model.encoder, model.decoder]
    elif isinstance(model, SenseVoiceModel):
        files = [model.model]
    elif isinstance(model, OfflineTransducerModel):
        files = [model.encoder, model.decoder, model.joiner]
    else:
        files = [model.model]
    return [*files, options.tokens, options.bpe_vocab, options.hotwords_file]


def online_model_files(options: OnlineRecognizerOptions) -> list[str | None]:
    model = options.model
    return [model.encoder, model.decoder, model.joiner, options.tokens, options.bpe_vocab, options.hotwords_file]


def _provider(options: EngineOptions, default_provider: str) -> str:
    return options.execution_provider or default_provider


def _fill_features(feat: SherpaOnnxFeatureConfig, sample_rate: int, feature_dim: int) -> None:
    feat.sample_rate = sample_rate
    feat.feature_dim = feature_dim


def _fill_offline_model(target: SherpaOnnxOfflineModelConfig, model: OfflineModel, arena: CStringArena) -> None:
    if isinstance(model, WhisperModel):
        target.whisper.encoder = arena.c_string(model.encoder)
        target.whisper.decoder = arena.c_string(model.decoder)
        target.whisper.language = arena.c_string(model.language)
        target.whisper.task = arena.c_string(model.task)
        target.whisper.tail_paddings = model.tail_paddings
    elif isinstance(model, SenseVoiceModel):
        target.sense_voice.model = arena.c_string(model.model)
        target.sense_voice.language = arena.c_string(model.language)
        target.sense_voice.use_itn = int(model.use_text_normalization)
    elif isinstance(model, OfflineTransducerModel):
        target.transducer.encoder = arena.c_string(model.encoder)
        target.transducer.decoder = arena.c_string(model.decoder)
        target.transducer.joiner = arena.c_string(model.joiner)
        if model.model_type:
            target.model_type = arena.c_string(model.model_type)
    elif isinstance(model, ParaformerModel):
        target.paraformer.model = arena.c_string(model.model)


def build_offline_config(
    options: OfflineRecognizerOptions,
    arena: CStringArena,
    default_provider: str,
) -> SherpaOnnxOfflineRecognizerConfig:
    config = zeroed(SherpaOnnxOfflineRecognizerConfig)
    _fill_features(config.feat_config, options.sample_rate, options.feature_dim)

    model_config = config.model_config
    _fill_offline_model(model_config, options.model, arena)
    model_config.tokens = arena.c_string(options.tokens)
    model_config.num_threads = options.num_threads
    model_config.debug = int(options.debug)
    model_config.provider = arena.c_string(_provider(options, default_provider))
    model_config.bpe_vocab = arena.c_string(options.bpe_vocab or '')

    config.decoding_method = arena.c_string(options.decoding_method)
    config.max_active_paths = options.max_active_paths
    config.hotwords_file = arena.optional(options.hotwords_file)
    if options.hotwords_score is not None:
        config.hotwords_score = options.hotwords_score
    return config


def build_online_config(
    options: OnlineRecognizerOptions,
    arena: CStringArena,
    default_provider: str,
) -> SherpaOnnxOnlineRecognizerConfig:
    config = zeroed(SherpaOnnxOnlineRecognizerConfig)
    _fill_features(config.feat_config, options.sample_rate, options.feature_dim)

    model_config = config.model_config
    model_config.transducer.encoder = arena.c_string(options.model.encoder)
    model_config.transducer.decoder = arena.c_string(options.model.decoder)
    model_config.transducer.joiner = arena.c_string(options.model.joiner)
    model_config.tokens = arena.c_string(options.tokens)
    model_config.num_threads = options.num_threads
    model_config.provider = arena.c_string(_provider(options, default_provider))
    model_config.debug = int(options.debug)
    model_config.bpe_vocab = arena.c_string(options.bpe_vocab or '')

    config.decoding_method = arena.c_string(options.decoding_method)
    config.max_active_paths = options.max_active_paths
    config.enable_endpoint = int(options.enable_endpoint)
    config.rule1_min_trailing_silence = options.rule1_min_trailing_silence
    config.rule2_min_trailing_silence = options.rule2_min_trailing_silence
    config.rule3_min_utterance_length = options.rule3_min_utterance_length
    config.hotwords_file = arena.optional(options.hotwords_file)
    if options.hotwords_score is not None:
        config.hotwords_score = options.hotwords_score
    return config


def build_vad_config(
    options: VadOptions,
    arena: CStringArena,
    default_provider: str,
) -> SherpaOnnxVadModelConfig:
    config = zeroed(SherpaOnnxVadModelConfig)
    silero = config.silero_vad
    silero.model = arena.c_string(options.model)
    silero.threshold = options.threshold
    silero.min_silence_duration = options.min_silence_duration
    silero.min_speech_duration = options.min_speech_duration
    silero.window_size = options.window_size
    silero.max_speech_duration = options.max_speech_duration
    config.sample_rate = options.sample_rate
    config.num_threads = options.num_threads
    config.provider = arena.c_string(_provider(options, default_provider))
    config.debug = int(options.debug)
    return config


def build_extractor_config(
    options: ExtractorOptions,
    arena: CStringArena,
    default_provider: str,
) -> SherpaOnnxSpeakerEmbeddingExtractorConfig:
    config = zeroed(SherpaOnnxSpeakerEmbeddingExtractorConfig)
    config.model = arena.c_string(options.model)
    config.num_threads = options.num_threads
    config.debug = int(options.debug)
    config.provider = arena.c_string(_provider(options, default_provider))
    return config
