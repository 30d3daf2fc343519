"""Caller-facing options for native-backed wrappers — pure schema, paths are not checked here."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field

from sherpa_bind.l1_entities.audio_constants import SAMPLE_RATE


class EngineOptions(BaseModel):
    """Settings every native model config carries."""

    execution_provider: str | None = None  # None -> platform default at build time
    num_threads: int = 1
    debug: bool = False


class WhisperModel(BaseModel):
    kind: Literal['whisper'] = 'whisper'
    encoder: str
    decoder: str
    language: str = ''
    task: str = 'transcribe'
    tail_paddings: int = 0


class SenseVoiceModel(BaseModel):
    kind: Literal['sense_voice'] = 'sense_voice'
    model: str
    language: str = 'auto'
    use_text_normalization: bool = True


class OfflineTransducerModel(BaseModel):
    kind: Literal['transducer'] = 'transducer'
    encoder: str
    decoder: str
    joiner: str
    model_type: str = ''


class ParaformerModel(BaseModel):
    kind: Literal['paraformer'] = 'paraformer'
    model: str


OfflineModel = Annotated[
    WhisperModel | SenseVoiceModel | OfflineTransducerModel | ParaformerModel,
    Field(discriminator='kind'),
]


class OfflineRecognizerOptions(EngineOptions):
    model: OfflineModel
    tokens: str
    bpe_vocab: str | None = None  # None -> empty string, never NULL
    decoding_method: str = 'greedy_search'
    max_active_paths: int = 4
    hotwords_file: str | None = None
    hotwords_score: float | None = None
    sample_rate: int = SAMPLE_RATE
    feature_dim: int = 80


class OnlineTransducerModel(BaseModel):
    kind: Literal['transducer'] = 'transducer'
    encoder: str
    decoder: str
    joiner: str


class OnlineRecognizerOptions(EngineOptions):
    model: OnlineTransducerModel
    tokens: str
    bpe_vocab: str | None = None
    decoding_method: str = 'greedy_search'
    max_active_paths: int = 4
    enable_endpoint: bool = True
    rule1_min_trailing_silence: float = 2.4
    rule2_min_trailing_silence: float = 1.2
    rule3_min_utterance_length: float = 300.0
    hotwords_file: str | None = None
    hotwords_score: float | None = None
    sample_rate: int = SAMPLE_RATE
    feature_dim: int = 80


class VadOptions(EngineOptions):
    model: str
    threshold: float = 0.5
    min_silence_duration: float = 0.4
    min_speech_duration: float = 0.4
    max_speech_duration: float = 20.0
    sample_rate: int = SAMPLE_RATE
    window_size: int = 512
    buffer_size_seconds: float = 600.0


class ExtractorOptions(EngineOptions):
    model: str
