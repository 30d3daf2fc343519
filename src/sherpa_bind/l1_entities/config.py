"""Configuration Pydantic models — pure schema, no infrastructure defaults."""

from __future__ import annotations

from pydantic import BaseModel

from sherpa_bind.l1_entities.options import (
    ExtractorOptions,
    OfflineRecognizerOptions,
    OnlineRecognizerOptions,
    VadOptions,
)


class ModelsConfig(BaseModel):
    directory: str


class SpeakerConfig(BaseModel):
    enabled: bool
    extractor: ExtractorOptions
    threshold: float
    label_prefix: str = 'speaker'


class PipelineConfig(BaseModel):
    trailing_silence: float  # seconds of zeros appended so the VAD closes the last segment
    stream_chunk_seconds: float


class AppConfig(BaseModel):
    models: ModelsConfig
    offline: OfflineRecognizerOptions
    online: OnlineRecognizerOptions | None = None
    vad: VadOptions
    speaker: SpeakerConfig
    pipeline: PipelineConfig
