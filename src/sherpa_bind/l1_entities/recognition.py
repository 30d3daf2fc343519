"""Recognizer result entities — value records decoded from native result buffers."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr


class OfflineRecognizerResult(BaseModel):
    """One-shot transcription of a bounded buffer.

    ``lang``, ``emotion`` and ``event`` are only produced by model families
    that tag them (SenseVoice); they are ``None`` otherwise.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    lang: str | None = None
    emotion: str | None = None
    event: str | None = None
    tokens: list[str] = Field(default_factory=list)
    timestamps: list[float] = Field(default_factory=list)


class OnlineRecognizerResult(BaseModel):
    """Streaming result parsed from the engine's JSON payload.

    Every field is required and type-checked strictly; diagnostic keys the
    engine adds (``ys_probs``, ``lm_probs``, ...) are ignored.
    """

    model_config = ConfigDict(frozen=True, extra='ignore')

    text: StrictStr
    tokens: list[StrictStr]
    timestamps: list[float]
    segment: float
    start_time: float
    is_final: StrictBool
