"""Audio format constants shared across layers."""

from __future__ import annotations

SAMPLE_RATE = 16000
PCM16_MAX = 32767  # int16 max; PCM samples are divided by this to land in [-1, 1]
TRAILING_SILENCE_SECONDS = 3.0
