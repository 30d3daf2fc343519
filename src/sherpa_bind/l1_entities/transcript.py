"""Transcript line entity — one recognised segment merged with its speaker."""

from __future__ import annotations

from pydantic import BaseModel, Field


def format_seconds(seconds: float) -> str:
    """Format seconds with millisecond precision, e.g. ``12.345s``."""
    return f'{seconds:.3f}s'


class TranscriptLine(BaseModel):
    """A single transcribed speech segment."""

    text: str
    start: float = Field(description='Offset in seconds from the start of the input')
    end: float = Field(description='Offset in seconds from the start of the input')
    speaker: str | None = None
    emotion: str | None = None

    def render(self) -> str:
        parts = []
        if self.speaker is not None:
            parts.append(f'[{self.speaker}]')
        parts.append(f'[{format_seconds(self.start)} - {format_seconds(self.end)}]')
        if self.emotion:
            parts.append(f'[{self.emotion}]')
        parts.append(self.text)
        return ' '.join(parts)
