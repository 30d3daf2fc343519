"""Port: persistence gateway for saving results."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from sherpa_bind.l1_entities.transcript import TranscriptLine


class PersistenceGateway(Protocol):
    """Abstract persistence for transcripts and speaker groupings."""

    def save_transcript(self, lines: list[TranscriptLine], path: Path) -> Path:
        """Write rendered transcript lines to *path*."""
        ...

    def save_speaker_groups(self, groups: dict[str, list[str]], path: Path) -> Path:
        """Write the speaker -> items mapping to *path*."""
        ...
