"""Gateway: file-based persistence — implements PersistenceGateway port."""

from __future__ import annotations

import logging
from pathlib import Path

from sherpa_bind.l1_entities.transcript import TranscriptLine

log = logging.getLogger('sbind.persist')


class FilePersistenceGateway:
    """Writes rendered transcripts to the filesystem."""

    def save_transcript(self, lines: list[TranscriptLine], path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        content = ''.join(line.render() + '\n' for line in lines)
        path.write_text(content, encoding='utf-8')
        log.debug('Wrote %d lines to %s', len(lines), path)
        return path

    def save_speaker_groups(self, groups: dict[str, list[str]], path: Path) -> Path:
        """One ``label: item, item`` line per speaker, in first-seen order."""
        path.parent.mkdir(parents=True, exist_ok=True)
        content = ''.join(f'{label}: {", ".join(items)}\n' for label, items in groups.items())
        path.write_text(content, encoding='utf-8')
        log.debug('Wrote %d speaker groups to %s', len(groups), path)
        return path
