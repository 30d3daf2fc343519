"""Batch runners — headless file processing behind the CLI commands."""

from __future__ import annotations

import sys
from pathlib import Path

import numpy as np

from sherpa_bind.l1_entities.audio_constants import SAMPLE_RATE
from sherpa_bind.l1_entities.errors import SherpaBindError
from sherpa_bind.l1_entities.transcript import TranscriptLine
from sherpa_bind.l3_interface_adapters.gateways.audio_file_loader import load_audio_file, pad_with_silence
from sherpa_bind.l4_frameworks_and_drivers.container import DependencyContainer

_FEED_CHUNK = SAMPLE_RATE  # 1 second of audio per feed call


def _fmt(seconds: float) -> str:
    h, rem = divmod(int(seconds), 3600)
    m, s = divmod(rem, 60)
    return f'{h:02d}:{m:02d}:{s:02d}'


def _err(msg: str) -> None:
    print(msg, file=sys.stderr, flush=True)


def _load(audio_path: Path) -> np.ndarray:
    _err(f'Loading audio: {audio_path}')
    try:
        audio = load_audio_file(audio_path)
    except (FileNotFoundError, RuntimeError, ValueError) as exc:
        _err(f'Error: {exc}')
        raise SystemExit(1) from exc
    _err(f'Duration: {_fmt(len(audio) / SAMPLE_RATE)}  ({len(audio):,} samples @ {SAMPLE_RATE} Hz)')
    return audio


def _build(factory):
    try:
        return factory()
    except (SherpaBindError, ValueError) as exc:
        _err(f'Error loading models: {exc}')
        raise SystemExit(1) from exc


def run_transcription(
    audio_path: Path,
    container: DependencyContainer,
    out_path: Path,
    *,
    speaker_id: bool = True,
) -> list[TranscriptLine]:
    """Segment, transcribe and label *audio_path*; print lines as they finish and save them."""
    audio = pad_with_silence(_load(audio_path), container.config.pipeline.trailing_silence)
    use_case = _build(lambda: container.diarized_transcription(speaker_id=speaker_id))

    lines: list[TranscriptLine] = []

    def _emit(new_lines: list[TranscriptLine]) -> None:
        for line in new_lines:
            lines.append(line)
            print(line.render(), flush=True)

    _err('Transcribing...')
    offset = 0
    while offset < len(audio):
        chunk = audio[offset : offset + _FEED_CHUNK]
        offset += len(chunk)
        _emit(use_case.feed_audio(chunk))
    _emit(use_case.finish())

    if not lines:
        _err('No speech detected in the audio file.')
    if use_case.skipped:
        _err(f'Warning: {use_case.skipped} segment(s) could not be transcribed.')

    path = container.persistence.save_transcript(lines, out_path)
    _err(f'\nTranscription complete — {len(lines)} lines.\nSaved: {path}')
    return lines


def run_stream(audio_path: Path, container: DependencyContainer, chunk_seconds: float) -> list[str]:
    """Feed *audio_path* to the streaming recognizer in small chunks, printing each committed utterance."""
    audio = _load(audio_path)
    use_case = _build(container.streaming_transcription)
    chunk = max(1, int(chunk_seconds * SAMPLE_RATE))

    utterances: list[str] = []
    offset = 0
    while offset < len(audio):
        for text in use_case.feed_audio(audio[offset : offset + chunk]):
            utterances.append(text)
            print(text, flush=True)
        offset += chunk
    for text in use_case.finish():
        utterances.append(text)
        print(text, flush=True)

    if not utterances:
        _err('No speech recognised.')
    return utterances


def run_speakers(
    audio_paths: list[Path],
    container: DependencyContainer,
    *,
    threshold: float | None = None,
    out_path: Path | None = None,
) -> dict[str, list[str]]:
    """Group whole recordings by speaker and print ``label: file, file``."""
    recordings = [(path.name, _load(path)) for path in audio_paths]
    use_case = _build(lambda: container.group_speakers(threshold))
    try:
        groups = use_case.execute(recordings, SAMPLE_RATE)
    except SherpaBindError as exc:
        _err(f'Error: {exc}')
        raise SystemExit(1) from exc

    for label, names in groups.items():
        print(f'{label}: {", ".join(names)}', flush=True)
    if out_path is not None:
        path = container.persistence.save_speaker_groups(groups, out_path)
        _err(f'Saved: {path}')
    return groups
