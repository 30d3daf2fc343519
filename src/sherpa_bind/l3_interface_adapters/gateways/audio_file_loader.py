"""Gateway: audio file loader — 16 kHz mono float32 PCM from WAV directly or anything else via ffmpeg."""

from __future__ import annotations

import logging
import shutil
import subprocess  # noqa: S404 -- intentional: shells out to ffmpeg with a fixed arg list, not shell=True
import wave
from pathlib import Path

import numpy as np

from sherpa_bind.l1_entities.audio_constants import PCM16_MAX, SAMPLE_RATE, TRAILING_SILENCE_SECONDS

log = logging.getLogger('sbind.audio')

_FFMPEG_TIMEOUT = 300  # seconds


def pcm16_to_float(raw: bytes) -> np.ndarray:
    """Little-endian signed 16-bit PCM to float32 in [-1, 1] (divided by 32767)."""
    return (np.frombuffer(raw, dtype='<i2').astype(np.float32) / PCM16_MAX).astype(np.float32)


def pad_with_silence(
    samples: np.ndarray,
    seconds: float = TRAILING_SILENCE_SECONDS,
    sample_rate: int = SAMPLE_RATE,
) -> np.ndarray:
    """Append *seconds* of zeros so the VAD sees the end of the last utterance."""
    padding = np.zeros(int(seconds * sample_rate), dtype=np.float32)
    return np.concatenate([np.asarray(samples, dtype=np.float32).reshape(-1), padding])


def read_wav_file(path: Path) -> np.ndarray:
    """Read a 16 kHz mono 16-bit WAV file without transcoding.

    Raises:
        FileNotFoundError: file does not exist.
        ValueError: the WAV is not 16 kHz, mono, 16-bit PCM.
    """
    if not path.exists():
        raise FileNotFoundError(f'Audio file not found: {path}')
    with wave.open(str(path), 'rb') as reader:
        if reader.getframerate() != SAMPLE_RATE:
            raise ValueError(f'The sample rate must be {SAMPLE_RATE}, got {reader.getframerate()}: {path}')
        if reader.getnchannels() != 1:
            raise ValueError(f'Expected mono audio, got {reader.getnchannels()} channels: {path}')
        if reader.getsampwidth() != 2:
            raise ValueError(f'Expected 16-bit samples, got {reader.getsampwidth() * 8}-bit: {path}')
        raw = reader.readframes(reader.getnframes())
    return pcm16_to_float(raw)


def load_audio_file(path: Path) -> np.ndarray:
    """Load *path* as float32 mono PCM at 16 kHz.

    Conforming WAV files are read directly; every other format ffmpeg can
    decode (FLAC, MP3, M4A, OGG, MP4, other WAV layouts) is transcoded.

    Raises:
        FileNotFoundError: audio file does not exist.
        RuntimeError: ffmpeg is missing, conversion failed, timed out, or
                      the file contains no decodable audio.
    """
    if not path.exists():
        raise FileNotFoundError(f'Audio file not found: {path}')

    if path.suffix.lower() == '.wav':
        try:
            return read_wav_file(path)
        except (ValueError, EOFError, wave.Error) as exc:
            log.debug('WAV not directly readable (%s), transcoding with ffmpeg', exc)

    if shutil.which('ffmpeg') is None:
        raise RuntimeError(
            'ffmpeg is required but not found on PATH.\n  macOS:  brew install ffmpeg\n  Debian: apt install ffmpeg'
        )

    cmd = [
        'ffmpeg',
        '-i',
        str(path),
        '-ar',
        str(SAMPLE_RATE),
        '-ac',
        '1',
        '-f',
        'f32le',
        '-v',
        'quiet',
        'pipe:1',
    ]

    try:
        result = subprocess.run(cmd, capture_output=True, timeout=_FFMPEG_TIMEOUT)  # noqa: S603
    except subprocess.TimeoutExpired as exc:
        raise RuntimeError(f'ffmpeg timed out after {_FFMPEG_TIMEOUT}s processing: {path}') from exc
    except OSError as exc:
        raise RuntimeError(f'Failed to launch ffmpeg: {exc}') from exc

    if result.returncode != 0:
        stderr = result.stderr.decode('utf-8', errors='replace').strip()
        raise RuntimeError(f'ffmpeg exited with code {result.returncode} for: {path}\n{stderr}')

    if not result.stdout:
        raise RuntimeError(f'ffmpeg produced no audio output for: {path}')

    audio = np.frombuffer(result.stdout, dtype=np.float32)
    if len(audio) == 0:
        raise RuntimeError(f'Audio file appears to be empty: {path}')

    log.debug('Transcoded %s: %d samples', path.name, len(audio))
    return audio
