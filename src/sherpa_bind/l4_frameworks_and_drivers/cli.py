"""CLI entry point for sherpa-bind."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from sherpa_bind import __version__

_config_option = click.option(
    '-c',
    '--config',
    'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Path to YAML config file.',
)


def _open_container(config_path: str | None, overrides: dict | None = None):
    """Load config + infra settings and open the native runtime. Exits 1 on failure."""
    from sherpa_bind.l1_entities.errors import SherpaBindError  # noqa: PLC0415 -- deferred: not needed for --help
    from sherpa_bind.l4_frameworks_and_drivers.config import build_app_config  # noqa: PLC0415 -- deferred
    from sherpa_bind.l4_frameworks_and_drivers.container import (  # noqa: PLC0415 -- deferred: native stack not loaded on --help
        DependencyContainer,
    )
    from sherpa_bind.l4_frameworks_and_drivers.infra_config import InfraConfig  # noqa: PLC0415 -- deferred

    config_loader = DependencyContainer.config_loader()
    try:
        raw = config_loader.load_raw(config_path, overrides=overrides)
        config = build_app_config(raw)
        infra = InfraConfig.model_validate(raw)
        return DependencyContainer(config, infra=infra)
    except (FileNotFoundError, ValueError, SherpaBindError) as e:
        click.echo(f'Error: {e}', err=True)
        sys.exit(1)


@click.group()
@click.version_option(version=__version__)
def cli():
    """sherpa-bind -- offline/streaming speech recognition, VAD and speaker identification."""


@cli.command()
@click.argument('audio', type=click.Path(exists=True, dir_okay=False))
@_config_option
@click.option('--no-speaker-id', is_flag=True, help='Skip speaker identification.')
@click.option(
    '-o',
    '--output',
    default=None,
    type=click.Path(dir_okay=False),
    help='Transcript path (default: <audio>.txt next to the input).',
)
@click.option('--threads', type=int, default=None, help='Native threads per model.')
def transcribe(audio, config_path, no_speaker_id, output, threads):
    """Segment AUDIO with the VAD, transcribe every segment and label speakers."""
    from sherpa_bind.l4_frameworks_and_drivers.batch_runner import (  # noqa: PLC0415 -- deferred: native stack not loaded on --help
        run_transcription,
    )
    from sherpa_bind.l4_frameworks_and_drivers.logging_setup import (  # noqa: PLC0415 -- deferred
        setup_file_logging,
    )

    overrides = None
    if threads is not None:
        overrides = {
            'offline': {'num_threads': threads},
            'vad': {'num_threads': threads},
            'speaker': {'extractor': {'num_threads': threads}},
        }
    audio_path = Path(audio)
    out_path = Path(output) if output else audio_path.with_suffix('.txt')
    setup_file_logging(out_path.parent)

    with _open_container(config_path, overrides) as container:
        run_transcription(audio_path, container, out_path, speaker_id=not no_speaker_id)


@cli.command()
@click.argument('audio', type=click.Path(exists=True, dir_okay=False))
@_config_option
@click.option('--chunk-seconds', type=float, default=None, help='Seconds of audio per feed call.')
def stream(audio, config_path, chunk_seconds):
    """Run the streaming recognizer over AUDIO, printing each finished utterance."""
    from sherpa_bind.l3_interface_adapters.gateways.paths import LOG_DIR  # noqa: PLC0415 -- deferred
    from sherpa_bind.l4_frameworks_and_drivers.batch_runner import run_stream  # noqa: PLC0415 -- deferred
    from sherpa_bind.l4_frameworks_and_drivers.logging_setup import (  # noqa: PLC0415 -- deferred
        setup_file_logging,
    )

    setup_file_logging(LOG_DIR)
    with _open_container(config_path) as container:
        chunk = chunk_seconds if chunk_seconds is not None else container.config.pipeline.stream_chunk_seconds
        run_stream(Path(audio), container, chunk)


@cli.command()
@click.argument('audio', nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@_config_option
@click.option('--threshold', type=float, default=None, help='Similarity needed to match a known speaker.')
@click.option('-o', '--output', default=None, type=click.Path(dir_okay=False), help='Also save the grouping here.')
def speakers(audio, config_path, threshold, output):
    """Group whole AUDIO files by speaker."""
    from sherpa_bind.l3_interface_adapters.gateways.paths import LOG_DIR  # noqa: PLC0415 -- deferred
    from sherpa_bind.l4_frameworks_and_drivers.batch_runner import run_speakers  # noqa: PLC0415 -- deferred
    from sherpa_bind.l4_frameworks_and_drivers.logging_setup import (  # noqa: PLC0415 -- deferred
        setup_file_logging,
    )

    setup_file_logging(Path(output).parent if output else LOG_DIR)
    with _open_container(config_path) as container:
        run_speakers(
            [Path(p) for p in audio],
            container,
            threshold=threshold,
            out_path=Path(output) if output else None,
        )
