"""Application config defaults and model path resolution — lives in L4, not domain."""

from __future__ import annotations

import copy
from pathlib import Path

from sherpa_bind.l1_entities.config import AppConfig
from sherpa_bind.l3_interface_adapters.gateways.yaml_config_loader import deep_merge

APP_CONFIG_DEFAULTS: dict = {
    'models': {
        'directory': './models',
    },
    'offline': {
        'model': {
            'kind': 'sense_voice',
            'model': 'model.int8.onnx',
            'language': 'auto',
            'use_text_normalization': True,
        },
        'tokens': 'tokens.txt',
        'num_threads': 1,
    },
    'vad': {
        'model': 'vad.onnx',
        'threshold': 0.5,
        'min_silence_duration': 0.4,
        'min_speech_duration': 0.4,
        'max_speech_duration': 20.0,
        'window_size': 512,
        'buffer_size_seconds': 600.0,
        'num_threads': 1,
    },
    'speaker': {
        'enabled': True,
        'extractor': {'model': 'speaker.onnx', 'num_threads': 1},
        'threshold': 0.4,
        'label_prefix': 'speaker',
    },
    'pipeline': {
        'trailing_silence': 3.0,
        'stream_chunk_seconds': 0.1,
    },
}

_PATH_KEYS = ('model', 'encoder', 'decoder', 'joiner', 'tokens', 'bpe_vocab', 'hotwords_file')


def _resolve_section(section: dict, base: Path) -> None:
    for key in _PATH_KEYS:
        value = section.get(key)
        if isinstance(value, str) and value:
            section[key] = str(base / Path(value).expanduser())


def resolve_model_paths(data: dict) -> dict:
    """Make relative model, token and hotword paths relative to ``models.directory`` (mutates *data*)."""
    base = Path(data['models']['directory']).expanduser()
    offline = data.get('offline') or {}
    online = data.get('online') or {}
    sections = [
        offline,
        offline.get('model'),
        online,
        online.get('model'),
        data.get('vad'),
        (data.get('speaker') or {}).get('extractor'),
    ]
    for section in sections:
        if isinstance(section, dict):
            _resolve_section(section, base)
    return data


def build_app_config(raw: dict) -> AppConfig:
    """Merge *raw* user overrides on top of defaults, resolve model paths, then validate."""
    merged = copy.deepcopy(APP_CONFIG_DEFAULTS)
    deep_merge(merged, copy.deepcopy(raw))
    # A user-chosen model variant replaces the default one instead of merging field by field.
    user_model = (raw.get('offline') or {}).get('model')
    if isinstance(user_model, dict) and 'kind' in user_model:
        merged['offline']['model'] = copy.deepcopy(user_model)
    resolve_model_paths(merged)
    return AppConfig.model_validate(merged)
