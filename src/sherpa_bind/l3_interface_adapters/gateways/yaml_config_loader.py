"""Gateway: YAML configuration loader — implements ConfigLoader port.

Lookup order for the config file mirrors the native library search: an
explicit path, then ``$SHERPA_BIND_CONFIG``, then the first existing file in
the platform config directory. No file at all means "use the defaults".
"""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from pathlib import Path

import yaml

from sherpa_bind.l1_entities.config import AppConfig
from sherpa_bind.l3_interface_adapters.gateways.paths import DEFAULT_CONFIG_PATHS

log = logging.getLogger('sbind.pipeline')

CONFIG_ENV_VAR = 'SHERPA_BIND_CONFIG'


class YamlConfigLoader:
    """Reads model/VAD/speaker settings from YAML and merges CLI overrides.

    ``build`` turns the merged raw dict into a validated ``AppConfig``; the
    framework layer injects it so defaults and path resolution stay out of
    this gateway. The ``native`` section passes through ``load_raw`` untouched
    for ``InfraConfig``.
    """

    def __init__(self, build=AppConfig.model_validate, search_paths: Sequence[Path] | None = None) -> None:
        self._build = build
        self._search_paths = list(DEFAULT_CONFIG_PATHS if search_paths is None else search_paths)

    def load(
        self,
        config_path: str | None = None,
        overrides: dict | None = None,
    ) -> AppConfig:
        return self._build(self.load_raw(config_path, overrides))

    def load_raw(
        self,
        config_path: str | None = None,
        overrides: dict | None = None,
    ) -> dict:
        """Return the merged YAML data as a raw dict (before Pydantic validation)."""
        path = self.locate(config_path)
        data = read_yaml_mapping(path) if path is not None else {}
        if overrides:
            deep_merge(data, overrides)
        return data

    def locate(self, config_path: str | None = None) -> Path | None:
        """Pick the config file to read, or ``None`` when only defaults apply.

        Raises:
            FileNotFoundError: an explicit or ``$SHERPA_BIND_CONFIG`` path is missing.
        """
        explicit = config_path or os.environ.get(CONFIG_ENV_VAR)
        if explicit:
            path = Path(explicit).expanduser()
            if not path.exists():
                raise FileNotFoundError(f'Config file not found: {path}')
            return path
        return next((p for p in self._search_paths if p.exists()), None)


def read_yaml_mapping(path: Path) -> dict:
    """Parse *path*; an empty file is an empty mapping.

    Raises:
        ValueError: the YAML is malformed or its top level is not a mapping.
    """
    try:
        data = yaml.safe_load(path.read_text(encoding='utf-8'))
    except yaml.YAMLError as exc:
        raise ValueError(f'Invalid YAML in {path}: {exc}') from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f'Config root must be a mapping, got {type(data).__name__}: {path}')
    log.debug('Loaded config from %s', path)
    return data


def deep_merge(base: dict, override: dict) -> dict:
    """Merge *override* into *base* in place; nested mappings merge, anything else replaces."""
    for key, value in override.items():
        if isinstance(base.get(key), dict) and isinstance(value, dict):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base
