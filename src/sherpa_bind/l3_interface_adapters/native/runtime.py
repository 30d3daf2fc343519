"""Native runtime — the loaded library plus the build facts every wrapper needs."""

from __future__ import annotations

import platform
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from sherpa_bind.l1_entities.execution_provider import default_provider
from sherpa_bind.l3_interface_adapters.native.c_api import load_library


@dataclass(frozen=True)
class NativeRuntime:
    """Passed explicitly to every wrapper; there is no module-level library singleton.

    ``copies_config_strings`` describes the engine build: sherpa-onnx copies
    every config string during the factory call, so strings are released as
    soon as it returns. Set it to False for a build that keeps the pointers,
    and the strings then live until the owning handle is destroyed.
    """

    lib: Any
    default_provider: str = 'cpu'
    quiet: bool = True
    copies_config_strings: bool = True


def open_runtime(
    library_path: str | None = None,
    features: Iterable[str] = (),
    *,
    system: str | None = None,
    quiet: bool = True,
    copies_config_strings: bool = True,
) -> NativeRuntime:
    lib = load_library(library_path)
    return NativeRuntime(
        lib=lib,
        default_provider=default_provider(system or platform.system(), features),
        quiet=quiet,
        copies_config_strings=copies_config_strings,
    )
