"""L1 entity: execution provider selection."""

from __future__ import annotations

import enum
from collections.abc import Iterable


class ExecutionProvider(enum.Enum):
    CPU = 'cpu'
    CUDA = 'cuda'
    COREML = 'coreml'
    DIRECTML = 'directml'


def default_provider(system: str, features: Iterable[str] = ()) -> str:
    """Best provider for *system* (``platform.system()`` value) given the native build *features*.

    CUDA wins when the library was built with it, then CoreML on macOS, then
    DirectML, else CPU.
    """
    enabled = {f.lower() for f in features}
    if ExecutionProvider.CUDA.value in enabled:
        return ExecutionProvider.CUDA.value
    if system.lower() == 'darwin':
        return ExecutionProvider.COREML.value
    if ExecutionProvider.DIRECTML.value in enabled:
        return ExecutionProvider.DIRECTML.value
    return ExecutionProvider.CPU.value
