"""Domain error types."""

from __future__ import annotations


class SherpaBindError(Exception):
    """Base class for every error raised by sherpa-bind."""


class ConstructionError(SherpaBindError):
    """A native-backed object could not be built. No partial object survives."""


class NulByteError(ConstructionError, ValueError):
    """Text bound for the native side contains an embedded NUL byte."""


class ModelFileNotFoundError(ConstructionError, FileNotFoundError):
    """A model, token or VAD file referenced by the options does not exist."""


class NativeConstructionError(ConstructionError):
    """A native factory call returned a NULL handle."""


class NativeLibraryError(SherpaBindError):
    """The native shared library could not be located or lacks a symbol."""


class NativeCallError(SherpaBindError):
    """A native call reported failure."""

    def __init__(self, operation: str, detail: str = '') -> None:
        self.operation = operation
        self.detail = detail
        message = f'{operation} failed'
        if detail:
            message = f'{message}: {detail}'
        super().__init__(message)


class EmbeddingExtractionError(NativeCallError):
    """Speaker embedding could not be computed for a segment."""


class MalformedResultError(SherpaBindError):
    """Structured native output (JSON) did not have the expected shape."""


class ResourceClosedError(SherpaBindError):
    """An operation was attempted on a wrapper whose native handle is gone."""


class ConcurrentUseError(SherpaBindError):
    """Two threads entered the same native handle at the same time."""


class BufferStateError(SherpaBindError):
    """A C-string buffer was used or released in the wrong ownership state."""


class DuplicateSpeakerError(SherpaBindError, ValueError):
    """A speaker label is already registered in the gallery."""
