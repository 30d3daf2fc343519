"""C-level stdout/stderr suppression around chatty native calls.

onnxruntime and the engine print model metadata with C ``fprintf``, which
bypasses ``sys.stdout``; only an fd-level redirect silences it. Fds 1 and 2
belong to the whole process, so overlapping quiet blocks (wrappers built on
several threads at once) share one redirect: the first entry saves the real
descriptors, the last exit puts them back.
"""

from __future__ import annotations

import contextlib
import os
import sys
import threading
from collections.abc import Iterator

_STD_FDS = (1, 2)


class _SharedRedirect:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._depth = 0
        self._saved: list[int] = []

    @property
    def depth(self) -> int:
        return self._depth

    def enter(self) -> None:
        with self._lock:
            if self._depth == 0:
                self._silence()
            self._depth += 1

    def exit(self) -> None:
        with self._lock:
            self._depth -= 1
            if self._depth == 0:
                self._restore()

    def _silence(self) -> None:
        for stream in (sys.stdout, sys.stderr):
            if stream is not None:
                stream.flush()
        devnull = os.open(os.devnull, os.O_WRONLY)
        try:
            for fd in _STD_FDS:
                self._saved.append(os.dup(fd))
            for fd in _STD_FDS:
                os.dup2(devnull, fd)
        except OSError:
            self._restore()
            raise
        finally:
            os.close(devnull)

    def _restore(self) -> None:
        for fd, saved in zip(_STD_FDS, self._saved, strict=False):
            os.dup2(saved, fd)
        while self._saved:
            os.close(self._saved.pop())


_redirect = _SharedRedirect()


@contextlib.contextmanager
def quiet_native_output(enabled: bool = True) -> Iterator[None]:
    """Point fds 1 and 2 at /dev/null while the block runs."""
    if not enabled:
        yield
        return
    _redirect.enter()
    try:
        yield
    finally:
        _redirect.exit()
