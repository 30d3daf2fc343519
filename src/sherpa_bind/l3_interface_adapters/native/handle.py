"""Resource handle pattern shared by every native-backed wrapper."""

from __future__ import annotations

import contextlib
import logging
import threading
import weakref
from collections.abc import Iterator
from typing import Any

from sherpa_bind.l1_entities.errors import (
    ConcurrentUseError,
    NativeConstructionError,
    ResourceClosedError,
)
from sherpa_bind.l3_interface_adapters.native.quiet import quiet_native_output
from sherpa_bind.l3_interface_adapters.native.runtime import NativeRuntime
from sherpa_bind.l3_interface_adapters.native.string_bridge import CStringArena, NativeString

log = logging.getLogger('sbind.native')


def _destroy_all(lib: Any, handles: list[tuple[str, int]], retained: list[NativeString]) -> None:
    # Must not reference the wrapper itself, or weakref.finalize would keep it alive.
    while handles:
        destructor, handle = handles.pop()
        log.debug('%s(%#x)', destructor, handle)
        getattr(lib, destructor)(handle)
    while retained:
        retained.pop().release()


class NativeResource:
    """Owns one or more native handles and destroys them exactly once, newest first.

    ``close()``, leaving a ``with`` block and garbage collection all go through
    the same ``weakref.finalize``, which runs at most once. Operations must be
    serialised by the caller; ``_exclusive()`` turns an accidental concurrent
    entry into ``ConcurrentUseError`` rather than undefined native behaviour,
    and ``close()`` refuses the same way while an operation is running.
    """

    def __init__(self, runtime: NativeRuntime) -> None:
        self._runtime = runtime
        self._lib = runtime.lib
        self._handles: list[tuple[str, int]] = []
        self._retained: list[NativeString] = []
        self._busy = threading.Lock()
        self._finalizer = weakref.finalize(self, _destroy_all, self._lib, self._handles, self._retained)

    def __enter__(self):
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return not self._finalizer.alive

    def close(self) -> None:
        """Destroy all native handles. Safe to call more than once.

        Raises:
            ConcurrentUseError: another thread is inside an operation on this resource.
        """
        if not self._busy.acquire(blocking=False):
            raise ConcurrentUseError(f'cannot close {type(self).__name__} while another thread is using it')
        try:
            self._finalizer()
        finally:
            self._busy.release()

    def retain(self, string: NativeString) -> None:
        """Keep a handed-over C string alive until the native handles are gone."""
        self._retained.append(string)

    def _acquire(self, handle: int | None, destructor: str, factory: str) -> int:
        if not handle:
            raise NativeConstructionError(f'{factory} returned NULL')
        self._handles.append((destructor, handle))
        log.debug('%s -> %#x', factory, handle)
        return handle

    def _settle_config_strings(self, arena: CStringArena) -> None:
        """Decide who frees the strings a factory call just consumed."""
        if not self._runtime.copies_config_strings:
            arena.hand_over_to(self)

    @contextlib.contextmanager
    def _constructing(self) -> Iterator[None]:
        """Release whatever was acquired if construction fails partway."""
        try:
            with quiet_native_output(self._runtime.quiet):
                yield
        except BaseException:
            self.close()
            raise

    def _require_live(self) -> None:
        if self.closed:
            raise ResourceClosedError(f'{type(self).__name__} is closed')

    @contextlib.contextmanager
    def _exclusive(self) -> Iterator[None]:
        if not self._busy.acquire(blocking=False):
            raise ConcurrentUseError(f'{type(self).__name__} is already in use by another thread')
        try:
            self._require_live()
            yield
        finally:
            self._busy.release()
