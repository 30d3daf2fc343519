"""String bridge — UTF-8 text to owned C strings and back, with explicit ownership.

Every buffer handed to the engine is a ``NativeString`` whose state is one of
OWNED (we free it), HANDED_OVER (a native resource frees it after its own
destructor ran) or RELEASED. Reading or releasing in the wrong state raises
``BufferStateError`` instead of touching freed memory.
"""

from __future__ import annotations

import contextlib
import ctypes
import enum
import logging
from collections.abc import Callable, Iterator
from ctypes import c_char_p
from typing import Any, Protocol

from sherpa_bind.l1_entities.errors import BufferStateError, NulByteError

log = logging.getLogger('sbind.native')


class Ownership(enum.Enum):
    OWNED = 'owned'
    HANDED_OVER = 'handed_over'
    RELEASED = 'released'


class NativeString:
    """A null-terminated UTF-8 buffer built from a Python ``str``."""

    __slots__ = ('_buffer', '_state')

    def __init__(self, text: str) -> None:
        if '\x00' in text:
            raise NulByteError(f'Text contains an embedded NUL byte: {text!r}')
        # surrogateescape round-trips undecodable filesystem bytes from os.fsdecode
        self._buffer: ctypes.Array[ctypes.c_char] | None = ctypes.create_string_buffer(
            text.encode('utf-8', errors='surrogateescape')
        )
        self._state = Ownership.OWNED

    @property
    def state(self) -> Ownership:
        return self._state

    @property
    def address(self) -> int:
        """Address of the first byte, for ``char*`` struct fields."""
        if self._buffer is None:
            raise BufferStateError('C string read after release')
        return ctypes.addressof(self._buffer)

    @property
    def pointer(self) -> c_char_p:
        """A ``char*`` call argument. Holds no reference: the buffer's lifetime is ours to manage."""
        return c_char_p(self.address)

    def hand_over(self) -> None:
        if self._state is not Ownership.OWNED:
            raise BufferStateError(f'Cannot hand over a C string in state {self._state.value}')
        self._state = Ownership.HANDED_OVER

    def release(self) -> None:
        if self._state is Ownership.RELEASED:
            raise BufferStateError('C string released twice')
        self._buffer = None
        self._state = Ownership.RELEASED


class StringOwner(Protocol):
    def retain(self, string: NativeString) -> None: ...


def to_native(text: str) -> NativeString:
    return NativeString(text)


def from_native(value: bytes | c_char_p | int | None) -> str:
    """Decode a native C string. Invalid UTF-8 is substituted, NULL becomes ``''``."""
    if value is None:
        return ''
    if isinstance(value, c_char_p):
        raw = value.value
    elif isinstance(value, int):
        raw = ctypes.string_at(value) if value else None
    else:
        raw = bytes(value)
    if raw is None:
        return ''
    return raw.decode('utf-8', errors='replace')


def optional_from_native(value: bytes | c_char_p | int | None) -> str | None:
    """Like ``from_native`` but maps NULL and empty strings to ``None``."""
    text = from_native(value)
    return text or None


def string_array(pointer: Any, count: int | None = None) -> list[str]:
    """Decode a ``const char *const *``. Without *count*, stop at the first NULL entry."""
    if not pointer:
        return []
    items: list[str] = []
    index = 0
    while count is None or index < count:
        entry = pointer[index]
        if entry is None and count is None:
            break
        items.append(from_native(entry))
        index += 1
    return items


@contextlib.contextmanager
def engine_allocated_string(address: int | None, free: Callable[[int], None]) -> Iterator[str | None]:
    """Decode a string the engine allocated, then free it exactly once on every exit path."""
    try:
        yield from_native(address) if address else None
    finally:
        if address:
            free(address)


class CStringArena:
    """Owns the C strings created while one native config struct is built.

    Used as a context manager around a single factory call; strings still OWNED
    at exit are released, strings handed over belong to the native resource.
    """

    def __init__(self) -> None:
        self._strings: list[NativeString] = []

    def __enter__(self) -> CStringArena:
        return self

    def __exit__(self, *exc: object) -> None:
        self.release()

    def __len__(self) -> int:
        return len(self._strings)

    @property
    def strings(self) -> tuple[NativeString, ...]:
        return tuple(self._strings)

    def c_string(self, text: str) -> int:
        """Create an owned C string and return its address for a ``char*`` struct field."""
        string = to_native(text)
        self._strings.append(string)
        return string.address

    def optional(self, text: str | None) -> int | None:
        return None if text is None else self.c_string(text)

    def hand_over_to(self, owner: StringOwner) -> None:
        """Move every still-owned string to *owner*, which releases them after its native handles."""
        for string in self._strings:
            if string.state is Ownership.OWNED:
                string.hand_over()
                owner.retain(string)

    def release(self) -> None:
        released = 0
        for string in self._strings:
            if string.state is Ownership.OWNED:
                string.release()
                released += 1
        if released:
            log.debug('Released %d C strings', released)
        self._strings.clear()
