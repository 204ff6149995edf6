"""
Read-Only File Mapping
=======================

:class:`MappedBytes` owns a read-only :mod:`mmap` view over one file.
Everything derived from it (PE headers, resource nodes, icon images)
refers to the mapping through explicit :class:`Span` ranges, and every
read hands back an owned ``bytes`` copy.  Nothing that aliases the
mapping ever leaves this module, so closing the map can never leave a
dangling view behind.
"""

from __future__ import annotations

import mmap
import os
import struct
from dataclasses import dataclass
from typing import Any, Union

from exelook.core.errors import ExelookIOError, FormatError


@dataclass(frozen=True, slots=True)
class Span:
    """A byte range inside a :class:`MappedBytes` buffer."""

    offset: int
    length: int

    @property
    def end(self) -> int:
        return self.offset + self.length


class MappedBytes:
    """Immutable byte view over a whole file.

    Usage::

        with MappedBytes.open("setup.exe") as data:
            header = data.read(0, 64)
    """

    def __init__(self, buffer: Union[mmap.mmap, bytes], path: str = "") -> None:
        self._buffer: Union[mmap.mmap, bytes, None] = buffer
        self._path = path

    # ------------------------------------------------------------------ #
    #  Construction
    # ------------------------------------------------------------------ #

    @classmethod
    def open(cls, path: str) -> MappedBytes:
        """Map *path* read-only.

        Raises:
            ExelookIOError: The file cannot be opened, stat'ed or mapped.
        """
        try:
            with open(path, "rb") as fh:
                size = os.fstat(fh.fileno()).st_size
                if size == 0:
                    # mmap refuses empty files; an empty buffer fails PE parsing instead
                    return cls(b"", path)
                buffer = mmap.mmap(fh.fileno(), 0, access=mmap.ACCESS_READ)
        except (OSError, ValueError) as exc:
            raise ExelookIOError(f"cannot map {path!r}: {exc}") from exc
        return cls(buffer, path)

    @classmethod
    def from_bytes(cls, data: bytes) -> MappedBytes:
        """Wrap an in-memory buffer (used for already-loaded images)."""
        return cls(bytes(data))

    # ------------------------------------------------------------------ #
    #  Lifecycle
    # ------------------------------------------------------------------ #

    def close(self) -> None:
        """Release the mapping.  Safe to call more than once."""
        buffer, self._buffer = self._buffer, None
        if isinstance(buffer, mmap.mmap):
            buffer.close()

    @property
    def closed(self) -> bool:
        return self._buffer is None

    def __enter__(self) -> MappedBytes:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    #  Reads
    # ------------------------------------------------------------------ #

    @property
    def path(self) -> str:
        return self._path

    def __len__(self) -> int:
        return len(self._live())

    def read(self, offset: int, length: int) -> bytes:
        """Copy ``length`` bytes starting at ``offset``.

        Raises:
            FormatError: The range is not fully inside the buffer.
        """
        buffer = self._live()
        if offset < 0 or length < 0 or offset + length > len(buffer):
            raise FormatError(
                f"read of {length} bytes at 0x{offset:x} exceeds "
                f"buffer of {len(buffer)} bytes"
            )
        return bytes(buffer[offset:offset + length])

    def read_span(self, span: Span) -> bytes:
        return self.read(span.offset, span.length)

    def unpack_from(self, fmt: str, offset: int) -> tuple[Any, ...]:
        """:func:`struct.unpack_from` with bounds errors mapped to FormatError."""
        buffer = self._live()
        if offset < 0:
            raise FormatError(f"negative offset {offset} for {fmt!r}")
        try:
            return struct.unpack_from(fmt, buffer, offset)
        except struct.error as exc:
            raise FormatError(
                f"truncated structure {fmt!r} at 0x{offset:x}: {exc}"
            ) from exc

    def _live(self) -> Union[mmap.mmap, bytes]:
        if self._buffer is None:
            raise ValueError("read from a closed MappedBytes")
        return self._buffer
