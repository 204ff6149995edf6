"""
Icon Group Directory Parser
============================

An ``RT_GROUP_ICON`` resource lists the size and colour-depth variants
that together make up one logical icon.  Its layout:

    GRPICONDIR (6 bytes)
        WORD idReserved, idType, idCount
    GRPICONDIRENTRY (14 bytes) x idCount
        BYTE  bWidth, bHeight, bColorCount, bReserved
        WORD  wPlanes, wBitCount
        DWORD dwBytesInRes
        WORD  nId              -- RT_ICON resource id of the image

References:
    - Microsoft. (1995). Icons in Win32. MSDN Library.
    - Chen, R. (2012). The format of icon resources. The Old New Thing.
"""

from __future__ import annotations

import struct
from typing import Iterator, Sequence

from exelook.core.errors import FormatError
from exelook.core.models import IconDirectoryEntry
from exelook.parsers.resources import ResourceTree

RT_ICON: int = 3
RT_GROUP_ICON: int = 14

_HEADER_SIZE: int = 6
_ENTRY_FMT: str = "<BBBBHHIH"
_ENTRY_SIZE: int = struct.calcsize(_ENTRY_FMT)  # 14


class GroupIconDirectory(Sequence[IconDirectoryEntry]):
    """Ordered, validated view of a GRPICONDIR buffer."""

    def __init__(self, raw: bytes) -> None:
        if len(raw) < _HEADER_SIZE:
            raise FormatError(
                f"group icon directory is {len(raw)} bytes, "
                f"shorter than its {_HEADER_SIZE}-byte header"
            )
        count = struct.unpack_from("<H", raw, 4)[0]
        expected = _HEADER_SIZE + _ENTRY_SIZE * count
        if len(raw) != expected:
            raise FormatError(
                f"group icon directory declares {count} entries "
                f"({expected} bytes) but holds {len(raw)} bytes"
            )
        self._raw = raw
        self._count = count

    @classmethod
    def from_bytes(cls, raw: bytes) -> GroupIconDirectory:
        return cls(raw)

    def __len__(self) -> int:
        return self._count

    def __getitem__(self, index):  # type: ignore[override]
        if isinstance(index, slice):
            return [self[i] for i in range(*index.indices(self._count))]
        if index < 0:
            index += self._count
        if not 0 <= index < self._count:
            raise IndexError("group icon entry index out of range")
        return self._entry_at(index)

    def __iter__(self) -> Iterator[IconDirectoryEntry]:
        for index in range(self._count):
            yield self._entry_at(index)

    def __repr__(self) -> str:
        return f"GroupIconDirectory(entries={list(self)!r})"

    @property
    def icon_ids(self) -> list[int]:
        return [entry.icon_id for entry in self]

    def _entry_at(self, index: int) -> IconDirectoryEntry:
        (
            width, height, color_count, _reserved,
            num_planes, bit_count, byte_size, icon_id,
        ) = struct.unpack_from(_ENTRY_FMT, self._raw, _HEADER_SIZE + index * _ENTRY_SIZE)
        return IconDirectoryEntry(
            width=width,
            height=height,
            color_count=color_count,
            num_planes=num_planes,
            bit_count=bit_count,
            byte_size=byte_size,
            icon_id=icon_id,
        )


def group_icon(tree: ResourceTree) -> GroupIconDirectory:
    """Load the first icon group of the image.

    Walks type ``RT_GROUP_ICON`` → first name → first language → data.

    Raises:
        NoIconFoundError: A level of the walk is missing.
        FormatError:      The group bytes are out of bounds or malformed.
    """
    names = tree.find_directory(RT_GROUP_ICON)
    languages = names.first_entry().directory()
    raw = languages.first_entry().data().read()
    return GroupIconDirectory.from_bytes(raw)
