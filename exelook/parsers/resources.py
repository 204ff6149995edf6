"""
PE Resource Directory Tree
===========================

Lazy, navigable view over the ``.rsrc`` directory tree.  The tree has
three conventional levels (type, name, language) built from the same
two structures:

    IMAGE_RESOURCE_DIRECTORY (16 bytes)
        DWORD Characteristics, TimeDateStamp
        WORD  MajorVersion, MinorVersion
        WORD  NumberOfNamedEntries, NumberOfIdEntries
    IMAGE_RESOURCE_DIRECTORY_ENTRY (8 bytes)
        DWORD NameOrId      (high bit: offset of a UTF-16 name string)
        DWORD OffsetToData  (high bit: offset of a subdirectory)

Leaves are IMAGE_RESOURCE_DATA_ENTRY records whose ``OffsetToData`` is
an RVA.  All other offsets are relative to the start of the resource
directory.

Every navigation step either returns a node or raises; a missing node
is :class:`NoIconFoundError`, a structure outside the declared bounds is
:class:`FormatError`.
"""

from __future__ import annotations

from typing import Callable, Iterator, Optional, Union

from exelook.core.errors import FormatError, NoIconFoundError
from exelook.parsers.mapped import MappedBytes, Span

_HIGH_BIT: int = 0x80000000
_DIRECTORY_SIZE: int = 16
_ENTRY_SIZE: int = 8
_DATA_ENTRY_SIZE: int = 16

ResourceName = Union[int, str]


class ResourceTree:
    """Resource directory of one PE image.

    Args:
        data:          Mapping of the whole file.
        base:          File offset of the resource directory.
        size:          Declared size of the resource directory.
        rva_to_offset: Translator for the RVAs stored in data entries.
    """

    def __init__(
        self,
        data: MappedBytes,
        base: int,
        size: int,
        rva_to_offset: Callable[[int], int],
    ) -> None:
        self._data = data
        self._base = base
        self._size = size
        self._rva_to_offset = rva_to_offset

    @property
    def data(self) -> MappedBytes:
        return self._data

    def root(self) -> ResourceDirectory:
        return ResourceDirectory(self, 0)

    def find_directory(self, type_id: int) -> ResourceDirectory:
        """Descend into the root entry whose numeric id is *type_id*."""
        return self.root().find_directory(type_id)

    # ------------------------------------------------------------------ #
    #  Bounds-checked access (offsets relative to the directory base)
    # ------------------------------------------------------------------ #

    def _unpack(self, fmt: str, rel: int, size: int) -> tuple[int, ...]:
        if rel < 0 or rel + size > self._size:
            raise FormatError(
                f"resource structure at +0x{rel:x} exceeds directory "
                f"size 0x{self._size:x}"
            )
        return self._data.unpack_from(fmt, self._base + rel)

    def _read(self, rel: int, length: int) -> bytes:
        if rel < 0 or rel + length > self._size:
            raise FormatError(
                f"resource string at +0x{rel:x} exceeds directory "
                f"size 0x{self._size:x}"
            )
        return self._data.read(self._base + rel, length)


class ResourceDirectory:
    """One IMAGE_RESOURCE_DIRECTORY node."""

    def __init__(self, tree: ResourceTree, rel: int) -> None:
        self._tree = tree
        self._rel = rel
        (
            _characteristics, _timestamp, _major, _minor,
            self._named_count, self._id_count,
        ) = tree._unpack("<IIHHHH", rel, _DIRECTORY_SIZE)

    def __len__(self) -> int:
        return self._named_count + self._id_count

    def entries(self) -> Iterator[ResourceDirectoryEntry]:
        """Yield named entries first, then numbered ones, in stored order."""
        first = self._rel + _DIRECTORY_SIZE
        for i in range(len(self)):
            yield ResourceDirectoryEntry(self._tree, first + i * _ENTRY_SIZE)

    def first_entry(self) -> ResourceDirectoryEntry:
        for entry in self.entries():
            return entry
        raise NoIconFoundError(f"resource directory at +0x{self._rel:x} is empty")

    def find_directory(self, resource_id: int) -> ResourceDirectory:
        """Linear scan for a numbered entry, then descend into it."""
        for entry in self.entries():
            if entry.name == resource_id:
                return entry.directory()
        raise NoIconFoundError(f"no resource entry with id {resource_id}")


class ResourceDirectoryEntry:
    """One IMAGE_RESOURCE_DIRECTORY_ENTRY pointing at a subdirectory or a leaf."""

    def __init__(self, tree: ResourceTree, rel: int) -> None:
        self._tree = tree
        self._name_field, self._offset_field = tree._unpack("<II", rel, _ENTRY_SIZE)
        self._name: Optional[ResourceName] = None

    @property
    def is_named(self) -> bool:
        return bool(self._name_field & _HIGH_BIT)

    @property
    def is_directory(self) -> bool:
        return bool(self._offset_field & _HIGH_BIT)

    @property
    def name(self) -> ResourceName:
        """Numeric id, or the decoded UTF-16 name for named entries."""
        if self._name is None:
            if self.is_named:
                rel = self._name_field & ~_HIGH_BIT
                (length,) = self._tree._unpack("<H", rel, 2)
                raw = self._tree._read(rel + 2, length * 2)
                self._name = raw.decode("utf-16-le", errors="replace")
            else:
                self._name = self._name_field
        return self._name

    def directory(self) -> ResourceDirectory:
        if not self.is_directory:
            raise NoIconFoundError(f"resource entry {self.name!r} is not a directory")
        return ResourceDirectory(self._tree, self._offset_field & ~_HIGH_BIT)

    def data(self) -> ResourceDataEntry:
        if self.is_directory:
            raise NoIconFoundError(f"resource entry {self.name!r} is not a data leaf")
        return ResourceDataEntry(self._tree, self._offset_field)


class ResourceDataEntry:
    """IMAGE_RESOURCE_DATA_ENTRY: RVA, size and code page of one blob."""

    def __init__(self, tree: ResourceTree, rel: int) -> None:
        self._tree = tree
        self.rva, self.size, self.code_page, _reserved = tree._unpack(
            "<IIII", rel, _DATA_ENTRY_SIZE
        )

    @property
    def span(self) -> Span:
        return Span(self._tree._rva_to_offset(self.rva), self.size)

    def read(self) -> bytes:
        """Copy the blob out of the mapping."""
        return self._tree.data.read_span(self.span)
