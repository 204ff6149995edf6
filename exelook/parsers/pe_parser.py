"""
PE/COFF Header Parser
======================

Manual struct-based parser for the parts of the Portable Executable
(PE) format needed to reach the resource directory: the DOS stub
header, the ``PE\\0\\0`` signature, the COFF file header, the optional
header (PE32 or PE32+), the data directory array and the section table.

The two optional-header layouts differ only in their field widths, so
bitness is a property of the concrete :class:`PEImage` subclass.
Everything past the optional header (sections, RVA translation, the
resource tree) is shared.

References:
    - Microsoft. (2024). PE Format. Microsoft Learn.
      https://learn.microsoft.com/en-us/windows/win32/debug/pe-format
    - Pietrek, M. (1994). Peering Inside the PE: A Tour of the Win32
      Portable Executable File Format. Microsoft Systems Journal.
"""

from __future__ import annotations

import struct
from typing import ClassVar

from exelook.core.errors import FormatError, NoIconFoundError, PEMagicError
from exelook.parsers.mapped import MappedBytes
from exelook.parsers.resources import ResourceTree


# ---------------------------------------------------------------------------
# PE Constants
# ---------------------------------------------------------------------------

MZ_MAGIC: bytes = b"MZ"
PE_MAGIC: bytes = b"PE\x00\x00"

PE32_MAGIC: int = 0x10B      # PE32 (32-bit)
PE32PLUS_MAGIC: int = 0x20B  # PE32+ (64-bit)

IMAGE_FILE_MACHINE_UNKNOWN: int = 0x0
IMAGE_FILE_MACHINE_I386: int = 0x14C
IMAGE_FILE_MACHINE_ARM: int = 0x1C0
IMAGE_FILE_MACHINE_ARMNT: int = 0x1C4
IMAGE_FILE_MACHINE_IA64: int = 0x200
IMAGE_FILE_MACHINE_AMD64: int = 0x8664
IMAGE_FILE_MACHINE_ARM64: int = 0xAA64

_MACHINE_NAMES: dict[int, str] = {
    IMAGE_FILE_MACHINE_UNKNOWN: "Unknown",
    IMAGE_FILE_MACHINE_I386: "x86",
    IMAGE_FILE_MACHINE_ARM: "ARM",
    IMAGE_FILE_MACHINE_ARMNT: "ARM Thumb-2",
    IMAGE_FILE_MACHINE_IA64: "IA-64",
    IMAGE_FILE_MACHINE_AMD64: "x86_64",
    IMAGE_FILE_MACHINE_ARM64: "AArch64",
}

IMAGE_DIRECTORY_ENTRY_RESOURCE: int = 2

_DOS_HEADER_SIZE: int = 64
_COFF_HEADER_FMT: str = "<HHIIIHH"
_SECTION_HEADER_SIZE: int = 40
_MAX_DATA_DIRECTORIES: int = 16


# ---------------------------------------------------------------------------
# Internal parsed structures
# ---------------------------------------------------------------------------

class _COFFHeader:
    """Parsed COFF file header."""
    __slots__ = (
        "machine", "number_of_sections", "time_date_stamp",
        "size_of_optional_header", "characteristics",
    )

    def __init__(self) -> None:
        self.machine: int = 0
        self.number_of_sections: int = 0
        self.time_date_stamp: int = 0
        self.size_of_optional_header: int = 0
        self.characteristics: int = 0


class _PESection:
    """Parsed PE section header."""
    __slots__ = (
        "name", "virtual_size", "virtual_address",
        "size_of_raw_data", "pointer_to_raw_data",
    )

    def __init__(self) -> None:
        self.name: str = ""
        self.virtual_size: int = 0
        self.virtual_address: int = 0
        self.size_of_raw_data: int = 0
        self.pointer_to_raw_data: int = 0


# ---------------------------------------------------------------------------
# PE images
# ---------------------------------------------------------------------------

class PEImage:
    """A parsed PE file of one bitness.

    Subclasses only describe their optional header layout; use
    :meth:`from_bytes` on a concrete subclass, or :func:`open_resources`
    to detect the bitness automatically.
    """

    MAGIC: ClassVar[int]
    FORMAT_NAME: ClassVar[str]
    # Offset of NumberOfRvaAndSizes within the optional header
    _RVA_COUNT_OFFSET: ClassVar[int]
    # Offset of SizeOfHeaders within the optional header
    _SIZE_OF_HEADERS_OFFSET: ClassVar[int] = 60

    def __init__(self, data: MappedBytes) -> None:
        self._data = data
        self._e_lfanew: int = 0
        self._coff = _COFFHeader()
        self._size_of_headers: int = 0
        self._data_directories: list[tuple[int, int]] = []
        self._sections: list[_PESection] = []

    @classmethod
    def from_bytes(cls, data: MappedBytes) -> PEImage:
        """Parse *data* as this class's PE flavour.

        Raises:
            PEMagicError: The optional header magic belongs to another flavour.
            FormatError:  Any other structural problem.
        """
        image = cls(data)
        image._parse_dos_header()
        image._parse_coff_header()
        image._parse_optional_header()
        image._parse_section_table()
        return image

    # ------------------------------------------------------------------ #
    #  Public interface
    # ------------------------------------------------------------------ #

    @property
    def data(self) -> MappedBytes:
        return self._data

    @property
    def machine(self) -> str:
        machine = self._coff.machine
        return _MACHINE_NAMES.get(machine, f"unknown(0x{machine:x})")

    @property
    def section_names(self) -> list[str]:
        return [sec.name for sec in self._sections]

    def data_directory(self, index: int) -> tuple[int, int]:
        """Return the ``(rva, size)`` pair of data directory *index*.

        Directories beyond ``NumberOfRvaAndSizes`` read as ``(0, 0)``.
        """
        if index < len(self._data_directories):
            return self._data_directories[index]
        return (0, 0)

    def resources(self) -> ResourceTree:
        """Return the resource directory tree.

        Raises:
            NoIconFoundError: The image has no resource directory.
            FormatError:      The resource directory is not mapped in the file.
        """
        rva, size = self.data_directory(IMAGE_DIRECTORY_ENTRY_RESOURCE)
        if rva == 0:
            raise NoIconFoundError("image has no resource directory")
        offset = self.rva_to_offset(rva)
        if offset + size > len(self._data):
            raise FormatError(
                f"resource directory (0x{offset:x}+0x{size:x}) "
                f"extends past end of file"
            )
        return ResourceTree(self._data, offset, size, self.rva_to_offset)

    def rva_to_offset(self, rva: int) -> int:
        """Convert a Relative Virtual Address to a file offset.

        Raises:
            FormatError: The RVA is not backed by file data.
        """
        for sec in self._sections:
            sec_start = sec.virtual_address
            sec_end = sec_start + max(sec.virtual_size, sec.size_of_raw_data)
            if sec_start <= rva < sec_end:
                delta = rva - sec_start
                if delta >= sec.size_of_raw_data:
                    break
                offset = sec.pointer_to_raw_data + delta
                if offset < len(self._data):
                    return offset
                break
        else:
            # Addresses within the headers map one-to-one
            if rva < self._size_of_headers and rva < len(self._data):
                return rva
        raise FormatError(f"RVA 0x{rva:x} is not mapped to file data")

    # ------------------------------------------------------------------ #
    #  DOS header and signature
    # ------------------------------------------------------------------ #

    def _parse_dos_header(self) -> None:
        """Check the MZ stub and read ``e_lfanew`` (offset 60)."""
        if len(self._data) < _DOS_HEADER_SIZE:
            raise FormatError("file too small for a DOS header")
        if self._data.read(0, 2) != MZ_MAGIC:
            raise FormatError("missing MZ signature")
        self._e_lfanew = self._data.unpack_from("<I", 60)[0]
        if self._data.read(self._e_lfanew, 4) != PE_MAGIC:
            raise FormatError(f"missing PE signature at 0x{self._e_lfanew:x}")

    # ------------------------------------------------------------------ #
    #  COFF header
    # ------------------------------------------------------------------ #

    def _parse_coff_header(self) -> None:
        """Parse the COFF file header (20 bytes after PE signature)."""
        offset = self._e_lfanew + 4
        (
            self._coff.machine,
            self._coff.number_of_sections,
            self._coff.time_date_stamp,
            _pointer_to_symbol_table,
            _number_of_symbols,
            self._coff.size_of_optional_header,
            self._coff.characteristics,
        ) = self._data.unpack_from(_COFF_HEADER_FMT, offset)

    # ------------------------------------------------------------------ #
    #  Optional header
    # ------------------------------------------------------------------ #

    @property
    def _optional_header_offset(self) -> int:
        return self._e_lfanew + 4 + struct.calcsize(_COFF_HEADER_FMT)

    def _parse_optional_header(self) -> None:
        offset = self._optional_header_offset
        if self._coff.size_of_optional_header < 2:
            raise FormatError("optional header is missing")
        magic = self._data.unpack_from("<H", offset)[0]
        if magic != self.MAGIC:
            raise PEMagicError(
                f"optional header magic 0x{magic:x} is not {self.FORMAT_NAME}"
            )
        if self._coff.size_of_optional_header < self._RVA_COUNT_OFFSET + 4:
            raise FormatError(
                f"optional header too small for {self.FORMAT_NAME}: "
                f"{self._coff.size_of_optional_header} bytes"
            )

        self._size_of_headers = self._data.unpack_from(
            "<I", offset + self._SIZE_OF_HEADERS_OFFSET
        )[0]
        count = self._data.unpack_from("<I", offset + self._RVA_COUNT_OFFSET)[0]
        # Cap at 16 to prevent malformed binaries from causing issues
        count = min(count, _MAX_DATA_DIRECTORIES)

        dd_offset = offset + self._RVA_COUNT_OFFSET + 4
        available = (self._coff.size_of_optional_header
                     - self._RVA_COUNT_OFFSET - 4) // 8
        self._data_directories = [
            self._data.unpack_from("<II", dd_offset + i * 8)
            for i in range(min(count, available))
        ]

    # ------------------------------------------------------------------ #
    #  Section table
    # ------------------------------------------------------------------ #

    def _parse_section_table(self) -> None:
        """Parse the section table immediately following the optional header."""
        offset = self._optional_header_offset + self._coff.size_of_optional_header

        for i in range(self._coff.number_of_sections):
            sec_offset = offset + i * _SECTION_HEADER_SIZE
            raw_name = self._data.read(sec_offset, 8)

            sec = _PESection()
            sec.name = raw_name.split(b"\x00", 1)[0].decode("ascii", errors="replace")
            (
                sec.virtual_size,
                sec.virtual_address,
                sec.size_of_raw_data,
                sec.pointer_to_raw_data,
            ) = self._data.unpack_from("<IIII", sec_offset + 8)
            self._sections.append(sec)


class PE32Image(PEImage):
    """PE32 (32-bit) image: 96-byte fixed optional header."""

    MAGIC = PE32_MAGIC
    FORMAT_NAME = "PE32"
    _RVA_COUNT_OFFSET = 92


class PE32PlusImage(PEImage):
    """PE32+ (64-bit) image: 112-byte fixed optional header."""

    MAGIC = PE32PLUS_MAGIC
    FORMAT_NAME = "PE32+"
    _RVA_COUNT_OFFSET = 108


# ---------------------------------------------------------------------------
# Locator entry point
# ---------------------------------------------------------------------------

def parse_image(data: MappedBytes) -> PEImage:
    """Parse *data* as PE32, falling back to PE32+ on a magic mismatch."""
    try:
        return PE32Image.from_bytes(data)
    except PEMagicError:
        try:
            return PE32PlusImage.from_bytes(data)
        except PEMagicError as exc:
            raise FormatError(str(exc)) from exc


def open_resources(data: MappedBytes) -> ResourceTree:
    """Detect the PE flavour of *data* and return its resource tree."""
    return parse_image(data).resources()
