"""
Exelook Data Models
====================

Pydantic models for the values that cross module boundaries: the icon
group directory entries read from a PE file, the decoded icon handed to
display collaborators, and the inspection report rendered by the CLI.

References:
    - Microsoft. (1995). Icons in Win32. MSDN Library.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class IconDirectoryEntry(BaseModel):
    """One GRPICONDIRENTRY describing a single icon variant.

    Attributes:
        width:       Width in pixels (0 means 256).
        height:      Height in pixels (0 means 256).
        color_count: Palette size, 0 for >= 8 bpp.
        num_planes:  Colour planes, normally 1.
        bit_count:   Bits per pixel.
        byte_size:   Size of the RT_ICON image in bytes.
        icon_id:     Resource id of the RT_ICON image.
    """

    model_config = ConfigDict(frozen=True)

    width: int = Field(..., ge=0, le=0xFF)
    height: int = Field(..., ge=0, le=0xFF)
    color_count: int = Field(..., ge=0, le=0xFF)
    num_planes: int = Field(..., ge=0, le=0xFFFF)
    bit_count: int = Field(..., ge=0, le=0xFFFF)
    byte_size: int = Field(..., ge=0, le=0xFFFFFFFF)
    icon_id: int = Field(..., ge=0, le=0xFFFF)


class DecodedIcon(BaseModel):
    """The final, owned result of an icon lookup.

    When ``is_png`` is set, ``pixels`` holds a complete PNG stream and
    the dimensions are ``0``.  Otherwise ``pixels`` holds
    ``width * height`` pixels, 4 bytes each in R, G, B, A order, rows
    top to bottom.
    """

    model_config = ConfigDict(frozen=True)

    pixels: bytes
    is_png: bool = False
    width: int = 0
    height: int = 0

    @property
    def byte_length(self) -> int:
        return len(self.pixels)

    def __repr__(self) -> str:
        return (
            f"DecodedIcon(is_png={self.is_png}, width={self.width}, "
            f"height={self.height}, bytes={len(self.pixels)})"
        )


class IconCandidate(BaseModel):
    """Selection key of the winning icon image.

    Attributes:
        width:     Width from the PNG IHDR or the bitmap header.
        height:    Height as stored (doubled for bitmaps).
        bit_depth: Bits per pixel, 64 for PNG images.
        is_png:    Whether the image is PNG-encoded.
        size:      Encoded size in bytes.
    """

    width: int
    height: int
    bit_depth: int
    is_png: bool
    size: int


class IconReport(BaseModel):
    """Everything ``exelook show`` displays about one file."""

    path: str = ""
    format: str = ""
    machine: str = ""
    sections: list[str] = Field(default_factory=list)
    group: list[IconDirectoryEntry] = Field(default_factory=list)
    selected: Optional[IconCandidate] = None
    icon_width: int = 0
    icon_height: int = 0
    icon_is_png: bool = False
    icon_bytes: int = 0
