"""
Icon Image Signature Identification
====================================

Icon images stored in ``RT_ICON`` resources come in exactly two
encodings: a PNG stream (Windows Vista and later, usually for the
256x256 variant) or a legacy device-independent bitmap that starts with
a ``BITMAPINFOHEADER``.  A PNG is recognised by its fixed 8-byte
signature; anything else is treated as a DIB.

References:
    - W3C. (2003). Portable Network Graphics (PNG) Specification,
      Section 5.2 PNG signature, 11.2.2 IHDR Image header.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from exelook.core.errors import MalformedPNGError

PNG_SIGNATURE: bytes = b"\x89PNG\r\n\x1a\n"

# Signature (8) + chunk length (4) + chunk type (4) + width (4) + height (4)
_IHDR_MIN_LENGTH: int = 24
_IHDR_TYPE: bytes = b"IHDR"


def is_png(data: bytes) -> bool:
    """Return ``True`` if *data* begins with the PNG signature."""
    return data[:len(PNG_SIGNATURE)] == PNG_SIGNATURE


@dataclass(frozen=True, slots=True)
class PngHeader:
    """Dimensions read from the leading ``IHDR`` chunk of a PNG stream."""

    width: int
    height: int

    @classmethod
    def from_bytes(cls, data: bytes) -> PngHeader:
        """Read width and height from a PNG-signed buffer.

        Raises:
            MalformedPNGError: The buffer is too short or the first chunk
                is not ``IHDR``.
        """
        if len(data) < _IHDR_MIN_LENGTH or data[12:16] != _IHDR_TYPE:
            raise MalformedPNGError("PNG icon lacks a complete IHDR header")
        # Big-endian u32 fields reinterpreted as signed, matching LONG widths
        width, height = struct.unpack_from(">ii", data, 16)
        return cls(width=width, height=height)
