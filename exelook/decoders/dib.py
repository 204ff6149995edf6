"""
Device-Independent Bitmap Icon Decoder
=======================================

Decodes the legacy bitmap encoding used by ``RT_ICON`` resources into a
tightly packed, top-down RGBA buffer.

An icon DIB is a ``BITMAPINFOHEADER`` whose ``biHeight`` is twice the
image height, followed by an optional colour table, the XOR (colour)
image and the AND (transparency) mask::

    +--------------------+  0
    | BITMAPINFOHEADER   |
    +--------------------+  biSize
    | RGBQUAD[n]         |  B, G, R, reserved
    +--------------------+
    | XOR image          |  bottom-up rows, each padded to 4 bytes
    +--------------------+
    | AND mask (1 bpp)   |  bottom-up rows, each padded to 4 bytes
    +--------------------+

For images below 32 bpp the AND mask supplies alpha: a set bit is fully
transparent, a clear bit fully opaque.  32-bpp images carry their own
alpha channel, which is taken as authoritative; their AND mask is
ignored.

References:
    - Microsoft. (2024). BITMAPINFOHEADER structure. Microsoft Learn.
    - Chen, R. (2010). The evolution of the ICO file format, part 1:
      Monochrome beginnings. The Old New Thing.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from exelook.core.errors import (
    FormatError,
    PlanarNotSupportedError,
    UnknownCompressionError,
    UnrecognizedBPPError,
)

BI_RGB: int = 0
SUPPORTED_BIT_COUNTS: frozenset[int] = frozenset({1, 4, 8, 24, 32})

_HEADER_FMT: str = "<IiiHHIIiiII"
_HEADER_SIZE: int = struct.calcsize(_HEADER_FMT)  # 40


@dataclass(frozen=True, slots=True)
class BitmapInfoHeader:
    """Parsed 40-byte ``BITMAPINFOHEADER``."""

    size: int
    width: int
    height: int
    planes: int
    bit_count: int
    compression: int
    size_image: int
    x_pels_per_meter: int
    y_pels_per_meter: int
    clr_used: int
    clr_important: int

    @classmethod
    def from_bytes(cls, data: bytes) -> BitmapInfoHeader:
        """Unpack the header at the start of *data*.

        Raises:
            FormatError: Fewer than 40 bytes are available.
        """
        if len(data) < _HEADER_SIZE:
            raise FormatError(
                f"bitmap header needs {_HEADER_SIZE} bytes, got {len(data)}"
            )
        return cls(*struct.unpack_from(_HEADER_FMT, data, 0))

    @property
    def image_height(self) -> int:
        """True image height; the stored height also covers the AND mask."""
        return self.height // 2

    @property
    def palette_size(self) -> int:
        if self.bit_count > 8:
            return 0
        full = 1 << self.bit_count
        if 0 < self.clr_used < full:
            return self.clr_used
        return full

    def validate(self) -> None:
        """Reject encodings the decoder does not handle, in a fixed order."""
        if self.planes != 1:
            raise PlanarNotSupportedError(f"bitmap has {self.planes} planes")
        if self.compression != BI_RGB:
            raise UnknownCompressionError(
                f"bitmap compression {self.compression} is not BI_RGB"
            )
        if self.bit_count not in SUPPORTED_BIT_COUNTS:
            raise UnrecognizedBPPError(f"unsupported bit count {self.bit_count}")


def row_stride(width: int, bit_count: int) -> int:
    """Bytes per stored scanline, rounded up to a 4-byte boundary."""
    return ((width * bit_count + 31) // 32) * 4


def decode_dib(data: bytes) -> bytes:
    """Decode an icon DIB into top-down RGBA.

    Returns:
        ``width * image_height * 4`` bytes in R, G, B, A order.

    Raises:
        PlanarNotSupportedError, UnknownCompressionError,
        UnrecognizedBPPError: Unsupported encoding.
        FormatError: Inconsistent geometry or truncated data.
    """
    header = BitmapInfoHeader.from_bytes(data)
    header.validate()

    width = header.width
    height = header.image_height
    bpp = header.bit_count
    if width <= 0 or height <= 0:
        raise FormatError(f"invalid icon dimensions {width}x{header.height}")
    if header.size < _HEADER_SIZE:
        raise FormatError(f"bitmap header size {header.size} is too small")

    palette = _read_palette(data, header)
    xor_offset = header.size + 4 * len(palette)
    stride = row_stride(width, bpp)
    xor = _slice(data, xor_offset, stride * height, "XOR image")

    mask = None
    mask_stride = row_stride(width, 1)
    if bpp != 32:
        mask = _slice(data, xor_offset + stride * height, mask_stride * height, "AND mask")

    out = bytearray(width * height * 4)
    for y in range(height):
        # Rows are stored bottom-up
        src = (height - 1 - y) * stride
        row = xor[src:src + stride]
        dst = y * width * 4

        if bpp == 32:
            for x in range(width):
                b, g, r, a = row[4 * x:4 * x + 4]
                out[dst + 4 * x:dst + 4 * x + 4] = bytes((r, g, b, a))
            continue

        if bpp == 24:
            for x in range(width):
                b, g, r = row[3 * x:3 * x + 3]
                out[dst + 4 * x:dst + 4 * x + 3] = bytes((r, g, b))
        else:
            index_mask = (1 << bpp) - 1
            for x in range(width):
                bit = x * bpp
                shift = 8 - bpp - (bit & 7)
                index = (row[bit >> 3] >> shift) & index_mask
                if index >= len(palette):
                    raise FormatError(
                        f"palette index {index} outside {len(palette)}-entry table"
                    )
                out[dst + 4 * x:dst + 4 * x + 3] = palette[index]

        msrc = (height - 1 - y) * mask_stride
        mrow = mask[msrc:msrc + mask_stride]
        for x in range(width):
            transparent = (mrow[x >> 3] >> (7 - (x & 7))) & 1
            out[dst + 4 * x + 3] = 0 if transparent else 0xFF

    return bytes(out)


def _read_palette(data: bytes, header: BitmapInfoHeader) -> list[bytes]:
    """Return the colour table as RGB triples."""
    count = header.palette_size
    table = _slice(data, header.size, 4 * count, "colour table")
    return [
        bytes((table[4 * i + 2], table[4 * i + 1], table[4 * i]))
        for i in range(count)
    ]


def _slice(data: bytes, offset: int, length: int, what: str) -> bytes:
    if offset + length > len(data):
        raise FormatError(
            f"{what} needs {length} bytes at offset {offset}, "
            f"bitmap holds {len(data)}"
        )
    return data[offset:offset + length]
