"""
Icon Selector
==============

Chooses the single best image among the candidates of an icon group.

Each candidate is ranked by ``(width, height, bit depth)`` compared
lexicographically.  PNG images use a bit depth of 64, above any legacy
bitmap depth, so a PNG wins whenever its dimensions tie with a bitmap.
Bitmap heights are compared as stored, i.e. including the AND mask.
"""

from __future__ import annotations

from typing import Iterable

from exelook.core.errors import NoIconFoundError
from exelook.core.models import IconCandidate
from exelook.decoders.dib import BitmapInfoHeader
from exelook.parsers.magic import PngHeader, is_png

PNG_BIT_DEPTH: int = 64

IconKey = tuple[int, int, int]


def icon_compare_key(icon: bytes) -> IconKey:
    """Return the ranking key of one encoded icon image.

    Raises:
        MalformedPNGError: PNG-signed data without an IHDR header.
        FormatError:       Bitmap data shorter than its header.
    """
    if is_png(icon):
        png = PngHeader.from_bytes(icon)
        return (png.width, png.height, PNG_BIT_DEPTH)
    header = BitmapInfoHeader.from_bytes(icon)
    return (header.width, header.height, header.bit_count)


def best_icon(icons: Iterable[bytes]) -> bytes:
    """Return the candidate with the greatest key; ties keep the earliest.

    Any error raised while iterating or ranking aborts the selection.

    Raises:
        NoIconFoundError: *icons* is empty.
    """
    best: bytes | None = None
    best_key: IconKey | None = None
    for icon in icons:
        key = icon_compare_key(icon)
        if best_key is None or key > best_key:
            best, best_key = icon, key
    if best is None:
        raise NoIconFoundError("icon group lists no usable images")
    return best


def describe_candidate(icon: bytes) -> IconCandidate:
    """Summarise a selected image for reports."""
    width, height, depth = icon_compare_key(icon)
    return IconCandidate(
        width=width,
        height=height,
        bit_depth=depth,
        is_png=is_png(icon),
        size=len(icon),
    )
