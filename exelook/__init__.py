"""
Exelook -- Windows Executable Icon Extractor
=============================================

Exelook locates the application icon embedded in a Windows PE file
(PE32 or PE32+), picks the best variant of its first icon group and
returns it as a ready-to-display pixel buffer.

Capabilities:
    - Manual struct-based PE32 / PE32+ header and resource tree parsing
    - Icon group directory parsing
    - Best-variant selection by (width, height, bit depth)
    - Legacy DIB decoding (1/4/8/24/32 bpp) with AND-mask transparency
    - PNG icon pass-through
    - Rich console summary, JSON report and PNG export CLI

References:
    - Microsoft. (2024). PE Format. Microsoft Learn.
    - Microsoft. (1995). Icons in Win32. MSDN Library.
"""

from exelook.core.engine import IconLookupEngine, lookup_icon
from exelook.core.errors import (
    ExelookError,
    ExelookIOError,
    FormatError,
    MalformedPNGError,
    NoIconFoundError,
    PathEncodingError,
    PlanarNotSupportedError,
    UnknownCompressionError,
    UnrecognizedBPPError,
)
from exelook.core.models import DecodedIcon

__version__ = "1.0.0"
__all__ = [
    "lookup_icon",
    "IconLookupEngine",
    "DecodedIcon",
    "ExelookError",
    "ExelookIOError",
    "PathEncodingError",
    "FormatError",
    "NoIconFoundError",
    "PlanarNotSupportedError",
    "UnrecognizedBPPError",
    "UnknownCompressionError",
    "MalformedPNGError",
]
