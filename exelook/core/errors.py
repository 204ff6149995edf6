"""
Exelook Exception Hierarchy
============================

Every failure raised by the icon lookup pipeline derives from
:class:`ExelookError`.  Each subclass carries a short ``kind`` label
used by the CLI and the logger when reporting the failure.

The pipeline is strictly fail-fast: the first error raised by any stage
(locate, parse, collect, select, decode) aborts the whole lookup.
"""

from __future__ import annotations


class ExelookError(Exception):
    """Base class for all icon lookup failures."""

    kind: str = "Error"


class ExelookIOError(ExelookError):
    """The source file could not be opened or mapped."""

    kind = "IoFailure"


class PathEncodingError(ExelookError):
    """The supplied path is not representable as UTF-8 text."""

    kind = "EncodingFailure"


class FormatError(ExelookError):
    """A PE header, resource structure or bitmap is malformed or out of bounds."""

    kind = "FormatError"


class PEMagicError(FormatError):
    """The optional header magic does not match the requested bitness.

    Raised by the PE32 parser so the locator can retry as PE32+.
    """


class NoIconFoundError(ExelookError):
    """No usable icon resource exists in the file."""

    kind = "NoIconFound"


class PlanarNotSupportedError(ExelookError):
    kind = "PlanarNotSupported"


class UnrecognizedBPPError(ExelookError):
    kind = "UnrecognizedBPP"


class UnknownCompressionError(ExelookError):
    kind = "UnknownCompression"


class MalformedPNGError(ExelookError):
    """A PNG-signed icon lacks a complete ``IHDR`` chunk header."""

    kind = "MalformedPng"
