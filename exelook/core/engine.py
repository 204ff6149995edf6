"""
Exelook Lookup Engine
======================

Orchestrates the icon lookup pipeline over a single PE file:

Lookup Pipeline:
    1. Validate the path encoding
    2. Map the file read-only
    3. Detect PE32 / PE32+ and locate the resource directory
    4. Parse the first ``RT_GROUP_ICON`` directory
    5. Collect the ``RT_ICON`` images it lists
    6. Select the best image by (width, height, bit depth)
    7. Pass PNG images through, decode bitmaps to RGBA

:func:`lookup_icon` is the pure core: it neither logs nor reads
configuration.  :class:`IconLookupEngine` wraps it with the logging,
configuration and reporting concerns used by the CLI.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Union

from exelook.config import ExelookConfig
from exelook.core.errors import ExelookError, ExelookIOError, PathEncodingError
from exelook.core.models import DecodedIcon, IconReport
from exelook.core.selector import best_icon, describe_candidate
from exelook.decoders.dib import BitmapInfoHeader, decode_dib
from exelook.logger import ExelookLogger
from exelook.parsers.icon_group import group_icon
from exelook.parsers.icon_images import icons
from exelook.parsers.magic import is_png
from exelook.parsers.mapped import MappedBytes
from exelook.parsers.pe_parser import open_resources, parse_image

PathArg = Union[str, bytes, os.PathLike]


# ---------------------------------------------------------------------------
# Core pipeline
# ---------------------------------------------------------------------------

def normalise_path(path: PathArg) -> str:
    """Return *path* as text, rejecting anything that is not valid UTF-8.

    Raises:
        PathEncodingError: Undecodable bytes or unencodable surrogates.
    """
    raw = os.fspath(path)
    try:
        if isinstance(raw, bytes):
            return raw.decode("utf-8")
        raw.encode("utf-8")
    except UnicodeError as exc:
        raise PathEncodingError(f"path is not valid UTF-8: {raw!r}") from exc
    return raw


def decode_icon(icon: bytes) -> DecodedIcon:
    """Turn the selected raw image into an owned :class:`DecodedIcon`."""
    if is_png(icon):
        return DecodedIcon(pixels=bytes(icon), is_png=True, width=0, height=0)
    header = BitmapInfoHeader.from_bytes(icon)
    pixels = decode_dib(icon)
    return DecodedIcon(
        pixels=pixels,
        is_png=False,
        width=header.width,
        height=header.image_height,
    )


def select_icon(data: MappedBytes) -> bytes:
    """Run locate → parse → collect → select over an open mapping."""
    tree = open_resources(data)
    group = group_icon(tree)
    return best_icon(icons(tree, group.icon_ids))


def lookup_icon(path: PathArg) -> DecodedIcon:
    """Extract and decode the best application icon of a PE file.

    Raises:
        ExelookError: The first failure of any pipeline stage.
    """
    text_path = normalise_path(path)
    with MappedBytes.open(text_path) as data:
        return decode_icon(select_icon(data))


# ---------------------------------------------------------------------------
# IconLookupEngine
# ---------------------------------------------------------------------------

class IconLookupEngine:
    """Configured, logged front end to the lookup pipeline.

    Usage::

        engine = IconLookupEngine()
        icon = engine.lookup("setup.exe")
        report = engine.inspect("setup.exe")
    """

    def __init__(
        self,
        config: ExelookConfig | None = None,
        logger: ExelookLogger | None = None,
    ) -> None:
        """Initialise the engine.

        Args:
            config: Exelook configuration.  Defaults are used if not provided.
            logger: Logger instance.  A new one is created if not provided.
        """
        self._config: ExelookConfig = config or ExelookConfig()
        self._logger: ExelookLogger = logger or ExelookLogger(
            "engine", console_output=False
        )

    @property
    def config(self) -> ExelookConfig:
        return self._config

    # ------------------------------------------------------------------ #
    #  Lookup
    # ------------------------------------------------------------------ #

    def lookup(self, path: PathArg) -> DecodedIcon:
        """Size-checked, logged :func:`lookup_icon`."""
        with self._logger.operation("lookup"):
            text_path = self._checked_path(path)
            try:
                with self._logger.timed(f"icon lookup {text_path}"):
                    icon = lookup_icon(text_path)
            except ExelookError as exc:
                self._logger.warning(
                    "Icon lookup failed for %s: %s (%s)", text_path, exc.kind, exc
                )
                raise
            self._logger.info(
                "Icon found in %s: %s",
                text_path,
                "PNG" if icon.is_png else f"{icon.width}x{icon.height} RGBA",
            )
            return icon

    def inspect(self, path: PathArg) -> IconReport:
        """Collect a display report for *path*, decoding the selected icon."""
        with self._logger.operation("inspect"):
            text_path = self._checked_path(path)
            try:
                report = self._inspect(text_path)
            except ExelookError as exc:
                self._logger.warning(
                    "Inspection failed for %s: %s (%s)", text_path, exc.kind, exc
                )
                raise
            return report

    # ------------------------------------------------------------------ #
    #  Internals
    # ------------------------------------------------------------------ #

    def _checked_path(self, path: PathArg) -> str:
        text_path = normalise_path(path)
        try:
            file_size = Path(text_path).stat().st_size
        except OSError as exc:
            self._logger.error("Cannot stat %s: %s", text_path, exc)
            raise ExelookIOError(f"cannot stat {text_path!r}: {exc}") from exc

        max_size = self._config.lookup.max_file_size
        if file_size > max_size:
            message = (
                f"File too large: {file_size:,} bytes "
                f"(max: {max_size:,} bytes)"
            )
            self._logger.error(message)
            raise ExelookIOError(message)
        self._logger.debug("Mapping %s (%d bytes)", text_path, file_size)
        return text_path

    def _inspect(self, text_path: str) -> IconReport:
        with MappedBytes.open(text_path) as data:
            image = parse_image(data)
            report = IconReport(
                path=str(Path(text_path).resolve()),
                format=image.FORMAT_NAME,
                machine=image.machine,
                sections=image.section_names,
            )
            self._logger.debug("Detected %s image (%s)", report.format, report.machine)

            tree = image.resources()
            group = group_icon(tree)
            report.group = list(group)
            self._logger.debug("Icon group lists ids %s", group.icon_ids)

            winner = best_icon(icons(tree, group.icon_ids))
            report.selected = describe_candidate(winner)
            decoded = decode_icon(winner)

        report.icon_width = decoded.width
        report.icon_height = decoded.height
        report.icon_is_png = decoded.is_png
        report.icon_bytes = decoded.byte_length
        return report
