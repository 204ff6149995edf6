"""
Exelook Icon Export
====================

Writes lookup results to disk: the selected icon as a PNG file and the
inspection report as JSON.

PNG pass-through icons are written byte-for-byte.  Decoded bitmaps are
encoded with Pillow from the RGBA buffer.

References:
    - Pillow documentation: https://pillow.readthedocs.io/
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from PIL import Image

from exelook.core.models import DecodedIcon, IconReport


class IconExporter:
    """Serialise :class:`DecodedIcon` and :class:`IconReport` values.

    Usage::

        exporter = IconExporter(overwrite=True)
        exporter.write_png(icon, "out/app.png")
    """

    def __init__(self, *, overwrite: bool = False) -> None:
        self._overwrite = overwrite

    def write_png(self, icon: DecodedIcon, output_path: str | Path) -> str:
        """Write *icon* as a PNG file.

        Returns:
            The absolute path of the written file.

        Raises:
            FileExistsError: The target exists and overwriting is disabled.
        """
        path = self._prepare(output_path)
        if icon.is_png:
            path.write_bytes(icon.pixels)
        else:
            image = Image.frombytes("RGBA", (icon.width, icon.height), icon.pixels)
            image.save(path, format="PNG")
        return str(path.resolve())

    def write_json(self, report: IconReport, output_path: str | Path) -> str:
        """Write the inspection report as indented JSON."""
        path = self._prepare(output_path)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.report_dict(report), f, indent=2, ensure_ascii=False, default=str)
        return str(path.resolve())

    @staticmethod
    def report_dict(report: IconReport) -> dict[str, Any]:
        return {
            "report_type": "exelook_icon",
            "generated_at": datetime.now(timezone.utc).isoformat(),
            **report.model_dump(mode="json"),
        }

    def _prepare(self, output_path: str | Path) -> Path:
        path = Path(output_path)
        if path.exists() and not self._overwrite:
            raise FileExistsError(f"Refusing to overwrite {path}")
        path.parent.mkdir(parents=True, exist_ok=True)
        return path
