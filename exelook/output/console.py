"""
Exelook Console Output
=======================

Rich-powered terminal presentation for the exelook CLI: severity
coloured messages, and a summary of an :class:`IconReport` with the
icon group directory rendered as a table.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

from typing import Any, Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

from exelook.core.models import IconDirectoryEntry, IconReport

_EXELOOK_THEME = Theme(
    {
        "exelook.section": "bold bright_magenta",
        "exelook.success": "bold green",
        "exelook.error": "bold red",
        "exelook.info": "bold bright_blue",
        "exelook.highlight": "bold bright_white",
    }
)


class ExelookConsole:
    """Console interface shared by every exelook command.

    Usage::

        con = ExelookConsole()
        con.section("Icon")
        con.success("Icon written")

    Message text is printed literally, never parsed as Rich markup.
    """

    def __init__(self, *, quiet: bool = False, stderr: bool = False) -> None:
        """Initialise the console.

        Args:
            quiet:  Suppress all output.
            stderr: Write to standard error instead of standard output.
        """
        self._console = Console(
            theme=_EXELOOK_THEME,
            quiet=quiet,
            stderr=stderr,
            highlight=False,
        )

    # ------------------------------------------------------------------ #
    #  Messages
    # ------------------------------------------------------------------ #

    def section(self, title: str) -> None:
        self._console.rule(f"  {title}  ", style="exelook.section", characters="─")

    def success(self, message: str) -> None:
        self._console.print(f"[exelook.success][✔] SUCCESS:[/exelook.success] {escape(message)}")

    def error(self, message: str) -> None:
        self._console.print(f"[exelook.error][✘] ERROR:[/exelook.error] {escape(message)}")

    def info(self, message: str) -> None:
        self._console.print(f"[exelook.info][ℹ] INFO:[/exelook.info] {escape(message)}")

    # ------------------------------------------------------------------ #
    #  Tables
    # ------------------------------------------------------------------ #

    def table(
        self,
        title: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
        *,
        caption: str | None = None,
    ) -> None:
        """Render a styled Rich table; every cell is stringified."""
        tbl = Table(
            title=title,
            caption=caption,
            border_style="bright_cyan",
            header_style="bold bright_magenta",
            padding=(0, 1),
        )
        for col_name in columns:
            tbl.add_column(col_name)
        for row in rows:
            tbl.add_row(*(str(cell) for cell in row))
        self._console.print(tbl)

    # ------------------------------------------------------------------ #
    #  Report display
    # ------------------------------------------------------------------ #

    def display_report(self, report: IconReport) -> None:
        """Render the full ``exelook show`` summary."""
        self.section("Executable")
        self._console.print(Panel(
            f"[exelook.highlight]{escape(report.path)}[/exelook.highlight]\n"
            f"Format: {report.format}   Machine: {report.machine}\n"
            f"Sections: {escape(', '.join(report.sections)) or '-'}",
            border_style="bright_cyan",
        ))

        self.section("Icon Group")
        self.group_table(report.group, selected=report.selected)

        self.section("Selected Icon")
        if report.icon_is_png:
            self.info(f"PNG image, {report.icon_bytes:,} bytes (passed through)")
        else:
            self.info(
                f"{report.icon_width}x{report.icon_height} RGBA, "
                f"{report.icon_bytes:,} bytes decoded"
            )

    def group_table(
        self,
        entries: Sequence[IconDirectoryEntry],
        *,
        selected: Any = None,
    ) -> None:
        rows = [
            (
                entry.icon_id,
                entry.width or 256,
                entry.height or 256,
                entry.bit_count,
                entry.color_count,
                f"{entry.byte_size:,}",
            )
            for entry in entries
        ]
        caption = None
        if selected is not None:
            caption = (
                f"selected key: ({selected.width}, {selected.height}, "
                f"{selected.bit_depth})"
            )
        self.table(
            "RT_GROUP_ICON",
            ["Id", "Width", "Height", "BPP", "Colors", "Bytes"],
            rows,
            caption=caption,
        )
