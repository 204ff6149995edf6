"""
Exelook CLI -- Executable Icon Extractor
=========================================

Click-based command-line interface around the icon lookup engine.

Usage::

    # Summarise the icon group and the selected icon
    exelook show setup.exe

    # Same, as JSON on stdout
    exelook show setup.exe --json

    # Save the report as a JSON file as well
    exelook show setup.exe -o setup.json

    # Write the selected icon as a PNG file
    exelook extract setup.exe -o setup.png

References:
    - Click documentation: https://click.palletsprojects.com/
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import NoReturn

import click

from exelook.config import ExelookConfig
from exelook.core.engine import IconLookupEngine
from exelook.core.errors import ExelookError
from exelook.logger import ExelookLogger
from exelook.output.console import ExelookConsole
from exelook.output.export import IconExporter


# ===================================================================== #
#  Helpers
# ===================================================================== #

def _load_config(config_path: str | None) -> ExelookConfig:
    try:
        return ExelookConfig.load(config_path)
    except (OSError, ValueError) as exc:
        raise click.ClickException(f"Invalid configuration: {exc}") from exc


def _fail(console: ExelookConsole, exc: ExelookError) -> NoReturn:
    console.error(f"{exc.kind}: {exc}")
    sys.exit(1)


# ===================================================================== #
#  CLI Group
# ===================================================================== #

@click.group("exelook")
@click.option(
    "--config", "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to an exelook.toml configuration file.",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Enable verbose/debug output.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """Exelook -- extract the application icon of a Windows PE file."""
    ctx.ensure_object(dict)
    config = _load_config(config_path)
    settings = config.global_settings
    log_level = "DEBUG" if verbose or settings.debug else settings.log_level

    logger = ExelookLogger(
        "cli",
        log_level=log_level,
        log_file=settings.log_file or None,
        json_logs=settings.log_json,
    )
    logger.debug("Configuration: %s", config.to_dict())
    ctx.obj["config"] = config
    ctx.obj["logger"] = logger
    ctx.obj["engine"] = IconLookupEngine(config=config, logger=logger)
    ctx.obj["console"] = ExelookConsole()


# ===================================================================== #
#  Commands
# ===================================================================== #

@cli.command("show")
@click.argument("path", type=click.Path(dir_okay=False))
@click.option(
    "--json", "json_output",
    is_flag=True,
    default=False,
    help="Output the report as JSON to stdout.",
)
@click.option(
    "--output", "-o",
    "output_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Also save the report as a JSON file.",
)
@click.pass_context
def show(
    ctx: click.Context,
    path: str,
    json_output: bool,
    output_path: str | None,
) -> None:
    """Show the icon group of PATH and the icon that would be selected."""
    engine: IconLookupEngine = ctx.obj["engine"]
    console: ExelookConsole = ctx.obj["console"]
    config: ExelookConfig = ctx.obj["config"]

    try:
        report = engine.inspect(path)
    except ExelookError as exc:
        _fail(console, exc)

    if json_output:
        click.echo(json.dumps(IconExporter.report_dict(report), indent=2, default=str))
    else:
        console.display_report(report)

    if output_path:
        exporter = IconExporter(overwrite=config.export.overwrite)
        try:
            written = exporter.write_json(report, output_path)
        except FileExistsError as exc:
            console.error(str(exc))
            sys.exit(1)
        if not json_output:
            console.success(f"Report saved: {written}")


@cli.command("extract")
@click.argument("path", type=click.Path(dir_okay=False))
@click.option(
    "--output", "-o",
    "output_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Output PNG path.  Default: <export.output_dir>/<name>.png",
)
@click.option(
    "--force", "-f",
    is_flag=True,
    default=False,
    help="Overwrite an existing output file.",
)
@click.pass_context
def extract(ctx: click.Context, path: str, output_path: str | None, force: bool) -> None:
    """Write the best icon of PATH as a PNG image."""
    engine: IconLookupEngine = ctx.obj["engine"]
    console: ExelookConsole = ctx.obj["console"]
    logger: ExelookLogger = ctx.obj["logger"]
    config: ExelookConfig = ctx.obj["config"]

    try:
        icon = engine.lookup(path)
    except ExelookError as exc:
        _fail(console, exc)

    if output_path is None:
        output_path = str(Path(config.export.output_dir) / f"{Path(path).stem}.png")

    exporter = IconExporter(overwrite=force or config.export.overwrite)
    try:
        with logger.operation("extract"):
            written = exporter.write_png(icon, output_path)
            logger.debug("Wrote %s", written)
    except FileExistsError as exc:
        console.error(f"{exc} (use --force to replace it)")
        sys.exit(1)

    kind = "PNG" if icon.is_png else f"{icon.width}x{icon.height} bitmap"
    console.success(f"{kind} icon saved: {written}")


# ===================================================================== #
#  Entry Point
# ===================================================================== #

def main() -> None:
    """Main entry point for the exelook CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
