"""Tests for the click command-line interface."""

import json

import pytest
from click.testing import CliRunner
from PIL import Image

from exelook.cli import cli

from tests.builders import build_dib, build_icon_pe, build_pe, group_directory, png_header


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def bitmap_exe(write_file):
    rows = [[(x, y, 128, 255) for x in range(16)] for y in range(16)]
    bmp = build_dib(16, 16, 32, rows)
    group = group_directory([{"width": 16, "height": 16, "bit_count": 32, "icon_id": 1}])
    return write_file(build_icon_pe({1: bmp}, group))


class TestShow:
    def test_summary(self, runner, bitmap_exe):
        result = runner.invoke(cli, ["show", str(bitmap_exe)])
        assert result.exit_code == 0, result.output
        assert "PE32" in result.output
        assert "RT_GROUP_ICON" in result.output
        assert "16x16 RGBA" in result.output

    def test_json(self, runner, bitmap_exe):
        result = runner.invoke(cli, ["show", str(bitmap_exe), "--json"])
        assert result.exit_code == 0, result.output
        report = json.loads(result.stdout)
        assert report["report_type"] == "exelook_icon"
        assert report["format"] == "PE32"
        assert report["group"][0]["icon_id"] == 1
        assert report["selected"] == {
            "width": 16, "height": 32, "bit_depth": 32, "is_png": False,
            "size": report["selected"]["size"],
        }
        assert report["icon_bytes"] == 16 * 16 * 4

    def test_failure_reports_kind(self, runner, write_file):
        path = write_file(build_pe())
        result = runner.invoke(cli, ["show", str(path)])
        assert result.exit_code == 1
        assert "NoIconFound" in result.output

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(cli, ["show", str(tmp_path / "missing.exe")])
        assert result.exit_code == 1
        assert "IoFailure" in result.output

    def test_bracketed_path_is_printed_literally(self, runner, tmp_path):
        result = runner.invoke(cli, ["show", str(tmp_path / "[/x]" / "app.exe")])
        assert result.exit_code == 1
        assert "IoFailure" in result.output
        assert isinstance(result.exception, SystemExit)

    def test_bracketed_directory_summary(self, runner, tmp_path, bitmap_exe):
        folder = tmp_path / "[bold]" / "[/x]"
        folder.mkdir(parents=True)
        path = folder / "app.exe"
        path.write_bytes(bitmap_exe.read_bytes())
        result = runner.invoke(cli, ["show", str(path)])
        assert result.exit_code == 0, result.output
        assert "PE32" in result.output

    def test_saves_json_report(self, runner, bitmap_exe, tmp_path):
        output = tmp_path / "report.json"
        result = runner.invoke(cli, ["show", str(bitmap_exe), "-o", str(output)])
        assert result.exit_code == 0, result.output
        assert "Report saved" in result.output
        with open(output, encoding="utf-8") as fh:
            report = json.load(fh)
        assert report["report_type"] == "exelook_icon"
        assert report["selected"]["bit_depth"] == 32

        result = runner.invoke(cli, ["show", str(bitmap_exe), "-o", str(output)])
        assert result.exit_code == 1
        assert "Refusing to overwrite" in result.output


class TestExtract:
    def test_bitmap_to_png(self, runner, bitmap_exe, tmp_path):
        output = tmp_path / "out" / "icon.png"
        result = runner.invoke(cli, ["extract", str(bitmap_exe), "-o", str(output)])
        assert result.exit_code == 0, result.output

        with Image.open(output) as image:
            assert image.size == (16, 16)
            assert image.mode == "RGBA"
            assert image.getpixel((3, 5)) == (128, 5, 3, 255)

    def test_png_written_verbatim(self, runner, write_file, tmp_path):
        png = png_header(256, 256) + b"rest-of-stream"
        path = write_file(build_icon_pe({1: png}))
        output = tmp_path / "icon.png"
        result = runner.invoke(cli, ["extract", str(path), "-o", str(output)])
        assert result.exit_code == 0, result.output
        assert output.read_bytes() == png

    def test_refuses_to_overwrite(self, runner, bitmap_exe, tmp_path):
        output = tmp_path / "icon.png"
        output.write_bytes(b"existing")
        result = runner.invoke(cli, ["extract", str(bitmap_exe), "-o", str(output)])
        assert result.exit_code == 1
        assert output.read_bytes() == b"existing"

        result = runner.invoke(cli, ["extract", str(bitmap_exe), "-o", str(output), "--force"])
        assert result.exit_code == 0, result.output
        assert output.read_bytes() != b"existing"

    def test_default_output_from_config(self, runner, bitmap_exe, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = tmp_path / "settings.toml"
        config.write_text('[export]\noutput_dir = "exported"\n', encoding="utf-8")
        result = runner.invoke(cli, ["--config", str(config), "extract", str(bitmap_exe)])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "exported" / "app.png").is_file()

    def test_failure_writes_nothing(self, runner, write_file, tmp_path):
        path = write_file(b"plain text, not an executable" * 4, name="notes.txt")
        output = tmp_path / "notes.png"
        result = runner.invoke(cli, ["extract", str(path), "-o", str(output)])
        assert result.exit_code == 1
        assert "FormatError" in result.output
        assert not output.exists()


def test_invalid_config(runner, bitmap_exe, tmp_path):
    config = tmp_path / "broken.toml"
    config.write_text("[export\n", encoding="utf-8")
    result = runner.invoke(cli, ["-c", str(config), "show", str(bitmap_exe)])
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


def test_extract_bracketed_path_failure(runner, tmp_path):
    output = tmp_path / "icon.png"
    result = runner.invoke(cli, ["extract", str(tmp_path / "[red]" / "[/x].exe"), "-o", str(output)])
    assert result.exit_code == 1
    assert "IoFailure" in result.output
    assert isinstance(result.exception, SystemExit)
    assert not output.exists()
