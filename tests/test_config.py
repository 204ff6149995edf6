"""Tests for TOML configuration loading."""

import pytest

from exelook.config import ExelookConfig


def test_defaults():
    config = ExelookConfig()
    assert config.global_settings.log_level == "INFO"
    assert config.global_settings.log_file == ""
    assert config.lookup.max_file_size == 268_435_456
    assert config.export.output_dir == "icons"
    assert config.export.overwrite is False


def test_load_explicit_file(tmp_path):
    path = tmp_path / "custom.toml"
    path.write_text(
        '[global]\nlog_level = "DEBUG"\nlog_json = true\nunknown = 1\n'
        "[lookup]\nmax_file_size = 4096\n"
        '[export]\noutput_dir = "out"\noverwrite = true\n'
        "[ignored]\nkey = 2\n",
        encoding="utf-8",
    )
    config = ExelookConfig.load(path)
    assert config.global_settings.log_level == "DEBUG"
    assert config.global_settings.log_json is True
    assert config.global_settings.debug is False
    assert config.lookup.max_file_size == 4096
    assert config.export.output_dir == "out"
    assert config.export.overwrite is True


def test_partial_sections_keep_defaults(tmp_path):
    path = tmp_path / "exelook.toml"
    path.write_text("[lookup]\nmax_file_size = 10\n", encoding="utf-8")
    config = ExelookConfig.load(str(path))
    assert config.lookup.max_file_size == 10
    assert config.export.output_dir == "icons"
    assert config.global_settings.log_level == "INFO"


def test_default_path_in_working_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert ExelookConfig.load().export.output_dir == "icons"

    (tmp_path / "exelook.toml").write_text('[export]\noutput_dir = "pngs"\n', encoding="utf-8")
    assert ExelookConfig.load().export.output_dir == "pngs"


def test_explicit_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        ExelookConfig.load(tmp_path / "nope.toml")


def test_invalid_toml(tmp_path):
    path = tmp_path / "broken.toml"
    path.write_text("[lookup\nmax_file_size = ", encoding="utf-8")
    with pytest.raises(ValueError):
        ExelookConfig.load(path)


def test_to_dict():
    data = ExelookConfig().to_dict()
    assert data["lookup"] == {"max_file_size": 268_435_456}
    assert data["export"]["overwrite"] is False
