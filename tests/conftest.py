"""Shared fixtures for the exelook test-suite."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from exelook.parsers.mapped import MappedBytes
from exelook.parsers.pe_parser import parse_image
from exelook.parsers.resources import ResourceTree


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[..., Path]:
    """Write bytes under ``tmp_path`` and return the path."""

    def _write(data: bytes, name: str = "app.exe") -> Path:
        path = tmp_path / name
        path.write_bytes(data)
        return path

    return _write


@pytest.fixture
def open_tree() -> Callable[[bytes], ResourceTree]:
    """Parse an in-memory PE image and return its resource tree."""

    def _open(image: bytes) -> ResourceTree:
        return parse_image(MappedBytes.from_bytes(image)).resources()

    return _open
