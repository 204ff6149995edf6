"""Tests for icon classification and best-variant selection."""

import pytest

from exelook.core.errors import FormatError, MalformedPNGError, NoIconFoundError
from exelook.core.selector import (
    PNG_BIT_DEPTH,
    best_icon,
    describe_candidate,
    icon_compare_key,
)
from exelook.parsers.magic import PngHeader, is_png

from tests.builders import PNG_SIGNATURE, bitmap_header, png_header


class TestPngDetection:
    def test_signature(self):
        assert is_png(png_header(16, 16))
        assert not is_png(bitmap_header(16, 32, 32))
        assert not is_png(PNG_SIGNATURE[:7])
        assert not is_png(b"")

    def test_header_dimensions(self):
        header = PngHeader.from_bytes(png_header(256, 128))
        assert (header.width, header.height) == (256, 128)

    def test_dimensions_are_signed(self):
        header = PngHeader.from_bytes(png_header(0x80000000, 1))
        assert header.width == -0x80000000

    def test_too_short(self):
        with pytest.raises(MalformedPNGError):
            PngHeader.from_bytes(png_header(16, 16)[:23])

    def test_first_chunk_must_be_ihdr(self):
        with pytest.raises(MalformedPNGError):
            PngHeader.from_bytes(png_header(16, 16, chunk_type=b"IDAT"))


class TestCompareKey:
    def test_png_key_uses_sentinel_depth(self):
        assert icon_compare_key(png_header(48, 48)) == (48, 48, PNG_BIT_DEPTH)

    def test_bitmap_key_uses_stored_height(self):
        assert icon_compare_key(bitmap_header(32, 64, 8)) == (32, 64, 8)

    def test_short_bitmap(self):
        with pytest.raises(FormatError):
            icon_compare_key(b"\x28\x00\x00\x00")


class TestBestIcon:
    def test_width_is_compared_first(self):
        png = png_header(16, 16)
        bmp = bitmap_header(32, 64, 8)
        assert best_icon([png, bmp]) == bmp
        assert best_icon([bmp, png]) == bmp

    def test_depth_breaks_dimension_ties(self):
        low = bitmap_header(32, 64, 8)
        high = bitmap_header(32, 64, 32)
        assert best_icon([low, high]) == high

    def test_png_beats_bitmap_of_same_key_dimensions(self):
        png = png_header(32, 64)
        bmp = bitmap_header(32, 64, 32)
        assert best_icon([bmp, png]) == png

    def test_ties_keep_the_earliest(self):
        first = bitmap_header(16, 32, 4) + b"first"
        second = bitmap_header(16, 32, 4) + b"second"
        assert best_icon([first, second]) is first

    def test_empty_candidates(self):
        with pytest.raises(NoIconFoundError):
            best_icon([])

    def test_malformed_candidate_aborts(self):
        broken = PNG_SIGNATURE + b"\x00" * 4
        with pytest.raises(MalformedPNGError):
            best_icon([bitmap_header(16, 32, 4), broken])

    def test_iterator_errors_propagate(self):
        def candidates():
            yield bitmap_header(16, 32, 4)
            raise NoIconFoundError("missing language")

        with pytest.raises(NoIconFoundError):
            best_icon(candidates())


def test_describe_candidate():
    png = png_header(256, 256)
    candidate = describe_candidate(png)
    assert candidate.is_png
    assert (candidate.width, candidate.height, candidate.bit_depth) == (256, 256, 64)
    assert candidate.size == len(png)

    bmp = describe_candidate(bitmap_header(48, 96, 4))
    assert not bmp.is_png
    assert bmp.bit_depth == 4
