"""Tests for the content validator."""

from __future__ import annotations

import pytest

from shopstage.errors import ErrorCode
from shopstage.image.validate import (
    INVALID_IMAGE_MESSAGE,
    SNIFF_BYTES,
    _format_limit,
    validate_image,
)
from shopstage.models import Accepted, Rejected

PNG = bytes([0x89, 0x50, 0x4E, 0x47, 0x0D, 0x0A, 0x1A, 0x0A])
MAX = 5 * 1024 * 1024


class TestSignatures:
    def test_png_accepted(self):
        data = PNG + b"\x00\x00\x00\x0dIHDR"
        assert validate_image(data, len(data)) == Accepted(mime="image/png", extension="png")

    def test_jpeg_accepted(self):
        data = bytes([0xFF, 0xD8, 0xFF, 0xE0]) + b"\x00" * 20
        assert validate_image(data, len(data)) == Accepted(mime="image/jpeg", extension="jpg")

    def test_gif87a_accepted(self):
        data = b"GIF87a" + b"\x01\x00\x01\x00"
        assert validate_image(data, len(data)) == Accepted(mime="image/gif", extension="gif")

    def test_gif89a_accepted(self):
        data = b"GIF89a" + b"\x01\x00\x01\x00"
        assert validate_image(data, len(data)) == Accepted(mime="image/gif", extension="gif")

    def test_all_zeros_rejected_with_generic_message(self):
        result = validate_image(b"\x00" * 64, 64)
        assert isinstance(result, Rejected)
        assert result.reason == INVALID_IMAGE_MESSAGE
        assert result.code == ErrorCode.IMAGE_TYPE_ERROR

    @pytest.mark.parametrize(
        "data",
        [
            b"RIFF\x00\x00\x00\x00WEBPVP8 ",
            b"<svg xmlns='http://www.w3.org/2000/svg'/>",
            b"BM\x00\x00",
            b"GIF88a\x00\x00",
        ],
        ids=["webp", "svg", "bmp", "gif88"],
    )
    def test_other_formats_rejected(self, data):
        assert isinstance(validate_image(data, len(data)), Rejected)

    def test_partial_png_signature_rejected(self):
        data = PNG[:7]
        assert isinstance(validate_image(data, len(data)), Rejected)

    def test_empty_head_rejected(self):
        assert isinstance(validate_image(b"", 10), Rejected)

    def test_truncated_file_with_valid_magic_passes(self):
        """Only the prefix is sniffed; the body is never decoded."""
        data = PNG + b"garbage"
        assert isinstance(validate_image(data, len(data)), Accepted)

    def test_bytes_past_prefix_are_ignored(self):
        data = b"\x00" * SNIFF_BYTES + PNG
        assert isinstance(validate_image(data, len(data)), Rejected)

    def test_accepts_bytearray_and_memoryview(self):
        assert isinstance(validate_image(bytearray(PNG), 8), Accepted)
        assert isinstance(validate_image(memoryview(PNG), 8), Accepted)


class TestSize:
    def test_exact_limit_accepted(self):
        assert isinstance(validate_image(PNG, MAX), Accepted)

    def test_one_byte_over_rejected_for_size(self):
        result = validate_image(PNG, MAX + 1)
        assert result == Rejected(
            reason="File too large (max 5 MB)",
            code=ErrorCode.IMAGE_SIZE_ERROR,
        )

    def test_size_checked_before_signature(self):
        result = validate_image(b"\x00" * 12, MAX + 1)
        assert isinstance(result, Rejected)
        assert result.code == ErrorCode.IMAGE_SIZE_ERROR

    def test_full_oversized_png_buffer_rejected_for_size(self):
        data = PNG + b"\x00" * (MAX + 1 - len(PNG))
        assert len(data) == MAX + 1
        result = validate_image(data, len(data))
        assert isinstance(result, Rejected)
        assert result.code == ErrorCode.IMAGE_SIZE_ERROR

    def test_custom_limit(self):
        result = validate_image(PNG, 2049, max_bytes=2048)
        assert result == Rejected(
            reason="File too large (max 2 KB)",
            code=ErrorCode.IMAGE_SIZE_ERROR,
        )


class TestFormatLimit:
    @pytest.mark.parametrize(
        ("limit", "expected"),
        [
            (5 * 1024 * 1024, "5 MB"),
            (10 * 1024 * 1024, "10 MB"),
            (512 * 1024, "512 KB"),
            (1000, "1000 bytes"),
        ],
    )
    def test_rendering(self, limit, expected):
        assert _format_limit(limit) == expected
