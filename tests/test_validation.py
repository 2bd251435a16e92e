"""Tests for capture payload validation."""

import base64
import struct

import pytest

from card_lookup.imaging.validation import read_png_size, validate_capture
from tests.conftest import png_b64, png_bytes

pytestmark = [pytest.mark.fast]


def test_valid_png_with_expected_size_passes():
    assert validate_capture(png_b64(250, 120)) is True


def test_data_url_prefix_is_accepted():
    assert validate_capture("data:image/png;base64," + png_b64(250, 120)) is True


def test_raw_bytes_are_accepted():
    assert validate_capture(png_bytes(250, 120)) is True


def test_custom_expected_dimensions():
    assert validate_capture(png_b64(100, 40), expected_width=100, expected_height=40) is True
    assert validate_capture(png_b64(100, 40)) is False


@pytest.mark.parametrize("size", [(249, 120), (250, 119), (120, 250), (500, 240)])
def test_wrong_dimensions_fail(size):
    assert validate_capture(png_b64(*size)) is False


def test_payload_shorter_than_header_fails():
    short = base64.b64encode(png_bytes(250, 120)[:23]).decode()
    assert validate_capture(short) is False


def test_wrong_signature_fails():
    data = bytearray(png_bytes(250, 120))
    data[1] = ord("J")
    assert validate_capture(bytes(data)) is False


def test_jpeg_header_fails():
    fake_jpeg = b"\xff\xd8\xff\xe0" + b"\x00" * 12 + struct.pack(">II", 250, 120)
    assert validate_capture(fake_jpeg) is False


def test_undecodable_input_returns_false():
    assert validate_capture("notvalidbase64") is False
    assert validate_capture("%%%%") is False
    assert validate_capture("") is False
    assert validate_capture(None) is False


def test_header_dimensions_read_from_fixed_offsets():
    """Width and height come from IHDR bytes 16-24 even when the rest of the file is junk."""
    header = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + struct.pack(">II", 250, 120)
    assert read_png_size(header) == (250, 120)
    assert validate_capture(header + b"garbage") is True


@pytest.mark.parametrize("payload", [12345, ["iVBORw0KGgo="], {"image": "x"}])
def test_non_text_payload_returns_false(payload):
    assert validate_capture(payload) is False
