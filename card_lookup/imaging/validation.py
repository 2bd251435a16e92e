"""Structural check of a capture payload before it is sent to the OCR service."""

import base64
import binascii
import re
import struct

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
# Signature (8) + IHDR length/type (8) + width (4) + height (4)
MIN_HEADER_BYTES = 24
EXPECTED_WIDTH = 250
EXPECTED_HEIGHT = 120

_DATA_URL_PREFIX = re.compile(r"^data:image/\w+;base64,")


def strip_data_url(payload: str) -> str:
    return _DATA_URL_PREFIX.sub("", payload.strip())


def decode_payload(payload: str | bytes) -> bytes:
    """Return raw bytes for a base64 string (data URL prefix allowed) or pass bytes through."""
    if isinstance(payload, (bytes, bytearray)):
        return bytes(payload)
    return base64.b64decode(strip_data_url(payload))


def read_png_size(data: bytes) -> tuple[int, int] | None:
    """Width and height from the IHDR header, or None when the header is not a PNG header."""
    if len(data) < MIN_HEADER_BYTES or not data.startswith(PNG_SIGNATURE):
        return None
    width, height = struct.unpack(">II", data[16:24])
    return width, height


def validate_capture(
    payload: str | bytes | None,
    expected_width: int = EXPECTED_WIDTH,
    expected_height: int = EXPECTED_HEIGHT,
) -> bool:
    """True only for a PNG whose header dimensions equal the expected size. Never raises."""
    if not payload or not isinstance(payload, (str, bytes, bytearray)):
        return False
    try:
        data = decode_payload(payload)
    except (binascii.Error, ValueError, TypeError):
        return False
    size = read_png_size(data)
    if size is None:
        return False
    return size == (expected_width, expected_height)
