"""
Binary encoders for the non-text block instructions (raster logo, barcode)
"""

import random
import string
import struct
import logging
from typing import Optional

from .commands import ESCPOSCommands
from .config import PrinterProfile

logger = logging.getLogger(__name__)

MAX_BARCODE_PAYLOAD = 255
TRANSACTION_PREFIX = 'ANT-'
TRANSACTION_ALPHABET = string.digits + string.ascii_uppercase


class EncoderError(ValueError):
    """Raised when a block instruction cannot be encoded"""


def raster_header(width_bytes: int, height: int) -> bytes:
    """GS v 0 header: mode byte then little-endian width (bytes) and height (dots)"""
    return struct.pack('<3sBHH', ESCPOSCommands.RASTER_IMAGE,
                       ESCPOSCommands.RASTER_MODE_NORMAL, width_bytes, height)


def _logo_pixel(x: int, y: int, width: int, height: int) -> bool:
    dx = x - width // 2
    dy = y - height // 2
    in_bar = abs(dx) < width // 12 and abs(dy) < height // 3
    in_disc = dx * dx + dy * dy < (height // 8) ** 2
    return in_bar or in_disc


def raster_logo(profile: Optional[PrinterProfile] = None) -> bytes:
    """Build the procedural monochrome logo as a GS v 0 raster command

    Pixels are packed eight to a byte, most significant bit first, one
    row after another.
    """
    profile = profile or PrinterProfile()
    width, height = profile.dot_width, profile.logo_height

    if width <= 0 or height <= 0:
        raise EncoderError(f"Raster dimensions must be positive, got {width}x{height}")
    if width % 8:
        raise EncoderError(f"Raster width {width} is not a multiple of 8 dots")

    width_bytes = width // 8
    if width_bytes > 0xFFFF or height > 0xFFFF:
        raise EncoderError(f"Raster dimensions {width}x{height} exceed 16-bit header fields")

    raster = bytearray(width_bytes * height)
    for y in range(height):
        row = y * width_bytes
        for x_byte in range(width_bytes):
            packed = 0
            for bit in range(8):
                if _logo_pixel(x_byte * 8 + bit, y, width, height):
                    packed |= 0x80 >> bit
            raster[row + x_byte] = packed

    logger.debug(f"Rasterized logo {width}x{height} ({len(raster)} bytes)")
    return raster_header(width_bytes, height) + bytes(raster)


def code128(payload: str) -> bytes:
    """Build a GS k barcode command with a one-byte length prefix

    Payloads longer than 255 bytes are rejected rather than truncated.
    """
    try:
        raw = payload.encode('ascii')
    except UnicodeEncodeError as e:
        raise EncoderError(f"Barcode payload must be ASCII: {e}") from e

    if not raw:
        raise EncoderError("Barcode payload is empty")
    if len(raw) > MAX_BARCODE_PAYLOAD:
        raise EncoderError(
            f"Barcode payload is {len(raw)} bytes (max {MAX_BARCODE_PAYLOAD})")

    header = ESCPOSCommands.BARCODE + bytes([ESCPOSCommands.BARCODE_CODE128, len(raw)])
    return header + raw


def make_transaction_id(rng: Optional[random.Random] = None, length: int = 6) -> str:
    """Synthesize a decorative transaction id such as ANT-4KQ9ZD"""
    rng = rng or random.Random()
    suffix = ''.join(rng.choice(TRANSACTION_ALPHABET) for _ in range(length))
    return f"{TRANSACTION_PREFIX}{suffix}"
