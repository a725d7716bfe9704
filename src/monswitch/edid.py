"""Minimal EDID decoding: manufacturer id, product/serial codes and text descriptors."""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass

log = logging.getLogger(__name__)

EDID_HEADER = b"\x00\xff\xff\xff\xff\xff\xff\x00"
EDID_BLOCK_SIZE = 128

# Base block layout
_ID_FMT = ">H"           # bytes 8-9: packed manufacturer letters, big-endian
_CODES_FMT = "<HI"       # bytes 10-15: product code, serial number, little-endian
_DESCRIPTOR_OFFSETS = (54, 72, 90, 108)
_DESCRIPTOR_SIZE = 18

# Display descriptor tags
TAG_SERIAL_TEXT = 0xFF
TAG_PRODUCT_NAME = 0xFC


class EdidError(ValueError):
    """Raised when a blob is not a valid EDID base block."""


@dataclass(frozen=True)
class Edid:
    vendor: str
    product_code: int
    serial_code: int
    product_text: str | None = None
    serial_text: str | None = None


def _vendor_id(raw: int) -> str:
    """Unpack the three 5-bit manufacturer letters; out-of-range values become '?'."""
    letters = ((raw >> 10) & 0x1F, (raw >> 5) & 0x1F, raw & 0x1F)
    if not all(1 <= v <= 26 for v in letters):
        log.warning("EDID manufacturer id 0x%04X is not a PNP id", raw)
    return "".join(chr(ord("A") + v - 1) if 1 <= v <= 26 else "?" for v in letters)


def _descriptor_text(desc: bytes) -> str:
    text = desc[5:].split(b"\x0a", 1)[0]
    return text.decode("cp437", errors="replace").rstrip(" ")


def parse_edid(blob: bytes) -> Edid:
    """Decode the identity fields of an EDID base block."""
    if len(blob) < EDID_BLOCK_SIZE:
        raise EdidError(f"EDID too short: {len(blob)} bytes")
    if blob[:8] != EDID_HEADER:
        raise EdidError("bad EDID header")

    (raw_id,) = struct.unpack_from(_ID_FMT, blob, 8)
    product_code, serial_code = struct.unpack_from(_CODES_FMT, blob, 10)

    product_text: str | None = None
    serial_text: str | None = None
    for offset in _DESCRIPTOR_OFFSETS:
        desc = blob[offset:offset + _DESCRIPTOR_SIZE]
        # Display descriptors start with a zero pixel clock
        if desc[0:2] != b"\x00\x00":
            continue
        tag = desc[3]
        if tag == TAG_PRODUCT_NAME and product_text is None:
            product_text = _descriptor_text(desc)
        elif tag == TAG_SERIAL_TEXT and serial_text is None:
            serial_text = _descriptor_text(desc)

    return Edid(
        vendor=_vendor_id(raw_id),
        product_code=product_code,
        serial_code=serial_code,
        product_text=product_text,
        serial_text=serial_text,
    )
