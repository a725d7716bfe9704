from __future__ import annotations

import struct

import pytest

from monswitch.edid import EDID_HEADER


def _descriptor(tag: int, text: str) -> bytes:
    data = text.encode("ascii")[:13]
    if len(data) < 13:
        data += b"\n" + b" " * (12 - len(data))
    return bytes([0, 0, 0, tag, 0]) + data


def build_edid(
    vendor: str = "DEL",
    product: int = 0x40B3,
    serial: int = 0x12345678,
    name: str | None = "DELL U2415",
    serial_text: str | None = None,
) -> bytes:
    blob = bytearray(128)
    blob[0:8] = EDID_HEADER
    a, b, c = (ord(ch) - ord("A") + 1 for ch in vendor)
    struct.pack_into(">H", blob, 8, (a << 10) | (b << 5) | c)
    struct.pack_into("<HI", blob, 10, product, serial)
    # Detailed timing descriptor (non-zero pixel clock)
    blob[54:56] = b"\x01\x1d"
    if name is not None:
        blob[72:90] = _descriptor(0xFC, name)
    if serial_text is not None:
        blob[90:108] = _descriptor(0xFF, serial_text)
    return bytes(blob)


@pytest.fixture
def make_edid():
    return build_edid
