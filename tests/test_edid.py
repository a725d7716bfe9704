import pytest

from monswitch.edid import EdidError, parse_edid


def test_identity_fields(make_edid) -> None:
    edid = parse_edid(make_edid(vendor="DEL", product=0x40B3, serial=0x12345678, serial_text="7MT0174S0TWL"))
    assert edid.vendor == "DEL"
    assert edid.product_code == 0x40B3
    assert edid.serial_code == 0x12345678
    assert edid.product_text == "DELL U2415"
    assert edid.serial_text == "7MT0174S0TWL"


def test_missing_descriptors_are_none(make_edid) -> None:
    edid = parse_edid(make_edid(vendor="BOE", name=None))
    assert edid.vendor == "BOE"
    assert edid.product_text is None
    assert edid.serial_text is None


def test_full_width_descriptor_text(make_edid) -> None:
    edid = parse_edid(make_edid(name="ABCDEFGHIJKLM"))
    assert edid.product_text == "ABCDEFGHIJKLM"


def test_extension_blocks_are_ignored(make_edid) -> None:
    edid = parse_edid(make_edid() + bytes(128))
    assert edid.vendor == "DEL"


@pytest.mark.parametrize(
    "blob",
    [
        b"",
        b"\x00\xff\xff\xff\xff\xff\xff\x00",
        bytes(128),
    ],
)
def test_invalid_blobs(blob: bytes) -> None:
    with pytest.raises(EdidError):
        parse_edid(blob)


def test_zero_manufacturer_id_still_decodes(make_edid, caplog) -> None:
    blob = bytearray(make_edid())
    blob[8:10] = b"\x00\x00"
    edid = parse_edid(bytes(blob))
    assert edid.vendor == "???"
    assert edid.product_code == 0x40B3
    assert edid.product_text == "DELL U2415"
    assert "not a PNP id" in caplog.text
