"""Loader for GNOME ``monitors.xml`` (version 1) configurations."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path

from .errors import ParseError, ProfileLoadError
from .models import DisplaySpec, Profile, Transform

# rotation → (transform, flipped transform)
_ROTATIONS: dict[str, tuple[Transform, Transform]] = {
    "normal": (Transform.NORMAL, Transform.FLIPPED),
    "right": (Transform.ROTATE_90, Transform.FLIPPED_90),
    "inverted": (Transform.ROTATE_180, Transform.FLIPPED_180),
    "upside_down": (Transform.ROTATE_180, Transform.FLIPPED_180),
    "left": (Transform.ROTATE_270, Transform.FLIPPED_270),
}


def _text(elem: ET.Element, tag: str) -> str:
    child = elem.find(tag)
    if child is None or child.text is None:
        return ""
    return child.text.strip()


def _yes(elem: ET.Element, tag: str) -> bool:
    return _text(elem, tag) == "yes"


def _number(elem: ET.Element, tag: str, cast, source: str | None):
    raw = _text(elem, tag)
    if not raw:
        return cast(0)
    try:
        return cast(raw)
    except ValueError:
        raise ParseError(
            f"invalid <{tag}> value '{raw}'", source=source,
        ) from None


def _parse_output(elem: ET.Element, source: str | None) -> DisplaySpec:
    spec = DisplaySpec(
        connector=elem.get("name", ""),
        vendor=_text(elem, "vendor"),
        product=_text(elem, "product"),
        serial=_text(elem, "serial"),
        width=_number(elem, "width", int, source),
        height=_number(elem, "height", int, source),
        refresh_rate=_number(elem, "rate", float, source),
        x=_number(elem, "x", int, source),
        y=_number(elem, "y", int, source),
        primary=_yes(elem, "primary"),
    )

    plain, flipped = _ROTATIONS.get(_text(elem, "rotation"), _ROTATIONS["normal"])
    spec.transform = flipped if _yes(elem, "reflect_x") or _yes(elem, "reflect_y") else plain

    # Outputs stored without a mode are switched off
    spec.enabled = spec.width != 0 and spec.height != 0
    return spec


def parse_monitors_xml(text: str, *, source: str | None = None) -> list[Profile]:
    """Parse the text of a ``monitors.xml`` document into profiles."""
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        line, column = e.position
        raise ParseError(
            f"malformed XML: {e}", line=line, column=column + 1, source=source,
        ) from None

    if root.tag != "monitors":
        raise ParseError(
            f"expected <monitors> root element, got <{root.tag}>",
            source=source,
        )
    version = root.get("version", "1")
    if version != "1":
        raise ParseError(
            f"unsupported monitors.xml version {version}",
            source=source,
        )

    profiles: list[Profile] = []
    for index, conf in enumerate(root.findall("configuration"), start=1):
        # <clone>yes</clone> configurations are read as independent outputs
        outputs = [_parse_output(o, source) for o in conf.findall("output")]
        profiles.append(Profile(outputs=outputs, index=index))
    return profiles


def load_monitors_xml(path: Path) -> list[Profile]:
    """Read and parse a ``monitors.xml`` file."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ProfileLoadError(f"cannot read profiles from {path}: {e}") from e
    return parse_monitors_xml(text, source=str(path))
