"""Display enumeration: list connected DRM connectors and decode their EDID."""

from __future__ import annotations

import logging
import re
from pathlib import Path

import pyudev

from .edid import EdidError, parse_edid
from .errors import EnumerationError
from .models import AttachedDisplay

log = logging.getLogger(__name__)

DRM_CLASS_DIR = Path("/sys/class/drm")

# Connector nodes are named "card<N>-<connector>", e.g. "card0-DP-1"
_CONNECTOR_RE = re.compile(r"^card\d+-(.+)$")


def connector_name(sys_name: str) -> str | None:
    """Strip the ``cardN-`` prefix from a DRM node name, or None for non-connectors."""
    m = _CONNECTOR_RE.match(sys_name)
    return m.group(1) if m else None


def display_from_edid(connector: str, blob: bytes) -> AttachedDisplay:
    """Build an AttachedDisplay from a raw EDID blob."""
    if not blob:
        log.warning("Connected output %s has no EDID, matching by connector only", connector)
        return AttachedDisplay(connector=connector)
    try:
        edid = parse_edid(blob)
    except EdidError as e:
        raise EnumerationError(f"cannot decode EDID of {connector}: {e}") from e
    return AttachedDisplay(
        connector=connector,
        vendor=edid.vendor,
        product_code=edid.product_code,
        serial_code=edid.serial_code,
        product_text=edid.product_text,
        serial_text=edid.serial_text,
    )


class SysfsEnumerator:
    """Read connector status and EDID straight from /sys/class/drm."""

    def __init__(self, root: Path = DRM_CLASS_DIR) -> None:
        self._root = root

    def list_attached_displays(self) -> list[AttachedDisplay]:
        try:
            entries = sorted(self._root.iterdir())
        except OSError as e:
            raise EnumerationError(f"cannot list {self._root}: {e}") from e

        displays: list[AttachedDisplay] = []
        for entry in entries:
            name = connector_name(entry.name)
            if name is None:
                continue
            try:
                status = (entry / "status").read_text().strip()
                if status != "connected":
                    continue
                blob = (entry / "edid").read_bytes()
            except OSError as e:
                raise EnumerationError(f"cannot read {entry}: {e}") from e
            displays.append(display_from_edid(name, blob))
        return displays


class UdevEnumerator:
    """Enumerate DRM connectors through the udev database."""

    def __init__(self) -> None:
        self._context = pyudev.Context()

    def list_attached_displays(self) -> list[AttachedDisplay]:
        displays: list[AttachedDisplay] = []
        try:
            devices = sorted(
                self._context.list_devices(subsystem="drm"),
                key=lambda d: d.sys_name,
            )
            for device in devices:
                name = connector_name(device.sys_name)
                if name is None:
                    continue
                status = device.attributes.get("status", b"").decode(errors="replace").strip()
                if status != "connected":
                    continue
                # udev truncates binary attributes at the first NUL, read the node directly
                blob = (Path(device.sys_path) / "edid").read_bytes()
                displays.append(display_from_edid(name, blob))
        except OSError as e:
            raise EnumerationError(f"cannot enumerate DRM connectors: {e}") from e
        return displays
