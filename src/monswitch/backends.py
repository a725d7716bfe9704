"""Backend selection: map configured kinds to enumerator, compositor and notifier objects."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Protocol

from .compositor import CompositorControl, PrintControl
from .config import CompositorKind, EnumeratorKind, NotifierKind
from .enumerator import SysfsEnumerator, UdevEnumerator
from .errors import StartupConfigError
from .hyprland import HyprlandIPC
from .models import AttachedDisplay
from .notifier import ChangeChannel, ControlSocketNotifier, LidNotifier, UdevNotifier
from .sway import SwayIPC
from .utils import runtime_dir

log = logging.getLogger(__name__)


class DisplayEnumerator(Protocol):
    def list_attached_displays(self) -> list[AttachedDisplay]:
        """Return the connected displays, raising EnumerationError on failure."""


class ChangeSource(Protocol):
    name: str

    async def start(self, channel: ChangeChannel) -> None:
        """Begin delivering change signals into *channel*."""

    async def stop(self) -> None:
        """Stop delivering signals and release resources."""


def create_enumerator(kind: EnumeratorKind) -> DisplayEnumerator:
    if kind == EnumeratorKind.SYSFS:
        return SysfsEnumerator()
    try:
        return UdevEnumerator()
    except ImportError as e:
        # pyudev loads libudev lazily when the first Context is created
        raise StartupConfigError(f"udev enumerator unavailable: {e}") from e


def detect_compositor() -> HyprlandIPC | SwayIPC | None:
    """Auto-detect the running compositor.

    First checks environment variables, then probes XDG_RUNTIME_DIR
    for compositor sockets (handles race condition at login when env vars
    are not yet exported to the systemd user manager).
    """
    if os.environ.get("HYPRLAND_INSTANCE_SIGNATURE"):
        return HyprlandIPC()
    if os.environ.get("SWAYSOCK"):
        return SwayIPC()

    xdg_path = runtime_dir()

    # Hyprland: look for $XDG_RUNTIME_DIR/hypr/<signature>/.socket.sock
    hypr_dir = xdg_path / "hypr"
    if hypr_dir.is_dir():
        for child in hypr_dir.iterdir():
            if child.is_dir() and (child / ".socket.sock").exists():
                log.info("Found Hyprland socket: %s", child.name)
                return HyprlandIPC(runtime=child)

    # Sway: look for $XDG_RUNTIME_DIR/sway-ipc.*.sock
    for sock in xdg_path.glob("sway-ipc.*.sock"):
        if sock.is_socket():
            log.info("Found Sway socket: %s", sock.name)
            return SwayIPC(socket_path=str(sock))

    return None


def create_compositor(kind: CompositorKind) -> CompositorControl:
    if kind == CompositorKind.PRINT:
        return PrintControl()
    if kind == CompositorKind.SWAY:
        return SwayIPC()
    if kind == CompositorKind.HYPRLAND:
        return HyprlandIPC()

    ipc = detect_compositor()
    if ipc is None:
        raise StartupConfigError(
            "no supported compositor detected; pass --compositor sway|hyprland|print"
        )
    log.info("Detected %s compositor", ipc.name)
    return ipc


def create_notifiers(
    kinds: tuple[NotifierKind, ...],
    *,
    socket_path: Path | None = None,
) -> list[ChangeSource]:
    notifiers: list[ChangeSource] = []
    for kind in kinds:
        if kind == NotifierKind.UDEV:
            notifiers.append(UdevNotifier())
        elif kind == NotifierKind.LID:
            notifiers.append(LidNotifier())
        elif kind == NotifierKind.SOCKET:
            notifiers.append(ControlSocketNotifier(socket_path))
    return notifiers
