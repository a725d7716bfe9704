"""Hardware change sources: udev DRM hotplug, lid switch, control socket.

Every source only ever pushes payload-free signals into a ChangeChannel; none
of them reads display or profile state.
"""

from __future__ import annotations

import asyncio
import logging
import socket
import threading
from pathlib import Path

import pyudev

from .errors import StartupConfigError
from .utils import control_socket_path

log = logging.getLogger(__name__)

RELOAD_REQUEST = b"reload\n"
OK_REPLY = b"ok\n"


class ChangeChannel:
    """Queue of "re-evaluate now" signals consumed by the control loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop or asyncio.get_running_loop()
        self._queue: asyncio.Queue[None] = asyncio.Queue()

    def notify(self) -> None:
        """Signal a change; safe to call from any thread."""
        self._loop.call_soon_threadsafe(self._queue.put_nowait, None)

    async def wait(self) -> None:
        """Block until at least one change signal is pending."""
        await self._queue.get()

    def drain(self) -> int:
        """Discard pending signals, returning how many were coalesced."""
        drained = 0
        while True:
            try:
                self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return drained
            drained += 1


# ── udev ────────────────────────────────────────────────────────────────

class UdevNotifier:
    """Listen for udev DRM events (connector hotplug)."""

    name = "udev"

    def __init__(self) -> None:
        self._monitor: pyudev.Monitor | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    async def start(self, channel: ChangeChannel) -> None:
        context = pyudev.Context()
        monitor = pyudev.Monitor.from_netlink(context)
        monitor.filter_by(subsystem="drm")
        monitor.start()

        def on_readable() -> None:
            device = monitor.poll(timeout=0)
            if device and device.action in ("change", "add", "remove"):
                log.info("udev DRM event: %s %s", device.action, device.device_path)
                channel.notify()

        self._loop = asyncio.get_running_loop()
        self._loop.add_reader(monitor.fileno(), on_readable)
        self._monitor = monitor
        log.info("Listening for udev DRM events")

    async def stop(self) -> None:
        if self._monitor is not None and self._loop is not None:
            self._loop.remove_reader(self._monitor.fileno())
            self._monitor = None


# ── Lid switch via UPower D-Bus ─────────────────────────────────────────

class LidNotifier:
    """Signal a change whenever UPower reports the lid opening or closing."""

    name = "lid"

    def __init__(self) -> None:
        self._mainloop = None
        self._thread: threading.Thread | None = None

    async def start(self, channel: ChangeChannel) -> None:
        try:
            import gi
            gi.require_version("Gio", "2.0")
            from gi.repository import Gio, GLib
        except (ImportError, ValueError) as e:
            raise StartupConfigError(f"lid notifier needs PyGObject with Gio: {e}") from e

        context = GLib.MainContext.new()
        self._mainloop = GLib.MainLoop.new(context, False)
        mainloop = self._mainloop

        def _run() -> None:
            context.push_thread_default()
            try:
                bus = Gio.bus_get_sync(Gio.BusType.SYSTEM)
                props = ("org.freedesktop.UPower", "/org/freedesktop/UPower",
                         "org.freedesktop.DBus.Properties", "Get")

                def _get(prop: str) -> bool:
                    r = bus.call_sync(*props, GLib.Variant("(ss)", ("org.freedesktop.UPower", prop)),
                                      GLib.VariantType("(v)"), Gio.DBusCallFlags.NONE, -1, None)
                    return r.get_child_value(0).get_variant().get_boolean()

                if not _get("LidIsPresent"):
                    log.info("No lid detected, lid monitoring disabled")
                    return

                log.info("Initial lid state: %s", "closed" if _get("LidIsClosed") else "open")

                def _on_signal(_conn, _sender, _path, _iface, _signal, params, _ud):
                    if params.get_child_value(0).get_string() != "org.freedesktop.UPower":
                        return
                    lid_val = params.get_child_value(1).lookup_value("LidIsClosed", GLib.VariantType("b"))
                    if lid_val is None:
                        return
                    log.info("Lid state changed: %s", "closed" if lid_val.get_boolean() else "open")
                    channel.notify()

                bus.signal_subscribe("org.freedesktop.UPower", "org.freedesktop.DBus.Properties",
                                     "PropertiesChanged", "/org/freedesktop/UPower",
                                     None, Gio.DBusSignalFlags.NONE, _on_signal, None)
                mainloop.run()
            except GLib.Error as e:
                log.warning("Lid monitor failed: %s", e.message)
            finally:
                context.pop_thread_default()

        self._thread = threading.Thread(target=_run, daemon=True, name="lid-monitor")
        self._thread.start()

    async def stop(self) -> None:
        if self._mainloop is not None:
            self._mainloop.quit()
            self._mainloop = None


# ── Control socket ──────────────────────────────────────────────────────

class ControlSocketNotifier:
    """Unix socket accepting ``reload`` requests from monswitchctl."""

    name = "socket"

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or control_socket_path()
        self._server: asyncio.AbstractServer | None = None
        self._channel: ChangeChannel | None = None

    def _claim_path(self) -> None:
        if not self.path.exists():
            return
        probe = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            probe.connect(str(self.path))
        except (ConnectionRefusedError, FileNotFoundError):
            log.info("Removing stale control socket %s", self.path)
            self.path.unlink(missing_ok=True)
            return
        finally:
            probe.close()
        raise StartupConfigError(
            f"control socket {self.path} is in use. Is the monswitch daemon already running?"
        )

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        try:
            request = await reader.readline()
            if request.strip() == RELOAD_REQUEST.strip():
                log.info("Reload requested over control socket")
                self._channel.notify()
                writer.write(OK_REPLY)
            else:
                writer.write(b"error: unknown command\n")
            await writer.drain()
        except ConnectionError as e:
            log.warning("Control socket client error: %s", e)
        finally:
            writer.close()

    async def start(self, channel: ChangeChannel) -> None:
        self._channel = channel
        self._claim_path()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._server = await asyncio.start_unix_server(self._handle, path=str(self.path))
        log.info("Control socket listening on %s", self.path)

    async def stop(self) -> None:
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
            self.path.unlink(missing_ok=True)


def request_reload(path: Path | None = None, timeout: float = 5.0) -> str:
    """Ask a running daemon to re-evaluate profiles; return its reply."""
    path = path or control_socket_path()
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    sock.settimeout(timeout)
    try:
        sock.connect(str(path))
        sock.sendall(RELOAD_REQUEST)
        chunks: list[bytes] = []
        while True:
            chunk = sock.recv(1024)
            if not chunk:
                break
            chunks.append(chunk)
            if b"\n" in chunk:
                break
        return b"".join(chunks).decode(errors="replace").strip()
    finally:
        sock.close()
