"""Hyprland IPC communication via Unix sockets."""

from __future__ import annotations

import logging
import socket
from pathlib import Path

from .errors import ApplyError
from .models import Command, OutputCommand
from .utils import hyprland_runtime_dir

log = logging.getLogger(__name__)


class HyprlandIPC:
    """Apply output and workspace commands through Hyprland keywords."""

    name = "Hyprland"

    def __init__(self, runtime: Path | None = None) -> None:
        self._runtime = runtime or hyprland_runtime_dir()

    @property
    def command_socket(self) -> Path:
        return self._runtime / ".socket.sock"

    def _send(self, payload: bytes) -> bytes:
        """Send a raw command to the Hyprland command socket and return the response."""
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.connect(str(self.command_socket))
            sock.sendall(payload)
            chunks: list[bytes] = []
            while True:
                chunk = sock.recv(8192)
                if not chunk:
                    break
                chunks.append(chunk)
            return b"".join(chunks)
        finally:
            sock.close()

    def command(self, cmd: str) -> str:
        """Send a command and return the text response."""
        return self._send(cmd.encode()).decode(errors="replace")

    def keyword(self, key: str, value: str) -> str:
        """Send a keyword command (runtime config change)."""
        return self.command(f"keyword {key} {value}")

    def execute(self, command: Command) -> None:
        """Run one compositor command, raising ApplyError if Hyprland rejects it."""
        key = "monitor" if isinstance(command, OutputCommand) else "workspace"
        value = command.to_hyprland()
        log.debug("hyprland: keyword %s %s", key, value)
        try:
            reply = self.keyword(key, value).strip()
        except OSError as e:
            raise ApplyError(f"keyword {key} {value}: cannot reach Hyprland: {e}") from e
        if reply != "ok":
            raise ApplyError(f"keyword {key} {value}: {reply or 'no reply'}")
