"""Sway IPC communication via binary i3-ipc protocol."""

from __future__ import annotations

import json
import logging
import os
import socket
import struct

from .errors import ApplyError
from .models import Command

log = logging.getLogger(__name__)

# i3-ipc protocol constants
_MAGIC = b"i3-ipc"
_HEADER_SIZE = 14  # 6 (magic) + 4 (payload_len) + 4 (type)
_HEADER_FMT = f"={len(_MAGIC)}sII"

# Message types
IPC_COMMAND = 0


def _recv_exactly(sock: socket.socket, n: int) -> bytes:
    """Read exactly n bytes from a socket."""
    buf = bytearray()
    while len(buf) < n:
        chunk = sock.recv(n - len(buf))
        if not chunk:
            raise ConnectionError("Socket closed while reading")
        buf.extend(chunk)
    return bytes(buf)


class SwayIPC:
    """Send output and workspace commands to Sway over the i3-ipc socket."""

    name = "Sway"

    def __init__(self, socket_path: str | None = None) -> None:
        self._socket_path = socket_path or os.environ.get("SWAYSOCK", "")

    def _send(self, msg_type: int, payload: str = "") -> dict | list:
        """Send a message and return the parsed JSON response."""
        payload_bytes = payload.encode()
        header = struct.pack(_HEADER_FMT, _MAGIC, len(payload_bytes), msg_type)

        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.connect(self._socket_path)
            sock.sendall(header + payload_bytes)

            # Read response header
            resp_header = _recv_exactly(sock, _HEADER_SIZE)
            magic, resp_len, _ = struct.unpack(_HEADER_FMT, resp_header)
            if magic != _MAGIC:
                raise ConnectionError("Invalid i3-ipc reply header")

            # Read response payload
            resp_payload = _recv_exactly(sock, resp_len)
            return json.loads(resp_payload.decode())
        finally:
            sock.close()

    def run_command(self, cmd: str) -> list[dict]:
        """Run a sway command and return the per-command results."""
        return self._send(IPC_COMMAND, cmd)

    def execute(self, command: Command) -> None:
        """Run one compositor command, raising ApplyError if sway rejects it."""
        line = command.to_sway()
        log.debug("sway: %s", line)
        try:
            results = self.run_command(line)
        except (OSError, ValueError) as e:
            raise ApplyError(f"{line}: cannot reach sway: {e}") from e

        for result in results:
            if not result.get("success", False):
                raise ApplyError(f"{line}: {result.get('error', 'command failed')}")
