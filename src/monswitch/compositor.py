"""Compositor control interface and the stdout (dry run) implementation."""

from __future__ import annotations

import sys
from typing import Protocol, TextIO

from .models import Command


class CompositorControl(Protocol):
    name: str

    def execute(self, command: Command) -> None:
        """Apply one command, raising ApplyError if it is rejected."""


class PrintControl:
    """Write commands to a stream instead of applying them."""

    name = "print"

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def execute(self, command: Command) -> None:
        stream = self._stream or sys.stdout
        stream.write(command.to_sway() + "\n")
        stream.flush()
