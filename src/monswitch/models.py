"""Data models: AttachedDisplay, DisplaySpec, Profile and compositor commands."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


# ── Enums ────────────────────────────────────────────────────────────────

class Transform(Enum):
    NORMAL = 0
    ROTATE_90 = 1
    ROTATE_180 = 2
    ROTATE_270 = 3
    FLIPPED = 4
    FLIPPED_90 = 5
    FLIPPED_180 = 6
    FLIPPED_270 = 7

    @property
    def token(self) -> str:
        return _TRANSFORM_TOKENS[self.value]

    @property
    def is_rotated(self) -> bool:
        """True if width/height are swapped (90° or 270° variants)."""
        return self.value in (1, 3, 5, 7)

    @classmethod
    def from_token(cls, token: str) -> Transform:
        """Map a profile transform token to a Transform.

        Unknown tokens fall back to NORMAL instead of failing.
        """
        return cls(_TRANSFORM_TOKENS_INV.get(token, 0))


# Profile/Sway transform strings match WL_OUTPUT_TRANSFORM enum values
_TRANSFORM_TOKENS: dict[int, str] = {
    0: "normal",
    1: "90",
    2: "180",
    3: "270",
    4: "flipped",
    5: "flipped-90",
    6: "flipped-180",
    7: "flipped-270",
}

_TRANSFORM_TOKENS_INV: dict[str, int] = {v: k for k, v in _TRANSFORM_TOKENS.items()}


# ── AttachedDisplay ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class AttachedDisplay:
    # Identity (from the EDID block of a connected connector)
    connector: str                  # e.g. "DP-1", "HDMI-A-1"
    vendor: str = ""                # 3-letter PNP id, e.g. "DEL"
    product_code: int = 0           # 16-bit
    serial_code: int = 0            # 32-bit
    product_text: str | None = None
    serial_text: str | None = None

    @property
    def product(self) -> str:
        """Human-readable product, falling back to the hex code."""
        if self.product_text is not None:
            return self.product_text
        return f"0x{self.product_code:X}"

    @property
    def serial(self) -> str:
        """Human-readable serial, falling back to the hex code."""
        if self.serial_text is not None:
            return self.serial_text
        return f"0x{self.serial_code:X}"

    def __str__(self) -> str:
        return f"output {self.connector} vendor {self.vendor} product {self.product} serial {self.serial}"


# ── DisplaySpec ──────────────────────────────────────────────────────────

@dataclass
class DisplaySpec:
    # Identity patterns ("" = wildcard)
    connector: str = ""
    vendor: str = ""
    product: str = ""
    serial: str = ""

    # State / geometry (0 = unset)
    enabled: bool = True
    width: int = 0
    height: int = 0
    refresh_rate: float = 0.0
    x: int = 0
    y: int = 0
    transform: Transform = Transform.NORMAL
    scale: float = 0.0
    primary: bool = False

    def describe(self) -> str:
        parts = [f"output {self.connector or '*'}"]
        for key in ("vendor", "product", "serial"):
            value = getattr(self, key)
            if value:
                parts.append(f"{key} {value}")
        return " ".join(parts)


# ── Profile ──────────────────────────────────────────────────────────────

@dataclass
class Profile:
    outputs: list[DisplaySpec] = field(default_factory=list)
    commands: list[list[str]] = field(default_factory=list)
    name: str | None = None
    index: int = 0          # 1-based position in the profile source

    @property
    def label(self) -> str:
        """Name used in diagnostics: the declared name, else the position."""
        return self.name if self.name else f"#{self.index}"


@dataclass(frozen=True)
class MatchedPair:
    display: AttachedDisplay
    spec: DisplaySpec


@dataclass(frozen=True)
class ResolvedProfile:
    profile: Profile
    pairs: tuple[MatchedPair, ...]


# ── Compositor commands ──────────────────────────────────────────────────

def _number(value: float) -> str:
    """Format a scale or refresh rate without dropping configured digits."""
    return f"{value:.10g}"


@dataclass(frozen=True)
class OutputCommand:
    """Enable/disable plus geometry for one connector."""

    connector: str
    enabled: bool = True
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0
    refresh_rate: float = 0.0
    transform: Transform = Transform.NORMAL
    scale: float = 0.0

    @classmethod
    def from_pair(cls, pair: MatchedPair) -> OutputCommand:
        spec = pair.spec
        if not spec.enabled:
            return cls(connector=pair.display.connector, enabled=False)
        return cls(
            connector=pair.display.connector,
            x=spec.x,
            y=spec.y,
            width=spec.width,
            height=spec.height,
            refresh_rate=spec.refresh_rate,
            transform=spec.transform,
            scale=spec.scale,
        )

    @property
    def has_mode(self) -> bool:
        return self.width > 0 and self.height > 0

    def to_sway(self) -> str:
        """Render as a sway ``output`` command."""
        if not self.enabled:
            return f"output {self.connector} disable"

        line = f"output {self.connector} enable position {self.x} {self.y}"
        if self.has_mode:
            line += f" resolution {self.width}x{self.height}"
            if self.refresh_rate > 0:
                line += f"@{_number(self.refresh_rate)}Hz"
        line += f" transform {self.transform.token}"
        if self.scale > 0:
            line += f" scale {_number(self.scale)}"
        return line

    def to_hyprland(self) -> str:
        """Render as the value of a Hyprland ``keyword monitor`` command."""
        if not self.enabled:
            return f"{self.connector},disable"

        parts = [self.connector]
        if self.has_mode:
            mode = f"{self.width}x{self.height}"
            if self.refresh_rate > 0:
                mode += f"@{_number(self.refresh_rate)}"
            parts.append(mode)
        else:
            parts.append("preferred")
        parts.append(f"{self.x}x{self.y}")
        parts.append(_number(self.scale) if self.scale > 0 else "auto")
        line = ",".join(parts)
        if self.transform != Transform.NORMAL:
            line += f",transform,{self.transform.value}"
        return line


@dataclass(frozen=True)
class WorkspaceCommand:
    """Bind a workspace to a connector."""

    workspace: str
    connector: str

    def to_sway(self) -> str:
        return f"workspace {self.workspace} output {self.connector}"

    def to_hyprland(self) -> str:
        return f"{self.workspace},monitor:{self.connector}"


Command = OutputCommand | WorkspaceCommand


def build_commands(
    resolved: ResolvedProfile | None,
    primary_workspace: str | None = None,
) -> list[Command]:
    """Translate a resolved profile into compositor commands.

    Commands follow output declaration order.  A workspace binding is emitted
    right after the output command of the connector it references.
    """
    if resolved is None:
        return []

    cmds: list[Command] = []
    for pair in resolved.pairs:
        cmd = OutputCommand.from_pair(pair)
        cmds.append(cmd)
        if cmd.enabled and pair.spec.primary and primary_workspace:
            cmds.append(WorkspaceCommand(primary_workspace, cmd.connector))
    return cmds
