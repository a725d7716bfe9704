"""Daemon configuration: backend selectors merged from settings.json and flags."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .errors import StartupConfigError

DEFAULT_SETTLE_S = 0.5  # Let DRM finish probing (EDID) after a hotplug burst


class EnumeratorKind(str, Enum):
    UDEV = "udev"
    SYSFS = "sysfs"


class LoaderKind(str, Enum):
    TEXT = "text"
    GNOME = "gnome"


class CompositorKind(str, Enum):
    AUTO = "auto"
    SWAY = "sway"
    HYPRLAND = "hyprland"
    PRINT = "print"


class NotifierKind(str, Enum):
    NONE = "none"
    UDEV = "udev"
    LID = "lid"
    SOCKET = "socket"


DEFAULT_NOTIFIERS = (NotifierKind.UDEV, NotifierKind.SOCKET)


@dataclass(frozen=True)
class DaemonConfig:
    enumerator: EnumeratorKind = EnumeratorKind.UDEV
    loader: LoaderKind = LoaderKind.TEXT
    compositor: CompositorKind = CompositorKind.AUTO
    notifiers: tuple[NotifierKind, ...] = DEFAULT_NOTIFIERS
    primary_workspace: str | None = None
    config_path: Path | None = None
    settle_time: float = DEFAULT_SETTLE_S

    @property
    def single_shot(self) -> bool:
        """True when no change source is configured: run one pass and exit."""
        return not self.notifiers


def _select(kind: type[Enum], value, key: str):
    if isinstance(value, kind):
        return value
    try:
        return kind(value)
    except ValueError:
        choices = ", ".join(k.value for k in kind)
        raise StartupConfigError(f"unknown {key} '{value}' (expected one of: {choices})") from None


def _notifiers(values) -> tuple[NotifierKind, ...]:
    if isinstance(values, str):
        values = [values]
    if not isinstance(values, (list, tuple)):
        raise StartupConfigError(f"notifiers must be a list, got {values!r}")
    kinds = [_select(NotifierKind, v, "notifier") for v in values]
    if NotifierKind.NONE in kinds:
        if len(kinds) > 1:
            raise StartupConfigError("notifier 'none' cannot be combined with other notifiers")
        return ()
    # Keep first occurrence order, drop duplicates
    return tuple(dict.fromkeys(kinds))


def load_config(
    settings: dict | None = None,
    *,
    enumerator: str | None = None,
    loader: str | None = None,
    compositor: str | None = None,
    notifiers: list[str] | None = None,
    primary_workspace: str | None = None,
    config_path: Path | None = None,
    settle_time: float | None = None,
) -> DaemonConfig:
    """Merge settings.json values with command-line overrides.

    Overrides that are None (flag not given) fall back to the settings file,
    then to the built-in defaults.  Unknown selector values raise
    StartupConfigError.
    """
    settings = settings or {}
    defaults = DaemonConfig()

    def pick(override, key: str, default):
        if override is not None:
            return override
        return settings.get(key, default)

    raw_settle = pick(settle_time, "settle_time", defaults.settle_time)
    if isinstance(raw_settle, bool) or not isinstance(raw_settle, (int, float)) or raw_settle < 0:
        raise StartupConfigError(f"settle_time must be a non-negative number, got {raw_settle!r}")

    raw_path = pick(config_path, "config_path", None)
    workspace = pick(primary_workspace, "primary_workspace", None)

    return DaemonConfig(
        enumerator=_select(EnumeratorKind, pick(enumerator, "enumerator", defaults.enumerator), "enumerator"),
        loader=_select(LoaderKind, pick(loader, "loader", defaults.loader), "loader"),
        compositor=_select(CompositorKind, pick(compositor, "compositor", defaults.compositor), "compositor"),
        notifiers=_notifiers(pick(notifiers or None, "notifiers", list(defaults.notifiers))),
        primary_workspace=str(workspace) if workspace else None,
        config_path=Path(raw_path).expanduser() if raw_path else None,
        settle_time=float(raw_settle),
    )
