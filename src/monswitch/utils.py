"""Utility helpers: XDG paths, JSON settings, IPC socket locations."""

from __future__ import annotations

import json
import os
from pathlib import Path


APP_NAME = "monswitch"


def xdg_config_home() -> Path:
    """Return $XDG_CONFIG_HOME, defaulting to ~/.config."""
    return Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")


def config_dir() -> Path:
    """Return ~/.config/monswitch (not created)."""
    return xdg_config_home() / APP_NAME


def default_profiles_path() -> Path:
    """Return the default profile-language source."""
    return config_dir() / "config"


def default_monitors_xml_path() -> Path:
    """Return the GNOME monitors.xml location."""
    return xdg_config_home() / "monitors.xml"


def runtime_dir() -> Path:
    """Return $XDG_RUNTIME_DIR, defaulting to /run/user/<uid>."""
    return Path(os.environ.get("XDG_RUNTIME_DIR") or f"/run/user/{os.getuid()}")


def control_socket_path() -> Path:
    """Return the control socket path for the current Wayland display."""
    display = os.environ.get("WAYLAND_DISPLAY", "")
    name = f"{APP_NAME}.{display}.sock" if display else f"{APP_NAME}.sock"
    return runtime_dir() / name


def hyprland_runtime_dir() -> Path:
    """Return the Hyprland runtime directory for IPC sockets."""
    his = os.environ.get("HYPRLAND_INSTANCE_SIGNATURE", "")
    return runtime_dir() / "hypr" / his


def read_json(path: Path) -> dict | list | None:
    """Read and parse a JSON file, returning None on failure."""
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return None


def _settings_path() -> Path:
    """Return the path to the global settings file."""
    return config_dir() / "settings.json"


def load_app_settings() -> dict:
    """Load global settings; a missing or unreadable file yields {}."""
    data = read_json(_settings_path())
    return data if isinstance(data, dict) else {}
