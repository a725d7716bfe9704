"""Profile management: load profiles from their source on every request."""

from __future__ import annotations

import logging
from pathlib import Path

from .config import LoaderKind
from .legacy import load_monitors_xml
from .models import Profile
from .parser import parse_file
from .utils import default_monitors_xml_path, default_profiles_path

log = logging.getLogger(__name__)


class ProfileManager:
    """Loads monitor profiles from a profile-language file or monitors.xml.

    Nothing is cached: every call to list_all() reads the source again so
    edits take effect on the next hotplug event.
    """

    def __init__(self, kind: LoaderKind = LoaderKind.TEXT, path: Path | None = None) -> None:
        self.kind = kind
        if path is None:
            path = default_monitors_xml_path() if kind == LoaderKind.GNOME else default_profiles_path()
        self.path = path

    def list_all(self) -> list[Profile]:
        """Load all profiles, in declaration order.

        Raises ProfileLoadError (or its ParseError subclass) on failure.
        """
        if self.kind == LoaderKind.GNOME:
            profiles = load_monitors_xml(self.path)
        else:
            profiles = parse_file(self.path)
        log.debug("Loaded %d profile(s) from %s", len(profiles), self.path)
        return profiles
