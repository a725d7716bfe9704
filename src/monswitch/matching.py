"""Identity matching: decide which profile applies to the attached displays."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from .errors import PatternError
from .models import AttachedDisplay, DisplaySpec, MatchedPair, Profile, ResolvedProfile

log = logging.getLogger(__name__)

HEX_PREFIX = "0x"

# Known connector classes, matched in order as case-insensitive prefixes
CONNECTOR_CLASSES = (
    "VGA", "Unknown", "DVI", "Composite", "SVIDEO", "LVDS", "Component", "DIN",
    "DP", "HDMI", "TV", "eDP", "Virtual", "DSI",
)

_HEX_DIGITS_RE = re.compile(r"^[0-9a-fA-F]+$")


def connector_class(name: str) -> str | None:
    """Return the coarse connector class of a connector name, if known."""
    lowered = name.lower()
    for tag in CONNECTOR_CLASSES:
        if lowered.startswith(tag.lower()):
            return tag
    return None


def decode_hex_pattern(pattern: str, bits: int) -> int:
    """Decode a ``0x`` pattern into an integer of at most *bits* bits."""
    digits = pattern[len(HEX_PREFIX):]
    if not _HEX_DIGITS_RE.match(digits):
        raise PatternError(f"invalid hexadecimal literal '{pattern}'")
    value = int(digits, 16)
    if value >= 1 << bits:
        raise PatternError(f"hexadecimal literal '{pattern}' does not fit in {bits} bits")
    return value


def _match_code_or_text(pattern: str, code: int, text: str | None, bits: int) -> bool:
    if pattern.startswith(HEX_PREFIX):
        return decode_hex_pattern(pattern, bits) == code
    if pattern:
        return text is not None and text == pattern
    return True


def matches(display: AttachedDisplay, spec: DisplaySpec) -> bool:
    """Return True if *display* satisfies every non-empty pattern of *spec*.

    Raises PatternError when a ``0x`` pattern is malformed.
    """
    if spec.connector:
        ours = connector_class(display.connector)
        theirs = connector_class(spec.connector)
        if ours is None or theirs is None or ours != theirs:
            return False

    if spec.vendor and spec.vendor != display.vendor:
        return False

    if not _match_code_or_text(spec.product, display.product_code, display.product_text, 16):
        return False

    return _match_code_or_text(spec.serial, display.serial_code, display.serial_text, 32)


def match_profile(
    attached: Sequence[AttachedDisplay],
    profile: Profile,
) -> ResolvedProfile | None:
    """Pair every spec of *profile* with a distinct attached display.

    Greedy first-fit in output declaration order, without backtracking.
    """
    if len(profile.outputs) != len(attached):
        return None

    available = list(attached)
    pairs: list[MatchedPair] = []
    for spec in profile.outputs:
        i = next((i for i, d in enumerate(available) if matches(d, spec)), None)
        if i is None:
            log.debug("Profile %s: no display left for %s", profile.label, spec.describe())
            return None
        pairs.append(MatchedPair(display=available.pop(i), spec=spec))

    return ResolvedProfile(profile=profile, pairs=tuple(pairs))


def resolve(
    attached: Sequence[AttachedDisplay],
    profiles: Sequence[Profile],
) -> ResolvedProfile | None:
    """Return the first profile, in declaration order, that fully applies."""
    for profile in profiles:
        resolved = match_profile(attached, profile)
        if resolved is not None:
            return resolved
    return None
