"""Domain-specific errors for monswitch."""

from __future__ import annotations


class MonswitchError(Exception):
    """Base error for monswitch."""


class StartupConfigError(MonswitchError):
    """Raised when a flag or settings value selects an unknown backend."""


class EnumerationError(MonswitchError):
    """Raised when the attached displays cannot be listed."""


class ProfileLoadError(MonswitchError):
    """Raised when the profile source cannot be read."""


class ParseError(ProfileLoadError):
    """Raised when the profile source is malformed.

    Carries the 1-based line and column and the 0-based character offset of
    the offending token, or None where the source format gives no position.
    """

    def __init__(
        self,
        message: str,
        *,
        line: int | None = None,
        column: int | None = None,
        offset: int | None = None,
        source: str | None = None,
    ) -> None:
        self.message = message
        self.line = line
        self.column = column
        self.offset = offset
        self.source = source
        where = f"{source}:" if source else ""
        if line is not None:
            where += f"{line}:{column}:"
        super().__init__(f"{where} {message}" if where else message)


class PatternError(MonswitchError):
    """Raised when a hex product/serial pattern cannot be decoded."""


class ApplyError(MonswitchError):
    """Raised when the compositor rejects a command."""


class HookLaunchError(MonswitchError):
    """Raised when a post-apply command cannot be started."""
