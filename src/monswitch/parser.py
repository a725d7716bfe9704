"""Parser for the profile language.

A profile source is a sequence of blocks, one per profile::

    # laptop docked
    profile desk {
        output eDP-1 disable
        output DP-1 vendor DEL product 0x40B3 position 0,0 resolution 2560x1440
        exec notify-send "desk profile applied"
    }

    {
        output * position 0,0
    }

Directives inside a block end at a newline or at the closing brace.  Tokens
are separated by spaces or tabs; double quotes group a token containing
whitespace.  ``#`` starts a comment.  Top-level ``include PATH`` splices the
profiles of other files in place.
"""

from __future__ import annotations

import glob
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path

from .errors import ParseError, PatternError, ProfileLoadError
from .matching import decode_hex_pattern
from .models import DisplaySpec, Profile, Transform

log = logging.getLogger(__name__)

MAX_INCLUDE_DEPTH = 10

_RESOLUTION_RE = re.compile(r"^(\d+)x(\d+)(?:@(\d+(?:\.\d*)?|\.\d+)(?:Hz)?)?$")
_POSITION_RE = re.compile(r"^(-?\d+),(-?\d+)$")
_FLOAT_RE = re.compile(r"^(?:\d+(?:\.\d*)?|\.\d+)$")

# Hex pattern width in bits, per identity field
_HEX_BITS = {"product": 16, "serial": 32}

_VALUE_ARGS = ("vendor", "product", "serial", "resolution", "mode", "position", "transform", "scale")
_FLAG_ARGS = ("enable", "disable", "primary")

WORD = "word"
STRING = "string"
LBRACE = "{"
RBRACE = "}"
NEWLINE = "newline"
EOF = "eof"


@dataclass(frozen=True)
class Token:
    kind: str
    value: str
    line: int
    column: int
    offset: int

    def is_word(self, *values: str) -> bool:
        return self.kind == WORD and (not values or self.value in values)

    @property
    def is_text(self) -> bool:
        return self.kind in (WORD, STRING)

    @property
    def ends_directive(self) -> bool:
        return self.kind in (NEWLINE, RBRACE, EOF)


def tokenize(text: str, source: str | None = None) -> list[Token]:
    """Split profile source into tokens, tracking line/column/offset."""
    tokens: list[Token] = []
    line, line_start = 1, 0
    i, n = 0, len(text)

    def error(message: str, at: int) -> ParseError:
        return ParseError(message, line=line, column=at - line_start + 1, offset=at, source=source)

    while i < n:
        ch = text[i]
        column = i - line_start + 1
        if ch in " \t\r":
            i += 1
        elif ch == "\n":
            tokens.append(Token(NEWLINE, "\n", line, column, i))
            i += 1
            line += 1
            line_start = i
        elif ch == "#":
            while i < n and text[i] != "\n":
                i += 1
        elif ch in "{}":
            tokens.append(Token(ch, ch, line, column, i))
            i += 1
        elif ch == '"':
            start = i
            i += 1
            chars: list[str] = []
            while True:
                if i >= n or text[i] == "\n":
                    raise error("unterminated string", start)
                if text[i] == "\\" and i + 1 < n and text[i + 1] != "\n":
                    chars.append(text[i + 1])
                    i += 2
                    continue
                if text[i] == '"':
                    i += 1
                    break
                chars.append(text[i])
                i += 1
            tokens.append(Token(STRING, "".join(chars), line, column, start))
        else:
            start = i
            while i < n and text[i] not in ' \t\r\n{}"':
                i += 1
            tokens.append(Token(WORD, text[start:i], line, column, start))

    column = n - line_start + 1
    tokens.append(Token(EOF, "", line, column, n))
    return tokens


class _Parser:
    def __init__(
        self,
        tokens: list[Token],
        *,
        source: str | None,
        base_dir: Path | None,
        depth: int,
    ) -> None:
        self._tokens = tokens
        self._pos = 0
        self._source = source
        self._base_dir = base_dir
        self._depth = depth

    # ── Token stream ────────────────────────────────────────────────

    def _peek(self) -> Token:
        return self._tokens[self._pos]

    def _next(self) -> Token:
        tok = self._tokens[self._pos]
        if tok.kind != EOF:
            self._pos += 1
        return tok

    def _skip_newlines(self) -> None:
        while self._peek().kind == NEWLINE:
            self._pos += 1

    def _error(self, message: str, tok: Token) -> ParseError:
        return ParseError(
            message, line=tok.line, column=tok.column, offset=tok.offset, source=self._source,
        )

    def _describe(self, tok: Token) -> str:
        if tok.kind == EOF:
            return "end of input"
        if tok.kind == NEWLINE:
            return "end of line"
        return f"'{tok.value}'"

    # ── Top level ───────────────────────────────────────────────────

    def parse_document(self) -> list[Profile]:
        profiles: list[Profile] = []
        while True:
            self._skip_newlines()
            tok = self._peek()
            if tok.kind == EOF:
                return profiles
            if tok.kind == LBRACE:
                profiles.append(self._parse_block(None))
            elif tok.is_word("profile"):
                self._next()
                name = None
                if self._peek().is_text:
                    name = self._next().value
                self._skip_newlines()
                if self._peek().kind != LBRACE:
                    raise self._error(
                        f"expected '{{' after profile, got {self._describe(self._peek())}",
                        self._peek(),
                    )
                profiles.append(self._parse_block(name))
            elif tok.is_word("include"):
                self._next()
                profiles.extend(self._parse_include(tok))
            else:
                raise self._error(f"unknown directive {self._describe(tok)}", tok)

    def _parse_include(self, keyword: Token) -> list[Profile]:
        path_tok = self._next()
        if not path_tok.is_text:
            raise self._error("directive 'include': expected a path", path_tok)
        if not self._peek().ends_directive:
            raise self._error("directive 'include': expected exactly one path", self._peek())
        if self._depth >= MAX_INCLUDE_DEPTH:
            raise self._error("include nesting too deep", keyword)

        pattern = os.path.expandvars(os.path.expanduser(path_tok.value))
        if not os.path.isabs(pattern):
            base = self._base_dir if self._base_dir is not None else Path.cwd()
            pattern = str(base / pattern)

        if glob.has_magic(pattern):
            paths = sorted(glob.glob(pattern))
        else:
            paths = [pattern]

        profiles: list[Profile] = []
        for path in paths:
            log.debug("Including profiles from %s", path)
            profiles.extend(parse_file(Path(path), _depth=self._depth + 1))
        return profiles

    # ── Blocks ──────────────────────────────────────────────────────

    def _parse_block(self, name: str | None) -> Profile:
        opening = self._next()
        profile = Profile(name=name)
        while True:
            self._skip_newlines()
            tok = self._peek()
            if tok.kind == RBRACE:
                self._next()
                return profile
            if tok.kind == EOF:
                raise self._error("unterminated block: missing '}'", opening)
            if tok.is_word("output"):
                self._next()
                profile.outputs.append(self._parse_output(tok))
            elif tok.is_word("exec"):
                self._next()
                profile.commands.append(self._parse_exec(tok))
            else:
                raise self._error(f"unknown directive {self._describe(tok)} in profile", tok)

    def _parse_exec(self, keyword: Token) -> list[str]:
        argv: list[str] = []
        while not self._peek().ends_directive:
            tok = self._next()
            if not tok.is_text:
                raise self._error(f"unexpected {self._describe(tok)} in exec", tok)
            argv.append(tok.value)
        if not argv:
            raise self._error("directive 'exec': expected a command", keyword)
        return argv

    def _parse_output(self, keyword: Token) -> DisplaySpec:
        target = self._next()
        if not target.is_text:
            raise self._error(
                f"directive 'output': expected a connector name or '*', got {self._describe(target)}",
                target,
            )
        spec = DisplaySpec(connector="" if target.kind == WORD and target.value == "*" else target.value)

        while not self._peek().ends_directive:
            arg = self._next()
            if arg.kind == WORD and arg.value in _FLAG_ARGS:
                if arg.value == "primary":
                    spec.primary = True
                else:
                    spec.enabled = arg.value == "enable"
                continue
            if arg.kind != WORD or arg.value not in _VALUE_ARGS:
                raise self._error(f"unknown output argument {self._describe(arg)}", arg)

            value = self._next()
            if not value.is_text:
                raise self._error(f"output argument '{arg.value}': missing value", value)
            self._apply_output_arg(spec, arg.value, value)

        return spec

    def _apply_output_arg(self, spec: DisplaySpec, key: str, tok: Token) -> None:
        value = tok.value
        if key == "vendor":
            spec.vendor = value
        elif key in ("product", "serial"):
            if value.startswith("0x"):
                try:
                    decode_hex_pattern(value, _HEX_BITS[key])
                except PatternError as e:
                    raise self._error(f"{key}: {e}", tok) from None
            setattr(spec, key, value)
        elif key in ("resolution", "mode"):
            m = _RESOLUTION_RE.match(value)
            if not m:
                raise self._error(f"invalid resolution '{value}', expected WIDTHxHEIGHT[@RATE]", tok)
            spec.width = int(m.group(1))
            spec.height = int(m.group(2))
            spec.refresh_rate = float(m.group(3)) if m.group(3) else 0.0
        elif key == "position":
            m = _POSITION_RE.match(value)
            if not m:
                raise self._error(f"invalid position '{value}', expected X,Y", tok)
            spec.x = int(m.group(1))
            spec.y = int(m.group(2))
        elif key == "transform":
            transform = Transform.from_token(value)
            if transform == Transform.NORMAL and value != "normal":
                log.warning("%s:%d: unknown transform '%s', using normal",
                            self._source or "<profiles>", tok.line, value)
            spec.transform = transform
        elif key == "scale":
            if not _FLOAT_RE.match(value):
                raise self._error(f"invalid scale '{value}'", tok)
            spec.scale = float(value)


def parse_profiles(
    text: str,
    *,
    source: str | None = None,
    base_dir: Path | None = None,
) -> list[Profile]:
    """Parse profile source text into an ordered list of profiles.

    Raises ParseError on the first malformed construct; no partial result is
    returned.
    """
    profiles = _parse(text, source=source, base_dir=base_dir, depth=0)
    for index, profile in enumerate(profiles, start=1):
        profile.index = index
    return profiles


def _parse(text: str, *, source: str | None, base_dir: Path | None, depth: int) -> list[Profile]:
    parser = _Parser(tokenize(text, source), source=source, base_dir=base_dir, depth=depth)
    return parser.parse_document()


def parse_file(path: Path, *, _depth: int = 0) -> list[Profile]:
    """Read and parse a profile file."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ProfileLoadError(f"cannot read profiles from {path}: {e}") from e
    if _depth == 0:
        return parse_profiles(text, source=str(path), base_dir=path.parent)
    return _parse(text, source=str(path), base_dir=path.parent, depth=_depth)
