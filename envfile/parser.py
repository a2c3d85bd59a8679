"""
Line-oriented ``.env`` parser.

    # comment
    KEY=value
    KEY2="quoted value with # not a comment"
    export KEY3=value3

Parsing is pure: nothing here touches the process environment except the
read-only lookup used by ``${NAME}`` interpolation.
"""

from __future__ import annotations

import os
import re
from typing import Any, Callable, Optional, Tuple

from envfile.errors import InvalidKeyError, MalformedLineError
from envfile.log import log_event
from envfile.models import Entry, EnvironmentSet, LoadOptions, SkippedLine


KEY_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")
_EXPORT_RE = re.compile(r"export\s+")
_INLINE_COMMENT_RE = re.compile(r"\s#")
_VAR_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")

_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "\\": "\\",
    '"': '"',
    "'": "'",
    "$": "$",
}

Resolver = Callable[["re.Match[str]"], str]


class _Skip(Exception):
    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


def is_valid_key(key: str) -> bool:
    return bool(KEY_RE.match(key))


def _split_quoted(rest: str, quote: str, escapes: bool = True) -> Tuple[str, str]:
    # rest starts just after the opening quote; without escapes a backslash is plain text
    i = 0
    while i < len(rest):
        ch = rest[i]
        if ch == "\\" and quote == '"' and escapes:
            i += 2
            continue
        if ch == quote:
            return rest[:i], rest[i + 1 :]
        i += 1
    raise _Skip("unterminated quote")


def _decode_double(body: str, options: LoadOptions, resolve: Optional[Resolver]) -> str:
    out = []
    i = 0
    n = len(body)
    while i < n:
        ch = body[i]
        if ch == "\\" and options.escapes and i + 1 < n and body[i + 1] in _ESCAPES:
            out.append(_ESCAPES[body[i + 1]])
            i += 2
            continue
        if ch == "$" and resolve is not None:
            m = _VAR_RE.match(body, i)
            if m:
                out.append(resolve(m))
                i = m.end()
                continue
        out.append(ch)
        i += 1
    return "".join(out)


def _decode_value(raw: str, options: LoadOptions, resolve: Optional[Resolver]) -> str:
    stripped = raw.lstrip()
    if stripped[:1] in ("'", '"'):
        quote = stripped[0]
        body, trailing = _split_quoted(stripped[1:], quote, options.escapes)
        trailing = trailing.strip()
        if trailing and not trailing.startswith("#"):
            raise _Skip("unexpected text after closing quote")
        if quote == "'":
            return body
        return _decode_double(body, options, resolve)

    value = raw
    if options.inline_comments:
        m = _INLINE_COMMENT_RE.search(value)
        if m:
            value = value[: m.start()]
    value = value.strip()
    if resolve is not None:
        value = _VAR_RE.sub(resolve, value)
    return value


def parse_line(
    line: str,
    *,
    line_no: int = 0,
    source: Optional[str] = None,
    options: Optional[LoadOptions] = None,
    resolve: Optional[Resolver] = None,
) -> Optional[Tuple[str, str]]:
    """Parse one line into ``(key, value)``.

    Returns ``None`` for blank and comment lines.

    Raises:
        InvalidKeyError: The text before ``=`` is not an identifier.
        MalformedLineError: No ``=``, or a broken quoted value.
    """
    options = options or LoadOptions()
    line = line.rstrip("\r\n")
    s = line.strip()
    if not s or s.startswith("#"):
        return None
    if options.allow_export:
        m = _EXPORT_RE.match(s)
        if m:
            s = s[m.end() :]
    if "=" not in s:
        raise MalformedLineError("missing '='", line_no=line_no, line=line, source=source)
    key, raw = s.split("=", 1)
    key = key.strip()
    if not is_valid_key(key):
        raise InvalidKeyError(key, line_no=line_no, line=line, source=source)
    try:
        value = _decode_value(raw, options, resolve)
    except _Skip as e:
        raise MalformedLineError(e.reason, line_no=line_no, line=line, source=source) from None
    return key, value


def parse(
    text: str,
    options: Optional[LoadOptions] = None,
    *,
    source: Optional[str] = None,
    environ: Optional[Any] = None,
) -> EnvironmentSet:
    """Parse ``.env`` text into an ``EnvironmentSet``.

    With ``options.strict`` the first malformed line raises; otherwise it is
    recorded in ``skipped`` and parsing continues.
    """
    options = options or LoadOptions()
    env_set = EnvironmentSet(source=source)
    lookup: Any = os.environ if environ is None else environ

    def _resolve(m: "re.Match[str]") -> str:
        name, default = m.group(1), m.group(2)
        found = lookup.get(name)
        # Without overwrite the target environment wins, as it does in apply().
        if found is not None and not options.overwrite:
            return found
        if name in env_set:
            return env_set[name]
        if found is not None:
            return found
        return default or ""

    resolve = _resolve if options.interpolate else None

    if text.startswith("\ufeff"):
        text = text[1:]

    for line_no, raw in enumerate(text.split("\n"), start=1):
        line = raw.rstrip("\r")
        try:
            parsed = parse_line(line, line_no=line_no, source=source, options=options, resolve=resolve)
        except MalformedLineError as e:
            if options.strict:
                raise
            env_set.skipped.append(SkippedLine(line_no=line_no, line=line, reason=e.reason))
            log_event("line_skipped", source=source, line=line_no, reason=e.reason)
            continue
        if parsed is None:
            continue
        key, value = parsed
        env_set.add(Entry(key=key, value=value, line_no=line_no))

    return env_set
