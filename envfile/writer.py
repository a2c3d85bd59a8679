from __future__ import annotations

import os
import re
import stat
from pathlib import Path
from typing import List, Mapping, Optional, Union

from envfile.errors import InvalidKeyError
from envfile.parser import is_valid_key


PathLike = Union[str, Path]

_BARE_RE = re.compile(r"[A-Za-z0-9_./:@%+,=?&~-]*\Z")
_ASSIGN_RE = re.compile(r"\s*(export\s+)?([A-Za-z_][A-Za-z0-9_]*)\s*=")


def format_value(value: str) -> str:
    if _BARE_RE.match(value):
        return value
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace("$", "\\$")
    )
    return f'"{escaped}"'


def format_line(key: str, value: str) -> str:
    if not is_valid_key(key):
        raise InvalidKeyError(key)
    return f"{key}={format_value(value)}"


def dumps(values: Mapping[str, str]) -> str:
    """Render ``values`` as ``.env`` text that ``parse`` reads back unchanged."""
    return "".join(format_line(k, v) + "\n" for k, v in values.items())


def _atomic_write_text(path: Path, text: str, encoding: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp.write_text(text, encoding=encoding)
        # keep the mode of an existing file
        if path.exists():
            os.chmod(tmp, stat.S_IMODE(path.stat().st_mode))
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


def write_env_file(path: PathLike, values: Mapping[str, str], *, encoding: str = "utf-8") -> None:
    _atomic_write_text(Path(path), dumps(values), encoding)


def _read_lines(path: Path, encoding: str) -> List[str]:
    try:
        raw = path.read_text(encoding=encoding)
    except FileNotFoundError:
        return []
    lines = [ln.rstrip("\r") for ln in raw.split("\n")]
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def _assigned_key(line: str) -> Optional[str]:
    m = _ASSIGN_RE.match(line)
    return m.group(2) if m else None


def set_key(path: PathLike, key: str, value: str, *, encoding: str = "utf-8") -> None:
    """Set ``key`` in the file, keeping every other line as it was.

    The first assignment is rewritten in place (an ``export`` prefix is
    kept) and later duplicates are dropped. Unknown keys are appended.
    """
    new_line = format_line(key, value)
    p = Path(path)
    out: List[str] = []
    replaced = False
    for line in _read_lines(p, encoding):
        if _assigned_key(line) != key:
            out.append(line)
            continue
        if replaced:
            continue
        m = _ASSIGN_RE.match(line)
        prefix = "export " if m and m.group(1) else ""
        out.append(prefix + new_line)
        replaced = True
    if not replaced:
        out.append(new_line)
    _atomic_write_text(p, "\n".join(out) + "\n", encoding)


def unset_key(path: PathLike, key: str, *, encoding: str = "utf-8") -> bool:
    if not is_valid_key(key):
        raise InvalidKeyError(key)
    p = Path(path)
    lines = _read_lines(p, encoding)
    kept = [ln for ln in lines if _assigned_key(ln) != key]
    if len(kept) == len(lines):
        return False
    _atomic_write_text(p, "\n".join(kept) + "\n" if kept else "", encoding)
    return True
