from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from envfile.models import LoadOptions


DEFAULT_ENV_NAME = ".env"

_TRUE = ("1", "true", "yes", "y", "on")
_FALSE = ("0", "false", "no", "n", "off")


def _env_flag(name: str, default: bool) -> bool:
    v = (os.getenv(name) or "").strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    return default


def default_options() -> LoadOptions:
    return LoadOptions(
        overwrite=_env_flag("ENVFILE_OVERWRITE", False),
        strict=_env_flag("ENVFILE_STRICT", False),
        interpolate=_env_flag("ENVFILE_INTERPOLATE", False),
    )


def find_env_file(start: Optional[Path] = None, name: str = DEFAULT_ENV_NAME) -> Optional[Path]:
    here = Path(start or Path.cwd()).resolve()
    if here.is_file():
        here = here.parent
    for d in (here, *here.parents):
        candidate = d / name
        if candidate.is_file():
            return candidate
    return None


def default_env_path() -> Path:
    """``$ENVFILE_PATH``, else the nearest ``.env`` above the cwd, else ``./.env``."""
    direct = os.getenv("ENVFILE_PATH")
    if direct:
        return Path(direct)
    return find_env_file() or Path.cwd() / DEFAULT_ENV_NAME
