from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Union, cast

from envfile.config import default_env_path, default_options
from envfile.environ import EnvironmentSetter, OsEnviron
from envfile.errors import EnvFileError
from envfile.log import log_event
from envfile.models import EnvironmentSet, LoadOptions
from envfile.parser import parse


PathLike = Union[str, Path]


def read_env_file(path: PathLike, encoding: str = "utf-8") -> str:
    # newline="" keeps \r\n intact; the parser strips the \r itself.
    try:
        with Path(path).open("r", encoding=encoding, newline="") as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise EnvFileError(f"{path}: not valid {encoding} text: {e}", data={"path": str(path)}) from e


def load(
    path: Optional[PathLike] = None,
    *,
    text: Optional[str] = None,
    options: Optional[LoadOptions] = None,
    environ: Optional[EnvironmentSetter] = None,
) -> EnvironmentSet:
    """Parse a ``.env`` file (or raw ``text``) without touching the environment.

    Raises:
        FileNotFoundError: ``path`` does not exist.
        OSError: ``path`` could not be read.
        MalformedLineError: A bad line was found and ``options.strict`` is set.
    """
    if (path is None) == (text is None):
        raise ValueError("pass exactly one of path or text")
    options = options or LoadOptions()
    source: Optional[str] = str(path) if path is not None else None
    content: str = read_env_file(path, options.encoding) if path is not None else cast(str, text)
    env_set = parse(content, options, source=source, environ=environ)
    log_event("env_loaded", source=source, entries=len(env_set), skipped=env_set.skipped_count)
    return env_set


def apply(
    env_set: Mapping[str, str],
    overwrite: bool = False,
    *,
    environ: Optional[EnvironmentSetter] = None,
) -> None:
    """Set every key of ``env_set`` in ``environ`` (the process environment by default).

    Keys already present are left alone unless ``overwrite``.
    """
    target = environ if environ is not None else OsEnviron()
    applied = []
    kept = []
    for key, value in env_set.items():
        if overwrite:
            target.set(key, value)
        elif not target.set_default(key, value):
            kept.append(key)
            continue
        applied.append(key)
    log_event("env_applied", applied=applied, kept=kept)


def _with_overrides(options: LoadOptions, *, overwrite: Optional[bool], strict: Optional[bool]) -> LoadOptions:
    update = {}
    if overwrite is not None:
        update["overwrite"] = overwrite
    if strict is not None:
        update["strict"] = strict
    return options.model_copy(update=update) if update else options


def load_env(
    path: Optional[PathLike] = None,
    *,
    overwrite: Optional[bool] = None,
    strict: Optional[bool] = None,
    missing_ok: bool = True,
    environ: Optional[EnvironmentSetter] = None,
    options: Optional[LoadOptions] = None,
) -> Optional[EnvironmentSet]:
    """Load a ``.env`` file and apply it.

    A missing file returns ``None`` when ``missing_ok``: in production the
    orchestrator provides the variables and there is no file to read.
    """
    options = _with_overrides(options or default_options(), overwrite=overwrite, strict=strict)

    target = environ if environ is not None else OsEnviron()
    env_path = Path(path) if path is not None else default_env_path()
    try:
        env_set = load(env_path, options=options, environ=target)
    except FileNotFoundError:
        if not missing_ok:
            raise
        log_event("env_missing", source=str(env_path))
        return None
    apply(env_set, options.overwrite, environ=target)
    return env_set


def load_env_files(
    paths: Iterable[PathLike],
    *,
    overwrite: Optional[bool] = None,
    strict: Optional[bool] = None,
    environ: Optional[EnvironmentSetter] = None,
    options: Optional[LoadOptions] = None,
) -> Dict[str, str]:
    """Load several files, highest priority first.

    Without ``overwrite`` the first file defining a key wins and the existing
    environment wins over every file. With ``overwrite`` the last file wins.
    Missing files are skipped.
    """
    options = _with_overrides(options or default_options(), overwrite=overwrite, strict=strict)
    overwrite = options.overwrite
    target = environ if environ is not None else OsEnviron()
    merged: Dict[str, str] = {}
    for p in paths:
        try:
            env_set = load(p, options=options, environ=target)
        except FileNotFoundError:
            log_event("env_missing", source=str(p))
            continue
        for key, value in env_set.items():
            if overwrite:
                merged[key] = value
            else:
                merged.setdefault(key, value)
    apply(merged, overwrite, environ=target)
    return merged
