from __future__ import annotations

import argparse
import os
import shlex
import subprocess
import sys
from pathlib import Path
from typing import List, Optional

from envfile.config import default_env_path, default_options
from envfile.environ import MappingEnviron
from envfile.errors import EnvFileError
from envfile.loader import load, load_env
from envfile.models import EnvFileReport, LoadOptions
from envfile.writer import dumps, set_key, unset_key


def _env_path(args: argparse.Namespace) -> Path:
    return Path(args.file) if args.file else default_env_path()


def _options(args: argparse.Namespace, **update: object) -> LoadOptions:
    options = default_options()
    if args.interpolate:
        update["interpolate"] = True
    return options.model_copy(update=update) if update else options


def cmd_list(args: argparse.Namespace) -> int:
    env_set = load(_env_path(args), options=_options(args))
    if args.format == "json":
        print(EnvFileReport.from_env_set(env_set).model_dump_json(indent=2))
    elif args.format == "shell":
        for key, value in env_set.items():
            print(f"export {key}={shlex.quote(value)}")
    else:
        sys.stdout.write(dumps(env_set))
    return 0


def cmd_get(args: argparse.Namespace) -> int:
    env_set = load(_env_path(args), options=_options(args))
    value = env_set.get(args.key)
    if value is None:
        print(f"envfile: {args.key} is not set in {env_set.source}", file=sys.stderr)
        return 1
    print(value)
    return 0


def cmd_set(args: argparse.Namespace) -> int:
    set_key(_env_path(args), args.key, args.value)
    return 0


def cmd_unset(args: argparse.Namespace) -> int:
    path = _env_path(args)
    if not unset_key(path, args.key):
        print(f"envfile: {args.key} is not set in {path}", file=sys.stderr)
        return 1
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    # Collect every bad line instead of stopping at the first one.
    env_set = load(_env_path(args), options=_options(args, strict=False))
    for s in env_set.skipped:
        print(f"{env_set.source}:{s.line_no}: {s.reason}: {s.line!r}")
    if env_set.skipped:
        return 1
    print(f"{env_set.source}: {len(env_set)} keys OK")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    command = list(args.command)
    if command and command[0] == "--":
        command = command[1:]
    if not command:
        print("envfile: run needs a command", file=sys.stderr)
        return 2
    child_env = MappingEnviron(dict(os.environ))
    load_env(
        _env_path(args),
        overwrite=True if args.overwrite else None,
        environ=child_env,
        options=_options(args),
    )
    return subprocess.run(command, env=child_env.as_dict()).returncode


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="envfile", description="Read and edit .env files")
    parser.add_argument("-f", "--file", help="Path to the .env file (default: $ENVFILE_PATH or nearest .env)")
    parser.add_argument(
        "--interpolate",
        action="store_true",
        help="Expand ${NAME} and ${NAME:-default} in values",
    )
    sub = parser.add_subparsers(dest="command_name", required=True)

    p = sub.add_parser("list", help="Print the resolved variables")
    p.add_argument("--format", choices=("text", "json", "shell"), default="text")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("get", help="Print one value")
    p.add_argument("key")
    p.set_defaults(func=cmd_get)

    p = sub.add_parser("set", help="Set one key in the file")
    p.add_argument("key")
    p.add_argument("value")
    p.set_defaults(func=cmd_set)

    p = sub.add_parser("unset", help="Remove one key from the file")
    p.add_argument("key")
    p.set_defaults(func=cmd_unset)

    p = sub.add_parser("check", help="Report malformed lines")
    p.set_defaults(func=cmd_check)

    p = sub.add_parser("run", help="Run a command with the file applied to its environment")
    p.add_argument(
        "--overwrite",
        action="store_true",
        help="Let file values replace variables already set",
    )
    p.add_argument("command", nargs=argparse.REMAINDER)
    p.set_defaults(func=cmd_run)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except (EnvFileError, OSError) as e:
        print(f"envfile: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
