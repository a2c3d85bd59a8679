from __future__ import annotations

import json
import os
import sys
from datetime import datetime, timezone
from typing import Any


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def debug_enabled() -> bool:
    v = (os.getenv("ENVFILE_DEBUG") or "").strip().lower()
    return v in ("1", "true", "yes", "y", "on")


def log_event(msg: str, **fields: Any) -> None:
    # Callers pass key names and counts only; values may be secrets.
    if not debug_enabled():
        return
    record = {"ts": _now_iso(), "msg": msg}
    record.update(fields)
    print(json.dumps(record, ensure_ascii=False), file=sys.stderr)
