from __future__ import annotations

from typing import Any, Optional


class EnvFileError(RuntimeError):
    def __init__(self, message: str, *, data: Any = None):
        super().__init__(message)
        self.data = data


class MalformedLineError(EnvFileError):
    def __init__(
        self,
        reason: str,
        *,
        line_no: int,
        line: str,
        source: Optional[str] = None,
    ):
        message = f"{reason}: {line!r}"
        if line_no or source:
            message = f"{source or '<text>'}:{line_no}: {message}"
        super().__init__(message, data={"line_no": line_no, "line": line})
        self.reason = reason
        self.line_no = line_no
        self.line = line
        self.source = source


class InvalidKeyError(MalformedLineError):
    def __init__(
        self,
        key: str,
        *,
        line_no: int = 0,
        line: str = "",
        source: Optional[str] = None,
    ):
        super().__init__(f"invalid key {key!r}", line_no=line_no, line=line or key, source=source)
        self.key = key
