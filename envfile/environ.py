from __future__ import annotations

import os
import threading
from typing import Dict, Iterator, MutableMapping, Optional, Protocol, Tuple


# os.environ is shared by every thread; serialize our writes to it.
_environ_lock = threading.Lock()


class EnvironmentSetter(Protocol):
    def __contains__(self, key: object) -> bool: ...

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def set_default(self, key: str, value: str) -> bool: ...


class OsEnviron:
    """The real process environment."""

    def __init__(self, target: Optional[MutableMapping[str, str]] = None):
        self._target = os.environ if target is None else target

    def __contains__(self, key: object) -> bool:
        return key in self._target

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._target.get(key, default)

    def set(self, key: str, value: str) -> None:
        with _environ_lock:
            self._target[key] = value

    def set_default(self, key: str, value: str) -> bool:
        # check and write under one lock so a concurrent writer cannot slip in between
        with _environ_lock:
            if key in self._target:
                return False
            self._target[key] = value
            return True


class MappingEnviron:
    """A private dict standing in for the process environment."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._vars: Dict[str, str] = dict(initial) if initial else {}

    def __contains__(self, key: object) -> bool:
        return key in self._vars

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._vars.get(key, default)

    def set(self, key: str, value: str) -> None:
        self._vars[key] = value

    def set_default(self, key: str, value: str) -> bool:
        if key in self._vars:
            return False
        self._vars[key] = value
        return True

    def items(self) -> Iterator[Tuple[str, str]]:
        return iter(list(self._vars.items()))

    def as_dict(self) -> Dict[str, str]:
        return dict(self._vars)

    def __len__(self) -> int:
        return len(self._vars)
