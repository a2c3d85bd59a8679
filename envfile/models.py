from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class Entry:
    key: str
    value: str
    line_no: int = 0


@dataclass(frozen=True)
class SkippedLine:
    line_no: int
    line: str
    reason: str


@dataclass(eq=False)
class EnvironmentSet(Mapping):
    """Entries parsed from one source.

    ``entries`` keeps every assignment in file order, duplicates included.
    The mapping view resolves duplicates last-write-wins.
    """

    entries: List[Entry] = field(default_factory=list)
    skipped: List[SkippedLine] = field(default_factory=list)
    source: Optional[str] = None

    def __post_init__(self) -> None:
        self._values: Dict[str, str] = {}
        for e in self.entries:
            self._values[e.key] = e.value

    def add(self, entry: Entry) -> None:
        self.entries.append(entry)
        self._values[entry.key] = entry.value

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    def as_dict(self) -> Dict[str, str]:
        return dict(self._values)

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)


class LoadOptions(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    overwrite: bool = False
    strict: bool = False
    allow_export: bool = True
    inline_comments: bool = True
    escapes: bool = True
    interpolate: bool = False
    encoding: str = "utf-8"


class EntryModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    key: str
    value: str
    line: int


class SkippedModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    line: int
    reason: str


class EnvFileReport(BaseModel):
    model_config = ConfigDict(extra="forbid")

    source: Optional[str] = None
    values: Dict[str, str] = Field(default_factory=dict)
    entries: List[EntryModel] = Field(default_factory=list)
    skipped: List[SkippedModel] = Field(default_factory=list)

    @classmethod
    def from_env_set(cls, env_set: EnvironmentSet) -> "EnvFileReport":
        return cls(
            source=env_set.source,
            values=env_set.as_dict(),
            entries=[EntryModel(key=e.key, value=e.value, line=e.line_no) for e in env_set.entries],
            skipped=[SkippedModel(line=s.line_no, reason=s.reason) for s in env_set.skipped],
        )
