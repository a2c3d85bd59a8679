"""Tests for the EnvironmentSet mapping and the pydantic models."""

import pytest
from pydantic import ValidationError

from envfile.models import Entry, EnvFileReport, EnvironmentSet, LoadOptions, SkippedLine


def test_environment_set_is_a_mapping() -> None:
    """Duplicates resolve last-write-wins; order follows first appearance."""
    env_set = EnvironmentSet(entries=[Entry("A", "1", 1), Entry("B", "2", 2), Entry("A", "3", 3)])
    assert env_set == {"A": "3", "B": "2"}
    assert list(env_set.items()) == [("A", "3"), ("B", "2")]
    assert "B" in env_set
    assert env_set.get("C") is None
    assert len(env_set.entries) == 3


def test_add_updates_view() -> None:
    """Entries added after construction show up in the mapping."""
    env_set = EnvironmentSet()
    env_set.add(Entry("X", "1"))
    assert env_set.as_dict() == {"X": "1"}


def test_load_options_reject_unknown_fields() -> None:
    """Misspelled options are an error, not silently ignored."""
    with pytest.raises(ValidationError):
        LoadOptions(overwite=True)


def test_load_options_are_frozen() -> None:
    """Options cannot be mutated after creation."""
    options = LoadOptions()
    with pytest.raises(ValidationError):
        options.strict = True  # type: ignore[misc]


def test_report_from_env_set() -> None:
    """The report mirrors values, entries and skipped lines."""
    env_set = EnvironmentSet(
        entries=[Entry("A", "1", 2)],
        skipped=[SkippedLine(line_no=1, line="oops", reason="missing '='")],
        source=".env",
    )
    report = EnvFileReport.from_env_set(env_set)
    assert report.source == ".env"
    assert report.values == {"A": "1"}
    assert report.entries[0].line == 2
    assert report.skipped[0].reason == "missing '='"
