"""Tests for rendering and editing .env files."""

import os
import stat
from pathlib import Path

import pytest

from envfile.errors import InvalidKeyError
from envfile.loader import load
from envfile.writer import dumps, format_value, set_key, unset_key, write_env_file


class TestDumps:
    """dumps() output must load back to the same mapping."""

    def test_bare_values_unquoted(self) -> None:
        """Simple values are written as-is."""
        assert dumps({"A": "1", "URL": "http://h:80/p?x=1"}) == "A=1\nURL=http://h:80/p?x=1\n"

    def test_special_values_quoted(self) -> None:
        """Whitespace, hashes and quotes force double quotes."""
        assert format_value("two words") == '"two words"'
        assert format_value("a # b") == '"a # b"'
        assert format_value('say "hi"') == '"say \\"hi\\""'

    def test_reload_gives_same_mapping(self) -> None:
        """Tricky values survive a dump and reload."""
        values = {
            "EMPTY": "",
            "SPACES": "  padded  ",
            "HASH": "a #b",
            "QUOTES": "it's \"quoted\"",
            "BACKSLASH": "C:\\path\\to",
            "DOLLAR": "${NOT_EXPANDED}",
            "MULTI": "line1\nline2",
            "UNICODE": "héllo wörld",
        }
        assert load(text=dumps(values)).as_dict() == values

    def test_invalid_key_rejected(self) -> None:
        """Keys that would not parse back are refused."""
        with pytest.raises(InvalidKeyError):
            dumps({"BAD KEY": "x"})

    def test_write_env_file(self, tmp_path: Path) -> None:
        """write_env_file creates parent directories and the file."""
        target = tmp_path / "conf" / ".env"
        write_env_file(target, {"A": "1", "B": "x y"})
        assert load(target).as_dict() == {"A": "1", "B": "x y"}
        assert not (tmp_path / "conf" / ".env.tmp").exists()


class TestSetKey:
    """set_key() and unset_key() edit a single key in place."""

    def test_creates_file(self, tmp_path: Path) -> None:
        """Setting a key in a missing file creates it."""
        env_file = tmp_path / ".env"
        set_key(env_file, "A", "1")
        assert env_file.read_text(encoding="utf-8") == "A=1\n"

    def test_replaces_in_place(self, tmp_path: Path) -> None:
        """Comments and other keys are preserved; duplicates collapse."""
        env_file = tmp_path / ".env"
        env_file.write_text("# db\nexport A=old\nB=2\nA=dup\n", encoding="utf-8")
        set_key(env_file, "A", "new value")
        assert env_file.read_text(encoding="utf-8") == '# db\nexport A="new value"\nB=2\n'

    def test_appends_new_key(self, tmp_path: Path) -> None:
        """Unknown keys go at the end."""
        env_file = tmp_path / ".env"
        env_file.write_text("A=1", encoding="utf-8")
        set_key(env_file, "B", "2")
        assert load(env_file).as_dict() == {"A": "1", "B": "2"}

    def test_set_invalid_key(self, tmp_path: Path) -> None:
        """Invalid keys raise before the file is touched."""
        with pytest.raises(InvalidKeyError):
            set_key(tmp_path / ".env", "1BAD", "x")
        assert not (tmp_path / ".env").exists()

    def test_keeps_file_mode(self, tmp_path: Path) -> None:
        """Editing a 0600 secrets file leaves it 0600."""
        env_file = tmp_path / ".env"
        env_file.write_text("SECRET=x\n", encoding="utf-8")
        env_file.chmod(0o600)
        set_key(env_file, "SECRET", "y")
        assert stat.S_IMODE(env_file.stat().st_mode) == 0o600
        assert unset_key(env_file, "SECRET") is True
        assert stat.S_IMODE(env_file.stat().st_mode) == 0o600

    def test_failed_write_leaves_no_temp_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """If the replace fails the original survives and the temp file is gone."""
        env_file = tmp_path / ".env"
        env_file.write_text("A=1\n", encoding="utf-8")

        def _fail(src: object, dst: object) -> None:
            raise OSError("disk full")

        monkeypatch.setattr(os, "replace", _fail)
        with pytest.raises(OSError):
            set_key(env_file, "A", "2")
        assert env_file.read_text(encoding="utf-8") == "A=1\n"
        assert not (tmp_path / ".env.tmp").exists()

    def test_unset(self, tmp_path: Path) -> None:
        """unset_key removes every assignment and reports it."""
        env_file = tmp_path / ".env"
        env_file.write_text("A=1\nB=2\nexport A=3\n", encoding="utf-8")
        assert unset_key(env_file, "A") is True
        assert env_file.read_text(encoding="utf-8") == "B=2\n"

    def test_unset_absent(self, tmp_path: Path) -> None:
        """Removing a key that is not there returns False."""
        env_file = tmp_path / ".env"
        env_file.write_text("B=2\n", encoding="utf-8")
        assert unset_key(env_file, "A") is False
        assert unset_key(tmp_path / "missing.env", "A") is False
