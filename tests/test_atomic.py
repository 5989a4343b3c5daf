"""Tests for atomic whole-file replacement."""

from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from zonecache.atomic import replace_atomically


@pytest.fixture()
def umask_022():
    previous = os.umask(0o022)
    yield
    os.umask(previous)


def _mode(path: Path) -> int:
    return stat.S_IMODE(path.stat().st_mode)


class TestReplaceAtomically:
    def test_writes_content(self, tmp_path: Path) -> None:
        target = tmp_path / "zones.xml"
        with replace_atomically(target) as fh:
            fh.write(b"<zones/>")
        assert target.read_bytes() == b"<zones/>"
        assert [p.name for p in tmp_path.iterdir()] == ["zones.xml"]

    def test_mode_follows_umask(self, tmp_path: Path, umask_022) -> None:
        target = tmp_path / "zones.xml"
        with replace_atomically(target) as fh:
            fh.write(b"<zones/>")
        assert _mode(target) == 0o644

    def test_restrictive_umask_respected(self, tmp_path: Path) -> None:
        previous = os.umask(0o077)
        try:
            target = tmp_path / "zones.xml"
            with replace_atomically(target) as fh:
                fh.write(b"<zones/>")
        finally:
            os.umask(previous)
        assert _mode(target) == 0o600

    def test_umask_left_unchanged(self, tmp_path: Path, umask_022) -> None:
        with replace_atomically(tmp_path / "zones.xml") as fh:
            fh.write(b"x")
        current = os.umask(0o022)
        assert current == 0o022

    def test_error_in_block_keeps_target(self, tmp_path: Path) -> None:
        target = tmp_path / "zones.xml"
        target.write_bytes(b"old")
        with pytest.raises(ValueError):
            with replace_atomically(target) as fh:
                fh.write(b"partial")
                raise ValueError("bad body")
        assert target.read_bytes() == b"old"
        assert [p.name for p in tmp_path.iterdir()] == ["zones.xml"]

    def test_failed_rename_cleans_up(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        target = tmp_path / "zones.xml"
        target.write_bytes(b"old")

        def _boom(src, dst):
            raise OSError("rename failed")

        monkeypatch.setattr("zonecache.atomic.os.replace", _boom)
        with pytest.raises(OSError, match="rename failed"):
            with replace_atomically(target) as fh:
                fh.write(b"new")
        assert target.read_bytes() == b"old"
        assert [p.name for p in tmp_path.iterdir()] == ["zones.xml"]

    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            with replace_atomically(tmp_path / "nope" / "zones.xml"):
                pass
