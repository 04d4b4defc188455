"""Tests for ghvault.auth.file_store."""

from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from ghvault.auth.file_store import FileTokenStore
from ghvault.auth.models import ProbeStatus, TokenLocation

posix_only = pytest.mark.skipif(os.name != "posix", reason="POSIX permission bits")


class TestRead:
    def test_missing_file_is_absent(self, file_store: FileTokenStore):
        assert file_store.read() is None
        assert file_store.probe().status is ProbeStatus.NOT_FOUND

    def test_empty_file_is_absent(self, file_store: FileTokenStore, token_path: Path):
        token_path.parent.mkdir(parents=True)
        token_path.write_text("  \n\n")
        assert file_store.read() is None

    def test_trims_contents(self, file_store: FileTokenStore, token_path: Path):
        token_path.parent.mkdir(parents=True)
        token_path.write_text("  github_pat_abc\n")
        assert file_store.read() == "github_pat_abc"

    def test_unreadable_path_is_absent(self, tmp_path: Path):
        # a directory where the file should be cannot be read as text
        path = tmp_path / "token"
        path.mkdir()
        store = FileTokenStore(path)
        assert store.read() is None
        assert store.probe().status is ProbeStatus.ERROR

    def test_location(self, file_store: FileTokenStore):
        assert file_store.location is TokenLocation.FILE


class TestWrite:
    def test_writes_token_with_trailing_newline(self, file_store: FileTokenStore, token_path: Path):
        file_store.write("github_pat_abc")
        assert token_path.read_text() == "github_pat_abc\n"
        assert file_store.read() == "github_pat_abc"

    def test_creates_parent_directories(self, tmp_path: Path):
        path = tmp_path / "a" / "b" / "gh-vault" / "token"
        FileTokenStore(path).write("t")
        assert path.exists()

    def test_overwrites(self, file_store: FileTokenStore):
        file_store.write("first")
        file_store.write("second")
        assert file_store.read() == "second"

    @posix_only
    def test_owner_only_permissions(self, file_store: FileTokenStore, token_path: Path):
        file_store.write("github_pat_abc")
        assert stat.S_IMODE(token_path.stat().st_mode) == 0o600
        assert stat.S_IMODE(token_path.parent.stat().st_mode) == 0o700

    @posix_only
    def test_tightens_existing_file_but_not_existing_directory(self, file_store: FileTokenStore, token_path: Path):
        token_path.parent.mkdir(parents=True, mode=0o755)
        token_path.parent.chmod(0o755)
        token_path.write_text("old\n")
        token_path.chmod(0o644)

        file_store.write("new")

        assert stat.S_IMODE(token_path.stat().st_mode) == 0o600
        assert stat.S_IMODE(token_path.parent.stat().st_mode) == 0o755

    @posix_only
    def test_shared_parent_keeps_its_mode(self, tmp_path: Path):
        shared = tmp_path / "config"
        shared.mkdir()
        shared.chmod(0o755)
        path = shared / "gh-vault" / "nested" / "token"

        FileTokenStore(path).write("t")

        assert stat.S_IMODE(shared.stat().st_mode) == 0o755
        assert stat.S_IMODE((shared / "gh-vault").stat().st_mode) == 0o700
        assert stat.S_IMODE(path.parent.stat().st_mode) == 0o700

    def test_write_failure_raises_oserror(self, tmp_path: Path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        store = FileTokenStore(blocker / "token")
        with pytest.raises(OSError):
            store.write("t")


class TestDelete:
    def test_removes_file(self, file_store: FileTokenStore, token_path: Path):
        file_store.write("t")
        file_store.delete()
        assert not token_path.exists()

    def test_missing_file_is_success(self, file_store: FileTokenStore):
        file_store.delete()
        file_store.delete()

    def test_other_errors_propagate(self, tmp_path: Path):
        path = tmp_path / "token"
        path.mkdir()
        with pytest.raises(OSError):
            FileTokenStore(path).delete()
