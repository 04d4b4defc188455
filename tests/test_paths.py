"""Tests for ghvault.auth.paths."""

from __future__ import annotations

from pathlib import Path

import pytest

from ghvault.auth.paths import PosixPaths, WindowsPaths, select_platform


class TestPosixPaths:
    def test_xdg_config_home(self):
        paths = PosixPaths({"XDG_CONFIG_HOME": "/xdg", "HOME": "/home/u"})
        assert paths.token_path("gh-vault") == Path("/xdg/gh-vault/token")

    def test_falls_back_to_home(self):
        paths = PosixPaths({"HOME": "/home/u"})
        assert paths.token_path("gh-vault") == Path("/home/u/.config/gh-vault/token")

    def test_blank_xdg_is_unset(self):
        paths = PosixPaths({"XDG_CONFIG_HOME": "  ", "HOME": "/home/u"})
        assert paths.config_dir("gh-vault") == Path("/home/u/.config/gh-vault")

    def test_no_env_uses_home_directory(self):
        paths = PosixPaths({})
        assert paths.config_home() == Path.home() / ".config"


class TestWindowsPaths:
    def test_appdata(self):
        paths = WindowsPaths({"APPDATA": r"C:\Users\u\AppData\Roaming"})
        assert paths.token_path("gh-vault") == Path(r"C:\Users\u\AppData\Roaming") / "gh-vault" / "token"

    def test_missing_appdata(self):
        paths = WindowsPaths({})
        assert paths.config_home() == Path.home() / "AppData" / "Roaming"


class TestSelectPlatform:
    @pytest.mark.parametrize("platform", ["linux", "darwin", "freebsd13"])
    def test_posix(self, platform):
        assert select_platform(platform).name == "posix"

    def test_windows(self):
        assert select_platform("win32").name == "windows"

    def test_passes_env(self):
        paths = select_platform("linux", env={"XDG_CONFIG_HOME": "/xdg"})
        assert paths.config_home() == Path("/xdg")

    def test_reads_environment_at_call_time(self, monkeypatch):
        paths = select_platform("linux")
        monkeypatch.setenv("XDG_CONFIG_HOME", "/later")
        assert paths.config_home() == Path("/later")
