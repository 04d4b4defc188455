"""Platform-specific locations for the token file.

A strategy object is picked once at startup by ``select_platform()`` and
passed along, so nothing downstream branches on the OS name.

    Windows:      %APPDATA%/<app-name>/token
    Linux/macOS:  $XDG_CONFIG_HOME/<app-name>/token  (or ~/.config/<app-name>/token)
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Mapping, Protocol

TOKEN_FILENAME = "token"


def _env_value(env: Mapping[str, str], name: str) -> str:
    """Return a stripped env value; blank counts as unset."""
    return (env.get(name) or "").strip()


class PlatformPaths(Protocol):
    """Where per-user configuration lives on a given platform."""

    name: str

    def config_home(self) -> Path: ...

    def config_dir(self, app_name: str) -> Path: ...

    def token_path(self, app_name: str) -> Path: ...


class _BasePaths:
    name = "base"

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        # None means "read os.environ at call time"
        self._env = env

    @property
    def env(self) -> Mapping[str, str]:
        return os.environ if self._env is None else self._env

    def config_home(self) -> Path:
        raise NotImplementedError

    def config_dir(self, app_name: str) -> Path:
        return self.config_home() / app_name

    def token_path(self, app_name: str) -> Path:
        return self.config_dir(app_name) / TOKEN_FILENAME


class PosixPaths(_BasePaths):
    """XDG base directory layout used on Linux and macOS."""

    name = "posix"

    def config_home(self) -> Path:
        xdg = _env_value(self.env, "XDG_CONFIG_HOME")
        if xdg:
            return Path(xdg)
        home = _env_value(self.env, "HOME")
        return (Path(home) if home else Path.home()) / ".config"


class WindowsPaths(_BasePaths):
    """Roaming application data directory."""

    name = "windows"

    def config_home(self) -> Path:
        appdata = _env_value(self.env, "APPDATA")
        if appdata:
            return Path(appdata)
        return Path.home() / "AppData" / "Roaming"


def select_platform(
    platform: str | None = None, env: Mapping[str, str] | None = None
) -> PlatformPaths:
    """Pick the path strategy for the running (or given) platform."""
    platform = platform or sys.platform
    if platform.startswith("win"):
        return WindowsPaths(env)
    return PosixPaths(env)
