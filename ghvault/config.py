"""Configuration loading for gh-vault.

Config sources (in priority order):
1. Explicit arguments passed to functions
2. Environment variables (GH_VAULT_API_URL, etc.)
3. .env file in current directory

The token itself is never read from configuration; it lives in the OS
keyring or in the token file managed by ``ghvault.auth.manager``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from ghvault.auth.paths import PlatformPaths, select_platform

load_dotenv()

VERSION = "0.1.0"
APP_NAME = "gh-vault"
KEYRING_SERVICE = "gh-vault"
KEYRING_ACCOUNT = "github-token"
DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT = 30  # seconds
DEFAULT_LOG_LEVEL = "WARNING"
USER_AGENT = f"{APP_NAME}/{VERSION}"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env(name: str) -> str:
    return os.getenv(name, "").strip()


@dataclass
class Config:
    app_name: str = APP_NAME
    keyring_service: str = KEYRING_SERVICE
    keyring_account: str = KEYRING_ACCOUNT
    api_url: str = DEFAULT_API_URL
    timeout: int = DEFAULT_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL
    token_path: Path = field(
        default_factory=lambda: select_platform().token_path(APP_NAME)
    )

    @property
    def config_dir(self) -> Path:
        return self.token_path.parent

    @classmethod
    def load(cls, platform: PlatformPaths | None = None) -> Config:
        paths = platform or select_platform()
        token_path = _env("GH_VAULT_TOKEN_PATH")
        timeout = _env("GH_VAULT_TIMEOUT")
        return cls(
            api_url=_env("GH_VAULT_API_URL") or DEFAULT_API_URL,
            timeout=int(timeout) if timeout.isdigit() else DEFAULT_TIMEOUT,
            log_level=(_env("GH_VAULT_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
            token_path=Path(token_path) if token_path else paths.token_path(APP_NAME),
        )

    def validate(self) -> list[str]:
        """Return a list of config issues."""
        issues = []
        if not self.keyring_service or not self.keyring_account:
            issues.append("Keyring service and account names must be non-empty")
        if not self.api_url.startswith(("https://", "http://")):
            issues.append(f"API URL must be an http(s) URL (GH_VAULT_API_URL): {self.api_url}")
        if self.timeout <= 0:
            issues.append("Request timeout must be positive (GH_VAULT_TIMEOUT)")
        if self.log_level not in LOG_LEVELS:
            issues.append(f"Unknown log level (GH_VAULT_LOG_LEVEL): {self.log_level}")
        return issues
