"""Shared test fixtures for gh-vault.

No test touches the real OS keyring, the user's config directory or the
network: the keyring is an in-memory fake and token files live in tmp_path.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from keyring.errors import KeyringLocked, PasswordDeleteError

from ghvault.auth.file_store import FileTokenStore
from ghvault.auth.manager import CredentialManager
from ghvault.auth.vault_store import VaultTokenStore

SERVICE = "gh-vault-test"
ACCOUNT = "github-token"

FINE_GRAINED_TOKEN = "github_pat_" + "A" * 22
CLASSIC_TOKEN = "ghp_" + "a" * 36


class FakeKeyring:
    """In-memory stand-in for a keyring backend.

    ``locked`` makes every call fail the way a locked collection does;
    ``delete_error`` is raised by delete_password instead of deleting.
    Deleting a missing entry raises PasswordDeleteError, like most backends.
    """

    def __init__(self) -> None:
        self.passwords: dict[tuple[str, str], str] = {}
        self.locked = False
        self.delete_error: Exception | None = None

    def get_password(self, service: str, username: str) -> str | None:
        if self.locked:
            raise KeyringLocked("Failed to unlock the collection!")
        return self.passwords.get((service, username))

    def set_password(self, service: str, username: str, password: str) -> None:
        if self.locked:
            raise KeyringLocked("Failed to unlock the collection!")
        self.passwords[(service, username)] = password

    def delete_password(self, service: str, username: str) -> None:
        if self.delete_error is not None:
            raise self.delete_error
        if self.locked:
            raise KeyringLocked("Failed to unlock the collection!")
        if (service, username) not in self.passwords:
            raise PasswordDeleteError("Password not found")
        del self.passwords[(service, username)]

    def stored(self) -> str | None:
        return self.passwords.get((SERVICE, ACCOUNT))


@pytest.fixture
def fake_keyring() -> FakeKeyring:
    return FakeKeyring()


@pytest.fixture
def token_path(tmp_path: Path) -> Path:
    return tmp_path / "config" / "gh-vault" / "token"


@pytest.fixture
def vault_store(fake_keyring: FakeKeyring) -> VaultTokenStore:
    return VaultTokenStore(SERVICE, ACCOUNT, backend=fake_keyring)


@pytest.fixture
def file_store(token_path: Path) -> FileTokenStore:
    return FileTokenStore(token_path)


@pytest.fixture
def manager(vault_store: VaultTokenStore, file_store: FileTokenStore) -> CredentialManager:
    return CredentialManager(vault=vault_store, file=file_store)


@pytest.fixture
def fine_grained_token() -> str:
    return FINE_GRAINED_TOKEN


@pytest.fixture
def classic_token() -> str:
    return CLASSIC_TOKEN
