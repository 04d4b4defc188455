"""Credential manager: decides which backend holds the GitHub token.

Two backends exist, the OS keyring ("vault") and a plaintext token file. At
most one of them is authoritative after a successful write:

- vault mode writes the keyring, then removes any stale file copy
- file mode removes any keyring copy, then writes the file

Reads probe the backends in a fixed order (vault first) and return the first
token found. A backend that fails while probing is skipped; the manager
never raises on read, callers treat None as "not authenticated".

Every backend failure is reclassified here so that only ``ghvault.errors``
types reach the commands.
"""

from __future__ import annotations

import logging
from typing import Protocol

from ghvault.auth.file_store import FileTokenStore
from ghvault.auth.models import Probe, ProbeStatus, TokenLocation
from ghvault.auth.vault_store import VaultTokenStore, VaultUnavailableError
from ghvault.config import Config
from ghvault.errors import StorageUnavailableError, TokenValidationError

logger = logging.getLogger(__name__)

FILE_MODE_FLAG = "--insecure-storage"


class TokenStore(Protocol):
    location: TokenLocation

    def probe(self) -> Probe: ...


class CredentialManager:
    def __init__(self, vault: VaultTokenStore, file: FileTokenStore) -> None:
        self.vault = vault
        self.file = file

    @classmethod
    def from_config(cls, config: Config) -> CredentialManager:
        return cls(
            vault=VaultTokenStore(config.keyring_service, config.keyring_account),
            file=FileTokenStore(config.token_path),
        )

    @property
    def read_order(self) -> list[TokenStore]:
        return [self.vault, self.file]

    def resolve(self) -> tuple[str | None, TokenLocation]:
        """Find the token and the backend it came from."""
        errors: list[tuple[TokenLocation, Exception]] = []
        for store in self.read_order:
            result = store.probe()
            if result.is_found:
                return result.token, store.location
            if result.status is ProbeStatus.ERROR and result.error is not None:
                errors.append((store.location, result.error))

        for location, error in errors:
            logger.debug("Token lookup in %s backend failed: %s", location.value, error)
        return None, TokenLocation.NONE

    def get_token(self) -> str | None:
        return self.resolve()[0]

    def set_token(self, token: str, use_file_mode: bool = False) -> TokenLocation:
        """Store ``token`` in exactly one backend and return which one."""
        token = token.strip() if token else ""
        if not token:
            raise TokenValidationError()

        if use_file_mode:
            return self._set_in_file(token)
        return self._set_in_vault(token)

    def _set_in_vault(self, token: str) -> TokenLocation:
        try:
            self.vault.write(token)
        except VaultUnavailableError as e:
            raise StorageUnavailableError(
                f"System keyring is unavailable: {e}",
                remediation=(
                    f"Retry with {FILE_MODE_FLAG} to store the token in "
                    f"{self.file.path} (owner-only permissions)."
                ),
            ) from e

        try:
            self.file.delete()
        except OSError as e:
            logger.warning(
                "Token saved to keyring, but the old token file %s could not be "
                "removed: %s. Delete it manually.",
                self.file.path,
                e,
            )
        return TokenLocation.VAULT

    def _set_in_file(self, token: str) -> TokenLocation:
        if not self.vault.delete():
            logger.warning(
                "Could not remove the existing token from the system keyring; "
                "it will keep taking priority over %s until removed.",
                self.file.path,
            )

        try:
            self.file.write(token)
        except OSError as e:
            raise StorageUnavailableError(
                f"Could not write token file {self.file.path}: {e}",
                remediation=f"Check that {self.file.path.parent} is writable by you.",
            ) from e
        return TokenLocation.FILE

    def delete_token(self) -> None:
        """Remove the token from both backends. Never fails for "nothing stored"."""
        if not self.vault.delete():
            logger.warning(
                "Could not remove the token from the system keyring. "
                "It may need to be removed manually."
            )

        try:
            self.file.delete()
        except OSError as e:
            logger.warning(
                "Could not remove token file %s: %s. Delete it manually.",
                self.file.path,
                e,
            )
