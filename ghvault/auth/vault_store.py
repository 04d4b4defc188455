"""OS-native secret storage through the ``keyring`` library.

One entry is managed, identified by a fixed service and account name. The
store distinguishes three outcomes for every operation: the entry exists,
the entry is absent, and the vault itself failed (locked, no backend,
permission denied). Absence is never an error.

"Not found" is detected structurally first: ``get_password`` returns None,
and after a failed delete the entry is probed again. Matching the error text
against ``NOT_FOUND_SIGNATURES`` is only the fallback for backends that
signal absence with a generic ``PasswordDeleteError`` and cannot be re-probed.
"""

from __future__ import annotations

import logging
from typing import Iterable

import keyring
from keyring.backend import KeyringBackend
from keyring.errors import KeyringError, NoKeyringError, PasswordDeleteError

from ghvault.auth.models import Probe, ProbeStatus, TokenLocation

logger = logging.getLogger(__name__)

# Phrasings used by each native backend when the entry does not exist.
# Keys are keyring backend module prefixes; "*" applies to every backend.
NOT_FOUND_SIGNATURES: dict[str, tuple[str, ...]] = {
    "*": ("not found", "no such password", "no password"),
    "keyring.backends.macOS": ("item not found", "could not be found", "errsecitemnotfound"),
    "keyring.backends.Windows": ("element not found", "cannot find", "1168"),
    "keyring.backends.SecretService": ("no such password", "no such item"),
    "keyring.backends.libsecret": ("no such password", "no matching secret"),
    "keyring.backends.kwallet": ("password not found", "no such entry"),
}


class VaultUnavailableError(Exception):
    """The OS secret store could not be reached or used."""


class VaultTokenStore:
    """Reads and writes the token entry in the OS keyring."""

    location = TokenLocation.VAULT

    def __init__(
        self,
        service: str,
        account: str,
        backend: KeyringBackend | None = None,
        extra_not_found: Iterable[str] = (),
    ) -> None:
        self.service = service
        self.account = account
        self._backend = backend
        self._extra_not_found = tuple(s.lower() for s in extra_not_found)

    @property
    def backend(self) -> KeyringBackend:
        if self._backend is None:
            self._backend = keyring.get_keyring()
        return self._backend

    @property
    def backend_name(self) -> str:
        backend = self.backend
        return f"{type(backend).__module__}.{type(backend).__name__}"

    def _signatures(self) -> tuple[str, ...]:
        module = type(self.backend).__module__
        signatures = list(NOT_FOUND_SIGNATURES["*"])
        for prefix, phrases in NOT_FOUND_SIGNATURES.items():
            if prefix != "*" and module.startswith(prefix):
                signatures.extend(phrases)
        signatures.extend(self._extra_not_found)
        return tuple(signatures)

    def is_not_found(self, error: BaseException) -> bool:
        """Fallback classification of an error message as "entry absent"."""
        message = str(error).lower()
        return any(signature in message for signature in self._signatures())

    def probe(self) -> Probe:
        try:
            secret = self.backend.get_password(self.service, self.account)
        except Exception as e:
            if isinstance(e, KeyringError) and self.is_not_found(e):
                return Probe.not_found()
            return Probe.failed(e)

        if secret is None or not secret.strip():
            return Probe.not_found()
        return Probe.found(secret.strip())

    def read(self) -> str | None:
        """Return the stored token, or None if absent or the vault failed."""
        result = self.probe()
        if result.error is not None:
            logger.debug("Keyring lookup failed (%s): %s", self.backend_name, result.error)
        return result.token

    def write(self, token: str) -> None:
        """Store or overwrite the entry. Raises VaultUnavailableError."""
        try:
            self.backend.set_password(self.service, self.account, token)
        except Exception as e:
            raise VaultUnavailableError(
                f"Could not store token in {self.backend_name}: {e}"
            ) from e
        logger.debug("Token stored in %s", self.backend_name)

    def delete(self) -> bool:
        """Remove the entry.

        Returns True when the entry was deleted or was already absent, False
        when a real error left its state unknown or the entry still present.
        """
        try:
            self.backend.delete_password(self.service, self.account)
        except NoKeyringError:
            # no usable backend means nothing can be stored there
            logger.debug("No keyring backend available; nothing to delete")
            return True
        except PasswordDeleteError as e:
            after = self.probe()
            if after.status is ProbeStatus.NOT_FOUND:
                return True
            if after.status is ProbeStatus.ERROR and self.is_not_found(e):
                return True
            logger.debug("Keyring delete failed (%s): %s", self.backend_name, e)
            return False
        except Exception as e:
            logger.debug("Keyring delete failed (%s): %s", self.backend_name, e)
            return False
        logger.debug("Token removed from %s", self.backend_name)
        return True
