"""Plaintext token file with owner-only permissions.

This is the fallback for headless, CI and container environments with no
OS secret service. The directory is created 0700 and the file written 0600;
those mode bits are the only confidentiality control.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from ghvault.auth.models import Probe, TokenLocation

logger = logging.getLogger(__name__)

DIR_MODE = 0o700
FILE_MODE = 0o600


class FileTokenStore:
    """Reads and writes a single token file."""

    location = TokenLocation.FILE

    def __init__(self, path: Path) -> None:
        self.path = path

    def probe(self) -> Probe:
        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return Probe.not_found()
        except (OSError, UnicodeDecodeError) as e:
            return Probe.failed(e)

        token = content.strip()
        if not token:
            return Probe.not_found()
        return Probe.found(token)

    def read(self) -> str | None:
        """Return the stored token, or None if missing, unreadable or empty."""
        result = self.probe()
        if result.error is not None:
            logger.debug("Could not read token file %s: %s", self.path, result.error)
        return result.token

    def write(self, token: str) -> None:
        """Write ``token`` plus a trailing newline. Raises OSError on failure."""
        directory = self.path.parent
        created = []
        missing = directory
        while not missing.exists():
            created.append(missing)
            missing = missing.parent
        directory.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        if os.name == "posix":
            # mkdir's mode is masked by umask. Directories that already
            # existed (e.g. a shared ~/.config) keep their permissions.
            for path in created:
                path.chmod(DIR_MODE)

        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(token + "\n")
        if os.name == "posix":
            # O_CREAT's mode does not apply to a file that already existed
            self.path.chmod(FILE_MODE)
        logger.debug("Token written to %s", self.path)

    def delete(self) -> None:
        """Remove the token file. A missing file is not an error."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return
        logger.debug("Removed token file %s", self.path)
