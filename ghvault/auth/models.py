"""Shared types for the credential stores."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TokenLocation(str, Enum):
    VAULT = "vault"
    FILE = "file"
    NONE = "none"


class ProbeStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(frozen=True)
class Probe:
    """Outcome of looking for the token in one backend."""

    status: ProbeStatus
    token: str | None = None
    error: Exception | None = None

    @classmethod
    def found(cls, token: str) -> Probe:
        return cls(ProbeStatus.FOUND, token=token)

    @classmethod
    def not_found(cls) -> Probe:
        return cls(ProbeStatus.NOT_FOUND)

    @classmethod
    def failed(cls, error: Exception) -> Probe:
        return cls(ProbeStatus.ERROR, error=error)

    @property
    def is_found(self) -> bool:
        return self.status is ProbeStatus.FOUND
