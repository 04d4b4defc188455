"""Token format classification and login policy.

Only the textual shape of a token is inspected:

    classic:      ghp_ + 36 alphanumerics
    fine-grained: github_pat_ + at least 22 of [A-Za-z0-9_]
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

CLASSIC_TOKEN_RE = re.compile(r"^ghp_[A-Za-z0-9]{36}$")
FINE_GRAINED_TOKEN_RE = re.compile(r"^github_pat_[A-Za-z0-9_]{22,}$")


class TokenType(str, Enum):
    CLASSIC = "classic"
    FINE_GRAINED = "fine-grained"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class TokenCheck:
    valid: bool
    type: TokenType


def classify(token: str) -> TokenCheck:
    # fullmatch so a trailing newline is not accepted by "$"
    if CLASSIC_TOKEN_RE.fullmatch(token):
        return TokenCheck(valid=True, type=TokenType.CLASSIC)
    if FINE_GRAINED_TOKEN_RE.fullmatch(token):
        return TokenCheck(valid=True, type=TokenType.FINE_GRAINED)
    return TokenCheck(valid=False, type=TokenType.UNKNOWN)


def is_allowed(token_type: TokenType) -> bool:
    """Whether a token of this type may be accepted at login.

    Classic tokens carry broad, unscoped permissions and are refused for new
    logins. Already-stored classic tokens keep working for reads.
    """
    return token_type is TokenType.FINE_GRAINED
