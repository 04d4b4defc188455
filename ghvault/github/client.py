"""Authenticated PyGithub client built from the stored token."""

from __future__ import annotations

from dataclasses import dataclass, field

from github import Auth, Github

from ghvault.auth.manager import CredentialManager
from ghvault.config import USER_AGENT, Config
from ghvault.errors import AuthenticationError


@dataclass
class TokenInfo:
    login: str
    scopes: list[str] = field(default_factory=list)
    rate_remaining: int = 0
    rate_limit: int = 0


def _build_client(token: str, config: Config) -> Github:
    return Github(
        auth=Auth.Token(token),
        base_url=config.api_url,
        timeout=config.timeout,
        user_agent=USER_AGENT,
    )


def create_github_client(manager: CredentialManager, config: Config) -> Github:
    """Build a client from the stored token.

    Raises:
        AuthenticationError: If no token is stored in either backend.
    """
    token = manager.get_token()
    if not token:
        raise AuthenticationError()
    return _build_client(token, config)


def verify_token(token: str, config: Config) -> TokenInfo:
    """Call GET /user with ``token`` and report who it belongs to.

    Fine-grained tokens report no OAuth scopes; the list is empty for them.
    """
    gh = _build_client(token, config)
    try:
        user = gh.get_user()
        login = user.login  # forces the request
        scopes = gh.oauth_scopes or []
        remaining, limit = gh.rate_limiting
    finally:
        gh.close()

    return TokenInfo(
        login=login,
        scopes=[s.strip() for s in scopes if s.strip()],
        rate_remaining=remaining,
        rate_limit=limit,
    )
