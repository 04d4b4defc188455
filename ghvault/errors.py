"""Error types for gh-vault and helpers for GitHub permission failures."""

from __future__ import annotations

from dataclasses import dataclass

from github.GithubException import GithubException

TOKEN_SETTINGS_URL = "https://github.com/settings/personal-access-tokens"


class GhVaultError(Exception):
    """Base class for errors that are reported to the user."""

    default_message = "Unexpected gh-vault error."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class TokenValidationError(GhVaultError):
    default_message = "Token must not be empty."


class InvalidTokenFormatError(GhVaultError):
    default_message = (
        "Invalid token format. Expected: github_pat_... "
        "(fine-grained personal access token)"
    )


class ClassicTokenError(GhVaultError):
    default_message = "Classic personal access tokens (ghp_*) are not supported."


class AuthenticationError(GhVaultError):
    default_message = "GitHub token not configured."


class TokenDisplayDisabledError(GhVaultError):
    default_message = "Token display is disabled for security."


class StorageUnavailableError(GhVaultError):
    """A credential backend could not be written.

    ``remediation`` is a single line telling the user what to run next.
    """

    default_message = "Credential storage is unavailable."

    def __init__(self, message: str | None = None, remediation: str = "") -> None:
        super().__init__(message)
        self.remediation = remediation


class RepoResolutionError(GhVaultError):
    default_message = "Could not detect repository. Use -R owner/repo to specify."


@dataclass(frozen=True)
class PermissionInfo:
    permission: str  # e.g. "pull_requests:write"
    label: str  # e.g. "Pull requests → Read and write"


_PR_READ = PermissionInfo("pull_requests:read", "Pull requests → Read")
_PR_WRITE = PermissionInfo("pull_requests:write", "Pull requests → Read and write")
_ACTIONS_READ = PermissionInfo("actions:read", "Actions → Read")
_ACTIONS_WRITE = PermissionInfo("actions:write", "Actions → Read and write")
_METADATA_READ = PermissionInfo("metadata:read", "Metadata → Read")

PERMISSION_MAP: dict[str, PermissionInfo] = {
    "pr:list": _PR_READ,
    "pr:view": _PR_READ,
    "pr:diff": _PR_READ,
    "pr:files": _PR_READ,
    "pr:comment": _PR_WRITE,
    "pr:merge": _PR_WRITE,
    "pr:close": _PR_WRITE,
    "pr:reopen": _PR_WRITE,
    "pr:create": _PR_WRITE,
    "pr:edit": _PR_WRITE,
    "pr:ready": _PR_WRITE,
    "pr:review": _PR_WRITE,
    "pr:comments": _PR_READ,
    "pr:reviews": _PR_READ,
    "pr:status": _PR_READ,
    "pr:checks": PermissionInfo("checks:read", "Checks → Read"),
    "run:list": _ACTIONS_READ,
    "run:view": _ACTIONS_READ,
    "run:cancel": _ACTIONS_WRITE,
    "run:rerun": _ACTIONS_WRITE,
    "run:delete": _ACTIONS_WRITE,
    "workflow:list": _ACTIONS_READ,
    "workflow:view": _ACTIONS_READ,
    "workflow:run": _ACTIONS_WRITE,
    "workflow:enable": _ACTIONS_WRITE,
    "workflow:disable": _ACTIONS_WRITE,
    "repo:view": _METADATA_READ,
    "repo:list": _METADATA_READ,
}


def format_permission_error(operation: str) -> str:
    """Render a 403 failure with the steps needed to fix the token."""
    info = PERMISSION_MAP.get(operation)
    if info is None:
        title = "Error: Permission denied."
        enable = "Enable the required permission"
    else:
        title = f"Error: Permission denied ({info.permission} required)"
        enable = f"Enable: {info.label}"

    return (
        f"{title}\n\n"
        "Your token lacks the required permission for this operation.\n\n"
        "To fix:\n"
        f"1. Go to: {TOKEN_SETTINGS_URL}\n"
        "2. Edit your fine-grained token\n"
        f"3. {enable}\n"
        "4. Save and re-authenticate: gh-vault auth login"
    )


def is_permission_error(error: BaseException) -> bool:
    return isinstance(error, GithubException) and error.status == 403
