"""Repository resolution from -R owner/repo or the local git checkout."""

from __future__ import annotations

import logging
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path

from ghvault.errors import RepoResolutionError

logger = logging.getLogger(__name__)

# Repo names may contain dots, so everything up to an optional .git suffix
HTTPS_REMOTE_RE = re.compile(r"^https://github\.com/([^/]+)/([^/]+?)(?:\.git)?/?$")
SSH_REMOTE_RE = re.compile(r"^(?:ssh://)?git@github\.com[:/]([^/]+)/([^/]+?)(?:\.git)?$")

PREFERRED_REMOTES = ("origin", "upstream")


@dataclass
class RepoInfo:
    owner: str
    repo: str
    remote_url: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


def parse_remote_url(url: str) -> RepoInfo | None:
    """Extract owner/repo from an HTTPS or SSH GitHub remote URL."""
    url = url.strip()
    for pattern in (HTTPS_REMOTE_RE, SSH_REMOTE_RE):
        match = pattern.match(url)
        if match:
            return RepoInfo(owner=match.group(1), repo=match.group(2), remote_url=url)
    return None


def _git(args: list[str], cwd: Path | None = None) -> str | None:
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError) as e:
        logger.debug("git %s failed: %s", " ".join(args), e)
        return None
    return result.stdout


def parse_remotes(output: str) -> dict[str, RepoInfo]:
    """Parse `git remote -v` output, keeping GitHub remotes only."""
    remotes: dict[str, RepoInfo] = {}
    for line in output.splitlines():
        parts = line.split()
        if len(parts) < 2 or parts[0] in remotes:
            continue
        info = parse_remote_url(parts[1])
        if info:
            remotes[parts[0]] = info
    return remotes


def detect_repo(cwd: Path | None = None) -> RepoInfo | None:
    """Find the GitHub repository for the checkout at ``cwd``."""
    output = _git(["remote", "-v"], cwd)
    if not output:
        return None

    remotes = parse_remotes(output)
    for name in PREFERRED_REMOTES:
        if name in remotes:
            return remotes[name]
    return next(iter(remotes.values()), None)


def current_branch(cwd: Path | None = None) -> str | None:
    output = _git(["rev-parse", "--abbrev-ref", "HEAD"], cwd)
    if not output:
        return None
    branch = output.strip()
    return None if branch == "HEAD" else branch


def resolve_repository(option: str | None, cwd: Path | None = None) -> RepoInfo:
    """Resolve owner/repo from the -R option, falling back to git detection."""
    if option:
        parts = option.strip().split("/")
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise RepoResolutionError("Invalid repository format. Use owner/repo")
        return RepoInfo(owner=parts[0], repo=parts[1])

    info = detect_repo(cwd)
    if info is None:
        raise RepoResolutionError()
    return info
