"""Repository lookups."""

from __future__ import annotations

from dataclasses import dataclass, field

from github import Github
from github.Repository import Repository


@dataclass
class RepoSummary:
    full_name: str
    description: str
    private: bool
    fork: bool
    archived: bool
    stars: int
    language: str
    url: str
    updated_at: str


@dataclass
class RepoDetail(RepoSummary):
    default_branch: str = ""
    forks: int = 0
    open_issues: int = 0
    topics: list[str] = field(default_factory=list)
    homepage: str = ""


def _summary(repo: Repository) -> RepoSummary:
    return RepoSummary(
        full_name=repo.full_name,
        description=repo.description or "",
        private=repo.private,
        fork=repo.fork,
        archived=repo.archived,
        stars=repo.stargazers_count,
        language=repo.language or "",
        url=repo.html_url,
        updated_at=repo.updated_at.isoformat() if repo.updated_at else "",
    )


class RepoApi:
    def __init__(self, gh: Github) -> None:
        self._gh = gh

    def get_repo(self, full_name: str) -> RepoDetail:
        repo = self._gh.get_repo(full_name)
        return RepoDetail(
            **vars(_summary(repo)),
            default_branch=repo.default_branch,
            forks=repo.forks_count,
            open_issues=repo.open_issues_count,
            topics=repo.get_topics(),
            homepage=repo.homepage or "",
        )

    def list_repos(
        self,
        owner: str | None = None,
        visibility: str | None = None,
        include_archived: bool = True,
        limit: int = 30,
    ) -> list[RepoSummary]:
        """List repos for ``owner`` (user or org), or for the token's user."""
        if owner:
            repos = self._gh.get_user(owner).get_repos(sort="updated")
        else:
            kwargs = {"sort": "updated"}
            if visibility:
                kwargs["visibility"] = visibility
            repos = self._gh.get_user().get_repos(**kwargs)

        results: list[RepoSummary] = []
        for repo in repos:
            if len(results) >= limit:
                break
            if not include_archived and repo.archived:
                continue
            if owner and visibility in ("public", "private") and repo.private != (visibility == "private"):
                continue
            results.append(_summary(repo))
        return results
