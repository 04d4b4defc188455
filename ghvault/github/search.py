"""GitHub search: repositories, issues, pull requests, commits and code.

Queries are built from free text plus ``qualifier:value`` pairs, e.g.
``build_query("cache", language="python", user=["octo", "acme"])`` gives
``cache language:python user:octo user:acme``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import islice
from typing import Generic, Iterable, TypeVar

from github import Github
from github.Commit import Commit
from github.ContentFile import ContentFile
from github.Issue import Issue
from github.Repository import Repository

T = TypeVar("T")

QualifierValue = str | int | bool | list[str] | None


@dataclass
class SearchResult(Generic[T]):
    query: str
    total_count: int
    items: list[T] = field(default_factory=list)


@dataclass
class RepoHit:
    full_name: str
    description: str
    stars: int
    language: str
    url: str


@dataclass
class IssueHit:
    repo: str
    number: int
    title: str
    state: str
    author: str
    is_pull_request: bool
    url: str
    created_at: str


@dataclass
class CommitHit:
    sha: str
    message: str
    author: str
    date: str
    url: str


@dataclass
class CodeHit:
    repo: str
    path: str
    url: str


def build_query(text: str = "", **qualifiers: QualifierValue) -> str:
    """Join free text with qualifiers. Underscores in names become dashes."""
    parts = [text.strip()] if text and text.strip() else []
    for name, value in qualifiers.items():
        if value is None or value == "" or value == []:
            continue
        qualifier = name.rstrip("_").replace("_", "-")
        if isinstance(value, bool):
            parts.append(f"{qualifier}:{str(value).lower()}")
        elif isinstance(value, list):
            parts.extend(f"{qualifier}:{v}" for v in value)
        else:
            parts.append(f"{qualifier}:{value}")
    return " ".join(parts)


def _repo_hit(repo: Repository) -> RepoHit:
    return RepoHit(
        full_name=repo.full_name,
        description=repo.description or "",
        stars=repo.stargazers_count,
        language=repo.language or "",
        url=repo.html_url,
    )


def _issue_hit(issue: Issue) -> IssueHit:
    return IssueHit(
        repo=issue.repository.full_name,
        number=issue.number,
        title=issue.title,
        state=issue.state,
        author=issue.user.login if issue.user else "",
        is_pull_request=issue.pull_request is not None,
        url=issue.html_url,
        created_at=issue.created_at.isoformat() if issue.created_at else "",
    )


def _commit_hit(commit: Commit) -> CommitHit:
    git_commit = commit.commit
    author = git_commit.author
    return CommitHit(
        sha=commit.sha,
        message=(git_commit.message or "").splitlines()[0] if git_commit.message else "",
        author=author.name if author else "",
        date=author.date.isoformat() if author and author.date else "",
        url=commit.html_url,
    )


def _code_hit(content: ContentFile) -> CodeHit:
    return CodeHit(
        repo=content.repository.full_name,
        path=content.path,
        url=content.html_url,
    )


def _collect(query: str, results, convert, limit: int) -> SearchResult:
    items: Iterable = islice(results, limit)
    return SearchResult(
        query=query,
        total_count=results.totalCount,
        items=[convert(item) for item in items],
    )


class SearchApi:
    def __init__(self, gh: Github) -> None:
        self._gh = gh

    @staticmethod
    def _sort_kwargs(sort: str | None, order: str | None) -> dict[str, str]:
        kwargs = {}
        if sort:
            kwargs["sort"] = sort
            kwargs["order"] = order or "desc"
        return kwargs

    def repositories(
        self,
        text: str = "",
        language: str | None = None,
        owner: list[str] | None = None,
        topic: list[str] | None = None,
        stars: str | None = None,
        archived: bool | None = None,
        sort: str | None = None,
        order: str | None = None,
        limit: int = 30,
    ) -> SearchResult[RepoHit]:
        query = build_query(text, language=language, user=owner, topic=topic, stars=stars, archived=archived)
        results = self._gh.search_repositories(query, **self._sort_kwargs(sort, order))
        return _collect(query, results, _repo_hit, limit)

    def issues(
        self,
        text: str = "",
        repo: list[str] | None = None,
        author: str | None = None,
        assignee: str | None = None,
        label: list[str] | None = None,
        state: str | None = None,
        include_prs: bool = False,
        sort: str | None = None,
        order: str | None = None,
        limit: int = 30,
    ) -> SearchResult[IssueHit]:
        query = build_query(
            text,
            type=None if include_prs else "issue",
            repo=repo,
            author=author,
            assignee=assignee,
            label=label,
            state=state,
        )
        results = self._gh.search_issues(query, **self._sort_kwargs(sort, order))
        return _collect(query, results, _issue_hit, limit)

    def pull_requests(
        self,
        text: str = "",
        repo: list[str] | None = None,
        author: str | None = None,
        state: str | None = None,
        base: str | None = None,
        head: str | None = None,
        draft: bool | None = None,
        review: str | None = None,
        sort: str | None = None,
        order: str | None = None,
        limit: int = 30,
    ) -> SearchResult[IssueHit]:
        query = build_query(
            text,
            type="pr",
            repo=repo,
            author=author,
            state=state,
            base=base,
            head=head,
            draft=draft,
            review=review,
        )
        results = self._gh.search_issues(query, **self._sort_kwargs(sort, order))
        return _collect(query, results, _issue_hit, limit)

    def commits(
        self,
        text: str = "",
        repo: list[str] | None = None,
        author: str | None = None,
        committer_date: str | None = None,
        sort: str | None = None,
        order: str | None = None,
        limit: int = 30,
    ) -> SearchResult[CommitHit]:
        query = build_query(text, repo=repo, author=author, committer_date=committer_date)
        results = self._gh.search_commits(query, **self._sort_kwargs(sort, order))
        return _collect(query, results, _commit_hit, limit)

    def code(
        self,
        text: str,
        repo: list[str] | None = None,
        language: str | None = None,
        filename: str | None = None,
        extension: str | None = None,
        limit: int = 30,
    ) -> SearchResult[CodeHit]:
        query = build_query(text, repo=repo, language=language, filename=filename, extension=extension)
        results = self._gh.search_code(query)
        return _collect(query, results, _code_hit, limit)
