"""Pull request operations over PyGithub.

These methods are presentation-agnostic: they return plain dataclasses used
by both the CLI and the MCP server.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import islice

from github import Github
from github.CheckRun import CheckRun
from github.PullRequest import PullRequest
from github.Repository import Repository

from ghvault.github.search import IssueHit, _issue_hit, build_query

MERGE_METHODS = ("merge", "squash", "rebase")
REVIEW_EVENTS = ("APPROVE", "REQUEST_CHANGES", "COMMENT")


@dataclass
class PullRequestSummary:
    number: int
    title: str
    state: str
    author: str
    head: str
    base: str
    draft: bool
    url: str
    updated_at: str


@dataclass
class PullRequestDetail(PullRequestSummary):
    body: str = ""
    merged: bool = False
    mergeable: bool | None = None
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0
    comments: int = 0
    labels: list[str] = field(default_factory=list)


@dataclass
class PullRequestFile:
    filename: str
    status: str
    additions: int
    deletions: int
    patch: str = ""


@dataclass
class CheckResult:
    name: str
    status: str  # queued | in_progress | completed
    conclusion: str  # success | failure | ... | "" while running
    url: str

    @property
    def bucket(self) -> str:
        """Collapse status/conclusion to pass, fail, pending or skipping."""
        if self.status != "completed":
            return "pending"
        if self.conclusion in ("success", "neutral"):
            return "pass"
        if self.conclusion == "skipped":
            return "skipping"
        return "fail"


@dataclass
class ChecksSummary:
    sha: str
    checks: list[CheckResult] = field(default_factory=list)

    def counts(self) -> dict[str, int]:
        counts = {"pass": 0, "fail": 0, "pending": 0, "skipping": 0}
        for check in self.checks:
            counts[check.bucket] += 1
        return counts


@dataclass
class MergeResult:
    merged: bool
    message: str
    sha: str = ""
    branch_deleted: bool = False


@dataclass
class CommentResult:
    id: int
    url: str


@dataclass
class PullRequestComment:
    id: int
    author: str
    body: str
    url: str
    created_at: str
    path: str = ""  # review comments only
    line: int | None = None


@dataclass
class PullRequestReview:
    id: int
    author: str
    state: str  # APPROVED | CHANGES_REQUESTED | COMMENTED | ...
    body: str
    url: str
    submitted_at: str


@dataclass
class PullRequestStatus:
    """Open PRs relevant to the authenticated user in one repository."""

    repo: str
    user: str
    current_branch: str | None = None
    current_pr: PullRequestSummary | None = None
    created_by_you: list[IssueHit] = field(default_factory=list)
    review_requested: list[IssueHit] = field(default_factory=list)
    assigned_to_you: list[IssueHit] = field(default_factory=list)


def _iso(value) -> str:
    return value.isoformat() if value else ""


def _summary(pr: PullRequest) -> PullRequestSummary:
    return PullRequestSummary(
        number=pr.number,
        title=pr.title or "",
        state=pr.state,
        author=pr.user.login if pr.user else "",
        head=pr.head.ref,
        base=pr.base.ref,
        draft=bool(pr.draft),
        url=pr.html_url,
        updated_at=_iso(pr.updated_at),
    )


def _detail(pr: PullRequest) -> PullRequestDetail:
    return PullRequestDetail(
        **vars(_summary(pr)),
        body=pr.body or "",
        merged=bool(pr.merged),
        mergeable=pr.mergeable,
        additions=pr.additions,
        deletions=pr.deletions,
        changed_files=pr.changed_files,
        comments=pr.comments,
        labels=[label.name for label in pr.labels],
    )


def _comment(comment) -> PullRequestComment:
    return PullRequestComment(
        id=comment.id,
        author=comment.user.login if comment.user else "",
        body=comment.body or "",
        url=comment.html_url,
        created_at=_iso(comment.created_at),
    )


def _check(run: CheckRun) -> CheckResult:
    return CheckResult(
        name=run.name,
        status=run.status,
        conclusion=run.conclusion or "",
        url=run.html_url or "",
    )


class PullRequestApi:
    def __init__(self, gh: Github) -> None:
        self._gh = gh

    def _repo(self, full_name: str) -> Repository:
        return self._gh.get_repo(full_name)

    def list_pulls(
        self,
        repo: str,
        state: str = "open",
        base: str | None = None,
        head: str | None = None,
        limit: int = 30,
    ) -> list[PullRequestSummary]:
        kwargs = {"state": state, "sort": "updated", "direction": "desc"}
        if base:
            kwargs["base"] = base
        if head:
            # the API expects owner:branch
            kwargs["head"] = head if ":" in head else f"{repo.split('/')[0]}:{head}"
        pulls = self._repo(repo).get_pulls(**kwargs)
        return [_summary(pr) for pr in islice(pulls, limit)]

    def find_for_branch(self, repo: str, branch: str) -> int | None:
        """Number of the open PR whose head is ``branch``, if any."""
        pulls = self.list_pulls(repo, state="open", head=branch, limit=1)
        return pulls[0].number if pulls else None

    def get_pull(self, repo: str, number: int) -> PullRequestDetail:
        return _detail(self._repo(repo).get_pull(number))

    def list_files(self, repo: str, number: int) -> list[PullRequestFile]:
        pr = self._repo(repo).get_pull(number)
        return [
            PullRequestFile(
                filename=f.filename,
                status=f.status,
                additions=f.additions,
                deletions=f.deletions,
                patch=f.patch or "",
            )
            for f in pr.get_files()
        ]

    def get_diff(self, repo: str, number: int) -> str:
        """Unified diff assembled from the per-file patches."""
        chunks = []
        for f in self.list_files(repo, number):
            chunks.append(f"diff --git a/{f.filename} b/{f.filename}")
            if f.patch:
                chunks.append(f"--- a/{f.filename}\n+++ b/{f.filename}")
                chunks.append(f.patch)
        return "\n".join(chunks) + ("\n" if chunks else "")

    def list_checks(self, repo: str, number: int) -> ChecksSummary:
        gh_repo = self._repo(repo)
        sha = gh_repo.get_pull(number).head.sha
        runs = gh_repo.get_commit(sha).get_check_runs()
        return ChecksSummary(sha=sha, checks=[_check(run) for run in runs])

    def comment(self, repo: str, number: int, body: str) -> CommentResult:
        created = self._repo(repo).get_pull(number).create_issue_comment(body)
        return CommentResult(id=created.id, url=created.html_url)

    def merge(
        self,
        repo: str,
        number: int,
        method: str = "merge",
        title: str | None = None,
        delete_branch: bool = False,
    ) -> MergeResult:
        if method not in MERGE_METHODS:
            raise ValueError(f"Unknown merge method {method!r}; use one of {', '.join(MERGE_METHODS)}")

        gh_repo = self._repo(repo)
        pr = gh_repo.get_pull(number)
        kwargs = {"merge_method": method}
        if title:
            kwargs["commit_title"] = title
        status = pr.merge(**kwargs)
        result = MergeResult(merged=status.merged, message=status.message, sha=status.sha or "")

        if result.merged and delete_branch and pr.head.repo and pr.head.repo.full_name == gh_repo.full_name:
            gh_repo.get_git_ref(f"heads/{pr.head.ref}").delete()
            result.branch_deleted = True
        return result

    def set_state(
        self, repo: str, number: int, state: str, comment: str | None = None
    ) -> PullRequestDetail:
        """Close (``state="closed"``) or reopen (``state="open"``) a PR.

        ``comment`` is posted to the conversation before the state change.
        """
        pr = self._repo(repo).get_pull(number)
        if comment:
            pr.create_issue_comment(comment)
        pr.edit(state=state)
        return _detail(pr)

    def create(
        self,
        repo: str,
        title: str,
        head: str,
        base: str | None = None,
        body: str = "",
        draft: bool = False,
        maintainer_can_modify: bool = True,
        labels: list[str] | None = None,
        reviewers: list[str] | None = None,
    ) -> PullRequestSummary:
        """Open a PR from ``head`` into ``base`` (the default branch if omitted)."""
        if not title.strip():
            raise ValueError("A title is required to create a pull request")
        gh_repo = self._repo(repo)
        pr = gh_repo.create_pull(
            base=base or gh_repo.default_branch,
            head=head,
            title=title,
            body=body,
            draft=draft,
            maintainer_can_modify=maintainer_can_modify,
        )
        if labels:
            pr.add_to_labels(*labels)
        if reviewers:
            _request_reviews(pr, reviewers)
        return _summary(pr)

    def edit(
        self,
        repo: str,
        number: int,
        title: str | None = None,
        body: str | None = None,
        base: str | None = None,
        add_labels: list[str] | None = None,
        remove_labels: list[str] | None = None,
        add_assignees: list[str] | None = None,
        remove_assignees: list[str] | None = None,
        add_reviewers: list[str] | None = None,
        remove_reviewers: list[str] | None = None,
    ) -> PullRequestDetail:
        fields = {k: v for k, v in (("title", title), ("body", body), ("base", base)) if v is not None}
        collections = (add_labels, remove_labels, add_assignees, remove_assignees, add_reviewers, remove_reviewers)
        if not fields and not any(collections):
            raise ValueError("Nothing to edit; pass at least one field to change")

        pr = self._repo(repo).get_pull(number)
        if fields:
            pr.edit(**fields)
        if add_labels:
            pr.add_to_labels(*add_labels)
        for label in remove_labels or []:
            pr.remove_from_labels(label)
        if add_assignees:
            pr.add_to_assignees(*add_assignees)
        if remove_assignees:
            pr.remove_from_assignees(*remove_assignees)
        if add_reviewers:
            _request_reviews(pr, add_reviewers)
        if remove_reviewers:
            users, teams = _split_reviewers(remove_reviewers)
            pr.delete_review_request(reviewers=users, team_reviewers=teams)
        return self.get_pull(repo, number)

    def set_draft(self, repo: str, number: int, draft: bool) -> PullRequestDetail:
        """Mark a PR ready for review, or convert it back to a draft."""
        pr = self._repo(repo).get_pull(number)
        if bool(pr.draft) == draft:
            wanted = "a draft" if draft else "ready for review"
            raise ValueError(f"Pull request #{number} is already {wanted}")
        if draft:
            pr.convert_to_draft()
        else:
            pr.mark_ready_for_review()
        return self.get_pull(repo, number)

    def review(self, repo: str, number: int, event: str, body: str = "") -> PullRequestReview:
        if event not in REVIEW_EVENTS:
            raise ValueError(f"Unknown review event {event!r}; use one of {', '.join(REVIEW_EVENTS)}")
        if event == "REQUEST_CHANGES" and not body.strip():
            raise ValueError("Requesting changes requires a review body")
        created = self._repo(repo).get_pull(number).create_review(body=body, event=event)
        return PullRequestReview(
            id=created.id,
            author=created.user.login if created.user else "",
            state=created.state,
            body=created.body or "",
            url=created.html_url,
            submitted_at=_iso(created.submitted_at),
        )

    def list_comments(self, repo: str, number: int, limit: int = 30) -> list[PullRequestComment]:
        """Conversation comments, oldest first."""
        pr = self._repo(repo).get_pull(number)
        return [_comment(c) for c in islice(pr.get_issue_comments(), limit)]

    def list_review_comments(self, repo: str, number: int, limit: int = 30) -> list[PullRequestComment]:
        """Inline comments attached to lines of the diff."""
        pr = self._repo(repo).get_pull(number)
        comments = []
        for c in islice(pr.get_review_comments(), limit):
            comment = _comment(c)
            comment.path = c.path
            comment.line = c.line
            comments.append(comment)
        return comments

    def list_reviews(self, repo: str, number: int) -> list[PullRequestReview]:
        pr = self._repo(repo).get_pull(number)
        return [
            PullRequestReview(
                id=r.id,
                author=r.user.login if r.user else "",
                state=r.state,
                body=r.body or "",
                url=r.html_url,
                submitted_at=_iso(r.submitted_at),
            )
            for r in pr.get_reviews()
        ]

    def status(self, repo: str, branch: str | None = None, limit: int = 10) -> PullRequestStatus:
        user = self._gh.get_user().login
        result = PullRequestStatus(repo=repo, user=user, current_branch=branch)
        if branch:
            pulls = self.list_pulls(repo, state="open", head=branch, limit=1)
            result.current_pr = pulls[0] if pulls else None

        def search(**qualifiers) -> list[IssueHit]:
            query = build_query(is_=["pr", "open"], repo=repo, **qualifiers)
            return [_issue_hit(issue) for issue in islice(self._gh.search_issues(query), limit)]

        result.created_by_you = search(author=user)
        result.review_requested = search(review_requested=user)
        result.assigned_to_you = search(assignee=user)
        return result


def _split_reviewers(reviewers: list[str]) -> tuple[list[str], list[str]]:
    """Separate user logins from ``org/team`` reviewers (team slugs)."""
    users = [r for r in reviewers if "/" not in r]
    teams = [r.split("/", 1)[1] for r in reviewers if "/" in r]
    return users, teams


def _request_reviews(pr: PullRequest, reviewers: list[str]) -> None:
    users, teams = _split_reviewers(reviewers)
    pr.create_review_request(reviewers=users, team_reviewers=teams)
