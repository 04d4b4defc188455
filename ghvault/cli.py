"""CLI entry point for gh-vault."""

from __future__ import annotations

import re
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import typer
from github import Github
from github.GithubException import BadCredentialsException, GithubException, UnknownObjectException
from requests.exceptions import RequestException
from rich import print as rprint
from rich.markup import escape

from ghvault.activity import read_activity_log
from ghvault.auth.manager import FILE_MODE_FLAG, CredentialManager
from ghvault.auth.models import TokenLocation
from ghvault.auth.tokens import TokenType, classify, is_allowed
from ghvault.config import Config
from ghvault.errors import (
    AuthenticationError,
    ClassicTokenError,
    GhVaultError,
    InvalidTokenFormatError,
    StorageUnavailableError,
    TokenDisplayDisabledError,
    TOKEN_SETTINGS_URL,
    format_permission_error,
    is_permission_error,
)
from ghvault.github.client import create_github_client, verify_token
from ghvault.github.pulls import MERGE_METHODS, PullRequestApi, PullRequestStatus
from ghvault.github.repo import current_branch, resolve_repository
from ghvault.github.repos import RepoApi
from ghvault.github.runs import RunApi
from ghvault.github.search import SearchApi, SearchResult
from ghvault.github.workflows import WorkflowApi, parse_inputs
from ghvault.logging_setup import err_console, setup_logging
from ghvault.output import print_json, print_table, state_style

app = typer.Typer(help="GitHub CLI with secure token storage.", no_args_is_help=True)
auth_app = typer.Typer(help="Manage GitHub authentication.", no_args_is_help=True)
pr_app = typer.Typer(help="Work with pull requests.", no_args_is_help=True)
run_app = typer.Typer(help="Work with workflow runs.", no_args_is_help=True)
workflow_app = typer.Typer(help="Work with workflows.", no_args_is_help=True)
repo_app = typer.Typer(help="Work with repositories.", no_args_is_help=True)
search_app = typer.Typer(help="Search GitHub.", no_args_is_help=True)

app.add_typer(auth_app, name="auth")
app.add_typer(pr_app, name="pr")
app.add_typer(run_app, name="run")
app.add_typer(workflow_app, name="workflow")
app.add_typer(repo_app, name="repo")
app.add_typer(search_app, name="search")

LOGIN_HINT = "Run: gh-vault auth login"
PR_URL_RE = re.compile(r"/pull/(\d+)")

# Failures reported through handle_error instead of a traceback
REPORTED_ERRORS = (GhVaultError, GithubException, RequestException, ValueError)

# Extra lines printed after "Error: <message>" for known error types
CLI_ERROR_DETAILS: dict[type[Exception], list[str]] = {
    AuthenticationError: ["", LOGIN_HINT],
    InvalidTokenFormatError: [
        "",
        "Expected: github_pat_... (fine-grained personal access token)",
        "",
        f"Create a token at: {TOKEN_SETTINGS_URL}",
    ],
    ClassicTokenError: [
        "",
        "Classic tokens carry broad, unscoped permissions.",
        f"Create a fine-grained token at: {TOKEN_SETTINGS_URL}",
    ],
    TokenDisplayDisabledError: [
        "",
        "Tokens in terminal output can leak to shell history and logs.",
        "",
        "To verify authentication: gh-vault auth status",
    ],
}

# Shared option declarations
RepoOption = typer.Option(None, "--repo", "-R", help="Repository as owner/repo (default: detect from git)")
JsonOption = typer.Option(False, "--json", help="Output JSON")
LimitOption = typer.Option(30, "--limit", "-L", help="Maximum number of results")


def _github_message(error: GithubException) -> str:
    if isinstance(error.data, dict) and error.data.get("message"):
        return str(error.data["message"])
    return str(error)


def handle_error(error: Exception, operation: str = "") -> None:
    """Print an error with remediation to stderr and exit with status 1."""
    if is_permission_error(error):
        err_console.print(format_permission_error(operation), markup=False)
        raise typer.Exit(1)

    if isinstance(error, GithubException):
        err_console.print(f"Error: {_github_message(error)} (HTTP {error.status})", markup=False)
        if isinstance(error, BadCredentialsException):
            err_console.print(LOGIN_HINT, markup=False)
        elif isinstance(error, UnknownObjectException):
            err_console.print("Check the repository name and that your token can access it.", markup=False)
        raise typer.Exit(1)

    if isinstance(error, RequestException):
        err_console.print(
            f"Error: Could not reach {Config.load().api_url}; check your network or GH_VAULT_API_URL", markup=False
        )
        err_console.print(f"Detail: {error}", markup=False)
        raise typer.Exit(1)

    err_console.print(f"Error: {error}", markup=False)
    if isinstance(error, StorageUnavailableError) and error.remediation:
        err_console.print(error.remediation, markup=False)
    for line in CLI_ERROR_DETAILS.get(type(error), []):
        err_console.print(line, markup=False)
    raise typer.Exit(1)


def _load_config() -> Config:
    config = Config.load()
    issues = config.validate()
    if issues:
        for issue in issues:
            err_console.print(f"[red]Config error: {escape(issue)}[/red]")
        raise typer.Exit(1)
    return config


def _credential_manager(config: Config) -> CredentialManager:
    return CredentialManager.from_config(config)


@contextmanager
def _errors(operation: str = "") -> Iterator[None]:
    try:
        yield
    except REPORTED_ERRORS + (OSError,) as e:
        handle_error(e, operation)


@contextmanager
def _session(operation: str) -> Iterator[Github]:
    """Authenticated client for one command; errors are reported and exit 1."""
    gh: Github | None = None
    try:
        config = _load_config()
        gh = create_github_client(_credential_manager(config), config)
        yield gh
    except REPORTED_ERRORS as e:
        handle_error(e, operation)
    finally:
        if gh is not None:
            gh.close()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging on stderr"),
) -> None:
    """GitHub CLI with secure token storage."""
    setup_logging(Config.load().log_level, verbose=verbose)


# ---------------------------------------------------------------------------
# auth
# ---------------------------------------------------------------------------


@auth_app.command()
def login(
    token: str = typer.Option(
        ..., prompt="GitHub personal access token", hide_input=True, help="Fine-grained personal access token"
    ),
    insecure_storage: bool = typer.Option(
        False,
        FILE_MODE_FLAG,
        help="Store the token in a plaintext file (mode 0600) instead of the system keyring",
    ),
    verify: bool = typer.Option(True, "--verify/--no-verify", help="Check the token against the GitHub API"),
) -> None:
    """Authenticate with a fine-grained personal access token."""
    token = token.strip()
    with _errors("auth:login"):
        config = _load_config()
        check = classify(token)
        if not check.valid:
            raise InvalidTokenFormatError()
        if not is_allowed(check.type):
            raise ClassicTokenError()
        rprint(f"Token type: {check.type.value}")

        if verify:
            info = verify_token(token, config)
            rprint(f"✓ Valid for user: [bold]{escape(info.login)}[/bold]")
            rprint(f"✓ Rate limit: {info.rate_remaining}/{info.rate_limit}")

        location = _credential_manager(config).set_token(token, use_file_mode=insecure_storage)
        if location is TokenLocation.FILE:
            rprint(f"✓ Token saved to {escape(str(config.token_path))}")
            rprint("[yellow]The token is stored unencrypted; only your user can read the file.[/yellow]")
        else:
            rprint("✓ Token saved to the system keyring")


@auth_app.command()
def logout() -> None:
    """Remove stored GitHub credentials."""
    with _errors("auth:logout"):
        config = _load_config()
        _credential_manager(config).delete_token()
        rprint("✓ Token removed")


@auth_app.command()
def status() -> None:
    """Show authentication status."""
    with _errors("auth:status"):
        config = _load_config()
        manager = _credential_manager(config)
        token, location = manager.resolve()
        if not token:
            raise AuthenticationError("No token configured.")

        if location is TokenLocation.VAULT:
            rprint(f"Storage: system keyring ({escape(manager.vault.backend_name)})")
        else:
            rprint(f"Storage: {escape(str(manager.file.path))} (plaintext)")

        check = classify(token)
        rprint(f"Token type: {check.type.value}")
        if check.type is TokenType.CLASSIC:
            rprint("[yellow]Classic tokens are no longer accepted at login; replace it with a fine-grained token.[/yellow]")

        info = verify_token(token, config)
        rprint(f"User: [bold]{escape(info.login)}[/bold]")
        rprint(f"Scopes: {escape(', '.join(info.scopes)) or '(fine-grained PAT)'}")
        rprint(f"Rate limit: {info.rate_remaining}/{info.rate_limit}")


@auth_app.command()
def token() -> None:
    """Display auth token (disabled for security)."""
    with _errors("auth:token"):
        raise TokenDisplayDisabledError()


# ---------------------------------------------------------------------------
# pr
# ---------------------------------------------------------------------------


def _pr_number(api: PullRequestApi, repo: str, ref: str | None) -> int:
    """Resolve a PR number from a number, URL, branch name, or the current branch."""
    if ref and ref.lstrip("#").isdigit():
        return int(ref.lstrip("#"))
    if ref:
        match = PR_URL_RE.search(ref)
        if match:
            return int(match.group(1))

    branch = ref or current_branch()
    if not branch:
        raise ValueError("Could not determine current branch; pass a PR number")
    number = api.find_for_branch(repo, branch)
    if number is None:
        raise ValueError(f"No open PR found for branch '{branch}'")
    return number


@pr_app.command("list")
def pr_list(
    repo: str = RepoOption,
    state: str = typer.Option("open", "--state", "-s", help="open, closed or all"),
    base: str = typer.Option(None, "--base", "-B", help="Filter by base branch"),
    head: str = typer.Option(None, "--head", "-H", help="Filter by head branch"),
    limit: int = LimitOption,
    json_output: bool = JsonOption,
) -> None:
    """List pull requests."""
    with _session("pr:list") as gh:
        full_name = resolve_repository(repo).full_name
        pulls = PullRequestApi(gh).list_pulls(full_name, state=state, base=base, head=head, limit=limit)
        if json_output:
            print_json(pulls)
            return
        print_table(
            ["#", "Title", "Branch", "State", "Author"],
            [
                [pr.number, pr.title, pr.head, state_style("draft" if pr.draft else pr.state), pr.author]
                for pr in pulls
            ],
            title=f"Pull requests in {full_name}",
        )


@pr_app.command("view")
def pr_view(
    pr: str = typer.Argument(None, help="PR number, URL or branch (default: current branch)"),
    repo: str = RepoOption,
    json_output: bool = JsonOption,
) -> None:
    """Show a pull request."""
    with _session("pr:view") as gh:
        full_name = resolve_repository(repo).full_name
        api = PullRequestApi(gh)
        detail = api.get_pull(full_name, _pr_number(api, full_name, pr))
        if json_output:
            print_json(detail)
            return
        state = "merged" if detail.merged else ("draft" if detail.draft else detail.state)
        rprint(f"[bold]{escape(detail.title)}[/bold] #{detail.number}")
        rprint(state_style(state), f"• {escape(detail.author)} wants to merge {escape(detail.head)} into {escape(detail.base)}")
        rprint(f"+{detail.additions} -{detail.deletions} in {detail.changed_files} file(s), {detail.comments} comment(s)")
        if detail.labels:
            rprint(f"Labels: {escape(', '.join(detail.labels))}")
        rprint("")
        rprint(escape(detail.body) if detail.body else "[dim]No description provided.[/dim]")
        rprint(f"\nView this pull request on GitHub: {detail.url}")


@pr_app.command("diff")
def pr_diff(
    pr: str = typer.Argument(None, help="PR number, URL or branch (default: current branch)"),
    repo: str = RepoOption,
) -> None:
    """Show the changes in a pull request."""
    with _session("pr:diff") as gh:
        full_name = resolve_repository(repo).full_name
        api = PullRequestApi(gh)
        typer.echo(api.get_diff(full_name, _pr_number(api, full_name, pr)), nl=False)


@pr_app.command("checks")
def pr_checks(
    pr: str = typer.Argument(None, help="PR number, URL or branch (default: current branch)"),
    repo: str = RepoOption,
    json_output: bool = JsonOption,
) -> None:
    """Show CI check status for a pull request. Exits 1 if any check failed."""
    with _session("pr:checks") as gh:
        full_name = resolve_repository(repo).full_name
        api = PullRequestApi(gh)
        summary = api.list_checks(full_name, _pr_number(api, full_name, pr))
        counts = summary.counts()
        if json_output:
            print_json({"sha": summary.sha, "counts": counts, "checks": summary.checks})
        else:
            rprint(
                f"{counts['pass']} passing, {counts['fail']} failing, "
                f"{counts['pending']} pending, {counts['skipping']} skipped"
            )
            print_table(
                ["Check", "Result", "URL"],
                [[c.name, state_style(c.bucket), c.url] for c in summary.checks],
            )
    if counts["fail"]:
        raise typer.Exit(1)


@pr_app.command("comment")
def pr_comment(
    pr: str = typer.Argument(None, help="PR number, URL or branch (default: current branch)"),
    body: str = typer.Option(..., "--body", "-b", help="Comment text"),
    repo: str = RepoOption,
) -> None:
    """Add a comment to a pull request."""
    with _session("pr:comment") as gh:
        full_name = resolve_repository(repo).full_name
        api = PullRequestApi(gh)
        result = api.comment(full_name, _pr_number(api, full_name, pr), body)
        rprint(result.url)


@pr_app.command("merge")
def pr_merge(
    pr: str = typer.Argument(None, help="PR number, URL or branch (default: current branch)"),
    method: str = typer.Option("merge", "--method", "-m", help=f"One of: {', '.join(MERGE_METHODS)}"),
    subject: str = typer.Option(None, "--subject", "-t", help="Merge commit title"),
    delete_branch: bool = typer.Option(False, "--delete-branch", "-d", help="Delete the head branch after merge"),
    repo: str = RepoOption,
) -> None:
    """Merge a pull request."""
    with _session("pr:merge") as gh:
        full_name = resolve_repository(repo).full_name
        api = PullRequestApi(gh)
        number = _pr_number(api, full_name, pr)
        result = api.merge(full_name, number, method=method, title=subject, delete_branch=delete_branch)
        if not result.merged:
            raise ValueError(f"Pull request #{number} was not merged: {result.message}")
        rprint(f"✓ Merged pull request #{number} ({method})")
        if result.branch_deleted:
            rprint("✓ Deleted head branch")


def _set_pr_state(pr: str | None, repo: str | None, state: str, operation: str, comment: str | None) -> None:
    with _session(operation) as gh:
        full_name = resolve_repository(repo).full_name
        api = PullRequestApi(gh)
        detail = api.set_state(full_name, _pr_number(api, full_name, pr), state, comment=comment)
        verb = "Closed" if state == "closed" else "Reopened"
        rprint(f"✓ {verb} pull request #{detail.number} ({escape(detail.title)})")


@pr_app.command("close")
def pr_close(
    pr: str = typer.Argument(None, help="PR number, URL or branch (default: current branch)"),
    comment: str = typer.Option(None, "--comment", "-c", help="Leave a closing comment"),
    repo: str = RepoOption,
) -> None:
    """Close a pull request."""
    _set_pr_state(pr, repo, "closed", "pr:close", comment)


@pr_app.command("reopen")
def pr_reopen(
    pr: str = typer.Argument(None, help="PR number, URL or branch (default: current branch)"),
    comment: str = typer.Option(None, "--comment", "-c", help="Add a reopening comment"),
    repo: str = RepoOption,
) -> None:
    """Reopen a closed pull request."""
    _set_pr_state(pr, repo, "open", "pr:reopen", comment)


def _read_body(body: str | None, body_file: str | None) -> str | None:
    """Body text from --body or --body-file ("-" reads stdin)."""
    if not body_file:
        return body
    if body_file == "-":
        return sys.stdin.read()
    try:
        return Path(body_file).read_text(encoding="utf-8")
    except OSError as e:
        raise ValueError(f"Could not read body file {body_file}: {e.strerror}") from e


@pr_app.command("create")
def pr_create(
    title: str = typer.Option(..., "--title", "-t", help="Title for the pull request"),
    body: str = typer.Option(None, "--body", "-b", help="Body for the pull request"),
    body_file: str = typer.Option(None, "--body-file", "-F", help='Read body from file ("-" for stdin)'),
    base: str = typer.Option(None, "--base", "-B", help="Branch to merge into (default: repository default)"),
    head: str = typer.Option(None, "--head", "-H", help="Branch with your changes (default: current branch)"),
    draft: bool = typer.Option(False, "--draft", "-d", help="Create the pull request as a draft"),
    label: list[str] = typer.Option(None, "--label", "-l", help="Add a label"),
    reviewer: list[str] = typer.Option(None, "--reviewer", "-r", help="Request a review (login or org/team)"),
    no_maintainer_edit: bool = typer.Option(
        False, "--no-maintainer-edit", help="Disallow maintainers from pushing to the head branch"
    ),
    repo: str = RepoOption,
) -> None:
    """Create a pull request."""
    with _session("pr:create") as gh:
        full_name = resolve_repository(repo).full_name
        head = head or current_branch()
        if not head:
            raise ValueError("Could not determine head branch. Use -H to specify.")
        created = PullRequestApi(gh).create(
            full_name,
            title=title,
            head=head,
            base=base,
            body=_read_body(body, body_file) or "",
            draft=draft,
            maintainer_can_modify=not no_maintainer_edit,
            labels=label or None,
            reviewers=reviewer or None,
        )
        kind = "draft pull request" if created.draft else "pull request"
        rprint(f"✓ Created {kind} #{created.number} ({escape(created.head)} → {escape(created.base)})")
        rprint(created.url)


@pr_app.command("edit")
def pr_edit(
    pr: str = typer.Argument(None, help="PR number, URL or branch (default: current branch)"),
    title: str = typer.Option(None, "--title", "-t", help="Set the new title"),
    body: str = typer.Option(None, "--body", "-b", help="Set the new body"),
    body_file: str = typer.Option(None, "--body-file", "-F", help='Read body from file ("-" for stdin)'),
    base: str = typer.Option(None, "--base", "-B", help="Change the base branch"),
    add_label: list[str] = typer.Option(None, "--add-label", help="Add a label"),
    remove_label: list[str] = typer.Option(None, "--remove-label", help="Remove a label"),
    add_assignee: list[str] = typer.Option(None, "--add-assignee", help="Add an assignee"),
    remove_assignee: list[str] = typer.Option(None, "--remove-assignee", help="Remove an assignee"),
    add_reviewer: list[str] = typer.Option(None, "--add-reviewer", help="Request a reviewer"),
    remove_reviewer: list[str] = typer.Option(None, "--remove-reviewer", help="Remove a review request"),
    repo: str = RepoOption,
) -> None:
    """Edit a pull request."""
    with _session("pr:edit") as gh:
        full_name = resolve_repository(repo).full_name
        api = PullRequestApi(gh)
        detail = api.edit(
            full_name,
            _pr_number(api, full_name, pr),
            title=title,
            body=_read_body(body, body_file),
            base=base,
            add_labels=add_label,
            remove_labels=remove_label,
            add_assignees=add_assignee,
            remove_assignees=remove_assignee,
            add_reviewers=add_reviewer,
            remove_reviewers=remove_reviewer,
        )
        rprint(f"✓ Edited pull request #{detail.number} ({escape(detail.title)})")
        rprint(detail.url)


@pr_app.command("ready")
def pr_ready(
    pr: str = typer.Argument(None, help="PR number, URL or branch (default: current branch)"),
    undo: bool = typer.Option(False, "--undo", help="Convert the pull request back to a draft"),
    repo: str = RepoOption,
) -> None:
    """Mark a draft pull request as ready for review."""
    with _session("pr:ready") as gh:
        full_name = resolve_repository(repo).full_name
        api = PullRequestApi(gh)
        detail = api.set_draft(full_name, _pr_number(api, full_name, pr), draft=undo)
        if undo:
            rprint(f"✓ Pull request #{detail.number} is converted to \"draft\"")
        else:
            rprint(f"✓ Pull request #{detail.number} is marked as \"ready for review\"")


@pr_app.command("review")
def pr_review(
    pr: str = typer.Argument(None, help="PR number, URL or branch (default: current branch)"),
    approve: bool = typer.Option(False, "--approve", "-a", help="Approve the pull request"),
    request_changes: bool = typer.Option(False, "--request-changes", "-r", help="Request changes"),
    comment: bool = typer.Option(False, "--comment", "-c", help="Comment without approving"),
    body: str = typer.Option(None, "--body", "-b", help="Review body"),
    body_file: str = typer.Option(None, "--body-file", "-F", help='Read body from file ("-" for stdin)'),
    repo: str = RepoOption,
) -> None:
    """Add a review to a pull request."""
    with _session("pr:review") as gh:
        chosen = [event for event, flag in
                  (("APPROVE", approve), ("REQUEST_CHANGES", request_changes), ("COMMENT", comment)) if flag]
        if len(chosen) != 1:
            raise ValueError("Specify exactly one of --approve, --request-changes or --comment")
        full_name = resolve_repository(repo).full_name
        api = PullRequestApi(gh)
        number = _pr_number(api, full_name, pr)
        api.review(full_name, number, chosen[0], body=_read_body(body, body_file) or "")
        done = {"APPROVE": "Approved", "REQUEST_CHANGES": "Requested changes to", "COMMENT": "Reviewed"}
        rprint(f"✓ {done[chosen[0]]} pull request #{number}")


def _print_status_section(title: str, hits) -> None:
    rprint(f"\n[bold]{title}[/bold]")
    if not hits:
        rprint("  [dim]None[/dim]")
    for hit in hits:
        rprint(f"  #{hit.number} {escape(hit.title)}")


@pr_app.command("status")
def pr_status(
    repo: str = RepoOption,
    json_output: bool = JsonOption,
) -> None:
    """Show status of pull requests relevant to you."""
    with _session("pr:status") as gh:
        full_name = resolve_repository(repo).full_name
        result: PullRequestStatus = PullRequestApi(gh).status(full_name, branch=current_branch())
        if json_output:
            print_json(result)
            return
        rprint(f"Relevant pull requests in [bold]{escape(full_name)}[/bold]")
        rprint("\n[bold]Current branch[/bold]")
        if result.current_pr:
            rprint(f"  #{result.current_pr.number} {escape(result.current_pr.title)} ({escape(result.current_pr.head)})")
        elif result.current_branch:
            rprint(f"  [dim]There is no pull request associated with {escape(result.current_branch)}[/dim]")
        else:
            rprint("  [dim]Not on a branch[/dim]")
        _print_status_section("Created by you", result.created_by_you)
        _print_status_section("Requesting a code review from you", result.review_requested)
        _print_status_section("Assigned to you", result.assigned_to_you)


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


@run_app.command("list")
def run_list(
    repo: str = RepoOption,
    branch: str = typer.Option(None, "--branch", "-b", help="Filter by branch"),
    run_status: str = typer.Option(None, "--status", "-s", help="Filter by status or conclusion"),
    event: str = typer.Option(None, "--event", "-e", help="Filter by triggering event"),
    workflow: str = typer.Option(None, "--workflow", "-w", help="Workflow id or file name"),
    limit: int = typer.Option(20, "--limit", "-L", help="Maximum number of runs"),
    json_output: bool = JsonOption,
) -> None:
    """List recent workflow runs."""
    with _session("run:list") as gh:
        full_name = resolve_repository(repo).full_name
        runs = RunApi(gh).list_runs(
            full_name, branch=branch, status=run_status, event=event, workflow=workflow, limit=limit
        )
        if json_output:
            print_json(runs)
            return
        print_table(
            ["ID", "Workflow", "Branch", "Event", "Status", "Created"],
            [
                [r.id, r.name, r.branch, r.event, state_style(r.conclusion or r.status), r.created_at]
                for r in runs
            ],
        )


@run_app.command("view")
def run_view(
    run_id: int = typer.Argument(help="Workflow run id"),
    repo: str = RepoOption,
    json_output: bool = JsonOption,
) -> None:
    """Show a workflow run and its jobs."""
    with _session("run:view") as gh:
        detail = RunApi(gh).get_run(resolve_repository(repo).full_name, run_id)
        if json_output:
            print_json(detail)
            return
        rprint(f"[bold]{escape(detail.name)}[/bold] #{detail.number} on {escape(detail.branch)} ({detail.event})")
        rprint("Status:", state_style(detail.conclusion or detail.status), f"attempt {detail.attempt}")
        for job in detail.jobs:
            rprint("\n", state_style(job.conclusion or job.status), f"[bold]{escape(job.name)}[/bold]")
            for step in job.steps:
                marker = "✓" if step.conclusion == "success" else ("X" if step.conclusion == "failure" else "-")
                rprint(f"  {marker} {escape(step.name)}")
        rprint(f"\nView this run on GitHub: {detail.url}")


@run_app.command("cancel")
def run_cancel(
    run_id: int = typer.Argument(help="Workflow run id"),
    repo: str = RepoOption,
) -> None:
    """Cancel a workflow run."""
    with _session("run:cancel") as gh:
        if not RunApi(gh).cancel(resolve_repository(repo).full_name, run_id):
            raise ValueError(f"Run {run_id} could not be cancelled")
        rprint(f"✓ Request to cancel run {run_id} submitted")


@run_app.command("rerun")
def run_rerun(
    run_id: int = typer.Argument(help="Workflow run id"),
    failed: bool = typer.Option(False, "--failed", help="Rerun only failed jobs"),
    repo: str = RepoOption,
) -> None:
    """Rerun a workflow run."""
    with _session("run:rerun") as gh:
        if not RunApi(gh).rerun(resolve_repository(repo).full_name, run_id, failed_only=failed):
            raise ValueError(f"Run {run_id} could not be rerun")
        rprint(f"✓ Requested rerun of {'failed jobs in ' if failed else ''}run {run_id}")


@run_app.command("delete")
def run_delete(
    run_id: int = typer.Argument(help="Workflow run id"),
    repo: str = RepoOption,
) -> None:
    """Delete a workflow run."""
    with _session("run:delete") as gh:
        if not RunApi(gh).delete(resolve_repository(repo).full_name, run_id):
            raise ValueError(f"Run {run_id} could not be deleted")
        rprint(f"✓ Deleted run {run_id}")


# ---------------------------------------------------------------------------
# workflow
# ---------------------------------------------------------------------------


@workflow_app.command("list")
def workflow_list(
    repo: str = RepoOption,
    include_disabled: bool = typer.Option(False, "--all", "-a", help="Include disabled workflows"),
    json_output: bool = JsonOption,
) -> None:
    """List workflows."""
    with _session("workflow:list") as gh:
        workflows = WorkflowApi(gh).list_workflows(resolve_repository(repo).full_name, include_disabled)
        if json_output:
            print_json(workflows)
            return
        print_table(
            ["Name", "State", "ID", "Path"],
            [[w.name, state_style(w.state), w.id, w.path] for w in workflows],
        )


@workflow_app.command("view")
def workflow_view(
    workflow: str = typer.Argument(help="Workflow id or file name"),
    repo: str = RepoOption,
    json_output: bool = JsonOption,
) -> None:
    """Show a workflow."""
    with _session("workflow:view") as gh:
        info = WorkflowApi(gh).get_workflow(resolve_repository(repo).full_name, workflow)
        if json_output:
            print_json(info)
            return
        rprint(f"[bold]{escape(info.name)}[/bold] ({escape(info.path)})")
        rprint("State:", state_style(info.state))
        rprint(f"ID: {info.id}")
        rprint(info.url)


@workflow_app.command("run")
def workflow_run(
    workflow: str = typer.Argument(help="Workflow id or file name"),
    ref: str = typer.Option(None, "--ref", "-r", help="Branch or tag (default: repository default branch)"),
    field: list[str] = typer.Option(None, "--field", "-f", help="Workflow input as key=value"),
    repo: str = RepoOption,
) -> None:
    """Trigger a workflow_dispatch event."""
    with _session("workflow:run") as gh:
        inputs = parse_inputs(field or [])
        if not WorkflowApi(gh).run(resolve_repository(repo).full_name, workflow, git_ref=ref, inputs=inputs):
            raise ValueError(f"Workflow {workflow} could not be dispatched")
        rprint(f"✓ Created workflow_dispatch event for {escape(workflow)}")


@workflow_app.command("enable")
def workflow_enable(
    workflow: str = typer.Argument(help="Workflow id or file name"),
    repo: str = RepoOption,
) -> None:
    """Enable a workflow."""
    with _session("workflow:enable") as gh:
        if not WorkflowApi(gh).enable(resolve_repository(repo).full_name, workflow):
            raise ValueError(f"Workflow {workflow} could not be enabled")
        rprint(f"✓ Enabled {escape(workflow)}")


@workflow_app.command("disable")
def workflow_disable(
    workflow: str = typer.Argument(help="Workflow id or file name"),
    repo: str = RepoOption,
) -> None:
    """Disable a workflow."""
    with _session("workflow:disable") as gh:
        if not WorkflowApi(gh).disable(resolve_repository(repo).full_name, workflow):
            raise ValueError(f"Workflow {workflow} could not be disabled")
        rprint(f"✓ Disabled {escape(workflow)}")


# ---------------------------------------------------------------------------
# repo
# ---------------------------------------------------------------------------


@repo_app.command("view")
def repo_view(
    repo: str = typer.Argument(None, help="owner/repo (default: detect from git)"),
    json_output: bool = JsonOption,
) -> None:
    """Show repository details."""
    with _session("repo:view") as gh:
        detail = RepoApi(gh).get_repo(resolve_repository(repo).full_name)
        if json_output:
            print_json(detail)
            return
        rprint(f"[bold]{escape(detail.full_name)}[/bold]")
        if detail.description:
            rprint(escape(detail.description))
        visibility = "private" if detail.private else "public"
        rprint(f"{visibility} • ★ {detail.stars} • forks {detail.forks} • open issues {detail.open_issues}")
        rprint(f"Default branch: {escape(detail.default_branch)}")
        if detail.topics:
            rprint(f"Topics: {escape(', '.join(detail.topics))}")
        rprint(detail.url)


@repo_app.command("list")
def repo_list(
    owner: str = typer.Argument(None, help="User or organization (default: you)"),
    visibility: str = typer.Option(None, "--visibility", help="public, private or internal"),
    no_archived: bool = typer.Option(False, "--no-archived", help="Omit archived repositories"),
    limit: int = LimitOption,
    json_output: bool = JsonOption,
) -> None:
    """List repositories."""
    with _session("repo:list") as gh:
        repos = RepoApi(gh).list_repos(
            owner=owner, visibility=visibility, include_archived=not no_archived, limit=limit
        )
        if json_output:
            print_json(repos)
            return
        print_table(
            ["Name", "Description", "Info", "Updated"],
            [
                [
                    r.full_name,
                    r.description,
                    ", ".join(filter(None, ["private" if r.private else "public", "fork" if r.fork else "", "archived" if r.archived else ""])),
                    r.updated_at,
                ]
                for r in repos
            ],
        )


# ---------------------------------------------------------------------------
# search
# ---------------------------------------------------------------------------


def _print_search(result: SearchResult, json_output: bool, columns: list[str], row) -> None:
    if json_output:
        print_json(result)
        return
    rprint(f"Showing {len(result.items)} of {result.total_count} results for [bold]{escape(result.query)}[/bold]")
    print_table(columns, [row(item) for item in result.items])


@search_app.command("repos")
def search_repos(
    query: str = typer.Argument("", help="Search text"),
    language: str = typer.Option(None, "--language", help="Filter by language"),
    owner: list[str] = typer.Option(None, "--owner", help="Filter by owner"),
    topic: list[str] = typer.Option(None, "--topic", help="Filter by topic"),
    stars: str = typer.Option(None, "--stars", help="Star count, e.g. '>100'"),
    sort: str = typer.Option(None, "--sort", help="stars, forks, help-wanted-issues or updated"),
    order: str = typer.Option(None, "--order", help="asc or desc"),
    limit: int = LimitOption,
    json_output: bool = JsonOption,
) -> None:
    """Search repositories."""
    with _session("search:repos") as gh:
        result = SearchApi(gh).repositories(
            query, language=language, owner=owner, topic=topic, stars=stars, sort=sort, order=order, limit=limit
        )
        _print_search(
            result, json_output, ["Name", "Description", "Stars", "Language"],
            lambda r: [r.full_name, r.description, r.stars, r.language],
        )


@search_app.command("issues")
def search_issues(
    query: str = typer.Argument("", help="Search text"),
    repo: list[str] = typer.Option(None, "--repo", "-R", help="Filter by repository"),
    author: str = typer.Option(None, "--author", help="Filter by author"),
    assignee: str = typer.Option(None, "--assignee", help="Filter by assignee"),
    label: list[str] = typer.Option(None, "--label", help="Filter by label"),
    state: str = typer.Option(None, "--state", help="open or closed"),
    include_prs: bool = typer.Option(False, "--include-prs", help="Include pull requests"),
    limit: int = LimitOption,
    json_output: bool = JsonOption,
) -> None:
    """Search issues."""
    with _session("search:issues") as gh:
        result = SearchApi(gh).issues(
            query, repo=repo, author=author, assignee=assignee, label=label,
            state=state, include_prs=include_prs, limit=limit,
        )
        _print_search(
            result, json_output, ["Repo", "#", "Title", "State"],
            lambda i: [i.repo, i.number, i.title, state_style(i.state)],
        )


@search_app.command("prs")
def search_prs(
    query: str = typer.Argument("", help="Search text"),
    repo: list[str] = typer.Option(None, "--repo", "-R", help="Filter by repository"),
    author: str = typer.Option(None, "--author", help="Filter by author"),
    state: str = typer.Option(None, "--state", help="open or closed"),
    base: str = typer.Option(None, "--base", help="Filter by base branch"),
    draft: bool = typer.Option(None, "--draft/--no-draft", help="Filter by draft state"),
    review: str = typer.Option(None, "--review", help="none, required, approved or changes_requested"),
    limit: int = LimitOption,
    json_output: bool = JsonOption,
) -> None:
    """Search pull requests."""
    with _session("search:prs") as gh:
        result = SearchApi(gh).pull_requests(
            query, repo=repo, author=author, state=state, base=base, draft=draft, review=review, limit=limit,
        )
        _print_search(
            result, json_output, ["Repo", "#", "Title", "State"],
            lambda i: [i.repo, i.number, i.title, state_style(i.state)],
        )


@search_app.command("commits")
def search_commits(
    query: str = typer.Argument("", help="Search text"),
    repo: list[str] = typer.Option(None, "--repo", "-R", help="Filter by repository"),
    author: str = typer.Option(None, "--author", help="Filter by author"),
    committer_date: str = typer.Option(None, "--committer-date", help="Date range, e.g. '>2024-01-01'"),
    limit: int = LimitOption,
    json_output: bool = JsonOption,
) -> None:
    """Search commits."""
    with _session("search:commits") as gh:
        result = SearchApi(gh).commits(query, repo=repo, author=author, committer_date=committer_date, limit=limit)
        _print_search(
            result, json_output, ["SHA", "Message", "Author", "Date"],
            lambda c: [c.sha[:7], c.message, c.author, c.date],
        )


@search_app.command("code")
def search_code(
    query: str = typer.Argument(help="Search text"),
    repo: list[str] = typer.Option(None, "--repo", "-R", help="Filter by repository"),
    language: str = typer.Option(None, "--language", help="Filter by language"),
    filename: str = typer.Option(None, "--filename", help="Filter by file name"),
    extension: str = typer.Option(None, "--extension", help="Filter by file extension"),
    limit: int = LimitOption,
    json_output: bool = JsonOption,
) -> None:
    """Search code."""
    with _session("search:code") as gh:
        result = SearchApi(gh).code(
            query, repo=repo, language=language, filename=filename, extension=extension, limit=limit
        )
        _print_search(result, json_output, ["Repo", "Path"], lambda c: [c.repo, c.path])


@app.command()
def activity(
    limit: int = typer.Option(20, "--limit", "-L", help="Number of entries to show"),
    tool: str = typer.Option(None, "--tool", help="Only show calls to this MCP tool"),
    json_output: bool = JsonOption,
) -> None:
    """Show recent MCP tool calls made through `gh-vault serve`."""
    with _errors("activity"):
        entries = read_activity_log(limit=limit, tool_name=tool)
    if json_output:
        print_json(entries)
        return
    print_table(
        ["Time", "Tool", "Duration", "Result"],
        [
            [
                e.get("timestamp", ""),
                e.get("tool_name", ""),
                f"{e.get('duration_ms', 0)} ms",
                f"error: {e['error']}" if e.get("error") else (e.get("result_preview") or "")[:60],
            ]
            for e in entries
        ],
    )


@app.command()
def serve() -> None:
    """Start the MCP server (stdio) for AI coding agents."""
    import asyncio

    from ghvault.mcp_server import main as mcp_main

    asyncio.run(mcp_main())


if __name__ == "__main__":
    app()
