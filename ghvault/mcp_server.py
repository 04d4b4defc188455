"""MCP server for gh-vault.

Exposes pull request, workflow run and search operations to AI coding agents
via the Model Context Protocol, authenticated with the token stored by
``gh-vault auth login``. The token itself is never exposed as a tool.

Usage:
    gh-vault serve

Configure in Claude Code (~/.claude.json):
    {
      "mcpServers": {
        "gh-vault": {"command": "gh-vault", "args": ["serve"]}
      }
    }

stdout carries the JSON-RPC stream; diagnostics go to stderr only.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

import mcp.server.stdio
import mcp.types as types
from github import Github
from github.GithubException import GithubException
from mcp.server import Server
from requests.exceptions import RequestException

from ghvault.activity import log_tool_call
from ghvault.auth.manager import CredentialManager
from ghvault.config import Config
from ghvault.errors import AuthenticationError, GhVaultError, format_permission_error, is_permission_error
from ghvault.github.client import create_github_client
from ghvault.github.pulls import MERGE_METHODS, REVIEW_EVENTS, PullRequestApi
from ghvault.github.repo import current_branch, resolve_repository
from ghvault.github.runs import RunApi
from ghvault.github.search import SearchApi
from ghvault.logging_setup import setup_logging
from ghvault.output import to_json

logger = logging.getLogger(__name__)

server = Server("gh-vault")

REPO_PROPERTY = {
    "type": "string",
    "description": "Repository as owner/repo. Defaults to the git checkout the server runs in.",
}
PR_NUMBER_PROPERTY = {"type": "integer", "description": "Pull request number"}
RUN_ID_PROPERTY = {"type": "integer", "description": "Workflow run id"}
LIMIT_PROPERTY = {"type": "integer", "description": "Maximum number of results", "default": 30}
STRING_LIST = {"type": "array", "items": {"type": "string"}}


def _tool(name: str, description: str, properties: dict, required: list[str] | None = None) -> types.Tool:
    return types.Tool(
        name=name,
        description=description,
        inputSchema={"type": "object", "properties": properties, "required": required or []},
    )


TOOLS: list[types.Tool] = [
    _tool(
        "get_current_repo",
        "Return the GitHub repository (owner/repo) detected from the local git checkout.",
        {},
    ),
    _tool(
        "list_pull_requests",
        "List pull requests in a repository, most recently updated first.",
        {
            "repo": REPO_PROPERTY,
            "state": {"type": "string", "enum": ["open", "closed", "all"], "default": "open"},
            "base": {"type": "string", "description": "Filter by base branch"},
            "head": {"type": "string", "description": "Filter by head branch"},
            "limit": LIMIT_PROPERTY,
        },
    ),
    _tool(
        "get_pull_request",
        "Get a pull request with its description, merge state and change counts.",
        {"repo": REPO_PROPERTY, "number": PR_NUMBER_PROPERTY},
        ["number"],
    ),
    _tool(
        "list_pr_files",
        "List files changed in a pull request, including patches.",
        {"repo": REPO_PROPERTY, "number": PR_NUMBER_PROPERTY},
        ["number"],
    ),
    _tool(
        "list_pr_checks",
        "List CI check runs on the head commit of a pull request with a pass/fail summary.",
        {"repo": REPO_PROPERTY, "number": PR_NUMBER_PROPERTY},
        ["number"],
    ),
    _tool(
        "create_pr_comment",
        "Add a comment to a pull request conversation.",
        {"repo": REPO_PROPERTY, "number": PR_NUMBER_PROPERTY, "body": {"type": "string"}},
        ["number", "body"],
    ),
    _tool(
        "merge_pull_request",
        "Merge a pull request.",
        {
            "repo": REPO_PROPERTY,
            "number": PR_NUMBER_PROPERTY,
            "method": {"type": "string", "enum": list(MERGE_METHODS), "default": "merge"},
            "commit_title": {"type": "string"},
            "delete_branch": {"type": "boolean", "default": False},
        },
        ["number"],
    ),
    _tool(
        "create_pull_request",
        "Open a pull request from a head branch into a base branch (default: the repository default branch).",
        {
            "repo": REPO_PROPERTY,
            "title": {"type": "string"},
            "head": {"type": "string", "description": "Branch with the changes"},
            "base": {"type": "string"},
            "body": {"type": "string"},
            "draft": {"type": "boolean", "default": False},
            "labels": STRING_LIST,
            "reviewers": STRING_LIST,
        },
        ["title", "head"],
    ),
    _tool(
        "edit_pull_request",
        "Edit a pull request's title, body or base, and add or remove labels, assignees and reviewers.",
        {
            "repo": REPO_PROPERTY,
            "number": PR_NUMBER_PROPERTY,
            "title": {"type": "string"},
            "body": {"type": "string"},
            "base": {"type": "string"},
            "add_labels": STRING_LIST,
            "remove_labels": STRING_LIST,
            "add_assignees": STRING_LIST,
            "remove_assignees": STRING_LIST,
            "add_reviewers": STRING_LIST,
            "remove_reviewers": STRING_LIST,
        },
        ["number"],
    ),
    _tool(
        "close_pull_request",
        "Close a pull request without merging. Optionally add a comment first.",
        {"repo": REPO_PROPERTY, "number": PR_NUMBER_PROPERTY, "comment": {"type": "string"}},
        ["number"],
    ),
    _tool(
        "reopen_pull_request",
        "Reopen a closed pull request. Optionally add a comment first.",
        {"repo": REPO_PROPERTY, "number": PR_NUMBER_PROPERTY, "comment": {"type": "string"}},
        ["number"],
    ),
    _tool(
        "mark_pr_ready",
        "Mark a draft pull request ready for review, or convert it back to a draft with draft=true.",
        {"repo": REPO_PROPERTY, "number": PR_NUMBER_PROPERTY, "draft": {"type": "boolean", "default": False}},
        ["number"],
    ),
    _tool(
        "create_pr_review",
        "Submit a review on a pull request. REQUEST_CHANGES requires a body.",
        {
            "repo": REPO_PROPERTY,
            "number": PR_NUMBER_PROPERTY,
            "event": {"type": "string", "enum": list(REVIEW_EVENTS)},
            "body": {"type": "string"},
        },
        ["number", "event"],
    ),
    _tool(
        "list_pr_comments",
        "List conversation comments on a pull request.",
        {"repo": REPO_PROPERTY, "number": PR_NUMBER_PROPERTY, "limit": LIMIT_PROPERTY},
        ["number"],
    ),
    _tool(
        "list_pr_review_comments",
        "List inline review comments on a pull request's diff.",
        {"repo": REPO_PROPERTY, "number": PR_NUMBER_PROPERTY, "limit": LIMIT_PROPERTY},
        ["number"],
    ),
    _tool(
        "list_pr_reviews",
        "List reviews submitted on a pull request.",
        {"repo": REPO_PROPERTY, "number": PR_NUMBER_PROPERTY},
        ["number"],
    ),
    _tool(
        "get_pr_status",
        "Show open pull requests for the current branch, created by you, requesting your review and assigned to you.",
        {"repo": REPO_PROPERTY},
    ),
    _tool(
        "list_workflow_runs",
        "List recent GitHub Actions workflow runs.",
        {
            "repo": REPO_PROPERTY,
            "branch": {"type": "string"},
            "status": {"type": "string", "description": "Status or conclusion, e.g. failure"},
            "event": {"type": "string"},
            "workflow": {"type": "string", "description": "Workflow id or file name"},
            "limit": LIMIT_PROPERTY,
        },
    ),
    _tool(
        "get_workflow_run",
        "Get a workflow run with its jobs and steps.",
        {"repo": REPO_PROPERTY, "run_id": RUN_ID_PROPERTY},
        ["run_id"],
    ),
    _tool(
        "cancel_workflow_run",
        "Cancel a workflow run.",
        {"repo": REPO_PROPERTY, "run_id": RUN_ID_PROPERTY},
        ["run_id"],
    ),
    _tool(
        "rerun_workflow_run",
        "Rerun a workflow run, optionally only its failed jobs.",
        {"repo": REPO_PROPERTY, "run_id": RUN_ID_PROPERTY, "failed_only": {"type": "boolean", "default": False}},
        ["run_id"],
    ),
    _tool(
        "search_repositories",
        "Search GitHub repositories.",
        {
            "query": {"type": "string"},
            "language": {"type": "string"},
            "owner": STRING_LIST,
            "topic": STRING_LIST,
            "stars": {"type": "string", "description": "e.g. '>100'"},
            "sort": {"type": "string", "enum": ["stars", "forks", "help-wanted-issues", "updated"]},
            "limit": LIMIT_PROPERTY,
        },
    ),
    _tool(
        "search_issues",
        "Search issues across GitHub.",
        {
            "query": {"type": "string"},
            "repo": STRING_LIST,
            "author": {"type": "string"},
            "assignee": {"type": "string"},
            "label": STRING_LIST,
            "state": {"type": "string", "enum": ["open", "closed"]},
            "limit": LIMIT_PROPERTY,
        },
    ),
    _tool(
        "search_pull_requests",
        "Search pull requests across GitHub.",
        {
            "query": {"type": "string"},
            "repo": STRING_LIST,
            "author": {"type": "string"},
            "state": {"type": "string", "enum": ["open", "closed"]},
            "base": {"type": "string"},
            "draft": {"type": "boolean"},
            "review": {"type": "string", "enum": ["none", "required", "approved", "changes_requested"]},
            "limit": LIMIT_PROPERTY,
        },
    ),
    _tool(
        "search_commits",
        "Search commits across GitHub.",
        {
            "query": {"type": "string"},
            "repo": STRING_LIST,
            "author": {"type": "string"},
            "committer_date": {"type": "string", "description": "e.g. '>2024-01-01'"},
            "limit": LIMIT_PROPERTY,
        },
    ),
    _tool(
        "search_code",
        "Search code across GitHub.",
        {
            "query": {"type": "string"},
            "repo": STRING_LIST,
            "language": {"type": "string"},
            "filename": {"type": "string"},
            "extension": {"type": "string"},
            "limit": LIMIT_PROPERTY,
        },
        ["query"],
    ),
]

# Operation keys used for 403 remediation messages
TOOL_OPERATIONS = {
    "list_pull_requests": "pr:list",
    "get_pull_request": "pr:view",
    "list_pr_files": "pr:files",
    "list_pr_checks": "pr:checks",
    "create_pr_comment": "pr:comment",
    "merge_pull_request": "pr:merge",
    "create_pull_request": "pr:create",
    "edit_pull_request": "pr:edit",
    "close_pull_request": "pr:close",
    "reopen_pull_request": "pr:reopen",
    "mark_pr_ready": "pr:ready",
    "create_pr_review": "pr:review",
    "list_pr_comments": "pr:comments",
    "list_pr_review_comments": "pr:comments",
    "list_pr_reviews": "pr:reviews",
    "get_pr_status": "pr:status",
    "list_workflow_runs": "run:list",
    "get_workflow_run": "run:view",
    "cancel_workflow_run": "run:cancel",
    "rerun_workflow_run": "run:rerun",
}


def _get_client() -> Github:
    config = Config.load()
    return create_github_client(CredentialManager.from_config(config), config)


def _repo(arguments: dict) -> str:
    return resolve_repository(arguments.get("repo")).full_name


def _text(value: Any) -> list[types.TextContent]:
    text = value if isinstance(value, str) else to_json(value)
    return [types.TextContent(type="text", text=text)]


@server.list_tools()
async def list_tools() -> list[types.Tool]:
    return TOOLS


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[types.TextContent]:
    start = time.time()
    result: list[types.TextContent] = []
    error: str | None = None
    try:
        result = dispatch_tool(name, arguments or {})
        return result
    except AuthenticationError as e:
        error = str(e)
        result = _text(f"Setup required: {e} Run: gh-vault auth login")
        return result
    except GithubException as e:
        error = str(e)
        if is_permission_error(e):
            result = _text(format_permission_error(TOOL_OPERATIONS.get(name, "unknown")))
        else:
            result = _text(f"GitHub API error (HTTP {e.status}): {e.data}")
        return result
    except RequestException as e:
        error = str(e)
        result = _text(f"Error: Could not reach {Config.load().api_url}; check your network or GH_VAULT_API_URL")
        return result
    except (GhVaultError, ValueError, KeyError) as e:
        error = str(e)
        result = _text(f"Error: {e}")
        return result
    finally:
        duration_ms = int((time.time() - start) * 1000)
        result_text = result[0].text if result else ""
        log_tool_call(name, arguments or {}, result_text, error, duration_ms)


def dispatch_tool(
    name: str, arguments: dict, client_factory: Callable[[], Github] | None = None
) -> list[types.TextContent]:
    """Route a tool call to the appropriate handler."""
    if name == "get_current_repo":
        info = resolve_repository(None)
        return _text({"owner": info.owner, "repo": info.repo, "full_name": info.full_name, "remote_url": info.remote_url})

    handler = HANDLERS.get(name)
    if handler is None:
        return _text(f"Unknown tool: {name}")

    gh = (client_factory or _get_client)()
    try:
        return _text(handler(gh, arguments))
    finally:
        gh.close()


def _list_pull_requests(gh: Github, args: dict) -> Any:
    return PullRequestApi(gh).list_pulls(
        _repo(args),
        state=args.get("state", "open"),
        base=args.get("base"),
        head=args.get("head"),
        limit=args.get("limit", 30),
    )


def _list_pr_checks(gh: Github, args: dict) -> Any:
    summary = PullRequestApi(gh).list_checks(_repo(args), args["number"])
    return {"sha": summary.sha, "counts": summary.counts(), "checks": summary.checks}


def _merge_pull_request(gh: Github, args: dict) -> Any:
    return PullRequestApi(gh).merge(
        _repo(args),
        args["number"],
        method=args.get("method", "merge"),
        title=args.get("commit_title"),
        delete_branch=args.get("delete_branch", False),
    )


def _create_pull_request(gh: Github, args: dict) -> Any:
    return PullRequestApi(gh).create(
        _repo(args),
        title=args["title"],
        head=args["head"],
        base=args.get("base"),
        body=args.get("body", ""),
        draft=args.get("draft", False),
        labels=args.get("labels"),
        reviewers=args.get("reviewers"),
    )


EDIT_FIELDS = (
    "title", "body", "base", "add_labels", "remove_labels",
    "add_assignees", "remove_assignees", "add_reviewers", "remove_reviewers",
)


def _edit_pull_request(gh: Github, args: dict) -> Any:
    kwargs = {key: args[key] for key in EDIT_FIELDS if key in args}
    return PullRequestApi(gh).edit(_repo(args), args["number"], **kwargs)


def _get_pr_status(gh: Github, args: dict) -> Any:
    branch = current_branch() if not args.get("repo") else None
    return PullRequestApi(gh).status(_repo(args), branch=branch)


def _list_workflow_runs(gh: Github, args: dict) -> Any:
    return RunApi(gh).list_runs(
        _repo(args),
        branch=args.get("branch"),
        status=args.get("status"),
        event=args.get("event"),
        workflow=args.get("workflow"),
        limit=args.get("limit", 20),
    )


def _search(method: str, fields: tuple[str, ...]) -> Callable[[Github, dict], Any]:
    def handler(gh: Github, args: dict) -> Any:
        kwargs = {key: args[key] for key in fields if key in args}
        return getattr(SearchApi(gh), method)(args.get("query", ""), **kwargs)

    return handler


HANDLERS: dict[str, Callable[[Github, dict], Any]] = {
    "list_pull_requests": _list_pull_requests,
    "get_pull_request": lambda gh, a: PullRequestApi(gh).get_pull(_repo(a), a["number"]),
    "list_pr_files": lambda gh, a: PullRequestApi(gh).list_files(_repo(a), a["number"]),
    "list_pr_checks": _list_pr_checks,
    "create_pr_comment": lambda gh, a: PullRequestApi(gh).comment(_repo(a), a["number"], a["body"]),
    "merge_pull_request": _merge_pull_request,
    "create_pull_request": _create_pull_request,
    "edit_pull_request": _edit_pull_request,
    "close_pull_request": lambda gh, a: PullRequestApi(gh).set_state(
        _repo(a), a["number"], "closed", comment=a.get("comment")
    ),
    "reopen_pull_request": lambda gh, a: PullRequestApi(gh).set_state(
        _repo(a), a["number"], "open", comment=a.get("comment")
    ),
    "mark_pr_ready": lambda gh, a: PullRequestApi(gh).set_draft(_repo(a), a["number"], a.get("draft", False)),
    "create_pr_review": lambda gh, a: PullRequestApi(gh).review(
        _repo(a), a["number"], a["event"], body=a.get("body", "")
    ),
    "list_pr_comments": lambda gh, a: PullRequestApi(gh).list_comments(_repo(a), a["number"], a.get("limit", 30)),
    "list_pr_review_comments": lambda gh, a: PullRequestApi(gh).list_review_comments(
        _repo(a), a["number"], a.get("limit", 30)
    ),
    "list_pr_reviews": lambda gh, a: PullRequestApi(gh).list_reviews(_repo(a), a["number"]),
    "get_pr_status": _get_pr_status,
    "list_workflow_runs": _list_workflow_runs,
    "get_workflow_run": lambda gh, a: RunApi(gh).get_run(_repo(a), a["run_id"]),
    "cancel_workflow_run": lambda gh, a: {"cancelled": RunApi(gh).cancel(_repo(a), a["run_id"])},
    "rerun_workflow_run": lambda gh, a: {
        "rerun_requested": RunApi(gh).rerun(_repo(a), a["run_id"], failed_only=a.get("failed_only", False))
    },
    "search_repositories": _search("repositories", ("language", "owner", "topic", "stars", "sort", "limit")),
    "search_issues": _search("issues", ("repo", "author", "assignee", "label", "state", "limit")),
    "search_pull_requests": _search(
        "pull_requests", ("repo", "author", "state", "base", "draft", "review", "limit")
    ),
    "search_commits": _search("commits", ("repo", "author", "committer_date", "limit")),
    "search_code": _search("code", ("repo", "language", "filename", "extension", "limit")),
}


async def main() -> None:
    setup_logging(Config.load().log_level)
    logger.info("MCP server starting")
    async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


if __name__ == "__main__":
    import asyncio
    asyncio.run(main())
