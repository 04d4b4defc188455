"""Workflow definitions: list, view, dispatch, enable and disable."""

from __future__ import annotations

from dataclasses import dataclass

from github import Github
from github.Workflow import Workflow


@dataclass
class WorkflowInfo:
    id: int
    name: str
    path: str
    state: str  # active | disabled_manually | disabled_inactivity | ...
    url: str


def _info(workflow: Workflow) -> WorkflowInfo:
    return WorkflowInfo(
        id=workflow.id,
        name=workflow.name,
        path=workflow.path,
        state=workflow.state,
        url=workflow.html_url,
    )


def parse_inputs(pairs: list[str]) -> dict[str, str]:
    """Turn ``key=value`` strings into a dispatch inputs mapping."""
    inputs: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Invalid input format: {pair}. Expected key=value")
        inputs[key] = value
    return inputs


class WorkflowApi:
    def __init__(self, gh: Github) -> None:
        self._gh = gh

    def _workflow(self, repo: str, ref: str) -> Workflow:
        """Look up by numeric id or file name (e.g. ``ci.yml``)."""
        key = int(ref) if ref.isdigit() else ref
        return self._gh.get_repo(repo).get_workflow(key)

    def list_workflows(self, repo: str, include_disabled: bool = False) -> list[WorkflowInfo]:
        workflows = [_info(w) for w in self._gh.get_repo(repo).get_workflows()]
        if include_disabled:
            return workflows
        return [w for w in workflows if w.state == "active"]

    def get_workflow(self, repo: str, ref: str) -> WorkflowInfo:
        return _info(self._workflow(repo, ref))

    def run(self, repo: str, ref: str, git_ref: str | None = None, inputs: dict[str, str] | None = None) -> bool:
        workflow = self._workflow(repo, ref)
        if not git_ref:
            git_ref = self._gh.get_repo(repo).default_branch
        return workflow.create_dispatch(git_ref, inputs or {})

    def enable(self, repo: str, ref: str) -> bool:
        return self._workflow(repo, ref).enable()

    def disable(self, repo: str, ref: str) -> bool:
        return self._workflow(repo, ref).disable()
