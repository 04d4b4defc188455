"""Tests for workflow runs and workflow definitions (ghvault.github.runs / workflows)."""

from __future__ import annotations

from datetime import datetime
from unittest.mock import MagicMock

import pytest

from ghvault.github.runs import RunApi
from ghvault.github.workflows import WorkflowApi, parse_inputs


def _run(run_id: int = 1) -> MagicMock:
    run = MagicMock()
    run.id = run_id
    run.name = "CI"
    run.run_number = run_id
    run.head_branch = "main"
    run.event = "push"
    run.status = "completed"
    run.conclusion = None
    run.html_url = f"https://github.com/octo/hello/actions/runs/{run_id}"
    run.created_at = datetime(2024, 5, 1)
    run.head_sha = "abc"
    run.run_attempt = 2
    return run


def _workflow(name: str, state: str = "active") -> MagicMock:
    workflow = MagicMock()
    workflow.id = hash(name) & 0xFFFF
    workflow.name = name
    workflow.path = f".github/workflows/{name}.yml"
    workflow.state = state
    workflow.html_url = "https://github.com/octo/hello/actions"
    return workflow


class TestRunApi:
    def test_list_runs_filters(self):
        gh = MagicMock()
        repo = gh.get_repo.return_value
        repo.get_workflow_runs.return_value = [_run(i) for i in range(1, 5)]

        runs = RunApi(gh).list_runs("octo/hello", branch="main", status="failure", limit=3)

        repo.get_workflow_runs.assert_called_once_with(branch="main", status="failure")
        assert len(runs) == 3
        assert runs[0].conclusion == ""

    def test_list_runs_for_workflow(self):
        gh = MagicMock()
        repo = gh.get_repo.return_value
        repo.get_workflow.return_value.get_runs.return_value = []

        RunApi(gh).list_runs("octo/hello", workflow="1234")

        repo.get_workflow.assert_called_once_with(1234)

    def test_get_run_with_jobs(self):
        gh = MagicMock()
        run = _run(5)
        step = MagicMock(number=1, status="completed", conclusion="success")
        step.name = "checkout"
        job = MagicMock(id=9, status="completed", conclusion="failure", html_url="u", steps=[step])
        job.name = "test"
        run.jobs.return_value = [job]
        gh.get_repo.return_value.get_workflow_run.return_value = run

        detail = RunApi(gh).get_run("octo/hello", 5)

        assert detail.attempt == 2
        assert detail.jobs[0].name == "test"
        assert detail.jobs[0].steps[0].name == "checkout"

    @pytest.mark.parametrize("failed_only, method", [(False, "rerun"), (True, "rerun_failed_jobs")])
    def test_rerun(self, failed_only, method):
        gh = MagicMock()
        run = gh.get_repo.return_value.get_workflow_run.return_value
        RunApi(gh).rerun("octo/hello", 5, failed_only=failed_only)
        getattr(run, method).assert_called_once()

    def test_cancel_and_delete(self):
        gh = MagicMock()
        run = gh.get_repo.return_value.get_workflow_run.return_value
        api = RunApi(gh)
        api.cancel("octo/hello", 5)
        api.delete("octo/hello", 5)
        run.cancel.assert_called_once()
        run.delete.assert_called_once()


class TestParseInputs:
    def test_pairs(self):
        assert parse_inputs(["env=prod", "msg=a=b", "empty="]) == {"env": "prod", "msg": "a=b", "empty": ""}

    @pytest.mark.parametrize("pair", ["novalue", "=value"])
    def test_invalid(self, pair):
        with pytest.raises(ValueError, match="key=value"):
            parse_inputs([pair])


class TestWorkflowApi:
    def test_list_hides_disabled(self):
        gh = MagicMock()
        gh.get_repo.return_value.get_workflows.return_value = [
            _workflow("ci"),
            _workflow("nightly", state="disabled_manually"),
        ]
        api = WorkflowApi(gh)

        assert [w.name for w in api.list_workflows("octo/hello")] == ["ci"]
        assert len(api.list_workflows("octo/hello", include_disabled=True)) == 2

    def test_run_defaults_to_default_branch(self):
        gh = MagicMock()
        repo = gh.get_repo.return_value
        repo.default_branch = "trunk"
        workflow = repo.get_workflow.return_value

        WorkflowApi(gh).run("octo/hello", "ci.yml", inputs={"env": "prod"})

        repo.get_workflow.assert_called_once_with("ci.yml")
        workflow.create_dispatch.assert_called_once_with("trunk", {"env": "prod"})

    def test_enable_disable(self):
        gh = MagicMock()
        workflow = gh.get_repo.return_value.get_workflow.return_value
        api = WorkflowApi(gh)
        api.enable("octo/hello", "42")
        api.disable("octo/hello", "42")
        gh.get_repo.return_value.get_workflow.assert_called_with(42)
        workflow.enable.assert_called_once()
        workflow.disable.assert_called_once()
