"""Workflow run operations over PyGithub."""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import islice

from github import Github
from github.WorkflowJob import WorkflowJob
from github.WorkflowRun import WorkflowRun


@dataclass
class RunSummary:
    id: int
    name: str
    number: int
    branch: str
    event: str
    status: str
    conclusion: str
    url: str
    created_at: str


@dataclass
class JobStep:
    number: int
    name: str
    status: str
    conclusion: str


@dataclass
class RunJob:
    id: int
    name: str
    status: str
    conclusion: str
    url: str
    steps: list[JobStep] = field(default_factory=list)


@dataclass
class RunDetail(RunSummary):
    head_sha: str = ""
    attempt: int = 1
    jobs: list[RunJob] = field(default_factory=list)


def _run_summary(run: WorkflowRun) -> RunSummary:
    return RunSummary(
        id=run.id,
        name=run.name or "",
        number=run.run_number,
        branch=run.head_branch or "",
        event=run.event,
        status=run.status,
        conclusion=run.conclusion or "",
        url=run.html_url,
        created_at=run.created_at.isoformat() if run.created_at else "",
    )


def _job(job: WorkflowJob) -> RunJob:
    return RunJob(
        id=job.id,
        name=job.name,
        status=job.status,
        conclusion=job.conclusion or "",
        url=job.html_url or "",
        steps=[
            JobStep(
                number=step.number,
                name=step.name,
                status=step.status,
                conclusion=step.conclusion or "",
            )
            for step in (job.steps or [])
        ],
    )


class RunApi:
    def __init__(self, gh: Github) -> None:
        self._gh = gh

    def list_runs(
        self,
        repo: str,
        branch: str | None = None,
        status: str | None = None,
        event: str | None = None,
        workflow: str | None = None,
        limit: int = 20,
    ) -> list[RunSummary]:
        kwargs = {}
        if branch:
            kwargs["branch"] = branch
        if status:
            kwargs["status"] = status
        if event:
            kwargs["event"] = event

        gh_repo = self._gh.get_repo(repo)
        if workflow:
            ref = int(workflow) if workflow.isdigit() else workflow
            runs = gh_repo.get_workflow(ref).get_runs(**kwargs)
        else:
            runs = gh_repo.get_workflow_runs(**kwargs)
        return [_run_summary(run) for run in islice(runs, limit)]

    def get_run(self, repo: str, run_id: int, with_jobs: bool = True) -> RunDetail:
        run = self._gh.get_repo(repo).get_workflow_run(run_id)
        return RunDetail(
            **vars(_run_summary(run)),
            head_sha=run.head_sha,
            attempt=run.run_attempt or 1,
            jobs=[_job(job) for job in run.jobs()] if with_jobs else [],
        )

    def cancel(self, repo: str, run_id: int) -> bool:
        return self._gh.get_repo(repo).get_workflow_run(run_id).cancel()

    def rerun(self, repo: str, run_id: int, failed_only: bool = False) -> bool:
        run = self._gh.get_repo(repo).get_workflow_run(run_id)
        return run.rerun_failed_jobs() if failed_only else run.rerun()

    def delete(self, repo: str, run_id: int) -> bool:
        return self._gh.get_repo(repo).get_workflow_run(run_id).delete()
