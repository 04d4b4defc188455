"""Tests for ghvault.github.repos."""

from __future__ import annotations

from datetime import datetime
from unittest.mock import MagicMock

from ghvault.github.repos import RepoApi


def _repo(name: str, private: bool = False, archived: bool = False) -> MagicMock:
    repo = MagicMock()
    repo.full_name = f"octo/{name}"
    repo.description = None
    repo.private = private
    repo.fork = False
    repo.archived = archived
    repo.stargazers_count = 1
    repo.language = None
    repo.html_url = f"https://github.com/octo/{name}"
    repo.updated_at = datetime(2024, 1, 1)
    return repo


class TestGetRepo:
    def test_detail(self):
        repo = _repo("hello")
        repo.default_branch = "main"
        repo.forks_count = 3
        repo.open_issues_count = 4
        repo.get_topics.return_value = ["cli"]
        repo.homepage = None
        gh = MagicMock()
        gh.get_repo.return_value = repo

        detail = RepoApi(gh).get_repo("octo/hello")

        assert detail.full_name == "octo/hello"
        assert detail.description == ""
        assert detail.topics == ["cli"]
        assert detail.homepage == ""


class TestListRepos:
    def test_authenticated_user_with_visibility(self):
        gh = MagicMock()
        gh.get_user.return_value.get_repos.return_value = [_repo("a"), _repo("b")]

        repos = RepoApi(gh).list_repos(visibility="private")

        gh.get_user.assert_called_once_with()
        gh.get_user.return_value.get_repos.assert_called_once_with(sort="updated", visibility="private")
        assert len(repos) == 2

    def test_owner_filters_locally(self):
        gh = MagicMock()
        gh.get_user.return_value.get_repos.return_value = [
            _repo("public"),
            _repo("secret", private=True),
            _repo("old", archived=True),
        ]

        repos = RepoApi(gh).list_repos(owner="octo", visibility="public", include_archived=False)

        gh.get_user.assert_called_once_with("octo")
        assert [r.full_name for r in repos] == ["octo/public"]

    def test_limit(self):
        gh = MagicMock()
        gh.get_user.return_value.get_repos.return_value = [_repo(str(i)) for i in range(10)]
        assert len(RepoApi(gh).list_repos(limit=4)) == 4
