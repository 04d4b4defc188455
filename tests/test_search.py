"""Tests for ghvault.github.search."""

from __future__ import annotations

from datetime import datetime
from unittest.mock import MagicMock

from ghvault.github.search import SearchApi, build_query


class FakePaginated(list):
    """List with the ``totalCount`` attribute of a PaginatedList."""

    def __init__(self, items, total=None):
        super().__init__(items)
        self.totalCount = len(items) if total is None else total


def _issue(number: int, is_pr: bool = False) -> MagicMock:
    issue = MagicMock()
    issue.repository.full_name = "octo/hello"
    issue.number = number
    issue.title = f"Issue {number}"
    issue.state = "open"
    issue.user.login = "alice"
    issue.pull_request = MagicMock() if is_pr else None
    issue.html_url = f"https://github.com/octo/hello/issues/{number}"
    issue.created_at = datetime(2024, 1, number)
    return issue


class TestBuildQuery:
    def test_text_only(self):
        assert build_query("  cache  ") == "cache"

    def test_qualifiers(self):
        query = build_query("cache", language="python", user=["octo", "acme"])
        assert query == "cache language:python user:octo user:acme"

    def test_skips_empty_values(self):
        assert build_query("x", language=None, label=[], author="") == "x"

    def test_bools_and_underscores(self):
        assert build_query("", archived=False, committer_date=">2024-01-01") == (
            "archived:false committer-date:>2024-01-01"
        )


class TestSearchIssues:
    def test_excludes_prs_by_default(self):
        gh = MagicMock()
        gh.search_issues.return_value = FakePaginated([_issue(1)], total=42)

        result = SearchApi(gh).issues("crash", repo=["octo/hello"], label=["bug"])

        assert result.query == "crash type:issue repo:octo/hello label:bug"
        assert result.total_count == 42
        assert result.items[0].number == 1
        assert result.items[0].is_pull_request is False
        gh.search_issues.assert_called_once_with(result.query)

    def test_include_prs(self):
        gh = MagicMock()
        gh.search_issues.return_value = FakePaginated([])
        result = SearchApi(gh).issues("crash", include_prs=True)
        assert "type:" not in result.query

    def test_sort_defaults_to_desc(self):
        gh = MagicMock()
        gh.search_issues.return_value = FakePaginated([])
        SearchApi(gh).issues("crash", sort="created")
        gh.search_issues.assert_called_once_with("crash type:issue", sort="created", order="desc")


class TestSearchPullRequests:
    def test_limit_and_type(self):
        gh = MagicMock()
        gh.search_issues.return_value = FakePaginated([_issue(i, is_pr=True) for i in range(1, 6)])

        result = SearchApi(gh).pull_requests(author="alice", draft=True, limit=2)

        assert result.query == "type:pr author:alice draft:true"
        assert len(result.items) == 2
        assert all(item.is_pull_request for item in result.items)


class TestSearchRepositories:
    def test_maps_fields(self):
        repo = MagicMock()
        repo.full_name = "octo/hello"
        repo.description = None
        repo.stargazers_count = 7
        repo.language = "Python"
        repo.html_url = "https://github.com/octo/hello"
        gh = MagicMock()
        gh.search_repositories.return_value = FakePaginated([repo])

        result = SearchApi(gh).repositories("hello", owner=["octo"], stars=">5")

        assert result.query == "hello user:octo stars:>5"
        assert result.items[0].description == ""
        assert result.items[0].stars == 7


class TestSearchCommits:
    def test_first_line_of_message(self):
        commit = MagicMock()
        commit.sha = "abc123"
        commit.commit.message = "Fix bug\n\nLonger body"
        commit.commit.author.name = "Alice"
        commit.commit.author.date = datetime(2024, 2, 1)
        commit.html_url = "https://github.com/octo/hello/commit/abc123"
        gh = MagicMock()
        gh.search_commits.return_value = FakePaginated([commit])

        result = SearchApi(gh).commits("bug", repo=["octo/hello"])

        assert result.items[0].message == "Fix bug"
        assert result.items[0].date.startswith("2024-02-01")


class TestSearchCode:
    def test_code(self):
        hit = MagicMock()
        hit.repository.full_name = "octo/hello"
        hit.path = "src/app.py"
        hit.html_url = "https://github.com/octo/hello/blob/main/src/app.py"
        gh = MagicMock()
        gh.search_code.return_value = FakePaginated([hit])

        result = SearchApi(gh).code("def main", language="python")

        gh.search_code.assert_called_once_with("def main language:python")
        assert result.items[0].path == "src/app.py"
