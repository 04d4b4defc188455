"""Tests for ghvault.github.repo — remote parsing and repository resolution."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from ghvault.errors import RepoResolutionError
from ghvault.github.repo import (
    current_branch,
    detect_repo,
    parse_remote_url,
    parse_remotes,
    resolve_repository,
)

REMOTES = """\
fork\tgit@github.com:me/hello-world.git (fetch)
fork\tgit@github.com:me/hello-world.git (push)
origin\thttps://github.com/octo/hello-world.git (fetch)
origin\thttps://github.com/octo/hello-world.git (push)
gitlab\thttps://gitlab.com/octo/hello-world.git (fetch)
"""


class TestParseRemoteUrl:
    @pytest.mark.parametrize(
        "url",
        [
            "https://github.com/octo/hello-world",
            "https://github.com/octo/hello-world.git",
            "https://github.com/octo/hello-world/",
            "git@github.com:octo/hello-world.git",
            "git@github.com:octo/hello-world",
            "ssh://git@github.com/octo/hello-world.git",
        ],
    )
    def test_github_urls(self, url):
        info = parse_remote_url(url)
        assert info is not None
        assert info.full_name == "octo/hello-world"

    def test_dotted_repo_name(self):
        info = parse_remote_url("https://github.com/octo/octo.github.io.git")
        assert info.repo == "octo.github.io"

    @pytest.mark.parametrize(
        "url",
        [
            "https://gitlab.com/octo/hello-world.git",
            "https://github.com/octo",
            "file:///srv/git/repo",
            "",
        ],
    )
    def test_non_github_urls(self, url):
        assert parse_remote_url(url) is None


class TestDetectRepo:
    def test_prefers_origin(self):
        with patch("ghvault.github.repo._git", return_value=REMOTES):
            info = detect_repo()
        assert info.full_name == "octo/hello-world"
        assert info.remote_url.startswith("https://")

    def test_falls_back_to_first_github_remote(self):
        output = "fork\tgit@github.com:me/hello-world.git (fetch)\n"
        with patch("ghvault.github.repo._git", return_value=output):
            assert detect_repo().full_name == "me/hello-world"

    def test_not_a_checkout(self):
        with patch("ghvault.github.repo._git", return_value=None):
            assert detect_repo() is None

    def test_parse_remotes_skips_non_github(self):
        assert set(parse_remotes(REMOTES)) == {"fork", "origin"}


class TestCurrentBranch:
    def test_branch(self):
        with patch("ghvault.github.repo._git", return_value="feature/x\n"):
            assert current_branch() == "feature/x"

    def test_detached_head(self):
        with patch("ghvault.github.repo._git", return_value="HEAD\n"):
            assert current_branch() is None


class TestResolveRepository:
    def test_explicit_option(self):
        with patch("ghvault.github.repo._git") as mock_git:
            info = resolve_repository("octo/hello-world")
        assert info.full_name == "octo/hello-world"
        mock_git.assert_not_called()

    @pytest.mark.parametrize("option", ["octo", "octo/", "/repo", "a/b/c"])
    def test_invalid_option(self, option):
        with pytest.raises(RepoResolutionError, match="owner/repo"):
            resolve_repository(option)

    def test_detected(self):
        with patch("ghvault.github.repo._git", return_value=REMOTES):
            assert resolve_repository(None).full_name == "octo/hello-world"

    def test_nothing_detected(self):
        with patch("ghvault.github.repo._git", return_value=None):
            with pytest.raises(RepoResolutionError, match="-R owner/repo"):
                resolve_repository(None)
