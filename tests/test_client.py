"""Tests for ghvault.github.client."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from ghvault.auth.manager import CredentialManager
from ghvault.config import USER_AGENT, Config
from ghvault.errors import AuthenticationError
from ghvault.github.client import create_github_client, verify_token


@pytest.fixture
def config(tmp_path: Path) -> Config:
    return Config(api_url="https://ghe.example.com/api/v3", timeout=12, token_path=tmp_path / "token")


class TestCreateGithubClient:
    def test_no_token(self, manager: CredentialManager, config):
        with patch("ghvault.github.client.Github") as mock_github:
            with pytest.raises(AuthenticationError):
                create_github_client(manager, config)
        mock_github.assert_not_called()

    def test_builds_client_from_stored_token(self, manager: CredentialManager, config, fine_grained_token):
        manager.set_token(fine_grained_token)

        with patch("ghvault.github.client.Github") as mock_github:
            client = create_github_client(manager, config)

        assert client is mock_github.return_value
        kwargs = mock_github.call_args.kwargs
        assert kwargs["base_url"] == "https://ghe.example.com/api/v3"
        assert kwargs["timeout"] == 12
        assert kwargs["user_agent"] == USER_AGENT
        assert kwargs["auth"].token == fine_grained_token


class TestVerifyToken:
    def test_reports_user(self, config, fine_grained_token):
        gh = MagicMock()
        gh.get_user.return_value.login = "octocat"
        gh.oauth_scopes = None
        gh.rate_limiting = (4999, 5000)

        with patch("ghvault.github.client.Github", return_value=gh):
            info = verify_token(fine_grained_token, config)

        assert info.login == "octocat"
        assert info.scopes == []
        assert (info.rate_remaining, info.rate_limit) == (4999, 5000)
        gh.close.assert_called_once()

    def test_classic_scopes(self, config, classic_token):
        gh = MagicMock()
        gh.get_user.return_value.login = "octocat"
        gh.oauth_scopes = ["repo", " workflow", ""]
        gh.rate_limiting = (10, 5000)

        with patch("ghvault.github.client.Github", return_value=gh):
            info = verify_token(classic_token, config)

        assert info.scopes == ["repo", "workflow"]

    def test_closes_client_on_failure(self, config, fine_grained_token):
        gh = MagicMock()
        gh.get_user.side_effect = RuntimeError("boom")

        with patch("ghvault.github.client.Github", return_value=gh):
            with pytest.raises(RuntimeError):
                verify_token(fine_grained_token, config)
        gh.close.assert_called_once()
