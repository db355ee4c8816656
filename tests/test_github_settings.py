import pytest
from pydantic import SecretStr, ValidationError

from prbridge.conf.github import GitHubSettings


def test_pat_configuration_valid() -> None:
    """Test valid PAT authentication configuration."""
    settings = GitHubSettings(github_token=SecretStr("test_token_123"))
    assert settings.github_token is not None
    assert settings.github_token.get_secret_value() == "test_token_123"


def test_token_defaults_to_none(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that a token is optional until the client is built."""
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    settings = GitHubSettings(_env_file=None)
    assert settings.github_token is None


def test_api_url_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GITHUB_API_URL", raising=False)
    assert GitHubSettings(_env_file=None).github_api_url == "https://api.github.com"


def test_api_url_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test GitHub Enterprise endpoints can be configured."""
    monkeypatch.setenv("GITHUB_API_URL", "https://github.example.com/api/v3")
    assert GitHubSettings().github_api_url == "https://github.example.com/api/v3"


def test_request_retries_negative() -> None:
    """Test transport retries cannot be negative."""
    with pytest.raises(ValidationError, match="must not be negative"):
        GitHubSettings(github_request_retries=-1)
