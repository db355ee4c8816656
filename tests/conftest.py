import subprocess
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest
from pydantic import SecretStr

from prbridge.services.github.client import GitHubAPIClient


@pytest.fixture
def mock_client() -> GitHubAPIClient:
    """Create a test GitHub API client for mocking."""
    return GitHubAPIClient(token=SecretStr("test_token"))


@pytest.fixture
def mock_github_client() -> AsyncMock:
    """Create a mock GitHub client."""
    return AsyncMock()


@pytest.fixture
def pr_payload() -> Callable[..., dict[str, Any]]:
    """Factory for GitHub pull request payloads."""

    def _make(
        number: int = 7,
        head_sha: str = "headsha",
        merge_commit_sha: str | None = "mergesha",
        base_repo: str = "acme/widgets",
        head_repo: str | None = "acme/widgets",
        merged: bool = False,
        author_association: str = "MEMBER",
    ) -> dict[str, Any]:
        return {
            "number": number,
            "html_url": f"https://github.com/{base_repo}/pull/{number}",
            "merge_commit_sha": merge_commit_sha,
            "merged": merged,
            "author_association": author_association,
            "head": {"sha": head_sha, "repo": {"full_name": head_repo} if head_repo else None},
            "base": {"sha": "basesha", "repo": {"full_name": base_repo}},
        }

    return _make


def _git(cwd: Path, *args: str) -> str:
    result = subprocess.run(["git", *args], cwd=cwd, capture_output=True, text=True, check=True)
    return result.stdout.strip()


@pytest.fixture
def git_checkout(tmp_path: Path) -> Callable[..., tuple[Path, str]]:
    """Factory creating a git checkout named `repo` under tmp_path.

    Returns the destination directory and the HEAD sha.
    """

    def _make(pr_id: str | None = None) -> tuple[Path, str]:
        repo = tmp_path / "repo"
        repo.mkdir()
        _git(repo, "init", "-q")
        _git(repo, "config", "user.email", "ci@example.com")
        _git(repo, "config", "user.name", "CI")
        (repo / "README.md").write_text("hello\n")
        _git(repo, "add", "README.md")
        _git(repo, "commit", "-q", "-m", "initial")
        if pr_id is not None:
            _git(repo, "config", "pullrequest.id", pr_id)
        return tmp_path, _git(repo, "rev-parse", "HEAD")

    return _make
