"""Tests for reading the step's destination directory."""

from pathlib import Path

import pytest

from prbridge.exceptions import WorkspaceError
from prbridge.services.workspace import Workspace


def test_head_sha(git_checkout) -> None:
    destination, sha = git_checkout()

    assert Workspace(destination).head_sha("repo") == sha


def test_pull_request_id(git_checkout) -> None:
    destination, _ = git_checkout(pr_id="42")

    assert Workspace(destination).pull_request_id("repo") == "42"


def test_pull_request_id_unset(git_checkout) -> None:
    """Test that a checkout without a pull request id reports None."""
    destination, _ = git_checkout()

    assert Workspace(destination).pull_request_id("repo") is None


def test_head_sha_outside_git(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
    (tmp_path / "plain").mkdir()

    with pytest.raises(WorkspaceError, match="Failed to read HEAD"):
        Workspace(tmp_path).head_sha("plain")


def test_read_text_utf8(tmp_path: Path) -> None:
    (tmp_path / "comment.md").write_text("Déploiement réussi ✅", encoding="utf-8")
    workspace = Workspace(tmp_path)

    assert workspace.exists("comment.md")
    assert workspace.read_text("comment.md") == "Déploiement réussi ✅"


def test_exists_missing(tmp_path: Path) -> None:
    assert Workspace(tmp_path).exists("missing.txt") is False


def test_resolve(tmp_path: Path) -> None:
    assert Workspace(tmp_path).resolve("a/b.txt") == tmp_path / "a" / "b.txt"
