"""Read-only access to the directory the CI platform hands to the output step."""

import subprocess
from logging import getLogger
from pathlib import Path

from prbridge.exceptions import WorkspaceError

logger = getLogger(__name__)


class Workspace:
    """Files and git metadata under the step's destination directory.

    Nothing here writes to the working tree.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def resolve(self, relative: str) -> Path:
        return self.root / relative

    def exists(self, relative: str) -> bool:
        return self.resolve(relative).exists()

    def read_text(self, relative: str) -> str:
        return self.resolve(relative).read_text(encoding="utf-8")

    def _run_git(self, path: str, *args: str) -> subprocess.CompletedProcess[str]:
        return subprocess.run(
            ["git", *args],
            cwd=self.resolve(path),
            capture_output=True,
            text=True,
        )

    def pull_request_id(self, path: str) -> str | None:
        """Pull request number recorded in the checkout's git config, if any.

        Raises:
            WorkspaceError: If git cannot read the config
        """
        result = self._run_git(path, "config", "--get", "pullrequest.id")
        # `git config --get` exits 1 when the key is unset
        if result.returncode == 1:
            return None
        if result.returncode != 0:
            raise WorkspaceError(f"Failed to read pullrequest.id in `{path}`: {result.stderr.strip()}")
        return result.stdout.strip() or None

    def head_sha(self, path: str) -> str:
        """Commit checked out in the working tree.

        Raises:
            WorkspaceError: If the directory is not a git checkout
        """
        result = self._run_git(path, "rev-parse", "HEAD")
        if result.returncode != 0:
            raise WorkspaceError(f"Failed to read HEAD in `{path}`: {result.stderr.strip()}")
        return result.stdout.strip()
