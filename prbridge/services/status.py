"""Publishing commit statuses for a build."""

from collections.abc import Mapping
from logging import getLogger

import httpx

from prbridge.conf.build import BUILD_VARIABLES
from prbridge.conf.params import StatusState

from .github.client import GitHubAPIClient
from .github.models import StatusUpdate

logger = getLogger(__name__)


def substitute_build_variables(template: str, variables: Mapping[str, str | None]) -> str:
    """Replace whitelisted `$NAME` placeholders with build metadata.

    Unset variables become empty strings. Placeholders outside the whitelist
    are left as written.

    Examples:
        >>> substitute_build_variables("Build $BUILD_NAME ($FOO)", {"BUILD_NAME": "ci-1"})
        'Build ci-1 ($FOO)'
    """
    result = template
    for name in BUILD_VARIABLES:
        result = result.replace(f"${name}", variables.get(name) or "")
    return result


class StatusPublisher:
    """Creates one commit status per configured context."""

    def __init__(
        self,
        github_client: GitHubAPIClient,
        repo: str,
        variables: Mapping[str, str | None],
        base_url: str | None = None,
        description: str | None = None,
    ) -> None:
        """Initialize the publisher.

        Args:
            github_client: GitHub API client
            repo: Repository in owner/name form
            variables: Build metadata keyed by variable name
            base_url: CI web URL, falls back to ATC_EXTERNAL_URL
            description: Status description template
        """
        self.github_client = github_client
        self.repo = repo
        self.variables = variables
        self.base_url = base_url if base_url is not None else variables.get("ATC_EXTERNAL_URL")
        self.description = description

    def build_update(self, state: StatusState, sha: str, context: str, target_url: str | None = None) -> StatusUpdate:
        """Build a status with every template already substituted."""
        if target_url is not None:
            url: str | None = substitute_build_variables(target_url, self.variables) or None
        else:
            url = self._default_target_url()

        description = self.description if self.description is not None else f"Concourse CI build {state.value}"

        return StatusUpdate(
            state=state,
            sha=sha,
            context=substitute_build_variables(context, self.variables),
            target_url=url,
            description=substitute_build_variables(description, self.variables),
        )

    def _default_target_url(self) -> str | None:
        if not self.base_url:
            return None
        base_url = substitute_build_variables(self.base_url, self.variables).rstrip("/")
        if not base_url:
            return None
        return f"{base_url}/builds/{self.variables.get('BUILD_ID') or ''}"

    async def send(self, update: StatusUpdate) -> None:
        """Create a single status on GitHub.

        Raises:
            httpx.HTTPStatusError: If GitHub rejects the status
        """
        logger.info(f"Setting {update.context} to {update.state.value} on {self.repo}@{update.sha}")
        await self.github_client.create_status(
            self.repo,
            update.sha,
            update.state.value,
            update.context,
            target_url=update.target_url,
            description=update.description,
        )

    async def publish(
        self,
        state: StatusState,
        sha: str,
        contexts: list[str],
        target_url: str | None = None,
    ) -> list[StatusUpdate]:
        """Publish a status for each context in configuration order.

        Every context is attempted even when an earlier one fails. Statuses
        that were created stay in place.

        Returns:
            The updates that were sent

        Raises:
            httpx.HTTPError: The first failure, once every context has been attempted
        """
        updates = [self.build_update(state, sha, context, target_url) for context in contexts or ["status"]]
        first_error: httpx.HTTPError | None = None
        for update in updates:
            try:
                await self.send(update)
            except httpx.HTTPError as e:
                logger.error(f"Failed to set status {update.context} on {self.repo}@{update.sha}: {e}")
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error
        return updates
