"""GitHub authentication and client factory."""

from logging import getLogger

from pydantic import SecretStr

from prbridge.conf.github import GitHubSettings

from .client import GitHubAPIClient

logger = getLogger(__name__)


class GitHubClient:
    """Factory for creating authenticated GitHub API clients."""

    def __init__(
        self,
        settings: GitHubSettings,
        token_override: SecretStr | None = None,
        api_url_override: str | None = None,
    ) -> None:
        """Initialize with settings.

        Args:
            settings: GitHub settings
            token_override: Token from the resource source, preferred over settings
            api_url_override: API endpoint from the resource source
        """
        self.settings = settings
        self.token_override = token_override
        self.api_url_override = api_url_override

    def get_authenticated_client(self) -> GitHubAPIClient:
        """Return an authenticated GitHub API client.

        Raises:
            ValueError: If no token is configured
        """
        base_url = self.api_url_override or self.settings.github_api_url

        if self.token_override is not None:
            logger.info("Using access token from source configuration")
            token = self.token_override
        elif self.settings.github_token is not None:
            logger.info("Using GITHUB_TOKEN for authentication")
            token = self.settings.github_token
        else:
            raise ValueError("GitHub token not configured -- set `source.access_token` or GITHUB_TOKEN")

        return GitHubAPIClient(token, base_url=base_url, max_retries=self.settings.github_request_retries)
