from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings


class GitHubSettings(BaseSettings):
    """GitHub API configuration and authentication settings."""

    # Personal Access Token authentication, overridden by `source.access_token`
    github_token: SecretStr | None = Field(
        default=None,
        description="GitHub Personal Access Token for API authentication",
    )

    github_api_url: str = Field(
        default="https://api.github.com",
        description="Base URL for the GitHub REST API (override for GitHub Enterprise)",
    )

    github_request_retries: int = Field(
        default=3,
        description="Transport-level retries for timeouts and rate limiting",
    )

    @field_validator("github_request_retries")
    @classmethod
    def validate_retries(cls, v: int) -> int:
        """Validate the transport retry count is not negative."""
        if v < 0:
            raise ValueError("github_request_retries must not be negative")
        return v
