"""Merging pull requests with tiered retries."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from logging import getLogger

import httpx

from .github.client import GitHubAPIClient
from .github.models import MergeRequest

logger = getLogger(__name__)


class MergeFailure(str, Enum):
    """How a failed merge attempt is treated."""

    CLIENT = "client"
    SERVER = "server"
    FATAL = "fatal"


def categorize_merge_error(error: Exception) -> MergeFailure:
    """Categorize a merge error for retry logic.

    GitHub answers 405 or 409 while a pull request is still being computed as
    mergeable, so client errors get a few attempts. Server errors get more.

    Examples:
        >>> categorize_merge_error(ValueError("boom"))
        <MergeFailure.FATAL: 'fatal'>
    """
    if isinstance(error, httpx.HTTPStatusError):
        status_code = error.response.status_code
        if 400 <= status_code < 500:
            return MergeFailure.CLIENT
        if 500 <= status_code < 600:
            return MergeFailure.SERVER
    return MergeFailure.FATAL


@dataclass(frozen=True)
class MergeAttempt:
    """Outcome of a single merge call."""

    failure: MergeFailure | None = None
    error: Exception | None = None

    @property
    def succeeded(self) -> bool:
        return self.failure is None


class MergeExecutor:
    """Merges a pull request, retrying classified failures a bounded number of times."""

    def __init__(
        self,
        github_client: GitHubAPIClient,
        repo: str,
        retry_delay: float = 10.0,
        client_error_attempts: int = 3,
        server_error_attempts: int = 5,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.github_client = github_client
        self.repo = repo
        self.retry_delay = retry_delay
        self.attempt_limits = {
            MergeFailure.CLIENT: client_error_attempts,
            MergeFailure.SERVER: server_error_attempts,
        }
        self.sleep = sleep

    async def attempt(self, request: MergeRequest) -> MergeAttempt:
        """Make one merge call and classify the result."""
        request.attempts += 1
        try:
            await self.github_client.merge_pull_request(
                self.repo,
                request.pull_number,
                request.commit_message,
                merge_method=request.method.value,
            )
        except Exception as e:
            return MergeAttempt(failure=categorize_merge_error(e), error=e)
        return MergeAttempt()

    async def merge(self, request: MergeRequest) -> None:
        """Merge the pull request.

        The attempt counter is shared by both retry tiers. A failure is retried
        while the counter is below the limit for its tier, waiting a fixed delay
        between attempts.

        Raises:
            httpx.HTTPStatusError: The last error once the attempt budget is spent
            Exception: Any unclassified error, immediately
        """
        while True:
            outcome = await self.attempt(request)
            if outcome.succeeded:
                logger.info(
                    f"Merged {self.repo}#{request.pull_number} with {request.method.value} "
                    f"after {request.attempts} attempt(s)"
                )
                return

            assert outcome.failure is not None and outcome.error is not None
            limit = self.attempt_limits.get(outcome.failure, 1)
            if request.attempts >= limit:
                logger.error(
                    f"Merging {self.repo}#{request.pull_number} failed after {request.attempts} attempt(s): "
                    f"{outcome.error}"
                )
                raise outcome.error

            logger.warning(
                f"Merge of {self.repo}#{request.pull_number} hit a {outcome.failure.value} error "
                f"(attempt {request.attempts}/{limit}), retrying in {self.retry_delay}s: {outcome.error}"
            )
            await self.sleep(self.retry_delay)
