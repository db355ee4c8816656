"""Pull request lookups and identity resolution for a build."""

from logging import getLogger

from .client import GitHubAPIClient
from .models import PullRequest

logger = getLogger(__name__)


async def fetch_pull_request(client: GitHubAPIClient, repo: str, number: int | str) -> PullRequest:
    """Fetch a pull request from GitHub.

    Raises:
        httpx.HTTPStatusError: If GitHub API request fails
    """
    logger.debug(f"Fetching pull request {repo}#{number}")
    data = await client.get_pull_request(repo, number)
    return PullRequest.from_api(data)


async def is_review_approved(client: GitHubAPIClient, pr: PullRequest) -> bool:
    """Whether any review on the pull request approves it."""
    reviews = await client.get_pull_request_reviews(pr.base_repo, pr.number)
    return any(review.get("state") == "APPROVED" for review in reviews)


async def resolve_identity(
    client: GitHubAPIClient,
    repo: str,
    sha: str,
    pr_id: str | None,
) -> tuple[str, PullRequest | None]:
    """Determine which commit and pull request a build result belongs to.

    When the build checked out the synthetic merge commit GitHub creates for a
    pull request, the status belongs on the pull request's head commit, which
    is what reviewers see. Any other sha is used as given.

    Args:
        client: GitHub API client
        repo: Repository in owner/name form
        sha: Commit checked out in the working tree
        pr_id: Pull request number recorded in the working tree, if any

    Returns:
        Tuple of (effective sha, pull request or None)

    Raises:
        httpx.HTTPStatusError: If the pull request cannot be fetched
    """
    if not pr_id:
        logger.info(f"No pull request recorded for {sha}, publishing against the commit only")
        return sha, None

    pr = await fetch_pull_request(client, repo, pr_id)
    if sha == pr.merge_commit_sha:
        logger.info(f"{sha} is the merge commit of {repo}#{pr.number}, using head {pr.head_sha}")
        sha = pr.head_sha
    return sha, pr
