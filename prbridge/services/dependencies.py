"""Cross-repository dependency checks declared in pull request comments."""

import re
from logging import getLogger

from .github.client import GitHubAPIClient
from .github.models import Comment, DependencyReference, PullRequest
from .github.pullrequests import fetch_pull_request

logger = getLogger(__name__)

DEPENDS_PATTERN = re.compile(
    r"depends: https://(?P<host>[\w.-]+)/(?P<owner>[\w-]+)/(?P<repo>[\w.-]+)/pull/(?P<number>\d+)"
)


def parse_dependency_references(body: str) -> list[DependencyReference]:
    """Extract every `depends:` pull request link from a comment body.

    Examples:
        >>> parse_dependency_references("depends: https://github.com/acme/widgets/pull/42")
        [DependencyReference(owner_repo='acme/widgets', pull_number=42)]
    """
    return [
        DependencyReference(owner_repo=f"{match['owner']}/{match['repo']}", pull_number=int(match["number"]))
        for match in DEPENDS_PATTERN.finditer(body)
    ]


class DependencyGate:
    """Decides whether the pull requests a pull request depends on are merged."""

    def __init__(self, github_client: GitHubAPIClient) -> None:
        self.github_client = github_client

    async def dependencies_merged(self, pr: PullRequest) -> bool:
        """Check the dependencies declared in a pull request's comments.

        A pull request without comments is never satisfied. Scanning stops at
        the first comment from an author outside the trusted associations and
        the pull request counts as satisfied. Comments from trusted authors are
        satisfied only when every pull request they reference is merged.

        Raises:
            httpx.HTTPStatusError: If any comment or pull request fetch fails
        """
        data = await self.github_client.get_issue_comments(pr.base_repo, pr.number)
        comments = [Comment.from_api(item) for item in data]
        if not comments:
            logger.info(f"{pr.base_repo}#{pr.number} has no comments, dependencies unsatisfied")
            return False

        for comment in comments:
            # TODO: decide whether an untrusted comment should skip only itself instead of ending the scan
            if not comment.trusted:
                logger.debug(
                    f"Untrusted comment ({comment.author_association}) on {pr.base_repo}#{pr.number}, "
                    "treating dependencies as satisfied"
                )
                return True
            if not await self._references_merged(parse_dependency_references(comment.body)):
                return False

        return True

    async def _references_merged(self, references: list[DependencyReference]) -> bool:
        for reference in references:
            dependency = await fetch_pull_request(self.github_client, reference.owner_repo, reference.pull_number)
            if not dependency.merged:
                logger.info(f"Dependency {reference} is not merged")
                return False
        return True


async def filter_dependent_prs(
    github_client: GitHubAPIClient,
    pull_requests: list[PullRequest],
    check_dependent_prs: bool,
) -> list[PullRequest]:
    """Drop pull requests whose declared dependencies are not merged yet.

    Args:
        github_client: GitHub API client
        pull_requests: Candidates, in the order they should be kept
        check_dependent_prs: When False the candidates are returned unchanged

    Returns:
        The pull requests allowed to proceed
    """
    if not check_dependent_prs:
        return pull_requests

    gate = DependencyGate(github_client)
    return [pr for pr in pull_requests if await gate.dependencies_merged(pr)]
