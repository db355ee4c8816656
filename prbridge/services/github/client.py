"""Async GitHub API client using httpx."""

import asyncio
import time
from logging import getLogger
from typing import Any

import httpx
from pydantic import SecretStr

logger = getLogger(__name__)


class GitHubAPIClient:
    """Async GitHub API client for the calls the resource makes."""

    def __init__(self, token: SecretStr, base_url: str = "https://api.github.com", max_retries: int = 3) -> None:
        """Initialize GitHub API client.

        Args:
            token: GitHub Personal Access Token
            base_url: Base URL for GitHub API (default: https://api.github.com)
            max_retries: Transport retries on timeouts and rate limiting
        """
        self.token = token.get_secret_value()
        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "GitHubAPIClient":
        """Enter async context manager."""
        self._client = httpx.AsyncClient(
            headers={
                "Authorization": f"Bearer {self.token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
            timeout=httpx.Timeout(30.0, connect=10.0),
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        if self._client:
            await self._client.aclose()

    async def _request_with_retry(
        self,
        method: str,
        url: str,
        retry_count: int = 0,
        **kwargs: Any,
    ) -> httpx.Response:
        """Make HTTP request with automatic retry on timeout and rate limiting.

        Only transport conditions are retried here. Any other error status is
        raised for the caller to classify.

        Args:
            method: HTTP method (GET, POST, etc.)
            url: URL to request
            retry_count: Current retry attempt (internal use)
            **kwargs: Additional arguments to pass to httpx request

        Returns:
            httpx.Response object

        Raises:
            httpx.HTTPStatusError: If the request fails after retries
            httpx.TimeoutException: If request times out after retries
        """
        if not self._client:
            raise RuntimeError("Client not initialized - use async with context manager")

        try:
            response = await self._client.request(method, url, **kwargs)
            response.raise_for_status()
            return response

        except httpx.TimeoutException:
            if retry_count < self.max_retries:
                wait_time = 2**retry_count  # 1, 2, 4 seconds
                logger.warning(
                    f"Timeout on {method} {url} (attempt {retry_count + 1}/{self.max_retries}). "
                    f"Waiting {wait_time} seconds before retry..."
                )
                await asyncio.sleep(wait_time)
                return await self._request_with_retry(method, url, retry_count + 1, **kwargs)
            logger.error(f"{method} {url} failed after {self.max_retries} retries due to timeout")
            raise

        except httpx.HTTPStatusError as e:
            # Rate limiting shows up as 429, or 403 with no remaining quota
            if e.response.status_code in (403, 429) and retry_count < self.max_retries:
                reset_time = e.response.headers.get("X-RateLimit-Reset")
                remaining = e.response.headers.get("X-RateLimit-Remaining", "")
                is_rate_limit = e.response.status_code == 429 or remaining == "0"

                if is_rate_limit:
                    if reset_time:
                        wait_time = min(int(reset_time) - int(time.time()), 60)
                        wait_time = max(wait_time, 1)
                    else:
                        wait_time = 2**retry_count

                    logger.warning(
                        f"Rate limit hit on {method} {url} (attempt {retry_count + 1}/{self.max_retries}). "
                        f"Waiting {wait_time} seconds before retry..."
                    )
                    await asyncio.sleep(wait_time)
                    return await self._request_with_retry(method, url, retry_count + 1, **kwargs)
            raise

    async def get_pull_request(self, repo: str, number: int | str) -> dict[str, Any]:
        """Get a single pull request.

        Args:
            repo: Repository in owner/name form
            number: Pull request number

        Returns:
            Pull request data dictionary including head, base, merge_commit_sha and merged

        Raises:
            httpx.HTTPStatusError: If the request fails
        """
        response = await self._request_with_retry("GET", f"{self.base_url}/repos/{repo}/pulls/{number}")
        result: dict[str, Any] = response.json()
        return result

    async def get_pull_request_reviews(self, repo: str, number: int | str) -> list[dict[str, Any]]:
        """Get the reviews submitted on a pull request.

        Raises:
            httpx.HTTPStatusError: If the request fails
        """
        return await self._get_all_pages(f"{self.base_url}/repos/{repo}/pulls/{number}/reviews")

    async def get_issue_comments(self, repo: str, number: int | str) -> list[dict[str, Any]]:
        """Get every comment on a pull request's conversation.

        Args:
            repo: Repository in owner/name form
            number: Pull request (issue) number

        Returns:
            List of comment dictionaries including body and author_association

        Raises:
            httpx.HTTPStatusError: If the request fails
        """
        return await self._get_all_pages(f"{self.base_url}/repos/{repo}/issues/{number}/comments")

    async def _get_all_pages(self, url: str) -> list[dict[str, Any]]:
        per_page = 100
        page = 1
        items: list[dict[str, Any]] = []

        while True:
            response = await self._request_with_retry("GET", url, params={"per_page": per_page, "page": page})
            batch: list[dict[str, Any]] = response.json()

            if not batch:
                break

            items.extend(batch)

            if len(batch) < per_page:
                break

            page += 1

        return items

    async def create_status(
        self,
        repo: str,
        sha: str,
        state: str,
        context: str,
        target_url: str | None = None,
        description: str | None = None,
    ) -> dict[str, Any]:
        """Create a commit status.

        Raises:
            httpx.HTTPStatusError: If the request fails
        """
        payload: dict[str, Any] = {"state": state, "context": context}
        if target_url:
            payload["target_url"] = target_url
        if description:
            payload["description"] = description

        response = await self._request_with_retry("POST", f"{self.base_url}/repos/{repo}/statuses/{sha}", json=payload)
        result: dict[str, Any] = response.json()
        return result

    async def add_comment(self, repo: str, number: int | str, body: str) -> dict[str, Any]:
        """Post a comment on a pull request's conversation.

        Raises:
            httpx.HTTPStatusError: If the request fails
        """
        response = await self._request_with_retry(
            "POST", f"{self.base_url}/repos/{repo}/issues/{number}/comments", json={"body": body}
        )
        result: dict[str, Any] = response.json()
        return result

    async def add_assignees(self, repo: str, number: int | str, assignees: list[str]) -> dict[str, Any]:
        """Add assignees to a pull request.

        Raises:
            httpx.HTTPStatusError: If the request fails
        """
        response = await self._request_with_retry(
            "POST", f"{self.base_url}/repos/{repo}/issues/{number}/assignees", json={"assignees": assignees}
        )
        result: dict[str, Any] = response.json()
        return result

    async def add_labels(self, repo: str, number: int | str, labels: list[str]) -> list[dict[str, Any]]:
        """Add labels to a pull request.

        Raises:
            httpx.HTTPStatusError: If the request fails
        """
        response = await self._request_with_retry(
            "POST", f"{self.base_url}/repos/{repo}/issues/{number}/labels", json={"labels": labels}
        )
        result: list[dict[str, Any]] = response.json()
        return result

    async def merge_pull_request(
        self,
        repo: str,
        number: int | str,
        commit_message: str = "",
        merge_method: str = "merge",
    ) -> dict[str, Any]:
        """Merge a pull request.

        Args:
            repo: Repository in owner/name form
            number: Pull request number
            commit_message: Extra detail for the merge commit, omitted when empty
            merge_method: merge, squash, or rebase

        Returns:
            Merge result including the resulting sha

        Raises:
            httpx.HTTPStatusError: If GitHub refuses or fails the merge (405 and 409 are common)
        """
        payload: dict[str, Any] = {"merge_method": merge_method}
        if commit_message:
            payload["commit_message"] = commit_message

        response = await self._request_with_retry(
            "PUT", f"{self.base_url}/repos/{repo}/pulls/{number}/merge", json=payload
        )
        result: dict[str, Any] = response.json()
        return result
