"""Tests for merging with tiered retries."""

from unittest.mock import AsyncMock, call

import httpx
import pytest

from prbridge.conf.params import MergeMethod
from prbridge.services.github.models import MergeRequest
from prbridge.services.merge import MergeExecutor, MergeFailure, categorize_merge_error


def _status_error(status_code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("PUT", "https://api.github.com/repos/acme/widgets/pulls/7/merge")
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError(f"HTTP {status_code}", request=request, response=response)


@pytest.fixture
def sleep() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def request_() -> MergeRequest:
    return MergeRequest(pull_number=7, method=MergeMethod.SQUASH, commit_message="Ship it")


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (_status_error(405), MergeFailure.CLIENT),
        (_status_error(409), MergeFailure.CLIENT),
        (_status_error(500), MergeFailure.SERVER),
        (_status_error(502), MergeFailure.SERVER),
        (httpx.ConnectError("unreachable"), MergeFailure.FATAL),
        (RuntimeError("boom"), MergeFailure.FATAL),
    ],
)
def test_categorize_merge_error(error: Exception, expected: MergeFailure) -> None:
    assert categorize_merge_error(error) is expected


@pytest.mark.asyncio
async def test_merge_success(mock_github_client: AsyncMock, sleep: AsyncMock, request_: MergeRequest) -> None:
    executor = MergeExecutor(mock_github_client, "acme/widgets", sleep=sleep)

    await executor.merge(request_)

    mock_github_client.merge_pull_request.assert_awaited_once_with(
        "acme/widgets", 7, "Ship it", merge_method="squash"
    )
    assert request_.attempts == 1
    sleep.assert_not_called()


@pytest.mark.asyncio
async def test_client_errors_exhaust_after_three_attempts(
    mock_github_client: AsyncMock, sleep: AsyncMock, request_: MergeRequest
) -> None:
    """Test that client errors are attempted three times with 10 second gaps."""
    errors = [_status_error(405), _status_error(405), _status_error(405)]
    mock_github_client.merge_pull_request.side_effect = errors
    executor = MergeExecutor(mock_github_client, "acme/widgets", sleep=sleep)

    with pytest.raises(httpx.HTTPStatusError) as exc_info:
        await executor.merge(request_)

    assert exc_info.value is errors[-1]
    assert mock_github_client.merge_pull_request.await_count == 3
    assert request_.attempts == 3
    assert sleep.await_args_list == [call(10.0), call(10.0)]


@pytest.mark.asyncio
async def test_server_errors_exhaust_after_five_attempts(
    mock_github_client: AsyncMock, sleep: AsyncMock, request_: MergeRequest
) -> None:
    mock_github_client.merge_pull_request.side_effect = [_status_error(502) for _ in range(5)]
    executor = MergeExecutor(mock_github_client, "acme/widgets", sleep=sleep)

    with pytest.raises(httpx.HTTPStatusError):
        await executor.merge(request_)

    assert mock_github_client.merge_pull_request.await_count == 5
    assert sleep.await_count == 4


@pytest.mark.asyncio
async def test_retry_then_success(mock_github_client: AsyncMock, sleep: AsyncMock, request_: MergeRequest) -> None:
    mock_github_client.merge_pull_request.side_effect = [_status_error(409), _status_error(503), {"merged": True}]
    executor = MergeExecutor(mock_github_client, "acme/widgets", sleep=sleep)

    await executor.merge(request_)

    assert request_.attempts == 3
    assert sleep.await_count == 2


@pytest.mark.asyncio
async def test_attempt_counter_is_shared_across_tiers(
    mock_github_client: AsyncMock, sleep: AsyncMock, request_: MergeRequest
) -> None:
    """Test that a client error after three server errors ends the retries."""
    mock_github_client.merge_pull_request.side_effect = [
        _status_error(500),
        _status_error(500),
        _status_error(500),
        _status_error(405),
    ]
    executor = MergeExecutor(mock_github_client, "acme/widgets", sleep=sleep)

    with pytest.raises(httpx.HTTPStatusError) as exc_info:
        await executor.merge(request_)

    assert exc_info.value.response.status_code == 405
    assert request_.attempts == 4


@pytest.mark.asyncio
async def test_fatal_error_is_not_retried(
    mock_github_client: AsyncMock, sleep: AsyncMock, request_: MergeRequest
) -> None:
    mock_github_client.merge_pull_request.side_effect = httpx.ConnectError("unreachable")
    executor = MergeExecutor(mock_github_client, "acme/widgets", sleep=sleep)

    with pytest.raises(httpx.ConnectError):
        await executor.merge(request_)

    assert request_.attempts == 1
    sleep.assert_not_called()


@pytest.mark.asyncio
async def test_custom_retry_policy(mock_github_client: AsyncMock, sleep: AsyncMock, request_: MergeRequest) -> None:
    mock_github_client.merge_pull_request.side_effect = [_status_error(405), _status_error(405)]
    executor = MergeExecutor(
        mock_github_client, "acme/widgets", retry_delay=0.5, client_error_attempts=2, sleep=sleep
    )

    with pytest.raises(httpx.HTTPStatusError):
        await executor.merge(request_)

    assert request_.attempts == 2
    sleep.assert_awaited_once_with(0.5)


@pytest.mark.asyncio
async def test_attempt_reports_outcome(mock_github_client: AsyncMock, request_: MergeRequest) -> None:
    mock_github_client.merge_pull_request.side_effect = _status_error(502)
    executor = MergeExecutor(mock_github_client, "acme/widgets")

    outcome = await executor.attempt(request_)

    assert outcome.succeeded is False
    assert outcome.failure is MergeFailure.SERVER
    assert isinstance(outcome.error, httpx.HTTPStatusError)
