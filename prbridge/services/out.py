"""The output step: report a build result back to a pull request."""

import asyncio
import json
from collections.abc import Awaitable, Callable, Mapping
from enum import Enum
from logging import getLogger

from prbridge.conf.merge import MergeSettings
from prbridge.conf.params import OutRequest
from prbridge.exceptions import ConfigurationError, MissingPullRequestError

from .github.client import GitHubAPIClient
from .github.models import MergeRequest, PullRequest, ResultEnvelope
from .github.pullrequests import resolve_identity
from .merge import MergeExecutor
from .status import StatusPublisher
from .workspace import Workspace

logger = getLogger(__name__)


class OutStage(str, Enum):
    VALIDATING_CONFIG = "validating_config"
    RESOLVING_IDENTITY = "resolving_identity"
    PUBLISHING_STATUS = "publishing_status"
    ATTACHING_ARTIFACTS = "attaching_artifacts"
    MERGING = "merging"
    DONE = "done"
    FAILED = "failed"


class OutCommand:
    """Publishes statuses, attaches review artifacts and optionally merges.

    Steps run strictly in order. Nothing is rolled back: when a step fails,
    whatever earlier steps sent to GitHub stays there and the error propagates.
    """

    def __init__(
        self,
        github_client: GitHubAPIClient,
        workspace: Workspace,
        request: OutRequest,
        variables: Mapping[str, str | None],
        merge_settings: MergeSettings | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the output step.

        Args:
            github_client: Authenticated GitHub API client
            workspace: Destination directory given to the step
            request: Validated source and params
            variables: Build metadata used for template substitution
            merge_settings: Merge retry policy (defaults to MergeSettings())
            sleep: Coroutine used to wait between merge attempts
        """
        self.github_client = github_client
        self.workspace = workspace
        self.source = request.source
        self.params = request.params
        self.variables = variables
        self.merge_settings = merge_settings or MergeSettings()
        self.sleep = sleep
        self.stage = OutStage.VALIDATING_CONFIG
        self.failed_stage: OutStage | None = None
        self.envelope = ResultEnvelope()

    @property
    def repo(self) -> str:
        return self.source.repo

    async def run(self) -> ResultEnvelope:
        """Run every configured step and return the result envelope.

        Raises:
            ConfigurationError: If a referenced file is missing
            MissingPullRequestError: If pull request actions are configured for a plain commit
            WorkspaceError: If git metadata cannot be read
            httpx.HTTPError: If GitHub calls fail
        """
        try:
            self._check_files()

            self.stage = OutStage.RESOLVING_IDENTITY
            sha, pr = await self._resolve_identity()
            self._check_pull_request_actions(pr)

            self.stage = OutStage.PUBLISHING_STATUS
            await self._publish_status(sha)

            if pr is not None:
                self.stage = OutStage.ATTACHING_ARTIFACTS
                await self._attach_artifacts(pr)

                if self.params.merge.method is not None:
                    self.stage = OutStage.MERGING
                    await self._merge(pr)
        except Exception:
            self.failed_stage = self.stage
            self.stage = OutStage.FAILED
            logger.error(f"Output step for {self.repo} failed while {self.failed_stage.value}")
            raise

        self.stage = OutStage.DONE
        return self.envelope

    def _check_files(self) -> None:
        params = self.params
        assert params.path is not None
        if not self.workspace.exists(params.path):
            raise ConfigurationError(f'`path` "{params.path}" does not exist')

        referenced = [
            ("comment", params.comment),
            ("merge.commit_msg", params.merge.commit_msg),
            ("assignee_file", params.assignee_file),
            ("label_file", params.label_file),
        ]
        for name, relative in referenced:
            if relative and not self.workspace.exists(relative):
                raise ConfigurationError(f'`{name}` "{relative}" does not exist')

    async def _resolve_identity(self) -> tuple[str, PullRequest | None]:
        assert self.params.path is not None
        local_sha = self.workspace.head_sha(self.params.path)
        pr_id = self.workspace.pull_request_id(self.params.path)

        self.envelope.add_metadata("status", self.params.status.value)
        sha, pr = await resolve_identity(self.github_client, self.repo, local_sha, pr_id)

        if pr is None:
            self.envelope.version = {"ref": sha}
        else:
            self.envelope.add_metadata("url", pr.url)
            self.envelope.version = {"pr": str(pr.number), "ref": sha}
        return sha, pr

    def _check_pull_request_actions(self, pr: PullRequest | None) -> None:
        if pr is not None:
            return
        configured = [
            ("comment", self.params.comment),
            ("assignee_file", self.params.assignee_file),
            ("label", self.params.label),
            ("label_file", self.params.label_file),
            ("merge.method", self.params.merge.method),
        ]
        for name, value in configured:
            if value:
                raise MissingPullRequestError(f"`{name}` requires a pull request but none is checked out")

    async def _publish_status(self, sha: str) -> None:
        publisher = StatusPublisher(
            self.github_client,
            self.repo,
            self.variables,
            base_url=self.source.base_url,
            description=self.params.description,
        )
        await publisher.publish(self.params.status, sha, self.params.context, target_url=self.params.target_url)

    async def _attach_artifacts(self, pr: PullRequest) -> None:
        params = self.params

        if params.comment:
            comment = self.workspace.read_text(params.comment)
            logger.info(f"Commenting on {self.repo}#{pr.number}")
            await self.github_client.add_comment(self.repo, pr.number, comment)
            self.envelope.add_metadata("comment", comment)

        if params.assignee_file:
            assignee = self.workspace.read_text(params.assignee_file).strip()
            logger.info(f"Assigning {assignee} to {self.repo}#{pr.number}")
            await self.github_client.add_assignees(self.repo, pr.number, [assignee])
            self.envelope.add_metadata("assignee", assignee)

        if params.label:
            await self._add_labels(pr, params.label)

        if params.label_file:
            contents = self.workspace.read_text(params.label_file)
            labels = [label.strip() for label in contents.split(",") if label.strip()]
            await self._add_labels(pr, labels)

    async def _add_labels(self, pr: PullRequest, labels: list[str]) -> None:
        logger.info(f"Labelling {self.repo}#{pr.number} with {', '.join(labels)}")
        await self.github_client.add_labels(self.repo, pr.number, labels)
        self.envelope.add_metadata("label", json.dumps(labels))

    async def _merge(self, pr: PullRequest) -> None:
        merge = self.params.merge
        assert merge.method is not None
        commit_message = self.workspace.read_text(merge.commit_msg) if merge.commit_msg else ""

        executor = MergeExecutor(
            self.github_client,
            self.repo,
            retry_delay=self.merge_settings.merge_retry_delay,
            client_error_attempts=self.merge_settings.merge_client_error_attempts,
            server_error_attempts=self.merge_settings.merge_server_error_attempts,
            sleep=self.sleep,
        )
        await executor.merge(MergeRequest(pull_number=pr.number, method=merge.method, commit_message=commit_message))

        self.envelope.add_metadata("merge", merge.method.value)
        self.envelope.add_metadata("merge_commit_msg", commit_message)
