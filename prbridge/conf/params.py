"""Validated models for the JSON request the CI platform passes to the resource."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator, model_validator

from prbridge.exceptions import ConfigurationError


class StatusState(str, Enum):
    """States GitHub accepts for a commit status."""

    SUCCESS = "success"
    FAILURE = "failure"
    ERROR = "error"
    PENDING = "pending"


class MergeMethod(str, Enum):
    """Strategies GitHub supports when merging a pull request."""

    MERGE = "merge"
    SQUASH = "squash"
    REBASE = "rebase"


def _as_list(value: Any) -> Any:
    if isinstance(value, str):
        return [value]
    return value


class Source(BaseModel):
    """Resource-level configuration shared by every step."""

    model_config = ConfigDict(extra="ignore")

    repo: str = Field(description="Repository in owner/name form")
    access_token: SecretStr | None = Field(default=None, description="Token overriding GITHUB_TOKEN")
    api_endpoint: str | None = Field(default=None, description="GitHub API base URL override")
    base_url: str | None = Field(default=None, description="CI web URL used instead of ATC_EXTERNAL_URL")
    check_dependent_prs: bool = Field(default=False, description="Only emit pull requests whose dependencies are merged")


class MergeParams(BaseModel):
    model_config = ConfigDict(extra="ignore")

    method: MergeMethod | None = None
    commit_msg: str | None = Field(default=None, description="File holding the merge commit message")

    @field_validator("method", mode="before")
    @classmethod
    def validate_method(cls, v: Any) -> Any:
        if v is None:
            return v
        if v not in [m.value for m in MergeMethod]:
            raise ValueError(f'`merge.method` "{v}" is not supported -- only merge, squash, or rebase')
        return v


class OutParams(BaseModel):
    """Step parameters for publishing a build result."""

    model_config = ConfigDict(extra="ignore")

    status: StatusState = Field(default=None, validate_default=True)
    path: str | None = Field(default=None, description="Directory holding the pull request checkout")
    context: list[str] = Field(default_factory=lambda: ["status"])
    description: str | None = None
    target_url: str | None = None
    comment: str | None = Field(default=None, description="File whose contents are posted as a comment")
    assignee_file: str | None = None
    label: list[str] | None = None
    label_file: str | None = Field(default=None, description="File holding comma separated labels")
    merge: MergeParams = Field(default_factory=MergeParams)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v: Any) -> Any:
        if v not in [s.value for s in StatusState]:
            shown = "" if v is None else v
            raise ValueError(f'`status` "{shown}" is not supported -- only success, failure, error, or pending')
        return v

    @field_validator("context", mode="before")
    @classmethod
    def normalize_context(cls, v: Any) -> Any:
        if v is None or v == []:
            return ["status"]
        return _as_list(v)

    @field_validator("label", mode="before")
    @classmethod
    def normalize_label(cls, v: Any) -> Any:
        return _as_list(v)

    @field_validator("merge", mode="before")
    @classmethod
    def normalize_merge(cls, v: Any) -> Any:
        if v is None:
            return {}
        return v

    @model_validator(mode="after")
    def require_path(self) -> "OutParams":
        if not self.path:
            raise ValueError("`path` required in `params`")
        return self


class OutRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    source: Source
    params: OutParams = Field(default=None, validate_default=True)

    @field_validator("params", mode="before")
    @classmethod
    def normalize_params(cls, v: Any) -> Any:
        if v is None:
            return {}
        return v


def _describe_error(error: dict[str, Any]) -> str:
    """Render one pydantic error as a single line naming the offending field."""
    ctx_error = error.get("ctx", {}).get("error")
    if isinstance(ctx_error, ValueError):
        return str(ctx_error)
    location = ".".join(str(part) for part in error["loc"])
    if not location:
        return str(error["msg"])
    return f"`{location}` {error['msg'].lower()}"


def parse_out_request(payload: str | bytes | dict[str, Any]) -> OutRequest:
    """Validate the output request, failing fast with a ConfigurationError.

    Args:
        payload: Raw JSON text or an already decoded mapping

    Returns:
        The validated request

    Raises:
        ConfigurationError: If any field is missing or unsupported
    """
    try:
        if isinstance(payload, dict):
            return OutRequest.model_validate(payload)
        return OutRequest.model_validate_json(payload)
    except ValidationError as e:
        raise ConfigurationError(_describe_error(e.errors()[0])) from e
