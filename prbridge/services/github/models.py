import json
from dataclasses import dataclass, field
from typing import Any

from prbridge.conf.params import MergeMethod, StatusState

# Author associations whose comments are allowed to declare dependencies
TRUSTED_COMMENT_ASSOCIATIONS = ("OWNER", "COLLABORATOR", "MEMBER", "CONTRIBUTOR")

# Author associations that mark a pull request author as part of the base repository
ASSOCIATED_AUTHOR_ASSOCIATIONS = ("OWNER", "COLLABORATOR", "MEMBER")


@dataclass(frozen=True)
class PullRequest:
    """Immutable view over a pull request fetched from GitHub.

    Re-resolving a pull request (after a merge, for example) means fetching a
    new instance; nothing here is ever updated in place.
    """

    number: int
    head_sha: str
    merge_commit_sha: str | None
    base_repo: str
    head_repo: str | None
    url: str
    author_association: str | None = None
    merged: bool = False

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "PullRequest":
        """Build a pull request from a GitHub REST API payload.

        The head repository is None when the fork it came from has been deleted.
        """
        head_repo = (data["head"].get("repo") or {}).get("full_name")
        return cls(
            number=data["number"],
            head_sha=data["head"]["sha"],
            merge_commit_sha=data.get("merge_commit_sha"),
            base_repo=data["base"]["repo"]["full_name"],
            head_repo=head_repo,
            url=data["html_url"],
            author_association=data.get("author_association"),
            merged=bool(data.get("merged", False)),
        )

    @property
    def from_fork(self) -> bool:
        return self.base_repo != self.head_repo

    @property
    def author_associated(self) -> bool:
        """Whether the author owns, collaborates on, or is an org member of the base repository."""
        return self.author_association in ASSOCIATED_AUTHOR_ASSOCIATIONS

    def as_version(self) -> dict[str, str]:
        return {"pr": str(self.number), "ref": self.head_sha}


@dataclass(frozen=True)
class Comment:
    """Issue comment as seen by the dependency gate."""

    body: str
    author_association: str | None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Comment":
        return cls(body=data.get("body") or "", author_association=data.get("author_association"))

    @property
    def trusted(self) -> bool:
        return self.author_association in TRUSTED_COMMENT_ASSOCIATIONS


@dataclass(frozen=True)
class DependencyReference:
    """A `depends:` link from a comment to another pull request."""

    owner_repo: str
    pull_number: int

    def __str__(self) -> str:
        return f"{self.owner_repo}#{self.pull_number}"


@dataclass(frozen=True)
class StatusUpdate:
    """One commit status to create, already template-substituted."""

    state: StatusState
    sha: str
    context: str
    target_url: str | None = None
    description: str | None = None


@dataclass
class MergeRequest:
    """A merge of one pull request; only `attempts` changes while it is retried."""

    pull_number: int
    method: MergeMethod
    commit_message: str = ""
    attempts: int = 0


@dataclass(frozen=True)
class MetadataEntry:
    name: str
    value: str

    def as_dict(self) -> dict[str, str]:
        return {"name": self.name, "value": self.value}


@dataclass
class ResultEnvelope:
    """Version and metadata emitted once the output step completes.

    Metadata is append-only and keeps the order in which steps ran.
    """

    version: dict[str, str] = field(default_factory=dict)
    metadata: list[MetadataEntry] = field(default_factory=list)

    def add_metadata(self, name: str, value: str) -> None:
        self.metadata.append(MetadataEntry(name=name, value=value))

    def as_dict(self) -> dict[str, Any]:
        return {
            "version": dict(self.version),
            "metadata": [entry.as_dict() for entry in self.metadata],
        }

    def to_json(self) -> str:
        return json.dumps(self.as_dict())
