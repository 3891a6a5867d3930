"""Data models for decorated commit history.

Contains:
- RemoteBranchRef: A remote-tracking branch name and its remote
- BranchLabel: A branch indicator attached to a commit
- CommitInfo: One commit of a history window with its labels and tags
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RemoteBranchRef(BaseModel):
    """A remote-tracking branch, e.g. ``origin/main`` -> name="main", remote_name="origin"."""

    model_config = ConfigDict(frozen=True)

    name: str
    remote_name: str


class BranchLabel(BaseModel):
    """A branch label on a commit.

    A local branch and a remote-tracking branch with the same name collapse
    into one label with both ``is_local`` and ``is_remote`` set.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    is_local: bool = False
    is_remote: bool = False
    remote_name: Optional[str] = None
    is_current: bool = False
    tip_sha: Optional[str] = None

    @property
    def is_synced(self) -> bool:
        return self.is_local and self.is_remote

    @property
    def full_name(self) -> str:
        if self.is_remote and not self.is_local and self.remote_name:
            return f"{self.remote_name}/{self.name}"
        return self.name


class CommitInfo(BaseModel):
    """A commit of a loaded history window. Rebuilt on every history load."""

    model_config = ConfigDict(frozen=True)

    sha: str
    parent_shas: list[str] = Field(default_factory=list)
    message: str = ""
    author: str = ""
    author_email: str = ""
    date: Optional[datetime] = None
    branch_labels: list[BranchLabel] = Field(default_factory=list)
    tag_names: list[str] = Field(default_factory=list)
    is_head: bool = False

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    @property
    def message_short(self) -> str:
        return self.message.split("\n", 1)[0]

    @property
    def description(self) -> str:
        """Message body after the first line."""
        parts = self.message.split("\n", 1)
        return parts[1].strip() if len(parts) > 1 else ""

    @property
    def is_merge(self) -> bool:
        return len(self.parent_shas) > 1

    @property
    def branch_names(self) -> list[str]:
        return [label.name for label in self.branch_labels if label.is_local]
