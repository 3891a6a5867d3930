"""Models for git operations.

Contains:
- parse_stash_branch: Branch name from a stash message
- StashEntry: One entry of the stash list
- MergeStatus, MergeResult: Outcome of merge-like operations
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


def parse_stash_branch(message: str) -> str:
    """Extract the branch name from a stash message.

    Args:
        message: Stash subject, e.g. "WIP on main: 1a2b3c4 Fix parser".

    Returns:
        The branch name, or an empty string for an unrecognized message.
    """
    lowered = message.lower()
    for prefix in ("wip on ", "on "):
        if lowered.startswith(prefix):
            rest = message[len(prefix):]
            colon = rest.find(":")
            if colon > 0:
                return rest[:colon]
    return ""


class StashEntry(BaseModel):
    """A stash list entry.

    ``index`` is positional and changes after every pop or drop; re-read the
    stash list after any mutating stash operation.
    """

    model_config = ConfigDict(frozen=True)

    index: int
    sha: str
    message: str
    branch_name: str = ""
    author: str = ""
    date: Optional[datetime] = None

    @property
    def reference(self) -> str:
        return f"stash@{{{self.index}}}"

    @property
    def message_short(self) -> str:
        return self.message.split("\n", 1)[0]


class MergeStatus(str, Enum):
    SUCCESS = "success"
    CONFLICTS = "conflicts"
    UNRELATED_HISTORIES = "unrelated_histories"
    ERROR = "error"


class MergeResult(BaseModel):
    """Outcome of a merge, pull, cherry-pick or stash pop.

    Expected outcomes (conflicts, unrelated histories, a refused fast-forward)
    are reported through this model rather than raised.
    """

    model_config = ConfigDict(frozen=True)

    status: MergeStatus
    conflicting_files: list[str] = Field(default_factory=list)
    error_message: Optional[str] = None
    commit_sha: Optional[str] = None

    @model_validator(mode="after")
    def _check_conflicting_files(self) -> "MergeResult":
        if self.conflicting_files and self.status != MergeStatus.CONFLICTS:
            raise ValueError("conflicting_files is only valid for a CONFLICTS result")
        return self

    @property
    def success(self) -> bool:
        return self.status == MergeStatus.SUCCESS

    @property
    def has_conflicts(self) -> bool:
        return self.status == MergeStatus.CONFLICTS

    @property
    def has_unrelated_histories(self) -> bool:
        return self.status == MergeStatus.UNRELATED_HISTORIES

    @classmethod
    def succeeded(cls, commit_sha: Optional[str] = None) -> "MergeResult":
        return cls(status=MergeStatus.SUCCESS, commit_sha=commit_sha)

    @classmethod
    def conflicts(cls, files: list[str], message: Optional[str] = None) -> "MergeResult":
        return cls(status=MergeStatus.CONFLICTS, conflicting_files=list(files), error_message=message)

    @classmethod
    def unrelated_histories(cls, message: Optional[str] = None) -> "MergeResult":
        return cls(status=MergeStatus.UNRELATED_HISTORIES, error_message=message)

    @classmethod
    def failed(cls, message: str) -> "MergeResult":
        return cls(status=MergeStatus.ERROR, error_message=message)
