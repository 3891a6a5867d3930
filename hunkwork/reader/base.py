"""Read-only repository access shared by the native and CLI backends."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class BranchTip:
    """A branch or tag ref and the commit it points at.

    For remote-tracking branches ``name`` excludes the remote prefix
    (``main`` for ``refs/remotes/origin/main``) and ``remote_name`` is set.
    """

    name: str
    sha: str
    remote_name: Optional[str] = None


@dataclass(frozen=True)
class RawCommit:
    """Commit data as read from the object database, before decoration."""

    sha: str
    parent_shas: tuple[str, ...]
    message: str
    author: str
    author_email: str
    date: datetime


@dataclass
class ConflictStages:
    """Index stage contents of one conflicted path (None for a missing stage)."""

    path: str
    base: Optional[str] = None
    ours: Optional[str] = None
    theirs: Optional[str] = None
    stages: set[int] = field(default_factory=set)


class RepositoryReader(ABC):
    """Abstract base class for read-only repository backends.

    Readers hold an open handle on the repository; close them explicitly or
    use them as context managers.
    """

    @abstractmethod
    def head_sha(self) -> Optional[str]:
        """Full SHA of HEAD, or None in a repository without commits."""

    @abstractmethod
    def current_branch(self) -> Optional[str]:
        """Name of the checked-out branch, or None when HEAD is detached."""

    def is_head_detached(self) -> bool:
        return self.current_branch() is None

    @abstractmethod
    def local_branch_tips(self) -> list[BranchTip]:
        """All local branches in ref order."""

    @abstractmethod
    def remote_branch_tips(self) -> list[BranchTip]:
        """All remote-tracking branches, excluding symbolic ``<remote>/HEAD``."""

    @abstractmethod
    def tag_tips(self) -> list[BranchTip]:
        """All tags, peeled to the commit they point at."""

    @abstractmethod
    def list_commits(self, include: list[str], skip: int = 0, count: Optional[int] = None) -> list[RawCommit]:
        """Commits reachable from include, children before parents, newest first.

        Args:
            include: Commit SHAs to start the walk from.
            skip: Number of commits to skip from the start of the order.
            count: Maximum number of commits to return.

        Returns:
            List of RawCommit in topological and commit-date order.
        """

    @abstractmethod
    def get_parents(self, sha: str) -> Optional[list[str]]:
        """Parent SHAs of a commit, or None if the commit is unknown."""

    @abstractmethod
    def read_blob(self, rev: str, path: str) -> Optional[str]:
        """Content of path at commit rev, or None if it does not exist there."""

    @abstractmethod
    def conflict_entries(self) -> list[ConflictStages]:
        """Paths with conflict stages in the index, with their stage contents."""

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
