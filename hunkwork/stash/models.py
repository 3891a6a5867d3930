"""Models for stash reconciliation.

Contains:
- TEMP_STASH_MESSAGE: Message of the sentinel stash holding local changes
- ReconcileState: States of the stash pop state machine
- TempStashLease: Handle owning the sentinel stash after a conflicting pop
- StashPopResult: Final state, MergeResult and optional lease
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

import structlog

from hunkwork.git.exceptions import GitError
from hunkwork.git.models import MergeResult
from hunkwork.git.runner import ProcessRunner
from hunkwork.git.stash import resolve_stash_index, stash_drop

logger = structlog.get_logger()

TEMP_STASH_MESSAGE = "TEMP_HUNKWORK_AUTOPOP"


class ReconcileState(str, Enum):
    CLEAN = "clean"
    DIRTY_TIER1 = "dirty_tier1"
    DIRTY_TIER2 = "dirty_tier2"
    DONE_SUCCESS = "done_success"
    DONE_CONFLICT = "done_conflict"
    DONE_ERROR = "done_error"


class TempStashLease:
    """Ownership of the sentinel stash left behind by a conflicting pop.

    The sentinel holds the local changes that were re-applied on top of the
    popped stash. Close the lease once conflict resolution is finished or
    abandoned; it drops exactly that stash, identified by SHA. Nothing
    closes it implicitly except leaving a ``with`` block.
    """

    def __init__(self, runner: ProcessRunner, repo_path: Path, stash_sha: str, message: str = TEMP_STASH_MESSAGE):
        self.runner = runner
        self.repo_path = Path(repo_path)
        self.stash_sha = stash_sha
        self.message = message
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> bool:
        """Drop the sentinel stash.

        Returns:
            True if the stash was dropped, False if it was already gone.

        Raises:
            GitError: If git fails to drop the stash.
        """
        if self._closed:
            return False

        index = resolve_stash_index(self.runner, self.repo_path, self.stash_sha)
        if index is None:
            logger.warning("temp_stash_missing", sha=self.stash_sha[:7], repo=str(self.repo_path))
            self._closed = True
            return False

        result = stash_drop(self.runner, self.repo_path, index)
        if not result.success:
            raise GitError(
                f"Failed to drop temporary stash {self.stash_sha[:7]}: {result.stderr.strip()}",
                args=["stash", "drop", str(index)],
                exit_code=result.exit_code,
                stdout=result.stdout,
                stderr=result.stderr,
            )
        self._closed = True
        logger.info("temp_stash_dropped", sha=self.stash_sha[:7], repo=str(self.repo_path))
        return True

    def __enter__(self) -> "TempStashLease":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self) -> str:
        return f"TempStashLease(sha={self.stash_sha[:7]!r}, closed={self._closed})"


@dataclass
class StashPopResult:
    """Outcome of a stash pop.

    ``temp_stash`` is set only for a DONE_CONFLICT produced by the
    conflict-producing tier; the caller owns it and must close it.
    """

    state: ReconcileState
    merge_result: MergeResult
    temp_stash: Optional[TempStashLease] = None
    visited_states: list[ReconcileState] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.merge_result.success

    @property
    def has_conflicts(self) -> bool:
        return self.merge_result.has_conflicts

    @property
    def conflicting_files(self) -> list[str]:
        return list(self.merge_result.conflicting_files)
