"""Restore point for the conflict-producing stash pop tier.

Contains:
- ReconcileSnapshot: HEAD and stash SHAs recorded before the tree is mutated
- create_snapshot: Record the restore point
- restore_from_snapshot: Best-effort return to the recorded state
"""

from dataclasses import dataclass
from pathlib import Path

import structlog

from hunkwork.git.runner import ProcessRunner
from hunkwork.git.stash import resolve_stash_index, stash_apply, stash_drop

logger = structlog.get_logger()


@dataclass
class ReconcileSnapshot:
    """State before the conflict-producing tier starts mutating the tree.

    ``sentinel_sha`` is the stash holding the local changes; with it and the
    HEAD commit the working tree can be rebuilt.
    """

    head_sha: str
    sentinel_sha: str
    target_sha: str


def create_snapshot(runner: ProcessRunner, repo_path: Path, sentinel_sha: str, target_sha: str) -> ReconcileSnapshot:
    """Record HEAD together with the sentinel and target stash SHAs.

    Raises:
        GitError: If HEAD cannot be resolved.
    """
    head_sha = runner.git(["rev-parse", "HEAD"], cwd=repo_path)
    return ReconcileSnapshot(head_sha=head_sha, sentinel_sha=sentinel_sha, target_sha=target_sha)


def restore_from_snapshot(runner: ProcessRunner, repo_path: Path, snapshot: ReconcileSnapshot) -> tuple[bool, str]:
    """Attempt to restore the working tree from the snapshot.

    Hard-resets to the recorded HEAD, re-applies the sentinel stash and
    drops it. The target stash is left untouched.

    Returns:
        Tuple of (success, message)
    """
    messages = []

    result = runner.run_git(["reset", "--hard", snapshot.head_sha], cwd=repo_path)
    if not result.success:
        return False, f"Failed to reset to {snapshot.head_sha[:7]}: {result.stderr.strip()}"
    messages.append(f"Reset to {snapshot.head_sha[:7]}")

    result = stash_apply(runner, repo_path, snapshot.sentinel_sha)
    if not result.success:
        logger.warning("snapshot_restore_incomplete", sentinel=snapshot.sentinel_sha[:7], stderr=result.stderr.strip())
        return False, f"Could not restore local changes from stash {snapshot.sentinel_sha[:7]}: {result.stderr.strip()}"
    messages.append("Restored local changes")

    index = resolve_stash_index(runner, repo_path, snapshot.sentinel_sha)
    if index is not None:
        stash_drop(runner, repo_path, index)
        messages.append("Dropped temporary stash")

    return True, "; ".join(messages)
