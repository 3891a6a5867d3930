"""Three-tier stash pop against a possibly dirty working tree.

Tiers, tried in order:
1. CLEAN: nothing uncommitted, so a plain ``git stash pop`` is enough.
2. DIRTY_TIER1: export the stash as a patch and apply it with the patch
   tool's fuzz tolerance, so local edits that shifted nearby lines do not
   block it.
3. DIRTY_TIER2: stash local changes under a sentinel, apply the target
   stash, stage it, then re-apply the sentinel so genuinely overlapping
   edits come back as conflict markers.
"""

from pathlib import Path
from typing import Optional

import structlog

from hunkwork.git.exceptions import GitError
from hunkwork.git.merge import get_conflicted_files
from hunkwork.git.models import MergeResult
from hunkwork.git.runner import CommandResult, ProcessRunner
from hunkwork.git.stash import (
    get_stash_sha,
    stash_apply,
    stash_drop,
    stash_pop,
    stash_push,
    stash_show_patch,
)
from hunkwork.git.status import has_uncommitted_changes
from hunkwork.stash.cleanup import find_reject_files, remove_reject_files
from hunkwork.stash.models import TEMP_STASH_MESSAGE, ReconcileState, StashPopResult, TempStashLease
from hunkwork.stash.snapshot import ReconcileSnapshot, create_snapshot, restore_from_snapshot

logger = structlog.get_logger()

STASH_CONFLICTS_MESSAGE = (
    "Stash conflicts with your local changes. Commit or stash your changes first, then try again."
)
MERGE_CONFLICTS_MESSAGE = "Merge conflicts detected - resolve to complete"
POP_CONFLICTS_MESSAGE = "Stash pop resulted in merge conflicts"


def _has_rejections(result: CommandResult, new_reject_files: set[Path]) -> bool:
    output = result.stdout + result.stderr
    return "FAILED" in output or "saving rejects" in output or bool(new_reject_files)


class StashReconciler:
    """Pop a stash into a working tree that may already have local changes.

    Every call is synchronous. Callers must serialize mutating operations on
    the same repository; git's own index lock is the only exclusion.
    """

    def __init__(
        self,
        runner: ProcessRunner,
        fuzz: int = 3,
        temp_stash_message: str = TEMP_STASH_MESSAGE,
    ):
        self.runner = runner
        self.fuzz = fuzz
        self.temp_stash_message = temp_stash_message

    def pop_stash(self, repo_path: Path, index: int = 0) -> StashPopResult:
        """Pop the stash at index, choosing the least invasive tier that works.

        Args:
            repo_path: Repository root.
            index: Position of the stash to pop (0 = most recent).

        Returns:
            StashPopResult. On DONE_CONFLICT from the sentinel tier it carries
            a TempStashLease that the caller must close after resolution.

        Raises:
            PatchToolNotFoundError: If the tree is dirty and no patch tool is
                installed. Nothing has been modified at that point.
            GitError: If git cannot be run at all.
        """
        repo_path = Path(repo_path)
        visited: list[ReconcileState] = []

        def finish(state: ReconcileState, merge_result: MergeResult, lease: Optional[TempStashLease] = None):
            visited.append(state)
            logger.info(
                "stash_pop_finished",
                repo=str(repo_path),
                index=index,
                state=state.value,
                status=merge_result.status.value,
                conflicts=len(merge_result.conflicting_files),
            )
            return StashPopResult(state=state, merge_result=merge_result, temp_stash=lease, visited_states=visited)

        target_sha = get_stash_sha(self.runner, repo_path, index)
        if target_sha is None:
            return finish(ReconcileState.DONE_ERROR, MergeResult.failed(f"No stash found at index {index}"))

        if not has_uncommitted_changes(self.runner, repo_path):
            visited.append(ReconcileState.CLEAN)
            state, merge_result = self._simple_pop(repo_path, index)
            return finish(state, merge_result)

        visited.append(ReconcileState.DIRTY_TIER1)
        logger.debug("stash_pop_tier1", repo=str(repo_path), index=index)

        patch = stash_show_patch(self.runner, repo_path, index)
        if not patch.success or not patch.stdout.strip():
            return finish(
                ReconcileState.DONE_ERROR,
                MergeResult.failed(f"Failed to get stash patch: {patch.stderr.strip()}"),
            )

        existing_rejects = find_reject_files(repo_path)
        # A dry run first keeps a partially applicable patch from touching the tree
        result = self.runner.run_patch(patch.stdout, cwd=repo_path, fuzz=self.fuzz, dry_run=True)
        new_rejects = find_reject_files(repo_path) - existing_rejects
        rejected = _has_rejections(result, new_rejects)

        if result.success and not rejected:
            result = self.runner.run_patch(patch.stdout, cwd=repo_path, fuzz=self.fuzz)
            new_rejects = find_reject_files(repo_path) - existing_rejects
            rejected = _has_rejections(result, new_rejects)
            if result.success and not rejected:
                stash_drop(self.runner, repo_path, target_sha)
                return finish(ReconcileState.DONE_SUCCESS, MergeResult.succeeded())

        if rejected:
            remove_reject_files(new_rejects)
            visited.append(ReconcileState.DIRTY_TIER2)
            state, merge_result, lease = self._commit_based_merge(repo_path, target_sha)
            return finish(state, merge_result, lease)

        # Patch tool failed without rejecting hunks
        conflicts = get_conflicted_files(self.runner, repo_path)
        if conflicts:
            stash_drop(self.runner, repo_path, target_sha)
            return finish(ReconcileState.DONE_CONFLICT, MergeResult.conflicts(conflicts, MERGE_CONFLICTS_MESSAGE))

        logger.debug("stash_pop_patch_failed", repo=str(repo_path), stderr=result.stderr.strip())
        state, merge_result = self._simple_pop(repo_path, index)
        return finish(state, merge_result)

    def _simple_pop(self, repo_path: Path, index: int) -> tuple[ReconcileState, MergeResult]:
        """Plain ``git stash pop``. On conflicts git keeps the stash in the list."""
        result = stash_pop(self.runner, repo_path, index)
        conflicts = get_conflicted_files(self.runner, repo_path)

        if conflicts:
            return ReconcileState.DONE_CONFLICT, MergeResult.conflicts(conflicts, POP_CONFLICTS_MESSAGE)
        if result.success:
            return ReconcileState.DONE_SUCCESS, MergeResult.succeeded()

        error = result.stderr.strip() or result.stdout.strip()
        if not error:
            error = f"git stash pop failed with exit code {result.exit_code}"
        return ReconcileState.DONE_ERROR, MergeResult.failed(error)

    def _commit_based_merge(
        self,
        repo_path: Path,
        target_sha: str,
    ) -> tuple[ReconcileState, MergeResult, Optional[TempStashLease]]:
        """Produce real conflict markers where local edits and the stash overlap.

        Stashes are addressed by SHA throughout, since pushing the sentinel
        shifts every stash index.
        """
        previous_top = get_stash_sha(self.runner, repo_path, 0)
        pushed = stash_push(self.runner, repo_path, self.temp_stash_message, include_untracked=False)
        sentinel_sha = get_stash_sha(self.runner, repo_path, 0)
        if not pushed.success or sentinel_sha is None or sentinel_sha == previous_top:
            logger.warning("temp_stash_not_created", repo=str(repo_path), stderr=pushed.stderr.strip())
            return ReconcileState.DONE_ERROR, MergeResult.failed(STASH_CONFLICTS_MESSAGE), None

        snapshot: Optional[ReconcileSnapshot] = None
        try:
            snapshot = create_snapshot(self.runner, repo_path, sentinel_sha, target_sha)

            applied = stash_apply(self.runner, repo_path, target_sha)
            if not applied.success:
                return self._rollback(repo_path, snapshot, "apply_target", applied.stderr)

            self.runner.git(["add", "-A"], cwd=repo_path)

            reapplied = stash_apply(self.runner, repo_path, sentinel_sha)
            conflicts = get_conflicted_files(self.runner, repo_path)
            if conflicts:
                stash_drop(self.runner, repo_path, target_sha)
                lease = TempStashLease(self.runner, repo_path, sentinel_sha, self.temp_stash_message)
                logger.info("temp_stash_kept", repo=str(repo_path), sha=sentinel_sha[:7], conflicts=len(conflicts))
                return (
                    ReconcileState.DONE_CONFLICT,
                    MergeResult.conflicts(conflicts, MERGE_CONFLICTS_MESSAGE),
                    lease,
                )
            if reapplied.success:
                stash_drop(self.runner, repo_path, target_sha)
                stash_drop(self.runner, repo_path, sentinel_sha)
                return ReconcileState.DONE_SUCCESS, MergeResult.succeeded(), None

            return self._rollback(repo_path, snapshot, "reapply_local", reapplied.stderr)
        except GitError as e:
            if snapshot is None:
                snapshot = ReconcileSnapshot(head_sha="HEAD", sentinel_sha=sentinel_sha, target_sha=target_sha)
            return self._rollback(repo_path, snapshot, "unexpected", e.stderr or str(e))

    def _rollback(
        self,
        repo_path: Path,
        snapshot: ReconcileSnapshot,
        step: str,
        stderr: str,
    ) -> tuple[ReconcileState, MergeResult, None]:
        restored, message = restore_from_snapshot(self.runner, repo_path, snapshot)
        logger.warning(
            "stash_pop_rolled_back",
            repo=str(repo_path),
            step=step,
            stderr=stderr.strip(),
            restored=restored,
            detail=message,
        )
        error = STASH_CONFLICTS_MESSAGE
        if not restored:
            error = f"{STASH_CONFLICTS_MESSAGE} Local changes remain in stash {snapshot.sentinel_sha[:7]}: {message}"
        return ReconcileState.DONE_ERROR, MergeResult.failed(error), None
