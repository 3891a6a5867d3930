"""Git merge state detection and merge operations.

Contains functions for detecting and inspecting merge state:
- is_merge_in_progress: Check if a merge is currently in progress
- get_merge_head: Get the commit hash being merged (MERGE_HEAD)
- get_merge_source_branch: Get the name of the branch being merged
- get_conflicted_files: Get list of files with unresolved conflicts
- get_conflict_count: Number of files with unresolved conflicts
- has_unresolved_conflicts: Check if there are unresolved merge conflicts
- get_merge_state: Get comprehensive merge state information

And merge-like operations returning MergeResult:
- classify_merge_result: MergeResult from a merge-like command's output
- merge_branch, fast_forward, squash_merge, cherry_pick
- complete_merge, abort_merge
- is_orphaned_conflict_state, reset_orphaned_conflicts
"""

import re
from pathlib import Path
from typing import Optional

import structlog

from hunkwork.git.errors import (
    friendly_error_message,
    is_conflict_output,
    is_fast_forward_impossible,
    is_unrelated_histories_error,
)
from hunkwork.git.exceptions import GitError
from hunkwork.git.models import MergeResult
from hunkwork.git.runner import CommandResult, ProcessRunner
from hunkwork.git.status import get_status, get_unmerged_files, parse_unmerged_paths

logger = structlog.get_logger()


def _git_dir(runner: ProcessRunner, repo_path: Path) -> Optional[Path]:
    try:
        return runner.get_git_dir(repo_path)
    except GitError:
        return None


def is_merge_in_progress(runner: ProcessRunner, repo_path: Path) -> bool:
    """Check if a merge is currently in progress.

    A merge is in progress when MERGE_HEAD exists in the git directory.
    """
    git_dir = _git_dir(runner, repo_path)
    return git_dir is not None and (git_dir / "MERGE_HEAD").exists()


def get_merge_head(runner: ProcessRunner, repo_path: Path) -> Optional[str]:
    """Get the commit hash being merged (MERGE_HEAD).

    Returns:
        The commit hash being merged, or None if no merge in progress.
    """
    git_dir = _git_dir(runner, repo_path)
    if git_dir is None:
        return None
    merge_head_file = git_dir / "MERGE_HEAD"
    if merge_head_file.exists():
        content = merge_head_file.read_text().strip()
        return content.split("\n")[0] if content else None
    return None


def get_conflicted_files(runner: ProcessRunner, repo_path: Path) -> list[str]:
    """Get list of files with unresolved conflicts.

    Combines the unmerged diff query with porcelain status so a path reported
    by either source is listed.

    Returns:
        List of file paths with conflicts, in first-seen order.
    """
    conflicted: list[str] = []
    seen: set[str] = set()
    for path in get_unmerged_files(runner, repo_path) + parse_unmerged_paths(get_status(runner, repo_path)):
        key = path.lower()
        if key not in seen:
            seen.add(key)
            conflicted.append(path)
    return conflicted


def get_conflict_count(runner: ProcessRunner, repo_path: Path) -> int:
    return len(get_conflicted_files(runner, repo_path))


def has_unresolved_conflicts(runner: ProcessRunner, repo_path: Path) -> bool:
    return get_conflict_count(runner, repo_path) > 0


def get_merge_source_branch(runner: ProcessRunner, repo_path: Path) -> Optional[str]:
    """Get the name of the branch being merged.

    Attempts to determine the source branch from:
    1. MERGE_MSG (contains "Merge branch 'branch-name'")
    2. git name-rev of MERGE_HEAD

    Returns:
        The source branch name, or None if cannot be determined.
    """
    git_dir = _git_dir(runner, repo_path)
    if git_dir is None:
        return None

    merge_msg_file = git_dir / "MERGE_MSG"
    if merge_msg_file.exists():
        merge_msg = merge_msg_file.read_text(encoding="utf-8", errors="replace")
        # "Merge branch 'name'" or "Merge remote-tracking branch 'origin/name'"
        match = re.search(r"Merge (?:remote-tracking )?branch '([^']+)'", merge_msg)
        if match:
            return match.group(1)
        match = re.search(r"Merge branch (\S+)", merge_msg)
        if match:
            return match.group(1)

    merge_head = get_merge_head(runner, repo_path)
    if merge_head:
        result = runner.run_git(["name-rev", "--name-only", merge_head], cwd=repo_path)
        name_rev = result.output
        if result.success and name_rev and name_rev != "undefined":
            # Drop ~N / ^N suffixes and the remotes/ prefix
            branch = name_rev.split("~")[0].split("^")[0]
            if branch.startswith("remotes/"):
                branch = branch[len("remotes/"):]
            return branch

    return None


def get_merge_state(runner: ProcessRunner, repo_path: Path) -> dict:
    """Get comprehensive merge state information.

    Returns:
        Dictionary with merge state information:
        - is_merge: True if merge is in progress
        - merge_head: Commit hash being merged (or None)
        - source_branch: Name of branch being merged (or None)
        - has_conflicts: True if there are unresolved conflicts
        - conflicted_files: List of files with conflicts
        - state: 'normal', 'merge', or 'merge-conflict'
    """
    is_merge = is_merge_in_progress(runner, repo_path)
    merge_head = get_merge_head(runner, repo_path) if is_merge else None
    source_branch = get_merge_source_branch(runner, repo_path) if is_merge else None
    conflicted_files = get_conflicted_files(runner, repo_path)
    has_conflicts_flag = bool(conflicted_files)

    if has_conflicts_flag:
        state = "merge-conflict"
    elif is_merge:
        state = "merge"
    else:
        state = "normal"

    return {
        "is_merge": is_merge,
        "merge_head": merge_head,
        "source_branch": source_branch,
        "has_conflicts": has_conflicts_flag,
        "conflicted_files": conflicted_files,
        "state": state,
    }


def _error_text(result: CommandResult) -> str:
    return result.stderr.strip() or result.stdout.strip()


def _head_sha(runner: ProcessRunner, repo_path: Path) -> Optional[str]:
    result = runner.run_git(["rev-parse", "HEAD"], cwd=repo_path)
    return result.output if result.success else None


def classify_merge_result(
    runner: ProcessRunner,
    repo_path: Path,
    result: CommandResult,
    conflict_message: str,
) -> MergeResult:
    """Turn the result of a merge-like command into a MergeResult.

    Conflicted paths left in the index are always reported, even when git
    exited 0.
    """
    conflicts = get_conflicted_files(runner, repo_path)
    if result.success and not conflicts:
        return MergeResult.succeeded(commit_sha=_head_sha(runner, repo_path))

    if not result.success and is_unrelated_histories_error(result.stderr):
        return MergeResult.unrelated_histories("Unrelated histories detected.")

    if conflicts or is_conflict_output(result.stdout, result.stderr):
        logger.info("merge_conflicts", repo=str(repo_path), files=conflicts)
        return MergeResult.conflicts(conflicts, conflict_message)

    return MergeResult.failed(friendly_error_message(_error_text(result), runner.max_error_chars))


def merge_branch(
    runner: ProcessRunner,
    repo_path: Path,
    branch_name: str,
    allow_unrelated_histories: bool = False,
) -> MergeResult:
    """Merge a branch into the current branch, always creating a merge commit.

    Args:
        runner: Process runner used to call git.
        repo_path: Repository working directory.
        branch_name: Branch (or any commit-ish) to merge.
        allow_unrelated_histories: Pass --allow-unrelated-histories.

    Returns:
        MergeResult describing success, conflicts or unrelated histories.
    """
    args = ["merge", "--no-ff", branch_name]
    if allow_unrelated_histories:
        args.append("--allow-unrelated-histories")
    logger.info("merge_branch", repo=str(repo_path), branch=branch_name)
    result = runner.run_git(args, cwd=repo_path)
    return classify_merge_result(runner, repo_path, result, "Merge resulted in conflicts that need to be resolved.")


def fast_forward(runner: ProcessRunner, repo_path: Path, target_branch: str) -> MergeResult:
    """Fast-forward the current branch to target_branch without a merge commit."""
    result = runner.run_git(["merge", "--ff-only", target_branch], cwd=repo_path)
    if result.success:
        return MergeResult.succeeded(commit_sha=_head_sha(runner, repo_path))
    if is_fast_forward_impossible(result.stderr) or is_fast_forward_impossible(result.stdout):
        return MergeResult.failed("Cannot fast-forward: branches have diverged. Use merge instead.")
    return MergeResult.failed(friendly_error_message(_error_text(result), runner.max_error_chars))


def squash_merge(runner: ProcessRunner, repo_path: Path, branch_name: str) -> MergeResult:
    """Squash the changes of branch_name into the index without committing."""
    result = runner.run_git(["merge", "--squash", branch_name], cwd=repo_path)
    return classify_merge_result(runner, repo_path, result, "Squash merge resulted in conflicts.")


def cherry_pick(runner: ProcessRunner, repo_path: Path, commit_sha: str) -> MergeResult:
    result = runner.run_git(["cherry-pick", commit_sha], cwd=repo_path)
    return classify_merge_result(runner, repo_path, result, "Cherry-pick resulted in conflicts.")


def complete_merge(runner: ProcessRunner, repo_path: Path, message: Optional[str] = None) -> MergeResult:
    """Create the merge commit once all conflicts are resolved.

    Args:
        runner: Process runner used to call git.
        repo_path: Repository working directory.
        message: Commit message; git's prepared MERGE_MSG is used when None.
    """
    conflicts = get_conflicted_files(runner, repo_path)
    if conflicts:
        return MergeResult.conflicts(conflicts, "Resolve all conflicts before completing the merge.")

    args = ["commit", "--no-edit"] if message is None else ["commit", "-m", message]
    result = runner.run_git(args, cwd=repo_path)
    if not result.success:
        return MergeResult.failed(friendly_error_message(_error_text(result), runner.max_error_chars))
    return MergeResult.succeeded(commit_sha=_head_sha(runner, repo_path))


def abort_merge(runner: ProcessRunner, repo_path: Path) -> None:
    """Abort an in-progress merge and return to the pre-merge state.

    Raises:
        GitError: If git refuses to abort.
    """
    runner.git(["merge", "--abort"], cwd=repo_path)


def is_orphaned_conflict_state(runner: ProcessRunner, repo_path: Path) -> bool:
    """Check for unmerged index entries without a merge in progress.

    This happens e.g. after a failed checkout or an interrupted stash apply.
    """
    if is_merge_in_progress(runner, repo_path):
        return False
    return get_conflict_count(runner, repo_path) > 0


def reset_orphaned_conflicts(
    runner: ProcessRunner,
    repo_path: Path,
    discard_working_changes: bool = False,
) -> None:
    """Reset the index to HEAD to clear orphaned conflict entries.

    Args:
        runner: Process runner used to call git.
        repo_path: Repository working directory.
        discard_working_changes: Also discard all working-tree changes.

    Raises:
        GitError: If the reset or checkout fails.
    """
    result = runner.run_git(["reset", "HEAD"], cwd=repo_path)
    # "Unstaged changes after reset" is expected output, not a failure
    if not result.success and result.stderr.strip() and "Unstaged changes" not in result.stderr:
        raise GitError(
            f"Git command failed: git reset HEAD\n{result.stderr.strip()}",
            args=["reset", "HEAD"],
            exit_code=result.exit_code,
            stdout=result.stdout,
            stderr=result.stderr,
        )

    if discard_working_changes:
        runner.git(["checkout", "--", "."], cwd=repo_path)
