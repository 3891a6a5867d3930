"""Hunk-level staging, unstaging and reverting through ``git apply``.

Contains:
- load_file_diff_lines: Full-file DiffLines for a path's staged or unstaged changes
- apply_patch: Feed a patch to git apply
- stage_hunk: Apply a working-tree hunk to the index
- unstage_hunk: Remove a staged hunk from the index
- revert_hunk: Discard a working-tree hunk
"""

from pathlib import Path

import structlog

from hunkwork.git.diff import read_working_file, show_file
from hunkwork.git.exceptions import PatchApplyError
from hunkwork.git.runner import ProcessRunner
from hunkwork.hunks.models import DiffHunk, DiffLine
from hunkwork.hunks.parser import compute_diff_lines
from hunkwork.hunks.patch import generate_hunk_patch, generate_reverse_patch

logger = structlog.get_logger()


def load_file_diff_lines(
    runner: ProcessRunner,
    repo_root: Path,
    path: str,
    staged: bool = False,
) -> list[DiffLine]:
    """Diff two versions of a file line by line.

    Args:
        runner: Process runner used to call git.
        repo_root: Repository root.
        path: Repository-relative path.
        staged: Compare HEAD with the index; otherwise compare the index
            with the working tree.

    Returns:
        Full-file DiffLine sequence, ready for parse_hunks.
    """
    if staged:
        old_text = show_file(runner, repo_root, f"HEAD:{path}") or ""
        new_text = show_file(runner, repo_root, f":{path}") or ""
    else:
        old_text = show_file(runner, repo_root, f":{path}") or ""
        new_text = read_working_file(repo_root, path) or ""
    return compute_diff_lines(old_text, new_text)


def apply_patch(
    runner: ProcessRunner,
    repo_root: Path,
    patch_text: str,
    cached: bool = False,
    unidiff_zero: bool = False,
) -> None:
    """Apply patch text with ``git apply``.

    Args:
        runner: Process runner used to call git.
        repo_root: Repository root the patch paths are relative to.
        patch_text: Unified diff content.
        cached: Apply to the index only.
        unidiff_zero: Accept hunks without context lines.

    Raises:
        PatchApplyError: If git rejects the patch.
    """
    args = ["apply", "--whitespace=nowarn"]
    if cached:
        args.append("--cached")
    if unidiff_zero:
        args.append("--unidiff-zero")
    args.append("-")

    result = runner.run_git(args, cwd=repo_root, input=patch_text, keep_newlines=True)
    if not result.success:
        raise PatchApplyError(
            f"Failed to apply patch: {result.stderr.strip()}",
            args=args,
            exit_code=result.exit_code,
            stdout=result.stdout,
            stderr=result.stderr,
            max_chars=runner.max_error_chars,
        )


def stage_hunk(runner: ProcessRunner, repo_root: Path, path: str, hunk: DiffHunk) -> None:
    """Stage one hunk of the unstaged (index vs working tree) diff."""
    logger.info("stage_hunk", path=path, hunk=hunk.index)
    apply_patch(
        runner, repo_root, generate_hunk_patch(path, hunk), cached=True, unidiff_zero=not hunk.has_context
    )


def unstage_hunk(runner: ProcessRunner, repo_root: Path, path: str, hunk: DiffHunk) -> None:
    """Unstage one hunk of the staged (HEAD vs index) diff."""
    logger.info("unstage_hunk", path=path, hunk=hunk.index)
    apply_patch(
        runner, repo_root, generate_reverse_patch(path, hunk), cached=True, unidiff_zero=not hunk.has_context
    )


def revert_hunk(runner: ProcessRunner, repo_root: Path, path: str, hunk: DiffHunk) -> None:
    """Discard one hunk of the unstaged diff from the working tree."""
    logger.info("revert_hunk", path=path, hunk=hunk.index)
    apply_patch(
        runner, repo_root, generate_reverse_patch(path, hunk), cached=False, unidiff_zero=not hunk.has_context
    )
