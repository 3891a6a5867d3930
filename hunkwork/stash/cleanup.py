"""Cleanup utilities for stash reconciliation.

Contains:
- find_reject_files: Find .rej files left by the patch tool
- remove_reject_files: Delete a set of .rej files
- cleanup_temp_stash: Drop sentinel stashes found by message
"""

from pathlib import Path

import structlog

from hunkwork.git.runner import ProcessRunner
from hunkwork.git.stash import list_stashes, stash_drop
from hunkwork.stash.models import TEMP_STASH_MESSAGE

logger = structlog.get_logger()


def find_reject_files(repo_root: Path) -> set[Path]:
    """Find .rej files in the working tree, skipping the .git directory.

    Args:
        repo_root: Repository root path

    Returns:
        Set of absolute paths of .rej files
    """
    repo_root = Path(repo_root)
    found = set()
    for path in repo_root.rglob("*.rej"):
        if ".git" in path.relative_to(repo_root).parts:
            continue
        found.add(path)
    return found


def remove_reject_files(paths: set[Path]) -> None:
    """Delete .rej files created by a patch run.

    Args:
        paths: Files to remove; files already gone are ignored
    """
    for path in paths:
        try:
            path.unlink()
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.warning("reject_file_not_removed", path=str(path), error=str(e))


def cleanup_temp_stash(
    runner: ProcessRunner,
    repo_path: Path,
    message: str = TEMP_STASH_MESSAGE,
) -> int:
    """Drop every stash whose message carries the sentinel.

    For recovery when no TempStashLease survives (e.g. after a restart).
    Never called automatically.

    Returns:
        Number of stashes dropped.
    """
    matches = [entry for entry in list_stashes(runner, repo_path) if message in entry.message]
    dropped = 0
    # Highest index first so the remaining indices stay valid
    for entry in sorted(matches, key=lambda e: e.index, reverse=True):
        result = stash_drop(runner, repo_path, entry.index)
        if result.success:
            dropped += 1
        else:
            logger.warning("temp_stash_drop_failed", index=entry.index, stderr=result.stderr.strip())
    if dropped:
        logger.info("temp_stash_cleaned", repo=str(repo_path), dropped=dropped)
    return dropped
