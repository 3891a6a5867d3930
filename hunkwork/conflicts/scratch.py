"""Scratch workspace for external three-way merge tools.

The caller creates a MergeScratch for one conflict, points its merge tool at
the base/local/remote/merged files, then copies the result back with
apply_merged_result. The directory stays on disk until release() is called.
"""

import shutil
import tempfile
from pathlib import Path, PurePosixPath
from typing import Optional

import structlog

from hunkwork.conflicts.models import ConflictInfo
from hunkwork.git.runner import ProcessRunner

logger = structlog.get_logger()

SCRATCH_PREFIX = "hunkwork-merge-"


class MergeScratch:
    """Temporary directory holding the files of one three-way merge."""

    def __init__(self, directory: Path, file_path: str, base: Path, local: Path, remote: Path, merged: Path):
        self.directory = directory
        self.file_path = file_path
        self.base = base
        self.local = local
        self.remote = remote
        self.merged = merged
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def read_merged(self) -> Optional[str]:
        if not self.merged.exists():
            return None
        return self.merged.read_text(encoding="utf-8")

    def release(self) -> None:
        """Delete the scratch directory."""
        if self._released:
            return
        shutil.rmtree(self.directory, ignore_errors=True)
        self._released = True
        logger.debug("merge_scratch_released", directory=str(self.directory))

    def __enter__(self) -> "MergeScratch":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False


def create_merge_scratch(repo_root: Path, conflict: ConflictInfo) -> MergeScratch:
    """Write the three sides and the current merged file into a fresh temp dir.

    The merged file starts as a copy of the working-tree file, or as the
    "ours" content when the working file is missing.

    Args:
        repo_root: Repository root.
        conflict: Conflict to materialize.

    Returns:
        MergeScratch owning the new directory.
    """
    directory = Path(tempfile.mkdtemp(prefix=SCRATCH_PREFIX))
    name = PurePosixPath(conflict.file_path)
    stem, suffix = name.stem, name.suffix

    base = directory / f"{stem}.base{suffix}"
    local = directory / f"{stem}.local{suffix}"
    remote = directory / f"{stem}.remote{suffix}"
    merged = directory / name.name

    base.write_text(conflict.base_content or "", encoding="utf-8")
    local.write_text(conflict.ours_content or "", encoding="utf-8")
    remote.write_text(conflict.theirs_content or "", encoding="utf-8")

    working_file = Path(repo_root) / conflict.file_path
    if working_file.is_file():
        shutil.copyfile(working_file, merged)
    else:
        merged.write_text(conflict.ours_content or "", encoding="utf-8")

    logger.debug("merge_scratch_created", directory=str(directory), path=conflict.file_path)
    return MergeScratch(directory, conflict.file_path, base, local, remote, merged)


def apply_merged_result(runner: ProcessRunner, repo_root: Path, scratch: MergeScratch) -> bool:
    """Copy the merged file back into the working tree and stage it.

    Returns:
        True if the merged file existed and was applied.

    Raises:
        GitError: If staging fails.
    """
    content = scratch.read_merged()
    if content is None:
        return False
    target = Path(repo_root) / scratch.file_path
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")
    runner.git(["add", "--", scratch.file_path], cwd=repo_root)
    logger.info("merge_result_applied", path=scratch.file_path)
    return True
