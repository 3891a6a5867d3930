"""Persisted list of paths seen in conflict during the current merge.

Contains:
- get_sidecar_file: Path of the sidecar file inside the git directory
- load_stored_conflict_files: Read the stored paths
- save_stored_conflict_files: Write paths, deduplicated and sorted
- clear_stored_conflict_files: Delete the sidecar file
- read_merge_msg_conflicts: Paths listed in the Conflicts: section of MERGE_MSG
"""

from pathlib import Path
from typing import Iterable

import structlog

from hunkwork.git.runner import ProcessRunner

logger = structlog.get_logger()

SIDECAR_FILE_NAME = "hunkwork-merge-conflicts.txt"


def get_sidecar_file(runner: ProcessRunner, repo_path: Path) -> Path:
    """Return path to the sidecar file.

    Args:
        runner: Process runner used to locate the git directory.
        repo_path: Repository working directory.

    Returns:
        Path to hunkwork-merge-conflicts.txt in the git directory.
    """
    return runner.get_git_dir(repo_path) / SIDECAR_FILE_NAME


def _unique(paths: Iterable[str]) -> list[str]:
    result = []
    seen = set()
    for path in paths:
        path = path.strip()
        if not path or path.lower() in seen:
            continue
        seen.add(path.lower())
        result.append(path)
    return result


def load_stored_conflict_files(runner: ProcessRunner, repo_path: Path) -> list[str]:
    """Load the stored conflict paths.

    Returns:
        Stored paths, or an empty list when there is no sidecar file.
    """
    sidecar = get_sidecar_file(runner, repo_path)
    if not sidecar.exists():
        return []
    try:
        return _unique(sidecar.read_text(encoding="utf-8").splitlines())
    except OSError as e:
        logger.warning("conflict_sidecar_unreadable", path=str(sidecar), error=str(e))
        return []


def save_stored_conflict_files(runner: ProcessRunner, repo_path: Path, files: Iterable[str]) -> None:
    """Save conflict paths, deduplicated and sorted case-insensitively."""
    sidecar = get_sidecar_file(runner, repo_path)
    lines = sorted(_unique(files), key=str.lower)
    sidecar.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")


def clear_stored_conflict_files(runner: ProcessRunner, repo_path: Path) -> None:
    sidecar = get_sidecar_file(runner, repo_path)
    if sidecar.exists():
        sidecar.unlink()


def read_merge_msg_conflicts(runner: ProcessRunner, repo_path: Path) -> list[str]:
    """Read the paths listed under "Conflicts:" in MERGE_MSG.

    Handles both the plain and the commented ("# Conflicts:" / "#\\tpath")
    forms git has written over time. The section ends at the first empty line.

    Returns:
        List of paths, or an empty list when there is no merge message.
    """
    merge_msg = runner.get_git_dir(repo_path) / "MERGE_MSG"
    if not merge_msg.exists():
        return []

    results = []
    in_conflicts = False
    for line in merge_msg.read_text(encoding="utf-8", errors="replace").splitlines():
        text = line.lstrip("#").strip()
        if not in_conflicts:
            if text.lower().startswith("conflicts:"):
                in_conflicts = True
            continue
        if not text:
            break
        results.append(text)
    return results
