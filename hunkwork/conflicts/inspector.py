"""Conflict discovery and three-way content reconstruction.

Contains:
- get_conflicts: Conflicted paths with base/ours/theirs and merged content
- get_resolved_merge_files: Formerly conflicted paths that are now staged
- get_merge_side_contents: HEAD, MERGE_HEAD and merge-base content of a path
- reopen_conflict: Turn a resolved file back into an unresolved conflict
- resolve_with_ours, resolve_with_theirs, mark_resolved: Resolve and stage
"""

from pathlib import Path
from typing import Optional

import structlog

from hunkwork.conflicts.models import ConflictInfo
from hunkwork.conflicts.sidecar import load_stored_conflict_files, read_merge_msg_conflicts
from hunkwork.git.diff import read_working_file, show_file
from hunkwork.git.merge import is_merge_in_progress
from hunkwork.git.runner import ProcessRunner
from hunkwork.git.status import get_staged_files, get_status, get_unmerged_files, parse_unmerged_paths
from hunkwork.reader.base import ConflictStages, RepositoryReader
from hunkwork.reader.native import NativeReader

logger = structlog.get_logger()

_NULL_SHA = "0" * 40
_DEFAULT_MODE = "100644"
_STAGE_SIDES = ((1, "base"), (2, "ours"), (3, "theirs"))


def _dedupe(paths: list[str]) -> list[str]:
    result = []
    seen = set()
    for path in paths:
        path = path.strip()
        if path and path.lower() not in seen:
            seen.add(path.lower())
            result.append(path)
    return result


def _index_conflicts(repo_path: Path, reader: Optional[RepositoryReader]) -> list[ConflictStages]:
    if reader is not None:
        return reader.conflict_entries()
    with NativeReader(repo_path) as native:
        return native.conflict_entries()


def get_merge_side_contents(
    runner: ProcessRunner,
    repo_path: Path,
    file_path: str,
) -> tuple[Optional[str], Optional[str], Optional[str]]:
    """Read a path at HEAD, MERGE_HEAD and their merge base.

    Returns:
        Tuple of (base, ours, theirs); a side is None when it does not exist.
    """
    ours = show_file(runner, repo_path, f"HEAD:{file_path}")
    theirs = show_file(runner, repo_path, f"MERGE_HEAD:{file_path}")

    base = None
    merge_base = runner.run_git(["merge-base", "HEAD", "MERGE_HEAD"], cwd=repo_path)
    if merge_base.success and merge_base.output:
        base = show_file(runner, repo_path, f"{merge_base.output}:{file_path}")
    return base, ours, theirs


def get_conflicts(
    runner: ProcessRunner,
    repo_path: Path,
    reader: Optional[RepositoryReader] = None,
) -> list[ConflictInfo]:
    """Get every unresolved conflict with its three-way content.

    Paths are the union of the unmerged diff query, porcelain status entries
    whose code contains U, and the index's conflict stages, deduplicated
    case-insensitively in first-seen order.

    Args:
        runner: Process runner used to call git.
        repo_path: Repository root.
        reader: Reader for index conflict stages; a NativeReader is opened
            when omitted.

    Returns:
        List of ConflictInfo, one per conflicted path.
    """
    repo_path = Path(repo_path)
    index_entries = _index_conflicts(repo_path, reader)
    stages_by_path = {entry.path.lower(): entry for entry in index_entries}

    paths = _dedupe(
        get_unmerged_files(runner, repo_path)
        + parse_unmerged_paths(get_status(runner, repo_path))
        + [entry.path for entry in index_entries]
    )

    conflicts = []
    for path in paths:
        stages = stages_by_path.get(path.lower())
        conflict = ConflictInfo(file_path=path)

        # Index blobs first, then a stage-qualified read
        for stage, side in _STAGE_SIDES:
            content = getattr(stages, side) if stages is not None else None
            if content is None:
                content = show_file(runner, repo_path, f":{stage}:{path}")
            setattr(conflict, f"{side}_content", content)

        conflict.merged_content = read_working_file(repo_path, path)

        if not conflict.has_content:
            base, ours, theirs = get_merge_side_contents(runner, repo_path, path)
            conflict.base_content = conflict.base_content or base
            conflict.ours_content = conflict.ours_content or ours
            conflict.theirs_content = conflict.theirs_content or theirs
            logger.debug("conflict_sides_from_refs", path=path)

        conflicts.append(conflict)

    logger.debug("conflicts_found", repo=str(repo_path), count=len(conflicts))
    return conflicts


def get_resolved_merge_files(runner: ProcessRunner, repo_path: Path) -> list[ConflictInfo]:
    """Get files that were conflicted during this merge and are now staged.

    Candidates are the Conflicts: section of MERGE_MSG, the stored conflict
    list and the currently staged paths, minus anything still unmerged.
    Once the merge is committed or aborted nothing counts as resolved.

    Returns:
        List of ConflictInfo with is_resolved set, sides read from
        HEAD, MERGE_HEAD and their merge base.
    """
    repo_path = Path(repo_path)
    if not is_merge_in_progress(runner, repo_path):
        return []

    unresolved = {path.lower() for path in get_unmerged_files(runner, repo_path)}
    candidates = _dedupe(
        read_merge_msg_conflicts(runner, repo_path)
        + load_stored_conflict_files(runner, repo_path)
        + get_staged_files(runner, repo_path)
    )

    resolved = []
    for path in candidates:
        if path.lower() in unresolved:
            continue
        base, ours, theirs = get_merge_side_contents(runner, repo_path, path)
        resolved.append(
            ConflictInfo(
                file_path=path,
                base_content=base,
                ours_content=ours,
                theirs_content=theirs,
                merged_content=read_working_file(repo_path, path),
                is_resolved=True,
            )
        )
    return resolved


def _index_mode(runner: ProcessRunner, repo_path: Path, file_path: str) -> str:
    """File mode of a path's current index entry, 100644 when it has none."""
    output = runner.git(["ls-files", "-s", "--", file_path], cwd=repo_path)
    for line in output.splitlines():
        mode = line.split(" ", 1)[0]
        if mode.isdigit():
            return mode
    return _DEFAULT_MODE


def reopen_conflict(
    runner: ProcessRunner,
    repo_path: Path,
    file_path: str,
    base_content: Optional[str],
    ours_content: Optional[str],
    theirs_content: Optional[str],
) -> None:
    """Put a resolved file back into the conflicted state.

    Writes the sides as blobs, replaces the path's index entry with the
    stages that exist (a None side is left out, as in an add/add conflict)
    and checks the file out again with conflict markers. The file mode of
    the current index entry is kept.

    Raises:
        GitError: If any git step fails.
    """
    mode = _index_mode(runner, repo_path, file_path)

    # A mode-0 entry removes the stage-0 entry before the higher stages go in
    index_info = f"0 {_NULL_SHA}\t{file_path}\n"
    for stage, content in enumerate((base_content, ours_content, theirs_content), start=1):
        if content is None:
            continue
        sha = runner.git(["hash-object", "-w", "--stdin"], cwd=repo_path, input=content)
        index_info += f"{mode} {sha} {stage}\t{file_path}\n"

    runner.git(["update-index", "--index-info"], cwd=repo_path, input=index_info)
    runner.git(["checkout", "--conflict=merge", "--", file_path], cwd=repo_path)
    logger.info("conflict_reopened", path=file_path, mode=mode)


def resolve_with_ours(runner: ProcessRunner, repo_path: Path, file_path: str) -> None:
    """Resolve a conflict with the current branch's version and stage it."""
    runner.git(["checkout", "--ours", "--", file_path], cwd=repo_path)
    mark_resolved(runner, repo_path, file_path)


def resolve_with_theirs(runner: ProcessRunner, repo_path: Path, file_path: str) -> None:
    """Resolve a conflict with the incoming version and stage it."""
    runner.git(["checkout", "--theirs", "--", file_path], cwd=repo_path)
    mark_resolved(runner, repo_path, file_path)


def mark_resolved(runner: ProcessRunner, repo_path: Path, file_path: str) -> None:
    runner.git(["add", "--", file_path], cwd=repo_path)
