"""Git stash primitives.

Contains:
- list_stashes: Read the stash list as StashEntry models
- stash_push: Stash working-tree changes under a message
- stash_staged: Stash only the staged changes
- stash_apply, stash_pop, stash_drop: Apply, pop or drop a stash
- stash_show_patch: Export a stash as a unified diff
- get_stash_sha: Resolve a stash reference to its commit SHA
- resolve_stash_index: Current position of a stash identified by SHA
"""

from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from hunkwork.git.models import StashEntry, parse_stash_branch
from hunkwork.git.runner import CommandResult, ProcessRunner

# Field separator for the stash list format
_SEP = "\x1f"
_LIST_FORMAT = _SEP.join(["%H", "%gs", "%an", "%aI"])

StashRef = Union[int, str]


def _ref(stash: StashRef) -> str:
    """Normalize an index or SHA into an argument for git stash."""
    if isinstance(stash, int):
        return f"stash@{{{stash}}}"
    return stash


def _parse_date(value: str) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def list_stashes(runner: ProcessRunner, repo_path: Path) -> list[StashEntry]:
    """Get the stash list, most recent first.

    Returns:
        List of StashEntry with positional indices starting at 0.
    """
    result = runner.run_git(["stash", "list", "-z", f"--format={_LIST_FORMAT}"], cwd=repo_path)
    if not result.success:
        return []

    entries = []
    for record in result.stdout.split("\x00"):
        record = record.strip("\n")
        if not record:
            continue
        parts = record.split(_SEP)
        if len(parts) < 4:
            continue
        sha, message, author, date = parts[:4]
        entries.append(
            StashEntry(
                index=len(entries),
                sha=sha,
                message=message,
                branch_name=parse_stash_branch(message),
                author=author,
                date=_parse_date(date),
            )
        )
    return entries


def stash_push(
    runner: ProcessRunner,
    repo_path: Path,
    message: str,
    include_untracked: bool = True,
) -> CommandResult:
    """Stash current changes under a message."""
    args = ["stash", "push", "-m", message]
    if include_untracked:
        args.append("--include-untracked")
    return runner.run_git(args, cwd=repo_path)


def stash_staged(runner: ProcessRunner, repo_path: Path, message: str) -> CommandResult:
    """Stash only the staged changes, leaving unstaged edits in place."""
    return runner.run_git(["stash", "push", "--staged", "-m", message], cwd=repo_path)


def stash_apply(runner: ProcessRunner, repo_path: Path, stash: StashRef) -> CommandResult:
    return runner.run_git(["stash", "apply", _ref(stash)], cwd=repo_path)


def stash_pop(runner: ProcessRunner, repo_path: Path, stash: StashRef = 0) -> CommandResult:
    return runner.run_git(["stash", "pop", _ref(stash)], cwd=repo_path)


def stash_drop(runner: ProcessRunner, repo_path: Path, stash: StashRef) -> CommandResult:
    """Drop a stash by index or SHA.

    A SHA is first resolved to its current position, since ``git stash drop``
    only accepts stash reflog references.
    """
    if isinstance(stash, str) and not stash.startswith("stash@"):
        index = resolve_stash_index(runner, repo_path, stash)
        if index is None:
            return CommandResult(
                args=["stash", "drop", stash],
                exit_code=1,
                stdout="",
                stderr=f"error: {stash} is not a stash entry",
            )
        stash = index
    return runner.run_git(["stash", "drop", _ref(stash)], cwd=repo_path)


def stash_show_patch(runner: ProcessRunner, repo_path: Path, stash: StashRef) -> CommandResult:
    """Export a stash as a unified diff (``git stash show -p``)."""
    return runner.run_git(["stash", "show", "-p", "--no-color", _ref(stash)], cwd=repo_path)


def get_stash_sha(runner: ProcessRunner, repo_path: Path, stash: StashRef = 0) -> Optional[str]:
    result = runner.run_git(["rev-parse", "--verify", "-q", _ref(stash)], cwd=repo_path)
    return result.output if result.success and result.output else None


def resolve_stash_index(runner: ProcessRunner, repo_path: Path, sha: str) -> Optional[int]:
    """Find the current position of the stash whose commit is sha.

    Returns:
        The stash index, or None if no stash has that SHA.
    """
    for entry in list_stashes(runner, repo_path):
        if entry.sha == sha or entry.sha.startswith(sha):
            return entry.index
    return None
