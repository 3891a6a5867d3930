"""Remote synchronization: fetch, pull, push and clone.

All commands run through ProcessRunner.run_streaming with --progress so the
caller receives (percent, text) updates; setting the cancel event terminates
the child process.

Contains:
- list_remotes: Names of configured remotes
- fetch: Fetch (and prune) a remote
- pull: Pull the current branch, reporting conflicts as a MergeResult
- push: Push the current branch, setting an upstream when it has none
- clone: Clone a repository into a new directory
"""

import threading
from pathlib import Path
from typing import Optional

import structlog

from hunkwork.git.branch import get_branch
from hunkwork.git.exceptions import GitError
from hunkwork.git.merge import classify_merge_result
from hunkwork.git.models import MergeResult
from hunkwork.git.runner import CommandResult, ProcessRunner, ProgressSink

logger = structlog.get_logger()


def _raise_on_failure(result: CommandResult, args: list[str], default_message: str) -> None:
    if result.success:
        return
    raise GitError(
        result.stderr.strip() or default_message,
        args=args,
        exit_code=result.exit_code,
        stdout=result.stdout,
        stderr=result.stderr,
    )


def list_remotes(runner: ProcessRunner, repo_path: Path) -> list[str]:
    output = runner.git(["remote"], cwd=repo_path)
    return [line.strip() for line in output.split("\n") if line.strip()]


def _default_remote(runner: ProcessRunner, repo_path: Path) -> str:
    """Prefer "origin", else the first configured remote."""
    remotes = list_remotes(runner, repo_path)
    if "origin" in remotes or not remotes:
        return "origin"
    return remotes[0]


def _has_upstream(runner: ProcessRunner, repo_path: Path) -> bool:
    result = runner.run_git(
        ["rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}"], cwd=repo_path
    )
    return result.success and bool(result.output)


def fetch(
    runner: ProcessRunner,
    repo_path: Path,
    remote_name: str = "origin",
    on_progress: Optional[ProgressSink] = None,
    cancel_event: Optional[threading.Event] = None,
) -> None:
    """Fetch from a remote, pruning deleted remote branches.

    Raises:
        GitError: If the fetch fails.
        OperationCancelledError: If cancel_event was set.
    """
    args = ["fetch", "--progress", "--prune", remote_name]
    logger.info("fetch_started", repo=str(repo_path), remote=remote_name)
    result = runner.run_streaming(args, cwd=repo_path, on_progress=on_progress, cancel_event=cancel_event)
    _raise_on_failure(result, args, "Fetch failed")


def pull(
    runner: ProcessRunner,
    repo_path: Path,
    on_progress: Optional[ProgressSink] = None,
    cancel_event: Optional[threading.Event] = None,
) -> MergeResult:
    """Pull the current branch from its upstream.

    Returns:
        MergeResult; conflicts left by the pull are listed in the result.

    Raises:
        OperationCancelledError: If cancel_event was set.
    """
    args = ["pull", "--progress"]
    logger.info("pull_started", repo=str(repo_path))
    result = runner.run_streaming(args, cwd=repo_path, on_progress=on_progress, cancel_event=cancel_event)
    return classify_merge_result(runner, repo_path, result, "Pull resulted in conflicts that need to be resolved.")


def push(
    runner: ProcessRunner,
    repo_path: Path,
    remote_name: Optional[str] = None,
    on_progress: Optional[ProgressSink] = None,
    cancel_event: Optional[threading.Event] = None,
) -> None:
    """Push the current branch.

    A branch without an upstream is pushed with ``-u`` to remote_name, or to
    the default remote when remote_name is None.

    Raises:
        GitError: If HEAD is detached or the push fails.
        OperationCancelledError: If cancel_event was set.
    """
    branch = get_branch(runner, repo_path)
    if branch is None:
        raise GitError("Cannot push while in detached HEAD state.")

    if _has_upstream(runner, repo_path):
        args = ["push", "--progress"]
    else:
        target_remote = remote_name or _default_remote(runner, repo_path)
        args = ["push", "--progress", "-u", target_remote, branch]

    logger.info("push_started", repo=str(repo_path), branch=branch)
    result = runner.run_streaming(args, cwd=repo_path, on_progress=on_progress, cancel_event=cancel_event)
    _raise_on_failure(result, args, "Push failed")


def clone(
    runner: ProcessRunner,
    url: str,
    local_path: Path,
    on_progress: Optional[ProgressSink] = None,
    cancel_event: Optional[threading.Event] = None,
) -> Path:
    """Clone url into local_path.

    Returns:
        The path of the new working tree.

    Raises:
        GitError: If the clone fails.
        OperationCancelledError: If cancel_event was set.
    """
    local_path = Path(local_path)
    args = ["clone", "--progress", url, str(local_path)]
    logger.info("clone_started", url=url, path=str(local_path))
    result = runner.run_streaming(
        args, cwd=local_path.parent, on_progress=on_progress, cancel_event=cancel_event
    )
    _raise_on_failure(result, args, "Clone failed")
    return local_path
