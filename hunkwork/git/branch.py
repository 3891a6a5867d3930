"""Git branch and commit utilities.

Contains:
- get_branch: Get the current branch name
- get_head_sha: Get the full SHA of HEAD
- is_head_detached: Whether HEAD points directly at a commit
"""

from pathlib import Path
from typing import Optional

from hunkwork.git.runner import ProcessRunner


def get_branch(runner: ProcessRunner, repo_path: Path) -> Optional[str]:
    """Get the current branch name.

    Returns:
        The current branch name, or None in detached HEAD state.
    """
    branch = runner.git(["branch", "--show-current"], cwd=repo_path)
    return branch or None


def get_head_sha(runner: ProcessRunner, repo_path: Path) -> Optional[str]:
    """Get the full SHA of HEAD, or None in a repository without commits."""
    result = runner.run_git(["rev-parse", "--verify", "-q", "HEAD"], cwd=repo_path)
    return result.output if result.success and result.output else None


def is_head_detached(runner: ProcessRunner, repo_path: Path) -> bool:
    result = runner.run_git(["symbolic-ref", "-q", "HEAD"], cwd=repo_path)
    return not result.success