"""Git status utilities.

Contains:
- get_status: Get git status output in porcelain format
- parse_unmerged_paths: Paths whose porcelain status code contains 'U'
- has_uncommitted_changes: Whether the working tree or index is dirty
- get_staged_files: List of staged file paths
- get_unmerged_files: Paths reported by diff --diff-filter=U
"""

from pathlib import Path

from hunkwork.git.runner import ProcessRunner


def get_status(runner: ProcessRunner, repo_path: Path) -> str:
    """Get git status output in porcelain format.

    Returns:
        The git status output, untrimmed so the first column survives.
    """
    result = runner.run_git(["status", "--porcelain=v1"], cwd=repo_path)
    return result.stdout if result.success else ""


def parse_unmerged_paths(porcelain: str) -> list[str]:
    """Get paths of unmerged entries from porcelain v1 status text.

    Args:
        porcelain: Output of ``git status --porcelain=v1``.

    Returns:
        Paths whose two-letter status code contains 'U'.
    """
    paths = []
    for line in porcelain.splitlines():
        if len(line) < 4:
            continue
        xy = line[:2]
        if "U" in xy:
            path = line[3:].strip()
            if path:
                paths.append(path)
    return paths


def has_uncommitted_changes(runner: ProcessRunner, repo_path: Path) -> bool:
    """Check for any staged, unstaged or untracked change."""
    output = runner.git(["status", "--porcelain=v1"], cwd=repo_path)
    return bool(output.strip())


def get_staged_files(runner: ProcessRunner, repo_path: Path) -> list[str]:
    """Get list of staged file paths.

    Returns:
        List of staged file paths.
    """
    result = runner.run_git(["diff", "--name-only", "--cached"], cwd=repo_path)
    if not result.success or not result.output:
        return []
    return [line.strip() for line in result.output.split("\n") if line.strip()]


def get_unmerged_files(runner: ProcessRunner, repo_path: Path) -> list[str]:
    """Get paths with unresolved conflicts from the diff query.

    Returns:
        List of unmerged paths, or an empty list if the query failed.
    """
    result = runner.run_git(["diff", "--name-only", "--diff-filter=U"], cwd=repo_path)
    if not result.success or not result.output:
        return []
    return [line.strip() for line in result.output.split("\n") if line.strip()]
