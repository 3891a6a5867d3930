"""Git diff and content-read utilities.

Contains:
- get_diff: Get the staged or unstaged diff, optionally for a single path
- show_file: Read a blob through a ref- or stage-qualified path
- read_working_file: Read a working-tree file as text
"""

from pathlib import Path
from typing import Optional

from hunkwork.git.runner import ProcessRunner


def get_diff(
    runner: ProcessRunner,
    repo_path: Path,
    path: Optional[str] = None,
    staged: bool = False,
    context_lines: int = 3,
) -> str:
    """Get the diff of the working tree against the index, or index against HEAD.

    Args:
        runner: Process runner used to call git.
        repo_path: Repository working directory.
        path: Restrict the diff to this path.
        staged: Diff the index against HEAD instead of the working tree.
        context_lines: Number of context lines per hunk.

    Returns:
        The raw unified diff text.
    """
    args = ["diff", "--no-color", "--no-ext-diff", f"-U{context_lines}"]
    if staged:
        args.append("--cached")
    if path:
        args.extend(["--", path])
    return runner.git(args, cwd=repo_path)


def show_file(runner: ProcessRunner, repo_path: Path, spec: str) -> Optional[str]:
    """Read file content through ``git show``.

    Args:
        runner: Process runner used to call git.
        repo_path: Repository working directory.
        spec: Object spec such as ``HEAD:path``, ``:2:path`` or ``<sha>:path``.

    Returns:
        The content with its line endings untouched, or None when the
        object does not exist.
    """
    result = runner.run_git(["show", spec], cwd=repo_path, keep_newlines=True)
    if not result.success:
        return None
    return result.stdout


def read_working_file(repo_path: Path, path: str) -> Optional[str]:
    full_path = Path(repo_path) / path
    if not full_path.is_file():
        return None
    # newline="" keeps CRLF endings so patches match the blob byte for byte
    with open(full_path, encoding="utf-8", errors="replace", newline="") as f:
        return f.read()
