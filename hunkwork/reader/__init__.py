"""Read-only repository backends.

- base: RepositoryReader interface, BranchTip, RawCommit, ConflictStages
- native: NativeReader (GitPython over the pure-Python GitDB object database)
- cli: CliReader (git executable)
"""

from pathlib import Path

from hunkwork.git.runner import ProcessRunner
from hunkwork.reader.base import BranchTip, ConflictStages, RawCommit, RepositoryReader
from hunkwork.reader.cli import CliReader
from hunkwork.reader.native import NativeReader


def open_reader(repo_path: Path, runner: ProcessRunner = None, native: bool = True) -> RepositoryReader:
    """Open a reader for repo_path.

    Args:
        repo_path: Repository working directory.
        runner: Runner for the CLI backend.
        native: Prefer the native backend.

    Returns:
        A NativeReader, or a CliReader when native is False.
    """
    if native:
        return NativeReader(repo_path)
    return CliReader(runner or ProcessRunner(), repo_path)


__all__ = [
    "BranchTip",
    "CliReader",
    "ConflictStages",
    "NativeReader",
    "RawCommit",
    "RepositoryReader",
    "open_reader",
]
