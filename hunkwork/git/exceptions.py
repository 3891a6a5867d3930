"""Git-related exception classes.

Contains all exception classes for git and patch-tool operations:
- GitError: Base exception for git-related errors, keeps raw process output
- NotARepositoryError: Raised when a path is not inside a git repository
- GitNotFoundError: Raised when the git binary cannot be started
- PatchToolNotFoundError: Raised when the patch tool is not installed
- PatchApplyError: Raised when git refuses to apply a generated patch
- OperationCancelledError: Raised when a streaming operation is cancelled
"""

from typing import Optional

DEFAULT_MAX_ERROR_CHARS = 500


def truncate_output(text: str, max_chars: int = DEFAULT_MAX_ERROR_CHARS) -> str:
    """Trim process output to a bounded length for short messages.

    Args:
        text: Raw stdout/stderr text.
        max_chars: Maximum characters to keep.

    Returns:
        The stripped text, truncated with a marker if it was too long.
    """
    text = text.strip()
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "...[truncated]"


class GitError(Exception):
    """Custom exception for git-related errors.

    The raw stdout/stderr of the failing process are kept for diagnostics;
    ``short_message`` is the bounded form suitable for display.
    """

    def __init__(
        self,
        message: str,
        args: Optional[list[str]] = None,
        exit_code: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
        max_chars: int = DEFAULT_MAX_ERROR_CHARS,
    ):
        super().__init__(message)
        self.command_args = list(args or [])
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        self.max_chars = max_chars

    @property
    def short_message(self) -> str:
        detail = self.stderr.strip() or self.stdout.strip()
        if not detail:
            return truncate_output(str(self), self.max_chars)
        return truncate_output(detail, self.max_chars)


class NotARepositoryError(GitError):
    """Raised when a path is not inside a git repository."""

    pass


class GitNotFoundError(GitError):
    """Raised when the git executable cannot be started."""

    pass


class PatchToolNotFoundError(GitError):
    """Raised when the external patch tool is not installed.

    Kept distinct from a patch rejection so callers can tell the user to
    install the tool instead of reporting a conflict.
    """

    pass


class PatchApplyError(GitError):
    """Raised when git refuses to apply a generated patch."""

    pass


class OperationCancelledError(GitError):
    """Raised when a long-running operation was cancelled by the caller."""

    pass
