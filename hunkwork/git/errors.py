"""Classification of git output and user-facing error messages.

Contains:
- is_unrelated_histories_error: Merge refused because histories share no base
- is_conflict_output: Output reports merge conflicts
- is_fast_forward_impossible: A --ff-only operation could not fast-forward
- is_lock_contention: Another git process holds the repository lock
- friendly_error_message: Map raw git output to a short, actionable message
"""

import re

from hunkwork.git.exceptions import DEFAULT_MAX_ERROR_CHARS, truncate_output


def is_unrelated_histories_error(stderr: str) -> bool:
    return "refusing to merge unrelated histories" in stderr


def is_conflict_output(stdout: str, stderr: str) -> bool:
    """Check whether merge-like output reports conflicts.

    Args:
        stdout: Standard output of the git command.
        stderr: Standard error of the git command.

    Returns:
        True if git reported a conflict on either stream.
    """
    return "CONFLICT" in stdout or "CONFLICT" in stderr or "conflict" in stderr.lower()


def is_fast_forward_impossible(stderr: str) -> bool:
    return "Not possible to fast-forward" in stderr or "not possible to fast-forward" in stderr


def is_lock_contention(stderr: str) -> bool:
    return "index.lock" in stderr and "File exists" in stderr


# (pattern, message) pairs, checked in order against lower-cased output
_FRIENDLY_MESSAGES = [
    (r"authentication failed|could not read username|permission denied \(publickey",
     "Authentication failed. Check your credentials or SSH key for this remote."),
    (r"could not resolve host",
     "Could not reach the remote host. Check your network connection and the remote URL."),
    (r"connection refused|connection timed out",
     "The remote refused the connection. Try again later."),
    (r"permission denied",
     "Permission denied. Check file permissions in the repository."),
    (r"is not a valid branch name|not a valid ref name",
     "The branch name is not valid."),
    (r"you have not concluded your merge|merge_head exists",
     "A merge is in progress. Complete or abort it first."),
    (r"you are not currently on a branch",
     "You are in detached HEAD state. Check out a branch first."),
    (r"index\.lock",
     "Another git process is running in this repository. Wait for it to finish and try again."),
    (r"refusing to merge unrelated histories",
     "The branches have unrelated histories."),
    (r"not possible to fast-forward",
     "The branches have diverged and cannot be fast-forwarded."),
]


def friendly_error_message(raw: str, max_chars: int = DEFAULT_MAX_ERROR_CHARS) -> str:
    """Map raw git error text to a short message for display.

    Args:
        raw: Raw stderr (or stdout) of the failed command.
        max_chars: Maximum length when no mapping matches.

    Returns:
        A known friendly message, or the raw text with git's "fatal:" and
        "error:" prefixes removed, truncated to max_chars.
    """
    lowered = raw.lower()
    for pattern, message in _FRIENDLY_MESSAGES:
        if re.search(pattern, lowered):
            return message

    lines = []
    for line in raw.strip().splitlines():
        for prefix in ("fatal: ", "error: "):
            if line.startswith(prefix):
                line = line[len(prefix):]
                break
        lines.append(line)
    return truncate_output("\n".join(lines), max_chars)
