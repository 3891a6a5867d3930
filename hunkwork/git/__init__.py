"""Git command layer for hunkwork.

This package wraps the git executable with:
- exceptions: GitError, NotARepositoryError, GitNotFoundError,
              PatchToolNotFoundError, PatchApplyError, OperationCancelledError
- runner: ProcessRunner, CommandResult, parse_progress_line
- command_log: CommandRecord, CommandLog, MemoryCommandLog, LoggingCommandLog
- errors: output classification and friendly_error_message
- models: StashEntry, MergeStatus, MergeResult
- status/branch/diff: read-only queries
- stash: stash primitives used by the reconciler
- merge: merge state detection and merge operations
- remote: fetch, pull, push, clone with progress and cancellation
"""

# Exceptions
from hunkwork.git.exceptions import (
    GitError,
    NotARepositoryError,
    GitNotFoundError,
    PatchToolNotFoundError,
    PatchApplyError,
    OperationCancelledError,
    truncate_output,
)

# Runner
from hunkwork.git.runner import (
    CommandResult,
    ProcessRunner,
    parse_progress_line,
    NEUTRAL_ENV,
)

# Command log
from hunkwork.git.command_log import (
    CommandRecord,
    CommandLog,
    MemoryCommandLog,
    LoggingCommandLog,
)

# Output classification
from hunkwork.git.errors import (
    friendly_error_message,
    is_conflict_output,
    is_fast_forward_impossible,
    is_lock_contention,
    is_unrelated_histories_error,
)

# Models
from hunkwork.git.models import (
    MergeResult,
    MergeStatus,
    StashEntry,
    parse_stash_branch,
)

# Status and branch queries
from hunkwork.git.status import (
    get_status,
    get_staged_files,
    get_unmerged_files,
    has_uncommitted_changes,
    parse_unmerged_paths,
)
from hunkwork.git.branch import (
    get_branch,
    get_head_sha,
    is_head_detached,
)

# Merge state and operations
from hunkwork.git.merge import (
    abort_merge,
    cherry_pick,
    classify_merge_result,
    complete_merge,
    fast_forward,
    get_conflict_count,
    get_conflicted_files,
    get_merge_head,
    get_merge_source_branch,
    get_merge_state,
    has_unresolved_conflicts,
    is_merge_in_progress,
    is_orphaned_conflict_state,
    merge_branch,
    reset_orphaned_conflicts,
    squash_merge,
)

# Stash primitives
from hunkwork.git.stash import (
    get_stash_sha,
    list_stashes,
    resolve_stash_index,
    stash_apply,
    stash_drop,
    stash_pop,
    stash_push,
    stash_show_patch,
    stash_staged,
)

# Remote sync
from hunkwork.git.remote import (
    clone,
    fetch,
    list_remotes,
    pull,
    push,
)


__all__ = [
    # Exceptions
    "GitError",
    "NotARepositoryError",
    "GitNotFoundError",
    "PatchToolNotFoundError",
    "PatchApplyError",
    "OperationCancelledError",
    "truncate_output",
    # Runner
    "CommandResult",
    "ProcessRunner",
    "parse_progress_line",
    "NEUTRAL_ENV",
    # Command log
    "CommandRecord",
    "CommandLog",
    "MemoryCommandLog",
    "LoggingCommandLog",
    # Output classification
    "friendly_error_message",
    "is_conflict_output",
    "is_fast_forward_impossible",
    "is_lock_contention",
    "is_unrelated_histories_error",
    # Models
    "MergeResult",
    "MergeStatus",
    "StashEntry",
    "parse_stash_branch",
    # Status and branch
    "get_status",
    "get_staged_files",
    "get_unmerged_files",
    "has_uncommitted_changes",
    "parse_unmerged_paths",
    "get_branch",
    "get_head_sha",
    "is_head_detached",
    # Merge
    "abort_merge",
    "cherry_pick",
    "classify_merge_result",
    "complete_merge",
    "fast_forward",
    "get_conflict_count",
    "get_conflicted_files",
    "get_merge_head",
    "get_merge_source_branch",
    "get_merge_state",
    "has_unresolved_conflicts",
    "is_merge_in_progress",
    "is_orphaned_conflict_state",
    "merge_branch",
    "reset_orphaned_conflicts",
    "squash_merge",
    # Stash
    "get_stash_sha",
    "list_stashes",
    "resolve_stash_index",
    "stash_apply",
    "stash_drop",
    "stash_pop",
    "stash_push",
    "stash_show_patch",
    "stash_staged",
    # Remote
    "clone",
    "fetch",
    "list_remotes",
    "pull",
    "push",
]
