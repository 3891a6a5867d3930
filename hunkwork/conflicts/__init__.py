"""Merge conflict inspection for hunkwork.

This package works with conflicts left by any merge-like operation:
- models: ConflictInfo
- inspector: discovery, three-way content, reopen and resolve
- sidecar: persisted list of paths seen in conflict
- scratch: temporary workspace for external merge tools
"""

# Models
from hunkwork.conflicts.models import ConflictInfo

# Inspector
from hunkwork.conflicts.inspector import (
    get_conflicts,
    get_merge_side_contents,
    get_resolved_merge_files,
    mark_resolved,
    reopen_conflict,
    resolve_with_ours,
    resolve_with_theirs,
)

# Sidecar
from hunkwork.conflicts.sidecar import (
    SIDECAR_FILE_NAME,
    clear_stored_conflict_files,
    get_sidecar_file,
    load_stored_conflict_files,
    read_merge_msg_conflicts,
    save_stored_conflict_files,
)

# Scratch workspace
from hunkwork.conflicts.scratch import (
    MergeScratch,
    apply_merged_result,
    create_merge_scratch,
)

# Conflict count lives with the merge state queries
from hunkwork.git.merge import get_conflict_count

__all__ = [
    # Models
    "ConflictInfo",
    # Inspector
    "get_conflicts",
    "get_conflict_count",
    "get_merge_side_contents",
    "get_resolved_merge_files",
    "mark_resolved",
    "reopen_conflict",
    "resolve_with_ours",
    "resolve_with_theirs",
    # Sidecar
    "SIDECAR_FILE_NAME",
    "clear_stored_conflict_files",
    "get_sidecar_file",
    "load_stored_conflict_files",
    "read_merge_msg_conflicts",
    "save_stored_conflict_files",
    # Scratch workspace
    "MergeScratch",
    "apply_merged_result",
    "create_merge_scratch",
]
