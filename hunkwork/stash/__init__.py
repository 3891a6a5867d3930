"""Stash reconciliation for hunkwork.

This package pops stashes into dirty working trees:
- models: ReconcileState, StashPopResult, TempStashLease
- reconciler: StashReconciler, the three-tier pop
- snapshot: restore point taken before the conflict-producing tier
- cleanup: .rej handling and recovery of leftover sentinel stashes
"""

# Models
from hunkwork.stash.models import (
    TEMP_STASH_MESSAGE,
    ReconcileState,
    StashPopResult,
    TempStashLease,
)

# Reconciler
from hunkwork.stash.reconciler import StashReconciler

# Snapshot
from hunkwork.stash.snapshot import (
    ReconcileSnapshot,
    create_snapshot,
    restore_from_snapshot,
)

# Cleanup
from hunkwork.stash.cleanup import (
    cleanup_temp_stash,
    find_reject_files,
    remove_reject_files,
)

__all__ = [
    # Models
    "TEMP_STASH_MESSAGE",
    "ReconcileState",
    "StashPopResult",
    "TempStashLease",
    # Reconciler
    "StashReconciler",
    # Snapshot
    "ReconcileSnapshot",
    "create_snapshot",
    "restore_from_snapshot",
    # Cleanup
    "cleanup_temp_stash",
    "find_reject_files",
    "remove_reject_files",
]
