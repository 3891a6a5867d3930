"""Commit history with branch and tag provenance.

- models: CommitInfo, BranchLabel, RemoteBranchRef
- labels: build_branch_labels, find_nearest_visible_ancestor, add_branch_labels
- loader: load_commit_history
"""

from hunkwork.history.labels import (
    add_branch_labels,
    build_branch_labels,
    find_nearest_visible_ancestor,
)
from hunkwork.history.loader import load_commit_history
from hunkwork.history.models import BranchLabel, CommitInfo, RemoteBranchRef

__all__ = [
    "BranchLabel",
    "CommitInfo",
    "RemoteBranchRef",
    "add_branch_labels",
    "build_branch_labels",
    "find_nearest_visible_ancestor",
    "load_commit_history",
]
