"""Hunk engine: diff parsing, hunk grouping and per-hunk patches.

- models: DiffLineType, DiffLine, DiffHunk, FileDiff
- parser: compute_diff_lines, parse_unified_diff, parse_hunks
- patch: generate_hunk_patch, generate_reverse_patch, reverse_hunk
- apply: load_file_diff_lines, apply_patch, stage_hunk, unstage_hunk, revert_hunk
"""

from hunkwork.hunks.apply import (
    apply_patch,
    load_file_diff_lines,
    revert_hunk,
    stage_hunk,
    unstage_hunk,
)
from hunkwork.hunks.models import DiffHunk, DiffLine, DiffLineType, FileDiff
from hunkwork.hunks.parser import compute_diff_lines, parse_hunks, parse_unified_diff
from hunkwork.hunks.patch import generate_hunk_patch, generate_reverse_patch, reverse_hunk

__all__ = [
    "DiffHunk",
    "DiffLine",
    "DiffLineType",
    "FileDiff",
    "apply_patch",
    "compute_diff_lines",
    "generate_hunk_patch",
    "generate_reverse_patch",
    "load_file_diff_lines",
    "parse_hunks",
    "parse_unified_diff",
    "revert_hunk",
    "reverse_hunk",
    "stage_hunk",
    "unstage_hunk",
]
