"""Data models for hunk-level diffs.

Contains:
- DiffLineType: Unchanged, added or deleted
- DiffLine: One line of a diff with its old/new line numbers
- DiffHunk: A contiguous block of changed lines plus context
- FileDiff: Parsed ``git diff`` output for a single file
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class DiffLineType(str, Enum):
    UNCHANGED = "unchanged"
    ADDED = "added"
    DELETED = "deleted"


@dataclass
class DiffLine:
    """A single diff line. ``text`` excludes the line terminator."""

    type: DiffLineType
    text: str
    old_line_number: Optional[int] = None
    new_line_number: Optional[int] = None
    no_newline: bool = False  # Last line of its side, without a trailing newline

    @property
    def prefix(self) -> str:
        if self.type == DiffLineType.ADDED:
            return "+"
        if self.type == DiffLineType.DELETED:
            return "-"
        return " "


@dataclass
class DiffHunk:
    """A hunk: changed lines plus bounded context.

    ``old_count`` counts unchanged and deleted lines, ``new_count`` counts
    unchanged and added lines.
    """

    index: int
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    lines: list[DiffLine] = field(default_factory=list)

    @property
    def lines_added(self) -> int:
        return sum(1 for line in self.lines if line.type == DiffLineType.ADDED)

    @property
    def lines_deleted(self) -> int:
        return sum(1 for line in self.lines if line.type == DiffLineType.DELETED)

    @property
    def has_context(self) -> bool:
        return any(line.type == DiffLineType.UNCHANGED for line in self.lines)

    @property
    def header(self) -> str:
        return f"@@ -{self.old_start},{self.old_count} +{self.new_start},{self.new_count} @@"


@dataclass
class FileDiff:
    """Diff for a single file."""

    file_path: str
    diff_header_lines: list[str]  # From 'diff --git' up to first @@
    lines: list[DiffLine] = field(default_factory=list)
    is_binary: bool = False
    is_new_file: bool = False
    is_deleted_file: bool = False
    is_renamed: bool = False
    old_path: Optional[str] = None  # For renames
