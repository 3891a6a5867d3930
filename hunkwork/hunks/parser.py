"""Diff parsing and hunk grouping.

Contains functions for turning diffs into DiffLine sequences and hunks:
- compute_diff_lines: Full-file line diff between two versions of a text
- parse_unified_diff: Parse unified diff output from git diff
- parse_hunks: Group a DiffLine sequence into hunks with bounded context
"""

import difflib
import re
from typing import Optional

from hunkwork.hunks.models import DiffHunk, DiffLine, DiffLineType, FileDiff

_HUNK_HEADER_RE = re.compile(r"@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")


def _split_lines(text: str) -> list[str]:
    """Split on '\\n' only, keeping terminators; the last line may lack one."""
    if not text:
        return []
    parts = text.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def _make_line(kind: DiffLineType, raw: str, old_number: Optional[int], new_number: Optional[int]) -> DiffLine:
    no_newline = not raw.endswith("\n")
    return DiffLine(
        type=kind,
        text=raw[:-1] if not no_newline else raw,
        old_line_number=old_number,
        new_line_number=new_number,
        no_newline=no_newline,
    )


def compute_diff_lines(old_text: str, new_text: str) -> list[DiffLine]:
    """Compute a full-file line diff between two versions of a file.

    Lines are compared including their terminators, so a change in the
    final newline shows up as a changed last line.

    Args:
        old_text: Previous content.
        new_text: Current content.

    Returns:
        Every line of both versions as a DiffLine, in file order. Deleted
        lines precede the added lines that replace them.
    """
    old_lines = _split_lines(old_text)
    new_lines = _split_lines(new_text)
    matcher = difflib.SequenceMatcher(a=old_lines, b=new_lines, autojunk=False)

    result: list[DiffLine] = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            for offset in range(i2 - i1):
                result.append(
                    _make_line(DiffLineType.UNCHANGED, old_lines[i1 + offset], i1 + offset + 1, j1 + offset + 1)
                )
            continue
        for i in range(i1, i2):
            result.append(_make_line(DiffLineType.DELETED, old_lines[i], i + 1, None))
        for j in range(j1, j2):
            result.append(_make_line(DiffLineType.ADDED, new_lines[j], None, j + 1))
    return result


def parse_unified_diff(diff_output: str) -> tuple[list[FileDiff], list[str]]:
    """Parse unified diff output from 'git diff'.

    Args:
        diff_output: Raw output from git diff

    Returns:
        Tuple of (list of FileDiff objects, list of warning messages)
    """
    files: list[FileDiff] = []
    warnings: list[str] = []

    if not diff_output.strip():
        return files, warnings

    # Each file starts with 'diff --git a/... b/...'
    file_blocks = re.split(r"(?=^diff --git )", diff_output, flags=re.MULTILINE)

    for block in file_blocks:
        if not block.startswith("diff --git"):
            continue
        file_diff = _parse_file_block(block.split("\n"), warnings)
        if file_diff:
            files.append(file_diff)

    return files, warnings


def _parse_file_block(lines: list[str], warnings: list[str]) -> Optional[FileDiff]:
    """Parse a single file block from the diff.

    Args:
        lines: Lines of the file block
        warnings: List to append warnings to

    Returns:
        FileDiff object or None if the block header is invalid
    """
    match = re.match(r"diff --git a/(.*) b/(.*)", lines[0])
    if not match:
        return None

    old_path = match.group(1)
    file_path = match.group(2)
    is_renamed = old_path != file_path

    header_lines = []
    is_new_file = False
    is_deleted_file = False
    body_start = len(lines)

    for i, line in enumerate(lines):
        if line.startswith("@@"):
            body_start = i
            break
        header_lines.append(line)

        if "GIT binary patch" in line or line.startswith("Binary files"):
            warnings.append(f"Binary file skipped: {file_path}")
            return FileDiff(
                file_path=file_path,
                diff_header_lines=header_lines,
                is_binary=True,
                is_renamed=is_renamed,
                old_path=old_path if is_renamed else None,
            )

        if line.startswith("new file mode"):
            is_new_file = True
        elif line.startswith("deleted file mode"):
            is_deleted_file = True
        elif line.startswith("rename from "):
            old_path = line[len("rename from "):]
            is_renamed = True

    return FileDiff(
        file_path=file_path,
        diff_header_lines=header_lines,
        lines=_parse_body(lines[body_start:], file_path, warnings),
        is_new_file=is_new_file,
        is_deleted_file=is_deleted_file,
        is_renamed=is_renamed,
        old_path=old_path if is_renamed else None,
    )


def _parse_body(lines: list[str], file_path: str, warnings: list[str]) -> list[DiffLine]:
    """Number the body lines of all hunks of one file."""
    result: list[DiffLine] = []
    old_number = new_number = 0
    in_hunk = False

    for line in lines:
        if line.startswith("@@"):
            match = _HUNK_HEADER_RE.match(line)
            if not match:
                warnings.append(f"Malformed hunk header in {file_path}: {line}")
                in_hunk = False
                continue
            old_number = int(match.group(1))
            new_number = int(match.group(3))
            in_hunk = True
            continue
        if not in_hunk:
            continue

        if line.startswith("\\"):
            if result:
                result[-1].no_newline = True
            continue
        if line.startswith("+"):
            result.append(DiffLine(DiffLineType.ADDED, line[1:], None, new_number))
            new_number += 1
        elif line.startswith("-"):
            result.append(DiffLine(DiffLineType.DELETED, line[1:], old_number, None))
            old_number += 1
        elif line.startswith(" "):
            result.append(DiffLine(DiffLineType.UNCHANGED, line[1:], old_number, new_number))
            old_number += 1
            new_number += 1
        # The trailing empty string after the final newline is skipped

    return result


def _is_continuous(previous: DiffLine, current: DiffLine) -> bool:
    """Whether current directly follows previous in the file (no elided lines)."""
    prev_old, prev_new = previous.old_line_number, previous.new_line_number
    cur_old, cur_new = current.old_line_number, current.new_line_number
    if prev_old is not None and cur_old is not None and cur_old != prev_old + 1:
        return False
    if prev_new is not None and cur_new is not None and cur_new != prev_new + 1:
        return False
    return True


def _segments(diff_lines: list[DiffLine]) -> list[tuple[int, int]]:
    """Split into (start, end) index ranges of consecutive file lines."""
    if not diff_lines:
        return []
    segments = []
    start = 0
    for i in range(1, len(diff_lines)):
        if not _is_continuous(diff_lines[i - 1], diff_lines[i]):
            segments.append((start, i))
            start = i
    segments.append((start, len(diff_lines)))
    return segments


def _insertion_point(diff_lines: list[DiffLine], start: int, end: int, attr: str) -> int:
    """Start line for a hunk side with no lines: the line before the insertion point."""
    for line in reversed(diff_lines[:start]):
        number = getattr(line, attr)
        if number is not None:
            return number
    for line in diff_lines[end:]:
        number = getattr(line, attr)
        if number is not None:
            return number - 1
    return 0


def _build_hunk(index: int, diff_lines: list[DiffLine], start: int, end: int) -> DiffHunk:
    lines = diff_lines[start:end]
    old_numbers = [line.old_line_number for line in lines if line.type != DiffLineType.ADDED]
    new_numbers = [line.new_line_number for line in lines if line.type != DiffLineType.DELETED]

    old_count = len(old_numbers)
    new_count = len(new_numbers)
    if old_count:
        old_start = old_numbers[0] if old_numbers[0] is not None else 1
    else:
        old_start = _insertion_point(diff_lines, start, end, "old_line_number")
    if new_count:
        new_start = new_numbers[0] if new_numbers[0] is not None else 1
    else:
        new_start = _insertion_point(diff_lines, start, end, "new_line_number")

    return DiffHunk(
        index=index,
        old_start=old_start,
        old_count=old_count,
        new_start=new_start,
        new_count=new_count,
        lines=list(lines),
    )


def parse_hunks(diff_lines: list[DiffLine], context_lines: int = 3) -> list[DiffHunk]:
    """Group a diff-line sequence into hunks.

    Each run of added/deleted lines keeps up to context_lines unchanged lines
    on either side. Runs separated by at most 2 * context_lines unchanged
    lines share one hunk. A gap in the line numbering (lines elided by an
    upstream diff) always ends a hunk.

    Args:
        diff_lines: Diff lines in file order.
        context_lines: Unchanged lines of context around each change.

    Returns:
        List of DiffHunk with sequential indices; empty when nothing changed.
    """
    context_lines = max(0, context_lines)
    hunks: list[DiffHunk] = []

    for seg_start, seg_end in _segments(diff_lines):
        change_indices = [
            i for i in range(seg_start, seg_end) if diff_lines[i].type != DiffLineType.UNCHANGED
        ]
        if not change_indices:
            continue

        current_start: Optional[int] = None
        current_end = -1
        for i in change_indices:
            range_start = max(seg_start, i - context_lines)
            range_end = min(seg_end - 1, i + context_lines)
            if current_start is not None and range_start <= current_end + 1:
                current_end = max(current_end, range_end)
                continue
            if current_start is not None:
                hunks.append(_build_hunk(len(hunks), diff_lines, current_start, current_end + 1))
            current_start, current_end = range_start, range_end

        hunks.append(_build_hunk(len(hunks), diff_lines, current_start, current_end + 1))

    return hunks
