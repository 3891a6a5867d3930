"""Patch builders for single hunks.

Contains:
- generate_hunk_patch: Minimal unified diff that applies one hunk
- reverse_hunk: The hunk that undoes a hunk
- generate_reverse_patch: Minimal unified diff that undoes one hunk
"""

from hunkwork.hunks.models import DiffHunk, DiffLine, DiffLineType

_NO_NEWLINE_MARKER = "\\ No newline at end of file"

_REVERSED_TYPES = {
    DiffLineType.ADDED: DiffLineType.DELETED,
    DiffLineType.DELETED: DiffLineType.ADDED,
    DiffLineType.UNCHANGED: DiffLineType.UNCHANGED,
}


def generate_hunk_patch(path: str, hunk: DiffHunk) -> str:
    """Build a unified diff containing only this hunk.

    Args:
        path: Repository-relative path of the file.
        hunk: The hunk to emit.

    Returns:
        Patch text accepted by ``git apply`` (including ``--cached``).
    """
    patch_lines = [f"--- a/{path}", f"+++ b/{path}", hunk.header]
    for line in hunk.lines:
        patch_lines.append(f"{line.prefix}{line.text}")
        if line.no_newline:
            patch_lines.append(_NO_NEWLINE_MARKER)

    # git apply requires the patch to end with a newline
    return "\n".join(patch_lines) + "\n"


def reverse_hunk(hunk: DiffHunk) -> DiffHunk:
    """Swap added/deleted lines and the old/new ranges of a hunk."""
    lines = [
        DiffLine(
            type=_REVERSED_TYPES[line.type],
            text=line.text,
            old_line_number=line.new_line_number,
            new_line_number=line.old_line_number,
            no_newline=line.no_newline,
        )
        for line in hunk.lines
    ]
    return DiffHunk(
        index=hunk.index,
        old_start=hunk.new_start,
        old_count=hunk.new_count,
        new_start=hunk.old_start,
        new_count=hunk.old_count,
        lines=lines,
    )


def generate_reverse_patch(path: str, hunk: DiffHunk) -> str:
    """Build a unified diff that undoes exactly this hunk."""
    return generate_hunk_patch(path, reverse_hunk(hunk))
