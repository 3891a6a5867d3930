"""Branch label construction for commit history.

Contains:
- build_branch_labels: Labels for the branch tips at one commit
- find_nearest_visible_ancestor: BFS from a tip to the closest loaded commit
- add_branch_labels: Merge labels into an existing list without duplicates
"""

from collections import deque
from typing import Callable, Optional

from hunkwork.history.models import BranchLabel, RemoteBranchRef


def build_branch_labels(
    sha: str,
    local_tips: dict[str, list[str]],
    remote_tips: dict[str, list[RemoteBranchRef]],
    current_branch_name: Optional[str],
    branch_tip_shas: Optional[dict[str, str]] = None,
) -> list[BranchLabel]:
    """Build the branch labels for the branch tips located at sha.

    A local branch and a remote branch with the same name (compared
    case-insensitively) become one label with both flags set. Local labels
    come first in encounter order, then remote-only labels; the current
    branch's label is moved to the front by a stable sort.

    Args:
        sha: Commit the labels are for.
        local_tips: Tip SHA -> local branch names.
        remote_tips: Tip SHA -> remote branches.
        current_branch_name: Checked-out branch, None when HEAD is detached.
        branch_tip_shas: Branch name (``remote/name`` for remotes) -> tip SHA,
            recorded on each label.

    Returns:
        List of BranchLabel, N + M - k long for N local and M remote tips
        sharing k names.
    """
    branch_tip_shas = branch_tip_shas or {}
    local_names = local_tips.get(sha, [])
    remotes = remote_tips.get(sha, [])
    current = current_branch_name.lower() if current_branch_name else None

    labels: list[BranchLabel] = []
    processed: set[str] = set()

    for local_name in local_names:
        matching_remote = next(
            (remote for remote in remotes if remote.name.lower() == local_name.lower()), None
        )
        labels.append(
            BranchLabel(
                name=local_name,
                is_local=True,
                is_remote=matching_remote is not None,
                remote_name=matching_remote.remote_name if matching_remote else None,
                is_current=local_name.lower() == current,
                tip_sha=branch_tip_shas.get(local_name),
            )
        )
        processed.add(local_name.lower())

    for remote in remotes:
        if remote.name.lower() in processed:
            continue
        labels.append(
            BranchLabel(
                name=remote.name,
                is_local=False,
                is_remote=True,
                remote_name=remote.remote_name,
                tip_sha=branch_tip_shas.get(f"{remote.remote_name}/{remote.name}"),
            )
        )

    # sorted() is stable, so non-current labels keep encounter order
    return sorted(labels, key=lambda label: not label.is_current)


def find_nearest_visible_ancestor(
    tip_sha: str,
    visible_shas: set[str],
    get_parents: Callable[[str], Optional[list[str]]],
) -> Optional[str]:
    """Find the closest commit in visible_shas reachable from tip_sha.

    Breadth-first over parent edges, starting with tip_sha itself.

    Args:
        tip_sha: Commit to start from.
        visible_shas: SHAs of the loaded history window.
        get_parents: Parent lookup; None marks an unknown commit, which ends
            that path of the search.

    Returns:
        The first visited SHA in visible_shas, or None.
    """
    queue = deque([tip_sha])
    visited: set[str] = set()
    while queue:
        current = queue.popleft()
        if current in visited:
            continue
        visited.add(current)

        if current in visible_shas:
            return current

        parents = get_parents(current)
        if not parents:
            continue
        for parent in parents:
            if parent not in visited:
                queue.append(parent)
    return None


def add_branch_labels(existing: list[BranchLabel], labels: list[BranchLabel]) -> list[BranchLabel]:
    """Merge labels into existing, skipping any whose full name is already present.

    Returns:
        A new list; existing is not modified.
    """
    merged = list(existing)
    seen = {label.full_name.lower() for label in merged}
    for label in labels:
        key = label.full_name.lower()
        if key not in seen:
            seen.add(key)
            merged.append(label)
    return merged
