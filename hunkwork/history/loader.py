"""Commit history loading with branch and tag decoration."""

from collections import defaultdict
from typing import Optional

import structlog

from hunkwork.history.labels import (
    add_branch_labels,
    build_branch_labels,
    find_nearest_visible_ancestor,
)
from hunkwork.history.models import BranchLabel, CommitInfo, RemoteBranchRef
from hunkwork.reader.base import BranchTip, RepositoryReader

logger = structlog.get_logger()


def _unique(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))


def _find_branch_tip(branch_name: str, local: list[BranchTip], remote: list[BranchTip]) -> Optional[str]:
    """Resolve a local branch name, or a ``remote/name`` remote branch, to its tip."""
    wanted = branch_name.lower()
    for tip in local:
        if tip.name.lower() == wanted:
            return tip.sha
    for tip in remote:
        if f"{tip.remote_name}/{tip.name}".lower() == wanted:
            return tip.sha
    return None


def load_commit_history(
    reader: RepositoryReader,
    count: int = 500,
    skip: int = 0,
    branch_name: Optional[str] = None,
) -> list[CommitInfo]:
    """Load a window of commit history with branch labels and tags.

    Commits come from every local and remote branch tip (or from branch_name
    alone) in topological and date order. Branch tips outside the window are
    labelled on their nearest loaded ancestor so no branch indicator is lost
    to pagination.

    Args:
        reader: Open repository reader.
        count: Maximum number of commits in the window.
        skip: Number of commits to skip before the window starts.
        branch_name: Only load history reachable from this branch.

    Returns:
        List of CommitInfo, newest first. Empty if branch_name is unknown.
    """
    head_sha = reader.head_sha()
    current_branch = reader.current_branch()
    is_detached = current_branch is None and head_sha is not None

    local = reader.local_branch_tips()
    remote = reader.remote_branch_tips()
    tags = reader.tag_tips()

    local_tips: dict[str, list[str]] = defaultdict(list)
    remote_tips: dict[str, list[RemoteBranchRef]] = defaultdict(list)
    tag_names: dict[str, list[str]] = defaultdict(list)
    branch_tip_shas: dict[str, str] = {}

    for tip in local:
        local_tips[tip.sha].append(tip.name)
        branch_tip_shas[tip.name] = tip.sha
    for tip in remote:
        remote_tips[tip.sha].append(RemoteBranchRef(name=tip.name, remote_name=tip.remote_name))
        branch_tip_shas[f"{tip.remote_name}/{tip.name}"] = tip.sha
    for tip in tags:
        tag_names[tip.sha].append(tip.name)

    if branch_name:
        tip_sha = _find_branch_tip(branch_name, local, remote)
        if tip_sha is None:
            logger.info("history_branch_not_found", branch=branch_name)
            return []
        include = [tip_sha]
    else:
        include = _unique([tip.sha for tip in local] + [tip.sha for tip in remote])
        if is_detached and head_sha not in include:
            include.insert(0, head_sha)

    raw_commits = reader.list_commits(include, skip=skip, count=count)

    def labels_for(sha: str) -> list[BranchLabel]:
        return build_branch_labels(sha, local_tips, remote_tips, current_branch, branch_tip_shas)

    labels_by_sha: dict[str, list[BranchLabel]] = {raw.sha: labels_for(raw.sha) for raw in raw_commits}
    visible = set(labels_by_sha)

    for tip_sha in _unique(list(local_tips) + list(remote_tips)):
        if tip_sha in visible:
            continue
        nearest = find_nearest_visible_ancestor(tip_sha, visible, reader.get_parents)
        if nearest is None:
            continue
        labels_by_sha[nearest] = add_branch_labels(labels_by_sha[nearest], labels_for(tip_sha))
        logger.debug("branch_labels_backfilled", tip=tip_sha[:7], target=nearest[:7])

    if is_detached and head_sha in labels_by_sha:
        head_labels = labels_by_sha[head_sha]
        if head_labels:
            head_labels[0] = head_labels[0].model_copy(update={"is_current": True})
        else:
            head_labels.insert(
                0, BranchLabel(name="HEAD", is_local=True, is_current=True, tip_sha=head_sha)
            )

    logger.debug("history_loaded", commits=len(raw_commits), skip=skip, count=count)
    return [
        CommitInfo(
            sha=raw.sha,
            parent_shas=list(raw.parent_shas),
            message=raw.message,
            author=raw.author,
            author_email=raw.author_email,
            date=raw.date,
            branch_labels=labels_by_sha[raw.sha],
            tag_names=list(tag_names.get(raw.sha, [])),
            is_head=raw.sha == head_sha,
        )
        for raw in raw_commits
    ]
