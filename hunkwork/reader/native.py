"""Native repository reader backed by GitPython's pure-Python object database.

Refs, commits, trees, blobs and the index are parsed in-process through
GitDB, so bulk history loads do not spawn a git process per query.
"""

import heapq
import warnings
from collections import defaultdict
from pathlib import Path
from typing import Optional

import structlog
from git import GitDB, IndexFile, RemoteReference, Repo
from git.exc import BadName, BadObject, InvalidGitRepositoryError, NoSuchPathError

from hunkwork.git.exceptions import NotARepositoryError
from hunkwork.reader.base import BranchTip, ConflictStages, RawCommit, RepositoryReader

logger = structlog.get_logger()

_STAGE_FIELDS = {1: "base", 2: "ours", 3: "theirs"}


class NativeReader(RepositoryReader):
    """Read-only access to a repository without spawning git."""

    def __init__(self, repo_path: Path):
        self.repo_path = Path(repo_path)
        try:
            # GitDB is the in-process object database; GitPython flags it as deprecated
            with warnings.catch_warnings():
                warnings.simplefilter("ignore", DeprecationWarning)
                self._repo = Repo(str(self.repo_path), odbt=GitDB)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise NotARepositoryError(f"Not a git repository: {self.repo_path}") from e

    def close(self) -> None:
        self._repo.close()

    def _commit(self, rev: str):
        try:
            return self._repo.commit(rev)
        except (BadName, BadObject, ValueError):
            return None

    def head_sha(self) -> Optional[str]:
        try:
            return self._repo.head.commit.hexsha
        except ValueError:
            # Unborn branch
            return None

    def current_branch(self) -> Optional[str]:
        if self._repo.head.is_detached:
            return None
        return self._repo.head.reference.name

    def local_branch_tips(self) -> list[BranchTip]:
        tips = []
        for head in self._repo.heads:
            try:
                tips.append(BranchTip(name=head.name, sha=head.commit.hexsha))
            except ValueError:
                continue
        return tips

    def remote_branch_tips(self) -> list[BranchTip]:
        tips = []
        for ref in RemoteReference.iter_items(self._repo):
            if ref.remote_head == "HEAD":
                continue
            try:
                sha = ref.commit.hexsha
            except ValueError:
                continue
            tips.append(BranchTip(name=ref.remote_head, sha=sha, remote_name=ref.remote_name))
        return tips

    def tag_tips(self) -> list[BranchTip]:
        tips = []
        for tag in self._repo.tags:
            try:
                # TagReference.commit peels annotated tags
                tips.append(BranchTip(name=tag.name, sha=tag.commit.hexsha))
            except ValueError:
                # Tag of a tree or blob
                continue
        return tips

    def list_commits(self, include: list[str], skip: int = 0, count: Optional[int] = None) -> list[RawCommit]:
        commits = {}
        child_count: dict[str, int] = defaultdict(int)
        pending = list(include)
        while pending:
            sha = pending.pop()
            if sha in commits:
                continue
            commit = self._commit(sha)
            if commit is None:
                continue
            commits[sha] = commit
            for parent in commit.parents:
                child_count[parent.hexsha] += 1
                pending.append(parent.hexsha)

        # A commit is emitted only after all of its children; newest commit date first
        heap = []
        sequence = 0
        for sha, commit in commits.items():
            if child_count[sha] == 0:
                heapq.heappush(heap, (-commit.committed_date, sequence, sha))
                sequence += 1

        limit = None if count is None else skip + count
        ordered: list[RawCommit] = []
        position = 0
        while heap and (limit is None or position < limit):
            _, _, sha = heapq.heappop(heap)
            commit = commits[sha]
            if position >= skip:
                ordered.append(self._to_raw(commit))
            position += 1
            for parent in commit.parents:
                parent_sha = parent.hexsha
                if parent_sha not in commits:
                    continue
                child_count[parent_sha] -= 1
                if child_count[parent_sha] == 0:
                    heapq.heappush(heap, (-commits[parent_sha].committed_date, sequence, parent_sha))
                    sequence += 1

        logger.debug("commits_listed", repo=str(self.repo_path), walked=len(commits), returned=len(ordered))
        return ordered

    @staticmethod
    def _to_raw(commit) -> RawCommit:
        message = commit.message
        if isinstance(message, bytes):
            message = message.decode("utf-8", errors="replace")
        return RawCommit(
            sha=commit.hexsha,
            parent_shas=tuple(parent.hexsha for parent in commit.parents),
            message=message.rstrip("\n"),
            author=commit.author.name or "",
            author_email=commit.author.email or "",
            date=commit.authored_datetime,
        )

    def get_parents(self, sha: str) -> Optional[list[str]]:
        commit = self._commit(sha)
        if commit is None:
            return None
        return [parent.hexsha for parent in commit.parents]

    def read_blob(self, rev: str, path: str) -> Optional[str]:
        commit = self._commit(rev)
        if commit is None:
            return None
        try:
            obj = commit.tree / path
        except KeyError:
            return None
        if obj.type != "blob":
            return None
        return obj.data_stream.read().decode("utf-8", errors="replace")

    def conflict_entries(self) -> list[ConflictStages]:
        # A fresh IndexFile, since the cached repo.index does not see later writes
        index = IndexFile(self._repo)
        entries = []
        for path, blobs in index.unmerged_blobs().items():
            conflict = ConflictStages(path=str(path))
            for stage, blob in blobs:
                conflict.stages.add(stage)
                field_name = _STAGE_FIELDS.get(stage)
                if field_name:
                    content = blob.data_stream.read().decode("utf-8", errors="replace")
                    setattr(conflict, field_name, content)
            entries.append(conflict)
        return entries
