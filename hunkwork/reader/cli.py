"""Repository reader backed by the git executable.

Used where the native reader is unavailable or cannot express a query; every
call spawns a git process through the ProcessRunner.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from hunkwork.git.diff import show_file
from hunkwork.git.runner import ProcessRunner
from hunkwork.reader.base import BranchTip, ConflictStages, RawCommit, RepositoryReader

_SEP = "\x1f"
_LOG_FORMAT = _SEP.join(["%H", "%P", "%an", "%ae", "%aI", "%B"])
_STAGE_FIELDS = {1: "base", 2: "ours", 3: "theirs"}


def _parse_date(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return datetime.fromtimestamp(0, tz=timezone.utc)


class CliReader(RepositoryReader):
    """Read-only repository access through git subcommands."""

    def __init__(self, runner: ProcessRunner, repo_path: Path):
        self.runner = runner
        self.repo_path = Path(repo_path)
        self.runner.get_repo_root(self.repo_path)

    def _git(self, args: list[str]):
        return self.runner.run_git(args, cwd=self.repo_path)

    def head_sha(self) -> Optional[str]:
        result = self._git(["rev-parse", "--verify", "-q", "HEAD"])
        return result.output if result.success and result.output else None

    def current_branch(self) -> Optional[str]:
        result = self._git(["symbolic-ref", "-q", "--short", "HEAD"])
        return result.output if result.success and result.output else None

    def _for_each_ref(self, fmt: str, prefix: str) -> list[list[str]]:
        result = self._git(["for-each-ref", f"--format={fmt}", prefix])
        if not result.success:
            return []
        return [line.split("\t") for line in result.stdout.splitlines() if line.strip()]

    def local_branch_tips(self) -> list[BranchTip]:
        tips = []
        for sha, refname in self._for_each_ref("%(objectname)\t%(refname)", "refs/heads"):
            tips.append(BranchTip(name=refname[len("refs/heads/"):], sha=sha))
        return tips

    def remote_branch_tips(self) -> list[BranchTip]:
        tips = []
        for sha, refname, symref in self._for_each_ref(
            "%(objectname)\t%(refname)\t%(symref)", "refs/remotes"
        ):
            short = refname[len("refs/remotes/"):]
            remote_name, _, name = short.partition("/")
            if symref or not name or name == "HEAD":
                continue
            tips.append(BranchTip(name=name, sha=sha, remote_name=remote_name))
        return tips

    def tag_tips(self) -> list[BranchTip]:
        tips = []
        for sha, peeled, objecttype, refname in self._for_each_ref(
            "%(objectname)\t%(*objectname)\t%(*objecttype)\t%(refname)", "refs/tags"
        ):
            # Annotated tags report the peeled object; skip tags of non-commits
            if peeled and objecttype != "commit":
                continue
            tips.append(BranchTip(name=refname[len("refs/tags/"):], sha=peeled or sha))
        return tips

    def list_commits(self, include: list[str], skip: int = 0, count: Optional[int] = None) -> list[RawCommit]:
        if not include:
            return []
        args = ["log", "--date-order", "-z", f"--format={_LOG_FORMAT}"]
        if skip:
            args.append(f"--skip={skip}")
        if count is not None:
            args.append(f"--max-count={count}")
        args.extend(include)
        args.append("--")
        result = self._git(args)
        if not result.success:
            return []

        commits = []
        for record in result.stdout.split("\x00"):
            record = record.lstrip("\n")
            if not record:
                continue
            parts = record.split(_SEP, 5)
            if len(parts) < 6:
                continue
            sha, parents, author, email, date, message = parts
            commits.append(
                RawCommit(
                    sha=sha,
                    parent_shas=tuple(parents.split()),
                    message=message.rstrip("\n"),
                    author=author,
                    author_email=email,
                    date=_parse_date(date),
                )
            )
        return commits

    def get_parents(self, sha: str) -> Optional[list[str]]:
        result = self._git(["rev-list", "--parents", "-n", "1", sha, "--"])
        if not result.success or not result.output:
            return None
        return result.output.split()[1:]

    def read_blob(self, rev: str, path: str) -> Optional[str]:
        return show_file(self.runner, self.repo_path, f"{rev}:{path}")

    def conflict_entries(self) -> list[ConflictStages]:
        result = self._git(["ls-files", "-u", "-z"])
        if not result.success:
            return []

        by_path: dict[str, ConflictStages] = {}
        for record in result.stdout.split("\x00"):
            if not record.strip():
                continue
            meta, _, path = record.partition("\t")
            fields = meta.split()
            if len(fields) < 3:
                continue
            blob_sha, stage = fields[1], int(fields[2])
            conflict = by_path.setdefault(path, ConflictStages(path=path))
            conflict.stages.add(stage)
            field_name = _STAGE_FIELDS.get(stage)
            if field_name:
                blob = self._git(["cat-file", "blob", blob_sha])
                setattr(conflict, field_name, blob.stdout if blob.success else None)
        return list(by_path.values())
