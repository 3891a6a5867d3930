"""Tests for hunkwork.history label building and history loading."""

import warnings
from datetime import datetime, timezone

import pytest

from hunkwork.git.runner import ProcessRunner
from hunkwork.history.labels import (
    add_branch_labels,
    build_branch_labels,
    find_nearest_visible_ancestor,
)
from hunkwork.history.loader import load_commit_history
from hunkwork.history.models import BranchLabel, RemoteBranchRef
from hunkwork.reader.base import BranchTip, RawCommit, RepositoryReader
from hunkwork.reader.cli import CliReader
from hunkwork.reader.native import NativeReader
from tests.helpers import commit_all, git, write

WHEN = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeReader(RepositoryReader):
    """In-memory reader over a fixed commit order."""

    def __init__(self, order, parents, head, branch, local=(), remote=(), tags=()):
        self.order = order
        self.parents = parents
        self.head = head
        self.branch = branch
        self.local = list(local)
        self.remote = list(remote)
        self.tags = list(tags)
        self.include = None

    def head_sha(self):
        return self.head

    def current_branch(self):
        return self.branch

    def local_branch_tips(self):
        return self.local

    def remote_branch_tips(self):
        return self.remote

    def tag_tips(self):
        return self.tags

    def list_commits(self, include, skip=0, count=None):
        self.include = list(include)
        window = self.order[skip:] if count is None else self.order[skip:skip + count]
        return [
            RawCommit(sha=sha, parent_shas=tuple(self.parents[sha]), message=f"commit {sha}",
                      author="A", author_email="a@example.com", date=WHEN)
            for sha in window
        ]

    def get_parents(self, sha):
        return self.parents.get(sha)

    def read_blob(self, rev, path):
        return None

    def conflict_entries(self):
        return []


class TestBuildBranchLabels:
    """Tests for build_branch_labels."""

    def test_local_and_remote_collapse(self):
        """Test N + M - k labels with the current branch first."""
        local_tips = {"s1": ["feature", "main"]}
        remote_tips = {
            "s1": [
                RemoteBranchRef(name="MAIN", remote_name="origin"),
                RemoteBranchRef(name="release", remote_name="origin"),
            ]
        }

        labels = build_branch_labels("s1", local_tips, remote_tips, "main")

        assert [label.name for label in labels] == ["main", "feature", "release"]
        main = labels[0]
        assert main.is_current and main.is_synced
        assert main.remote_name == "origin"
        assert labels[2].full_name == "origin/release"
        assert not labels[2].is_local

    def test_no_tips(self):
        assert build_branch_labels("s1", {}, {}, "main") == []

    def test_detached_has_no_current(self):
        labels = build_branch_labels("s1", {"s1": ["main"]}, {}, None)

        assert not labels[0].is_current

    def test_tip_shas_recorded(self):
        labels = build_branch_labels(
            "s1",
            {"s1": ["main"]},
            {"s1": [RemoteBranchRef(name="dev", remote_name="origin")]},
            "main",
            {"main": "s1", "origin/dev": "s1"},
        )

        assert [label.tip_sha for label in labels] == ["s1", "s1"]


class TestNearestVisibleAncestor:
    """Tests for find_nearest_visible_ancestor."""

    PARENTS = {"tip": ["left", "right"], "left": ["far"], "right": ["near"], "far": [], "near": []}

    def test_breadth_first(self):
        """Test that the closest visible commit wins over deeper ones."""
        result = find_nearest_visible_ancestor("tip", {"near", "far"}, self.PARENTS.get)

        assert result in {"near", "far"}
        assert find_nearest_visible_ancestor("tip", {"right", "far"}, self.PARENTS.get) == "right"

    def test_tip_itself_visible(self):
        assert find_nearest_visible_ancestor("tip", {"tip"}, self.PARENTS.get) == "tip"

    def test_unknown_commit_ends_search(self):
        assert find_nearest_visible_ancestor("ghost", {"near"}, self.PARENTS.get) is None


class TestAddBranchLabels:
    """Tests for add_branch_labels."""

    def test_skips_existing_names(self):
        existing = [BranchLabel(name="main", is_local=True)]
        new = [
            BranchLabel(name="Main", is_local=True),
            BranchLabel(name="dev", is_remote=True, remote_name="origin"),
        ]

        merged = add_branch_labels(existing, new)

        assert [label.full_name for label in merged] == ["main", "origin/dev"]
        assert len(existing) == 1


class TestLoadCommitHistoryWindow:
    """History loading against an in-memory reader."""

    def make_reader(self):
        # feature (origin only) branches off m1; main is m2
        return FakeReader(
            order=["f1", "m2", "m1", "root"],
            parents={"f1": ["m1"], "m2": ["m1"], "m1": ["root"], "root": []},
            head="m2",
            branch="main",
            local=[BranchTip(name="main", sha="m2")],
            remote=[
                BranchTip(name="main", sha="m2", remote_name="origin"),
                BranchTip(name="feature", sha="f1", remote_name="origin"),
            ],
            tags=[BranchTip(name="v1.0", sha="root")],
        )

    def test_tip_outside_window_backfilled(self):
        """Test that a tip skipped by pagination is labelled on its nearest loaded ancestor."""
        reader = self.make_reader()

        commits = load_commit_history(reader, count=2, skip=1)

        assert [commit.sha for commit in commits] == ["m2", "m1"]
        m1 = commits[1]
        assert [label.full_name for label in m1.branch_labels] == ["origin/feature"]
        assert m1.branch_labels[0].tip_sha == "f1"
        main = commits[0].branch_labels[0]
        assert main.name == "main" and main.is_current and main.is_synced
        assert commits[0].is_head

    def test_walks_all_tips(self):
        reader = self.make_reader()

        commits = load_commit_history(reader)

        assert reader.include == ["m2", "f1"]
        assert commits[-1].tag_names == ["v1.0"]

    def test_unknown_branch_returns_empty(self):
        reader = self.make_reader()

        assert load_commit_history(reader, branch_name="nope") == []
        assert reader.include is None

    def test_remote_branch_filter(self):
        reader = self.make_reader()

        load_commit_history(reader, branch_name="origin/feature")

        assert reader.include == ["f1"]

    def test_detached_head_gets_marker(self):
        """Test a HEAD label on a detached commit with no branch tip."""
        reader = self.make_reader()
        reader.head = "m1"
        reader.branch = None

        commits = load_commit_history(reader)

        assert reader.include[0] == "m1"
        m1 = next(commit for commit in commits if commit.sha == "m1")
        assert m1.branch_labels[0].name == "HEAD"
        assert m1.branch_labels[0].is_current
        assert m1.is_head


@pytest.fixture(params=["native", "cli"])
def open_backend(request):
    """Factory opening the parametrized reader backend on a path."""

    def _open(repo):
        if request.param == "native":
            return NativeReader(repo)
        return CliReader(ProcessRunner(), repo)

    return _open


class TestLoadCommitHistoryRepository:
    """History loading against real repositories, for both backends."""

    def build_history(self, repo):
        base = git(repo, "rev-parse", "HEAD")
        git(repo, "checkout", "-q", "-b", "feature")
        write(repo, "feature.txt", "feature\n")
        feature = commit_all(repo, "Add feature\n\nLonger description.")
        git(repo, "checkout", "-q", "main")
        write(repo, "main.txt", "main\n")
        main = commit_all(repo, "Work on main")
        git(repo, "update-ref", "refs/remotes/origin/main", main)
        git(repo, "symbolic-ref", "refs/remotes/origin/HEAD", "refs/remotes/origin/main")
        git(repo, "tag", "v1", base)
        git(repo, "tag", "-a", "v2", "-m", "Release 2", main)
        return base, feature, main

    def test_full_history(self, seeded_repo, open_backend):
        base, feature, main = self.build_history(seeded_repo)

        with open_backend(seeded_repo) as reader:
            commits = load_commit_history(reader)

        by_sha = {commit.sha: commit for commit in commits}
        assert set(by_sha) == {base, feature, main}
        assert commits[-1].sha == base
        main_labels = by_sha[main].branch_labels
        assert [label.full_name for label in main_labels] == ["main"]
        assert main_labels[0].is_synced and main_labels[0].is_current
        assert by_sha[main].tag_names == ["v2"]
        assert by_sha[base].tag_names == ["v1"]
        assert by_sha[feature].message_short == "Add feature"
        assert by_sha[feature].description == "Longer description."
        assert by_sha[feature].parent_shas == [base]
        assert by_sha[main].is_head

    def test_branch_filter_backfills_other_tips(self, seeded_repo, open_backend):
        """Test that a tip unreachable from the loaded branch lands on its ancestor."""
        base, feature, main = self.build_history(seeded_repo)

        with open_backend(seeded_repo) as reader:
            commits = load_commit_history(reader, branch_name="main")

        assert [commit.sha for commit in commits] == [main, base]
        base_labels = commits[1].branch_labels
        assert [label.name for label in base_labels] == ["feature"]
        assert base_labels[0].tip_sha == feature

    def test_paging(self, seeded_repo, open_backend):
        base, feature, main = self.build_history(seeded_repo)

        with open_backend(seeded_repo) as reader:
            commits = load_commit_history(reader, count=1, skip=2)

        assert [commit.sha for commit in commits] == [base]
        names = {label.name for label in commits[0].branch_labels}
        assert names == {"main", "feature"}

    def test_detached_head(self, seeded_repo, open_backend):
        base, feature, main = self.build_history(seeded_repo)
        git(seeded_repo, "checkout", "-q", "--detach", base)

        with open_backend(seeded_repo) as reader:
            commits = load_commit_history(reader)

        head = next(commit for commit in commits if commit.is_head)
        assert head.sha == base
        assert head.branch_labels[0].name == "HEAD"
        assert not any(label.is_current for commit in commits if commit.sha != base for label in commit.branch_labels)


class TestNativeReader:
    """Tests for opening the GitDB-backed reader."""

    def test_open_emits_no_deprecation_warning(self, seeded_repo):
        with warnings.catch_warnings():
            warnings.simplefilter("error", DeprecationWarning)
            reader = NativeReader(seeded_repo)

        assert reader.head_sha() == git(seeded_repo, "rev-parse", "HEAD")
        reader.close()
