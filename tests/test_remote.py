"""Tests for hunkwork.git.remote using local bare repositories."""

import pytest

from hunkwork.git.exceptions import GitError
from hunkwork.git.remote import clone, fetch, list_remotes, pull, push
from tests.helpers import commit_all, git, write


@pytest.fixture
def bare_remote(seeded_repo, tmp_path):
    """A bare repository cloned from seeded_repo, standing in for a server."""
    remote = tmp_path / "origin.git"
    git(tmp_path, "clone", "-q", "--bare", str(seeded_repo), str(remote))
    return remote


@pytest.fixture
def working_clone(bare_remote, tmp_path, runner):
    return clone(runner, str(bare_remote), tmp_path / "alice")


class TestClone:
    """Tests for clone."""

    def test_clone_creates_worktree(self, bare_remote, tmp_path, runner):
        updates = []

        path = clone(runner, str(bare_remote), tmp_path / "bob", on_progress=lambda p, t: updates.append(t))

        assert (path / "notes.txt").exists()
        assert any(text.startswith("Cloning into") for text in updates)
        assert list_remotes(runner, path) == ["origin"]

    def test_clone_failure(self, git_repo, tmp_path, runner):
        with pytest.raises(GitError):
            clone(runner, str(tmp_path / "missing.git"), tmp_path / "nowhere")


class TestPushFetchPull:
    """Round trips between two clones of one bare repository."""

    def test_push_then_pull(self, working_clone, bare_remote, tmp_path, runner):
        """Test that a pushed commit reaches a second clone through pull."""
        other = clone(runner, str(bare_remote), tmp_path / "bob")
        write(working_clone, "new.txt", "new\n")
        sha = commit_all(working_clone, "Add new file")

        push(runner, working_clone)
        result = pull(runner, other)

        assert result.success
        assert result.commit_sha == sha
        assert (other / "new.txt").read_text() == "new\n"

    def test_fetch_updates_remote_branch(self, working_clone, bare_remote, tmp_path, runner):
        other = clone(runner, str(bare_remote), tmp_path / "bob")
        write(working_clone, "new.txt", "new\n")
        sha = commit_all(working_clone, "Add new file")
        push(runner, working_clone)

        fetch(runner, other)

        assert git(other, "rev-parse", "origin/main") == sha
        assert not (other / "new.txt").exists()

    def test_push_new_branch_sets_upstream(self, working_clone, bare_remote, runner):
        git(working_clone, "checkout", "-q", "-b", "feature")
        write(working_clone, "feature.txt", "f\n")
        sha = commit_all(working_clone, "Feature")

        push(runner, working_clone)

        assert git(bare_remote, "rev-parse", "refs/heads/feature") == sha
        assert git(working_clone, "rev-parse", "--abbrev-ref", "feature@{u}") == "origin/feature"

    def test_push_detached_head(self, working_clone, runner):
        git(working_clone, "checkout", "-q", "--detach", "HEAD")

        with pytest.raises(GitError) as exc_info:
            push(runner, working_clone)

        assert "detached HEAD" in str(exc_info.value)

    def test_fetch_unknown_remote(self, working_clone, runner):
        with pytest.raises(GitError):
            fetch(runner, working_clone, remote_name="nope")

    def test_pull_conflict(self, working_clone, bare_remote, tmp_path, runner):
        """Test that conflicting upstream work comes back as a conflict result."""
        other = clone(runner, str(bare_remote), tmp_path / "bob")
        git(other, "config", "pull.rebase", "false")
        write(working_clone, "notes.txt", "alice\n")
        commit_all(working_clone, "Alice edit")
        push(runner, working_clone)
        write(other, "notes.txt", "bob\n")
        commit_all(other, "Bob edit")

        result = pull(runner, other)

        assert result.has_conflicts
        assert result.conflicting_files == ["notes.txt"]
