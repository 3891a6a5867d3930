"""Tests for hunkwork.cli module."""

from unittest.mock import ANY, MagicMock

import pytest
from typer.testing import CliRunner

from hunkwork.cli import app, format_commit_line
from hunkwork.conflicts import ConflictInfo
from hunkwork.git.exceptions import GitError, NotARepositoryError
from hunkwork.git.models import MergeResult, StashEntry
from hunkwork.history import BranchLabel, CommitInfo
from hunkwork.stash import ReconcileState, StashPopResult
from tests.helpers import git, write

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(mocker, tmp_path):
    """Keep the user's ~/.hunkwork/config.yaml out of every test."""
    mocker.patch("hunkwork.config._CONFIG_DIR", tmp_path / ".hunkwork")


@pytest.fixture
def repo_root(mocker, temp_dir):
    mocker.patch("hunkwork.git.runner.ProcessRunner.get_repo_root", return_value=temp_dir)
    return temp_dir


class TestMainCommand:
    """Tests for global options."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert result.output.startswith("hunkwork ")

    def test_help_without_subcommand(self):
        result = runner.invoke(app, [])

        assert result.exit_code == 0
        assert "stash" in result.output
        assert "history" in result.output

    def test_invalid_config(self, temp_dir):
        """Test that a broken config file is reported, not raised."""
        config_file = temp_dir / "config.yaml"
        config_file.write_text("context_lines: nope\n")

        result = runner.invoke(app, ["--config", str(config_file), "stash", "list"])

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "Invalid config" in result.output


class TestStashCommands:
    """Tests for hunkwork stash commands."""

    def test_list(self, mocker, repo_root):
        mocker.patch(
            "hunkwork.cli.stash.list_stashes",
            return_value=[
                StashEntry(index=0, sha="abcdef0123" * 4, message="WIP on main: 123 fix", branch_name="main"),
                StashEntry(index=1, sha="0123456789" * 4, message="custom"),
            ],
        )

        result = runner.invoke(app, ["stash", "list"])

        assert result.exit_code == 0
        assert "stash@{0} abcdef0 [main] WIP on main: 123 fix" in result.output
        assert "stash@{1} 0123456 custom" in result.output

    def test_list_empty(self, mocker, repo_root):
        mocker.patch("hunkwork.cli.stash.list_stashes", return_value=[])

        result = runner.invoke(app, ["stash", "list"])

        assert result.exit_code == 0
        assert "No stashes." in result.output

    def test_not_a_repository(self, mocker):
        mocker.patch(
            "hunkwork.git.runner.ProcessRunner.get_repo_root",
            side_effect=NotARepositoryError("Not in a git repository."),
        )

        result = runner.invoke(app, ["stash", "list"])

        assert result.exit_code == 1
        assert "Error: Not in a git repository." in result.output

    def test_pop_success(self, mocker, repo_root):
        reconciler = mocker.patch("hunkwork.cli.stash.StashReconciler")
        reconciler.return_value.pop_stash.return_value = StashPopResult(
            state=ReconcileState.DONE_SUCCESS, merge_result=MergeResult.succeeded()
        )

        result = runner.invoke(app, ["stash", "pop", "2"])

        assert result.exit_code == 0
        assert "Popped stash@{2}." in result.output
        reconciler.return_value.pop_stash.assert_called_once_with(repo_root, 2)

    def test_pop_conflicts(self, mocker, repo_root):
        """Test that conflicts exit non-zero and explain the temporary stash."""
        reconciler = mocker.patch("hunkwork.cli.stash.StashReconciler")
        reconciler.return_value.pop_stash.return_value = StashPopResult(
            state=ReconcileState.DONE_CONFLICT,
            merge_result=MergeResult.conflicts(["a.txt", "b.txt"], "Merge conflicts detected - resolve to complete"),
            temp_stash=MagicMock(),
        )

        result = runner.invoke(app, ["stash", "pop"])

        assert result.exit_code == 1
        assert "Merge conflicts detected" in result.output
        assert "  conflict: a.txt" in result.output
        assert "hunkwork stash cleanup" in result.output

    def test_pop_error(self, mocker, repo_root):
        reconciler = mocker.patch("hunkwork.cli.stash.StashReconciler")
        reconciler.return_value.pop_stash.return_value = StashPopResult(
            state=ReconcileState.DONE_ERROR, merge_result=MergeResult.failed("No stash found at index 4")
        )

        result = runner.invoke(app, ["stash", "pop", "4"])

        assert result.exit_code == 1
        assert "Error: No stash found at index 4" in result.output

    def test_cleanup(self, mocker, repo_root):
        mocker.patch("hunkwork.cli.stash.cleanup_temp_stash", return_value=2)

        result = runner.invoke(app, ["stash", "cleanup"])

        assert result.exit_code == 0
        assert "Dropped 2 temporary stash(es)." in result.output


class TestConflictCommands:
    """Tests for hunkwork conflicts commands."""

    def test_list_saves_sidecar(self, mocker, repo_root):
        """Test that listed conflicts are merged into the stored list."""
        mocker.patch(
            "hunkwork.cli.conflicts.get_conflicts",
            return_value=[ConflictInfo(file_path="a.txt", base_content="1\n2\n", ours_content="x\n")],
        )
        mocker.patch("hunkwork.cli.conflicts.load_stored_conflict_files", return_value=["old.txt"])
        mock_save = mocker.patch("hunkwork.cli.conflicts.save_stored_conflict_files")

        result = runner.invoke(app, ["conflicts", "list"])

        assert result.exit_code == 0
        assert "a.txt  base: 2 lines, ours: 1 lines, theirs: missing" in result.output
        assert "Total: 1 conflict(s)" in result.output
        assert mock_save.call_args.args[1:] == (repo_root, ["old.txt", "a.txt"])

    def test_list_empty(self, mocker, repo_root):
        mocker.patch("hunkwork.cli.conflicts.get_conflicts", return_value=[])
        mock_save = mocker.patch("hunkwork.cli.conflicts.save_stored_conflict_files")

        result = runner.invoke(app, ["conflicts", "list"])

        assert "No unresolved conflicts." in result.output
        mock_save.assert_not_called()

    def test_resolved(self, mocker, repo_root):
        mocker.patch(
            "hunkwork.cli.conflicts.get_resolved_merge_files",
            return_value=[ConflictInfo(file_path="a.txt", is_resolved=True)],
        )

        result = runner.invoke(app, ["conflicts", "resolved"])

        assert result.exit_code == 0
        assert "a.txt" in result.output.splitlines()

    def test_clear(self, mocker, repo_root):
        mock_clear = mocker.patch("hunkwork.cli.conflicts.clear_stored_conflict_files")

        result = runner.invoke(app, ["conflicts", "clear"])

        assert result.exit_code == 0
        assert "Cleared stored conflict list." in result.output
        mock_clear.assert_called_once_with(ANY, repo_root)


class TestRemoteCommands:
    """Tests for hunkwork fetch, pull and push."""

    def test_fetch(self, mocker, repo_root):
        mock_fetch = mocker.patch("hunkwork.cli.remote.fetch")

        result = runner.invoke(app, ["fetch", "upstream"])

        assert result.exit_code == 0
        assert "Fetched upstream." in result.output
        assert mock_fetch.call_args.args[1] == repo_root
        assert mock_fetch.call_args.kwargs["remote_name"] == "upstream"

    def test_pull_success(self, mocker, repo_root):
        mocker.patch("hunkwork.cli.remote.pull", return_value=MergeResult.succeeded())

        result = runner.invoke(app, ["pull"])

        assert result.exit_code == 0
        assert "Pulled." in result.output

    def test_pull_conflicts(self, mocker, repo_root):
        """Test that a conflicting pull lists the files and exits non-zero."""
        mocker.patch(
            "hunkwork.cli.remote.pull",
            return_value=MergeResult.conflicts(["a.txt"], "Pull resulted in conflicts that need to be resolved."),
        )

        result = runner.invoke(app, ["pull"])

        assert result.exit_code == 1
        assert "Pull resulted in conflicts" in result.output
        assert "  conflict: a.txt" in result.output

    def test_push_with_remote(self, mocker, repo_root):
        mock_push = mocker.patch("hunkwork.cli.remote.push")

        result = runner.invoke(app, ["push", "--remote", "upstream"])

        assert result.exit_code == 0
        assert "Pushed." in result.output
        assert mock_push.call_args.kwargs["remote_name"] == "upstream"

    def test_push_detached_head(self, mocker, repo_root):
        mocker.patch("hunkwork.cli.remote.push", side_effect=GitError("Cannot push while in detached HEAD state."))

        result = runner.invoke(app, ["push"])

        assert result.exit_code == 1
        assert "Error: Cannot push while in detached HEAD state." in result.output


class TestConfigShow:
    """Tests for hunkwork config show."""

    def test_defaults(self):
        result = runner.invoke(app, ["config", "show"])

        assert result.exit_code == 0
        assert "(not found, using defaults)" in result.output
        assert "context_lines: 3" in result.output

    def test_explicit_file(self, temp_dir):
        config_file = temp_dir / "config.yaml"
        config_file.write_text("patch_fuzz: 1\n")

        result = runner.invoke(app, ["--config", str(config_file), "config", "show"])

        assert result.exit_code == 0
        assert f"Config file: {config_file}\n" in result.output
        assert "patch_fuzz: 1" in result.output


class TestFormatCommitLine:
    """Tests for format_commit_line."""

    def test_decorations(self):
        commit = CommitInfo(
            sha="1234567890abcdef",
            message="Subject line\n\nBody",
            branch_labels=[
                BranchLabel(name="main", is_local=True, is_remote=True, remote_name="origin", is_current=True),
                BranchLabel(name="dev", is_local=True, is_remote=True, remote_name="origin"),
                BranchLabel(name="feature", is_remote=True, remote_name="upstream"),
            ],
            tag_names=["v1.0"],
        )

        assert format_commit_line(commit) == (
            "1234567 (HEAD -> main, dev = origin/dev, upstream/feature, tag: v1.0) Subject line"
        )

    def test_plain(self):
        assert format_commit_line(CommitInfo(sha="abcdef0123", message="Fix")) == "abcdef0 Fix"


class TestRepositoryCommands:
    """End-to-end commands against a real repository."""

    @pytest.mark.parametrize("backend", ["--native", "--cli"])
    def test_history(self, seeded_repo, backend):
        result = runner.invoke(app, ["-C", str(seeded_repo), "history", backend])

        assert result.exit_code == 0
        sha = git(seeded_repo, "rev-parse", "--short=7", "HEAD")
        assert f"{sha} (HEAD -> main) Initial commit" in result.output

    def test_hunk_workflow(self, seeded_repo):
        """Test list, stage and an out-of-range index on one file."""
        content = (seeded_repo / "notes.txt").read_text().replace("line 5\n", "line five\n")
        (seeded_repo / "notes.txt").write_text(content)

        listed = runner.invoke(app, ["-C", str(seeded_repo), "hunks", "list", "notes.txt"])
        assert listed.exit_code == 0
        assert "[0] @@ -2,7 +2,7 @@  +1 -1" in listed.output
        assert "    +line five" in listed.output

        staged = runner.invoke(app, ["-C", str(seeded_repo), "hunks", "stage", "notes.txt", "0"])
        assert staged.exit_code == 0
        assert "Staged hunk 0 of notes.txt." in staged.output
        assert "+line five" in git(seeded_repo, "diff", "--cached")

        missing = runner.invoke(app, ["-C", str(seeded_repo), "hunks", "unstage", "notes.txt", "3"])
        assert missing.exit_code == 1
        assert "notes.txt has 1 hunk(s); no hunk at index 3" in missing.output

    def test_no_unstaged_changes(self, seeded_repo):
        result = runner.invoke(app, ["-C", str(seeded_repo), "hunks", "list", "notes.txt"])

        assert result.exit_code == 0
        assert "No unstaged changes in notes.txt." in result.output

    def test_stash_push_staged(self, seeded_repo):
        """Test that --staged stashes the index and leaves other changes alone."""
        write(seeded_repo, "notes.txt", "staged edit\n")
        git(seeded_repo, "add", "notes.txt")
        write(seeded_repo, "other.txt", "untracked\n")

        result = runner.invoke(app, ["-C", str(seeded_repo), "stash", "push", "--staged", "-m", "only staged"])

        assert result.exit_code == 0
        assert "only staged" in git(seeded_repo, "stash", "list")
        assert git(seeded_repo, "diff", "--cached") == ""
        assert (seeded_repo / "other.txt").read_text() == "untracked\n"
        assert git(seeded_repo, "show", "stash@{0}:notes.txt") == "staged edit"
