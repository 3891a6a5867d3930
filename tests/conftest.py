"""Shared test fixtures and configuration."""

import shutil
import tempfile
from pathlib import Path

import pytest

from hunkwork.git.command_log import MemoryCommandLog
from hunkwork.git.runner import ProcessRunner
from tests.helpers import GIT_ENV, FakeGit, commit_all, git, numbered_lines, write


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def mock_git_commands(mocker):
    """Mock subprocess.run for git commands."""
    mock_run = mocker.patch("subprocess.run")
    return mock_run


@pytest.fixture
def fake_git(mocker):
    """Scripted subprocess.run; see FakeGit."""
    fake = FakeGit()
    mocker.patch("subprocess.run", side_effect=fake)
    return fake


@pytest.fixture
def command_log():
    return MemoryCommandLog()


@pytest.fixture
def runner(command_log):
    return ProcessRunner(command_log=command_log)


@pytest.fixture
def git_repo(tmp_path, monkeypatch):
    """An empty repository on branch main with a test identity."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    for key, value in GIT_ENV.items():
        monkeypatch.setenv(key, value)
    monkeypatch.setenv("HOME", str(tmp_path))

    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "-q")
    git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    git(repo, "config", "user.name", "Test Author")
    git(repo, "config", "user.email", "author@example.com")
    git(repo, "config", "commit.gpgsign", "false")
    git(repo, "config", "core.autocrlf", "false")
    return repo


@pytest.fixture
def seeded_repo(git_repo):
    """Repository with one commit holding a ten-line notes.txt."""
    write(git_repo, "notes.txt", numbered_lines(10))
    commit_all(git_repo, "Initial commit")
    return git_repo
