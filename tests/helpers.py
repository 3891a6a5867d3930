"""Helpers shared by the test modules."""

import os
import shutil
import subprocess
from pathlib import Path
from unittest.mock import MagicMock

import pytest

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")
requires_patch = pytest.mark.skipif(shutil.which("patch") is None, reason="patch is not installed")

GIT_ENV = {
    "GIT_AUTHOR_NAME": "Test Author",
    "GIT_AUTHOR_EMAIL": "author@example.com",
    "GIT_COMMITTER_NAME": "Test Author",
    "GIT_COMMITTER_EMAIL": "author@example.com",
    "GIT_CONFIG_NOSYSTEM": "1",
    "GIT_MERGE_AUTOEDIT": "no",
    "LC_ALL": "C",
}


def completed(stdout="", returncode=0, stderr=""):
    """Build a stand-in for subprocess.CompletedProcess."""
    result = MagicMock()
    result.stdout = stdout
    result.stderr = stderr
    result.returncode = returncode
    return result


class FakeGit:
    """Scripted replacement for subprocess.run.

    Responses are matched by prefix against the arguments after the
    executable, joined by spaces. Unmatched commands succeed with no output.
    """

    def __init__(self):
        self.calls: list[list[str]] = []
        self._responses = []

    def on(self, prefix, stdout="", returncode=0, stderr="", once=False):
        self._responses.append([prefix, completed(stdout, returncode, stderr), once])
        return self

    def __call__(self, args, **kwargs):
        self.calls.append(list(args))
        command = " ".join(args[1:])
        for entry in self._responses:
            prefix, result, once = entry
            if command.startswith(prefix):
                if once:
                    self._responses.remove(entry)
                return result
        return completed()

    def commands(self) -> list[str]:
        return [" ".join(call[1:]) for call in self.calls]

    def ran(self, prefix) -> bool:
        return any(command.startswith(prefix) for command in self.commands())


def git(repo: Path, *args: str, input: str = None, check: bool = True) -> str:
    """Run git in repo for test setup and return stripped stdout."""
    env = dict(os.environ)
    env.update(GIT_ENV)
    result = subprocess.run(
        ["git", *args],
        cwd=repo,
        input=input,
        capture_output=True,
        text=True,
        env=env,
    )
    if check and result.returncode != 0:
        raise AssertionError(f"git {' '.join(args)} failed: {result.stderr}")
    return result.stdout.strip()


def write(repo: Path, path: str, content: str) -> Path:
    target = repo / path
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content)
    return target


def commit_all(repo: Path, message: str) -> str:
    git(repo, "add", "-A")
    git(repo, "commit", "-q", "-m", message)
    return git(repo, "rev-parse", "HEAD")


def numbered_lines(count: int, prefix: str = "line") -> str:
    return "".join(f"{prefix} {i}\n" for i in range(1, count + 1))
