"""Git command runner and repository utilities.

Contains:
- CommandResult: Exit code and captured output of a child process
- ProcessRunner: Launches git and the patch tool with a neutral locale
- parse_progress_line: Split a git progress line into (percent, text)
- NEUTRAL_ENV: Environment overrides applied to every child process
"""

import os
import re
import shutil
import subprocess
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from hunkwork.git.command_log import CommandLog, CommandRecord
from hunkwork.git.exceptions import (
    DEFAULT_MAX_ERROR_CHARS,
    GitError,
    GitNotFoundError,
    NotARepositoryError,
    OperationCancelledError,
    PatchToolNotFoundError,
)

# Forces English, parseable messages and keeps git from prompting for credentials
NEUTRAL_ENV = {
    "LC_ALL": "C",
    "LANG": "C",
    "GIT_TERMINAL_PROMPT": "0",
    "GCM_INTERACTIVE": "never",
}

_PROGRESS_RE = re.compile(r"^(?P<label>[^:]+):\s+(?P<percent>\d{1,3})%")

ProgressSink = Callable[[Optional[int], str], None]


def parse_progress_line(line: str) -> tuple[Optional[int], str]:
    """Split a git progress line into a percentage and its text.

    Args:
        line: A line from git's stderr, e.g. "Receiving objects:  45% (9/20)".

    Returns:
        Tuple of (percent or None, stripped line text).
    """
    text = line.strip()
    if text.startswith("remote: "):
        text = text[len("remote: "):]
    match = _PROGRESS_RE.match(text)
    if match:
        return int(match.group("percent")), text
    return None, text


@dataclass
class CommandResult:
    """Exit code and captured output of a child process."""

    args: list[str]
    exit_code: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    @property
    def output(self) -> str:
        return self.stdout.strip()


class ProcessRunner:
    """Run git and the patch tool as child processes.

    Every call is synchronous. Each finished process is recorded in the
    injected command log, if any.
    """

    def __init__(
        self,
        git_executable: str = "git",
        patch_executable: Optional[str] = None,
        command_log: Optional[CommandLog] = None,
        max_error_chars: int = DEFAULT_MAX_ERROR_CHARS,
    ):
        self.git_executable = git_executable
        self.patch_executable = patch_executable
        self.command_log = command_log
        self.max_error_chars = max_error_chars

    @staticmethod
    def _environment() -> dict[str, str]:
        env = dict(os.environ)
        env.update(NEUTRAL_ENV)
        return env

    def _record(
        self,
        args: list[str],
        cwd: Optional[Path],
        result: CommandResult,
        started: float,
        started_at: datetime,
    ) -> None:
        if self.command_log is None:
            return
        self.command_log.record(
            CommandRecord(
                args=tuple(args),
                cwd=Path(cwd) if cwd else None,
                exit_code=result.exit_code,
                duration_ms=(time.monotonic() - started) * 1000,
                stdout=result.stdout,
                stderr=result.stderr,
                started_at=started_at,
            )
        )

    def run(
        self,
        args: list[str],
        cwd: Optional[Path] = None,
        input: Optional[str] = None,
        keep_newlines: bool = False,
    ) -> CommandResult:
        """Run an arbitrary child process and capture its output.

        Args:
            args: Full argument vector, executable first.
            cwd: Working directory for the process.
            input: Text written to the process's stdin.
            keep_newlines: Exchange bytes with the process and decode them
                without newline translation, so CRLF content survives.

        Returns:
            The CommandResult. A non-zero exit code does not raise.

        Raises:
            FileNotFoundError: If the executable does not exist.
        """
        started_at = datetime.now(timezone.utc)
        started = time.monotonic()
        if keep_newlines:
            completed = subprocess.run(
                args,
                cwd=cwd,
                input=input.encode("utf-8") if input is not None else None,
                capture_output=True,
                env=self._environment(),
            )
            stdout = (completed.stdout or b"").decode("utf-8", errors="replace")
            stderr = (completed.stderr or b"").decode("utf-8", errors="replace")
        else:
            completed = subprocess.run(
                args,
                cwd=cwd,
                input=input,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                env=self._environment(),
            )
            stdout = completed.stdout or ""
            stderr = completed.stderr or ""
        result = CommandResult(
            args=list(args),
            exit_code=completed.returncode,
            stdout=stdout,
            stderr=stderr,
        )
        self._record(args, cwd, result, started, started_at)
        return result

    def run_git(
        self,
        args: list[str],
        cwd: Optional[Path] = None,
        input: Optional[str] = None,
        keep_newlines: bool = False,
    ) -> CommandResult:
        """Run a git command without raising on a non-zero exit code.

        Raises:
            GitNotFoundError: If git is not installed or not in PATH.
        """
        try:
            return self.run(
                [self.git_executable] + list(args), cwd=cwd, input=input, keep_newlines=keep_newlines
            )
        except FileNotFoundError:
            raise GitNotFoundError("Git is not installed or not in PATH.", args=list(args))

    def git(
        self,
        args: list[str],
        cwd: Optional[Path] = None,
        input: Optional[str] = None,
    ) -> str:
        """Run a git command and return its stripped output.

        Args:
            args: List of arguments to pass to git.
            cwd: Working directory (repository path).
            input: Text written to git's stdin.

        Returns:
            The stdout of the git command.

        Raises:
            GitError: If the command fails.
        """
        result = self.run_git(args, cwd=cwd, input=input)
        if not result.success:
            raise GitError(
                f"Git command failed: git {' '.join(args)}\n{result.stderr.strip()}",
                args=list(args),
                exit_code=result.exit_code,
                stdout=result.stdout,
                stderr=result.stderr,
                max_chars=self.max_error_chars,
            )
        return result.output

    def get_repo_root(self, cwd: Optional[Path] = None) -> Path:
        """Get the root directory of the git repository containing cwd.

        Raises:
            NotARepositoryError: If not in a git repository.
        """
        result = self.run_git(["rev-parse", "--show-toplevel"], cwd=cwd)
        if not result.success or not result.output:
            raise NotARepositoryError(
                "Not in a git repository. Please run this command from within a git repo.",
                args=["rev-parse", "--show-toplevel"],
                exit_code=result.exit_code,
                stderr=result.stderr,
            )
        return Path(result.output)

    def get_git_dir(self, repo_path: Path) -> Path:
        """Get the absolute path of the repository's metadata directory."""
        return Path(self.git(["rev-parse", "--absolute-git-dir"], cwd=repo_path))

    # ------------------------------------------------------------------
    # Patch tool
    # ------------------------------------------------------------------

    def find_patch_executable(self) -> Optional[str]:
        """Locate the external patch tool.

        Looks at the configured executable, then PATH, then the copy shipped
        next to a Git for Windows installation.

        Returns:
            Path of the patch executable, or None if not found.
        """
        candidate = shutil.which(self.patch_executable or "patch")
        if candidate:
            return candidate

        result = self.run_git(["--exec-path"])
        if result.success and result.output:
            # <root>/mingw64/libexec/git-core -> <root>/usr/bin/patch.exe
            git_root = Path(result.output).parent.parent.parent
            for name in ("patch.exe", "patch"):
                patch_path = git_root / "usr" / "bin" / name
                if patch_path.exists():
                    return str(patch_path)
        return None

    def run_patch(
        self,
        patch_text: str,
        cwd: Path,
        fuzz: int = 3,
        strip: int = 1,
        dry_run: bool = False,
    ) -> CommandResult:
        """Apply a unified diff with the patch tool, tolerating shifted context.

        Args:
            patch_text: Unified diff content fed on stdin.
            cwd: Directory the patch paths are relative to.
            fuzz: Fuzz factor for context matching.
            strip: Number of leading path components to strip.
            dry_run: Report what would happen without changing any file.

        Raises:
            PatchToolNotFoundError: If no patch executable is available.
        """
        patch_path = self.find_patch_executable()
        if patch_path is None:
            raise PatchToolNotFoundError(
                "Could not find the 'patch' tool. Smart stash pop needs it to merge "
                "a stash into local changes; install GNU patch (or Git for Windows) "
                "and try again."
            )
        args = [
            patch_path,
            f"-p{strip}",
            f"--fuzz={fuzz}",
            "--no-backup-if-mismatch",
            "--forward",
        ]
        if dry_run:
            args.append("--dry-run")
        try:
            return self.run(args, cwd=cwd, input=patch_text)
        except FileNotFoundError:
            raise PatchToolNotFoundError(f"Could not start the patch tool at {patch_path}.")

    # ------------------------------------------------------------------
    # Long-running commands
    # ------------------------------------------------------------------

    def run_streaming(
        self,
        args: list[str],
        cwd: Optional[Path] = None,
        on_progress: Optional[ProgressSink] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> CommandResult:
        """Run a long git command, reporting progress lines as they arrive.

        Cancellation terminates the child process; there is no graceful stop.

        Args:
            args: Arguments to pass to git.
            cwd: Working directory.
            on_progress: Receives (percent or None, text) for each stderr line.
            cancel_event: When set, the process is terminated.

        Raises:
            GitNotFoundError: If git cannot be started.
            OperationCancelledError: If cancel_event was set before completion.
        """
        full_args = [self.git_executable] + list(args)
        started_at = datetime.now(timezone.utc)
        started = time.monotonic()
        try:
            process = subprocess.Popen(
                full_args,
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                env=self._environment(),
            )
        except FileNotFoundError:
            raise GitNotFoundError("Git is not installed or not in PATH.", args=list(args))

        cancelled = threading.Event()
        stdout_chunks: list[str] = []
        stderr_lines: list[str] = []

        def _drain_stdout() -> None:
            stdout_chunks.append(process.stdout.read())

        def _watch_cancel() -> None:
            while process.poll() is None:
                if cancel_event.wait(0.1):
                    cancelled.set()
                    process.terminate()
                    return

        stdout_thread = threading.Thread(target=_drain_stdout, daemon=True)
        stdout_thread.start()
        if cancel_event is not None:
            threading.Thread(target=_watch_cancel, daemon=True).start()

        # Universal newlines turn git's carriage-return progress updates into lines
        for line in process.stderr:
            stderr_lines.append(line)
            if on_progress is not None and line.strip():
                on_progress(*parse_progress_line(line))

        exit_code = process.wait()
        stdout_thread.join()

        result = CommandResult(
            args=full_args,
            exit_code=exit_code,
            stdout="".join(stdout_chunks),
            stderr="".join(stderr_lines),
        )
        self._record(full_args, cwd, result, started, started_at)

        if cancelled.is_set():
            raise OperationCancelledError(
                f"git {args[0] if args else ''} was cancelled",
                args=list(args),
                exit_code=exit_code,
                stdout=result.stdout,
                stderr=result.stderr,
            )
        return result
