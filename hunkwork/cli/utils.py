"""Shared helpers for the hunkwork CLI."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from hunkwork.config import EngineConfig
from hunkwork.git.command_log import LoggingCommandLog
from hunkwork.git.runner import ProcessRunner


@dataclass
class EngineContext:
    """Objects built once by the main callback and shared by subcommands."""

    config: EngineConfig
    runner: ProcessRunner
    repo: Optional[Path] = None
    config_file: Optional[Path] = None

    def repo_root(self) -> Path:
        """Resolve the repository root from --repo or the current directory.

        Raises:
            NotARepositoryError: If the directory is not inside a repository.
        """
        return self.runner.get_repo_root(self.repo)


def build_runner(config: EngineConfig) -> ProcessRunner:
    return ProcessRunner(
        git_executable=config.git_executable,
        patch_executable=config.patch_executable,
        command_log=LoggingCommandLog(max_output_chars=config.max_error_chars),
        max_error_chars=config.max_error_chars,
    )


def get_engine(ctx: typer.Context) -> EngineContext:
    """Return the EngineContext stored by the main callback."""
    engine = ctx.find_root().obj
    if engine is None:
        config = EngineConfig()
        engine = EngineContext(config=config, runner=build_runner(config))
        ctx.find_root().obj = engine
    return engine


def fail(message: object) -> None:
    """Print an error to stderr and exit with status 1."""
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(1)
