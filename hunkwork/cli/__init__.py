"""CLI entry point for hunkwork.

This module provides the main CLI application that combines all commands
and subcommands into a single unified interface.
"""

import typer

from hunkwork.cli.stash import stash_app
from hunkwork.cli.hunks import hunks_app
from hunkwork.cli.conflicts import conflicts_app
from hunkwork.cli.config import config_app
from hunkwork.cli.history import history_command, format_commit_line
from hunkwork.cli.remote import fetch_command, pull_command, push_command
from hunkwork.cli.main import main_command
from hunkwork.cli.utils import EngineContext, build_runner, get_engine

# Main application
app = typer.Typer(
    name="hunkwork",
    help="hunkwork: local git engine for history, stashes, hunks and conflicts",
    add_completion=False,
)

# Add subcommand groups
app.add_typer(stash_app, name="stash")
app.add_typer(hunks_app, name="hunks")
app.add_typer(conflicts_app, name="conflicts")
app.add_typer(config_app, name="config")

# Add individual commands
app.command("history")(history_command)
app.command("fetch")(fetch_command)
app.command("pull")(pull_command)
app.command("push")(push_command)

# Global options, configuration and logging
app.callback(invoke_without_command=True)(main_command)


__all__ = [
    "app",
    "stash_app",
    "hunks_app",
    "conflicts_app",
    "config_app",
    "history_command",
    "fetch_command",
    "pull_command",
    "push_command",
    "main_command",
    "format_commit_line",
    "EngineContext",
    "build_runner",
    "get_engine",
]
