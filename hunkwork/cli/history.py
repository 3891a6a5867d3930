"""CLI command for the decorated commit history."""

from typing import Optional

import typer

from hunkwork.git.exceptions import GitError
from hunkwork.history import CommitInfo, load_commit_history
from hunkwork.reader import open_reader
from hunkwork.cli.utils import fail, get_engine


def format_commit_line(commit: CommitInfo) -> str:
    """One line per commit: short SHA, labels, tags and subject."""
    decorations = []
    for label in commit.branch_labels:
        name = label.full_name
        if label.is_current:
            name = f"HEAD -> {name}" if name != "HEAD" else "HEAD"
        elif label.is_synced:
            name = f"{name} = {label.remote_name}/{label.name}"
        decorations.append(name)
    decorations.extend(f"tag: {tag}" for tag in commit.tag_names)

    line = commit.short_sha
    if decorations:
        line += f" ({', '.join(decorations)})"
    return f"{line} {commit.message_short}"


def history_command(
    ctx: typer.Context,
    count: Optional[int] = typer.Option(
        None,
        "--count",
        "-n",
        help="Number of commits to show (defaults to history_page_size)",
    ),
    skip: int = typer.Option(
        0,
        "--skip",
        help="Number of commits to skip",
    ),
    branch: Optional[str] = typer.Option(
        None,
        "--branch",
        "-b",
        help="Only show history reachable from this branch",
    ),
    native: bool = typer.Option(
        True,
        "--native/--cli",
        help="Read the object database in-process or through git",
    ),
) -> None:
    """Show a window of history with branch and tag labels."""
    engine = get_engine(ctx)
    try:
        repo_root = engine.repo_root()
        with open_reader(repo_root, runner=engine.runner, native=native) as reader:
            commits = load_commit_history(
                reader,
                count=count or engine.config.history_page_size,
                skip=skip,
                branch_name=branch,
            )
    except GitError as e:
        fail(e)

    if not commits:
        typer.echo("No commits found.")
        return
    for commit in commits:
        typer.echo(format_commit_line(commit))
