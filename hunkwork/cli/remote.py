"""CLI commands for remote sync: fetch, pull and push."""

from typing import Optional

import typer

from hunkwork.git.exceptions import GitError
from hunkwork.git.remote import fetch, pull, push
from hunkwork.cli.utils import fail, get_engine


def _echo_progress(percent: Optional[int], text: str) -> None:
    typer.echo(text, err=True)


def fetch_command(
    ctx: typer.Context,
    remote: str = typer.Argument("origin", help="Remote to fetch from"),
) -> None:
    """Fetch a remote and prune deleted branches."""
    engine = get_engine(ctx)
    try:
        fetch(engine.runner, engine.repo_root(), remote_name=remote, on_progress=_echo_progress)
    except GitError as e:
        fail(e)

    typer.echo(f"Fetched {remote}.")


def pull_command(ctx: typer.Context) -> None:
    """Pull the current branch from its upstream."""
    engine = get_engine(ctx)
    try:
        result = pull(engine.runner, engine.repo_root(), on_progress=_echo_progress)
    except GitError as e:
        fail(e)

    if result.success:
        typer.echo("Pulled.")
        return
    if result.has_conflicts:
        typer.echo(result.error_message or "Merge conflicts detected.")
        for path in result.conflicting_files:
            typer.echo(f"  conflict: {path}")
        raise typer.Exit(1)
    fail(result.error_message)


def push_command(
    ctx: typer.Context,
    remote: Optional[str] = typer.Option(
        None, "--remote", "-r", help="Remote for a branch without upstream (default: origin)"
    ),
) -> None:
    """Push the current branch, setting its upstream when it has none."""
    engine = get_engine(ctx)
    try:
        push(engine.runner, engine.repo_root(), remote_name=remote, on_progress=_echo_progress)
    except GitError as e:
        fail(e)

    typer.echo("Pushed.")
