"""CLI commands for hunk-level staging, unstaging and reverting."""

from pathlib import Path

import typer

from hunkwork.git.exceptions import GitError
from hunkwork.hunks import (
    DiffHunk,
    load_file_diff_lines,
    parse_hunks,
    revert_hunk,
    stage_hunk,
    unstage_hunk,
)
from hunkwork.cli.utils import EngineContext, fail, get_engine

# Subcommand group for hunks
hunks_app = typer.Typer(
    name="hunks",
    help="List, stage, unstage and revert individual hunks",
    add_completion=False,
)


def _load_hunks(engine: EngineContext, path: str, staged: bool) -> tuple[Path, list[DiffHunk]]:
    repo_root = engine.repo_root()
    lines = load_file_diff_lines(engine.runner, repo_root, path, staged=staged)
    return repo_root, parse_hunks(lines, engine.config.context_lines)


def _select(hunks: list[DiffHunk], index: int, path: str) -> DiffHunk:
    if index < 0 or index >= len(hunks):
        fail(f"{path} has {len(hunks)} hunk(s); no hunk at index {index}")
    return hunks[index]


@hunks_app.command("list")
def hunks_list(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Repository-relative file path"),
    staged: bool = typer.Option(False, "--staged", help="Show staged hunks (index against HEAD)"),
) -> None:
    """Show the hunks of a file."""
    engine = get_engine(ctx)
    try:
        _, hunks = _load_hunks(engine, path, staged)
    except GitError as e:
        fail(e)

    if not hunks:
        typer.echo(f"No {'staged' if staged else 'unstaged'} changes in {path}.")
        return
    for hunk in hunks:
        typer.echo(f"[{hunk.index}] {hunk.header}  +{hunk.lines_added} -{hunk.lines_deleted}")
        for line in hunk.lines:
            typer.echo(f"    {line.prefix}{line.text}")


def _apply(ctx: typer.Context, path: str, index: int, staged: bool, action, verb: str) -> None:
    engine = get_engine(ctx)
    try:
        repo_root, hunks = _load_hunks(engine, path, staged)
        hunk = _select(hunks, index, path)
        action(engine.runner, repo_root, path, hunk)
    except GitError as e:
        fail(e)
    typer.echo(f"{verb} hunk {index} of {path}.")


@hunks_app.command("stage")
def hunks_stage(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Repository-relative file path"),
    index: int = typer.Argument(..., help="Hunk index from 'hunks list'"),
) -> None:
    """Stage one unstaged hunk."""
    _apply(ctx, path, index, False, stage_hunk, "Staged")


@hunks_app.command("unstage")
def hunks_unstage(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Repository-relative file path"),
    index: int = typer.Argument(..., help="Hunk index from 'hunks list --staged'"),
) -> None:
    """Unstage one staged hunk."""
    _apply(ctx, path, index, True, unstage_hunk, "Unstaged")


@hunks_app.command("revert")
def hunks_revert(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Repository-relative file path"),
    index: int = typer.Argument(..., help="Hunk index from 'hunks list'"),
) -> None:
    """Discard one unstaged hunk from the working tree."""
    _apply(ctx, path, index, False, revert_hunk, "Reverted")
