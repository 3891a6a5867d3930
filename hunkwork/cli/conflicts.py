"""CLI commands for merge conflict inspection."""

import typer

from hunkwork.conflicts import (
    clear_stored_conflict_files,
    get_conflicts,
    get_resolved_merge_files,
    load_stored_conflict_files,
    save_stored_conflict_files,
)
from hunkwork.git.exceptions import GitError
from hunkwork.cli.utils import fail, get_engine

# Subcommand group for conflicts
conflicts_app = typer.Typer(
    name="conflicts",
    help="Inspect unresolved and resolved merge conflicts",
    add_completion=False,
)


def _side(content) -> str:
    if content is None:
        return "missing"
    return f"{len(content.splitlines())} lines"


@conflicts_app.command("list")
def conflicts_list(ctx: typer.Context) -> None:
    """Show unresolved conflicts and remember them for this merge."""
    engine = get_engine(ctx)
    try:
        repo_root = engine.repo_root()
        conflicts = get_conflicts(engine.runner, repo_root)
        if conflicts:
            stored = load_stored_conflict_files(engine.runner, repo_root)
            save_stored_conflict_files(engine.runner, repo_root, stored + [c.file_path for c in conflicts])
    except GitError as e:
        fail(e)

    if not conflicts:
        typer.echo("No unresolved conflicts.")
        return
    for conflict in conflicts:
        typer.echo(
            f"{conflict.file_path}  base: {_side(conflict.base_content)}, "
            f"ours: {_side(conflict.ours_content)}, theirs: {_side(conflict.theirs_content)}"
        )
    typer.echo()
    typer.echo(f"Total: {len(conflicts)} conflict(s)")


@conflicts_app.command("resolved")
def conflicts_resolved(ctx: typer.Context) -> None:
    """Show files resolved so far in the current merge."""
    engine = get_engine(ctx)
    try:
        resolved = get_resolved_merge_files(engine.runner, engine.repo_root())
    except GitError as e:
        fail(e)

    if not resolved:
        typer.echo("No resolved files.")
        return
    for conflict in resolved:
        typer.echo(conflict.file_path)


@conflicts_app.command("clear")
def conflicts_clear(ctx: typer.Context) -> None:
    """Forget the stored conflict list once the merge is committed or aborted."""
    engine = get_engine(ctx)
    try:
        clear_stored_conflict_files(engine.runner, engine.repo_root())
    except GitError as e:
        fail(e)

    typer.echo("Cleared stored conflict list.")
