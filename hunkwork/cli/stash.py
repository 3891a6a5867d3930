"""CLI commands for stash listing, pushing, smart pop and cleanup."""

import typer

from hunkwork.git.exceptions import GitError
from hunkwork.git.stash import list_stashes, stash_push, stash_staged
from hunkwork.stash import StashReconciler, cleanup_temp_stash
from hunkwork.cli.utils import fail, get_engine

# Subcommand group for stashes
stash_app = typer.Typer(
    name="stash",
    help="List, push, pop and clean up stashes",
    add_completion=False,
)


@stash_app.command("list")
def stash_list(ctx: typer.Context) -> None:
    """Show the stash list, most recent first."""
    engine = get_engine(ctx)
    try:
        entries = list_stashes(engine.runner, engine.repo_root())
    except GitError as e:
        fail(e)

    if not entries:
        typer.echo("No stashes.")
        return
    for entry in entries:
        branch = f" [{entry.branch_name}]" if entry.branch_name else ""
        typer.echo(f"{entry.reference} {entry.sha[:7]}{branch} {entry.message_short}")


@stash_app.command("pop")
def stash_pop_command(
    ctx: typer.Context,
    index: int = typer.Argument(0, help="Stash index to pop (0 = most recent)"),
) -> None:
    """Pop a stash, merging it into local changes when the tree is dirty."""
    engine = get_engine(ctx)
    reconciler = StashReconciler(
        engine.runner,
        fuzz=engine.config.patch_fuzz,
        temp_stash_message=engine.config.temp_stash_message,
    )
    try:
        result = reconciler.pop_stash(engine.repo_root(), index)
    except GitError as e:
        fail(e)

    if result.success:
        typer.echo(f"Popped stash@{{{index}}}.")
        return

    if result.has_conflicts:
        typer.echo(result.merge_result.error_message or "Merge conflicts detected.")
        for path in result.conflicting_files:
            typer.echo(f"  conflict: {path}")
        if result.temp_stash is not None:
            typer.echo()
            typer.echo("Your local changes are kept in a temporary stash until you finish.")
            typer.echo("Run 'hunkwork stash cleanup' once the conflicts are resolved.")
        raise typer.Exit(1)

    fail(result.merge_result.error_message)


@stash_app.command("cleanup")
def stash_cleanup(ctx: typer.Context) -> None:
    """Drop temporary stashes left behind by a conflicting pop."""
    engine = get_engine(ctx)
    try:
        dropped = cleanup_temp_stash(
            engine.runner,
            engine.repo_root(),
            message=engine.config.temp_stash_message,
        )
    except GitError as e:
        fail(e)

    if dropped:
        typer.echo(f"Dropped {dropped} temporary stash(es).")
    else:
        typer.echo("No temporary stashes found.")


@stash_app.command("push")
def stash_push_command(
    ctx: typer.Context,
    message: str = typer.Option("WIP", "--message", "-m", help="Stash message"),
    staged: bool = typer.Option(False, "--staged", help="Stash only the staged changes"),
    keep_untracked: bool = typer.Option(
        False, "--keep-untracked", help="Leave untracked files in the working tree"
    ),
) -> None:
    """Stash local changes."""
    engine = get_engine(ctx)
    try:
        repo_root = engine.repo_root()
        if staged:
            result = stash_staged(engine.runner, repo_root, message)
        else:
            result = stash_push(engine.runner, repo_root, message, include_untracked=not keep_untracked)
    except GitError as e:
        fail(e)

    if not result.success:
        fail(result.stderr.strip() or result.output)
    typer.echo(result.output or "Stashed changes.")
