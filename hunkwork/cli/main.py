"""Main callback: global options, configuration and logging."""

from pathlib import Path
from typing import Optional

import typer

from hunkwork import __version__
from hunkwork.config import ConfigError, load_config
from hunkwork.log import configure_logging
from hunkwork.cli.utils import EngineContext, build_runner, fail


def main_command(
    ctx: typer.Context,
    repo: Optional[Path] = typer.Option(
        None,
        "--repo",
        "-C",
        help="Repository to operate on (defaults to the current directory)",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Config file to use instead of ~/.hunkwork/config.yaml",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log every git command at debug level",
    ),
    log_json: bool = typer.Option(
        False,
        "--log-json",
        help="Write logs as JSON lines",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
    ),
) -> None:
    """Local git engine: decorated history, smart stash pop, hunk staging, conflicts."""
    if version:
        typer.echo(f"hunkwork {__version__}")
        raise typer.Exit(0)

    try:
        config = load_config(config_file)
    except ConfigError as e:
        fail(e)

    configure_logging(
        level="DEBUG" if verbose else config.log_level,
        json_output=log_json or config.log_json,
    )
    ctx.obj = EngineContext(
        config=config,
        runner=build_runner(config),
        repo=repo,
        config_file=config_file,
    )

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
