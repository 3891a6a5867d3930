"""CLI commands for configuration."""

import typer
import yaml

from hunkwork.config import get_config_file_path
from hunkwork.cli.utils import get_engine

# Subcommand group for configuration
config_app = typer.Typer(
    name="config",
    help="Show hunkwork configuration",
    add_completion=False,
)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the effective configuration."""
    engine = get_engine(ctx)
    config_file = engine.config_file or get_config_file_path()
    exists = "" if config_file.exists() else " (not found, using defaults)"
    typer.echo(f"Config file: {config_file}{exists}")
    typer.echo()
    typer.echo(yaml.safe_dump(engine.config.model_dump(), default_flow_style=False, sort_keys=False).rstrip())
