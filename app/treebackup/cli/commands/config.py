"""Configuration commands.

Provides commands to show the effective configuration and to write
a default configuration file.
"""

from typing import Annotated

import typer
from rich.table import Table

from treebackup.config import BackupConfig, ConfigError, load_config_or_default, save_config
from treebackup.core.paths import get_config_path
from treebackup.utils.formatting import (
    console,
    print_error,
    print_info,
    print_success,
    print_warning,
)

app = typer.Typer(
    help="Show or initialize the configuration.",
    no_args_is_help=True,
)


@app.command()
def show(ctx: typer.Context) -> None:
    """Show the effective configuration."""
    config_path = (ctx.obj or {}).get("config_path") or get_config_path()

    try:
        config = load_config_or_default(config_path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if config_path.exists():
        source = str(config_path)
    else:
        source = "defaults"
        print_info("No config file found, showing defaults.")
    table = Table(
        title=f"Configuration ({source})",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Setting", no_wrap=True)
    table.add_column("Value", style="info")

    for key, value in config.model_dump().items():
        table.add_row(key, str(value))

    console.print(table)


@app.command()
def init(
    ctx: typer.Context,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing config file."),
    ] = False,
) -> None:
    """Write a configuration file with default settings."""
    config_path = (ctx.obj or {}).get("config_path") or get_config_path()

    if config_path.exists() and not force:
        print_warning(f"Config already exists: {config_path} (use --force to overwrite)")
        raise typer.Exit(code=1)

    try:
        saved = save_config(BackupConfig(), config_path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Wrote default configuration to {saved}")
