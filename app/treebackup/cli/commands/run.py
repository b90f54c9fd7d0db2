"""Backup run command.

Mirrors a source directory into a target directory, hard linking
unchanged files from an optional reference backup.
"""

from pathlib import Path
from typing import Annotated

import typer

from treebackup.backup.backupper import ItemBackupper
from treebackup.backup.errors import BackupError
from treebackup.backup.ignore import IgnoreFilter, load_ignore_filter
from treebackup.backup.walker import run_backup
from treebackup.cli.display import print_event, print_report_summary
from treebackup.config import BackupConfig, ConfigError, load_config_or_default
from treebackup.utils.formatting import console, print_error


def run(
    ctx: typer.Context,
    source: Annotated[
        Path,
        typer.Argument(help="Directory to back up."),
    ],
    target: Annotated[
        Path,
        typer.Argument(help="Existing directory to write the backup into."),
    ],
    reference: Annotated[
        Path | None,
        typer.Option(
            "--ref",
            "-r",
            help="Previous backup to hard link unchanged files from.",
        ),
    ] = None,
    ignore_file: Annotated[
        Path | None,
        typer.Option(
            "--ignore-file",
            "-i",
            help="Glob pattern file (default: wbck-ignore.txt in the source root).",
        ),
    ] = None,
    verify: Annotated[
        bool | None,
        typer.Option(
            "--verify/--no-verify",
            help="Compare file content before hard linking from the reference.",
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be done without writing."),
    ] = False,
) -> None:
    """Back up SOURCE into TARGET."""
    options = ctx.obj or {}
    quiet: bool = options.get("quiet", False)

    try:
        config = load_config_or_default(options.get("config_path"))
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if not quiet:
        console.print("Run backup", highlight=False)
        console.print(f"Source: {source}", highlight=False, markup=False, soft_wrap=True)
        console.print(f"Target: {target}", highlight=False, markup=False, soft_wrap=True)
        if reference is not None:
            console.print(
                f"With reference: {reference}", highlight=False, markup=False, soft_wrap=True
            )
        else:
            console.print("Without reference", highlight=False)

    _validate_paths(source, target, reference)

    try:
        ignore_filter = _resolve_ignore_filter(source, ignore_file, config, quiet)
        backupper = ItemBackupper(
            dry_run=dry_run,
            verify_content=config.verify_content if verify is None else verify,
        )
        on_event = print_event if config.show_progress and not quiet else None
        report = run_backup(
            source,
            target,
            reference,
            ignore_filter,
            backupper=backupper,
            on_event=on_event,
        )
    except BackupError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if not quiet:
        print_report_summary(report, dry_run=dry_run)


def _validate_paths(source: Path, target: Path, reference: Path | None) -> None:
    """Exit with an error unless all given roots exist."""
    if not source.exists():
        print_error(f"Source path {source} must exist")
        raise typer.Exit(code=1)
    if not target.exists():
        print_error(f"Target path {target} must exist")
        raise typer.Exit(code=1)
    if reference is not None and not reference.exists():
        print_error(f"If given reference path {reference} must exist")
        raise typer.Exit(code=1)


def _resolve_ignore_filter(
    source: Path,
    ignore_file: Path | None,
    config: BackupConfig,
    quiet: bool,
) -> IgnoreFilter:
    """Pick the explicit ignore file, the default one in the source root, or none."""
    if ignore_file is not None:
        if not ignore_file.is_file():
            print_error(f"Ignore file {ignore_file} must exist")
            raise typer.Exit(code=1)
    else:
        candidate = source / config.ignore_file_name
        ignore_file = candidate if candidate.is_file() else None

    if ignore_file is not None and not quiet:
        console.print(
            f"Read ignore spec from {ignore_file}", highlight=False, markup=False, soft_wrap=True
        )
    return load_ignore_filter(source, ignore_file)
