"""CLI package for treebackup.

This package contains the Typer application and all subcommands.
"""

from treebackup.cli.main import app

__all__ = ["app"]
