"""CLI commands for treebackup.

This package contains all subcommand implementations.
"""

from treebackup.cli.commands import config, run

__all__ = ["config", "run"]
