"""treebackup - Incremental, hard-link deduplicating directory backups."""

__version__ = "0.1.0"
