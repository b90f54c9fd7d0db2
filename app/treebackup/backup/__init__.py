"""Incremental tree backup engine.

This module provides the tree walker, ignore filters, per-item backup
strategies and the copy-versus-link staleness decision.
"""

from treebackup.backup.backupper import (
    SYMLINK_MARKER_PREFIX,
    ItemBackupper,
    classify_item,
    ensure_directory_exists,
    read_link_target,
)
from treebackup.backup.errors import (
    BackupConflictError,
    BackupError,
    BackupIOError,
    IgnorePatternError,
    LinkTargetEncodingError,
    PathOutsideRootError,
)
from treebackup.backup.ignore import (
    IGNORE_ANCHOR,
    GlobIgnoreFilter,
    GlobPattern,
    IgnoreFilter,
    NoOpIgnoreFilter,
    load_ignore_filter,
)
from treebackup.backup.models import (
    BackupAction,
    BackupDecision,
    BackupEvent,
    BackupReport,
    BackupRoots,
    ClassifiedItem,
    ItemKind,
)
from treebackup.backup.staleness import decide_backup, files_identical
from treebackup.backup.walker import iter_source_entries, run_backup

__all__ = [
    "IGNORE_ANCHOR",
    "SYMLINK_MARKER_PREFIX",
    "BackupAction",
    "BackupConflictError",
    "BackupDecision",
    "BackupError",
    "BackupEvent",
    "BackupIOError",
    "BackupReport",
    "BackupRoots",
    "ClassifiedItem",
    "GlobIgnoreFilter",
    "GlobPattern",
    "IgnoreFilter",
    "IgnorePatternError",
    "ItemBackupper",
    "ItemKind",
    "LinkTargetEncodingError",
    "NoOpIgnoreFilter",
    "PathOutsideRootError",
    "classify_item",
    "decide_backup",
    "ensure_directory_exists",
    "files_identical",
    "iter_source_entries",
    "load_ignore_filter",
    "read_link_target",
    "run_backup",
]
