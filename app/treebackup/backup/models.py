"""Backup domain models.

This module defines the data structures passed between the tree walker,
the staleness decision and the item backupper: item classification,
per-file decisions, and the events reported for every action taken.
"""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class ItemKind(str, Enum):
    """Type of a visited source entry.

    Attributes:
        DIRECTORY: Regular directory.
        FILE: Regular file.
        SYMLINK: Symbolic link (never followed).
        OTHER: Device, socket, FIFO or anything else; skipped silently.
    """

    DIRECTORY = "directory"
    FILE = "file"
    SYMLINK = "symlink"
    OTHER = "other"


class BackupDecision(str, Enum):
    """How a regular file reaches the target tree.

    Attributes:
        COPY: Copy the source bytes into the target.
        LINK: Hard link the reference file into the target.
    """

    COPY = "copy"
    LINK = "link"


class BackupAction(str, Enum):
    """Action performed (or skipped) for a single entry."""

    DIR = "dir"
    DIR_EXISTS = "dir_exists"
    COPY = "copy"
    LINK = "link"
    SYMLINK = "symlink"
    IGNORED = "ignored"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True, slots=True)
class ClassifiedItem:
    """A source entry classified from its live filesystem metadata.

    Attributes:
        path: Absolute path of the entry.
        kind: Classification of the entry.
        mtime_ns: Modification time in nanoseconds (regular files only).
        link_target: Text of the link target (symlinks only).
    """

    path: Path
    kind: ItemKind
    mtime_ns: int | None = None
    link_target: str | None = None

    def __post_init__(self) -> None:
        """Validate that per-kind fields are consistent."""
        if self.kind == ItemKind.FILE and self.mtime_ns is None:
            msg = "Regular file items require mtime_ns"
            raise ValueError(msg)
        if self.kind == ItemKind.SYMLINK and self.link_target is None:
            msg = "Symlink items require link_target"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class BackupEvent:
    """Describes one action taken for a source entry.

    Attributes:
        action: What was done.
        source: Source entry path.
        target: Target path written (None for ignored/unsupported entries).
        reference: Reference path hard linked from (LINK only).
        link_target: Stored symlink target text (SYMLINK only).
        dry_run: True if the action was only simulated.
    """

    action: BackupAction
    source: Path
    target: Path | None = None
    reference: Path | None = None
    link_target: str | None = None
    dry_run: bool = False


@dataclass(slots=True)
class BackupReport:
    """Per-action counts collected during a backup run."""

    counts: Counter[BackupAction] = field(default_factory=Counter)

    def record(self, event: BackupEvent) -> None:
        """Count a single event."""
        self.counts[event.action] += 1

    def count(self, action: BackupAction) -> int:
        """Return the number of events recorded for an action."""
        return self.counts[action]

    @property
    def total(self) -> int:
        """Total number of entries visited, ignored ones included."""
        return sum(self.counts.values())


@dataclass(frozen=True, slots=True)
class BackupRoots:
    """The source, target and optional reference roots of one run.

    Every entry keeps the same relative path under all three roots.

    Attributes:
        source: Tree being backed up.
        target: Tree being written.
        reference: Previous backup used for hard-link reuse, if any.
    """

    source: Path
    target: Path
    reference: Path | None = None

    def target_for(self, relative: Path) -> Path:
        """Return the target path mirroring ``relative``."""
        return self.target / relative

    def reference_for(self, relative: Path) -> Path | None:
        """Return the reference path mirroring ``relative``, if a reference root is set."""
        if self.reference is None:
            return None
        return self.reference / relative
