"""Tree walker driving a full backup run.

Walks the source tree depth-first in pre-order (a directory before its
contents, siblings sorted by name), consults the ignore filter for every
entry, prunes ignored directories, and hands each remaining entry to the
item backupper under its mirrored target and reference paths.
"""

import logging
import os
from collections.abc import Callable, Iterator
from pathlib import Path

from treebackup.backup.backupper import ItemBackupper
from treebackup.backup.errors import BackupIOError, PathOutsideRootError
from treebackup.backup.ignore import IgnoreFilter, NoOpIgnoreFilter
from treebackup.backup.models import BackupAction, BackupEvent, BackupReport, BackupRoots

logger = logging.getLogger(__name__)

EventCallback = Callable[[BackupEvent], None]


def iter_source_entries(
    source: Path,
    ignore_filter: IgnoreFilter,
    on_ignored: Callable[[Path], None] | None = None,
) -> Iterator[Path]:
    """Yield every non-ignored entry below ``source`` in pre-order.

    The root itself is not yielded. Ignored directories are not descended
    into. Children of a directory are listed only after the directory has
    been yielded, so a consumer can create it before its contents arrive.
    Symlinked directories are yielded but never followed.

    Args:
        source: Root of the tree to walk.
        ignore_filter: Filter queried once per entry.
        on_ignored: Called with each ignored entry.

    Yields:
        Absolute paths of entries to back up.

    Raises:
        BackupIOError: If a directory cannot be enumerated.
        BackupError: If the ignore filter fails.
    """
    stack = _list_children(Path(source))
    stack.reverse()

    while stack:
        entry, is_directory = stack.pop()

        if ignore_filter.is_ignored(entry):
            logger.debug("skip %s", entry)
            if on_ignored is not None:
                on_ignored(entry)
            continue

        yield entry

        if is_directory:
            stack.extend(reversed(_list_children(entry)))


def _list_children(directory: Path) -> list[tuple[Path, bool]]:
    """List a directory's entries sorted by name.

    Returns:
        Tuples of (entry path, whether it is a real directory). Symlinks
        to directories count as non-directories.

    Raises:
        BackupIOError: If the directory cannot be read.
    """
    try:
        with os.scandir(directory) as it:
            children = sorted((entry.name, entry.is_dir(follow_symlinks=False)) for entry in it)
    except OSError as e:
        raise BackupIOError(f"Invalid directory entry in {directory}: {e}", directory) from e
    return [(directory / name, is_directory) for name, is_directory in children]


def relative_path(entry: Path, root: Path) -> Path:
    """Return ``entry`` relative to ``root``.

    Raises:
        PathOutsideRootError: If ``entry`` is not under ``root``.
    """
    try:
        return Path(entry).relative_to(root)
    except ValueError as e:
        msg = f"Cannot determine relative path of {entry} under {root}"
        raise PathOutsideRootError(msg) from e


def run_backup(
    source: Path,
    target: Path,
    reference: Path | None = None,
    ignore_filter: IgnoreFilter | None = None,
    *,
    backupper: ItemBackupper | None = None,
    on_event: EventCallback | None = None,
) -> BackupReport:
    """Mirror ``source`` into ``target``, reusing unchanged files from ``reference``.

    The run stops at the first error, leaving the target tree populated up
    to that point.

    Args:
        source: Existing directory to back up.
        target: Directory the backup is written under.
        reference: Previous backup to hard link unchanged files from.
        ignore_filter: Filter for entries to skip. Defaults to ignoring nothing.
        backupper: Item backupper to use. Defaults to a plain ItemBackupper.
        on_event: Called with every event, ignored entries included.

    Returns:
        BackupReport with per-action counts.

    Raises:
        BackupError: On the first filesystem failure, conflict or filter error.
    """
    roots = BackupRoots(
        source=Path(source),
        target=Path(target),
        reference=Path(reference) if reference is not None else None,
    )
    ignore_filter = ignore_filter if ignore_filter is not None else NoOpIgnoreFilter()
    backupper = backupper if backupper is not None else ItemBackupper()
    report = BackupReport()

    def emit(event: BackupEvent) -> None:
        report.record(event)
        if on_event is not None:
            on_event(event)

    def ignored(entry: Path) -> None:
        emit(BackupEvent(action=BackupAction.IGNORED, source=entry))

    for entry in iter_source_entries(roots.source, ignore_filter, on_ignored=ignored):
        relative = relative_path(entry, roots.source)
        event = backupper.backup_item(
            entry,
            roots.target_for(relative),
            roots.reference_for(relative),
        )
        emit(event)

    logger.info("Backup of %s finished: %d entries visited", roots.source, report.total)
    return report
