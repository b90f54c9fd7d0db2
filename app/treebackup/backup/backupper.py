"""Per-item backup strategies.

Classifies a single source entry and performs the matching filesystem
action in the target tree: create a directory, copy or hard link a
regular file, or write a symlink marker file. Symlinks are stored as
plain files containing ``LINK <target>`` so that backups can live on
filesystems where creating symlinks is not permitted.
"""

import logging
import os
import shutil
import stat
from pathlib import Path

from treebackup.backup.errors import BackupConflictError, BackupIOError, LinkTargetEncodingError
from treebackup.backup.models import (
    BackupAction,
    BackupDecision,
    BackupEvent,
    ClassifiedItem,
    ItemKind,
)
from treebackup.backup.staleness import decide_backup

logger = logging.getLogger(__name__)

# Prefix of the file content written in place of a symlink
SYMLINK_MARKER_PREFIX = "LINK "


def classify_item(path: Path) -> ClassifiedItem:
    """Classify a source entry from its own metadata (symlinks are not followed).

    Args:
        path: Source entry to inspect.

    Returns:
        ClassifiedItem for the entry.

    Raises:
        BackupIOError: If the metadata or link target cannot be read.
        LinkTargetEncodingError: If a symlink target is not valid UTF-8.
    """
    path = Path(path)
    try:
        st = os.lstat(path)
    except OSError as e:
        raise BackupIOError(f"Could not retrieve metadata of {path}: {e}", path) from e

    if stat.S_ISDIR(st.st_mode):
        return ClassifiedItem(path=path, kind=ItemKind.DIRECTORY)
    if stat.S_ISREG(st.st_mode):
        return ClassifiedItem(path=path, kind=ItemKind.FILE, mtime_ns=st.st_mtime_ns)
    if stat.S_ISLNK(st.st_mode):
        return ClassifiedItem(
            path=path, kind=ItemKind.SYMLINK, link_target=read_link_target(path)
        )
    return ClassifiedItem(path=path, kind=ItemKind.OTHER)


def read_link_target(path: Path) -> str:
    """Read the target of a symlink as UTF-8 text.

    Raises:
        BackupIOError: If the link cannot be read.
        LinkTargetEncodingError: If the target bytes are not valid UTF-8.
    """
    try:
        raw = os.readlink(os.fsencode(path))
    except OSError as e:
        raise BackupIOError(f"Cannot read link {path}: {e}", path) from e
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        msg = f"Cannot represent target of link {path} as UTF-8"
        raise LinkTargetEncodingError(msg) from e


def ensure_directory_exists(path: Path) -> None:
    """Create a directory and all missing ancestors; no-op if it exists.

    Raises:
        BackupIOError: If the directory cannot be created.
    """
    try:
        Path(path).mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise BackupIOError(f"Could not create directory {path}: {e}", path) from e


class ItemBackupper:
    """Backs up one source entry at a time into the target tree.

    Holds no state between calls apart from its options.

    Args:
        dry_run: Classify and decide as usual, but never touch the target tree.
        verify_content: Only hard link files whose bytes match the reference.
    """

    def __init__(self, *, dry_run: bool = False, verify_content: bool = False) -> None:
        self._dry_run = dry_run
        self._verify_content = verify_content

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    def backup_item(
        self,
        source: Path,
        target: Path,
        reference: Path | None = None,
    ) -> BackupEvent:
        """Back up a single entry, dispatching on its type.

        Entries that are neither directories, regular files nor symlinks
        are skipped without creating anything.

        Args:
            source: Entry in the source tree.
            target: Mirrored path in the target tree.
            reference: Mirrored path in the reference tree, if any.

        Returns:
            BackupEvent describing what was done.

        Raises:
            BackupError: On any filesystem failure or conflict.
        """
        item = classify_item(source)

        if item.kind == ItemKind.DIRECTORY:
            return self.backup_directory(target, source=item.path)
        if item.kind == ItemKind.FILE:
            return self.backup_file(item.path, target, reference)
        if item.kind == ItemKind.SYMLINK:
            return self.backup_symlink(item.path, target, link_target=item.link_target)

        logger.debug("Skipping unsupported entry %s", item.path)
        return BackupEvent(action=BackupAction.UNSUPPORTED, source=item.path)

    def backup_directory(self, target: Path, *, source: Path | None = None) -> BackupEvent:
        """Create the target directory if missing.

        Args:
            target: Directory to create.
            source: Source directory, used for reporting only.

        Returns:
            BackupEvent with DIR if created, DIR_EXISTS if already present.

        Raises:
            BackupConflictError: If the target exists but is not a real directory.
            BackupIOError: If the directory cannot be created.
        """
        target = Path(target)
        source = Path(source) if source is not None else target

        try:
            st = os.lstat(target)
        except FileNotFoundError:
            st = None
        except OSError as e:
            raise BackupIOError(f"Could not inspect existing target {target}: {e}", target) from e

        if st is not None:
            # Symlinks are never directories here, whatever they point at
            if not stat.S_ISDIR(st.st_mode):
                msg = f"Existing target {target} is not a directory"
                raise BackupConflictError(msg)
            return BackupEvent(
                action=BackupAction.DIR_EXISTS,
                source=source,
                target=target,
                dry_run=self._dry_run,
            )

        logger.debug("DIR  %s", target)
        if not self._dry_run:
            ensure_directory_exists(target)
        return BackupEvent(
            action=BackupAction.DIR,
            source=source,
            target=target,
            dry_run=self._dry_run,
        )

    def backup_file(
        self,
        source: Path,
        target: Path,
        reference: Path | None = None,
    ) -> BackupEvent:
        """Copy a regular file, or hard link it from the reference snapshot.

        Args:
            source: Regular file in the source tree.
            target: Path to create in the target tree.
            reference: Same relative path in the reference tree, if any.

        Returns:
            BackupEvent with COPY or LINK.

        Raises:
            BackupConflictError: If a directory occupies the target path.
            BackupIOError: If the copy, link or parent creation fails.
        """
        source = Path(source)
        target = Path(target)
        reference = Path(reference) if reference is not None else None

        if not self._dry_run:
            ensure_directory_exists(target.parent)

        decision = decide_backup(source, reference, verify_content=self._verify_content)

        if decision == BackupDecision.LINK and reference is not None:
            logger.debug("LINK %s", reference)
            if not self._dry_run:
                self._clear_target(target)
                try:
                    os.link(reference, target)
                except OSError as e:
                    msg = f"Could not link {reference} to {target}: {e}"
                    raise BackupIOError(msg, target) from e
            return BackupEvent(
                action=BackupAction.LINK,
                source=source,
                target=target,
                reference=reference,
                dry_run=self._dry_run,
            )

        logger.debug("COPY %s", target)
        if not self._dry_run:
            self._clear_target(target)
            try:
                shutil.copy(source, target)
            except OSError as e:
                raise BackupIOError(f"Could not copy {source} to {target}: {e}", target) from e
        return BackupEvent(
            action=BackupAction.COPY,
            source=source,
            target=target,
            dry_run=self._dry_run,
        )

    def backup_symlink(
        self,
        source: Path,
        target: Path,
        *,
        link_target: str | None = None,
    ) -> BackupEvent:
        """Store a symlink as a marker file containing ``LINK <target>``.

        Args:
            source: Symlink in the source tree.
            target: Path of the marker file to write.
            link_target: Already-read link target; read from ``source`` if None.

        Returns:
            BackupEvent with SYMLINK.

        Raises:
            LinkTargetEncodingError: If the link target is not valid UTF-8.
            BackupIOError: If the link cannot be read or the marker cannot be written.
        """
        source = Path(source)
        target = Path(target)
        if link_target is None:
            link_target = read_link_target(source)

        logger.debug("SYM  %s -> %s", target, link_target)
        if not self._dry_run:
            ensure_directory_exists(target.parent)
            self._clear_target(target)
            content = f"{SYMLINK_MARKER_PREFIX}{link_target}"
            try:
                target.write_bytes(content.encode("utf-8"))
            except OSError as e:
                raise BackupIOError(f"Cannot write link marker {target}: {e}", target) from e

        return BackupEvent(
            action=BackupAction.SYMLINK,
            source=source,
            target=target,
            link_target=link_target,
            dry_run=self._dry_run,
        )

    def _clear_target(self, target: Path) -> None:
        """Remove a file left at ``target`` by an earlier run.

        Unlinking rather than truncating keeps a previously hard linked
        reference file intact.
        """
        try:
            st = os.lstat(target)
        except FileNotFoundError:
            return
        except OSError as e:
            raise BackupIOError(f"Could not inspect existing target {target}: {e}", target) from e

        if stat.S_ISDIR(st.st_mode):
            msg = f"Existing target {target} is a directory"
            raise BackupConflictError(msg)
        try:
            os.unlink(target)
        except OSError as e:
            raise BackupIOError(f"Could not replace existing target {target}: {e}", target) from e
