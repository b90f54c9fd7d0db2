"""Copy-versus-link decision for regular files.

A file is hard linked from the reference snapshot when the reference copy
is at least as recent as the source's last modification. Modification
times are the only signal: a reference whose mtime was moved forward past
a later source edit will be linked even though its content differs.
``verify_content`` adds an opt-in byte comparison for callers that do not
want to take that risk.
"""

import hashlib
import logging
import os
from pathlib import Path

from treebackup.backup.models import BackupDecision

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


def decide_backup(
    source: Path,
    reference: Path | None,
    *,
    verify_content: bool = False,
) -> BackupDecision:
    """Decide whether a source file is copied or linked from the reference.

    The decision is COPY when no reference is given, the reference does not
    exist, or either modification time cannot be read. Otherwise it is LINK
    when ``reference_mtime >= source_mtime`` and COPY when the source is newer.

    Args:
        source: Regular file in the source tree.
        reference: Same relative path in the reference snapshot, if any.
        verify_content: If True, only link when both files hold the same bytes.

    Returns:
        BackupDecision.COPY or BackupDecision.LINK.
    """
    if reference is None:
        return BackupDecision.COPY

    try:
        reference_mtime = os.stat(reference).st_mtime_ns
        source_mtime = os.stat(source).st_mtime_ns
    except OSError:
        return BackupDecision.COPY

    if reference_mtime < source_mtime:
        return BackupDecision.COPY

    if verify_content and not files_identical(source, reference):
        logger.warning("Reference %s is not older than %s but differs; copying", reference, source)
        return BackupDecision.COPY

    return BackupDecision.LINK


def files_identical(first: Path, second: Path) -> bool:
    """Compare two files by size and SHA-256 digest.

    Unreadable files compare as different.
    """
    try:
        if os.stat(first).st_size != os.stat(second).st_size:
            return False
        return _sha256(first) == _sha256(second)
    except OSError as e:
        logger.debug("Cannot compare %s and %s: %s", first, second, e)
        return False


def _sha256(path: Path) -> str:
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()
