"""Exceptions raised by the backup engine.

Every failure aborts the whole run. Nothing in the engine catches and
retries; the CLI reports the first error and exits.
"""

from pathlib import Path


class BackupError(Exception):
    """Base exception for all backup engine errors."""


class BackupIOError(BackupError):
    """Raised when a filesystem operation fails.

    Attributes:
        path: The path the failed operation was acting on.
    """

    def __init__(self, message: str, path: Path | str) -> None:
        super().__init__(message)
        self.path = Path(path)


class BackupConflictError(BackupError):
    """Raised when a path exists but has the wrong type for the operation."""


class PathOutsideRootError(BackupConflictError):
    """Raised when a path is not located under the expected root."""


class LinkTargetEncodingError(BackupConflictError):
    """Raised when a symlink target cannot be represented as UTF-8 text."""


class IgnorePatternError(BackupError):
    """Raised when an ignore pattern file cannot be read or compiled."""
