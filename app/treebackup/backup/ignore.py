"""Ignore filters deciding which source entries are left out of a backup.

Patterns use shell glob syntax and are matched against the entry's path
relative to the source root, prefixed with the anchor segment ``root``.
A pattern file containing ``root/build`` and ``root/**/*.tmp`` therefore
skips the top-level ``build`` directory and every ``.tmp`` file, no matter
where the source tree lives on disk.

Supported syntax:
- ``*`` matches any run of characters within one path component.
- ``?`` matches a single character within one path component.
- ``**`` matches zero or more whole path components and must stand alone
  between separators (``a/**/b``, ``**/x``, ``a/**``).
- ``[abc]``, ``[a-z]`` and ``[!abc]`` match one character from a class.
- A backslash is an ordinary character; write ``[*]`` or ``[[]`` to match a
  wildcard character literally.

Every line of a pattern file is a pattern. There are no comments, no
negation and no blank-line handling; a line that does not compile aborts
filter construction.
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any, Protocol, runtime_checkable

from wcmatch import glob

from treebackup.backup.errors import IgnorePatternError, PathOutsideRootError

logger = logging.getLogger(__name__)

# Synthetic first component every relative path is matched under
IGNORE_ANCHOR = "root"


@runtime_checkable
class IgnoreFilter(Protocol):
    """Predicate restricting which source entries are mirrored."""

    def is_ignored(self, path: Path) -> bool:
        """Return True if the entry at ``path`` must be skipped.

        Raises:
            BackupError: If the filter cannot evaluate the path.
        """
        ...


class NoOpIgnoreFilter:
    """Ignore filter that never ignores anything."""

    def is_ignored(self, path: Path) -> bool:
        return False

    def __repr__(self) -> str:
        return "NoOpIgnoreFilter()"


# Separator-aware ``*`` and ``?``, ``**`` across components, dotfiles matched,
# no brace or extended-glob expansion.
GLOB_FLAGS = glob.GLOBSTAR | glob.DOTGLOB | glob.FORCEUNIX


def check_pattern_syntax(pattern: str) -> None:
    """Reject glob constructs that are ambiguous rather than literal.

    The matcher treats stray brackets and stars as literal text; here they
    are construction errors.

    Raises:
        ValueError: If ``**`` is not a whole path component or a
            character class is never closed.
    """
    for component in pattern.split("/"):
        if "**" in component and component != "**":
            msg = "recursive wildcards must form a single path component"
            raise ValueError(msg)

    i = 0
    n = len(pattern)
    while i < n:
        char = pattern[i]
        if char == "[":
            start = i
            i += 1
            if i < n and pattern[i] == "!":
                i += 1
            # A closing bracket right after the opening one is a literal member
            if i < n and pattern[i] == "]":
                i += 1
            close = pattern.find("]", i)
            if close == -1:
                msg = f"unclosed character class at position {start}"
                raise ValueError(msg)
            i = close
        i += 1


@dataclass(frozen=True, slots=True)
class GlobPattern:
    """A single compiled ignore pattern.

    Attributes:
        text: Pattern as written by the user.
        matcher: Compiled wcmatch matcher for anchored paths, None for an
            empty pattern, which matches nothing.
    """

    text: str
    matcher: Any

    @classmethod
    def compile(cls, text: str) -> "GlobPattern":
        """Compile a glob pattern.

        Raises:
            IgnorePatternError: If the pattern is malformed.
        """
        try:
            check_pattern_syntax(text)
            # Backslash is an ordinary character in pattern files
            literal = text.replace("\\", "\\\\")
            matcher = glob.compile(literal, flags=GLOB_FLAGS) if text else None
        except (ValueError, re.error) as e:
            raise IgnorePatternError(f"Could not compile pattern {text!r}: {e}") from e
        return cls(text=text, matcher=matcher)

    def matches(self, candidate: str) -> bool:
        """Check whether an anchored, ``/``-separated path matches."""
        return self.matcher is not None and bool(self.matcher.match(candidate))


class GlobIgnoreFilter:
    """Ignore filter backed by a set of glob patterns.

    The pattern set is compiled once at construction and never changes.
    Any matching pattern ignores the entry; order does not matter.

    Args:
        root: Source root the queried paths are made relative to.
        patterns: Pattern strings, compiled eagerly.

    Raises:
        IgnorePatternError: If any pattern fails to compile.
    """

    def __init__(self, root: Path, patterns: Iterable[str] = ()) -> None:
        self._root = Path(root)
        compiled: list[GlobPattern] = []
        for index, text in enumerate(patterns, start=1):
            try:
                compiled.append(GlobPattern.compile(text))
            except IgnorePatternError as e:
                raise IgnorePatternError(f"line {index}: {e}") from e
        self._patterns = tuple(compiled)

    @classmethod
    def from_file(cls, root: Path, path: Path) -> "GlobIgnoreFilter":
        """Build a filter from a pattern file, one pattern per line.

        Args:
            root: Source root the queried paths are made relative to.
            path: Pattern file to read (UTF-8).

        Returns:
            Compiled GlobIgnoreFilter.

        Raises:
            IgnorePatternError: If the file cannot be read or a line fails to compile.
        """
        lines = read_pattern_lines(path)
        try:
            result = cls(root, lines)
        except IgnorePatternError as e:
            raise IgnorePatternError(f"{path}: {e}") from e
        logger.debug("Loaded %d ignore pattern(s) from %s", len(result.patterns), path)
        return result

    @property
    def root(self) -> Path:
        return self._root

    @property
    def patterns(self) -> tuple[GlobPattern, ...]:
        return self._patterns

    def is_ignored(self, path: Path) -> bool:
        """Check a source entry against the pattern set.

        Args:
            path: Absolute path of an entry under the filter root.

        Returns:
            True if any pattern matches the anchored relative path.

        Raises:
            PathOutsideRootError: If ``path`` is not under the filter root.
        """
        try:
            relative = Path(path).relative_to(self._root)
        except ValueError as e:
            msg = f"Cannot determine relative path of {path} under {self._root}"
            raise PathOutsideRootError(msg) from e

        candidate = PurePosixPath(IGNORE_ANCHOR, *relative.parts).as_posix()
        return any(pattern.matches(candidate) for pattern in self._patterns)

    def __repr__(self) -> str:
        return f"GlobIgnoreFilter(root={str(self._root)!r}, patterns={len(self._patterns)})"


def read_pattern_lines(path: Path) -> list[str]:
    """Read a pattern file, returning one entry per line without line endings.

    Raises:
        IgnorePatternError: If the file cannot be read or is not valid UTF-8.
    """
    try:
        with open(path, encoding="utf-8") as f:
            return [line.rstrip("\n") for line in f]
    except UnicodeDecodeError as e:
        raise IgnorePatternError(f"Ignore file {path} is not valid UTF-8: {e}") from e
    except OSError as e:
        raise IgnorePatternError(f"Could not read ignore file {path}: {e}") from e


def load_ignore_filter(root: Path, ignore_file: Path | None) -> IgnoreFilter:
    """Return a glob filter for ``ignore_file``, or a no-op filter if None."""
    if ignore_file is None:
        return NoOpIgnoreFilter()
    return GlobIgnoreFilter.from_file(root, ignore_file)
