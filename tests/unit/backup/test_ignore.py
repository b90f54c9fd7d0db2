"""Unit tests for ignore filters.

Tests glob translation, pattern compilation errors, anchored matching
and loading patterns from a file.
"""

from pathlib import Path

import pytest
from treebackup.backup.errors import IgnorePatternError, PathOutsideRootError
from treebackup.backup.ignore import (
    GlobIgnoreFilter,
    GlobPattern,
    IgnoreFilter,
    NoOpIgnoreFilter,
    load_ignore_filter,
    read_pattern_lines,
)


class TestNoOpIgnoreFilter:
    """Tests for NoOpIgnoreFilter."""

    def test_never_ignores(self, tmp_path: Path) -> None:
        """Every path is accepted."""
        ignore_filter = NoOpIgnoreFilter()

        assert ignore_filter.is_ignored(tmp_path / "anything") is False
        assert ignore_filter.is_ignored(Path("/not/under/any/root")) is False

    def test_satisfies_protocol(self) -> None:
        """NoOpIgnoreFilter is an IgnoreFilter."""
        assert isinstance(NoOpIgnoreFilter(), IgnoreFilter)


class TestGlobPattern:
    """Tests for single pattern compilation and matching."""

    @pytest.mark.parametrize(
        ("pattern", "candidate"),
        [
            ("root/foo", "root/foo"),
            ("root/*.txt", "root/notes.txt"),
            ("root/*", "root/.hidden"),
            ("root/?.log", "root/a.log"),
            ("root/**/cache", "root/cache"),
            ("root/**/cache", "root/a/b/cache"),
            ("**/*.tmp", "root/deep/dir/x.tmp"),
            ("root/build/**", "root/build/out/app.bin"),
            ("root/[abc]x", "root/bx"),
            ("root/[a-c]x", "root/cx"),
            ("root/[!a]x", "root/zx"),
            ("root/[]]x", "root/]x"),
            ("root/a+b(c)", "root/a+b(c)"),
            ("root/[[]x", "root/[x"),
            ("root/[*]", "root/*"),
            ("root/a\\b", "root/a\\b"),
            ("root/a\\*", "root/a\\xyz"),
        ],
    )
    def test_matches(self, pattern: str, candidate: str) -> None:
        """Patterns match the expected anchored paths."""
        assert GlobPattern.compile(pattern).matches(candidate) is True

    @pytest.mark.parametrize(
        ("pattern", "candidate"),
        [
            ("root/foo", "root/foo/bar"),
            ("root/foo", "root/foobar"),
            ("root/*.txt", "root/dir/notes.txt"),
            ("root/?", "root/ab"),
            ("root/a?b", "root/a/b"),
            ("root/[!a]x", "root/ax"),
            ("root/[a-c]x", "root/dx"),
            ("root/[*]", "root/x"),
            ("foo", "root/foo"),
        ],
    )
    def test_does_not_match(self, pattern: str, candidate: str) -> None:
        """Wildcards do not cross separators and patterns are anchored."""
        assert GlobPattern.compile(pattern).matches(candidate) is False

    def test_empty_pattern_matches_nothing_anchored(self) -> None:
        """An empty line compiles but never matches an anchored path."""
        pattern = GlobPattern.compile("")

        assert pattern.matches("root") is False
        assert pattern.matches("root/x") is False

    @pytest.mark.parametrize(
        "pattern",
        [
            "root/[abc",
            "root/***",
            "root/a**",
            "root/**b",
            "root/[!]",
        ],
    )
    def test_malformed_pattern_raises(self, pattern: str) -> None:
        """Malformed patterns are construction errors."""
        with pytest.raises(IgnorePatternError, match="Could not compile pattern"):
            GlobPattern.compile(pattern)


class TestGlobIgnoreFilter:
    """Tests for GlobIgnoreFilter."""

    def test_empty_filter_ignores_nothing(self, tmp_path: Path) -> None:
        """A filter without patterns ignores nothing."""
        ignore_filter = GlobIgnoreFilter(tmp_path)

        assert ignore_filter.patterns == ()
        assert ignore_filter.is_ignored(tmp_path / "foo") is False

    def test_matches_relative_to_root(self, tmp_path: Path) -> None:
        """Paths are matched relative to the root under the anchor segment."""
        ignore_filter = GlobIgnoreFilter(tmp_path, ["root/skip", "root/**/*.tmp"])

        assert ignore_filter.is_ignored(tmp_path / "skip") is True
        assert ignore_filter.is_ignored(tmp_path / "a" / "b" / "c.tmp") is True
        assert ignore_filter.is_ignored(tmp_path / "keep") is False
        assert ignore_filter.is_ignored(tmp_path / "a" / "skip") is False

    def test_patterns_independent_of_root_location(self, tmp_path: Path) -> None:
        """The same pattern works for trees stored in different places."""
        first = GlobIgnoreFilter(tmp_path / "one", ["root/cache"])
        second = GlobIgnoreFilter(tmp_path / "two" / "nested", ["root/cache"])

        assert first.is_ignored(tmp_path / "one" / "cache") is True
        assert second.is_ignored(tmp_path / "two" / "nested" / "cache") is True

    def test_any_pattern_matches(self, tmp_path: Path) -> None:
        """Order does not matter; any match ignores the path."""
        forward = GlobIgnoreFilter(tmp_path, ["root/a", "root/b"])
        backward = GlobIgnoreFilter(tmp_path, ["root/b", "root/a"])

        for ignore_filter in (forward, backward):
            assert ignore_filter.is_ignored(tmp_path / "a") is True
            assert ignore_filter.is_ignored(tmp_path / "b") is True

    def test_path_outside_root_raises(self, tmp_path: Path) -> None:
        """Querying a path outside the root is an error, not a silent False."""
        ignore_filter = GlobIgnoreFilter(tmp_path / "source", ["root/*"])

        with pytest.raises(PathOutsideRootError, match="Cannot determine relative path"):
            ignore_filter.is_ignored(tmp_path / "elsewhere" / "file")

    def test_invalid_pattern_reports_line(self, tmp_path: Path) -> None:
        """Compilation errors name the offending pattern index."""
        with pytest.raises(IgnorePatternError, match="line 2"):
            GlobIgnoreFilter(tmp_path, ["root/ok", "root/[bad"])

    def test_satisfies_protocol(self, tmp_path: Path) -> None:
        """GlobIgnoreFilter is an IgnoreFilter."""
        assert isinstance(GlobIgnoreFilter(tmp_path), IgnoreFilter)


class TestPatternFile:
    """Tests for loading patterns from a file."""

    def test_from_file(self, tmp_path: Path) -> None:
        """Each line becomes one pattern."""
        ignore_file = tmp_path / "wbck-ignore.txt"
        ignore_file.write_text("root/.cache\nroot/**/node_modules\n")

        ignore_filter = GlobIgnoreFilter.from_file(tmp_path, ignore_file)

        assert [p.text for p in ignore_filter.patterns] == ["root/.cache", "root/**/node_modules"]
        assert ignore_filter.is_ignored(tmp_path / ".cache") is True
        assert ignore_filter.is_ignored(tmp_path / "web" / "node_modules") is True

    def test_crlf_line_endings(self, tmp_path: Path) -> None:
        """Windows line endings are stripped."""
        ignore_file = tmp_path / "ignore.txt"
        ignore_file.write_bytes(b"root/a\r\nroot/b\r\n")

        assert read_pattern_lines(ignore_file) == ["root/a", "root/b"]

    def test_lines_are_not_special_cased(self, tmp_path: Path) -> None:
        """Comment-like and blank lines are kept as patterns."""
        ignore_file = tmp_path / "ignore.txt"
        ignore_file.write_text("# comment\n\nroot/x\n")

        assert read_pattern_lines(ignore_file) == ["# comment", "", "root/x"]

    def test_bad_line_is_fatal(self, tmp_path: Path) -> None:
        """A malformed line aborts construction with file and line number."""
        ignore_file = tmp_path / "ignore.txt"
        ignore_file.write_text("root/ok\nroot/[broken\n")

        with pytest.raises(IgnorePatternError, match="line 2") as exc_info:
            GlobIgnoreFilter.from_file(tmp_path, ignore_file)

        assert str(ignore_file) in str(exc_info.value)

    def test_missing_file(self, tmp_path: Path) -> None:
        """An unreadable pattern file is an IgnorePatternError."""
        with pytest.raises(IgnorePatternError, match="Could not read ignore file"):
            GlobIgnoreFilter.from_file(tmp_path, tmp_path / "missing.txt")

    def test_non_utf8_file(self, tmp_path: Path) -> None:
        """A pattern file that is not UTF-8 is rejected."""
        ignore_file = tmp_path / "ignore.txt"
        ignore_file.write_bytes(b"root/\xff\n")

        with pytest.raises(IgnorePatternError, match="not valid UTF-8"):
            read_pattern_lines(ignore_file)


class TestLoadIgnoreFilter:
    """Tests for load_ignore_filter."""

    def test_none_returns_noop(self, tmp_path: Path) -> None:
        """No ignore file yields the no-op filter."""
        assert isinstance(load_ignore_filter(tmp_path, None), NoOpIgnoreFilter)

    def test_file_returns_glob_filter(self, tmp_path: Path) -> None:
        """An ignore file yields a compiled glob filter."""
        ignore_file = tmp_path / "ignore.txt"
        ignore_file.write_text("root/x\n")

        ignore_filter = load_ignore_filter(tmp_path, ignore_file)

        assert isinstance(ignore_filter, GlobIgnoreFilter)
        assert ignore_filter.root == tmp_path
