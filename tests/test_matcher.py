"""Tests for name matching."""

from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest

from projclean.errors import InvalidPattern
from projclean.matcher import MatcherKind, PathMatcher


class TestCompile:
    """Tests for pattern classification."""

    @pytest.mark.parametrize(
        "pattern",
        ["node_modules", "target", ".gradle", "build.gradle.kts", "Cargo.toml", "_build", "my-dir"],
    )
    def test_plain_names_are_literal(self, pattern: str) -> None:
        """Names made of word characters, dots and dashes are literals."""
        assert PathMatcher.compile(pattern).kind is MatcherKind.LITERAL

    @pytest.mark.parametrize("pattern", ["*.sln", "^(Debug|Release)$", r".*\.egg-info", "build[0-9]"])
    def test_other_patterns_are_regex(self, pattern: str) -> None:
        """Globs and regex syntax compile to regex matchers."""
        assert PathMatcher.compile(pattern).kind is MatcherKind.REGEX

    def test_empty_pattern_raises(self) -> None:
        """An empty pattern is rejected."""
        with pytest.raises(InvalidPattern, match="empty"):
            PathMatcher.compile("")

    def test_broken_regex_raises(self) -> None:
        """A regex that does not compile is rejected with the pattern in the message."""
        with pytest.raises(InvalidPattern, match=r"\(unclosed"):
            PathMatcher.compile("(unclosed")

    def test_matcher_is_immutable(self) -> None:
        """Matchers cannot be changed after construction."""
        matcher = PathMatcher.compile("target")
        with pytest.raises(FrozenInstanceError):
            matcher.source = "other"  # type: ignore[misc]


class TestLiteralMatching:
    """Tests for literal matchers."""

    def test_exact_name_matches(self) -> None:
        assert PathMatcher.compile("target").matches("target")

    @pytest.mark.parametrize("name", ["-target", "target-", "Target", "targets", "my-target"])
    def test_other_names_do_not_match(self, name: str) -> None:
        """Literal matching is case-sensitive and whole-name."""
        assert not PathMatcher.compile("target").matches(name)

    def test_dot_is_not_a_wildcard(self) -> None:
        """A literal dot only matches a dot."""
        matcher = PathMatcher.compile("Cargo.toml")
        assert matcher.matches("Cargo.toml")
        assert not matcher.matches("CargoXtoml")


class TestRegexMatching:
    """Tests for regex and glob matchers."""

    def test_regex_is_anchored(self) -> None:
        """Regex ``build`` never matches inside a longer name."""
        matcher = PathMatcher.compile("build|dist")
        assert matcher.matches("build")
        assert matcher.matches("dist")
        assert not matcher.matches("rebuild")
        assert not matcher.matches("buildx")

    def test_explicit_anchors_are_accepted(self) -> None:
        """Leading ``^`` and trailing ``$`` do not change the result."""
        matcher = PathMatcher.compile("^(Debug|Release)$")
        assert matcher.matches("Debug")
        assert matcher.matches("Release")
        assert not matcher.matches("Debug-")
        assert not matcher.matches("-Debug")

    def test_leading_star_glob(self) -> None:
        """``*.sln`` matches any name ending in ``.sln``."""
        matcher = PathMatcher.compile("*.sln")
        assert matcher.matches("App.sln")
        assert matcher.matches(".sln")
        assert not matcher.matches("App.sln.bak")
        assert not matcher.matches("Appxsln")

    def test_glob_question_mark(self) -> None:
        """``?`` in a glob matches exactly one character."""
        matcher = PathMatcher.compile("*.?sproj")
        assert matcher.matches("App.csproj")
        assert matcher.matches("App.fsproj")
        assert not matcher.matches("App.vcxproj")

    def test_str_returns_source(self) -> None:
        assert str(PathMatcher.compile("*.sln")) == "*.sln"
