"""Name matching primitive shared by targets, flags and excludes."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

from .errors import InvalidPattern

# Names made only of these characters are compared literally
_LITERAL_RE = re.compile(r"^[\w.\- ]+$")


class MatcherKind(Enum):
    """How a pattern is compared against a name."""

    LITERAL = "literal"
    REGEX = "regex"


@dataclass(frozen=True)
class PathMatcher:
    """Matches bare file or directory names.

    Either an exact, case-sensitive literal or a regular expression that
    must match the whole name. Build instances with :meth:`compile`.
    """

    kind: MatcherKind
    source: str
    _regex: re.Pattern[str] | None = field(default=None, repr=False, compare=False)

    @classmethod
    def compile(cls, pattern: str) -> PathMatcher:
        """Compile a pattern string into a matcher.

        Args:
            pattern: Literal name (``node_modules``), glob alias starting
                with ``*`` (``*.csproj``) or regular expression.

        Returns:
            Immutable matcher.

        Raises:
            InvalidPattern: If the pattern is empty or the regex does not compile.

        """
        if not pattern:
            raise InvalidPattern(pattern, "empty pattern")

        if _LITERAL_RE.match(pattern):
            return cls(kind=MatcherKind.LITERAL, source=pattern)

        expression = _glob_to_regex(pattern) if pattern.startswith("*") else pattern
        try:
            regex = re.compile(expression)
        except re.error as e:
            raise InvalidPattern(pattern, str(e)) from e

        return cls(kind=MatcherKind.REGEX, source=pattern, _regex=regex)

    @property
    def is_literal(self) -> bool:
        return self.kind is MatcherKind.LITERAL

    def matches(self, name: str) -> bool:
        """Check whether ``name`` matches this pattern in full."""
        if self._regex is None:
            return name == self.source
        return self._regex.fullmatch(name) is not None

    def __str__(self) -> str:
        return self.source


def _glob_to_regex(pattern: str) -> str:
    """Translate a ``*``/``?`` glob into an unanchored regex body."""
    parts: list[str] = []
    for ch in pattern:
        if ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return "".join(parts)
