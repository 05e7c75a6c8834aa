"""Rule parsing and ordered rule evaluation.

A rule string has the form ``TARGETS[@FLAGS]``. Both clauses are
comma-separated alternatives; each alternative is a literal name, a ``*``
glob alias or a regular expression (see :mod:`projclean.matcher`).

Examples::

    node_modules
    target@Cargo.toml
    .gradle,build@build.gradle,build.gradle.kts
    bin,obj@*.csproj,*.fsproj
    target/debug,target/release@Cargo.toml
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Callable, Iterable, Sequence

from .errors import InvalidRuleSyntax
from .matcher import PathMatcher

FLAG_SEPARATOR = "@"
ALTERNATIVE_SEPARATOR = ","

_OPENING = "([{"
_CLOSING = ")]}"


@dataclass(frozen=True)
class TargetSpec:
    """One target alternative: a name matcher and an optional sub-path."""

    matcher: PathMatcher
    subpath: str | None = None

    @property
    def head(self) -> str:
        return self.matcher.source


@dataclass(frozen=True)
class Rule:
    """A cleanup policy: target alternatives plus optional flag alternatives."""

    label: str
    targets: tuple[TargetSpec, ...]
    flags: tuple[PathMatcher, ...] = ()

    @property
    def requires_flag(self) -> bool:
        return bool(self.flags)

    def match_targets(self, name: str) -> list[TargetSpec]:
        """Return the target alternatives matching a directory name.

        Returned targets never nest: a bare target supersedes every sub-path,
        and a sub-path supersedes the sub-paths below it.
        """
        matched = [spec for spec in self.targets if spec.matcher.matches(name)]
        bare = [spec for spec in matched if spec.subpath is None]
        if bare:
            return bare[:1]

        paths = [PurePosixPath(spec.subpath) for spec in matched]
        return [
            spec
            for i, (spec, path) in enumerate(zip(matched, paths))
            if not any(other in path.parents or (other == path and j < i) for j, other in enumerate(paths))
        ]

    def is_flag(self, name: str) -> bool:
        """Check if a name satisfies this rule's flag requirement."""
        return any(flag.matches(name) for flag in self.flags)

    def __str__(self) -> str:
        return self.label


def split_alternatives(clause: str) -> list[str]:
    """Split a clause on commas that are not inside brackets.

    Keeps regex alternatives such as ``a{1,3}`` or ``[a,b]`` intact.
    """
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    escaped = False

    for ch in clause:
        if escaped:
            current.append(ch)
            escaped = False
            continue
        if ch == "\\":
            escaped = True
        elif ch in _OPENING:
            depth += 1
        elif ch in _CLOSING and depth > 0:
            depth -= 1
        elif ch == ALTERNATIVE_SEPARATOR and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(ch)

    parts.append("".join(current).strip())
    return parts


def _parse_target(alternative: str) -> TargetSpec:
    head, _sep, rest = alternative.partition("/")
    return TargetSpec(matcher=PathMatcher.compile(head.strip()), subpath=rest.strip("/") or None)


def parse_rule(text: str) -> Rule:
    """Parse a rule string.

    Args:
        text: Rule string such as ``target@Cargo.toml``.

    Returns:
        Parsed rule; its label is the stripped input.

    Raises:
        InvalidRuleSyntax: If the rule is empty, a clause is empty or an
            alternative is empty.
        InvalidPattern: If a target or flag pattern does not compile.

    """
    label = text.strip()
    if not label:
        raise InvalidRuleSyntax(text, "empty rule")

    if label.count(FLAG_SEPARATOR) > 1:
        raise InvalidRuleSyntax(text, f"more than one '{FLAG_SEPARATOR}'")

    target_clause, sep, flag_clause = label.partition(FLAG_SEPARATOR)
    target_clause = target_clause.strip()
    flag_clause = flag_clause.strip()

    if not target_clause:
        raise InvalidRuleSyntax(text, "empty target clause")
    if sep and not flag_clause:
        raise InvalidRuleSyntax(text, "empty flag clause")

    target_alternatives = split_alternatives(target_clause)
    flag_alternatives = split_alternatives(flag_clause) if flag_clause else []
    if any(not alt for alt in target_alternatives + flag_alternatives):
        raise InvalidRuleSyntax(text, "empty alternative")

    targets = tuple(_parse_target(alt) for alt in target_alternatives)
    flags = tuple(PathMatcher.compile(alt) for alt in flag_alternatives)

    return Rule(label=label, targets=targets, flags=flags)


@dataclass(frozen=True)
class RuleMatch:
    """The rule that claimed a directory name and its matching targets."""

    rule: Rule
    targets: tuple[TargetSpec, ...]


class RuleSet:
    """Ordered, immutable collection of rules; the first qualifying rule wins."""

    def __init__(self, rules: Iterable[Rule]) -> None:
        self._rules: tuple[Rule, ...] = tuple(rules)

    @classmethod
    def parse(cls, texts: Iterable[str | Rule]) -> RuleSet:
        """Build a rule set from rule strings (already-parsed rules pass through)."""
        return cls(text if isinstance(text, Rule) else parse_rule(text) for text in texts)

    @property
    def rules(self) -> Sequence[Rule]:
        return self._rules

    def match(self, name: str, has_flag: Callable[[Rule], bool] | None = None) -> RuleMatch | None:
        """Find the first rule that qualifies a directory name.

        Args:
            name: Directory name.
            has_flag: Tells whether a rule's flag is present next to the
                directory. Without it, flag requirements are not checked.

        Returns:
            The first rule, in order, whose targets match ``name`` and whose
            flag requirement holds; None if no rule qualifies.

        """
        for rule in self._rules:
            targets = rule.match_targets(name)
            if not targets:
                continue
            if rule.requires_flag and has_flag is not None and not has_flag(rule):
                continue
            return RuleMatch(rule=rule, targets=tuple(targets))
        return None

    def __iter__(self):
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __bool__(self) -> bool:
        return bool(self._rules)
