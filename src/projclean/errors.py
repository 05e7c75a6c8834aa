"""Error types for projclean."""

from __future__ import annotations

from pathlib import Path


class ProjcleanError(Exception):
    """Base class for all projclean errors."""


class InvalidPattern(ProjcleanError):
    """A name pattern could not be compiled."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"Invalid pattern '{pattern}': {reason}")
        self.pattern = pattern
        self.reason = reason


class InvalidRuleSyntax(ProjcleanError):
    """A rule string does not follow the ``targets[@flags]`` grammar."""

    def __init__(self, rule: str, reason: str) -> None:
        super().__init__(f"Invalid rule '{rule}': {reason}")
        self.rule = rule
        self.reason = reason


class InvalidFilter(ProjcleanError):
    """A time or size filter string is malformed."""

    def __init__(self, kind: str, value: str) -> None:
        super().__init__(f"Invalid {kind} value '{value}'")
        self.kind = kind
        self.value = value


class InvalidStartPath(ProjcleanError):
    """The scan root is missing or not a directory."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"The path '{path}' is not a directory")
        self.path = path


class SessionStateError(ProjcleanError):
    """An operation was called in a state that does not allow it."""


class ConfigError(ProjcleanError, ValueError):
    """Configuration file is malformed or holds invalid values."""


class TraversalIoError(ProjcleanError):
    """A directory could not be read during a scan.

    Recorded as a warning; the affected subtree is skipped.
    """

    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(f"Cannot read {path}: {cause.strerror or cause}")
        self.path = path
        self.cause = cause


class DeletionError(ProjcleanError):
    """A selected target could not be removed.

    ``kind`` is one of ``"missing"``, ``"permission"`` or ``"io"``.
    """

    def __init__(self, path: Path, kind: str, message: str) -> None:
        super().__init__(message)
        self.path = path
        self.kind = kind
