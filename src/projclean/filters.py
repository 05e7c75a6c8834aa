"""Exclude, time and size predicates applied to scan results."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Iterator

from .errors import InvalidFilter

if TYPE_CHECKING:
    from .info import TargetInfo

# Binary storage units, 1024 ** (index + 1)
SIZE_UNITS = ("K", "M", "G", "T")

_NUMBER_RE = re.compile(r"^\d+(\.\d+)?$")
_DAY = timedelta(days=1)


class Comparison(Enum):
    """Direction of a threshold comparison, selected by a leading sign."""

    GREATER = "+"
    LESS = "-"
    EQUAL = ""


@dataclass(frozen=True)
class Threshold:
    """A value with a comparison direction, e.g. ``+30`` or ``-1M``."""

    value: int
    comparison: Comparison = Comparison.EQUAL

    def test(self, actual: int) -> bool:
        """Check an actual value against the threshold."""
        if self.comparison is Comparison.GREATER:
            return actual > self.value
        if self.comparison is Comparison.LESS:
            return actual < self.value
        return actual == self.value

    def __str__(self) -> str:
        return f"{self.comparison.value}{self.value}"


def split_comparison(text: str) -> tuple[Comparison, str]:
    """Strip the leading ``+``/``-`` sign from a filter value."""
    if text.startswith("+"):
        return Comparison.GREATER, text[1:]
    if text.startswith("-"):
        return Comparison.LESS, text[1:]
    return Comparison.EQUAL, text


def parse_size(text: str) -> int | None:
    """Convert ``512``, ``10K``, ``1.5M``, ``2G`` or ``1T`` to bytes.

    Returns None if the value cannot be parsed.
    """
    value = text.strip()
    multiplier = 1
    if value and value[-1].upper() in SIZE_UNITS:
        multiplier = 1024 ** (SIZE_UNITS.index(value[-1].upper()) + 1)
        value = value[:-1]

    if not _NUMBER_RE.match(value):
        return None
    return int(float(value) * multiplier)


def parse_time_filter(text: str) -> Threshold:
    """Parse a time filter in days, such as ``+30``.

    Raises:
        InvalidFilter: If the value is not a whole number of days.

    """
    comparison, value = split_comparison(text.strip())
    if not value.isdigit():
        raise InvalidFilter("time", text)
    return Threshold(int(value), comparison)


def parse_size_filter(text: str) -> Threshold:
    """Parse a size filter such as ``+1M``.

    Raises:
        InvalidFilter: If the value is not a number with an optional unit.

    """
    comparison, value = split_comparison(text.strip())
    size = parse_size(value)
    if size is None:
        raise InvalidFilter("size", text)
    return Threshold(size, comparison)


def age_in_days(modified_at: datetime, now: datetime | None = None) -> int:
    """Age of a timestamp in whole days, rounded up."""
    now = now or datetime.now(UTC)
    elapsed = max(now - modified_at, timedelta(0))
    return math.ceil(elapsed / _DAY)


class ExcludeSet:
    """Directory names pruned from the traversal at any depth."""

    def __init__(self, names: Iterable[str] = ()) -> None:
        self._names: frozenset[str] = frozenset(name.strip() for name in names if name.strip())

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._names))

    def __len__(self) -> int:
        return len(self._names)


@dataclass(frozen=True)
class TargetFilter:
    """Time and size predicates; a missing predicate always passes."""

    time: Threshold | None = None
    size: Threshold | None = None

    @classmethod
    def parse(cls, time: str | None = None, size: str | None = None) -> TargetFilter:
        """Build a filter from raw ``--time``/``--size`` strings."""
        return cls(
            time=parse_time_filter(time) if time else None,
            size=parse_size_filter(size) if size else None,
        )

    @property
    def is_active(self) -> bool:
        return self.time is not None or self.size is not None

    def evaluate(self, info: TargetInfo, now: datetime | None = None) -> bool:
        """Check whether a target satisfies every active predicate."""
        if self.time is not None and not self.time.test(age_in_days(info.modified_at, now)):
            return False
        if self.size is not None and not self.size.test(info.size):
            return False
        return True
