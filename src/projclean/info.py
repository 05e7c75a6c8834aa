"""Size and modification-time enrichment for found targets."""

from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from .filters import age_in_days

if TYPE_CHECKING:
    from .walker import Candidate

logger = logging.getLogger(__name__)


def directory_size(path: Path) -> int:
    """Sum the sizes of all regular files below ``path``.

    Symbolic links are not followed. Entries that cannot be read count as
    zero bytes.
    """
    total = 0
    stack = [path]

    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as entries:
                for entry in entries:
                    try:
                        if entry.is_file(follow_symlinks=False):
                            total += entry.stat(follow_symlinks=False).st_size
                        elif entry.is_dir(follow_symlinks=False):
                            stack.append(Path(entry.path))
                    except OSError as e:
                        logger.debug("Cannot stat %s: %s", entry.path, e)
        except OSError as e:
            logger.debug("Cannot read %s: %s", current, e)

    return total


def last_modified(path: Path) -> datetime:
    """Modification time of the directory itself, as an aware UTC datetime."""
    return datetime.fromtimestamp(os.stat(path, follow_symlinks=False).st_mtime, tz=UTC)


@dataclass(frozen=True)
class TargetInfo:
    """A found target with its computed size and modification time."""

    path: Path
    relative_path: Path
    rule_label: str
    size: int
    modified_at: datetime
    qualifies: bool = True

    @classmethod
    def from_candidate(cls, candidate: Candidate, root: Path) -> TargetInfo:
        """Compute size and mtime for a candidate.

        Raises:
            OSError: If the candidate's own metadata cannot be read.

        """
        modified_at = last_modified(candidate.path)
        try:
            relative_path = candidate.path.relative_to(root)
        except ValueError:
            relative_path = candidate.path

        return cls(
            path=candidate.path,
            relative_path=relative_path,
            rule_label=candidate.rule.label,
            size=directory_size(candidate.path),
            modified_at=modified_at,
        )

    def age_days(self, now: datetime | None = None) -> int:
        return age_in_days(self.modified_at, now)

    def with_qualifies(self, qualifies: bool) -> TargetInfo:
        return dataclasses.replace(self, qualifies=qualifies)
