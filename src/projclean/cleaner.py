"""Removal of found target directories."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from .errors import DeletionError

if TYPE_CHECKING:
    from .info import TargetInfo


@dataclass
class DeletionResult:
    """Result of a deletion attempt."""

    path: Path
    success: bool
    action: str  # "deleted", "skipped", "error"
    size: int = 0
    error: DeletionError | None = None

    @property
    def reason(self) -> str | None:
        return str(self.error) if self.error else None


class Cleaner:
    """Deletes target directory trees."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        """Initialize the cleaner.

        Args:
            logger: Logger instance. Defaults to the ``projclean`` logger.

        """
        self.logger = logger or logging.getLogger("projclean")

    def delete_target(self, info: TargetInfo) -> DeletionResult:
        """Remove a target directory and everything below it.

        Failures are returned, never raised.

        Args:
            info: Target to delete.

        Returns:
            DeletionResult with operation details.

        """
        path = info.path

        if not path.exists() and not path.is_symlink():
            error = DeletionError(path, "missing", "Directory no longer exists")
            self.logger.warning("Skipping %s: %s", path, error)
            return DeletionResult(path=path, success=False, action="skipped", error=error)

        try:
            shutil.rmtree(path)
        except FileNotFoundError:
            error = DeletionError(path, "missing", "Directory no longer exists")
            self.logger.warning("Skipping %s: %s", path, error)
            return DeletionResult(path=path, success=False, action="skipped", error=error)
        except PermissionError as e:
            self.logger.error("Permission denied deleting %s: %s", path, e)
            return DeletionResult(
                path=path,
                success=False,
                action="error",
                error=DeletionError(path, "permission", f"Permission denied: {e}"),
            )
        except OSError as e:
            self.logger.error("Error deleting %s: %s", path, e)
            return DeletionResult(
                path=path,
                success=False,
                action="error",
                error=DeletionError(path, "io", str(e)),
            )

        self.logger.info("Deleted %s", path)
        return DeletionResult(path=path, success=True, action="deleted", size=info.size)
