"""Selection and deletion workflow over the found targets."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Sequence

from .cleaner import Cleaner, DeletionResult
from .errors import SessionStateError
from .info import TargetInfo
from .walker import default_workers

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Lifecycle of a selection session."""

    COLLECTING = "collecting"
    READY = "ready"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    DELETING = "deleting"
    DONE = "done"


class DeletionOutcome(Enum):
    """Terminal outcome of a session."""

    ABORTED = "aborted"
    PARTIAL = "partial"
    COMPLETE = "complete"


@dataclass
class DeletionReport:
    """Per-target results of the delete phase."""

    outcome: DeletionOutcome
    results: list[DeletionResult] = field(default_factory=list)

    @property
    def succeeded(self) -> list[DeletionResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[DeletionResult]:
        return [r for r in self.results if not r.success]

    @property
    def freed_bytes(self) -> int:
        return sum(r.size for r in self.results if r.success)


class SelectionSession:
    """Holds found targets, the user's selection, and drives deletion.

    Targets keep the order in which they were added, so indices stay
    stable for the presentation layer. Selection can only change once
    collection has finished, and the session is consumed by exactly one
    :meth:`confirm` or :meth:`abort`.
    """

    def __init__(self, targets: Iterable[TargetInfo] = (), cleaner: Cleaner | None = None) -> None:
        self.cleaner = cleaner or Cleaner()
        self.state = SessionState.COLLECTING
        self.report: DeletionReport | None = None
        self._targets: list[TargetInfo] = []
        self._selected: set[int] = set()
        self._lock = threading.Lock()
        for info in targets:
            self.add(info)

    @property
    def targets(self) -> Sequence[TargetInfo]:
        with self._lock:
            return tuple(self._targets)

    def __len__(self) -> int:
        with self._lock:
            return len(self._targets)

    @property
    def total_size(self) -> int:
        with self._lock:
            return sum(info.size for info in self._targets)

    def _require(self, *states: SessionState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise SessionStateError(f"Session is {self.state.value}; expected {allowed}")

    def add(self, info: TargetInfo) -> int:
        """Append a target while collecting and return its index."""
        with self._lock:
            self._require(SessionState.COLLECTING)
            self._targets.append(info)
            return len(self._targets) - 1

    def finish(self) -> None:
        """Mark collection as complete; the target list is final from now on."""
        with self._lock:
            self._require(SessionState.COLLECTING)
            self.state = SessionState.READY

    def _begin_selection(self) -> None:
        self._require(SessionState.READY, SessionState.AWAITING_CONFIRMATION)
        self.state = SessionState.AWAITING_CONFIRMATION

    def toggle(self, index: int) -> bool:
        """Flip the selection of one target.

        Returns:
            True if the target is selected afterwards.

        Raises:
            IndexError: If the index is out of range.

        """
        with self._lock:
            self._begin_selection()
            if not 0 <= index < len(self._targets):
                raise IndexError(f"No target at index {index}")
            if index in self._selected:
                self._selected.remove(index)
                return False
            self._selected.add(index)
            return True

    def select_all(self) -> None:
        with self._lock:
            self._begin_selection()
            self._selected = set(range(len(self._targets)))

    def select_none(self) -> None:
        with self._lock:
            self._begin_selection()
            self._selected.clear()

    def selected(self) -> frozenset[int]:
        with self._lock:
            return frozenset(self._selected)

    def abort(self) -> DeletionReport:
        """End the session without deleting anything."""
        with self._lock:
            self._require(SessionState.COLLECTING, SessionState.READY, SessionState.AWAITING_CONFIRMATION)
            self.state = SessionState.DONE
            self.report = DeletionReport(outcome=DeletionOutcome.ABORTED)
        logger.info("Deletion aborted")
        return self.report

    def confirm(self, workers: int | None = None) -> DeletionReport:
        """Delete every selected target.

        Targets are removed concurrently; they never nest, so no deletion
        can interfere with another. A failure is recorded in the report and
        does not stop the remaining deletions.

        Args:
            workers: Thread pool size. Defaults to the CPU count.

        Returns:
            Report with one result per selected target, in index order.

        """
        with self._lock:
            self._require(SessionState.READY, SessionState.AWAITING_CONFIRMATION)
            self.state = SessionState.DELETING
            chosen = [self._targets[i] for i in sorted(self._selected)]

        logger.info("Deleting %d target(s)", len(chosen))
        with ThreadPoolExecutor(
            max_workers=workers or default_workers(),
            thread_name_prefix="projclean-delete",
        ) as pool:
            results = list(pool.map(self.cleaner.delete_target, chosen))

        outcome = DeletionOutcome.COMPLETE if all(r.success for r in results) else DeletionOutcome.PARTIAL
        with self._lock:
            self.report = DeletionReport(outcome=outcome, results=results)
            self.state = SessionState.DONE
        return self.report
