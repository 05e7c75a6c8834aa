"""Scan orchestration: traversal, enrichment and filtering as one stream."""

from __future__ import annotations

import logging
import queue
import threading
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import UTC, datetime
from pathlib import Path
from typing import Iterable, Iterator

from .errors import InvalidStartPath, TraversalIoError
from .filters import ExcludeSet, TargetFilter, Threshold, parse_size_filter, parse_time_filter
from .info import TargetInfo
from .rules import Rule, RuleSet
from .walker import Candidate, Walker, default_workers

logger = logging.getLogger(__name__)

# Events on the scan's wake-up queue
_WAKE = object()
_WALK_DONE = object()


def validate_start_path(path: Path | str) -> Path:
    """Resolve the scan root.

    Raises:
        InvalidStartPath: If the path does not exist or is not a directory.

    """
    root = Path(path).expanduser()
    if not root.is_dir():
        raise InvalidStartPath(root)
    return root.resolve()


class Scanner:
    """Finds targets below a root and yields qualifying :class:`TargetInfo`.

    Everything is parsed and validated in the constructor, so startup errors
    surface before any traversal begins. Iterating the scanner runs the
    traversal on a feeder thread. Each target is yielded as soon as its size
    is known and every target found before it has been yielded, so results
    keep discovery order without waiting for the rest of the walk.
    """

    def __init__(
        self,
        start_path: Path | str,
        rules: RuleSet | Iterable[str | Rule],
        excludes: ExcludeSet | Iterable[str] = (),
        time_filter: str | Threshold | None = None,
        size_filter: str | Threshold | None = None,
        *,
        workers: int | None = None,
        stop_event: threading.Event | None = None,
    ) -> None:
        self.root = validate_start_path(start_path)
        self.rules = rules if isinstance(rules, RuleSet) else RuleSet.parse(rules)
        self.excludes = excludes if isinstance(excludes, ExcludeSet) else ExcludeSet(excludes)
        if isinstance(time_filter, str):
            time_filter = parse_time_filter(time_filter)
        if isinstance(size_filter, str):
            size_filter = parse_size_filter(size_filter)
        self.filter = TargetFilter(time=time_filter, size=size_filter)
        self.workers = workers or default_workers()
        self.stop_event = stop_event or threading.Event()
        self.walker = Walker(self.rules, self.excludes, workers=self.workers, stop_event=self.stop_event)

        self.found = 0
        self.rejected = 0
        self._enrich_warnings: list[TraversalIoError] = []
        self._lock = threading.Lock()

    @property
    def warnings(self) -> list[TraversalIoError]:
        """Per-item errors recorded during the scan."""
        with self._lock:
            return self.walker.warnings + list(self._enrich_warnings)

    def stop(self) -> None:
        """Abort the scan between two directory visits."""
        self.stop_event.set()

    def __iter__(self) -> Iterator[TargetInfo]:
        now = datetime.now(UTC)
        pending: deque[Future[TargetInfo | None]] = deque()
        pending_lock = threading.Lock()
        events: queue.Queue[object] = queue.Queue()

        logger.debug("Scanning %s with %d rule(s), %d worker(s)", self.root, len(self.rules), self.workers)
        pool = ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="projclean-info")

        def feed() -> None:
            try:
                for candidate in self.walker.walk(self.root):
                    future = pool.submit(self._enrich, candidate)
                    with pending_lock:
                        pending.append(future)
                    future.add_done_callback(lambda _future: events.put(_WAKE))
                    if self.stop_event.is_set():
                        break
            except Exception as e:  # noqa: BLE001
                events.put(e)
            finally:
                events.put(_WALK_DONE)

        feeder = threading.Thread(target=feed, name="projclean-feed", daemon=True)
        feeder.start()

        walking = True
        finished = False
        try:
            while True:
                # Emit finished heads in discovery order; later results wait behind the head
                while True:
                    with pending_lock:
                        if not pending:
                            break
                        head = pending[0]
                        if self.stop_event.is_set():
                            head.cancel()
                        if not head.done():
                            break
                        pending.popleft()
                    if not head.cancelled():
                        yield from self._emit(head, now)

                with pending_lock:
                    if not walking and not pending:
                        break

                item = events.get()
                if item is _WALK_DONE:
                    walking = False
                elif isinstance(item, BaseException):
                    raise item
            finished = True
        finally:
            if not finished:
                self.stop_event.set()
            feeder.join()
            pool.shutdown(wait=True, cancel_futures=True)

        logger.debug("Scan finished: %d found, %d filtered out", self.found, self.rejected)

    def _enrich(self, candidate: Candidate) -> TargetInfo | None:
        try:
            return TargetInfo.from_candidate(candidate, self.root)
        except OSError as e:
            warning = TraversalIoError(candidate.path, e)
            with self._lock:
                self._enrich_warnings.append(warning)
            logger.warning("%s", warning)
            return None

    def _emit(self, future: Future[TargetInfo | None], now: datetime) -> Iterator[TargetInfo]:
        info = future.result()
        if info is None:
            return
        if self.filter.is_active and not self.filter.evaluate(info, now):
            self.rejected += 1
            logger.debug("Filtered out %s", info.path)
            return
        self.found += 1
        yield info.with_qualifies(True)


def scan(
    start_path: Path | str,
    rules: RuleSet | Iterable[str | Rule],
    excludes: ExcludeSet | Iterable[str] = (),
    time_filter: str | Threshold | None = None,
    size_filter: str | Threshold | None = None,
    *,
    workers: int | None = None,
    stop_event: threading.Event | None = None,
) -> Iterator[TargetInfo]:
    """Scan ``start_path`` and stream qualifying targets.

    Args:
        start_path: Root directory of the scan.
        rules: Rule strings or a prepared :class:`RuleSet`.
        excludes: Directory names pruned at any depth.
        time_filter: Age filter in days, e.g. ``+30``.
        size_filter: Size filter, e.g. ``+1M``.
        workers: Thread pool size for traversal and enrichment.
        stop_event: Event that aborts the scan when set.

    Returns:
        Iterator over qualifying targets in discovery order.

    Raises:
        InvalidStartPath: If the root is not a directory.
        InvalidRuleSyntax: If a rule is malformed.
        InvalidPattern: If a rule pattern does not compile.
        InvalidFilter: If a filter value is malformed.

    """
    scanner = Scanner(
        start_path,
        rules,
        excludes,
        time_filter,
        size_filter,
        workers=workers,
        stop_event=stop_event,
    )
    return iter(scanner)
