"""Concurrent directory traversal that yields rule-matched targets."""

from __future__ import annotations

import logging
import os
import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from .errors import TraversalIoError
from .filters import ExcludeSet
from .rules import Rule, RuleMatch, RuleSet

logger = logging.getLogger(__name__)

# Marks the end of a traversal on the results queue
_DONE = object()


@dataclass(frozen=True)
class Candidate:
    """A directory that matched a rule during traversal."""

    path: Path
    rule: Rule


def default_workers() -> int:
    """Worker count matching the available parallelism."""
    return os.cpu_count() or 4


class Walker:
    """Walks a directory tree on a thread pool and yields candidates.

    Each task lists one directory. Matched directories are reported and
    never descended into; excluded names are pruned; symbolic links are
    never followed. Unreadable directories are skipped and recorded in
    :attr:`warnings`.
    """

    def __init__(
        self,
        rules: RuleSet,
        excludes: ExcludeSet | None = None,
        *,
        workers: int | None = None,
        stop_event: threading.Event | None = None,
    ) -> None:
        """Initialize the walker.

        Args:
            rules: Rules deciding which directories are targets.
            excludes: Directory names to prune.
            workers: Thread pool size. Defaults to the CPU count.
            stop_event: Event that aborts the traversal when set.

        """
        self.rules = rules
        self.excludes = excludes or ExcludeSet()
        self.workers = workers or default_workers()
        self._stop = stop_event or threading.Event()
        self._lock = threading.Lock()
        self._warnings: list[TraversalIoError] = []

    @property
    def warnings(self) -> list[TraversalIoError]:
        with self._lock:
            return list(self._warnings)

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        """Abort the traversal; already-yielded candidates stay valid."""
        self._stop.set()

    def walk(self, root: Path) -> Iterator[Candidate]:
        """Traverse ``root`` and yield candidates as they are found.

        The root itself is never a candidate. Closing the generator early
        stops the traversal.
        """
        results: queue.Queue[object] = queue.Queue()
        seen: set[Path] = set()
        pending = 0
        executor = ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="projclean-walk")

        def finish_task() -> None:
            nonlocal pending
            with self._lock:
                pending -= 1
                done = pending == 0
            if done:
                results.put(_DONE)

        def submit(directory: Path) -> None:
            nonlocal pending
            with self._lock:
                if directory in seen:
                    return
                seen.add(directory)
                pending += 1
            try:
                executor.submit(visit, directory)
            except RuntimeError:
                # Pool already shut down after an early close
                finish_task()

        def visit(directory: Path) -> None:
            try:
                if self._stop.is_set():
                    return
                for child in self._read_directory(directory, results):
                    if self._stop.is_set():
                        break
                    submit(child)
            except Exception as e:  # noqa: BLE001
                results.put(e)
            finally:
                finish_task()

        finished = False
        try:
            submit(root)
            while True:
                item = results.get()
                if item is _DONE:
                    finished = True
                    break
                if isinstance(item, BaseException):
                    raise item
                yield item  # type: ignore[misc]
        finally:
            if not finished:
                self._stop.set()
            executor.shutdown(wait=True, cancel_futures=True)

        if self.stopped:
            logger.info("Traversal of %s stopped early", root)

    def _read_directory(self, directory: Path, results: queue.Queue[object]) -> list[Path]:
        """List a directory, emit its candidates and return subdirectories to descend into."""
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            warning = TraversalIoError(directory, e)
            with self._lock:
                self._warnings.append(warning)
            logger.warning("%s", warning)
            return []

        names = [entry.name for entry in entries if entry.name not in self.excludes]
        flag_found: dict[str, bool] = {}
        subdirs: list[Path] = []

        for entry in entries:
            if entry.name in self.excludes:
                continue
            try:
                if not entry.is_dir(follow_symlinks=False):
                    continue
            except OSError:
                continue

            path = Path(entry.path)
            match = self.rules.match(entry.name, lambda rule: self._flag_satisfied(rule, names, flag_found))
            if match is not None:
                for candidate in self._candidates(path, match):
                    logger.debug("Found %s (%s)", candidate.path, candidate.rule.label)
                    results.put(candidate)
                continue

            subdirs.append(path)

        return subdirs

    @staticmethod
    def _flag_satisfied(rule: Rule, names: list[str], cache: dict[str, bool]) -> bool:
        if rule.label not in cache:
            cache[rule.label] = any(rule.is_flag(name) for name in names)
        return cache[rule.label]

    @staticmethod
    def _candidates(path: Path, match: RuleMatch) -> list[Candidate]:
        found: list[Candidate] = []
        for spec in match.targets:
            if spec.subpath is None:
                found.append(Candidate(path=path, rule=match.rule))
                continue
            target = path / spec.subpath
            if target.is_dir() and not target.is_symlink():
                found.append(Candidate(path=target, rule=match.rule))
        return found
