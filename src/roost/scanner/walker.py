"""Depth-first discovery of project roots."""

import concurrent.futures
import logging
import os
import threading
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional

from roost.errors import ScanError
from roost.ignore import IgnoreRules
from roost.models import ProjectKind, ProjectRecord, Updated
from roost.scanner.markers import MarkerRegistry
from roost.scanner.recency import RecencyResolver, tree_summary

logger = logging.getLogger(__name__)


README_NAMES = ("README.md", "README.markdown", "README.rst", "README.txt", "README")
README_LIMIT = 4096
DEEP_SCAN_WORKERS = 4


def read_readme(project: Path, names: set[str]) -> Optional[str]:
    """Read the head of the project's README, if there is one."""
    for candidate in README_NAMES:
        if candidate not in names:
            continue
        try:
            with open(project / candidate, "r", encoding="utf-8", errors="replace") as f:
                return f.read(README_LIMIT)
        except OSError as e:
            logger.debug("Could not read %s in %s: %s", candidate, project, e)
            return None
    return None


class Scanner:
    """Walks configured roots and yields one record per project boundary.

    Roots are visited in order, each depth-first with children sorted by
    name. Ignored directories are pruned, and nothing below a detected
    project is examined. Unreadable directories are skipped and collected
    in ``skipped``. Each call to ``scan`` starts a fresh traversal.
    """

    def __init__(
        self,
        roots: Iterable[Path],
        ignore_rules: Optional[IgnoreRules] = None,
        markers: Optional[MarkerRegistry] = None,
        recency: Optional[RecencyResolver] = None,
        max_depth: int = 4,
        include_hidden: bool = False,
    ) -> None:
        self.roots = list(roots)
        self.ignore_rules = ignore_rules or IgnoreRules(self.roots)
        self.markers = markers or MarkerRegistry.default()
        self.recency = recency or RecencyResolver.default()
        self.max_depth = max_depth
        self.include_hidden = include_hidden
        self.skipped: list[ScanError] = []

    @classmethod
    def from_config(cls, config) -> "Scanner":
        """Build a scanner for a RoostConfig."""
        return cls(
            config.roots,
            ignore_rules=IgnoreRules.compile(config.roots, config.ignore),
            markers=MarkerRegistry.default(config.markers),
            recency=RecencyResolver.default(vcs=config.vcs_recency),
            max_depth=config.max_depth,
            include_hidden=config.include_hidden,
        )

    def _skip(self, path: Path, error: Exception) -> None:
        err = ScanError(f"Skipped {path}: {error}", path)
        self.skipped.append(err)
        logger.warning("%s", err)

    def _list(self, directory: Path) -> Optional[list[os.DirEntry]]:
        try:
            with os.scandir(directory) as it:
                return sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            self._skip(directory, e)
            return None

    def _inside(self, path: Path, found: set[Path]) -> bool:
        return path in found or any(parent in found for parent in path.parents)

    def scan(self, should_stop: Callable[[], bool] = lambda: False) -> Iterator[ProjectRecord]:
        """Yield project records lazily.

        ``should_stop`` is polled between traversal steps; once it returns
        True the generator ends. Records already yielded stay valid.
        """
        self.skipped = []
        found: set[Path] = set()

        for root in self.roots:
            if should_stop():
                return
            if not root.is_dir():
                self._skip(root, FileNotFoundError("root is not a directory"))
                continue

            # Stack of (directory, depth); children pushed in reverse so the
            # alphabetically first one is visited first.
            stack: list[tuple[Path, int]] = [(root, 0)]
            while stack:
                if should_stop():
                    return
                directory, depth = stack.pop()
                if self._inside(directory, found):
                    continue

                entries = self._list(directory)
                if entries is None:
                    continue

                names = {entry.name for entry in entries}
                kind, markers = self.markers.detect(names)
                if kind is not None:
                    found.add(directory)
                    yield self._record(directory, kind, markers, names)
                    continue

                if depth >= self.max_depth:
                    continue

                children: list[Path] = []
                for entry in entries:
                    if not self.include_hidden and entry.name.startswith("."):
                        continue
                    try:
                        if not entry.is_dir(follow_symlinks=False):
                            continue
                    except OSError:
                        continue
                    child = Path(entry.path)
                    if self.ignore_rules.is_ignored(child):
                        continue
                    children.append(child)

                stack.extend((child, depth + 1) for child in reversed(children))

    def _record(
        self,
        directory: Path,
        kind: ProjectKind,
        markers: tuple[str, ...],
        names: set[str],
    ) -> ProjectRecord:
        return ProjectRecord(
            path=directory,
            last_modified=self.recency.resolve(directory, markers),
            kind=kind,
            markers=markers,
            readme=read_readme(directory, names),
        )

    def refine(
        self,
        records: Iterable[ProjectRecord],
        should_stop: Callable[[], bool] = lambda: False,
        max_workers: int = DEEP_SCAN_WORKERS,
    ) -> Iterator[Updated]:
        """Walk each project's files and yield newer recency signals.

        Results arrive in completion order. An Updated is produced when a
        file is newer than the record or the file count was unknown.
        """
        records = list(records)
        if not records:
            return

        stop_event = threading.Event()

        def summarise(record: ProjectRecord):
            return record, tree_summary(
                record.path,
                self.ignore_rules.is_ignored,
                self.include_hidden,
                lambda: stop_event.is_set() or should_stop(),
            )

        with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = [pool.submit(summarise, record) for record in records]
            try:
                for future in concurrent.futures.as_completed(futures):
                    if should_stop():
                        break
                    record, (newest, count) = future.result()
                    if newest is not None and newest > record.last_modified:
                        yield Updated(record.path, newest, count)
                    elif record.file_count != count:
                        yield Updated(record.path, record.last_modified, count)
            finally:
                stop_event.set()
                for future in futures:
                    future.cancel()
