"""Recency signals for discovered projects.

The filesystem signal is always available. Version-control history is an
optional extra source; whenever it fails the filesystem value stands.
"""

import logging
import os
import subprocess
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Optional

from roost.errors import VcsQueryError
from roost.models import from_timestamp

logger = logging.getLogger(__name__)


GIT_TIMEOUT_S = 2.0


class RecencySource(ABC):
    """A pluggable source of "last changed" timestamps."""

    name: str = "source"

    @abstractmethod
    def last_modified(self, project: Path, markers: tuple[str, ...]) -> Optional[datetime]:
        """Return the timestamp this source knows for ``project``, if any."""
        pass


class FilesystemRecency(RecencySource):
    """Modification time of the project directory and its marker entries."""

    name = "filesystem"

    def last_modified(self, project: Path, markers: tuple[str, ...]) -> Optional[datetime]:
        newest: Optional[float] = None
        for candidate in (project, *(project / m for m in markers)):
            try:
                mtime = candidate.stat().st_mtime
            except OSError:
                continue
            if newest is None or mtime > newest:
                newest = mtime
        return from_timestamp(newest) if newest is not None else None


class GitRecency(RecencySource):
    """Commit time of HEAD, read with ``git log``.

    A missing git binary disables the source for the rest of its lifetime.
    """

    name = "git"

    def __init__(self, git: str = "git", timeout: float = GIT_TIMEOUT_S) -> None:
        self.git = git
        self.timeout = timeout
        self.available = True
        self._lock = threading.Lock()

    def last_modified(self, project: Path, markers: tuple[str, ...]) -> Optional[datetime]:
        if ".git" not in markers or not self.available:
            return None

        try:
            result = subprocess.run(
                [self.git, "-C", str(project), "log", "-1", "--format=%ct"],
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=True,
            )
        except FileNotFoundError as e:
            with self._lock:
                self.available = False
            raise VcsQueryError(f"git is not installed: {e}", project) from e
        except subprocess.CalledProcessError as e:
            # Fresh repositories without commits land here too
            raise VcsQueryError(f"git log failed: {e.stderr.strip() or e}", project) from e
        except (subprocess.TimeoutExpired, OSError) as e:
            raise VcsQueryError(f"git log did not complete: {e}", project) from e

        stamp = result.stdout.strip()
        if not stamp:
            return None
        try:
            return from_timestamp(int(stamp))
        except ValueError as e:
            raise VcsQueryError(f"Unexpected git log output: {stamp!r}", project) from e


class RecencyResolver:
    """Combine sources, keeping the newest timestamp any of them reports."""

    def __init__(self, sources: Iterable[RecencySource]) -> None:
        self.sources = list(sources)

    @classmethod
    def default(cls, vcs: bool = True) -> "RecencyResolver":
        sources: list[RecencySource] = [FilesystemRecency()]
        if vcs:
            sources.append(GitRecency())
        return cls(sources)

    def resolve(self, project: Path, markers: tuple[str, ...]) -> datetime:
        newest: Optional[datetime] = None
        for source in self.sources:
            try:
                value = source.last_modified(project, markers)
            except VcsQueryError as e:
                logger.debug("Falling back from %s recency for %s: %s", source.name, project, e)
                continue
            if value is not None and (newest is None or value > newest):
                newest = value

        if newest is None:
            # Entry vanished between listing and stat
            return from_timestamp(0)
        return newest


def tree_summary(
    project: Path,
    is_ignored: Callable[..., bool],
    include_hidden: bool = False,
    should_stop: Callable[[], bool] = lambda: False,
) -> tuple[Optional[datetime], int]:
    """Walk every file under ``project`` for the newest mtime and a file count.

    ``is_ignored`` is called as ``is_ignored(path, is_dir=False)`` for files.
    """
    newest: Optional[float] = None
    count = 0
    pending = [project]

    while pending:
        if should_stop():
            break
        current = pending.pop()
        try:
            with os.scandir(current) as it:
                entries = list(it)
        except OSError:
            continue

        for entry in entries:
            if not include_hidden and entry.name.startswith("."):
                continue
            path = Path(entry.path)
            try:
                if entry.is_dir(follow_symlinks=False):
                    if not is_ignored(path):
                        pending.append(path)
                    continue
                if is_ignored(path, is_dir=False):
                    continue
                mtime = entry.stat(follow_symlinks=False).st_mtime
            except OSError:
                continue
            count += 1
            if newest is None or mtime > newest:
                newest = mtime

    return (from_timestamp(newest) if newest is not None else None), count
