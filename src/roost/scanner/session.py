"""Scan sessions and the coordinator that keeps at most one running."""

import itertools
import logging
import threading
from pathlib import Path
from typing import Callable, Optional

from roost.bridge import ResultBridge
from roost.errors import ScanError
from roost.ignore import IgnoreRules
from roost.models import Added, ScanComplete, ScanFailed, ScanStatus
from roost.scanner.walker import Scanner

logger = logging.getLogger(__name__)


class ScanSession:
    """One traversal of the configured roots.

    ``run`` executes on a worker thread and talks to the UI only through
    its bridge. ``cancel`` may be called from any thread.
    """

    def __init__(
        self,
        session_id: int,
        scanner: Scanner,
        bridge: ResultBridge,
        deep_recency: bool = False,
    ) -> None:
        self.id = session_id
        self.scanner = scanner
        self.bridge = bridge
        self.deep_recency = deep_recency
        self.status = ScanStatus.IDLE
        self.failure: Optional[str] = None
        self._cancelled = threading.Event()

    @property
    def roots(self) -> list[Path]:
        return self.scanner.roots

    @property
    def ignore_rules(self) -> IgnoreRules:
        return self.scanner.ignore_rules

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def active(self) -> bool:
        return self.status == ScanStatus.SCANNING and not self.cancelled

    def cancel(self) -> None:
        """Ask the traversal to stop at its next step."""
        self._cancelled.set()

    def run(self) -> ScanStatus:
        """Traverse the roots, publishing every discovery to the bridge."""
        self.status = ScanStatus.SCANNING
        stop = self._cancelled.is_set
        found = []
        logger.info("Scan %d started over %d root(s)", self.id, len(self.roots))

        try:
            for record in self.scanner.scan(stop):
                found.append(record)
                if not self.bridge.publish(Added(record), stop):
                    break

            if self.deep_recency and not stop():
                for update in self.scanner.refine(found, stop):
                    if not self.bridge.publish(update, stop):
                        break
        except Exception as e:
            self.status = ScanStatus.FAILED
            self.failure = str(e) or type(e).__name__
            logger.exception("Scan %d failed", self.id)
            self.bridge.publish(ScanFailed(self.failure), stop)
            return self.status

        if stop():
            logger.info("Scan %d cancelled after %d project(s)", self.id, len(found))
            self.status = ScanStatus.IDLE
            return self.status

        skipped = tuple(str(err.path) for err in self.scanner.skipped if isinstance(err, ScanError))
        self.status = ScanStatus.COMPLETE
        logger.info("Scan %d complete: %d project(s), %d skipped", self.id, len(found), len(skipped))
        self.bridge.publish(ScanComplete(skipped), stop)
        return self.status


class ScanCoordinator:
    """Owns the current scan session; starting a new one cancels the old one."""

    def __init__(self, scanner_factory: Callable[[], Scanner], deep_recency: bool = False) -> None:
        self.scanner_factory = scanner_factory
        self.deep_recency = deep_recency
        self.current: Optional[ScanSession] = None
        self._ids = itertools.count(1)

    @classmethod
    def from_config(cls, config) -> "ScanCoordinator":
        return cls(lambda: Scanner.from_config(config), deep_recency=config.deep_recency)

    def start(self, notify: Optional[Callable[[int], None]] = None) -> ScanSession:
        """Create a session superseding any in flight. The caller runs it."""
        self.cancel()
        session_id = next(self._ids)
        bridge = ResultBridge(session_id, notify)
        self.current = ScanSession(session_id, self.scanner_factory(), bridge, self.deep_recency)
        return self.current

    def is_current(self, session_id: int) -> bool:
        return self.current is not None and self.current.id == session_id

    def cancel(self) -> None:
        if self.current is not None:
            self.current.cancel()
