"""Result stream bridge between the scan worker and the UI loop.

The scan thread publishes events into a bounded queue. The UI is told
that events are waiting through ``notify``, which fires at most once per
drain: while a refresh is pending, further events only queue up and are
picked up by the same drain. Events are batched, never dropped.
"""

import logging
import queue
import threading
from typing import Callable, Iterator, Optional

from roost.models import ScanComplete, ScanEvent, ScanFailed

logger = logging.getLogger(__name__)


DEFAULT_CHANNEL_SIZE = 256
PUT_POLL_S = 0.05


class ResultBridge:
    """Single-producer, single-consumer event feed for one scan session."""

    def __init__(
        self,
        session_id: int = 0,
        notify: Optional[Callable[[int], None]] = None,
        maxsize: int = DEFAULT_CHANNEL_SIZE,
    ) -> None:
        self.session_id = session_id
        self._notify = notify or (lambda session_id: None)
        self._queue: "queue.Queue[ScanEvent]" = queue.Queue(maxsize=maxsize)
        self._lock = threading.Lock()
        self._refresh_pending = False
        self.finished = False

    @property
    def refresh_pending(self) -> bool:
        with self._lock:
            return self._refresh_pending

    def publish(self, event: ScanEvent, should_stop: Callable[[], bool] = lambda: False) -> bool:
        """Queue ``event``, blocking while the channel is full.

        Returns False without queueing if ``should_stop`` turns True while
        waiting for room.
        """
        while True:
            if should_stop():
                return False
            try:
                self._queue.put(event, timeout=PUT_POLL_S)
                break
            except queue.Full:
                continue

        with self._lock:
            wake = not self._refresh_pending
            self._refresh_pending = True
        if wake:
            self._notify(self.session_id)
        return True

    def drain(self) -> list[ScanEvent]:
        """Take every queued event, in publication order."""
        with self._lock:
            self._refresh_pending = False

        events: list[ScanEvent] = []
        while True:
            try:
                event = self._queue.get_nowait()
            except queue.Empty:
                break
            events.append(event)
            if isinstance(event, (ScanComplete, ScanFailed)):
                self.finished = True
        return events

    def events(self, timeout: Optional[float] = None) -> Iterator[ScanEvent]:
        """Block and yield events until the scan completes or fails.

        Used by non-interactive callers that have no UI loop to notify.
        """
        while not self.finished:
            try:
                event = self._queue.get(timeout=timeout)
            except queue.Empty:
                logger.warning("No scan event within %.1fs, giving up", timeout or 0)
                return
            if isinstance(event, (ScanComplete, ScanFailed)):
                self.finished = True
            yield event
