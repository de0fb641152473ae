"""Tests for scan sessions and the coordinator."""

import threading
import time
from pathlib import Path
from typing import Callable

from roost.bridge import ResultBridge
from roost.config import RoostConfig
from roost.models import Added, ProjectRecord, ScanComplete, ScanFailed, ScanStatus, Updated
from roost.scanner import FilesystemRecency, RecencyResolver, ScanCoordinator, ScanSession, Scanner


class ExplodingScanner(Scanner):
    """Yields the first real project, then fails."""

    def scan(self, should_stop: Callable[[], bool] = lambda: False):
        for record in super().scan(should_stop):
            yield record
            break
        raise RuntimeError("disk on fire")


def make_session(root: Path, scanner_cls=Scanner, deep_recency: bool = False) -> ScanSession:
    scanner = scanner_cls([root], recency=RecencyResolver([FilesystemRecency()]))
    return ScanSession(1, scanner, ResultBridge(1), deep_recency=deep_recency)


class TestScanSession:
    """Tests for ScanSession.run."""

    def test_run_publishes_records_then_completion(self, workspace: Path) -> None:
        session = make_session(workspace)
        assert session.run() == ScanStatus.COMPLETE

        events = session.bridge.drain()
        assert [type(e) for e in events] == [Added, Added, Added, ScanComplete]
        assert [e.record.name for e in events[:-1]] == ["alpha", "projA", "projB"]
        assert events[-1] == ScanComplete(())

    def test_skipped_paths_reported(self, workspace: Path, tmp_path: Path) -> None:
        missing = tmp_path / "missing"
        scanner = Scanner([missing, workspace], recency=RecencyResolver([FilesystemRecency()]))
        session = ScanSession(1, scanner, ResultBridge(1))
        session.run()
        assert session.bridge.drain()[-1] == ScanComplete((str(missing),))

    def test_deep_recency_follows_additions(self, workspace: Path) -> None:
        session = make_session(workspace, deep_recency=True)
        session.run()

        events = session.bridge.drain()
        kinds = [type(e) for e in events]
        assert kinds[:3] == [Added] * 3
        assert kinds[3:6] == [Updated] * 3
        assert kinds[-1] == ScanComplete

    def test_failure_becomes_event(self, workspace: Path) -> None:
        session = make_session(workspace, scanner_cls=ExplodingScanner)
        assert session.run() == ScanStatus.FAILED
        assert session.failure == "disk on fire"

        events = session.bridge.drain()
        assert isinstance(events[0], Added)
        assert events[1] == ScanFailed("disk on fire")
        assert len(events) == 2

    def test_cancel_before_run(self, workspace: Path) -> None:
        session = make_session(workspace)
        session.cancel()
        assert session.run() == ScanStatus.IDLE
        assert session.bridge.drain() == []
        assert session.cancelled
        assert not session.active


class TestScanCoordinator:
    """Tests for superseding sessions."""

    def test_start_supersedes_previous(self, workspace: Path) -> None:
        coordinator = ScanCoordinator(lambda: Scanner([workspace]))
        first = coordinator.start()
        second = coordinator.start()

        assert first.cancelled
        assert not second.cancelled
        assert first.id != second.id
        assert coordinator.is_current(second.id)
        assert not coordinator.is_current(first.id)

    def test_cancel_mid_scan(self, config: RoostConfig) -> None:
        coordinator = ScanCoordinator.from_config(config)
        session = coordinator.start(notify=lambda session_id: coordinator.cancel())

        assert session.run() == ScanStatus.IDLE
        events = session.bridge.drain()
        assert len(events) == 1
        assert isinstance(events[0], Added)

    def test_notify_receives_session_id(self, config: RoostConfig) -> None:
        seen = []
        coordinator = ScanCoordinator.from_config(config)
        coordinator.start()
        session = coordinator.start(notify=seen.append)
        session.run()
        assert seen == [session.id]

    def test_from_config(self, config: RoostConfig) -> None:
        coordinator = ScanCoordinator.from_config(config)
        session = coordinator.start()
        assert session.roots == list(config.roots)
        assert session.ignore_rules.is_ignored(config.roots[0] / "node_modules")

    def test_records_are_absolute(self, config: RoostConfig) -> None:
        session = ScanCoordinator.from_config(config).start()
        session.run()
        records = [e.record for e in session.bridge.drain() if isinstance(e, Added)]
        assert all(isinstance(r, ProjectRecord) and r.path.is_absolute() for r in records)


class TestCancellation:
    """Tests for stopping a scan whose consumer has gone away."""

    def test_cancel_unblocks_full_channel(self, tmp_path: Path) -> None:
        for i in range(20):
            (tmp_path / f"p{i:02d}").mkdir()
            (tmp_path / f"p{i:02d}" / "go.mod").write_text("", encoding="utf-8")
        scanner = Scanner([tmp_path], recency=RecencyResolver([FilesystemRecency()]))
        session = ScanSession(1, scanner, ResultBridge(1, maxsize=1))

        worker = threading.Thread(target=session.run)
        worker.start()
        time.sleep(0.2)
        assert worker.is_alive()

        session.cancel()
        worker.join(timeout=2)
        assert not worker.is_alive()
        assert session.status == ScanStatus.IDLE
        assert len(session.bridge.drain()) == 1
