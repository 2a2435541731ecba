"""Tests for the recovery sweep."""

from __future__ import annotations

import pickle
from pathlib import Path
from unittest.mock import patch

import pytest

from backgrounder.capture.models import Capture, WorkItem
from backgrounder.capture.recovery import RecoverySweep
from backgrounder.capture.store import DiskQueue
from backgrounder.capture.tasks import TaskRegistry
from backgrounder.core.config import BackgroundConfig
from backgrounder.core.errors import CaptureDecodeError, UnknownHandlerError, UnknownTaskError
from backgrounder.handlers import HandlerRegistry, build_handler_registry
from backgrounder.reporters.test import TestReporter


# -----------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------

@pytest.fixture()
def queue(tmp_path: Path) -> DiskQueue:
    return DiskQueue(tmp_path / "queue")


@pytest.fixture()
def journal() -> list[str]:
    return []


@pytest.fixture()
def tasks(journal: list[str]) -> TaskRegistry:
    registry = TaskRegistry()

    def append(item):
        journal.append(item)

    def explode(item):
        raise RuntimeError(f"cannot process {item}")

    registry.add(append, "append")
    registry.add(explode, "explode")
    return registry


@pytest.fixture()
def reporter() -> TestReporter:
    return TestReporter()


@pytest.fixture()
def handlers(tmp_path: Path, queue: DiskQueue, tasks: TaskRegistry) -> HandlerRegistry:
    return build_handler_registry(BackgroundConfig(project_path=tmp_path), tasks, queue=queue)


@pytest.fixture()
def sweep(queue: DiskQueue, handlers: HandlerRegistry, reporter: TestReporter) -> RecoverySweep:
    return RecoverySweep(queue, handlers, reporter)


def _put(queue: DiskQueue, task: str, item: str) -> Path:
    return queue.put(Capture(WorkItem(task, (item,))))


# -----------------------------------------------------------------------
# Replay
# -----------------------------------------------------------------------

class TestRecoverySweep:
    def test_replays_in_order_and_empties_queue(self, sweep, queue, journal, reporter):
        names = [_put(queue, "append", item).name for item in ("t1", "t2", "t3")]

        report = sweep.run("in_process")

        assert journal == ["t1", "t2", "t3"]
        assert queue.paths() == []
        assert report.replayed == names
        assert report.ok
        assert report.total == 3
        assert reporter.errors == []

    def test_empty_queue(self, sweep):
        report = sweep.run("in_process")

        assert report.total == 0
        assert report.ok

    def test_failure_keeps_file_and_continues(self, sweep, queue, journal, reporter):
        failing = _put(queue, "explode", "f1")
        _put(queue, "append", "f2")
        _put(queue, "append", "f3")

        report = sweep.run("in_process")

        assert journal == ["f2", "f3"]
        assert queue.paths() == [failing]
        assert report.failed == [failing.name]
        assert len(report.replayed) == 2
        assert not report.ok
        assert len(reporter.errors) == 1
        assert "cannot process f1" in str(reporter.last_error)

    def test_unknown_task_is_a_replay_failure(self, sweep, queue, reporter):
        path = _put(queue, "vanished_task", "x")

        report = sweep.run("in_process")

        assert report.failed == [path.name]
        assert isinstance(reporter.last_error, UnknownTaskError)
        assert path.exists()

    def test_corrupt_file_is_reported_and_kept(self, sweep, queue, journal, reporter):
        corrupt = _put(queue, "append", "c1")
        corrupt.write_bytes(b"not a capture")
        _put(queue, "append", "c2")

        report = sweep.run("in_process")

        assert report.corrupt == [corrupt.name]
        assert journal == ["c2"]
        assert corrupt.exists()
        assert isinstance(reporter.last_error, CaptureDecodeError)

    def test_vanished_file_is_skipped_silently(self, sweep, queue, journal, reporter):
        gone = _put(queue, "append", "g1")
        _put(queue, "append", "g2")
        real_read = queue.read

        def read(path):
            if path == gone:
                raise FileNotFoundError(path)
            return real_read(path)

        with patch.object(queue, "read", side_effect=read):
            report = sweep.run("in_process")

        assert journal == ["g2"]
        assert report.total == 1
        assert reporter.errors == []

    def test_unknown_handler_raises_before_touching_files(self, sweep, queue, journal):
        path = _put(queue, "append", "u1")

        with pytest.raises(UnknownHandlerError):
            sweep.run("carrier_pigeon")

        assert path.exists()
        assert journal == []

    def test_options_reach_the_handler(self, sweep, queue, handlers):
        _put(queue, "append", "o1")
        test_handler = handlers.get("test")

        sweep.run("test", {"flag": True})

        assert test_handler.options == {"flag": True}

    def test_disk_round_trip_hands_over_equal_capture(self, sweep, queue, handlers):
        capture = Capture(WorkItem("append", ("rt",)), values={"k": "v"}, owner="acct")
        handlers.get("disk").handle(capture, {})
        [path] = queue.paths()
        test_handler = handlers.get("test")

        sweep.run("test")

        assert test_handler.captures == [capture]
        assert not path.exists()

    def test_malformed_envelope_does_not_stop_the_sweep(self, sweep, queue, journal, reporter):
        malformed = _put(queue, "append", "m1")
        malformed.write_bytes(pickle.dumps({"format": 1, "capture": None}))
        _put(queue, "append", "m2")

        report = sweep.run("in_process")

        assert report.corrupt == [malformed.name]
        assert journal == ["m2"]
        assert malformed.exists()
        assert isinstance(reporter.last_error, CaptureDecodeError)
