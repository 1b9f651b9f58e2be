"""
Tests for SyncWorker dedup and callback delivery.
"""

import threading
from datetime import time

from timesync.errors import ObservationUnavailable
from timesync.services.sync_worker import SyncJob, SyncWorker

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _FakeTracker:
    def __init__(self, gate: threading.Event | None = None):
        self.gate = gate
        self.calls: list[tuple] = []

    def _wait(self):
        if self.gate is not None:
            self.gate.wait(timeout=5.0)

    def track(self, watch_id, observed):
        self._wait()
        self.calls.append(("track", watch_id, observed))
        if observed is None:
            raise ObservationUnavailable()
        return f"result-{watch_id}"

    def track_frame(self, watch_id, frame):
        self.calls.append(("track_frame", watch_id))
        return f"frame-{watch_id}"

    def mark_synced(self, watch_id):
        self.calls.append(("mark_synced", watch_id))
        return f"marked-{watch_id}"


class _Collector:
    def __init__(self, expected: int):
        self.results: list[tuple] = []
        self._expected = expected
        self._done = threading.Event()
        self._lock = threading.Lock()

    def __call__(self, result, error):
        with self._lock:
            self.results.append((result, error))
            if len(self.results) >= self._expected:
                self._done.set()

    def wait(self, timeout=5.0):
        return self._done.wait(timeout)


# ---------------------------------------------------------------------------
# Dedup
# ---------------------------------------------------------------------------


def test_second_submit_for_same_watch_is_rejected():
    worker = SyncWorker(_FakeTracker())

    assert worker.submit(1, observed=time(10, 0)) is True
    assert worker.submit(1, observed=time(10, 1)) is False
    assert worker.submit(2, observed=time(10, 0)) is True
    assert worker.is_pending(1)
    assert worker.pending_count() == 2


def test_watch_is_free_again_after_completion():
    gate = threading.Event()
    worker = SyncWorker(_FakeTracker(gate))
    collector = _Collector(expected=1)
    worker.start()
    try:
        assert worker.submit(1, observed=time(9, 0), callback=collector)
        assert worker.submit(1, observed=time(9, 0)) is False

        gate.set()
        assert collector.wait()
        assert not worker.is_pending(1)
        assert worker.submit(1, observed=time(9, 5))
    finally:
        worker.stop()


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


def test_run_job_dispatch():
    tracker = _FakeTracker()
    worker = SyncWorker(tracker)

    assert worker.run_job(SyncJob(1, mark_synced=True)) == ("marked-1", None)
    assert worker.run_job(SyncJob(2, frame=object())) == ("frame-2", None)
    assert worker.run_job(SyncJob(3, observed=time(1, 0))) == ("result-3", None)
    assert [c[0] for c in tracker.calls] == ["mark_synced", "track_frame", "track"]


def test_errors_are_returned_not_raised():
    worker = SyncWorker(_FakeTracker())

    result, error = worker.run_job(SyncJob(7, observed=None))

    assert result is None
    assert isinstance(error, ObservationUnavailable)


def test_callbacks_receive_results_and_errors():
    worker = SyncWorker(_FakeTracker())
    collector = _Collector(expected=2)
    worker.start()
    try:
        worker.submit(1, observed=time(8, 0), callback=collector)
        worker.submit(2, observed=None, callback=collector)
        assert collector.wait()
    finally:
        worker.stop()

    by_result = {r for r, _ in collector.results}
    errors = [e for _, e in collector.results if e is not None]
    assert "result-1" in by_result
    assert len(errors) == 1 and isinstance(errors[0], ObservationUnavailable)
    assert worker.pending_count() == 0


def test_failing_callback_does_not_kill_worker():
    worker = SyncWorker(_FakeTracker())
    collector = _Collector(expected=1)

    def _bad_callback(result, error):
        raise RuntimeError("listener gone")

    worker.start()
    try:
        worker.submit(1, observed=time(8, 0), callback=_bad_callback)
        worker.submit(2, observed=time(8, 0), callback=collector)
        assert collector.wait()
        assert worker.is_running()
    finally:
        worker.stop()
    assert not worker.is_running()
