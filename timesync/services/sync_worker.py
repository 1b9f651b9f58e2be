import logging
import queue
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import time

import numpy as np

from timesync.services.offset_tracker import OffsetTracker, SyncResult

logger = logging.getLogger(__name__)

SyncCallback = Callable[[SyncResult | None, Exception | None], None]


@dataclass
class SyncJob:
    watch_id: int
    observed: time | None = None
    frame: np.ndarray | None = None
    mark_synced: bool = False
    callback: SyncCallback | None = None


class SyncWorker:
    """
    Runs offset computations off the caller's thread.

    At most one job per watch may be pending or running; a second submission
    for the same watch is rejected until the first completes. Jobs are not
    cancellable once taken by the worker.
    """

    def __init__(self, tracker: OffsetTracker):
        self._tracker = tracker
        self._queue: queue.Queue[SyncJob] = queue.Queue()
        self._stop_event = threading.Event()
        self._worker_thread: threading.Thread | None = None

        self._pending_ids: set[int] = set()
        self._pending_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._worker_thread and self._worker_thread.is_alive():
            logger.warning("SyncWorker already running")
            return

        self._stop_event.clear()
        self._worker_thread = threading.Thread(
            target=self._worker_loop, name="WatchSyncWorker", daemon=True
        )
        self._worker_thread.start()
        logger.info("SyncWorker started")

    def stop(self, timeout: float = 2.0) -> None:
        """Stops after the current job; queued jobs are left unprocessed."""
        self._stop_event.set()
        if self._worker_thread:
            self._worker_thread.join(timeout=timeout)
            logger.info("SyncWorker stopped")

    def is_running(self) -> bool:
        return self._worker_thread is not None and self._worker_thread.is_alive()

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submit(
        self,
        watch_id: int,
        observed: time | None = None,
        frame: np.ndarray | None = None,
        mark_synced: bool = False,
        callback: SyncCallback | None = None,
    ) -> bool:
        """Queues a job. Returns False if the watch already has one in flight."""
        with self._pending_lock:
            if watch_id in self._pending_ids:
                logger.debug(f"Sync for watch {watch_id} already pending, rejecting")
                return False
            self._pending_ids.add(watch_id)

        self._queue.put(
            SyncJob(
                watch_id=watch_id,
                observed=observed,
                frame=frame,
                mark_synced=mark_synced,
                callback=callback,
            )
        )
        logger.debug(f"Sync job queued for watch {watch_id}. Queue size: {self._queue.qsize()}")
        return True

    def is_pending(self, watch_id: int) -> bool:
        with self._pending_lock:
            return watch_id in self._pending_ids

    def pending_count(self) -> int:
        with self._pending_lock:
            return len(self._pending_ids)

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def run_job(self, job: SyncJob) -> tuple[SyncResult | None, Exception | None]:
        """Executes one job synchronously; the error, if any, is returned."""
        try:
            if job.mark_synced:
                result = self._tracker.mark_synced(job.watch_id)
            elif job.frame is not None:
                result = self._tracker.track_frame(job.watch_id, job.frame)
            else:
                result = self._tracker.track(job.watch_id, job.observed)
            return result, None
        except Exception as e:
            logger.warning(f"Sync job for watch {job.watch_id} failed: {e}")
            return None, e

    def _worker_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                job = self._queue.get(timeout=0.5)
            except queue.Empty:
                continue

            try:
                result, error = self.run_job(job)
            finally:
                # The watch is free again before its callback runs.
                with self._pending_lock:
                    self._pending_ids.discard(job.watch_id)
                self._queue.task_done()

            if job.callback is not None:
                try:
                    job.callback(result, error)
                except Exception as e:
                    logger.error(
                        f"Sync callback for watch {job.watch_id} raised: {e}", exc_info=True
                    )
