"""
Periodic clock refresh.

Two refresh modes:
- continuous: recompute every frame interval for a sweeping second hand;
- ambient (reduced power): recompute once, then sleep until the next minute
  boundary. The sleep is clamped to [500, 60000] ms so a skewed clock can
  neither spin the loop nor stall it.
"""

import threading
from collections.abc import Callable

from clock.angle_mapper import AngularHandPosition, ClockAngleMapper, TimeSample, hand_angles
from logging_config import get_logger
from timesync.interfaces.time_source import TimeSourceInterface
from timesync.services.time_source_service import current_time_or_local

logger = get_logger(__name__)

MIN_AMBIENT_DELAY_MS = 500
MAX_AMBIENT_DELAY_MS = 60_000

TickCallback = Callable[[TimeSample, AngularHandPosition], None]


def next_minute_delay_ms(epoch_ms: int) -> int:
    """Milliseconds until the next minute boundary, clamped to [500, 60000]."""
    until_next = 60_000 - (epoch_ms % 60_000)
    return max(MIN_AMBIENT_DELAY_MS, min(until_next, MAX_AMBIENT_DELAY_MS))


class ClockRefresher:
    """
    Drives a clock face from a background thread.

    The owner calls start() when the face becomes visible and stop() when it
    is torn down. Switching mode or zone takes effect on the next tick; a
    mode switch wakes a sleeping ambient loop immediately.
    """

    def __init__(
        self,
        mapper: ClockAngleMapper,
        time_source: TimeSourceInterface,
        on_tick: TickCallback,
        ambient: bool = False,
        frame_interval_ms: int = 16,
    ):
        self._mapper = mapper
        self._time_source = time_source
        self._on_tick = on_tick
        self._ambient = ambient
        self._frame_interval_ms = max(1, int(frame_interval_ms))

        self._stop_event = threading.Event()
        self._wake_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._tick_count = 0

    @property
    def ambient(self) -> bool:
        return self._ambient

    @property
    def tick_count(self) -> int:
        return self._tick_count

    def set_ambient(self, ambient: bool) -> None:
        if ambient != self._ambient:
            self._ambient = ambient
            logger.info(f"Clock refresh mode: {'ambient' if ambient else 'continuous'}")
            self._wake_event.set()

    def set_mapper(self, mapper: ClockAngleMapper) -> None:
        self._mapper = mapper
        self._wake_event.set()

    def set_frame_interval(self, frame_interval_ms: int) -> None:
        self._frame_interval_ms = max(1, int(frame_interval_ms))

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            logger.warning("ClockRefresher already running")
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._loop, name="ClockRefresher", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float = 2.0) -> None:
        self._stop_event.set()
        self._wake_event.set()
        if self._thread:
            self._thread.join(timeout=timeout)
            self._thread = None

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def tick(self) -> int:
        """
        Runs one refresh and returns the delay before the next one (ms).

        Callback errors are logged and do not stop the refresher.
        """
        mapper = self._mapper
        now_ms = current_time_or_local(self._time_source)
        sample = mapper.sample(now_ms)
        angles = hand_angles(sample, mapper.zero_reference)
        try:
            self._on_tick(sample, angles)
        except Exception as e:
            logger.error(f"Clock tick callback failed: {e}", exc_info=True)
        self._tick_count += 1

        if self._ambient:
            return next_minute_delay_ms(now_ms)
        return self._frame_interval_ms

    def _loop(self) -> None:
        logger.info("Clock refresher started.")
        while not self._stop_event.is_set():
            delay_ms = self.tick()
            self._wake_event.wait(delay_ms / 1000.0)
            self._wake_event.clear()
        logger.info("Clock refresher stopped.")
