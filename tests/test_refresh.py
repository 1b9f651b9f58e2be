"""
Tests for the clock refresher (continuous and ambient modes).
"""

import time

import pytest

from clock.angle_mapper import ClockAngleMapper
from clock.refresh import ClockRefresher, next_minute_delay_ms
from timesync.interfaces.time_source import TimeSourceInterface

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _FixedTimeSource(TimeSourceInterface):
    def __init__(self, epoch_ms):
        self.epoch_ms = epoch_ms

    def current_time_millis(self):
        return self.epoch_ms


def _wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


# ---------------------------------------------------------------------------
# Ambient delay
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "epoch_ms, expected",
    [
        (0, 60_000),
        (30_000, 30_000),
        (59_000, 1_000),
        (59_900, 500),
        (120_000 + 45_250, 14_750),
    ],
)
def test_next_minute_delay(epoch_ms, expected):
    assert next_minute_delay_ms(epoch_ms) == expected


# ---------------------------------------------------------------------------
# Single ticks
# ---------------------------------------------------------------------------


def test_tick_passes_sample_and_angles_to_callback():
    ticks = []
    refresher = ClockRefresher(
        ClockAngleMapper("UTC"),
        _FixedTimeSource(30_000),
        on_tick=lambda sample, angles: ticks.append((sample, angles)),
        frame_interval_ms=20,
    )

    delay = refresher.tick()

    assert delay == 20
    assert refresher.tick_count == 1
    [(sample, angles)] = ticks
    assert sample.second == 30
    assert angles.second == pytest.approx(3.141592653589793)


def test_ambient_tick_sleeps_until_next_minute():
    refresher = ClockRefresher(
        ClockAngleMapper("UTC"),
        _FixedTimeSource(45_000),
        on_tick=lambda *_: None,
        ambient=True,
    )
    assert refresher.tick() == 15_000


def test_callback_error_does_not_stop_refresh():
    def _boom(sample, angles):
        raise RuntimeError("renderer gone")

    refresher = ClockRefresher(
        ClockAngleMapper("UTC"), _FixedTimeSource(0), on_tick=_boom, frame_interval_ms=5
    )
    assert refresher.tick() == 5
    assert refresher.tick_count == 1


def test_set_mapper_changes_zone_on_next_tick():
    hours = []
    refresher = ClockRefresher(
        ClockAngleMapper("UTC"),
        _FixedTimeSource(0),
        on_tick=lambda sample, angles: hours.append(sample.hour),
    )
    refresher.tick()
    refresher.set_mapper(ClockAngleMapper("Asia/Tokyo"))
    refresher.tick()
    assert hours == [0, 9]


# ---------------------------------------------------------------------------
# Thread lifecycle
# ---------------------------------------------------------------------------


def test_start_and_stop():
    refresher = ClockRefresher(
        ClockAngleMapper("UTC"),
        _FixedTimeSource(0),
        on_tick=lambda *_: None,
        frame_interval_ms=5,
    )
    refresher.start()
    try:
        assert _wait_for(lambda: refresher.tick_count >= 3)
        assert refresher.is_running()
    finally:
        refresher.stop()

    assert not refresher.is_running()
    # Second stop is a no-op.
    refresher.stop()


def test_leaving_ambient_wakes_the_loop():
    # At epoch 0 the ambient loop would sleep a full minute.
    refresher = ClockRefresher(
        ClockAngleMapper("UTC"),
        _FixedTimeSource(0),
        on_tick=lambda *_: None,
        ambient=True,
        frame_interval_ms=5,
    )
    refresher.start()
    try:
        assert _wait_for(lambda: refresher.tick_count >= 1)
        refresher.set_ambient(False)
        assert _wait_for(lambda: refresher.tick_count >= 5)
        assert not refresher.ambient
    finally:
        refresher.stop()


def test_stop_interrupts_ambient_sleep():
    refresher = ClockRefresher(
        ClockAngleMapper("UTC"), _FixedTimeSource(0), on_tick=lambda *_: None, ambient=True
    )
    refresher.start()
    assert _wait_for(lambda: refresher.tick_count >= 1)

    started = time.monotonic()
    refresher.stop(timeout=5.0)

    assert time.monotonic() - started < 2.0
    assert not refresher.is_running()


def test_frame_interval_can_change_at_runtime():
    refresher = ClockRefresher(
        ClockAngleMapper("UTC"), _FixedTimeSource(0), on_tick=lambda *_: None
    )
    assert refresher.tick() == 16
    refresher.set_frame_interval(40)
    assert refresher.tick() == 40
    refresher.set_frame_interval(0)
    assert refresher.tick() == 1
