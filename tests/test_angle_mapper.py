"""
Tests for the clock angle mapper.
"""

import calendar
import math
from datetime import datetime, time

import pytest
import pytz

from clock.angle_mapper import (
    SCREEN_THREE_O_CLOCK,
    TAU,
    TWELVE_O_CLOCK,
    ClockAngleMapper,
    angles_to_time_of_day,
    decompose,
    hand_angles,
    normalize_angle,
    resolve_zone,
    zero_reference_for,
)
from timesync.errors import InvalidZoneError

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _utc_ms(hour, minute=0, second=0, millis=0, day=19):
    seconds = calendar.timegm((2026, 10, day, hour, minute, second, 0, 0, 0))
    return seconds * 1000 + millis


# ---------------------------------------------------------------------------
# Hand angles
# ---------------------------------------------------------------------------


def test_midnight_points_all_hands_at_zero():
    mapper = ClockAngleMapper("UTC")
    angles = mapper.angles(0)
    assert angles.hour == 0.0
    assert angles.minute == 0.0
    assert angles.second == 0.0


def test_three_oclock_hour_hand_is_quarter_turn():
    angles = ClockAngleMapper("UTC").angles(_utc_ms(3))
    assert angles.hour == pytest.approx(math.pi / 2)
    assert angles.minute == pytest.approx(0.0)


def test_half_past_six():
    angles = ClockAngleMapper("UTC").angles(_utc_ms(6, 30))
    assert angles.hour == pytest.approx(6.5 / 12 * TAU)
    assert angles.minute == pytest.approx(math.pi)
    assert angles.second == pytest.approx(0.0)


def test_afternoon_uses_twelve_hour_dial():
    mapper = ClockAngleMapper("UTC")
    assert mapper.angles(_utc_ms(15, 10)).hour == pytest.approx(
        mapper.angles(_utc_ms(3, 10)).hour
    )


def test_second_hand_sweeps_with_milliseconds():
    angles = ClockAngleMapper("UTC").angles(_utc_ms(0, 0, 15, 500))
    assert angles.second == pytest.approx(15.5 / 60 * TAU)


def test_all_angles_within_one_turn():
    mapper = ClockAngleMapper("Europe/Berlin")
    for epoch_ms in range(-86_400_000, 2 * 86_400_000, 7_777_777):
        angles = mapper.angles(epoch_ms)
        for value in (angles.hour, angles.minute, angles.second):
            assert 0.0 <= value < TAU


def test_minute_hand_advances_monotonically_within_an_hour():
    mapper = ClockAngleMapper("UTC")
    start = _utc_ms(10)
    previous = -1.0
    for offset_s in range(0, 3600, 37):
        current = mapper.angles(start + offset_s * 1000).minute
        assert current > previous
        previous = current


@pytest.mark.parametrize("second", [0, 7, 29, 58])
@pytest.mark.parametrize("millis", [0, 250, 999])
def test_second_hand_steps_one_sixtieth_turn_per_second(second, millis):
    mapper = ClockAngleMapper("UTC")
    start = _utc_ms(10, 42, second, millis)

    step = mapper.angles(start + 1000).second - mapper.angles(start).second

    assert step == pytest.approx(TAU / 60)


def test_three_oclock_zero_reference_shifts_every_hand():
    mapper = ClockAngleMapper("UTC", SCREEN_THREE_O_CLOCK)
    angles = mapper.angles(0)
    assert angles.hour == pytest.approx(3 * math.pi / 2)
    assert angles.minute == pytest.approx(3 * math.pi / 2)


def test_normalize_angle_never_returns_full_turn():
    assert 0.0 <= normalize_angle(-1e-18) < TAU
    assert normalize_angle(TAU) == 0.0
    assert normalize_angle(-math.pi / 2) == pytest.approx(3 * math.pi / 2)


# ---------------------------------------------------------------------------
# Zones and decomposition
# ---------------------------------------------------------------------------


def test_decompose_applies_zone_offset():
    sample = decompose(_utc_ms(0), pytz.timezone("Asia/Kolkata"))
    assert (sample.hour, sample.minute) == (5, 30)


def test_decompose_handles_daylight_saving():
    tz = pytz.timezone("Europe/Berlin")
    # 2026-07-01 is CEST (UTC+2), 2026-12-01 is CET (UTC+1).
    summer = calendar.timegm((2026, 7, 1, 12, 0, 0, 0, 0, 0)) * 1000
    winter = calendar.timegm((2026, 12, 1, 12, 0, 0, 0, 0, 0)) * 1000
    assert decompose(summer, tz).hour == 14
    assert decompose(winter, tz).hour == 13


def test_decompose_before_epoch():
    sample = decompose(-1, pytz.utc)
    assert (sample.hour, sample.minute, sample.second) == (23, 59, 59)
    assert sample.sub_second == pytest.approx(0.999)


def test_time_of_day_keeps_milliseconds():
    sample = decompose(_utc_ms(8, 5, 3, 250), pytz.utc)
    assert sample.time_of_day() == time(8, 5, 3, 250_000)


@pytest.mark.parametrize("zone", ["Mars/Olympus_Mons", "", "   ", None])
def test_unknown_zone_rejected_at_construction(zone):
    with pytest.raises(InvalidZoneError):
        ClockAngleMapper(zone)


def test_invalid_zone_error_is_a_value_error():
    with pytest.raises(ValueError) as exc_info:
        resolve_zone("Not/AZone")
    assert exc_info.value.zone_id == "Not/AZone"


def test_with_zone_keeps_zero_reference():
    mapper = ClockAngleMapper("UTC", SCREEN_THREE_O_CLOCK)
    tokyo = mapper.with_zone("Asia/Tokyo")
    assert tokyo.zone_id == "Asia/Tokyo"
    assert tokyo.zero_reference == SCREEN_THREE_O_CLOCK
    assert tokyo.sample(_utc_ms(12)).hour == 21


def test_zero_reference_names():
    assert zero_reference_for("twelve") == TWELVE_O_CLOCK
    assert zero_reference_for("three") == SCREEN_THREE_O_CLOCK
    with pytest.raises(ValueError):
        zero_reference_for("nine")


# ---------------------------------------------------------------------------
# Reading angles back
# ---------------------------------------------------------------------------


def test_angles_to_time_of_day_with_second_hand():
    sample = decompose(_utc_ms(14, 25, 40, 250), pytz.utc)
    angles = hand_angles(sample)
    assert angles_to_time_of_day(angles.hour, angles.minute, angles.second) == time(
        2, 25, 40, 250_000
    )


def test_angles_to_time_of_day_without_second_hand():
    angles = hand_angles(decompose(_utc_ms(9, 15), pytz.utc))
    assert angles_to_time_of_day(angles.hour, angles.minute) == time(9, 15)


def test_angles_to_time_of_day_with_screen_reference():
    angles = hand_angles(decompose(_utc_ms(11, 59, 30), pytz.utc), SCREEN_THREE_O_CLOCK)
    result = angles_to_time_of_day(
        angles.hour, angles.minute, angles.second, zero_reference=SCREEN_THREE_O_CLOCK
    )
    assert result == time(11, 59, 30)


def test_local_datetime_matches_decompose():
    tz = pytz.timezone("America/New_York")
    epoch_ms = _utc_ms(17, 45, 12)
    expected = datetime.fromtimestamp(epoch_ms // 1000, tz)
    sample = decompose(epoch_ms, tz)
    assert (sample.hour, sample.minute, sample.second) == (
        expected.hour,
        expected.minute,
        expected.second,
    )
