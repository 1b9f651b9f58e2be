"""
Clock Angle Mapper.

Maps an instant (epoch milliseconds) in a time zone onto the angular
positions of the hour, minute and second hands of a 12-hour analog dial.

Angles are radians in [0, 2*pi), measured clockwise from the configured
zero reference. TWELVE_O_CLOCK (0.0) is the semantic convention;
SCREEN_THREE_O_CLOCK (-pi/2) is the screen convention used when drawing,
where angle 0 points along the positive x axis.
"""

import math
from dataclasses import dataclass
from datetime import datetime, time, tzinfo

import pytz

from logging_config import get_logger
from timesync.errors import InvalidZoneError

logger = get_logger(__name__)

TAU = 2.0 * math.pi

TWELVE_O_CLOCK = 0.0
SCREEN_THREE_O_CLOCK = -math.pi / 2.0

ZERO_REFERENCES = {
    "twelve": TWELVE_O_CLOCK,
    "three": SCREEN_THREE_O_CLOCK,
}


@dataclass(frozen=True)
class TimeSample:
    """
    An instant decomposed in a display zone.

    Attributes:
        epoch_ms: Milliseconds since the Unix epoch.
        zone: Zone identifier the instant was decomposed in.
        hour: 0..23
        minute: 0..59
        second: 0..59
        sub_second: Fraction of the current second, 0 <= x < 1.
    """

    epoch_ms: int
    zone: str
    hour: int
    minute: int
    second: int
    sub_second: float

    def time_of_day(self) -> time:
        return time(
            self.hour,
            self.minute,
            self.second,
            int(round(self.sub_second * 1000)) * 1000,
        )


@dataclass(frozen=True)
class AngularHandPosition:
    hour: float
    minute: float
    second: float


def resolve_zone(zone_id: str) -> tzinfo:
    """
    Resolves an IANA zone identifier.

    Raises:
        InvalidZoneError: The identifier is empty or unknown.
    """
    if not isinstance(zone_id, str) or not zone_id.strip():
        raise InvalidZoneError(zone_id)
    try:
        return pytz.timezone(zone_id.strip())
    except (pytz.UnknownTimeZoneError, ValueError):
        raise InvalidZoneError(zone_id) from None


def zero_reference_for(name: str) -> float:
    """Looks up a zero reference by its config name ("twelve" or "three")."""
    try:
        return ZERO_REFERENCES[name]
    except KeyError:
        raise ValueError(f"Unknown zero reference: {name!r}") from None


def normalize_angle(angle: float) -> float:
    """Wraps an angle into [0, 2*pi)."""
    wrapped = angle % TAU
    # Float modulo of a tiny negative value can land exactly on TAU.
    if wrapped >= TAU:
        wrapped -= TAU
    return wrapped


def decompose(epoch_ms: int, tz: tzinfo) -> TimeSample:
    """Splits an instant into wall-clock fields in the given zone."""
    epoch_ms = int(epoch_ms)
    whole_seconds, millis = divmod(epoch_ms, 1000)
    local = datetime.fromtimestamp(whole_seconds, tz)
    return TimeSample(
        epoch_ms=epoch_ms,
        zone=str(tz),
        hour=local.hour,
        minute=local.minute,
        second=local.second,
        sub_second=millis / 1000.0,
    )


def hand_angles(
    sample: TimeSample, zero_reference: float = TWELVE_O_CLOCK
) -> AngularHandPosition:
    """Computes hand angles for a 12-hour dial."""
    seconds_of_minute = sample.second + sample.sub_second
    minutes_of_hour = sample.minute + seconds_of_minute / 60.0
    hours_of_12 = (sample.hour % 12) + minutes_of_hour / 60.0

    return AngularHandPosition(
        hour=normalize_angle(hours_of_12 / 12.0 * TAU + zero_reference),
        minute=normalize_angle(minutes_of_hour / 60.0 * TAU + zero_reference),
        second=normalize_angle(seconds_of_minute / 60.0 * TAU + zero_reference),
    )


def angles_to_time_of_day(
    hour_angle: float,
    minute_angle: float,
    second_angle: float | None = None,
    zero_reference: float = TWELVE_O_CLOCK,
) -> time:
    """
    Reads a time of day back from hand angles.

    The hour hand carries the minute fraction, so the whole hour is taken
    from the hour hand after removing the minute contribution. The result
    is on a 12-hour dial: hour is always 0..11.
    """
    h = normalize_angle(hour_angle - zero_reference) / TAU * 12.0
    m = normalize_angle(minute_angle - zero_reference) / TAU * 60.0

    if second_angle is None:
        minute = int(m) % 60
        micros = int(round((m - int(m)) * 60.0 * 1_000_000))
    else:
        s = normalize_angle(second_angle - zero_reference) / TAU * 60.0
        minute = int(round(m - s / 60.0)) % 60
        micros = int(round(s * 1_000_000))

    micros = min(micros, 60 * 1_000_000 - 1)
    hour = int(round(h - (minute + micros / 60_000_000.0) / 60.0)) % 12
    second, micro = divmod(micros, 1_000_000)
    return time(hour, minute, second, micro)


class ClockAngleMapper:
    """
    Binds a zone (resolved once) and a zero reference.

    Raises InvalidZoneError from the constructor, never from the per-tick
    methods.
    """

    def __init__(self, zone_id: str, zero_reference: float = TWELVE_O_CLOCK):
        self._tz = resolve_zone(zone_id)
        self._zone_id = zone_id.strip()
        self._zero_reference = zero_reference
        logger.debug(f"ClockAngleMapper configured for {self._zone_id}")

    @property
    def zone_id(self) -> str:
        return self._zone_id

    @property
    def tz(self) -> tzinfo:
        return self._tz

    @property
    def zero_reference(self) -> float:
        return self._zero_reference

    def sample(self, epoch_ms: int) -> TimeSample:
        return decompose(epoch_ms, self._tz)

    def angles(self, epoch_ms: int) -> AngularHandPosition:
        return hand_angles(self.sample(epoch_ms), self._zero_reference)

    def with_zone(self, zone_id: str) -> "ClockAngleMapper":
        """Returns a mapper for another zone with the same zero reference."""
        return ClockAngleMapper(zone_id, self._zero_reference)
