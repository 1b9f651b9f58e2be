"""
Offset Tracker - Watch vs Trusted Clock Comparison.

Compares the time read from a watch face with the trusted clock, stores the
signed offset on the watch and reports the drift since the previous
comparison. Stateless between calls: the previous offset is read from the
store once, at the start of each call.
"""

from dataclasses import dataclass
from datetime import time, tzinfo

import numpy as np

from clock.angle_mapper import decompose, resolve_zone
from logging_config import get_logger
from timesync.errors import ObservationUnavailable, WatchNotFoundError
from timesync.interfaces.observation import ObservationInterface
from timesync.interfaces.store import Watch, WatchStoreInterface
from timesync.interfaces.time_source import TimeSourceInterface
from timesync.services.time_source_service import current_time_or_local

logger = get_logger(__name__)

MS_PER_HOUR = 3_600_000


@dataclass(frozen=True)
class SyncResult:
    """
    Outcome of a successful comparison.

    Attributes:
        watch: The watch as persisted after the update.
        trusted_ms: Trusted time used for the comparison (epoch ms).
        offset_ms: Observed minus trusted time of day; positive = watch ahead.
        drift_ms: Change since the previous offset, None on the first sync.
        previous_offset_ms: Offset stored before this comparison, if any.
    """

    watch: Watch
    trusted_ms: int
    offset_ms: int
    drift_ms: int | None
    previous_offset_ms: int | None


def _ms_of_day(t: time) -> int:
    return ((t.hour * 60 + t.minute) * 60 + t.second) * 1000 + t.microsecond // 1000


def compute_offset_ms(
    trusted_ms: int, observed: time, tz: tzinfo, wrap_hours: int = 12
) -> int:
    """
    Signed difference between the observed watch time and the trusted time
    of day in `tz`, in milliseconds.

    The raw difference is wrapped into [-wrap/2, +wrap/2). With the default
    12 hours, an analog reading of 02:02 against a trusted 14:00 is +2 min.
    An analog dial cannot tell AM from PM, so the 12-hour wrap also maps a
    reading exactly 12 hours away (20:00 against 08:00) to 0 rather than
    reporting the plain time-of-day difference. Use wrap_hours=24 for
    digital watches, where that difference is meaningful.
    """
    if wrap_hours not in (12, 24):
        raise ValueError("wrap_hours must be 12 or 24")
    trusted_tod = decompose(trusted_ms, tz).time_of_day()
    raw = _ms_of_day(observed) - _ms_of_day(trusted_tod)
    period = int(wrap_hours) * MS_PER_HOUR
    half = period // 2
    return (raw + half) % period - half


def compute_drift_ms(offset_ms: int, previous_offset_ms: int | None) -> int | None:
    if previous_offset_ms is None:
        return None
    return offset_ms - previous_offset_ms


class OffsetTracker:
    """
    Computes and persists watch offsets.

    Features:
    - Offset and drift against an injected trusted time source
    - One atomic store update per successful comparison
    - No store write when the watch face could not be read
    """

    def __init__(
        self,
        store: WatchStoreInterface,
        time_source: TimeSourceInterface,
        zone_id: str,
        observation: ObservationInterface | None = None,
        wrap_hours: int = 12,
    ):
        """
        Initialize the tracker.

        Args:
            store: Watch persistence.
            time_source: Trusted clock.
            zone_id: Zone in which the watch is worn (resolved now).
            observation: Detector used by track_frame.
            wrap_hours: Offset wrap period, 12 for analog dials.

        Raises:
            InvalidZoneError: zone_id is unknown.
        """
        if wrap_hours not in (12, 24):
            raise ValueError("wrap_hours must be 12 or 24")
        self._store = store
        self._time_source = time_source
        self._tz = resolve_zone(zone_id)
        self._zone_id = zone_id
        self._observation = observation
        self._wrap_hours = wrap_hours

    @property
    def zone_id(self) -> str:
        return self._zone_id

    @property
    def wrap_hours(self) -> int:
        return self._wrap_hours

    def configure(self, zone_id: str | None = None, wrap_hours: int | None = None) -> None:
        """
        Applies changed settings; both values are validated before either
        is applied.

        Raises:
            InvalidZoneError: zone_id is unknown.
            ValueError: wrap_hours is not 12 or 24.
        """
        tz = resolve_zone(zone_id) if zone_id is not None else self._tz
        if wrap_hours is not None and wrap_hours not in (12, 24):
            raise ValueError("wrap_hours must be 12 or 24")
        self._tz = tz
        if zone_id is not None:
            self._zone_id = zone_id
        if wrap_hours is not None:
            self._wrap_hours = wrap_hours

    def _load(self, watch_id: int) -> Watch:
        watch = self._store.get_by_id(watch_id)
        if watch is None:
            raise WatchNotFoundError(watch_id)
        return watch

    def _persist(self, watch: Watch, trusted_ms: int, offset_ms: int) -> SyncResult:
        previous = watch.last_offset_ms
        updated = watch.with_sync(trusted_ms, offset_ms)
        self._store.update(updated)
        drift = compute_drift_ms(offset_ms, previous)
        logger.info(
            f"Watch {watch.id} ({watch.make} {watch.model}): offset={offset_ms}ms"
            + (f", drift={drift}ms" if drift is not None else "")
        )
        return SyncResult(
            watch=updated,
            trusted_ms=trusted_ms,
            offset_ms=offset_ms,
            drift_ms=drift,
            previous_offset_ms=previous,
        )

    def track(
        self, watch_id: int, observed: time | None, trusted_ms: int | None = None
    ) -> SyncResult:
        """
        Compares an observed watch time with the trusted clock.

        Args:
            watch_id: Watch to update.
            observed: Time of day read from the watch, None if unreadable.
            trusted_ms: Trusted time at the moment of observation. Read
                from the time source when omitted.

        Raises:
            WatchNotFoundError: No such watch.
            ObservationUnavailable: observed is None. Nothing is written.
            StoreUnavailable: The store failed.
        """
        watch = self._load(watch_id)
        if observed is None:
            logger.info(f"No observation for watch {watch_id}; nothing stored")
            raise ObservationUnavailable()
        if trusted_ms is None:
            trusted_ms = current_time_or_local(self._time_source)
        offset = compute_offset_ms(trusted_ms, observed, self._tz, self._wrap_hours)
        return self._persist(watch, trusted_ms, offset)

    def track_frame(self, watch_id: int, frame: np.ndarray | None) -> SyncResult:
        """Reads the watch time from an image, then behaves like track()."""
        trusted_ms = current_time_or_local(self._time_source)
        observed = None
        if frame is not None and self._observation is not None:
            observed = self._observation.detect(frame)
        return self.track(watch_id, observed, trusted_ms=trusted_ms)

    def mark_synced(self, watch_id: int) -> SyncResult:
        """Records that the user has just set the watch to the trusted time."""
        watch = self._load(watch_id)
        trusted_ms = current_time_or_local(self._time_source)
        return self._persist(watch, trusted_ms, 0)
