"""
Tests for the core layer: zones, watch registry and clock snapshots.
"""

import math

import pytest

from clock.angle_mapper import SCREEN_THREE_O_CLOCK, ClockAngleMapper
from core import clock_core, watches_core, zones_core
from timesync.errors import InvalidZoneError, WatchNotFoundError
from timesync.interfaces.store import Synced, Watch, WatchStoreInterface
from timesync.interfaces.time_source import TimeSourceInterface
from timesync.services.time_source_service import FallbackTimeSource

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

# 2026-10-19 14:00:00.250 UTC
NOW_MS = 1_792_418_400_250


class _FixedTimeSource(TimeSourceInterface):
    def current_time_millis(self):
        return NOW_MS


class _MemoryStore(WatchStoreInterface):
    def __init__(self):
        self.watches = {}

    def insert(self, watch):
        watch_id = len(self.watches) + 1
        self.watches[watch_id] = Watch(watch.make, watch.model, watch.sync, watch_id)
        return watch_id

    def update(self, watch):
        self.watches[watch.id] = watch

    def get_by_id(self, watch_id):
        return self.watches.get(watch_id)

    def list_all(self):
        return sorted(self.watches.values(), key=lambda w: (w.make, w.model))


# ---------------------------------------------------------------------------
# Zones
# ---------------------------------------------------------------------------


def test_available_zones_sorted():
    zones = zones_core.available_zones()
    assert "Europe/Berlin" in zones
    assert zones == sorted(zones)


@pytest.mark.parametrize(
    "code, expected",
    [("de", "Europe/Berlin"), ("JP", "Asia/Tokyo"), (" us ", "America/New_York")],
)
def test_zone_for_country(code, expected):
    assert zones_core.zone_for_country(code) == expected


@pytest.mark.parametrize("code", ["", "XX", "DEU", None])
def test_zone_for_unknown_country(code):
    assert zones_core.zone_for_country(code) is None


def test_validate_zone():
    assert zones_core.validate_zone(" UTC ") == "UTC"
    with pytest.raises(InvalidZoneError):
        zones_core.validate_zone("Atlantis/Capital")


# ---------------------------------------------------------------------------
# Watches
# ---------------------------------------------------------------------------


def test_register_watch_trims_and_starts_unsynced():
    store = _MemoryStore()
    watch = watches_core.register_watch(store, "  Seiko ", " 5 ")

    assert watch.id == 1
    assert (watch.make, watch.model) == ("Seiko", "5")
    assert watches_core.watch_to_dict(watch) == {
        "id": 1,
        "make": "Seiko",
        "model": "5",
        "synced": False,
        "last_synced_epoch_ms": None,
        "last_offset_ms": None,
    }


@pytest.mark.parametrize("make, model", [("", "5"), ("Seiko", "   "), (None, "5")])
def test_register_watch_requires_make_and_model(make, model):
    with pytest.raises(ValueError):
        watches_core.register_watch(_MemoryStore(), make, model)


def test_get_watch_not_found():
    with pytest.raises(WatchNotFoundError):
        watches_core.get_watch(_MemoryStore(), 3)


def test_watch_to_dict_synced():
    data = watches_core.watch_to_dict(Watch("Seiko", "5", Synced(100, -20), 4))
    assert data["synced"] is True
    assert data["last_synced_epoch_ms"] == 100
    assert data["last_offset_ms"] == -20


# ---------------------------------------------------------------------------
# Clock snapshots
# ---------------------------------------------------------------------------


def test_clock_snapshot_fields():
    snapshot = clock_core.clock_snapshot(ClockAngleMapper("UTC"), _FixedTimeSource())

    assert snapshot["epoch_ms"] == NOW_MS
    assert snapshot["zone"] == "UTC"
    assert snapshot["time_source"] == "_FixedTimeSource"
    assert snapshot["time"] == "14:00:00.250"
    assert (snapshot["hour"], snapshot["minute"], snapshot["second"]) == (14, 0, 0)
    assert snapshot["angles_deg"]["hour"] == pytest.approx(60.0, abs=1e-3)
    assert snapshot["angles"]["minute"] == pytest.approx(
        math.radians(0.25 / 60 * 6), abs=1e-9
    )


def test_clock_snapshot_reports_fallback_source():
    source = FallbackTimeSource([_FixedTimeSource()])
    snapshot = clock_core.clock_snapshot(ClockAngleMapper("UTC"), source)
    assert snapshot["time_source"] == "_FixedTimeSource"


def test_render_clock_ignores_configured_zero_reference():
    mapper = ClockAngleMapper("UTC", SCREEN_THREE_O_CLOCK)
    png_three = clock_core.render_clock(mapper, _FixedTimeSource(), size=96)
    png_twelve = clock_core.render_clock(ClockAngleMapper("UTC"), _FixedTimeSource(), size=96)
    assert png_three == png_twelve
