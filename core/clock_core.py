"""
Clock Core - Clock Face Snapshots.

Builds clock readings and rendered faces for the web layer.
"""

import math
from typing import Any

from clock.angle_mapper import ClockAngleMapper, hand_angles
from clock.face_geometry import build_face
from clock.renderer import render_clock_png
from timesync.interfaces.time_source import TimeSourceInterface
from timesync.services.time_source_service import FallbackTimeSource, current_time_or_local


def _source_label(time_source: TimeSourceInterface) -> str:
    if isinstance(time_source, FallbackTimeSource):
        return time_source.last_source
    return time_source.name


def clock_snapshot(
    mapper: ClockAngleMapper,
    time_source: TimeSourceInterface,
    epoch_ms: int | None = None,
) -> dict[str, Any]:
    """
    Returns the current reading of the clock.

    Args:
        mapper: Configured mapper (zone + zero reference)
        time_source: Trusted clock
        epoch_ms: Fixed instant instead of "now"

    Returns:
        Dictionary with the instant, its wall-clock fields and hand angles
    """
    if epoch_ms is None:
        epoch_ms = current_time_or_local(time_source)
    sample = mapper.sample(epoch_ms)
    angles = hand_angles(sample, mapper.zero_reference)
    return {
        "epoch_ms": sample.epoch_ms,
        "zone": mapper.zone_id,
        "time_source": _source_label(time_source),
        "time": sample.time_of_day().isoformat(timespec="milliseconds"),
        "hour": sample.hour,
        "minute": sample.minute,
        "second": sample.second,
        "angles": {
            "hour": angles.hour,
            "minute": angles.minute,
            "second": angles.second,
        },
        "angles_deg": {
            "hour": math.degrees(angles.hour),
            "minute": math.degrees(angles.minute),
            "second": math.degrees(angles.second),
        },
    }


def render_clock(
    mapper: ClockAngleMapper,
    time_source: TimeSourceInterface,
    size: int = 512,
    show_numerals: bool = True,
    ambient: bool = False,
    accent: str = "#d32f2f",
    epoch_ms: int | None = None,
) -> bytes:
    """Renders the clock face for now (or epoch_ms) as PNG bytes."""
    if epoch_ms is None:
        epoch_ms = current_time_or_local(time_source)
    # Geometry expects the twelve-o'clock reference regardless of config.
    angles = hand_angles(mapper.sample(epoch_ms))
    face = build_face(size, size, angles, show_numerals=show_numerals, ambient=ambient)
    return render_clock_png(face, accent=accent, ambient=ambient)
