"""
Watch Sync Services.

This package contains concrete implementations of the sync interfaces and
the offset tracking built on them.

ARCHITECTURE:
- Services implement interfaces from timesync/interfaces/
- Services may use utils/ for low-level operations
- main.py wires them together; nothing here reads a global time source
"""

from timesync.services.observation_service import StubObservationService, decode_image
from timesync.services.offset_tracker import (
    OffsetTracker,
    SyncResult,
    compute_drift_ms,
    compute_offset_ms,
)
from timesync.services.store_service import SqliteWatchStore
from timesync.services.sync_worker import SyncJob, SyncWorker
from timesync.services.time_source_service import (
    FallbackTimeSource,
    HttpDateTimeSource,
    NtpTimeSource,
    SystemTimeSource,
    current_time_or_local,
)

__all__ = [
    "FallbackTimeSource",
    "HttpDateTimeSource",
    "NtpTimeSource",
    "OffsetTracker",
    "SqliteWatchStore",
    "StubObservationService",
    "SyncJob",
    "SyncResult",
    "SyncWorker",
    "SystemTimeSource",
    "compute_drift_ms",
    "compute_offset_ms",
    "current_time_or_local",
    "decode_image",
]
