"""
Watch Sync Interfaces.

This package defines the abstract interfaces for the collaborators of the
clock and the offset tracker. These interfaces enable:
- Injection of the time source instead of a process-wide singleton
- Independent testing with fakes
- Replacing the stub observation source with a real detector later

ARCHITECTURE:
- OffsetTracker and ClockRefresher only talk to these interfaces
- Concrete implementations live in services/
"""

from timesync.interfaces.observation import ObservationInterface
from timesync.interfaces.store import (
    UNSYNCED,
    Synced,
    SyncState,
    Unsynced,
    Watch,
    WatchStoreInterface,
)
from timesync.interfaces.time_source import TimeSourceInterface

__all__ = [
    # Interfaces
    "ObservationInterface",
    "TimeSourceInterface",
    "WatchStoreInterface",
    # Data Classes
    "Watch",
    "Synced",
    "Unsynced",
    "SyncState",
    "UNSYNCED",
]
