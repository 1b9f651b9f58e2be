"""
Watch Store Interface - Watch Registry Persistence.

Defines the watch record and the contract for storing it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace


@dataclass(frozen=True)
class Unsynced:
    """The watch has never been compared against the trusted clock."""


@dataclass(frozen=True)
class Synced:
    """
    Result of the last successful comparison.

    Attributes:
        synced_at_ms: Trusted time of the comparison (epoch ms).
        offset_ms: Observed minus trusted; positive means the watch is ahead.
    """

    synced_at_ms: int
    offset_ms: int


UNSYNCED = Unsynced()

SyncState = Unsynced | Synced


@dataclass(frozen=True)
class Watch:
    """
    A physical watch registered by the user.

    Attributes:
        make: Manufacturer, e.g. "Seiko".
        model: Model name, e.g. "5".
        sync: Unsynced, or Synced(at, offset). Both sync fields change together.
        id: Store-assigned identifier, None until inserted.
    """

    make: str
    model: str
    sync: SyncState = UNSYNCED
    id: int | None = None

    @property
    def last_synced_ms(self) -> int | None:
        return self.sync.synced_at_ms if isinstance(self.sync, Synced) else None

    @property
    def last_offset_ms(self) -> int | None:
        return self.sync.offset_ms if isinstance(self.sync, Synced) else None

    def with_sync(self, synced_at_ms: int, offset_ms: int) -> Watch:
        return replace(self, sync=Synced(int(synced_at_ms), int(offset_ms)))


class WatchStoreInterface(ABC):
    """
    Interface for watch persistence.

    Implementations must serialize writes to a single record and raise
    StoreUnavailable for any storage failure. No internal retry.
    """

    @abstractmethod
    def insert(self, watch: Watch) -> int:
        """
        Stores a new watch.

        Returns:
            The assigned id.
        """
        pass

    @abstractmethod
    def update(self, watch: Watch) -> None:
        """
        Overwrites make, model and both sync fields of an existing watch
        in a single write.
        """
        pass

    @abstractmethod
    def get_by_id(self, watch_id: int) -> Watch | None:
        """Returns the watch, or None if no watch has that id."""
        pass

    @abstractmethod
    def list_all(self) -> list[Watch]:
        """Returns all watches ordered by make, then model."""
        pass
