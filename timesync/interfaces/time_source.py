"""
Time Source Interface - Trusted Clock Access.

Defines the contract for reading the current time from a clock that may be
synchronized over the network.
"""

from abc import ABC, abstractmethod


class TimeSourceInterface(ABC):
    """
    Interface for a current-time provider.

    Implementations should handle:
    - Synchronization with a reference (NTP, HTTP, local clock)
    - Reporting "unavailable" instead of guessing
    """

    @abstractmethod
    def current_time_millis(self) -> int | None:
        """
        Returns the current time.

        Returns:
            Milliseconds since the Unix epoch, or None when the source has
            no trustworthy value (never synced, cache expired).
        """
        pass

    @property
    def name(self) -> str:
        """Short label used in logs and API responses."""
        return type(self).__name__
