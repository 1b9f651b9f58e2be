"""
Exception types shared by the clock and the watch sync pipeline.

Every failure is raised to the immediate caller. Callers decide whether to
surface, retry, or log; nothing in the mapper or tracker swallows these.
"""


class KronosError(Exception):
    """Base class for all application errors."""


class InvalidZoneError(KronosError, ValueError):
    """A time zone identifier could not be resolved (configuration time)."""

    def __init__(self, zone_id):
        self.zone_id = zone_id
        super().__init__(f"Unknown time zone: {zone_id!r}")


class ObservationUnavailable(KronosError):
    """The watch face time could not be determined. Nothing was persisted."""

    def __init__(self, message: str = "Could not read the time from the watch face."):
        super().__init__(message)


class StoreUnavailable(KronosError):
    """The watch store could not be read or written."""


class WatchNotFoundError(KronosError, LookupError):
    """No watch exists with the requested id."""

    def __init__(self, watch_id: int):
        self.watch_id = watch_id
        super().__init__(f"Watch {watch_id} not found")


__all__ = [
    "KronosError",
    "InvalidZoneError",
    "ObservationUnavailable",
    "StoreUnavailable",
    "WatchNotFoundError",
]
