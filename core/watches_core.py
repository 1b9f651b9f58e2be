"""
Watches Core - Watch Registry Operations.

Provides watch registration and lookup separated from the web layer.
"""

import logging
from typing import Any

from timesync.errors import WatchNotFoundError
from timesync.interfaces.store import Watch, WatchStoreInterface

logger = logging.getLogger(__name__)


def register_watch(store: WatchStoreInterface, make: str, model: str) -> Watch:
    """
    Registers a new, never-synced watch.

    Args:
        store: Watch store
        make: Manufacturer (required, trimmed)
        model: Model name (required, trimmed)

    Returns:
        The stored watch with its assigned id

    Raises:
        ValueError: make or model is blank
    """
    make = (make or "").strip()
    model = (model or "").strip()
    if not make or not model:
        raise ValueError("Both make and model are required")

    watch = Watch(make=make, model=model)
    watch_id = store.insert(watch)
    return Watch(make=make, model=model, sync=watch.sync, id=watch_id)


def list_watches(store: WatchStoreInterface) -> list[Watch]:
    """Returns all watches ordered by make, then model."""
    return store.list_all()


def get_watch(store: WatchStoreInterface, watch_id: int) -> Watch:
    """
    Returns one watch.

    Raises:
        WatchNotFoundError: No watch has this id
    """
    watch = store.get_by_id(watch_id)
    if watch is None:
        raise WatchNotFoundError(watch_id)
    return watch


def watch_to_dict(watch: Watch) -> dict[str, Any]:
    return {
        "id": watch.id,
        "make": watch.make,
        "model": watch.model,
        "synced": watch.last_synced_ms is not None,
        "last_synced_epoch_ms": watch.last_synced_ms,
        "last_offset_ms": watch.last_offset_ms,
    }
