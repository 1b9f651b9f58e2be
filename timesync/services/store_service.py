"""
Store Service - SQLite Watch Registry.

Implements WatchStoreInterface over utils.db. Each call opens and closes
its own connection; SQLite serializes concurrent writers.
"""

import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from logging_config import get_logger
from timesync.errors import StoreUnavailable
from timesync.interfaces.store import UNSYNCED, Synced, Watch, WatchStoreInterface
from utils.db import (
    closing_connection,
    fetch_watch,
    fetch_watches,
    insert_watch,
    update_watch,
)

logger = get_logger(__name__)


def watch_from_row(row: dict[str, Any]) -> Watch:
    """
    Maps a DB row to a Watch.

    A row with a sync time but no offset was written by the manual
    "Set as Synced" flow of older builds and reads as offset 0. A row with
    an offset but no sync time carries no usable sync and reads as Unsynced.
    """
    synced_at = row.get("last_synced_epoch_ms")
    offset = row.get("last_offset_ms")
    if synced_at is None:
        sync = UNSYNCED
    else:
        sync = Synced(int(synced_at), int(offset) if offset is not None else 0)
    return Watch(make=row["make"], model=row["model"], sync=sync, id=row["id"])


def watch_to_row(watch: Watch) -> dict[str, Any]:
    return {
        "id": watch.id,
        "make": watch.make,
        "model": watch.model,
        "last_synced_epoch_ms": watch.last_synced_ms,
        "last_offset_ms": watch.last_offset_ms,
    }


class SqliteWatchStore(WatchStoreInterface):
    """
    Watch persistence backed by the application SQLite database.

    Features:
    - One short-lived connection per operation
    - Single-statement updates, so both sync fields change atomically
    - sqlite3 / filesystem failures raised as StoreUnavailable
    """

    @contextmanager
    def _connection(self, action: str) -> Generator[sqlite3.Connection, None, None]:
        try:
            with closing_connection() as conn:
                yield conn
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Watch store {action} failed: {e}")
            raise StoreUnavailable(f"Watch store {action} failed: {e}") from e

    def insert(self, watch: Watch) -> int:
        with self._connection("insert") as conn:
            watch_id = insert_watch(conn, watch_to_row(watch))
        logger.info(f"Registered watch {watch_id}: {watch.make} {watch.model}")
        return watch_id

    def update(self, watch: Watch) -> None:
        if watch.id is None:
            raise ValueError("Cannot update a watch that has no id")
        with self._connection("update") as conn:
            changed = update_watch(conn, watch_to_row(watch))
        if changed == 0:
            logger.warning(f"Update for unknown watch {watch.id} changed no rows")

    def get_by_id(self, watch_id: int) -> Watch | None:
        with self._connection("read") as conn:
            row = fetch_watch(conn, watch_id)
        return watch_from_row(row) if row is not None else None

    def list_all(self) -> list[Watch]:
        with self._connection("list") as conn:
            rows = fetch_watches(conn)
        return [watch_from_row(r) for r in rows]
