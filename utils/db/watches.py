"""
Watch CRUD Operations.

This module handles watch-related database operations. Rows are returned
as plain dicts; mapping to the Watch record happens in the store service.
"""

import sqlite3
from typing import Any

_COLUMNS = "id, make, model, last_synced_epoch_ms, last_offset_ms"


def insert_watch(conn: sqlite3.Connection, row: dict[str, Any]) -> int:
    cur = conn.execute(
        """
        INSERT INTO watches (
            make,
            model,
            last_synced_epoch_ms,
            last_offset_ms
        ) VALUES (?, ?, ?, ?);
        """,
        (
            row.get("make"),
            row.get("model"),
            row.get("last_synced_epoch_ms"),
            row.get("last_offset_ms"),
        ),
    )
    conn.commit()
    return cur.lastrowid


def update_watch(conn: sqlite3.Connection, row: dict[str, Any]) -> int:
    """Overwrites all mutable columns in one statement. Returns rows changed."""
    cur = conn.execute(
        """
        UPDATE watches
        SET make = ?,
            model = ?,
            last_synced_epoch_ms = ?,
            last_offset_ms = ?
        WHERE id = ?;
        """,
        (
            row.get("make"),
            row.get("model"),
            row.get("last_synced_epoch_ms"),
            row.get("last_offset_ms"),
            row.get("id"),
        ),
    )
    conn.commit()
    return cur.rowcount


def fetch_watch(conn: sqlite3.Connection, watch_id: int) -> dict[str, Any] | None:
    row = conn.execute(
        f"SELECT {_COLUMNS} FROM watches WHERE id = ?", (watch_id,)
    ).fetchone()
    return dict(row) if row is not None else None


def fetch_watches(conn: sqlite3.Connection) -> list[dict[str, Any]]:
    rows = conn.execute(
        f"SELECT {_COLUMNS} FROM watches ORDER BY make, model, id"
    ).fetchall()
    return [dict(r) for r in rows]
