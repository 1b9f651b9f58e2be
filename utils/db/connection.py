"""
Watch Database Connection and Schema.

Opens short-lived SQLite connections to OUTPUT_DIR/watches.db and brings the
schema up to SCHEMA_VERSION the first time a database file is opened.
"""

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path

from config import get_config
from logging_config import get_logger

logger = get_logger(__name__)

DB_FILENAME = "watches.db"

# Version 1: id, make, model. Version 2 added the two sync columns.
SCHEMA_VERSION = 2

BUSY_TIMEOUT_S = 5.0

# Paths whose schema is current. Keyed by path because OUTPUT_DIR can change.
_schema_initialized_paths: set[Path] = set()
_schema_lock = threading.Lock()


def _get_db_path() -> Path:
    output_dir = Path(get_config()["OUTPUT_DIR"])
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir / DB_FILENAME


def get_connection() -> sqlite3.Connection:
    """Opens a connection with WAL journaling and dict-like rows."""
    db_path = _get_db_path()
    conn = sqlite3.connect(db_path, timeout=BUSY_TIMEOUT_S, check_same_thread=False)
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    with _schema_lock:
        if db_path not in _schema_initialized_paths:
            _init_schema(conn)
            _schema_initialized_paths.add(db_path)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def closing_connection():
    """Yields a connection; commits on success, rolls back on error, always closes.

    Usage:
        with closing_connection() as conn:
            conn.execute("SELECT ...")
    """
    conn = get_connection()
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _get_user_version(conn: sqlite3.Connection) -> int:
    return conn.execute("PRAGMA user_version;").fetchone()[0]


def _init_schema(conn: sqlite3.Connection) -> None:
    version = _get_user_version(conn)
    if version > SCHEMA_VERSION:
        # Written by a newer build we cannot read: fall back to an empty store.
        logger.warning(
            f"Watch DB schema version {version} is newer than {SCHEMA_VERSION}; "
            "resetting the store."
        )
        reset_store(conn)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS watches (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            make TEXT NOT NULL,
            model TEXT NOT NULL
        );
        """)

    # Sync state (v2, nullable so no backfill is required)
    _ensure_column_on_table(conn, "watches", "last_synced_epoch_ms", "INTEGER")
    _ensure_column_on_table(conn, "watches", "last_offset_ms", "INTEGER")

    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_watches_make_model ON watches(make, model);"
    )
    conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION};")
    conn.commit()


def reset_store(conn: sqlite3.Connection) -> None:
    """Drops every watch. The only path by which records are deleted."""
    conn.execute("DROP TABLE IF EXISTS watches;")
    conn.execute("PRAGMA user_version = 0;")
    conn.commit()


def _ensure_column_on_table(
    conn: sqlite3.Connection, table: str, column: str, coltype: str
) -> None:
    cur = conn.execute(f"PRAGMA table_info({table});")
    cols = {row[1] for row in cur.fetchall()}
    if column not in cols:
        conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {coltype};")
        conn.commit()
