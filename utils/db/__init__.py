"""
Kronos Clock Database Module.

This package provides database access for the watch registry.

Usage:
    from utils.db import get_connection, insert_watch, fetch_watches
    # or
    from utils.db.watches import insert_watch
"""

# Connection and Schema
from utils.db.connection import (
    DB_FILENAME,
    SCHEMA_VERSION,
    _ensure_column_on_table,
    _get_db_path,
    _init_schema,
    closing_connection,
    get_connection,
    reset_store,
)

# Watch Operations
from utils.db.watches import (
    fetch_watch,
    fetch_watches,
    insert_watch,
    update_watch,
)

__all__ = [
    # Connection
    "DB_FILENAME",
    "SCHEMA_VERSION",
    "_get_db_path",
    "closing_connection",
    "get_connection",
    "_init_schema",
    "_ensure_column_on_table",
    "reset_store",
    # Watches
    "insert_watch",
    "update_watch",
    "fetch_watch",
    "fetch_watches",
]
