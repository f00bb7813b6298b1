"""
SQLite schema and connection management for the claims database.

Handles schema creation and versioning.
"""

import sqlite3
from pathlib import Path
from typing import Optional

from .exceptions import StorageError

# Current schema version
SCHEMA_VERSION = "1.0"

MEMORY_DB = ":memory:"


def get_schema_version(conn: sqlite3.Connection) -> Optional[str]:
    """
    Get current schema version from database.
    
    Returns:
        Schema version string (e.g., "1.0") or None if not set.
    """
    try:
        cursor = conn.execute(
            "SELECT value FROM meta_info WHERE key = 'schema_version'"
        )
        row = cursor.fetchone()
        return row[0] if row else None
    except sqlite3.OperationalError:
        # Table doesn't exist
        return None


def create_schema(conn: sqlite3.Connection) -> None:
    """
    Create all tables and set schema version.
    
    Tables:
        - claimed_businesses (user -> place claims)
        - meta_info (versioning metadata)
    """
    cursor = conn.cursor()

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS meta_info (
            key     TEXT PRIMARY KEY,
            value   TEXT
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS claimed_businesses (
            id          INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id     TEXT NOT NULL,
            place_id    TEXT NOT NULL,
            name        TEXT NOT NULL,
            address     TEXT NOT NULL,
            created_utc TEXT NOT NULL,
            UNIQUE(user_id, place_id)
        )
    """)

    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_claimed_businesses_place
        ON claimed_businesses(place_id)
    """)

    cursor.execute(
        "INSERT OR REPLACE INTO meta_info (key, value) VALUES ('schema_version', ?)",
        (SCHEMA_VERSION,),
    )
    conn.commit()


def ensure_schema_version(conn: sqlite3.Connection) -> None:
    """Create the schema if missing; refuse databases written by a newer library."""
    current_version = get_schema_version(conn)

    if current_version is None:
        create_schema(conn)
    elif current_version > SCHEMA_VERSION:
        raise StorageError(
            f"Database schema version {current_version} is newer than "
            f"library version {SCHEMA_VERSION}. Please upgrade library."
        )


def get_connection(db_path: Path) -> sqlite3.Connection:
    """
    Get a connection to the claims database.
    
    Creates the database file, its parent directory and the schema if needed.
    check_same_thread=False lets FastAPI's worker threads share the
    connection; callers serialize access with their own lock.
    """
    target = str(db_path)
    if target != MEMORY_DB:
        Path(target).parent.mkdir(parents=True, exist_ok=True)

    try:
        conn = sqlite3.connect(target, check_same_thread=False)
    except sqlite3.Error as e:
        raise StorageError(f"Failed to open database {target}: {e}")
    conn.row_factory = sqlite3.Row

    ensure_schema_version(conn)

    return conn
