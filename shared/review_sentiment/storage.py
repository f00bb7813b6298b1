"""
Claim storage backed by SQLite.

Binds a location (directory place id) to the user who claimed it. The
aggregation pipeline never reads claims; the web layer uses them for the
owner dashboard.
"""

import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional

from .database import get_connection
from .exceptions import StorageError
from .interfaces import ClaimStoreInterface
from .models import ClaimRecord


def _row_to_claim(row: sqlite3.Row) -> ClaimRecord:
    return ClaimRecord(
        id=row["id"],
        user_id=row["user_id"],
        place_id=row["place_id"],
        name=row["name"],
        address=row["address"],
        created_utc=row["created_utc"],
    )


class ClaimStorage(ClaimStoreInterface):
    """
    Handles all database operations for claimed businesses.
    
    Supports:
        - Thread-safe operations
        - Claim toggling (claim if absent, unclaim if present)
        - Resource cleanup
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.conn = get_connection(db_path)
        self._lock = threading.Lock()

    def __enter__(self) -> "ClaimStorage":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close database connection and cleanup resources."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def is_claimed(self, user_id: str, place_id: str) -> bool:
        with self._lock:
            try:
                cursor = self.conn.execute(
                    "SELECT 1 FROM claimed_businesses WHERE user_id = ? AND place_id = ?",
                    (user_id, place_id),
                )
                return cursor.fetchone() is not None
            except sqlite3.Error as e:
                raise StorageError(f"Failed to check claim: {e}")

    def claim(self, user_id: str, place_id: str, name: str, address: str) -> ClaimRecord:
        """Record a claim. Claiming an already claimed place returns the existing record."""
        with self._lock:
            try:
                now = datetime.now(timezone.utc).isoformat()
                self.conn.execute("""
                    INSERT OR IGNORE INTO claimed_businesses
                    (user_id, place_id, name, address, created_utc)
                    VALUES (?, ?, ?, ?, ?)
                """, (user_id, place_id, name, address, now))
                self.conn.commit()
                cursor = self.conn.execute(
                    "SELECT * FROM claimed_businesses WHERE user_id = ? AND place_id = ?",
                    (user_id, place_id),
                )
                return _row_to_claim(cursor.fetchone())
            except sqlite3.Error as e:
                self.conn.rollback()
                raise StorageError(f"Failed to claim {place_id}: {e}")

    def unclaim(self, user_id: str, place_id: str) -> bool:
        with self._lock:
            try:
                cursor = self.conn.execute(
                    "DELETE FROM claimed_businesses WHERE user_id = ? AND place_id = ?",
                    (user_id, place_id),
                )
                self.conn.commit()
                return cursor.rowcount > 0
            except sqlite3.Error as e:
                self.conn.rollback()
                raise StorageError(f"Failed to unclaim {place_id}: {e}")

    def list_claims(self, user_id: str) -> List[ClaimRecord]:
        with self._lock:
            try:
                cursor = self.conn.execute(
                    "SELECT * FROM claimed_businesses WHERE user_id = ? ORDER BY created_utc",
                    (user_id,),
                )
                return [_row_to_claim(row) for row in cursor.fetchall()]
            except sqlite3.Error as e:
                raise StorageError(f"Failed to list claims: {e}")

    def get_claim_by_place(self, place_id: str) -> Optional[ClaimRecord]:
        with self._lock:
            try:
                cursor = self.conn.execute(
                    "SELECT * FROM claimed_businesses WHERE place_id = ? ORDER BY id LIMIT 1",
                    (place_id,),
                )
                row = cursor.fetchone()
                return _row_to_claim(row) if row else None
            except sqlite3.Error as e:
                raise StorageError(f"Failed to read claim: {e}")
