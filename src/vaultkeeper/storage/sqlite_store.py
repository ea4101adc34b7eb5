# Storage - SQLite Blob Store
# SQLite-backed key/value store for vault envelopes.
# One row per slot; every call runs in its own short transaction.

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from ..core.db import transaction
from .blob_store import BlobStore, validate_key

logger = logging.getLogger(__name__)


class SQLiteBlobStore(BlobStore):
    """SQLite key/value store for named blobs.

    Args:
        db_path: Path to SQLite file. Defaults to data/vault.db.
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        super().__init__()
        self.db_path = Path(db_path) if db_path else Path("data/vault.db")
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_database()

    def _init_database(self):
        with transaction(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS blobs (
                    key TEXT PRIMARY KEY,
                    value BLOB NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

    def get(self, key: str) -> Optional[bytes]:
        validate_key(key)
        with transaction(self.db_path) as conn:
            row = conn.execute(
                "SELECT value FROM blobs WHERE key = ?", (key,)
            ).fetchone()
        if row is None:
            return None
        return bytes(row["value"])

    def set(self, key: str, value: bytes) -> None:
        """Store a blob (upsert)."""
        validate_key(key)
        now = datetime.utcnow().isoformat()
        with transaction(self.db_path) as conn:
            conn.execute(
                """INSERT INTO blobs (key, value, updated_at)
                   VALUES (?, ?, ?)
                   ON CONFLICT(key) DO UPDATE SET
                       value = excluded.value,
                       updated_at = excluded.updated_at""",
                (key, sqlite3.Binary(value), now),
            )
        logger.debug("Wrote %d bytes to slot %s", len(value), key)

    def delete(self, key: str) -> bool:
        """Delete a blob. Returns True if the key existed."""
        validate_key(key)
        with transaction(self.db_path) as conn:
            cur = conn.execute("DELETE FROM blobs WHERE key = ?", (key,))
            return cur.rowcount > 0

    def exists(self, key: str) -> bool:
        validate_key(key)
        with transaction(self.db_path) as conn:
            row = conn.execute(
                "SELECT 1 FROM blobs WHERE key = ?", (key,)
            ).fetchone()
        return row is not None
