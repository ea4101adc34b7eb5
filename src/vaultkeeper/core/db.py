# Core Module - SQLite Connection Helper
#
# SQLite-backed storage opens connections through `connect()` or
# `transaction()` so each one gets:
#
#   - WAL journal mode (readers never block the single writer)
#   - busy_timeout so a second process waits instead of failing with SQLITE_BUSY
#   - synchronous=FULL so a committed envelope survives power loss

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union


def connect(
    db_path: Union[str, Path],
    *,
    row_factory: bool = False,
    check_same_thread: bool = True,
) -> sqlite3.Connection:
    """Open a SQLite connection with WAL mode and durable PRAGMAs.

    Args:
        db_path: Path to the database file.
        row_factory: If True, set conn.row_factory = sqlite3.Row.
        check_same_thread: Passed to sqlite3.connect().
    """
    conn = sqlite3.connect(str(db_path), check_same_thread=check_same_thread)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA busy_timeout=5000")
    conn.execute("PRAGMA synchronous=FULL")
    if row_factory:
        conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def transaction(db_path: Union[str, Path], *, row_factory: bool = True) -> Iterator[sqlite3.Connection]:
    """Connection that commits on success, rolls back on error, and is always closed."""
    conn = connect(db_path, row_factory=row_factory)
    try:
        yield conn
        conn.commit()
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()
