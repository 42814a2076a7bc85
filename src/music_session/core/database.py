"""
SQLite database operations for Music Session
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from loguru import logger

from .config import get_data_dir


# Bump together with a new step in migrate_database()
SCHEMA_VERSION = 2


def get_database_path() -> Path:
    """Location of the session database inside the data dir."""
    return get_data_dir() / "music_session.db"


@contextmanager
def get_db_connection(db_path: Optional[Path] = None):
    """Open a WAL-mode connection with Row access; closed on exit."""
    path = db_path if db_path is not None else get_database_path()
    # Network callbacks write from worker threads while the UI thread reads
    conn = sqlite3.connect(path, timeout=30.0, check_same_thread=False)
    conn.row_factory = sqlite3.Row

    conn.execute("PRAGMA journal_mode=WAL")

    try:
        yield conn
    finally:
        conn.close()


def migrate_database(conn, current_version: int) -> None:
    """Apply each schema step newer than current_version."""
    if current_version < 1:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS session_state (
                id INTEGER PRIMARY KEY CHECK (id = 1), -- Ensure only one row
                payload TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)
        conn.commit()

    if current_version < 2:
        # Migration from v1 to v2: record version travels with the payload row
        try:
            conn.execute(
                "ALTER TABLE session_state ADD COLUMN version INTEGER NOT NULL DEFAULT 1"
            )
        except sqlite3.OperationalError:
            # Column already exists
            pass
        conn.commit()


def init_database(db_path: Optional[Path] = None) -> None:
    """Create or upgrade the session database and record its schema version."""
    path = db_path if db_path is not None else get_database_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    with get_db_connection(path) as conn:
        conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_version (version INTEGER PRIMARY KEY)"
        )
        row = conn.execute("SELECT MAX(version) AS version FROM schema_version").fetchone()
        current_version = row["version"] or 0

        if current_version >= SCHEMA_VERSION:
            return

        logger.info(f"Migrating session database from v{current_version} to v{SCHEMA_VERSION}")
        migrate_database(conn, current_version)
        # Single row holding the latest applied version
        conn.execute("DELETE FROM schema_version")
        conn.execute("INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
        conn.commit()
