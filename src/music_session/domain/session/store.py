"""
Durable session state for Music Session.

All state that must survive a restart (library snapshot, favorites, recently
played, quote rotation, logged-in user and tokens) lives in one versioned
record, stored as a single JSON row and written through SessionStore only.
"""

import json
import threading
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger

from music_session.core.database import get_db_connection, init_database

# Version of the payload layout (independent of the SQLite schema version)
RECORD_VERSION = 2

# Version 1 payloads used flat browser-storage style keys
_LEGACY_KEYS = {
    "cachedSongs": "songs",
    "cachedPlaylists": "playlists",
    "cachedAlbums": "albums",
    "favorites": "favorites",
    "recentlyPlayed": "recently_played",
    "quoteRotation": "quote_rotation",
    "user": "user",
    "accessToken": "access_token",
    "refreshToken": "refresh_token",
}


@dataclass(frozen=True)
class SessionRecord:
    """Everything persisted between application starts."""

    version: int = RECORD_VERSION
    songs: List[Dict[str, Any]] = field(default_factory=list)
    playlists: List[Dict[str, Any]] = field(default_factory=list)
    albums: List[Dict[str, Any]] = field(default_factory=list)
    favorites: List[str] = field(default_factory=list)
    recently_played: List[str] = field(default_factory=list)
    quote_rotation: Optional[Dict[str, Any]] = None  # {"index": int, "timestamp": float}
    user: Optional[Dict[str, Any]] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None


_RECORD_FIELDS = {f.name for f in fields(SessionRecord)}


def migrate_record(payload: Dict[str, Any]) -> SessionRecord:
    """Bring a stored payload up to RECORD_VERSION.

    Unknown keys are dropped; a payload without a version is treated as v1.
    """
    version = payload.get("version", 1)

    if version < 2:
        migrated: Dict[str, Any] = {}
        for legacy_key, key in _LEGACY_KEYS.items():
            if legacy_key in payload:
                migrated[key] = payload[legacy_key]
        rotation = migrated.get("quote_rotation")
        if isinstance(rotation, dict) and "timestamp" in rotation:
            # v1 timestamps were milliseconds since the epoch
            migrated["quote_rotation"] = {
                "index": int(rotation.get("index", 0)),
                "timestamp": float(rotation["timestamp"]) / 1000.0,
            }
        payload = migrated

    data = {k: v for k, v in payload.items() if k in _RECORD_FIELDS}
    data["version"] = RECORD_VERSION
    return SessionRecord(**data)


class SessionStore:
    """Single persistence interface for the session record.

    The record is read once by load() and kept in memory; every update writes
    the whole record back.
    """

    def __init__(self, db_path: Optional[Path] = None) -> None:
        self._db_path = db_path
        self._record = SessionRecord()
        self._lock = threading.RLock()
        self._loaded = False

    @property
    def record(self) -> SessionRecord:
        with self._lock:
            return self._record

    def load(self) -> SessionRecord:
        """Read the record from disk, migrating older layouts."""
        with self._lock:
            init_database(self._db_path)
            with get_db_connection(self._db_path) as conn:
                row = conn.execute(
                    "SELECT version, payload FROM session_state WHERE id = 1"
                ).fetchone()

            record = SessionRecord()
            if row is not None:
                try:
                    payload = json.loads(row["payload"])
                    payload.setdefault("version", row["version"])
                    record = migrate_record(payload)
                except (json.JSONDecodeError, TypeError, ValueError) as e:
                    logger.warning(f"Discarding unreadable session record: {e}")

            self._record = record
            self._loaded = True
            if row is not None and row["version"] != RECORD_VERSION:
                logger.info(
                    f"Migrated session record from v{row['version']} to v{RECORD_VERSION}"
                )
                self._write(record)
            return record

    def update(self, **changes: Any) -> SessionRecord:
        """Replace the given fields and persist the record.

        Raises:
            KeyError: If a field name is not part of SessionRecord
        """
        unknown = set(changes) - _RECORD_FIELDS
        if unknown:
            raise KeyError(f"Unknown session fields: {sorted(unknown)}")

        with self._lock:
            if not self._loaded:
                self.load()
            self._record = replace(self._record, **changes)
            self._write(self._record)
            return self._record

    def save(self, record: SessionRecord) -> None:
        """Persist a whole record, replacing the stored one."""
        with self._lock:
            self._record = replace(record, version=RECORD_VERSION)
            self._loaded = True
            init_database(self._db_path)
            self._write(self._record)

    def clear(self) -> None:
        """Delete all durable session state."""
        with self._lock:
            init_database(self._db_path)
            with get_db_connection(self._db_path) as conn:
                conn.execute("DELETE FROM session_state")
                conn.commit()
            self._record = SessionRecord()
            self._loaded = True
        logger.info("Session state cleared")

    def _write(self, record: SessionRecord) -> None:
        with get_db_connection(self._db_path) as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO session_state (id, version, payload, updated_at)
                VALUES (1, ?, ?, CURRENT_TIMESTAMP)
            """,
                (record.version, json.dumps(asdict(record))),
            )
            conn.commit()
