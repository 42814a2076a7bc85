"""
Recently played songs.

Most-recent-first list of distinct song ids, capped and persisted on every
change.
"""

import threading
from typing import List

from .store import SessionStore

DEFAULT_LIMIT = 10


def pushed(recent: List[str], song_id: str, limit: int = DEFAULT_LIMIT) -> List[str]:
    """Return recent with song_id moved (or inserted) to the front, capped at limit."""
    song_id = str(song_id)
    return ([song_id] + [s for s in recent if s != song_id])[:limit]


class RecentlyPlayed:
    def __init__(self, store: SessionStore, limit: int = DEFAULT_LIMIT) -> None:
        self._store = store
        self._limit = limit
        self._lock = threading.Lock()

    @property
    def song_ids(self) -> List[str]:
        return list(self._store.record.recently_played)

    def push(self, song_id: str) -> List[str]:
        with self._lock:
            recent = pushed(self._store.record.recently_played, song_id, self._limit)
            self._store.update(recently_played=recent)
        return recent
