"""Session domain - everything that survives a restart.

This domain handles:
- The versioned session record and its SQLite storage
- Logged-in user and bearer tokens
- Recently played songs
- The rotating quote
"""

from .store import RECORD_VERSION, SessionRecord, SessionStore, migrate_record
from .auth import AuthSession
from .recent import RecentlyPlayed
from .quotes import QUOTES, QuoteRotation

__all__ = [
    "RECORD_VERSION",
    "SessionRecord",
    "SessionStore",
    "migrate_record",
    "AuthSession",
    "RecentlyPlayed",
    "QUOTES",
    "QuoteRotation",
]
