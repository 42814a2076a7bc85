"""
Rotating home-screen quote.

The quote advances one step every interval (six hours by default), also
across restarts: the stored index and timestamp are advanced by the number
of whole intervals that elapsed while the app was closed.
"""

import random
import threading
import time
from typing import Callable, Optional

from loguru import logger

from .store import SessionStore

QUOTES = (
    "Music is the universal language of mankind.",
    "Where words fail, music speaks.",
    "Life is better with music.",
    "Music is the art of thinking with sounds.",
    "Without music, life would be a mistake.",
    "Music is the soul of the universe.",
    "Let the music play.",
    "Music connects people.",
    "Rhythm is the heartbeat of life.",
    "Music washes away the dust of everyday life.",
    "In music we trust.",
    "Feel the beat.",
    "Music is my escape.",
    "Harmony is the goal.",
    "Melody is the essence of music.",
    "Music is healing.",
    "Dance across the edges of time.",
    "Lost in the rhythm.",
    "Music brings us together.",
    "Soundtrack of your life.",
)

DEFAULT_INTERVAL_HOURS = 6.0


class QuoteRotation:
    """Persisted quote index that steps forward once per interval."""

    def __init__(
        self,
        store: SessionStore,
        interval_hours: float = DEFAULT_INTERVAL_HOURS,
        quotes: tuple[str, ...] = QUOTES,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._store = store
        self._interval = interval_hours * 3600
        self._quotes = quotes
        self._clock = clock
        self._rng = rng or random.Random()
        self._lock = threading.Lock()

    @property
    def index(self) -> int:
        with self._lock:
            return self._advance()

    def current(self) -> str:
        """The quote to show now."""
        return self._quotes[self.index]

    def _advance(self) -> int:
        now = self._clock()
        stored = self._store.record.quote_rotation

        if not stored:
            index = self._rng.randrange(len(self._quotes))
            self._store.update(quote_rotation={"index": index, "timestamp": now})
            logger.debug(f"Starting quote rotation at {index}")
            return index

        index = int(stored.get("index", 0)) % len(self._quotes)
        timestamp = float(stored.get("timestamp", now))
        steps = int((now - timestamp) // self._interval) if now > timestamp else 0
        if steps > 0:
            index = (index + steps) % len(self._quotes)
            # Keep the partial interval so the next step still lands on schedule
            timestamp += steps * self._interval
            self._store.update(quote_rotation={"index": index, "timestamp": timestamp})
        return index
