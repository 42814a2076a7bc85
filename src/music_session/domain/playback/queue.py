"""
Queue derivation.

The playback queue is never stored: it is derived from the library, the
selected collection, the favorites set and the search term, and recomputed
only when one of those inputs changes.
"""

import random
import threading
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from loguru import logger

from music_session.domain.library.models import (
    FAVORITES_PLAYLIST_NAME,
    Collection,
    Song,
    SongId,
    SongRef,
)


def resolve_song_refs(refs: Iterable[SongRef], songs_by_id: Dict[str, Song]) -> List[Song]:
    """Resolve collection entries to songs, dropping ids missing from the library."""
    resolved = []
    for ref in refs:
        if isinstance(ref, Song):
            resolved.append(ref)
        elif isinstance(ref, SongId):
            song = songs_by_id.get(str(ref.id))
            if song is not None:
                resolved.append(song)
    return resolved


def matches_search(song: Song, term: str) -> bool:
    """Case-insensitive substring match over title or artist."""
    needle = term.lower()
    return needle in (song.title or "").lower() or needle in (song.artist or "").lower()


def derive_queue(
    songs: Sequence[Song],
    selected_playlist: Optional[Collection],
    favorites: Sequence[str],
    search_term: str = "",
) -> List[Song]:
    """Compute the ordered playback queue.

    Args:
        songs: Full library in display order
        selected_playlist: Collection to restrict to, or None for all songs
        favorites: Favorite song ids in favorites order
        search_term: Filter over title and artist; empty keeps everything

    Returns:
        A new list; unresolvable references are silently dropped
    """
    if selected_playlist is None:
        base = list(songs)
    else:
        songs_by_id = {str(song.id): song for song in songs}
        if selected_playlist.name == FAVORITES_PLAYLIST_NAME:
            refs: Iterable[SongRef] = (SongId(str(song_id)) for song_id in favorites)
        else:
            refs = selected_playlist.songs
        base = resolve_song_refs(refs, songs_by_id)

    if not search_term:
        return base
    return [song for song in base if matches_search(song, search_term)]


class QueueDeriver:
    """Memoised view of the current queue.

    Inputs are compared by identity/value on every read; the queue is only
    re-derived when the library version, selection, favorites or search term
    differ from the last computation.
    """

    def __init__(self, library, favorites: Callable[[], Sequence[str]]) -> None:
        self._library = library
        self._favorites = favorites
        self._selected_playlist: Optional[Collection] = None
        self._search_term = ""
        self._lock = threading.Lock()
        self._cache_key: Optional[tuple] = None
        self._cache: List[Song] = []

    @property
    def selected_playlist(self) -> Optional[Collection]:
        return self._selected_playlist

    @selected_playlist.setter
    def selected_playlist(self, collection: Optional[Collection]) -> None:
        self._selected_playlist = collection

    @property
    def search_term(self) -> str:
        return self._search_term

    @search_term.setter
    def search_term(self, term: Optional[str]) -> None:
        self._search_term = term or ""

    @property
    def filtered_songs(self) -> List[Song]:
        favorites = tuple(self._favorites())
        key = (self._library.version, self._selected_playlist, favorites, self._search_term)
        with self._lock:
            if key != self._cache_key:
                logger.trace("Queue inputs changed - re-deriving")
                self._cache = derive_queue(
                    self._library.songs,
                    self._selected_playlist,
                    favorites,
                    self._search_term,
                )
                self._cache_key = key
            return list(self._cache)

    def index_of(self, song_id: Optional[str]) -> int:
        """Position of song_id in the current queue, -1 if absent."""
        if song_id is None:
            return -1
        for i, song in enumerate(self.filtered_songs):
            if song.id == str(song_id):
                return i
        return -1


def random_other_index(current: int, length: int, rng: random.Random) -> int:
    """Random index different from current whenever length > 1."""
    if length <= 1:
        return 0
    if current < 0 or current >= length:
        return rng.randrange(length)
    # Draw from the other length-1 slots so the current one is never picked
    pick = rng.randrange(length - 1)
    return pick + 1 if pick >= current else pick


def next_index(
    current: int,
    length: int,
    shuffle: bool,
    stop_at_end: bool,
    rng: random.Random,
) -> Optional[int]:
    """Index to advance to, or None when playback should stop.

    A current index of -1 (song not in queue) advances to the first track.
    """
    if length <= 0:
        return None
    if shuffle:
        return random_other_index(current, length, rng)
    following = current + 1
    if following >= length:
        return None if stop_at_end else 0
    return following


def previous_index(current: int, length: int, shuffle: bool, rng: random.Random) -> Optional[int]:
    """Index to go back to; wraps to the last track and never stops."""
    if length <= 0:
        return None
    if shuffle:
        return random_other_index(current, length, rng)
    if current <= 0:
        return length - 1
    return current - 1
