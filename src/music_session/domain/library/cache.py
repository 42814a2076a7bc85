"""
Library cache: songs, playlists, albums and banner.

Cache-then-network: a durable snapshot renders the library instantly at
startup, then a parallel fetch replaces it wholesale. Each sub-fetch fails
independently; a failure keeps whatever was there before.
"""

import random
import threading
from concurrent.futures import Executor, Future
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Protocol

from loguru import logger

from music_session.domain.session.auth import AuthSession
from music_session.domain.session.store import SessionStore

from .models import (
    Banner,
    Collection,
    Song,
    album_from_json,
    banner_from_json,
    collection_from_json,
    collection_to_json,
    favorite_ids_from_json,
    song_from_json,
    song_to_json,
)


class LibraryBackend(Protocol):
    def get_songs(self, cache_bust: bool = False) -> List[Dict[str, Any]]: ...
    def get_playlists(self, cache_bust: bool = False) -> List[Dict[str, Any]]: ...
    def get_albums(self, cache_bust: bool = False) -> List[Dict[str, Any]]: ...
    def get_banner(self) -> Optional[Dict[str, Any]]: ...
    def get_user_favorites(self) -> List[Any]: ...


class FetchResult(NamedTuple):
    """Outcome of one fetch_library_data() call."""

    skipped: bool = False
    failed: tuple[str, ...] = ()  # Names of the sub-fetches that failed


class LibraryCache:
    """Owns the in-memory library; the only component allowed to replace it."""

    def __init__(
        self,
        backend: LibraryBackend,
        store: SessionStore,
        auth: AuthSession,
        executor: Executor,
        *,
        on_favorites: Optional[Callable[[List[str]], None]] = None,
        shuffle_on_first_load: bool = True,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._backend = backend
        self._store = store
        self._auth = auth
        self._executor = executor
        self._on_favorites = on_favorites
        self._shuffle_on_first_load = shuffle_on_first_load
        self._rng = rng or random.Random()
        self._lock = threading.RLock()
        self._epoch = 0
        self._listeners: List[Callable[[], None]] = []

        self._songs: List[Song] = []
        self._songs_by_id: Dict[str, Song] = {}
        self._playlists: List[Collection] = []
        self._albums: List[Collection] = []
        self._banner: Optional[Banner] = None
        self._fetched = False
        self.version = 0

    @property
    def songs(self) -> List[Song]:
        with self._lock:
            return list(self._songs)

    @property
    def playlists(self) -> List[Collection]:
        with self._lock:
            return list(self._playlists)

    @property
    def albums(self) -> List[Collection]:
        with self._lock:
            return list(self._albums)

    @property
    def collections(self) -> List[Collection]:
        """Playlists followed by albums, both in collection shape."""
        with self._lock:
            return self._playlists + self._albums

    @property
    def banner(self) -> Optional[Banner]:
        return self._banner

    @property
    def has_data(self) -> bool:
        with self._lock:
            return bool(self._songs)

    def get_song(self, song_id: Optional[str]) -> Optional[Song]:
        if song_id is None:
            return None
        with self._lock:
            return self._songs_by_id.get(str(song_id))

    def find_collection(self, name_or_id: str) -> Optional[Collection]:
        """Find a playlist or album by id or case-insensitive name."""
        needle = name_or_id.lower()
        for collection in self.collections:
            if collection.id == name_or_id or collection.name.lower() == needle:
                return collection
        return None

    def add_listener(self, callback: Callable[[], None]) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify_listeners(self) -> None:
        for callback in list(self._listeners):
            try:
                callback()
            except Exception as exc:
                logger.error(f"Listener error: {exc}")

    # ------------------------------------------------------------------
    def load_snapshot(self) -> bool:
        """Populate the library from the durable snapshot.

        Returns:
            True if a snapshot with songs was found
        """
        record = self._store.record
        if not record.songs:
            return False

        with self._lock:
            self._set_songs([song_from_json(s) for s in record.songs])
            self._playlists = [collection_from_json(p) for p in record.playlists]
            self._albums = [album_from_json(a) for a in record.albums]
            self.version += 1

        if record.favorites and self._auth.is_authenticated and self._on_favorites:
            self._on_favorites(list(record.favorites))

        logger.info(
            f"Restored cached library: {len(record.songs)} songs, "
            f"{len(record.playlists)} playlists, {len(record.albums)} albums"
        )
        self._notify_listeners()
        return True

    def _set_songs(self, songs: List[Song]) -> None:
        self._songs = songs
        self._songs_by_id = {song.id: song for song in songs}

    def fetch_library_data(
        self, force: bool = False, fresh_session: bool = False
    ) -> FetchResult:
        """Fetch songs, playlists, albums, banner and favorites in parallel.

        Args:
            force: Refetch even if the library already has data
            fresh_session: Shuffle the song list again as on first load

        Returns:
            FetchResult naming the sub-fetches that failed
        """
        with self._lock:
            if self._fetched and self._songs and not force:
                logger.debug("Library already loaded, skipping fetch")
                return FetchResult(skipped=True)
            epoch = self._epoch
            first_load = not self._fetched
            cache_bust = force

        authenticated = self._auth.is_authenticated
        jobs: Dict[str, Future] = {
            "songs": self._executor.submit(self._backend.get_songs, cache_bust),
            "playlists": self._executor.submit(self._backend.get_playlists, cache_bust),
            "albums": self._executor.submit(self._backend.get_albums, cache_bust),
            "banner": self._executor.submit(self._backend.get_banner),
        }
        if authenticated:
            jobs["favorites"] = self._executor.submit(self._backend.get_user_favorites)

        results: Dict[str, Any] = {}
        failed: List[str] = []
        for name, job in jobs.items():
            try:
                results[name] = job.result()
            except Exception as e:
                logger.error(f"Failed to fetch {name}: {e}")
                failed.append(name)

        with self._lock:
            if epoch != self._epoch:
                logger.info("Discarding library fetch that finished after reset")
                return FetchResult(failed=tuple(failed))

            if "songs" in results:
                songs = [song_from_json(s) for s in results["songs"] or []]
                if self._shuffle_on_first_load and (first_load or fresh_session):
                    self._rng.shuffle(songs)
                self._set_songs(songs)
            if "playlists" in results:
                self._playlists = [
                    collection_from_json(p) for p in results["playlists"] or []
                ]
            if "albums" in results:
                self._albums = [album_from_json(a) for a in results["albums"] or []]
            if "banner" in results:
                self._banner = banner_from_json(results["banner"])

            if len(failed) < len(jobs):
                self._fetched = True
                self.version += 1

            # Same locked section as the epoch check, so reset() runs before or after
            # favorites and the snapshot land, never in between
            favorite_ids: Optional[List[str]] = None
            if "favorites" in results:
                favorite_ids = favorite_ids_from_json(results["favorites"])
                if self._on_favorites is not None:
                    self._on_favorites(favorite_ids)

            if epoch != self._epoch:
                logger.info("Library was reset while applying the fetch; snapshot not saved")
                return FetchResult(failed=tuple(failed))

            if len(failed) < len(jobs):
                self._persist_snapshot(favorite_ids)

        if len(failed) < len(jobs):
            self._notify_listeners()

        logger.info(
            f"Library fetch complete: {len(self._songs)} songs, "
            f"{len(self._playlists)} playlists, {len(self._albums)} albums"
            + (f" (failed: {', '.join(failed)})" if failed else "")
        )
        return FetchResult(failed=tuple(failed))

    def _persist_snapshot(self, favorite_ids: Optional[List[str]]) -> None:
        with self._lock:
            changes: Dict[str, Any] = {
                "songs": [song_to_json(s) for s in self._songs],
                "playlists": [collection_to_json(p) for p in self._playlists],
                "albums": [collection_to_json(a) for a in self._albums],
            }
        if favorite_ids is not None:
            changes["favorites"] = favorite_ids
        self._store.update(**changes)

    def reset(self) -> None:
        """Drop in-memory data; fetches still in flight will be discarded."""
        with self._lock:
            self._epoch += 1
            self._set_songs([])
            self._playlists = []
            self._albums = []
            self._banner = None
            self._fetched = False
            self.version += 1
        self._notify_listeners()
