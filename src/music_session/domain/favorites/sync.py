"""
Favorites synchronization.

Favorites toggle instantly on the client and are reconciled with the
server's authoritative list when the request completes; failed requests roll
the local set back to its pre-toggle contents.
"""

from concurrent.futures import Executor, Future
from typing import Callable, Iterable, Optional, Protocol

from loguru import logger

from music_session.api.exceptions import (
    AuthenticationRequiredError,
    SessionExpiredError,
)
from music_session.core.output import log
from music_session.domain.session.auth import AuthSession
from music_session.utils.optimistic import OptimisticTransaction, OptimisticValue

Favorites = tuple[str, ...]


class FavoritesBackend(Protocol):
    def toggle_favorite(self, song_id: str) -> list[str]: ...


def toggled(favorites: Favorites, song_id: str) -> Favorites:
    """Return favorites with song_id removed if present, appended otherwise."""
    if song_id in favorites:
        return tuple(f for f in favorites if f != song_id)
    return favorites + (song_id,)


def restored(favorites: Favorites, snapshot: Favorites, song_id: str) -> Favorites:
    """Return favorites with song_id's membership put back as it was in snapshot."""
    if song_id in snapshot:
        return favorites if song_id in favorites else favorites + (song_id,)
    return tuple(f for f in favorites if f != song_id)


def _dedupe(ids: Iterable[str]) -> Favorites:
    return tuple(dict.fromkeys(str(song_id) for song_id in ids))


class FavoritesSynchronizer:
    """Owns the favorites set; the only component allowed to write it."""

    def __init__(
        self,
        backend: FavoritesBackend,
        auth: AuthSession,
        executor: Executor,
        *,
        on_auth_required: Optional[Callable[[], None]] = None,
        on_session_expired: Optional[Callable[[], None]] = None,
        on_change: Optional[Callable[[Favorites], None]] = None,
    ) -> None:
        self._backend = backend
        self._auth = auth
        self._executor = executor
        self._on_auth_required = on_auth_required
        self._on_session_expired = on_session_expired
        self._favorites: OptimisticValue[Favorites] = OptimisticValue(())
        if on_change is not None:
            self._favorites.add_listener(on_change)

    @property
    def favorites(self) -> Favorites:
        return self._favorites.value

    def is_favorite(self, song_id: str) -> bool:
        return str(song_id) in self._favorites.value

    def add_listener(self, callback: Callable[[Favorites], None]) -> None:
        self._favorites.add_listener(callback)

    def remove_listener(self, callback: Callable[[Favorites], None]) -> None:
        self._favorites.remove_listener(callback)

    def replace(self, ids: Iterable[str]) -> None:
        """Replace the whole set with server (or cached) truth."""
        self._favorites.set(_dedupe(ids))

    def reset(self) -> None:
        """Clear favorites and ignore any request still in flight."""
        self._favorites.reset(())

    def toggle_favorite(self, song_id: str) -> Future:
        """Toggle song_id optimistically and reconcile with the server.

        Returns:
            Future of the server call; the local set has already changed

        Raises:
            AuthenticationRequiredError: If no user is logged in
        """
        if not self._auth.is_authenticated:
            log(
                "Your session is incomplete. Please log in again to use Favorites.",
                level="warning",
            )
            if self._on_auth_required is not None:
                self._on_auth_required()
            raise AuthenticationRequiredError("Favorites require a logged-in user")

        safe_id = str(song_id)
        transaction = self._favorites.apply(
            lambda current: toggled(current, safe_id),
            revert=lambda current, snapshot: restored(current, snapshot, safe_id),
        )
        logger.debug(f"Optimistically toggled favorite {safe_id}")

        future = self._executor.submit(self._backend.toggle_favorite, safe_id)
        future.add_done_callback(
            lambda done: self._on_toggle_settled(done, transaction, safe_id)
        )
        return future

    def _on_toggle_settled(
        self,
        future: Future,
        transaction: OptimisticTransaction[Favorites],
        song_id: str,
    ) -> None:
        if future.cancelled():
            transaction.rollback()
            return

        error = future.exception()
        if error is None:
            if transaction.commit(_dedupe(future.result())):
                logger.info(f"Favorite {song_id} synced with server")
            return

        if not transaction.rollback():
            # Reset happened while the request was in flight
            return

        if isinstance(error, SessionExpiredError):
            log("Session expired. Please login again.", level="warning")
            if self._on_session_expired is not None:
                self._on_session_expired()
            return

        logger.error(f"Toggle favorite {song_id} failed: {error}")
        log("Could not update favorites. Check your connection.", level="error")
