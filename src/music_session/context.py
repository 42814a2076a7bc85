"""Application context for explicit service wiring.

This module provides the AppContext dataclass that owns every long-lived
service of a session (store, REST client, library cache, favorites, queue,
playback controller). It is created once and passed to the front end.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from loguru import logger
from rich.console import Console

from music_session.api.client import ApiClient
from music_session.core.config import Config
from music_session.core.output import log
from music_session.domain.favorites.sync import Favorites, FavoritesSynchronizer
from music_session.domain.library.cache import FetchResult, LibraryCache
from music_session.domain.library.models import (
    FAVORITES_PLAYLIST_NAME,
    Collection,
    favorites_collection,
)
from music_session.domain.playback.controller import PlaybackController
from music_session.domain.playback.device import AudioDevice
from music_session.domain.playback.media_session import DesktopNotifier, MediaSession
from music_session.domain.playback.mpv import MpvAudioDevice
from music_session.domain.playback.queue import QueueDeriver
from music_session.domain.session.auth import AuthSession
from music_session.domain.session.quotes import QuoteRotation
from music_session.domain.session.recent import RecentlyPlayed
from music_session.domain.session.store import SessionStore
from music_session.notifications import notify_error


@dataclass
class AppContext:
    """Application services passed to the front end.

    Attributes:
        config: Application configuration
        store: Durable session record
        auth: Logged-in user and tokens
        api: REST client for the music backend
        executor: Thread pool for network work
        library: Library cache
        favorites: Favorites synchronizer
        queue: Derived playback queue
        controller: Playback controller (owns the audio device)
        recently_played: Recently played ids
        quotes: Rotating quote
        console: Rich Console for formatted output
        login_required: Set when an action needed a login that is missing or expired
    """

    config: Config
    store: SessionStore
    auth: AuthSession
    api: ApiClient
    executor: ThreadPoolExecutor
    library: LibraryCache
    favorites: FavoritesSynchronizer
    queue: QueueDeriver
    controller: PlaybackController
    media_session: MediaSession
    recently_played: RecentlyPlayed
    quotes: QuoteRotation
    console: Optional[Console] = None
    login_required: bool = field(default=False)

    @classmethod
    def create(
        cls,
        config: Config,
        *,
        device: Optional[AudioDevice] = None,
        api: Optional[ApiClient] = None,
        db_path: Optional[Path] = None,
        console: Optional[Console] = None,
        max_workers: int = 5,
    ) -> "AppContext":
        """Wire all services together.

        Args:
            config: Application configuration
            device: Audio device (defaults to an mpv device, not yet started)
            api: REST client (defaults to one built from config.api)
            db_path: Session database path (defaults to the data dir)
            console: Optional Rich Console instance

        Returns:
            New AppContext; call start() to restore and fetch the library
        """
        store = SessionStore(db_path)
        auth = AuthSession(store)
        if api is None:
            api = ApiClient(
                config.api.base_url,
                auth,
                timeout=config.api.request_timeout,
                cold_start_retry_delay=config.api.cold_start_retry_delay,
            )
        executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="music-session")

        # Callbacks below close over ctx, which is assigned once everything exists
        ctx: Optional[AppContext] = None

        def on_auth_required() -> None:
            if ctx is not None:
                ctx.login_required = True

        def on_session_expired() -> None:
            if ctx is None:
                return
            if config.notifications.enabled:
                notify_error("Session expired. Please login again.")
            ctx.logout()
            ctx.login_required = True

        def persist_favorites(favorites: Favorites) -> None:
            # Only a logged-in user's favorites are worth keeping
            if auth.is_authenticated:
                store.update(favorites=list(favorites))

        favorites = FavoritesSynchronizer(
            api,
            auth,
            executor,
            on_auth_required=on_auth_required,
            on_session_expired=on_session_expired,
            on_change=persist_favorites,
        )
        library = LibraryCache(
            api,
            store,
            auth,
            executor,
            on_favorites=favorites.replace,
            shuffle_on_first_load=config.session.shuffle_on_first_load,
        )
        queue = QueueDeriver(library, lambda: favorites.favorites)
        recently_played = RecentlyPlayed(store, limit=config.session.recently_played_limit)

        media_session = MediaSession()
        if config.notifications.enabled and config.notifications.now_playing:
            media_session.add_publisher(DesktopNotifier())

        if device is None:
            device = MpvAudioDevice(config.player.mpv_socket_path, volume=config.player.volume)

        controller = PlaybackController(
            device,
            library,
            queue,
            api_base_url=config.api.base_url,
            cloudinary_cloud_name=config.api.cloudinary_cloud_name,
            volume=config.player.volume,
            skip_seconds=config.player.skip_seconds,
            unmute_volume=config.player.unmute_volume,
            media_session=media_session,
            on_song_started=recently_played.push,
        )

        ctx = cls(
            config=config,
            store=store,
            auth=auth,
            api=api,
            executor=executor,
            library=library,
            favorites=favorites,
            queue=queue,
            controller=controller,
            media_session=media_session,
            recently_played=recently_played,
            quotes=QuoteRotation(store, interval_hours=config.session.quote_interval_hours),
            console=console,
        )
        return ctx

    def start(self) -> FetchResult:
        """Restore the cached session, then fetch the library from the network."""
        self.store.load()
        self.library.load_snapshot()
        return self.library.fetch_library_data()

    def refresh(self) -> FetchResult:
        """Force a refetch, shuffling again as for a fresh session."""
        return self.library.fetch_library_data(force=True, fresh_session=True)

    def login(self, email: str, password: str) -> dict:
        """Log in, then reload the library so the user's favorites come along."""
        user = self.api.login(email, password)
        self.login_required = False
        log(f"Logged in as {user.get('name') or user.get('email')}", level="info")
        self.library.fetch_library_data(force=True)
        return user

    def select_playlist(self, name_or_id: Optional[str]) -> Optional[Collection]:
        """Select a collection by id or name; None or an unknown name selects all songs."""
        if not name_or_id:
            collection = None
        elif name_or_id.lower() == FAVORITES_PLAYLIST_NAME.lower():
            collection = favorites_collection(self.favorites.favorites)
        else:
            collection = self.library.find_collection(name_or_id)
            if collection is None:
                logger.warning(f"No playlist or album named {name_or_id!r}")
        self.queue.selected_playlist = collection
        return collection

    def logout(self) -> None:
        """Tear the session down: playback, library, favorites, then durable state.

        The library goes first so a fetch still applying its results either
        finishes before favorites are cleared or is discarded.
        """
        self.controller.stop_playback()
        self.library.reset()
        self.favorites.reset()
        self.queue.selected_playlist = None
        self.queue.search_term = ""
        self.store.clear()
        logger.info("Logged out")

    def shutdown(self) -> None:
        """Release the audio device and worker threads."""
        self.controller.device.close()
        self.executor.shutdown(wait=False, cancel_futures=True)
