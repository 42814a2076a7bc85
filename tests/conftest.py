"""Shared fixtures: fake audio device, fake backend, executors and a temp data dir."""

import copy
import random
from concurrent.futures import Executor, Future
from typing import Any, Callable, Dict, List, Optional

import pytest

from music_session.domain.favorites.sync import FavoritesSynchronizer
from music_session.domain.library.cache import LibraryCache
from music_session.domain.playback.controller import PlaybackController
from music_session.domain.playback.device import (
    AudioDevice,
    DeviceEvent,
    PlaybackAbortedError,
    PlaybackRejectedError,
)
from music_session.domain.playback.media_session import MediaSession
from music_session.domain.playback.queue import QueueDeriver
from music_session.domain.session.auth import AuthSession
from music_session.domain.session.store import SessionStore

API_BASE = "http://api.test"


class FakeDevice(AudioDevice):
    """In-memory AudioDevice with controllable play futures."""

    def __init__(self, auto_resolve: bool = True) -> None:
        super().__init__()
        self.auto_resolve = auto_resolve
        self._src: Optional[str] = None
        self._current_time = 0.0
        self._duration = 0.0
        self._volume = 1.0
        self.paused = True
        self.load_count = 0
        self.play_futures: List[Future] = []
        self.closed = False

    @property
    def src(self) -> Optional[str]:
        return self._src

    @src.setter
    def src(self, url: Optional[str]) -> None:
        # A new source interrupts any play() still pending for the old one
        for future in self.play_futures:
            if not future.done():
                future.set_exception(PlaybackAbortedError("source replaced"))
        self._src = url
        self._current_time = 0.0
        self._duration = 0.0

    @property
    def current_time(self) -> float:
        return self._current_time

    @current_time.setter
    def current_time(self, seconds: float) -> None:
        self._current_time = seconds

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def volume(self) -> float:
        return self._volume

    @volume.setter
    def volume(self, value: float) -> None:
        self._volume = value

    def load(self) -> None:
        self.load_count += 1
        self.emit(DeviceEvent.LOAD_START)

    def play(self) -> Future:
        future: Future = Future()
        self.play_futures.append(future)
        if self._src is None:
            future.set_exception(PlaybackRejectedError("no source"))
        elif self.auto_resolve:
            self.paused = False
            future.set_result(None)
        return future

    def pause(self) -> None:
        self.paused = True

    def close(self) -> None:
        self.closed = True

    # Test helpers
    def set_metadata(self, duration: float) -> None:
        self._duration = duration
        self.emit(DeviceEvent.LOADED_METADATA)

    def advance(self, seconds: float) -> None:
        self._current_time = seconds
        self.emit(DeviceEvent.TIME_UPDATE)

    def finish(self) -> None:
        self._current_time = self._duration
        self.emit(DeviceEvent.ENDED)


class FakeBackend:
    """Stands in for ApiClient; raises configured errors per method."""

    def __init__(self, songs, playlists=None, albums=None, banner=None, favorites=None):
        self.songs = songs
        self.playlists = playlists or []
        self.albums = albums or []
        self.banner = banner
        self.favorites: List[str] = list(favorites or [])
        self.errors: Dict[str, Exception] = {}
        self.calls: List[str] = []
        self.auth = None

    def _call(self, name: str, value: Any) -> Any:
        self.calls.append(name)
        if name in self.errors:
            raise self.errors[name]
        return copy.deepcopy(value)

    def get_songs(self, cache_bust: bool = False):
        return self._call("songs", self.songs)

    def get_playlists(self, cache_bust: bool = False):
        return self._call("playlists", self.playlists)

    def get_albums(self, cache_bust: bool = False):
        return self._call("albums", self.albums)

    def get_banner(self):
        return self._call("banner", self.banner)

    def get_user_favorites(self):
        return self._call("favorites", self.favorites)

    def login(self, email: str, password: str) -> Dict[str, Any]:
        self.calls.append("login")
        if "login" in self.errors:
            raise self.errors["login"]
        user = {"id": "u1", "name": "Ada", "email": email}
        if self.auth is not None:
            self.auth.login(user, "access-1", "refresh-1")
        return user

    def toggle_favorite(self, song_id: str) -> List[str]:
        self.calls.append("toggle")
        if "toggle" in self.errors:
            raise self.errors["toggle"]
        if song_id in self.favorites:
            self.favorites.remove(song_id)
        else:
            self.favorites.append(song_id)
        return list(self.favorites)


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def submit(self, fn: Callable, *args: Any, **kwargs: Any) -> Future:
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:
            future.set_exception(exc)
        return future


class ManualExecutor(Executor):
    """Queues submitted work until run_all() is called."""

    def __init__(self) -> None:
        self.pending: List[tuple] = []

    def submit(self, fn: Callable, *args: Any, **kwargs: Any) -> Future:
        future: Future = Future()
        self.pending.append((future, fn, args, kwargs))
        return future

    def run(self, index: int) -> None:
        """Run one queued call, so tests can settle work out of order."""
        future, fn, args, kwargs = self.pending.pop(index)
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:
            future.set_exception(exc)

    def run_all(self) -> None:
        while self.pending:
            self.run(0)


def make_song(song_id: str, title: str, artist: str, **extra: Any) -> Dict[str, Any]:
    data = {
        "_id": song_id,
        "title": title,
        "artist": artist,
        "album": extra.get("album"),
        "duration": extra.get("duration", "3:00"),
        "coverImg": extra.get("coverImg", f"/uploads/covers/{song_id}.jpg"),
        "audioUrl": extra.get("audioUrl", f"/uploads/songs/{song_id}.mp3"),
    }
    return data


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path, monkeypatch):
    """Point config and data dirs at a temp directory for every test."""
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.delenv("MUSIC_SESSION_API_URL", raising=False)
    monkeypatch.delenv("CLOUDINARY_CLOUD_NAME", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def sample_songs() -> List[Dict[str, Any]]:
    return [
        make_song("s1", "Blue Monday", "New Order"),
        make_song("s2", "Bizarre Love Triangle", "New Order"),
        make_song("s3", "Enjoy the Silence", "Depeche Mode"),
        make_song("s4", "Just Like Heaven", "The Cure"),
        make_song("s5", "Love Will Tear Us Apart", "Joy Division"),
    ]


@pytest.fixture
def sample_playlists(sample_songs) -> List[Dict[str, Any]]:
    return [
        {
            "_id": "p1",
            "name": "Synth",
            # Mix of populated documents, bare ids and an id missing from the library
            "songs": [sample_songs[2], "s1", "missing"],
            "imageUrl": "/uploads/playlists/synth.jpg",
        }
    ]


@pytest.fixture
def sample_albums() -> List[Dict[str, Any]]:
    return [
        {
            "_id": "a1",
            "title": "Power, Corruption & Lies",
            "artist": "New Order",
            "songs": ["s1", "s2"],
            "coverImg": "MusicPlayerPRO/albums/pcl.jpg",
        }
    ]


@pytest.fixture
def backend(sample_songs, sample_playlists, sample_albums) -> FakeBackend:
    return FakeBackend(
        sample_songs,
        playlists=sample_playlists,
        albums=sample_albums,
        banner={"title": "Welcome back"},
    )


@pytest.fixture
def store(tmp_path) -> SessionStore:
    session_store = SessionStore(tmp_path / "session.db")
    session_store.load()
    return session_store


@pytest.fixture
def auth(store) -> AuthSession:
    return AuthSession(store)


@pytest.fixture
def logged_in(auth) -> AuthSession:
    auth.login({"id": "u1", "name": "Ada", "email": "ada@example.com"}, "access-1", "refresh-1")
    return auth


@pytest.fixture
def inline_executor() -> InlineExecutor:
    return InlineExecutor()


@pytest.fixture
def manual_executor() -> ManualExecutor:
    return ManualExecutor()


@pytest.fixture
def library(backend, store, auth, inline_executor) -> LibraryCache:
    cache = LibraryCache(backend, store, auth, inline_executor, shuffle_on_first_load=False)
    cache.fetch_library_data()
    return cache


@pytest.fixture
def favorites(backend, auth, manual_executor) -> FavoritesSynchronizer:
    return FavoritesSynchronizer(backend, auth, manual_executor)


@pytest.fixture
def queue(library, favorites) -> QueueDeriver:
    return QueueDeriver(library, lambda: favorites.favorites)


@pytest.fixture
def device() -> FakeDevice:
    return FakeDevice()


@pytest.fixture
def media_session() -> MediaSession:
    return MediaSession()


@pytest.fixture
def controller(device, library, queue, media_session) -> PlaybackController:
    return PlaybackController(
        device,
        library,
        queue,
        api_base_url=API_BASE,
        media_session=media_session,
        rng=random.Random(7),
    )
