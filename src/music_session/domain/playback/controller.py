"""
Playback controller.

Single owner of the AudioDevice and of PlaybackState. UI commands, OS media
keys and device events all end up in the methods below; listeners are
notified after every state change.
"""

import random
import threading
from concurrent.futures import Future
from typing import Callable, List, Optional

from loguru import logger

from music_session.core.output import log
from music_session.domain.library.models import Song
from music_session.domain.library.urls import ImageSize, format_url

from .device import AudioDevice, DeviceEvent, PlaybackAbortedError
from .media_session import MediaAction, MediaSession, NowPlayingMetadata
from .queue import QueueDeriver, next_index, previous_index
from .state import PlaybackState, PlayerPhase, RepeatMode, next_repeat_mode

DEFAULT_SKIP_SECONDS = 15.0
DEFAULT_UNMUTE_VOLUME = 0.7


class PlaybackController:
    """Drives one audio device from the derived queue."""

    def __init__(
        self,
        device: AudioDevice,
        library,
        queue: QueueDeriver,
        *,
        api_base_url: str = "",
        cloudinary_cloud_name: str = "",
        volume: float = 0.7,
        skip_seconds: float = DEFAULT_SKIP_SECONDS,
        unmute_volume: float = DEFAULT_UNMUTE_VOLUME,
        media_session: Optional[MediaSession] = None,
        on_song_started: Optional[Callable[[str], None]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.device = device
        self.library = library
        self.queue = queue
        self.state = PlaybackState(volume=max(0.0, min(1.0, volume)))
        self.media_session = media_session
        self._api_base_url = api_base_url
        self._cloudinary_cloud_name = cloudinary_cloud_name
        self._skip_seconds = skip_seconds
        self._unmute_volume = unmute_volume
        self._on_song_started = on_song_started
        self._rng = rng or random.Random()
        self._lock = threading.RLock()
        self._listeners: List[Callable[[PlaybackState], None]] = []

        # Bumped on every source change; play futures remember the value they were issued for
        self._generation = 0
        self._pending_play: Optional[Future] = None

        self.device.volume = self.state.volume
        self.device.add_listener(self._on_device_event)
        if media_session is not None:
            self._register_media_handlers(media_session)

    # ------------------------------------------------------------------
    # Listeners

    def add_listener(self, callback: Callable[[PlaybackState], None]) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[PlaybackState], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify_listeners(self) -> None:
        for callback in list(self._listeners):
            try:
                callback(self.state)
            except Exception as exc:
                logger.error(f"Playback listener error: {exc}")

    # ------------------------------------------------------------------
    # Helpers

    @property
    def current_song(self) -> Optional[Song]:
        """Song for current_song_id, None when unset or no longer in the library."""
        return self.library.get_song(self.state.current_song_id)

    def _format(self, ref: Optional[str], size: Optional[ImageSize] = None) -> Optional[str]:
        return format_url(
            ref,
            api_base_url=self._api_base_url,
            cloudinary_cloud_name=self._cloudinary_cloud_name,
            size=size,
        )

    def _known_duration(self) -> float:
        duration = self.device.duration or self.state.duration
        return duration if duration and duration > 0 else 0.0

    def _request_play(self) -> None:
        generation = self._generation
        future = self.device.play()
        self._pending_play = future
        future.add_done_callback(lambda done: self._on_play_settled(done, generation))

    def _on_play_settled(self, future: Future, generation: int) -> None:
        if future.cancelled():
            logger.debug("Play request cancelled by source change")
            return
        error = future.exception()
        if error is None:
            return

        with self._lock:
            if generation != self._generation or isinstance(error, PlaybackAbortedError):
                logger.debug(f"Ignoring interrupted play request: {error}")
                return
            logger.warning(f"Playback rejected: {error}")
            self.state.is_playing = False
            self.state.is_buffering = False
            self.state.phase = PlayerPhase.PAUSED if self.device.src else PlayerPhase.IDLE
        self._notify_listeners()

    def _cancel_pending_play(self) -> None:
        self._generation += 1
        if self._pending_play is not None:
            self._pending_play.cancel()
            self._pending_play = None

    def _restart_current(self) -> None:
        self.device.current_time = 0
        self.state.current_time = 0.0
        self.state.is_playing = True
        self._request_play()

    # ------------------------------------------------------------------
    # Transport

    def toggle_play(self) -> None:
        if self.state.is_playing:
            self.pause()
        else:
            self.play()

    def play(self) -> None:
        with self._lock:
            self.state.is_playing = True
            if self.device.src:
                self.state.phase = PlayerPhase.PLAYING
            self._request_play()
        self._notify_listeners()

    def pause(self) -> None:
        with self._lock:
            self.state.is_playing = False
            self.device.pause()
            if self.device.src:
                self.state.phase = PlayerPhase.PAUSED
        self._notify_listeners()

    def set_current_song_id(self, song_id: Optional[str]) -> bool:
        """Make song_id current.

        The device is reloaded only when the song's formatted audio URL
        differs from the loaded source; playback starts if play is intended.
        An id with no playable audio (or missing from the library) stops the
        previous source instead.

        Returns:
            True if the device source was replaced
        """
        if song_id is None:
            had_source = self.device.src is not None
            self.stop_playback()
            return had_source

        song_id = str(song_id)
        with self._lock:
            changed = song_id != self.state.current_song_id
            self.state.current_song_id = song_id
            song = self.library.get_song(song_id)
            url = self._format(song.audio_url) if song else None

            reloaded = False
            if url is not None and url != self.device.src:
                self._cancel_pending_play()
                self.device.pause()
                self.device.src = url
                self.state.current_time = 0.0
                self.state.duration = 0.0
                self.state.is_buffering = True
                self.state.phase = PlayerPhase.LOADING
                self.device.load()
                if self.state.is_playing:
                    self._request_play()
                reloaded = True
                logger.info(f"Loaded {song.title} - {song.artist}")
            elif url is None:
                # No playable source, so the previous one stops
                logger.warning(f"Song {song_id} has no playable audio; stopping")
                self._cancel_pending_play()
                self.device.pause()
                self.device.src = None
                self.state.is_playing = False
                self.state.current_time = 0.0
                self.state.duration = 0.0
                self.state.is_buffering = False
                self.state.phase = PlayerPhase.IDLE

        if changed and song is not None:
            if self._on_song_started is not None:
                try:
                    self._on_song_started(song_id)
                except Exception as exc:
                    logger.error(f"Song change callback failed: {exc}")
            self._publish_metadata(song)
        self._notify_listeners()
        return reloaded

    def play_song(self, song_id: str) -> bool:
        """Select song_id and start playing it."""
        with self._lock:
            self.state.is_playing = True
        reloaded = self.set_current_song_id(song_id)
        if not reloaded and self.device.src:
            self.play()
        return reloaded

    def stop_playback(self) -> None:
        """Pause, rewind, drop the source and return to idle."""
        with self._lock:
            self._cancel_pending_play()
            self.device.pause()
            if self.device.src:
                self.device.current_time = 0
            self.device.src = None
            self.state.reset_transport()
        self._notify_listeners()

    # ------------------------------------------------------------------
    # Seeking

    def handle_seek(self, percentage: float) -> None:
        duration = self._known_duration()
        if not duration:
            return
        percentage = max(0.0, min(100.0, percentage))
        with self._lock:
            seek_time = (percentage / 100) * duration
            self.device.current_time = seek_time
            self.state.current_time = seek_time
        self._notify_listeners()

    def skip_forward(self) -> None:
        duration = self._known_duration()
        if not duration:
            return
        with self._lock:
            target = min(duration, self.device.current_time + self._skip_seconds)
            self.device.current_time = target
            self.state.current_time = target
        self._notify_listeners()

    def skip_backward(self) -> None:
        with self._lock:
            target = max(0.0, self.device.current_time - self._skip_seconds)
            self.device.current_time = target
            self.state.current_time = target
        self._notify_listeners()

    # ------------------------------------------------------------------
    # Queue navigation

    def handle_next(self, stop_at_end: bool = False) -> None:
        """Advance through the derived queue.

        Args:
            stop_at_end: Stay on the last track instead of wrapping (natural end)
        """
        songs = self.queue.filtered_songs
        if not songs:
            return

        with self._lock:
            if self.state.repeat_mode is RepeatMode.ONE:
                self._restart_current()
                restarted = True
            else:
                restarted = False
        if restarted:
            self._notify_listeners()
            return

        current = self._index_in(songs)
        index = next_index(current, len(songs), self.state.is_shuffle, stop_at_end, self._rng)
        if index is None:
            logger.info("Reached end of queue")
            self.pause()
            return
        self._go_to(songs[index])

    def handle_previous(self) -> None:
        songs = self.queue.filtered_songs
        if not songs:
            return
        current = self._index_in(songs)
        index = previous_index(current, len(songs), self.state.is_shuffle, self._rng)
        if index is None:
            return
        self._go_to(songs[index])

    def _index_in(self, songs: List[Song]) -> int:
        current_id = self.state.current_song_id
        for i, song in enumerate(songs):
            if song.id == current_id:
                return i
        return -1

    def _go_to(self, song: Song) -> None:
        if song.id == self.state.current_song_id:
            with self._lock:
                self._restart_current()
            self._notify_listeners()
            return
        with self._lock:
            self.state.is_playing = True
        self.set_current_song_id(song.id)

    # ------------------------------------------------------------------
    # Volume and modes

    def set_volume(self, volume: float) -> None:
        with self._lock:
            volume = max(0.0, min(1.0, float(volume)))
            self.state.volume = volume
            self.device.volume = volume
        self._notify_listeners()

    def toggle_mute(self) -> None:
        if self.state.volume > 0:
            self.set_volume(0.0)
        else:
            self.set_volume(self._unmute_volume)

    def set_shuffle(self, enabled: bool) -> None:
        self.state.is_shuffle = bool(enabled)
        self._notify_listeners()

    def toggle_shuffle(self) -> None:
        self.set_shuffle(not self.state.is_shuffle)

    def set_repeat_mode(self, mode: RepeatMode) -> None:
        self.state.repeat_mode = RepeatMode(mode)
        self._notify_listeners()

    def cycle_repeat_mode(self) -> RepeatMode:
        self.set_repeat_mode(next_repeat_mode(self.state.repeat_mode))
        return self.state.repeat_mode

    # ------------------------------------------------------------------
    # Device events

    def _on_device_event(self, event: DeviceEvent) -> None:
        handler = {
            DeviceEvent.TIME_UPDATE: self._on_time_update,
            DeviceEvent.LOADED_METADATA: self._on_loaded_metadata,
            DeviceEvent.LOAD_START: self._on_waiting,
            DeviceEvent.WAITING: self._on_waiting,
            DeviceEvent.CAN_PLAY: self._on_ready,
            DeviceEvent.PLAYING: self._on_ready,
            DeviceEvent.ERROR: self._on_error,
            DeviceEvent.ENDED: self._on_ended,
        }[event]
        handler()

    def _on_time_update(self) -> None:
        with self._lock:
            self.state.current_time = self.device.current_time
            if self.device.duration > 0:
                self.state.duration = self.device.duration
        self._notify_listeners()

    def _on_loaded_metadata(self) -> None:
        with self._lock:
            self.state.duration = self.device.duration
        self._notify_listeners()

    def _on_waiting(self) -> None:
        with self._lock:
            self.state.is_buffering = True
        self._notify_listeners()

    def _on_ready(self) -> None:
        with self._lock:
            self.state.is_buffering = False
            self.state.phase = PlayerPhase.PLAYING if self.state.is_playing else PlayerPhase.PAUSED
        self._notify_listeners()

    def _on_error(self) -> None:
        with self._lock:
            self.state.is_buffering = False
        song = self.current_song
        logger.error(f"Audio device error while playing {self.device.src}")
        log(f"Could not play {song.title if song else 'this track'}.", level="error")
        self._notify_listeners()

    def _on_ended(self) -> None:
        stop_at_end = self.state.repeat_mode is RepeatMode.NONE and not self.state.is_shuffle
        self.handle_next(stop_at_end=stop_at_end)

    # ------------------------------------------------------------------
    # Media session

    def _register_media_handlers(self, session: MediaSession) -> None:
        session.set_action_handler(MediaAction.PLAY, self.play)
        session.set_action_handler(MediaAction.PAUSE, self.pause)
        session.set_action_handler(MediaAction.NEXT_TRACK, self.handle_next)
        session.set_action_handler(MediaAction.PREVIOUS_TRACK, self.handle_previous)
        session.set_action_handler(MediaAction.SEEK_FORWARD, self.skip_forward)
        session.set_action_handler(MediaAction.SEEK_BACKWARD, self.skip_backward)

    def _publish_metadata(self, song: Song) -> None:
        if self.media_session is None:
            return
        self.media_session.set_metadata(
            NowPlayingMetadata(
                title=song.title,
                artist=song.artist,
                album=song.album,
                artwork_url=self._format(song.cover_img, ImageSize.LARGE),
            )
        )
