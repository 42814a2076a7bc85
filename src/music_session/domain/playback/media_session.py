"""
OS media session integration.

Publishes now-playing metadata to registered publishers and routes
hardware/OS media actions (play, pause, next, previous, seek) to handlers
installed by the playback controller.
"""

from enum import Enum
from typing import Callable, Dict, List, NamedTuple, Optional

from loguru import logger

from music_session.notifications import notify


class MediaAction(str, Enum):
    PLAY = "play"
    PAUSE = "pause"
    NEXT_TRACK = "nexttrack"
    PREVIOUS_TRACK = "previoustrack"
    SEEK_FORWARD = "seekforward"
    SEEK_BACKWARD = "seekbackward"


class NowPlayingMetadata(NamedTuple):
    title: str
    artist: str
    album: Optional[str] = None
    artwork_url: Optional[str] = None


class MediaSession:
    """In-process stand-in for the platform media session."""

    def __init__(self) -> None:
        self._handlers: Dict[MediaAction, Callable[[], None]] = {}
        self._publishers: List[Callable[[NowPlayingMetadata], None]] = []
        self.metadata: Optional[NowPlayingMetadata] = None

    def add_publisher(self, publisher: Callable[[NowPlayingMetadata], None]) -> None:
        if publisher not in self._publishers:
            self._publishers.append(publisher)

    def set_metadata(self, metadata: NowPlayingMetadata) -> None:
        if metadata == self.metadata:
            return
        self.metadata = metadata
        for publisher in list(self._publishers):
            try:
                publisher(metadata)
            except Exception as exc:
                logger.error(f"Now-playing publisher failed: {exc}")

    def set_action_handler(
        self, action: MediaAction, handler: Optional[Callable[[], None]]
    ) -> None:
        if handler is None:
            self._handlers.pop(action, None)
        else:
            self._handlers[action] = handler

    def has_handler(self, action: MediaAction) -> bool:
        return action in self._handlers

    def dispatch(self, action: MediaAction) -> bool:
        """Invoke the handler for action; returns False when none is registered."""
        handler = self._handlers.get(action)
        if handler is None:
            logger.debug(f"No media handler for {action.value}")
            return False
        handler()
        return True


class DesktopNotifier:
    """Now-playing publisher that shows a notify-send popup per song."""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled

    def __call__(self, metadata: NowPlayingMetadata) -> None:
        if not self.enabled:
            return
        body = metadata.artist
        if metadata.album:
            body = f"{body} • {metadata.album}"
        notify(f"♪ {metadata.title}", body, urgency="low", icon=metadata.artwork_url)
