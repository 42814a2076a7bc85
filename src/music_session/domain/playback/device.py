"""
Audio device contract.

The controller drives exactly one AudioDevice. Devices report progress
through DeviceEvent callbacks; play() is asynchronous and returns a Future
that fails with PlaybackAbortedError when a newer source replaced the one it
was started for, or PlaybackRejectedError when playback is refused.
"""

from abc import ABC, abstractmethod
from concurrent.futures import Future
from enum import Enum
from typing import Callable, List, Optional

from loguru import logger


class DeviceEvent(Enum):
    TIME_UPDATE = "timeupdate"
    LOADED_METADATA = "loadedmetadata"
    LOAD_START = "loadstart"
    WAITING = "waiting"
    CAN_PLAY = "canplay"
    PLAYING = "playing"
    ENDED = "ended"
    ERROR = "error"


class PlaybackError(Exception):
    """Base exception for device playback failures."""

    pass


class PlaybackRejectedError(PlaybackError):
    """Device refused to start playback (no source, decode or network failure)."""

    pass


class PlaybackAbortedError(PlaybackError):
    """play() was interrupted because a new source was loaded."""

    pass


class AudioDevice(ABC):
    """One audio output with a single live source."""

    def __init__(self) -> None:
        self._listeners: List[Callable[[DeviceEvent], None]] = []

    def add_listener(self, callback: Callable[[DeviceEvent], None]) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[DeviceEvent], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def emit(self, event: DeviceEvent) -> None:
        for callback in list(self._listeners):
            try:
                callback(event)
            except Exception as exc:
                logger.exception(f"Device listener failed on {event.value}: {exc}")

    @property
    @abstractmethod
    def src(self) -> Optional[str]:
        """URL of the loaded source, None when empty."""

    @src.setter
    @abstractmethod
    def src(self, url: Optional[str]) -> None: ...

    @property
    @abstractmethod
    def current_time(self) -> float: ...

    @current_time.setter
    @abstractmethod
    def current_time(self, seconds: float) -> None: ...

    @property
    @abstractmethod
    def duration(self) -> float:
        """Length of the source in seconds, 0.0 while unknown."""

    @property
    @abstractmethod
    def volume(self) -> float: ...

    @volume.setter
    @abstractmethod
    def volume(self, value: float) -> None: ...

    @abstractmethod
    def load(self) -> None:
        """Start loading the assigned source."""

    @abstractmethod
    def play(self) -> Future:
        """Start or resume playback; the Future settles when playback begins."""

    @abstractmethod
    def pause(self) -> None: ...

    def poll(self) -> None:
        """Emit pending events. Devices that push events need not override."""

    def close(self) -> None:
        """Release the device."""
