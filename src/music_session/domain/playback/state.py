"""
Playback state for Music Session

Holds transport state (current song, play intent, position) plus shuffle and
repeat settings. Owned and mutated by the PlaybackController only.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RepeatMode(str, Enum):
    NONE = "none"
    ALL = "all"
    ONE = "one"


class PlayerPhase(str, Enum):
    """Device lifecycle as seen by the controller."""

    IDLE = "idle"  # No source loaded
    LOADING = "loading"  # Source assigned, waiting for the device
    PLAYING = "playing"
    PAUSED = "paused"


_REPEAT_CYCLE = {
    RepeatMode.NONE: RepeatMode.ALL,
    RepeatMode.ALL: RepeatMode.ONE,
    RepeatMode.ONE: RepeatMode.NONE,
}


def next_repeat_mode(mode: RepeatMode) -> RepeatMode:
    """Cycle none -> all -> one -> none."""
    return _REPEAT_CYCLE[mode]


@dataclass
class PlaybackState:
    """In-memory playback session."""

    current_song_id: Optional[str] = None
    is_playing: bool = False
    current_time: float = 0.0
    duration: float = 0.0
    is_buffering: bool = False
    is_shuffle: bool = False
    repeat_mode: RepeatMode = RepeatMode.NONE
    volume: float = 0.7
    phase: PlayerPhase = PlayerPhase.IDLE

    @property
    def progress(self) -> float:
        """Percentage played, 0.0 when the duration is unknown."""
        if self.duration and self.duration > 0:
            return (self.current_time / self.duration) * 100
        return 0.0

    def reset_transport(self) -> None:
        """Return to idle, keeping shuffle/repeat/volume settings."""
        self.current_song_id = None
        self.is_playing = False
        self.current_time = 0.0
        self.duration = 0.0
        self.is_buffering = False
        self.phase = PlayerPhase.IDLE


def format_time(seconds: float) -> str:
    """Format time in seconds to MM:SS format."""
    if seconds < 0:
        return "00:00"

    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes:02d}:{secs:02d}"
