"""Playback domain - audio device control and queue navigation.

This domain handles:
- The audio device contract and its mpv implementation (JSON IPC)
- Playback state (transport, shuffle, repeat, volume)
- Queue derivation from library, selection, favorites and search
- OS media session actions and now-playing metadata
"""

# Device
from .device import (
    AudioDevice,
    DeviceEvent,
    PlaybackAbortedError,
    PlaybackError,
    PlaybackRejectedError,
)
from .mpv import MpvAudioDevice, check_mpv_available, get_mpv_property, send_mpv_command

# State
from .state import PlaybackState, PlayerPhase, RepeatMode, format_time, next_repeat_mode

# Queue
from .queue import (
    QueueDeriver,
    derive_queue,
    next_index,
    previous_index,
    random_other_index,
    resolve_song_refs,
)

# Media session
from .media_session import DesktopNotifier, MediaAction, MediaSession, NowPlayingMetadata

# Controller
from .controller import PlaybackController

__all__ = [
    # Device
    "AudioDevice",
    "DeviceEvent",
    "PlaybackAbortedError",
    "PlaybackError",
    "PlaybackRejectedError",
    "MpvAudioDevice",
    "check_mpv_available",
    "get_mpv_property",
    "send_mpv_command",
    # State
    "PlaybackState",
    "PlayerPhase",
    "RepeatMode",
    "format_time",
    "next_repeat_mode",
    # Queue
    "QueueDeriver",
    "derive_queue",
    "next_index",
    "previous_index",
    "random_other_index",
    "resolve_song_refs",
    # Media session
    "DesktopNotifier",
    "MediaAction",
    "MediaSession",
    "NowPlayingMetadata",
    # Controller
    "PlaybackController",
]
