"""
MPV audio device using JSON IPC.

mpv runs idle in the background; the device sends loadfile/seek/pause
commands over its IPC socket and turns polled properties into DeviceEvents.
"""

import json
import os
import socket
import subprocess
import tempfile
import time
from concurrent.futures import Future
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from .device import AudioDevice, DeviceEvent, PlaybackRejectedError

# Positions closer than this to the end count as finished together with eof-reached
END_TOLERANCE = 1.0


def check_mpv_available() -> bool:
    """Check if MPV is available on the system."""
    try:
        result = subprocess.run(
            ["mpv", "--version"], capture_output=True, text=True, timeout=5
        )
        return result.returncode == 0
    except (subprocess.SubprocessError, FileNotFoundError, OSError):
        return False


def _ipc_roundtrip(socket_path: Optional[str], command: dict[str, Any]) -> Optional[dict]:
    if not socket_path or not os.path.exists(socket_path):
        return None

    try:
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        sock.settimeout(2.0)
        sock.connect(socket_path)
        sock.send((json.dumps(command) + "\n").encode("utf-8"))
        response = sock.recv(4096).decode("utf-8").strip()
        sock.close()
    except (socket.error, OSError):
        return None

    # mpv may interleave event lines; the reply is the line carrying "error"
    for line in response.splitlines():
        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            continue
        if "error" in data:
            return data
    return None


def send_mpv_command(socket_path: Optional[str], command: dict[str, Any]) -> bool:
    """Send JSON IPC command to MPV."""
    reply = _ipc_roundtrip(socket_path, command)
    return reply is not None and reply.get("error") == "success"


def get_mpv_property(socket_path: Optional[str], property_name: str) -> Any:
    """Get a property value from MPV."""
    reply = _ipc_roundtrip(socket_path, {"command": ["get_property", property_name]})
    if reply is not None and reply.get("error") == "success":
        return reply.get("data")
    return None


class MpvAudioDevice(AudioDevice):
    """AudioDevice backed by an mpv subprocess.

    Events are produced by poll(); the caller is expected to poll a few times
    per second.
    """

    def __init__(self, socket_path: Optional[str] = None, volume: float = 0.7) -> None:
        super().__init__()
        if socket_path is None:
            socket_path = str(Path(tempfile.gettempdir()) / f"mpv-socket-{os.getpid()}")
        self.socket_path = socket_path
        self.process: Optional[subprocess.Popen] = None
        self._src: Optional[str] = None
        self._volume = volume
        self._position = 0.0
        self._duration = 0.0
        self._loading = False
        self._ended_reported = False

    # ------------------------------------------------------------------
    def start(self, timeout: float = 5.0) -> bool:
        """Start mpv with JSON IPC; returns False if it could not be started."""
        logger.info(f"Starting MPV player with socket: {self.socket_path}")

        try:
            if os.path.exists(self.socket_path):
                logger.debug(f"Removing existing socket: {self.socket_path}")
                os.unlink(self.socket_path)

            cmd = [
                "mpv",
                "--idle=yes",
                "--no-video",
                "--no-terminal",
                f"--input-ipc-server={self.socket_path}",
                f"--volume={round(self._volume * 100)}",
                "--keep-open=yes",
                "--pause=yes",
                "--load-scripts=no",
            ]
            self.process = subprocess.Popen(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                stdin=subprocess.DEVNULL,
            )

            start_time = time.time()
            while not os.path.exists(self.socket_path):
                if time.time() - start_time > timeout:
                    logger.error(f"MPV socket creation timeout after {timeout}s")
                    self.process.kill()
                    self.process = None
                    return False
                time.sleep(0.1)

            if send_mpv_command(self.socket_path, {"command": ["get_property", "idle-active"]}):
                logger.info("MPV started successfully")
                return True

            logger.error("MPV socket connection test failed")
            self.process.kill()
            self.process = None
            return False

        except (subprocess.SubprocessError, OSError) as e:
            logger.error(f"Failed to start MPV: {e}")
            self.process = None
            return False

    def close(self) -> None:
        """Stop MPV process and cleanup."""
        if self.process:
            try:
                self.process.kill()
                self.process.wait(timeout=2.0)
            except (OSError, subprocess.TimeoutExpired):
                pass
            self.process = None

        if os.path.exists(self.socket_path):
            try:
                os.unlink(self.socket_path)
            except OSError:
                pass

    @property
    def is_running(self) -> bool:
        if not self.process or self.process.poll() is not None:
            return False
        return os.path.exists(self.socket_path)

    def _command(self, *args: Any) -> bool:
        if not self.is_running:
            return False
        return send_mpv_command(self.socket_path, {"command": list(args)})

    # ------------------------------------------------------------------
    @property
    def src(self) -> Optional[str]:
        return self._src

    @src.setter
    def src(self, url: Optional[str]) -> None:
        self._src = url
        self._position = 0.0
        self._duration = 0.0
        if url is None:
            self._loading = False
            self._command("stop")

    @property
    def current_time(self) -> float:
        return self._position

    @current_time.setter
    def current_time(self, seconds: float) -> None:
        if self._command("seek", seconds, "absolute"):
            self._position = seconds
            self._ended_reported = False
            self.emit(DeviceEvent.TIME_UPDATE)

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def volume(self) -> float:
        return self._volume

    @volume.setter
    def volume(self, value: float) -> None:
        self._volume = value
        self._command("set_property", "volume", round(value * 100))

    def load(self) -> None:
        if self._src is None:
            return
        self._ended_reported = False
        # Stay paused until play() is requested
        self._command("set_property", "pause", True)
        if self._command("loadfile", self._src, "replace"):
            self._loading = True
            self.emit(DeviceEvent.LOAD_START)
        else:
            logger.error(f"MPV failed to load {self._src}")
            self.emit(DeviceEvent.ERROR)

    def play(self) -> Future:
        future: Future = Future()
        if self._src is None:
            future.set_exception(PlaybackRejectedError("No source loaded"))
        elif self._command("set_property", "pause", False):
            future.set_result(None)
            if not self._loading:
                self.emit(DeviceEvent.PLAYING)
        else:
            future.set_exception(PlaybackRejectedError("MPV did not accept play"))
        return future

    def pause(self) -> None:
        self._command("set_property", "pause", True)

    def poll(self) -> None:
        """Query mpv and emit the events that happened since the last poll."""
        if not self.is_running or self._src is None:
            return

        position = get_mpv_property(self.socket_path, "time-pos")
        duration = get_mpv_property(self.socket_path, "duration")
        paused = get_mpv_property(self.socket_path, "pause")
        eof = get_mpv_property(self.socket_path, "eof-reached")

        if duration and duration > 0 and duration != self._duration:
            self._duration = float(duration)
            self.emit(DeviceEvent.LOADED_METADATA)

        if self._loading and self._duration > 0:
            self._loading = False
            self.emit(DeviceEvent.CAN_PLAY)
            if paused is False:
                self.emit(DeviceEvent.PLAYING)

        if position is not None and position != self._position:
            self._position = float(position)
            self.emit(DeviceEvent.TIME_UPDATE)

        finished = (
            eof is True
            and self._duration > 0
            and self._position >= self._duration - END_TOLERANCE
        )
        if finished and not self._ended_reported:
            self._ended_reported = True
            self.emit(DeviceEvent.ENDED)
