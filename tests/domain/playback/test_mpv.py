"""Tests for the mpv audio device with the IPC layer mocked out."""

from unittest.mock import MagicMock, patch

import pytest

from music_session.domain.playback.device import DeviceEvent, PlaybackRejectedError
from music_session.domain.playback.mpv import (
    MpvAudioDevice,
    get_mpv_property,
    send_mpv_command,
)

MPV = "music_session.domain.playback.mpv"


@pytest.fixture
def mpv_device(tmp_path) -> MpvAudioDevice:
    """Device that believes mpv is running (socket file exists, process alive)."""
    socket_path = tmp_path / "mpv.sock"
    socket_path.touch()
    device = MpvAudioDevice(str(socket_path), volume=0.5)
    device.process = MagicMock()
    device.process.poll.return_value = None
    return device


@pytest.fixture
def events(mpv_device) -> list:
    received: list = []
    mpv_device.add_listener(received.append)
    return received


def property_source(values: dict):
    return lambda socket_path, name: values.get(name)


class TestIpcHelpers:
    """Tests for send_mpv_command and get_mpv_property."""

    def test_missing_socket(self, tmp_path) -> None:
        missing = str(tmp_path / "nope.sock")
        assert send_mpv_command(missing, {"command": ["stop"]}) is False
        assert get_mpv_property(missing, "time-pos") is None

    def test_none_socket(self) -> None:
        assert send_mpv_command(None, {"command": ["stop"]}) is False


class TestCommands:
    """Tests for transport commands sent to mpv."""

    def test_load_sends_loadfile(self, mpv_device, events) -> None:
        with patch(f"{MPV}.send_mpv_command", return_value=True) as send:
            mpv_device.src = "http://api.test/a.mp3"
            mpv_device.load()

        commands = [c.args[1]["command"] for c in send.call_args_list]
        assert ["set_property", "pause", True] in commands
        assert ["loadfile", "http://api.test/a.mp3", "replace"] in commands
        assert events == [DeviceEvent.LOAD_START]

    def test_failed_load_emits_error(self, mpv_device, events) -> None:
        with patch(f"{MPV}.send_mpv_command", return_value=False):
            mpv_device.src = "http://api.test/a.mp3"
            mpv_device.load()
        assert events == [DeviceEvent.ERROR]

    def test_play_without_source_rejected(self, mpv_device) -> None:
        future = mpv_device.play()
        assert isinstance(future.exception(), PlaybackRejectedError)

    def test_play_unpauses(self, mpv_device) -> None:
        with patch(f"{MPV}.send_mpv_command", return_value=True) as send:
            mpv_device.src = "http://api.test/a.mp3"
            future = mpv_device.play()
        assert future.result() is None
        send.assert_called_with(
            mpv_device.socket_path, {"command": ["set_property", "pause", False]}
        )

    def test_play_refused(self, mpv_device) -> None:
        with patch(f"{MPV}.send_mpv_command", return_value=False):
            mpv_device.src = "http://api.test/a.mp3"
            future = mpv_device.play()
        assert isinstance(future.exception(), PlaybackRejectedError)

    def test_volume_scaled_to_percent(self, mpv_device) -> None:
        with patch(f"{MPV}.send_mpv_command", return_value=True) as send:
            mpv_device.volume = 0.35
        send.assert_called_once_with(
            mpv_device.socket_path, {"command": ["set_property", "volume", 35]}
        )
        assert mpv_device.volume == 0.35

    def test_seek(self, mpv_device, events) -> None:
        with patch(f"{MPV}.send_mpv_command", return_value=True) as send:
            mpv_device.current_time = 42.0
        send.assert_called_once_with(
            mpv_device.socket_path, {"command": ["seek", 42.0, "absolute"]}
        )
        assert mpv_device.current_time == 42.0
        assert events == [DeviceEvent.TIME_UPDATE]

    def test_clearing_source_stops(self, mpv_device) -> None:
        with patch(f"{MPV}.send_mpv_command", return_value=True) as send:
            mpv_device.src = None
        send.assert_called_once_with(mpv_device.socket_path, {"command": ["stop"]})

    def test_commands_skipped_when_not_running(self, mpv_device) -> None:
        mpv_device.process.poll.return_value = 1
        with patch(f"{MPV}.send_mpv_command") as send:
            mpv_device.pause()
        send.assert_not_called()


class TestPoll:
    """Tests for turning polled properties into device events."""

    def test_poll_reports_loading_progress_and_end(self, mpv_device, events) -> None:
        with patch(f"{MPV}.send_mpv_command", return_value=True):
            mpv_device.src = "http://api.test/a.mp3"
            mpv_device.load()
        events.clear()

        values = {"time-pos": 1.0, "duration": 200.0, "pause": False, "eof-reached": False}
        with patch(f"{MPV}.get_mpv_property", side_effect=property_source(values)):
            mpv_device.poll()
            assert events == [
                DeviceEvent.LOADED_METADATA,
                DeviceEvent.CAN_PLAY,
                DeviceEvent.PLAYING,
                DeviceEvent.TIME_UPDATE,
            ]
            assert mpv_device.duration == 200.0
            assert mpv_device.current_time == 1.0

            events.clear()
            values.update({"time-pos": 199.5, "eof-reached": True})
            mpv_device.poll()
            mpv_device.poll()

        assert events == [DeviceEvent.TIME_UPDATE, DeviceEvent.ENDED]

    def test_poll_without_source_is_quiet(self, mpv_device, events) -> None:
        with patch(f"{MPV}.get_mpv_property") as get:
            mpv_device.poll()
        get.assert_not_called()
        assert events == []


class TestLifecycle:
    """Tests for starting and stopping mpv."""

    def test_close_kills_process_and_removes_socket(self, mpv_device) -> None:
        process = mpv_device.process
        mpv_device.close()
        process.kill.assert_called_once()
        assert mpv_device.process is None
        assert mpv_device.is_running is False

    def test_start_failure_returns_false(self, tmp_path) -> None:
        device = MpvAudioDevice(str(tmp_path / "mpv.sock"))
        with patch(f"{MPV}.subprocess.Popen", side_effect=OSError("mpv not found")):
            assert device.start() is False
        assert device.process is None
