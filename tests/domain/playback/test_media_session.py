"""Tests for the media session and the now-playing notifier."""

from unittest.mock import MagicMock, patch

from music_session.domain.playback.media_session import (
    DesktopNotifier,
    MediaAction,
    MediaSession,
    NowPlayingMetadata,
)

METADATA = NowPlayingMetadata(title="Blue Monday", artist="New Order", album="PCL")


class TestMediaSession:
    def test_dispatch_without_handler(self) -> None:
        assert MediaSession().dispatch(MediaAction.PLAY) is False

    def test_dispatch_and_unregister(self) -> None:
        session = MediaSession()
        handler = MagicMock()
        session.set_action_handler(MediaAction.NEXT_TRACK, handler)
        assert session.dispatch(MediaAction.NEXT_TRACK) is True
        handler.assert_called_once_with()

        session.set_action_handler(MediaAction.NEXT_TRACK, None)
        assert session.has_handler(MediaAction.NEXT_TRACK) is False

    def test_publishers_get_changed_metadata_once(self) -> None:
        session = MediaSession()
        publisher = MagicMock()
        session.add_publisher(publisher)
        session.set_metadata(METADATA)
        session.set_metadata(METADATA)
        publisher.assert_called_once_with(METADATA)

    def test_failing_publisher_does_not_block_others(self) -> None:
        session = MediaSession()
        second = MagicMock()
        session.add_publisher(MagicMock(side_effect=RuntimeError("dbus down")))
        session.add_publisher(second)
        session.set_metadata(METADATA)
        second.assert_called_once_with(METADATA)
        assert session.metadata == METADATA


class TestDesktopNotifier:
    def test_notifies_song(self) -> None:
        with patch("music_session.domain.playback.media_session.notify") as notify:
            DesktopNotifier()(METADATA)
        notify.assert_called_once_with(
            "♪ Blue Monday", "New Order • PCL", urgency="low", icon=None
        )

    def test_disabled(self) -> None:
        with patch("music_session.domain.playback.media_session.notify") as notify:
            DesktopNotifier(enabled=False)(METADATA)
        notify.assert_not_called()

    def test_notify_send_missing(self) -> None:
        from music_session.notifications import notify

        with patch("music_session.notifications.shutil.which", return_value=None):
            assert notify("title", "body") is False
