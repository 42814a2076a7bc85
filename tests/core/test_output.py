"""Tests for the unified log() output."""

from unittest.mock import MagicMock

import pytest

from music_session.core.output import clear_ui_callback, log, set_ui_callback, setup_loguru


@pytest.fixture(autouse=True)
def reset_callback():
    yield
    clear_ui_callback()


def test_routes_to_ui_callback(capsys) -> None:
    callback = MagicMock()
    set_ui_callback(callback)
    log("Favorites updated", level="warning")
    callback.assert_called_once_with("Favorites updated", "warning")
    assert capsys.readouterr().out == ""


def test_prints_without_callback(capsys) -> None:
    log("Hello")
    assert capsys.readouterr().out == "Hello\n"


def test_debug_not_printed(capsys) -> None:
    log("internal detail", level="debug")
    assert capsys.readouterr().out == ""


def test_failing_callback_is_contained() -> None:
    set_ui_callback(MagicMock(side_effect=RuntimeError("ui gone")))
    log("still fine")


def test_setup_loguru_writes_file(tmp_path) -> None:
    log_file = tmp_path / "logs" / "music-session.log"
    setup_loguru(log_file, level="DEBUG")
    log("written to disk", level="debug")

    from loguru import logger

    logger.remove()
    assert "written to disk" in log_file.read_text()
