"""Centralized Rich Console management.

A single Console instance is shared by the CLI and the log() UI callback so
styled messages, tables and the progress line interleave correctly.
"""

from typing import Iterable, Optional

from rich.console import Console
from rich.table import Table

_console: Console | None = None

# Style per log() level when messages are shown to the user
LEVEL_STYLES = {
    "info": None,
    "success": "green",
    "warning": "yellow",
    "error": "bold red",
    "critical": "bold red",
}


def get_console() -> Console:
    """Get or create the global Rich Console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def safe_print(message: str, style: str | None = None) -> None:
    """Print using Rich Console with optional styling.

    Args:
        message: The message to print
        style: Optional Rich style string (e.g., "bold red", "green")
    """
    console = get_console()
    if style:
        console.print(message, style=style)
    else:
        console.print(message)


def print_log_message(message: str, level: str) -> None:
    """UI callback for core.output.log(); debug messages stay in the log file."""
    if level == "debug":
        return
    safe_print(message, style=LEVEL_STYLES.get(level))


def song_table(
    songs: Iterable,
    title: Optional[str] = None,
    favorites: Iterable[str] = (),
    current_id: Optional[str] = None,
) -> Table:
    """Build a table of songs; favorites get a heart and the current song a marker."""
    favorite_ids = set(favorites)
    table = Table(title=title, show_lines=False)
    table.add_column("", width=2)
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Title", style="bold")
    table.add_column("Artist")
    table.add_column("Album", style="dim")
    table.add_column("Time", justify="right")

    for song in songs:
        marker = "▶" if song.id == current_id else ("♥" if song.id in favorite_ids else "")
        table.add_row(
            marker, song.id, song.title, song.artist, song.album or "", song.duration
        )
    return table
