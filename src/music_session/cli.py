"""
Music Session CLI - Entry point

Small front end over the playback/session engine: log in, browse the
derived queue, play it through mpv, toggle favorites.
"""

import argparse
import sys
import time
from pathlib import Path
from typing import Optional

from loguru import logger
from rich.live import Live
from rich.text import Text

from music_session.api.exceptions import (
    AuthenticationError,
    AuthenticationRequiredError,
    MusicSessionError,
)
from music_session.context import AppContext
from music_session.core.config import ensure_directories, get_data_dir, load_config
from music_session.core.console import get_console, print_log_message, safe_print, song_table
from music_session.core.output import set_ui_callback, setup_loguru
from music_session.domain.playback.mpv import MpvAudioDevice, check_mpv_available
from music_session.domain.playback.state import PlaybackState, RepeatMode, format_time

TICK_SECONDS = 0.5


def _status_line(ctx: AppContext, state: PlaybackState) -> Text:
    song = ctx.controller.current_song
    if song is None:
        return Text("Nothing playing", style="dim")

    icon = "⏸" if not state.is_playing else ("…" if state.is_buffering else "▶")
    line = Text(f"{icon} ")
    line.append(song.title, style="bold")
    line.append(f" - {song.artist}  ")
    line.append(f"{format_time(state.current_time)} / {format_time(state.duration)}")
    line.append(f"  {state.progress:5.1f}%", style="dim")
    if state.is_shuffle:
        line.append("  shuffle", style="cyan")
    if state.repeat_mode is not RepeatMode.NONE:
        line.append(f"  repeat {state.repeat_mode.value}", style="cyan")
    if ctx.favorites.is_favorite(song.id):
        line.append("  ♥", style="red")
    return line


def run_login(ctx: AppContext, email: str, password: str) -> int:
    ctx.store.load()
    try:
        ctx.login(email, password)
    except AuthenticationError as e:
        safe_print(f"Login failed: {e}", style="bold red")
        return 1
    except MusicSessionError as e:
        safe_print(f"Could not reach the server: {e}", style="bold red")
        return 1
    return 0


def run_logout(ctx: AppContext) -> int:
    ctx.store.load()
    ctx.logout()
    safe_print("Logged out", style="green")
    return 0


def run_library(
    ctx: AppContext,
    refresh: bool = False,
    search: Optional[str] = None,
    playlist: Optional[str] = None,
) -> int:
    result = ctx.refresh() if refresh else ctx.start()
    if result.failed:
        safe_print(f"Some data could not be loaded: {', '.join(result.failed)}", style="yellow")

    collection = ctx.select_playlist(playlist)
    if playlist and collection is None:
        safe_print(f"No playlist or album named '{playlist}'", style="yellow")
        return 1
    ctx.queue.search_term = search

    songs = ctx.queue.filtered_songs
    title = collection.name if collection else "All songs"
    get_console().print(song_table(songs, title=title, favorites=ctx.favorites.favorites))

    if not playlist:
        names = [c.name + (" (album)" if c.is_album else "") for c in ctx.library.collections]
        if names:
            safe_print("Collections: " + ", ".join(names), style="dim")
    return 0


def run_play(
    ctx: AppContext,
    song_id: Optional[str] = None,
    playlist: Optional[str] = None,
    search: Optional[str] = None,
    shuffle: bool = False,
    repeat: str = RepeatMode.NONE.value,
) -> int:
    controller = ctx.controller
    device = controller.device
    if isinstance(device, MpvAudioDevice):
        if not check_mpv_available():
            safe_print("mpv is not installed or not on PATH", style="bold red")
            return 1
        if not device.start():
            safe_print("Failed to start mpv", style="bold red")
            return 1

    ctx.start()
    ctx.select_playlist(playlist)
    ctx.queue.search_term = search
    controller.set_shuffle(shuffle)
    controller.set_repeat_mode(RepeatMode(repeat))

    songs = ctx.queue.filtered_songs
    if not songs:
        safe_print("Nothing to play", style="yellow")
        return 1
    start_id = song_id or songs[0].id
    if ctx.library.get_song(start_id) is None:
        safe_print(f"Unknown song: {start_id}", style="yellow")
        return 1

    controller.play_song(start_id)
    console = get_console()
    try:
        with Live(_status_line(ctx, controller.state), console=console, transient=True) as live:
            while controller.state.is_playing:
                device.poll()
                live.update(_status_line(ctx, controller.state))
                time.sleep(TICK_SECONDS)
    except KeyboardInterrupt:
        logger.info("Playback interrupted by user")
    finally:
        controller.stop_playback()

    safe_print("Playback finished", style="dim")
    return 0


def run_recent(ctx: AppContext) -> int:
    ctx.store.load()
    ctx.library.load_snapshot()
    songs = [ctx.library.get_song(song_id) for song_id in ctx.recently_played.song_ids]
    songs = [song for song in songs if song is not None]
    if not songs:
        safe_print("Nothing played yet", style="dim")
        return 0
    get_console().print(song_table(songs, title="Recently played"))
    return 0


def run_quote(ctx: AppContext) -> int:
    ctx.store.load()
    safe_print(f'"{ctx.quotes.current()}"', style="italic")
    return 0


def run_favorite(ctx: AppContext, song_id: str) -> int:
    ctx.start()
    try:
        future = ctx.favorites.toggle_favorite(song_id)
    except AuthenticationRequiredError:
        safe_print("Log in first: music-session login EMAIL PASSWORD", style="yellow")
        return 1

    try:
        favorites = future.result()
    except MusicSessionError as e:
        safe_print(f"Favorite not updated: {e}", style="bold red")
        return 1

    state = "added to" if str(song_id) in favorites else "removed from"
    safe_print(f"{song_id} {state} favorites ({len(favorites)} total)", style="green")
    return 0


def main() -> None:
    """Main entry point for the music-session command."""
    parser = argparse.ArgumentParser(
        description="Music Session - playback and session engine for a music backend",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="subcommand", help="Available commands")

    login_parser = subparsers.add_parser("login", help="Log in and store tokens")
    login_parser.add_argument("email")
    login_parser.add_argument("password")

    subparsers.add_parser("logout", help="Clear the stored session")

    library_parser = subparsers.add_parser("library", help="Show the song library")
    library_parser.add_argument("--refresh", action="store_true", help="Refetch from the server")
    library_parser.add_argument("--search", help="Filter by title or artist")
    library_parser.add_argument("--playlist", help="Playlist or album name or id")

    play_parser = subparsers.add_parser("play", help="Play the queue through mpv")
    play_parser.add_argument("song_id", nargs="?", help="Song to start with")
    play_parser.add_argument("--playlist", help="Playlist or album name or id")
    play_parser.add_argument("--search", help="Filter by title or artist")
    play_parser.add_argument("--shuffle", action="store_true", help="Shuffle playback")
    play_parser.add_argument(
        "--repeat",
        choices=[mode.value for mode in RepeatMode],
        default=RepeatMode.NONE.value,
        help="Repeat mode",
    )

    subparsers.add_parser("recent", help="Show recently played songs")
    subparsers.add_parser("quote", help="Show the current quote")

    favorite_parser = subparsers.add_parser("favorite", help="Toggle a favorite song")
    favorite_parser.add_argument("song_id")

    args = parser.parse_args()
    if not args.subcommand:
        parser.print_help()
        sys.exit(1)

    config = load_config()
    ensure_directories()
    log_file = (
        Path(config.logging.log_file)
        if config.logging.log_file
        else get_data_dir() / "music-session.log"
    )
    setup_loguru(
        log_file,
        level=config.logging.level,
        max_file_size_mb=config.logging.max_file_size_mb,
        backup_count=config.logging.backup_count,
    )
    set_ui_callback(print_log_message)

    ctx = AppContext.create(config, console=get_console())
    try:
        if args.subcommand == "login":
            code = run_login(ctx, args.email, args.password)
        elif args.subcommand == "logout":
            code = run_logout(ctx)
        elif args.subcommand == "library":
            code = run_library(ctx, args.refresh, args.search, args.playlist)
        elif args.subcommand == "play":
            code = run_play(
                ctx, args.song_id, args.playlist, args.search, args.shuffle, args.repeat
            )
        elif args.subcommand == "recent":
            code = run_recent(ctx)
        elif args.subcommand == "quote":
            code = run_quote(ctx)
        else:
            code = run_favorite(ctx, args.song_id)
    finally:
        ctx.shutdown()
    sys.exit(code)


if __name__ == "__main__":
    main()
