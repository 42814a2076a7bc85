"""
Configuration management for Music Session
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass
class ApiConfig:
    """Configuration for the REST backend."""

    base_url: str = "http://localhost:3000"
    cloudinary_cloud_name: str = "dzp9rltpr"
    request_timeout: float = 15.0
    cold_start_retry_delay: float = 3.0  # Wait before retrying a sleeping server


@dataclass
class PlayerConfig:
    """Configuration for the audio device and transport controls."""

    mpv_socket_path: Optional[str] = None
    volume: float = 0.7
    unmute_volume: float = 0.7
    skip_seconds: float = 15.0

    def validate(self) -> None:
        """Validate player configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        for name in ("volume", "unmute_volume"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0.0 and 1.0, got {value}")
        if self.skip_seconds <= 0:
            raise ValueError(f"skip_seconds must be positive, got {self.skip_seconds}")


@dataclass
class SessionConfig:
    """Configuration for durable session state."""

    recently_played_limit: int = 10
    quote_interval_hours: float = 6.0
    shuffle_on_first_load: bool = True


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = (
        None  # Custom log file path (default: ~/.local/share/music-session/music-session.log)
    )
    max_file_size_mb: int = 10
    backup_count: int = 5


@dataclass
class NotificationsConfig:
    """Configuration for desktop notifications."""

    enabled: bool = True
    now_playing: bool = False


@dataclass
class Config:
    """Top-level configuration, one attribute per TOML section."""

    api: ApiConfig = field(default_factory=ApiConfig)
    player: PlayerConfig = field(default_factory=PlayerConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)


def get_config_dir() -> Path:
    """XDG config dir for music-session."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "music-session"
    return Path.home() / ".config" / "music-session"


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the current working directory first, then falls
    back to XDG_CONFIG_HOME/music-session (or ~/.config/music-session).
    """
    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """XDG data dir (database and logs)."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "music-session"
    return Path.home() / ".local" / "share" / "music-session"


def create_default_config() -> str:
    """Contents of the config.toml written on first run."""
    return """
# Music Session Configuration

[api]
# Base URL of the music backend (overridden by MUSIC_SESSION_API_URL)
base_url = "http://localhost:3000"

# Cloudinary cloud used for storage-relative media paths
cloudinary_cloud_name = "dzp9rltpr"

# Request timeout in seconds
request_timeout = 15

# Delay before retrying a request against a sleeping server
cold_start_retry_delay = 3.0

[player]
# Path for mpv socket (auto-detected if not specified)
# mpv_socket_path = "/tmp/mpv-socket"

# Default volume (0.0-1.0)
volume = 0.7

# Volume restored when un-muting
unmute_volume = 0.7

# Seconds jumped by skip forward/backward
skip_seconds = 15

[session]
# Number of recently played songs to remember
recently_played_limit = 10

# Hours between quote rotations
quote_interval_hours = 6

# Shuffle the song list the first time the library loads
shuffle_on_first_load = true

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/music-session/music-session.log)
# log_file = "/path/to/custom/music-session.log"

# Maximum log file size in MB before rotation
max_file_size_mb = 10

# Number of backup log files to keep
backup_count = 5

[notifications]
# Enable desktop notifications
enabled = true

# Show a notification whenever the song changes
now_playing = false
""".strip()


def load_config() -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values:
    - MUSIC_SESSION_API_URL
    - CLOUDINARY_CLOUD_NAME
    """
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = get_config_path()

    if not config_path.exists():
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_default_config())
        print(f"Created default configuration at: {config_path}")
        return _apply_env_overrides(Config())

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)

        config = Config()

        if "api" in toml_data:
            api_data = toml_data["api"]
            config.api = ApiConfig(
                base_url=api_data.get("base_url", config.api.base_url),
                cloudinary_cloud_name=api_data.get(
                    "cloudinary_cloud_name", config.api.cloudinary_cloud_name
                ),
                request_timeout=float(
                    api_data.get("request_timeout", config.api.request_timeout)
                ),
                cold_start_retry_delay=float(
                    api_data.get(
                        "cold_start_retry_delay", config.api.cold_start_retry_delay
                    )
                ),
            )

        if "player" in toml_data:
            player_data = toml_data["player"]
            config.player = PlayerConfig(
                mpv_socket_path=player_data.get("mpv_socket_path"),
                volume=float(player_data.get("volume", config.player.volume)),
                unmute_volume=float(
                    player_data.get("unmute_volume", config.player.unmute_volume)
                ),
                skip_seconds=float(
                    player_data.get("skip_seconds", config.player.skip_seconds)
                ),
            )
            try:
                config.player.validate()
            except ValueError as e:
                print(f"Warning: Invalid player configuration: {e}")
                print("Using default player configuration.")
                config.player = PlayerConfig()

        if "session" in toml_data:
            session_data = toml_data["session"]
            config.session = SessionConfig(
                recently_played_limit=session_data.get(
                    "recently_played_limit", config.session.recently_played_limit
                ),
                quote_interval_hours=float(
                    session_data.get(
                        "quote_interval_hours", config.session.quote_interval_hours
                    )
                ),
                shuffle_on_first_load=session_data.get(
                    "shuffle_on_first_load", config.session.shuffle_on_first_load
                ),
            )

        if "logging" in toml_data:
            logging_data = toml_data["logging"]
            config.logging = LoggingConfig(
                level=logging_data.get("level", config.logging.level),
                log_file=logging_data.get("log_file"),
                max_file_size_mb=logging_data.get(
                    "max_file_size_mb", config.logging.max_file_size_mb
                ),
                backup_count=logging_data.get(
                    "backup_count", config.logging.backup_count
                ),
            )

        if "notifications" in toml_data:
            notifications_data = toml_data["notifications"]
            config.notifications = NotificationsConfig(
                enabled=notifications_data.get(
                    "enabled", config.notifications.enabled
                ),
                now_playing=notifications_data.get(
                    "now_playing", config.notifications.now_playing
                ),
            )

        return _apply_env_overrides(config)

    except Exception as e:
        print(f"Error loading configuration from {config_path}: {e}")
        print("Using default configuration.")
        return _apply_env_overrides(Config())


def _apply_env_overrides(config: Config) -> Config:
    api_url = os.environ.get("MUSIC_SESSION_API_URL")
    cloud_name = os.environ.get("CLOUDINARY_CLOUD_NAME")

    if api_url:
        config.api.base_url = api_url
    if cloud_name:
        config.api.cloudinary_cloud_name = cloud_name

    return config


def ensure_directories() -> None:
    """Create the config and data dirs if missing."""
    get_config_dir().mkdir(parents=True, exist_ok=True)
    get_data_dir().mkdir(parents=True, exist_ok=True)
