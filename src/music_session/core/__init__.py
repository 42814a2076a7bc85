"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Session database (SQLite)
- Output and console management (Loguru, Rich)

Clean architecture principle: The core layer has no dependencies on
domain or application layers.
"""

# Configuration
from .config import (
    ApiConfig,
    Config,
    LoggingConfig,
    NotificationsConfig,
    PlayerConfig,
    SessionConfig,
    create_default_config,
    ensure_directories,
    get_config_dir,
    get_config_path,
    get_data_dir,
    load_config,
)

# Database
from .database import (
    SCHEMA_VERSION,
    get_database_path,
    get_db_connection,
    init_database,
    migrate_database,
)

# Output
from .output import clear_ui_callback, log, set_ui_callback, setup_loguru

# Console
from .console import get_console, print_log_message, safe_print, song_table

__all__ = [
    # Config
    "ApiConfig",
    "Config",
    "LoggingConfig",
    "NotificationsConfig",
    "PlayerConfig",
    "SessionConfig",
    "create_default_config",
    "ensure_directories",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "load_config",
    # Database
    "SCHEMA_VERSION",
    "get_database_path",
    "get_db_connection",
    "init_database",
    "migrate_database",
    # Output
    "clear_ui_callback",
    "log",
    "set_ui_callback",
    "setup_loguru",
    # Console
    "get_console",
    "print_log_message",
    "safe_print",
    "song_table",
]
