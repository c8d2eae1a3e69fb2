"""Core infrastructure layer.

This module provides foundation-level services:
- Configuration management (TOML)
- Logging (Loguru)
- Console management (Rich)
"""

from .config import (
    Config,
    LoggingConfig,
    PlayerConfig,
    StorageConfig,
    WebConfig,
    create_default_config,
    ensure_directories,
    get_config_dir,
    get_config_path,
    get_data_dir,
    get_log_file_path,
    get_settings_path,
    load_config,
)
from .console import get_console
from .output import log, setup_loguru

__all__ = [
    "Config",
    "LoggingConfig",
    "PlayerConfig",
    "StorageConfig",
    "WebConfig",
    "create_default_config",
    "ensure_directories",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "get_log_file_path",
    "get_settings_path",
    "load_config",
    "get_console",
    "log",
    "setup_loguru",
]
